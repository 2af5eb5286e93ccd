"""
Example: inferring the mean and one variance of a bivariate Gaussian
with a Metropolis-Hastings-within-Gibbs sampler.

Parameter vector of the target law: [mu_1, mu_2, vec(cov)]
The first two coordinates get their own uniform random walk.
The variance of the first dimension (coordinate 2) is restricted to be positive
and is tuned with a Haario-type covariance adaptation.
"""

import os
import logging

import numpy as np

from exmcmc import (
    MCMC,
    AdaptationUnifRW,
    ExcludeUpdates,
    GaussianRandomWalkMix,
    HaarioTypeAdaptation,
    ImproperPosPrior,
    ObservedData,
    ProgressCallback,
    RandomWalkUpdate,
    SavingCallback,
    UniformRandomWalk,
)
from exmcmc.models.gaussian import GaussianTargetLaw
from exmcmc.utils.logging import ExmcmcLogger
from exmcmc.utils.post_processing import autocorrelation, effective_sample_size, get_samples, load_chain


def build_data(num_obs: int = 200) -> ObservedData:
    true_law = GaussianTargetLaw(np.array([1.0, 2.0]), np.array([[2.0, 0.5], [0.5, 1.0]]))
    obs = true_law.sample(num_obs)
    # the sampled law starts from a wrong guess, only its parameters are inferred
    law = GaussianTargetLaw(np.zeros(2), np.array([[1.0, 0.5], [0.5, 1.0]]))
    return ObservedData(law=law, obs=obs)


def main():
    np.random.seed(42)
    output_dir = "example_output"
    os.makedirs(output_dir, exist_ok=True)
    logger = ExmcmcLogger.get_logger(level=logging.INFO, log_file=os.path.join(output_dir, "run.log"))

    data = build_data()
    theta_init = np.array([0.0, 0.0, 1.0])

    updates = [
        RandomWalkUpdate(
            UniformRandomWalk([0.5]), [0],
            adaptation=AdaptationUnifRW(np.zeros(1), adapt_every_k_steps=50, scale=0.1),
        ),
        RandomWalkUpdate(
            UniformRandomWalk([0.5]), [1],
            adaptation=AdaptationUnifRW(np.zeros(1), adapt_every_k_steps=50, scale=0.1),
        ),
        # variance is held fixed for the first 500 iterations
        ExcludeUpdates(3, range(1, 501)),
        RandomWalkUpdate(
            GaussianRandomWalkMix(0.01 * np.eye(1), 0.01 * np.eye(1), lam=0.5, pos=[True]), [2],
            prior=ImproperPosPrior(),
            adaptation=HaarioTypeAdaptation(np.ones(1), adapt_every_k_steps=100, f=lambda lam, N, it: 0.8),
        ),
    ]

    mcmc = MCMC(updates, print_iteration=1000)
    saver = SavingCallback(save_at_iters=[2500], filename="gaussian_mean", path=output_dir)
    progress = ProgressCallback(print_every_k_iter=1000, show_all_updates=False)

    global_ws, local_wss = mcmc.run(5000, data, theta_init, callbacks=[saver, progress])

    samples = get_samples(global_ws, burnin=0.2)
    _, autos = autocorrelation(samples, maxlag=200)
    ess = [effective_sample_size(a, nsamples=samples.shape[1]) for a in autos]

    logger.info(f"Posterior mean: {np.mean(samples, axis=1)}")
    logger.info(f"Acceptance rates per update: {mcmc.acceptance_rates()}")
    logger.info(f"Effective sample sizes: {np.round(ess, 1)}")

    chain = load_chain(saver.filename)
    logger.info(f"Reloaded {len(chain['iteration'])} rows from {saver.filename}")
    ExmcmcLogger.close_file_handlers()


if __name__ == "__main__":
    main()
