"""
Class file for the kernel adaptation schemes

Contains
    - NoAdaptation: a flag that no adaptation is to be done
    - AdaptationUnifRW: adapts the half-range of a uniform random walk to
      target an acceptance rate
    - HaarioTypeAdaptation: learns the covariance of a Gaussian random walk
      mixture from the empirical covariance of the chain
"""

# Imports
import dataclasses
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

import numpy as np

from exmcmc.core.kernel import AdaptationBase
from exmcmc.kernels.random_walk import GaussianRandomWalkMix, UniformRandomWalk
from exmcmc.utils.tools import assure_scalar, online_mean_cov, upgrade_to_vec

ScalarOrVector = Union[float, np.ndarray]


class NoAdaptation(AdaptationBase):
    """A flag that no adaptation is to be done"""

    def register(self, update: Any, accepted: Any, theta: np.ndarray) -> None:
        pass

    def time_to_update(self) -> bool:
        return False

    def readjust(self, kernel: Any, mcmc_iter: int) -> None:
        pass


@dataclass
class UnifRWAdaptationConfig:
    """
    Settings of the adaptation of a uniform random walk.

    Attributes:
        target_accpt_rate: Acceptance rate of the Metropolis-Hastings step that is to be targetted.
        adapt_every_k_steps: Number of proposals based on which a single adaptation happens.
        scale: Scaling of the adaptation step.
        eps_min: Minimum allowable half-range of the uniform sampler.
        eps_max: Maximum allowable half-range of the uniform sampler.
        offset: Number of adaptations after which the adaptation step starts shrinking.

    ``scale``, ``eps_min``, ``eps_max`` and ``offset`` may be scalars, shared by all
    coordinates, or per-coordinate sequences.
    """

    target_accpt_rate: float = 0.234
    adapt_every_k_steps: int = 100
    scale: Any = 1.0
    eps_min: Any = 1e-12
    eps_max: Any = 1e7
    offset: Any = 1e2


class AdaptationUnifRW(AdaptationBase):
    """
    Adaptation of the half-range eps of a uniform random walk.

    Every ``adapt_every_k_steps`` proposals the empirical acceptance rate is
    compared with the target. eps moves up by delta if the rate is above the
    target and down otherwise, with

        delta = scale / sqrt(max(1, mcmc_iter / adapt_every_k_steps - offset)),

    and is clipped to [eps_min, eps_max].
    """

    _vector_fields = ("scale", "eps_min", "eps_max", "offset")

    def __init__(self, theta: np.ndarray, config: Optional[UnifRWAdaptationConfig] = None, **kwargs):
        """
        Args:
            theta: Parameter (sub-)vector that the random walk moves; sets the dimension.
            config: Adaptation settings, defaults to ``UnifRWAdaptationConfig()``.
            **kwargs: Overrides of individual fields of ``config``.
        """
        config = config if config is not None else UnifRWAdaptationConfig()
        config = dataclasses.replace(config, **kwargs)

        self.N = int(np.size(theta))
        self.target_accpt_rate = float(assure_scalar(config.target_accpt_rate))
        self.adapt_every_k_steps = int(assure_scalar(config.adapt_every_k_steps))
        if not 0.0 < self.target_accpt_rate < 1.0:
            raise ValueError(f"target_accpt_rate must lie in (0, 1), got {self.target_accpt_rate}.")
        if self.adapt_every_k_steps < 1:
            raise ValueError(f"adapt_every_k_steps must be >= 1, got {self.adapt_every_k_steps}.")

        # Scalar storage unless any of the fields is given per coordinate
        values = {name: getattr(config, name) for name in self._vector_fields}
        self.is_vector = any(np.size(v) > 1 for v in values.values())
        for name, value in values.items():
            if self.is_vector:
                setattr(self, name, upgrade_to_vec(value, self.N))
            else:
                setattr(self, name, float(assure_scalar(value)))

        self.proposed = 0
        self.accepted = 0

    def acceptance_rate(self) -> float:
        """Current acceptance rate of the Metropolis-Hastings step"""
        return 0.0 if self.proposed == 0 else self.accepted / self.proposed

    def reset(self) -> None:
        """Reset the number of proposals and accepted samples to zero"""
        self.proposed = 0
        self.accepted = 0

    def pop_acceptance_rate(self) -> float:
        """Compute the current acceptance rate and reset the counters"""
        a_r = self.acceptance_rate()
        self.reset()
        return a_r

    def check_kernel(self, kernel: Any) -> None:
        """Only uniform random walks of the adapted dimension have an eps to tune"""
        if not isinstance(kernel, UniformRandomWalk):
            raise TypeError(f"AdaptationUnifRW adapts a UniformRandomWalk, got {type(kernel).__name__}.")
        if len(kernel) != self.N:
            raise ValueError(f"AdaptationUnifRW was set up for {self.N} coordinates, the kernel moves {len(kernel)}.")

    def register(self, update: Any, accepted: Any, theta: np.ndarray) -> None:
        """Register the result of the acceptance decision"""
        self.accepted += int(bool(np.atleast_1d(accepted)[0]))
        self.proposed += 1

    def time_to_update(self) -> bool:
        return self.proposed >= self.adapt_every_k_steps

    def compute_delta(self, mcmc_iter: int) -> ScalarOrVector:
        """delta decreases roughly proportionally to scale/sqrt(iteration)"""
        return self.scale / np.sqrt(np.maximum(1.0, mcmc_iter / self.adapt_every_k_steps - self.offset))

    def compute_eps(self, eps_old: np.ndarray, a_r: float, delta: ScalarOrVector) -> np.ndarray:
        """eps is moved by delta towards the target acceptance rate"""
        direction = 1.0 if a_r > self.target_accpt_rate else -1.0
        eps = eps_old + direction * delta
        return np.clip(eps, self.eps_min, self.eps_max)

    def readjust(self, kernel: UniformRandomWalk, mcmc_iter: int) -> np.ndarray:
        """Adaptive readjustment of the range of the uniform random walk"""
        delta = self.compute_delta(mcmc_iter)
        a_r = self.pop_acceptance_rate()
        kernel.eps = np.asarray(self.compute_eps(kernel.eps, a_r, delta), dtype=float)
        return kernel.eps


class HaarioTypeAdaptation(AdaptationBase):
    """
    Haario et al. type adaptation of a mixture of two Gaussian random walks.

    The walk gsn_a keeps its fixed covariance, the covariance of gsn_b is set to
    scale/dim times the empirical covariance of the (log-transformed where
    restricted) sub-state. Every step is registered, whether or not the owning
    update ran; the adaptation fires every ``adapt_every_k_steps`` turns of the
    owning update, when the mixing weight is also updated through ``f``.
    """

    def __init__(
        self,
        state: np.ndarray,
        adapt_every_k_steps: int = 100,
        scale: float = 2.38**2,
        f: Optional[Callable[[float, int, int], float]] = None,
        eps: float = 1e-06,
    ):
        """
        Args:
            state: Parameter (sub-)vector that the random walk moves; sets the dimension.
            adapt_every_k_steps: Number of turns of the owning update between adaptations.
            scale: Scaling of the empirical covariance (divided by the dimension).
            f: Function (lam, N, mcmc_iter) -> new lam; by default lam is kept.
            eps: Jitter added to the diagonal of the adapted covariance.
        """
        state = np.atleast_1d(np.asarray(state, dtype=float))
        dim = state.shape[0]
        if adapt_every_k_steps < 1:
            raise ValueError(f"adapt_every_k_steps must be >= 1, got {adapt_every_k_steps}.")
        self.mean = np.zeros(dim)
        self.cov = np.zeros((dim, dim))
        self.adapt_every_k_steps = int(adapt_every_k_steps)
        self.scale = float(scale)
        self.eps = float(eps)
        self.N = 0
        self.M = 0
        self.f = f if f is not None else (lambda lam, n, mcmc_iter: lam)

    def check_kernel(self, kernel: Any) -> None:
        if not isinstance(kernel, GaussianRandomWalkMix):
            raise TypeError(f"HaarioTypeAdaptation adapts a GaussianRandomWalkMix, got {type(kernel).__name__}.")
        if len(kernel) != self.mean.shape[0]:
            raise ValueError(
                f"HaarioTypeAdaptation was set up for {self.mean.shape[0]} coordinates, the kernel moves {len(kernel)}."
            )

    def register_only_on_my_turn(self, my_turn: bool) -> bool:
        if my_turn:
            self.M += 1
        return False

    def register(self, update: Any, accepted: Any, theta: np.ndarray) -> None:
        """Update the running mean and covariance with the current sub-state"""
        x = update.kernel.gsn_a.remove_constraints(theta)
        self.mean, self.cov, self.N = online_mean_cov(self.mean, self.cov, self.N, x)

    def time_to_update(self) -> bool:
        ttu = self.M >= self.adapt_every_k_steps
        if ttu:
            self.M = 0
        return ttu

    def readjust(self, kernel: GaussianRandomWalkMix, mcmc_iter: int) -> np.ndarray:
        """Set the covariance of the adaptive walk and the mixing weight"""
        dim = len(kernel)
        kernel.gsn_b.cov = self.scale / dim * self.cov + self.eps * np.eye(dim)
        kernel.lam = float(self.f(kernel.lam, self.N, mcmc_iter))
        return kernel.gsn_b.cov
