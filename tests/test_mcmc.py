import pytest
import numpy as np

from exmcmc.core.callback import Callback, StepPhase
from exmcmc.core.model import ObservedData
from exmcmc.core.update import MCMCUpdate
from exmcmc.kernels.adaptation import AdaptationUnifRW, HaarioTypeAdaptation
from exmcmc.kernels.random_walk import GaussianRandomWalkMix, UniformRandomWalk
from exmcmc.models.gaussian import GaussianTargetLaw
from exmcmc.priors.priors import ImproperPosPrior
from exmcmc.samplers.mcmc import MCMC, ExcludeUpdates
from exmcmc.updates.random_walk import RandomWalkUpdate

# --------------------------------------------------
# Fixtures
# --------------------------------------------------
MU = np.array([1.0, 2.0])
SIGMA = np.array([[1.0, 0.5], [0.5, 1.0]])

@pytest.fixture
def gaussian_data():
    np.random.seed(0)
    law = GaussianTargetLaw(MU, SIGMA)
    obs = law.sample(10)
    return ObservedData(law=law, obs=obs)

@pytest.fixture
def two_updates():
    return [
        RandomWalkUpdate(UniformRandomWalk([1.0]), [0]),
        RandomWalkUpdate(UniformRandomWalk([1.0]), [1]),
    ]

class RecordingCallback(Callback):
    """Records every call made by the run loop."""
    def __init__(self):
        self.calls = []

    def init(self, global_ws):
        self.calls.append(("init",))

    def should_execute(self, step, phase):
        return True

    def execute(self, global_ws, local_wss, step, phase):
        self.calls.append((phase, step.mcmciter, step.pidx))

    def cleanup(self, global_ws, local_wss, final_step):
        self.calls.append(("cleanup", final_step.mcmciter))

class AddUpdateCallback(Callback):
    """Adds an update to the sampler at a chosen step."""
    def __init__(self, mcmc, update, at):
        self.mcmc, self.update, self.at = mcmc, update, at

    def should_execute(self, step, phase):
        return phase is StepPhase.POST and (step.mcmciter, step.pidx) == self.at

    def execute(self, global_ws, local_wss, step, phase):
        self.mcmc.add_update(self.update)

# --------------------------------------------------
# End-to-end scenario
# --------------------------------------------------
def test_gaussian_mean_end_to_end(gaussian_data, two_updates):
    np.random.seed(1)
    mcmc = MCMC(two_updates)
    global_ws, local_wss = mcmc.run(1000, gaussian_data, np.array([0.0, 0.0]))

    assert global_ws.state_history.shape == (1000, 2, 2)
    assert not np.any(np.isnan(global_ws.state_history))
    assert len(local_wss) == 2
    assert np.all(np.abs(global_ws.stats.mean - MU) < 3.0)
    assert global_ws.stats.N == 2000
    rates = mcmc.acceptance_rates()
    assert np.all((rates > 0.05) & (rates < 0.95))

def test_global_state_is_the_concatenation_of_local_states(gaussian_data, two_updates):
    np.random.seed(2)
    global_ws, local_wss = MCMC(two_updates).run(50, gaussian_data, np.array([0.0, 0.0]))
    assert np.allclose(global_ws.state, np.concatenate([local_wss[0].state, local_wss[1].state]))
    assert np.allclose(global_ws.P.mean, global_ws.state)
    assert np.allclose(global_ws.P_prop.mean, global_ws.state)

def test_slots_see_earlier_slots_within_an_iteration(gaussian_data, two_updates):
    np.random.seed(3)
    global_ws, _ = MCMC(two_updates).run(30, gaussian_data, np.array([0.0, 0.0]))
    # slot 2 only moves coordinate 1, coordinate 0 comes from slot 1
    assert np.allclose(global_ws.state_history[:, 1, 0], global_ws.state_history[:, 0, 0])
    assert np.allclose(global_ws.state_proposal_history[:, 1, 0], global_ws.state_history[:, 0, 0])

def test_run_is_reproducible(gaussian_data, two_updates):
    np.random.seed(4)
    ws_a, _ = MCMC(two_updates).run(20, gaussian_data, np.array([0.0, 0.0]))
    np.random.seed(4)
    updates = [RandomWalkUpdate(UniformRandomWalk([1.0]), [i]) for i in range(2)]
    ws_b, _ = MCMC(updates).run(20, gaussian_data, np.array([0.0, 0.0]))
    assert np.allclose(ws_a.state_history, ws_b.state_history)

# --------------------------------------------------
# Callbacks and schedule
# --------------------------------------------------
def test_callback_order(gaussian_data, two_updates):
    callback = RecordingCallback()
    MCMC(two_updates).run(2, gaussian_data, np.array([0.0, 0.0]), callbacks=[callback])
    assert callback.calls == [
        ("init",),
        (StepPhase.PRE, 1, 1), (StepPhase.POST, 1, 1),
        (StepPhase.PRE, 1, 2), (StepPhase.POST, 1, 2),
        (StepPhase.PRE, 2, 1), (StepPhase.POST, 2, 1),
        (StepPhase.PRE, 2, 2), (StepPhase.POST, 2, 2),
        ("cleanup", 3),
    ]

def test_exclude_updates_argument(gaussian_data, two_updates):
    global_ws, local_wss = MCMC(two_updates).run(
        10, gaussian_data, np.array([0.0, 0.0]), exclude_updates=[(2, range(1, 6))]
    )
    assert np.all(np.isnan(global_ws.state_history[:5, 1]))
    assert not np.any(np.isnan(global_ws.state_history[5:, 1]))
    assert not np.any(local_wss[1].acceptance_history[:5])

def test_exclude_updates_decorator(gaussian_data, two_updates):
    mcmc = MCMC([two_updates[0], ExcludeUpdates(1, range(4, 11)), two_updates[1]])
    assert len(mcmc.updates) == 2
    assert len(mcmc.decorators) == 1
    global_ws, _ = mcmc.run(10, gaussian_data, np.array([0.0, 0.0]))
    assert np.all(np.isnan(global_ws.state_history[3:, 0]))
    assert not np.any(np.isnan(global_ws.state_history[:3, 0]))

def test_add_update_during_run(gaussian_data, two_updates):
    mcmc = MCMC(two_updates)
    extra = RandomWalkUpdate(UniformRandomWalk([0.1, 0.1]), [0, 1])
    callback = AddUpdateCallback(mcmc, extra, at=(3, 1))
    global_ws, local_wss = mcmc.run(6, gaussian_data, np.array([0.0, 0.0]), callbacks=[callback])
    assert len(local_wss) == 3
    assert global_ws.state_history.shape == (6, 3, 2)
    # the new slot runs from the third iteration onwards
    assert np.all(np.isnan(global_ws.state_history[:2, 2]))
    assert not np.any(np.isnan(global_ws.state_history[2:, 2]))

def test_add_update_outside_of_the_parameter(gaussian_data, two_updates):
    mcmc = MCMC(two_updates)
    mcmc.run(3, gaussian_data, np.array([0.0, 0.0]))
    with pytest.raises(ValueError):
        mcmc.add_update(RandomWalkUpdate(UniformRandomWalk([0.1]), [2]))
    # nothing was changed by the failed call
    assert len(mcmc.updates) == 2
    assert len(mcmc.local_workspaces) == 2
    assert mcmc.workspace.state_history.shape == (3, 2, 2)
    assert mcmc.schedule.num_updates == 2

def test_add_update_before_run(gaussian_data, two_updates):
    mcmc = MCMC(two_updates[:1])
    assert mcmc.add_update(two_updates[1]) == 2
    global_ws, _ = mcmc.run(5, gaussian_data, np.array([0.0, 0.0]))
    assert global_ws.state_history.shape == (5, 2, 2)

# --------------------------------------------------
# Adaptation
# --------------------------------------------------
def test_uniform_walk_adaptation_changes_eps(gaussian_data):
    np.random.seed(5)
    kernel = UniformRandomWalk([0.01])
    adaptation = AdaptationUnifRW(np.zeros(1), adapt_every_k_steps=10, offset=0.0, scale=0.1)
    updates = [
        RandomWalkUpdate(kernel, [0], adaptation=adaptation),
        RandomWalkUpdate(UniformRandomWalk([1.0]), [1]),
    ]
    MCMC(updates).run(100, gaussian_data, np.array([0.0, 0.0]))
    # tiny steps are accepted far too often, so eps grows
    assert kernel.eps[0] > 0.01

def test_haario_adaptation_learns_covariance():
    np.random.seed(6)
    law = GaussianTargetLaw(np.zeros(2), np.eye(2))
    data = ObservedData(law=law, obs=np.random.multivariate_normal(MU, SIGMA, size=20))
    kernel = GaussianRandomWalkMix(0.01 * np.eye(2), 0.01 * np.eye(2), lam=0.5)
    adaptation = HaarioTypeAdaptation(np.zeros(2), adapt_every_k_steps=50)
    updates = [RandomWalkUpdate(kernel, [0, 1], adaptation=adaptation)]
    global_ws, _ = MCMC(updates).run(500, data, np.array([0.0, 0.0]))
    assert adaptation.N == 500
    assert not np.allclose(kernel.gsn_b.cov, 0.01 * np.eye(2))
    assert np.allclose(kernel.gsn_a.cov, 0.01 * np.eye(2))

def test_positive_parameter():
    np.random.seed(7)
    # variance of the first coordinate
    law = GaussianTargetLaw(np.zeros(1), np.eye(1))
    data = ObservedData(law=law, obs=np.random.normal(0.0, 2.0, size=(30, 1)))
    update = RandomWalkUpdate(UniformRandomWalk([0.5], pos=[True]), [1], prior=ImproperPosPrior())
    global_ws, _ = MCMC([update]).run(300, data, np.array([0.0, 1.0]))
    assert np.all(global_ws.state_history[:, 0, 1] > 0.0)

# --------------------------------------------------
# Validation
# --------------------------------------------------
def test_mcmc_validation(gaussian_data):
    with pytest.raises(ValueError):
        MCMC([])
    with pytest.raises(ValueError):
        MCMC([ExcludeUpdates(1, range(1, 2))])
    update = RandomWalkUpdate(UniformRandomWalk([1.0]), [5])
    with pytest.raises(ValueError):
        MCMC([update]).run(2, gaussian_data, np.array([0.0, 0.0]))

def test_update_without_execute_is_not_implemented(gaussian_data):
    class Incomplete(MCMCUpdate):
        coords = np.array([0])

    with pytest.raises(NotImplementedError):
        MCMC([Incomplete()]).run(1, gaussian_data, np.array([0.0, 0.0]))
