"""
Tests for the online statistics of the chain
"""

import numpy as np
import pytest

from exmcmc.core.schedule import MCMCStep
from exmcmc.core.stats import GenericChainStats

# --------------------------------------------------
# Fixtures
# --------------------------------------------------
class FakeGlobal:
    def __init__(self, state):
        self.state = state

class FakeLocal:
    def __init__(self, acceptance_history):
        self.acceptance_history = acceptance_history

def naive_rolling_rate(flags, t, window):
    """Acceptance rate over the iterations (t - window, t] (1-based t)"""
    start = max(0, t - window)
    return np.sum(flags[start:t]) / window

# --------------------------------------------------
# Mean and covariance
# --------------------------------------------------
def test_stats_reproduce_sample_mean_and_cov():
    xs = np.random.RandomState(0).randn(50, 3)
    stats = GenericChainStats(np.zeros(3), num_updates=1, num_mcmc_steps=50)
    local_ws = FakeLocal(np.zeros(50, dtype=bool))
    for t, x in enumerate(xs, start=1):
        stats.update(FakeGlobal(x), local_ws, MCMCStep(t, 1))
    assert stats.N == 50
    assert np.allclose(stats.mean, xs.mean(axis=0))
    assert np.allclose(stats.cov, np.cov(xs.T, ddof=1))
    assert np.allclose(stats.biased_cov, np.cov(xs.T, ddof=0))

def test_stats_single_observation():
    stats = GenericChainStats(np.zeros(2), 1, 5)
    stats.update(FakeGlobal(np.array([1.0, 2.0])), FakeLocal(np.zeros(5, dtype=bool)), MCMCStep(1, 1))
    assert np.allclose(stats.mean, [1.0, 2.0])
    assert np.allclose(stats.cov, 0.0)

def test_stats_validation():
    with pytest.raises(ValueError):
        GenericChainStats(np.zeros(1), 1, 10, roll_window=0)

# --------------------------------------------------
# Rolling acceptance rate
# --------------------------------------------------
def test_rolling_acceptance_matches_naive_window():
    M, W = 60, 7
    flags = np.random.RandomState(1).rand(M) < 0.4
    stats = GenericChainStats(np.zeros(1), 1, M, roll_window=W)
    local_ws = FakeLocal(flags)
    for t in range(1, M + 1):
        stats.update(FakeGlobal(np.zeros(1)), local_ws, MCMCStep(t, 1))
        assert np.isclose(stats.rolling_ar[t - 1, 0], naive_rolling_rate(flags, t, W))

def test_rolling_acceptance_with_skipped_iterations():
    M, W = 40, 5
    flags = np.random.RandomState(2).rand(M) < 0.6
    executed = [t for t in range(1, M + 1) if not 10 <= t <= 22]
    # a skipped slot never records an acceptance
    flags[[t - 1 for t in range(10, 23)]] = False
    stats = GenericChainStats(np.zeros(1), 1, M, roll_window=W)
    local_ws = FakeLocal(flags)
    for t in executed:
        stats.update(FakeGlobal(np.zeros(1)), local_ws, MCMCStep(t, 1))
        assert np.isclose(stats.rolling_ar[t - 1, 0], naive_rolling_rate(flags, t, W))

def test_rolling_acceptance_is_per_slot():
    M = 10
    stats = GenericChainStats(np.zeros(1), 2, M, roll_window=3)
    accepting, rejecting = FakeLocal(np.ones(M, dtype=bool)), FakeLocal(np.zeros(M, dtype=bool))
    for t in range(1, M + 1):
        stats.update(FakeGlobal(np.zeros(1)), accepting, MCMCStep(t, 1))
        stats.update(FakeGlobal(np.zeros(1)), rejecting, MCMCStep(t, 2))
    assert np.isclose(stats.rolling_ar[-1, 0], 1.0)
    assert np.isclose(stats.rolling_ar[-1, 1], 0.0)
    assert np.isclose(stats.rolling_ar[0, 0], 1.0 / 3)

def test_add_slots():
    stats = GenericChainStats(np.zeros(1), 1, 4)
    stats.add_slots(2)
    assert stats.rolling_ar.shape == (4, 3)
    stats.update(FakeGlobal(np.zeros(1)), FakeLocal(np.ones(4, dtype=bool)), MCMCStep(1, 3))
    assert stats.rolling_ar[0, 2] > 0
