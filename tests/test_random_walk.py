import numpy as np
import pytest
from scipy.stats import multivariate_normal

from exmcmc.kernels.random_walk import GaussianRandomWalk, GaussianRandomWalkMix, UniformRandomWalk


@pytest.fixture
def theta():
    return np.array([1.0, 0.5, 2.0])


# --------------------------------------------------
# Uniform random walk
# --------------------------------------------------
def test_uniform_random_walk_init_validation():
    with pytest.raises(ValueError):
        UniformRandomWalk(0.0)
    with pytest.raises(ValueError):
        UniformRandomWalk([1.0, -0.1])
    with pytest.raises(ValueError):
        UniformRandomWalk([1.0, 1.0], pos=[True, False, True])


def test_uniform_random_walk_sample_within_range(theta):
    np.random.seed(0)
    rw = UniformRandomWalk([0.1, 0.2, 0.3])
    assert len(rw) == 3
    for _ in range(200):
        prop = rw.sample(theta)
        assert prop.shape == theta.shape
        assert np.all(np.abs(prop - theta) <= rw.eps)


def test_uniform_random_walk_symmetric_density(theta):
    rw = UniformRandomWalk(1.0 * np.ones(3))
    theta_prop = theta + np.array([0.3, -0.9, 0.1])
    assert rw.log_transition_density(theta, theta_prop) == 0.0
    assert rw.log_transition_density(theta_prop, theta) == 0.0


def test_uniform_random_walk_positive_coordinates_stay_positive():
    np.random.seed(1)
    rw = UniformRandomWalk([5.0, 5.0], pos=[True, False])
    theta = np.array([1e-3, 1.0])
    for _ in range(500):
        theta = rw.sample(theta)
        assert theta[0] > 0.0


def test_uniform_random_walk_positive_density():
    rw = UniformRandomWalk([0.5, 1.0], pos=[True, False])
    theta, theta_prop = np.array([1.0, 0.0]), np.array([1.2, 0.3])
    expected = -np.log(2 * 0.5) - np.log(1.2)
    assert np.isclose(rw.log_transition_density(theta, theta_prop), expected)


def test_uniform_random_walk_sample_into(theta):
    np.random.seed(2)
    rw = UniformRandomWalk(0.1)
    out = np.zeros(1)
    result = rw.sample_into(theta[:1], out)
    assert result is out
    assert abs(out[0] - theta[0]) <= 0.1


# --------------------------------------------------
# Gaussian random walk
# --------------------------------------------------
def test_gaussian_random_walk_init_validation():
    with pytest.raises(ValueError):
        GaussianRandomWalk(np.array([1.0, 2.0]))
    with pytest.raises(ValueError):
        GaussianRandomWalk(np.ones((2, 3)))


def test_gaussian_random_walk_density_matches_scipy():
    cov = np.array([[1.0, 0.3], [0.3, 0.5]])
    rw = GaussianRandomWalk(cov)
    theta, theta_prop = np.array([0.0, 1.0]), np.array([0.4, 0.2])
    expected = multivariate_normal(mean=theta, cov=cov).logpdf(theta_prop)
    assert np.isclose(rw.log_transition_density(theta, theta_prop), expected)
    assert np.isclose(rw.log_transition_density(theta_prop, theta), expected)


def test_gaussian_random_walk_positive_coordinates():
    np.random.seed(3)
    rw = GaussianRandomWalk(25.0 * np.eye(2), pos=[False, True])
    theta = np.array([0.0, 1e-2])
    for _ in range(500):
        theta = rw.sample(theta)
        assert theta[1] > 0.0


def test_gaussian_random_walk_constraints_round_trip():
    rw = GaussianRandomWalk(np.eye(2), pos=[True, False])
    theta = np.array([2.0, -1.0])
    free = rw.remove_constraints(theta)
    assert np.allclose(free, [np.log(2.0), -1.0])
    assert np.allclose(rw.reimpose_constraints(free), theta)
    # inputs are left untouched
    assert np.allclose(theta, [2.0, -1.0])


def test_gaussian_random_walk_log_space_density():
    rw = GaussianRandomWalk(np.array([[0.5]]), pos=[True])
    theta, theta_prop = np.array([1.0]), np.array([2.0])
    expected = multivariate_normal(mean=0.0, cov=0.5).logpdf(np.log(2.0)) - np.log(2.0)
    assert np.isclose(rw.log_transition_density(theta, theta_prop), expected)


# --------------------------------------------------
# Mixture of Gaussian random walks
# --------------------------------------------------
def test_mixture_init_validation():
    with pytest.raises(ValueError):
        GaussianRandomWalkMix(np.eye(2), np.eye(2), lam=1.5)
    with pytest.raises(ValueError):
        GaussianRandomWalkMix(np.eye(2), np.eye(3))


def test_mixture_density_is_the_blended_density():
    cov_a, cov_b = 0.1 * np.eye(2), np.array([[2.0, 0.5], [0.5, 1.0]])
    lam = 0.3
    mix = GaussianRandomWalkMix(cov_a, cov_b, lam=lam)
    rng = np.random.RandomState(4)
    for _ in range(10):
        theta, theta_prop = rng.randn(2), rng.randn(2)
        l_a = GaussianRandomWalk(cov_a).log_transition_density(theta, theta_prop)
        l_b = GaussianRandomWalk(cov_b).log_transition_density(theta, theta_prop)
        expected = np.log((1 - lam) * np.exp(l_a) + lam * np.exp(l_b))
        assert np.isclose(mix.log_transition_density(theta, theta_prop), expected)


def test_mixture_extreme_weights():
    theta, theta_prop = np.array([0.0]), np.array([0.5])
    mix = GaussianRandomWalkMix(np.eye(1), 4.0 * np.eye(1), lam=0.0)
    assert np.isclose(
        mix.log_transition_density(theta, theta_prop),
        mix.gsn_a.log_transition_density(theta, theta_prop),
    )
    mix.lam = 1.0
    assert np.isclose(
        mix.log_transition_density(theta, theta_prop),
        mix.gsn_b.log_transition_density(theta, theta_prop),
    )


def test_mixture_pick_kernel():
    np.random.seed(5)
    mix = GaussianRandomWalkMix(np.eye(2), np.eye(2), lam=0.0)
    assert all(mix.pick_kernel() is mix.gsn_a for _ in range(20))
    mix.lam = 1.0
    assert all(mix.pick_kernel() is mix.gsn_b for _ in range(20))
    assert len(mix) == 2
    assert mix.pos.shape == (2,)
