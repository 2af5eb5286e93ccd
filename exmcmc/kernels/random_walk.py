"""
Random walk transition kernels for MCMC sampling.

Contains a uniform random walk, a multivariate Gaussian random walk and a
mixture of two Gaussian random walks. All of them allow for restricting any
chosen subset of coordinates to be positive, in which case these coordinates
are moved on a log-scale.
"""

from typing import Optional

import numpy as np
from scipy.special import logsumexp

from exmcmc.core.kernel import KernelProtocol
from exmcmc.utils.tools import lognormpdf, sample_multivariate_gaussian


def _positivity_flags(pos: Optional[np.ndarray], dim: int) -> np.ndarray:
    """Boolean mask of the coordinates restricted to be positive"""
    if pos is None:
        return np.zeros(dim, dtype=bool)
    pos = np.atleast_1d(np.asarray(pos, dtype=bool))
    if pos.shape != (dim,):
        raise ValueError(f"pos must have shape ({dim},), got {pos.shape}.")
    return pos


class UniformRandomWalk(KernelProtocol):
    """
    Uniform random walk.

    Unrestricted coordinates move by the additive rule theta_i + U_i, coordinates
    restricted to be positive move by theta_i * exp(U_i), with
    U_i ~ Unif(-eps_i, eps_i) in both cases.
    """

    def __init__(self, eps, pos: Optional[np.ndarray] = None):
        eps = np.atleast_1d(np.asarray(eps, dtype=float)).copy()
        if eps.ndim != 1:
            raise ValueError(f"eps must be a scalar or a 1D array, got shape {eps.shape}.")
        if not np.all(eps > 0.0):
            raise ValueError("All entries of eps must be strictly positive.")
        self.eps = eps
        self.pos = _positivity_flags(pos, eps.shape[0])

    def __len__(self) -> int:
        return self.eps.shape[0]

    def sample(self, theta: np.ndarray) -> np.ndarray:
        """Generate a proposal from the current value theta"""
        theta = np.asarray(theta, dtype=float)
        U = np.random.uniform(-self.eps, self.eps)
        return np.where(self.pos, theta * np.exp(U), theta + U)

    def sample_into(self, theta: np.ndarray, out: np.ndarray) -> np.ndarray:
        out[:] = self.sample(theta)
        return out

    def log_transition_density(self, theta: np.ndarray, theta_prop: np.ndarray) -> float:
        """
        Log-density of a move theta -> theta_prop. Unrestricted coordinates
        contribute 0, the symmetric part cancelling in the acceptance ratio.
        """
        theta_prop = np.asarray(theta_prop, dtype=float)
        if not np.any(self.pos):
            return 0.0
        return float(np.sum(-np.log(2.0 * self.eps[self.pos]) - np.log(theta_prop[self.pos])))


class GaussianRandomWalk(KernelProtocol):
    """
    Gaussian random walk centered at the current state.

    Coordinates restricted to be positive are moved to a log-scale, the walk
    draws theta_prop ~ N(theta, cov) and the restricted coordinates are
    transformed back with exp.
    """

    def __init__(self, cov: np.ndarray, pos: Optional[np.ndarray] = None):
        cov = np.asarray(cov, dtype=float)
        if cov.ndim == 0:
            cov = cov.reshape(1, 1)
        if cov.ndim != 2 or cov.shape[0] != cov.shape[1]:
            raise ValueError(f"cov must be a square matrix, got shape {cov.shape}.")
        self.cov = cov.copy()
        self.pos = _positivity_flags(pos, cov.shape[0])

    def __len__(self) -> int:
        return self.cov.shape[0]

    def remove_constraints(self, theta: np.ndarray) -> np.ndarray:
        """Map theta to the unrestricted space (log of the positive coordinates)"""
        theta = np.array(theta, dtype=float)
        theta[self.pos] = np.log(theta[self.pos])
        return theta

    def reimpose_constraints(self, theta: np.ndarray) -> np.ndarray:
        """Map theta back from the unrestricted space"""
        theta = np.array(theta, dtype=float)
        theta[self.pos] = np.exp(theta[self.pos])
        return theta

    def sample(self, theta: np.ndarray) -> np.ndarray:
        """Generate a proposal from the current value theta"""
        step = sample_multivariate_gaussian(self.remove_constraints(theta), self.cov)
        return self.reimpose_constraints(step)

    def sample_into(self, theta: np.ndarray, out: np.ndarray) -> np.ndarray:
        out[:] = self.sample(theta)
        return out

    def log_jacobian(self, theta_prop: np.ndarray) -> float:
        """Log-Jacobian of the exponential map for the restricted coordinates"""
        theta_prop = np.asarray(theta_prop, dtype=float)
        return float(-np.sum(np.log(theta_prop[self.pos])))

    def log_transition_density(self, theta: np.ndarray, theta_prop: np.ndarray) -> float:
        """Log-density of a move theta -> theta_prop"""
        log_j = self.log_jacobian(theta_prop)
        return lognormpdf(
            self.remove_constraints(theta_prop), self.remove_constraints(theta), self.cov
        ) + log_j


class GaussianRandomWalkMix(KernelProtocol):
    """
    Mixture of two Gaussian random walks.

    Each proposal is drawn by the walk gsn_b with probability lam and by the walk
    gsn_a otherwise. The transition density is that of the whole mixture, not of
    the walk that happened to be picked.
    """

    def __init__(self, cov_a: np.ndarray, cov_b: np.ndarray, lam: float = 0.5, pos: Optional[np.ndarray] = None):
        if not 0.0 <= lam <= 1.0:
            raise ValueError(f"lam must lie in [0, 1], got {lam}.")
        if np.shape(cov_a) != np.shape(cov_b):
            raise ValueError(
                f"cov_a and cov_b must have the same shape, got {np.shape(cov_a)} and {np.shape(cov_b)}."
            )
        self.gsn_a = GaussianRandomWalk(cov_a, pos)
        self.gsn_b = GaussianRandomWalk(cov_b, pos)
        self.lam = float(lam)

    def __len__(self) -> int:
        return len(self.gsn_a)

    @property
    def pos(self) -> np.ndarray:
        return self.gsn_a.pos

    def pick_kernel(self) -> GaussianRandomWalk:
        """Bernoulli(lam) switch between the two walks"""
        return self.gsn_b if np.random.rand() < self.lam else self.gsn_a

    def sample(self, theta: np.ndarray) -> np.ndarray:
        return self.pick_kernel().sample(theta)

    def sample_into(self, theta: np.ndarray, out: np.ndarray) -> np.ndarray:
        return self.pick_kernel().sample_into(theta, out)

    def log_transition_density(self, theta: np.ndarray, theta_prop: np.ndarray) -> float:
        """Log-density of the mixture for a move theta -> theta_prop"""
        log_densities = np.array([
            self.gsn_a.log_transition_density(theta, theta_prop),
            self.gsn_b.log_transition_density(theta, theta_prop),
        ])
        return float(logsumexp(log_densities, b=np.array([1.0 - self.lam, self.lam])))
