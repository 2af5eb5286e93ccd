"""
Multivariate Gaussian target law.

The parameter vector is theta = [mu, vec(cov)], with vec stacking the columns
of the covariance matrix. Only the upper triangle of the covariance is used,
the lower one is mirrored from it.
"""

from typing import Any, Optional, Sequence

import numpy as np
from scipy.stats import multivariate_normal

from exmcmc.core.model import TargetLawProtocol
from exmcmc.utils.logging import get_module_logger

logger = get_module_logger(__name__)


class GaussianTargetLaw(TargetLawProtocol):
    """
    Gaussian law N(mu, cov) of i.i.d. observations.

    Attributes:
        theta (np.ndarray): Parameter vector of length d*(d+1).
        dim (int): Dimension d of the observations.
        dist: Frozen ``scipy.stats.multivariate_normal``, None while ``cov`` is
            not positive definite.
    """

    def __init__(self, mu: np.ndarray, cov: Optional[np.ndarray] = None):
        mu = np.atleast_1d(np.asarray(mu, dtype=float))
        if mu.ndim != 1:
            raise ValueError(f"mu must be a 1D array, got shape {mu.shape}.")
        d = mu.shape[0]
        cov = np.eye(d) if cov is None else np.asarray(cov, dtype=float)
        if cov.shape != (d, d):
            raise ValueError(f"cov must have shape ({d}, {d}), got {cov.shape}.")

        self.dim = d
        self.theta = np.concatenate([mu, cov.flatten(order="F")])
        self.dist = None
        self._refresh()
        if self.dist is None:
            raise ValueError("cov must be positive definite.")

    @property
    def mean(self) -> np.ndarray:
        return self.theta[: self.dim]

    @property
    def cov(self) -> np.ndarray:
        upper = np.triu(self.theta[self.dim:].reshape((self.dim, self.dim), order="F"))
        return upper + upper.T - np.diag(np.diag(upper))

    def _refresh(self) -> None:
        try:
            self.dist = multivariate_normal(mean=self.mean, cov=self.cov)
        except ValueError:
            # Covariance outside of the cone of positive definite matrices
            logger.debug(f"Non positive definite covariance {self.cov.tolist()}")
            self.dist = None

    def set_parameters(self, coords: Sequence[int], values: np.ndarray) -> None:
        self.theta[np.asarray(coords, dtype=int)] = values
        self._refresh()

    def loglikelihood(self, obs: Any) -> float:
        """Sum of the log-densities of the observations, -inf for an invalid covariance"""
        if self.dist is None:
            return -np.inf
        obs = np.asarray(obs, dtype=float).reshape(-1, self.dim)
        return float(np.sum(np.atleast_1d(self.dist.logpdf(obs))))

    def sample(self, num_obs: int) -> np.ndarray:
        """Draw num_obs observations, array (num_obs, d)"""
        if self.dist is None:
            raise ValueError("Cannot sample from a law with an invalid covariance.")
        return np.atleast_2d(self.dist.rvs(size=num_obs)).reshape(num_obs, self.dim)
