"""
Prior distributions over parameter (sub-)vectors
"""

# Imports
from typing import Any, List, Optional, Sequence

import numpy as np

from exmcmc.core.prior import PriorProtocol


class ImproperPrior(PriorProtocol):
    """Flat prior"""

    def logpdf(self, theta: np.ndarray) -> float:
        return 0.0


class ImproperPosPrior(PriorProtocol):
    """
    Flat prior on the log-scale for coordinates restricted to be positive,
    log pi(theta) = -sum(log theta).

    Positivity is a hard constraint: any coordinate <= 0 gives -inf, so the
    update redraws such proposals instead of merely penalising them.
    """

    def logpdf(self, theta: np.ndarray) -> float:
        theta = np.atleast_1d(np.asarray(theta, dtype=float))
        if np.any(theta <= 0.0):
            return -np.inf
        return float(-np.sum(np.log(theta)))


class StandardPrior(PriorProtocol):
    """
    A standard prior wrapping a frozen ``scipy.stats`` distribution.

    Univariate distributions are applied to every coordinate independently,
    multivariate ones to the whole vector.
    """

    def __init__(self, dist: Any):
        if not hasattr(dist, "logpdf"):
            raise TypeError(f"dist must provide a logpdf method, got {type(dist).__name__}.")
        self.dist = dist

    def logpdf(self, theta: np.ndarray) -> float:
        return float(np.sum(self.dist.logpdf(theta)))


class ProductPrior(PriorProtocol):
    """
    Prior written in a factorized form

        pi(theta) = pi_1(theta[idx_1]) * ... * pi_K(theta[idx_K])

    over disjoint groups of coordinates.
    """

    def __init__(self, priors: Sequence[PriorProtocol], dims: Optional[Sequence[int]] = None, indices: Optional[Sequence[Sequence[int]]] = None):
        """
        Args:
            priors: One prior per group of coordinates.
            dims: Sizes of consecutive groups, e.g. ``[2, 1]`` for ``theta[0:2]`` and ``theta[2:3]``.
            indices: Explicit, disjoint index groups (alternative to ``dims``).
        """
        if (dims is None) == (indices is None):
            raise ValueError("Exactly one of dims and indices must be given.")

        if dims is not None:
            groups: List[np.ndarray] = []
            last_idx = 0
            for dim in dims:
                if dim < 1:
                    raise ValueError(f"Every entry of dims must be >= 1, got {dim}.")
                groups.append(np.arange(last_idx, last_idx + dim))
                last_idx += dim
        else:
            groups = [np.atleast_1d(np.asarray(idx, dtype=int)) for idx in indices]
            flat = np.concatenate(groups) if groups else np.array([], dtype=int)
            if len(np.unique(flat)) != len(flat):
                raise ValueError("Index groups of a ProductPrior must be disjoint.")

        if len(groups) != len(priors):
            raise ValueError(f"Got {len(priors)} priors for {len(groups)} groups of coordinates.")

        self.priors = list(priors)
        self.idx = groups

    def logpdf(self, theta: np.ndarray) -> float:
        theta = np.atleast_1d(np.asarray(theta, dtype=float))
        lp = 0.0
        for prior, idx in zip(self.priors, self.idx):
            lp += prior.logpdf(theta[idx])
        return lp
