"""
Target law interfaces for MCMC sampling.

This module provides the TargetLawProtocol that all target laws must implement,
the ObservedData container handed to the sampler, and the two helpers through
which the sampler talks to a target law.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, Sequence, Union, runtime_checkable

import numpy as np


@runtime_checkable
class TargetLawProtocol(Protocol):
    """
    Protocol defining the required interface for target laws.

    A target law holds its own parameter vector. The sampler mutates it through
    ``set_parameters`` and evaluates the log-likelihood of the observations
    through ``loglikelihood``. Two deep copies of the law are kept during a run:
    one with the accepted parameters and one with the proposal.

    **Factorized likelihoods:**
        ``loglikelihood`` may return a 1D array with one entry per independent
        block instead of a float. The Metropolis-Hastings ratio uses the sum of
        the blocks, the histories keep every block.

    Examples:
        Class::

            class MyLaw(TargetLawProtocol):
                def __init__(self):
                    self.theta = np.zeros(2)

                def set_parameters(self, coords, values):
                    self.theta[coords] = values

                def loglikelihood(self, obs):
                    return -0.5 * np.sum((obs - self.theta) ** 2)
    """

    def set_parameters(self, coords: Sequence[int], values: np.ndarray) -> None:
        """
        Overwrite the law's parameters at global coordinates ``coords``.

        Args:
            coords: Global coordinate indices.
            values: New values, same length as ``coords``.
        """
        raise NotImplementedError(f"set_parameters not implemented for target law {type(self).__name__}.")

    def loglikelihood(self, obs: Any) -> Union[float, np.ndarray]:
        """
        Evaluate the log-likelihood of the observations under the current parameters.

        Args:
            obs: Observations, as stored in ``ObservedData.obs``.

        Returns:
            Scalar log-likelihood or a 1D array of per-block log-likelihoods.
        """
        raise NotImplementedError(f"loglikelihood not implemented for target law {type(self).__name__}.")


@dataclass
class ObservedData:
    """
    Everything that is known about the observations.

    Attributes:
        law: Target law whose parameters are being sampled.
        obs: Observation collection passed verbatim to ``law.loglikelihood``.
    """

    law: Any
    obs: Any = None


def set_law_parameters(law: Any, coords: Sequence[int], values: np.ndarray) -> None:
    """
    Push new parameter values into a target law.

    Raises:
        NotImplementedError: If the law does not provide ``set_parameters``.
    """
    method = getattr(law, "set_parameters", None)
    if method is None:
        raise NotImplementedError(f"set_parameters not implemented for target law {type(law).__name__}.")
    method(coords, values)


def law_loglikelihood(law: Any, obs: Any) -> np.ndarray:
    """
    Evaluate a target law's log-likelihood, always returned as a 1D float array.

    Raises:
        NotImplementedError: If the law does not provide ``loglikelihood``.
        ValueError: If the returned value is not a scalar or a 1D array.
    """
    method = getattr(law, "loglikelihood", None)
    if method is None:
        raise NotImplementedError(f"loglikelihood not implemented for target law {type(law).__name__}.")
    ll = np.atleast_1d(np.asarray(method(obs), dtype=float))
    if ll.ndim != 1:
        raise ValueError(f"loglikelihood must return a float or a 1D array, got shape {ll.shape}.")
    return ll
