"""
Template class file for priors
"""

# Imports
import numpy as np
from typing import Protocol

class PriorProtocol(Protocol):
    """
    Protocol for prior distributions over a parameter sub-vector.
    A return value of ``-np.inf`` marks a point outside of the support.
    """

    def logpdf(self, theta: np.ndarray) -> float:
        """Evaluate the log-density of the prior at theta"""
        raise NotImplementedError(f"logpdf not implemented for prior {type(self).__name__}.")
