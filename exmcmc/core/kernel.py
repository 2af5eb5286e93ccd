"""
Template class file for transition kernels and their adaptation schemes
"""

# Imports
import numpy as np
from typing import Any, Protocol

class KernelProtocol(Protocol):
    """
    Protocol for transition kernels (proposal mechanisms) of parameter updates
    """

    def __len__(self) -> int:
        """Number of coordinates the kernel moves"""
        raise NotImplementedError("Implement __len__ method")

    def sample(self, theta: np.ndarray) -> np.ndarray:
        """Generate a proposal from the current value theta"""
        raise NotImplementedError("Implement sample method")

    def sample_into(self, theta: np.ndarray, out: np.ndarray) -> np.ndarray:
        """Generate a proposal from theta and write it into out"""
        out[:] = self.sample(theta)
        return out

    def log_transition_density(self, theta: np.ndarray, theta_prop: np.ndarray) -> float:
        """Log-density of a move from theta to theta_prop"""
        raise NotImplementedError("Implement log_transition_density method")

# Adaptation Protocol
class AdaptationBase:
    """Base class for adaptation schemes that tune the hyperparameters of a kernel"""

    def register(self, update: Any, accepted: Any, theta: np.ndarray) -> None:
        """Record the outcome of a single Metropolis-Hastings step"""
        raise NotImplementedError("Subclass must implement register method")

    def time_to_update(self) -> bool:
        """Return True once enough outcomes have been registered to readjust the kernel"""
        raise NotImplementedError("Subclass must implement time_to_update method")

    def readjust(self, kernel: KernelProtocol, mcmc_iter: int) -> Any:
        """Change the hyperparameters of the kernel"""
        raise NotImplementedError("Subclass must implement readjust method")

    def check_kernel(self, kernel: KernelProtocol) -> None:
        """
        Raise TypeError or ValueError if the scheme cannot adapt ``kernel``.
        Called when an update is constructed; any kernel is accepted by default.
        """
        pass

    def register_only_on_my_turn(self, my_turn: bool) -> bool:
        """
        Registration policy. Return True if outcomes are to be registered only
        at the steps at which the owning update was executed.
        """
        return True
