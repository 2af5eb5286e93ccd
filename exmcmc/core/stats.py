"""
Some simple online statistics for the Markov chain.
"""

from typing import TYPE_CHECKING

import numpy as np

from exmcmc.utils.tools import online_mean_cov

if TYPE_CHECKING:
    from exmcmc.core.schedule import MCMCStep
    from exmcmc.core.workspace import GlobalWorkspace, LocalWorkspace


class GenericChainStats:
    """
    Online statistics of the Markov chain.

    Attributes:
        mean (np.ndarray): Running mean of the global ``state``, updated after every step.
        cov (np.ndarray): Running covariance of the global ``state``, (N-1)-normalised.
        N (int): Number of steps summarised by ``mean`` and ``cov``.
        roll_window (int): Window W of the rolling acceptance rate.
        rolling_ar (np.ndarray): Array (num_mcmc_steps, num_updates); entry
            ``[t-1, s-1]`` is the acceptance rate of slot s over the last W
            iterations, evaluated at iteration t.
    """

    def __init__(self, state: np.ndarray, num_updates: int, num_mcmc_steps: int, roll_window: int = 100):
        if roll_window < 1:
            raise ValueError(f"roll_window must be >= 1, got {roll_window}.")
        dim = np.size(state)
        self.rolling_ar = np.zeros((num_mcmc_steps, num_updates))
        self.roll_window = int(roll_window)
        self.mean = np.zeros(dim)
        self.cov = np.zeros((dim, dim))
        self.N = 0
        self._rolling_sum = np.zeros(num_updates)
        self._last_iter = np.zeros(num_updates, dtype=int)

    @property
    def biased_cov(self) -> np.ndarray:
        """Running covariance normalised by N rather than N-1"""
        if self.N == 0:
            return self.cov.copy()
        return self.cov * (self.N - 1) / self.N

    def add_slots(self, num_new_updates: int) -> None:
        """Make room for new update slots"""
        num_mcmc_steps = self.rolling_ar.shape[0]
        self.rolling_ar = np.hstack([self.rolling_ar, np.zeros((num_mcmc_steps, num_new_updates))])
        self._rolling_sum = np.concatenate([self._rolling_sum, np.zeros(num_new_updates)])
        self._last_iter = np.concatenate([self._last_iter, np.zeros(num_new_updates, dtype=int)])

    def update(self, global_ws: "GlobalWorkspace", local_ws: "LocalWorkspace", step: "MCMCStep") -> None:
        """Register the outcome of a single step"""
        self.mean, self.cov, self.N = online_mean_cov(self.mean, self.cov, self.N, global_ws.state)

        t, s = step.iter_index, step.slot_index
        accepted_now = float(local_ws.acceptance_history[t])
        # Iterations that left the window since the slot's last turn; a single
        # one unless the slot was excluded in between
        leaving = slice(
            max(0, self._last_iter[s] - self.roll_window),
            max(0, step.mcmciter - self.roll_window),
        )
        accepted_outside_window = float(np.sum(local_ws.acceptance_history[leaving]))
        self._rolling_sum[s] += accepted_now - accepted_outside_window
        self._last_iter[s] = step.mcmciter
        self.rolling_ar[t, s] = self._rolling_sum[s] / self.roll_window
