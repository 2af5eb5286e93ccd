"""
Template class file for MCMC updates

An update is a single Metropolis-Hastings step acting on a subset of the
coordinates of the global parameter vector. Decorators are entries of the list
of updates that do not perform a step themselves but modify the schedule.
"""

# Imports
from typing import Any, List, Sequence, Tuple

import numpy as np

from exmcmc.core.model import law_loglikelihood, set_law_parameters
from exmcmc.core.schedule import MCMCStep
from exmcmc.core.workspace import GlobalWorkspace, LocalWorkspace
from exmcmc.utils.logging import get_module_logger

logger = get_module_logger(__name__)


class InfeasibleProposalError(RuntimeError):
    """Raised when no proposal with a finite prior could be drawn"""


class MCMCUpdate:
    """
    Base class for the updates performed in a single slot of the schedule.
    """

    kind = "update"

    def execute(self, global_ws: GlobalWorkspace, local_ws: LocalWorkspace, step: MCMCStep) -> bool:
        """Perform the update, return True if the proposal was accepted"""
        raise NotImplementedError("Implement execute method")


class UpdateDecorator:
    """
    Base class for the entries of the list of updates that change how the
    updates are scheduled rather than performing a step.
    """

    kind = "decorator"

    def exclusions(self) -> List[Tuple[Any, Any]]:
        """Pairs (slots, iterations) to be excluded from the schedule"""
        raise NotImplementedError("Implement exclusions method")


class MCMCParamUpdate(MCMCUpdate):
    """
    Metropolis-Hastings update of a subset ``coords`` of the parameter vector.

    Subclasses implement ``propose``, ``log_transition_density`` and
    ``log_prior``. ``execute`` runs the Metropolis-Hastings recipe:

        propose -> set_proposal -> compute_ll -> accept_reject (-> register)
    """

    coords: np.ndarray
    kernel: Any
    adaptation: Any

    def propose(self, global_ws: GlobalWorkspace, local_ws: LocalWorkspace, step: MCMCStep) -> np.ndarray:
        """Sample the proposal into ``local_ws.state_proposal``"""
        raise NotImplementedError("Implement propose method")

    def log_transition_density(self, theta: np.ndarray, theta_prop: np.ndarray) -> float:
        """Log-density of a transition theta -> theta_prop"""
        raise NotImplementedError("Implement log_transition_density method")

    def log_prior(self, theta: np.ndarray) -> float:
        """Log-prior of the sub-vector theta"""
        raise NotImplementedError("Implement log_prior method")

    def execute(self, global_ws: GlobalWorkspace, local_ws: LocalWorkspace, step: MCMCStep) -> bool:
        self.propose(global_ws, local_ws, step)
        self.set_proposal(global_ws, local_ws, step)
        self.compute_ll(global_ws, local_ws, step)
        return self.accept_reject(global_ws, local_ws, step)

    def set_proposal(self, global_ws: GlobalWorkspace, local_ws: LocalWorkspace, step: MCMCStep) -> None:
        """
        Write the full proposed vector into the proposal history and push the
        proposed coordinates into the proposal law ``P_prop``.
        """
        theta_prop = global_ws.state_proposal_history[step.iter_index, step.slot_index]
        theta_prop[:] = global_ws.state
        theta_prop[self.coords] = local_ws.state_proposal
        set_law_parameters(global_ws.P_prop, self.coords, local_ws.state_proposal.copy())

    def compute_ll(self, global_ws: GlobalWorkspace, local_ws: LocalWorkspace, step: MCMCStep) -> np.ndarray:
        """Evaluate the log-likelihood of the proposal law at the observations"""
        ll_prop = law_loglikelihood(global_ws.P_prop, global_ws.data.obs)
        if ll_prop.shape != local_ws.ll.shape:
            raise ValueError(
                f"Log-likelihood has {ll_prop.shape[0]} blocks, expected {local_ws.ll.shape[0]}."
            )
        local_ws.ll_proposal[:] = ll_prop
        return local_ws.ll_proposal

    def log_acceptance_ratio(self, local_ws: LocalWorkspace) -> float:
        """
        llr = ll(theta_prop) - ll(theta)
              + log q(theta_prop -> theta) - log q(theta -> theta_prop)
              + log pi(theta_prop) - log pi(theta)
        """
        theta, theta_prop = local_ws.state, local_ws.state_proposal
        return (
            local_ws.loglikelihood_ratio
            + self.log_transition_density(theta_prop, theta)
            - self.log_transition_density(theta, theta_prop)
            + self.log_prior(theta_prop)
            - self.log_prior(theta)
        )

    def accept_reject(self, global_ws: GlobalWorkspace, local_ws: LocalWorkspace, step: MCMCStep) -> bool:
        """
        Accept iff E > -llr with E ~ Exp(1), which accepts with probability
        min(1, exp(llr)). A nan ratio is rejected.
        """
        llr = self.log_acceptance_ratio(local_ws)
        if step.mcmciter % 100 == 0:
            logger.debug(
                f"iter: {step.mcmciter}, ll: {np.sum(local_ws.ll)}, ll_prop: {np.sum(local_ws.ll_proposal)}, llr: {llr}"
            )
        local_ws.llr_history[step.iter_index] = llr
        accepted = bool(np.random.exponential(1.0) > -llr)
        self.register(accepted, global_ws, local_ws, step)
        return accepted

    def register(self, accepted: bool, global_ws: GlobalWorkspace, local_ws: LocalWorkspace, step: MCMCStep) -> None:
        """Register the result of the accept/reject step in both workspaces"""
        t, s = step.iter_index, step.slot_index
        if accepted:
            local_ws.state[:] = local_ws.state_proposal
            local_ws.ll[:] = local_ws.ll_proposal
            global_ws.state[self.coords] = local_ws.state_proposal
            global_ws.ll[:] = local_ws.ll_proposal
            set_law_parameters(global_ws.P, self.coords, local_ws.state_proposal.copy())
        else:
            set_law_parameters(global_ws.P_prop, self.coords, local_ws.state.copy())

        local_ws.ll_proposal_history[t] = local_ws.ll_proposal
        local_ws.ll_history[t] = local_ws.ll
        local_ws.acceptance_history[t] = accepted
        global_ws.state_history[t, s] = global_ws.state


def coords_to_index(coords: Sequence[int]) -> np.ndarray:
    """Validate a list of global coordinates and turn it into an index array"""
    idx = np.atleast_1d(np.asarray(coords))
    if idx.ndim != 1 or idx.size == 0:
        raise ValueError("coords must be a non-empty 1-D sequence of integers.")
    if not np.issubdtype(idx.dtype, np.integer):
        raise TypeError(f"coords must be integers, got dtype {idx.dtype}.")
    if np.any(idx < 0):
        raise ValueError("coords must be non-negative.")
    if len(np.unique(idx)) != len(idx):
        raise ValueError("coords must not contain duplicates.")
    return idx.astype(int)
