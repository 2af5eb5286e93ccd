"""
Workspaces of the MCMC sampler.

This module provides the GlobalWorkspace dataclass, which gathers the state of
the whole chain (current parameter, its history, the data and the two copies
of the target law), and the LocalWorkspace dataclass, which holds the scratch
state of a single update.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

import numpy as np

from exmcmc.core.model import ObservedData, law_loglikelihood, set_law_parameters
from exmcmc.core.stats import GenericChainStats


def _as_state(theta: Any, name: str) -> np.ndarray:
    if not isinstance(theta, np.ndarray):
        raise TypeError(f"{name} must be a numpy.ndarray with shape (d,).")
    if theta.ndim != 1:
        raise ValueError(f"{name} must have shape (d,), got {theta.shape}.")
    return theta


@dataclass
class GlobalWorkspace:
    """
    Global workspace of the MCMC sampler. Each run has exactly one.

    Attributes:
        state (np.ndarray):
            Currently accepted parameter vector of shape (D,).

        state_history (np.ndarray):
            Array (num_mcmc_steps, num_updates, D). Entry ``[t-1, s-1]`` is
            ``state`` right after step (t, s). Steps that were skipped hold nan.

        state_proposal_history (np.ndarray):
            Same shape as ``state_history``, holding the full proposed vectors.

        data (ObservedData):
            Target law and observations.

        P (Any):
            Copy of the target law with the accepted ``state`` as parameters.

        P_prop (Any):
            Copy of the target law with the most recent proposal as parameters.

        ll (np.ndarray):
            Log-likelihood of ``state``, one entry per independent block.

        stats (GenericChainStats):
            Online statistics of the chain.

    Examples:
        >>> ws = GlobalWorkspace.init(
        ...     num_mcmc_steps=100,
        ...     num_updates=2,
        ...     data=ObservedData(law=my_law, obs=observations),
        ...     theta_init=np.zeros(2),
        ... )
    """

    state: np.ndarray
    state_history: np.ndarray
    state_proposal_history: np.ndarray
    data: ObservedData
    P: Any
    P_prop: Any
    ll: np.ndarray
    stats: GenericChainStats

    def __post_init__(self) -> None:
        _as_state(self.state, "state")
        expected = (self.state.shape[0],)
        for name in ("state_history", "state_proposal_history"):
            history = getattr(self, name)
            if history.ndim != 3 or history.shape[2:] != expected:
                raise ValueError(
                    f"{name} must have shape (num_mcmc_steps, num_updates, {expected[0]}), got {history.shape}."
                )

    @classmethod
    def init(cls, num_mcmc_steps: int, num_updates: int, data: ObservedData, theta_init: np.ndarray, roll_window: int = 100) -> "GlobalWorkspace":
        """
        Initialize the global workspace.

        The target law is deep-copied twice, both copies get ``theta_init`` as
        parameters and the initial log-likelihood is evaluated once.
        """
        theta_init = np.array(_as_state(theta_init, "theta_init"), dtype=float)
        shape = (num_mcmc_steps, num_updates, theta_init.shape[0])
        coords = np.arange(theta_init.shape[0])

        P = copy.deepcopy(data.law)
        P_prop = copy.deepcopy(data.law)
        set_law_parameters(P, coords, theta_init.copy())
        set_law_parameters(P_prop, coords, theta_init.copy())

        return cls(
            state=theta_init,
            state_history=np.full(shape, np.nan),
            state_proposal_history=np.full(shape, np.nan),
            data=data,
            P=P,
            P_prop=P_prop,
            ll=law_loglikelihood(P, data.obs),
            stats=GenericChainStats(theta_init, num_updates, num_mcmc_steps, roll_window),
        )

    @property
    def num_mcmc_steps(self) -> int:
        return self.state_history.shape[0]

    @property
    def num_updates(self) -> int:
        return self.state_history.shape[1]

    def add_slots(self, num_new_updates: int) -> None:
        """Make room in the history buffers (and statistics) for new update slots"""
        M, _, D = self.state_history.shape
        pad = np.full((M, num_new_updates, D), np.nan)
        self.state_history = np.concatenate([self.state_history, pad], axis=1)
        self.state_proposal_history = np.concatenate([self.state_proposal_history, pad.copy()], axis=1)
        self.stats.add_slots(num_new_updates)


@dataclass
class LocalWorkspace:
    """
    Local workspace of a single update. Created once, reused at every turn.

    Attributes:
        state (np.ndarray): Accepted values of the coordinates the update operates on.
        state_proposal (np.ndarray): Proposed values of the same coordinates.
        ll (np.ndarray): Log-likelihood of the accepted state, per independent block.
        ll_proposal (np.ndarray): Log-likelihood of the proposal, per independent block.
        ll_history (np.ndarray): (num_mcmc_steps, num_ll_blocks) history of ``ll``.
        ll_proposal_history (np.ndarray): (num_mcmc_steps, num_ll_blocks) history of ``ll_proposal``.
        acceptance_history (np.ndarray): (num_mcmc_steps,) accept/reject decisions.
        llr_history (np.ndarray): (num_mcmc_steps,) log Metropolis-Hastings ratios of the proposals.
        gradient (Optional[np.ndarray]): Reserved for gradient-based updates.
        momentum (Optional[np.ndarray]): Reserved for gradient-based updates.
    """

    state: np.ndarray
    state_proposal: np.ndarray
    ll: np.ndarray
    ll_proposal: np.ndarray
    ll_history: np.ndarray
    ll_proposal_history: np.ndarray
    acceptance_history: np.ndarray
    llr_history: np.ndarray
    gradient: Optional[np.ndarray] = None
    momentum: Optional[np.ndarray] = None
    name: str = field(default="")

    def __post_init__(self) -> None:
        _as_state(self.state, "state")
        if self.state_proposal.shape != self.state.shape:
            raise ValueError("state_proposal must have the same shape as state.")

    @classmethod
    def create(cls, coords: Sequence[int], global_ws: GlobalWorkspace, name: str = "") -> "LocalWorkspace":
        """Create a local workspace for an update operating on global coordinates ``coords``"""
        state = global_ws.state[np.asarray(coords, dtype=int)].copy()
        M = global_ws.num_mcmc_steps
        num_ll_blocks = global_ws.ll.shape[0]
        return cls(
            state=state,
            state_proposal=state.copy(),
            ll=global_ws.ll.copy(),
            ll_proposal=np.full(num_ll_blocks, -np.inf),
            ll_history=np.full((M, num_ll_blocks), np.nan),
            ll_proposal_history=np.full((M, num_ll_blocks), np.nan),
            acceptance_history=np.zeros(M, dtype=bool),
            llr_history=np.full(M, np.nan),
            name=name,
        )

    @property
    def loglikelihood_ratio(self) -> float:
        """Log-likelihood ratio of the most recent proposal"""
        return float(np.sum(self.ll_proposal) - np.sum(self.ll))

    def __repr__(self) -> str:
        return (
            f"LocalWorkspace(name={self.name!r}, dim={self.state.shape[0]}, "
            f"num_ll_blocks={self.ll.shape[0]}, steps={self.acceptance_history.shape[0]})"
        )


def transfer(update: Any, global_ws: GlobalWorkspace, local_ws: LocalWorkspace, step: Any, previous: Optional[LocalWorkspace] = None) -> None:
    """
    Bring the local workspace of ``update`` up to date with the global one at
    the start of its turn. The accepted log-likelihood is taken over from the
    local workspace of the previous update when one is given.
    """
    local_ws.state[:] = global_ws.state[update.coords]
    if previous is not None and previous is not local_ws:
        local_ws.ll[:] = previous.ll
    else:
        local_ws.ll[:] = global_ws.ll
