"""
Class file for the Metropolis-Hastings within Gibbs sampler.
"""

from typing import Any, List, Optional, Sequence, Tuple

import numpy as np

from exmcmc.core.callback import Callback, StepPhase, run_callbacks
from exmcmc.core.model import ObservedData
from exmcmc.core.schedule import Exclusion, MCMCSchedule, MCMCStep, SlotSpec
from exmcmc.core.update import MCMCUpdate, UpdateDecorator
from exmcmc.core.workspace import GlobalWorkspace, LocalWorkspace, transfer
from exmcmc.utils.logging import get_module_logger

logger = get_module_logger(__name__)


class ExcludeUpdates(UpdateDecorator):
    """
    Decorator excluding update slot(s) ``slots`` (1-based) from the iterations
    ``iterations`` (e.g. ``range(1, 101)`` for a burn-in without that update).
    """

    def __init__(self, slots: SlotSpec, iterations: Any):
        self.slots = slots
        self.iterations = iterations

    def exclusions(self) -> List[Exclusion]:
        return [(self.slots, self.iterations)]


def _check_coords(update: MCMCUpdate, dim: int) -> None:
    coords = getattr(update, "coords", None)
    if coords is not None and np.any(np.asarray(coords) >= dim):
        raise ValueError(
            f"Update {update!r} acts on coords {list(coords)} outside of a parameter of length {dim}."
        )


class MCMC:
    """
    Metropolis-Hastings within Gibbs sampler.

    A single MCMC iteration performs every update of the list in turn. Entries
    of the list tagged as decorators (``kind == "decorator"``) are set aside
    when the sampler is constructed and only shape the schedule.

    Attributes:
        updates (List[MCMCUpdate]): Updates, in the order they are performed.
        decorators (List[UpdateDecorator]): Decorators of the list of updates.
        schedule (MCMCSchedule): Schedule of the current (or the last) run.
        workspace (GlobalWorkspace): Global workspace of the current (or the last) run.
        local_workspaces (List[LocalWorkspace]): One local workspace per update.

    Examples:
        >>> mcmc = MCMC([
        ...     RandomWalkUpdate(UniformRandomWalk(1.0), [0]),
        ...     RandomWalkUpdate(UniformRandomWalk(1.0), [1]),
        ... ])
        >>> global_ws, local_wss = mcmc.run(1000, ObservedData(law, obs), np.zeros(2))
    """

    def __init__(self, updates_and_decorators: Sequence[Any], print_iteration: int = 1000):
        self.updates: List[MCMCUpdate] = [u for u in updates_and_decorators if u.kind == "update"]
        self.decorators: List[UpdateDecorator] = [u for u in updates_and_decorators if u.kind == "decorator"]
        if not self.updates:
            raise ValueError("At least one update is needed.")
        if print_iteration < 1:
            raise ValueError(f"print_iteration must be >= 1, got {print_iteration}.")
        self.print_iteration = int(print_iteration)
        self.schedule: Optional[MCMCSchedule] = None
        self.workspace: Optional[GlobalWorkspace] = None
        self.local_workspaces: List[LocalWorkspace] = []

    @property
    def num_updates(self) -> int:
        return len(self.updates)

    def init(self, num_mcmc_steps: int, data: ObservedData, theta_init: np.ndarray, exclude_updates: Sequence[Exclusion] = (), roll_window: int = 100) -> None:
        """Initialize the global workspace, the local workspaces and the schedule"""
        theta_init = np.asarray(theta_init, dtype=float)
        for update in self.updates:
            _check_coords(update, theta_init.shape[0])

        self.workspace = GlobalWorkspace.init(num_mcmc_steps, self.num_updates, data, theta_init, roll_window)
        self.local_workspaces = [self._create_local_workspace(update) for update in self.updates]
        exclusions = list(exclude_updates)
        for decorator in self.decorators:
            exclusions.extend(decorator.exclusions())
        self.schedule = MCMCSchedule(num_mcmc_steps, self.num_updates, exclusions)

    def _create_local_workspace(self, update: MCMCUpdate) -> LocalWorkspace:
        return LocalWorkspace.create(update.coords, self.workspace, name=type(update).__name__)

    def add_update(self, update: MCMCUpdate) -> int:
        """
        Append an update to the list. Can be called during a run, e.g. from a
        callback, in which case the new slot takes part from the next step of
        the schedule onwards. Returns the (1-based) slot of the new update.
        """
        if update.kind != "update":
            raise TypeError(f"Expected an update, got {type(update).__name__}.")
        if self.workspace is not None:
            _check_coords(update, self.workspace.state.shape[0])
        self.updates.append(update)
        if self.workspace is not None:
            self.workspace.add_slots(1)
            self.local_workspaces.append(self._create_local_workspace(update))
            self.schedule.reschedule(num_new_updates=1)
        logger.info(f"Added update {update!r} as slot {self.num_updates}")
        return self.num_updates

    def update_adaptation(self, local_ws: LocalWorkspace, step: MCMCStep) -> None:
        """
        Register the outcome of the step with the adaptation schemes of all
        updates and readjust the kernel of the current one if it is due.
        """
        for index, update in enumerate(self.updates):
            adaptation = getattr(update, "adaptation", None)
            if adaptation is None:
                continue
            my_turn = index == step.slot_index
            if adaptation.register_only_on_my_turn(my_turn) and not my_turn:
                continue
            adaptation.register(update, local_ws.acceptance_history[step.iter_index], self.workspace.state[update.coords])
            if my_turn and adaptation.time_to_update():
                adaptation.readjust(update.kernel, step.mcmciter)

    def run(
        self,
        num_mcmc_steps: int,
        data: ObservedData,
        theta_init: np.ndarray,
        callbacks: Sequence[Callback] = (),
        exclude_updates: Sequence[Exclusion] = (),
        roll_window: int = 100,
    ) -> Tuple[GlobalWorkspace, List[LocalWorkspace]]:
        """
        Run the sampler.

        Parameters:
        ----------
            num_mcmc_steps (int): Total number of MCMC iterations.
            data (ObservedData): Target law and observations.
            theta_init (np.ndarray): Initial value of the parameter vector.
            callbacks (Sequence[Callback]): Actions performed in between the steps.
            exclude_updates (Sequence): Pairs (slots, iterations) of 1-based update
                slots and the iterations at which they are skipped.
            roll_window (int): Window of the rolling acceptance rate.

        Returns:
        -------
            (global_ws, local_wss): The global workspace and the local workspaces.
        """
        callbacks = list(callbacks)
        self.init(num_mcmc_steps, data, theta_init, exclude_updates, roll_window)
        global_ws, local_wss = self.workspace, self.local_workspaces
        logger.info(f"Starting MCMC: {num_mcmc_steps} iterations, {self.num_updates} updates")

        for callback in callbacks:
            callback.init(global_ws)

        for step in self.schedule:
            if step.pidx == 1 and step.mcmciter % self.print_iteration == 0:
                logger.info(f"Iteration {step.mcmciter}/{num_mcmc_steps}")

            update, local_ws = self.updates[step.slot_index], local_wss[step.slot_index]
            previous = None if step.prev_pidx is None else local_wss[step.prev_pidx - 1]
            transfer(update, global_ws, local_ws, step, previous)

            run_callbacks(callbacks, global_ws, local_wss, step, StepPhase.PRE)
            update.execute(global_ws, local_ws, step)
            self.update_adaptation(local_ws, step)
            run_callbacks(callbacks, global_ws, local_wss, step, StepPhase.POST)
            global_ws.stats.update(global_ws, local_ws, step)

        final_step = MCMCStep(mcmciter=num_mcmc_steps + 1, pidx=1)
        for callback in callbacks:
            callback.cleanup(global_ws, local_wss, final_step)

        logger.info(
            f"Finished MCMC: mean acceptance rates {np.round(self.acceptance_rates(), 3).tolist()}"
        )
        return global_ws, local_wss

    def acceptance_rates(self) -> np.ndarray:
        """Fraction of accepted proposals of every update over the steps it was executed at"""
        global_ws = self.workspace
        rates = np.zeros(len(self.local_workspaces))
        for s, local_ws in enumerate(self.local_workspaces):
            executed = ~np.isnan(global_ws.state_history[:, s, 0])
            if np.any(executed):
                rates[s] = np.mean(local_ws.acceptance_history[executed])
        return rates
