"""
Callback reporting the progress of the sampler through the package logger
"""

# Imports
from typing import List

import numpy as np

from exmcmc.core.callback import Callback, StepPhase
from exmcmc.core.schedule import MCMCStep
from exmcmc.core.workspace import GlobalWorkspace, LocalWorkspace
from exmcmc.utils.logging import get_module_logger

logger = get_module_logger(__name__)


def _fmt(x) -> str:
    x = np.atleast_1d(np.asarray(x, dtype=float))
    rounded = [float(f"{v:.4g}") for v in x]
    return str(rounded[0]) if len(rounded) == 1 else str(rounded)


class ProgressCallback(Callback):
    """
    Logs the outcome of MCMC steps every ``print_every_k_iter`` iterations.

    Args:
        print_every_k_iter: Reporting period in iterations.
        show_all_updates: Report every slot of a reported iteration, not only the first one.
        basic_info_only: Report log-likelihoods only, without the states.
    """

    def __init__(self, print_every_k_iter: int = 100, show_all_updates: bool = True, basic_info_only: bool = True):
        if print_every_k_iter < 1:
            raise ValueError(f"print_every_k_iter must be >= 1, got {print_every_k_iter}.")
        self.print_every_k_iter = int(print_every_k_iter)
        self.show_all_updates = show_all_updates
        self.basic_info_only = basic_info_only

    def init(self, global_ws: GlobalWorkspace) -> None:
        logger.info(
            f"Initializing an MCMC chain: {global_ws.num_mcmc_steps} iterations, "
            f"{global_ws.num_updates} updates, initial state {_fmt(global_ws.state)}, ll {_fmt(global_ws.ll)}"
        )

    def should_execute(self, step: MCMCStep, phase: StepPhase) -> bool:
        if phase is not StepPhase.POST or step.mcmciter % self.print_every_k_iter != 0:
            return False
        return self.show_all_updates or step.pidx == 1

    def execute(self, global_ws: GlobalWorkspace, local_wss: List[LocalWorkspace], step: MCMCStep, phase: StepPhase) -> None:
        local_ws = local_wss[step.slot_index]
        t = step.iter_index
        accepted = bool(local_ws.acceptance_history[t])
        logger.info(
            f"{step.mcmciter}.{step.pidx} {local_ws.name} ll: {_fmt(local_ws.ll_history[t])}, "
            f"ll_prop: {_fmt(local_ws.ll_proposal_history[t])}, llr: {_fmt(local_ws.llr_history[t])}, "
            f"a/r: {'accepted' if accepted else 'rejected'}"
        )
        if not self.basic_info_only:
            logger.info(f"    state: {_fmt(local_ws.state)}, proposal: {_fmt(local_ws.state_proposal)}")

    def cleanup(self, global_ws: GlobalWorkspace, local_wss: List[LocalWorkspace], final_step: MCMCStep) -> None:
        logger.info("MCMC sampling has been successful, finishing")
