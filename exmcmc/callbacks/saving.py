"""
Callback saving the history of the chain to a CSV file
"""

# Imports
import os
from datetime import datetime
from typing import Iterable, List, Optional, TextIO

import numpy as np

from exmcmc.core.callback import Callback, StepPhase
from exmcmc.core.schedule import MCMCStep
from exmcmc.core.workspace import GlobalWorkspace, LocalWorkspace
from exmcmc.utils.logging import get_module_logger

logger = get_module_logger(__name__)


def find_available_name(path: str, filename: str, extension: str = ".csv") -> str:
    """
    Return ``path/filename.csv`` or, if taken, the first of ``filename1.csv``,
    ``filename2.csv``, ... that does not exist yet.
    """
    candidate = os.path.join(path, f"{filename}{extension}")
    disambig_num = 0
    while os.path.isfile(candidate):
        disambig_num += 1
        candidate = os.path.join(path, f"{filename}{disambig_num}{extension}")
    return candidate


def _fields(values: Iterable) -> str:
    return "".join(f"{v}, " for v in values)


def _flag(accepted: bool) -> str:
    return "true" if accepted else "false"


class SavingCallback(Callback):
    """
    Saves accepted states, proposals, log-likelihoods and acceptance decisions.

    One row is written per slot per iteration:

        i, j, !, state..., !, proposal..., !, ll..., !, ll_prop..., !,flag,

    Rows are appended at the start of every iteration listed in
    ``save_at_iters`` (all rows since the previous save) and at the end of
    sampling if ``save_at_the_end``.
    """

    def __init__(
        self,
        save_at_the_end: bool = True,
        save_at_iters: Iterable[int] = (),
        overwrite: bool = False,
        filename: str = "mcmc_results",
        add_datestamp: bool = False,
        path: str = ".",
    ):
        if add_datestamp:
            filename = f"{filename}_{datetime.now().strftime('%Y-%m-%d_%H:%M:%S')}"
        self.save_at_the_end = save_at_the_end
        self.save_at_iters = sorted(int(i) for i in save_at_iters)
        self.filename = (
            os.path.join(path, f"{filename}.csv") if overwrite else find_available_name(path, filename)
        )
        self._next_iter = 1

    @property
    def save_intermediate(self) -> bool:
        return len(self.save_at_iters) > 0

    def init(self, global_ws: GlobalWorkspace) -> None:
        """Create an empty CSV file"""
        directory = os.path.dirname(self.filename)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.filename, "w"):
            pass
        self._next_iter = 1

    def should_execute(self, step: MCMCStep, phase: StepPhase) -> bool:
        if phase is not StepPhase.PRE or not self.save_intermediate:
            return False
        return step.pidx == 1 and step.mcmciter in self.save_at_iters

    def execute(self, global_ws: GlobalWorkspace, local_wss: List[LocalWorkspace], step: MCMCStep, phase: Optional[StepPhase]) -> None:
        """Append the rows of all iterations completed since the last save"""
        iter_start, iter_end = self._next_iter, step.mcmciter
        with open(self.filename, "a") as f:
            for i in range(iter_start, iter_end):
                self.data_to_csv(f, global_ws, local_wss, i)
        self._next_iter = max(self._next_iter, iter_end)
        logger.info(f"Saved iterations {iter_start}-{iter_end - 1} to {self.filename}")

    def cleanup(self, global_ws: GlobalWorkspace, local_wss: List[LocalWorkspace], final_step: MCMCStep) -> None:
        if self.save_at_the_end:
            self.execute(global_ws, local_wss, final_step, None)

    @staticmethod
    def data_to_csv(f: TextIO, global_ws: GlobalWorkspace, local_wss: List[LocalWorkspace], i: int) -> None:
        """Write the rows of the i-th (1-based) iteration"""
        t = i - 1
        for s in range(global_ws.num_updates):
            local_ws = local_wss[s]
            f.write(
                f"{i}, {s + 1}, "
                f"!, {_fields(global_ws.state_history[t, s])}"
                f"!, {_fields(global_ws.state_proposal_history[t, s])}"
                f"!, {_fields(np.atleast_1d(local_ws.ll_history[t]))}"
                f"!, {_fields(np.atleast_1d(local_ws.ll_proposal_history[t]))}"
                f"!,{_flag(local_ws.acceptance_history[t])}, \n"
            )
