"""
Template class file for callbacks

Callbacks are pieces of code run in between the MCMC steps: before or after a
step, once before the first step and once after the last one.
"""

# Imports
from enum import Enum
from typing import List

from exmcmc.core.schedule import MCMCStep
from exmcmc.core.workspace import GlobalWorkspace, LocalWorkspace


class StepPhase(Enum):
    """Whether a callback is run before or after an MCMC step"""

    PRE = "pre"
    POST = "post"


class Callback:
    """
    Base class for callbacks. By default a callback does nothing.
    """

    def init(self, global_ws: GlobalWorkspace) -> None:
        """One-time setup before the first MCMC step"""
        pass

    def should_execute(self, step: MCMCStep, phase: StepPhase) -> bool:
        """Return True if the callback is to be executed at ``step`` in ``phase``"""
        return False

    def execute(self, global_ws: GlobalWorkspace, local_wss: List[LocalWorkspace], step: MCMCStep, phase: StepPhase) -> None:
        """Perform the actions of the callback"""
        pass

    def cleanup(self, global_ws: GlobalWorkspace, local_wss: List[LocalWorkspace], final_step: MCMCStep) -> None:
        """The last call to the callback, after all MCMC steps"""
        pass


def run_callbacks(callbacks: List[Callback], global_ws: GlobalWorkspace, local_wss: List[LocalWorkspace], step: MCMCStep, phase: StepPhase) -> None:
    for callback in callbacks:
        if callback.should_execute(step, phase):
            callback.execute(global_ws, local_wss, step, phase)
