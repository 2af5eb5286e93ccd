"""
Class file for the random walk Metropolis-Hastings update
"""

# Imports
from typing import Dict, Optional, Sequence

import numpy as np

from exmcmc.core.kernel import AdaptationBase, KernelProtocol
from exmcmc.core.prior import PriorProtocol
from exmcmc.core.schedule import MCMCStep
from exmcmc.core.update import InfeasibleProposalError, MCMCParamUpdate, coords_to_index
from exmcmc.core.workspace import GlobalWorkspace, LocalWorkspace
from exmcmc.kernels.adaptation import NoAdaptation
from exmcmc.priors.priors import ImproperPrior


class RandomWalkUpdate(MCMCParamUpdate):
    """
    Random walk Metropolis-Hastings update of the coordinates ``coords``.

    Proposals falling outside of the support of the prior are redrawn, at most
    ``max_proposal_retries`` times.
    """

    def __init__(
        self,
        kernel: KernelProtocol,
        coords: Sequence[int],
        prior: Optional[PriorProtocol] = None,
        adaptation: Optional[AdaptationBase] = None,
        max_proposal_retries: int = 10000,
    ):
        """
        Args:
            kernel: Random walk that generates the proposals.
            coords: Global coordinates of the parameter vector that are updated.
            prior: Prior over the updated coordinates, flat by default.
            adaptation: Adaptation scheme of the kernel, none by default.
            max_proposal_retries: Maximum number of redraws of a proposal with a
                vanishing prior.
        """
        self.coords = coords_to_index(coords)
        if len(kernel) != len(self.coords):
            raise ValueError(
                f"Kernel moves {len(kernel)} coordinates but {len(self.coords)} coords were given."
            )
        if max_proposal_retries < 0:
            raise ValueError(f"max_proposal_retries must be >= 0, got {max_proposal_retries}.")
        self.kernel = kernel
        self.prior = prior if prior is not None else ImproperPrior()
        self.adaptation = adaptation if adaptation is not None else NoAdaptation()
        self.adaptation.check_kernel(self.kernel)
        self.max_proposal_retries = int(max_proposal_retries)
        self.glob2loc: Dict[int, int] = {int(g): l for l, g in enumerate(self.coords)}

    def propose(self, global_ws: GlobalWorkspace, local_ws: LocalWorkspace, step: MCMCStep) -> np.ndarray:
        """Sample a proposal for the local ``state``, redrawing it while the prior vanishes"""
        self.kernel.sample_into(local_ws.state, local_ws.state_proposal)
        retries = 0
        while self.prior.logpdf(local_ws.state_proposal) == -np.inf:
            if retries >= self.max_proposal_retries:
                raise InfeasibleProposalError(
                    f"No proposal with a finite prior after {retries} retries for coords "
                    f"{self.coords.tolist()} at iteration {step.mcmciter}."
                )
            self.kernel.sample_into(local_ws.state, local_ws.state_proposal)
            retries += 1
        return local_ws.state_proposal

    def log_transition_density(self, theta: np.ndarray, theta_prop: np.ndarray) -> float:
        return self.kernel.log_transition_density(theta, theta_prop)

    def log_prior(self, theta: np.ndarray) -> float:
        return self.prior.logpdf(theta)

    def __repr__(self) -> str:
        return (
            f"RandomWalkUpdate(kernel={type(self.kernel).__name__}, coords={self.coords.tolist()}, "
            f"prior={type(self.prior).__name__}, adaptation={type(self.adaptation).__name__})"
        )
