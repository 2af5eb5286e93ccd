from exmcmc.callbacks.progress import ProgressCallback
from exmcmc.callbacks.saving import SavingCallback
from exmcmc.core.model import ObservedData
from exmcmc.core.update import InfeasibleProposalError
from exmcmc.kernels.adaptation import AdaptationUnifRW, HaarioTypeAdaptation, NoAdaptation, UnifRWAdaptationConfig
from exmcmc.kernels.random_walk import GaussianRandomWalk, GaussianRandomWalkMix, UniformRandomWalk
from exmcmc.priors.priors import ImproperPosPrior, ImproperPrior, ProductPrior, StandardPrior
from exmcmc.samplers.mcmc import MCMC, ExcludeUpdates
from exmcmc.updates.random_walk import RandomWalkUpdate

__version__ = "0.1.0"

__all__ = [
    "MCMC",
    "ExcludeUpdates",
    "RandomWalkUpdate",
    "ObservedData",
    "UniformRandomWalk",
    "GaussianRandomWalk",
    "GaussianRandomWalkMix",
    "NoAdaptation",
    "AdaptationUnifRW",
    "UnifRWAdaptationConfig",
    "HaarioTypeAdaptation",
    "ImproperPrior",
    "ImproperPosPrior",
    "StandardPrior",
    "ProductPrior",
    "SavingCallback",
    "ProgressCallback",
    "InfeasibleProposalError",
]
