from exmcmc.samplers.mcmc import MCMC, ExcludeUpdates

__all__ = [
    "MCMC",
    "ExcludeUpdates",
]
