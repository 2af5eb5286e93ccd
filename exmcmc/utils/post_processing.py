"""Markov Chain Monte Carlo post-processing utilities

Loading of chains saved by SavingCallback, extraction of samples from a global
workspace and simple convergence diagnostics.
"""
import os

import numpy as np

from exmcmc.core.workspace import GlobalWorkspace

from typing import Dict, Optional, Tuple

def _parse_flag(field: str) -> bool:
    field = field.strip().lower()
    if field not in ("true", "false"):
        raise ValueError(f"Acceptance flag must be 'true' or 'false', got {field!r}.")
    return field == "true"

def _parse_floats(group: str) -> np.ndarray:
    return np.array([float(v) for v in group.split(",") if v.strip() != ""])

def load_chain(filename: str) -> Dict[str, np.ndarray]:
    """
    Load a chain saved by SavingCallback.

    Parameters:
    ----------
        filename (str): Path to the CSV file.

    Returns:
    -------
        chain (dict): Arrays, one entry per row of the file
            - "iteration" (N,) 1-based MCMC iterations
            - "update" (N,) 1-based update slots
            - "state" (N, d) accepted states after the step
            - "proposal" (N, d) proposed states
            - "ll" (N, b) accepted log-likelihoods
            - "ll_proposal" (N, b) proposal log-likelihoods
            - "accepted" (N,) acceptance decisions
    """
    if not os.path.exists(filename):
        raise FileNotFoundError(f"The file {filename} does not exist.")

    columns = {key: [] for key in ("iteration", "update", "state", "proposal", "ll", "ll_proposal", "accepted")}
    with open(filename, "r") as f:
        for line_num, line in enumerate(f, start=1):
            if not line.strip():
                continue
            groups = line.rstrip("\n").split("!")
            if len(groups) != 6:
                raise ValueError(f"Line {line_num} of {filename} has {len(groups)} field groups, expected 6.")
            idx = _parse_floats(groups[0])
            if idx.shape != (2,):
                raise ValueError(f"Line {line_num} of {filename} does not start with an iteration and an update index.")
            columns["iteration"].append(int(idx[0]))
            columns["update"].append(int(idx[1]))
            columns["state"].append(_parse_floats(groups[1]))
            columns["proposal"].append(_parse_floats(groups[2]))
            columns["ll"].append(_parse_floats(groups[3]))
            columns["ll_proposal"].append(_parse_floats(groups[4]))
            flags = [v for v in groups[5].split(",") if v.strip() != ""]
            if len(flags) != 1:
                raise ValueError(f"Line {line_num} of {filename} must hold exactly one acceptance flag.")
            columns["accepted"].append(_parse_flag(flags[0]))

    if not columns["iteration"]:
        raise ValueError(f"The file {filename} does not contain any samples.")

    return {
        "iteration": np.array(columns["iteration"], dtype=int),
        "update": np.array(columns["update"], dtype=int),
        "state": np.vstack(columns["state"]),
        "proposal": np.vstack(columns["proposal"]),
        "ll": np.vstack(columns["ll"]),
        "ll_proposal": np.vstack(columns["ll_proposal"]),
        "accepted": np.array(columns["accepted"], dtype=bool),
    }

def get_samples(global_ws: GlobalWorkspace, burnin: Optional[float] = 0.0) -> np.ndarray:
    """
    From the global workspace, extract the state at the end of every MCMC iteration.

    Parameters
    ----------
    global_ws : GlobalWorkspace
        Global workspace returned by MCMC.run.
    burnin : float, optional
        Fraction of samples to discard as burn-in. Default is 0.0.

    Returns
    -------
    samples : np.ndarray
        2D numpy array of shape (d, N), where d is the number of dimensions and N is the number of samples.
    """
    if burnin is None:
        burnin = 0.0
    if burnin < 0 or burnin >= 1:
        raise ValueError("Burn-in must be a fraction in [0, 1).")

    history = global_ws.state_history
    positions = []
    for t in range(history.shape[0]):
        # Last slot executed at iteration t
        executed = np.flatnonzero(~np.isnan(history[t, :, 0]))
        if executed.size > 0:
            positions.append(history[t, executed[-1]])
    if not positions:
        raise ValueError("The global workspace does not contain any samples.")

    n_burnin = int(len(positions) * burnin)
    return np.column_stack(positions[n_burnin:])

def autocorrelation(samples: np.ndarray, maxlag: Optional[int] = 100, step: Optional[int] = 1) -> Tuple[np.ndarray, np.ndarray]:
    """Compute the correlation of a set of samples

    Parameters
    ----------
    samples : np.ndarray
        The samples to compute the autocorrelation for. Should be of shape (n_dim, n_samples).
    maxlag : int
        The maximum lag to compute the autocorrelation for.
    step : int
        The step size for the lag. Default is 1.

    Returns
    -------
    lags : np.ndarray
        The lags for which the autocorrelation is computed.
    autos : np.ndarray
        The autocorrelation values for each dimension at each lag.
    """
    if not isinstance(samples, np.ndarray) or samples.ndim != 2:
        raise ValueError("Samples should be a 2D numpy array.")
    if samples.shape[0] > samples.shape[1]:
        raise ValueError("Samples should be in the format (d, N), where d is the number of dimensions and N is the number of samples.")

    ndim, nsamples = samples.shape
    centered = samples - np.mean(samples, axis=1, keepdims=True)
    denominator = np.sum(centered**2, axis=1)

    lags = np.arange(0, min(maxlag, nsamples), step)
    autos = np.zeros((ndim, len(lags)))
    for zz, lag in enumerate(lags):
        # covariance between all samples *lag apart*
        autos[:, zz] = np.sum(centered[:, : nsamples - lag] * centered[:, lag:], axis=1) / denominator

    return lags, autos

def effective_sample_size(auto_corrs: np.ndarray, nsamples: Optional[int] = None) -> float:
    """
    Estimate the effective sample size from the autocorrelations of a chain
    (lag 0 first), truncating the sum at the first negative autocorrelation.
    ``nsamples`` defaults to the number of autocorrelations.
    """
    n = len(auto_corrs) if nsamples is None else nsamples
    negative = np.flatnonzero(auto_corrs < 0)
    first_negative = negative[0] if negative.size > 0 else len(auto_corrs)
    return n / (1 + 2 * np.sum(auto_corrs[1:first_negative]))
