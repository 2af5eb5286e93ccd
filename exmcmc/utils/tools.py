"""
Script housing some helper functions
"""

# Imports
import numpy as np
from typing import Optional, Tuple, Union

def lognormpdf(x: np.ndarray, mean: Optional[np.ndarray] = None, cov: Optional[np.ndarray] = None) -> Union[float, np.ndarray]:

    """Compute log pdf of a multivariate Normal distribution.

    Inputs
    ------
    x : (d,) or (d, N) array
        Point(s) at which to evaluate the log PDF. A 1D array is a single point.
    mean : (d,) or (d, 1) array
        Mean of the distribution
    cov : (d, d) array
        Covariance matrix

    Returns
    -------
    logpdf : float or (N,) array
        Log PDF value(s) - scalar if N=1, array otherwise
    """

    # Convert scalars to arrays for unified handling
    if np.isscalar(x):
        x = np.array([[x]], dtype=float)
    else:
        x = np.asarray(x, dtype=float)
        if x.ndim == 1:
            x = x[:, np.newaxis]  # shape (d, N)

    d, N = x.shape

    if mean is None:
        mean = np.zeros(d, dtype=float)
    elif np.isscalar(mean):
        mean = np.array([mean], dtype=float)
    else:
        mean = np.asarray(mean, dtype=float).flatten()

    if cov is None:
        cov = np.eye(d, dtype=float)
    elif np.isscalar(cov):
        cov = np.array([[cov]], dtype=float)
    else:
        cov = np.asarray(cov, dtype=float)

    # Normalization term through the log-determinant
    sign, logdet = np.linalg.slogdet(cov)
    if sign <= 0:
        raise ValueError("cov must be positive definite.")
    lognorm = -0.5 * (d * np.log(2.0 * np.pi) + logdet)

    diff = x - mean[:, np.newaxis]

    # Solve Σ^{-1}(x - μ) and compute quadratic term
    sol = np.linalg.solve(cov, diff)
    inexp = np.einsum("ij,ij->j", diff, sol)

    logpdf = lognorm - 0.5 * inexp

    if N == 1:
        return logpdf.item()
    else:
        return logpdf.flatten()

def sample_multivariate_gaussian(mu: np.ndarray, sigma: np.ndarray) -> np.ndarray:
    """
    Draw a single sample from a multivariate Gaussian distribution.

    Inputs:
    ------
        mu: (d,) mean vector
        sigma: (d, d) covariance matrix

    Returns:
    -------
        sample: (d,) array
    """
    mu = np.asarray(mu, dtype=float).flatten()
    sigma = np.atleast_2d(sigma)
    if mu.shape[0] != sigma.shape[0]:
        raise ValueError("mu and sigma must have the same number of rows (d)")
    if sigma.shape[0] != sigma.shape[1]:
        raise ValueError("sigma must be a square matrix of shape (d, d)")

    return np.random.multivariate_normal(mu, sigma)

def online_mean_cov(mean: np.ndarray, cov: np.ndarray, n: int, x: np.ndarray) -> Tuple[np.ndarray, np.ndarray, int]:
    """
    One step of the online recurrence for the running mean and covariance.

    ``n`` is the number of observations that ``mean`` and ``cov`` summarise. The
    first observation seeds the mean and leaves a zero covariance. Afterwards

        old_sum_sq = (n-1)/n * cov + mean mean^T
        mean      <- mean * n/(n+1) + x/(n+1)
        new_sum_sq = old_sum_sq + x x^T / n
        cov       <- new_sum_sq - (n+1)/n * mean mean^T

    which keeps ``cov`` equal to the (n-1)-normalised sample covariance.

    Returns
    -------
        (mean, cov, n + 1), with ``mean`` and ``cov`` updated in place.
    """
    x = np.asarray(x, dtype=float)
    if n == 0:
        mean[:] = x
        cov[:] = 0.0
        return mean, cov, 1

    old_sum_sq = (n - 1) / n * cov + np.outer(mean, mean)
    mean[:] = mean * (n / (n + 1)) + x / (n + 1)
    new_sum_sq = old_sum_sq + np.outer(x, x) / n
    cov[:] = new_sum_sq - (n + 1) / n * np.outer(mean, mean)
    return mean, cov, n + 1

def assure_scalar(v) -> float:
    """
    Accept a scalar or a sequence of length one and return it as a scalar.
    """
    if np.isscalar(v):
        return v
    v = np.asarray(v)
    if v.size != 1:
        raise ValueError(f"Expected a scalar or a length-1 sequence, got shape {v.shape}.")
    return v.item()

def upgrade_to_vec(v, n: int) -> np.ndarray:
    """
    Receive a scalar, a length-1 or a length-n sequence and return a length-n float array.
    """
    v = np.atleast_1d(np.asarray(v, dtype=float))
    if v.ndim != 1:
        raise ValueError(f"Expected a 1D sequence, got shape {v.shape}.")
    if v.shape[0] == n:
        return v.copy()
    if v.shape[0] == 1:
        return np.full(n, v[0])
    raise ValueError(f"Expected a scalar or a sequence of length {n}, got length {v.shape[0]}.")

