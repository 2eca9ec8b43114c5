from __future__ import annotations

import logging
from typing import Callable

import numpy as np
from numpy.typing import NDArray

from .config import get_frp_settings

__all__ = ["HACStandardErrors", "newey_west_lags", "hac_standard_errors"]

_LOGGER = logging.getLogger(__name__)

# Maps a (T, K) matrix of per-period terms to K standard errors of their means.
HACStandardErrors = Callable[[NDArray[np.float64]], NDArray[np.float64]]


def newey_west_lags(n_obs: int) -> int:
    """Rule-of-thumb bandwidth ``floor(4 (T/100)^(2/9))``."""

    if n_obs <= 0:
        raise ValueError("n_obs must be positive.")
    return int(np.floor(4.0 * (n_obs / 100.0) ** (2.0 / 9.0)))


def _long_run_variance(centered: NDArray[np.float64], lags: int) -> NDArray[np.float64]:
    n = centered.shape[0]
    spectral = np.einsum("tk,tk->k", centered, centered) / n
    for k in range(1, lags + 1):
        weight = 1.0 - k / (lags + 1.0)
        gamma = np.einsum("tk,tk->k", centered[k:], centered[:-k]) / n
        spectral = spectral + 2.0 * weight * gamma
    return spectral


def hac_standard_errors(
    terms: NDArray[np.float64],
    lags: int | None = None,
) -> NDArray[np.float64]:
    """Newey–West standard errors of the column means of ``terms``.

    Parameters
    ----------
    terms
        Per-period series shaped ``(n_periods, n_columns)``. Columns are
        demeaned before the long-run variance is computed.
    lags
        Bartlett bandwidth. ``None`` uses the configured ``hac_lags`` and
        falls back to :func:`newey_west_lags`.

    Returns
    -------
    numpy.ndarray
        Non-negative standard errors shaped ``(n_columns,)``.
    """

    data = np.asarray(terms, dtype=np.float64)
    if data.ndim == 1:
        data = data[:, None]
    if data.ndim != 2:
        raise ValueError("terms must be a two-dimensional array.")
    n_obs = data.shape[0]
    if n_obs == 0:
        raise ValueError("terms must contain at least one period.")

    if lags is None:
        lags = get_frp_settings().hac_lags
    if lags is None:
        lags = newey_west_lags(n_obs)
        _LOGGER.debug("Newey-West bandwidth chosen automatically: %d lags for T=%d", lags, n_obs)
    if lags < 0:
        raise ValueError("lags must be non-negative.")
    lags = min(int(lags), n_obs - 1)

    centered = data - data.mean(axis=0, keepdims=True)
    long_run_var = _long_run_variance(centered, lags)
    return np.sqrt(np.clip(long_run_var, 0.0, None) / n_obs)
