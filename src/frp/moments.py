"""
Sample moments of return and factor panels shared by every estimator.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike, NDArray

from .exceptions import DimensionError

__all__ = [
    "PanelMoments",
    "as_panel",
    "factor_labels",
    "validate_panels",
    "compute_moments",
]


@dataclass(frozen=True)
class PanelMoments:
    """Means and (co)variances of a returns/factors panel.

    ``covariance_factors_returns`` is shaped ``(n_factors, n_assets)``; all
    covariances use the ``n - 1`` normalisation.
    """

    mean_returns: NDArray[np.float64]
    mean_factors: NDArray[np.float64]
    variance_factors: NDArray[np.float64]
    variance_returns: NDArray[np.float64]
    covariance_factors_returns: NDArray[np.float64]

    @property
    def n_factors(self) -> int:
        return int(self.mean_factors.size)

    @property
    def n_assets(self) -> int:
        return int(self.mean_returns.size)


def as_panel(data: ArrayLike | pd.DataFrame | pd.Series, name: str) -> NDArray[np.float64]:
    """Convert an array-like or pandas object to a finite ``(T, n)`` float array."""

    if isinstance(data, (pd.DataFrame, pd.Series)):
        array = data.to_numpy(dtype=np.float64, copy=True)
    else:
        array = np.array(data, dtype=np.float64, copy=True)
    if array.ndim == 1:
        array = array[:, None]
    if array.ndim != 2:
        raise DimensionError(f"{name} must be a two-dimensional panel shaped (T, n).")
    if not np.isfinite(array).all():
        raise ValueError(f"{name} contains non-finite entries.")
    return array


def factor_labels(factors: object) -> tuple[str, ...] | None:
    if isinstance(factors, pd.DataFrame):
        return tuple(str(col) for col in factors.columns)
    if isinstance(factors, pd.Series):
        return (str(factors.name),)
    return None


def validate_panels(returns: NDArray[np.float64], factors: NDArray[np.float64]) -> None:
    """Check the panel shapes before any decomposition is attempted."""

    if returns.ndim != 2 or factors.ndim != 2:
        raise DimensionError("returns and factors must be two-dimensional.")
    n_obs, n_assets = returns.shape
    if factors.shape[0] != n_obs:
        raise DimensionError(
            f"returns has {n_obs} rows but factors has {factors.shape[0]}."
        )
    n_factors = factors.shape[1]
    if n_assets == 0 or n_factors == 0:
        raise DimensionError("At least one asset and one factor are required.")
    if n_obs <= n_factors:
        raise DimensionError(
            f"Number of observations ({n_obs}) must exceed the number of factors ({n_factors})."
        )
    if n_obs <= n_assets:
        raise DimensionError(
            f"Number of observations ({n_obs}) must exceed the number of assets ({n_assets})."
        )


def _cross_covariance(x: NDArray[np.float64], y: NDArray[np.float64]) -> NDArray[np.float64]:
    x_centred = x - x.mean(axis=0, keepdims=True)
    y_centred = y - y.mean(axis=0, keepdims=True)
    return (x_centred.T @ y_centred) / (x.shape[0] - 1)


def _symmetrize(matrix: NDArray[np.float64]) -> NDArray[np.float64]:
    return np.asarray(0.5 * (matrix + matrix.T), dtype=np.float64)


def compute_moments(
    returns: ArrayLike | pd.DataFrame,
    factors: ArrayLike | pd.DataFrame,
) -> PanelMoments:
    """Compute the sample moments of a returns/factors panel.

    Parameters
    ----------
    returns
        Asset returns shaped ``(n_periods, n_assets)``.
    factors
        Factor realisations shaped ``(n_periods, n_factors)``.

    Returns
    -------
    PanelMoments
        Mean vectors, factor and return covariances, and the
        factor-return cross-covariance.
    """

    r = as_panel(returns, "returns")
    f = as_panel(factors, "factors")
    validate_panels(r, f)
    return PanelMoments(
        mean_returns=r.mean(axis=0),
        mean_factors=f.mean(axis=0),
        variance_factors=_symmetrize(_cross_covariance(f, f)),
        variance_returns=_symmetrize(_cross_covariance(r, r)),
        covariance_factors_returns=_cross_covariance(f, r),
    )
