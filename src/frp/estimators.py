"""
Cross-sectional risk premia estimators.

Both estimators regress mean returns on the loadings without an intercept.
The Fama–MacBeth (FM) variant uses ordinary least squares; the
Kan–Robotti–Shanken (KRS) variant uses generalised least squares with an
explicit weighting matrix, usually the return covariance, so the estimate
stays interpretable when the factor model is misspecified.
"""

from __future__ import annotations

from enum import Enum

import numpy as np
from numpy.typing import NDArray

from .exceptions import DimensionError
from .linalg import spd_solve

__all__ = ["Estimator", "fm_frp", "krs_frp", "risk_premia"]


class Estimator(str, Enum):
    """Supported risk premia estimators."""

    FM = "fm"
    KRS = "krs"

    @classmethod
    def from_flag(cls, misspecification_robust: bool) -> "Estimator":
        return cls.KRS if misspecification_robust else cls.FM


def _check_inputs(beta: NDArray[np.float64], mean_returns: NDArray[np.float64]) -> None:
    if beta.ndim != 2:
        raise DimensionError("beta must be a two-dimensional (n_assets, n_factors) matrix.")
    if mean_returns.shape != (beta.shape[0],):
        raise DimensionError(
            f"mean_returns has shape {mean_returns.shape}; expected ({beta.shape[0]},)."
        )


def fm_frp(beta: NDArray[np.float64], mean_returns: NDArray[np.float64]) -> NDArray[np.float64]:
    """Fama–MacBeth risk premia ``(βᵀβ)⁻¹ βᵀ μ_R``."""

    beta = np.asarray(beta, dtype=np.float64)
    mean_returns = np.asarray(mean_returns, dtype=np.float64)
    _check_inputs(beta, mean_returns)
    return spd_solve(beta.T @ beta, beta.T, name="beta Gram matrix") @ mean_returns


def krs_frp(
    beta: NDArray[np.float64],
    mean_returns: NDArray[np.float64],
    weighting_matrix: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Misspecification-robust risk premia ``(βᵀW⁻¹β)⁻¹ βᵀW⁻¹ μ_R``.

    Parameters
    ----------
    beta
        Loadings shaped ``(n_assets, n_factors)``.
    mean_returns
        Mean asset returns shaped ``(n_assets,)``.
    weighting_matrix
        Symmetric positive-definite matrix shaped ``(n_assets, n_assets)``.

    Raises
    ------
    SingularMatrixError
        If the weighting matrix or ``βᵀW⁻¹β`` is not positive definite.
    """

    beta = np.asarray(beta, dtype=np.float64)
    mean_returns = np.asarray(mean_returns, dtype=np.float64)
    weighting_matrix = np.asarray(weighting_matrix, dtype=np.float64)
    _check_inputs(beta, mean_returns)
    n_assets = beta.shape[0]
    if weighting_matrix.shape != (n_assets, n_assets):
        raise DimensionError(
            f"weighting_matrix has shape {weighting_matrix.shape}; "
            f"expected ({n_assets}, {n_assets})."
        )

    beta_t_weight_inv = spd_solve(weighting_matrix, beta, name="weighting matrix").T
    return (
        spd_solve(beta_t_weight_inv @ beta, beta_t_weight_inv, name="weighted beta Gram matrix")
        @ mean_returns
    )


def risk_premia(
    estimator: Estimator | str,
    beta: NDArray[np.float64],
    mean_returns: NDArray[np.float64],
    weighting_matrix: NDArray[np.float64] | None = None,
) -> NDArray[np.float64]:
    """Dispatch to the estimator selected by ``estimator``."""

    estimator = Estimator(estimator)
    if estimator is Estimator.FM:
        return fm_frp(beta, mean_returns)
    if weighting_matrix is None:
        raise ValueError("The KRS estimator requires a weighting matrix.")
    return krs_frp(beta, mean_returns, weighting_matrix)
