"""
Asymptotic standard errors of the FM and KRS risk premia estimators.

Each estimator's influence function is assembled period by period into a
``(T, K)`` matrix and handed to a HAC primitive, which returns one standard
error per factor. Centred returns and factors are rebuilt from the supplied
mean vectors on every call.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from .estimators import Estimator
from .exceptions import DimensionError
from .hac import HACStandardErrors, hac_standard_errors
from .linalg import spd_inverse, spd_solve

__all__ = [
    "fm_influence_terms",
    "krs_influence_terms",
    "fm_standard_errors",
    "krs_standard_errors",
    "standard_errors",
]


def _check_shapes(
    risk_premia: NDArray[np.float64],
    returns: NDArray[np.float64],
    factors: NDArray[np.float64],
    beta: NDArray[np.float64],
    mean_returns: NDArray[np.float64],
) -> None:
    n_obs, n_assets = returns.shape
    n_factors = factors.shape[1]
    if factors.shape[0] != n_obs:
        raise DimensionError("returns and factors must have the same number of rows.")
    if beta.shape != (n_assets, n_factors):
        raise DimensionError(
            f"beta has shape {beta.shape}; expected ({n_assets}, {n_factors})."
        )
    if risk_premia.shape != (n_factors,):
        raise DimensionError(f"risk_premia must have {n_factors} entries.")
    if mean_returns.shape != (n_assets,):
        raise DimensionError(f"mean_returns must have {n_assets} entries.")


def _as_arrays(*arrays: object) -> list[NDArray[np.float64]]:
    return [np.asarray(arr, dtype=np.float64) for arr in arrays]


def _factor_covariance(factors: NDArray[np.float64]) -> NDArray[np.float64]:
    return np.atleast_2d(np.cov(factors, rowvar=False, ddof=1))


def fm_influence_terms(
    risk_premia: NDArray[np.float64],
    returns: NDArray[np.float64],
    factors: NDArray[np.float64],
    beta: NDArray[np.float64],
    mean_returns: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Per-period influence terms of the Fama–MacBeth estimator.

    The row for period ``t`` combines a mean term, minus a correction for
    sampling error in the loadings, plus a pricing-error term.
    """

    risk_premia, returns, factors, beta, mean_returns = _as_arrays(
        risk_premia, returns, factors, beta, mean_returns
    )
    _check_shapes(risk_premia, returns, factors, beta, mean_returns)

    h_matrix = spd_inverse(beta.T @ beta, name="beta Gram matrix")
    a_matrix = h_matrix @ beta.T

    returns_centred = returns - mean_returns
    mean_factors = factors.mean(axis=0)
    factors_centred = factors - mean_factors
    variance_factors = _factor_covariance(factors)

    gamma = returns_centred @ a_matrix.T
    gamma_true = a_matrix @ mean_returns
    phi_centred = (gamma - factors) - (gamma_true - mean_factors)

    fac_centred_var_fac_inv = spd_solve(
        variance_factors, factors_centred.T, name="factor covariance"
    ).T
    pricing_error = returns_centred @ (mean_returns - beta @ risk_premia)

    mean_term = gamma - gamma_true
    beta_term = phi_centred * (
        factors_centred @ spd_solve(variance_factors, gamma_true, name="factor covariance")
    )[:, None]
    error_term = (fac_centred_var_fac_inv * pricing_error[:, None]) @ h_matrix

    return mean_term - beta_term + error_term


def krs_influence_terms(
    risk_premia: NDArray[np.float64],
    returns: NDArray[np.float64],
    factors: NDArray[np.float64],
    beta: NDArray[np.float64],
    variance_returns: NDArray[np.float64],
    mean_returns: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Per-period influence terms of the KRS estimator.

    Built from the GLS projection ``A = (βᵀV⁻¹β)⁻¹ βᵀV⁻¹`` with ``V`` the
    return covariance, as ``term1 + term2 - term3 - term4``.
    """

    risk_premia, returns, factors, beta, variance_returns, mean_returns = _as_arrays(
        risk_premia, returns, factors, beta, variance_returns, mean_returns
    )
    _check_shapes(risk_premia, returns, factors, beta, mean_returns)
    n_assets = returns.shape[1]
    if variance_returns.shape != (n_assets, n_assets):
        raise DimensionError(
            f"variance_returns has shape {variance_returns.shape}; "
            f"expected ({n_assets}, {n_assets})."
        )

    var_ret_inv_beta = spd_solve(variance_returns, beta, name="return covariance")
    gram = beta.T @ var_ret_inv_beta
    a_matrix = spd_solve(gram, var_ret_inv_beta.T, name="weighted beta Gram matrix")

    returns_centred = returns - mean_returns
    factors_centred = factors - factors.mean(axis=0)

    var_ret_inv_mean_ret = spd_solve(variance_returns, mean_returns, name="return covariance")
    var_fac_inv = spd_inverse(_factor_covariance(factors), name="factor covariance")
    hkrs_var_fac_inv = spd_solve(gram, var_fac_inv, name="weighted beta Gram matrix")

    var_ret_inv_err = var_ret_inv_mean_ret - var_ret_inv_beta @ risk_premia
    weighted_error = (returns_centred @ var_ret_inv_err)[:, None]

    term1 = returns_centred @ a_matrix.T
    term2 = (factors_centred @ hkrs_var_fac_inv.T) * weighted_error
    term3 = term1 * weighted_error
    term4 = (term1 - factors_centred) * (
        factors_centred @ var_fac_inv @ a_matrix @ mean_returns
    )[:, None]

    return term1 + term2 - term3 - term4


def fm_standard_errors(
    risk_premia: NDArray[np.float64],
    returns: NDArray[np.float64],
    factors: NDArray[np.float64],
    beta: NDArray[np.float64],
    mean_returns: NDArray[np.float64],
    *,
    hac: HACStandardErrors | None = None,
) -> NDArray[np.float64]:
    """HAC standard errors of the Fama–MacBeth risk premia."""

    terms = fm_influence_terms(risk_premia, returns, factors, beta, mean_returns)
    return np.asarray((hac or hac_standard_errors)(terms), dtype=np.float64)


def krs_standard_errors(
    risk_premia: NDArray[np.float64],
    returns: NDArray[np.float64],
    factors: NDArray[np.float64],
    beta: NDArray[np.float64],
    variance_returns: NDArray[np.float64],
    mean_returns: NDArray[np.float64],
    *,
    hac: HACStandardErrors | None = None,
) -> NDArray[np.float64]:
    """HAC standard errors of the misspecification-robust risk premia."""

    terms = krs_influence_terms(
        risk_premia, returns, factors, beta, variance_returns, mean_returns
    )
    return np.asarray((hac or hac_standard_errors)(terms), dtype=np.float64)


def standard_errors(
    estimator: Estimator | str,
    risk_premia: NDArray[np.float64],
    returns: NDArray[np.float64],
    factors: NDArray[np.float64],
    beta: NDArray[np.float64],
    variance_returns: NDArray[np.float64],
    mean_returns: NDArray[np.float64],
    *,
    hac: HACStandardErrors | None = None,
) -> NDArray[np.float64]:
    """Dispatch to the standard errors matching ``estimator``."""

    if Estimator(estimator) is Estimator.FM:
        return fm_standard_errors(risk_premia, returns, factors, beta, mean_returns, hac=hac)
    return krs_standard_errors(
        risk_premia, returns, factors, beta, variance_returns, mean_returns, hac=hac
    )
