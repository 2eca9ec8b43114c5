"""
Backward elimination of factors with insignificant KRS risk premia.

Each step estimates KRS risk premia and standard errors on the retained
factors, and drops the factor with the smallest absolute t-statistic unless
it exceeds a Bonferroni critical value. The multiplicity used in the
critical value is the number of factors at the start of the search and does
not shrink as factors are removed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike, NDArray
from scipy.stats import norm

from .config import get_frp_settings
from .estimators import krs_frp
from .exceptions import DimensionError
from .hac import HACStandardErrors
from .loadings import beta_from_moments
from .moments import as_panel, compute_moments, validate_panels
from .standard_errors import krs_standard_errors

__all__ = [
    "SelectionState",
    "EliminationStep",
    "EliminationResult",
    "bonferroni_critical_value",
    "eliminate_factors",
    "iterative_krs_frp",
    "iterative_frp",
]

_LOGGER = logging.getLogger(__name__)


class SelectionState(str, Enum):
    ACTIVE = "active"
    STOPPED_SIGNIFICANT = "stopped_significant"
    STOPPED_EMPTY = "stopped_empty"


@dataclass(frozen=True)
class EliminationStep:
    """Estimates computed on ``kept`` and the factor removed afterwards."""

    kept: NDArray[np.int64]
    risk_premia: NDArray[np.float64]
    standard_errors: NDArray[np.float64]
    t_statistics: NDArray[np.float64]
    removed: int | None


@dataclass(frozen=True)
class EliminationResult:
    kept: NDArray[np.int64]
    state: SelectionState
    critical_value: float
    steps: tuple[EliminationStep, ...] = ()

    @property
    def is_empty(self) -> bool:
        return self.kept.size == 0


def bonferroni_critical_value(alpha: float, n_tests: int) -> float:
    """Two-sided standard normal quantile at ``1 - alpha / (2 n_tests)``."""

    if not 0.0 < alpha <= 1.0:
        raise ValueError("alpha must lie in (0, 1].")
    if n_tests <= 0:
        raise ValueError("n_tests must be positive.")
    return float(norm.ppf(1.0 - alpha / (2.0 * n_tests)))


def _check_inputs(
    returns: NDArray[np.float64],
    factors: NDArray[np.float64],
    beta: NDArray[np.float64],
    variance_returns: NDArray[np.float64],
    mean_returns: NDArray[np.float64],
    weighting_matrix: NDArray[np.float64],
) -> None:
    validate_panels(returns, factors)
    n_assets = returns.shape[1]
    n_factors = factors.shape[1]
    expected = {
        "beta": (beta.shape, (n_assets, n_factors)),
        "variance_returns": (variance_returns.shape, (n_assets, n_assets)),
        "mean_returns": (mean_returns.shape, (n_assets,)),
        "weighting_matrix": (weighting_matrix.shape, (n_assets, n_assets)),
    }
    for name, (actual, wanted) in expected.items():
        if actual != wanted:
            raise DimensionError(f"{name} has shape {actual}; expected {wanted}.")


def _project(
    factors: NDArray[np.float64],
    beta: NDArray[np.float64],
    kept: NDArray[np.int64],
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    # Fancy indexing copies, so every step works on fresh arrays.
    return factors[:, kept], beta[:, kept]


def eliminate_factors(
    returns: ArrayLike,
    factors: ArrayLike,
    beta: ArrayLike,
    variance_returns: ArrayLike,
    mean_returns: ArrayLike,
    weighting_matrix: ArrayLike,
    alpha: float,
    *,
    hac: HACStandardErrors | None = None,
) -> EliminationResult:
    """Run the backward elimination and record every step.

    The caller's arrays are never modified: each step projects the original
    factor panel and loadings onto the retained indices.
    Estimates are not refreshed once the search stops; re-estimate on
    ``result.kept`` when final premia are needed.
    """

    returns_arr = as_panel(returns, "returns")
    factors_arr = as_panel(factors, "factors")
    beta_arr = np.asarray(beta, dtype=np.float64)
    var_ret = np.asarray(variance_returns, dtype=np.float64)
    mean_ret = np.asarray(mean_returns, dtype=np.float64)
    weights = np.asarray(weighting_matrix, dtype=np.float64)
    _check_inputs(returns_arr, factors_arr, beta_arr, var_ret, mean_ret, weights)

    n_factors = factors_arr.shape[1]
    critical_value = bonferroni_critical_value(alpha, n_factors)
    _LOGGER.debug(
        "Backward elimination over %d factors, alpha=%.4g, critical value %.4f",
        n_factors,
        alpha,
        critical_value,
    )

    kept = np.arange(n_factors, dtype=np.int64)
    steps: list[EliminationStep] = []
    state = SelectionState.ACTIVE

    while state is SelectionState.ACTIVE:
        factors_k, beta_k = _project(factors_arr, beta_arr, kept)
        frp = krs_frp(beta_k, mean_ret, weights)
        se = krs_standard_errors(
            frp, returns_arr, factors_k, beta_k, var_ret, mean_ret, hac=hac
        )
        with np.errstate(divide="ignore", invalid="ignore"):
            t_statistics = frp / se
        # argmin keeps the first occurrence on ties
        weakest = int(np.argmin(np.abs(t_statistics)))

        if abs(t_statistics[weakest]) > critical_value:
            steps.append(EliminationStep(kept, frp, se, t_statistics, None))
            state = SelectionState.STOPPED_SIGNIFICANT
        else:
            removed = int(kept[weakest])
            steps.append(EliminationStep(kept, frp, se, t_statistics, removed))
            _LOGGER.debug(
                "Removing factor %d with |t|=%.4f <= %.4f",
                removed,
                abs(t_statistics[weakest]),
                critical_value,
            )
            kept = np.delete(kept, weakest)
            if kept.size == 0:
                state = SelectionState.STOPPED_EMPTY

    _LOGGER.info(
        "Backward elimination stopped (%s) with %d of %d factors retained",
        state.value,
        kept.size,
        n_factors,
    )
    return EliminationResult(
        kept=kept.copy(),
        state=state,
        critical_value=critical_value,
        steps=tuple(steps),
    )


def iterative_krs_frp(
    returns: ArrayLike,
    factors: ArrayLike,
    beta: ArrayLike,
    variance_returns: ArrayLike,
    mean_returns: ArrayLike,
    weighting_matrix: ArrayLike,
    alpha: float,
    *,
    hac: HACStandardErrors | None = None,
) -> NDArray[np.int64]:
    """Indices of the factors surviving backward elimination.

    An empty array means no factor is priced at the chosen level.
    """

    return eliminate_factors(
        returns,
        factors,
        beta,
        variance_returns,
        mean_returns,
        weighting_matrix,
        alpha,
        hac=hac,
    ).kept


def iterative_frp(
    returns: ArrayLike | pd.DataFrame,
    factors: ArrayLike | pd.DataFrame,
    *,
    alpha: float | None = None,
    weighting_matrix: ArrayLike | None = None,
    hac: HACStandardErrors | None = None,
) -> EliminationResult:
    """Backward elimination starting from raw panels.

    Moments and loadings are computed from the panels; the weighting matrix
    defaults to the return covariance and ``alpha`` to the configured level.
    """

    returns_arr = as_panel(returns, "returns")
    factors_arr = as_panel(factors, "factors")
    moments = compute_moments(returns_arr, factors_arr)
    beta = beta_from_moments(moments)
    if alpha is None:
        alpha = get_frp_settings().alpha
    weights = moments.variance_returns if weighting_matrix is None else weighting_matrix
    return eliminate_factors(
        returns_arr,
        factors_arr,
        beta,
        moments.variance_returns,
        moments.mean_returns,
        weights,
        alpha,
        hac=hac,
    )
