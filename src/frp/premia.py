"""
Single-shot factor risk premia estimation from return and factor panels.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike, NDArray

from .config import get_frp_settings
from .estimators import Estimator, risk_premia
from .hac import HACStandardErrors
from .loadings import beta_from_moments
from .moments import as_panel, compute_moments, factor_labels
from .standard_errors import standard_errors

__all__ = ["FRPResult", "estimate_frp"]

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class FRPResult:
    """Risk premia and, when requested, their standard errors."""

    risk_premia: NDArray[np.float64]
    standard_errors: NDArray[np.float64] | None = None
    estimator: Estimator = Estimator.FM
    factor_names: tuple[str, ...] | None = None

    @property
    def n_factors(self) -> int:
        return int(self.risk_premia.size)

    @property
    def t_statistics(self) -> NDArray[np.float64] | None:
        if self.standard_errors is None:
            return None
        with np.errstate(divide="ignore", invalid="ignore"):
            return self.risk_premia / self.standard_errors

    def to_frame(self) -> pd.DataFrame:
        index = (
            pd.Index(self.factor_names, name="factor")
            if self.factor_names is not None
            else pd.RangeIndex(self.n_factors, name="factor")
        )
        data: dict[str, NDArray[np.float64]] = {"risk_premia": self.risk_premia}
        if self.standard_errors is not None:
            data["standard_errors"] = self.standard_errors
            data["t_statistics"] = self.t_statistics  # type: ignore[assignment]
        return pd.DataFrame(data, index=index)


def estimate_frp(
    returns: ArrayLike | pd.DataFrame,
    factors: ArrayLike | pd.DataFrame,
    *,
    misspecification_robust: bool | None = None,
    include_standard_errors: bool = False,
    hac: HACStandardErrors | None = None,
) -> FRPResult:
    """Estimate factor risk premia from a balanced panel.

    Parameters
    ----------
    returns
        Asset returns shaped ``(n_periods, n_assets)``.
    factors
        Factor realisations shaped ``(n_periods, n_factors)``.
    misspecification_robust
        Use the KRS GLS estimator weighted by the return covariance instead
        of the Fama–MacBeth OLS estimator. ``None`` uses the configured default.
    include_standard_errors
        Also compute HAC standard errors of the estimates.
    hac
        Optional replacement for :func:`frp.hac.hac_standard_errors`.

    Returns
    -------
    FRPResult
        Risk premia (and standard errors) labelled with the factor names when
        ``factors`` is a DataFrame.
    """

    returns_arr = as_panel(returns, "returns")
    factors_arr = as_panel(factors, "factors")
    moments = compute_moments(returns_arr, factors_arr)
    if misspecification_robust is None:
        misspecification_robust = get_frp_settings().misspecification_robust
    estimator = Estimator.from_flag(misspecification_robust)
    _LOGGER.debug(
        "Estimating %s risk premia on T=%d, N=%d, K=%d",
        estimator.value,
        returns_arr.shape[0],
        moments.n_assets,
        moments.n_factors,
    )

    beta = beta_from_moments(moments)
    frp = risk_premia(estimator, beta, moments.mean_returns, moments.variance_returns)

    se = None
    if include_standard_errors:
        se = standard_errors(
            estimator,
            frp,
            returns_arr,
            factors_arr,
            beta,
            moments.variance_returns,
            moments.mean_returns,
            hac=hac,
        )

    return FRPResult(
        risk_premia=frp,
        standard_errors=se,
        estimator=estimator,
        factor_names=factor_labels(factors),
    )
