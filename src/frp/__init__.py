from __future__ import annotations

from .config import FRPSettings, get_frp_settings, load_frp_settings, override_frp_settings
from .elimination import (
    EliminationResult,
    EliminationStep,
    SelectionState,
    bonferroni_critical_value,
    eliminate_factors,
    iterative_frp,
    iterative_krs_frp,
)
from .estimators import Estimator, fm_frp, krs_frp, risk_premia
from .exceptions import DimensionError, FRPError, SingularMatrixError
from .hac import hac_standard_errors, newey_west_lags
from .loadings import beta_from_moments, estimate_beta
from .moments import PanelMoments, compute_moments
from .premia import FRPResult, estimate_frp
from .standard_errors import (
    fm_influence_terms,
    fm_standard_errors,
    krs_influence_terms,
    krs_standard_errors,
    standard_errors,
)

__all__ = [
    "FRPSettings",
    "get_frp_settings",
    "load_frp_settings",
    "override_frp_settings",
    "EliminationResult",
    "EliminationStep",
    "SelectionState",
    "bonferroni_critical_value",
    "eliminate_factors",
    "iterative_frp",
    "iterative_krs_frp",
    "Estimator",
    "fm_frp",
    "krs_frp",
    "risk_premia",
    "DimensionError",
    "FRPError",
    "SingularMatrixError",
    "hac_standard_errors",
    "newey_west_lags",
    "beta_from_moments",
    "estimate_beta",
    "PanelMoments",
    "compute_moments",
    "FRPResult",
    "estimate_frp",
    "fm_influence_terms",
    "fm_standard_errors",
    "krs_influence_terms",
    "krs_standard_errors",
    "standard_errors",
]
