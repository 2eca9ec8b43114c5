from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from .linalg import spd_solve
from .moments import PanelMoments

__all__ = ["estimate_beta", "beta_from_moments"]


def estimate_beta(
    variance_factors: NDArray[np.float64],
    covariance_factors_returns: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Factor loadings ``Σ_f⁻¹ Σ_fr`` transposed to ``(n_assets, n_factors)``.

    Equivalent to time-series OLS of each asset on the factors with an
    intercept, expressed through the panel moments.
    """

    return spd_solve(
        variance_factors,
        covariance_factors_returns,
        name="factor covariance",
    ).T


def beta_from_moments(moments: PanelMoments) -> NDArray[np.float64]:
    return estimate_beta(moments.variance_factors, moments.covariance_factors_returns)
