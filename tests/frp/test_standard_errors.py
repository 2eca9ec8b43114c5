from __future__ import annotations

import numpy as np
import pytest

from frp.estimators import fm_frp, krs_frp
from frp.exceptions import DimensionError
from frp.loadings import beta_from_moments
from frp.moments import compute_moments
from frp.premia import estimate_frp
from frp.standard_errors import (
    fm_influence_terms,
    fm_standard_errors,
    krs_influence_terms,
    krs_standard_errors,
    standard_errors,
)

pytestmark = pytest.mark.unit

BETA_TRUE = np.array(
    [[1.0, 0.2], [0.8, -0.5], [1.2, 0.6], [0.3, 1.1], [-0.4, 0.9]],
)


def _simulate(
    periods: int, premia: np.ndarray, noise: float = 0.5, seed: int = 0
) -> tuple[np.ndarray, np.ndarray]:
    rng = np.random.default_rng(seed)
    factors = rng.normal(size=(periods, BETA_TRUE.shape[1]))
    returns = (factors + premia) @ BETA_TRUE.T + noise * rng.normal(
        size=(periods, BETA_TRUE.shape[0])
    )
    return returns, factors


def _inputs(periods: int = 240, seed: int = 0):  # type: ignore[no-untyped-def]
    returns, factors = _simulate(periods, np.array([0.5, -0.3]), seed=seed)
    moments = compute_moments(returns, factors)
    beta = beta_from_moments(moments)
    return returns, factors, beta, moments


def _sample_std_hac(terms: np.ndarray) -> np.ndarray:
    return np.std(terms, axis=0, ddof=1) / np.sqrt(terms.shape[0])


@pytest.mark.parametrize("seed", [0, 1, 2])
def test_standard_errors_are_non_negative(seed: int) -> None:
    returns, factors, beta, moments = _inputs(seed=seed)
    fm = fm_frp(beta, moments.mean_returns)
    krs = krs_frp(beta, moments.mean_returns, moments.variance_returns)

    fm_se = fm_standard_errors(fm, returns, factors, beta, moments.mean_returns)
    krs_se = krs_standard_errors(
        krs, returns, factors, beta, moments.variance_returns, moments.mean_returns
    )
    for se in (fm_se, krs_se):
        assert se.shape == (2,)
        assert np.all(np.isfinite(se))
        assert np.all(se >= 0.0)


def test_influence_terms_are_fed_to_injected_hac() -> None:
    returns, factors, beta, moments = _inputs()
    fm = fm_frp(beta, moments.mean_returns)
    krs = krs_frp(beta, moments.mean_returns, moments.variance_returns)

    fm_terms = fm_influence_terms(fm, returns, factors, beta, moments.mean_returns)
    krs_terms = krs_influence_terms(
        krs, returns, factors, beta, moments.variance_returns, moments.mean_returns
    )
    assert fm_terms.shape == krs_terms.shape == (returns.shape[0], 2)

    fm_se = fm_standard_errors(
        fm, returns, factors, beta, moments.mean_returns, hac=_sample_std_hac
    )
    krs_se = krs_standard_errors(
        krs,
        returns,
        factors,
        beta,
        moments.variance_returns,
        moments.mean_returns,
        hac=_sample_std_hac,
    )
    assert np.allclose(fm_se, _sample_std_hac(fm_terms))
    assert np.allclose(krs_se, _sample_std_hac(krs_terms))


def test_fm_standard_errors_track_analytic_value() -> None:
    periods = 2000
    returns, factors, beta, moments = _inputs(periods=periods, seed=3)
    fm = fm_frp(beta, moments.mean_returns)
    se = fm_standard_errors(fm, returns, factors, beta, moments.mean_returns)

    gram_inv_diag = np.diag(np.linalg.inv(BETA_TRUE.T @ BETA_TRUE))
    analytic = np.sqrt((1.0 + 0.25 * gram_inv_diag) / periods)
    assert np.all(se / analytic > 0.8)
    assert np.all(se / analytic < 1.4)


def test_dispatcher_matches_direct_calls() -> None:
    returns, factors, beta, moments = _inputs()
    fm = fm_frp(beta, moments.mean_returns)
    krs = krs_frp(beta, moments.mean_returns, moments.variance_returns)
    args = (returns, factors, beta, moments.variance_returns, moments.mean_returns)

    assert np.array_equal(
        standard_errors("fm", fm, *args),
        fm_standard_errors(fm, returns, factors, beta, moments.mean_returns),
    )
    assert np.array_equal(
        standard_errors("krs", krs, *args),
        krs_standard_errors(krs, *args),
    )


def test_influence_terms_validate_shapes() -> None:
    returns, factors, beta, moments = _inputs()
    with pytest.raises(DimensionError):
        fm_influence_terms(np.zeros(3), returns, factors, beta, moments.mean_returns)
    with pytest.raises(DimensionError):
        krs_influence_terms(
            np.zeros(2), returns, factors, beta[:, :1], moments.variance_returns, moments.mean_returns
        )


def test_krs_standard_errors_track_analytic_value() -> None:
    periods = 2000
    premia = np.array([0.5, -0.3])
    returns, factors, beta, moments = _inputs(periods=periods, seed=4)
    krs = krs_frp(beta, moments.mean_returns, moments.variance_returns)
    se = krs_standard_errors(
        krs, returns, factors, beta, moments.variance_returns, moments.mean_returns
    )

    # Shanken: V_f + (1 + γ'V_f⁻¹γ)(β'Σ⁻¹β)⁻¹ with V_f = I and Σ = 0.25 I
    gram_inv_diag = np.diag(np.linalg.inv(BETA_TRUE.T @ BETA_TRUE))
    analytic = np.sqrt((1.0 + (1.0 + premia @ premia) * 0.25 * gram_inv_diag) / periods)
    assert np.all(se / analytic > 0.85)
    assert np.all(se / analytic < 1.2)


def test_krs_standard_errors_match_monte_carlo_under_misspecification() -> None:
    periods, replications = 600, 300
    loadings = np.linspace(0.5, 1.5, 6)
    alternating = np.tile([1.0, -1.0], 3)
    # Pricing errors orthogonal to the loadings, so no premium can absorb them.
    pricing_error = alternating - loadings * (loadings @ alternating) / (loadings @ loadings)
    pricing_error *= 0.35 / np.linalg.norm(pricing_error)

    rng = np.random.default_rng(31)
    estimates = np.empty(replications)
    errors = np.empty(replications)
    for rep in range(replications):
        factor = rng.normal(size=(periods, 1))
        returns = (
            (factor + 0.5) * loadings
            + pricing_error
            + 0.5 * rng.normal(size=(periods, loadings.size))
        )
        result = estimate_frp(
            returns, factor, misspecification_robust=True, include_standard_errors=True
        )
        estimates[rep] = result.risk_premia[0]
        errors[rep] = result.standard_errors[0]

    assert abs(float(np.mean(estimates)) - 0.5) < 0.05
    ratio = float(np.mean(errors)) / float(np.std(estimates, ddof=1))
    assert 0.8 < ratio < 1.25
