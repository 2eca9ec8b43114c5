from __future__ import annotations

import numpy as np
import pytest

from frp.config import FRPSettings, override_frp_settings
from frp.exceptions import SingularMatrixError
from frp.linalg import spd_inverse, spd_solve

pytestmark = pytest.mark.unit


def _spd(size: int, seed: int = 7) -> np.ndarray:
    rng = np.random.default_rng(seed)
    root = rng.normal(size=(size, size))
    return root @ root.T + size * np.eye(size)


def test_spd_solve_matches_dense_solve() -> None:
    matrix = _spd(5)
    rhs = np.random.default_rng(1).normal(size=(5, 3))
    assert np.allclose(spd_solve(matrix, rhs), np.linalg.solve(matrix, rhs), atol=1e-12)
    assert np.allclose(spd_inverse(matrix) @ matrix, np.eye(5), atol=1e-10)


def test_spd_solve_rejects_indefinite_and_duplicated_rows() -> None:
    with pytest.raises(SingularMatrixError):
        spd_solve(np.diag([1.0, -1.0]), np.ones(2))

    matrix = _spd(4)
    matrix[1, :] = matrix[0, :]
    matrix[:, 1] = matrix[:, 0]
    with pytest.raises(SingularMatrixError):
        spd_solve(matrix, np.ones(4))
    # Callers catching numpy's error type keep working.
    with pytest.raises(np.linalg.LinAlgError):
        spd_inverse(matrix)


def test_singular_tolerance_is_configurable() -> None:
    rho = 1.0 - 1e-7
    matrix = np.array([[1.0, rho], [rho, 1.0]])
    override_frp_settings(FRPSettings(singular_tolerance=1e-6))
    with pytest.raises(SingularMatrixError):
        spd_solve(matrix, np.ones(2))
    override_frp_settings(FRPSettings(singular_tolerance=1e-12))
    assert np.allclose(spd_solve(matrix, np.ones(2)), np.full(2, 1.0 / (1.0 + rho)))


def test_singularity_check_ignores_units() -> None:
    matrix = _spd(3)
    # Power-of-two scales keep the rescaled problem exact in floating point.
    scale = np.array([1.0, 2.0**24, 2.0**-20])
    rescaled = matrix * np.outer(scale, scale)
    rhs = np.random.default_rng(2).normal(size=3)

    expected = np.linalg.solve(matrix, rhs / scale) / scale
    assert np.allclose(spd_solve(rescaled, rhs), expected, rtol=1e-8, atol=0.0)
    expected_inverse = np.linalg.inv(matrix) / np.outer(scale, scale)
    assert np.allclose(spd_inverse(rescaled), expected_inverse, rtol=1e-8, atol=0.0)
