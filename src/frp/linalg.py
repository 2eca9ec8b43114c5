from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from scipy.linalg import cho_factor, cho_solve

from .config import get_frp_settings
from .exceptions import DimensionError, SingularMatrixError

__all__ = ["spd_solve", "spd_inverse"]


def _cholesky(matrix: NDArray[np.float64], name: str) -> tuple[NDArray[np.float64], bool]:
    arr = np.atleast_2d(np.asarray(matrix, dtype=np.float64))
    if arr.ndim != 2 or arr.shape[0] != arr.shape[1]:
        raise DimensionError(f"{name} must be a square matrix.")
    if arr.shape[0] == 0:
        raise DimensionError(f"{name} is empty.")
    try:
        factor = cho_factor(arr, lower=True, check_finite=True)
    except np.linalg.LinAlgError as exc:
        raise SingularMatrixError(f"{name} is not positive definite.") from exc

    # Singular PSD inputs can round to a tiny positive pivot. Pivots are
    # measured on the correlation scale D^-1/2 M D^-1/2 so units cancel.
    scale = np.sqrt(np.diag(arr))
    diag = np.abs(np.diag(factor[0])) / scale
    ratio = (float(diag.min()) / float(diag.max())) ** 2 if diag.max() > 0.0 else 0.0
    if ratio < get_frp_settings().singular_tolerance:
        raise SingularMatrixError(
            f"{name} is numerically singular (pivot ratio {ratio:.3e})."
        )
    return factor


def spd_solve(
    matrix: NDArray[np.float64],
    rhs: NDArray[np.float64],
    *,
    name: str = "matrix",
) -> NDArray[np.float64]:
    """Solve ``matrix @ x = rhs`` for a symmetric positive-definite ``matrix``.

    Raises
    ------
    SingularMatrixError
        If the Cholesky decomposition fails or is numerically singular.
    """

    factor = _cholesky(matrix, name)
    return np.asarray(cho_solve(factor, np.asarray(rhs, dtype=np.float64)), dtype=np.float64)


def spd_inverse(matrix: NDArray[np.float64], *, name: str = "matrix") -> NDArray[np.float64]:
    """Invert a symmetric positive-definite matrix via its Cholesky factor."""

    factor = _cholesky(matrix, name)
    inverse = cho_solve(factor, np.eye(factor[0].shape[0], dtype=np.float64))
    return np.asarray(0.5 * (inverse + inverse.T), dtype=np.float64)
