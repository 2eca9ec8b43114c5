"""
Exception types raised by the risk-premia estimators.
"""

from __future__ import annotations

import numpy as np

__all__ = ["FRPError", "DimensionError", "SingularMatrixError"]


class FRPError(Exception):
    """Base exception for factor risk premia estimation."""


class DimensionError(FRPError, ValueError):
    """Raised when panel or moment shapes are inconsistent.

    This includes:
    - returns and factors with different row counts
    - fewer observations than factors or assets
    - loadings, moments or weighting matrix with mismatched extents
    """


class SingularMatrixError(FRPError, np.linalg.LinAlgError):
    """Raised when a covariance or Gram matrix is not positive definite."""
