"""
Input validation and working-copy construction.

Every public routine funnels its matrix and vector arguments through these
helpers. They always return a fresh float64 array, so the algorithms own
their working buffers and the caller's data is never aliased or mutated.

The helpers fail fast with DimensionError/ValidationError instead of
guessing what a malformed input was meant to be.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any

import numpy as np

from numerics_lab.exceptions import DimensionError, ValidationError

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray


def _to_float_array(array: ArrayLike, name: str) -> NDArray[np.float64]:
    try:
        result = np.array(array, dtype=np.float64, copy=True)
    except (ValueError, TypeError) as e:
        raise DimensionError(f"{name}: cannot convert to a numeric array: {e}") from e

    if not np.all(np.isfinite(result)):
        raise ValidationError(f"{name}: contains NaN or infinite values")
    return result


def as_matrix(array: ArrayLike, name: str = "A") -> NDArray[np.float64]:
    """
    Validate a matrix and return a private float64 copy.

    Args:
        array: Nested sequence or 2-D array.
        name: Parameter name for error messages.

    Returns:
        New 2-D float64 array owned by the caller of this function.

    Raises:
        DimensionError: If the input is ragged, empty or not 2-D.
        ValidationError: If the input contains NaN or infinity.
    """
    result = _to_float_array(array, name)
    if result.ndim != 2:
        raise DimensionError(f"{name}: expected a 2-D matrix, got {result.ndim}-D")
    if result.shape[0] == 0 or result.shape[1] == 0:
        raise DimensionError(f"{name}: matrix is empty (shape {result.shape})")
    return result


def as_square_matrix(array: ArrayLike, name: str = "A") -> NDArray[np.float64]:
    """Validate a square matrix and return a private float64 copy."""
    result = as_matrix(array, name)
    rows, cols = result.shape
    if rows != cols:
        raise DimensionError(f"{name}: expected a square matrix, got {rows}x{cols}")
    return result


def as_vector(
    array: ArrayLike,
    name: str = "b",
    *,
    length: int | None = None,
) -> NDArray[np.float64]:
    """
    Validate a vector and return a private float64 copy.

    Args:
        array: Sequence or 1-D array.
        name: Parameter name for error messages.
        length: Required length (the paired matrix dimension), if any.

    Raises:
        DimensionError: If the input is not 1-D, empty or of the wrong length.
        ValidationError: If the input contains NaN or infinity.
    """
    result = _to_float_array(array, name)
    if result.ndim != 1:
        raise DimensionError(f"{name}: expected a 1-D vector, got {result.ndim}-D")
    if result.size == 0:
        raise DimensionError(f"{name}: vector is empty")
    if length is not None and result.size != length:
        raise DimensionError(
            f"{name}: length {result.size} does not match dimension {length}"
        )
    return result


def as_finite_scalar(value: Any, name: str) -> float:
    """Validate a finite real number."""
    try:
        result = float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name}: expected a real number, got {value!r}") from e
    if not math.isfinite(result):
        raise ValidationError(f"{name}: must be finite, got {result}")
    return result


__all__ = [
    "as_matrix",
    "as_square_matrix",
    "as_vector",
    "as_finite_scalar",
]
