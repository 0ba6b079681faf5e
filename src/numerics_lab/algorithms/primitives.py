"""Vector and matrix primitives shared by every solver.

Thin, shape-checked wrappers over numpy. Inputs are validated into private
float64 copies, so results never alias caller-owned arrays.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from numerics_lab.data.validation import as_matrix, as_vector
from numerics_lab.exceptions import DimensionError, NumericalError

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray


def mat_vec(A: ArrayLike, v: ArrayLike) -> NDArray[np.float64]:
    """Matrix-vector product A @ v."""
    A = as_matrix(A)
    v = as_vector(v, "v", length=A.shape[1])
    return A @ v


def mat_mul(A: ArrayLike, B: ArrayLike) -> NDArray[np.float64]:
    """Matrix product A @ B."""
    A = as_matrix(A)
    B = as_matrix(B, "B")
    if A.shape[1] != B.shape[0]:
        raise DimensionError(
            f"Cannot multiply {A.shape[0]}x{A.shape[1]} by {B.shape[0]}x{B.shape[1]}"
        )
    return A @ B


def dot(u: ArrayLike, v: ArrayLike) -> float:
    """Inner product of two vectors of equal length."""
    u = as_vector(u, "u")
    v = as_vector(v, "v", length=u.size)
    return float(u @ v)


def vector_norm(v: ArrayLike) -> float:
    """Euclidean norm ||v||_2."""
    return float(np.linalg.norm(as_vector(v, "v")))


def normalize(v: ArrayLike) -> NDArray[np.float64]:
    """Return v / ||v||.

    Raises:
        NumericalError: If v is the zero vector.
    """
    v = as_vector(v, "v")
    norm = float(np.linalg.norm(v))
    if norm == 0.0:
        raise NumericalError("Cannot normalize the zero vector")
    return v / norm


def subtract(A: ArrayLike, B: ArrayLike) -> NDArray[np.float64]:
    """Element-wise difference A - B of two arrays with the same shape."""
    A = np.array(A, dtype=np.float64)
    B = np.array(B, dtype=np.float64)
    if A.shape != B.shape:
        raise DimensionError(f"Shape mismatch: {A.shape} vs {B.shape}")
    return A - B


def identity(n: int) -> NDArray[np.float64]:
    """n x n identity matrix."""
    if n < 1:
        raise DimensionError(f"Identity size must be positive, got {n}")
    return np.eye(n, dtype=np.float64)


def max_abs(v: ArrayLike) -> float:
    """Infinity norm max_i |v_i|."""
    return float(np.max(np.abs(np.asarray(v, dtype=np.float64))))


__all__ = [
    "mat_vec",
    "mat_mul",
    "dot",
    "vector_norm",
    "normalize",
    "subtract",
    "identity",
    "max_abs",
]
