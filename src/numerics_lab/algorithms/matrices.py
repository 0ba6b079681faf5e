"""Matrix generation utilities for solver experiments.

This module provides the classroom default system and reproducible random
matrices with known properties, for exercising the solvers and checking
their results against a ground truth.

Key Features:
- Reproducible matrix generation with seed control
- Strictly diagonally dominant systems (Jacobi/Gauss-Seidel converge)
- Symmetric matrices with a prescribed spectrum (power method, QR algorithm)
- Linear systems with a known exact solution

References:
- Golub & Van Loan: "Matrix Computations" (4th ed.), Section 7.3
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from numerics_lab.data.validation import as_vector
from numerics_lab.exceptions import DimensionError

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray


DEFAULT_SEED: int = 42
"""Default random seed for reproducible experiments."""

_DEFAULT_A = ((4.0, -1.0, 1.0), (4.0, -8.0, 1.0), (-2.0, 1.0, 5.0))
_DEFAULT_B = (7.0, -21.0, 15.0)
_DEFAULT_SOLUTION = (2.0, 4.0, 3.0)


@dataclass(frozen=True, slots=True)
class LinearSystem:
    """Container for a linear system with its exact solution."""

    matrix: NDArray[np.float64]
    """The n×n coefficient matrix."""

    rhs: NDArray[np.float64]
    """Right-hand side b = A @ solution."""

    solution: NDArray[np.float64]
    """Exact solution (ground truth)."""

    seed: int | None
    """Random seed used for generation (None for fixed systems)."""


def default_system() -> LinearSystem:
    """The classroom 3×3 system with solution [2, 4, 3].

    A = [[4, -1, 1], [4, -8, 1], [-2, 1, 5]], b = [7, -21, 15].
    Strictly diagonally dominant. Fresh arrays are returned on every call.
    """
    return LinearSystem(
        matrix=np.array(_DEFAULT_A),
        rhs=np.array(_DEFAULT_B),
        solution=np.array(_DEFAULT_SOLUTION),
        seed=None,
    )


def create_diagonally_dominant_matrix(
    n: int,
    *,
    margin: float = 1.0,
    seed: int | None = DEFAULT_SEED,
) -> NDArray[np.float64]:
    """Create a strictly row diagonally dominant matrix.

    Off-diagonal entries are uniform in [-1, 1]; each diagonal entry is
    ± (row off-diagonal sum + margin) with a random sign.

    Args:
        n: Matrix dimension.
        margin: Amount by which |A[i][i]| exceeds the off-diagonal row sum.
        seed: Random seed for reproducibility.

    Example:
        >>> A = create_diagonally_dominant_matrix(5, seed=42)
        >>> from numerics_lab.algorithms.iterative import is_diagonally_dominant
        >>> is_diagonally_dominant(A)
        True
    """
    if n < 1:
        raise DimensionError(f"Matrix dimension must be positive, got {n}")
    if margin <= 0:
        raise ValueError(f"margin must be positive, got {margin}")

    rng = np.random.default_rng(seed)
    A = rng.uniform(-1.0, 1.0, size=(n, n))
    np.fill_diagonal(A, 0.0)
    row_sums = np.abs(A).sum(axis=1)
    signs = rng.choice((-1.0, 1.0), size=n)
    A[np.diag_indices(n)] = signs * (row_sums + margin)
    return A


def create_known_spectrum_matrix(
    eigenvalues: ArrayLike,
    *,
    seed: int | None = DEFAULT_SEED,
) -> NDArray[np.float64]:
    """Create a symmetric matrix with the given eigenvalues.

    Mathematical Construction:
        A = Q @ diag(λ) @ Q^T  where Q is random orthogonal

    Args:
        eigenvalues: Desired spectrum.
        seed: Random seed for reproducibility.

    Example:
        >>> A = create_known_spectrum_matrix([5.0, 2.0, 1.0], seed=42)
        >>> np.sort(np.linalg.eigvalsh(A))[::-1].round(10)
        array([5., 2., 1.])
    """
    eigenvalues = as_vector(eigenvalues, "eigenvalues")
    n = eigenvalues.size
    rng = np.random.default_rng(seed)

    # Random orthogonal matrix via QR decomposition
    Q, _ = np.linalg.qr(rng.standard_normal((n, n)))

    A = Q @ np.diag(eigenvalues) @ Q.T
    return (A + A.T) / 2.0


def create_linear_system(
    n: int,
    *,
    seed: int | None = DEFAULT_SEED,
    diagonally_dominant: bool = True,
) -> LinearSystem:
    """Create a random n×n system A x = b with known solution x.

    Args:
        n: Matrix dimension.
        seed: Random seed for reproducibility.
        diagonally_dominant: Make A strictly diagonally dominant so the
            iterative solvers converge; otherwise A is a dense Gaussian matrix.
    """
    rng = np.random.default_rng(seed)
    if diagonally_dominant:
        A = create_diagonally_dominant_matrix(n, seed=seed)
    else:
        if n < 1:
            raise DimensionError(f"Matrix dimension must be positive, got {n}")
        A = rng.standard_normal((n, n))

    solution = rng.uniform(-5.0, 5.0, size=n)
    return LinearSystem(matrix=A, rhs=A @ solution, solution=solution, seed=seed)


__all__ = [
    "DEFAULT_SEED",
    "LinearSystem",
    "default_system",
    "create_diagonally_dominant_matrix",
    "create_known_spectrum_matrix",
    "create_linear_system",
]
