"""Direct solvers for dense linear systems.

Implements the classical elimination family:
- Gaussian elimination with partial pivoting, with a replayable step log
- Doolittle LU decomposition (no pivoting) with per-column snapshots
- Gauss-Jordan inversion on the augmented matrix [A | I]
- QR factorization by modified Gram-Schmidt

All routines work on private copies of their inputs. Snapshots stored in
step records are read-only arrays, so a recorded step cannot be altered after
it has been appended.

References:
- Burden & Faires: "Numerical Analysis" (10th ed.), §6.1-6.5
- Golub & Van Loan: "Matrix Computations" (4th ed.), §3.2, §5.2.8
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from numerics_lab.algorithms.primitives import identity
from numerics_lab.data.tolerances import Tolerance, resolve_tolerance
from numerics_lab.data.validation import as_matrix, as_square_matrix, as_vector
from numerics_lab.exceptions import (
    DimensionError,
    RankDeficientError,
    SingularMatrixError,
    ZeroPivotError,
)

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray

logger = logging.getLogger(__name__)


def _snapshot(array: NDArray[np.float64]) -> NDArray[np.float64]:
    """Read-only copy of a working buffer."""
    frozen = array.copy()
    frozen.flags.writeable = False
    return frozen


@dataclass(frozen=True, slots=True)
class GaussStep:
    """One observable operation of Gaussian elimination."""

    matrix: NDArray[np.float64]
    """Coefficient matrix after the operation."""

    vector: NDArray[np.float64]
    """Right-hand side after the operation."""

    description: str
    """Human-readable summary, e.g. 'R2 = R2 - (1)·R1'."""

    pivot_row: int | None = None
    """Row holding the pivot (0-based)."""

    target_row: int | None = None
    """Row being modified or swapped in (0-based)."""

    multiplier: float | None = None
    """Row multiplier m = A[target][col] / A[pivot][col]."""


@dataclass(frozen=True, slots=True)
class GaussResult:
    """Solution of A x = b together with the elimination log."""

    solution: NDArray[np.float64]
    steps: tuple[GaussStep, ...]


@dataclass(frozen=True, slots=True)
class LUStep:
    """Snapshot of the evolving (L, U) pair."""

    L: NDArray[np.float64]
    U: NDArray[np.float64]
    description: str
    step: int
    """0 for the initial state, k after eliminating column k."""


@dataclass(frozen=True, slots=True)
class LUResult:
    """Doolittle factorization A = L @ U."""

    L: NDArray[np.float64]
    """Unit lower-triangular factor."""

    U: NDArray[np.float64]
    """Upper-triangular factor."""

    steps: tuple[LUStep, ...]

    def reconstruct(self) -> NDArray[np.float64]:
        """Return L @ U."""
        return self.L @ self.U


@dataclass(frozen=True, slots=True)
class QRResult:
    """Factorization A = Q @ R."""

    Q: NDArray[np.float64]
    """Matrix with orthonormal columns (m x n)."""

    R: NDArray[np.float64]
    """Upper-triangular factor with positive diagonal (n x n)."""

    def reconstruct(self) -> NDArray[np.float64]:
        """Return Q @ R."""
        return self.Q @ self.R


# =============================================================================
# SUBSTITUTION
# =============================================================================


def _back_substitute(
    U: NDArray[np.float64], y: NDArray[np.float64]
) -> NDArray[np.float64]:
    n = U.shape[0]
    x = np.zeros(n, dtype=np.float64)
    for i in range(n - 1, -1, -1):
        x[i] = (y[i] - U[i, i + 1 :] @ x[i + 1 :]) / U[i, i]
    return x


def back_substitution(
    U: ArrayLike,
    y: ArrayLike,
    *,
    pivot_tol: float | None = None,
) -> NDArray[np.float64]:
    """Solve U x = y for upper-triangular U.

    Raises:
        SingularMatrixError: If a diagonal entry is below the pivot tolerance.
    """
    U = as_square_matrix(U, "U")
    y = as_vector(y, "y", length=U.shape[0])
    tol = resolve_tolerance(pivot_tol, Tolerance.PIVOT)

    diagonal = np.abs(np.diag(U))
    if np.any(diagonal < tol):
        i = int(np.argmin(diagonal))
        raise SingularMatrixError(
            f"Triangular matrix is singular: |U[{i}][{i}]| = {diagonal[i]:.3e}",
            pivot_index=i,
            pivot_value=float(diagonal[i]),
            tolerance=tol,
        )
    return _back_substitute(U, y)


def forward_substitution(
    L: ArrayLike,
    b: ArrayLike,
    *,
    unit_diagonal: bool = True,
    pivot_tol: float | None = None,
) -> NDArray[np.float64]:
    """Solve L y = b for lower-triangular L.

    Args:
        L: Lower-triangular matrix.
        b: Right-hand side.
        unit_diagonal: Treat the diagonal as ones (Doolittle L).
        pivot_tol: Smallest accepted diagonal magnitude when not unit.
    """
    L = as_square_matrix(L, "L")
    b = as_vector(b, "b", length=L.shape[0])
    n = L.shape[0]
    tol = resolve_tolerance(pivot_tol, Tolerance.PIVOT)

    y = np.zeros(n, dtype=np.float64)
    for i in range(n):
        acc = b[i] - L[i, :i] @ y[:i]
        if unit_diagonal:
            y[i] = acc
            continue
        if abs(L[i, i]) < tol:
            raise SingularMatrixError(
                f"Triangular matrix is singular: |L[{i}][{i}]| = {abs(L[i, i]):.3e}",
                pivot_index=i,
                pivot_value=float(abs(L[i, i])),
                tolerance=tol,
            )
        y[i] = acc / L[i, i]
    return y


# =============================================================================
# GAUSSIAN ELIMINATION
# =============================================================================


def gaussian_elimination(
    A: ArrayLike,
    b: ArrayLike,
    *,
    pivot_tol: float | None = None,
) -> GaussResult:
    """Solve A x = b by Gaussian elimination with partial pivoting.

    Algorithm:
        For each column i, pick the row k >= i maximizing |A[k][i]| (the
        lowest such row on ties), swap it into place, then eliminate every
        entry below the pivot. Back-substitute on the triangular system.

    Args:
        A: Square coefficient matrix (not modified).
        b: Right-hand side (not modified).
        pivot_tol: Smallest accepted pivot magnitude (default 1e-10).

    Returns:
        GaussResult with the solution and one GaussStep per operation.

    Raises:
        SingularMatrixError: If the best pivot in some column is below
            the tolerance. The call is not retried.

    Example:
        >>> result = gaussian_elimination([[2, 1], [1, 3]], [3, 5])
        >>> result.solution
        array([0.8, 1.4])
    """
    A = as_square_matrix(A)
    b = as_vector(b, "b", length=A.shape[0])
    n = A.shape[0]
    tol = resolve_tolerance(pivot_tol, Tolerance.PIVOT)

    steps: list[GaussStep] = [
        GaussStep(_snapshot(A), _snapshot(b), "Initial augmented system [A | b]")
    ]

    for i in range(n):
        pivot_row = i + int(np.argmax(np.abs(A[i:, i])))
        pivot_value = abs(A[pivot_row, i])

        if pivot_value < tol:
            logger.debug("Singular pivot %.3e in column %d", pivot_value, i)
            raise SingularMatrixError(
                f"Matrix is singular: best pivot in column {i + 1} has magnitude "
                f"{pivot_value:.3e} < {tol:.0e}",
                pivot_index=i,
                pivot_value=float(pivot_value),
                tolerance=tol,
            )

        if pivot_row != i:
            A[[i, pivot_row]] = A[[pivot_row, i]]
            b[[i, pivot_row]] = b[[pivot_row, i]]
            logger.debug("Swapped rows %d and %d", i, pivot_row)
            steps.append(
                GaussStep(
                    _snapshot(A),
                    _snapshot(b),
                    f"Swap R{i + 1} and R{pivot_row + 1}",
                    pivot_row=i,
                    target_row=pivot_row,
                )
            )

        for k in range(i + 1, n):
            factor = A[k, i] / A[i, i]
            if factor == 0.0:
                continue
            A[k, i:] -= factor * A[i, i:]
            A[k, i] = 0.0
            b[k] -= factor * b[i]
            steps.append(
                GaussStep(
                    _snapshot(A),
                    _snapshot(b),
                    f"R{k + 1} = R{k + 1} - ({factor:.4g})·R{i + 1}",
                    pivot_row=i,
                    target_row=k,
                    multiplier=float(factor),
                )
            )

    solution = _back_substitute(A, b)
    solution.flags.writeable = False
    return GaussResult(solution=solution, steps=tuple(steps))


def solve(
    A: ArrayLike,
    b: ArrayLike,
    *,
    pivot_tol: float | None = None,
) -> NDArray[np.float64]:
    """Solve A x = b and return x (see gaussian_elimination)."""
    return gaussian_elimination(A, b, pivot_tol=pivot_tol).solution.copy()


# =============================================================================
# LU DECOMPOSITION
# =============================================================================


def lu_decomposition(
    A: ArrayLike,
    *,
    pivot_tol: float | None = None,
) -> LUResult:
    """Doolittle LU decomposition without pivoting.

    Multipliers of the elimination are stored below the diagonal of L,
    which has a unit diagonal. Callers that need stability must permute
    rows before calling.

    Raises:
        ZeroPivotError: If a diagonal pivot of U is below the tolerance.
    """
    U = as_square_matrix(A)
    n = U.shape[0]
    L = identity(n)
    tol = resolve_tolerance(pivot_tol, Tolerance.PIVOT)

    steps: list[LUStep] = [
        LUStep(_snapshot(L), _snapshot(U), "Start: L = I, U = A", step=0)
    ]

    for i in range(n):
        pivot = U[i, i]
        if abs(pivot) < tol:
            raise ZeroPivotError(
                f"Zero pivot at U[{i}][{i}] = {pivot:.3e}; "
                "LU without pivoting cannot continue (reorder the rows)",
                pivot_index=i,
                pivot_value=float(abs(pivot)),
                tolerance=tol,
            )
        if i == n - 1:
            break

        for k in range(i + 1, n):
            factor = U[k, i] / pivot
            L[k, i] = factor
            U[k, i:] -= factor * U[i, i:]
            U[k, i] = 0.0

        steps.append(
            LUStep(
                _snapshot(L),
                _snapshot(U),
                f"Eliminate below pivot U[{i + 1}][{i + 1}]",
                step=i + 1,
            )
        )

    return LUResult(L=_snapshot(L), U=_snapshot(U), steps=tuple(steps))


def lu_solve(lu: LUResult, b: ArrayLike) -> NDArray[np.float64]:
    """Solve A x = b reusing a factorization A = L U."""
    y = forward_substitution(lu.L, b, unit_diagonal=True)
    return back_substitution(lu.U, y)


# =============================================================================
# INVERSE
# =============================================================================


def matrix_inverse(
    A: ArrayLike,
    *,
    pivot_tol: float | None = None,
) -> NDArray[np.float64]:
    """Invert A by Gauss-Jordan elimination on [A | I].

    Uses the same partial pivoting as gaussian_elimination. The right half
    of the reduced augmented matrix is A^-1.

    Raises:
        SingularMatrixError: If a selected pivot is below the tolerance.
            No approximate inverse is returned.
    """
    A = as_square_matrix(A)
    n = A.shape[0]
    tol = resolve_tolerance(pivot_tol, Tolerance.PIVOT)

    aug = np.hstack([A, identity(n)])

    for i in range(n):
        pivot_row = i + int(np.argmax(np.abs(aug[i:, i])))
        if pivot_row != i:
            aug[[i, pivot_row]] = aug[[pivot_row, i]]

        pivot = aug[i, i]
        if abs(pivot) < tol:
            raise SingularMatrixError(
                f"Matrix has no inverse: pivot in column {i + 1} has magnitude "
                f"{abs(pivot):.3e} < {tol:.0e}",
                pivot_index=i,
                pivot_value=float(abs(pivot)),
                tolerance=tol,
            )

        aug[i] /= pivot
        for k in range(n):
            if k != i:
                aug[k] -= aug[k, i] * aug[i]

    return aug[:, n:].copy()


# =============================================================================
# QR FACTORIZATION
# =============================================================================


def qr_factorization(
    A: ArrayLike,
    *,
    rank_tol: float | None = None,
) -> QRResult:
    """QR factorization by modified Gram-Schmidt.

    Columns are processed left to right. Each column is orthogonalized
    against the already computed columns of Q one at a time, projecting the
    partially reduced vector (the "modified" variant), then normalized.

    Args:
        A: m x n matrix with m >= n.
        rank_tol: Smallest accepted remainder norm (default 1e-10).

    Raises:
        DimensionError: If A has more columns than rows.
        RankDeficientError: If a column is (numerically) a combination of
            the previous ones.
    """
    Q = as_matrix(A)
    m, n = Q.shape
    if m < n:
        raise DimensionError(f"QR requires rows >= columns, got {m}x{n}")
    tol = resolve_tolerance(rank_tol, Tolerance.RANK)

    R = np.zeros((n, n), dtype=np.float64)

    for j in range(n):
        v = Q[:, j]
        for i in range(j):
            R[i, j] = Q[:, i] @ v
            v -= R[i, j] * Q[:, i]

        norm = float(np.linalg.norm(v))
        if norm < tol:
            raise RankDeficientError(
                f"Matrix is rank deficient: column {j + 1} remainder norm "
                f"{norm:.3e} < {tol:.0e}",
                column=j,
                norm=norm,
            )
        R[j, j] = norm
        Q[:, j] = v / norm

    return QRResult(Q=Q, R=R)


__all__ = [
    "GaussStep",
    "GaussResult",
    "LUStep",
    "LUResult",
    "QRResult",
    "back_substitution",
    "forward_substitution",
    "gaussian_elimination",
    "solve",
    "lu_decomposition",
    "lu_solve",
    "matrix_inverse",
    "qr_factorization",
]
