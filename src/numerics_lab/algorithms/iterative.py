"""Stationary iterative solvers: Jacobi and Gauss-Seidel relaxation.

A single sweep is a pure function of (A, b, x). Convergence is judged by
the caller from the max-residual; ``run_iterative`` is the convenience
driver that does this bookkeeping with a pluggable stopping criterion.

References:
- Burden & Faires: "Numerical Analysis" (10th ed.), §7.3
- Saad: "Iterative Methods for Sparse Linear Systems" (2nd ed.), §4.1
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from numerics_lab.algorithms.primitives import max_abs
from numerics_lab.algorithms.stopping import (
    MAX_ITERATIONS,
    StoppingCriterion,
    default_criterion,
)
from numerics_lab.data.methods import IterativeMethod, parse_method
from numerics_lab.data.tolerances import Tolerance, resolve_tolerance
from numerics_lab.data.validation import as_square_matrix, as_vector
from numerics_lab.exceptions import NonConvergentError, ZeroPivotError

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class IterationRecord:
    """Immutable log entry for one sweep."""

    iteration: int
    """Sweep index (0 is the starting vector)."""

    x: NDArray[np.float64]
    """Solution estimate after the sweep (read-only)."""

    residual: float
    """Max-residual max_i |b_i - (A x)_i|."""


@dataclass(frozen=True, slots=True)
class IterativeTrace:
    """Complete trace of a driven iterative solve."""

    method: IterativeMethod
    """Relaxation method used."""

    records: tuple[IterationRecord, ...]
    """Per-sweep records, starting vector first."""

    converged: bool
    """Whether the stopping criterion reported convergence."""

    stop_reason: str
    """'converged', 'stagnated', 'diverging' or 'max_iterations'."""

    total_time: float
    """Wall clock time of the loop (seconds)."""

    @property
    def iterations(self) -> int:
        """Number of sweeps performed."""
        return len(self.records) - 1

    @property
    def solution(self) -> NDArray[np.float64]:
        return self.records[-1].x

    @property
    def final_residual(self) -> float:
        return self.records[-1].residual

    @property
    def residual_history(self) -> list[float]:
        return [r.residual for r in self.records]


# =============================================================================
# SWEEPS
# =============================================================================


def _check_diagonal(A: NDArray[np.float64], pivot_tol: float | None) -> None:
    tol = resolve_tolerance(pivot_tol, Tolerance.PIVOT)
    diagonal = np.abs(np.diag(A))
    if np.any(diagonal < tol):
        i = int(np.argmin(diagonal))
        raise ZeroPivotError(
            f"Relaxation needs a nonzero diagonal: |A[{i}][{i}]| = {diagonal[i]:.3e}",
            pivot_index=i,
            pivot_value=float(diagonal[i]),
            tolerance=tol,
        )


def _jacobi_sweep(
    A: NDArray[np.float64], b: NDArray[np.float64], x: NDArray[np.float64]
) -> NDArray[np.float64]:
    n = A.shape[0]
    x_new = np.zeros(n, dtype=np.float64)
    for i in range(n):
        off_diagonal = A[i, :i] @ x[:i] + A[i, i + 1 :] @ x[i + 1 :]
        x_new[i] = (b[i] - off_diagonal) / A[i, i]
    return x_new


def _gauss_seidel_sweep(
    A: NDArray[np.float64], b: NDArray[np.float64], x: NDArray[np.float64]
) -> NDArray[np.float64]:
    n = A.shape[0]
    x_new = x.copy()
    for i in range(n):
        # x_new[:i] already holds this sweep's values
        off_diagonal = A[i, :i] @ x_new[:i] + A[i, i + 1 :] @ x_new[i + 1 :]
        x_new[i] = (b[i] - off_diagonal) / A[i, i]
    return x_new


_SWEEPS = {
    IterativeMethod.JACOBI: _jacobi_sweep,
    IterativeMethod.GAUSS_SEIDEL: _gauss_seidel_sweep,
}


def _prepare(
    A: ArrayLike, b: ArrayLike, x: ArrayLike
) -> tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.float64]]:
    A = as_square_matrix(A)
    n = A.shape[0]
    return A, as_vector(b, "b", length=n), as_vector(x, "x", length=n)


def jacobi_step(
    A: ArrayLike,
    b: ArrayLike,
    x: ArrayLike,
    *,
    pivot_tol: float | None = None,
) -> NDArray[np.float64]:
    """One Jacobi sweep.

    Every entry of the new vector is computed from the same frozen input:
        x_new[i] = (b[i] - sum_{j != i} A[i][j] * x[j]) / A[i][i]

    Raises:
        ZeroPivotError: If a diagonal entry is (numerically) zero.
    """
    A, b, x = _prepare(A, b, x)
    _check_diagonal(A, pivot_tol)
    return _jacobi_sweep(A, b, x)


def gauss_seidel_step(
    A: ArrayLike,
    b: ArrayLike,
    x: ArrayLike,
    *,
    pivot_tol: float | None = None,
) -> NDArray[np.float64]:
    """One Gauss-Seidel sweep.

    Same update as Jacobi, but row i already uses the entries updated by
    rows 0..i-1 in this sweep. The caller's x is not modified.
    """
    A, b, x = _prepare(A, b, x)
    _check_diagonal(A, pivot_tol)
    return _gauss_seidel_sweep(A, b, x)


def iterative_step(
    method: IterativeMethod | str,
    A: ArrayLike,
    b: ArrayLike,
    x: ArrayLike,
) -> NDArray[np.float64]:
    """One sweep of the named relaxation method."""
    method = parse_method(IterativeMethod, method)
    A, b, x = _prepare(A, b, x)
    _check_diagonal(A, None)
    return _SWEEPS[method](A, b, x)


# =============================================================================
# DIAGNOSTICS
# =============================================================================


def is_diagonally_dominant(A: ArrayLike) -> bool:
    """Strict row diagonal dominance.

    True only if |A[i][i]| > sum_{j != i} |A[i][j]| for every row i.
    Advisory: relaxation may still be run on other systems, without a
    convergence guarantee.
    """
    A = np.abs(as_square_matrix(A))
    diagonal = np.diag(A)
    off_diagonal = A.sum(axis=1) - diagonal
    return bool(np.all(diagonal > off_diagonal))


def _residual(
    A: NDArray[np.float64], b: NDArray[np.float64], x: NDArray[np.float64]
) -> float:
    return max_abs(b - A @ x)


def residual(A: ArrayLike, b: ArrayLike, x: ArrayLike) -> float:
    """Max-residual max_i |b_i - sum_j A[i][j] x_j|."""
    A, b, x = _prepare(A, b, x)
    return _residual(A, b, x)


# =============================================================================
# DRIVER
# =============================================================================


def run_iterative(
    A: ArrayLike,
    b: ArrayLike,
    *,
    method: IterativeMethod | str = IterativeMethod.GAUSS_SEIDEL,
    x0: ArrayLike | None = None,
    tolerance: float | None = None,
    max_iterations: int = 100,
    criterion: StoppingCriterion | None = None,
    raise_on_failure: bool = False,
) -> IterativeTrace:
    """Run relaxation sweeps until a stopping criterion fires.

    Args:
        A: Square coefficient matrix.
        b: Right-hand side.
        method: 'jacobi' or 'gauss_seidel'.
        x0: Starting vector (zeros if None).
        tolerance: Max-residual target for the default criterion (1e-8).
        max_iterations: Sweep budget.
        criterion: Custom stopping strategy (overrides ``tolerance``).
        raise_on_failure: Raise NonConvergentError instead of returning a
            non-converged trace.

    Returns:
        IterativeTrace holding every iterate, starting vector first.

    Example:
        >>> trace = run_iterative([[4, -1, 1], [4, -8, 1], [-2, 1, 5]], [7, -21, 15])
        >>> trace.converged, trace.solution.round(6)
        (True, array([2., 4., 3.]))
    """
    if max_iterations < 0:
        raise ValueError(f"max_iterations must be non-negative, got {max_iterations}")

    method = parse_method(IterativeMethod, method)
    A = as_square_matrix(A)
    n = A.shape[0]
    b = as_vector(b, "b", length=n)
    x = np.zeros(n) if x0 is None else as_vector(x0, "x0", length=n)
    _check_diagonal(A, None)

    if not is_diagonally_dominant(A):
        logger.warning(
            "Matrix is not strictly diagonally dominant; %s may not converge",
            method.value,
        )

    if criterion is None:
        criterion = default_criterion(tolerance)
    sweep = _SWEEPS[method]

    start_time = time.perf_counter()
    history = [_residual(A, b, x)]
    records = [IterationRecord(0, _frozen(x), history[0])]
    decision = criterion.check(history, 0)

    iteration = 0
    while not decision.stop and iteration < max_iterations:
        iteration += 1
        x = sweep(A, b, x)
        history.append(_residual(A, b, x))
        records.append(IterationRecord(iteration, _frozen(x), history[-1]))
        logger.debug("%s sweep %d: residual %.3e", method.value, iteration, history[-1])
        decision = criterion.check(history, iteration)

    stop_reason = decision.reason if decision.stop else MAX_ITERATIONS
    trace = IterativeTrace(
        method=method,
        records=tuple(records),
        converged=decision.converged,
        stop_reason=stop_reason or MAX_ITERATIONS,
        total_time=time.perf_counter() - start_time,
    )

    if not trace.converged:
        logger.warning(
            "%s stopped without converging (%s) after %d sweeps, residual %.3e",
            method.value,
            trace.stop_reason,
            trace.iterations,
            trace.final_residual,
        )
        if raise_on_failure:
            raise NonConvergentError(
                f"{method.value} did not converge: {trace.stop_reason} after "
                f"{trace.iterations} sweeps (residual {trace.final_residual:.3e})",
                iterations=trace.iterations,
                final_residual=trace.final_residual,
                tolerance=tolerance,
                reason=trace.stop_reason,
            )

    return trace


def _frozen(x: NDArray[np.float64]) -> NDArray[np.float64]:
    snapshot = x.copy()
    snapshot.flags.writeable = False
    return snapshot


__all__ = [
    "IterationRecord",
    "IterativeTrace",
    "jacobi_step",
    "gauss_seidel_step",
    "iterative_step",
    "is_diagonally_dominant",
    "residual",
    "run_iterative",
]
