"""Eigenvalue iteration: power method, inverse iteration and the QR algorithm.

Implements the power method for the dominant eigenpair, inverse iteration
for the eigenvalue nearest a shift, Hotelling deflation for successive
eigenpairs of symmetric matrices, and the unshifted QR algorithm built on
the Gram-Schmidt factorization of the direct solvers.

Key Optimizations:
- Ping-pong buffer pattern eliminates allocations in the engine's hot loop

None of the step functions decides convergence. The ``run_*`` drivers
bound the iteration count and report, but do not raise, non-convergence.

References:
- Golub & Van Loan: "Matrix Computations" (4th ed.), §7.3, §8.2
- Burden & Faires: "Numerical Analysis" (10th ed.), §9.3-9.5
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from numerics_lab.algorithms.direct import qr_factorization, solve
from numerics_lab.algorithms.primitives import (
    dot,
    identity,
    mat_vec,
    normalize,
    subtract,
)
from numerics_lab.data.tolerances import Tolerance, resolve_tolerance
from numerics_lab.data.validation import as_square_matrix, as_vector
from numerics_lab.exceptions import NumericalError

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PowerStep:
    """Result of a single power (or inverse) iteration."""

    iteration: int
    """Iteration index (1-based within a run, 0 for a standalone step)."""

    vector: NDArray[np.float64]
    """Normalized iterate (read-only)."""

    eigenvalue: float
    """Rayleigh quotient estimate."""


def _frozen(v: NDArray[np.float64]) -> NDArray[np.float64]:
    snapshot = v.copy()
    snapshot.flags.writeable = False
    return snapshot


def rayleigh_quotient(A: ArrayLike, v: ArrayLike) -> float:
    """Rayleigh quotient v^T A v / v^T v.

    Raises:
        NumericalError: If v is the zero vector.
    """
    A = as_square_matrix(A)
    v = as_vector(v, "v", length=A.shape[0])
    denominator = dot(v, v)
    if denominator == 0.0:
        raise NumericalError("Rayleigh quotient undefined for the zero vector")
    return dot(v, mat_vec(A, v)) / denominator


def power_iteration_step(
    A: ArrayLike,
    v: ArrayLike,
    *,
    breakdown_tol: float | None = None,
) -> PowerStep:
    """Execute a single power iteration.

    Algorithm:
        1. Matrix-vector multiply: w = A @ v
        2. Normalize: v_next = w / ||w||
        3. Rayleigh quotient: λ = v_next^T @ A @ v_next

    Raises:
        NumericalError: If ||A v|| collapses below the breakdown tolerance
            (v lies in the null space of A).
    """
    A = as_square_matrix(A)
    v = as_vector(v, "v", length=A.shape[0])
    tol = resolve_tolerance(breakdown_tol, Tolerance.BREAKDOWN)

    w = A @ v
    norm = float(np.linalg.norm(w))
    if norm < tol:
        raise NumericalError(
            f"Power iteration broke down: ||A v|| = {norm:.3e} < {tol:.0e}"
        )
    w /= norm
    eigenvalue = float(w @ (A @ w))
    return PowerStep(iteration=0, vector=_frozen(w), eigenvalue=eigenvalue)


def inverse_iteration_step(
    A: ArrayLike,
    v: ArrayLike,
    *,
    shift: float = 0.0,
) -> PowerStep:
    """Execute a single shifted inverse iteration.

    Solves (A - σI) w = v by Gaussian elimination, normalizes w and returns
    the Rayleigh quotient of A at w. Converges to the eigenvalue closest to
    the shift σ.

    Raises:
        SingularMatrixError: If the shift is (numerically) an eigenvalue.
    """
    A = as_square_matrix(A)
    v = as_vector(v, "v", length=A.shape[0])
    shifted = subtract(A, shift * identity(A.shape[0]))
    w = normalize(solve(shifted, v))
    return PowerStep(iteration=0, vector=_frozen(w), eigenvalue=float(w @ (A @ w)))


class PowerIteration:
    """Power method engine with ping-pong buffer optimization.

    Eliminates array allocations in hot loop by alternating between two
    pre-allocated vectors in an Nx2 matrix (column-major).

    Example:
        >>> engine = PowerIteration([[2.0, 0.0], [0.0, 3.0]], initial_vector=[1.0, 1.0])
        >>> for _ in range(60):
        ...     step = engine.iterate()
        >>> round(step.eigenvalue, 8)
        3.0
    """

    __slots__ = (
        "_A",
        "_n",
        "_vectors",
        "_current_idx",
        "_iteration",
        "_breakdown_tol",
    )

    def __init__(
        self,
        A: ArrayLike,
        *,
        initial_vector: ArrayLike | None = None,
        breakdown_tol: float | None = None,
    ) -> None:
        """Initialize power iteration engine.

        Args:
            A: Square input matrix (copied).
            initial_vector: Starting vector (all ones if None).
            breakdown_tol: Smallest accepted ||A v|| (default 1e-10).
        """
        self._A = as_square_matrix(A)
        self._n = self._A.shape[0]
        self._vectors = np.zeros((self._n, 2), dtype=np.float64, order="F")
        self._current_idx = 0
        self._iteration = 0
        self._breakdown_tol = resolve_tolerance(breakdown_tol, Tolerance.BREAKDOWN)

        if initial_vector is None:
            self.set_initial_vector(np.ones(self._n))
        else:
            self.set_initial_vector(initial_vector)

    def iterate(self) -> PowerStep:
        """Execute single power iteration.

        Raises:
            NumericalError: On breakdown (||A v|| below tolerance).
        """
        next_idx = 1 - self._current_idx
        current_vec = self._vectors[:, self._current_idx]
        next_vec = self._vectors[:, next_idx]

        next_vec[:] = self._A @ current_vec
        norm = np.linalg.norm(next_vec)

        if norm < self._breakdown_tol:
            raise NumericalError(
                f"Power iteration broke down at iteration {self._iteration + 1}: "
                f"||A v|| = {norm:.3e}"
            )

        next_vec[:] /= norm

        # Rayleigh quotient (reuse current_vec as temp buffer)
        current_vec[:] = self._A @ next_vec
        eigenvalue = float(next_vec @ current_vec)

        self._current_idx = next_idx
        self._iteration += 1

        return PowerStep(
            iteration=self._iteration,
            vector=_frozen(next_vec),
            eigenvalue=eigenvalue,
        )

    @property
    def current_vector(self) -> NDArray[np.float64]:
        """Return a copy of the current eigenvector estimate."""
        return self._vectors[:, self._current_idx].copy()

    @property
    def vector_norm(self) -> float:
        """Get norm of current eigenvector (should be ~1.0)."""
        return float(np.linalg.norm(self._vectors[:, self._current_idx]))

    @property
    def iteration(self) -> int:
        return self._iteration

    def set_initial_vector(self, x: ArrayLike) -> None:
        """Set (and normalize) the starting vector, resetting the counter.

        Raises:
            NumericalError: If x is the zero vector.
        """
        x = as_vector(x, "initial_vector", length=self._n)
        norm = np.linalg.norm(x)
        if norm == 0.0:
            raise NumericalError("Initial vector must be nonzero")
        self._current_idx = 0
        self._iteration = 0
        self._vectors[:, 0] = x / norm


@dataclass(frozen=True, slots=True)
class PowerMethodTrace:
    """Complete trace of power method execution."""

    iterations: int
    """Number of iterations performed."""

    final_eigenvalue: float
    """Final eigenvalue estimate."""

    final_vector: NDArray[np.float64]
    """Final eigenvector estimate."""

    converged: bool
    """Whether successive estimates agreed within tolerance."""

    total_time: float
    """Total execution time (seconds)."""

    history: tuple[PowerStep, ...]
    """Per-iteration steps, in order."""

    @property
    def eigenvalue_history(self) -> list[float]:
        return [step.eigenvalue for step in self.history]


def run_power_method(
    A: ArrayLike,
    *,
    initial_vector: ArrayLike | None = None,
    max_iterations: int = 500,
    tolerance: float | None = None,
    shift: float | None = None,
) -> PowerMethodTrace:
    """Run power (or shifted inverse) iteration to convergence.

    Convenience function that handles the iteration loop and tracking.
    Convergence means |λ_k - λ_{k-1}| <= tolerance * max(1, |λ_k|).

    Args:
        A: Square input matrix.
        initial_vector: Starting vector (all ones if None).
        max_iterations: Iteration budget.
        tolerance: Relative eigenvalue change target (default 1e-10).
        shift: If given, run inverse iteration around this shift instead.

    Returns:
        PowerMethodTrace with complete execution history. Non-convergence
        is reported in ``converged``, never raised.

    Raises:
        ValueError: If max_iterations is less than 1.
    """
    if max_iterations < 1:
        raise ValueError(f"max_iterations must be at least 1, got {max_iterations}")

    tol = resolve_tolerance(tolerance, Tolerance.EIGENVALUE)
    A = as_square_matrix(A)
    start_time = time.perf_counter()

    history: list[PowerStep] = []
    converged = False

    if shift is None:
        engine = PowerIteration(A, initial_vector=initial_vector)
    else:
        v = np.ones(A.shape[0]) if initial_vector is None else initial_vector
        v = as_vector(v, "initial_vector", length=A.shape[0])

    for iteration in range(1, max_iterations + 1):
        if shift is None:
            step = engine.iterate()
        else:
            inverse = inverse_iteration_step(A, v, shift=shift)
            v = inverse.vector
            step = PowerStep(iteration, inverse.vector, inverse.eigenvalue)

        previous = history[-1].eigenvalue if history else None
        history.append(step)

        if previous is not None and abs(step.eigenvalue - previous) <= tol * max(
            1.0, abs(step.eigenvalue)
        ):
            converged = True
            break

    if not converged:
        logger.warning("Power method did not converge in %d iterations", max_iterations)

    final = history[-1]
    return PowerMethodTrace(
        iterations=len(history),
        final_eigenvalue=final.eigenvalue,
        final_vector=final.vector,
        converged=converged,
        total_time=time.perf_counter() - start_time,
        history=tuple(history),
    )


# =============================================================================
# DEFLATION AND QR ALGORITHM
# =============================================================================


def deflate(A: ArrayLike, eigenvalue: float, eigenvector: ArrayLike) -> NDArray[np.float64]:
    """Hotelling deflation A - λ v v^T / (v^T v).

    For symmetric A, the result has the same eigenpairs except that λ is
    replaced by 0, so the power method moves on to the next eigenvalue.
    """
    A = as_square_matrix(A)
    v = as_vector(eigenvector, "eigenvector", length=A.shape[0])
    norm_sq = dot(v, v)
    if norm_sq == 0.0:
        raise NumericalError("Cannot deflate with the zero vector")
    return subtract(A, eigenvalue * np.outer(v, v) / norm_sq)


@dataclass(frozen=True, slots=True)
class EigenPair:
    """Eigenvalue with its unit eigenvector."""

    eigenvalue: float
    eigenvector: NDArray[np.float64]
    converged: bool


def dominant_eigenpairs(
    A: ArrayLike,
    k: int,
    *,
    max_iterations: int = 500,
    tolerance: float | None = None,
) -> tuple[EigenPair, ...]:
    """The k largest-magnitude eigenpairs of a symmetric matrix.

    Alternates power iteration and Hotelling deflation.
    """
    A = as_square_matrix(A)
    if not 1 <= k <= A.shape[0]:
        raise ValueError(f"k must be in [1, {A.shape[0]}], got {k}")
    if not np.allclose(A, A.T):
        logger.warning("Hotelling deflation assumes a symmetric matrix")

    pairs: list[EigenPair] = []
    work = A
    for _ in range(k):
        trace = run_power_method(work, max_iterations=max_iterations, tolerance=tolerance)
        pairs.append(
            EigenPair(trace.final_eigenvalue, trace.final_vector, trace.converged)
        )
        work = deflate(work, trace.final_eigenvalue, trace.final_vector)
    return tuple(pairs)


@dataclass(frozen=True, slots=True)
class QRAlgorithmTrace:
    """Trace of the unshifted QR algorithm."""

    eigenvalues: NDArray[np.float64]
    """Diagonal of the final iterate, sorted by decreasing magnitude."""

    matrix: NDArray[np.float64]
    """Final (nearly triangular) iterate A_k."""

    iterations: int
    converged: bool

    history: tuple[NDArray[np.float64], ...]
    """Diagonal of A_k after each iteration."""


def qr_algorithm(
    A: ArrayLike,
    *,
    max_iterations: int = 500,
    tolerance: float | None = None,
) -> QRAlgorithmTrace:
    """All eigenvalues by the unshifted QR algorithm.

    Iterates A_{k+1} = R_k Q_k where A_k = Q_k R_k. The iterates are
    orthogonally similar to A and, for real eigenvalues of distinct
    magnitude, tend to upper-triangular form.

    Raises:
        RankDeficientError: If an iterate is singular (A has eigenvalue 0).
        ValueError: If max_iterations is less than 1.
    """
    if max_iterations < 1:
        raise ValueError(f"max_iterations must be at least 1, got {max_iterations}")

    work = as_square_matrix(A)
    tol = resolve_tolerance(tolerance, Tolerance.EIGENVALUE)

    history: list[NDArray[np.float64]] = []
    converged = False
    for _ in range(max_iterations):
        qr = qr_factorization(work)
        work = qr.R @ qr.Q
        history.append(_frozen(np.diag(work)))
        if np.max(np.abs(np.tril(work, k=-1)), initial=0.0) < tol * max(
            1.0, float(np.max(np.abs(np.diag(work))))
        ):
            converged = True
            break

    if not converged:
        logger.warning("QR algorithm did not converge in %d iterations", max_iterations)

    diagonal = np.diag(work).copy()
    order = np.argsort(-np.abs(diagonal), kind="stable")
    return QRAlgorithmTrace(
        eigenvalues=diagonal[order],
        matrix=work,
        iterations=len(history),
        converged=converged,
        history=tuple(history),
    )


__all__ = [
    "PowerStep",
    "PowerIteration",
    "PowerMethodTrace",
    "EigenPair",
    "QRAlgorithmTrace",
    "rayleigh_quotient",
    "power_iteration_step",
    "inverse_iteration_step",
    "run_power_method",
    "deflate",
    "dominant_eigenpairs",
    "qr_algorithm",
]
