"""Side-by-side comparison of solvers on identical input.

Runs several methods over the same linear system (or initial value
problem) for a comparison view:
- Gaussian elimination provides the reference solution
- LU, Jacobi and Gauss-Seidel are measured against it
- Euler, Heun and RK4 are measured against the exact ODE solution

Every method receives the same validated private copy of the input, so
one method can never observe another's working state. A method that fails
(e.g. a zero LU pivot) is reported in its summary, and the other methods
still run. Failure of the reference solve is fatal.

Root finders are compared on one bracket [a, b]: bisection uses the bracket,
Newton and fixed-point iteration start from its midpoint, and the secant
method starts from its two ends.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import numpy as np

from numerics_lab.algorithms.direct import lu_decomposition, lu_solve, solve
from numerics_lab.algorithms.iterative import is_diagonally_dominant, residual, run_iterative
from numerics_lab.algorithms.ode import (
    Derivative,
    ExactSolution,
    ODESolution,
    integrate_ode,
)
from numerics_lab.algorithms.roots import (
    Function,
    RootTrace,
    bisection,
    fixed_point,
    newton,
    secant,
)
from numerics_lab.data.methods import (
    IterativeMethod,
    LinearMethod,
    OdeMethod,
    RootMethod,
    parse_method,
)
from numerics_lab.data.validation import as_square_matrix, as_vector
from numerics_lab.exceptions import NumericsLabError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from numpy.typing import ArrayLike, NDArray

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MethodSummary:
    """Result of one linear method in a comparison."""

    method: LinearMethod
    """Method that produced this result."""

    solution: NDArray[np.float64] | None
    """Computed solution (None if the method failed)."""

    iterations: int
    """Sweeps performed (0 for direct methods)."""

    final_residual: float
    """Max-residual of the solution (inf if the method failed)."""

    error_vs_reference: float
    """max |x - x_gauss| (inf if the method failed)."""

    converged: bool
    """Whether the method produced an accepted solution."""

    elapsed: float
    """Wall clock time (seconds)."""

    residual_history: tuple[float, ...]
    """Residual after each sweep (a single entry for direct methods)."""

    failure: str | None = None
    """Error message if the method raised."""


@dataclass(frozen=True, slots=True)
class LinearComparison:
    """Complete comparison of linear methods on one system."""

    reference: NDArray[np.float64]
    """Gaussian elimination solution."""

    diagonally_dominant: bool
    """Whether convergence of the iterative methods is guaranteed."""

    summaries: tuple[MethodSummary, ...]
    """Per-method results in the requested order."""

    def get(self, method: LinearMethod | str) -> MethodSummary:
        method = parse_method(LinearMethod, method)
        for summary in self.summaries:
            if summary.method is method:
                return summary
        raise KeyError(method.value)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "metadata": {
                "algorithm": "linear_comparison",
                "timestamp": datetime.now(UTC).isoformat(),
                "diagonally_dominant": self.diagonally_dominant,
                "reference_solution": self.reference.tolist(),
            },
            "methods": [
                {
                    "method": s.method.value,
                    "solution": None if s.solution is None else s.solution.tolist(),
                    "iterations": s.iterations,
                    "final_residual": s.final_residual,
                    "error_vs_reference": s.error_vs_reference,
                    "converged": s.converged,
                    "elapsed": s.elapsed,
                    "residual_history": list(s.residual_history),
                    "failure": s.failure,
                }
                for s in self.summaries
            ],
        }


def compare_linear_methods(
    A: ArrayLike,
    b: ArrayLike,
    *,
    methods: Sequence[LinearMethod | str] = tuple(LinearMethod),
    x0: ArrayLike | None = None,
    tolerance: float | None = None,
    max_iterations: int = 100,
) -> LinearComparison:
    """Solve one system with several methods.

    Args:
        A: Square coefficient matrix (not modified).
        b: Right-hand side (not modified).
        methods: Methods to run, in order.
        x0: Starting vector for the iterative methods.
        tolerance: Max-residual target for the iterative methods.
        max_iterations: Sweep budget for the iterative methods.

    Raises:
        SingularMatrixError: If the reference Gaussian elimination fails.

    Example:
        >>> from numerics_lab.algorithms.matrices import default_system
        >>> system = default_system()
        >>> report = compare_linear_methods(system.matrix, system.rhs)
        >>> [s.converged for s in report.summaries]
        [True, True, True, True]
    """
    A = as_square_matrix(A)
    b = as_vector(b, "b", length=A.shape[0])
    reference = solve(A, b)

    summaries: list[MethodSummary] = []
    for name in methods:
        method = parse_method(LinearMethod, name)
        start = time.perf_counter()

        try:
            if method is LinearMethod.GAUSS:
                x = reference.copy()
                iterations, converged, history = 0, True, None
            elif method is LinearMethod.LU:
                x = lu_solve(lu_decomposition(A), b)
                iterations, converged, history = 0, True, None
            else:
                trace = run_iterative(
                    A,
                    b,
                    method=parse_method(IterativeMethod, method),
                    x0=x0,
                    tolerance=tolerance,
                    max_iterations=max_iterations,
                )
                x = trace.solution.copy()
                iterations = trace.iterations
                converged = trace.converged
                history = tuple(trace.residual_history)
        except NumericsLabError as e:
            logger.warning("%s failed in comparison: %s", method.value, e)
            summaries.append(
                MethodSummary(
                    method=method,
                    solution=None,
                    iterations=0,
                    final_residual=float("inf"),
                    error_vs_reference=float("inf"),
                    converged=False,
                    elapsed=time.perf_counter() - start,
                    residual_history=(),
                    failure=str(e),
                )
            )
            continue

        final_residual = residual(A, b, x)
        summaries.append(
            MethodSummary(
                method=method,
                solution=x,
                iterations=iterations,
                final_residual=final_residual,
                error_vs_reference=float(np.max(np.abs(x - reference))),
                converged=converged,
                elapsed=time.perf_counter() - start,
                residual_history=history or (final_residual,),
            )
        )

    return LinearComparison(
        reference=reference,
        diagonally_dominant=is_diagonally_dominant(A),
        summaries=tuple(summaries),
    )


@dataclass(frozen=True, slots=True)
class OdeComparison:
    """Solutions of one initial value problem by several integrators."""

    step_size: float
    solutions: tuple[ODESolution, ...]

    def get(self, method: OdeMethod | str) -> ODESolution:
        method = parse_method(OdeMethod, method)
        for solution in self.solutions:
            if solution.method is method:
                return solution
        raise KeyError(method.value)

    def final_errors(self) -> dict[str, float | None]:
        """Final |y - exact| per method."""
        return {s.method.value: s.final_error for s in self.solutions}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "metadata": {
                "algorithm": "ode_comparison",
                "timestamp": datetime.now(UTC).isoformat(),
                "step_size": self.step_size,
            },
            "methods": [
                {
                    "method": s.method.value,
                    "final_error": s.final_error,
                    "max_error": s.max_error,
                    "trace": [
                        {"t": r.t, "y": r.y, "exact": r.exact, "error": r.error}
                        for r in s.steps
                    ],
                }
                for s in self.solutions
            ],
        }


def compare_ode_methods(
    f: Derivative,
    h: float,
    t0: float,
    tf: float,
    y0: float,
    exact: ExactSolution | None = None,
    *,
    methods: Sequence[OdeMethod | str] = tuple(OdeMethod),
) -> OdeComparison:
    """Integrate one problem with several methods and the same step size."""
    solutions = tuple(
        integrate_ode(f, h, t0, tf, y0, exact, method=method) for method in methods
    )
    return OdeComparison(step_size=float(h), solutions=solutions)


@dataclass(frozen=True, slots=True)
class RootSummary:
    """Result of one root finder in a comparison."""

    method: RootMethod

    trace: RootTrace | None
    """Full iteration trace (None if the method failed)."""

    failure: str | None = None
    """Error message if the method raised."""

    @property
    def converged(self) -> bool:
        return self.trace is not None and self.trace.converged

    @property
    def iterations(self) -> int:
        return 0 if self.trace is None else self.trace.iterations

    @property
    def root(self) -> float | None:
        return None if self.trace is None else self.trace.root


@dataclass(frozen=True, slots=True)
class RootComparison:
    """Several root finders applied to one equation."""

    a: float
    b: float
    summaries: tuple[RootSummary, ...]

    def get(self, method: RootMethod | str) -> RootSummary:
        method = parse_method(RootMethod, method)
        for summary in self.summaries:
            if summary.method is method:
                return summary
        raise KeyError(method.value)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "metadata": {
                "algorithm": "root_comparison",
                "timestamp": datetime.now(UTC).isoformat(),
                "interval": [self.a, self.b],
            },
            "methods": [
                {
                    "method": s.method.value,
                    "root": s.root,
                    "iterations": s.iterations,
                    "converged": s.converged,
                    "stop_reason": None if s.trace is None else s.trace.stop_reason,
                    "elapsed": None if s.trace is None else s.trace.total_time,
                    "trace": []
                    if s.trace is None
                    else [
                        {"iteration": r.iteration, "x": r.x, "fx": r.fx, "step": r.step}
                        for r in s.trace.records
                    ],
                    "failure": s.failure,
                }
                for s in self.summaries
            ],
        }


def compare_root_methods(
    f: Function,
    a: float,
    b: float,
    *,
    df: Function | None = None,
    g: Function | None = None,
    methods: Sequence[RootMethod | str] | None = None,
    tolerance: float | None = None,
    max_iterations: int = 100,
) -> RootComparison:
    """Run several root finders on f over the bracket [a, b].

    Args:
        f: Function whose root is sought.
        a: Bracket lower end (bisection) and secant x0.
        b: Bracket upper end (bisection) and secant x1.
        df: Derivative for Newton (central difference if None).
        g: Iteration function for fixed-point iteration.
        methods: Methods to run, in order. Defaults to every method,
            leaving out fixed-point iteration when ``g`` is None.
        tolerance: Step-size target shared by every method.
        max_iterations: Iteration budget shared by every method.

    Raises:
        ValueError: If fixed-point iteration is requested without ``g``.

    Example:
        >>> report = compare_root_methods(lambda x: x * x - 2, 1.0, 2.0)
        >>> [s.converged for s in report.summaries]
        [True, True, True]
    """
    if methods is None:
        methods = [m for m in RootMethod if g is not None or m is not RootMethod.FIXED_POINT]
    chosen = [parse_method(RootMethod, m) for m in methods]
    if RootMethod.FIXED_POINT in chosen and g is None:
        raise ValueError("fixed_point needs an iteration function g")

    a, b = float(a), float(b)
    midpoint = (a + b) / 2.0
    budget = {"tolerance": tolerance, "max_iterations": max_iterations}

    summaries: list[RootSummary] = []
    for method in chosen:
        try:
            if method is RootMethod.BISECTION:
                trace = bisection(f, a, b, **budget)
            elif method is RootMethod.FIXED_POINT:
                trace = fixed_point(g, midpoint, **budget)
            elif method is RootMethod.NEWTON:
                trace = newton(f, midpoint, df, **budget)
            else:
                trace = secant(f, a, b, **budget)
        except NumericsLabError as e:
            logger.warning("%s failed in comparison: %s", method.value, e)
            summaries.append(RootSummary(method=method, trace=None, failure=str(e)))
            continue
        summaries.append(RootSummary(method=method, trace=trace))

    return RootComparison(a=a, b=b, summaries=tuple(summaries))


__all__ = [
    "MethodSummary",
    "LinearComparison",
    "OdeComparison",
    "compare_linear_methods",
    "compare_ode_methods",
    "RootSummary",
    "RootComparison",
    "compare_root_methods",
]
