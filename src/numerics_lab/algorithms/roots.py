"""Root finding for scalar equations f(x) = 0.

Bracketing:
- Bisection halves [a, b] while keeping a sign change; error ≤ (b - a) / 2ⁿ

Open methods:
- Fixed point iterates x_{n+1} = g(x_n) (a root of g(x) - x)
- Newton uses x_{n+1} = x_n - f(x_n) / f'(x_n) (quadratic near simple roots)
- Secant replaces f' with the slope through the last two iterates

Each method is a generator of RootRecords. ``_drive`` feeds the step sizes
|x_n - x_{n-1}| (the bracket half-width for bisection) to a stopping
criterion, so a root finder converges, diverges or runs out of budget the
same way the relaxation solvers do. An iterate with f(x) exactly 0 stops
immediately as converged.

References:
- Burden & Faires: "Numerical Analysis" (10th ed.), §2.1-2.4
"""

from __future__ import annotations

import logging
import math
import sys
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass

from numerics_lab.algorithms.calculus import central_difference
from numerics_lab.algorithms.expression import call_checked
from numerics_lab.algorithms.stopping import (
    CONVERGED,
    MAX_ITERATIONS,
    StopDecision,
    StoppingCriterion,
    default_criterion,
)
from numerics_lab.data.methods import RootMethod
from numerics_lab.data.tolerances import Tolerance, resolve_tolerance
from numerics_lab.data.validation import as_finite_scalar
from numerics_lab.exceptions import (
    BracketError,
    NonConvergentError,
    NumericalError,
    ValidationError,
)

logger = logging.getLogger(__name__)

Function = Callable[[float], float]

# Near-optimal central-difference step relative to |x|
_DIFF_STEP = math.cbrt(sys.float_info.epsilon)


@dataclass(frozen=True, slots=True)
class RootRecord:
    """Immutable log entry for one root-finding iteration."""

    iteration: int
    """Iteration index (0 is the starting point)."""

    x: float
    """Current estimate of the root."""

    fx: float
    """f(x), or g(x) - x for fixed-point iteration."""

    step: float | None = None
    """|x_n - x_{n-1}|, or the bracket half-width for bisection (None at 0)."""

    lower: float | None = None
    """Bracket lower end (bisection only)."""

    upper: float | None = None
    """Bracket upper end (bisection only)."""


@dataclass(frozen=True, slots=True)
class RootTrace:
    """Complete trace of a root-finding run."""

    method: RootMethod

    records: tuple[RootRecord, ...]
    """Per-iteration records, starting point first."""

    converged: bool

    stop_reason: str
    """'converged', 'stagnated', 'diverging' or 'max_iterations'."""

    tolerance: float
    """Step-size target."""

    total_time: float
    """Wall clock time of the loop (seconds)."""

    @property
    def iterations(self) -> int:
        return self.records[-1].iteration

    @property
    def root(self) -> float:
        return self.records[-1].x

    @property
    def final_residual(self) -> float:
        """|f(root)|."""
        return abs(self.records[-1].fx)

    @property
    def step_history(self) -> list[float]:
        return [r.step for r in self.records if r.step is not None]


# =============================================================================
# ITERATION GENERATORS
# =============================================================================


def _same_sign(u: float, v: float) -> bool:
    return (u > 0) == (v > 0)


def _bisection_steps(f: Function, a: float, b: float) -> Iterator[RootRecord]:
    fa, fb = call_checked(f, a), call_checked(f, b)
    if fa != 0.0 and fb != 0.0 and _same_sign(fa, fb):
        raise BracketError(
            f"f(a) = {fa:g} and f(b) = {fb:g} have the same sign on [{a:g}, {b:g}]",
            a=a,
            b=b,
            fa=fa,
            fb=fb,
        )

    # iteration 0 reports the better endpoint
    if abs(fa) <= abs(fb):
        yield RootRecord(0, a, fa, lower=a, upper=b)
    else:
        yield RootRecord(0, b, fb, lower=a, upper=b)

    iteration = 0
    while True:
        iteration += 1
        half_width = (b - a) / 2.0
        p = a + half_width
        fp = call_checked(f, p)
        yield RootRecord(iteration, p, fp, step=abs(half_width), lower=a, upper=b)
        if _same_sign(fp, fa):
            a, fa = p, fp
        else:
            b, fb = p, fp


def _fixed_point_steps(g: Function, x0: float) -> Iterator[RootRecord]:
    x = x0
    gx = call_checked(g, x, name="g")
    yield RootRecord(0, x, gx - x)

    iteration = 0
    while True:
        iteration += 1
        x_next = gx
        gx = call_checked(g, x_next, name="g")
        yield RootRecord(iteration, x_next, gx - x_next, step=abs(x_next - x))
        x = x_next


def _newton_steps(
    f: Function, df: Function | None, x0: float, breakdown: float
) -> Iterator[RootRecord]:
    x = x0
    fx = call_checked(f, x)
    yield RootRecord(0, x, fx)

    iteration = 0
    while True:
        if df is None:
            h = _DIFF_STEP * max(1.0, abs(x))
            slope = central_difference(f, x, h)
        else:
            slope = call_checked(df, x, name="df")
        if abs(slope) < breakdown:
            raise NumericalError(
                f"Newton breakdown: |f'({x:g})| = {abs(slope):.3e} below {breakdown:g}"
            )

        iteration += 1
        x_next = x - fx / slope
        fx = call_checked(f, x_next)
        yield RootRecord(iteration, x_next, fx, step=abs(x_next - x))
        x = x_next


def _secant_steps(f: Function, x0: float, x1: float) -> Iterator[RootRecord]:
    f0, f1 = call_checked(f, x0), call_checked(f, x1)
    if f0 == 0.0:
        yield RootRecord(0, x0, f0)
        return
    yield RootRecord(0, x1, f1)

    iteration = 0
    while True:
        denominator = f1 - f0
        if denominator == 0.0:
            raise NumericalError(
                f"Secant breakdown: f({x0:g}) = f({x1:g}) = {f1:g}, zero slope"
            )
        iteration += 1
        x2 = x1 - f1 * (x1 - x0) / denominator
        f2 = call_checked(f, x2)
        yield RootRecord(iteration, x2, f2, step=abs(x2 - x1))
        x0, f0, x1, f1 = x1, f1, x2, f2


# =============================================================================
# DRIVER
# =============================================================================


def _drive(
    method: RootMethod,
    steps: Iterator[RootRecord],
    *,
    tolerance: float | None,
    max_iterations: int,
    criterion: StoppingCriterion | None,
    raise_on_failure: bool,
) -> RootTrace:
    if max_iterations < 1:
        raise ValueError(f"max_iterations must be at least 1, got {max_iterations}")
    tol = resolve_tolerance(tolerance, Tolerance.ROOT)
    if criterion is None:
        criterion = default_criterion(tol)

    start_time = time.perf_counter()
    records: list[RootRecord] = []
    history: list[float] = []
    decision = StopDecision(stop=False)

    for record in steps:
        records.append(record)
        logger.debug(
            "%s iteration %d: x = %.15g, f(x) = %.3e",
            method.value,
            record.iteration,
            record.x,
            record.fx,
        )
        if record.fx == 0.0:
            decision = StopDecision(stop=True, reason=CONVERGED)
            break
        if record.step is not None:
            history.append(record.step)
            decision = criterion.check(history, record.iteration)
            if decision.stop:
                break
        if record.iteration >= max_iterations:
            break

    trace = RootTrace(
        method=method,
        records=tuple(records),
        converged=decision.converged,
        stop_reason=(decision.reason if decision.stop else None) or MAX_ITERATIONS,
        tolerance=tol,
        total_time=time.perf_counter() - start_time,
    )

    if not trace.converged:
        logger.warning(
            "%s stopped without converging (%s) after %d iterations, x = %.6g",
            method.value,
            trace.stop_reason,
            trace.iterations,
            trace.root,
        )
        if raise_on_failure:
            raise NonConvergentError(
                f"{method.value} did not converge: {trace.stop_reason} after "
                f"{trace.iterations} iterations (|f(x)| = {trace.final_residual:.3e})",
                iterations=trace.iterations,
                final_residual=trace.final_residual,
                tolerance=tol,
                reason=trace.stop_reason,
            )
    return trace


# =============================================================================
# PUBLIC API
# =============================================================================


def bisection(
    f: Function,
    a: float,
    b: float,
    *,
    tolerance: float | None = None,
    max_iterations: int = 100,
    criterion: StoppingCriterion | None = None,
    raise_on_failure: bool = False,
) -> RootTrace:
    """Find a root of f in [a, b] by repeated halving.

    Args:
        f: Continuous function with f(a) and f(b) of opposite sign.
        a: Lower end of the bracket.
        b: Upper end of the bracket.
        tolerance: Target half-width of the bracket (default 1e-10).
        max_iterations: Halving budget (>= 1).
        criterion: Custom stopping strategy (overrides ``tolerance``).
        raise_on_failure: Raise NonConvergentError instead of returning a
            non-converged trace.

    Returns:
        RootTrace; each record after the first is a midpoint together with
        the bracket it halved.

    Raises:
        BracketError: If f(a) and f(b) are nonzero with the same sign.
        ValidationError: If a >= b or an endpoint is not finite.
        EvaluationError: If f fails or is not finite at a sample point.

    Example:
        >>> trace = bisection(lambda x: x * x - 2, 1.0, 2.0)
        >>> trace.records[1].x, trace.iterations
        (1.5, 34)
    """
    a = as_finite_scalar(a, "a")
    b = as_finite_scalar(b, "b")
    if not a < b:
        raise ValidationError(f"Bracket needs a < b, got [{a:g}, {b:g}]")
    return _drive(
        RootMethod.BISECTION,
        _bisection_steps(f, a, b),
        tolerance=tolerance,
        max_iterations=max_iterations,
        criterion=criterion,
        raise_on_failure=raise_on_failure,
    )


def fixed_point(
    g: Function,
    x0: float,
    *,
    tolerance: float | None = None,
    max_iterations: int = 100,
    criterion: StoppingCriterion | None = None,
    raise_on_failure: bool = False,
) -> RootTrace:
    """Iterate x_{n+1} = g(x_n) from x0.

    Converges when |g'| < 1 near the fixed point; the default criterion
    reports 'diverging' when the steps grow without bound.

    Example:
        >>> round(fixed_point(math.cos, 1.0).root, 6)
        0.739085
    """
    return _drive(
        RootMethod.FIXED_POINT,
        _fixed_point_steps(g, as_finite_scalar(x0, "x0")),
        tolerance=tolerance,
        max_iterations=max_iterations,
        criterion=criterion,
        raise_on_failure=raise_on_failure,
    )


def newton(
    f: Function,
    x0: float,
    df: Function | None = None,
    *,
    tolerance: float | None = None,
    max_iterations: int = 100,
    criterion: StoppingCriterion | None = None,
    raise_on_failure: bool = False,
    breakdown_tol: float | None = None,
) -> RootTrace:
    """Newton-Raphson iteration from x0.

    Args:
        f: Differentiable function.
        x0: Starting point.
        df: Derivative f'. A central difference is used when omitted.
        breakdown_tol: Smallest |f'(x)| accepted (default 1e-10).

    Raises:
        NumericalError: If |f'(x_n)| falls below the breakdown tolerance.
        EvaluationError: If f or df fails or is not finite.

    Example:
        >>> trace = newton(lambda x: x * x - 2, 1.5, lambda x: 2 * x)
        >>> round(trace.root, 12), trace.converged
        (1.414213562373, True)
    """
    breakdown = resolve_tolerance(breakdown_tol, Tolerance.BREAKDOWN)
    return _drive(
        RootMethod.NEWTON,
        _newton_steps(f, df, as_finite_scalar(x0, "x0"), breakdown),
        tolerance=tolerance,
        max_iterations=max_iterations,
        criterion=criterion,
        raise_on_failure=raise_on_failure,
    )


def secant(
    f: Function,
    x0: float,
    x1: float,
    *,
    tolerance: float | None = None,
    max_iterations: int = 100,
    criterion: StoppingCriterion | None = None,
    raise_on_failure: bool = False,
) -> RootTrace:
    """Secant iteration from the two starting points x0 and x1.

    Raises:
        ValidationError: If x0 == x1.
        NumericalError: If two successive iterates have equal f values.
    """
    x0 = as_finite_scalar(x0, "x0")
    x1 = as_finite_scalar(x1, "x1")
    if x0 == x1:
        raise ValidationError(f"Secant needs two distinct starting points, got {x0:g} twice")
    return _drive(
        RootMethod.SECANT,
        _secant_steps(f, x0, x1),
        tolerance=tolerance,
        max_iterations=max_iterations,
        criterion=criterion,
        raise_on_failure=raise_on_failure,
    )


def estimate_order(trace: RootTrace) -> float | None:
    """Empirical convergence order from the last three steps.

    q ≈ log(e_{n+1} / e_n) / log(e_n / e_{n-1}), with e the step sizes.
    Returns None when fewer than three usable steps exist.
    """
    steps = [s for s in trace.step_history if s > 0]
    if len(steps) < 3:
        return None
    e0, e1, e2 = steps[-3:]
    if e0 == e1:
        return None
    return math.log(e2 / e1) / math.log(e1 / e0)


__all__ = [
    "Function",
    "RootRecord",
    "RootTrace",
    "bisection",
    "fixed_point",
    "newton",
    "secant",
    "estimate_order",
]
