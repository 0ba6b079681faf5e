"""Fixed-step explicit integrators for scalar initial value problems.

Implements Euler (order 1), Heun / improved Euler (order 2) and classical
Runge-Kutta (order 4) for y' = f(t, y), y(t0) = y0 on [t0, tf].

The time grid comes from a step counter instead of accumulating t += h:
    N = ceil((tf - t0) / h - ε),  t_k = t0 + k·h (k < N),  t_N = tf
so the last step is shortened, when needed, to land exactly on tf.

Each StepRecord holds the state at t_k plus the stage values of the step
that leaves t_k (Heun predictor/corrector, RK4 slopes). The final record
has no outgoing step and carries no stage data.

References:
- Burden & Faires: "Numerical Analysis" (10th ed.), §5.2-5.4
- Butcher: "Numerical Methods for Ordinary Differential Equations" (3rd ed.)
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

from numerics_lab.data.methods import OdeMethod, parse_method
from numerics_lab.data.tolerances import Tolerance, resolve_tolerance
from numerics_lab.data.validation import as_finite_scalar
from numerics_lab.exceptions import EvaluationError, ValidationError

logger = logging.getLogger(__name__)

Derivative = Callable[[float, float], float]
ExactSolution = Callable[[float], float]


@dataclass(frozen=True, slots=True)
class RK4Slopes:
    """Stage slopes of one classical Runge-Kutta step."""

    k1: float
    k2: float
    k3: float
    k4: float


@dataclass(frozen=True, slots=True)
class StepRecord:
    """State of an integration at one grid point."""

    t: float
    y: float

    exact: float | None = None
    """Exact solution at t, when one was supplied."""

    error: float | None = None
    """|y - exact|, when an exact solution was supplied."""

    slopes: RK4Slopes | None = None
    """RK4 stage slopes of the outgoing step."""

    predictor: float | None = None
    """Heun Euler-predictor of the outgoing step."""

    corrector: float | None = None
    """Heun trapezoidal corrector (the next y)."""


@dataclass(frozen=True, slots=True)
class ODESolution:
    """Ordered step records of a single integrator invocation."""

    method: OdeMethod
    step_size: float
    steps: tuple[StepRecord, ...]

    @property
    def times(self) -> list[float]:
        return [s.t for s in self.steps]

    @property
    def values(self) -> list[float]:
        return [s.y for s in self.steps]

    @property
    def final(self) -> StepRecord:
        return self.steps[-1]

    @property
    def final_error(self) -> float | None:
        return self.steps[-1].error

    @property
    def max_error(self) -> float | None:
        errors = [s.error for s in self.steps if s.error is not None]
        return max(errors) if errors else None


# =============================================================================
# DEFAULT PROBLEM
# =============================================================================


def default_rhs(t: float, y: float) -> float:
    """y' = -2ty."""
    return -2.0 * t * y


def default_exact(t: float) -> float:
    """Exact solution e^(-t²) of y' = -2ty, y(0) = 1."""
    return math.exp(-t * t)


@dataclass(frozen=True, slots=True)
class ODEProblem:
    """Initial value problem with an optional exact solution."""

    rhs: Derivative
    t0: float
    tf: float
    y0: float
    exact: ExactSolution | None = None
    description: str = ""

    def integrate(self, method: OdeMethod | str, h: float) -> ODESolution:
        return integrate_ode(
            self.rhs, h, self.t0, self.tf, self.y0, self.exact, method=method
        )


DEFAULT_PROBLEM = ODEProblem(
    rhs=default_rhs,
    t0=0.0,
    tf=2.0,
    y0=1.0,
    exact=default_exact,
    description="y' = -2ty, y(0) = 1, exact y = exp(-t^2)",
)


# =============================================================================
# GRID AND EVALUATION HELPERS
# =============================================================================


def step_grid(
    h: float,
    t0: float,
    tf: float,
    *,
    end_tol: float | None = None,
) -> np.ndarray:
    """Time grid t_0 < t_1 < ... < t_N = tf for step size h.

    Raises:
        ValidationError: If h <= 0, tf < t0 or any bound is not finite.
    """
    h = as_finite_scalar(h, "h")
    t0 = as_finite_scalar(t0, "t0")
    tf = as_finite_scalar(tf, "tf")
    if h <= 0:
        raise ValidationError(f"h: step size must be positive, got {h}")
    if tf < t0:
        raise ValidationError(f"Interval is reversed: tf = {tf} < t0 = {t0}")

    span = tf - t0
    if span == 0.0:
        return np.array([t0])

    slack = resolve_tolerance(end_tol, Tolerance.STEP_END)
    n_steps = max(1, math.ceil(span / h - slack))
    times = t0 + h * np.arange(n_steps + 1, dtype=np.float64)
    times[-1] = tf
    return times


def _slope(f: Derivative, t: float, y: float) -> float:
    try:
        value = float(f(t, y))
    except (ArithmeticError, ValueError) as e:
        raise EvaluationError(
            f"Derivative failed at t = {t:g}, y = {y:g}: {e}",
            bindings={"t": t, "y": y},
        ) from e
    if not math.isfinite(value):
        raise EvaluationError(
            f"Derivative is not finite at t = {t:g}, y = {y:g}",
            bindings={"t": t, "y": y},
        )
    return value


def _exact_value(exact: ExactSolution, t: float) -> float:
    try:
        value = float(exact(t))
    except (ArithmeticError, ValueError) as e:
        raise EvaluationError(
            f"Exact solution failed at t = {t:g}: {e}", bindings={"t": t}
        ) from e
    if not math.isfinite(value):
        raise EvaluationError(
            f"Exact solution is not finite at t = {t:g}", bindings={"t": t}
        )
    return value


# =============================================================================
# INTEGRATOR
# =============================================================================


def integrate_ode(
    f: Derivative,
    h: float,
    t0: float,
    tf: float,
    y0: float,
    exact: ExactSolution | None = None,
    *,
    method: OdeMethod | str = OdeMethod.RK4,
) -> ODESolution:
    """Integrate y' = f(t, y) from t0 to tf with fixed step h.

    Args:
        f: Derivative function f(t, y).
        h: Step size (> 0).
        t0: Initial time.
        tf: Final time (>= t0).
        y0: Initial value y(t0).
        exact: Optional exact solution for error tracking.
        method: 'euler', 'heun' or 'rk4'.

    Returns:
        ODESolution with one StepRecord per grid point, t0 first, tf last.

    Raises:
        ValidationError: For invalid step size, interval or initial value.
        EvaluationError: If f (or exact) fails or is not finite, or the
            solution overflows.

    Example:
        >>> solution = integrate_ode(default_rhs, 0.1, 0.0, 1.0, 1.0, default_exact)
        >>> len(solution.steps), solution.final.t
        (11, 1.0)
    """
    method = parse_method(OdeMethod, method)
    times = step_grid(h, t0, tf)
    h = float(h)
    y = as_finite_scalar(y0, "y0")
    last = len(times) - 1

    steps: list[StepRecord] = []
    for k in range(len(times)):
        t = float(times[k])

        exact_value = error = None
        if exact is not None:
            exact_value = _exact_value(exact, t)
            error = abs(y - exact_value)

        if k == last:
            steps.append(StepRecord(t=t, y=y, exact=exact_value, error=error))
            break

        dt = h if k < last - 1 else float(times[last]) - t
        slopes = predictor = corrector = None

        if method is OdeMethod.EULER:
            y_next = y + dt * _slope(f, t, y)
        elif method is OdeMethod.HEUN:
            slope = _slope(f, t, y)
            predictor = y + dt * slope
            corrector = y + (dt / 2.0) * (slope + _slope(f, t + dt, predictor))
            y_next = corrector
        else:
            k1 = _slope(f, t, y)
            k2 = _slope(f, t + dt / 2.0, y + (dt / 2.0) * k1)
            k3 = _slope(f, t + dt / 2.0, y + (dt / 2.0) * k2)
            k4 = _slope(f, t + dt, y + dt * k3)
            slopes = RK4Slopes(k1, k2, k3, k4)
            y_next = y + (dt / 6.0) * (k1 + 2.0 * k2 + 2.0 * k3 + k4)

        steps.append(
            StepRecord(
                t=t,
                y=y,
                exact=exact_value,
                error=error,
                slopes=slopes,
                predictor=predictor,
                corrector=corrector,
            )
        )

        if not math.isfinite(y_next):
            raise EvaluationError(
                f"{method.value} solution overflowed after t = {t:g}",
                bindings={"t": t, "y": y},
            )
        y = y_next

    logger.debug("%s: %d steps with h = %g", method.value, len(steps) - 1, h)
    return ODESolution(method=method, step_size=h, steps=tuple(steps))


def euler(
    f: Derivative,
    h: float,
    t0: float,
    tf: float,
    y0: float,
    exact: ExactSolution | None = None,
) -> ODESolution:
    """Forward Euler: y_{n+1} = y_n + h·f(t_n, y_n)."""
    return integrate_ode(f, h, t0, tf, y0, exact, method=OdeMethod.EULER)


def heun(
    f: Derivative,
    h: float,
    t0: float,
    tf: float,
    y0: float,
    exact: ExactSolution | None = None,
) -> ODESolution:
    """Heun's method (RK2): Euler predictor, trapezoidal corrector."""
    return integrate_ode(f, h, t0, tf, y0, exact, method=OdeMethod.HEUN)


def rk4(
    f: Derivative,
    h: float,
    t0: float,
    tf: float,
    y0: float,
    exact: ExactSolution | None = None,
) -> ODESolution:
    """Classical fourth-order Runge-Kutta, weights (1, 2, 2, 1) / 6."""
    return integrate_ode(f, h, t0, tf, y0, exact, method=OdeMethod.RK4)


__all__ = [
    "Derivative",
    "ExactSolution",
    "RK4Slopes",
    "StepRecord",
    "ODESolution",
    "ODEProblem",
    "DEFAULT_PROBLEM",
    "default_rhs",
    "default_exact",
    "step_grid",
    "integrate_ode",
    "euler",
    "heun",
    "rk4",
]
