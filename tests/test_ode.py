"""Tests for fixed-step ODE integrators."""

import math

import numpy as np
import pytest

from numerics_lab.algorithms.expression import compile_function
from numerics_lab.algorithms.ode import (
    DEFAULT_PROBLEM,
    StepRecord,
    default_exact,
    default_rhs,
    euler,
    heun,
    integrate_ode,
    rk4,
    step_grid,
)
from numerics_lab.data.methods import OdeMethod
from numerics_lab.exceptions import EvaluationError, ValidationError


def growth(t: float, y: float) -> float:
    """y' = y."""
    return y


class TestStepGrid:
    """Tests for the step-count time grid."""

    def test_exact_division(self) -> None:
        """h divides the interval: N = (tf - t0) / h steps."""
        times = step_grid(0.25, 0.0, 1.0)
        assert np.allclose(times, [0.0, 0.25, 0.5, 0.75, 1.0])

    def test_last_point_is_tf(self) -> None:
        """Accumulated rounding never overshoots or misses tf."""
        times = step_grid(0.1, 0.0, 1.0)
        assert len(times) == 11
        assert times[-1] == 1.0

    def test_representation_error(self) -> None:
        """0.3 / 0.1 slightly below 3 still gives three steps."""
        times = step_grid(0.1, 0.0, 0.3)
        assert len(times) == 4
        assert times[-1] == 0.3

    def test_shortened_last_step(self) -> None:
        """h not dividing the interval shortens the last step."""
        times = step_grid(0.3, 0.0, 1.0)
        assert np.allclose(times, [0.0, 0.3, 0.6, 0.9, 1.0])

    def test_empty_interval(self) -> None:
        """t0 == tf gives the single initial point."""
        assert list(step_grid(0.1, 2.0, 2.0)) == [2.0]

    @pytest.mark.parametrize("h", [0.0, -0.1, float("nan")])
    def test_invalid_step(self, h: float) -> None:
        """Step size must be a positive finite number."""
        with pytest.raises(ValidationError):
            step_grid(h, 0.0, 1.0)

    def test_reversed_interval(self) -> None:
        """tf before t0 is rejected."""
        with pytest.raises(ValidationError, match="reversed"):
            step_grid(0.1, 1.0, 0.0)


class TestStepRecord:
    """Tests for StepRecord dataclass."""

    def test_immutable(self) -> None:
        """StepRecord should be immutable."""
        record = StepRecord(t=0.0, y=1.0)
        with pytest.raises(AttributeError):
            record.y = 2.0  # type: ignore[misc]


class TestIntegrators:
    """Tests for Euler, Heun and RK4."""

    def test_record_count_and_ends(self) -> None:
        """One record per grid point, t0 first and tf last."""
        solution = rk4(default_rhs, 0.1, 0.0, 1.0, 1.0, default_exact)
        assert len(solution.steps) == 11
        assert solution.steps[0].t == 0.0
        assert solution.steps[0].y == 1.0
        assert solution.final.t == 1.0

    def test_error_ordering(self) -> None:
        """RK4 beats Heun beats Euler on y' = -2ty at t = 1."""
        errors = {
            method.__name__: method(default_rhs, 0.1, 0.0, 1.0, 1.0, default_exact).final_error
            for method in (euler, heun, rk4)
        }
        assert errors["rk4"] < errors["heun"] < errors["euler"]
        assert errors["rk4"] < 1e-4

    def test_euler_first_step(self) -> None:
        """f(0, 1) = 0 so the first Euler step stays at 1."""
        solution = euler(default_rhs, 0.1, 0.0, 1.0, 1.0)
        assert solution.steps[1].y == 1.0

    def test_heun_stage_values(self) -> None:
        """Predictor and corrector are stored on the departing record."""
        solution = heun(default_rhs, 0.1, 0.0, 1.0, 1.0)
        first = solution.steps[0]
        assert first.predictor == pytest.approx(1.0)
        assert first.corrector == pytest.approx(0.99)
        assert solution.steps[1].y == first.corrector

    def test_rk4_slopes(self) -> None:
        """Stage slopes of the first RK4 step of y' = -2ty."""
        slopes = rk4(default_rhs, 0.1, 0.0, 1.0, 1.0).steps[0].slopes
        assert slopes is not None
        assert slopes.k1 == pytest.approx(0.0)
        assert slopes.k2 == pytest.approx(-0.1)
        assert slopes.k3 == pytest.approx(-0.0995)
        assert slopes.k4 == pytest.approx(-0.19801)

    def test_final_record_has_no_stage_data(self) -> None:
        """Nothing departs from tf."""
        final = rk4(default_rhs, 0.1, 0.0, 1.0, 1.0).final
        assert final.slopes is None
        assert final.predictor is None
        assert final.corrector is None

    def test_euler_has_no_stage_data(self) -> None:
        """Euler records carry no stage values."""
        first = euler(default_rhs, 0.1, 0.0, 1.0, 1.0).steps[0]
        assert first.slopes is None
        assert first.predictor is None

    @pytest.mark.parametrize(
        "method,low,high",
        [(euler, 1.7, 2.3), (heun, 3.5, 4.5), (rk4, 12.0, 20.0)],
    )
    def test_convergence_order(self, method, low: float, high: float) -> None:
        """Halving h divides the error by about 2^order."""
        coarse = method(growth, 0.1, 0.0, 1.0, 1.0, math.exp).final_error
        fine = method(growth, 0.05, 0.0, 1.0, 1.0, math.exp).final_error
        assert low < coarse / fine < high

    def test_shortened_last_step_lands_on_tf(self) -> None:
        """With h = 0.3 on [0, 1] the final step has length 0.1."""
        solution = euler(growth, 0.3, 0.0, 1.0, 1.0)
        assert solution.times == pytest.approx([0.0, 0.3, 0.6, 0.9, 1.0])
        assert solution.final.y == pytest.approx(1.3**3 * 1.1)

    def test_no_exact_solution(self) -> None:
        """Errors are None without an exact solution."""
        solution = rk4(default_rhs, 0.1, 0.0, 1.0, 1.0)
        assert solution.final_error is None
        assert solution.max_error is None
        assert solution.final.exact is None

    def test_max_error(self) -> None:
        """max_error is the largest recorded error."""
        solution = euler(default_rhs, 0.1, 0.0, 2.0, 1.0, default_exact)
        assert solution.max_error == max(s.error for s in solution.steps)

    def test_method_name(self) -> None:
        """integrate_ode accepts names and records the method."""
        solution = integrate_ode(default_rhs, 0.1, 0.0, 1.0, 1.0, method="Heun")
        assert solution.method is OdeMethod.HEUN
        assert solution.step_size == 0.1

    def test_expression_rhs(self) -> None:
        """A parsed formula integrates like the Python function."""
        f = compile_function("-2*t*y", ("t", "y"))
        parsed = rk4(f, 0.1, 0.0, 1.0, 1.0)
        native = rk4(default_rhs, 0.1, 0.0, 1.0, 1.0)
        assert parsed.values == pytest.approx(native.values)

    def test_default_problem(self) -> None:
        """The classroom problem integrates over [0, 2]."""
        solution = DEFAULT_PROBLEM.integrate("rk4", 0.1)
        assert solution.final.t == 2.0
        assert solution.final_error < 1e-4


class TestFailures:
    """Tests for evaluation failures."""

    def test_derivative_raises(self) -> None:
        """Math errors in f are reported as EvaluationError."""
        with pytest.raises(EvaluationError, match="Derivative failed"):
            euler(lambda t, y: math.log(y - 2.0), 0.1, 0.0, 1.0, 1.0)

    def test_derivative_not_finite(self) -> None:
        """Infinite slopes are reported."""
        with pytest.raises(EvaluationError, match="not finite"):
            rk4(lambda t, y: float("inf"), 0.1, 0.0, 1.0, 1.0)

    def test_overflow(self) -> None:
        """Blow-up is an error, not a trace of infinities."""
        with pytest.raises(EvaluationError):
            euler(lambda t, y: math.exp(y), 1.0, 0.0, 10.0, 1.0)

    def test_exact_solution_fails(self) -> None:
        """Errors in the exact solution are reported too."""
        with pytest.raises(EvaluationError, match="Exact solution"):
            euler(default_rhs, 0.1, 0.0, 1.0, 1.0, lambda t: math.sqrt(-1.0 - t))

    def test_invalid_initial_value(self) -> None:
        """y0 must be finite."""
        with pytest.raises(ValidationError):
            euler(default_rhs, 0.1, 0.0, 1.0, float("nan"))
