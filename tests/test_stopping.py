"""Tests for stopping criteria."""

import math

import pytest

from numerics_lab.algorithms.stopping import (
    AnyOf,
    DivergenceDetector,
    ResidualTolerance,
    StagnationDetector,
    StopDecision,
    create_criterion,
    default_criterion,
)


class TestStopDecision:
    """Tests for StopDecision dataclass."""

    def test_immutable(self) -> None:
        """StopDecision should be immutable."""
        decision = StopDecision(stop=True, reason="converged")
        with pytest.raises(AttributeError):
            decision.stop = False  # type: ignore[misc]

    def test_slots(self) -> None:
        """StopDecision should use slots (no __dict__)."""
        assert not hasattr(StopDecision(stop=False), "__dict__")

    def test_converged_property(self) -> None:
        """Only a stop for reason 'converged' counts as convergence."""
        assert StopDecision(stop=True, reason="converged").converged
        assert not StopDecision(stop=True, reason="diverging").converged
        assert not StopDecision(stop=False, reason="converged").converged


class TestResidualTolerance:
    """Tests for ResidualTolerance."""

    def test_default_tolerance(self) -> None:
        """Default target is the residual tolerance."""
        assert ResidualTolerance().tolerance == 1e-8

    def test_stops_at_tolerance(self) -> None:
        """Residual at or below the target converges."""
        criterion = ResidualTolerance(tolerance=1e-6)
        assert criterion.check([1.0, 1e-6], 1).converged
        assert not criterion.check([1.0, 1e-5], 1).stop

    def test_empty_history(self) -> None:
        """Nothing to judge yet."""
        assert not ResidualTolerance().check([], 0).stop

    @pytest.mark.parametrize("tolerance", [0.0, -1.0])
    def test_invalid_tolerance(self, tolerance: float) -> None:
        """Tolerance must be positive."""
        with pytest.raises(ValueError, match="must be positive"):
            ResidualTolerance(tolerance=tolerance)


class TestStagnationDetector:
    """Tests for StagnationDetector."""

    def test_default_initialization(self) -> None:
        """Should initialize with default parameters."""
        detector = StagnationDetector()
        assert detector.window_size == 10
        assert detector.min_improvement == 1e-3

    def test_window_too_small(self) -> None:
        """Window needs at least two entries."""
        with pytest.raises(ValueError, match="window_size"):
            StagnationDetector(window_size=1)

    def test_flat_history_stagnates(self) -> None:
        """No improvement over the window stops the run."""
        decision = StagnationDetector().check([1.0] * 12, iteration=11)
        assert decision.stop
        assert decision.reason == "stagnated"
        assert not decision.converged

    def test_waits_for_min_iterations(self) -> None:
        """No decision before min_iterations."""
        assert not StagnationDetector().check([1.0] * 12, iteration=5).stop

    def test_improving_history_continues(self) -> None:
        """Steady geometric decrease is not stagnation."""
        history = [10.0**-k for k in range(12)]
        assert not StagnationDetector().check(history, iteration=11).stop


class TestDivergenceDetector:
    """Tests for DivergenceDetector."""

    def test_growth_detected(self) -> None:
        """Growth beyond the factor over the best residual stops."""
        decision = DivergenceDetector(growth_factor=100.0).check([1.0, 0.5, 100.0], 2)
        assert decision.stop
        assert decision.reason == "diverging"
        assert decision.score == pytest.approx(200.0)

    def test_non_finite_detected(self) -> None:
        """Overflow to infinity or NaN stops."""
        detector = DivergenceDetector()
        assert detector.check([1.0, math.inf], 1).reason == "diverging"
        assert detector.check([1.0, math.nan], 1).reason == "diverging"

    def test_decreasing_continues(self) -> None:
        """Shrinking residuals are fine."""
        assert not DivergenceDetector().check([1.0, 0.5, 0.25], 2).stop


class TestAnyOf:
    """Tests for the AnyOf composite."""

    def test_requires_criteria(self) -> None:
        """At least one criterion is needed."""
        with pytest.raises(ValueError, match="at least one"):
            AnyOf(())

    def test_first_firing_wins(self) -> None:
        """Criteria are consulted in order."""
        composite = AnyOf((ResidualTolerance(tolerance=1.0), DivergenceDetector(growth_factor=1.0)))
        assert composite.check([0.5, 0.9], 1).reason == "converged"

    def test_get_config(self) -> None:
        """Nested configuration lists each criterion."""
        config = default_criterion(1e-4).get_config()
        assert [c["type"] for c in config["criteria"]] == [
            "ResidualTolerance",
            "DivergenceDetector",
        ]
        assert config["criteria"][0]["config"] == {"tolerance": 1e-4}


class TestDefaultCriterion:
    """Tests for default_criterion."""

    def test_converges(self) -> None:
        """Stops on the residual target."""
        assert default_criterion(1e-3).check([1.0, 1e-4], 1).converged

    def test_guards_divergence(self) -> None:
        """Stops on blow-up."""
        assert default_criterion().check([1.0, 1e7], 1).reason == "diverging"


class TestCreateCriterion:
    """Tests for create_criterion factory."""

    def test_create_residual(self) -> None:
        """Should create ResidualTolerance."""
        criterion = create_criterion("residual", tolerance=1e-6)
        assert isinstance(criterion, ResidualTolerance)
        assert criterion.tolerance == 1e-6

    def test_create_stagnation(self) -> None:
        """Should create StagnationDetector."""
        assert isinstance(create_criterion("stagnation", window_size=20), StagnationDetector)

    def test_create_divergence(self) -> None:
        """Should create DivergenceDetector."""
        assert isinstance(create_criterion("divergence"), DivergenceDetector)

    def test_unknown_type(self) -> None:
        """Should raise for unknown criterion type."""
        with pytest.raises(ValueError, match="Unknown criterion"):
            create_criterion("oracle")
