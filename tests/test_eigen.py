"""Tests for power iteration, deflation and the QR algorithm."""

import logging

import numpy as np
import pytest

from numerics_lab.algorithms.eigen import (
    PowerIteration,
    PowerMethodTrace,
    PowerStep,
    deflate,
    dominant_eigenpairs,
    inverse_iteration_step,
    power_iteration_step,
    qr_algorithm,
    rayleigh_quotient,
    run_power_method,
)
from numerics_lab.algorithms.matrices import create_known_spectrum_matrix
from numerics_lab.exceptions import NumericalError, SingularMatrixError


@pytest.fixture
def spectrum_matrix() -> np.ndarray:
    """Symmetric 3x3 matrix with eigenvalues 5, 2, 1."""
    return create_known_spectrum_matrix([5.0, 2.0, 1.0], seed=42)


class TestPowerStep:
    """Tests for PowerStep dataclass."""

    def test_immutable(self) -> None:
        """PowerStep should be immutable."""
        step = PowerStep(iteration=1, vector=np.ones(2), eigenvalue=1.0)
        with pytest.raises(AttributeError):
            step.eigenvalue = 2.0  # type: ignore[misc]

    def test_slots(self) -> None:
        """PowerStep should use slots (no __dict__)."""
        step = PowerStep(iteration=1, vector=np.ones(2), eigenvalue=1.0)
        assert not hasattr(step, "__dict__")


class TestRayleighQuotient:
    """Tests for rayleigh_quotient."""

    def test_value(self) -> None:
        """v^T A v / v^T v for diag(2, 3) and v = [1, 1]."""
        assert rayleigh_quotient([[2, 0], [0, 3]], [1, 1]) == pytest.approx(2.5)

    def test_eigenvector_gives_eigenvalue(self) -> None:
        """At an eigenvector the quotient is exact."""
        assert rayleigh_quotient([[2, 0], [0, 3]], [0, 5]) == pytest.approx(3.0)

    def test_zero_vector(self) -> None:
        """Undefined for the zero vector."""
        with pytest.raises(NumericalError):
            rayleigh_quotient([[2, 0], [0, 3]], [0, 0])


class TestPowerIterationStep:
    """Tests for the stateless single step."""

    def test_single_step(self) -> None:
        """One step normalizes A v and reports the Rayleigh quotient there."""
        step = power_iteration_step([[2, 0], [0, 3]], [1, 1])
        assert np.allclose(step.vector, np.array([2.0, 3.0]) / np.sqrt(13.0))
        assert step.eigenvalue == pytest.approx(35.0 / 13.0)

    def test_breakdown(self) -> None:
        """A v = 0 is a breakdown, not a silent zero vector."""
        with pytest.raises(NumericalError, match="broke down"):
            power_iteration_step([[0, 1], [0, 0]], [1, 0])

    def test_input_not_modified(self) -> None:
        """Caller's vector is left untouched."""
        v = np.array([1.0, 1.0])
        power_iteration_step([[2, 0], [0, 3]], v)
        assert np.array_equal(v, [1.0, 1.0])


class TestInverseIterationStep:
    """Tests for shifted inverse iteration."""

    def test_converges_to_nearest(self) -> None:
        """Repeated steps find the eigenvalue nearest the shift."""
        v = np.array([1.0, 1.0])
        for _ in range(20):
            step = inverse_iteration_step([[2, 0], [0, 3]], v, shift=1.9)
            v = step.vector
        assert step.eigenvalue == pytest.approx(2.0)

    def test_shift_at_eigenvalue(self) -> None:
        """Shifting exactly onto an eigenvalue makes A - σI singular."""
        with pytest.raises(SingularMatrixError):
            inverse_iteration_step([[2, 0], [0, 3]], [1, 1], shift=2.0)


class TestPowerIteration:
    """Tests for PowerIteration class."""

    def test_initialization(self, spectrum_matrix: np.ndarray) -> None:
        """PowerIteration should initialize with a unit vector."""
        engine = PowerIteration(spectrum_matrix)
        assert engine.vector_norm == pytest.approx(1.0)
        assert engine.iteration == 0

    def test_iterate_returns_step(self, spectrum_matrix: np.ndarray) -> None:
        """iterate() should return PowerStep and advance the counter."""
        engine = PowerIteration(spectrum_matrix)
        step = engine.iterate()
        assert isinstance(step, PowerStep)
        assert step.iteration == 1
        assert engine.iteration == 1

    def test_vector_norm_stays_normalized(self, spectrum_matrix: np.ndarray) -> None:
        """Eigenvector should stay approximately normalized."""
        engine = PowerIteration(spectrum_matrix)
        for _ in range(20):
            engine.iterate()
        assert np.isclose(engine.vector_norm, 1.0, rtol=1e-10)

    def test_converges_to_dominant(self, spectrum_matrix: np.ndarray) -> None:
        """Estimates approach the largest eigenvalue."""
        engine = PowerIteration(spectrum_matrix)
        for _ in range(100):
            step = engine.iterate()
        assert step.eigenvalue == pytest.approx(5.0, rel=1e-10)

    def test_current_vector_is_copy(self, spectrum_matrix: np.ndarray) -> None:
        """Modifying current_vector does not affect the engine."""
        engine = PowerIteration(spectrum_matrix)
        engine.iterate()
        v = engine.current_vector
        v[:] = 0.0
        assert engine.vector_norm == pytest.approx(1.0)

    def test_step_vectors_independent(self, spectrum_matrix: np.ndarray) -> None:
        """Returned vectors are snapshots, not views of the ping-pong buffer."""
        engine = PowerIteration(spectrum_matrix)
        first = engine.iterate()
        saved = first.vector.copy()
        engine.iterate()
        engine.iterate()
        assert np.array_equal(first.vector, saved)

    def test_set_initial_vector_resets(self, spectrum_matrix: np.ndarray) -> None:
        """Resetting the start vector resets the iteration counter."""
        engine = PowerIteration(spectrum_matrix)
        engine.iterate()
        engine.set_initial_vector([1.0, 0.0, 0.0])
        assert engine.iteration == 0
        assert np.allclose(engine.current_vector, [1.0, 0.0, 0.0])

    def test_zero_initial_vector(self, spectrum_matrix: np.ndarray) -> None:
        """Zero starting vector is rejected."""
        with pytest.raises(NumericalError, match="nonzero"):
            PowerIteration(spectrum_matrix, initial_vector=np.zeros(3))

    def test_breakdown(self) -> None:
        """Nilpotent matrix annihilates the iterate."""
        engine = PowerIteration([[0, 1], [0, 0]], initial_vector=[1, 0])
        with pytest.raises(NumericalError, match="broke down"):
            engine.iterate()

    def test_matrix_copied(self) -> None:
        """Engine keeps a private copy of A."""
        A = np.diag([2.0, 3.0])
        engine = PowerIteration(A)
        A[1, 1] = 100.0
        for _ in range(80):
            step = engine.iterate()
        assert step.eigenvalue == pytest.approx(3.0)


class TestRunPowerMethod:
    """Tests for run_power_method convenience function."""

    def test_returns_trace(self) -> None:
        """Should return PowerMethodTrace."""
        trace = run_power_method(np.diag([2.0, 3.0]))
        assert isinstance(trace, PowerMethodTrace)

    def test_diagonal_matrix(self) -> None:
        """diag(2, 3) has dominant eigenvalue 3 with eigenvector ±e2."""
        trace = run_power_method(np.diag([2.0, 3.0]))
        assert trace.converged
        assert trace.final_eigenvalue == pytest.approx(3.0, abs=1e-8)
        assert abs(trace.final_vector[1]) == pytest.approx(1.0, abs=1e-6)

    def test_known_spectrum(self, spectrum_matrix: np.ndarray) -> None:
        """Dominant eigenvalue of a prescribed spectrum."""
        trace = run_power_method(spectrum_matrix)
        assert trace.final_eigenvalue == pytest.approx(5.0, rel=1e-8)

    def test_history_length(self) -> None:
        """One history entry per iteration."""
        trace = run_power_method(np.diag([2.0, 3.0]))
        assert len(trace.eigenvalue_history) == trace.iterations
        assert trace.total_time >= 0

    def test_budget_exhausted(self, caplog: pytest.LogCaptureFixture) -> None:
        """Non-convergence is reported, not raised."""
        with caplog.at_level(logging.WARNING, logger="numerics_lab.algorithms.eigen"):
            trace = run_power_method(np.diag([2.0, 3.0]), max_iterations=2)
        assert not trace.converged
        assert trace.iterations == 2
        assert "did not converge" in caplog.text

    def test_shifted_inverse_iteration(self, spectrum_matrix: np.ndarray) -> None:
        """With a shift, the nearest eigenvalue is found."""
        trace = run_power_method(spectrum_matrix, shift=0.8)
        assert trace.converged
        assert trace.final_eigenvalue == pytest.approx(1.0, rel=1e-8)

    def test_input_not_modified(self, spectrum_matrix: np.ndarray) -> None:
        """Caller's matrix is left untouched."""
        before = spectrum_matrix.copy()
        run_power_method(spectrum_matrix)
        assert np.array_equal(spectrum_matrix, before)

    @pytest.mark.parametrize("max_iterations", [0, -5])
    def test_empty_budget_rejected(self, max_iterations: int) -> None:
        """A budget without a single iteration has no estimate to report."""
        with pytest.raises(ValueError, match="max_iterations"):
            run_power_method(np.diag([2.0, 3.0]), max_iterations=max_iterations)

    def test_single_iteration_is_finite(self) -> None:
        """The smallest budget still yields a finite estimate."""
        trace = run_power_method(np.diag([2.0, 3.0]), max_iterations=1)
        assert trace.iterations == 1
        assert np.isfinite(trace.final_eigenvalue)
        assert np.all(np.isfinite(trace.final_vector))


class TestDeflation:
    """Tests for deflate and dominant_eigenpairs."""

    def test_deflate_removes_eigenvalue(self) -> None:
        """Deflating diag(3, 2) by (3, e1) leaves diag(0, 2)."""
        assert np.allclose(deflate(np.diag([3.0, 2.0]), 3.0, [1.0, 0.0]), np.diag([0.0, 2.0]))

    def test_deflate_zero_vector(self) -> None:
        """The zero vector is not an eigenvector."""
        with pytest.raises(NumericalError):
            deflate(np.eye(2), 1.0, [0.0, 0.0])

    def test_dominant_eigenpairs(self, spectrum_matrix: np.ndarray) -> None:
        """Successive deflation recovers the spectrum in magnitude order."""
        pairs = dominant_eigenpairs(spectrum_matrix, 3)
        assert [p.eigenvalue for p in pairs] == pytest.approx([5.0, 2.0, 1.0], rel=1e-6)
        for pair in pairs:
            residual = spectrum_matrix @ pair.eigenvector - pair.eigenvalue * pair.eigenvector
            assert np.linalg.norm(residual) < 1e-3

    @pytest.mark.parametrize("k", [0, 4])
    def test_invalid_k(self, spectrum_matrix: np.ndarray, k: int) -> None:
        """k must be between 1 and n."""
        with pytest.raises(ValueError):
            dominant_eigenpairs(spectrum_matrix, k)


class TestQRAlgorithm:
    """Tests for the unshifted QR algorithm."""

    def test_recovers_spectrum(self, spectrum_matrix: np.ndarray) -> None:
        """All eigenvalues, largest magnitude first."""
        trace = qr_algorithm(spectrum_matrix)
        assert trace.converged
        assert trace.eigenvalues == pytest.approx([5.0, 2.0, 1.0], rel=1e-8)

    def test_history(self, spectrum_matrix: np.ndarray) -> None:
        """One diagonal snapshot per iteration."""
        trace = qr_algorithm(spectrum_matrix)
        assert len(trace.history) == trace.iterations
        assert np.allclose(trace.history[-1], np.diag(trace.matrix))

    def test_budget_exhausted(self, spectrum_matrix: np.ndarray) -> None:
        """Too few iterations are reported as non-converged."""
        trace = qr_algorithm(spectrum_matrix, max_iterations=1)
        assert not trace.converged
        assert trace.iterations == 1

    def test_empty_budget_rejected(self, spectrum_matrix: np.ndarray) -> None:
        """Zero iterations is not a valid budget."""
        with pytest.raises(ValueError, match="max_iterations"):
            qr_algorithm(spectrum_matrix, max_iterations=0)
