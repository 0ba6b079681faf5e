"""
Exception hierarchy for Numerics Lab.

Every error raised by the library derives from NumericsLabError so callers
can catch the whole family at once. Failures are terminal for the call that
raised them: no routine returns a partial or approximate result.

Exceptions carry diagnostic information as attributes so a presentation
layer can report what went wrong without parsing messages.
"""

from __future__ import annotations


class NumericsLabError(Exception):
    """Base exception for all Numerics Lab errors."""


# =============================================================================
# INPUT VALIDATION
# =============================================================================


class ValidationError(NumericsLabError):
    """Input validation failed."""


class DimensionError(ValidationError):
    """Array shapes are incorrect or inconsistent with each other."""


class IllDefinedNodesError(ValidationError):
    """
    Interpolation nodes cannot define an interpolant.

    Raised for repeated x-values (Lagrange/Newton would divide by zero) or
    for too few nodes to build a spline.

    Attributes:
        x: The offending abscissa, if a duplicate was found.
        indices: Positions of the duplicate nodes in the caller's input.
    """

    def __init__(
        self,
        message: str,
        x: float | None = None,
        indices: tuple[int, ...] = (),
    ):
        super().__init__(message)
        self.x = x
        self.indices = indices


class BracketError(ValidationError):
    """
    Interval [a, b] does not bracket a root.

    Attributes:
        a, b: Interval endpoints.
        fa, fb: Function values at the endpoints (same sign).
    """

    def __init__(self, message: str, a: float, b: float, fa: float, fb: float):
        super().__init__(message)
        self.a = a
        self.b = b
        self.fa = fa
        self.fb = fb


# =============================================================================
# NUMERICAL FAILURES
# =============================================================================


class NumericalError(NumericsLabError):
    """Numerical computation broke down."""


class SingularMatrixError(NumericalError):
    """
    Matrix is singular or numerically singular.

    Raised when the selected pivot magnitude falls below the pivot tolerance
    during elimination or inversion.

    Attributes:
        pivot_index: Column in which elimination broke down.
        pivot_value: Magnitude of the best available pivot.
        tolerance: Threshold the pivot was compared against.
    """

    def __init__(
        self,
        message: str,
        pivot_index: int | None = None,
        pivot_value: float | None = None,
        tolerance: float | None = None,
    ):
        super().__init__(message)
        self.pivot_index = pivot_index
        self.pivot_value = pivot_value
        self.tolerance = tolerance


class ZeroPivotError(SingularMatrixError):
    """A diagonal pivot is zero in a routine that does not reorder rows."""


class RankDeficientError(NumericalError):
    """
    Matrix columns are linearly dependent.

    Attributes:
        column: Column whose orthogonal remainder vanished.
        norm: Norm of that remainder.
    """

    def __init__(
        self,
        message: str,
        column: int | None = None,
        norm: float | None = None,
    ):
        super().__init__(message)
        self.column = column
        self.norm = norm


class EvaluationError(NumericalError):
    """
    Expression or derivative evaluation produced no usable number.

    Attributes:
        expression: Source text of the expression, if any.
        bindings: Variable values used for the evaluation.
    """

    def __init__(
        self,
        message: str,
        expression: str | None = None,
        bindings: dict[str, float] | None = None,
    ):
        super().__init__(message)
        self.expression = expression
        self.bindings = dict(bindings or {})


# =============================================================================
# DOMAIN AND CONVERGENCE
# =============================================================================


class OutOfDomainError(NumericsLabError):
    """
    Evaluation point lies outside the covered interval.

    Attributes:
        x: Requested evaluation point.
        domain: (lower, upper) bounds of the covered interval.
    """

    def __init__(
        self,
        message: str,
        x: float,
        domain: tuple[float, float] | None = None,
    ):
        super().__init__(message)
        self.x = x
        self.domain = domain


class NonConvergentError(NumericsLabError):
    """
    Iteration budget exhausted without meeting the tolerance.

    Attributes:
        iterations: Number of iterations completed.
        final_residual: Residual after the last iteration.
        tolerance: The tolerance that was not met.
        reason: Why iteration stopped ('max_iterations', 'stagnated', ...).
    """

    def __init__(
        self,
        message: str,
        iterations: int,
        final_residual: float | None = None,
        tolerance: float | None = None,
        reason: str | None = None,
    ):
        super().__init__(message)
        self.iterations = iterations
        self.final_residual = final_residual
        self.tolerance = tolerance
        self.reason = reason


class ParseError(NumericsLabError):
    """
    Expression text could not be parsed or uses a forbidden construct.

    Attributes:
        expression: The rejected source text.
        offset: Column of the problem, when known.
    """

    def __init__(
        self,
        message: str,
        expression: str,
        offset: int | None = None,
    ):
        super().__init__(message)
        self.expression = expression
        self.offset = offset


__all__ = [
    "NumericsLabError",
    "ValidationError",
    "DimensionError",
    "IllDefinedNodesError",
    "BracketError",
    "NumericalError",
    "SingularMatrixError",
    "ZeroPivotError",
    "RankDeficientError",
    "EvaluationError",
    "OutOfDomainError",
    "NonConvergentError",
    "ParseError",
]
