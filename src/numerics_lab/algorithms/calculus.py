"""Numerical differentiation and composite quadrature of scalar functions.

Differences:
    forward   f'(x) ≈ (f(x+h) - f(x)) / h              O(h)
    backward  f'(x) ≈ (f(x) - f(x-h)) / h              O(h)
    central   f'(x) ≈ (f(x+h) - f(x-h)) / 2h           O(h²)
    second    f''(x) ≈ (f(x+h) - 2f(x) + f(x-h)) / h²  O(h²)

Quadrature over n subintervals of width h = (b - a) / n:
    midpoint   h Σ f(a + (i + ½)h)                     O(h²)
    trapezoid  h [½f₀ + f₁ + ... + f_{n-1} + ½f_n]     O(h²)
    simpson    h/3 [f₀ + 4f₁ + 2f₂ + ... + 4f_{n-1} + f_n], n even   O(h⁴)

Every function value passes through ``call_checked``, so a formula that
leaves its domain fails with EvaluationError instead of contributing 0.

References:
- Burden & Faires: "Numerical Analysis" (10th ed.), §4.1-4.4
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from numerics_lab.algorithms.expression import call_checked
from numerics_lab.data.methods import DifferenceMethod, QuadratureMethod, parse_method
from numerics_lab.data.validation import as_finite_scalar
from numerics_lab.exceptions import ValidationError

if TYPE_CHECKING:
    from numpy.typing import NDArray

logger = logging.getLogger(__name__)

Function = Callable[[float], float]


def _step(h: float) -> float:
    h = as_finite_scalar(h, "h")
    if h <= 0:
        raise ValidationError(f"h: step size must be positive, got {h}")
    return h


# =============================================================================
# DIFFERENCES
# =============================================================================


def forward_difference(f: Function, x: float, h: float) -> float:
    """First-order forward difference (f(x+h) - f(x)) / h."""
    x, h = as_finite_scalar(x, "x"), _step(h)
    return (call_checked(f, x + h) - call_checked(f, x)) / h


def backward_difference(f: Function, x: float, h: float) -> float:
    """First-order backward difference (f(x) - f(x-h)) / h."""
    x, h = as_finite_scalar(x, "x"), _step(h)
    return (call_checked(f, x) - call_checked(f, x - h)) / h


def central_difference(f: Function, x: float, h: float) -> float:
    """Second-order central difference (f(x+h) - f(x-h)) / 2h."""
    x, h = as_finite_scalar(x, "x"), _step(h)
    return (call_checked(f, x + h) - call_checked(f, x - h)) / (2.0 * h)


def second_derivative(f: Function, x: float, h: float) -> float:
    """Three-point estimate of f''(x)."""
    x, h = as_finite_scalar(x, "x"), _step(h)
    fx = call_checked(f, x)
    return (call_checked(f, x + h) - 2.0 * fx + call_checked(f, x - h)) / (h * h)


_DIFFERENCES: dict[DifferenceMethod, Callable[[Function, float, float], float]] = {
    DifferenceMethod.FORWARD: forward_difference,
    DifferenceMethod.BACKWARD: backward_difference,
    DifferenceMethod.CENTRAL: central_difference,
}


def differentiate(
    f: Function,
    x: float,
    h: float,
    *,
    method: DifferenceMethod | str = DifferenceMethod.CENTRAL,
) -> float:
    """Estimate f'(x) with the chosen difference formula.

    Args:
        f: Scalar function.
        x: Evaluation point.
        h: Step size (> 0).
        method: 'forward', 'backward' or 'central'.

    Raises:
        ValidationError: If x is not finite or h is not positive.
        EvaluationError: If f fails or is not finite at a sample point.

    Example:
        >>> round(differentiate(lambda x: x**2, 1.0, 0.1, method="forward"), 12)
        2.1
    """
    method = parse_method(DifferenceMethod, method)
    return _DIFFERENCES[method](f, x, h)


def richardson_extrapolation(
    f: Function,
    x: float,
    h: float,
    *,
    method: DifferenceMethod | str = DifferenceMethod.CENTRAL,
) -> float:
    """Combine D(h) and D(h/2) to cancel the leading error term.

    For a formula of order p:  R = D(h/2) + (D(h/2) - D(h)) / (2^p - 1)
    """
    method = parse_method(DifferenceMethod, method)
    coarse = _DIFFERENCES[method](f, x, h)
    fine = _DIFFERENCES[method](f, x, h / 2.0)
    return fine + (fine - coarse) / (2**method.order - 1)


# =============================================================================
# QUADRATURE
# =============================================================================


@dataclass(frozen=True, slots=True)
class QuadratureResult:
    """Composite rule applied to f over [a, b]."""

    method: QuadratureMethod

    value: float
    """Approximation of the integral."""

    a: float
    b: float

    n: int
    """Number of subintervals."""

    nodes: NDArray[np.float64]
    """Sample points (read-only)."""

    weights: NDArray[np.float64]
    """Rule weights, value = Σ weights · samples (read-only)."""

    samples: NDArray[np.float64]
    """f at each node (read-only)."""

    @property
    def h(self) -> float:
        """Subinterval width (negative for a reversed interval)."""
        return (self.b - self.a) / self.n


def _check_subintervals(n: int, method: QuadratureMethod) -> int:
    if isinstance(n, bool) or not isinstance(n, (int, np.integer)):
        raise ValidationError(f"n: expected an integer number of subintervals, got {n!r}")
    if n < 1:
        raise ValidationError(f"n: at least one subinterval is required, got {n}")
    if method is QuadratureMethod.SIMPSON and n % 2:
        raise ValidationError(f"n: Simpson's rule needs an even number of subintervals, got {n}")
    return int(n)


def _nodes_and_weights(
    method: QuadratureMethod, a: float, b: float, n: int
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    h = (b - a) / n
    if method is QuadratureMethod.MIDPOINT:
        nodes = a + (np.arange(n) + 0.5) * h
        return nodes, np.full(n, h)

    nodes = np.linspace(a, b, n + 1)
    if method is QuadratureMethod.TRAPEZOID:
        weights = np.full(n + 1, h)
        weights[[0, -1]] = h / 2.0
        return nodes, weights

    weights = np.where(np.arange(n + 1) % 2 == 1, 4.0, 2.0)
    weights[[0, -1]] = 1.0
    return nodes, weights * (h / 3.0)


def integrate(
    f: Function,
    a: float,
    b: float,
    n: int,
    *,
    method: QuadratureMethod | str = QuadratureMethod.SIMPSON,
) -> QuadratureResult:
    """Approximate ∫_a^b f(x) dx with a composite Newton-Cotes rule.

    Args:
        f: Scalar integrand.
        a: Lower limit.
        b: Upper limit (b < a integrates backwards and flips the sign).
        n: Number of subintervals (even for Simpson).
        method: 'midpoint', 'trapezoid' or 'simpson'.

    Returns:
        QuadratureResult with the value, nodes, weights and samples.

    Raises:
        ValidationError: For non-finite limits or an invalid n.
        EvaluationError: If f fails or is not finite at a node.

    Example:
        >>> integrate(lambda x: x, 0.0, 2.0, 1, method="trapezoid").value
        2.0
    """
    method = parse_method(QuadratureMethod, method)
    a = as_finite_scalar(a, "a")
    b = as_finite_scalar(b, "b")
    n = _check_subintervals(n, method)

    nodes, weights = _nodes_and_weights(method, a, b, n)
    samples = np.array([call_checked(f, float(x)) for x in nodes])
    value = float(np.dot(weights, samples))
    logger.debug("%s over [%g, %g] with n=%d: %.12g", method.value, a, b, n, value)

    for array in (nodes, weights, samples):
        array.flags.writeable = False
    return QuadratureResult(
        method=method,
        value=value,
        a=a,
        b=b,
        n=n,
        nodes=nodes,
        weights=weights,
        samples=samples,
    )


def midpoint_rule(f: Function, a: float, b: float, n: int = 1) -> QuadratureResult:
    return integrate(f, a, b, n, method=QuadratureMethod.MIDPOINT)


def trapezoid_rule(f: Function, a: float, b: float, n: int = 1) -> QuadratureResult:
    return integrate(f, a, b, n, method=QuadratureMethod.TRAPEZOID)


def simpson_rule(f: Function, a: float, b: float, n: int = 2) -> QuadratureResult:
    return integrate(f, a, b, n, method=QuadratureMethod.SIMPSON)


__all__ = [
    "Function",
    "forward_difference",
    "backward_difference",
    "central_difference",
    "second_derivative",
    "differentiate",
    "richardson_extrapolation",
    "QuadratureResult",
    "integrate",
    "midpoint_rule",
    "trapezoid_rule",
    "simpson_rule",
]
