"""Polynomial and spline interpolation.

Implements three interpolants over a node set:
- Lagrange form (basis polynomials L_i)
- Newton form via the divided-difference table
- Natural cubic spline (tridiagonal solve for the quadratic coefficients)

Lagrange and Newton represent the same unique interpolating polynomial and
agree up to rounding. Node x-values must be pairwise distinct; duplicates
are rejected up front with IllDefinedNodesError instead of producing
NaN or infinity.

References:
- Burden & Faires: "Numerical Analysis" (10th ed.), §3.1-3.3, §3.5
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from numerics_lab.data.methods import InterpolationMethod, parse_method
from numerics_lab.data.validation import as_finite_scalar
from numerics_lab.exceptions import (
    DimensionError,
    IllDefinedNodesError,
    OutOfDomainError,
    ValidationError,
)

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray

logger = logging.getLogger(__name__)


DEFAULT_POINTS: tuple[tuple[float, float], ...] = (
    (0.0, 1.0),
    (1.0, 2.7),
    (2.0, 7.4),
    (3.0, 20.1),
    (4.0, 54.6),
)
"""Classroom node set sampling e^x at x = 0..4."""


@dataclass(frozen=True, slots=True)
class NodeSet:
    """Validated interpolation nodes in caller order.

    Construction checks the nodes, so a NodeSet built directly is held to
    the same rules as one returned by ``as_nodes``.

    Raises:
        ValidationError: If there are no nodes or values are not finite.
        DimensionError: If x and y are not 1-D arrays of equal length.
        IllDefinedNodesError: If two nodes share an x-value.
    """

    x: NDArray[np.float64]
    """Abscissae, pairwise distinct."""

    y: NDArray[np.float64]
    """Ordinates."""

    def __post_init__(self) -> None:
        x = np.array(self.x, dtype=np.float64)
        y = np.array(self.y, dtype=np.float64)
        if x.ndim != 1 or y.shape != x.shape:
            raise DimensionError(
                f"nodes: x and y must be 1-D of equal length, got {x.shape} and {y.shape}"
            )
        if x.size == 0:
            raise ValidationError("nodes: at least one node is required")
        if not (np.all(np.isfinite(x)) and np.all(np.isfinite(y))):
            raise ValidationError("nodes: contain NaN or infinite values")

        order = np.argsort(x, kind="stable")
        duplicates = np.nonzero(np.diff(x[order]) == 0.0)[0]
        if duplicates.size:
            first, second = sorted(
                (int(order[duplicates[0]]), int(order[duplicates[0] + 1]))
            )
            raise IllDefinedNodesError(
                f"nodes: x = {x[first]:g} appears at positions {first} and {second}; "
                "interpolation nodes must have distinct x-values",
                x=float(x[first]),
                indices=(first, second),
            )

        x.flags.writeable = False
        y.flags.writeable = False
        object.__setattr__(self, "x", x)
        object.__setattr__(self, "y", y)

    def __len__(self) -> int:
        return int(self.x.size)

    def pairs(self) -> list[tuple[float, float]]:
        return [(float(a), float(b)) for a, b in zip(self.x, self.y)]


NodesLike = NodeSet | Iterable[Sequence[float]] | Iterable[tuple[float, float]]


def as_nodes(points: NodesLike | ArrayLike) -> NodeSet:
    """Validate a node set.

    Args:
        points: NodeSet, sequence of (x, y) pairs, or an (n, 2) array.

    Returns:
        NodeSet with read-only float64 arrays.

    Raises:
        ValidationError: If there are no nodes or values are not finite.
        DimensionError: If entries are not (x, y) pairs.
        IllDefinedNodesError: If two nodes share an x-value.
    """
    if isinstance(points, NodeSet):
        # validated on construction
        return points

    try:
        data = np.array(list(points), dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise DimensionError(f"nodes: expected (x, y) pairs: {e}") from e

    if data.size == 0:
        raise ValidationError("nodes: at least one node is required")
    if data.ndim != 2 or data.shape[1] != 2:
        raise DimensionError(f"nodes: expected (x, y) pairs, got shape {data.shape}")

    return NodeSet(x=data[:, 0], y=data[:, 1])


# =============================================================================
# LAGRANGE
# =============================================================================


def lagrange_basis(i: int, x: float, nodes: NodesLike) -> float:
    """Lagrange basis polynomial L_i(x) = prod_{j != i} (x - x_j) / (x_i - x_j)."""
    nodes = as_nodes(nodes)
    if not 0 <= i < len(nodes):
        raise IndexError(f"basis index {i} out of range for {len(nodes)} nodes")
    x = as_finite_scalar(x, "x")

    xs = nodes.x
    result = 1.0
    for j in range(len(nodes)):
        if j != i:
            result *= (x - xs[j]) / (xs[i] - xs[j])
    return result


def lagrange_interpolate(nodes: NodesLike, x: float) -> float:
    """Evaluate the interpolating polynomial in Lagrange form at x."""
    nodes = as_nodes(nodes)
    return float(
        sum(nodes.y[i] * lagrange_basis(i, x, nodes) for i in range(len(nodes)))
    )


# =============================================================================
# NEWTON
# =============================================================================


def divided_differences(nodes: NodesLike) -> NDArray[np.float64]:
    """Divided-difference table.

    table[i][0] = y_i
    table[i][j] = (table[i+1][j-1] - table[i][j-1]) / (x_{i+j} - x_i)

    Entries below the anti-diagonal (i + j >= n) are zero.
    """
    nodes = as_nodes(nodes)
    n = len(nodes)
    xs = nodes.x
    table = np.zeros((n, n), dtype=np.float64)
    table[:, 0] = nodes.y

    for j in range(1, n):
        for i in range(n - j):
            table[i, j] = (table[i + 1, j - 1] - table[i, j - 1]) / (xs[i + j] - xs[i])

    return table


def newton_coefficients(nodes: NodesLike) -> NDArray[np.float64]:
    """Coefficients f[x_0], f[x_0, x_1], ... of Newton's forward form."""
    return divided_differences(nodes)[0].copy()


def newton_interpolate(nodes: NodesLike, x: float) -> float:
    """Evaluate Newton's form.

    P(x) = c_0 + sum_{i=1}^{n-1} c_i * prod_{k<i} (x - x_k)
    """
    nodes = as_nodes(nodes)
    x = as_finite_scalar(x, "x")
    coefficients = newton_coefficients(nodes)

    result = coefficients[0]
    term = 1.0
    for i in range(1, len(nodes)):
        term *= x - nodes.x[i - 1]
        result += coefficients[i] * term
    return float(result)


# =============================================================================
# NATURAL CUBIC SPLINE
# =============================================================================


@dataclass(frozen=True, slots=True)
class SplineSegment:
    """Cubic a + b·dx + c·dx² + d·dx³ on [x0, x1], dx = x - x0."""

    a: float
    b: float
    c: float
    d: float
    x0: float
    x1: float

    def contains(self, x: float) -> bool:
        return self.x0 <= x <= self.x1

    def evaluate(self, x: float) -> float:
        dx = x - self.x0
        return self.a + self.b * dx + self.c * dx * dx + self.d * dx * dx * dx


def build_natural_spline(nodes: NodesLike) -> tuple[SplineSegment, ...]:
    """Construct the natural cubic spline through the nodes.

    Nodes are sorted by x. With n + 1 nodes, solves the tridiagonal system
    for c_1..c_{n-1} by forward elimination and back substitution (Thomas
    algorithm), with natural boundary conditions c_0 = c_n = 0, then derives
    b_i and d_i from c and the node values.

    Returns:
        n segments covering consecutive node intervals without gaps.

    Raises:
        IllDefinedNodesError: With fewer than two nodes or duplicate x-values.
    """
    nodes = as_nodes(nodes)
    if len(nodes) < 2:
        raise IllDefinedNodesError(
            f"A cubic spline needs at least two nodes, got {len(nodes)}"
        )

    order = np.argsort(nodes.x, kind="stable")
    xs = nodes.x[order]
    ys = nodes.y[order]
    n = len(nodes) - 1

    h = np.diff(xs)

    alpha = np.zeros(n, dtype=np.float64)
    for i in range(1, n):
        alpha[i] = (3.0 / h[i]) * (ys[i + 1] - ys[i]) - (3.0 / h[i - 1]) * (
            ys[i] - ys[i - 1]
        )

    # Forward elimination; l[0] = 1, mu[0] = z[0] = 0 encode c_0 = 0
    l = np.ones(n + 1, dtype=np.float64)  # noqa: E741
    mu = np.zeros(n + 1, dtype=np.float64)
    z = np.zeros(n + 1, dtype=np.float64)
    for i in range(1, n):
        l[i] = 2.0 * (xs[i + 1] - xs[i - 1]) - h[i - 1] * mu[i - 1]
        mu[i] = h[i] / l[i]
        z[i] = (alpha[i] - h[i - 1] * z[i - 1]) / l[i]

    c = np.zeros(n + 1, dtype=np.float64)
    b = np.zeros(n, dtype=np.float64)
    d = np.zeros(n, dtype=np.float64)
    for j in range(n - 1, -1, -1):
        c[j] = z[j] - mu[j] * c[j + 1]
        b[j] = (ys[j + 1] - ys[j]) / h[j] - h[j] * (c[j + 1] + 2.0 * c[j]) / 3.0
        d[j] = (c[j + 1] - c[j]) / (3.0 * h[j])

    return tuple(
        SplineSegment(
            a=float(ys[i]),
            b=float(b[i]),
            c=float(c[i]),
            d=float(d[i]),
            x0=float(xs[i]),
            x1=float(xs[i + 1]),
        )
        for i in range(n)
    )


def spline_domain(segments: Sequence[SplineSegment]) -> tuple[float, float]:
    """Interval [x_0, x_n] covered by a spline."""
    if not segments:
        raise ValidationError("spline has no segments")
    return segments[0].x0, segments[-1].x1


def evaluate_spline(segments: Sequence[SplineSegment], x: float) -> float:
    """Evaluate a spline at x.

    Uses the first segment whose closed interval contains x, so a shared
    interior node is evaluated on the left segment (both agree there).

    Raises:
        OutOfDomainError: If no segment covers x. There is no silent default.
    """
    x = as_finite_scalar(x, "x")
    if not segments:
        raise OutOfDomainError("Cannot evaluate an empty spline", x=x)

    for segment in segments:
        if segment.contains(x):
            return segment.evaluate(x)

    domain = spline_domain(segments)
    logger.debug("Spline evaluation at %g outside %s", x, domain)
    raise OutOfDomainError(
        f"x = {x:g} lies outside the spline domain [{domain[0]:g}, {domain[1]:g}]",
        x=x,
        domain=domain,
    )


def interpolate_at(
    nodes: NodesLike,
    x: float,
    *,
    method: InterpolationMethod | str = InterpolationMethod.LAGRANGE,
) -> float:
    """Evaluate the chosen interpolant of ``nodes`` at x."""
    method = parse_method(InterpolationMethod, method)
    if method is InterpolationMethod.LAGRANGE:
        return lagrange_interpolate(nodes, x)
    if method is InterpolationMethod.NEWTON:
        return newton_interpolate(nodes, x)
    return evaluate_spline(build_natural_spline(nodes), x)


__all__ = [
    "DEFAULT_POINTS",
    "NodeSet",
    "SplineSegment",
    "as_nodes",
    "lagrange_basis",
    "lagrange_interpolate",
    "divided_differences",
    "newton_coefficients",
    "newton_interpolate",
    "build_natural_spline",
    "spline_domain",
    "evaluate_spline",
    "interpolate_at",
]
