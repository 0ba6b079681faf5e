"""Method identifiers for every solver family.

String names coming from the CLI or a presentation layer are parsed
leniently: case, hyphens and spaces are normalized, so ``"Gauss-Seidel"``
and ``"gauss_seidel"`` name the same method.
"""

from enum import Enum
from typing import TypeVar


class LinearMethod(Enum):
    """Methods for solving a dense linear system."""

    GAUSS = "gauss"
    LU = "lu"
    JACOBI = "jacobi"
    GAUSS_SEIDEL = "gauss_seidel"

    @property
    def is_iterative(self) -> bool:
        return self in (LinearMethod.JACOBI, LinearMethod.GAUSS_SEIDEL)


class IterativeMethod(Enum):
    """Relaxation sweeps."""

    JACOBI = "jacobi"
    GAUSS_SEIDEL = "gauss_seidel"


class InterpolationMethod(Enum):
    """Interpolants over a node set."""

    LAGRANGE = "lagrange"
    NEWTON = "newton"
    SPLINE = "spline"


class OdeMethod(Enum):
    """Fixed-step explicit integrators, in increasing order of accuracy."""

    EULER = "euler"
    HEUN = "heun"
    RK4 = "rk4"

    @property
    def order(self) -> int:
        """Global order of accuracy."""
        return {OdeMethod.EULER: 1, OdeMethod.HEUN: 2, OdeMethod.RK4: 4}[self]


class RootMethod(Enum):
    """Scalar root finders: one bracketing method and three open methods."""

    BISECTION = "bisection"
    FIXED_POINT = "fixed_point"
    NEWTON = "newton"
    SECANT = "secant"

    @property
    def is_bracketing(self) -> bool:
        return self is RootMethod.BISECTION

    @property
    def order(self) -> float:
        """Asymptotic order of convergence for a simple root."""
        return {
            RootMethod.BISECTION: 1.0,
            RootMethod.FIXED_POINT: 1.0,
            RootMethod.NEWTON: 2.0,
            RootMethod.SECANT: (1.0 + 5.0**0.5) / 2.0,
        }[self]


class DifferenceMethod(Enum):
    """Finite-difference approximations of f'(x)."""

    FORWARD = "forward"
    BACKWARD = "backward"
    CENTRAL = "central"

    @property
    def order(self) -> int:
        return 2 if self is DifferenceMethod.CENTRAL else 1


class QuadratureMethod(Enum):
    """Composite Newton-Cotes rules."""

    MIDPOINT = "midpoint"
    TRAPEZOID = "trapezoid"
    SIMPSON = "simpson"

    @property
    def order(self) -> int:
        return 4 if self is QuadratureMethod.SIMPSON else 2


_E = TypeVar("_E", bound=Enum)


def parse_method(enum_cls: type[_E], name: _E | str) -> _E:
    """Parse a method name into a member of ``enum_cls``.

    Args:
        enum_cls: One of the method enums in this module.
        name: Enum member or string such as ``"Gauss-Seidel"``.

    Returns:
        The matching enum member.

    Raises:
        ValueError: If no member matches.

    Example:
        >>> parse_method(OdeMethod, "RK4")
        <OdeMethod.RK4: 'rk4'>
    """
    if isinstance(name, enum_cls):
        return name
    if isinstance(name, Enum):
        name = name.value

    normalized = str(name).lower().replace("-", "_").replace(" ", "_")
    for member in enum_cls:
        if member.value == normalized:
            return member

    valid = [m.value for m in enum_cls]
    raise ValueError(f"Unknown {enum_cls.__name__}: '{name}'. Valid: {valid}")
