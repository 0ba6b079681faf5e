"""
Numerical Tolerances - Single Source of Truth

This module defines every threshold the numerical kernel compares against:
pivot and rank cut-offs, breakdown guards, the ODE grid guard and the default
convergence targets of the iterative drivers.

Each routine that uses a tolerance also accepts a keyword override, so these
values are defaults rather than hard limits.

References:
    - Burden & Faires: "Numerical Analysis" (10th ed.), Chapters 6-7
    - Higham: "Accuracy and Stability of Numerical Algorithms" (2nd ed.)
"""

from dataclasses import dataclass
from enum import Enum


class Tolerance(Enum):
    """Named numerical thresholds."""

    PIVOT = "pivot"
    RANK = "rank"
    BREAKDOWN = "breakdown"
    STEP_END = "step_end"
    RESIDUAL = "residual"
    EIGENVALUE = "eigenvalue"
    ROOT = "root"


@dataclass(frozen=True, slots=True)
class ToleranceSpec:
    """Specification for a named tolerance."""

    kind: Tolerance
    value: float
    description: str


# =============================================================================
# TOLERANCE TABLE
# =============================================================================
# Pivot/rank/breakdown thresholds are absolute magnitudes.
# STEP_END guards ceil((tf - t0) / h) against representation error in h.

_TOLERANCE_SPECS: dict[Tolerance, ToleranceSpec] = {
    Tolerance.PIVOT: ToleranceSpec(
        kind=Tolerance.PIVOT,
        value=1e-10,
        description="Smallest pivot magnitude accepted during elimination",
    ),
    Tolerance.RANK: ToleranceSpec(
        kind=Tolerance.RANK,
        value=1e-10,
        description="Smallest column remainder norm accepted by Gram-Schmidt",
    ),
    Tolerance.BREAKDOWN: ToleranceSpec(
        kind=Tolerance.BREAKDOWN,
        value=1e-10,
        description="Smallest iterate norm before power iteration breaks down",
    ),
    Tolerance.STEP_END: ToleranceSpec(
        kind=Tolerance.STEP_END,
        value=1e-10,
        description="Slack when counting fixed ODE steps over [t0, tf]",
    ),
    Tolerance.RESIDUAL: ToleranceSpec(
        kind=Tolerance.RESIDUAL,
        value=1e-8,
        description="Default max-residual target for iterative solvers",
    ),
    Tolerance.EIGENVALUE: ToleranceSpec(
        kind=Tolerance.EIGENVALUE,
        value=1e-10,
        description="Default relative change target for eigenvalue estimates",
    ),
    Tolerance.ROOT: ToleranceSpec(
        kind=Tolerance.ROOT,
        value=1e-10,
        description="Default step-size target for root finders",
    ),
}


# =============================================================================
# PUBLIC API
# =============================================================================


def get_spec(kind: Tolerance | str) -> ToleranceSpec:
    """
    Get the full specification for a tolerance.

    Args:
        kind: Tolerance (enum or string like 'pivot', 'STEP-END')

    Returns:
        ToleranceSpec with value and description

    Raises:
        ValueError: If the tolerance name is unknown

    Example:
        >>> get_spec("pivot").value
        1e-10
    """
    if isinstance(kind, str):
        kind = _parse_kind(kind)
    return _TOLERANCE_SPECS[kind]


def get_tolerance(kind: Tolerance | str) -> float:
    """
    Get the default value of a tolerance.

    Example:
        >>> get_tolerance("residual")
        1e-08
    """
    return get_spec(kind).value


def resolve_tolerance(value: float | None, kind: Tolerance | str) -> float:
    """Return an explicit override, or the default for ``kind``."""
    if value is None:
        return get_tolerance(kind)
    if not value > 0:
        raise ValueError(f"Tolerance '{kind}' must be positive, got {value}")
    return float(value)


def list_tolerances() -> list[ToleranceSpec]:
    """List all tolerance specifications in declaration order."""
    return [_TOLERANCE_SPECS[kind] for kind in Tolerance]


# =============================================================================
# INTERNAL HELPERS
# =============================================================================


def _parse_kind(name: str) -> Tolerance:
    """Parse a string into a Tolerance enum."""
    normalized = name.lower().replace("-", "_").replace(" ", "_")

    for kind in Tolerance:
        if kind.value == normalized:
            return kind

    valid = [k.value for k in Tolerance]
    raise ValueError(f"Unknown tolerance: '{name}'. Valid: {valid}")
