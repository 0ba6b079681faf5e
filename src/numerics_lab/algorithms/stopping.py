"""Stopping criteria for caller-driven iterative loops.

The relaxation sweeps and power-iteration steps never decide on their own
when to stop. A driver feeds the residual history to one of these
strategies after each sweep; strategies can be swapped via dependency
injection.

Key Strategies:
- ResidualTolerance: residual at or below a target (converged)
- StagnationDetector: window-based relative improvement monitoring
- DivergenceDetector: residual growth over its running minimum
- AnyOf: first criterion that fires wins

References:
- Barrett et al., "Templates for the Solution of Linear Systems" (1994), §4.2
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field

from numerics_lab.data.tolerances import Tolerance, get_tolerance

CONVERGED = "converged"
STAGNATED = "stagnated"
DIVERGING = "diverging"
MAX_ITERATIONS = "max_iterations"


@dataclass(frozen=True, slots=True)
class StopDecision:
    """Result of a stopping check."""

    stop: bool
    """Whether the driver should stop iterating."""

    reason: str | None = None
    """Why: 'converged', 'stagnated' or 'diverging'."""

    score: float = 0.0
    """Criterion-specific diagnostic (residual, improvement, growth)."""

    @property
    def converged(self) -> bool:
        return self.stop and self.reason == CONVERGED


CONTINUE = StopDecision(stop=False)


class StoppingCriterion(ABC):
    """Abstract base class for stopping strategies."""

    @abstractmethod
    def check(self, residual_history: Sequence[float], iteration: int) -> StopDecision:
        """Decide whether to stop.

        Args:
            residual_history: Residual norms (oldest to newest).
            iteration: Index of the latest sweep.
        """

    @abstractmethod
    def get_config(self) -> dict:
        """Get configuration parameters."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


@dataclass
class ResidualTolerance(StoppingCriterion):
    """Stop once the latest residual is at or below the tolerance.

    Args:
        tolerance: Target max-residual (default 1e-8).
    """

    tolerance: float = field(default_factory=lambda: get_tolerance(Tolerance.RESIDUAL))

    def __post_init__(self) -> None:
        if not self.tolerance > 0:
            msg = f"Tolerance must be positive, got {self.tolerance}"
            raise ValueError(msg)

    def check(self, residual_history: Sequence[float], iteration: int) -> StopDecision:
        if not residual_history:
            return CONTINUE
        current = residual_history[-1]
        if current <= self.tolerance:
            return StopDecision(stop=True, reason=CONVERGED, score=current)
        return StopDecision(stop=False, score=current)

    def get_config(self) -> dict:
        return {"tolerance": self.tolerance}

    def __repr__(self) -> str:
        return f"ResidualTolerance(tolerance={self.tolerance:g})"


@dataclass
class StagnationDetector(StoppingCriterion):
    """Relative improvement stagnation detector.

    Monitors the relative change in residual over a sliding window and stops
    when improvement falls below ``min_improvement``.

    Args:
        window_size: Sliding window length (default 10).
        min_improvement: Required relative decrease over the window (default 1e-3).
        min_iterations: Iterations before checking (default 10).
    """

    window_size: int = 10
    min_improvement: float = 1e-3
    min_iterations: int = 10

    def __post_init__(self) -> None:
        if self.window_size < 2:
            msg = f"window_size must be at least 2, got {self.window_size}"
            raise ValueError(msg)

    def check(self, residual_history: Sequence[float], iteration: int) -> StopDecision:
        if iteration < self.min_iterations:
            return CONTINUE
        if len(residual_history) < self.window_size:
            return CONTINUE

        recent = residual_history[-self.window_size :]
        start, end = recent[0], recent[-1]
        if start <= 0:
            return CONTINUE

        improvement = (start - end) / start
        if improvement < self.min_improvement:
            return StopDecision(stop=True, reason=STAGNATED, score=improvement)
        return StopDecision(stop=False, score=improvement)

    def get_config(self) -> dict:
        return {
            "window_size": self.window_size,
            "min_improvement": self.min_improvement,
            "min_iterations": self.min_iterations,
        }

    def __repr__(self) -> str:
        return f"StagnationDetector(window={self.window_size})"


@dataclass
class DivergenceDetector(StoppingCriterion):
    """Stop when the residual blows up.

    Fires when the latest residual is not finite, or exceeds its running
    minimum by more than ``growth_factor``.

    Args:
        growth_factor: Allowed growth over the best residual seen (default 1e6).
    """

    growth_factor: float = 1e6

    def check(self, residual_history: Sequence[float], iteration: int) -> StopDecision:
        if not residual_history:
            return CONTINUE

        current = residual_history[-1]
        if not math.isfinite(current):
            return StopDecision(stop=True, reason=DIVERGING, score=math.inf)

        best = min(residual_history)
        if best > 0:
            growth = current / best
        else:
            growth = math.inf if current > 0 else 1.0

        if growth > self.growth_factor:
            return StopDecision(stop=True, reason=DIVERGING, score=growth)
        return StopDecision(stop=False, score=growth)

    def get_config(self) -> dict:
        return {"growth_factor": self.growth_factor}

    def __repr__(self) -> str:
        return f"DivergenceDetector(growth_factor={self.growth_factor:g})"


@dataclass
class AnyOf(StoppingCriterion):
    """Composite: the first criterion (in order) that fires decides."""

    criteria: tuple[StoppingCriterion, ...] = ()

    def __post_init__(self) -> None:
        self.criteria = tuple(self.criteria)
        if not self.criteria:
            msg = "AnyOf requires at least one criterion"
            raise ValueError(msg)

    def check(self, residual_history: Sequence[float], iteration: int) -> StopDecision:
        for criterion in self.criteria:
            decision = criterion.check(residual_history, iteration)
            if decision.stop:
                return decision
        return CONTINUE

    def get_config(self) -> dict:
        return {
            "criteria": [
                {"type": type(c).__name__, "config": c.get_config()}
                for c in self.criteria
            ]
        }

    def __repr__(self) -> str:
        inner = ", ".join(repr(c) for c in self.criteria)
        return f"AnyOf({inner})"


def default_criterion(tolerance: float | None = None) -> StoppingCriterion:
    """Residual tolerance guarded against divergence."""
    residual = (
        ResidualTolerance() if tolerance is None else ResidualTolerance(tolerance)
    )
    return AnyOf((residual, DivergenceDetector()))


def create_criterion(criterion_type: str = "residual", **kwargs) -> StoppingCriterion:
    """Factory function to create stopping criteria.

    Args:
        criterion_type: 'residual', 'stagnation' or 'divergence'.
        **kwargs: Criterion-specific parameters.

    Example:
        >>> criterion = create_criterion('residual', tolerance=1e-6)
        >>> criterion = create_criterion('stagnation', window_size=20)
    """
    criteria: dict[str, type[StoppingCriterion]] = {
        "residual": ResidualTolerance,
        "stagnation": StagnationDetector,
        "divergence": DivergenceDetector,
    }

    if criterion_type not in criteria:
        msg = f"Unknown criterion: {criterion_type}. Available: {list(criteria.keys())}"
        raise ValueError(msg)

    return criteria[criterion_type](**kwargs)


__all__ = [
    "CONVERGED",
    "STAGNATED",
    "DIVERGING",
    "MAX_ITERATIONS",
    "StopDecision",
    "StoppingCriterion",
    "ResidualTolerance",
    "StagnationDetector",
    "DivergenceDetector",
    "AnyOf",
    "default_criterion",
    "create_criterion",
]
