from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple, Optional

import numpy as np


class SolveStatus(str, Enum):
    UNSOLVED = "UNSOLVED"
    OPTIMAL = "OPTIMAL"
    TIME_LIMIT = "TIME_LIMIT"
    SUBOPTIMAL = "SUBOPTIMAL"
    INFEASIBLE = "INFEASIBLE"
    ERROR = "ERROR"


@dataclass(slots=True, frozen=True)
class Cut:
    """Supporting hyperplane of the training objective at a selection vector.

    Represents: t >= value + <gradient, s - anchor>
    """

    value: float
    gradient: np.ndarray
    anchor: np.ndarray
    index: int = 0

    @property
    def constant(self) -> float:
        return float(self.value - float(np.dot(self.gradient, self.anchor)))

    def evaluate(self, support: np.ndarray) -> float:
        s = np.asarray(support, dtype=float)
        return float(self.value + float(np.dot(self.gradient, s - self.anchor)))


@dataclass(slots=True, frozen=True)
class SolveLimits:
    time_limit: float = 60.0
    gap: float = 0.0
    threads: int = 0
    abs_tol: float = 1e-6


@dataclass(slots=True)
class BackendResult:
    status: SolveStatus
    solution: Optional[np.ndarray] = None
    best_bound: Optional[float] = None
    best_objective: Optional[float] = None
    achieved_gap: Optional[float] = None
    iterations: int = 0
    metadata: dict = field(default_factory=dict)


class OAResult(NamedTuple):
    indices: np.ndarray
    weights: np.ndarray
    elapsed: float
    status: SolveStatus
    gap: Optional[float]
    cut_count: int


def compute_gap(ub: Optional[float], lb: Optional[float], abs_tol: float = 1e-6) -> Optional[float]:
    """Relative gap (ub - lb) / |ub| clipped to [0, 1].

    Returns 0.0 once the bounds agree within `abs_tol` and None when the
    upper bound is too close to zero for a relative gap to mean anything.
    """
    if ub is None or lb is None:
        return None
    diff = max(0.0, float(ub) - float(lb))
    if diff <= abs_tol:
        return 0.0
    if abs(float(ub)) <= abs_tol:
        return None
    return min(1.0, diff / abs(float(ub)))


def bounds_closed(ub: Optional[float], lb: Optional[float], gap: float, abs_tol: float) -> bool:
    if ub is None or lb is None:
        return False
    diff = float(ub) - float(lb)
    return diff <= abs_tol or diff <= gap * abs(float(ub))


__all__ = [
    "SolveStatus",
    "Cut",
    "SolveLimits",
    "BackendResult",
    "OAResult",
    "compute_gap",
    "bounds_closed",
]
