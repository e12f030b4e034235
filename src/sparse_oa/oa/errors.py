from __future__ import annotations

from typing import Optional

import numpy as np


class OAError(Exception):
    """Base class for errors raised by the outer-approximation core."""


class InvalidParameter(OAError, ValueError):
    """Malformed k, gamma, limits or mismatched data dimensions."""


class SolverInfeasible(OAError):
    """The master problem was reported infeasible by the discrete solver."""


class SolverError(OAError):
    """The discrete solver is unavailable or stopped without any incumbent."""


class OracleFailure(OAError):
    """The convex oracle failed at a visited selection; the solve is aborted."""

    def __init__(self, message: str, support: Optional[np.ndarray] = None):
        super().__init__(message)
        self.support = None if support is None else np.array(support, dtype=float)


__all__ = [
    "OAError",
    "InvalidParameter",
    "SolverInfeasible",
    "SolverError",
    "OracleFailure",
]
