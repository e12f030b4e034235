from .types import Cut, SolveStatus, SolveLimits, BackendResult, OAResult, compute_gap
from .errors import OAError, InvalidParameter, SolverInfeasible, SolverError, OracleFailure
from .tracker import IncumbentTracker
from .master import MasterModel
from .separation import LazySeparation, make_cut
from .backends import MasterBackend, IterativeBackend, LazyGurobiBackend, make_backend
from .driver import OuterApproximation, solve, random_support

__all__ = [
    "Cut",
    "SolveStatus",
    "SolveLimits",
    "BackendResult",
    "OAResult",
    "compute_gap",
    "OAError",
    "InvalidParameter",
    "SolverInfeasible",
    "SolverError",
    "OracleFailure",
    "IncumbentTracker",
    "MasterModel",
    "LazySeparation",
    "make_cut",
    "MasterBackend",
    "IterativeBackend",
    "LazyGurobiBackend",
    "make_backend",
    "OuterApproximation",
    "solve",
    "random_support",
]
