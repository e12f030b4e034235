from __future__ import annotations

import logging
import math
import time
from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional

import numpy as np
import pyomo.environ as pyo
from pyomo.opt import TerminationCondition

from .errors import InvalidParameter, OracleFailure, SolverError
from .master import MasterModel
from .separation import LazySeparation
from .types import BackendResult, SolveLimits, SolveStatus, bounds_closed, compute_gap

try:  # Optional import for Gurobi lazy callbacks
    from gurobipy import GRB  # type: ignore
except Exception:  # pragma: no cover - optional dependency
    GRB = None

log = logging.getLogger(__name__)


# Solver-specific option names for the relative MIP gap and the thread count
GAP_OPTION: dict[str, str] = {
    "appsi_highs": "mip_rel_gap",
    "highs": "mip_rel_gap",
    "gurobi": "MIPGap",
    "gurobi_direct": "MIPGap",
    "gurobi_persistent": "MIPGap",
    "cplex": "mipgap",
    "cplex_persistent": "mipgap",
    "cbc": "ratioGap",
    "glpk": "mipgap",
}
THREADS_OPTION: dict[str, str] = {
    "appsi_highs": "threads",
    "highs": "threads",
    "gurobi": "Threads",
    "gurobi_direct": "Threads",
    "gurobi_persistent": "Threads",
    "cplex": "threads",
    "cplex_persistent": "threads",
    "cbc": "threads",
}


def map_termination(term: Any, has_solution: bool) -> SolveStatus:
    if term == TerminationCondition.optimal:
        return SolveStatus.OPTIMAL
    if term == TerminationCondition.maxTimeLimit:
        return SolveStatus.TIME_LIMIT
    if term in (TerminationCondition.infeasible, TerminationCondition.infeasibleOrUnbounded):
        return SolveStatus.INFEASIBLE
    return SolveStatus.SUBOPTIMAL if has_solution else SolveStatus.ERROR


def _as_float(x: Any) -> Optional[float]:
    try:
        v = float(x)
    except (TypeError, ValueError):
        return None
    return v if math.isfinite(v) else None


class MasterBackend(ABC):
    """Abstract interface for the discrete solver driving the master problem.

    Implementations run branch-and-bound (or a sequence of MIP solves) on a
    `MasterModel`, call `separation` at every discrete incumbent and add the
    returned cut as a permanent constraint.
    """

    name: str = ""
    default_solver: str = ""

    def __init__(self, solver: str | None = None, options: Mapping[str, Any] | None = None, tee: bool = False):
        self.solver_name = str(solver or self.default_solver)
        self.options = dict(options or {})
        self.tee = bool(tee)

    @abstractmethod
    def solve(self, master: MasterModel, separation: LazySeparation, limits: SolveLimits) -> BackendResult:
        """Run the search within `limits` and report status, bounds and solution."""

    def available(self) -> bool:
        try:
            return bool(pyo.SolverFactory(self.solver_name).available(exception_flag=False))
        except Exception:  # noqa: BLE001 - unknown plugins raise on probing
            return False


class IterativeBackend(MasterBackend):
    """Outer approximation as a sequence of master MIP solves (Kelley loop).

    Works with any Pyomo MIP solver. Every master optimum is the discrete
    incumbent of its round: the separation procedure is called there and
    the cut is added before the next solve.
    """

    name = "iterative"
    default_solver = "appsi_highs"

    def __init__(
        self,
        solver: str | None = None,
        options: Mapping[str, Any] | None = None,
        tee: bool = False,
        max_iterations: int = 1000,
    ):
        super().__init__(solver, options, tee)
        self.max_iterations = int(max_iterations)

    def _make_solver(self, threads: int):
        if not self.available():
            raise SolverError(f"MIP solver '{self.solver_name}' is not available")
        solver = pyo.SolverFactory(self.solver_name)
        # Masters are solved exactly; the outer loop owns the gap tolerance
        if self.solver_name in GAP_OPTION:
            solver.options[GAP_OPTION[self.solver_name]] = 0.0
        if threads > 0 and self.solver_name in THREADS_OPTION:
            solver.options[THREADS_OPTION[self.solver_name]] = int(threads)
        for k, v in self.options.items():
            solver.options[k] = v
        return solver

    def solve(self, master: MasterModel, separation: LazySeparation, limits: SolveLimits) -> BackendResult:
        solver = self._make_solver(limits.threads)
        t0 = time.time()

        # Own incumbent, seeded from the cuts already in the model
        best_obj: Optional[float] = None
        best_sol: Optional[np.ndarray] = None
        seen: set[tuple] = set()
        for cut in master.cuts:
            seen.add(tuple(int(v > 0.5) for v in cut.anchor))
            if best_obj is None or cut.value < best_obj:
                best_obj, best_sol = cut.value, cut.anchor.copy()

        lb = 0.0
        status = SolveStatus.SUBOPTIMAL
        it = 0
        for it in range(1, self.max_iterations + 1):
            remaining = limits.time_limit - (time.time() - t0)
            if remaining <= 0:
                log.warning("Time limit reached after %d master solve(s)", it - 1)
                status = SolveStatus.TIME_LIMIT
                it -= 1
                break

            res = solver.solve(
                master.m,
                tee=self.tee,
                load_solutions=False,
                timelimit=max(1, int(math.ceil(remaining))),
            )
            term = res.solver.termination_condition
            has_sol = len(res.solution) > 0
            mstatus = map_termination(term, has_sol)
            if mstatus == SolveStatus.INFEASIBLE:
                log.error("Master problem infeasible")
                return BackendResult(status=SolveStatus.INFEASIBLE, iterations=it)
            if mstatus == SolveStatus.ERROR:
                log.error("Master solve failed: termination=%s", term)
                return BackendResult(
                    status=SolveStatus.ERROR,
                    solution=best_sol,
                    best_bound=lb,
                    best_objective=best_obj,
                    iterations=it,
                    metadata={"termination": str(term)},
                )
            if has_sol:
                master.m.solutions.load_from(res)

            bound = _as_float(res.problem.lower_bound)
            if bound is None and mstatus == SolveStatus.OPTIMAL and has_sol:
                bound = master.epigraph()
            if bound is not None:
                lb = max(lb, bound)

            if bounds_closed(best_obj, lb, limits.gap, limits.abs_tol):
                log.info("Optimality reached within tolerance after %d master solve(s)", it)
                status = SolveStatus.OPTIMAL
                break
            if not has_sol or mstatus == SolveStatus.TIME_LIMIT:
                log.warning("Time limit reached during master solve %d", it)
                status = SolveStatus.TIME_LIMIT
                break

            s_hat = master.selection()
            key = tuple(int(v > 0.5) for v in s_hat)
            if key in seen:
                # The master proposes a selection whose cut is already present
                log.warning("Master stalled at an evaluated selection after %d solve(s)", it)
                status = SolveStatus.SUBOPTIMAL
                break
            seen.add(key)

            cut = separation(s_hat)
            master.add_cut(cut)
            if best_obj is None or cut.value < best_obj:
                best_obj, best_sol = cut.value, cut.anchor.copy()
            log.info(
                "[OA] iter=%d cuts=%d lb=%.6g ub=%.6g",
                it,
                master.n_cuts,
                lb,
                best_obj if best_obj is not None else float("nan"),
            )
        else:
            log.warning("Max iterations reached: %d", self.max_iterations)

        return BackendResult(
            status=status,
            solution=best_sol,
            best_bound=lb,
            best_objective=best_obj,
            achieved_gap=compute_gap(best_obj, lb, limits.abs_tol),
            iterations=it,
        )


class LazyGurobiBackend(MasterBackend):
    """Single branch-and-bound run with lazy cuts via Pyomo's gurobi_persistent.

    The callback fires on every new integer-feasible incumbent (MIPSOL),
    evaluates the oracle there and hands the cut to Gurobi as a global
    lazy constraint.
    """

    name = "lazy"
    default_solver = "gurobi_persistent"

    def solve(self, master: MasterModel, separation: LazySeparation, limits: SolveLimits) -> BackendResult:
        if GRB is None:
            raise SolverError("Lazy cuts require gurobipy. Install with 'pip install sparse-oa[gurobi]'.")
        if not self.available():
            raise SolverError(f"MIP solver '{self.solver_name}' is not available")

        opt = pyo.SolverFactory(self.solver_name)
        opt.set_instance(master.m)
        params: dict[str, Any] = {
            "OutputFlag": int(self.tee),
            "LazyConstraints": 1,
            "MIPGap": float(limits.gap),
            "MIPGapAbs": float(limits.abs_tol),
            "TimeLimit": float(limits.time_limit),
            "Threads": int(limits.threads),
        }
        params.update(self.options)
        for k, v in params.items():
            opt.set_gurobi_param(k, v)

        failures: list[OracleFailure] = []

        def _lazy_callback(cb_m, cb_opt, cb_where):
            if cb_where != GRB.Callback.MIPSOL or failures:
                return
            cb_opt.cbGetSolution(vars=master.variables())
            s_hat = master.selection()
            try:
                cut = separation(s_hat)
            except OracleFailure as exc:
                failures.append(exc)
                cb_opt._solver_model.terminate()
                return
            cb_opt.cbLazy(master.add_cut(cut))

        opt.set_callback(_lazy_callback)
        res = opt.solve(tee=self.tee, warmstart=True, load_solutions=False)
        if failures:
            raise failures[0]

        term = res.solver.termination_condition
        sol_count = int(opt.get_model_attr("SolCount") or 0)
        status = map_termination(term, sol_count > 0)

        solution: Optional[np.ndarray] = None
        objective: Optional[float] = None
        if sol_count > 0:
            opt.load_vars(master.variables())
            solution = master.selection()
            objective = _as_float(opt.get_model_attr("ObjVal"))
        bound = _as_float(opt.get_model_attr("ObjBound")) if status != SolveStatus.INFEASIBLE else None
        log.info(
            "[OA] gurobi status=%s obj=%s bound=%s cuts=%d",
            status.value,
            f"{objective:.6g}" if objective is not None else "-",
            f"{bound:.6g}" if bound is not None else "-",
            master.n_cuts,
        )
        return BackendResult(
            status=status,
            solution=solution,
            best_bound=bound,
            best_objective=objective,
            achieved_gap=compute_gap(objective, bound, limits.abs_tol),
            iterations=1,
            metadata={"termination": str(term)},
        )


_BACKENDS: dict[str, type[MasterBackend]] = {
    "iterative": IterativeBackend,
    "kelley": IterativeBackend,
    "lazy": LazyGurobiBackend,
}


def make_backend(name: str = "iterative", **options: Any) -> MasterBackend:
    key = str(name).strip().lower()
    if key not in _BACKENDS:
        raise InvalidParameter(f"Unknown backend '{name}'. Available: {', '.join(sorted(_BACKENDS))}")
    return _BACKENDS[key](**options)


__all__ = [
    "MasterBackend",
    "IterativeBackend",
    "LazyGurobiBackend",
    "make_backend",
    "map_termination",
    "GAP_OPTION",
    "THREADS_OPTION",
]
