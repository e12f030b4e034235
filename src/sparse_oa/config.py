from __future__ import annotations

import ast
import operator as _op
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml


@dataclass(slots=True)
class RunConfig:
    time_limit_s: float = 60.0
    gap: float = 0.0
    log_level: str = "INFO"
    seed: int | None = 42
    # None: ask the environment (see discover_threads)
    threads: int | None = None


@dataclass(slots=True)
class SolverConfig:
    backend: str = "iterative"
    # None: the backend's default MIP solver
    name: str | None = None
    abs_tol: float = 1e-6
    max_iterations: int = 1000
    tee: bool = False
    options: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class ProblemConfig:
    loss: str = "least_squares"
    # Either numbers or arithmetic expressions over n and p, e.g. "p / 5"
    k: int | str = 2
    gamma: float | str = 1.0
    initial_support: list[int] | None = None


@dataclass(slots=True)
class SyntheticConfig:
    n: int = 100
    p: int = 10
    support: list[int] = field(default_factory=lambda: [0, 3])
    noise: float = 0.1
    seed: int | None = 0
    task: str = "regression"


@dataclass(slots=True)
class DataConfig:
    path: str | None = None
    target: int | str = -1
    delimiter: str = ","
    synthetic: SyntheticConfig = field(default_factory=SyntheticConfig)


@dataclass(slots=True)
class OAConfig:
    run: RunConfig = field(default_factory=RunConfig)
    solver: SolverConfig = field(default_factory=SolverConfig)
    problem: ProblemConfig = field(default_factory=ProblemConfig)
    data: DataConfig = field(default_factory=DataConfig)


def _as_dict(m: Mapping[str, Any] | None) -> dict[str, Any]:
    return dict(m) if m else {}


def _is_number(x: Any) -> bool:
    return isinstance(x, (int, float)) and not isinstance(x, bool)


def _eval_expr(expr: str, names: Mapping[str, Any]) -> float | int:
    """Safely evaluate a simple arithmetic expression with provided names.

    Allowed: numeric literals, names present in `names`, the operators
    + - * / // % ** and unary +/-, parentheses. Anything else (calls,
    attributes, subscripts) is rejected.
    """
    node = ast.parse(expr, mode="eval")

    bin_ops = {
        ast.Add: _op.add,
        ast.Sub: _op.sub,
        ast.Mult: _op.mul,
        ast.Div: _op.truediv,
        ast.FloorDiv: _op.floordiv,
        ast.Mod: _op.mod,
        ast.Pow: _op.pow,
    }
    unary_ops = {ast.UAdd: _op.pos, ast.USub: _op.neg}

    def _eval(n: ast.AST) -> float | int:
        if isinstance(n, ast.Expression):
            return _eval(n.body)
        if isinstance(n, ast.Constant):
            if _is_number(n.value):
                return n.value
            raise ValueError("non-numeric constant in expression")
        if isinstance(n, ast.Name):
            if n.id not in names:
                raise NameError(f"unknown name '{n.id}' in expression")
            v = names[n.id]
            if not _is_number(v):
                raise ValueError(f"name '{n.id}' is not numeric: {v}")
            return v
        if isinstance(n, ast.BinOp):
            if type(n.op) not in bin_ops:
                raise ValueError("operator not allowed in expression")
            return bin_ops[type(n.op)](_eval(n.left), _eval(n.right))
        if isinstance(n, ast.UnaryOp):
            if type(n.op) not in unary_ops:
                raise ValueError("unary operator not allowed in expression")
            return unary_ops[type(n.op)](_eval(n.operand))
        raise ValueError("unsupported syntax in expression")

    return _eval(node)


def resolve_problem(problem: ProblemConfig, n: int, p: int) -> tuple[int, float]:
    """Return (k, gamma) with string expressions evaluated against n and p."""
    names = {"n": int(n), "p": int(p)}
    k = _eval_expr(problem.k, names) if isinstance(problem.k, str) else problem.k
    gamma = _eval_expr(problem.gamma, names) if isinstance(problem.gamma, str) else problem.gamma
    if isinstance(k, float) and k.is_integer():
        k = int(k)
    return k, float(gamma)


def discover_threads(env: Mapping[str, str] | None = None) -> int:
    """Thread count granted by the scheduler, 0 (solver default) otherwise.

    SLURM_JOB_CPUS_PER_NODE may look like "8" or "8(x2)"; the leading
    integer is used.
    """
    env = os.environ if env is None else env
    raw = env.get("SLURM_JOB_CPUS_PER_NODE")
    if not raw:
        return 0
    match = re.match(r"\s*(\d+)", raw)
    return int(match.group(1)) if match else 0


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError("Top-level YAML document must be a mapping")
        return data


def _opt_int(v: Any) -> int | None:
    return None if v is None else int(v)


def load_config(path: str | Path | None) -> OAConfig:
    """Load configuration from a YAML file or return defaults.

    The schema is forgiving: unknown keys are ignored, missing keys take
    their defaults, and a missing file yields the default configuration.
    """
    if path is None:
        return OAConfig()
    p = Path(path)
    if not p.exists():
        return OAConfig()
    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ValueError(f"Unsupported config format '{p.suffix}'. Please provide a YAML file.")
    raw = _load_yaml(p)
    run = _as_dict(raw.get("run"))
    solver = _as_dict(raw.get("solver"))
    problem = _as_dict(raw.get("problem"))
    data = _as_dict(raw.get("data"))
    synth = _as_dict(data.get("synthetic"))

    defaults = OAConfig()
    run_cfg = RunConfig(
        time_limit_s=float(run.get("time_limit_s", defaults.run.time_limit_s)),
        gap=float(run.get("gap", defaults.run.gap)),
        log_level=str(run.get("log_level", defaults.run.log_level)),
        seed=_opt_int(run.get("seed", defaults.run.seed)),
        threads=_opt_int(run.get("threads")),
    )
    solver_cfg = SolverConfig(
        backend=str(solver.get("backend", defaults.solver.backend)),
        name=(str(solver["name"]) if solver.get("name") else None),
        abs_tol=float(solver.get("abs_tol", defaults.solver.abs_tol)),
        max_iterations=int(solver.get("max_iterations", defaults.solver.max_iterations)),
        tee=bool(solver.get("tee", False)),
        options=_as_dict(solver.get("options")),
    )
    init = problem.get("initial_support")
    problem_cfg = ProblemConfig(
        loss=str(problem.get("loss", defaults.problem.loss)),
        k=problem.get("k", defaults.problem.k),
        gamma=problem.get("gamma", defaults.problem.gamma),
        initial_support=[int(j) for j in init] if init is not None else None,
    )
    synth_cfg = SyntheticConfig(
        n=int(synth.get("n", defaults.data.synthetic.n)),
        p=int(synth.get("p", defaults.data.synthetic.p)),
        support=[int(j) for j in synth.get("support", defaults.data.synthetic.support)],
        noise=float(synth.get("noise", defaults.data.synthetic.noise)),
        seed=_opt_int(synth.get("seed", defaults.data.synthetic.seed)),
        task=str(synth.get("task", defaults.data.synthetic.task)),
    )
    data_cfg = DataConfig(
        path=(str(data["path"]) if data.get("path") else None),
        target=data.get("target", defaults.data.target),
        delimiter=str(data.get("delimiter", defaults.data.delimiter)),
        synthetic=synth_cfg,
    )
    return OAConfig(run=run_cfg, solver=solver_cfg, problem=problem_cfg, data=data_cfg)


__all__ = [
    "RunConfig",
    "SolverConfig",
    "ProblemConfig",
    "SyntheticConfig",
    "DataConfig",
    "OAConfig",
    "load_config",
    "resolve_problem",
    "discover_threads",
]
