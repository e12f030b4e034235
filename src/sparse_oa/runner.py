from __future__ import annotations

import logging
from pathlib import Path

from .config import DataConfig, OAConfig, SolverConfig, discover_threads, load_config, resolve_problem
from .data import Dataset, load_csv, make_synthetic
from .logging_config import setup_logging
from .oa.backends import MasterBackend, make_backend
from .oa.driver import OuterApproximation
from .oa.types import OAResult

log = logging.getLogger(__name__)


def _default_config_path() -> Path:
    """Best-effort discovery of the default YAML config.

    Tries `configs/default.yaml` in the CWD, then relative to the repo
    root; falls back to the CWD path regardless.
    """
    cwd_path = Path("configs/default.yaml")
    if cwd_path.exists():
        return cwd_path
    here = Path(__file__).resolve()
    repo_path = here.parents[2] / "configs" / "default.yaml"
    if repo_path.exists():
        return repo_path
    return cwd_path


def load_dataset(cfg: DataConfig) -> Dataset:
    if cfg.path:
        log.info("Loading data from %s", cfg.path)
        return load_csv(cfg.path, target=cfg.target, delimiter=cfg.delimiter)
    s = cfg.synthetic
    log.info("Generating synthetic data n=%d p=%d support=%s task=%s", s.n, s.p, s.support, s.task)
    return make_synthetic(s.n, s.p, support=s.support, noise=s.noise, seed=s.seed, task=s.task)


def build_backend(cfg: SolverConfig) -> MasterBackend:
    kwargs = {"solver": cfg.name, "options": cfg.options, "tee": cfg.tee}
    if cfg.backend.strip().lower() in ("iterative", "kelley"):
        kwargs["max_iterations"] = cfg.max_iterations
    return make_backend(cfg.backend, **kwargs)


def run_config(cfg: OAConfig, dataset: Dataset | None = None) -> tuple[OAResult, Dataset]:
    """Solve the problem described by `cfg` and return the result with its data."""
    data = dataset if dataset is not None else load_dataset(cfg.data)
    k, gamma = resolve_problem(cfg.problem, data.n, data.p)
    threads = cfg.run.threads if cfg.run.threads is not None else discover_threads()
    backend = build_backend(cfg.solver)
    log.info(
        "Run: loss=%s k=%s gamma=%s backend=%s solver=%s threads=%d time_limit=%ss",
        cfg.problem.loss,
        k,
        gamma,
        backend.name,
        backend.solver_name,
        threads,
        cfg.run.time_limit_s,
    )
    oa = OuterApproximation(backend=backend, threads=threads, abs_tol=cfg.solver.abs_tol)
    result = oa.solve(
        cfg.problem.loss,
        data.Y,
        data.X,
        k,
        gamma,
        initial_support=cfg.problem.initial_support,
        time_limit=cfg.run.time_limit_s,
        gap=cfg.run.gap,
        rng=cfg.run.seed,
    )
    return result, data


def run(config_path: str | Path | None = None) -> OAResult:
    """Run the outer approximation reading all options from YAML."""
    cfg_path = Path(config_path) if config_path is not None else _default_config_path()
    cfg = load_config(cfg_path)
    setup_logging(cfg.run.log_level)
    result, _ = run_config(cfg)
    return result


__all__ = ["run", "run_config", "load_dataset", "build_backend"]
