import argparse
import sys
from dataclasses import asdict
from pathlib import Path

import yaml

from .config import OAConfig, discover_threads, load_config
from .logging_config import setup_logging
from .oa.errors import OAError
from .problem.losses import get_loss
from .runner import build_backend, run_config


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="sparse-oa",
        description="Cardinality-constrained sparse regression by outer approximation",
    )
    p.add_argument(
        "--config",
        type=Path,
        default=Path("configs/default.yaml"),
        help="Path to YAML config. Default: configs/default.yaml",
    )
    sub = p.add_subparsers(dest="cmd")
    sub.required = False

    run_p = sub.add_parser("run", help="Solve the sparse regression problem")
    run_p.add_argument("--k", type=int, default=None, help="Cardinality budget (overrides problem.k)")
    run_p.add_argument("--gamma", type=float, default=None, help="Ridge parameter (overrides problem.gamma)")
    run_p.add_argument("--loss", type=str, default=None, help="least_squares | logistic | squared_hinge")
    run_p.add_argument("--time-limit", dest="time_limit", type=float, default=None, help="Seconds for the search")
    run_p.add_argument("--gap", type=float, default=None, help="Relative optimality gap tolerance")
    run_p.add_argument("--backend", type=str, default=None, help="iterative | lazy")
    run_p.add_argument("--solver", type=str, default=None, help="Pyomo solver name, e.g. appsi_highs, glpk")
    run_p.add_argument("--data", type=Path, default=None, help="CSV file (header row; target in data.target)")
    sub.add_parser("validate", help="Check config, loss and solver availability")
    sub.add_parser("info", help="Show current configuration")
    return p


def _apply_overrides(cfg: OAConfig, args) -> OAConfig:
    if getattr(args, "k", None) is not None:
        cfg.problem.k = args.k
    if getattr(args, "gamma", None) is not None:
        cfg.problem.gamma = args.gamma
    if getattr(args, "loss", None):
        cfg.problem.loss = args.loss
    if getattr(args, "time_limit", None) is not None:
        cfg.run.time_limit_s = args.time_limit
    if getattr(args, "gap", None) is not None:
        cfg.run.gap = args.gap
    if getattr(args, "backend", None):
        cfg.solver.backend = args.backend
    if getattr(args, "solver", None):
        cfg.solver.name = args.solver
    if getattr(args, "data", None) is not None:
        cfg.data.path = str(args.data)
    return cfg


def cmd_run(args) -> int:
    cfg = _apply_overrides(load_config(args.config), args)
    setup_logging(cfg.run.log_level)
    try:
        result, data = run_config(cfg)
    except OAError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    gap = f"{result.gap:.4g}" if result.gap is not None else "undefined"
    print(
        f"\nResult: status={result.status.value} cuts={result.cut_count} "
        f"gap={gap} time={result.elapsed:.3f}s"
    )
    print("Selected features:")
    for j, w in zip(result.indices, result.weights):
        print(f"  {data.feature_names[j]:>12s}  w={w: .6g}")
    if len(result.indices) == 0:
        print("  (none)")
    return 0


def cmd_validate(args) -> int:
    cfg = load_config(args.config)
    setup_logging(cfg.run.log_level)
    ok = True
    try:
        get_loss(cfg.problem.loss)
    except ValueError as exc:
        print(f"Loss: {exc}")
        ok = False
    try:
        backend = build_backend(cfg.solver)
    except OAError as exc:
        print(f"Backend: {exc}")
        return 1
    if backend.available():
        print(f"Backend '{backend.name}' with solver '{backend.solver_name}' is available.")
    else:
        print(f"Solver '{backend.solver_name}' is not available for backend '{backend.name}'.")
        ok = False
    threads = cfg.run.threads if cfg.run.threads is not None else discover_threads()
    print(f"Threads: {threads} (0 = solver default)")
    if ok:
        print("Config OK.")
    return 0 if ok else 1


def cmd_info(args) -> int:
    cfg = load_config(args.config)
    print(yaml.safe_dump(asdict(cfg), sort_keys=False))
    return 0


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.cmd in (None, "run"):
        return cmd_run(args)
    if args.cmd == "validate":
        return cmd_validate(args)
    if args.cmd == "info":
        return cmd_info(args)
    parser.print_help()
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
