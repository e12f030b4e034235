#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Ensure `src/` is on sys.path for direct script execution
SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from sparse_oa.data import make_synthetic
from sparse_oa.logging_config import setup_logging
from sparse_oa.oa.backends import make_backend
from sparse_oa.oa.driver import OuterApproximation


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Outer approximation on a synthetic problem")
    p.add_argument("-n", type=int, default=100)
    p.add_argument("-p", type=int, default=20)
    p.add_argument("-k", type=int, default=3)
    p.add_argument("--gamma", type=float, default=1.0)
    p.add_argument("--support", type=str, default="0,3,7")
    p.add_argument("--backend", type=str, default="iterative")
    p.add_argument("--solver", type=str, default=None)
    p.add_argument("--time-limit", dest="time_limit", type=float, default=30.0)
    p.add_argument("--seed", type=int, default=0)
    args = p.parse_args(argv)

    setup_logging("INFO")
    support = [int(x) for x in args.support.split(",") if x.strip()]
    data = make_synthetic(args.n, args.p, support=support, noise=0.1, seed=args.seed)
    oa = OuterApproximation(backend=make_backend(args.backend, solver=args.solver))
    indices, w, dt, status, gap, cuts = oa.solve(
        "least_squares", data.Y, data.X, args.k, args.gamma, time_limit=args.time_limit, rng=args.seed
    )
    print(f"status={status.value} indices={indices.tolist()} planted={sorted(support)} cuts={cuts} time={dt:.3f}s gap={gap}")
    print(f"weights={[round(float(v), 4) for v in w]}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
