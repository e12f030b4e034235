#!/usr/bin/env python3
"""
Generate a synthetic dataset with a planted sparse support.

Inputs:
  - n: number of samples
  - p: number of features
  - support: comma-separated informative feature indices
  - task: regression (Gaussian noise) or classification (labels in {-1, +1})

Output is a CSV with a header row x0,...,x{p-1},y (the last column is the
target, matching `data.target: -1` in configs/default.yaml).

Examples:
  python setups/gen_synthetic_data.py -n 200 -p 20 --support 0,3,7 -o setups/synthetic_n200_p20.csv
  python setups/gen_synthetic_data.py -n 500 -p 50 --support 1,2 --task classification --seed 1
"""

from __future__ import annotations

import argparse
from pathlib import Path

from sparse_oa.data import make_synthetic, save_csv


def default_out_path(n: int, p: int, task: str) -> Path:
    return Path(f"setups/synthetic_{task}_n{n}_p{p}.csv")


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Generate a synthetic sparse regression/classification CSV")
    p.add_argument("-n", "--samples", type=int, required=True, help="Number of samples (n >= 1)")
    p.add_argument("-p", "--features", type=int, required=True, help="Number of features (p >= 1)")
    p.add_argument("--support", type=str, default="0", help="Informative feature indices, e.g. '0,3'")
    p.add_argument("--noise", type=float, default=0.1, help="Noise standard deviation")
    p.add_argument("--task", choices=["regression", "classification"], default="regression")
    p.add_argument("--seed", type=int, default=None, help="Random seed for reproducibility")
    p.add_argument("-o", "--output", type=Path, default=None, help="Output CSV path. Default auto-named under setups/")
    return p.parse_args()


def main() -> int:
    args = parse_args()
    if args.samples <= 0 or args.features <= 0:
        raise SystemExit("n and p must be >= 1")
    try:
        support = [int(x.strip()) for x in args.support.split(",") if x.strip()]
    except ValueError:
        raise SystemExit(f"Invalid --support '{args.support}'")

    data = make_synthetic(
        args.samples,
        args.features,
        support=support,
        noise=args.noise,
        seed=args.seed,
        task=args.task,
    )
    out_path = args.output if args.output is not None else default_out_path(args.samples, args.features, args.task)
    save_csv(out_path, data)
    print(f"Wrote dataset to: {out_path} (informative features: {support})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
