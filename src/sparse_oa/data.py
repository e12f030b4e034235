from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

import numpy as np


@dataclass(frozen=True, slots=True)
class Dataset:
    """Design matrix X (n x p) and outputs Y (n,), read-only for a solve."""

    X: np.ndarray
    Y: np.ndarray
    feature_names: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        X = np.array(self.X, dtype=float, copy=True)
        Y = np.array(self.Y, dtype=float, copy=True).reshape(-1)
        if X.ndim != 2:
            raise ValueError(f"X must be 2-D, got shape {X.shape}")
        if Y.shape[0] != X.shape[0]:
            raise ValueError(f"Y has {Y.shape[0]} rows but X has {X.shape[0]}")
        X.flags.writeable = False
        Y.flags.writeable = False
        object.__setattr__(self, "X", X)
        object.__setattr__(self, "Y", Y)
        names = tuple(self.feature_names) or tuple(f"x{j}" for j in range(X.shape[1]))
        if len(names) != X.shape[1]:
            raise ValueError(f"{len(names)} feature names for {X.shape[1]} columns")
        object.__setattr__(self, "feature_names", names)

    @property
    def n(self) -> int:
        return int(self.X.shape[0])

    @property
    def p(self) -> int:
        return int(self.X.shape[1])


def make_synthetic(
    n: int,
    p: int,
    support: Sequence[int] = (0,),
    noise: float = 0.1,
    seed: int | None = None,
    task: str = "regression",
    magnitude: float = 1.0,
) -> Dataset:
    """Gaussian design with a planted support.

    True coefficients are +-magnitude (alternating sign) on `support`,
    zero elsewhere. For task="classification" the labels are the signs of
    the noisy linear response, in {-1, +1}.
    """
    if n <= 0 or p <= 0:
        raise ValueError("n and p must be positive")
    support = [int(j) for j in support]
    if any(j < 0 or j >= p for j in support):
        raise ValueError(f"support indices must lie in [0, {p})")
    rng = np.random.default_rng(seed)
    X = rng.standard_normal((n, p))
    w = np.zeros(p)
    for i, j in enumerate(support):
        w[j] = magnitude if i % 2 == 0 else -magnitude
    y = X @ w + noise * rng.standard_normal(n)
    if task == "classification":
        y = np.where(y >= 0.0, 1.0, -1.0)
    elif task != "regression":
        raise ValueError(f"Unknown task '{task}' (expected 'regression' or 'classification')")
    return Dataset(X=X, Y=y)


def load_csv(path: str | Path, target: int | str = -1, delimiter: str = ",") -> Dataset:
    """Load a CSV with a header row; `target` is the output column (index or name)."""
    p = Path(path)
    with p.open("r", encoding="utf-8") as f:
        header = [h.strip() for h in f.readline().strip().split(delimiter)]
    data = np.loadtxt(p, delimiter=delimiter, skiprows=1, ndmin=2)
    if data.shape[1] != len(header):
        raise ValueError(f"{p}: header has {len(header)} columns, data has {data.shape[1]}")
    if isinstance(target, str):
        if target not in header:
            raise ValueError(f"{p}: target column '{target}' not found")
        t = header.index(target)
    else:
        t = int(target) % len(header)
    cols = [j for j in range(len(header)) if j != t]
    return Dataset(X=data[:, cols], Y=data[:, t], feature_names=tuple(header[j] for j in cols))


def save_csv(path: str | Path, dataset: Dataset, target_name: str = "y", delimiter: str = ",") -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    header = delimiter.join(list(dataset.feature_names) + [target_name])
    np.savetxt(p, np.column_stack([dataset.X, dataset.Y]), delimiter=delimiter, header=header, comments="")
    return p


__all__ = ["Dataset", "make_synthetic", "load_csv", "save_csv"]
