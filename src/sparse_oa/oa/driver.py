from __future__ import annotations

import logging
import math
import numbers
import time
from typing import Any, Callable, Iterable, Optional

import numpy as np

from ..problem.inner import inner_op, recover_primal
from ..problem.losses import LossFunction, get_loss
from .backends import IterativeBackend, MasterBackend
from .errors import InvalidParameter, SolverError, SolverInfeasible
from .master import MasterModel
from .separation import LazySeparation, Oracle, make_cut
from .tracker import IncumbentTracker
from .types import OAResult, SolveLimits, SolveStatus, compute_gap

log = logging.getLogger(__name__)

Recovery = Callable[[Any, np.ndarray, np.ndarray, float], np.ndarray]
SupportInitializer = Callable[[int, int, np.random.Generator], np.ndarray]


def random_support(p: int, k: int, rng: np.random.Generator) -> np.ndarray:
    """Draw k distinct feature indices uniformly at random (sorted)."""
    k = min(int(k), int(p))
    return np.sort(rng.choice(p, size=k, replace=False)).astype(int)


def _as_rng(rng: np.random.Generator | int | None) -> np.random.Generator:
    if isinstance(rng, np.random.Generator):
        return rng
    return np.random.default_rng(rng)


def _validate(loss: Any, Y: Any, X: Any, k: Any, gamma: Any, time_limit: Any, gap: Any):
    try:
        loss = get_loss(loss)
    except ValueError as exc:
        raise InvalidParameter(str(exc)) from None
    try:
        X = np.asarray(X, dtype=float)
        Y = np.asarray(Y, dtype=float)
    except (TypeError, ValueError) as exc:
        raise InvalidParameter(f"X and Y must be numeric arrays: {exc}") from None
    if X.ndim != 2:
        raise InvalidParameter(f"X must be a 2-D array, got shape {X.shape}")
    if Y.ndim == 2 and Y.shape[1] == 1:
        Y = Y[:, 0]
    if Y.ndim != 1:
        raise InvalidParameter(f"Y must be a vector, got shape {Y.shape}")
    n, p = X.shape
    if Y.shape[0] != n:
        raise InvalidParameter(f"Y has {Y.shape[0]} rows but X has {n}")
    if not np.all(np.isfinite(X)):
        raise InvalidParameter("X contains non-finite values")
    try:
        loss.validate_targets(Y)
    except ValueError as exc:
        raise InvalidParameter(str(exc)) from None
    if isinstance(k, bool) or not isinstance(k, numbers.Integral):
        raise InvalidParameter(f"k must be an integer, got {k!r}")
    if not 0 <= int(k) <= p:
        raise InvalidParameter(f"k must lie in [0, {p}], got {k}")
    if isinstance(gamma, bool) or not isinstance(gamma, numbers.Real) or not math.isfinite(gamma) or gamma <= 0:
        raise InvalidParameter(f"gamma must be a positive finite number, got {gamma!r}")
    if not isinstance(time_limit, numbers.Real) or not time_limit > 0:
        raise InvalidParameter(f"time_limit must be positive, got {time_limit!r}")
    if not isinstance(gap, numbers.Real) or not gap >= 0:
        raise InvalidParameter(f"gap must be non-negative, got {gap!r}")
    return loss, Y, X, int(k), float(gamma)


def _support_indices(initial: Iterable[int], p: int) -> np.ndarray:
    try:
        idx = np.asarray(list(initial))
    except TypeError:
        raise InvalidParameter("initial_support must be an iterable of feature indices") from None
    if idx.size == 0:
        return np.zeros(0, dtype=int)
    if idx.dtype == bool or not np.issubdtype(idx.dtype, np.integer):
        raise InvalidParameter("initial_support must contain integer feature indices")
    if idx.min() < 0 or idx.max() >= p:
        raise InvalidParameter(f"initial_support indices must lie in [0, {p})")
    if np.unique(idx).size != idx.size:
        raise InvalidParameter("initial_support contains duplicate indices")
    return idx.astype(int)


class OuterApproximation:
    """Cardinality-constrained ridge fitting by outer approximation.

        w* = argmin  sum_i l(y_i, x_i^T w) + 1/(2 gamma) ||w||^2
             s.t.    ||w||_0 <= k

    The selection s in {0,1}^p is searched by a discrete solver over the
    epigraph model min t, sum(s) <= k, t >= c(s0) + <grad c(s0), s - s0>.
    Cuts come from the convex oracle at every discrete incumbent visited.

    Collaborators (all injectable):
      backend     - MasterBackend running the discrete search
      oracle      - (loss, Y, X, s, gamma) -> (value, gradient)
      recover     - (loss, Y, X_restricted, gamma) -> weights
      initializer - (p, k, rng) -> seed feature indices
      threads     - worker threads for the solver, 0 for the solver default
      abs_tol     - absolute gap under which bounds are considered equal
    """

    def __init__(
        self,
        backend: MasterBackend | None = None,
        oracle: Oracle = inner_op,
        recover: Recovery = recover_primal,
        initializer: SupportInitializer = random_support,
        threads: int = 0,
        abs_tol: float = 1e-6,
    ):
        self.backend = backend if backend is not None else IterativeBackend()
        self.oracle = oracle
        self.recover = recover
        self.initializer = initializer
        self.threads = int(threads)
        self.abs_tol = float(abs_tol)

    def solve(
        self,
        loss: LossFunction | str,
        Y: Any,
        X: Any,
        k: int,
        gamma: float,
        initial_support: Iterable[int] | None = None,
        time_limit: float = 60,
        gap: float = 0.0,
        rng: np.random.Generator | int | None = None,
    ) -> OAResult:
        """Return (indices, weights, elapsed, status, gap, cut_count).

        `indices` are the selected feature indices, `weights` the refitted
        coefficients on them, `elapsed` the solver wall-clock seconds and
        `gap` the relative optimality gap (None when undefined because the
        best objective is zero).
        """
        loss, Y, X, k, gamma = _validate(loss, Y, X, k, gamma, time_limit, gap)
        n, p = X.shape
        status = SolveStatus.UNSOLVED

        # Seed selection
        if k == 0:
            seed_idx = np.zeros(0, dtype=int)
        elif initial_support is None:
            seed_idx = _support_indices(self.initializer(p, k, _as_rng(rng)), p)
        else:
            seed_idx = _support_indices(initial_support, p)
        if seed_idx.size > k:
            log.warning("Initial support has %d features > k=%d; keeping the first %d", seed_idx.size, k, k)
            seed_idx = seed_idx[:k]
        s0 = np.zeros(p)
        s0[seed_idx] = 1.0

        # Seed evaluation and incumbent
        seed_cut = make_cut(self.oracle, loss, Y, X, gamma, s0, index=1)
        tracker = IncumbentTracker(seed_cut.value, s0, cut_count=1)
        log.info("[OA] n=%d p=%d k=%d gamma=%.6g seed=%s obj=%.6g", n, p, k, gamma, seed_idx.tolist(), seed_cut.value)

        if k == 0:
            # The empty selection is the only feasible point
            status = SolveStatus.OPTIMAL
            weights = np.asarray(self.recover(loss, Y, X[:, seed_idx], gamma), dtype=float)
            return OAResult(
                indices=seed_idx,
                weights=weights,
                elapsed=0.0,
                status=status,
                gap=0.0,
                cut_count=tracker.cut_count,
            )

        separation = LazySeparation(loss, Y, X, gamma, tracker, self.oracle)
        master = MasterModel(p, k, start=s0)
        master.add_cut(seed_cut)
        limits = SolveLimits(time_limit=float(time_limit), gap=float(gap), threads=self.threads, abs_tol=self.abs_tol)

        t0 = time.time()
        bres = self.backend.solve(master, separation, limits)
        elapsed = time.time() - t0
        status = bres.status

        if status == SolveStatus.INFEASIBLE:
            raise SolverInfeasible(f"master problem infeasible (k={k}, p={p})")
        if status == SolveStatus.ERROR:
            raise SolverError(f"discrete solver failed: {bres.metadata.get('termination', 'unknown')}")

        best_obj, best_solution, cut_count = tracker.snapshot()
        if status == SolveStatus.OPTIMAL and bres.solution is not None:
            chosen = bres.solution
            final_gap = bres.achieved_gap if bres.achieved_gap is not None else 0.0
        else:
            chosen = best_solution
            ub = best_obj if bres.best_objective is None else min(best_obj, bres.best_objective)
            lb = bres.best_bound if bres.best_bound is not None else 0.0
            final_gap = compute_gap(ub, lb, self.abs_tol)

        indices = np.flatnonzero(np.asarray(chosen) > 0.5)
        weights = np.asarray(self.recover(loss, Y, X[:, indices], gamma), dtype=float)
        log.info(
            "[OA] status=%s support=%s obj=%.6g gap=%s cuts=%d time=%.3fs",
            status.value,
            indices.tolist(),
            best_obj,
            f"{final_gap:.3g}" if final_gap is not None else "undefined",
            cut_count,
            elapsed,
        )
        return OAResult(
            indices=indices,
            weights=weights,
            elapsed=elapsed,
            status=status,
            gap=final_gap,
            cut_count=cut_count,
        )


def solve(
    loss: LossFunction | str,
    Y: Any,
    X: Any,
    k: int,
    gamma: float,
    initial_support: Iterable[int] | None = None,
    time_limit: float = 60,
    gap: float = 0.0,
    *,
    backend: MasterBackend | None = None,
    threads: int = 0,
    rng: np.random.Generator | int | None = None,
    oracle: Oracle = inner_op,
    recover: Recovery = recover_primal,
) -> OAResult:
    """Functional entry point; see `OuterApproximation.solve`."""
    oa = OuterApproximation(backend=backend, oracle=oracle, recover=recover, threads=threads)
    return oa.solve(loss, Y, X, k, gamma, initial_support=initial_support, time_limit=time_limit, gap=gap, rng=rng)


__all__ = ["OuterApproximation", "solve", "random_support"]
