from __future__ import annotations

import logging
from typing import Any, Callable, Tuple

import numpy as np

from .errors import OracleFailure
from .tracker import IncumbentTracker
from .types import Cut

log = logging.getLogger(__name__)

Oracle = Callable[[Any, np.ndarray, np.ndarray, np.ndarray, float], Tuple[float, np.ndarray]]


def make_cut(
    oracle: Oracle,
    loss: Any,
    Y: np.ndarray,
    X: np.ndarray,
    gamma: float,
    support: np.ndarray,
    index: int = 1,
) -> Cut:
    """Call the oracle at a 0/1 support and package the result as a cut.

    Any oracle exception, a non-finite value or a gradient of the wrong
    length is reported as OracleFailure.
    """
    anchor = np.array(support, dtype=float, copy=True)
    where = np.flatnonzero(anchor > 0.5).tolist()
    try:
        value, grad = oracle(loss, Y, X, anchor.copy(), gamma)
    except OracleFailure:
        raise
    except Exception as exc:
        raise OracleFailure(f"oracle failed at support {where}: {exc}", support=anchor) from exc
    value = float(value)
    grad = np.asarray(grad, dtype=float).reshape(-1)
    p = int(X.shape[1])
    if grad.shape[0] != p:
        raise OracleFailure(
            f"oracle returned a gradient of length {grad.shape[0]}, expected {p}",
            support=anchor,
        )
    if not np.isfinite(value) or not np.all(np.isfinite(grad)):
        raise OracleFailure(f"oracle returned non-finite output at support {where}", support=anchor)
    return Cut(value=value, gradient=grad, anchor=anchor, index=int(index))


class LazySeparation:
    """Cut generator called by the discrete solver at each integer incumbent.

    One call = one oracle evaluation = one cut. The handler keeps no state
    of its own besides the shared tracker, so it can be entered from
    several solver threads at once.
    """

    def __init__(
        self,
        loss: Any,
        Y: np.ndarray,
        X: np.ndarray,
        gamma: float,
        tracker: IncumbentTracker,
        oracle: Oracle,
    ):
        self.loss = loss
        self.Y = Y
        self.X = X
        self.gamma = float(gamma)
        self.tracker = tracker
        self.oracle = oracle

    def __call__(self, candidate: np.ndarray) -> Cut:
        count = self.tracker.next_cut()
        # Snapshot, rounded to remove relaxation noise on the binaries
        s_hat = (np.asarray(candidate, dtype=float) > 0.5).astype(float)
        cut = make_cut(self.oracle, self.loss, self.Y, self.X, self.gamma, s_hat, index=count)
        if self.tracker.observe(cut.anchor, cut.value):
            log.info(
                "[OA] cut %d: new incumbent obj=%.6g support=%s",
                count,
                cut.value,
                np.flatnonzero(s_hat > 0.5).tolist(),
            )
        else:
            log.debug("[OA] cut %d: obj=%.6g (best %.6g)", count, cut.value, self.tracker.best_obj)
        return cut


__all__ = ["LazySeparation", "Oracle", "make_cut"]
