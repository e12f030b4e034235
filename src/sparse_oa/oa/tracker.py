from __future__ import annotations

import threading
from typing import Tuple

import numpy as np


class IncumbentTracker:
    """
    Keeps the best selection seen by the oracle and the cut counter.

    The solver's own incumbent bookkeeping is not trusted after an early
    stop, so every oracle evaluation is reported here. Updates are
    serialized with a lock because lazy callbacks may run on several
    search threads.

    Update rule (strict improvement only):
        if value < best_obj: best_obj, best_solution <- value, support
    """

    def __init__(self, value: float, support: np.ndarray, cut_count: int = 1):
        self._lock = threading.Lock()
        self._best_obj = float(value)
        self._best_solution = np.array(support, dtype=float, copy=True)
        self._cut_count = int(cut_count)

    def observe(self, support: np.ndarray, value: float) -> bool:
        value = float(value)
        with self._lock:
            if value < self._best_obj:
                self._best_obj = value
                self._best_solution = np.array(support, dtype=float, copy=True)
                return True
            return False

    def next_cut(self) -> int:
        with self._lock:
            self._cut_count += 1
            return self._cut_count

    @property
    def best_obj(self) -> float:
        with self._lock:
            return self._best_obj

    @property
    def best_solution(self) -> np.ndarray:
        with self._lock:
            return self._best_solution.copy()

    @property
    def cut_count(self) -> int:
        with self._lock:
            return self._cut_count

    def snapshot(self) -> Tuple[float, np.ndarray, int]:
        with self._lock:
            return self._best_obj, self._best_solution.copy(), self._cut_count


__all__ = ["IncumbentTracker"]
