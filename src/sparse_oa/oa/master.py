from __future__ import annotations

from typing import List, Optional

import numpy as np
import pyomo.environ as pyo

from .types import Cut

# Gradient entries below this magnitude are dropped from the cut expression
COEFF_ZERO_TOL: float = 1e-12


class MasterModel:
    """Discrete master problem of the outer approximation.

        min  t
        s.t. sum_j s_j <= k
             t >= c + <g, s - s0>    for every cut (c, g, s0)
             s in {0,1}^p, t >= 0

    Cuts are collected in a ConstraintList and never removed.
    """

    def __init__(self, p: int, k: int, start: Optional[np.ndarray] = None):
        self.p = int(p)
        self.k = int(k)
        self._cuts: List[Cut] = []

        start = np.zeros(self.p) if start is None else np.asarray(start, dtype=float)
        m = pyo.ConcreteModel(name="oa_master")
        m.F = pyo.RangeSet(0, self.p - 1)
        m.s = pyo.Var(m.F, within=pyo.Binary, initialize=lambda m, j: float(start[j]))
        m.t = pyo.Var(within=pyo.NonNegativeReals)

        # Objective: min t
        m.obj = pyo.Objective(expr=m.t, sense=pyo.minimize)

        m.cardinality = pyo.Constraint(expr=sum(m.s[j] for j in m.F) <= self.k)
        m.cuts = pyo.ConstraintList()
        self.m = m

    @property
    def cuts(self) -> List[Cut]:
        return list(self._cuts)

    @property
    def n_cuts(self) -> int:
        return len(self._cuts)

    def variables(self) -> list:
        return [self.m.s[j] for j in self.m.F] + [self.m.t]

    def cut_expression(self, cut: Cut):
        """t >= const + sum_j g_j s_j, with const = c - <g, s0>"""
        m = self.m
        rhs = cut.constant + sum(
            float(cut.gradient[j]) * m.s[j] for j in m.F if abs(float(cut.gradient[j])) > COEFF_ZERO_TOL
        )
        return m.t >= rhs

    def add_cut(self, cut: Cut):
        con = self.m.cuts.add(self.cut_expression(cut))
        self._cuts.append(cut)
        return con

    def selection(self) -> np.ndarray:
        """Copy of the current values of s (unset values read as 0)."""
        return np.array([float(self.m.s[j].value or 0.0) for j in self.m.F], dtype=float)

    def epigraph(self) -> Optional[float]:
        v = self.m.t.value
        return None if v is None else float(v)

    def set_start(self, support: np.ndarray) -> None:
        for j in self.m.F:
            self.m.s[j].value = float(support[j])


__all__ = ["MasterModel", "COEFF_ZERO_TOL"]
