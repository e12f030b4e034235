import numpy as np
import pytest
import pyomo.environ as pyo

from sparse_oa.oa.master import MasterModel
from sparse_oa.oa.types import Cut


def _cut(value, grad, anchor, index=1):
    return Cut(value=value, gradient=np.asarray(grad, dtype=float), anchor=np.asarray(anchor, dtype=float), index=index)


def test_model_structure():
    master = MasterModel(4, 2, start=np.array([1.0, 0.0, 0.0, 1.0]))
    m = master.m
    assert len(m.s) == 4
    assert pyo.value(m.cardinality.upper) == 2
    assert master.n_cuts == 0
    assert master.selection().tolist() == [1.0, 0.0, 0.0, 1.0]
    assert master.epigraph() is None
    assert len(master.variables()) == 5


def test_added_cut_is_tight_at_its_anchor():
    master = MasterModel(3, 2)
    cut = _cut(4.0, [-1.0, -2.0, 0.0], [1.0, 0.0, 0.0])
    con = master.add_cut(cut)
    assert master.n_cuts == 1
    assert master.cuts[0] is cut

    master.set_start(np.array([1.0, 0.0, 0.0]))
    master.m.t.value = 4.0
    assert min(con.lslack(), con.uslack()) == pytest.approx(0.0, abs=1e-12)

    master.set_start(np.array([0.0, 1.0, 1.0]))
    master.m.t.value = cut.evaluate(np.array([0.0, 1.0, 1.0]))
    assert min(con.lslack(), con.uslack()) == pytest.approx(0.0, abs=1e-12)


def test_tiny_coefficients_are_dropped():
    master = MasterModel(3, 1)
    cut = _cut(1.0, [1e-15, -0.5, 0.0], [0.0, 0.0, 0.0])
    con = master.add_cut(cut)
    body_vars = {v.name for v in _variables(con.body)}
    assert "s[1]" in body_vars
    assert "s[0]" not in body_vars
    assert "s[2]" not in body_vars


def test_cuts_property_is_a_copy():
    master = MasterModel(2, 1)
    master.add_cut(_cut(1.0, [0.0, 0.0], [0.0, 0.0]))
    cuts = master.cuts
    cuts.clear()
    assert master.n_cuts == 1


def _variables(expr):
    from pyomo.core.expr.visitor import identify_variables

    return list(identify_variables(expr))
