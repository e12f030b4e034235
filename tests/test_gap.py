import pytest

from sparse_oa.oa.types import bounds_closed, compute_gap


def test_gap_in_unit_interval():
    assert compute_gap(10.0, 8.0) == pytest.approx(0.2)
    assert compute_gap(10.0, -50.0) == 1.0
    assert compute_gap(-4.0, -5.0) == pytest.approx(0.25)


def test_gap_zero_when_bounds_meet_or_cross():
    assert compute_gap(3.0, 3.0) == 0.0
    assert compute_gap(3.0, 3.0 + 1e-3) == 0.0
    assert compute_gap(3.0, 3.0 - 1e-7) == 0.0


def test_gap_undefined():
    assert compute_gap(None, 1.0) is None
    assert compute_gap(1.0, None) is None
    # Upper bound at zero with a strictly lower bound: no relative gap
    assert compute_gap(0.0, -1.0) is None
    assert compute_gap(0.0, 0.0) == 0.0


def test_bounds_closed():
    assert bounds_closed(10.0, 10.0, 0.0, 1e-6)
    assert bounds_closed(10.0, 9.5, 0.05, 1e-6)
    assert not bounds_closed(10.0, 9.0, 0.05, 1e-6)
    assert not bounds_closed(None, 9.0, 0.05, 1e-6)
    assert bounds_closed(1e-7, 0.0, 0.0, 1e-6)
