"""Tests for the PI lead-time controller."""

import pytest

from pinned_clock.controller import OffsetController


def test_initial_state():
    ctl = OffsetController()
    assert ctl.v == 0.5
    assert ctl.i == 0.0


def test_single_update_steps():
    ctl = OffsetController()
    ctl.update(-1.0)
    assert ctl.i == -1.0
    assert ctl.v == pytest.approx(0.5 - 0.01 - 0.01)
    ctl.update(-1.0)
    assert ctl.i == -2.0
    assert ctl.v == pytest.approx(0.48 - 0.01 - 0.02)


def test_integral_pulls_back_after_direction_change():
    ctl = OffsetController()
    ctl.update(1.0)
    ctl.update(1.0)
    high = ctl.v
    ctl.update(-1.0)
    # i is still positive, so the first reversal only slows growth
    assert ctl.i == 1.0
    assert ctl.v == pytest.approx(high - 0.01 + 0.01)


@pytest.mark.parametrize("error", [1.0, -1.0])
def test_ratio_stays_clamped(error):
    ctl = OffsetController()
    for _ in range(10_000):
        ctl.update(error)
        assert 0.0 <= ctl.v <= 1.0
    assert ctl.v == (1.0 if error > 0 else 0.0)
    assert abs(ctl.i) == 10_000


def test_apply_scales_rtt():
    ctl = OffsetController(initial=0.25)
    assert ctl.apply(0.2) == pytest.approx(0.05)
    assert ctl.apply(0.0) == 0.0


def test_initial_is_clamped():
    assert OffsetController(initial=3.0).v == 1.0
    assert OffsetController(initial=-1.0).v == 0.0
