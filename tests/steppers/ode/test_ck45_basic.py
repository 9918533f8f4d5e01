# tests/steppers/ode/test_ck45_basic.py
"""
CK45 adaptive stepper:
- accepted steps advance time by the step size that was passed in
- rejected steps leave state and time alone and shrink the step
- step-size control boundaries at error ratios 0.5 and 1.0
"""
from __future__ import annotations

import math

import numpy as np
import pytest

from pendmap import CK45Config, ConfigError, FunctionModel, Integrator
from pendmap.steppers import adapt_step_size
from pendmap.steppers.ode import ck45
from tests.models import decay_rhs, nan_rhs


@pytest.fixture
def decay():
    return FunctionModel(decay_rhs, params=(1.0,), n_state=4)


def test_tableau_is_consistent():
    rows = [
        (ck45.A21,),
        (ck45.A31, ck45.A32),
        (ck45.A41, ck45.A42, ck45.A43),
        (ck45.A51, ck45.A52, ck45.A53, ck45.A54),
        (ck45.A61, ck45.A62, ck45.A63, ck45.A64, ck45.A65),
    ]
    for c, row in zip((ck45.C2, ck45.C3, ck45.C4, ck45.C5, ck45.C6), rows):
        assert sum(row) == pytest.approx(c, abs=1e-15)
    assert ck45.B1 + ck45.B3 + ck45.B4 + ck45.B6 == pytest.approx(1.0, abs=1e-15)
    assert ck45.BS1 + ck45.BS3 + ck45.BS4 + ck45.BS5 + ck45.BS6 == pytest.approx(1.0, abs=1e-15)


def test_accepted_step_uses_given_step_size(decay):
    ig = Integrator("ck45", CK45Config(rtol=1e-6, atol=1e-6, max_step=0.1))
    y = np.array([1.0, -1.0, 0.5, 2.0])
    t0, h0 = 1.5, 1e-3
    res = ig.do_step(decay, y, t0, h0)
    assert res.accepted
    assert res.t == t0 + h0
    np.testing.assert_allclose(y, np.array([1.0, -1.0, 0.5, 2.0]) * math.exp(-h0), rtol=1e-12)


def test_accepted_step_grows_by_at_most_five(decay):
    ig = Integrator("ck45", CK45Config(rtol=1e-6, atol=1e-6, max_step=10.0))
    y = np.ones(4)
    res = ig.do_step(decay, y, 0.0, 1e-4)
    assert res.accepted
    assert res.h == pytest.approx(5e-4)


def test_growth_is_capped_by_max_step(decay):
    ig = Integrator("ck45", CK45Config(rtol=1e-6, atol=1e-6, max_step=2e-4))
    res = ig.do_step(decay, np.ones(4), 0.0, 1e-4)
    assert res.accepted
    assert res.h == 2e-4


def test_rejected_step_leaves_state_and_time(decay):
    ig = Integrator("ck45", CK45Config(rtol=1e-10, atol=1e-10, max_step=10.0))
    y = np.array([1.0, 2.0, 3.0, 4.0])
    before = y.copy()
    res = ig.do_step(decay, y, 3.0, 5.0)
    assert not res.accepted
    assert res.t == 3.0
    assert res.h < 5.0
    # huge error: shrink factor bottoms out at 0.2
    assert res.h == pytest.approx(1.0)
    np.testing.assert_array_equal(y, before)


@pytest.mark.parametrize("err", [0.5, 0.75, 1.0])
def test_control_keeps_step_between_half_and_one(err):
    accepted, h = adapt_step_size(err, 0.01, 0.1)
    assert accepted == 1
    assert h == 0.01


def test_control_rejects_just_above_one():
    accepted, h = adapt_step_size(1.0 + 1e-12, 0.01, 0.1)
    assert accepted == 0
    assert h == pytest.approx(0.01 * 0.9, rel=1e-9)


def test_control_grows_just_below_half():
    accepted, h = adapt_step_size(0.49, 0.01, 0.1)
    assert accepted == 1
    assert h == pytest.approx(0.01 * 0.9 * 0.49 ** -0.2)


def test_control_zero_error_grows_fully():
    assert adapt_step_size(0.0, 0.01, 0.1) == (1, pytest.approx(0.05))
    assert adapt_step_size(0.0, 0.05, 0.1) == (1, 0.1)


def test_control_rejects_nan_error():
    accepted, h = adapt_step_size(math.nan, 0.01, 0.1)
    assert accepted == 0
    assert h == pytest.approx(0.002)


def test_nan_derivative_is_rejected_not_accepted():
    model = FunctionModel(nan_rhs, n_state=4)
    ig = Integrator("ck45")
    y = np.array([1.0, 2.0, 0.0, 0.0])
    res = ig.do_step(model, y, 0.5, 0.01)
    assert not res.accepted
    assert res.t == 0.5
    assert res.h == pytest.approx(0.002)
    np.testing.assert_array_equal(y, [1.0, 2.0, 0.0, 0.0])


def test_adaptive_decay_accuracy(decay):
    ig = Integrator("ck45", CK45Config(rtol=1e-8, atol=1e-8, max_step=0.5))
    y = np.ones(4)
    t, h = 0.0, 0.01
    while t < 2.0:
        res = ig.do_step(decay, y, t, min(h, 2.0 - t))
        t, h = res.t, res.h
    assert t == pytest.approx(2.0)
    np.testing.assert_allclose(y, np.exp(-2.0), rtol=1e-6)


def test_invalid_config_rejected():
    with pytest.raises(ConfigError):
        Integrator("ck45", CK45Config(rtol=-1.0))
    with pytest.raises(ConfigError):
        Integrator("no_such_stepper")
