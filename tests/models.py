# tests/models.py
"""Small kernels shared by the tests."""
from __future__ import annotations

import math


def decay_rhs(t, y, dy, params):
    # dx/dt = -a * x, componentwise
    a = params[0]
    for i in range(y.size):
        dy[i] = -a * y[i]


def oscillator_rhs(t, y, dy, params):
    # planar oscillator x'' = -w2 * x - c * x'
    w2 = params[0]
    c = params[1]
    dy[0] = y[2]
    dy[1] = y[3]
    dy[2] = -w2 * y[0] - c * y[2]
    dy[3] = -w2 * y[1] - c * y[3]


def still_rhs(t, y, dy, params):
    for i in range(y.size):
        dy[i] = 0.0


def nan_rhs(t, y, dy, params):
    for i in range(y.size):
        dy[i] = math.nan
