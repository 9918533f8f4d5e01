# src/pendmap/steppers/ode/rk4.py
"""
RK4 (Runge-Kutta 4th order, explicit, fixed-step) stepper implementation.

Never rejects a step; the step size handed back is the one it was given.
"""
from __future__ import annotations
from typing import TYPE_CHECKING
import numpy as np

from ..base import StepperMeta

if TYPE_CHECKING:
    from typing import Callable

__all__ = ["RK4Spec"]


class RK4Spec:
    """
    Classic 4th-order Runge-Kutta stepper (explicit, fixed-step).

    Formula:
        k1 = f(t, y)
        k2 = f(t + h/2, y + h/2 * k1)
        k3 = f(t + h/2, y + h/2 * k2)
        k4 = f(t + h, y + h * k3)
        y_{n+1} = y_n + h/6 * (k1 + 2*k2 + 2*k3 + k4)
    """
    def __init__(self, meta: StepperMeta | None = None):
        if meta is None:
            meta = StepperMeta(
                name="rk4",
                time_control="fixed",
                scheme="explicit",
                family="runge-kutta",
                order=4,
                embedded_order=None,
                aliases=("rk4_classic", "classical_rk4"),
            )
        self.meta = meta

    def make_workspace(self, n_state: int) -> np.ndarray:
        """Rows: y_stage, k1, k2, k3, k4."""
        return np.zeros((5, n_state), dtype=np.float64)

    def config_spec(self) -> None:
        return None

    def default_config(self) -> None:
        return None

    def pack_config(self, config) -> np.ndarray:
        return np.zeros((0,), dtype=np.float64)

    def emit(self, jit: bool = False) -> Callable:
        """
        Generate the RK4 stepper kernel.

        `jit` is accepted for interface parity; RK4 has no helper kernels
        of its own.
        """
        def rk4_stepper(t, h, y, rhs, params, ws, config, t_out, h_out):
            n = y.size
            y_stage = ws[0]
            k1 = ws[1]
            k2 = ws[2]
            k3 = ws[3]
            k4 = ws[4]

            # Stage 1: k1 = f(t, y)
            rhs(t, y, k1, params)

            # Stage 2: k2 = f(t + h/2, y + h/2 * k1)
            for i in range(n):
                y_stage[i] = y[i] + 0.5 * h * k1[i]
            rhs(t + 0.5 * h, y_stage, k2, params)

            # Stage 3: k3 = f(t + h/2, y + h/2 * k2)
            for i in range(n):
                y_stage[i] = y[i] + 0.5 * h * k2[i]
            rhs(t + 0.5 * h, y_stage, k3, params)

            # Stage 4: k4 = f(t + h, y + h * k3)
            for i in range(n):
                y_stage[i] = y[i] + h * k3[i]
            rhs(t + h, y_stage, k4, params)

            for i in range(n):
                y[i] = y[i] + (h / 6.0) * (
                    k1[i] + 2.0 * k2[i] + 2.0 * k3[i] + k4[i]
                )

            t_out[0] = t + h
            h_out[0] = h
            return 1

        return rk4_stepper


# Auto-register on module import
def _auto_register():
    from ..registry import register
    spec = RK4Spec()
    register(spec)

_auto_register()
