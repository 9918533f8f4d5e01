# src/pendmap/steppers/ode/ck45.py
"""
CK45 (Cash-Karp, adaptive) stepper implementation.

Six-stage embedded Runge-Kutta pair: the 5th-order solution advances the
state, its difference to the 4th-order solution is the local error
estimate. One kernel call is one attempt; a rejected attempt leaves the
state and time alone and hands back a smaller step size for the caller
to retry with.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING
import numpy as np

from ..base import StepperMeta
from pendmap.compiler.jit import jit_compile

if TYPE_CHECKING:
    from typing import Callable

__all__ = ["CK45Spec", "CK45Config", "adapt_step_size"]


@dataclass
class CK45Config:
    """Runtime configuration for CK45 stepper."""
    rtol: float = 1e-6
    atol: float = 1e-6
    max_step: float = 0.1


# Cash-Karp Butcher tableau
C2, C3, C4, C5, C6 = 1.0/5.0, 3.0/10.0, 3.0/5.0, 1.0, 7.0/8.0

A21 = 1.0/5.0
A31, A32 = 3.0/40.0, 9.0/40.0
A41, A42, A43 = 3.0/10.0, -9.0/10.0, 6.0/5.0
A51, A52, A53, A54 = -11.0/54.0, 5.0/2.0, -70.0/27.0, 35.0/27.0
A61, A62, A63, A64, A65 = (
    1631.0/55296.0, 175.0/512.0, 575.0/13824.0, 44275.0/110592.0, 253.0/4096.0
)

# 5th order weights (b2 = b5 = 0)
B1, B3, B4, B6 = 37.0/378.0, 250.0/621.0, 125.0/594.0, 512.0/1771.0

# 4th order embedded weights
BS1, BS3, BS4, BS5, BS6 = (
    2825.0/27648.0, 18575.0/48384.0, 13525.0/55296.0, 277.0/14336.0, 1.0/4.0
)

# 5th minus 4th
E1 = B1 - BS1
E3 = B3 - BS3
E4 = B4 - BS4
E5 = -BS5
E6 = B6 - BS6


def adapt_step_size(max_error, h, max_step):
    """
    Accept/reject decision and next step size for a scalar error ratio.

    Returns ``(accepted, h_next)``:
      - error > 1.0: reject, shrink by max(0.9 * err^-1/4, 0.2)
      - 0.5 <= error <= 1.0: accept, keep h
      - error < 0.5: accept, grow by min(0.9 * err^-1/5, 5), capped at max_step
      - NaN error: reject, shrink by the floor factor 0.2
    """
    if max_error != max_error:
        return 0, h * 0.2
    if max_error > 1.0:
        return 0, h * max(0.9 * max_error ** -0.25, 0.2)
    if max_error >= 0.5:
        return 1, h
    if max_error > 0.0:
        factor = min(0.9 * max_error ** -0.2, 5.0)
    else:
        factor = 5.0
    return 1, min(h * factor, max_step)


class CK45Spec:
    """
    Cash-Karp RK45: 5th-order method with embedded 4th-order error estimate.

    Error ratio per component:
        err_i = |y5_i - y4_i| / (atol + rtol * (|y_i| + |dy5_i|))
    where dy5 is the 5th-order increment; the step error is max_i err_i.
    """
    def __init__(self, meta: StepperMeta | None = None):
        if meta is None:
            meta = StepperMeta(
                name="ck45",
                time_control="adaptive",
                scheme="explicit",
                family="runge-kutta",
                order=5,
                embedded_order=4,
                aliases=("cash_karp", "rkck"),
            )
        self.meta = meta

    def make_workspace(self, n_state: int) -> np.ndarray:
        """Rows: y_stage, k1..k6, dy5."""
        return np.zeros((8, n_state), dtype=np.float64)

    def config_spec(self) -> type:
        return CK45Config

    def default_config(self) -> CK45Config:
        return CK45Config()

    def pack_config(self, config: CK45Config | None) -> np.ndarray:
        """
        Layout (3 floats):
            [0] rtol
            [1] atol
            [2] max_step
        """
        if config is None:
            config = CK45Config()
        return np.array(
            [config.rtol, config.atol, config.max_step], dtype=np.float64
        )

    def emit(self, jit: bool = False) -> Callable:
        """
        Generate the CK45 stepper kernel.

        The step-size controller is compiled alongside when `jit` is set so
        the returned kernel stays nopython-callable.
        """
        control = jit_compile(adapt_step_size, jit=jit, component="ck45.control").fn

        def ck45_stepper(t, h, y, rhs, params, ws, config, t_out, h_out):
            n = y.size
            rtol = config[0]
            atol = config[1]
            max_step = config[2]

            y_stage = ws[0]
            k1 = ws[1]
            k2 = ws[2]
            k3 = ws[3]
            k4 = ws[4]
            k5 = ws[5]
            k6 = ws[6]
            dy5 = ws[7]

            rhs(t, y, k1, params)

            for i in range(n):
                y_stage[i] = y[i] + h * A21 * k1[i]
            rhs(t + C2 * h, y_stage, k2, params)

            for i in range(n):
                y_stage[i] = y[i] + h * (A31 * k1[i] + A32 * k2[i])
            rhs(t + C3 * h, y_stage, k3, params)

            for i in range(n):
                y_stage[i] = y[i] + h * (A41 * k1[i] + A42 * k2[i] + A43 * k3[i])
            rhs(t + C4 * h, y_stage, k4, params)

            for i in range(n):
                y_stage[i] = y[i] + h * (
                    A51 * k1[i] + A52 * k2[i] + A53 * k3[i] + A54 * k4[i]
                )
            rhs(t + C5 * h, y_stage, k5, params)

            for i in range(n):
                y_stage[i] = y[i] + h * (
                    A61 * k1[i] + A62 * k2[i] + A63 * k3[i] +
                    A64 * k4[i] + A65 * k5[i]
                )
            rhs(t + C6 * h, y_stage, k6, params)

            max_error = 0.0
            for i in range(n):
                dy5[i] = h * (B1 * k1[i] + B3 * k3[i] + B4 * k4[i] + B6 * k6[i])
                diff = h * (
                    E1 * k1[i] + E3 * k3[i] + E4 * k4[i] +
                    E5 * k5[i] + E6 * k6[i]
                )
                err_i = abs(diff) / (atol + rtol * (abs(y[i]) + abs(dy5[i])))
                if err_i > max_error or err_i != err_i:
                    max_error = err_i

            accepted, h_next = control(max_error, h, max_step)
            h_out[0] = h_next
            if accepted == 0:
                t_out[0] = t
                return 0

            for i in range(n):
                y[i] = y[i] + dy5[i]
            t_out[0] = t + h
            return 1

        return ck45_stepper


# Auto-register on module import
def _auto_register():
    from ..registry import register
    spec = CK45Spec()
    register(spec)

_auto_register()
