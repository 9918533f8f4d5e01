# src/pendmap/steppers/base.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Protocol, Callable
import numpy as np

from pendmap.runtime.types import TimeCtrl, Scheme

__all__ = [
    "StepperMeta", "StepperSpec",
]


@dataclass(frozen=True)
class StepperMeta:
    """
    Public metadata for a stepper.
    Fundamental classification of the method; the kernel itself is produced
    by the owning spec.
    """
    name: str
    time_control: TimeCtrl = "fixed"
    scheme: Scheme = "explicit"
    family: str = ""
    order: int = 1
    embedded_order: int | None = None
    aliases: tuple[str, ...] = ()


class StepperSpec(Protocol):
    """
    Interface for stepper specs.
    Implementations MUST:
      - accept `meta: StepperMeta` in __init__
      - provide `make_workspace(n_state) -> np.ndarray` (per-worker scratch)
      - provide `config_spec() -> type | None` (dataclass type for runtime config, or None)
      - provide `default_config()` (create default config instance)
      - provide `pack_config(config) -> np.ndarray` (pack config to float64 array)
      - provide `emit(jit=False) -> Callable` returning the stepper kernel
    """

    meta: StepperMeta

    def __init__(self, meta: StepperMeta) -> None: ...
    def make_workspace(self, n_state: int) -> np.ndarray: ...

    def config_spec(self) -> type | None:
        """
        Return dataclass type for runtime configuration, or None.

        If None, stepper has no runtime config (e.g., fixed-step methods).
        If a dataclass, it should contain only numeric fields.
        """
        ...

    def default_config(self):
        """Create default config instance, or None if no config needed."""
        ...

    def pack_config(self, config) -> np.ndarray:
        """
        Pack config dataclass into float64 array.
        Empty array if config is None.
        """
        ...

    def emit(self, jit: bool = False) -> Callable:
        """
        Generate the stepper kernel with the frozen signature:

            accepted = stepper(t, h, y, rhs, params, ws, config, t_out, h_out)

        On acceptance (1) `y` is advanced in place, `t_out[0] = t + h` and
        `h_out[0]` holds the step size to try next. On rejection (0) `y` is
        untouched, `t_out[0] = t` and `h_out[0]` holds the shrunk step size.
        """
        ...
