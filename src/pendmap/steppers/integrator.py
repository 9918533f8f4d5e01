# src/pendmap/steppers/integrator.py
from __future__ import annotations
from dataclasses import fields, is_dataclass
from typing import TYPE_CHECKING, NamedTuple
import math
import numpy as np

from pendmap.compiler.jit import jit_compile
from pendmap.errors import ConfigError
from .registry import get_stepper, registry

if TYPE_CHECKING:
    from pendmap.systems.base import SystemModel

__all__ = ["Integrator", "StepResult"]


class StepResult(NamedTuple):
    accepted: bool
    t: float
    h: float


class Integrator:
    """
    A registered stepper bound to one immutable configuration.

    The emitted kernel is what the classifier drives; `do_step` is the
    single-step Python entry on top of it::

        ig = Integrator("ck45", CK45Config(rtol=1e-8, atol=1e-8))
        res = ig.do_step(model, state, t, h)   # state advanced in place if accepted
    """

    def __init__(self, stepper: str = "ck45", config=None, *, jit: bool = False):
        try:
            spec = get_stepper(stepper)
        except KeyError:
            known = ", ".join(sorted(registry()))
            raise ConfigError(f"Unknown stepper '{stepper}'. Registered: {known}") from None
        if config is None:
            config = spec.default_config()
        _validate_config(spec.meta.name, config)

        self.spec = spec
        self.config = config
        self.config_array = spec.pack_config(config)
        self.config_array.setflags(write=False)
        self.jit = bool(jit)
        self.stepper = jit_compile(
            spec.emit(jit=self.jit),
            jit=self.jit,
            component=f"{spec.meta.name}.stepper",
        ).fn

    @property
    def name(self) -> str:
        return self.spec.meta.name

    @property
    def adaptive(self) -> bool:
        return self.spec.meta.time_control == "adaptive"

    def make_workspace(self, n_state: int) -> np.ndarray:
        return self.spec.make_workspace(n_state)

    def do_step(self, model: SystemModel, state: np.ndarray, t: float, h: float) -> StepResult:
        if not isinstance(state, np.ndarray) or state.dtype != np.float64 or state.ndim != 1:
            raise ValueError("state must be a 1-D float64 array (it is advanced in place)")
        rhs = model.kernel(jit=self.jit)
        ws = self.make_workspace(state.size)
        t_out = np.empty(1, dtype=np.float64)
        h_out = np.empty(1, dtype=np.float64)
        accepted = self.stepper(
            float(t), float(h), state, rhs, model.pack_params(),
            ws, self.config_array, t_out, h_out,
        )
        return StepResult(bool(accepted), float(t_out[0]), float(h_out[0]))

    def __repr__(self) -> str:
        return f"Integrator({self.name!r}, {self.config!r}, jit={self.jit})"


def _validate_config(name: str, config) -> None:
    if config is None:
        return
    if not is_dataclass(config):
        raise ConfigError(f"Stepper '{name}' expects a dataclass config, got {type(config).__name__}")
    for f in fields(config):
        value = getattr(config, f.name)
        if not isinstance(value, (int, float)) or not math.isfinite(value) or value <= 0:
            raise ConfigError(f"{name}.{f.name} must be a positive finite number, got {value!r}")
