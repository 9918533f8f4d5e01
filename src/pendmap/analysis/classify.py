# src/pendmap/analysis/classify.py
"""
Per-point convergence classification.

A point is integrated from rest until its position has stayed inside the
tolerance box of one target (an attractor, or the centre) for `time_tol`
without interruption. Leaving every box, or moving into another box,
starts the dwell clock over. Points whose start lies outside the model's
domain are never integrated; points that run out of time or step attempts
stay unclassified.

The kernels below only touch numpy arrays and scalars, so the same source
runs as plain Python or compiled by numba (``jit=True``).
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Callable, Literal, NamedTuple, Sequence
import math
import numpy as np

from pendmap.compiler.jit import jit_compile
from pendmap.errors import ConfigError
from pendmap.runtime.runner_api import (
    Status,
    CONVERGED, FINISHED, OUT_OF_DOMAIN, HORIZON, TRIAL_CAP,
    KIND_ATTRACTOR, KIND_CENTER, KIND_UNCLASSIFIED,
)
from .grid import Outcome

if TYPE_CHECKING:
    from pendmap.steppers.integrator import Integrator
    from pendmap.systems.base import SystemModel

__all__ = [
    "ClassifyMode",
    "ClassifierConfig",
    "PointRecord",
    "ClassifierKernels",
    "build_kernels",
    "classify_point",
]

ClassifyMode = Literal["converge", "fixed"]

# settings array layout
S_T0 = 0
S_DT = 1
S_T_END = 2
S_POS_TOL = 3
S_CENTER_TOL = 4
S_TIME_TOL = 5
S_MAX_TIME = 6
S_MAX_TRIALS = 7
S_RADIUS = 8
S_SINGULAR = 9
S_MARGIN = 10
_N_SETTINGS = 11


@dataclass(frozen=True)
class ClassifierConfig:
    """
    Temporal and tolerance settings for classifying points.

    `t_end` only applies to fixed-duration classification; `max_time` and
    `max_trials` bound the converging run.
    """
    t0: float = 0.0
    dt: float = 0.001
    t_end: float = 20.0
    position_tol: float = 0.5
    center_tol: float = 0.1
    time_tol: float = 5.0
    max_time: float = 1000.0
    max_trials: int = 1_000_000
    domain_margin: float = 1e-10

    def __post_init__(self) -> None:
        for name in ("t0", "dt", "t_end", "position_tol", "center_tol",
                     "time_tol", "max_time", "domain_margin"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or not math.isfinite(value):
                raise ConfigError(f"{name} must be a finite number, got {value!r}")
        if not self.dt > 0.0:
            raise ConfigError(f"dt must be positive, got {self.dt!r}")
        for name in ("position_tol", "center_tol", "time_tol", "domain_margin"):
            if getattr(self, name) < 0.0:
                raise ConfigError(f"{name} must be non-negative, got {getattr(self, name)!r}")
        if not self.max_time > self.t0:
            raise ConfigError("max_time must be greater than t0")
        if not self.t_end > self.t0:
            raise ConfigError("t_end must be greater than t0")
        if not isinstance(self.max_trials, int) or self.max_trials < 1:
            raise ConfigError(f"max_trials must be a positive integer, got {self.max_trials!r}")

    def pack(self, model: SystemModel) -> np.ndarray:
        out = np.empty(_N_SETTINGS, dtype=np.float64)
        out[S_T0] = self.t0
        out[S_DT] = self.dt
        out[S_T_END] = self.t_end
        out[S_POS_TOL] = self.position_tol
        out[S_CENTER_TOL] = self.center_tol
        out[S_TIME_TOL] = self.time_tol
        out[S_MAX_TIME] = self.max_time
        out[S_MAX_TRIALS] = float(self.max_trials)
        out[S_RADIUS] = float(model.domain_radius)
        out[S_SINGULAR] = 1.0 if model.singular_origin else 0.0
        out[S_MARGIN] = self.domain_margin
        out.setflags(write=False)
        return out


@dataclass(frozen=True)
class PointRecord:
    outcome: Outcome
    time: float
    steps: int
    status: Status


# ---------------------------------------------------------------------------
# kernels


def in_domain(y0, radius, singular, margin):
    if math.sqrt(y0[0] * y0[0] + y0[1] * y0[1]) >= radius - margin:
        return False
    if singular and abs(y0[0]) <= margin and abs(y0[1]) <= margin:
        return False
    return True


def match_target(px, py, targets, pos_tol, center_tol):
    """First attractor box containing (px, py) wins, then the centre box."""
    for i in range(targets.shape[0]):
        tx = targets[i, 0]
        ty = targets[i, 1]
        if tx - pos_tol < px and px < tx + pos_tol and ty - pos_tol < py and py < ty + pos_tol:
            return KIND_ATTRACTOR, i
    if -center_tol < px and px < center_tol and -center_tol < py and py < center_tol:
        return KIND_CENTER, -1
    return KIND_UNCLASSIFIED, -1


class ClassifierKernels(NamedTuple):
    converge: Callable
    fixed: Callable
    run_block: Callable


def _make_kernels(jit: bool) -> ClassifierKernels:
    domain = jit_compile(in_domain, jit=jit, nogil=True, component="domain").fn
    match = jit_compile(match_target, jit=jit, nogil=True, component="match").fn

    def converge_point(stepper, rhs, params, ws, config, targets, settings, y, t_out, h_out):
        if not domain(y, settings[S_RADIUS], settings[S_SINGULAR] != 0.0, settings[S_MARGIN]):
            return OUT_OF_DOMAIN, KIND_UNCLASSIFIED, -1, 0.0, 0

        pos_tol = settings[S_POS_TOL]
        center_tol = settings[S_CENTER_TOL]
        time_tol = settings[S_TIME_TOL]
        max_time = settings[S_MAX_TIME]
        max_trials = int(settings[S_MAX_TRIALS])

        t = settings[S_T0]
        h = settings[S_DT]
        trials = 0
        steps = 0
        cur_kind = KIND_UNCLASSIFIED
        cur_index = -1
        entry_time = t

        while t < max_time:
            if trials >= max_trials:
                return TRIAL_CAP, KIND_UNCLASSIFIED, -1, 0.0, steps
            steps += stepper(t, h, y, rhs, params, ws, config, t_out, h_out)
            trials += 1
            t = t_out[0]
            h = h_out[0]

            kind, index = match(y[0], y[1], targets, pos_tol, center_tol)
            if kind == KIND_UNCLASSIFIED:
                cur_kind = KIND_UNCLASSIFIED
                cur_index = -1
            elif kind == cur_kind and index == cur_index:
                if t - entry_time >= time_tol:
                    return CONVERGED, kind, index, t, steps
            else:
                cur_kind = kind
                cur_index = index
                entry_time = t

        return HORIZON, KIND_UNCLASSIFIED, -1, 0.0, steps

    def fixed_point(stepper, rhs, params, ws, config, targets, settings, y, t_out, h_out):
        """
        Integrate to t_end and classify the final position once.

        The recorded time is the time actually reached (t_end or just past
        it, less if the trial budget ran out), not a nominal ``t_end - dt``;
        rejected starts record 0.0 like in converge mode.
        """
        if not domain(y, settings[S_RADIUS], settings[S_SINGULAR] != 0.0, settings[S_MARGIN]):
            return OUT_OF_DOMAIN, KIND_UNCLASSIFIED, -1, 0.0, 0

        t_end = settings[S_T_END]
        max_trials = int(settings[S_MAX_TRIALS])
        t = settings[S_T0]
        h = settings[S_DT]
        trials = 0
        steps = 0
        while t < t_end and trials < max_trials:
            steps += stepper(t, h, y, rhs, params, ws, config, t_out, h_out)
            trials += 1
            t = t_out[0]
            h = h_out[0]

        kind, index = match(y[0], y[1], targets, settings[S_POS_TOL], settings[S_CENTER_TOL])
        status = FINISHED if t >= t_end else TRIAL_CAP
        return status, kind, index, t, steps

    def run_block(point_fn, stepper, rhs, params, config, targets, settings,
                  starts, kind_out, index_out, time_out, steps_out, status_out,
                  ws, y, t_out, h_out):
        n_state = y.size
        for i in range(starts.shape[0]):
            for j in range(starts.shape[1]):
                for c in range(n_state):
                    y[c] = starts[i, j, c]
                status, kind, index, t, steps = point_fn(
                    stepper, rhs, params, ws, config, targets, settings, y, t_out, h_out
                )
                status_out[i, j] = status
                kind_out[i, j] = kind
                index_out[i, j] = index
                time_out[i, j] = t
                steps_out[i, j] = steps

    return ClassifierKernels(
        converge=jit_compile(converge_point, jit=jit, nogil=True, component="converge").fn,
        fixed=jit_compile(fixed_point, jit=jit, nogil=True, component="fixed").fn,
        run_block=jit_compile(run_block, jit=jit, nogil=True, component="run_block").fn,
    )


@lru_cache(maxsize=None)
def build_kernels(jit: bool = False) -> ClassifierKernels:
    """Classifier kernels, built once per process for each `jit` setting."""
    return _make_kernels(bool(jit))


def point_kernel(kernels: ClassifierKernels, mode: ClassifyMode) -> Callable:
    if mode == "converge":
        return kernels.converge
    if mode == "fixed":
        return kernels.fixed
    raise ValueError("mode must be 'converge' or 'fixed'")


def classify_point(
    model: SystemModel,
    integrator: Integrator,
    start_state: Sequence[float] | np.ndarray,
    config: ClassifierConfig | None = None,
    *,
    mode: ClassifyMode = "converge",
) -> PointRecord:
    """
    Classify a single start state.

    ``mode="converge"`` runs the dwell-time classifier; ``mode="fixed"``
    integrates to ``config.t_end`` and classifies the final position once.
    The start state itself is never modified.
    """
    config = config or ClassifierConfig()
    kernels = build_kernels(integrator.jit)
    fn = point_kernel(kernels, mode)

    y = np.array(start_state, dtype=np.float64).reshape(-1)
    if y.size != model.n_state:
        raise ValueError(f"start state must have {model.n_state} components, got {y.size}")
    status, kind, index, t, steps = fn(
        integrator.stepper,
        model.kernel(jit=integrator.jit),
        model.pack_params(),
        integrator.make_workspace(y.size),
        integrator.config_array,
        np.ascontiguousarray(model.attractor_positions(), dtype=np.float64),
        config.pack(model),
        y,
        np.empty(1, dtype=np.float64),
        np.empty(1, dtype=np.float64),
    )
    return PointRecord(
        outcome=Outcome.from_codes(kind, index),
        time=float(t),
        steps=int(steps),
        status=Status(int(status)),
    )
