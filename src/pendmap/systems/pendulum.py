# src/pendmap/systems/pendulum.py
"""
Magnetic pendulum over a plate of attractors.

With r^2 = x^2 + y^2 the head feels

    F_g = -m g sqrt(1 - r^2/L^2) / L * (x, y)                     gravity
    F_n = -k_n (x - x_n, y - y_n) / (|p - p_n|^2 + a^2)^(3/2)     attractor n
    F_d = -b (vx, vy)                                              damping

with a = d + L - sqrt(L^2 - r^2) the height of the head above the plate.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Callable
import math
import numpy as np

from pendmap.errors import ConfigError
from .base import SystemModel

__all__ = ["AttractorSite", "PendulumSystem", "pendulum_rhs"]

# params layout: [d, m, g, b, L, x_0, y_0, k_0, x_1, y_1, k_1, ...]
_N_SCALARS = 5


@dataclass(frozen=True)
class AttractorSite:
    x: float
    y: float
    k: float = 1.0

    def __post_init__(self) -> None:
        if not self.k > 0.0:
            raise ConfigError(f"attractor strength must be positive, got {self.k!r}")


def pendulum_rhs(t, y, dy, params):
    d = params[0]
    m = params[1]
    g = params[2]
    b = params[3]
    L = params[4]
    n_attr = (params.size - _N_SCALARS) // 3

    x0 = y[0]
    x1 = y[1]
    norm_squared = x0 * x0 + x1 * x1
    L_squared = L * L

    g_value = -m * g / L * math.sqrt(1.0 - norm_squared / L_squared)
    a_value = d + L - math.sqrt(L_squared - norm_squared)
    a_value_squared = a_value * a_value

    f_x = 0.0
    f_y = 0.0
    for n in range(n_attr):
        base = _N_SCALARS + 3 * n
        ax = x0 - params[base]
        ay = x1 - params[base + 1]
        k = params[base + 2]
        denom = -k / (ax * ax + ay * ay + a_value_squared) ** 1.5
        f_x += ax * denom
        f_y += ay * denom

    dy[0] = y[2]
    dy[1] = y[3]
    dy[2] = (x0 * g_value - b * y[2] + f_x) / m
    dy[3] = (x1 * g_value - b * y[3] + f_y) / m


def _default_sites() -> list[AttractorSite]:
    s = math.sqrt(3.0) / 2.0
    return [
        AttractorSite(-0.5, s, 1.0),
        AttractorSite(-0.5, -s, 1.0),
        AttractorSite(1.0, 0.0, 1.0),
    ]


class PendulumSystem(SystemModel):
    """
    Pendulum head of mass `m` on a rod of length `L`, `d` above the plate at
    rest, linear drag `b`, gravity `g`. Attractor order is identity: the
    classifier reports attractors by their index in `attractors`.
    """

    singular_origin = True

    def __init__(
        self,
        *,
        d: float = 0.05,
        m: float = 1.0,
        g: float = 9.8,
        b: float = 0.2,
        L: float = 10.0,
        attractors: list[AttractorSite] | None = None,
    ) -> None:
        super().__init__()
        self.d = d
        self.m = m
        self.g = g
        self.b = b
        self.L = L
        self.attractors: list[AttractorSite] = (
            _default_sites() if attractors is None else list(attractors)
        )
        self._validate()

    def _validate(self) -> None:
        if not self.m > 0.0:
            raise ConfigError(f"mass must be positive, got {self.m!r}")
        if not self.L > 0.0:
            raise ConfigError(f"pendulum length must be positive, got {self.L!r}")
        if self.d < 0.0:
            raise ConfigError(f"plate distance must be non-negative, got {self.d!r}")

    @property
    def domain_radius(self) -> float:  # type: ignore[override]
        return float(self.L)

    def rhs_kernel(self) -> Callable:
        return pendulum_rhs

    def pack_params(self) -> np.ndarray:
        self._validate()
        out = np.empty(_N_SCALARS + 3 * len(self.attractors), dtype=np.float64)
        out[:_N_SCALARS] = (self.d, self.m, self.g, self.b, self.L)
        for n, site in enumerate(self.attractors):
            base = _N_SCALARS + 3 * n
            out[base:base + 3] = (site.x, site.y, site.k)
        out.setflags(write=False)
        return out

    def attractor_positions(self) -> np.ndarray:
        pos = np.array([(s.x, s.y) for s in self.attractors], dtype=np.float64)
        return pos.reshape(-1, 2)

    # attractor list management

    def add_attractor(self, x: float, y: float, k: float = 1.0) -> None:
        self.attractors.append(AttractorSite(x, y, k))

    def set_attractor(self, index: int, x: float, y: float, k: float) -> None:
        self.attractors[index] = AttractorSite(x, y, k)

    def set_all_attractor_strengths(self, k: float) -> None:
        self.attractors = [AttractorSite(s.x, s.y, k) for s in self.attractors]

    def clear_attractors(self) -> None:
        self.attractors.clear()

    def __repr__(self) -> str:
        return (
            f"PendulumSystem(d={self.d}, m={self.m}, g={self.g}, b={self.b}, "
            f"L={self.L}, attractors={len(self.attractors)})"
        )
