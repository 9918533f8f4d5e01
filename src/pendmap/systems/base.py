# src/pendmap/systems/base.py
from __future__ import annotations
from typing import Callable, Sequence
import math
import numpy as np

from pendmap.compiler.jit import jit_compile

__all__ = ["SystemModel", "FunctionModel"]


class SystemModel:
    """
    Right-hand side of a first-order system plus what the classifier needs
    to know about its geometry.

    Subclasses provide a kernel ``rhs(t, y, dy, params)`` that writes the
    derivative of ``y`` into ``dy`` using nothing but the packed ``params``
    array, so one model instance can be evaluated from many threads at once.
    """

    n_state: int = 4
    # Start states at or beyond this radius (x, y) are never integrated.
    domain_radius: float = math.inf
    # The force model is undefined at x = y = 0.
    singular_origin: bool = False

    def __init__(self) -> None:
        self._kernels: dict[bool, Callable] = {}

    def rhs_kernel(self) -> Callable:
        raise NotImplementedError

    def pack_params(self) -> np.ndarray:
        return np.zeros((0,), dtype=np.float64)

    def attractor_positions(self) -> np.ndarray:
        """(n, 2) array of attractor positions; row index is the attractor id."""
        return np.zeros((0, 2), dtype=np.float64)

    def kernel(self, *, jit: bool = False) -> Callable:
        fn = self._kernels.get(jit)
        if fn is None:
            fn = jit_compile(self.rhs_kernel(), jit=jit, component="rhs").fn
            self._kernels[jit] = fn
        return fn

    def derivative(self, state: Sequence[float] | np.ndarray, t: float = 0.0) -> np.ndarray:
        y = np.ascontiguousarray(state, dtype=np.float64)
        if y.shape != (self.n_state,):
            raise ValueError(f"state must have shape ({self.n_state},), got {y.shape}")
        dy = np.empty_like(y)
        self.kernel()(float(t), y, dy, self.pack_params())
        return dy


class FunctionModel(SystemModel):
    """Wrap a bare kernel, e.g. a linear test system."""

    def __init__(
        self,
        rhs: Callable,
        params: Sequence[float] = (),
        *,
        n_state: int = 4,
        attractors: Sequence[Sequence[float]] = (),
        domain_radius: float = math.inf,
        singular_origin: bool = False,
    ) -> None:
        super().__init__()
        self._rhs = rhs
        self._params = np.asarray(params, dtype=np.float64).reshape(-1)
        self._params.setflags(write=False)
        self.n_state = int(n_state)
        positions = np.asarray(attractors, dtype=np.float64).reshape(-1, 2)
        positions.setflags(write=False)
        self._attractors = positions
        self.domain_radius = float(domain_radius)
        self.singular_origin = bool(singular_origin)

    def rhs_kernel(self) -> Callable:
        return self._rhs

    def pack_params(self) -> np.ndarray:
        return self._params

    def attractor_positions(self) -> np.ndarray:
        return self._attractors
