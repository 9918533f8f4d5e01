# src/pendmap/runtime/runner_api.py
from __future__ import annotations
from enum import IntEnum

__all__ = [
    "Status",
    # int constants (jit-friendly)
    "CONVERGED", "FINISHED", "OUT_OF_DOMAIN", "HORIZON", "TRIAL_CAP", "PENDING",
    "KIND_ATTRACTOR", "KIND_CENTER", "KIND_UNCLASSIFIED",
]


class Status(IntEnum):
    """Why the classifier stopped integrating a point.

    Diagnostic only: the classification itself is carried by the outcome
    kind/index pair, and both OUT_OF_DOMAIN and the budget codes leave the
    point unclassified.
    """
    CONVERGED = 0       # hysteresis satisfied for some target
    FINISHED = 1        # fixed-duration run reached t_end
    OUT_OF_DOMAIN = 2   # start state rejected, never integrated
    HORIZON = 3         # time passed max_time without converging
    TRIAL_CAP = 4       # max_trials step attempts without converging
    PENDING = 9         # not processed yet


# Plain int constants for JIT friendliness in kernels
CONVERGED: int = int(Status.CONVERGED)
FINISHED: int = int(Status.FINISHED)
OUT_OF_DOMAIN: int = int(Status.OUT_OF_DOMAIN)
HORIZON: int = int(Status.HORIZON)
TRIAL_CAP: int = int(Status.TRIAL_CAP)
PENDING: int = int(Status.PENDING)

# Outcome kind codes stored in the grid buffers
KIND_ATTRACTOR: int = 0
KIND_CENTER: int = 1
KIND_UNCLASSIFIED: int = 2
