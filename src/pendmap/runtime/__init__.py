# src/pendmap/runtime/__init__.py
from .runner_api import (
    Status, CONVERGED, FINISHED, OUT_OF_DOMAIN, HORIZON, TRIAL_CAP, PENDING,
    KIND_ATTRACTOR, KIND_CENTER, KIND_UNCLASSIFIED,
)
from .types import TimeCtrl, Scheme

__all__ = [
    "Status", "CONVERGED", "FINISHED", "OUT_OF_DOMAIN", "HORIZON", "TRIAL_CAP", "PENDING",
    "KIND_ATTRACTOR", "KIND_CENTER", "KIND_UNCLASSIFIED",
    "TimeCtrl", "Scheme",
]
