# src/pendmap/__init__.py
from __future__ import annotations

# Re-export frozen constants/types for stable imports
from pendmap.runtime.runner_api import Status
from .errors import PendmapError, ConfigError

from .steppers import (
    StepperMeta, StepperSpec, register, get_stepper, registry,
    CK45Config, Integrator, StepResult,
)
from .systems import SystemModel, FunctionModel, AttractorSite, PendulumSystem
from .analysis import (
    ClassifierConfig, Grid, GridMapper, GridSpec, MapResult, MapStats,
    Outcome, OutcomeKind, Point, PointRecord, classify_point, map_basins,
    partition_columns,
)


__all__ = [
    # Core entry points
    "map_basins", "GridMapper", "classify_point", "partition_columns",
    # Models
    "SystemModel", "FunctionModel", "AttractorSite", "PendulumSystem",
    # Integrators
    "Integrator", "StepResult", "CK45Config",
    "StepperMeta", "StepperSpec", "register", "get_stepper", "registry",
    # Grid and results
    "ClassifierConfig", "Grid", "GridSpec", "MapResult", "MapStats",
    "Outcome", "OutcomeKind", "Point", "PointRecord", "Status",
    # Errors
    "PendmapError", "ConfigError",
]
