# src/pendmap/systems/__init__.py
from .base import SystemModel, FunctionModel
from .pendulum import AttractorSite, PendulumSystem, pendulum_rhs

__all__ = [
    "SystemModel", "FunctionModel",
    "AttractorSite", "PendulumSystem", "pendulum_rhs",
]
