# src/pendmap/steppers/__init__.py
from .base import StepperMeta, StepperSpec
from .registry import register, get_stepper, registry, steppers

# Import concrete steppers to trigger auto-registration
from .ode import rk4, ck45
from .ode.ck45 import CK45Config, adapt_step_size
from .integrator import Integrator, StepResult

__all__ = [
    "StepperMeta", "StepperSpec",
    "register", "get_stepper", "registry", "steppers",
    "CK45Config", "adapt_step_size",
    "Integrator", "StepResult",
]
