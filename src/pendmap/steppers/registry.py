# src/pendmap/steppers/registry.py
from __future__ import annotations
from typing import Dict

from .base import StepperSpec

__all__ = ["register", "get_stepper", "registry", "steppers"]

# lookup name (canonical or alias) -> spec
_by_name: Dict[str, StepperSpec] = {}
# canonical names in registration order
_canonical: list[str] = []


def _claim(key: str, spec: StepperSpec, what: str) -> None:
    owner = _by_name.get(key)
    if owner is not None and owner is not spec:
        raise ValueError(f"{what} '{key}' is already taken by stepper '{owner.meta.name}'.")
    _by_name[key] = spec


def register(spec: StepperSpec) -> None:
    """
    Make `spec` reachable under its canonical name and every alias.
    Registering the same instance twice is a no-op.
    """
    name = spec.meta.name
    _claim(name, spec, "Stepper name")
    for alias in spec.meta.aliases:
        _claim(alias, spec, "Alias")
    if name not in _canonical:
        _canonical.append(name)


def get_stepper(name: str) -> StepperSpec:
    try:
        return _by_name[name]
    except KeyError:
        raise KeyError(f"no stepper named {name!r}; known: {', '.join(sorted(_by_name))}") from None


def registry() -> Dict[str, StepperSpec]:
    """Snapshot of every lookup name, aliases included."""
    return dict(_by_name)


def steppers() -> list[StepperSpec]:
    """One entry per registered stepper, in registration order."""
    return [_by_name[name] for name in _canonical]
