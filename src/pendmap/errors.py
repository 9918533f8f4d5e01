# src/pendmap/errors.py
from __future__ import annotations

__all__ = [
    "PendmapError",
    "ConfigError",
]


class PendmapError(Exception):
    """Base error for the pendmap package."""


class ConfigError(PendmapError):
    """Raised when a run configuration is malformed or invalid."""
    def __init__(self, message: str):
        super().__init__(message)
