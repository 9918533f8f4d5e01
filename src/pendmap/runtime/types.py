# src/pendmap/runtime/types.py
from __future__ import annotations
from typing import Literal

__all__ = ["TimeCtrl", "Scheme"]

TimeCtrl = Literal["fixed", "adaptive"]
Scheme = Literal["explicit", "implicit"]
