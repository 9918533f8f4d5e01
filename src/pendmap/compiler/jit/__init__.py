# src/pendmap/compiler/jit/__init__.py
from .compile import JittedCallable, jit_compile

__all__ = ["JittedCallable", "jit_compile"]
