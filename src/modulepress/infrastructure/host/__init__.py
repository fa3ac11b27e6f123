"""
Reference host platform.

Provides an in-process hook registry and a pure Python REST dispatcher.
"""

from .hooks import HookRegistry
from .in_memory import InMemoryHost

__all__ = [
    "HookRegistry",
    "InMemoryHost",
]
