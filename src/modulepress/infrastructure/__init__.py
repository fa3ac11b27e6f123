"""
Infrastructure layer - External integrations.

This layer contains host platforms, the view renderer and testing tools.
It depends on both Application and Domain layers.
"""

from . import host, rendering, testing

__all__ = [
    "host",
    "rendering",
    "testing",
]
