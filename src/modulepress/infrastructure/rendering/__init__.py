"""
View rendering module.

Provides the Jinja2 implementation of the renderer contract.
"""

from .jinja import Jinja2Renderer

__all__ = [
    "Jinja2Renderer",
]
