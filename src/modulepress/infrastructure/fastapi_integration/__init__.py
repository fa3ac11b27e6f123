"""
FastAPI integration module.

Serves an application's routes from a FastAPI app and exposes its providers
to plain FastAPI endpoints.
"""

from .integration import FastAPIHost, create_fastapi_dependency

__all__ = [
    "FastAPIHost",
    "create_fastapi_dependency",
]
