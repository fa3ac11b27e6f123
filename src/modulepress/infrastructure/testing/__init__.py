"""
Testing utilities module.

Provides helpers for booting applications under test with replaced providers.
"""

from .utilities import TestingModuleBuilder, create_testing_core

__all__ = [
    "TestingModuleBuilder",
    "create_testing_core",
]
