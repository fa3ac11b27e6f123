"""
Application layer - Module resolution, dependency injection and pipelines.

This layer turns the declarations of the Domain layer into a running
application. It depends only on the Domain layer.
"""

from .attributes_scanner import AttributeScanner
from .circular_detector import CircularDependencyDetector
from .components import DiscoveryResult, HookComponent, RouteComponent, ViewComposeComponent, ViewDirectiveComponent
from .container import DIContainer
from .core import SAFE_EXECUTION, Core
from .core_exception_filter import CoreExceptionFilter
from .discovery_service import DiscoveryService
from .exception_handler import ExceptionHandler, ResolvedFilter
from .execution_context import ExecutionContext, HookContext, RESTContext, current_execution_context
from .hooks_registrar import HooksRegistrar
from .lifetime_manager import LifetimeManager
from .module_container import ModuleContainer
from .resolved_module import ResolvedModule
from .resolver import DependencyResolver

__all__ = [
    # Boot
    "Core",
    "SAFE_EXECUTION",
    "ModuleContainer",
    "DiscoveryService",
    "DiscoveryResult",
    "ResolvedModule",
    "AttributeScanner",
    # Components
    "RouteComponent",
    "HookComponent",
    "ViewComposeComponent",
    "ViewDirectiveComponent",
    # Dependency injection
    "DIContainer",
    "DependencyResolver",
    "LifetimeManager",
    "CircularDependencyDetector",
    # Pipelines
    "ExecutionContext",
    "RESTContext",
    "HookContext",
    "current_execution_context",
    "ExceptionHandler",
    "ResolvedFilter",
    "CoreExceptionFilter",
    "HooksRegistrar",
]
