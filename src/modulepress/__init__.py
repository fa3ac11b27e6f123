"""
modulepress: Module resolution, dependency injection and request pipelines.

Public API exports for the modulepress package.
"""

# Application exports
from modulepress.application import SAFE_EXECUTION, Core, CoreExceptionFilter, ExecutionContext
from modulepress.application.http import CallHandler, MiddlewareConsumer

# Configuration exports
from modulepress.config import AppSettings
from modulepress.logging_config import setup_logging

# Domain exports
from modulepress.domain.decorators import (
    add_action,
    add_filter,
    catch_exception,
    custom_post_type,
    delete,
    get,
    global_module,
    head,
    injectable,
    module,
    options,
    patch,
    post,
    put,
    render,
    rest_controller,
    use_checks,
    use_exception_filters,
    use_guards,
    use_interceptors,
    use_pipes,
    view_compose,
    view_directive,
)
from modulepress.domain.enums import HookType, Lifetime, RequestMethod
from modulepress.domain.exceptions import (
    BadRequestError,
    BaseFrameworkException,
    CircularDependencyError,
    FinalizedResponse,
    ForbiddenError,
    HttpException,
    InternalServerError,
    ModuleResolutionError,
    NotFoundError,
    UnauthorizedError,
    UnresolvableError,
    ValidationError,
)
from modulepress.domain.interfaces import (
    BaseModule,
    CanActivate,
    DynamicModule,
    ExceptionFilter,
    Interceptor,
    Middleware,
    OnModuleInit,
    PipeTransform,
)
from modulepress.domain.models import (
    Body,
    HtmlResponse,
    Inject,
    JsonResponse,
    ModuleDescriptor,
    Param,
    Provider,
    Query,
    Req,
    Res,
    RestRequest,
    RestResponse,
)

__version__ = "0.1.0"

__all__ = [
    # Boot
    "Core",
    "AppSettings",
    "setup_logging",
    "SAFE_EXECUTION",
    # Declarations
    "module",
    "global_module",
    "injectable",
    "rest_controller",
    "get",
    "post",
    "put",
    "patch",
    "delete",
    "options",
    "head",
    "render",
    "use_guards",
    "use_interceptors",
    "use_pipes",
    "use_exception_filters",
    "catch_exception",
    "add_action",
    "add_filter",
    "use_checks",
    "custom_post_type",
    "view_compose",
    "view_directive",
    # Enums
    "Lifetime",
    "RequestMethod",
    "HookType",
    # Contracts
    "BaseModule",
    "DynamicModule",
    "OnModuleInit",
    "CanActivate",
    "Interceptor",
    "PipeTransform",
    "Middleware",
    "ExceptionFilter",
    "CoreExceptionFilter",
    "CallHandler",
    "MiddlewareConsumer",
    "ExecutionContext",
    # Models
    "Provider",
    "ModuleDescriptor",
    "Inject",
    "Body",
    "Query",
    "Param",
    "Req",
    "Res",
    "RestRequest",
    "RestResponse",
    "JsonResponse",
    "HtmlResponse",
    # Exceptions
    "BaseFrameworkException",
    "ModuleResolutionError",
    "CircularDependencyError",
    "UnresolvableError",
    "ValidationError",
    "HttpException",
    "BadRequestError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "InternalServerError",
    "FinalizedResponse",
]
