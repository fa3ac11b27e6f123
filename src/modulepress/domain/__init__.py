"""
Domain layer - Declarations, models, contracts and errors.

This layer describes what an application declares (modules, providers, routes,
hooks) and the contracts its classes implement. It has no dependencies on
other layers.
"""

from .decorators import (
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
from .enums import HookType, Lifetime, RequestMethod
from .exceptions import (
    BadGatewayError,
    BadRequestError,
    BaseFrameworkException,
    CircularDependencyError,
    ConflictError,
    FinalizedResponse,
    ForbiddenError,
    FrameworkException,
    GatewayTimeoutError,
    GoneError,
    HttpException,
    HttpVersionNotSupportedError,
    ImATeapotError,
    InternalServerError,
    MethodNotAllowedError,
    ModuleResolutionError,
    NotAcceptableError,
    NotFoundError,
    NotImplementedHttpError,
    PayloadTooLargeError,
    PreconditionFailedError,
    RequestTimeoutError,
    ServiceUnavailableError,
    UnauthorizedError,
    UnprocessableEntityError,
    UnresolvableError,
    UnsupportedMediaTypeError,
    ValidationError,
)
from .interfaces import (
    BaseModule,
    CanActivate,
    DynamicModule,
    ExceptionFilter,
    IContainer,
    IHostPlatform,
    ILifetimeManager,
    Interceptor,
    IRenderer,
    Middleware,
    OnModuleInit,
    PipeTransform,
)
from .models import (
    BaseResponse,
    Body,
    ChecksMeta,
    CustomPostTypeMeta,
    DependencyMetadata,
    ExactRule,
    Hookable,
    HtmlResponse,
    Inject,
    JsonResponse,
    MiddlewareRegistration,
    MiddlewareRule,
    ModuleDescriptor,
    Param,
    Provider,
    Query,
    RegexRule,
    Registration,
    RenderMeta,
    Req,
    RequestParameter,
    Res,
    RestControllerMeta,
    RestRequest,
    RestResponse,
    RestRouteDefinition,
    Route,
    Token,
    ViewComposeMeta,
    ViewDirectiveMeta,
    WildcardRule,
)

__all__ = [
    # Decorators
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
    "HookType",
    "Lifetime",
    "RequestMethod",
    # Exceptions
    "BaseFrameworkException",
    "FrameworkException",
    "ModuleResolutionError",
    "CircularDependencyError",
    "UnresolvableError",
    "ValidationError",
    "HttpException",
    "BadRequestError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "MethodNotAllowedError",
    "NotAcceptableError",
    "RequestTimeoutError",
    "ConflictError",
    "GoneError",
    "PreconditionFailedError",
    "PayloadTooLargeError",
    "UnsupportedMediaTypeError",
    "ImATeapotError",
    "UnprocessableEntityError",
    "InternalServerError",
    "NotImplementedHttpError",
    "BadGatewayError",
    "ServiceUnavailableError",
    "GatewayTimeoutError",
    "HttpVersionNotSupportedError",
    "FinalizedResponse",
    # Interfaces
    "BaseModule",
    "CanActivate",
    "DynamicModule",
    "ExceptionFilter",
    "IContainer",
    "IHostPlatform",
    "ILifetimeManager",
    "Interceptor",
    "IRenderer",
    "Middleware",
    "OnModuleInit",
    "PipeTransform",
    # Models
    "Token",
    "Provider",
    "ModuleDescriptor",
    "RestControllerMeta",
    "Route",
    "RenderMeta",
    "Hookable",
    "ChecksMeta",
    "CustomPostTypeMeta",
    "ViewComposeMeta",
    "ViewDirectiveMeta",
    "Inject",
    "RequestParameter",
    "Body",
    "Query",
    "Param",
    "Req",
    "Res",
    "RestRequest",
    "BaseResponse",
    "RestResponse",
    "JsonResponse",
    "HtmlResponse",
    "RestRouteDefinition",
    "WildcardRule",
    "ExactRule",
    "RegexRule",
    "MiddlewareRule",
    "MiddlewareRegistration",
    "Registration",
    "DependencyMetadata",
]
