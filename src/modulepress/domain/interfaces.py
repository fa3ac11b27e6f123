from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Union

from modulepress.domain.models import (
    BaseResponse,
    DependencyMetadata,
    ModuleDescriptor,
    RestRequest,
    RestResponse,
    RestRouteDefinition,
    Token,
)

if TYPE_CHECKING:
    from modulepress.application.execution_context import ExecutionContext
    from modulepress.application.http.call_handler import CallHandler
    from modulepress.application.http.middleware_consumer import MiddlewareConsumer
    from modulepress.application.resolved_module import ResolvedModule
    from modulepress.domain.exceptions import BaseFrameworkException


class IContainer(ABC):
    """Abstract interface for the token to value backing store."""

    @abstractmethod
    def set(self, token: Token, factory: Callable[[], Any]) -> None:
        """Register a lazy factory for a token.

        Args:
            token: The token to register.
            factory: Zero-argument callable building the value.
        """

    @abstractmethod
    def set_instance(self, token: Token, value: Any) -> None:
        """Register an already built value for a token."""

    @abstractmethod
    def get(self, token: Token) -> Any:
        """Return the cached value of a token, materializing it on first call."""

    @abstractmethod
    def make(self, token: Token) -> Any:
        """Build a fresh value of a token, never caching it."""

    @abstractmethod
    def has(self, token: Token) -> bool:
        """Whether a token is registered."""

    @abstractmethod
    def clear(self) -> None:
        """Clear all registrations and cached values."""

    @abstractmethod
    def get_registry_copy(self) -> Dict[Token, DependencyMetadata]:
        """Get a copy of the current registry."""


class ILifetimeManager(ABC):
    """Abstract interface for managing instance lifetimes."""

    @abstractmethod
    def get_or_create(self, metadata: DependencyMetadata) -> Any:
        """Return the cached value of an entry, building and caching it if needed.

        Args:
            metadata: The entry holding the registration and the cache.
        """

    @abstractmethod
    def create(self, metadata: DependencyMetadata) -> Any:
        """Build a fresh value of an entry without caching it."""

    @abstractmethod
    def clear_cache(self, registry: Dict[Token, DependencyMetadata]) -> None:
        """Forget every cached value held by ``registry``."""


class CanActivate(ABC):
    """Authorization predicate evaluated before a handler or hook runs."""

    @abstractmethod
    def can_activate(self, context: "ExecutionContext") -> bool:
        """Return ``False`` to reject the current execution."""


class Interceptor(ABC):
    """Before/after wrapper around handler execution."""

    @abstractmethod
    def intercept(self, context: "ExecutionContext", next_handler: "CallHandler") -> Any:
        """Run around ``next_handler.handle()``, or short-circuit by not calling it."""


class PipeTransform(ABC):
    """Transforms a bound parameter value before it is validated."""

    @abstractmethod
    def transform(self, value: Any) -> Any:
        """Return the transformed value."""


class Middleware(ABC):
    """Runs before guards for the routes it is registered for."""

    @abstractmethod
    def use(self, request: RestRequest, response: RestResponse) -> Union[RestRequest, RestResponse, None]:
        """Returning a :class:`RestResponse` ends the request with that response."""


class ExceptionFilter(ABC):
    """Converts an exception into a response."""

    @abstractmethod
    def catch_exception(
        self,
        exception: "BaseFrameworkException",
        context: "ExecutionContext",
    ) -> BaseResponse:
        """Produce the response sent for ``exception``."""


class OnModuleInit(ABC):
    """Lifecycle hook invoked right after the framework built an instance."""

    @abstractmethod
    def on_module_init(self, module: "ResolvedModule") -> None:
        """Called with the module owning the instance."""


class DynamicModule(ABC):
    """A module value whose composition is produced at registration time.

    The class must still be decorated with ``@module`` and extend :class:`BaseModule`.
    """

    @abstractmethod
    def register(self) -> ModuleDescriptor:
        """Return the module's composition."""


class IRenderer(ABC):
    """View rendering collaborator."""

    @abstractmethod
    def render(self, view: str, data: Any = None) -> str:
        """Render ``view`` with ``data`` and return the output."""

    @abstractmethod
    def render_exception(self, exception: "BaseFrameworkException", debug: bool = False) -> str:
        """Render the HTML error page of ``exception``."""

    @abstractmethod
    def add_view_composer(self, view: str, composer: Callable[[str, Dict[str, Any]], Any]) -> None:
        """Register a callable contributing extra context whenever ``view`` renders."""

    @abstractmethod
    def add_view_directive(self, name: str, directive: Callable[..., Any]) -> None:
        """Expose ``directive`` to templates under ``name``."""


class IHostPlatform(ABC):
    """Dispatch mechanism of the host the application is embedded in."""

    @abstractmethod
    def register_rest_route(self, definition: RestRouteDefinition) -> None:
        """Register a REST route whose callback runs the request pipeline."""

    @abstractmethod
    def add_action(self, hook_name: str, callback: Callable[..., Any], priority: int = 10) -> None:
        """Register a side-effecting callback on a named event."""

    @abstractmethod
    def add_filter(self, hook_name: str, callback: Callable[..., Any], priority: int = 10) -> None:
        """Register a value-transforming callback on a named event."""

    @abstractmethod
    def is_json_request(self) -> bool:
        """Whether the request currently being served expects JSON."""


class BaseModule:
    """Capability every module class must extend.

    Subclasses override the hooks below to contribute application-wide
    middleware, guards, interceptors, pipes and exception filters.
    """

    def middlewares(self, consumer: "MiddlewareConsumer") -> None:
        """Register middleware through ``consumer.apply(...).exclude(...).for_routes(...)``."""

    def plugin_guards(self) -> List[Any]:
        return []

    def plugin_interceptors(self) -> List[Any]:
        return []

    def plugin_pipes(self) -> List[Any]:
        return []

    def plugin_filters(self) -> List[Any]:
        return []
