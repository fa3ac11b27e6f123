import re
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field

from modulepress.domain.enums import HookType, Lifetime, RequestMethod


Token = Any
"""Identity used to request a dependency: a string or a class."""

_PLACEHOLDER = re.compile(r":([a-zA-Z0-9_]+)")


# --------------------------------------------------------------------------
# Module composition
# --------------------------------------------------------------------------


class Provider(BaseModel):
    """Value object binding a token to exactly one construction strategy.

    Attributes:
        provide: The token this provider satisfies.
        use_class: Class instantiated (with its dependencies injected) to build the value.
        use_factory: Callable invoked (with its dependencies injected) to build the value.
        use_value: Static value returned as-is. ``None`` is a valid value when set explicitly.
        scope: Lifetime of the built value.

    Example:
        >>> Provider(provide="mailer", use_factory=build_mailer, scope=Lifetime.TRANSIENT)
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    provide: Token = Field(..., description="Token satisfied by this provider.")
    use_class: Optional[Any] = Field(default=None, description="Class to instantiate.")
    use_factory: Optional[Any] = Field(default=None, description="Factory to invoke.")
    use_value: Any = Field(default=None, description="Static value.")
    scope: Lifetime = Field(default=Lifetime.SINGLETON, description="Lifetime of the provided value.")

    @classmethod
    def for_class(cls, klass: type) -> "Provider":
        """Shorthand provider: the class is both token and implementation, singleton."""
        return cls(provide=klass, use_class=klass)

    def has_usable_class(self) -> bool:
        return self.use_class is not None

    def has_usable_factory(self) -> bool:
        return self.use_factory is not None

    def has_usable_value(self) -> bool:
        return "use_value" in self.model_fields_set

    def strategy_count(self) -> int:
        """Number of construction strategies set on this provider."""
        return sum((self.has_usable_class(), self.has_usable_factory(), self.has_usable_value()))


class ModuleDescriptor(BaseModel):
    """Declared composition of a module.

    Attributes:
        imports: Module classes (or dynamic module instances) this module depends on.
        providers: Bare classes, ``Provider`` objects or provider dictionaries.
        controllers: REST controller classes.
        entities: Custom post type entity classes.
        exports: Tokens of this module's providers visible to importing modules.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    imports: List[Any] = Field(default_factory=list)
    providers: List[Any] = Field(default_factory=list)
    controllers: List[Any] = Field(default_factory=list)
    entities: List[Any] = Field(default_factory=list)
    exports: List[Any] = Field(default_factory=list)


# --------------------------------------------------------------------------
# Declared metadata
# --------------------------------------------------------------------------


class RestControllerMeta(BaseModel):
    """Class-level REST controller declaration."""

    model_config = ConfigDict(frozen=True)

    namespace: str


class Route(BaseModel):
    """A verb + path binding declared on a controller method.

    Paths support ``:name`` placeholders, translated to named capture groups.
    """

    model_config = ConfigDict(frozen=True)

    method: RequestMethod
    path: str

    @property
    def pattern(self) -> str:
        """The path with ``:name`` placeholders turned into ``(?P<name>[^/]+)`` groups."""
        return _PLACEHOLDER.sub(r"(?P<\1>[^/]+)", self.path)

    @property
    def placeholders(self) -> List[str]:
        return _PLACEHOLDER.findall(self.path)


class RenderMeta(BaseModel):
    model_config = ConfigDict(frozen=True)

    view: str


class Hookable(BaseModel):
    """Binding of a provider method to a named host event."""

    model_config = ConfigDict(frozen=True)

    hook_type: HookType
    hook_name: str
    priority: int = 10


class ChecksMeta(BaseModel):
    """Non-fatal guards of a hook handler.

    Attributes:
        checks: Guard-like classes or instances; the first failing one short-circuits.
        default_return_arg: Index of the hook argument returned when a check fails.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    checks: List[Any] = Field(default_factory=list)
    default_return_arg: int = 0


class CustomPostTypeMeta(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    singular: str
    plural: str
    args: Dict[str, Any] = Field(default_factory=dict)


class ViewComposeMeta(BaseModel):
    model_config = ConfigDict(frozen=True)

    view: str


class ViewDirectiveMeta(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str


# --------------------------------------------------------------------------
# Parameter markers, used inside ``typing.Annotated``
# --------------------------------------------------------------------------


class Inject(BaseModel):
    """Overrides the token injected into a constructor or factory parameter.

    Example:
        >>> def __init__(self, mailer: Annotated[Mailer, Inject("smtp_mailer")]): ...
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    token: Token

    def __init__(self, token: Token, **data: Any) -> None:
        super().__init__(token=token, **data)


class RequestParameter(BaseModel):
    """Base class of the request-bound parameter markers.

    Attributes:
        key: Dotted path of the value inside its request section. Empty binds the whole section.
        rules: ``annotated_types`` constraints the bound value must satisfy.
        casting: Whether a scalar value of the wrong type may be cast.
        pipes: Pipe classes or instances applied after the request-level pipes.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    key: str = ""
    rules: List[Any] = Field(default_factory=list)
    casting: bool = True
    pipes: List[Any] = Field(default_factory=list)

    def __init__(self, key: str = "", **data: Any) -> None:
        super().__init__(key=key, **data)


class Body(RequestParameter):
    """Binds a value from the JSON body."""


class Query(RequestParameter):
    """Binds a value from the query string."""


class Param(RequestParameter):
    """Binds a value from the path parameters."""


class Req(BaseModel):
    """Injects the raw :class:`RestRequest`."""

    model_config = ConfigDict(frozen=True)


class Res(BaseModel):
    """Injects the raw :class:`RestResponse`."""

    model_config = ConfigDict(frozen=True)


# --------------------------------------------------------------------------
# Request / response
# --------------------------------------------------------------------------


class RestRequest(BaseModel):
    """Host-agnostic view of an incoming REST request."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    method: str = "GET"
    path: str = "/"
    path_params: Dict[str, Any] = Field(default_factory=dict)
    query_params: Dict[str, Any] = Field(default_factory=dict)
    json_body: Any = None
    headers: Dict[str, str] = Field(default_factory=dict)

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.headers.get(name.lower(), default)

    def get_json_params(self) -> Dict[str, Any]:
        return self.json_body if isinstance(self.json_body, dict) else {}


class BaseResponse(BaseModel):
    """Common shape of every response the pipelines can finalize."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    status_code: int = 200
    headers: Dict[str, str] = Field(default_factory=dict)

    def set_status(self, status_code: int) -> "BaseResponse":
        self.status_code = status_code
        return self

    def set_header(self, name: str, value: str) -> "BaseResponse":
        self.headers[name] = value
        return self


class RestResponse(BaseResponse):
    """Structured response of a REST route."""

    data: Any = None

    def set_data(self, data: Any) -> "RestResponse":
        self.data = data
        return self


class JsonResponse(BaseResponse):
    """JSON response produced outside of a REST context."""

    data: Any = None


class HtmlResponse(BaseResponse):
    """HTML response produced by view rendering or exception pages."""

    html: str = ""


class RestRouteDefinition(BaseModel):
    """Everything a host platform needs to register one REST route."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    namespace: str
    path: str
    pattern: str
    methods: List[str]
    callback: Callable[[RestRequest], BaseResponse]


# --------------------------------------------------------------------------
# Middleware rules
# --------------------------------------------------------------------------


class WildcardRule(BaseModel):
    """Matches every route."""

    model_config = ConfigDict(frozen=True)

    methods: List[str] = Field(default_factory=lambda: ["*"])


class ExactRule(BaseModel):
    """Matches a route path, ``:name`` placeholders matching one segment."""

    model_config = ConfigDict(frozen=True)

    path: str
    methods: List[str] = Field(default_factory=lambda: ["*"])


class RegexRule(BaseModel):
    """Matches routes whose path is found by a compiled pattern."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    pattern: re.Pattern
    methods: List[str] = Field(default_factory=lambda: ["*"])


MiddlewareRule = Union[WildcardRule, ExactRule, RegexRule]


class MiddlewareRegistration(BaseModel):
    """One ``apply(...).exclude(...).for_routes(...)`` registration."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    middlewares: Sequence[Any]
    exclusions: List[Any] = Field(default_factory=list)
    routes: List[Any] = Field(default_factory=list)


# --------------------------------------------------------------------------
# Container entries
# --------------------------------------------------------------------------


class Registration(BaseModel):
    """Value object representing a container entry.

    Attributes:
        token: The token being registered.
        builder: Zero-argument factory producing the value.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    token: Token = Field(..., description="The registered token.")
    builder: Callable[[], Any] = Field(..., description="Factory building the value.")


class DependencyMetadata(BaseModel):
    """Tracks a registration together with its cached singleton.

    Attributes:
        registration: The original registration.
        cached_instance: Value materialized by the first ``get``.
        is_cached: Whether ``cached_instance`` holds a materialized value.
        resolution_count: Number of times this token has been resolved.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    registration: Registration = Field(..., description="The registration details of the dependency.")
    cached_instance: Optional[Any] = Field(default=None, description="Materialized singleton value.")
    is_cached: bool = Field(default=False, description="Whether the singleton was materialized.")
    resolution_count: int = Field(default=0, description="Number of resolutions of this token.")

