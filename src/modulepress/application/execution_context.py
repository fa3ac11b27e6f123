"""Application layer - Per-request execution state."""

from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any, Callable, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from modulepress.domain import Hookable, RestControllerMeta, RestRequest, RestResponse, Route

if TYPE_CHECKING:
    from modulepress.application.exception_handler import ResolvedFilter


class RESTContext(BaseModel):
    """The REST route being served and its raw request/response."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    route: Route
    controller: RestControllerMeta
    request: RestRequest
    response: RestResponse
    controller_class: type
    method_name: str

    @property
    def method(self) -> Callable[..., Any]:
        return getattr(self.controller_class, self.method_name)


class HookContext(BaseModel):
    """A hook invocation: its binding, its handler and the arguments it was fired with."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    hookable: Hookable
    provider_class: type
    method_name: str
    args: Tuple[Any, ...] = Field(default_factory=tuple)

    @property
    def method(self) -> Callable[..., Any]:
        return getattr(self.provider_class, self.method_name)


class ExecutionContext:
    """State of one unit of work, passed explicitly through the pipelines.

    Holds at most one REST context and a stack of hook contexts (hooks can
    fire other hooks). It also carries the exception filters scoped to this
    unit of work, so concurrent requests never see each other's filters.

    Example:
        >>> context = ExecutionContext(json_request=True)
        >>> context.switch_to_rest_context() is None
        True
    """

    def __init__(self, json_request: bool = False) -> None:
        self.json_request = json_request
        self._rest_context: Optional[RESTContext] = None
        self._hook_contexts: List[HookContext] = []
        self._filters: List["ResolvedFilter"] = []

    def set_rest_context(self, context: Optional[RESTContext]) -> None:
        self._rest_context = context

    def switch_to_rest_context(self) -> Optional[RESTContext]:
        return self._rest_context

    def push_hook_context(self, context: HookContext) -> None:
        self._hook_contexts.append(context)

    def pop_hook_context(self) -> None:
        if self._hook_contexts:
            self._hook_contexts.pop()

    def switch_to_hook_context(self) -> Optional[HookContext]:
        """The innermost hook being executed, if any."""
        return self._hook_contexts[-1] if self._hook_contexts else None

    def add_exception_filter(self, resolved_filter: "ResolvedFilter") -> None:
        self._filters.append(resolved_filter)

    def remove_exception_filters(self, key: str) -> None:
        self._filters = [resolved for resolved in self._filters if resolved.key != key]

    def get_exception_filters(self) -> List["ResolvedFilter"]:
        return list(self._filters)


_current_context: ContextVar[Optional[ExecutionContext]] = ContextVar("modulepress_execution_context", default=None)


def current_execution_context() -> Optional[ExecutionContext]:
    """The execution context published for the running request, if any."""
    return _current_context.get()


@contextmanager
def activate(context: ExecutionContext) -> Iterator[ExecutionContext]:
    """Publish ``context`` for hooks fired while it is active."""
    token = _current_context.set(context)
    try:
        yield context
    finally:
        _current_context.reset(token)
