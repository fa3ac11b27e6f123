from typing import Any, Callable, List

from pydantic import BaseModel, ConfigDict, Field

from modulepress.application.resolved_module import ResolvedModule
from modulepress.domain import (
    Hookable,
    Provider,
    RestControllerMeta,
    Route,
    ViewComposeMeta,
    ViewDirectiveMeta,
)


class _Component(BaseModel):
    """A declaration found on a method, paired with the module that owns it."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    resolved_module: ResolvedModule
    declaring_class: type
    method_name: str

    @property
    def method(self) -> Callable[..., Any]:
        """The unbound function, used for reading its declarations and parameters."""
        return getattr(self.declaring_class, self.method_name)

    @property
    def key(self) -> str:
        """``Class::method`` key scoping the exception filters of one invocation."""
        return f"{self.declaring_class.__name__}::{self.method_name}"


class RouteComponent(_Component):
    """One verb + path binding of a controller method."""

    controller: RestControllerMeta
    route: Route

    def full_path(self, rest_namespace: str = "") -> str:
        """The route path prefixed with the REST namespace and controller namespace."""
        parts = [rest_namespace, self.controller.namespace, self.route.path]
        return "/".join(part.strip("/") for part in parts if part.strip("/"))


class HookComponent(_Component):
    """One action/filter binding of a provider method."""

    provider: Provider
    hookable: Hookable


class ViewComposeComponent(_Component):
    provider: Provider
    view_compose: ViewComposeMeta


class ViewDirectiveComponent(_Component):
    provider: Provider
    view_directive: ViewDirectiveMeta


class DiscoveryResult(BaseModel):
    """Every component discovered across the resolved modules."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    routes: List[RouteComponent] = Field(default_factory=list)
    hooks: List[HookComponent] = Field(default_factory=list)
    view_composers: List[ViewComposeComponent] = Field(default_factory=list)
    view_directives: List[ViewDirectiveComponent] = Field(default_factory=list)
