"""Declaration surface of the framework.

Decorators only stamp metadata onto the decorated class or function under the
attribute names below; :mod:`modulepress.application.attributes_scanner` is the
only reader. Repeatable decorators keep their top-to-bottom declaration order.
"""

from typing import Any, Callable, Dict, Iterable, Optional, Sequence, TypeVar

from modulepress.domain.enums import HookType, RequestMethod
from modulepress.domain.models import (
    ChecksMeta,
    CustomPostTypeMeta,
    Hookable,
    ModuleDescriptor,
    RenderMeta,
    RestControllerMeta,
    Route,
    ViewComposeMeta,
    ViewDirectiveMeta,
)

T = TypeVar("T")

MODULE_META = "__modulepress_module__"
GLOBAL_MODULE_META = "__modulepress_global_module__"
INJECTABLE_META = "__modulepress_injectable__"
CONTROLLER_META = "__modulepress_controller__"
ROUTES_META = "__modulepress_routes__"
RENDER_META = "__modulepress_render__"
GUARDS_META = "__modulepress_guards__"
INTERCEPTORS_META = "__modulepress_interceptors__"
PIPES_META = "__modulepress_pipes__"
EXCEPTION_FILTERS_META = "__modulepress_exception_filters__"
CATCH_EXCEPTIONS_META = "__modulepress_catch_exceptions__"
HOOKS_META = "__modulepress_hooks__"
CHECKS_META = "__modulepress_checks__"
CUSTOM_POST_TYPE_META = "__modulepress_custom_post_type__"
VIEW_COMPOSE_META = "__modulepress_view_compose__"
VIEW_DIRECTIVE_META = "__modulepress_view_directive__"


def _prepend(target: Any, attribute: str, items: Iterable[Any]) -> None:
    # Decorators apply bottom-up, prepending restores declaration order.
    existing = list(vars(target).get(attribute, []))
    setattr(target, attribute, list(items) + existing)


def module(
    imports: Optional[Sequence[Any]] = None,
    providers: Optional[Sequence[Any]] = None,
    controllers: Optional[Sequence[Any]] = None,
    entities: Optional[Sequence[Any]] = None,
    exports: Optional[Sequence[Any]] = None,
) -> Callable[[T], T]:
    """Declare a class as a module.

    Args:
        imports: Module classes or dynamic module instances.
        providers: Bare classes, ``Provider`` objects or provider dictionaries.
        controllers: Classes decorated with ``@rest_controller``.
        entities: Classes decorated with ``@custom_post_type``.
        exports: Provided tokens visible to importing modules.

    Example:
        >>> @module(providers=[UsersService], controllers=[UsersController], exports=[UsersService])
        ... class UsersModule(BaseModule):
        ...     pass
    """
    descriptor = ModuleDescriptor(
        imports=list(imports or []),
        providers=list(providers or []),
        controllers=list(controllers or []),
        entities=list(entities or []),
        exports=list(exports or []),
    )

    def decorator(cls: T) -> T:
        setattr(cls, MODULE_META, descriptor)
        return cls

    return decorator


def global_module(cls: T) -> T:
    """Make a module's exports visible to every module without importing it."""
    setattr(cls, GLOBAL_MODULE_META, True)
    return cls


def injectable(cls: Optional[T] = None) -> Any:
    """Allow the framework to inject constructor dependencies into a class.

    Usable both as ``@injectable`` and ``@injectable()``.
    """

    def decorator(target: T) -> T:
        setattr(target, INJECTABLE_META, True)
        return target

    if cls is None:
        return decorator
    return decorator(cls)


def rest_controller(namespace: str = "") -> Callable[[T], T]:
    """Declare a class as a REST controller mounted under ``namespace``."""

    def decorator(cls: T) -> T:
        setattr(cls, CONTROLLER_META, RestControllerMeta(namespace=namespace))
        return cls

    return decorator


def _route(method: RequestMethod, path: str) -> Callable[[T], T]:
    def decorator(func: T) -> T:
        _prepend(func, ROUTES_META, [Route(method=method, path=path)])
        return func

    return decorator


def get(path: str = "") -> Callable[[T], T]:
    return _route(RequestMethod.GET, path)


def post(path: str = "") -> Callable[[T], T]:
    return _route(RequestMethod.POST, path)


def put(path: str = "") -> Callable[[T], T]:
    return _route(RequestMethod.PUT, path)


def patch(path: str = "") -> Callable[[T], T]:
    return _route(RequestMethod.PATCH, path)


def delete(path: str = "") -> Callable[[T], T]:
    return _route(RequestMethod.DELETE, path)


def options(path: str = "") -> Callable[[T], T]:
    return _route(RequestMethod.OPTIONS, path)


def head(path: str = "") -> Callable[[T], T]:
    return _route(RequestMethod.HEAD, path)


def render(view: str) -> Callable[[T], T]:
    """Render ``view`` with the handler's return value instead of returning JSON."""

    def decorator(func: T) -> T:
        setattr(func, RENDER_META, RenderMeta(view=view))
        return func

    return decorator


def _enhancer(attribute: str, items: Sequence[Any]) -> Callable[[T], T]:
    def decorator(target: T) -> T:
        _prepend(target, attribute, items)
        return target

    return decorator


def use_guards(*guards: Any) -> Callable[[T], T]:
    """Attach guards to a controller/provider class or to a single method."""
    return _enhancer(GUARDS_META, guards)


def use_interceptors(*interceptors: Any) -> Callable[[T], T]:
    """Attach interceptors to a controller class or to a single method."""
    return _enhancer(INTERCEPTORS_META, interceptors)


def use_pipes(*pipes: Any) -> Callable[[T], T]:
    """Attach request-level pipes to a controller class or to a single method."""
    return _enhancer(PIPES_META, pipes)


def use_exception_filters(*filters: Any) -> Callable[[T], T]:
    """Attach exception filters to a class or to a single method."""
    return _enhancer(EXCEPTION_FILTERS_META, filters)


def catch_exception(*exception_types: type) -> Callable[[T], T]:
    """Restrict an exception filter class to the given exception types (and subtypes).

    A filter without this declaration accepts every exception.
    """

    def decorator(cls: T) -> T:
        setattr(cls, CATCH_EXCEPTIONS_META, list(exception_types))
        return cls

    return decorator


def _hook(hook_type: HookType, hook_name: str, priority: int) -> Callable[[T], T]:
    def decorator(func: T) -> T:
        _prepend(func, HOOKS_META, [Hookable(hook_type=hook_type, hook_name=hook_name, priority=priority)])
        return func

    return decorator


def add_action(hook_name: str, priority: int = 10) -> Callable[[T], T]:
    """Bind a provider method to a host action."""
    return _hook(HookType.ACTION, hook_name, priority)


def add_filter(hook_name: str, priority: int = 10) -> Callable[[T], T]:
    """Bind a provider method to a host filter; its return value becomes the filtered value."""
    return _hook(HookType.FILTER, hook_name, priority)


def use_checks(checks: Sequence[Any], default_return_arg: int = 0) -> Callable[[T], T]:
    """Attach non-fatal checks to a hook handler.

    When a check fails the handler is skipped and the hook argument at
    ``default_return_arg`` is returned instead.
    """
    meta = ChecksMeta(checks=list(checks), default_return_arg=default_return_arg)
    return _enhancer(CHECKS_META, [meta])


def custom_post_type(
    name: str,
    singular: Optional[str] = None,
    plural: Optional[str] = None,
    args: Optional[Dict[str, Any]] = None,
) -> Callable[[T], T]:
    """Mark a class as a custom post type entity."""
    meta = CustomPostTypeMeta(
        name=name,
        singular=singular or name.title(),
        plural=plural or f"{(singular or name.title())}s",
        args=dict(args or {}),
    )

    def decorator(cls: T) -> T:
        setattr(cls, CUSTOM_POST_TYPE_META, meta)
        return cls

    return decorator


def view_compose(view: str) -> Callable[[T], T]:
    """Contribute extra context to ``view`` every time it renders."""
    return _enhancer(VIEW_COMPOSE_META, [ViewComposeMeta(view=view)])


def view_directive(name: str) -> Callable[[T], T]:
    """Expose a provider method to templates under ``name``."""
    return _enhancer(VIEW_DIRECTIVE_META, [ViewDirectiveMeta(name=name)])


__all__ = [
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
]
