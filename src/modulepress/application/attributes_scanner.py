"""Application layer - Reading declared metadata back from classes and methods."""

import inspect
from typing import Any, Callable, Iterator, List, Optional, Tuple

from modulepress.domain.decorators import (
    CATCH_EXCEPTIONS_META,
    CHECKS_META,
    CONTROLLER_META,
    CUSTOM_POST_TYPE_META,
    EXCEPTION_FILTERS_META,
    GLOBAL_MODULE_META,
    GUARDS_META,
    HOOKS_META,
    INJECTABLE_META,
    INTERCEPTORS_META,
    MODULE_META,
    PIPES_META,
    RENDER_META,
    ROUTES_META,
    VIEW_COMPOSE_META,
    VIEW_DIRECTIVE_META,
)
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


def _own(target: Any, attribute: str, default: Any = None) -> Any:
    """Read metadata stamped directly on ``target``, ignoring inherited values."""
    if target is None:
        return default
    target = getattr(target, "__func__", target)
    return getattr(target, "__dict__", {}).get(attribute, default)


class AttributeScanner:
    """Stateless queries over the metadata stamped by :mod:`modulepress.domain.decorators`.

    Class-level metadata is read from the class's own namespace, so a subclass
    of a module or controller does not silently inherit its parent's
    declaration.
    """

    @staticmethod
    def has_module(cls: Any) -> bool:
        return isinstance(cls, type) and _own(cls, MODULE_META) is not None

    @staticmethod
    def get_module_descriptor(cls: Any) -> Optional[ModuleDescriptor]:
        return _own(cls, MODULE_META)

    @staticmethod
    def is_global(cls: Any) -> bool:
        return bool(_own(cls, GLOBAL_MODULE_META, False))

    @staticmethod
    def is_injectable(cls: Any) -> bool:
        return bool(_own(cls, INJECTABLE_META, False))

    @staticmethod
    def is_rest_controller(cls: Any) -> bool:
        return isinstance(cls, type) and _own(cls, CONTROLLER_META) is not None

    @staticmethod
    def scan_rest_controller(cls: Any) -> Optional[RestControllerMeta]:
        return _own(cls, CONTROLLER_META)

    @staticmethod
    def is_custom_post_type(cls: Any) -> bool:
        return isinstance(cls, type) and _own(cls, CUSTOM_POST_TYPE_META) is not None

    @staticmethod
    def scan_custom_post_type(cls: Any) -> Optional[CustomPostTypeMeta]:
        return _own(cls, CUSTOM_POST_TYPE_META)

    @staticmethod
    def scan_routes(method: Callable[..., Any]) -> List[Route]:
        return list(_own(method, ROUTES_META, []))

    @staticmethod
    def scan_render(method: Callable[..., Any]) -> Optional[RenderMeta]:
        return _own(method, RENDER_META)

    @staticmethod
    def scan_use_guards(cls: Any = None, method: Any = None) -> List[Any]:
        """Guards declared on ``cls`` followed by those declared on ``method``."""
        return list(_own(cls, GUARDS_META, [])) + list(_own(method, GUARDS_META, []))

    @staticmethod
    def scan_use_interceptors(cls: Any = None, method: Any = None) -> List[Any]:
        return list(_own(cls, INTERCEPTORS_META, [])) + list(_own(method, INTERCEPTORS_META, []))

    @staticmethod
    def scan_use_pipes(cls: Any = None, method: Any = None) -> List[Any]:
        return list(_own(cls, PIPES_META, [])) + list(_own(method, PIPES_META, []))

    @staticmethod
    def scan_use_exception_filters(cls: Any = None, method: Any = None) -> List[Any]:
        return list(_own(cls, EXCEPTION_FILTERS_META, [])) + list(_own(method, EXCEPTION_FILTERS_META, []))

    @staticmethod
    def scan_catch_exceptions(exception_filter: Any) -> List[type]:
        """Exception types accepted by a filter class or instance; empty means all."""
        cls = exception_filter if isinstance(exception_filter, type) else type(exception_filter)
        for klass in cls.__mro__:
            declared = _own(klass, CATCH_EXCEPTIONS_META)
            if declared is not None:
                return list(declared)
        return []

    @staticmethod
    def scan_hooks(method: Callable[..., Any]) -> List[Hookable]:
        return list(_own(method, HOOKS_META, []))

    @staticmethod
    def scan_use_checks(method: Callable[..., Any]) -> List[ChecksMeta]:
        return list(_own(method, CHECKS_META, []))

    @staticmethod
    def scan_view_composers(method: Callable[..., Any]) -> List[ViewComposeMeta]:
        return list(_own(method, VIEW_COMPOSE_META, []))

    @staticmethod
    def scan_view_directives(method: Callable[..., Any]) -> List[ViewDirectiveMeta]:
        return list(_own(method, VIEW_DIRECTIVE_META, []))

    @staticmethod
    def iter_methods(cls: type) -> Iterator[Tuple[str, Callable[..., Any]]]:
        """Yield ``(name, function)`` for every plain method of ``cls``.

        Methods are visited in definition order, the class's own methods first
        and then those inherited through the MRO. Overridden methods are only
        yielded once, dunder methods (``__init__`` included) are skipped.
        """
        seen = set()
        for klass in cls.__mro__:
            if klass is object:
                continue
            for name, attribute in vars(klass).items():
                if name in seen or (name.startswith("__") and name.endswith("__")):
                    continue
                seen.add(name)
                if inspect.isfunction(attribute):
                    yield name, attribute
