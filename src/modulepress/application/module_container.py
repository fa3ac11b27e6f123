"""Application layer - Boot-time wiring of resolved modules into the container."""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from modulepress.application.attributes_scanner import AttributeScanner
from modulepress.application.components import (
    DiscoveryResult,
    HookComponent,
    RouteComponent,
    ViewComposeComponent,
    ViewDirectiveComponent,
)
from modulepress.application.container import DIContainer
from modulepress.application.discovery_service import DiscoveryService
from modulepress.application.http.middleware_consumer import MiddlewareConsumer
from modulepress.application.resolved_module import ResolvedModule
from modulepress.application.resolver import DependencyResolver
from modulepress.domain import IContainer, Lifetime, Provider, Token
from modulepress.domain.exceptions import token_name

logger = logging.getLogger(__name__)

_MODULE_STYLE = 'shape=box, style=filled, fillcolor="#7bff8e", fontcolor="#000"'
_PROVIDER_STYLE = 'shape=ellipse, style=filled, fillcolor="#d0f3ff", fontcolor="#000"'


class ModuleContainer:
    """Registry of resolved modules and the container their providers live in.

    ``build_dependency_system`` discovers the module graph, validates the
    dependencies of every class and factory provider and controller, registers
    them as lazy container entries, and collects the global enhancers each
    module contributes.

    Attributes:
        root_module: The application's root ``@module`` class.
        resolver: Resolver bound to this registry.
    """

    def __init__(
        self,
        root_module: type,
        container: Optional[IContainer] = None,
        discovery_service: Optional[DiscoveryService] = None,
        overrides: Optional[Dict[Token, Provider]] = None,
    ) -> None:
        self.root_module = root_module
        self._overrides: Dict[Token, Provider] = dict(overrides or {})
        self._container: IContainer = container or DIContainer()
        self._discovery_service = discovery_service or DiscoveryService()
        self.resolver = DependencyResolver(self)
        self._framework_tokens: List[Token] = []
        self._resolved_modules: Dict[type, ResolvedModule] = {}
        self._components = DiscoveryResult()
        self._global_guards: List[Tuple[ResolvedModule, Any]] = []
        self._global_interceptors: List[Tuple[ResolvedModule, Any]] = []
        self._global_pipes: List[Tuple[ResolvedModule, Any]] = []
        self._global_filters: List[Tuple[ResolvedModule, Any]] = []

    # ------------------------------------------------------------------
    # Boot
    # ------------------------------------------------------------------

    def register_framework_dependencies(self, dependencies: Dict[Token, Any]) -> None:
        """Register values injectable from every module without importing anything."""
        for token, value in dependencies.items():
            self._container.set_instance(token, value)
            self._framework_tokens.append(token)

    def build_dependency_system(self, middleware_consumer: MiddlewareConsumer) -> None:
        """Discover, validate and register every module of the application.

        Args:
            middleware_consumer: Builder handed to each module's ``middlewares`` hook.

        Raises:
            ModuleResolutionError: On the first wiring error found.
        """
        self._resolved_modules = self._discovery_service.discover_modules(self.root_module)

        for resolved_module in self._resolved_modules.values():
            for provider in resolved_module.providers:
                self._register_provider(resolved_module, provider)

            for controller_class in resolved_module.controllers:
                self.resolver.validate_class_dependencies(resolved_module, controller_class)
                self._container.set(controller_class, self._on_class_request(resolved_module, controller_class))

            instance = resolved_module.instance
            instance.middlewares(middleware_consumer)
            self._global_guards.extend((resolved_module, guard) for guard in instance.plugin_guards())
            self._global_interceptors.extend(
                (resolved_module, interceptor) for interceptor in instance.plugin_interceptors()
            )
            self._global_pipes.extend((resolved_module, pipe) for pipe in instance.plugin_pipes())
            self._global_filters.extend((resolved_module, flt) for flt in instance.plugin_filters())

        self._components = self._discovery_service.discover_components(self._resolved_modules)
        logger.info(
            "Dependency system built: %d module(s), %d provider(s)",
            len(self._resolved_modules),
            sum(len(module.providers) for module in self._resolved_modules.values()),
        )

    def _register_provider(self, resolved_module: ResolvedModule, provider: Provider) -> None:
        token = provider.provide
        if self._container.has(token) and token not in self._framework_tokens:
            logger.warning("Token %s is provided by more than one module; the last one wins", token_name(token))

        # Overrides replace the declared provider and are trusted as-is.
        override = self._overrides.get(token)
        validate = override is None
        if override is not None:
            logger.debug("Overriding provider %s", token_name(token))
            provider = override

        if provider.has_usable_class():
            if validate:
                self.resolver.validate_class_dependencies(resolved_module, provider.use_class)
            self._container.set(token, self._on_class_request(resolved_module, provider.use_class))
        elif provider.has_usable_factory():
            if validate:
                self.resolver.validate_factory_dependencies(resolved_module, provider.use_factory)
            self._container.set(token, self._on_factory_request(resolved_module, provider.use_factory))
        else:
            self._container.set_instance(token, provider.use_value)

    def _on_class_request(self, resolved_module: ResolvedModule, cls: type) -> Callable[[], Any]:
        def build() -> Any:
            return self.resolver.resolve(resolved_module, cls)

        return build

    def _on_factory_request(self, resolved_module: ResolvedModule, factory: Callable[..., Any]) -> Callable[[], Any]:
        def build() -> Any:
            return self.resolver.resolve_factory(resolved_module, factory)

        return build

    def preload_singletons(self) -> None:
        """Materialize every singleton provider and controller now instead of on first use."""
        for resolved_module in self._resolved_modules.values():
            for provider in resolved_module.providers:
                if provider.scope == Lifetime.SINGLETON:
                    self._container.get(provider.provide)
            for controller_class in resolved_module.controllers:
                self._container.get(controller_class)

    # ------------------------------------------------------------------
    # Container access
    # ------------------------------------------------------------------

    def set(self, token: Token, factory: Callable[[], Any]) -> None:
        self._container.set(token, factory)

    def set_instance(self, token: Token, value: Any) -> None:
        self._container.set_instance(token, value)

    def get(self, token: Token) -> Any:
        return self._container.get(token)

    def make(self, token: Token) -> Any:
        return self._container.make(token)

    def has(self, token: Token) -> bool:
        return self._container.has(token)

    @property
    def container(self) -> IContainer:
        return self._container

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def is_framework_dependency(self, token: Token) -> bool:
        return token in self._framework_tokens

    def get_resolved_modules(self) -> Dict[type, ResolvedModule]:
        return dict(self._resolved_modules)

    def get_resolved_module_by_key(self, module_class: type) -> Optional[ResolvedModule]:
        return self._resolved_modules.get(module_class)

    def get_resolved_module_by_dependency_key(self, token: Token) -> Optional[ResolvedModule]:
        """First resolved module, in discovery order, providing ``token``."""
        for resolved_module in self._resolved_modules.values():
            if resolved_module.provides(token):
                return resolved_module
        return None

    def get_provider_by_token(self, token: Token) -> Optional[Provider]:
        try:
            override = self._overrides.get(token)
        except TypeError:
            return None
        if override is not None:
            return override
        for resolved_module in self._resolved_modules.values():
            provider = resolved_module.get_provider(token)
            if provider is not None:
                return provider
        return None

    def get_routes(self) -> List[RouteComponent]:
        return list(self._components.routes)

    def get_hooks(self) -> List[HookComponent]:
        return list(self._components.hooks)

    def get_view_composers(self) -> List[ViewComposeComponent]:
        return list(self._components.view_composers)

    def get_view_directives(self) -> List[ViewDirectiveComponent]:
        return list(self._components.view_directives)

    def get_global_guards(self) -> List[Any]:
        return [self.resolver.resolve_usable(module, guard) for module, guard in self._global_guards]

    def get_global_interceptors(self) -> List[Any]:
        return [self.resolver.resolve_usable(module, item) for module, item in self._global_interceptors]

    def get_global_pipes(self) -> List[Any]:
        return [self.resolver.resolve_usable(module, pipe) for module, pipe in self._global_pipes]

    def get_global_filters(self) -> List[Tuple[ResolvedModule, Any]]:
        """Global exception filters, unresolved, with the module that declared each."""
        return list(self._global_filters)

    # ------------------------------------------------------------------
    # Graph export
    # ------------------------------------------------------------------

    def to_dot(self, show_providers: bool = True) -> str:
        """Render the resolved import graph as Graphviz DOT text.

        Args:
            show_providers: Whether to draw each module's providers as well.

        Returns:
            A ``digraph`` document; modules are boxes and providers ellipses.
        """
        lines = ["digraph G {"]
        edges = []
        for resolved_module in self._resolved_modules.values():
            lines.append(f'  "{resolved_module.name}" [{_MODULE_STYLE}];')
            for imported in resolved_module.imports_as_classes:
                edges.append(f'  "{resolved_module.name}" -> "{imported.__name__}" ;')
            if not show_providers:
                continue
            for token in resolved_module.provided_tokens:
                if AttributeScanner.has_module(token):
                    continue
                lines.append(f'  "{token_name(token)}" [{_PROVIDER_STYLE}];')
                edges.append(f'  "{resolved_module.name}" -> "{token_name(token)}" ;')
        lines.extend(edges)
        lines.append("}")
        return "\n".join(lines) + "\n"
