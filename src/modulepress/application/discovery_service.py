"""Application layer - Module graph discovery and component discovery."""

import logging
from typing import Any, Dict, List, Optional

from modulepress.application.attributes_scanner import AttributeScanner
from modulepress.application.components import (
    DiscoveryResult,
    HookComponent,
    RouteComponent,
    ViewComposeComponent,
    ViewDirectiveComponent,
)
from modulepress.application.resolved_module import ResolvedModule
from modulepress.domain import BaseModule, DynamicModule, ModuleResolutionError

logger = logging.getLogger(__name__)


class DiscoveryService:
    """Walks the import graph of a root module and the declarations of its members."""

    def discover_modules(self, root_module: type) -> Dict[type, ResolvedModule]:
        """Resolve every module reachable from ``root_module``.

        The walk is depth-first in declaration order. Each distinct module class
        is resolved once, so diamond-shaped graphs are supported. Two modules
        importing each other directly are rejected.

        Args:
            root_module: The application's ``@module`` class.

        Returns:
            Resolved modules keyed by module class, in discovery order.

        Raises:
            ModuleResolutionError: If the root is not a module, a declaration is
                invalid, or two modules import each other.

        Example:
            >>> modules = DiscoveryService().discover_modules(AppModule)
            >>> list(modules)
            [AppModule, UsersModule, MailerModule]
        """
        if not AttributeScanner.has_module(root_module):
            name = getattr(root_module, "__name__", repr(root_module))
            raise ModuleResolutionError(
                reason=f"Root module '{name}' must be decorated with '@module'."
            ).for_class(root_module)

        resolved_modules: Dict[type, ResolvedModule] = {}
        self._load_module(None, root_module, resolved_modules)
        logger.info("Discovered %d module(s) from %s", len(resolved_modules), root_module.__name__)
        return resolved_modules

    def _load_module(
        self,
        parent: Optional[ResolvedModule],
        declared: Any,
        resolved_modules: Dict[type, ResolvedModule],
    ) -> None:
        if isinstance(declared, DynamicModule):
            descriptor = declared.register()
            instance = declared
            module_class = type(declared)
        else:
            module_class = declared
            descriptor = AttributeScanner.get_module_descriptor(module_class)
            instance = module_class()

        if not isinstance(instance, BaseModule):
            raise ModuleResolutionError(
                reason=f"Module class '{module_class.__name__}' is not an instance of BaseModule."
            ).for_class(module_class)

        current = ResolvedModule(
            descriptor,
            module_class,
            parent.module_class if parent else None,
            instance,
        )

        if parent is not None and self._imports_each_other(current, parent):
            raise ModuleResolutionError(
                reason=(
                    f"Circular dependency detected between modules '{parent.name}' "
                    f"and '{current.name}'."
                )
            ).for_class(module_class)

        if module_class in resolved_modules:
            return

        resolved_modules[module_class] = current
        logger.debug("Resolved module %s (loaded by %s)", current.name, parent.name if parent else "root")

        for imported in current.imports:
            self._load_module(current, imported, resolved_modules)

    @staticmethod
    def _imports_each_other(current: ResolvedModule, parent: ResolvedModule) -> bool:
        return (
            current.module_class in parent.imports_as_classes
            and parent.module_class in current.imports_as_classes
        )

    def discover_components(self, resolved_modules: Dict[type, ResolvedModule]) -> DiscoveryResult:
        """Collect routes, hooks, view composers and view directives.

        Hooks and view declarations are looked up on class-based providers,
        routes on controllers.
        """
        routes: List[RouteComponent] = []
        hooks: List[HookComponent] = []
        view_composers: List[ViewComposeComponent] = []
        view_directives: List[ViewDirectiveComponent] = []

        for resolved_module in resolved_modules.values():
            for provider in resolved_module.providers:
                if not provider.has_usable_class():
                    continue
                provider_class = provider.use_class
                for method_name, method in AttributeScanner.iter_methods(provider_class):
                    common = dict(
                        resolved_module=resolved_module,
                        declaring_class=provider_class,
                        method_name=method_name,
                        provider=provider,
                    )
                    hooks.extend(
                        HookComponent(hookable=hookable, **common)
                        for hookable in AttributeScanner.scan_hooks(method)
                    )
                    view_composers.extend(
                        ViewComposeComponent(view_compose=view_compose, **common)
                        for view_compose in AttributeScanner.scan_view_composers(method)
                    )
                    view_directives.extend(
                        ViewDirectiveComponent(view_directive=view_directive, **common)
                        for view_directive in AttributeScanner.scan_view_directives(method)
                    )

            for controller_class in resolved_module.controllers:
                controller = AttributeScanner.scan_rest_controller(controller_class)
                if controller is None:
                    continue
                for method_name, method in AttributeScanner.iter_methods(controller_class):
                    routes.extend(
                        RouteComponent(
                            resolved_module=resolved_module,
                            declaring_class=controller_class,
                            method_name=method_name,
                            controller=controller,
                            route=route,
                        )
                        for route in AttributeScanner.scan_routes(method)
                    )

        logger.info(
            "Discovered %d route(s), %d hook(s), %d view composer(s), %d view directive(s)",
            len(routes),
            len(hooks),
            len(view_composers),
            len(view_directives),
        )
        return DiscoveryResult(
            routes=routes,
            hooks=hooks,
            view_composers=view_composers,
            view_directives=view_directives,
        )
