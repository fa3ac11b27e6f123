"""Application layer - Composition root booting an application from its root module."""

import logging
from typing import Any, Callable, Dict, Optional

from modulepress.application.attributes_scanner import AttributeScanner
from modulepress.application.exception_handler import ExceptionHandler
from modulepress.application.execution_context import ExecutionContext, activate, current_execution_context
from modulepress.application.hooks_registrar import HooksRegistrar
from modulepress.application.http.http import Http
from modulepress.application.module_container import ModuleContainer
from modulepress.config import AppSettings
from modulepress.domain import IHostPlatform, IRenderer, ModuleResolutionError, Provider, Token

logger = logging.getLogger(__name__)

SAFE_EXECUTION = "SAFE_EXECUTION"
"""Token of the callable running a function with failures funneled to the exception handler."""


class Core:
    """Boots an application: modules, container, routes, hooks and views.

    Example:
        >>> core = Core(AppModule, settings=AppSettings(debug=True), host=InMemoryHost())
        >>> core.bootstrap()
        >>> core.host.dispatch("GET", "/app/v1/users/42").data
        {'id': 42}

    Attributes:
        root_module: The application's root ``@module`` class.
        settings: Application settings.
        host: Host platform routes and hooks are registered on.
        renderer: View renderer.
    """

    def __init__(
        self,
        root_module: type,
        settings: Optional[AppSettings] = None,
        host: Optional[IHostPlatform] = None,
        renderer: Optional[IRenderer] = None,
        overrides: Optional[Dict[Token, Provider]] = None,
    ) -> None:
        self.root_module = root_module
        self.settings = settings or AppSettings()
        self.host = host or self._default_host()
        self.renderer = renderer or self._default_renderer()
        self._overrides = overrides
        self._modules: Optional[ModuleContainer] = None
        self._exception_handler: Optional[ExceptionHandler] = None
        self._http: Optional[Http] = None
        self._hooks_registrar: Optional[HooksRegistrar] = None
        self._framework_dependencies: Dict[Token, Any] = {}

    def bootstrap(self) -> "Core":
        """Wire the whole application.

        Wiring errors are not recovered: they abort the boot.

        Raises:
            ModuleResolutionError: If the module graph or a dependency is misconfigured.
        """
        self._modules = ModuleContainer(self.root_module, overrides=self._overrides)
        self._exception_handler = ExceptionHandler(self._modules, self.settings, self.renderer)
        self._http = Http(self._modules, self._exception_handler, self.renderer, self.settings)
        self._hooks_registrar = HooksRegistrar(self._modules, self._exception_handler, self.host)

        self._framework_dependencies = self._map_framework_dependencies()
        self._modules.register_framework_dependencies(self._framework_dependencies)

        self._validate_root_module()
        try:
            self._modules.build_dependency_system(self._http.middleware_consumer)
            if self.settings.preload_singletons:
                self._modules.preload_singletons()
        except ModuleResolutionError as e:
            logger.error("Failed to boot %s: %s %s", self.root_module.__name__, e.message, e.reason)
            raise

        self._hooks_registrar.register_hookables()
        self._http.register_routes(self.host)
        self._register_views()

        logger.info(
            "%s booted: %d route(s), %d hook(s)",
            self.root_module.__name__,
            len(self._modules.get_routes()),
            len(self._modules.get_hooks()),
        )
        return self

    def safe_execution(self, call: Callable[[], Any]) -> Any:
        """Run ``call``, handing any failure to the exception handler.

        Raises:
            FinalizedResponse: When ``call`` failed, carrying the formatted error.
        """
        try:
            return call()
        except Exception as e:
            context = current_execution_context() or ExecutionContext(json_request=self.host.is_json_request())
            with activate(context):
                self.exception_handler.handle(e, context)

    @property
    def modules(self) -> ModuleContainer:
        return self._require(self._modules)

    @property
    def exception_handler(self) -> ExceptionHandler:
        return self._require(self._exception_handler)

    @property
    def http(self) -> Http:
        return self._require(self._http)

    def get_framework_dependencies(self) -> Dict[Token, Any]:
        return dict(self._framework_dependencies)

    def _map_framework_dependencies(self) -> Dict[Token, Any]:
        return {
            AppSettings: self.settings,
            IRenderer: self.renderer,
            Core: self,
            SAFE_EXECUTION: self.safe_execution,
        }

    def _validate_root_module(self) -> None:
        if not isinstance(self.root_module, type):
            raise ModuleResolutionError(reason="Root module must be a class.")
        if not AttributeScanner.has_module(self.root_module):
            raise ModuleResolutionError(
                reason=f"Root module '{self.root_module.__name__}' must be decorated with '@module'."
            ).for_class(self.root_module)

    def _register_views(self) -> None:
        for composer in self._modules.get_view_composers():
            instance = self._modules.get(composer.provider.provide)
            self.renderer.add_view_composer(composer.view_compose.view, getattr(instance, composer.method_name))
        for directive in self._modules.get_view_directives():
            instance = self._modules.get(directive.provider.provide)
            self.renderer.add_view_directive(directive.view_directive.name, getattr(instance, directive.method_name))

    def _default_host(self) -> IHostPlatform:
        from modulepress.infrastructure.host.in_memory import InMemoryHost

        return InMemoryHost()

    def _default_renderer(self) -> IRenderer:
        from modulepress.infrastructure.rendering.jinja import Jinja2Renderer

        return Jinja2Renderer(self.settings.views_path)

    @staticmethod
    def _require(value: Any) -> Any:
        if value is None:
            raise RuntimeError("Core.bootstrap() must be called first.")
        return value
