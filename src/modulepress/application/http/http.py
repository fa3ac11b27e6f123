"""Application layer - REST route registration and the request pipeline."""

import logging
from typing import TYPE_CHECKING, Any, List, Optional

from modulepress.application.attributes_scanner import AttributeScanner
from modulepress.application.components import RouteComponent
from modulepress.application.exception_handler import ExceptionHandler, ResolvedFilter
from modulepress.application.execution_context import ExecutionContext, RESTContext, activate
from modulepress.application.http.call_handler import build_chain
from modulepress.application.http.middleware_consumer import MiddlewareConsumer
from modulepress.application.http.middleware_parser import MiddlewareParser
from modulepress.application.http.request_parameter_parser import RequestParameterParser
from modulepress.application.resolved_module import ResolvedModule
from modulepress.config import AppSettings
from modulepress.domain import (
    BaseResponse,
    FinalizedResponse,
    HtmlResponse,
    IHostPlatform,
    IRenderer,
    ModuleResolutionError,
    RestRequest,
    RestResponse,
    RestRouteDefinition,
    UnauthorizedError,
)

if TYPE_CHECKING:
    from modulepress.application.module_container import ModuleContainer

logger = logging.getLogger(__name__)


class Http:
    """Registers controller routes on the host and serves their requests.

    Every request runs the same ordered pipeline: middleware, class-level
    exception filters, global and class-level guards, method-level exception
    filters, method-level guards, parameter binding, interceptors, the
    handler, then rendering or setting the response body. Any failure is
    handed to the :class:`ExceptionHandler`.

    Attributes:
        middleware_consumer: Builder the modules register their middleware on.
    """

    def __init__(
        self,
        modules: "ModuleContainer",
        exception_handler: ExceptionHandler,
        renderer: IRenderer,
        settings: AppSettings,
    ) -> None:
        self._modules = modules
        self._exception_handler = exception_handler
        self._renderer = renderer
        self._settings = settings
        self.middleware_consumer = MiddlewareConsumer()

    def register_routes(self, host: IHostPlatform) -> None:
        """Register every discovered route on ``host``."""
        for component in self._modules.get_routes():
            definition = self.build_route_definition(component)
            host.register_rest_route(definition)
            logger.info(
                "Mapped %s /%s/%s to %s",
                component.route.method,
                definition.namespace,
                definition.path.strip("/"),
                component.key,
            )

    def build_route_definition(self, component: RouteComponent) -> RestRouteDefinition:
        namespace = "/".join(
            part.strip("/") for part in (self._settings.rest_namespace, component.controller.namespace) if part.strip("/")
        )

        def callback(request: RestRequest) -> BaseResponse:
            return self.process_request(component, request)

        return RestRouteDefinition(
            namespace=namespace,
            path=component.route.path,
            pattern=component.route.pattern,
            methods=[str(component.route.method)],
            callback=callback,
        )

    def process_request(self, component: RouteComponent, request: RestRequest) -> BaseResponse:
        """Run the request pipeline of one route.

        Args:
            component: The matched route.
            request: The incoming request.

        Returns:
            The response to send. Failures are converted by the exception
            handler, never raised.
        """
        response = RestResponse()
        context = ExecutionContext(json_request=True)
        context.set_rest_context(
            RESTContext(
                route=component.route,
                controller=component.controller,
                request=request,
                response=response,
                controller_class=component.declaring_class,
                method_name=component.method_name,
            )
        )

        with activate(context):
            try:
                return self._run_pipeline(component, context, request, response)
            except FinalizedResponse as finalized:
                return finalized.response
            except Exception as e:
                try:
                    self._exception_handler.handle(e, context)
                except FinalizedResponse as finalized:
                    return finalized.response
            finally:
                context.remove_exception_filters(component.key)
                context.set_rest_context(None)

    def _run_pipeline(
        self,
        component: RouteComponent,
        context: ExecutionContext,
        request: RestRequest,
        response: RestResponse,
    ) -> BaseResponse:
        resolved_module = component.resolved_module
        controller_class = component.declaring_class
        method = component.method

        middleware_result = self.apply_middlewares(component, request, response)
        if middleware_result is not None:
            return middleware_result

        self._apply_exception_filters(AttributeScanner.scan_use_exception_filters(cls=controller_class), component, context)
        self._apply_guards(
            self._modules.get_global_guards() + self._resolve_all(
                resolved_module, AttributeScanner.scan_use_guards(cls=controller_class)
            ),
            component,
            context,
        )
        self._apply_exception_filters(AttributeScanner.scan_use_exception_filters(method=method), component, context)
        self._apply_guards(
            self._resolve_all(resolved_module, AttributeScanner.scan_use_guards(method=method)),
            component,
            context,
        )

        pipes = self._modules.get_global_pipes() + self._resolve_all(
            resolved_module, AttributeScanner.scan_use_pipes(cls=controller_class, method=method)
        )
        parser = RequestParameterParser(lambda pipe: self._modules.resolver.resolve_usable(resolved_module, pipe))
        arguments = parser.parse_handler_arguments(method, request, response, pipes)

        controller = self._modules.get(controller_class)
        handler = getattr(controller, component.method_name)
        interceptors = self._modules.get_global_interceptors() + self._resolve_all(
            resolved_module, AttributeScanner.scan_use_interceptors(cls=controller_class, method=method)
        )
        result = build_chain(interceptors, context, lambda: handler(**arguments)).handle()

        render = AttributeScanner.scan_render(method)
        if render is not None:
            return HtmlResponse(html=self._renderer.render(render.view, result))

        if isinstance(result, BaseResponse):
            return result
        response.set_data(result)
        return response

    def apply_middlewares(
        self,
        component: RouteComponent,
        request: RestRequest,
        response: RestResponse,
    ) -> Optional[BaseResponse]:
        """Run the middleware registered for the active route.

        A registration is skipped as soon as one of its exclusions matches.
        Otherwise, the first matching route rule runs all of its middleware in
        order and the next registration is considered.

        Returns:
            The response a middleware ended the request with, if any.
        """
        candidates = self._candidate_paths(component, request)
        method = str(component.route.method)

        for registration in self.middleware_consumer.get_registrations():
            if any(MiddlewareParser.is_middleware_applicable(rule, candidates, method) for rule in registration.exclusions):
                continue
            if not any(MiddlewareParser.is_middleware_applicable(rule, candidates, method) for rule in registration.routes):
                continue

            for implementation in registration.middlewares:
                result = self._run_middleware(component.resolved_module, implementation, request, response)
                if isinstance(result, BaseResponse):
                    logger.debug("Middleware %r ended %s", implementation, component.key)
                    return result
        return None

    def _run_middleware(
        self,
        resolved_module: ResolvedModule,
        implementation: Any,
        request: RestRequest,
        response: RestResponse,
    ) -> Any:
        if isinstance(implementation, (type, str)) or hasattr(implementation, "use"):
            middleware = self._modules.resolver.resolve_usable(resolved_module, implementation)
            return middleware.use(request, response)
        if callable(implementation):
            return implementation(request, response)
        raise ModuleResolutionError(
            reason=f"Middleware {implementation!r} must be a callable or provide a 'use' method."
        )

    def _candidate_paths(self, component: RouteComponent, request: RestRequest) -> List[str]:
        declared = component.full_path()
        concrete = MiddlewareParser.normalize_path(request.path)
        prefix = MiddlewareParser.normalize_path(self._settings.rest_namespace)
        if prefix and concrete.startswith(prefix + "/"):
            concrete = concrete[len(prefix) + 1:]
        return [declared, concrete]

    def _apply_guards(self, guards: List[Any], component: RouteComponent, context: ExecutionContext) -> None:
        for guard in guards:
            if not guard.can_activate(context):
                logger.debug("Guard %s rejected %s", type(guard).__name__, component.key)
                raise UnauthorizedError().for_class_method(component.declaring_class, component.method_name)

    @staticmethod
    def _apply_exception_filters(filters: List[Any], component: RouteComponent, context: ExecutionContext) -> None:
        for exception_filter in filters:
            context.add_exception_filter(
                ResolvedFilter(key=component.key, filter=exception_filter, resolved_module=component.resolved_module)
            )

    def _resolve_all(self, resolved_module: ResolvedModule, usables: List[Any]) -> List[Any]:
        return [self._modules.resolver.resolve_usable(resolved_module, usable) for usable in usables]
