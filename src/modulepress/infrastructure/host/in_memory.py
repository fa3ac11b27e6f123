import logging
import re
from contextvars import ContextVar
from typing import Any, Callable, Dict, List, Optional, Tuple

from modulepress.domain import (
    BaseResponse,
    IHostPlatform,
    JsonResponse,
    RestRequest,
    RestRouteDefinition,
)
from modulepress.infrastructure.host.hooks import HookRegistry

logger = logging.getLogger(__name__)

_serving_rest: ContextVar[bool] = ContextVar("modulepress_in_memory_rest", default=False)


class InMemoryHost(IHostPlatform):
    """Pure Python host: a regex route table and an in-process hook registry.

    Useful for tests and for embedding an application without a web server.

    Attributes:
        hooks: The registry actions and filters are registered on.
        json_requests: Value of :meth:`is_json_request` outside of a REST dispatch.

    Example:
        >>> host = InMemoryHost()
        >>> Core(AppModule, host=host).bootstrap()
        >>> response = host.dispatch("POST", "/app/v1/users", json={"name": "Ada"})
        >>> response.status_code
        200
    """

    def __init__(self, json_requests: bool = False) -> None:
        self.hooks = HookRegistry()
        self.json_requests = json_requests
        self._routes: List[Tuple[re.Pattern, RestRouteDefinition]] = []

    def register_rest_route(self, definition: RestRouteDefinition) -> None:
        self._routes.append((self._compile(definition), definition))
        logger.debug("Route %s /%s/%s registered", definition.methods, definition.namespace, definition.path)

    def add_action(self, hook_name: str, callback: Callable[..., Any], priority: int = 10) -> None:
        self.hooks.add_action(hook_name, callback, priority)

    def add_filter(self, hook_name: str, callback: Callable[..., Any], priority: int = 10) -> None:
        self.hooks.add_filter(hook_name, callback, priority)

    def do_action(self, hook_name: str, *args: Any) -> None:
        self.hooks.do_action(hook_name, *args)

    def apply_filters(self, hook_name: str, value: Any, *args: Any) -> Any:
        return self.hooks.apply_filters(hook_name, value, *args)

    def is_json_request(self) -> bool:
        return _serving_rest.get() or self.json_requests

    def get_routes(self) -> List[RestRouteDefinition]:
        return [definition for _, definition in self._routes]

    def dispatch(
        self,
        method: str,
        path: str,
        query: Optional[Dict[str, Any]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> BaseResponse:
        """Serve one REST request.

        Args:
            method: HTTP verb.
            path: Full request path, REST namespace included.
            query: Query string parameters.
            json: Decoded JSON body.
            headers: Request headers.

        Returns:
            The route's response, or a 404 JSON response when no route matches.
        """
        normalized = "/" + path.strip("/")
        for regex, definition in self._routes:
            match = regex.match(normalized)
            if match is None or method.upper() not in definition.methods:
                continue
            request = RestRequest(
                method=method.upper(),
                path=normalized,
                path_params=match.groupdict(),
                query_params=dict(query or {}),
                json_body=json,
                headers={name.lower(): value for name, value in (headers or {}).items()},
            )
            token = _serving_rest.set(True)
            try:
                return definition.callback(request)
            finally:
                _serving_rest.reset(token)

        return JsonResponse(
            data={"message": "No route was found matching the URL and request method.", "statusCode": 404},
            status_code=404,
        )

    @staticmethod
    def _compile(definition: RestRouteDefinition) -> re.Pattern:
        parts = [part.strip("/") for part in (definition.namespace, definition.pattern) if part.strip("/")]
        return re.compile("^/" + "/".join(parts) + "/?$")
