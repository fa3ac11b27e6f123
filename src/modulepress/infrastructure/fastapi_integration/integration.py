import logging
import re
from contextvars import ContextVar
from typing import Any, Callable, Optional, TypeVar, Union

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from starlette.concurrency import run_in_threadpool
from starlette.responses import HTMLResponse, JSONResponse, Response

from modulepress.application import Core, ModuleContainer
from modulepress.domain import (
    BaseResponse,
    HtmlResponse,
    IHostPlatform,
    JsonResponse,
    RestRequest,
    RestResponse,
    RestRouteDefinition,
    Token,
)
from modulepress.infrastructure.host.hooks import HookRegistry

T = TypeVar("T")

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r":([a-zA-Z0-9_]+)")
_json_request: ContextVar[bool] = ContextVar("modulepress_fastapi_json_request", default=False)


class FastAPIHost(IHostPlatform):
    """Host platform serving the application's routes from a FastAPI app.

    Each route is added with ``add_api_route``; ``:name`` placeholders become
    ``{name}`` path parameters. The synchronous request pipeline runs in
    starlette's thread pool. Hooks live in an in-process :class:`HookRegistry`.

    Attributes:
        app: The FastAPI application routes are added to.
        hooks: The registry actions and filters are registered on.

    Example:
        >>> host = FastAPIHost(FastAPI())
        >>> Core(AppModule, host=host).bootstrap()
        >>> uvicorn.run(host.app)
    """

    def __init__(self, app: Optional[FastAPI] = None) -> None:
        self.app = app or FastAPI()
        self.hooks = HookRegistry()

    def register_rest_route(self, definition: RestRouteDefinition) -> None:
        path = self.to_fastapi_path(definition)

        async def endpoint(request: Request) -> Response:
            rest_request = await self._to_rest_request(request)
            response = await run_in_threadpool(self._serve, definition.callback, rest_request)
            return self.to_starlette_response(response)

        self.app.add_api_route(path, endpoint, methods=definition.methods)
        logger.debug("Route %s %s added to FastAPI", definition.methods, path)

    def add_action(self, hook_name: str, callback: Callable[..., Any], priority: int = 10) -> None:
        self.hooks.add_action(hook_name, callback, priority)

    def add_filter(self, hook_name: str, callback: Callable[..., Any], priority: int = 10) -> None:
        self.hooks.add_filter(hook_name, callback, priority)

    def is_json_request(self) -> bool:
        return _json_request.get()

    @staticmethod
    def to_fastapi_path(definition: RestRouteDefinition) -> str:
        """The route's full path in FastAPI syntax, e.g. ``/app/v1/users/{id}``."""
        path = _PLACEHOLDER.sub(r"{\1}", definition.path)
        parts = [part.strip("/") for part in (definition.namespace, path) if part.strip("/")]
        return "/" + "/".join(parts)

    @staticmethod
    def to_starlette_response(response: BaseResponse) -> Response:
        """Convert a pipeline response to a starlette response."""
        if isinstance(response, HtmlResponse):
            return HTMLResponse(response.html, status_code=response.status_code, headers=response.headers)
        if isinstance(response, (RestResponse, JsonResponse)):
            return JSONResponse(
                jsonable_encoder(response.data),
                status_code=response.status_code,
                headers=response.headers,
            )
        return Response(status_code=response.status_code, headers=response.headers)

    @staticmethod
    def _serve(callback: Callable[[RestRequest], BaseResponse], request: RestRequest) -> BaseResponse:
        token = _json_request.set(True)
        try:
            return callback(request)
        finally:
            _json_request.reset(token)

    @staticmethod
    async def _to_rest_request(request: Request) -> RestRequest:
        json_body = None
        if await request.body():
            try:
                json_body = await request.json()
            except ValueError:
                json_body = None
        return RestRequest(
            method=request.method,
            path=request.url.path,
            path_params=dict(request.path_params),
            query_params=dict(request.query_params),
            json_body=json_body,
            headers={name.lower(): value for name, value in request.headers.items()},
        )


def create_fastapi_dependency(source: Union[Core, ModuleContainer], token: Token) -> Callable[[], Any]:
    """Create a FastAPI Depends() callable that resolves a provider token.

    Lets plain FastAPI endpoints living next to the application's controllers
    share its providers. Singletons come from the container cache; transient
    providers are built on every call.

    Args:
        source: A bootstrapped :class:`Core`, or its :class:`ModuleContainer`.
        token: The provider token to resolve.

    Returns:
        A callable that FastAPI can use with Depends().

    Example:
        >>> core = Core(AppModule, host=FastAPIHost(app)).bootstrap()
        >>> get_users = create_fastapi_dependency(core, UsersService)
        >>>
        >>> @app.get("/health")
        >>> def health(users: UsersService = Depends(get_users)):
        ...     return {"users": users.count()}
    """

    def dependency() -> Any:
        """Resolve the token from the application's container."""
        modules = source.modules if isinstance(source, Core) else source
        return modules.resolver.fetch(token)

    return dependency
