"""Integration tests for the REST request pipeline."""

from typing import Annotated

import annotated_types
import pytest
from pydantic import BaseModel

from modulepress.domain import (
    BaseModule,
    Body,
    CanActivate,
    HtmlResponse,
    Interceptor,
    JsonResponse,
    Middleware,
    NotFoundError,
    Param,
    PipeTransform,
    Query,
    RestRequest,
    RestResponse,
    get,
    injectable,
    module,
    post,
    put,
    render,
    rest_controller,
    use_guards,
    use_interceptors,
    use_pipes,
)
from modulepress.infrastructure.rendering.jinja import Jinja2Renderer
from modulepress.infrastructure.testing.utilities import TestingModuleBuilder

events = []


class RecordingMiddleware(Middleware):
    def use(self, request, response):
        events.append("middleware")
        return None


def block_banned(request, response):
    if request.get_header("x-banned"):
        return JsonResponse(data={"blocked": True}, status_code=403)
    return None


class TokenGuard(CanActivate):
    def can_activate(self, context):
        return context.switch_to_rest_context().request.get_header("x-token") == "secret"


class Tracing(Interceptor):
    def __init__(self, name):
        self.name = name

    def intercept(self, context, next_handler):
        events.append(f"{self.name}:before")
        result = next_handler.handle()
        events.append(f"{self.name}:after")
        return result


class Envelope(Interceptor):
    def intercept(self, context, next_handler):
        return {"data": next_handler.handle()}


class TrimPipe(PipeTransform):
    def transform(self, value):
        return value.strip() if isinstance(value, str) else value


class UserDto(BaseModel):
    name: str
    age: int


@injectable
class UsersService:
    def find(self, user_id):
        if user_id == 404:
            raise NotFoundError(f"User {user_id} not found")
        return {"id": user_id}


@rest_controller("users")
class UsersController:
    def __init__(self, users: UsersService):
        self.users = users

    @get()
    def index(self, page: Annotated[int, Query("page")] = 1):
        events.append("handler")
        return {"page": page}

    @get(":id")
    @use_interceptors(Tracing("outer"), Tracing("inner"))
    def show(self, user_id: Annotated[int, Param("id")]):
        events.append("handler")
        return self.users.find(user_id)

    @put(":id")
    def update(self, user_id: Annotated[int, Param("id")], dto: Annotated[UserDto, Body()]):
        return {"id": user_id, **dto.model_dump()}

    @get(":id/profile")
    @render("users.profile")
    def profile(self, user_id: Annotated[str, Param("id")]):
        return {"name": "Ada", "id": user_id}


@rest_controller("accounts")
@use_guards(TokenGuard)
class AccountsController:
    @post()
    @use_pipes(TrimPipe)
    def create(
        self,
        name: Annotated[str, Body("name", rules=[annotated_types.MinLen(3)])],
        age: Annotated[int, Body("age")],
    ):
        return {"name": name, "age": age}


@rest_controller("reports")
class ReportsController:
    @get()
    def export(self, request: RestRequest, response: RestResponse):
        response.set_header("X-Path", request.path)
        return JsonResponse(data={"rows": []}, status_code=202)


@module(providers=[UsersService], controllers=[UsersController, AccountsController, ReportsController])
class AppModule(BaseModule):
    def middlewares(self, consumer):
        consumer.apply(RecordingMiddleware).exclude("users/admin").for_routes("users/:id")
        consumer.apply(block_banned).for_routes("*")


@module(imports=[AppModule])
class EnvelopedModule(BaseModule):
    def plugin_interceptors(self):
        return [Envelope()]


@pytest.fixture(autouse=True)
def reset_events():
    events.clear()
    yield
    events.clear()


@pytest.fixture
def core():
    renderer = Jinja2Renderer(templates={"users/profile.html": "<h1>{{ name }} #{{ id }}</h1>"})
    return TestingModuleBuilder(AppModule).with_renderer(renderer).compile()


def dispatch(core, method, path, **kwargs):
    return core.host.dispatch(method, "/app/v1/" + path, **kwargs)


class TestMiddleware:
    """Test cases for middleware in the request pipeline."""

    def test_runs_for_matching_route(self, core):
        """Test that middleware runs for a matching route."""
        response = dispatch(core, "GET", "users/7")

        assert response.data == {"id": 7}
        assert events[0] == "middleware"

    def test_skipped_for_other_routes(self, core):
        """Test that middleware does not run for routes outside its rules."""
        dispatch(core, "GET", "users")
        assert events == ["handler"]

    def test_exclusion_wins(self, core):
        """Test that an excluded path skips the middleware."""
        response = dispatch(core, "GET", "users/admin")

        assert response.status_code == 400
        assert "middleware" not in events

    def test_short_circuit(self, core):
        """Test that a middleware response ends the request."""
        response = dispatch(core, "GET", "users/7", headers={"X-Banned": "1"})

        assert isinstance(response, JsonResponse)
        assert response.status_code == 403
        assert response.data == {"blocked": True}
        assert events == ["middleware"]


class TestGuards:
    """Test cases for guards in the request pipeline."""

    def test_rejects_without_token(self, core):
        """Test that a failing guard produces a 401."""
        response = dispatch(core, "POST", "accounts", json={"name": "Ada", "age": 36})

        assert response.status_code == 401
        assert response.data == {"message": "Unauthorized", "statusCode": 401}

    def test_accepts_with_token(self, core):
        """Test that a passing guard lets the handler run."""
        response = dispatch(
            core, "POST", "accounts", json={"name": "  Ada  ", "age": "36"}, headers={"X-Token": "secret"}
        )

        assert response.status_code == 200
        assert response.data == {"name": "Ada", "age": 36}


class TestParameterBinding:
    """Test cases for parameter binding in the request pipeline."""

    def test_query_default(self, core):
        """Test that a missing query value falls back to the default."""
        assert dispatch(core, "GET", "users").data == {"page": 1}

    def test_query_cast(self, core):
        """Test that a query string value is cast to the annotated type."""
        assert dispatch(core, "GET", "users", query={"page": "3"}).data == {"page": 3}

    def test_rule_violation(self, core):
        """Test that a failing rule produces a 422 with per-field errors."""
        response = dispatch(core, "POST", "accounts", json={"name": " Al ", "age": 36}, headers={"X-Token": "secret"})

        assert response.status_code == 422
        assert response.data["message"] == "Validation Exception"
        assert set(response.data["errors"]) == {"name"}

    def test_missing_body_value(self, core):
        """Test that a missing required value produces a 400."""
        response = dispatch(core, "POST", "accounts", json={"name": "Ada"}, headers={"X-Token": "secret"})

        assert response.status_code == 400
        assert response.data["message"] == "age is required"

    def test_dto(self, core):
        """Test that the whole body hydrates a DTO."""
        response = dispatch(core, "PUT", "users/5", json={"name": "Ada", "age": 36})
        assert response.data == {"id": 5, "name": "Ada", "age": 36}

    def test_invalid_dto(self, core):
        """Test that an invalid DTO produces a 422."""
        response = dispatch(core, "PUT", "users/5", json={"name": "Ada"})

        assert response.status_code == 422
        assert "age" in response.data["errors"]


class TestHandlerResults:
    """Test cases for turning handler results into responses."""

    def test_interceptors_wrap_handler(self, core):
        """Test that interceptors run as an onion around the handler."""
        dispatch(core, "GET", "users/7")

        assert events == [
            "middleware",
            "outer:before",
            "inner:before",
            "handler",
            "inner:after",
            "outer:after",
        ]

    def test_render(self, core):
        """Test that a render route returns HTML."""
        response = dispatch(core, "GET", "users/7/profile")

        assert isinstance(response, HtmlResponse)
        assert response.html == "<h1>Ada #7</h1>"

    def test_response_passthrough(self, core):
        """Test that a response returned by the handler is sent as-is."""
        response = dispatch(core, "GET", "reports")

        assert isinstance(response, JsonResponse)
        assert response.status_code == 202
        assert response.data == {"rows": []}

    def test_handler_exception(self, core):
        """Test that an HTTP exception raised by a service sets the response."""
        response = dispatch(core, "GET", "users/404")

        assert response.status_code == 404
        assert response.data == {"message": "User 404 not found", "statusCode": 404}

    def test_no_route(self, core):
        """Test that an unknown path produces a 404."""
        response = dispatch(core, "GET", "missing")

        assert response.status_code == 404
        assert response.data["statusCode"] == 404

    def test_global_interceptor(self):
        """Test that global interceptors wrap every route."""
        core = TestingModuleBuilder(EnvelopedModule).compile()
        assert dispatch(core, "GET", "users").data == {"data": {"page": 1}}
