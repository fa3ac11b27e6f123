"""Unit tests for the execution context."""

from modulepress.application.execution_context import (
    ExecutionContext,
    HookContext,
    RESTContext,
    activate,
    current_execution_context,
)
from modulepress.domain import (
    Hookable,
    HookType,
    RequestMethod,
    RestControllerMeta,
    RestRequest,
    RestResponse,
    Route,
)


class UsersController:
    def show(self):
        return None


class Listener:
    def on_init(self):
        return None


def _rest_context():
    return RESTContext(
        route=Route(method=RequestMethod.GET, path=":id"),
        controller=RestControllerMeta(namespace="users"),
        request=RestRequest(path="/app/v1/users/1"),
        response=RestResponse(),
        controller_class=UsersController,
        method_name="show",
    )


def _hook_context(name="init"):
    return HookContext(
        hookable=Hookable(hook_type=HookType.ACTION, hook_name=name),
        provider_class=Listener,
        method_name="on_init",
        args=(1, 2),
    )


class FakeFilter:
    def __init__(self, key):
        self.key = key


class TestExecutionContext:
    """Test cases for ExecutionContext."""

    def test_defaults(self):
        """Test that a fresh context is empty."""
        context = ExecutionContext()
        assert context.json_request is False
        assert context.switch_to_rest_context() is None
        assert context.switch_to_hook_context() is None
        assert context.get_exception_filters() == []

    def test_rest_context(self):
        """Test setting and clearing the REST context."""
        context = ExecutionContext(json_request=True)
        rest_context = _rest_context()

        context.set_rest_context(rest_context)
        assert context.switch_to_rest_context() is rest_context
        assert context.switch_to_rest_context().method is UsersController.show

        context.set_rest_context(None)
        assert context.switch_to_rest_context() is None

    def test_hook_contexts_stack(self):
        """Test that the innermost hook context is exposed."""
        context = ExecutionContext()
        outer = _hook_context("outer")
        inner = _hook_context("inner")

        context.push_hook_context(outer)
        context.push_hook_context(inner)
        assert context.switch_to_hook_context() is inner

        context.pop_hook_context()
        assert context.switch_to_hook_context() is outer
        assert context.switch_to_hook_context().args == (1, 2)
        assert context.switch_to_hook_context().method is Listener.on_init

        context.pop_hook_context()
        context.pop_hook_context()
        assert context.switch_to_hook_context() is None

    def test_exception_filters_by_key(self):
        """Test that filters are removed by invocation key."""
        context = ExecutionContext()
        first = FakeFilter("A::a")
        second = FakeFilter("B::b")
        third = FakeFilter("A::a")

        for resolved in (first, second, third):
            context.add_exception_filter(resolved)
        context.remove_exception_filters("A::a")

        assert context.get_exception_filters() == [second]


class TestActivate:
    """Test cases for publishing the current context."""

    def test_activate_publishes_and_restores(self):
        """Test that activate is scoped to the with block."""
        outer = ExecutionContext()
        inner = ExecutionContext()

        assert current_execution_context() is None
        with activate(outer):
            assert current_execution_context() is outer
            with activate(inner) as active:
                assert active is inner
                assert current_execution_context() is inner
            assert current_execution_context() is outer
        assert current_execution_context() is None
