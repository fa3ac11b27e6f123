"""Unit tests for HooksRegistrar."""

import pytest

from modulepress.application.core import Core
from modulepress.config import AppSettings
from modulepress.domain import (
    BadRequestError,
    BaseModule,
    CanActivate,
    ExceptionFilter,
    FinalizedResponse,
    HtmlResponse,
    JsonResponse,
    add_action,
    add_filter,
    injectable,
    module,
    use_checks,
    use_exception_filters,
    use_guards,
)
from modulepress.infrastructure.host.in_memory import InMemoryHost


class Deny(CanActivate):
    def can_activate(self, context):
        return False


class Allow(CanActivate):
    def can_activate(self, context):
        return True


class RecordHook(CanActivate):
    seen = []

    def can_activate(self, context):
        hook_context = context.switch_to_hook_context()
        RecordHook.seen.append((hook_context.hookable.hook_name, hook_context.args))
        return True


class JsonFilter(ExceptionFilter):
    def catch_exception(self, exception, context):
        return JsonResponse(data={"handled": exception.message}, status_code=exception.status_code)


@injectable
class TitleService:
    def __init__(self):
        self.calls = []

    @add_action("init")
    def on_init(self, *args):
        self.calls.append(("init", args))

    @add_filter("the_title")
    def upper_title(self, title):
        return title.upper()

    @add_filter("the_title", priority=20)
    def exclaim_title(self, title):
        return f"{title}!"

    @add_filter("the_title", priority=5)
    def trim_title(self, title):
        return title.strip()

    @use_checks([Deny], default_return_arg=1)
    @add_filter("pick_second")
    def never_called(self, first, second):
        self.calls.append("never_called")
        return "changed"

    @use_checks([Deny], default_return_arg=5)
    @add_filter("out_of_range")
    def out_of_range(self, value):
        return value

    @use_checks([Allow, Deny])
    @add_action("checked_action")
    def checked_action(self, value):
        self.calls.append("checked_action")

    @use_checks([Deny])
    @add_filter("no_args")
    def no_args(self):
        return "changed"

    @use_guards(RecordHook)
    @add_action("recorded")
    def recorded(self, *args):
        return None

    @use_exception_filters(JsonFilter)
    @add_action("filtered_failure")
    def filtered_failure(self):
        raise BadRequestError("Bad hook input")

    @add_action("raw_failure")
    def raw_failure(self):
        raise RuntimeError("hook exploded")


@use_guards(Deny)
@injectable
class GuardedService:
    @add_action("guarded")
    def guarded(self):
        return None


class OrderRecorder:
    seen = []


class ClassGuard(CanActivate):
    def can_activate(self, context):
        OrderRecorder.seen.append("class")
        return True


class MethodGuard(CanActivate):
    def can_activate(self, context):
        OrderRecorder.seen.append("method")
        return True


@use_guards(ClassGuard)
@injectable
class LayeredGuardService:
    @use_guards(MethodGuard)
    @add_action("layered")
    def layered(self):
        OrderRecorder.seen.append("handler")

    @add_action("class_only")
    def class_only(self):
        OrderRecorder.seen.append("handler")


@module(providers=[TitleService, GuardedService, LayeredGuardService])
class HooksModule(BaseModule):
    pass


@pytest.fixture
def host():
    return InMemoryHost()


@pytest.fixture
def core(host):
    return Core(HooksModule, settings=AppSettings(_env_file=None), host=host).bootstrap()


class TestRegistration:
    """Test cases for hook registration."""

    def test_actions_and_filters_registered(self, core, host):
        """Test that every declared hook is registered on the host."""
        assert host.hooks.has("init")
        assert host.hooks.has("the_title")
        assert len(host.hooks.callbacks("the_title")) == 3

    def test_action_receives_arguments(self, core, host):
        """Test that action handlers receive the hook arguments."""
        host.do_action("init", 1, "two")
        assert core.modules.get(TitleService).calls == [("init", (1, "two"))]

    def test_filters_run_by_priority(self, core, host):
        """Test that filters chain by priority."""
        assert host.apply_filters("the_title", "  hello ") == "HELLO!"


class TestChecks:
    """Test cases for non-fatal checks."""

    def test_failed_check_returns_configured_argument(self, core, host):
        """Test that a failed check passes the configured argument through."""
        assert host.apply_filters("pick_second", "first", "second") == "second"
        assert core.modules.get(TitleService).calls == []

    def test_failed_check_in_action(self, core, host):
        """Test that a failed check skips the action."""
        host.do_action("checked_action", "value")
        assert core.modules.get(TitleService).calls == []

    def test_failed_check_without_arguments(self, core, host):
        """Test that a check failing on a hook fired without arguments is a wiring error."""
        with pytest.raises(FinalizedResponse) as exc_info:
            host.do_action("no_args")

        assert exc_info.value.response.status_code == 500
        assert core.modules.get(TitleService).calls == []

    def test_failed_check_without_arguments_names_the_hook(self):
        """Test that the zero argument failure reports the hook and argument count."""
        host = InMemoryHost(json_requests=True)
        Core(HooksModule, settings=AppSettings(_env_file=None, debug=True), host=host).bootstrap()

        with pytest.raises(FinalizedResponse) as exc_info:
            host.do_action("no_args")

        assert "hook 'no_args' fired with 0 argument(s)" in exc_info.value.response.data["reason"]

    def test_out_of_range_argument(self, core, host):
        """Test that an out of range default argument is a wiring error."""
        with pytest.raises(FinalizedResponse) as exc_info:
            host.apply_filters("out_of_range", "value")

        assert exc_info.value.response.status_code == 500


class TestGuardsAndFailures:
    """Test cases for guards and exception handling."""

    def test_class_guard_rejects(self, core, host):
        """Test that a rejecting guard finalizes an unauthorized response."""
        with pytest.raises(FinalizedResponse) as exc_info:
            host.do_action("guarded")

        response = exc_info.value.response
        assert isinstance(response, HtmlResponse)
        assert response.status_code == 401

    def test_guard_sees_hook_context(self, core, host):
        """Test that guards can read the hook being executed."""
        RecordHook.seen = []
        host.do_action("recorded", "a", 1)
        assert RecordHook.seen == [("recorded", ("a", 1))]

    def test_class_guard_runs_before_method_guard(self, core, host):
        """Test that class-level guards run before method-level ones."""
        OrderRecorder.seen = []
        host.do_action("layered")
        assert OrderRecorder.seen == ["class", "method", "handler"]

    def test_class_guard_applies_to_every_hook(self, core, host):
        """Test that a class-level guard covers hooks without their own guards."""
        OrderRecorder.seen = []
        host.do_action("class_only")
        assert OrderRecorder.seen == ["class", "handler"]

    def test_method_exception_filter(self, core, host):
        """Test that a method-level filter formats the failure."""
        with pytest.raises(FinalizedResponse) as exc_info:
            host.do_action("filtered_failure")

        assert exc_info.value.response.data == {"handled": "Bad hook input"}
        assert exc_info.value.response.status_code == 400

    def test_filters_are_scoped_to_the_invocation(self, core, host):
        """Test that a hook's filters do not leak to the next hook."""
        with pytest.raises(FinalizedResponse):
            host.do_action("filtered_failure")
        with pytest.raises(FinalizedResponse) as exc_info:
            host.do_action("raw_failure")

        assert isinstance(exc_info.value.response, HtmlResponse)
        assert exc_info.value.response.status_code == 500

    def test_json_host(self):
        """Test that JSON hosts get JSON error responses."""
        host = InMemoryHost(json_requests=True)
        Core(HooksModule, settings=AppSettings(_env_file=None), host=host).bootstrap()

        with pytest.raises(FinalizedResponse) as exc_info:
            host.do_action("raw_failure")

        assert exc_info.value.response.data == {"message": "Internal Server Error", "statusCode": 500}
