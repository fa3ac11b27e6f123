"""Unit tests for the declaration decorators."""

from modulepress.application.attributes_scanner import AttributeScanner
from modulepress.domain.decorators import (
    add_action,
    add_filter,
    catch_exception,
    custom_post_type,
    delete,
    get,
    global_module,
    injectable,
    module,
    post,
    render,
    rest_controller,
    use_checks,
    use_guards,
    use_interceptors,
    use_pipes,
    view_compose,
    view_directive,
)
from modulepress.domain.enums import HookType, RequestMethod
from modulepress.domain.exceptions import NotFoundError
from modulepress.domain.interfaces import BaseModule


class GuardA:
    pass


class GuardB:
    pass


class TestModuleDecorators:
    """Test cases for @module and @global_module."""

    def test_module_descriptor(self):
        """Test that @module stamps its composition."""

        class Service:
            pass

        @module(providers=[Service], exports=[Service])
        class ServiceModule(BaseModule):
            pass

        descriptor = AttributeScanner.get_module_descriptor(ServiceModule)
        assert AttributeScanner.has_module(ServiceModule)
        assert descriptor.providers == [Service]
        assert descriptor.exports == [Service]
        assert descriptor.imports == []

    def test_module_is_not_inherited(self):
        """Test that a subclass of a module is not a module itself."""

        @module()
        class ParentModule(BaseModule):
            pass

        class ChildModule(ParentModule):
            pass

        assert AttributeScanner.has_module(ParentModule)
        assert not AttributeScanner.has_module(ChildModule)

    def test_global_module(self):
        """Test that @global_module marks the class."""

        @global_module
        @module()
        class SharedModule(BaseModule):
            pass

        assert AttributeScanner.is_global(SharedModule)


class TestInjectable:
    """Test cases for @injectable."""

    def test_without_parentheses(self):
        """Test the bare decorator form."""

        @injectable
        class Service:
            pass

        assert AttributeScanner.is_injectable(Service)

    def test_with_parentheses(self):
        """Test the called decorator form."""

        @injectable()
        class Service:
            pass

        assert AttributeScanner.is_injectable(Service)

    def test_undecorated(self):
        """Test that plain classes are not injectable."""

        class Plain:
            pass

        assert not AttributeScanner.is_injectable(Plain)


class TestRouteDecorators:
    """Test cases for the controller and verb decorators."""

    def test_rest_controller_namespace(self):
        """Test that @rest_controller stores its namespace."""

        @rest_controller("users")
        class UsersController:
            pass

        assert AttributeScanner.is_rest_controller(UsersController)
        assert AttributeScanner.scan_rest_controller(UsersController).namespace == "users"

    def test_stacked_routes_keep_declaration_order(self):
        """Test that stacked verbs are scanned top to bottom."""

        class Controller:
            @get(":id")
            @post(":id")
            @delete()
            def handle(self):
                return None

        routes = AttributeScanner.scan_routes(Controller.handle)
        assert [(route.method, route.path) for route in routes] == [
            (RequestMethod.GET, ":id"),
            (RequestMethod.POST, ":id"),
            (RequestMethod.DELETE, ""),
        ]

    def test_render(self):
        """Test that @render stores its view."""

        class Controller:
            @render("users.show")
            def show(self):
                return {}

        assert AttributeScanner.scan_render(Controller.show).view == "users.show"


class TestEnhancerDecorators:
    """Test cases for guards, interceptors, pipes and filters."""

    def test_guards_order_on_one_decorator(self):
        """Test that guards keep their argument order."""

        @use_guards(GuardA, GuardB)
        class Controller:
            pass

        assert AttributeScanner.scan_use_guards(cls=Controller) == [GuardA, GuardB]

    def test_stacked_guards_keep_declaration_order(self):
        """Test that stacked decorators are scanned top to bottom."""

        @use_guards(GuardA)
        @use_guards(GuardB)
        class Controller:
            pass

        assert AttributeScanner.scan_use_guards(cls=Controller) == [GuardA, GuardB]

    def test_class_entries_come_first(self):
        """Test that class-level entries precede method-level ones."""

        @use_interceptors("class_interceptor")
        @use_pipes("class_pipe")
        class Controller:
            @use_interceptors("method_interceptor")
            @use_pipes("method_pipe")
            def handle(self):
                return None

        assert AttributeScanner.scan_use_interceptors(cls=Controller, method=Controller.handle) == [
            "class_interceptor",
            "method_interceptor",
        ]
        assert AttributeScanner.scan_use_pipes(cls=Controller, method=Controller.handle) == [
            "class_pipe",
            "method_pipe",
        ]

    def test_catch_exception(self):
        """Test that @catch_exception restricts the filter to its types."""

        @catch_exception(NotFoundError)
        class NotFoundFilter:
            pass

        class OpenFilter:
            pass

        assert AttributeScanner.scan_catch_exceptions(NotFoundFilter) == [NotFoundError]
        assert AttributeScanner.scan_catch_exceptions(NotFoundFilter()) == [NotFoundError]
        assert AttributeScanner.scan_catch_exceptions(OpenFilter) == []


class TestHookDecorators:
    """Test cases for hook, check and view decorators."""

    def test_action_and_filter(self):
        """Test that hooks are stored with their type and priority."""

        class Listener:
            @add_action("init")
            @add_filter("the_title", priority=5)
            def handle(self, *args):
                return None

        hooks = AttributeScanner.scan_hooks(Listener.handle)
        assert [(hook.hook_type, hook.hook_name, hook.priority) for hook in hooks] == [
            (HookType.ACTION, "init", 10),
            (HookType.FILTER, "the_title", 5),
        ]

    def test_use_checks(self):
        """Test that checks keep the default return argument."""

        class Listener:
            @use_checks([GuardA], default_return_arg=1)
            def handle(self, *args):
                return None

        (meta,) = AttributeScanner.scan_use_checks(Listener.handle)
        assert meta.checks == [GuardA]
        assert meta.default_return_arg == 1

    def test_view_decorators(self):
        """Test that view composers and directives are stored."""

        class Views:
            @view_compose("users.show")
            def compose(self, view, context):
                return {}

            @view_directive("upper")
            def upper(self, value):
                return value.upper()

        assert AttributeScanner.scan_view_composers(Views.compose)[0].view == "users.show"
        assert AttributeScanner.scan_view_directives(Views.upper)[0].name == "upper"


class TestCustomPostType:
    """Test cases for @custom_post_type."""

    def test_derived_labels(self):
        """Test that labels are derived from the name."""

        @custom_post_type("book")
        class Book:
            pass

        meta = AttributeScanner.scan_custom_post_type(Book)
        assert AttributeScanner.is_custom_post_type(Book)
        assert (meta.name, meta.singular, meta.plural) == ("book", "Book", "Books")

    def test_explicit_labels(self):
        """Test that explicit labels and args are kept."""

        @custom_post_type("person", singular="Person", plural="People", args={"public": True})
        class Person:
            pass

        meta = AttributeScanner.scan_custom_post_type(Person)
        assert (meta.singular, meta.plural) == ("Person", "People")
        assert meta.args == {"public": True}
