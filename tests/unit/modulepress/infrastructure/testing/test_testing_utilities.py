"""Unit tests for testing utilities."""

from typing import Annotated

import pytest

from modulepress.application import Core
from modulepress.config import AppSettings
from modulepress.domain import BaseModule, Inject, Lifetime, get, injectable, module, rest_controller
from modulepress.infrastructure.host.in_memory import InMemoryHost
from modulepress.infrastructure.rendering.jinja import Jinja2Renderer
from modulepress.infrastructure.testing.utilities import TestingModuleBuilder, create_testing_core


class MailService:
    def send(self, to):
        return f"sent to {to}"


class FakeMailService:
    def send(self, to):
        return f"faked for {to}"


@rest_controller("mail")
class MailController:
    def __init__(self, mail: MailService):
        self.mail = mail

    @get()
    def send(self):
        return {"result": self.mail.send("ada@example.com")}


@module(providers=[MailService], controllers=[MailController])
class MailModule(BaseModule):
    pass


class TestTestingModuleBuilder:
    """Test cases for TestingModuleBuilder."""

    def test_compile_without_overrides(self):
        """Test that compile boots on an in-memory host."""
        core = TestingModuleBuilder(MailModule).compile()

        assert isinstance(core, Core)
        assert isinstance(core.host, InMemoryHost)
        assert core.host.dispatch("GET", "/app/v1/mail").data == {"result": "sent to ada@example.com"}

    def test_override_with_value(self):
        """Test that a value override replaces the provider."""
        core = TestingModuleBuilder(MailModule).override_provider(MailService, value=FakeMailService()).compile()
        assert core.host.dispatch("GET", "/app/v1/mail").data == {"result": "faked for ada@example.com"}

    def test_override_with_factory(self):
        """Test that a factory override is used."""
        fake = FakeMailService()
        core = TestingModuleBuilder(MailModule).override_provider(MailService, factory=lambda: fake).compile()
        assert core.modules.get(MailService) is fake

    def test_override_with_class(self):
        """Test that a class override keeps the given scope."""
        core = (
            TestingModuleBuilder(MailModule)
            .override_provider(MailService, use_class=FakeMailService, scope=Lifetime.TRANSIENT)
            .compile()
        )
        fetch = core.modules.resolver.fetch
        assert isinstance(fetch(MailService), FakeMailService)
        assert fetch(MailService) is not fetch(MailService)

    @pytest.mark.parametrize(
        "kwargs",
        [{}, {"value": 1, "factory": lambda: 1}, {"factory": lambda: 1, "use_class": FakeMailService}],
    )
    def test_exactly_one_strategy(self, kwargs):
        """Test that overrides need exactly one strategy."""
        with pytest.raises(ValueError):
            TestingModuleBuilder(MailModule).override_provider(MailService, **kwargs)

    def test_none_is_a_valid_value(self):
        """Test that None can be provided as a value."""
        core = TestingModuleBuilder(MailModule).override_provider(MailService, value=None).compile()
        assert core.modules.get(MailService) is None

    def test_with_settings_and_renderer(self):
        """Test that settings and renderer can be replaced."""
        renderer = Jinja2Renderer()
        core = (
            TestingModuleBuilder(MailModule)
            .with_settings(AppSettings(_env_file=None, rest_namespace="api"))
            .with_renderer(renderer)
            .compile()
        )

        assert core.renderer is renderer
        assert core.host.dispatch("GET", "/api/mail").status_code == 200

    def test_is_not_collected(self):
        """Test that pytest does not collect the builder."""
        assert TestingModuleBuilder.__test__ is False


class TestCreateTestingCore:
    """Test cases for create_testing_core."""

    def test_settings_keywords(self):
        """Test that keywords become settings."""
        core = create_testing_core(MailModule, debug=True, rest_namespace="v2")

        assert core.settings.debug is True
        assert core.host.dispatch("GET", "/v2/mail").status_code == 200

    def test_inject_marker_override(self):
        """Test that string tokens can be overridden too."""

        @injectable
        class Greeter:
            def __init__(self, name: Annotated[str, Inject("APP_NAME")]):
                self.name = name

        @module(providers=[Greeter, {"provide": "APP_NAME", "use_value": "real"}])
        class GreeterModule(BaseModule):
            pass

        core = TestingModuleBuilder(GreeterModule).override_provider("APP_NAME", value="test").compile()
        assert core.modules.get(Greeter).name == "test"
