"""Unit tests for domain models."""

import re

import pytest
from pydantic import ValidationError as PydanticValidationError

from modulepress.domain.enums import Lifetime, RequestMethod
from modulepress.domain.models import (
    Body,
    DependencyMetadata,
    ExactRule,
    HtmlResponse,
    Inject,
    ModuleDescriptor,
    Param,
    Provider,
    Query,
    RegexRule,
    Registration,
    RestRequest,
    RestResponse,
    Route,
    WildcardRule,
)


class TestProvider:
    """Test cases for the Provider model."""

    def test_for_class(self):
        """Test that for_class uses the class as token and implementation."""

        class UsersService:
            pass

        provider = Provider.for_class(UsersService)
        assert provider.provide is UsersService
        assert provider.use_class is UsersService
        assert provider.scope == Lifetime.SINGLETON

    def test_strategy_flags(self):
        """Test the has_usable_* flags of each strategy."""
        factory_provider = Provider(provide="mailer", use_factory=lambda: object())
        assert factory_provider.has_usable_factory()
        assert not factory_provider.has_usable_class()
        assert not factory_provider.has_usable_value()
        assert factory_provider.strategy_count() == 1

    def test_explicit_none_value_is_a_strategy(self):
        """Test that use_value=None set explicitly counts as a strategy."""
        provider = Provider(provide="nothing", use_value=None)
        assert provider.has_usable_value()
        assert provider.strategy_count() == 1

    def test_no_strategy(self):
        """Test that a bare provider has no strategy."""
        assert Provider(provide="empty").strategy_count() == 0

    def test_multiple_strategies_counted(self):
        """Test that every declared strategy is counted."""
        provider = Provider(provide="both", use_class=dict, use_value={})
        assert provider.strategy_count() == 2

    def test_provider_is_immutable(self):
        """Test that providers cannot be modified."""
        provider = Provider(provide="config", use_value={})
        with pytest.raises(PydanticValidationError):
            provider.scope = Lifetime.TRANSIENT


class TestModuleDescriptor:
    """Test cases for the ModuleDescriptor model."""

    def test_defaults(self):
        """Test that every list defaults to empty."""
        descriptor = ModuleDescriptor()
        assert descriptor.imports == []
        assert descriptor.providers == []
        assert descriptor.controllers == []
        assert descriptor.entities == []
        assert descriptor.exports == []


class TestRoute:
    """Test cases for the Route model."""

    def test_pattern_from_placeholders(self):
        """Test that placeholders become named groups."""
        route = Route(method=RequestMethod.GET, path="posts/:post_id/comments/:id")
        assert route.pattern == "posts/(?P<post_id>[^/]+)/comments/(?P<id>[^/]+)"
        assert route.placeholders == ["post_id", "id"]

    def test_static_path(self):
        """Test that a path without placeholders is left unchanged."""
        route = Route(method=RequestMethod.POST, path="users")
        assert route.pattern == "users"
        assert route.placeholders == []

    def test_pattern_matches_one_segment(self):
        """Test that a placeholder never spans several segments."""
        pattern = re.compile("^" + Route(method=RequestMethod.GET, path="users/:id").pattern + "$")
        assert pattern.match("users/42").group("id") == "42"
        assert pattern.match("users/42/posts") is None


class TestParameterMarkers:
    """Test cases for the Inject and request parameter markers."""

    def test_inject_positional_token(self):
        """Test that Inject accepts its token positionally."""
        assert Inject("smtp_mailer").token == "smtp_mailer"

    def test_request_parameter_defaults(self):
        """Test the defaults of a request parameter marker."""
        marker = Body("user.name")
        assert marker.key == "user.name"
        assert marker.rules == []
        assert marker.casting is True
        assert marker.pipes == []

    def test_empty_key_binds_section(self):
        """Test that a marker without key binds the whole section."""
        assert Query().key == ""
        assert Param(casting=False).casting is False


class TestRestRequest:
    """Test cases for the RestRequest model."""

    def test_header_lookup_is_case_insensitive(self):
        """Test that get_header lowercases the requested name."""
        request = RestRequest(headers={"content-type": "application/json"})
        assert request.get_header("Content-Type") == "application/json"
        assert request.get_header("X-Missing", "none") == "none"

    def test_json_params(self):
        """Test that only object bodies are exposed as JSON params."""
        assert RestRequest(json_body={"a": 1}).get_json_params() == {"a": 1}
        assert RestRequest(json_body=[1, 2]).get_json_params() == {}
        assert RestRequest().get_json_params() == {}


class TestResponses:
    """Test cases for the response models."""

    def test_rest_response_fluent_setters(self):
        """Test that setters chain and mutate the response."""
        response = RestResponse()
        response.set_data({"id": 1}).set_status(201).set_header("X-Id", "1")
        assert response.data == {"id": 1}
        assert response.status_code == 201
        assert response.headers == {"X-Id": "1"}

    def test_html_response_defaults(self):
        """Test the defaults of an HTML response."""
        response = HtmlResponse(html="<p>hi</p>")
        assert response.status_code == 200
        assert response.html == "<p>hi</p>"


class TestMiddlewareRules:
    """Test cases for the middleware rule models."""

    def test_rules_default_to_every_method(self):
        """Test that rules match every method by default."""
        assert WildcardRule().methods == ["*"]
        assert ExactRule(path="users").methods == ["*"]
        assert RegexRule(pattern=re.compile("users")).methods == ["*"]

    def test_exact_rule_methods(self):
        """Test that explicit methods are kept."""
        assert ExactRule(path="users", methods=["GET", "POST"]).methods == ["GET", "POST"]


class TestDependencyMetadata:
    """Test cases for the DependencyMetadata model."""

    def test_defaults(self):
        """Test that a fresh entry is not cached."""
        metadata = DependencyMetadata(registration=Registration(token="a", builder=lambda: 1))
        assert metadata.is_cached is False
        assert metadata.cached_instance is None
        assert metadata.resolution_count == 0
