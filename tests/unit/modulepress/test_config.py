"""Unit tests for AppSettings."""

from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError

from modulepress.config import AppSettings


class TestAppSettings:
    """Test cases for AppSettings."""

    def test_defaults(self, monkeypatch):
        """Test the default settings."""
        for name in ("DEBUG", "REST_NAMESPACE", "LOG_LEVEL", "VIEWS_PATH", "PRELOAD_SINGLETONS"):
            monkeypatch.delenv(f"MODULEPRESS_{name}", raising=False)

        settings = AppSettings(_env_file=None)

        assert settings.debug is False
        assert settings.rest_namespace == "app/v1"
        assert settings.views_path is None
        assert settings.verbose_exceptions == ["InternalServerError", "ModuleResolutionError"]
        assert settings.log_level == "INFO"
        assert settings.preload_singletons is False

    def test_environment_variables(self, monkeypatch):
        """Test that MODULEPRESS_* variables are read."""
        monkeypatch.setenv("MODULEPRESS_DEBUG", "true")
        monkeypatch.setenv("MODULEPRESS_REST_NAMESPACE", "/shop/v2/")
        monkeypatch.setenv("MODULEPRESS_VIEWS_PATH", "/srv/views")
        monkeypatch.setenv("MODULEPRESS_VERBOSE_EXCEPTIONS", '["NotFoundError"]')

        settings = AppSettings(_env_file=None)

        assert settings.debug is True
        assert settings.rest_namespace == "shop/v2"
        assert settings.views_path == Path("/srv/views")
        assert settings.verbose_exceptions == ["NotFoundError"]

    def test_env_file(self, tmp_path):
        """Test that values can come from a .env file."""
        env_file = tmp_path / ".env"
        env_file.write_text("MODULEPRESS_LOG_LEVEL=debug\nUNRELATED=1\n")

        settings = AppSettings(_env_file=env_file)

        assert settings.log_level == "DEBUG"

    def test_invalid_log_level(self):
        """Test that unknown log levels are rejected."""
        with pytest.raises(PydanticValidationError):
            AppSettings(_env_file=None, log_level="loud")
