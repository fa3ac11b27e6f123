from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Runtime settings of an application, read from ``MODULEPRESS_*`` variables.

    Attributes:
        debug: Expose reasons and, for verbose exception types, file/line/filter/trace.
        rest_namespace: Prefix every controller namespace is mounted under.
        views_path: Template directory of the Jinja2 renderer.
        verbose_exceptions: Exception class names receiving full debug details.
        log_level: Level of the ``modulepress`` logger hierarchy.
        preload_singletons: Build every singleton at the end of boot instead of on first use.
    """

    model_config = SettingsConfigDict(
        env_prefix="MODULEPRESS_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    debug: bool = False
    rest_namespace: str = "app/v1"
    views_path: Optional[Path] = None
    verbose_exceptions: List[str] = Field(
        default_factory=lambda: ["InternalServerError", "ModuleResolutionError"]
    )
    log_level: str = "INFO"
    preload_singletons: bool = False

    @field_validator("rest_namespace")
    @classmethod
    def strip_slashes(cls, v: str) -> str:
        return v.strip("/")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"}:
            raise ValueError(f"Unknown log level: {v}")
        return level
