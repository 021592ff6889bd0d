"""Centralized configuration management using Pydantic Settings.

This module provides typed configuration for all gateway settings,
loaded from environment variables with sensible defaults.

Usage:
    from gateway.config import get_settings
    settings = get_settings()
    runs_dir = settings.archive.resolved_dir
"""

import os
from datetime import timedelta, timezone
from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _parse_flag(v):
    if isinstance(v, str):
        return v.lower() in ("1", "true", "yes")
    return bool(v)


class ArchiveSettings(BaseSettings):
    """Run artifact archive configuration."""

    model_config = SettingsConfigDict(env_prefix="ARCHIVE_", extra="ignore", populate_by_name=True)

    runs_dir: str = Field(
        default="./tmp/runs",
        validation_alias="RUNS_DIR",
        description="Directory holding archived run artifacts",
    )
    utc_offset_hours: int = Field(default=9, ge=-12, le=14, description="Fixed offset for artifact timestamps")
    caller_hash_salt: str = Field(default="", description="Salt mixed into caller address hashes")

    @property
    def resolved_dir(self) -> str:
        """Absolute archive directory; relative paths are taken from the cwd."""
        if os.path.isabs(self.runs_dir):
            return self.runs_dir
        return os.path.join(os.getcwd(), self.runs_dir)

    @property
    def tz(self) -> timezone:
        return timezone(timedelta(hours=self.utc_offset_hours))


class SandboxSettings(BaseSettings):
    """External sandbox service configuration."""

    model_config = SettingsConfigDict(env_prefix="SANDBOX_", extra="ignore", populate_by_name=True)

    url: str = Field(
        default="http://localhost:3000",
        validation_alias="SANDBOX_SERVICE_URL",
        description="Sandbox base URL",
    )
    execution_timeout_ms: int = Field(default=10000, gt=0, description="Execution budget sent to the sandbox")
    request_timeout_sec: float = Field(default=15.0, gt=0, description="Client-side HTTP timeout")
    health_timeout_sec: float = Field(default=2.0, gt=0, description="Timeout for sandbox health checks")

    @model_validator(mode="after")
    def check_timeouts(self):
        if self.request_timeout_sec * 1000 <= self.execution_timeout_ms:
            raise ValueError("request_timeout_sec must exceed the sandbox execution budget")
        return self

    @property
    def base_url(self) -> str:
        return self.url.rstrip("/")


class AdminSettings(BaseSettings):
    """Admin authentication configuration."""

    model_config = SettingsConfigDict(env_prefix="ADMIN_", extra="ignore")

    password_hash: str = Field(default="", description="SHA-256 hex digest of the admin password")
    token_ttl_sec: int = Field(default=86400, gt=0, description="Session token lifetime")
    sweep_interval_sec: float = Field(default=3600.0, gt=0, description="Expired token sweep interval")

    @field_validator("password_hash", mode="before")
    @classmethod
    def normalize_hash(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @property
    def configured(self) -> bool:
        return bool(self.password_hash)


class ServerSettings(BaseSettings):
    """HTTP listener configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8081)


class CorsSettings(BaseSettings):
    """CORS configuration."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    origins_raw: str = Field(
        default="*",
        validation_alias="CORS_ORIGINS",
    )

    @property
    def origins(self) -> list[str]:
        """Parse comma-separated origins into list."""
        return [o.strip() for o in self.origins_raw.split(",") if o.strip()]

    @property
    def allow_credentials(self) -> bool:
        """Credentials not allowed with wildcard origins."""
        return self.origins != ["*"]


class DebugSettings(BaseSettings):
    """Debug flags configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    request: bool = Field(default=False, alias="request_debug")

    @field_validator("*", mode="before")
    @classmethod
    def parse_bool(cls, v):
        return _parse_flag(v)


class Settings:
    """Main gateway settings combining all configuration sections.

    This is not a BaseSettings subclass to avoid env var conflicts.
    Each subsetting is loaded independently with its own prefix.
    """

    def __init__(self) -> None:
        self.archive = ArchiveSettings()
        self.sandbox = SandboxSettings()
        self.admin = AdminSettings()
        self.server = ServerSettings()
        self.cors = CorsSettings()
        self.debug = DebugSettings()


@lru_cache
def get_settings() -> Settings:
    """Get cached Settings instance (singleton pattern)."""
    return Settings()


def clear_settings_cache() -> None:
    """Clear cached settings (useful for testing)."""
    get_settings.cache_clear()
