"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production injects via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ up front
if _env_file and not os.getenv("TESTING"):
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment.

    BaseSettings populates fields from environment variables; static type
    checkers still treat them as constructor arguments, hence the ignore.
    """

    return AppSettings()  # type: ignore[call-arg]


def _build_store_settings() -> "StoreSettings":
    return StoreSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    service_name: str = Field(
        "portfolio-website",
        description="Service name reported by the health endpoint",
    )
    api_key_required: bool = Field(
        True,
        description="Whether admin endpoints require an X-API-Key header",
    )
    api_keys: str | None = Field(
        None,
        description="Comma-separated list of valid admin API keys",
    )

    contact_rate_limit_requests: int = Field(
        5,
        description="Contact form submissions allowed per window",
        ge=1,
    )
    contact_rate_limit_window_seconds: int = Field(
        3600,
        description="Contact form rate limit window in seconds",
        ge=1,
    )
    api_rate_limit_requests: int = Field(
        100,
        description="Public API requests (e.g., newsletter subscribe) allowed per window",
        ge=1,
    )
    api_rate_limit_window_seconds: int = Field(
        3600,
        description="Public API rate limit window in seconds",
        ge=1,
    )
    admin_rate_limit_requests: int = Field(
        50,
        description="Admin requests allowed per window (per client)",
        ge=1,
    )
    admin_rate_limit_window_seconds: int = Field(
        3600,
        description="Admin rate limit window in seconds",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class StoreSettings(BaseSettings):
    """Connection parameters for the shared rate limit store (Redis).

    Both url and token are optional: when either is missing, limiters run
    fail-open instead of refusing to start.
    """

    url: str | None = Field(
        None,
        description="Redis connection URL (redis:// or rediss://)",
    )
    token: str | None = Field(
        None,
        description="Access token used as the Redis password",
    )
    socket_timeout_seconds: float = Field(
        2.0,
        description="Per-command socket timeout in seconds",
        gt=0,
    )
    connect_timeout_seconds: float = Field(
        2.0,
        description="Connection timeout in seconds",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.

    Environments:
    - development: Local development (DEBUG=true)
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment (uses .env.production)
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=_build_app_settings)
    store: StoreSettings = Field(default_factory=_build_store_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
settings = Settings()
