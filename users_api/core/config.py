"""Application configuration using Pydantic Settings.

Values come from the process environment. Before the settings are built, an
optional env file is loaded: `.env.<APP_ENV>` if present, else `.env`, both
looked up at the project root. Variables already set in the environment win
over the file.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_ENV = os.getenv("APP_ENV", "development")

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def resolve_env_file(app_env: str, root: Path = PROJECT_ROOT) -> Path | None:
    """Pick the env file for ``app_env``, or None when neither candidate exists."""
    for name in (f".env.{app_env}", ".env"):
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None


def load_env_file(app_env: str = APP_ENV, root: Path = PROJECT_ROOT) -> Path | None:
    """Populate os.environ from the env file for ``app_env``.

    Nested BaseSettings groups do not share an ``env_file``, so the file is
    loaded into the environment once instead.

    Returns:
        The file that was loaded, if any.
    """
    env_file = resolve_env_file(app_env, root)
    if env_file is not None:
        load_dotenv(env_file, override=False)
    return env_file


load_env_file()


def _build_log_settings() -> "LogSettings":
    return LogSettings()


def _build_server_settings() -> "ServerSettings":
    return ServerSettings()


def _build_rate_limit_settings() -> "RateLimitSettings":
    return RateLimitSettings()


def _build_mongo_settings() -> "MongoSettings":
    return MongoSettings()


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field(
        "json",
        description="Log format: 'json' (structured) or 'plain'",
    )
    output: str = Field(
        "stdout",
        description="Log destination: 'stdout' or 'file'",
    )
    file_path: str | None = Field(
        None,
        description="Log file path when output is 'file'",
    )
    max_bytes: int = Field(
        10_000_000,
        description="Rotate the log file after this many bytes (0 disables rotation)",
    )
    backup_count: int = Field(
        5,
        description="Number of rotated log files to keep",
    )
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class ServerSettings(BaseSettings):
    """HTTP server and CORS configuration."""

    port: int = Field(
        5000,
        description="TCP port the HTTP server listens on",
    )
    host: str = Field(
        "0.0.0.0",
        description="Interface the HTTP server binds to",
    )
    cors_origin: str = Field(
        "http://localhost:3000",
        description="Origin allowed by CORS (credentials are allowed)",
    )
    trusted_client_header: str | None = Field(
        None,
        description=(
            "Header set by a trusted proxy carrying the client address "
            "(e.g. X-Forwarded-For). Unset means use the peer address."
        ),
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        case_sensitive=False,
    )


class RateLimitSettings(BaseSettings):
    """Sliding-window rate limiter configuration."""

    enabled: bool = Field(
        True,
        description="Enable the per-client rate limiting middleware",
    )
    window_ms: int = Field(
        900_000,
        description="Trailing window length in milliseconds",
        ge=1,
    )
    max_requests: int = Field(
        100,
        description="Maximum admitted requests per client within the window",
        ge=1,
    )
    include_headers: bool = Field(
        False,
        description="Include Retry-After and X-RateLimit-* headers on 429 responses",
    )

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
    )


class MongoSettings(BaseSettings):
    """MongoDB connection configuration."""

    uri: str = Field(
        "mongodb://localhost:27017",
        description="MongoDB connection string",
    )
    database: str = Field(
        "users_api",
        description="Database holding the users collection",
    )
    timeout_ms: int = Field(
        5000,
        description="Server selection timeout in milliseconds",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="MONGODB_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are invalid (for example
    a non-positive RATE_LIMIT_WINDOW_MS).
    """

    app_env: str = APP_ENV
    log: LogSettings = Field(default_factory=_build_log_settings)
    server: ServerSettings = Field(default_factory=_build_server_settings)
    rate_limit: RateLimitSettings = Field(default_factory=_build_rate_limit_settings)
    mongo: MongoSettings = Field(default_factory=_build_mongo_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
settings = Settings()
