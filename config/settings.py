"""
Configuration management for the Redis session store.

This module provides configuration loading and validation using Pydantic settings.
Every store option can be supplied as a keyword argument or through
environment variables prefixed with ``SESSION_STORE_`` (or .env files).

Options:
- prefix / ttl / disable_ttl: key namespace and expiry policy
- url / socket / host / port / client_options: how the Redis client is reached
- db / password: logical database and authentication, applied on every connect
- unref / max_attempts / socket_timeout: client lifecycle and transport behaviour
"""

import os
from enum import Enum
from pathlib import Path
from typing import Any, Optional, List, Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_PREFIX = "sess:"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 6379


class Environment(str, Enum):
    """Supported deployment environments."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


def _detect_environment() -> Environment:
    """
    Detect the current environment from the ENVIRONMENT variable.

    Returns:
        Environment: The detected environment, defaults to DEVELOPMENT if not set.
    """
    env_value = os.environ.get("ENVIRONMENT", "development").lower().strip()
    try:
        return Environment(env_value)
    except ValueError:
        return Environment.DEVELOPMENT


def _get_env_files(environment: Environment) -> Tuple[str, ...]:
    """
    Get the list of .env files to load for the given environment.

    The base .env file is loaded first, then the environment-specific file
    overrides it.
    """
    env_file_map = {
        Environment.DEVELOPMENT: ".env.development",
        Environment.STAGING: ".env.staging",
        Environment.PRODUCTION: ".env.production",
    }
    return (".env", env_file_map.get(environment, ".env.development"))


class Settings(BaseSettings):
    """
    Session store settings.

    Resolved once when the store is constructed and never mutated afterwards.
    The Redis client object and the serializer are not settings; they are
    passed to the store constructor directly.
    """

    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        validation_alias="ENVIRONMENT",
        description="Deployment environment (development, staging, production)"
    )

    # Key namespace and expiry policy
    prefix: str = Field(
        default=DEFAULT_PREFIX,
        description="String prepended to every session ID to form the Redis key"
    )
    ttl: Optional[int] = Field(
        default=None,
        ge=1,
        description="Fixed TTL in seconds; overrides the cookie maxAge when set"
    )
    disable_ttl: bool = Field(
        default=False,
        description="Store sessions without expiry; touch() becomes a no-op"
    )

    # Client acquisition
    url: Optional[str] = Field(
        default=None,
        description="Redis URL (redis://, rediss:// or unix://)"
    )
    socket: Optional[str] = Field(
        default=None,
        description="Path of a Redis unix domain socket"
    )
    host: Optional[str] = Field(
        default=None,
        description="Redis host; 127.0.0.1 when only the port is given"
    )
    port: Optional[int] = Field(
        default=None,
        ge=1,
        le=65535,
        description="Redis port; 6379 when only the host is given"
    )
    client_options: dict[str, Any] = Field(
        default_factory=dict,
        description="Extra keyword arguments passed through to the redis client"
    )

    # Secondary setup
    db: Optional[int] = Field(
        default=None,
        ge=0,
        description="Logical database index, re-selected on every reconnect"
    )
    password: Optional[str] = Field(
        default=None,
        repr=False,
        description="Password used to authenticate every connection"
    )
    unref: bool = Field(
        default=False,
        description="Leave the client open when the store disconnects"
    )
    max_attempts: int = Field(
        default=2,
        ge=1,
        le=10,
        description="Attempts per command made by clients the store creates"
    )
    socket_timeout: Optional[float] = Field(
        default=None,
        gt=0,
        description="Socket timeout in seconds for clients the store creates"
    )

    # Observability
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    otel_endpoint: Optional[str] = Field(
        default=None,
        description="OpenTelemetry collector endpoint URL"
    )
    otel_service_name: str = Field(
        default="redis-session-store",
        description="Service name for OpenTelemetry traces"
    )

    model_config = SettingsConfigDict(
        env_prefix="SESSION_STORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        frozen=True,
        extra="ignore"
    )

    @field_validator("prefix", mode="before")
    @classmethod
    def validate_prefix(cls, v: Optional[str]) -> str:
        """A null prefix falls back to the default; an empty string is kept."""
        if v is None:
            return DEFAULT_PREFIX
        return v

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate that url uses a scheme redis-py understands."""
        if v is None:
            return v
        v = v.strip()
        if not v.startswith(("redis://", "rediss://", "unix://")):
            raise ValueError("url must start with redis://, rediss:// or unix://")
        return v

    @field_validator("socket", "host")
    @classmethod
    def validate_not_blank(cls, v: Optional[str]) -> Optional[str]:
        """Reject blank strings so they cannot shadow a lower-priority option."""
        if v is not None and not v.strip():
            raise ValueError("must not be empty")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log_level is a valid logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.strip().upper()
        if v not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(sorted(valid_levels))}")
        return v


class ConfigurationError(Exception):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, missing_fields: Optional[List[str]] = None,
                 invalid_fields: Optional[dict] = None):
        self.message = message
        self.missing_fields = missing_fields or []
        self.invalid_fields = invalid_fields or {}
        super().__init__(self.format_error_message())

    def format_error_message(self) -> str:
        """Format a descriptive error message listing all issues."""
        parts = [self.message]

        if self.missing_fields:
            parts.append(f"\nMissing required fields: {', '.join(self.missing_fields)}")

        if self.invalid_fields:
            invalid_parts = [f"  - {field}: {error}" for field, error in self.invalid_fields.items()]
            parts.append("\nInvalid field values:\n" + "\n".join(invalid_parts))

        return "".join(parts)


def create_settings_for_environment(environment: Optional[Environment] = None) -> Settings:
    """
    Create Settings for a specific environment.

    Args:
        environment: Optional environment override. If not provided, detected from
                    the ENVIRONMENT variable.

    Returns:
        Settings: Validated settings for the specified environment.

    Raises:
        ConfigurationError: If settings are invalid.
    """
    if environment is None:
        environment = _detect_environment()

    env_files = _get_env_files(environment)
    existing_env_files = [f for f in env_files if Path(f).exists()] or list(env_files)

    try:
        class EnvironmentSettings(Settings):
            model_config = SettingsConfigDict(
                env_prefix="SESSION_STORE_",
                env_file=tuple(existing_env_files),
                env_file_encoding="utf-8",
                case_sensitive=False,
                populate_by_name=True,
                frozen=True,
                extra="ignore"
            )

        return EnvironmentSettings()
    except Exception as e:
        missing_fields = []
        invalid_fields = {}

        if hasattr(e, "errors"):
            for error in e.errors():
                field_name = ".".join(str(loc) for loc in error.get("loc", []))
                if error.get("type", "") == "missing":
                    missing_fields.append(field_name)
                else:
                    invalid_fields[field_name] = error.get("msg", str(error))

        raise ConfigurationError(
            f"Failed to load session store configuration for environment '{environment.value}'",
            missing_fields=missing_fields,
            invalid_fields=invalid_fields
        ) from e


# Global settings cache
_settings_cache: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get the session store settings singleton.

    Settings are loaded once and cached for subsequent calls.

    Raises:
        ConfigurationError: If settings are invalid.
    """
    global _settings_cache

    if _settings_cache is None:
        _settings_cache = create_settings_for_environment()

    return _settings_cache


def clear_settings_cache() -> None:
    """
    Clear the settings cache.

    This is primarily useful for testing to allow reloading settings
    with different environment variables.
    """
    global _settings_cache
    _settings_cache = None
