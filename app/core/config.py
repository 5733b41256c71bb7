"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file

Rate limit settings are deliberately *not* cached on the global ``settings``
object: ``get_rate_limit_settings()`` rebuilds them from the environment on
every call so late overrides take effect.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.constants import (
    DEFAULT_FEEDBACK_CACHE_TTL_MS,
    DEFAULT_MODEL,
    DEFAULT_TRANSCRIBE_MODEL,
    FEEDBACK_MAX_OUTPUT_TOKENS,
    MAX_AUDIO_BYTES,
    MAX_AUDIO_DURATION_MS,
    MAX_REQUESTS,
    QUESTIONS_MAX_OUTPUT_TOKENS,
    STORAGE_WINDOW_MS,
)


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_llm_settings() -> "LLMSettings":
    """Build LLM settings from environment.

    Pydantic Settings (v2) can populate values from environment variables.
    However, static type checkers often treat required fields as required
    constructor arguments, which is not how BaseSettings is intended to be used.
    """

    return LLMSettings()  # type: ignore[call-arg]


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment."""

    return AppSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    """Build log settings from environment."""

    return LogSettings()  # type: ignore[call-arg]


class LLMSettings(BaseSettings):
    """Language model provider configuration.

    Validation of provider-specific requirements happens in the factory.
    """

    provider: str = Field(
        "openai",
        description="LLM provider name (currently only openai)",
    )
    model: str = Field(
        DEFAULT_MODEL,
        description="Chat model used for questions and feedback",
    )
    transcribe_model: str = Field(
        DEFAULT_TRANSCRIBE_MODEL,
        description="Model used for audio transcription",
    )
    api_key: str | None = Field(
        None,
        description="API key for the provider",
    )
    base_url: str | None = Field(
        None,
        description="Custom API endpoint (OpenAI-compatible gateways)",
    )
    timeout_seconds: float = Field(
        45.0,
        description="Request timeout in seconds",
    )
    questions_max_output_tokens: int = Field(
        QUESTIONS_MAX_OUTPUT_TOKENS,
        description="Output token cap when generating questions",
        ge=1,
    )
    feedback_max_output_tokens: int = Field(
        FEEDBACK_MAX_OUTPUT_TOKENS,
        description="Output token cap when assessing an answer",
        ge=1,
    )
    json_attempts: int = Field(
        2,
        description="Attempts made to obtain schema-valid JSON from the model",
        ge=1,
    )
    retry_delay_ms: int = Field(
        250,
        description="Base delay between JSON attempts (doubles each attempt)",
        ge=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    audio_enabled: bool = Field(
        False,
        description="Expose the audio transcription endpoint",
    )
    max_audio_bytes: int = Field(
        MAX_AUDIO_BYTES,
        description="Maximum accepted audio upload size in bytes",
        ge=1,
    )
    max_audio_duration_ms: int = Field(
        MAX_AUDIO_DURATION_MS,
        description="Maximum client-reported audio duration in milliseconds",
        ge=1,
    )
    feedback_cache_ttl_ms: int = Field(
        DEFAULT_FEEDBACK_CACHE_TTL_MS,
        description="How long identical answer assessments are served from cache",
        ge=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class RateLimitSettings(BaseSettings):
    """Server-side request throttling.

    Built fresh from the environment on each access via
    ``get_rate_limit_settings()``.
    """

    max_requests: int = Field(
        MAX_REQUESTS,
        description="Maximum requests per identifier per window",
        ge=1,
    )
    storage_window_ms: int = Field(
        STORAGE_WINDOW_MS,
        description="Fixed window length in milliseconds",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="SERVER_",
        case_sensitive=False,
        env_ignore_empty=True,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="json or plain")
    output: str = Field("stdout", description="stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate log file at this size (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, description="Rotated files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read/propagate the correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


def get_rate_limit_settings() -> RateLimitSettings:
    """Resolve rate limit settings from the current environment."""

    return RateLimitSettings()  # type: ignore[call-arg]


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are malformed.
    """

    app_env: str = APP_ENV
    llm: LLMSettings = Field(default_factory=_build_llm_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
