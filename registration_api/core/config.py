"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file

Connection identifiers for the hosted backend (project URL, public and
service-role keys) and the mail relay credentials are only ever read from
the environment.
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

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

# Select the .env file for the current environment
_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_supabase_settings() -> "SupabaseSettings":
    """Build hosted backend settings from environment.

    Pydantic Settings (v2) can populate values from environment variables.
    However, static type checkers often treat required fields as required
    constructor arguments, which is not how BaseSettings is intended to be used.
    """

    return SupabaseSettings()  # type: ignore[call-arg]


def _build_mail_settings() -> "MailSettings":
    return MailSettings()  # type: ignore[call-arg]


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment.

    See _build_supabase_settings() for rationale about the type ignore.
    """

    return AppSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


class SupabaseSettings(BaseSettings):
    """Hosted database + object storage configuration.

    The same project exposes two credential tiers: the public (anon) key,
    restricted by row-level security, and the service-role key which is
    only used for the rate-limit count query.
    """

    backend: str = Field(
        "supabase",
        description="Store/storage backend: 'supabase' (hosted REST) or 'memory' (local only)",
    )
    url: str | None = Field(
        None,
        description="Project base URL, e.g. https://<project>.supabase.co",
    )
    anon_key: str | None = Field(
        None,
        description="Public, write-restricted API key (row-level security applies)",
    )
    service_role_key: str | None = Field(
        None,
        description="Elevated API key used only for the rate-limit count query",
    )
    registrations_table: str = Field(
        "registrations",
        description="Table holding registration rows",
    )
    storage_bucket: str = Field(
        "codigo-registrations",
        description="Bucket receiving payment-proof screenshots",
    )
    timeout_seconds: float = Field(
        10.0,
        description="Timeout for each REST call in seconds",
    )

    model_config = SettingsConfigDict(
        env_prefix="SUPABASE_",
        case_sensitive=False,
    )


class MailSettings(BaseSettings):
    """Mail relay configuration.

    ``EMAIL_USER`` and ``EMAIL_PASS`` are both required to send anything;
    their absence is a configuration error, never a retryable one.
    """

    backend: str = Field(
        "smtp",
        description="Mail backend: 'smtp' or 'memory' (local only)",
    )
    user: str | None = Field(
        None,
        description="Sender address, also used to authenticate against the relay",
    )
    password: str | None = Field(
        None,
        validation_alias="EMAIL_PASS",
        description="Sender credential (app password for the relay)",
    )
    from_name: str = Field(
        "Codigo 4.0 Info",
        description="Display name used in the From header",
    )
    smtp_host: str = Field(
        "smtp.gmail.com",
        description="SMTP relay host",
    )
    smtp_port: int = Field(
        465,
        description="SMTP relay port (465 implicit TLS, anything else STARTTLS)",
    )
    timeout_seconds: float = Field(
        20.0,
        description="Timeout for a single mail dispatch in seconds",
    )

    model_config = SettingsConfigDict(
        env_prefix="EMAIL_",
        case_sensitive=False,
        populate_by_name=True,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    event_name: str = Field(
        "Codigo 4.0",
        description="Event name used in confirmation emails when the client omits it",
    )
    organizer_name: str = Field(
        "Coding Club RSCOE",
        description="Organizer signature used in confirmation emails",
    )
    registration_limit: int = Field(
        2,
        description="Maximum successful registrations per email inside the window",
        ge=1,
    )
    registration_window_hours: int = Field(
        24,
        description="Rolling window for the per-email registration limit, in hours",
        ge=1,
    )
    max_proof_size_mb: int = Field(
        5,
        description="Maximum payment-proof upload size in megabytes",
        ge=1,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )
    cors_allow_origin: str = Field(
        "*",
        description="Value of Access-Control-Allow-Origin on registration endpoints",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="'json' or 'plain'")
    output: str = Field("stdout", description="'stdout' or 'file'")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        0,
        description="Rotate the log file after this many bytes (0 disables rotation)",
    )
    backup_count: int = Field(3, description="Rotated files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header carrying the correlation id",
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
    supabase: SupabaseSettings = Field(default_factory=_build_supabase_settings)
    mail: MailSettings = Field(default_factory=_build_mail_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
