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


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    rate_limit_enabled: bool = Field(
        True,
        description="Enable tiered admission control on every endpoint",
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )
    cors_allow_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="Origins allowed by the CORS middleware",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration consumed by ``configure_logging``."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log output: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(10 * 1024 * 1024, description="Rotate after this many bytes (0 disables)")
    backup_count: int = Field(5, description="Rotated files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class StoreSettings(BaseSettings):
    """Document store configuration.

    The ``memory`` backend keeps the hierarchy in process and is meant for
    tests and local development only.
    """

    backend: str = Field("mongo", description="Store backend: mongo or memory")
    mongo_uri: str = Field(
        "mongodb://localhost:27017",
        description="MongoDB connection string",
    )
    database: str = Field("coursehub", description="MongoDB database name")
    server_selection_timeout_ms: int = Field(
        5000,
        description="How long the driver waits for a reachable server",
    )

    model_config = SettingsConfigDict(
        env_prefix="STORE_",
        case_sensitive=False,
    )


class CaptchaSettings(BaseSettings):
    """Captcha provider configuration."""

    provider: str = Field("recaptcha", description="Captcha provider: recaptcha or disabled")
    secret: str | None = Field(None, description="Server-side secret for the provider")
    verify_url: str = Field(
        "https://www.google.com/recaptcha/api/siteverify",
        description="Token verification endpoint",
    )
    timeout_seconds: float = Field(10.0, description="Request timeout in seconds")

    model_config = SettingsConfigDict(
        env_prefix="CAPTCHA_",
        case_sensitive=False,
    )


class EmailSettings(BaseSettings):
    """Email delivery provider configuration."""

    provider: str = Field("sendgrid", description="Email provider name")
    api_key: str | None = Field(None, description="Provider API key")
    api_url: str = Field(
        "https://api.sendgrid.com/v3/mail/send",
        description="Provider send endpoint",
    )
    from_address: str = Field(
        "no-reply@coursehub.local",
        description="Sender address for verification emails",
    )
    subject: str = Field(
        "Your verification code",
        description="Subject line for verification emails",
    )
    timeout_seconds: float = Field(10.0, description="Request timeout in seconds")

    model_config = SettingsConfigDict(
        env_prefix="EMAIL_",
        case_sensitive=False,
    )


class VerificationSettings(BaseSettings):
    """One-time code lifecycle configuration."""

    ttl_seconds: int = Field(900, ge=1, description="Validity window of an issued code")
    cooldown_seconds: int = Field(
        900,
        ge=0,
        description="Window during which re-requesting a code is a no-op",
    )
    code_length: int = Field(6, ge=4, le=12, description="Number of digits per code")

    model_config = SettingsConfigDict(
        env_prefix="VERIFICATION_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if required settings are invalid.

    Environments:
    - development: Local development (DEBUG=true)
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment (uses .env.production)
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=AppSettings)
    log: LogSettings = Field(default_factory=LogSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    captcha: CaptchaSettings = Field(default_factory=CaptchaSettings)
    email: EmailSettings = Field(default_factory=EmailSettings)
    verification: VerificationSettings = Field(default_factory=VerificationSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
