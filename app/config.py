"""
Application Configuration Module

This module uses Pydantic Settings for type-safe configuration management.

WHY Pydantic Settings?
======================
1. Type Safety: All configuration values are validated against their types
2. Environment Variables: Automatically loads from environment variables
3. .env Support: Can load from .env files for local development
4. Validation: Catches configuration errors at startup, not runtime

PATTERN: Settings Singleton
===========================
We create a single Settings instance that's cached using @lru_cache.
All parts of the app (services, routers, the rate limiter) share it.

Usage:
    from app.config import get_settings

    settings = get_settings()
    print(settings.default_daily_limit)
"""

from datetime import date, datetime, timezone, tzinfo
from functools import lru_cache
from typing import List
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    SECURITY NOTE:
    ==============
    - secret_key has a validator; placeholder values raise at startup
    - bcrypt_rounds can be lowered for tests, never below 4
    """

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------
    app_name: str = Field(
        default="ShardoX API",
        description="Application name displayed in docs and logs"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode (detailed errors, auto-reload)"
    )
    api_version: str = Field(
        default="v1",
        description="API version for URL routing"
    )
    host: str = Field(
        default="0.0.0.0",
        description="Host to bind the server to"
    )
    port: int = Field(
        default=3000,
        description="Port to bind the server to"
    )
    environment: str = Field(
        default="development",
        description="Environment: development, staging, production"
    )
    base_url: str = Field(
        default="http://localhost:3000",
        description="Public base URL used to build short links"
    )

    # -------------------------------------------------------------------------
    # Database Settings
    # -------------------------------------------------------------------------
    database_url: str = Field(
        default="sqlite:///./shardox.db",
        description="SQLAlchemy connection URL"
    )
    db_pool_size: int = Field(
        default=5,
        description="Number of permanent database connections"
    )
    db_max_overflow: int = Field(
        default=10,
        description="Maximum additional connections during high load"
    )
    db_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Lock/statement timeout for persistence operations"
    )

    # -------------------------------------------------------------------------
    # Security Settings
    # -------------------------------------------------------------------------
    secret_key: str = Field(
        default="REPLACE_WITH_YOUR_GENERATED_SECRET_KEY",
        description="Secret key for signing JWT tokens"
    )
    access_token_expire_minutes: int = Field(
        default=60 * 24,
        description="Access token lifetime in minutes"
    )
    refresh_token_expire_days: int = Field(
        default=7,
        description="Refresh token lifetime in days"
    )
    bcrypt_rounds: int = Field(
        default=12,
        ge=4,
        le=31,
        description="bcrypt cost factor for passwords and API keys"
    )
    api_key_header: str = Field(
        default="X-API-Key",
        description="Header name for API key authentication"
    )
    allowed_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins"
    )

    # -------------------------------------------------------------------------
    # Quota & Usage Settings
    # -------------------------------------------------------------------------
    default_daily_limit: int = Field(
        default=1000,
        ge=0,
        description="Daily request ceiling assigned to new identities"
    )
    quota_timezone: str = Field(
        default="UTC",
        description="IANA timezone whose calendar day bounds the daily quota"
    )
    default_key_rate_limit: int = Field(
        default=100,
        ge=1,
        description="Requests per minute recorded on new API keys"
    )
    usage_log_retention: int = Field(
        default=1000,
        ge=1,
        description="Number of most recent usage log entries kept"
    )

    # -------------------------------------------------------------------------
    # Rate Limiting Settings (per client IP, independent of the daily quota)
    # -------------------------------------------------------------------------
    rate_limit_enabled: bool = Field(
        default=True,
        description="Enable IP-based rate limiting"
    )
    rate_limit_storage_uri: str = Field(
        default="memory://",
        description="slowapi/limits storage backend URI"
    )
    rate_limit_default: str = Field(
        default="100 per 15 minutes",
        description="Default limit applied to every route"
    )
    rate_limit_write: str = Field(
        default="30/minute",
        description="Limit for key management writes"
    )

    # -------------------------------------------------------------------------
    # Logging Settings
    # -------------------------------------------------------------------------
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------
    @property
    def allowed_origins_list(self) -> List[str]:
        """Parse comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.allowed_origins.split(",")]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def quota_tz(self) -> tzinfo:
        """Timezone object for the quota day boundary."""
        if self.quota_timezone.upper() == "UTC":
            return timezone.utc
        return ZoneInfo(self.quota_timezone)

    def quota_today(self) -> date:
        """
        Current calendar day in the quota timezone.

        Counters reset when this value changes, so every quota decision
        must go through here rather than date.today().
        """
        return datetime.now(self.quota_tz).date()

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log_level is a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        """
        Validate that secret_key is not a placeholder value.

        The application will fail to start if SECRET_KEY is not properly set.

        Raises:
            ValueError: If secret key is a placeholder or too short
        """
        placeholder_indicators = [
            "REPLACE_WITH",
            "change-me",
            "your-secret",
            "generate-with",
        ]

        for indicator in placeholder_indicators:
            if indicator.lower() in v.lower():
                raise ValueError(
                    "SECRET_KEY contains a placeholder value. "
                    "Generate a secure key with: openssl rand -hex 32"
                )

        if len(v) < 32:
            raise ValueError(
                "SECRET_KEY must be at least 32 characters long. "
                "Generate a secure key with: openssl rand -hex 32"
            )

        return v

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is a known value."""
        valid_envs = {"development", "staging", "production", "test"}
        if v.lower() not in valid_envs:
            raise ValueError(f"environment must be one of {valid_envs}")
        return v.lower()

    @field_validator("quota_timezone")
    @classmethod
    def validate_quota_timezone(cls, v: str) -> str:
        """Reject timezone names the tz database does not know."""
        if v.upper() == "UTC":
            return "UTC"
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown quota_timezone: {v}") from e
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    First call creates and validates the Settings instance; subsequent
    calls return the same object. Tests mutate attributes on this shared
    instance to toggle behaviour.

    Returns:
        Cached Settings instance
    """
    return Settings()
