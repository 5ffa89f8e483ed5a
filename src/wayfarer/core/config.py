"""Configuration management for Wayfarer.

This module uses Pydantic Settings to load and validate configuration from
environment variables and .env files. Configuration is loaded at application
startup and is immutable during runtime. A missing refresh-token secret is a
startup error.
"""

import ipaddress
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ACCESS_SECRET = "change-me-in-production-use-openssl-rand-hex-32"


class Settings(BaseSettings):
    """Application configuration settings.

    Settings are loaded from environment variables and .env files.
    All configuration values are validated at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="WAYFARER_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    app_name: str = "Wayfarer"
    app_version: str = "0.1.0"
    environment: Literal["development", "production", "testing"] = "development"
    debug: bool = False
    api_prefix: str = "/api/v1"
    frontend_url: str = "http://localhost:3000"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 1

    # Database Settings
    database_url: str = "sqlite+aiosqlite:///./data/wayfarer.db"
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout: int = 30
    db_pool_recycle: int = 3600
    db_echo: bool = False

    # Token Settings
    jwt_access_secret: str = Field(
        default=DEFAULT_ACCESS_SECRET,
        description="Secret used to sign access tokens",
    )
    jwt_refresh_secret: str = Field(
        ...,
        description="Secret used to sign refresh tokens; must differ from the access secret",
    )
    access_token_expire_minutes: int = 15
    refresh_token_expire_days: int = 7

    # Password Hashing (Argon2id)
    password_time_cost: int = 3
    password_memory_cost: int = 65536  # KiB
    password_parallelism: int = 4

    # Credential Lifecycle
    email_verification_expire_hours: int = 24
    password_reset_expire_minutes: int = 15

    # Login Lockout
    login_max_attempts: int = 5
    login_lockout_minutes: int = 15
    login_attempt_retention_hours: int = 24
    login_rate_limit_per_minute: int = 5
    trusted_proxies: list[str] = Field(
        default=[],
        description="Proxy addresses or CIDR ranges whose forwarding headers are trusted",
    )

    # Scheduled Cleanup
    cleanup_enabled: bool = True
    cleanup_interval_seconds: int = 3600
    cleanup_daily_interval_seconds: int = 86400

    # OAuth Providers
    google_client_id: str | None = None
    google_client_secret: str | None = None
    google_callback_url: str = "http://localhost:8000/api/v1/auth/google/callback"
    facebook_app_id: str | None = None
    facebook_app_secret: str | None = None
    facebook_callback_url: str = "http://localhost:8000/api/v1/auth/facebook/callback"
    microsoft_client_id: str | None = None
    microsoft_client_secret: str | None = None
    microsoft_tenant_id: str = "common"
    microsoft_callback_url: str = "http://localhost:8000/api/v1/auth/microsoft/callback"
    apple_client_id: str | None = None
    oauth_state_expire_minutes: int = 10
    oauth_http_timeout: float = 10.0

    # Email Delivery
    email_provider: Literal["smtp", "log"] = "log"
    email_from_address: str = "no-reply@wayfarer.local"
    email_from_name: str = "Wayfarer"
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = False
    smtp_use_ssl: bool = False

    # CORS Settings
    cors_origins: list[str] = Field(default=["http://localhost:3000"])
    cors_allow_credentials: bool = True

    # Logging Settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator("trusted_proxies", mode="before")
    @classmethod
    def parse_trusted_proxies(cls, v: str | list[str]) -> list[str]:
        """Parse trusted proxies from comma-separated string or list and validate each entry."""
        if isinstance(v, str):
            v = [entry.strip() for entry in v.split(",") if entry.strip()]
        for entry in v:
            try:
                ipaddress.ip_network(entry, strict=False)
            except ValueError as e:
                raise ValueError(f"Invalid trusted proxy: {entry}") from e
        return v

    @field_validator("jwt_refresh_secret")
    @classmethod
    def validate_refresh_secret(cls, v: str) -> str:
        """Reject a blank refresh secret."""
        if not v or not v.strip():
            raise ValueError("WAYFARER_JWT_REFRESH_SECRET must be configured")
        return v

    @field_validator("frontend_url")
    @classmethod
    def strip_frontend_url(cls, v: str) -> str:
        """Drop a trailing slash so links can be joined safely."""
        return v.rstrip("/")

    @model_validator(mode="after")
    def validate_secrets(self) -> "Settings":
        """Ensure access and refresh tokens are signed with different keys."""
        if self.jwt_refresh_secret == self.jwt_access_secret:
            raise ValueError(
                "WAYFARER_JWT_REFRESH_SECRET must differ from WAYFARER_JWT_ACCESS_SECRET"
            )
        if self.is_production and self.jwt_access_secret == DEFAULT_ACCESS_SECRET:
            raise ValueError("WAYFARER_JWT_ACCESS_SECRET must be set in production")
        return self

    @model_validator(mode="after")
    def validate_sqlite_workers(self) -> "Settings":
        """Validate that SQLite is not used with multiple workers."""
        if self.workers > 1 and self.database_url.startswith("sqlite"):
            raise ValueError(
                "SQLite does not support multiple worker processes. "
                f"Requested {self.workers} workers, but SQLite requires workers=1."
            )
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == "testing"

    @property
    def database_url_sync(self) -> str:
        """Get synchronous database URL for migrations."""
        url = self.database_url
        if url.startswith("sqlite+aiosqlite"):
            return url.replace("sqlite+aiosqlite", "sqlite")
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql")
        return url


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Settings are loaded once at startup. Construction raises a
    ``pydantic.ValidationError`` when required secrets are missing.

    Returns:
        Settings: Cached application settings instance.
    """
    return Settings()
