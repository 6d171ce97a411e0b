"""Application configuration via Pydantic Settings.

All configuration is loaded from environment variables following 12-factor principles.
"""

import re

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = Field(
        description="SQLAlchemy async connection string (postgresql+asyncpg://...)",
    )
    database_schema: str | None = Field(
        default=None,
        description="PostgreSQL schema for isolated environments (e.g., pr_42)",
    )
    database_pool_timeout: float = Field(
        default=10.0,
        description="Seconds to wait for a pooled connection before failing",
        gt=0,
    )

    @field_validator("database_schema")
    @classmethod
    def validate_database_schema(cls, v: str | None) -> str | None:
        if v is None:
            return None
        if not re.match(r"^[a-z_][a-z0-9_]{0,62}$", v):
            msg = "Invalid database_schema: must match ^[a-z_][a-z0-9_]{0,62}$"
            raise ValueError(msg)
        return v

    # Credentials and tokens
    token_bytes: int = Field(
        default=40,
        ge=32,
        description="Random bytes of entropy in each issued bearer token",
    )
    password_min_length: int = Field(
        default=8,
        ge=1,
        description="Minimum accepted password length",
    )

    # User listing
    default_page_size: int = Field(default=10, gt=0, description="Default page size for GET /users")
    max_page_size: int = Field(default=100, gt=0, description="Upper bound for the per_page query parameter")
    search_page_size: int = Field(default=20, gt=0, description="Page size for POST /users/search")
    activity_limit: int = Field(default=50, gt=0, description="Maximum rows returned by GET /users/activity")

    # Statistics windows
    stats_recent_days: int = Field(default=7, gt=0, description="Window for counting recently created users")
    stats_active_days: int = Field(default=30, gt=0, description="Window for counting recently active users")

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_dir: str | None = Field(
        default=None,
        description="Directory for log files (enables file logging with 24h rotation when set)",
    )

    # CORS
    cors_origins: str = Field(
        default="",
        description="Comma-separated list of allowed CORS origins (must be explicitly configured)",
    )
    cors_origin_regex: str = Field(
        default="",
        description="Regex pattern for allowed CORS origins",
    )

    environment: str = Field(
        default="production",
        description="Deployment environment name (e.g. production, dev, staging)",
    )

    # API
    api_prefix: str = Field(
        default="/api",
        description="Prefix under which all API routes are mounted",
    )
    rate_limit_per_minute: int = Field(
        default=200,
        description="Maximum API requests per minute per IP address",
        gt=0,
    )
    trusted_proxy_headers: str = Field(
        default="CF-Connecting-IP,X-Forwarded-For,X-Real-IP",
        description="Comma-separated list of HTTP headers to check for real client IP, in priority order",
    )

    # Seeding
    seed_admin_email: str = Field(default="admin@example.com", description="Email of the seeded admin account")
    seed_admin_password: str = Field(
        default="AdminPassword123",
        description="Password of the seeded admin account (change it after first login)",
    )
    seed_admin_first_name: str = Field(default="Admin", description="First name of the seeded admin account")
    seed_admin_last_name: str = Field(default="User", description="Last name of the seeded admin account")

    @field_validator("api_prefix")
    @classmethod
    def validate_api_prefix(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if v and not v.startswith("/"):
            msg = "api_prefix must start with '/'"
            raise ValueError(msg)
        return v

    @property
    def trusted_proxy_header_list(self) -> list[str]:
        """Parse trusted proxy headers string into a list."""
        if not self.trusted_proxy_headers.strip():
            return []
        return [h.strip() for h in self.trusted_proxy_headers.split(",") if h.strip()]

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        if not self.cors_origins.strip():
            return []
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()  # type: ignore[call-arg]
