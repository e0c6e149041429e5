"""identitycore settings.

Every value can be set through an ``IDENTITYCORE_``-prefixed environment
variable or a .env file. Invalid combinations fail at startup, not on first
use.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SECRET_KEY = "change-me-in-production-use-openssl-rand-hex-32"


class Settings(BaseSettings):
    """Validated service configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="IDENTITYCORE_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "identitycore"
    app_version: str = "0.1.0"
    environment: Literal["development", "production", "testing"] = "development"
    debug: bool = False
    api_prefix: str = "/api/v1"
    app_url: str = Field(
        default="http://localhost:3000",
        description="Frontend base URL used to build verification and reset links",
    )

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 1

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/identitycore.db"
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout: int = 30
    db_pool_recycle: int = 3600
    db_echo: bool = False

    # Token Signing Settings
    secret_key: str = Field(
        default=DEFAULT_SECRET_KEY,
        description="Secret key for JWT token signing",
    )
    secret_key_id: str = Field(
        default="v1",
        description="Key id (kid) stamped on newly issued tokens",
    )
    previous_secret_keys: dict[str, str] = Field(
        default_factory=dict,
        description="Retired signing keys by kid, still accepted for verification",
    )
    access_token_expire_minutes: int = 15
    refresh_token_expire_days: int = 30

    # Ephemeral Token Settings
    password_reset_token_expire_minutes: int = 10
    verification_token_expire_minutes: int | None = None  # None = never expires

    # Password Hashing Settings (Argon2id)
    password_hash_time_cost: int = 3
    password_hash_memory_cost: int = 65536  # KiB
    password_hash_parallelism: int = 4
    password_min_length: int = 6

    # Email Settings
    email_provider: Literal["console", "smtp"] = "console"
    email_from_address: str = "no-reply@localhost"
    email_from_name: str = "AI-Tutor"
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = True
    smtp_use_ssl: bool = False
    smtp_timeout: int = 10

    # CORS Settings
    cors_origins: list[str] = Field(default=["http://localhost:3000", "http://localhost:5173"])
    cors_allow_credentials: bool = True

    # Logging Settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    # Bootstrap Admin Settings
    admin_email: str | None = Field(
        default=None,
        description="Email for the initial admin account (auto-created on startup if set)",
    )
    admin_password: str | None = Field(
        default=None,
        description="Password for the initial admin account (auto-created on startup if set)",
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Accept a comma-separated string as well as a list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator("password_hash_time_cost", "password_hash_parallelism")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Argon2 parameters must be at least 1."""
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        return self.environment == "testing"

    @model_validator(mode="after")
    def validate_production_secret(self) -> "Settings":
        """Refuse to run production with the default or a short signing key."""
        if self.is_production:
            if self.secret_key == DEFAULT_SECRET_KEY:
                raise ValueError("IDENTITYCORE_SECRET_KEY must be set in production")
            if len(self.secret_key) < 32:
                raise ValueError("IDENTITYCORE_SECRET_KEY must be at least 32 characters")
        if self.secret_key_id in self.previous_secret_keys:
            raise ValueError("secret_key_id must not also appear in previous_secret_keys")
        return self

    @model_validator(mode="after")
    def validate_sqlite_workers(self) -> "Settings":
        """SQLite allows a single writer, so it cannot back several worker processes."""
        if self.workers > 1 and self.database_url.startswith("sqlite"):
            raise ValueError(
                "SQLite does not support multiple worker processes. "
                f"Requested {self.workers} workers, but SQLite requires workers=1."
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first call."""
    return Settings()
