"""Application configuration management."""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    All settings can be overridden via environment variables.
    Example: DATABASE_URL, JWT_ACCESS_SECRET, APP_URL
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    database_url: str = Field(
        default="sqlite+aiosqlite:///./authgate.db",
        description="Database connection URL"
    )

    debug: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    api_prefix: str = Field(
        default="/api/v1",
        description="API URL prefix"
    )

    app_url: str = Field(
        default="http://localhost:3000",
        description="Base application URL used for OAuth redirects and absolute links"
    )

    cors_origins: List[str] = Field(
        default=["http://localhost:3000"],
        description="CORS allowed origins"
    )

    # JWT settings
    jwt_access_secret: str = Field(
        default="change-this-access-secret-in-production",
        description="Secret used to sign access tokens"
    )

    jwt_refresh_secret: str = Field(
        default="change-this-refresh-secret-in-production",
        description="Secret used to sign refresh tokens, must differ from the access secret"
    )

    jwt_algorithm: str = Field(
        default="HS256",
        description="JWT algorithm for token signing"
    )

    access_token_expire_minutes: int = Field(
        default=15,
        description="Access token expiration time in minutes"
    )

    refresh_token_expire_days: int = Field(
        default=7,
        description="Refresh token expiration time in days"
    )

    # Abuse control
    rate_limit_window_seconds: int = Field(default=60)
    rate_limit_max_requests: int = Field(default=5)
    lockout_max_attempts: int = Field(default=5)
    lockout_duration_minutes: int = Field(default=15)

    # Cookies and redirects
    refresh_cookie_name: str = Field(default="refreshToken")
    cookie_secure: bool = Field(
        default=False,
        description="Send the refresh cookie with the Secure attribute"
    )
    signin_path: str = Field(default="/auth/signin")
    dashboard_path: str = Field(default="/dashboard")

    # OAuth
    google_client_id: str = Field(default="")
    google_client_secret: str = Field(default="")

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    log_format: str = Field(
        default="json",
        description="Log format (json or text)"
    )

    log_file: Optional[str] = Field(
        default="logs/authgate.log",
        description="Rotating log file path, disabled when empty"
    )

    # Celery
    celery_broker_url: str = Field(
        default="redis://localhost:6379/0",
        description="Celery broker URL"
    )

    celery_result_backend: str = Field(
        default="redis://localhost:6379/0",
        description="Celery result backend URL"
    )

    sweep_interval_seconds: int = Field(
        default=3600,
        description="Interval between storage sweeps of expired auth state"
    )

    @model_validator(mode="after")
    def check_distinct_secrets(self) -> "Settings":
        """Refuse configurations where one secret could forge both token kinds."""
        if self.jwt_access_secret == self.jwt_refresh_secret:
            raise ValueError("jwt_refresh_secret must differ from jwt_access_secret")
        return self

    @property
    def database_is_sqlite(self) -> bool:
        """Check if using SQLite database."""
        return self.database_url.startswith("sqlite")

    @property
    def oauth_redirect_uri(self) -> str:
        """Absolute callback URL registered with the OAuth provider."""
        return f"{self.app_url.rstrip('/')}{self.api_prefix}/auth/google"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings instance.

    Returns:
        Singleton settings instance
    """
    return Settings()
