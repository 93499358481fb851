"""Application settings and configuration.

This module defines all configuration options for the Spatial CAPTCHA service.
Settings are loaded from environment variables with sensible defaults.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Spatial CAPTCHA API", alias="APP_NAME")
    app_version: str = Field(default="2.0.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./spatial_captcha.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Quota accounting
    free_tier_quota: int = Field(default=1000, alias="FREE_TIER_QUOTA")

    # Challenge session and pass-token lifetimes
    session_ttl_seconds: int = Field(default=300, alias="SESSION_TTL_SECONDS")
    session_sweep_seconds: float = Field(default=60.0, alias="SESSION_SWEEP_SECONDS")
    pass_token_ttl_seconds: int = Field(default=180, alias="PASS_TOKEN_TTL_SECONDS")
    pass_token_sweep_seconds: float = Field(default=30.0, alias="PASS_TOKEN_SWEEP_SECONDS")

    # Maximum angular error (degrees) accepted by /verify
    tolerance_degrees: float = Field(default=45.0, alias="TOLERANCE_DEGREES")

    # Expiring store backend; "redis" shares sessions across worker processes
    store_backend: Literal["memory", "redis"] = Field(default="memory", alias="STORE_BACKEND")
    redis_url: str = Field(default="redis://localhost:6379", alias="REDIS_URL")

    # CORS configuration for browser widget access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()
