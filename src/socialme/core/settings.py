"""Application settings and configuration.

This module defines all configuration options for the SocialMe Stage application.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="SocialMe Stage", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./socialme.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Redis configuration for real-time notification delivery
    redis_url: str = Field(default="redis://localhost:6379", alias="REDIS_URL")
    notifications_realtime_enabled: bool = Field(
        default=False,
        alias="NOTIFICATIONS_REALTIME_ENABLED",
    )
    notifications_channel_prefix: str = Field(
        default="notificaciones",
        alias="NOTIFICATIONS_CHANNEL_PREFIX",
    )

    # Activity reminder scheduler
    scheduler_enabled: bool = Field(default=True, alias="SCHEDULER_ENABLED")
    scheduler_interval_seconds: float = Field(default=60.0, alias="SCHEDULER_INTERVAL_SECONDS")
    scheduler_tolerance_seconds: float | None = Field(
        default=None,
        alias="SCHEDULER_TOLERANCE_SECONDS",
    )

    # Media storage
    media_default_content_type: str = Field(
        default="image/jpeg",
        alias="MEDIA_DEFAULT_CONTENT_TYPE",
    )

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
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

    @property
    def scheduler_tolerance(self) -> float:
        """Return the half-width of the reminder trigger band in seconds.

        Defaults to one scheduler period so a single skipped tick is absorbed.
        """
        if self.scheduler_tolerance_seconds is not None:
            return max(self.scheduler_tolerance_seconds, self.scheduler_interval_seconds / 2)
        return self.scheduler_interval_seconds


settings = Settings()
