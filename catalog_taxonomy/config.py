"""Application configuration using Pydantic Settings.

Reads configuration from environment variables with sensible defaults.
All secrets should be provided via environment variables.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Application
    # =========================================================================
    environment: Literal["prod", "staging", "dev"] = Field(
        default="dev",
        description="Environment name",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    # =========================================================================
    # Document store
    # =========================================================================
    store_backend: Literal["postgres", "memory"] = Field(
        default="postgres",
        description="Backing store for taxonomy documents",
    )
    store_read_retry_attempts: int = Field(
        default=3,
        ge=1,
        description="Attempts for store reads before giving up",
    )
    store_read_retry_min_wait: float = Field(
        default=0.2,
        ge=0.0,
        description="Minimum backoff between read retries in seconds",
    )
    store_read_retry_max_wait: float = Field(
        default=2.0,
        ge=0.0,
        description="Maximum backoff between read retries in seconds",
    )

    # =========================================================================
    # Database (PostgreSQL)
    # =========================================================================
    db_user: str = Field(
        default="catalog_app",
        description="Database user",
    )
    db_password: str = Field(
        default="",
        description="Database password",
    )
    db_name: str = Field(
        default="catalog",
        description="Database name",
    )
    db_connection_name: str = Field(
        default="",
        description="Cloud SQL connection name (project:region:instance)",
    )
    db_host: str = Field(
        default="localhost",
        description="Database host (for local development)",
    )
    db_port: int = Field(
        default=5432,
        description="Database port (for local development)",
    )
    db_pool_size: int = Field(
        default=5,
        description="Database connection pool size",
    )
    db_pool_max_overflow: int = Field(
        default=10,
        description="Max overflow connections beyond pool size",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def database_url(self) -> str:
        """Build database URL based on environment.

        With a Cloud SQL connection name, uses the Unix socket.
        In local dev, uses TCP connection.
        """
        if self.db_connection_name:
            socket_path = f"/cloudsql/{self.db_connection_name}"
            return (
                f"postgresql+asyncpg://{self.db_user}:{self.db_password}"
                f"@/{self.db_name}?host={socket_path}"
            )
        return (
            f"postgresql+asyncpg://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    # =========================================================================
    # Hierarchy cache
    # =========================================================================
    cache_path: str = Field(
        default="./.cache/hierarchy_cache.sqlite3",
        description="SQLite file backing the hierarchy cache",
    )
    cache_ttl_seconds: float = Field(
        default=3600.0,
        gt=0,
        description="Age after which a cached sibling list is treated as a miss",
    )

    # =========================================================================
    # Taxonomy
    # =========================================================================
    name_max_length: int = Field(
        default=30,
        ge=1,
        description="Maximum length of a taxonomy node name",
    )
    modules_config_path: str | None = Field(
        default=None,
        description="Optional YAML file declaring additional catalog modules",
    )

    # =========================================================================
    # Logging
    # =========================================================================
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
    )
    log_json: bool = Field(
        default=True,
        description="Output logs as JSON",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Singleton instance for convenience
settings = get_settings()
