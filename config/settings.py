"""
Gateway settings loaded from environment variables.

Uses Pydantic Settings for type-safe configuration with validation.
All settings can be overridden via ``DUCKDB_GATEWAY_*`` environment variables
or a .env file; the CLI overrides a subset of them.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Gateway configuration.

    A file database is opened read-only unless ``readwrite`` is set; the
    in-memory database is always read-write.
    """

    model_config = SettingsConfigDict(
        env_prefix="DUCKDB_GATEWAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_path: Path | None = Field(
        default=None,
        description="DuckDB database file (in-memory database when unset)",
    )
    readwrite: bool = Field(
        default=False,
        description="Open the database file read-write instead of read-only",
    )
    disable_external_access: bool = Field(
        default=False,
        description="Open DuckDB with enable_external_access=false",
    )

    # Server
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=3001, ge=1, le=65535, description="Bind port")
    service_name: str = Field(default="duckdb_gateway", description="Service name in logs")
    allowed_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="CORS origins (credentials are never allowed)",
    )

    # Connection pool
    pool_max_size: int = Field(
        default=10,
        ge=1,
        le=256,
        description="Maximum concurrent DuckDB connections",
    )
    pool_acquire_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        le=300,
        description="How long a request waits for a free connection",
    )

    # Query limits
    default_row_limit: int = Field(
        default=10_000,
        ge=1,
        description="Rows returned when the caller gives no limit",
    )
    max_row_limit: int = Field(
        default=100_000,
        ge=1,
        description="Ceiling all caller-supplied limits are clamped to",
    )
    query_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        le=3600,
        description="Statement execution timeout",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    @model_validator(mode="after")
    def _check_row_limits(self) -> "Settings":
        if self.default_row_limit > self.max_row_limit:
            raise ValueError("default_row_limit must not exceed max_row_limit")
        return self

    @property
    def is_readonly(self) -> bool:
        return self.database_path is not None and not self.readwrite


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance with all configuration loaded.

    Example:
        >>> settings = get_settings()
        >>> settings.max_row_limit
        100000
    """
    return Settings()
