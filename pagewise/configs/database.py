"""
Database configuration settings.

Manages the SQLAlchemy connection URL for the relational store.
SQLite (aiosqlite) is the default; a postgresql+asyncpg URL is also accepted.

Dependencies: pydantic, pydantic_settings
System role: Database connection configuration for ORM
"""

from pydantic import Field

from pagewise.configs.base import BaseSettings, settings_config


class DatabaseSettings(BaseSettings):
    """Relational store configuration."""

    model_config = settings_config("DB")

    url: str = Field(
        default="sqlite+aiosqlite:///./pagewise.db",
        description="SQLAlchemy async database URL",
    )
    pool_size: int = Field(default=10, description="Connection pool size (PostgreSQL only)")
    max_overflow: int = Field(default=20, description="Maximum overflow connections (PostgreSQL only)")
    pool_timeout: int = Field(default=30, description="Connection pool timeout in seconds")
    echo_sql: bool = Field(default=False, description="Echo SQL statements to logs")

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured URL targets SQLite."""
        return self.url.startswith("sqlite")
