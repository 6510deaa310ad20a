"""Database and logging configuration models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from cinecache.shared.constants import FileSystem


class DatabaseSettings(BaseModel):
    """Relational content store configuration."""

    url: str = Field(default=FileSystem.CONTENT_DB_URL, description="SQLAlchemy database URL")
    echo: bool = Field(default=False, description="Log emitted SQL")


class LoggingSettings(BaseModel):
    """Logging configuration.

    This class manages the log level, the optional JSON log file and
    whether the console uses rich output.
    """

    level: str = Field(default="INFO", description="Logging level")
    file: str | None = Field(default=None, description="JSON log file path")
    rich_console: bool = Field(default=True, description="Use rich console output")


__all__ = [
    "DatabaseSettings",
    "LoggingSettings",
]
