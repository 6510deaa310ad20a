"""Configuration domain models."""

from __future__ import annotations

from .app_settings import DatabaseSettings, LoggingSettings
from .cache_settings import CacheSettings
from .settings import Settings
from .warmer_settings import WarmerSettings

__all__ = [
    "CacheSettings",
    "DatabaseSettings",
    "LoggingSettings",
    "Settings",
    "WarmerSettings",
]
