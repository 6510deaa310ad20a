"""Configuration for cinecache.

Settings are built from (lowest to highest precedence) model defaults,
``CINECACHE_*`` environment variables (optionally from ``.env``) and
``config/cinecache.toml``.
"""

from .loader import get_config, load_settings, reload_config, reset_config
from .models import (
    CacheSettings,
    DatabaseSettings,
    LoggingSettings,
    Settings,
    WarmerSettings,
)

__all__ = [
    "CacheSettings",
    "DatabaseSettings",
    "LoggingSettings",
    "Settings",
    "WarmerSettings",
    "get_config",
    "load_settings",
    "reload_config",
    "reset_config",
]
