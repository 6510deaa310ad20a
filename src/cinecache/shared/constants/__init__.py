"""
Cinecache Constants Module

Centralized constants for the cache layer. All magic values are defined
here to keep a single source of truth.
"""

from .cache import (
    BASE_DAY,
    BASE_HOUR,
    BASE_MINUTE,
    BASE_WEEK,
    GROUP_DEFAULT_TIERS,
    TTL_TIER_SECONDS,
    CacheGroup,
    CacheKeys,
    CacheValidationConstants,
    TTLTier,
)
from .entities import (
    EntityType,
    EventSource,
    ListingDefaults,
    SortDirection,
    SortKeys,
)
from .logging import LogConfig, LogLevels
from .system import Backends, CLIDefaults, FileSystem, WarmerDefaults

__all__ = [
    "BASE_DAY",
    "BASE_HOUR",
    "BASE_MINUTE",
    "BASE_WEEK",
    "GROUP_DEFAULT_TIERS",
    "TTL_TIER_SECONDS",
    "Backends",
    "CLIDefaults",
    "CacheGroup",
    "CacheKeys",
    "CacheValidationConstants",
    "EntityType",
    "EventSource",
    "FileSystem",
    "ListingDefaults",
    "LogConfig",
    "LogLevels",
    "SortDirection",
    "SortKeys",
    "TTLTier",
    "WarmerDefaults",
]
