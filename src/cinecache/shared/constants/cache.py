"""
Cache Configuration Constants

This module provides the TTL tiers, cache group names and key templates
shared by every component of the cache layer.
"""

from __future__ import annotations

from enum import Enum

# Base time units for TTL calculations
BASE_SECOND = 1
BASE_MINUTE = 60 * BASE_SECOND
BASE_HOUR = 60 * BASE_MINUTE
BASE_DAY = 24 * BASE_HOUR
BASE_WEEK = 7 * BASE_DAY


class TTLTier(str, Enum):
    """Named expiry durations reused across cache groups."""

    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"
    DAILY = "daily"
    WEEKLY = "weekly"

    @property
    def seconds(self) -> int:
        """Return the tier duration in seconds."""
        return TTL_TIER_SECONDS[self]


TTL_TIER_SECONDS: dict[TTLTier, int] = {
    TTLTier.SHORT: 5 * BASE_MINUTE,  # 300
    TTLTier.MEDIUM: 30 * BASE_MINUTE,  # 1800
    TTLTier.LONG: BASE_HOUR,  # 3600
    TTLTier.DAILY: BASE_DAY,  # 86400
    TTLTier.WEEKLY: BASE_WEEK,  # 604800
}


class CacheGroup:
    """Cache group names (coarse invalidation namespaces)."""

    MOVIES = "movies"
    TV_SERIES = "tv_series"
    PEOPLE = "people"
    DRAMAS = "dramas"
    SEARCH = "search"
    RECOMMENDATIONS = "recommendations"
    FRAGMENTS = "fragments"
    API_RESPONSES = "api_responses"
    DEFAULT = "default"

    ALL: tuple[str, ...] = (
        MOVIES,
        TV_SERIES,
        PEOPLE,
        DRAMAS,
        SEARCH,
        RECOMMENDATIONS,
        FRAGMENTS,
        API_RESPONSES,
    )

    # Groups cleared by a global content sync
    CONTENT: tuple[str, ...] = (
        MOVIES,
        TV_SERIES,
        PEOPLE,
        DRAMAS,
        SEARCH,
        RECOMMENDATIONS,
        FRAGMENTS,
    )


# Default tier per group; groups not listed fall back to MEDIUM
GROUP_DEFAULT_TIERS: dict[str, TTLTier] = {
    CacheGroup.MOVIES: TTLTier.LONG,
    CacheGroup.TV_SERIES: TTLTier.LONG,
    CacheGroup.PEOPLE: TTLTier.LONG,
    CacheGroup.DRAMAS: TTLTier.LONG,
    CacheGroup.SEARCH: TTLTier.SHORT,
    CacheGroup.RECOMMENDATIONS: TTLTier.LONG,
    CacheGroup.FRAGMENTS: TTLTier.MEDIUM,
    CacheGroup.API_RESPONSES: TTLTier.DAILY,
}


class CacheKeys:
    """Cache key templates."""

    MOVIE_DATA = "movie_data_{id}"
    TV_DATA = "tv_data_{id}"
    PERSON_DATA = "person_data_{id}"

    MOVIE_CARD = "movie_card_{id}"
    TV_CARD = "tv_card_{id}"
    PERSON_CARD = "person_card_{id}"
    SINGLE_CONTENT = "single_content_{id}"

    NAVIGATION_MENU = "navigation_menu"
    THEME_OPTIONS = "theme_options"

    SIMILAR_CONTENT = "similar_content_{id}_{limit}"
    TMDB_RESPONSE = "tmdb_{digest}"
    SEARCH_RESULTS = "search_{digest}"
    ENTITY_LIST = "{entity_type}_list_{digest}"

    # Every fragment that may be keyed by an entity id
    POST_FRAGMENTS: tuple[str, ...] = (
        MOVIE_CARD,
        TV_CARD,
        PERSON_CARD,
        SINGLE_CONTENT,
    )


class CacheValidationConstants:
    """Cache validation constants."""

    MIN_TTL = 1
    MAX_TTL = 365 * BASE_DAY

    MAX_KEY_LENGTH = 250
    HASH_PREFIX_LOG_LENGTH = 16
    KEY_LOG_LENGTH = 50
