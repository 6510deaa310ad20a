"""
Entity Type Constants

Content entity types and the non-entity event sources that feed the
invalidation router.
"""

from __future__ import annotations

from enum import Enum


class EntityType(str, Enum):
    """Primary catalog entity types."""

    MOVIE = "movie"
    TV = "tv"
    DRAMA = "drama"
    PEOPLE = "people"


class EventSource(str, Enum):
    """Non-entity mutation sources."""

    NAVIGATION = "navigation"
    THEME_OPTIONS = "theme_options"
    CONTENT_SYNC = "content_sync"


class ListingDefaults:
    """Page sizes used by listing queries."""

    ARCHIVE_PAGE_SIZE = 24
    PEOPLE_PAGE_SIZE = 30
    SEARCH_PAGE_SIZE = 20
    MAX_PAGE_SIZE = 100


class SortKeys:
    """Sort keys accepted by the projection layer."""

    RELEASE_DATE = "release_date"
    FIRST_AIR_DATE = "first_air_date"
    RATING = "rating"
    POPULARITY = "popularity"
    RUNTIME = "runtime"

    ALL: tuple[str, ...] = (RELEASE_DATE, FIRST_AIR_DATE, RATING, POPULARITY, RUNTIME)


class SortDirection(str, Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"

