"""
Cinecache - caching and query-projection layer for a movie/TV/people catalog

Multi-tier object and fragment caching with group invalidation, cache
warming, and denormalized projection tables for fast listing queries.
"""

__version__ = "0.1.0"

from .services.cache_manager import CacheManager
from .shared.constants import CacheGroup, EntityType, TTLTier

__all__ = [
    "CacheGroup",
    "CacheManager",
    "EntityType",
    "TTLTier",
]
