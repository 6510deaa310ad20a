"""Cache services: backends, object and fragment caches, invalidation and warming."""

from .cache_manager import CacheManager
from .fragment_cache import FragmentCache, capture_output, render_to_string
from .invalidation import InvalidationPlan, InvalidationReport, InvalidationRouter, plan_for
from .object_cache import ObjectCache
from .warmer import CacheWarmer, WarmingReport, WarmItem

__all__ = [
    "CacheManager",
    "CacheWarmer",
    "FragmentCache",
    "InvalidationPlan",
    "InvalidationReport",
    "InvalidationRouter",
    "ObjectCache",
    "WarmItem",
    "WarmingReport",
    "capture_output",
    "plan_for",
    "render_to_string",
]
