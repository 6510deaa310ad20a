"""Cache manager.

Single entry point tying together the cache backend, the object and
fragment caches, the invalidation router and the warmer. Domain helpers
build keys and pick groups and tiers so callers never format cache keys
themselves.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any

from cinecache.config.models.settings import Settings
from cinecache.content.renderers import DEFAULT_NAVIGATION, card_renderer, navigation_renderer
from cinecache.content.store import ContentStore
from cinecache.core.events import EventBus, InvalidationEvent
from cinecache.core.scheduler import PeriodicScheduler
from cinecache.core.statistics import StatisticsCollector
from cinecache.services.backends import CacheBackend, create_backend
from cinecache.services.fragment_cache import FragmentCache, Renderer
from cinecache.services.invalidation import InvalidationReport, InvalidationRouter
from cinecache.services.keys import (
    card_key,
    entity_data_key,
    entity_list_key,
    list_group,
    search_key,
    similar_content_key,
    tmdb_response_key,
)
from cinecache.services.object_cache import TTL, ObjectCache, Producer
from cinecache.services.warmer import (
    CacheWarmer,
    WarmingReport,
    entity_producer,
    similar_content_producer,
)
from cinecache.shared.constants import (
    CacheGroup,
    CacheKeys,
    EntityType,
    ListingDefaults,
    SortDirection,
    TTLTier,
    WarmerDefaults,
)
from cinecache.shared.errors import ApplicationError, CacheBackendError, ErrorCode, ErrorContext
from cinecache.shared.logging import log_operation_error

logger = logging.getLogger(__name__)


class CacheManager:
    """Façade over the cache layer.

    Args:
        settings: Configuration (defaults from the environment if omitted)
        backend: Cache backend (built from ``settings.cache`` if omitted)
        store: Content store; required by the helpers that load entities
        statistics: Statistics collector shared with the object cache
        scheduler: Scheduler the warmer registers with

    Example:
        >>> manager = CacheManager(store=store)
        >>> manager.cache_movie_data(42)
    """

    def __init__(
        self,
        settings: Settings | None = None,
        backend: CacheBackend | None = None,
        store: ContentStore | None = None,
        statistics: StatisticsCollector | None = None,
        scheduler: PeriodicScheduler | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.backend = backend or create_backend(self.settings.cache)
        self.statistics = statistics or StatisticsCollector()
        self.object_cache = ObjectCache(
            self.backend,
            self.statistics,
            default_tier=self.settings.cache.default_tier,
            single_flight=self.settings.cache.single_flight,
        )
        self.fragments = FragmentCache(self.object_cache)
        self.router = InvalidationRouter(self.object_cache)
        self.store = store
        self.scheduler = scheduler or PeriodicScheduler()
        self.warmer = (
            CacheWarmer(self.object_cache, store, settings=self.settings.warmer) if store is not None else None
        )

        self._unsubscribe: Callable[[], None] | None = None
        if store is not None:
            self._unsubscribe = store.subscribe(self.router.on_event)

        logger.info("Cache manager ready (backend=%s)", self.backend.name)

    # Generic operations

    def get(
        self,
        key: str,
        group: str = CacheGroup.DEFAULT,
        producer: Producer[Any] | None = None,
        ttl: TTL = None,
    ) -> Any:
        """Get-or-compute; returns MISS when absent and no producer is given."""
        return self.object_cache.get(key, group, producer, ttl)

    def set(self, key: str, value: Any, group: str = CacheGroup.DEFAULT, ttl: TTL = None) -> bool:
        return self.object_cache.set(key, value, group, ttl)

    def delete(self, key: str, group: str = CacheGroup.DEFAULT) -> bool:
        return self.object_cache.delete(key, group)

    def flush_group(self, group: str) -> bool:
        return self.object_cache.flush_group(group)

    def invalidate(self, event: InvalidationEvent) -> InvalidationReport:
        """Apply the invalidation plan of an event directly."""
        return self.router.on_event(event)

    def attach(self, bus: EventBus) -> Callable[[], None]:
        """Subscribe the invalidation router to another event bus."""
        return bus.subscribe(self.router.on_event)

    # Entity data

    def cache_entity_data(
        self,
        entity_type: EntityType | str,
        entity_id: int,
        producer: Producer[Any] | None = None,
    ) -> Any:
        """Return the cached record of an entity, loading it on a miss.

        A missing entity caches as an empty dict.
        """
        key, group = entity_data_key(entity_type, entity_id)
        producer = producer or entity_producer(self._require_store("cache_entity_data"), entity_type, entity_id)
        return self.object_cache.get(key, group, producer, TTLTier.LONG)

    def cache_movie_data(self, movie_id: int, producer: Producer[Any] | None = None) -> Any:
        return self.cache_entity_data(EntityType.MOVIE, movie_id, producer)

    def cache_tv_data(self, tv_id: int, producer: Producer[Any] | None = None) -> Any:
        return self.cache_entity_data(EntityType.TV, tv_id, producer)

    def cache_person_data(self, person_id: int, producer: Producer[Any] | None = None) -> Any:
        return self.cache_entity_data(EntityType.PEOPLE, person_id, producer)

    def similar_content(self, movie_id: int, limit: int = WarmerDefaults.RECOMMENDATION_LIMIT) -> Any:
        """Cached recommendations (same-status movies by popularity)."""
        store = self._require_store("similar_content")
        return self.object_cache.get(
            similar_content_key(movie_id, limit),
            CacheGroup.RECOMMENDATIONS,
            similar_content_producer(store, store.projections, movie_id, limit),
            TTLTier.LONG,
        )

    # API responses

    def cache_tmdb_response(
        self,
        endpoint: str,
        params: dict[str, Any] | None,
        producer: Producer[Any],
    ) -> Any:
        """Get-or-fetch a remote API response (kept for a day)."""
        return self.object_cache.get(
            tmdb_response_key(endpoint, params),
            CacheGroup.API_RESPONSES,
            producer,
            TTLTier.DAILY,
        )

    def get_tmdb_response(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        return self.object_cache.get(tmdb_response_key(endpoint, params), CacheGroup.API_RESPONSES)

    # Search

    def search(
        self,
        query: str,
        filters: dict[str, Any] | None = None,
        limit: int = ListingDefaults.SEARCH_PAGE_SIZE,
    ) -> Any:
        """Cached title search."""
        store = self._require_store("search")
        return self.object_cache.get(
            search_key(query, filters, limit),
            CacheGroup.SEARCH,
            lambda: store.search(query, filters, limit),
            TTLTier.SHORT,
        )

    def cache_search_results(
        self,
        query: str,
        filters: dict[str, Any] | None,
        results: Any,
        limit: int = ListingDefaults.SEARCH_PAGE_SIZE,
    ) -> bool:
        return self.object_cache.set(search_key(query, filters, limit), results, CacheGroup.SEARCH, TTLTier.SHORT)

    def get_search_results(
        self,
        query: str,
        filters: dict[str, Any] | None = None,
        limit: int = ListingDefaults.SEARCH_PAGE_SIZE,
    ) -> Any:
        return self.object_cache.get(search_key(query, filters, limit), CacheGroup.SEARCH)

    # Listings

    def list_entities(
        self,
        entity_type: EntityType | str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        order_dir: SortDirection | str = SortDirection.DESC,
        limit: int = ListingDefaults.ARCHIVE_PAGE_SIZE,
        offset: int = 0,
    ) -> Any:
        """Cached projection-backed listing.

        Listings live in the type's list group, so any write to an entity
        of that type flushes them.
        """
        store = self._require_store("list_entities")
        direction = order_dir.value if isinstance(order_dir, SortDirection) else str(order_dir).lower()
        key = entity_list_key(
            entity_type,
            filters=filters or {},
            order_by=order_by,
            order_dir=direction,
            limit=limit,
            offset=offset,
        )
        return self.object_cache.get(
            key,
            list_group(entity_type),
            lambda: store.list_entities(entity_type, filters, order_by, direction, limit, offset),
            TTLTier.MEDIUM,
        )

    # Fragments

    def cache_card(
        self,
        entity_type: EntityType | str,
        entity_id: int,
        renderer: Renderer | None = None,
    ) -> str:
        """Cached card fragment of an entity."""
        renderer = renderer or card_renderer(self._require_store("cache_card"), entity_type, entity_id)
        return self.fragments.get(card_key(entity_type, entity_id), renderer)

    def cache_movie_card(self, movie_id: int, renderer: Renderer | None = None) -> str:
        return self.cache_card(EntityType.MOVIE, movie_id, renderer)

    def cache_tv_card(self, tv_id: int, renderer: Renderer | None = None) -> str:
        return self.cache_card(EntityType.TV, tv_id, renderer)

    def cache_person_card(self, person_id: int, renderer: Renderer | None = None) -> str:
        return self.cache_card(EntityType.PEOPLE, person_id, renderer)

    def cache_navigation(
        self,
        items: Sequence[tuple[str, str]] = DEFAULT_NAVIGATION,
        renderer: Renderer | None = None,
    ) -> str:
        return self.fragments.get(CacheKeys.NAVIGATION_MENU, renderer or navigation_renderer(items))

    # Maintenance

    def clear_all_cache(self) -> bool:
        """Discard every entry in every group."""
        try:
            self.backend.clear()
        except CacheBackendError as e:
            log_operation_error(logger, e, level=logging.WARNING)
            return False
        logger.info("Cleared all cache entries")
        return True

    def purge_expired(self) -> int:
        """Remove expired entries; returns the number removed."""
        try:
            removed = self.backend.purge_expired()
        except CacheBackendError as e:
            log_operation_error(logger, e, level=logging.WARNING)
            return 0
        logger.info("Purged %d expired cache entries", removed)
        return removed

    def get_cache_stats(self) -> dict[str, Any]:
        """Per-group entry counts, hit/miss statistics and projection sizes.

        Groups whose count cannot be read report None.
        """
        groups: dict[str, int | None] = {}
        for group in (*CacheGroup.ALL, CacheGroup.DEFAULT):
            try:
                groups[group] = self.backend.count(group)
            except CacheBackendError as e:
                log_operation_error(logger, e, level=logging.WARNING)
                groups[group] = None

        stats: dict[str, Any] = {
            "backend": self.backend.name,
            "groups": groups,
            "statistics": self.statistics.get_summary(),
        }
        if self.store is not None:
            stats["projections"] = self.store.projections.stats()
        return stats

    def preload_critical_content(self) -> WarmingReport:
        """Warm the most popular movies and the navigation menu for a day."""
        warmer = self._require_warmer("preload_critical_content")
        items = warmer.entity_items(EntityType.MOVIE, WarmerDefaults.PRELOAD_TOP_N, TTLTier.DAILY)
        items.append(warmer.navigation_item(TTLTier.DAILY))
        return warmer.warm(items)

    def warm_cache(self) -> WarmingReport:
        """Run a full warming pass now."""
        return self._require_warmer("warm_cache").run()

    def start_background_tasks(self) -> None:
        """Register the warmer (when enabled) and start the scheduler."""
        if self.warmer is not None and self.settings.warmer.enabled:
            self.warmer.register(self.scheduler)
        self.scheduler.start()

    def close(self) -> None:
        """Stop background work, detach from the store and close the backend."""
        if self.scheduler.running:
            self.scheduler.stop()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.backend.close()

    def _require_store(self, operation: str) -> ContentStore:
        if self.store is None:
            raise ApplicationError(
                ErrorCode.CONFIGURATION_ERROR,
                f"{operation} requires a content store",
                ErrorContext(operation=operation),
            )
        return self.store

    def _require_warmer(self, operation: str) -> CacheWarmer:
        if self.warmer is None:
            raise ApplicationError(
                ErrorCode.CONFIGURATION_ERROR,
                f"{operation} requires a content store",
                ErrorContext(operation=operation),
            )
        return self.warmer
