"""Cache warmer.

Pre-populates the object cache with the entries most likely to be
requested: the most popular entities of each type (ranked by projection
popularity), results of common search queries, the navigation fragment
and recommendations for the top movies.

Items are refreshed whether or not a live entry exists. They run on a
bounded thread pool; one failing item is logged and skipped without
affecting the others.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from cinecache.config.models.warmer_settings import WarmerSettings
from cinecache.content.projection import ProjectionRepository
from cinecache.content.renderers import DEFAULT_NAVIGATION, navigation_renderer
from cinecache.content.store import ContentStore
from cinecache.core.scheduler import PeriodicJob, PeriodicScheduler
from cinecache.services.fragment_cache import render_to_string
from cinecache.services.keys import entity_data_key, search_key, similar_content_key
from cinecache.services.object_cache import TTL, ObjectCache
from cinecache.shared.constants import (
    CacheGroup,
    CacheKeys,
    EntityType,
    ListingDefaults,
    TTLTier,
    WarmerDefaults,
)
from cinecache.shared.errors import ApplicationError, CineCacheError, ErrorCode, ErrorContext
from cinecache.shared.logging import log_operation_error, log_operation_start, log_operation_success

logger = logging.getLogger(__name__)

WARMER_JOB_ID = "cache_warmer"


@dataclass
class WarmItem:
    """One cache entry to (re)compute."""

    key: str
    group: str
    producer: Callable[[], Any]
    ttl: TTL = None


@dataclass
class WarmingReport:
    """Outcome of one warming run."""

    warmed: list[tuple[str, str]] = field(default_factory=list)
    failed: list[tuple[str, str]] = field(default_factory=list)
    duration_ms: float = 0.0

    @property
    def warmed_count(self) -> int:
        return len(self.warmed)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "warmed": self.warmed_count,
            "failed": self.failed_count,
            "duration_ms": round(self.duration_ms, 2),
        }


def entity_producer(store: ContentStore, entity_type: EntityType | str, entity_id: int) -> Callable[[], Any]:
    """Producer loading an entity record; a missing entity caches as {}."""

    def produce() -> dict[str, Any]:
        return store.get_entity(entity_type, entity_id) or {}

    return produce


def similar_content_producer(
    store: ContentStore,
    projections: ProjectionRepository,
    entity_id: int,
    limit: int,
) -> Callable[[], Any]:
    """Producer building the recommendation list for a movie."""

    def produce() -> list[dict[str, Any]]:
        records = []
        for similar_id in projections.similar_ids(entity_id, limit):
            record = store.get_entity(EntityType.MOVIE, similar_id)
            if record:
                records.append(record)
        return records

    return produce


class CacheWarmer:
    """Periodic cache warmer.

    Args:
        object_cache: Cache the entries are written to
        store: Content store producers read from
        projections: Projection repository used to rank entities
        settings: Warmer configuration
        navigation: (label, url) items of the navigation fragment
    """

    def __init__(
        self,
        object_cache: ObjectCache,
        store: ContentStore,
        projections: ProjectionRepository | None = None,
        settings: WarmerSettings | None = None,
        navigation: Sequence[tuple[str, str]] = DEFAULT_NAVIGATION,
    ) -> None:
        self.object_cache = object_cache
        self.store = store
        self.projections = projections or store.projections
        self.settings = settings or WarmerSettings()
        self.navigation = tuple(navigation)
        self.last_report: WarmingReport | None = None

    def entity_items(
        self,
        entity_type: EntityType | str,
        limit: int,
        ttl: TTL = TTLTier.LONG,
    ) -> list[WarmItem]:
        """Data entries of the ``limit`` most popular entities of a type."""
        try:
            ids = self.projections.top_ids(EntityType(entity_type).value, limit)
        except (CineCacheError, SQLAlchemyError) as e:
            logger.warning("Could not rank %s entities for warming: %s", entity_type, e)
            return []

        items = []
        for entity_id in ids:
            key, group = entity_data_key(entity_type, entity_id)
            items.append(WarmItem(key, group, entity_producer(self.store, entity_type, entity_id), ttl))
        return items

    def search_items(self) -> list[WarmItem]:
        limit = ListingDefaults.SEARCH_PAGE_SIZE
        return [
            WarmItem(search_key(query, None, limit), CacheGroup.SEARCH, self._search_producer(query))
            for query in self.settings.common_queries
        ]

    def navigation_item(self, ttl: TTL = None) -> WarmItem:
        renderer = navigation_renderer(self.navigation)
        return WarmItem(
            CacheKeys.NAVIGATION_MENU,
            CacheGroup.FRAGMENTS,
            lambda: render_to_string(renderer),
            ttl,
        )

    def recommendation_items(self) -> list[WarmItem]:
        try:
            ids = self.projections.top_ids(EntityType.MOVIE.value, self.settings.recommendation_top_n)
        except (CineCacheError, SQLAlchemyError) as e:
            logger.warning("Could not rank movies for recommendation warming: %s", e)
            return []

        limit = WarmerDefaults.RECOMMENDATION_LIMIT
        return [
            WarmItem(
                similar_content_key(entity_id, limit),
                CacheGroup.RECOMMENDATIONS,
                similar_content_producer(self.store, self.projections, entity_id, limit),
                TTLTier.LONG,
            )
            for entity_id in ids
        ]

    def plan(self) -> list[WarmItem]:
        """Every item a full warming run refreshes."""
        items: list[WarmItem] = []
        for entity_type in EntityType:
            items.extend(self.entity_items(entity_type, self.settings.top_n))
        items.extend(self.search_items())
        items.append(self.navigation_item())
        items.extend(self.recommendation_items())
        return items

    def run(self) -> WarmingReport:
        """Run a full warming pass."""
        report = self.warm(self.plan())
        self.last_report = report
        return report

    def warm(self, items: Sequence[WarmItem]) -> WarmingReport:
        """Refresh the given items on the worker pool.

        Returns:
            Report listing the warmed and failed (key, group) pairs
        """
        log_operation_start(logger, "warm_cache", {"items": len(items)})
        start = time.perf_counter()
        report = WarmingReport()

        if items:
            workers = min(self.settings.max_workers, len(items))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="cinecache-warmer") as executor:
                futures = {executor.submit(self._warm_one, item): item for item in items}
                for future in as_completed(futures):
                    item = futures[future]
                    if future.result():
                        report.warmed.append((item.key, item.group))
                    else:
                        report.failed.append((item.key, item.group))

        report.duration_ms = (time.perf_counter() - start) * 1000
        log_operation_success(logger, "warm_cache", report.duration_ms, report.to_dict())
        if report.failed:
            logger.warning("Cache warming finished with %d failed items", report.failed_count)
        return report

    def _warm_one(self, item: WarmItem) -> bool:
        try:
            stored = self.object_cache.refresh_stored(item.key, item.group, item.producer, item.ttl)
        except Exception as e:  # noqa: BLE001
            error = ApplicationError(
                ErrorCode.WARMER_ITEM_FAILED,
                f"Failed to warm {item.group}/{item.key}: {e!s}",
                ErrorContext(operation="warm_item", key=item.key, group=item.group),
                original_error=e,
            )
            log_operation_error(logger, error, level=logging.WARNING)
            return False
        if not stored:
            logger.warning("Cache write for %s/%s was not stored", item.group, item.key)
        return stored

    def _search_producer(self, query: str) -> Callable[[], Any]:
        def produce() -> list[dict[str, Any]]:
            return self.store.search(query)

        return produce

    def register(self, scheduler: PeriodicScheduler, *, run_immediately: bool = False) -> PeriodicJob:
        """Register :meth:`run` as a periodic job."""
        return scheduler.register_periodic(
            self.run,
            self.settings.interval_seconds,
            job_id=WARMER_JOB_ID,
            run_immediately=run_immediately,
        )
