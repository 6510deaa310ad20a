"""Invalidation router.

Translates content mutation events into key deletions and group flushes.
The mapping favors over-invalidation: per-entity keys are deleted for
detail views, and every list-level group whose membership could include
the entity is flushed.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from cinecache.core.events import InvalidationEvent
from cinecache.services.object_cache import ObjectCache
from cinecache.shared.constants import CacheGroup, CacheKeys, EntityType, EventSource
from cinecache.shared.errors import (
    CacheBackendError,
    ErrorCode,
    ErrorContext,
    InvalidationError,
)
from cinecache.shared.logging import log_operation_error, log_operation_success

logger = logging.getLogger(__name__)

# entity type -> (data key template, data group, groups flushed)
_ENTITY_RULES: dict[str, tuple[str, str, tuple[str, ...]]] = {
    EntityType.MOVIE.value: (
        CacheKeys.MOVIE_DATA,
        CacheGroup.MOVIES,
        (CacheGroup.MOVIES, CacheGroup.SEARCH, CacheGroup.RECOMMENDATIONS),
    ),
    EntityType.TV.value: (
        CacheKeys.TV_DATA,
        CacheGroup.TV_SERIES,
        (CacheGroup.TV_SERIES, CacheGroup.SEARCH, CacheGroup.RECOMMENDATIONS),
    ),
    EntityType.DRAMA.value: (
        CacheKeys.TV_DATA,
        CacheGroup.TV_SERIES,
        (CacheGroup.TV_SERIES, CacheGroup.DRAMAS, CacheGroup.SEARCH, CacheGroup.RECOMMENDATIONS),
    ),
    EntityType.PEOPLE.value: (
        CacheKeys.PERSON_DATA,
        CacheGroup.PEOPLE,
        (CacheGroup.PEOPLE, CacheGroup.SEARCH, CacheGroup.RECOMMENDATIONS),
    ),
}


@dataclass(frozen=True)
class InvalidationPlan:
    """Keys to delete and groups to flush for one event."""

    deletes: tuple[tuple[str, str], ...] = ()
    flushes: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.deletes and not self.flushes


@dataclass
class InvalidationReport:
    """Outcome of executing a plan."""

    event: InvalidationEvent
    deleted: list[tuple[str, str]] = field(default_factory=list)
    flushed: list[str] = field(default_factory=list)
    failures: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def plan_for(event: InvalidationEvent) -> InvalidationPlan:
    """Return the deletion/flush plan for an event.

    Unknown event types flush every content group.
    """
    rule = _ENTITY_RULES.get(event.entity_type)
    if rule is not None:
        data_key, data_group, flushes = rule
        if event.entity_id is None:
            return InvalidationPlan(flushes=flushes)
        deletes = [(data_key.format(id=event.entity_id), data_group)]
        deletes.extend(
            (template.format(id=event.entity_id), CacheGroup.FRAGMENTS)
            for template in CacheKeys.POST_FRAGMENTS
        )
        return InvalidationPlan(deletes=tuple(deletes), flushes=flushes)

    if event.entity_type == EventSource.NAVIGATION.value:
        return InvalidationPlan(
            deletes=((CacheKeys.NAVIGATION_MENU, CacheGroup.FRAGMENTS),),
            flushes=(CacheGroup.FRAGMENTS,),
        )
    if event.entity_type == EventSource.THEME_OPTIONS.value:
        return InvalidationPlan(
            deletes=((CacheKeys.THEME_OPTIONS, CacheGroup.FRAGMENTS),),
            flushes=(CacheGroup.FRAGMENTS,),
        )
    if event.entity_type == EventSource.CONTENT_SYNC.value:
        return InvalidationPlan(flushes=CacheGroup.CONTENT)

    logger.warning("No invalidation rule for %s, flushing all content groups", event.entity_type)
    return InvalidationPlan(flushes=CacheGroup.CONTENT)


class InvalidationRouter:
    """Event handler that applies invalidation plans to the object cache.

    Failed deletes and flushes are logged and reported, never retried.

    Example:
        >>> router = InvalidationRouter(object_cache)
        >>> bus.subscribe(router.on_event)
    """

    def __init__(self, object_cache: ObjectCache) -> None:
        self.object_cache = object_cache

    def on_event(self, event: InvalidationEvent) -> InvalidationReport:
        """Apply the plan for ``event`` before returning."""
        start = time.perf_counter()
        plan = plan_for(event)
        report = InvalidationReport(event=event)

        for key, group in plan.deletes:
            try:
                self.object_cache.delete(key, group, fail_open=False)
                report.deleted.append((key, group))
            except CacheBackendError as e:
                report.failures.append(f"delete {group}/{key}")
                self._log_failure(event, e, "delete", key=key, group=group)

        for group in plan.flushes:
            try:
                self.object_cache.flush_group(group, fail_open=False)
                report.flushed.append(group)
            except CacheBackendError as e:
                report.failures.append(f"flush {group}")
                self._log_failure(event, e, "flush_group", group=group)

        log_operation_success(
            logger,
            operation="invalidate",
            duration_ms=(time.perf_counter() - start) * 1000,
            result_info={
                "deleted": len(report.deleted),
                "flushed": len(report.flushed),
                "failures": len(report.failures),
            },
            context={"entity_type": event.entity_type, "entity_id": event.entity_id},
        )
        return report

    __call__ = on_event

    @staticmethod
    def _log_failure(
        event: InvalidationEvent,
        error: CacheBackendError,
        operation: str,
        key: str | None = None,
        group: str | None = None,
    ) -> None:
        failure = InvalidationError(
            ErrorCode.CACHE_INVALIDATION_FAILED,
            f"Invalidation {operation} failed for {event.entity_type}:{event.entity_id}",
            ErrorContext(
                operation=operation,
                key=key,
                group=group,
                additional_data={"entity_type": event.entity_type},
            ),
            original_error=error,
        )
        log_operation_error(logger, failure)
