"""Content mutation events and the event bus that delivers them.

The content store publishes an InvalidationEvent after every durable write;
the invalidation router (and anything else interested) subscribes to the
bus. Delivery is synchronous: publish() returns after every handler ran.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from cinecache.shared.constants import EntityType, EventSource
from cinecache.shared.errors import CineCacheError, ErrorCode, ErrorContext
from cinecache.shared.logging import log_operation_error

logger = logging.getLogger(__name__)


class ChangeKind(str, Enum):
    """Kind of mutation applied to an entity."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


@dataclass(frozen=True)
class InvalidationEvent:
    """A content mutation.

    Attributes:
        entity_type: Entity type ("movie", "tv", ...) or event source
            ("navigation", "theme_options", "content_sync")
        entity_id: Entity id, None for non-entity sources
        change_kind: created, updated or deleted
    """

    entity_type: str
    entity_id: int | None = None
    change_kind: ChangeKind = ChangeKind.UPDATED

    @classmethod
    def for_entity(
        cls,
        entity_type: EntityType | str,
        entity_id: int,
        change_kind: ChangeKind = ChangeKind.UPDATED,
    ) -> InvalidationEvent:
        return cls(EntityType(entity_type).value, int(entity_id), ChangeKind(change_kind))

    @classmethod
    def navigation_changed(cls) -> InvalidationEvent:
        return cls(EventSource.NAVIGATION.value)

    @classmethod
    def theme_options_changed(cls) -> InvalidationEvent:
        return cls(EventSource.THEME_OPTIONS.value)

    @classmethod
    def content_synced(cls) -> InvalidationEvent:
        return cls(EventSource.CONTENT_SYNC.value)


EventHandler = Callable[[InvalidationEvent], object]


class EventBus:
    """Explicit publish/subscribe channel for InvalidationEvents.

    A failing handler is logged and does not prevent the remaining
    handlers from running.

    Example:
        >>> bus = EventBus()
        >>> unsubscribe = bus.subscribe(router.on_event)
        >>> bus.publish(InvalidationEvent.for_entity("movie", 42))
    """

    def __init__(self) -> None:
        self._handlers: list[EventHandler] = []
        self._lock = threading.Lock()

    def subscribe(self, handler: EventHandler) -> Callable[[], None]:
        """Register a handler.

        Args:
            handler: Callable invoked with every published event

        Returns:
            A zero-argument callable that removes the handler
        """
        with self._lock:
            self._handlers.append(handler)

        def unsubscribe() -> None:
            with self._lock:
                if handler in self._handlers:
                    self._handlers.remove(handler)

        return unsubscribe

    @property
    def handler_count(self) -> int:
        with self._lock:
            return len(self._handlers)

    def publish(self, event: InvalidationEvent) -> int:
        """Deliver an event to every subscribed handler.

        Args:
            event: The mutation event

        Returns:
            Number of handlers that completed without raising
        """
        with self._lock:
            handlers = list(self._handlers)

        delivered = 0
        for handler in handlers:
            try:
                handler(event)
                delivered += 1
            except Exception as e:  # noqa: BLE001
                error = CineCacheError(
                    ErrorCode.EVENT_HANDLER_FAILED,
                    f"Event handler failed for {event.entity_type}: {e!s}",
                    ErrorContext(
                        operation="publish",
                        additional_data={
                            "entity_type": event.entity_type,
                            "entity_id": event.entity_id if event.entity_id is not None else -1,
                            "change_kind": event.change_kind,
                        },
                    ),
                    original_error=e,
                )
                log_operation_error(logger, error, operation="publish")

        logger.debug(
            "Published %s event for %s:%s to %d/%d handlers",
            event.change_kind.value,
            event.entity_type,
            event.entity_id,
            delivered,
            len(handlers),
        )
        return delivered
