"""Tests for InvalidationEvent and EventBus."""

from __future__ import annotations

import logging

import pytest

from cinecache.core.events import ChangeKind, EventBus, InvalidationEvent


class TestInvalidationEvent:
    def test_for_entity_normalizes_values(self) -> None:
        event = InvalidationEvent.for_entity("tv", "12", "deleted")  # type: ignore[arg-type]

        assert event == InvalidationEvent("tv", 12, ChangeKind.DELETED)

    def test_for_entity_rejects_unknown_type(self) -> None:
        with pytest.raises(ValueError):
            InvalidationEvent.for_entity("book", 1)

    def test_source_events_have_no_id(self) -> None:
        assert InvalidationEvent.navigation_changed() == InvalidationEvent("navigation")
        assert InvalidationEvent.theme_options_changed().entity_id is None
        assert InvalidationEvent.content_synced().entity_type == "content_sync"


class TestEventBus:
    def test_publish_reaches_handlers_in_order(self) -> None:
        # Given
        bus = EventBus()
        seen: list[str] = []
        bus.subscribe(lambda e: seen.append(f"first:{e.entity_id}"))
        bus.subscribe(lambda e: seen.append(f"second:{e.entity_id}"))

        # When
        delivered = bus.publish(InvalidationEvent.for_entity("movie", 7))

        # Then
        assert delivered == 2
        assert seen == ["first:7", "second:7"]

    def test_unsubscribe_is_idempotent(self) -> None:
        bus = EventBus()
        unsubscribe = bus.subscribe(lambda e: None)

        unsubscribe()
        unsubscribe()

        assert bus.handler_count == 0

    def test_failing_handler_is_logged_and_isolated(self, caplog: pytest.LogCaptureFixture) -> None:
        # Given
        bus = EventBus()
        seen: list[InvalidationEvent] = []

        def broken(event: InvalidationEvent) -> None:
            raise RuntimeError("boom")

        bus.subscribe(broken)
        bus.subscribe(seen.append)

        # When
        with caplog.at_level(logging.ERROR):
            delivered = bus.publish(InvalidationEvent.navigation_changed())

        # Then
        assert delivered == 1
        assert len(seen) == 1
        assert any(getattr(r, "error_code", None) == "EVENT_HANDLER_FAILED" for r in caplog.records)

    def test_publish_without_handlers(self) -> None:
        assert EventBus().publish(InvalidationEvent.content_synced()) == 0
