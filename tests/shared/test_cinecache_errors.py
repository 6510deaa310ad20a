"""Tests for the error hierarchy and structured error logging."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from cinecache.shared.errors import (
    BackendUnavailableError,
    CacheBackendError,
    CineCacheError,
    CliError,
    DomainError,
    ErrorCode,
    ErrorContext,
    InvalidEntityTypeError,
    create_backend_error,
    create_cli_error,
)
from cinecache.shared.logging import StructuredFormatter, log_operation_error, setup_structured_logger


class TestErrorContext:
    def test_safe_dict_always_has_additional_data(self) -> None:
        context = ErrorContext(operation="get", key="movie_data_1", group="movies")

        assert context.safe_dict() == {
            "operation": "get",
            "key": "movie_data_1",
            "group": "movies",
            "additional_data": {},
        }

    def test_non_primitive_context_is_rejected(self) -> None:
        with pytest.raises(TypeError):
            ErrorContext(additional_data={"payload": object()})  # type: ignore[dict-item]


class TestErrorHierarchy:
    def test_string_form_carries_code(self) -> None:
        error = CineCacheError(ErrorCode.CACHE_BACKEND_UNAVAILABLE, "redis down")

        assert str(error) == "CACHE_BACKEND_UNAVAILABLE: redis down"
        assert error.to_dict()["code"] == "CACHE_BACKEND_UNAVAILABLE"

    def test_backend_error_factory(self) -> None:
        unavailable = create_backend_error("timed out", "get", key="k", group="movies")
        serialization = create_backend_error("bad value", "set", unavailable=False)

        assert isinstance(unavailable, BackendUnavailableError)
        assert unavailable.context.group == "movies"
        assert isinstance(serialization, CacheBackendError)
        assert not isinstance(serialization, BackendUnavailableError)

    def test_invalid_entity_type_is_domain_error(self) -> None:
        error = InvalidEntityTypeError("book", "list_entities")

        assert isinstance(error, DomainError)
        assert "book" in error.message

    def test_cli_error_carries_exit_code(self) -> None:
        error = create_cli_error("nope", "clear", exit_code=3)

        assert isinstance(error, CliError)
        assert error.exit_code == 3
        assert error.command == "clear"


class TestStructuredLogging:
    def test_log_operation_error_attaches_code_and_context(self, caplog: pytest.LogCaptureFixture) -> None:
        # Given
        logger = logging.getLogger("cinecache.tests.errors")
        error = create_backend_error("connection refused", "flush_group", group="search")

        # When
        with caplog.at_level(logging.WARNING, logger="cinecache.tests.errors"):
            log_operation_error(logger, error, level=logging.WARNING)

        # Then
        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert record.getMessage() == "connection refused"
        assert record.error_code == "CACHE_BACKEND_UNAVAILABLE"
        assert record.context["group"] == "search"
        assert record.operation == "flush_group"

    def test_structured_formatter_emits_json(self) -> None:
        record = logging.LogRecord("cinecache", logging.INFO, __file__, 1, "warmed %d", (3,), None)
        record.error_code = "WARMER_ITEM_FAILED"

        payload = json.loads(StructuredFormatter().format(record))

        assert payload["message"] == "warmed 3"
        assert payload["error_code"] == "WARMER_ITEM_FAILED"

    def test_setup_writes_json_log_file(self, tmp_path: Path) -> None:
        # Given
        log_file = tmp_path / "cinecache.log"
        logger = setup_structured_logger(
            "cinecache.tests.logfile", level="INFO", log_file=str(log_file), use_rich_console=False
        )

        # When
        try:
            logger.info("cache ready")
            for handler in logger.handlers:
                handler.flush()
        finally:
            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)
            logger.propagate = True

        # Then
        lines = log_file.read_text(encoding="utf-8").splitlines()
        assert json.loads(lines[-1])["message"] == "cache ready"
