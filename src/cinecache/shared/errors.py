"""Cinecache Error Handling Module

This module defines the error handling system for the cache layer, providing
structured error classes with context information.

The error hierarchy follows these principles:
- One Source of Truth: All error codes are defined in ErrorCode enum
- Structured Context: ErrorContext provides additional information
- Proper Exception Chaining: Original exceptions are preserved
- Fail-open: backend errors are raised by adapters and absorbed by the
  cache primitives, never by business code
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Union

# Type alias for primitive context values (str, int, float, bool only)
PrimitiveContextValue = Union[str, int, float, bool]


class ErrorCode(str, Enum):
    """Error codes for the cache layer.

    This enum serves as the single source of truth for all error codes
    used throughout the package.
    """

    # Cache backend errors
    CACHE_ERROR = "CACHE_ERROR"
    CACHE_BACKEND_UNAVAILABLE = "CACHE_BACKEND_UNAVAILABLE"
    CACHE_READ_FAILED = "CACHE_READ_FAILED"
    CACHE_WRITE_FAILED = "CACHE_WRITE_FAILED"
    CACHE_SERIALIZATION_ERROR = "CACHE_SERIALIZATION_ERROR"
    CACHE_INVALIDATION_FAILED = "CACHE_INVALIDATION_FAILED"
    INVALID_CACHE_KEY = "INVALID_CACHE_KEY"

    # Projection / content store errors
    PROJECTION_WRITE_FAILED = "PROJECTION_WRITE_FAILED"
    ENTITY_NOT_FOUND = "ENTITY_NOT_FOUND"
    INVALID_ENTITY_TYPE = "INVALID_ENTITY_TYPE"
    INVALID_SORT_KEY = "INVALID_SORT_KEY"
    DATABASE_ERROR = "DATABASE_ERROR"

    # Warmer / scheduler errors
    WARMER_ITEM_FAILED = "WARMER_ITEM_FAILED"
    SCHEDULER_ERROR = "SCHEDULER_ERROR"
    EVENT_HANDLER_FAILED = "EVENT_HANDLER_FAILED"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Configuration errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    FILE_READ_ERROR = "FILE_READ_ERROR"

    # CLI errors
    CLI_COMMAND_FAILED = "CLI_COMMAND_FAILED"
    CLI_UNEXPECTED_ERROR = "CLI_UNEXPECTED_ERROR"


def _coerce_primitives(value: Any | None) -> dict[str, PrimitiveContextValue] | None:
    """Coerce additional_data values to primitives.

    Converts Path, Enum, Decimal to primitive types.

    Args:
        value: Input dictionary or None

    Returns:
        Dictionary with primitive values only, or None

    Raises:
        TypeError: If value is not a dict or contains unconvertible types
    """
    if value is None:
        return None

    if not isinstance(value, dict):
        error_msg = f"additional_data must be dict, got {type(value).__name__}"
        raise TypeError(error_msg)

    coerced: dict[str, PrimitiveContextValue] = {}
    for key, val in value.items():
        if isinstance(val, (str, int, float, bool)):
            coerced[key] = val
        elif isinstance(val, Path):
            coerced[key] = str(val)
        elif isinstance(val, Enum):
            coerced[key] = val.value
        elif isinstance(val, Decimal):
            coerced[key] = float(val)
        else:
            error_msg = (
                f"Cannot coerce {type(val).__name__} to primitive type. "
                f"Only str, int, float, bool, Path, Enum, Decimal are allowed."
            )
            raise TypeError(error_msg)

    return coerced


@dataclass(frozen=True)
class ErrorContext:
    """Context information for errors.

    Only primitive types (str, int, float, bool) are allowed in
    additional_data to ensure safe serialization into structured logs.

    Attributes:
        operation: Optional operation name that caused the error
        key: Optional cache key involved in the failure
        group: Optional cache group involved in the failure
        additional_data: Optional dict with primitive values only
    """

    operation: str | None = None
    key: str | None = None
    group: str | None = None
    additional_data: dict[str, PrimitiveContextValue] | None = None

    def __post_init__(self) -> None:
        """Post-initialization validation and coercion."""
        if self.additional_data is not None:
            coerced = _coerce_primitives(self.additional_data)
            object.__setattr__(self, "additional_data", coerced)

    def safe_dict(self) -> dict[str, Any]:
        """Export context as a dict for logging.

        additional_data is always present (never None) in the output.
        """
        data: dict[str, Any] = {}
        if self.operation is not None:
            data["operation"] = self.operation
        if self.key is not None:
            data["key"] = self.key
        if self.group is not None:
            data["group"] = self.group
        data["additional_data"] = self.additional_data or {}
        return data


class CineCacheError(Exception):
    """Base exception class for all cinecache errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
    ) -> None:
        """Initialize CineCacheError.

        Args:
            code: Error code from ErrorCode enum
            message: Human-readable error message
            context: Additional context information
            original_error: Original exception that caused this error
        """
        self.code = code
        self.message = message
        self.context = context or ErrorContext()
        self.original_error = original_error
        super().__init__(f"{code.value}: {message}")

    def __str__(self) -> str:
        """Return string representation of the error."""
        return f"{self.code.value}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging."""
        return {
            "code": self.code.value,
            "message": self.message,
            "context": self.context.safe_dict(),
            "original_error": str(self.original_error) if self.original_error else None,
        }


class DomainError(CineCacheError):
    """Domain-specific errors.

    Raised when callers violate a domain rule, e.g. an unknown entity
    type or an unsupported sort key.
    """


class InfrastructureError(CineCacheError):
    """Infrastructure-related errors.

    Raised when interacting with external systems like the cache backend
    or the relational store.
    """


class ApplicationError(CineCacheError):
    """Application-level errors (configuration, CLI, wiring)."""


class CacheBackendError(InfrastructureError):
    """A cache backend call failed.

    Every backend adapter raises this (or a subclass) instead of its
    driver-specific exception so callers can treat it as a miss.
    """


class BackendUnavailableError(CacheBackendError):
    """The cache store is unreachable or timed out."""


class InvalidationError(InfrastructureError):
    """A delete or group flush issued by the invalidation router failed."""


class ProjectionWriteError(InfrastructureError):
    """A projection side-table upsert or delete failed."""


class DatabaseError(InfrastructureError):
    """The relational content store failed."""


class InvalidEntityTypeError(DomainError):
    """An entity type has no projection or cache mapping."""

    def __init__(self, entity_type: str, operation: str | None = None) -> None:
        super().__init__(
            ErrorCode.INVALID_ENTITY_TYPE,
            f"Unsupported entity type: {entity_type}",
            ErrorContext(
                operation=operation,
                additional_data={"entity_type": str(entity_type)},
            ),
        )
        self.entity_type = entity_type


class InvalidSortKeyError(DomainError):
    """A sort key or direction is not supported by the projection layer."""

    def __init__(self, sort_key: str, entity_type: str) -> None:
        super().__init__(
            ErrorCode.INVALID_SORT_KEY,
            f"Unsupported sort key '{sort_key}' for entity type '{entity_type}'",
            ErrorContext(
                operation="rewrite",
                additional_data={"sort_key": sort_key, "entity_type": entity_type},
            ),
        )


class CliError(ApplicationError):
    """CLI-specific error with an exit code."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
        command: str | None = None,
        exit_code: int = 1,
    ):
        super().__init__(code, message, context, original_error)
        self.command = command
        self.exit_code = exit_code


def create_backend_error(
    message: str,
    operation: str,
    key: str | None = None,
    group: str | None = None,
    original_error: Exception | None = None,
    *,
    unavailable: bool = True,
) -> CacheBackendError:
    """Create a backend error with context.

    Connectivity and timeout failures produce BackendUnavailableError;
    everything else (e.g. serialization) produces a plain CacheBackendError.
    """
    context = ErrorContext(operation=operation, key=key, group=group)
    if unavailable:
        return BackendUnavailableError(
            ErrorCode.CACHE_BACKEND_UNAVAILABLE,
            message,
            context,
            original_error,
        )
    return CacheBackendError(
        ErrorCode.CACHE_SERIALIZATION_ERROR,
        message,
        context,
        original_error,
    )


def create_config_error(
    message: str,
    config_key: str | None = None,
    operation: str | None = None,
    original_error: Exception | None = None,
) -> ApplicationError:
    """Create a configuration error with context."""
    additional_data: dict[str, PrimitiveContextValue] | None = (
        {"config_key": config_key} if config_key else None
    )
    context = ErrorContext(
        operation=operation,
        additional_data=additional_data,
    )
    return ApplicationError(
        ErrorCode.CONFIGURATION_ERROR,
        message,
        context,
        original_error,
    )


def create_cli_error(
    message: str,
    command: str | None = None,
    original_error: Exception | None = None,
    exit_code: int = 1,
) -> CliError:
    """Create a CLI error with context."""
    context = ErrorContext(
        operation="cli",
        additional_data={"command": command} if command else None,
    )
    return CliError(
        ErrorCode.CLI_COMMAND_FAILED,
        message,
        context,
        original_error,
        command,
        exit_code,
    )
