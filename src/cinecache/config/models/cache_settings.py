"""Cache configuration model.

Backend selection, backend call timeout and default tier for the cache layer.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from cinecache.shared.constants import Backends, FileSystem, TTLTier


class CacheSettings(BaseModel):
    """Cache configuration.

    This class selects the cache backend and controls fail-open behavior
    (backend call timeout) and stampede handling.
    """

    backend: str = Field(
        default=Backends.MEMORY,
        description="Cache backend (memory, sqlite, redis)",
    )
    sqlite_path: str = Field(
        default=FileSystem.CACHE_DB_FILE,
        description="SQLite cache database path",
    )
    redis_url: str = Field(
        default=Backends.DEFAULT_REDIS_URL,
        description="Redis connection URL",
    )
    key_prefix: str = Field(
        default=Backends.DEFAULT_KEY_PREFIX,
        description="Prefix applied to every backend key",
    )
    backend_timeout_seconds: float = Field(
        default=Backends.DEFAULT_TIMEOUT_SECONDS,
        gt=0,
        description="Timeout for a single backend call; a timeout is a miss",
    )
    default_tier: TTLTier = Field(
        default=TTLTier.MEDIUM,
        description="Tier used for groups without a default tier",
    )
    single_flight: bool = Field(
        default=False,
        description="Coalesce concurrent misses on the same (key, group)",
    )

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        """Validate backend name."""
        backend = v.lower()
        if backend not in Backends.ALL:
            msg = f"Unsupported cache backend '{v}', expected one of {', '.join(Backends.ALL)}"
            raise ValueError(msg)
        return backend


__all__ = ["CacheSettings"]
