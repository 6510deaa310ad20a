"""Cache warmer configuration model."""

from __future__ import annotations

from pydantic import BaseModel, Field

from cinecache.shared.constants import WarmerDefaults


class WarmerSettings(BaseModel):
    """Periodic cache warming configuration."""

    enabled: bool = Field(default=True, description="Register the warmer with the scheduler")
    interval_seconds: int = Field(
        default=WarmerDefaults.INTERVAL_SECONDS,
        gt=0,
        description="Seconds between warming runs",
    )
    top_n: int = Field(
        default=WarmerDefaults.TOP_N,
        ge=0,
        description="Entities warmed per content type",
    )
    recommendation_top_n: int = Field(
        default=WarmerDefaults.RECOMMENDATION_TOP_N,
        ge=0,
        description="Movies whose recommendations are warmed",
    )
    max_workers: int = Field(
        default=WarmerDefaults.MAX_WORKERS,
        ge=1,
        le=32,
        description="Worker threads used for per-item warming",
    )
    common_queries: list[str] = Field(
        default_factory=lambda: list(WarmerDefaults.COMMON_QUERIES),
        description="Search queries warmed on every run",
    )


__all__ = ["WarmerSettings"]
