"""Core building blocks: statistics, events and scheduling."""

from .events import ChangeKind, EventBus, InvalidationEvent
from .scheduler import PeriodicJob, PeriodicScheduler
from .statistics import GroupMetrics, StatisticsCollector

__all__ = [
    "ChangeKind",
    "EventBus",
    "GroupMetrics",
    "InvalidationEvent",
    "PeriodicJob",
    "PeriodicScheduler",
    "StatisticsCollector",
]
