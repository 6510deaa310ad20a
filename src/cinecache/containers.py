"""Dependency Injection container for cinecache.

The container manages:
- Settings (Singleton)
- Content database, projection repository and content store
- Event bus, statistics collector and scheduler
- Cache backend and the CacheManager façade
"""

from __future__ import annotations

from dependency_injector import containers, providers

from cinecache.config.loader import load_settings
from cinecache.content.database import DatabaseManager
from cinecache.content.projection import ProjectionRepository
from cinecache.content.store import ContentStore
from cinecache.core.events import EventBus
from cinecache.core.scheduler import PeriodicScheduler
from cinecache.core.statistics import StatisticsCollector
from cinecache.services.backends import create_backend
from cinecache.services.cache_manager import CacheManager


class Container(containers.DeclarativeContainer):
    """Dependency Injection container for cinecache services.

    Example:
        >>> container = Container()
        >>> container.config.override(providers.Object(settings))
        >>> manager = container.cache_manager()
    """

    # Configuration
    config = providers.Singleton(load_settings)

    # Content store
    database = providers.Singleton(
        DatabaseManager,
        database_url=providers.Callable(lambda config: config.database.url, config=config),
        echo=providers.Callable(lambda config: config.database.echo, config=config),
    )

    event_bus = providers.Singleton(EventBus)

    projections = providers.Singleton(ProjectionRepository, db=database)

    content_store = providers.Singleton(
        ContentStore,
        db=database,
        bus=event_bus,
        projections=projections,
    )

    # Cache services
    statistics = providers.Singleton(StatisticsCollector)

    scheduler = providers.Singleton(PeriodicScheduler)

    cache_backend = providers.Singleton(
        create_backend,
        settings=providers.Callable(lambda config: config.cache, config=config),
    )

    cache_manager = providers.Singleton(
        CacheManager,
        settings=config,
        backend=cache_backend,
        store=content_store,
        statistics=statistics,
        scheduler=scheduler,
    )
