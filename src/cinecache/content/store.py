"""Content store adapter.

Read/write access to catalog entities. Every write follows the same
order: the entity change is committed, the projection row is refreshed
in its own transaction, then an InvalidationEvent is published.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import date
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cinecache.content.database import DatabaseManager
from cinecache.content.models import Entity, EntityAttribute, projection_model
from cinecache.content.projection import ProjectionRepository, QueryOptimizer
from cinecache.core.events import ChangeKind, EventBus, EventHandler, InvalidationEvent
from cinecache.shared.constants import EntityType, ListingDefaults, SortDirection
from cinecache.shared.errors import DatabaseError, DomainError, ErrorCode, ErrorContext

logger = logging.getLogger(__name__)

_TITLE_KEYS = ("title", "name")


class ContentStore:
    """Catalog entity store.

    Args:
        db: Content database manager
        bus: Event bus mutation events are published on
        projections: Projection repository (built from ``db`` if omitted)
        optimizer: Listing query rewriter
    """

    def __init__(
        self,
        db: DatabaseManager,
        bus: EventBus | None = None,
        projections: ProjectionRepository | None = None,
        optimizer: QueryOptimizer | None = None,
    ) -> None:
        self.db = db
        self.bus = bus or EventBus()
        self.projections = projections or ProjectionRepository(db)
        self.optimizer = optimizer or QueryOptimizer()

    def subscribe(self, on_mutation: EventHandler) -> Callable[[], None]:
        """Register a mutation handler; returns an unsubscribe callable."""
        return self.bus.subscribe(on_mutation)

    def get_entity(self, entity_type: EntityType | str, entity_id: int) -> dict[str, Any] | None:
        """Return an entity record, or None if it does not exist."""
        entity_type = EntityType(entity_type).value
        with self._session("get_entity") as session:
            entity = session.get(Entity, entity_id)
            if entity is None or entity.entity_type != entity_type:
                return None
            return entity.to_record()

    def list_entities(
        self,
        entity_type: EntityType | str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        order_dir: SortDirection | str = SortDirection.DESC,
        limit: int = ListingDefaults.ARCHIVE_PAGE_SIZE,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """List entities of a type using the projection table.

        Entities without a projection row are still listed, with None
        projection columns sorted last. Each record carries its projection
        columns.

        Raises:
            InvalidEntityTypeError: If the type has no projection table
            InvalidSortKeyError: If the sort key is unsupported
        """
        columns = projection_model(entity_type, "list_entities").scalar_columns()
        entity_type = EntityType(entity_type).value
        limit = max(0, min(int(limit), ListingDefaults.MAX_PAGE_SIZE))

        base = select(Entity).where(Entity.entity_type == entity_type)
        stmt = self.optimizer.rewrite(base, entity_type, order_by, order_dir)
        stmt = self.optimizer.apply_filters(stmt, entity_type, filters)
        stmt = stmt.limit(limit).offset(max(0, int(offset)))

        with self._session("list_entities") as session:
            records = []
            for entity, *values in session.execute(stmt):
                record = entity.to_record()
                for name, value in zip(columns, values):
                    record[name] = value.isoformat() if isinstance(value, date) else value
                records.append(record)
            return records

    def search(
        self,
        query: str,
        filters: dict[str, Any] | None = None,
        limit: int = ListingDefaults.SEARCH_PAGE_SIZE,
    ) -> list[dict[str, Any]]:
        """Case-insensitive title search across entity types.

        Args:
            query: Title substring
            filters: Optional ``entity_type`` restriction
            limit: Maximum number of results
        """
        stmt = select(Entity).where(Entity.title.ilike(f"%{query.strip()}%"))
        entity_type = (filters or {}).get("entity_type")
        if entity_type:
            stmt = stmt.where(Entity.entity_type == EntityType(entity_type).value)
        stmt = stmt.order_by(Entity.title.asc(), Entity.id.asc()).limit(limit)

        with self._session("search") as session:
            return [entity.to_record() for entity in session.scalars(stmt)]

    def save_entity(
        self,
        entity_type: EntityType | str,
        attributes: dict[str, Any],
        entity_id: int | None = None,
    ) -> int:
        """Create or update an entity.

        Args:
            entity_type: Entity type
            attributes: Field values; ``title`` (or ``name``) becomes the title
            entity_id: Existing entity id, or None to create

        Returns:
            The entity id

        Raises:
            DomainError: If ``entity_id`` belongs to another entity type
            DatabaseError: If the entity write fails (nothing is published)
        """
        entity_type = EntityType(entity_type).value
        attributes = dict(attributes)
        title = next((str(attributes.pop(k)) for k in _TITLE_KEYS if k in attributes), None)

        with self._session("save_entity", commit=True) as session:
            entity = session.get(Entity, entity_id) if entity_id is not None else None
            change_kind = ChangeKind.UPDATED
            if entity is not None and entity.entity_type != entity_type:
                raise DomainError(
                    ErrorCode.INVALID_ENTITY_TYPE,
                    f"Entity {entity_id} is a {entity.entity_type}, not a {entity_type}",
                    ErrorContext(
                        operation="save_entity",
                        additional_data={"entity_id": entity_id, "entity_type": entity_type},
                    ),
                )
            if entity is None:
                entity = Entity(id=entity_id, entity_type=entity_type, title=title or "")
                session.add(entity)
                change_kind = ChangeKind.CREATED
            elif title is not None:
                entity.title = title

            existing = {attr.name: attr for attr in entity.attributes}
            for name, value in attributes.items():
                encoded = EntityAttribute.encode(value)
                if name in existing:
                    existing[name].value = encoded
                else:
                    entity.attributes.append(EntityAttribute(name=name, value=encoded))

            session.flush()
            saved_id = int(entity.id)
            merged = entity.attribute_map()

        self.projections.upsert(saved_id, entity_type, merged)
        self.bus.publish(InvalidationEvent.for_entity(entity_type, saved_id, change_kind))
        return saved_id

    def delete_entity(self, entity_type: EntityType | str, entity_id: int) -> bool:
        """Delete an entity; its projection row cascades with it.

        Returns:
            True if the entity existed
        """
        entity_type = EntityType(entity_type).value
        with self._session("delete_entity", commit=True) as session:
            entity = session.get(Entity, entity_id)
            if entity is None or entity.entity_type != entity_type:
                return False
            session.delete(entity)

        self.bus.publish(InvalidationEvent.for_entity(entity_type, entity_id, ChangeKind.DELETED))
        return True

    def count_entities(self, entity_type: EntityType | str | None = None) -> int:
        """Count entities, optionally of one type."""
        stmt = select(Entity.id)
        if entity_type is not None:
            stmt = stmt.where(Entity.entity_type == EntityType(entity_type).value)
        with self._session("count_entities") as session:
            return len(session.scalars(stmt).all())

    @contextmanager
    def _session(self, operation: str, *, commit: bool = False) -> Iterator[Session]:
        """Session scope that maps SQLAlchemy failures to DatabaseError."""
        session = self.db.get_session()
        try:
            yield session
            if commit:
                session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise DatabaseError(
                ErrorCode.DATABASE_ERROR,
                f"Content store {operation} failed: {e!s}",
                ErrorContext(operation=operation),
                original_error=e,
            ) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
