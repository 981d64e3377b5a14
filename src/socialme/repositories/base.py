"""Generic document-style repository over a SQLAlchemy session."""
from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Generic, TypeVar

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from socialme.db.session import Base

__all__ = ["DocumentRepository"]

ModelT = TypeVar("ModelT", bound=Base)


class DocumentRepository(Generic[ModelT]):
    """Thin wrapper around database access for one collection.

    Every write commits on its own. The store offers no transaction spanning
    several collections, so services composing writes must be re-runnable.
    """

    def __init__(self, session: Session, model: type[ModelT], key_field: str | None = None) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy session shared by all repositories of a request.
            model: Mapped class stored in this collection.
            key_field: Name of the natural-key column, if the collection has one.
        """
        self.session = session
        self.model = model
        self.key_field = key_field

    @property
    def collection(self) -> str:
        """Return the collection (table) name."""
        return self.model.__tablename__  # type: ignore[attr-defined,no-any-return]

    def _column(self, field: str) -> Any:
        return getattr(self.model, field)

    def get_by_id(self, entity_id: Any) -> ModelT | None:
        """Return an entity by primary key."""
        return self.session.get(self.model, entity_id)

    def get_by_key(self, key: str) -> ModelT | None:
        """Return an entity by its natural key."""
        if self.key_field is None:
            raise TypeError(f"{self.collection} has no natural key")
        return self.find_one_where(**{self.key_field: key})

    def exists_by_key(self, key: str) -> bool:
        """Return True if an entity with the natural key exists."""
        return self.get_by_key(key) is not None

    def find_all_where(self, **criteria: Any) -> list[ModelT]:
        """Return every entity whose fields equal the given values."""
        stmt = select(self.model)
        for field, value in criteria.items():
            stmt = stmt.where(self._column(field) == value)
        return list(self.session.scalars(stmt))

    def find_one_where(self, **criteria: Any) -> ModelT | None:
        """Return the first entity matching ``criteria``."""
        stmt = select(self.model)
        for field, value in criteria.items():
            stmt = stmt.where(self._column(field) == value)
        return self.session.scalars(stmt.limit(1)).first()

    def count_where(self, **criteria: Any) -> int:
        """Return the number of entities matching ``criteria``."""
        stmt = select(func.count()).select_from(self.model)
        for field, value in criteria.items():
            stmt = stmt.where(self._column(field) == value)
        return int(self.session.scalar(stmt) or 0)

    def list_all(self) -> Sequence[ModelT]:
        """Return every entity in the collection."""
        return list(self.session.scalars(select(self.model)))

    def save(self, entity: ModelT) -> ModelT:
        """Insert or update one entity and commit."""
        self.session.add(entity)
        self._commit()
        self.session.refresh(entity)
        return entity

    def delete(self, entity: ModelT) -> None:
        """Delete one entity and commit."""
        self.session.delete(entity)
        self._commit()

    def delete_by_key(self, key: str) -> bool:
        """Delete the entity with the natural key; return False if absent."""
        entity = self.get_by_key(key)
        if entity is None:
            return False
        self.delete(entity)
        return True

    def update_where(self, field: str, old_value: Any, new_value: Any) -> int:
        """Set ``field`` to ``new_value`` wherever it equals ``old_value``.

        Safe to repeat: once applied, the filter matches zero rows.
        """
        return self.set_where({field: new_value}, **{field: old_value})

    def set_where(self, values: dict[str, Any], **criteria: Any) -> int:
        """Assign ``values`` on every entity matching ``criteria``."""
        stmt = update(self.model)
        for field, value in criteria.items():
            stmt = stmt.where(self._column(field) == value)
        result = self.session.execute(
            stmt.values(values).execution_options(synchronize_session="fetch")
        )
        self._commit()
        return int(result.rowcount or 0)  # type: ignore[attr-defined]

    def delete_where(self, **criteria: Any) -> int:
        """Delete every entity matching ``criteria``; return the row count."""
        stmt = delete(self.model)
        for field, value in criteria.items():
            stmt = stmt.where(self._column(field) == value)
        result = self.session.execute(stmt.execution_options(synchronize_session="fetch"))
        self._commit()
        return int(result.rowcount or 0)  # type: ignore[attr-defined]

    def _commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise
