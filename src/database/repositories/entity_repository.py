"""
Repository: Tracked Entities
Generic CRUD for ORM entities whose `validated` flag doubles as the
soft-delete / visibility marker.

A row with validated = False is hidden from reads unless include_deleted is
requested. Soft delete clears the flag; hard delete removes the row and must
be explicitly allowed.
"""

from typing import Any, Callable, Generic, Iterable, List, Optional, Type, TypeVar

from sqlalchemy import Boolean, Integer, select, func
from sqlalchemy.orm import Mapped, Session, mapped_column


class TrackedEntityMixin:
    """Columns every gated entity carries: integer id and validated flag."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    validated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class HardDeleteNotPermittedError(Exception):
    """Raised when a hard delete is attempted on a repository that forbids it."""

    def __init__(self, message: str = "Hard delete is not permitted"):
        super().__init__(message)


E = TypeVar("E", bound=TrackedEntityMixin)


class EntityRepository(Generic[E]):
    """Repository for one tracked entity model."""

    def __init__(self, session: Session, model: Type[E], allow_hard_delete: bool = True):
        self.session = session
        self.model = model
        self.allow_hard_delete = allow_hard_delete

    def get_by_id(self, entity_id: int, include_deleted: bool = False) -> Optional[E]:
        """Get entity by ID; soft-deleted rows only when include_deleted."""
        stmt = select(self.model).where(self.model.id == entity_id)
        if not include_deleted:
            stmt = stmt.where(self.model.validated.is_(True))
        return self.session.execute(stmt).scalars().first()

    def get_all(self, include_deleted: bool = False) -> List[E]:
        """Get all visible entities ordered by id."""
        stmt = select(self.model).order_by(self.model.id)
        if not include_deleted:
            stmt = stmt.where(self.model.validated.is_(True))
        return self.session.execute(stmt).scalars().all()

    def add(self, entity: E) -> E:
        """Stage a new entity (persisted on the next flush/commit)."""
        self.session.add(entity)
        return entity

    def add_many(self, entities: Iterable[E]) -> None:
        self.session.add_all(list(entities))

    def update(self, entity: E) -> E:
        """Attach a (possibly detached) entity and mark it for update."""
        return self.session.merge(entity)

    def update_many(self, entities: Iterable[E]) -> List[E]:
        return [self.session.merge(entity) for entity in entities]

    def delete(self, entity: E, hard_delete: bool = False) -> None:
        """
        Delete an entity.

        Args:
            entity: Entity to delete
            hard_delete: Remove the row instead of clearing validated

        Raises:
            HardDeleteNotPermittedError: hard_delete on a repository that forbids it
        """
        if hard_delete:
            if not self.allow_hard_delete:
                raise HardDeleteNotPermittedError()
            self.session.delete(entity)
        else:
            entity.validated = False
            self.session.merge(entity)
        self.session.flush()

    def count(self, include_deleted: bool = False) -> int:
        stmt = select(func.count()).select_from(self.model)
        if not include_deleted:
            stmt = stmt.where(self.model.validated.is_(True))
        return self.session.execute(stmt).scalar_one()

    def latest_by(self, column: str, value: Any, exclude_id: Optional[int] = None) -> Optional[E]:
        """
        Latest stored row (highest id) whose column equals value.

        Soft-deleted rows count as history too.

        Args:
            column: Attribute name on the model
            value: Key to match
            exclude_id: Row id to ignore (the entity being validated)
        """
        stmt = select(self.model).where(getattr(self.model, column) == value)
        if exclude_id is not None:
            stmt = stmt.where(self.model.id != exclude_id)
        stmt = stmt.order_by(self.model.id.desc()).limit(1)
        return self.session.execute(stmt).scalars().first()

    def latest_matching(
        self,
        key_selector: Callable[[E], Any],
        value: Any,
        exclude_id: Optional[int] = None
    ) -> Optional[E]:
        """
        Latest stored row (highest id) whose selected key equals value.

        The key is computed in Python, so every row of the model is scanned
        newest first; prefer latest_by() when the key is a column.
        """
        stmt = select(self.model).order_by(self.model.id.desc())
        if exclude_id is not None:
            stmt = stmt.where(self.model.id != exclude_id)
        for row in self.session.execute(stmt).scalars():
            if key_selector(row) == value:
                return row
        return None
