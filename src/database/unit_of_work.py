"""
Unit of Work
Validates pending tracked entities before committing a session.

Each new or modified entity of the requested model is run through the
ValidationRunner; its `validated` flag is set from the outcome (an invalid
write is stored but hidden by the repositories' soft-delete filter).
"""

from typing import Dict, Type

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database.repositories.entity_repository import EntityRepository
from utils.logger import logger, log_database_error


class UnitOfWork:
    """Session-scoped repositories plus validated commits."""

    def __init__(self, session: Session, runner):
        self.session = session
        self.runner = runner
        self._repositories: Dict[type, EntityRepository] = {}

    def repository(self, model: Type) -> EntityRepository:
        """Repository for a model, one instance per unit of work."""
        if model not in self._repositories:
            self._repositories[model] = EntityRepository(self.session, model)
        return self._repositories[model]

    def save_changes(self, model: Type) -> int:
        """
        Validate pending entities of `model` and commit.

        Args:
            model: Tracked entity model whose new/dirty rows are validated

        Returns:
            Number of entities validated

        Raises:
            SQLAlchemyError: commit failed (session rolled back)
        """
        pending = [
            entity for entity in list(self.session.new) + list(self.session.dirty)
            if isinstance(entity, model)
        ]

        # New rows need an id before they can be audited
        if any(entity.id is None for entity in pending):
            self.session.flush()

        for entity in pending:
            entity.validated = self.runner.validate(entity)

        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            log_database_error(e, f"save_changes({model.__name__})")
            raise

        logger.info("Unit of work committed", extra={
            "entity_type": model.__name__,
            "validated_count": len(pending),
            "accepted_count": sum(1 for e in pending if e.validated)
        })
        return len(pending)
