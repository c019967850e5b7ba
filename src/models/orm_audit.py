"""
SQLAlchemy ORM Model: SaveAudit
Append-only decision ledger. One row per validation or commit attempt.
"""

from sqlalchemy import Integer, String, Numeric, DateTime, Boolean, Index
from sqlalchemy.orm import Mapped, mapped_column
from models.base import Base
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class SaveAudit(Base):
    """
    Immutable record of one validation/commit decision for an entity instance.

    The latest row (by timestamp) for an (entity_type, entity_id) pair is the
    baseline the next write of that entity is compared against. Rows are never
    updated; failed attempts are recorded too.
    """
    __tablename__ = "save_audits"

    # Primary Key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Audited entity
    entity_type: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        comment="Entity type name, e.g. Order"
    )
    entity_id: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        default='',
        comment="Entity identifier as a string (empty for batch audits)"
    )
    batch_audit: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="True for rows written by batch validation"
    )
    application_name: Mapped[Optional[str]] = mapped_column(
        String(200),
        nullable=True,
        comment="Application that produced the decision"
    )

    # Decision
    metric_value: Mapped[Decimal] = mapped_column(
        Numeric(28, 10),
        nullable=False,
        default=Decimal('0'),
        comment="Metric computed by the entity type's plan"
    )
    batch_size: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Number of entities in the audited operation"
    )
    validated: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False
    )
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now
    )

    __table_args__ = (
        Index('idx_save_audits_entity', 'entity_type', 'entity_id', 'timestamp'),
        {'extend_existing': True}
    )

    @property
    def is_batch(self) -> bool:
        """Batch audits summarise an operation rather than a single entity."""
        return bool(self.batch_audit)

    @classmethod
    def record(
        cls,
        entity_type: str,
        entity_id: str,
        metric_value: Decimal,
        validated: bool,
        application_name: Optional[str] = None,
        batch_size: int = 1,
        timestamp: Optional[datetime] = None
    ) -> "SaveAudit":
        """Create a single-entity audit row stamped with the current UTC time."""
        return cls(
            entity_type=entity_type,
            entity_id=entity_id,
            application_name=application_name,
            metric_value=metric_value,
            batch_size=batch_size,
            batch_audit=False,
            validated=validated,
            timestamp=timestamp or utc_now()
        )

    @classmethod
    def record_batch(
        cls,
        entity_type: str,
        batch_size: int,
        application_name: Optional[str] = None
    ) -> "SaveAudit":
        """Create a batch audit row (no entity id, zero metric)."""
        return cls(
            entity_type=entity_type,
            entity_id='',
            application_name=application_name,
            metric_value=Decimal('0'),
            batch_size=batch_size,
            batch_audit=True,
            validated=True,
            timestamp=utc_now()
        )

    def __repr__(self) -> str:
        return (
            f"<SaveAudit(id={self.id}, entity='{self.entity_type}:{self.entity_id}', "
            f"metric={self.metric_value}, validated={self.validated})>"
        )
