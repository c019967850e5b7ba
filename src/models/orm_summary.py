"""
SQLAlchemy ORM Model: SummaryRecord
Committed pipeline summaries used as the baseline for the next run.
"""

from sqlalchemy import Integer, String, Numeric, DateTime, Index
from sqlalchemy.orm import Mapped, mapped_column
from models.base import Base
from models.orm_audit import utc_now
from datetime import datetime
from decimal import Decimal


class SummaryRecord(Base):
    """A summary value committed by the pipeline orchestrator."""
    __tablename__ = "summary_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    pipeline_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        comment="Logical pipeline the summary belongs to"
    )
    source: Mapped[str] = mapped_column(
        String(2000),
        nullable=False,
        comment="Endpoint the raw metrics were gathered from"
    )
    value: Mapped[Decimal] = mapped_column(
        Numeric(28, 10),
        nullable=False
    )
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now
    )

    __table_args__ = (
        Index('idx_summary_records_pipeline', 'pipeline_name', 'timestamp'),
        {'extend_existing': True}
    )

    def __repr__(self) -> str:
        return f"<SummaryRecord(id={self.id}, pipeline='{self.pipeline_name}', value={self.value})>"
