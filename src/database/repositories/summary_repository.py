"""
Repository: Pipeline Summaries
Last-committed summary lookups and summary commits for the orchestrator.

Both implementations expose coroutine methods; the SQLAlchemy variant runs
its blocking session calls in a worker thread.
"""

import asyncio
import threading
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.orm_summary import SummaryRecord
from pipeline.results import PipelineResult, NO_PRIOR_SUMMARY, DATABASE_ERROR
from utils.logger import log_database_error


class InMemorySummaryRepository:
    """Process-local summary history, newest value per pipeline wins."""

    def __init__(self):
        self._records: Dict[str, List[SummaryRecord]] = {}
        self._lock = threading.Lock()

    async def get_last_committed(self, pipeline_name: str) -> PipelineResult[Decimal]:
        with self._lock:
            records = self._records.get(pipeline_name)
            if not records:
                return PipelineResult.failure(NO_PRIOR_SUMMARY)
            latest = max(reversed(records), key=lambda r: r.timestamp)
        return PipelineResult.success(latest.value)

    async def save(
        self,
        pipeline_name: str,
        source: str,
        summary: Decimal,
        timestamp: datetime
    ) -> PipelineResult[None]:
        record = SummaryRecord(pipeline_name=pipeline_name, source=source, value=summary, timestamp=timestamp)
        with self._lock:
            self._records.setdefault(pipeline_name, []).append(record)
        return PipelineResult.success(None)

    def history(self, pipeline_name: str) -> List[SummaryRecord]:
        with self._lock:
            return list(self._records.get(pipeline_name, []))


class SqlAlchemySummaryRepository:
    """Repository for SummaryRecord rows."""

    def __init__(self, session: Session):
        self.session = session

    async def get_last_committed(self, pipeline_name: str) -> PipelineResult[Decimal]:
        """
        Most recent committed summary for a pipeline.

        Returns:
            Success with the value, NoPriorSummary when none exists,
            DatabaseError when the query fails
        """
        try:
            record = await asyncio.to_thread(self._latest, pipeline_name)
        except SQLAlchemyError as e:
            log_database_error(e, f"get_last_committed({pipeline_name})")
            return PipelineResult.failure(DATABASE_ERROR)

        if record is None:
            return PipelineResult.failure(NO_PRIOR_SUMMARY)
        return PipelineResult.success(record.value)

    async def save(
        self,
        pipeline_name: str,
        source: str,
        summary: Decimal,
        timestamp: datetime
    ) -> PipelineResult[None]:
        """Persist a summary record and commit; DatabaseError on failure."""
        try:
            await asyncio.to_thread(self._insert, pipeline_name, source, summary, timestamp)
        except SQLAlchemyError as e:
            self.session.rollback()
            log_database_error(e, f"save({pipeline_name})")
            return PipelineResult.failure(DATABASE_ERROR)
        return PipelineResult.success(None)

    def _latest(self, pipeline_name: str) -> Optional[SummaryRecord]:
        stmt = select(SummaryRecord).where(
            SummaryRecord.pipeline_name == pipeline_name
        ).order_by(SummaryRecord.timestamp.desc(), SummaryRecord.id.desc()).limit(1)
        return self.session.execute(stmt).scalars().first()

    def _insert(self, pipeline_name: str, source: str, summary: Decimal, timestamp: datetime) -> None:
        self.session.add(SummaryRecord(
            pipeline_name=pipeline_name,
            source=source,
            value=summary,
            timestamp=timestamp
        ))
        self.session.commit()
