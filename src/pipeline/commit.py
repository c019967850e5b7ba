"""Commit step: persist an accepted summary through a summary repository."""

from datetime import datetime
from decimal import Decimal

from pipeline.results import PipelineResult


class SummaryCommitService:
    """
    Thin adapter over InMemorySummaryRepository / SqlAlchemySummaryRepository.
    Repository failures come back as DatabaseError results.
    """

    def __init__(self, repository):
        self.repository = repository

    async def commit(
        self,
        pipeline_name: str,
        source: str,
        summary: Decimal,
        timestamp: datetime
    ) -> PipelineResult[None]:
        return await self.repository.save(pipeline_name, source, summary, timestamp)
