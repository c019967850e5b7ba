"""
Metrics Gate - Pipeline Orchestrator
Gather -> summarize -> compare with the last committed summary -> commit or discard.

One run is a single sequential coroutine. Business outcomes come back as
PipelineResult failures with a reason code; cancellation of the awaiting
task propagates unchanged.

Usage:
    orchestrator = PipelineOrchestrator(
        InMemoryGatherService(),
        SummarizationService(),
        summaries,
        SummaryCommitService(summaries),
        LoggingDiscardHandler()
    )
    result = await orchestrator.execute(
        "daily-orders", "https://api.example.com/data", SummaryStrategy.AVERAGE, Decimal("2")
    )
"""

from decimal import Decimal
from typing import Any, Callable, List, Optional, Union

from models.orm_audit import utc_now
from pipeline.commit import SummaryCommitService
from pipeline.discard import LoggingDiscardHandler
from pipeline.gather import GatherService, DEFAULT_GATHER_METHOD
from pipeline.results import (
    PipelineResult,
    PipelineSnapshot,
    SummaryStrategy,
    NO_PRIOR_SUMMARY,
    DATA_UNAVAILABLE,
    INVALID_GATHER_METHOD,
    VALIDATION_FAILED,
    DISCARD_REASON_DELTA,
)
from pipeline.summarize import SummarizationService
from utils.logger import logger, log_pipeline_start, log_pipeline_complete
from validation.threshold import ThresholdType, ensure_non_negative, is_within_threshold, to_decimal


class PipelineOrchestrator:
    """Runs one pipeline pass against a summary repository."""

    def __init__(
        self,
        gather: GatherService,
        summarizer: SummarizationService,
        summaries,
        commit: Optional[SummaryCommitService] = None,
        discard: Optional[LoggingDiscardHandler] = None
    ):
        """
        Args:
            gather: Metric source
            summarizer: Reduces gathered metrics to one value
            summaries: Summary repository (last committed lookups)
            commit: Commit step; defaults to committing through `summaries`
            discard: Discard handler; defaults to logging
        """
        self.gather = gather
        self.summarizer = summarizer
        self.summaries = summaries
        self.commit = commit or SummaryCommitService(summaries)
        self.discard = discard or LoggingDiscardHandler()
        self._gather_methods = gather.methods()

    async def execute(
        self,
        pipeline_name: str,
        source: str,
        strategy: Union[SummaryStrategy, str],
        threshold,
        gather_method: str = DEFAULT_GATHER_METHOD,
        metric_selector: Optional[Callable[[Any], Any]] = None
    ) -> PipelineResult[PipelineSnapshot]:
        """
        Execute one pipeline run.

        Args:
            pipeline_name: Pipeline whose summary history is compared against
            source: Source handed to the gather method
            strategy: Summary strategy
            threshold: Maximum absolute change against the last committed summary
            gather_method: Name from the gather service's methods() table
            metric_selector: Maps each gathered item to its numeric metric

        Returns:
            Success with the snapshot when committed; otherwise a failure with
            the reason code (and the snapshot once a summary exists)

        Raises:
            InvalidThresholdError: threshold is negative
        """
        limit = ensure_non_negative(threshold)
        now = utc_now()
        strategy_name = strategy.value if isinstance(strategy, SummaryStrategy) else str(strategy)
        log_pipeline_start(pipeline_name, source, strategy_name)

        fetch = self._gather_methods.get(gather_method)
        if fetch is None:
            return self._finish(pipeline_name, PipelineResult.failure(INVALID_GATHER_METHOD))

        gathered = await fetch(source)
        if not gathered.is_success:
            return self._finish(pipeline_name, PipelineResult.failure(gathered.error))

        try:
            metrics = self._to_metrics(gathered.value, metric_selector)
        except (ArithmeticError, LookupError, TypeError, ValueError) as e:
            logger.warning("Gathered items are not numeric", extra={
                "pipeline_name": pipeline_name,
                "source": source,
                "error_type": type(e).__name__
            })
            return self._finish(pipeline_name, PipelineResult.failure(DATA_UNAVAILABLE))

        summarized = self.summarizer.summarize(metrics, strategy)
        if not summarized.is_success:
            return self._finish(pipeline_name, PipelineResult.failure(summarized.error))
        summary = summarized.value

        last = await self.summaries.get_last_committed(pipeline_name)
        if not last.is_success and last.error != NO_PRIOR_SUMMARY:
            return self._finish(pipeline_name, PipelineResult.failure(last.error))
        last_summary = last.value if last.is_success else None

        # No prior summary: first run, nothing to compare against
        if last_summary is None:
            within = True
        else:
            within = is_within_threshold(summary, last_summary, ThresholdType.RAW_DIFFERENCE, limit)

        snapshot = PipelineSnapshot(
            pipeline_name=pipeline_name,
            source=source,
            raw_metrics=metrics,
            summary=summary,
            last_committed_summary=last_summary,
            acceptable_delta=limit,
            timestamp=now
        )

        if not within:
            await self.discard.handle_discard(summary, DISCARD_REASON_DELTA)
            return self._finish(pipeline_name, PipelineResult.failure(VALIDATION_FAILED, snapshot))

        committed = await self.commit.commit(pipeline_name, source, summary, now)
        if not committed.is_success:
            return self._finish(pipeline_name, PipelineResult.failure(committed.error, snapshot))

        return self._finish(pipeline_name, PipelineResult.success(snapshot))

    @staticmethod
    def _to_metrics(items: List[Any], metric_selector: Optional[Callable[[Any], Any]]) -> List[Decimal]:
        """Convert gathered items to finite Decimals; raises on anything else."""
        metrics = []
        for item in items:
            value = metric_selector(item) if metric_selector is not None else item
            if isinstance(value, bool):
                raise TypeError("boolean is not a metric")
            metric = to_decimal(value)
            if not metric.is_finite():
                raise ValueError(f"non-finite metric: {metric}")
            metrics.append(metric)
        return metrics

    @staticmethod
    def _finish(pipeline_name: str, result: PipelineResult[PipelineSnapshot]) -> PipelineResult[PipelineSnapshot]:
        summary: Optional[Decimal] = result.value.summary if result.value is not None else None
        log_pipeline_complete(pipeline_name, result.is_success, summary, result.error)
        return result
