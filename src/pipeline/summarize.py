"""Reduce gathered metrics to a single summary value."""

from decimal import Decimal
from typing import Sequence, Union

from pipeline.results import PipelineResult, SummaryStrategy, NO_DATA, UNKNOWN_STRATEGY


class SummarizationService:

    def summarize(
        self,
        metrics: Sequence[Decimal],
        strategy: Union[SummaryStrategy, str]
    ) -> PipelineResult[Decimal]:
        if not metrics:
            return PipelineResult.failure(NO_DATA)

        try:
            strategy = SummaryStrategy(strategy)
        except ValueError:
            return PipelineResult.failure(UNKNOWN_STRATEGY)

        if strategy is SummaryStrategy.AVERAGE:
            return PipelineResult.success(sum(metrics, Decimal(0)) / len(metrics))
        if strategy is SummaryStrategy.SUM:
            return PipelineResult.success(sum(metrics, Decimal(0)))
        return PipelineResult.success(Decimal(len(metrics)))
