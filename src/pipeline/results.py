"""
Pipeline result types and reason codes.

Business outcomes (no data, no prior summary, failed validation) are returned
as failed PipelineResults carrying a short reason code; they are never raised.
The reason strings are stable and compared verbatim by callers.
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Generic, List, Optional, TypeVar

T = TypeVar("T")

NO_DATA = "NoData"
DATA_UNAVAILABLE = "DataUnavailable"
NO_PRIOR_SUMMARY = "NoPriorSummary"
INVALID_GATHER_METHOD = "InvalidGatherMethod"
VALIDATION_FAILED = "ValidationFailed"
DATABASE_ERROR = "DatabaseError"
UNKNOWN_STRATEGY = "UnknownStrategy"

DISCARD_REASON_DELTA = "Delta exceeds threshold"


class SummaryStrategy(str, enum.Enum):
    """How gathered metrics are reduced to one summary value."""
    AVERAGE = "Average"
    SUM = "Sum"
    COUNT = "Count"


@dataclass(frozen=True)
class PipelineResult(Generic[T]):
    """Value-or-reason result used across the pipeline."""

    value: Optional[T]
    is_success: bool
    error: Optional[str] = None

    @classmethod
    def success(cls, value: T) -> "PipelineResult[T]":
        return cls(value, True, None)

    @classmethod
    def failure(cls, error: str, value: Optional[T] = None) -> "PipelineResult[T]":
        return cls(value, False, error)


@dataclass(frozen=True)
class PipelineSnapshot:
    """What one orchestrator run saw and decided. Not persisted."""

    pipeline_name: str
    source: str
    raw_metrics: List[Decimal] = field(default_factory=list)
    summary: Optional[Decimal] = None
    last_committed_summary: Optional[Decimal] = None
    acceptable_delta: Decimal = Decimal("0")
    timestamp: Optional[datetime] = None

    @property
    def delta(self) -> Optional[Decimal]:
        """Absolute change against the last committed summary, if any."""
        if self.summary is None or self.last_committed_summary is None:
            return None
        return abs(self.summary - self.last_committed_summary)
