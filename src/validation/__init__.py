"""
Write Validation
================

Decides whether a change in an entity's metric is acceptable relative to the
entity's own history.

Components:
- threshold.py: RawDifference / PercentChange comparison
- plans.py: Plan (metric selector + threshold) and per-type registries
- sequence.py: consecutive-value checks, in memory or against stored history
- rules.py: manual predicate rules per entity type
- summarisation.py: metric vs. previous audit
- runner.py: manual + metric validation with one audit row per attempt
- batch.py: batch size tolerance check

Usage:
    from validation import Plan, PlanRegistry, PlanCatalog, ThresholdType, ValidationRunner

    catalog = PlanCatalog().add(
        PlanRegistry(Order, Plan(lambda o: o.total, ThresholdType.RAW_DIFFERENCE, Decimal('5')))
    )
    runner = ValidationRunner(catalog, InMemoryAuditStore())
    runner.validate(order)
"""

from .threshold import (
    ThresholdType,
    InvalidThresholdError,
    UnsupportedThresholdTypeError,
    is_within_threshold,
)
from .plans import Plan, PlanRegistry, PlanCatalog, PlanNotFoundError
from .sequence import (
    validate_sequence,
    validate_with_plan,
    validate_against_audits,
    validate_with_plan_against_audits,
    validate_against_entities,
    RollingSequenceValidator,
)
from .rules import RuleSet, ManualValidator
from .entity_ids import EntityIdProvider, MissingEntityIdError
from .summarisation import SummarisationValidator
from .runner import ValidationRunner
from .batch import BatchValidator

__all__ = [
    "ThresholdType",
    "InvalidThresholdError",
    "UnsupportedThresholdTypeError",
    "is_within_threshold",
    "Plan",
    "PlanRegistry",
    "PlanCatalog",
    "PlanNotFoundError",
    "validate_sequence",
    "validate_with_plan",
    "validate_against_audits",
    "validate_with_plan_against_audits",
    "validate_against_entities",
    "RollingSequenceValidator",
    "RuleSet",
    "ManualValidator",
    "EntityIdProvider",
    "MissingEntityIdError",
    "SummarisationValidator",
    "ValidationRunner",
    "BatchValidator",
]
