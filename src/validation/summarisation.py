"""Metric/threshold check of one entity against its previous audit."""

from typing import Optional

from models.orm_audit import SaveAudit
from validation.plans import Plan
from validation.threshold import is_within_threshold


class SummarisationValidator:
    """
    Compares an entity's plan metric with the metric stored on the previous
    audit. No previous audit means no baseline, which is valid.
    """

    def validate(self, entity, previous_audit: Optional[SaveAudit], plan: Plan) -> bool:
        if plan is None:
            raise TypeError("plan must not be None")
        if entity is None:
            raise TypeError("entity must not be None")

        current = plan.metric(entity)
        if previous_audit is None:
            return True

        return is_within_threshold(
            current,
            previous_audit.metric_value,
            plan.threshold_type,
            plan.threshold_value
        )
