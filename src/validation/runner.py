"""
Validation Runner
=================

Composes manual rules and metric/threshold validation for an entity and
records every attempt in the audit ledger.

For each entity:
1. Manual rules for the entity's type (no rules passes)
2. Plan metric vs. the metric on the entity's last audit (no audit passes)
3. Append one audit row with the metric and the combined outcome

Failed attempts are audited too, so they become the baseline that the next
write of the same entity is compared against.
"""

from typing import Iterable, Optional

from models.orm_audit import SaveAudit
from utils.config import APPLICATION_NAME
from utils.logger import log_validation_decision
from validation.entity_ids import EntityIdProvider, MissingEntityIdError
from validation.plans import PlanCatalog
from validation.rules import ManualValidator
from validation.summarisation import SummarisationValidator


class ValidationRunner:
    """Runs manual + summarisation validation and audits the result."""

    def __init__(
        self,
        plans: PlanCatalog,
        audit_store,
        manual_validator: Optional[ManualValidator] = None,
        id_provider: Optional[EntityIdProvider] = None,
        summarisation_validator: Optional[SummarisationValidator] = None,
        application_name: str = APPLICATION_NAME
    ):
        """
        Args:
            plans: Plan catalog holding a plan for every validated type
            audit_store: AuditStore the decisions are appended to
            manual_validator: Rule validator (no rules when omitted)
            id_provider: Entity id resolution (falls back to `id`)
            summarisation_validator: Metric/threshold check
            application_name: Written to every audit row
        """
        self.plans = plans
        self.audit_store = audit_store
        self.manual_validator = manual_validator or ManualValidator()
        self.id_provider = id_provider or EntityIdProvider()
        self.summarisation_validator = summarisation_validator or SummarisationValidator()
        self.application_name = application_name

    def validate(self, entity) -> bool:
        """
        Validate one entity and append its audit row.

        Returns:
            True when both the manual rules and the threshold check pass

        Raises:
            PlanNotFoundError: no plan for the entity's type
            MissingEntityIdError: the entity resolves to an empty id
            InvalidThresholdError / UnsupportedThresholdTypeError from the plan
        """
        if entity is None:
            raise TypeError("entity must not be None")

        entity_type = type(entity).__name__
        entity_id = self.id_provider.get_entity_id(entity)
        if not entity_id:
            raise MissingEntityIdError(f"{entity_type} has no id to key its audits by")
        plan = self.plans.plan_for(entity)

        manual_valid = self.manual_validator.validate(entity)

        previous = self.audit_store.last_for(entity_type, entity_id)
        summary_valid = self.summarisation_validator.validate(entity, previous, plan)

        validated = manual_valid and summary_valid
        metric_value = plan.metric(entity)

        self.audit_store.add(SaveAudit.record(
            entity_type=entity_type,
            entity_id=entity_id,
            metric_value=metric_value,
            validated=validated,
            application_name=self.application_name,
            batch_size=1
        ))
        log_validation_decision(entity_type, entity_id, metric_value, validated)

        return validated

    def validate_many(self, entities: Iterable) -> bool:
        """
        Validate every entity independently.

        Every entity is validated and audited even after a failure.

        Returns:
            True only if all entities passed
        """
        results = [self.validate(entity) for entity in entities]
        return all(results)
