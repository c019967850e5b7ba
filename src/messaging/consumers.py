"""
Metrics Gate - Save/Delete Consumers
Request -> Validated -> Committed | Fault, one message instance at a time.

Validation consumers let exceptions reach the bus (retry, then delivery
fault). The save commit consumer turns its own failures into a
SaveCommitFault message instead.

Nothing serialises two in-flight saves of the same entity: both may read
the same last audit before either appends its own.
"""

from typing import Any, Callable, Optional

from messaging.bus import MessageBus
from messaging.messages import (
    SaveRequested,
    SaveValidated,
    SaveCommitted,
    SaveCommitFault,
    DeleteRequested,
    DeleteValidated,
    DeleteCommitted,
)
from models.orm_audit import SaveAudit
from utils.logger import logger, log_commit_fault, log_validation_decision
from validation.plans import PlanCatalog
from validation.rules import ManualValidator
from validation.summarisation import SummarisationValidator

CommitCallback = Callable[[Any], None]


class SaveValidationConsumer:
    """Validates a SaveRequested against the entity's last audit."""

    def __init__(
        self,
        bus: MessageBus,
        plans: PlanCatalog,
        audit_store,
        summarisation_validator: Optional[SummarisationValidator] = None
    ):
        self.bus = bus
        self.plans = plans
        self.audit_store = audit_store
        self.summarisation_validator = summarisation_validator or SummarisationValidator()

    def __call__(self, message: SaveRequested) -> None:
        plan = self.plans.for_type_name(message.entity_type).get()
        previous = self.audit_store.last_for(message.entity_type, message.entity_id)
        validated = self.summarisation_validator.validate(message.payload, previous, plan)
        metric_value = plan.metric(message.payload)

        # The audit row is written before SaveValidated goes out
        self.audit_store.add(SaveAudit.record(
            entity_type=message.entity_type,
            entity_id=message.entity_id,
            metric_value=metric_value,
            validated=validated,
            application_name=message.app_name
        ))
        log_validation_decision(message.entity_type, message.entity_id, metric_value, validated)

        self.bus.publish(SaveValidated(
            app_name=message.app_name,
            entity_type=message.entity_type,
            entity_id=message.entity_id,
            payload=message.payload,
            validated=validated
        ))


class SaveCommitConsumer:
    """
    Records the committed state of a validated save.

    The `validated` flag on the message is trusted as-is. Unvalidated
    messages and messages without a payload are ignored.
    """

    def __init__(
        self,
        bus: MessageBus,
        plans: PlanCatalog,
        audit_store,
        commit: Optional[CommitCallback] = None
    ):
        """
        Args:
            bus: Bus SaveCommitted / SaveCommitFault are published on
            plans: Plan catalog for the committed metric
            audit_store: Store receiving the commit audit row
            commit: Optional callback persisting the payload itself
        """
        self.bus = bus
        self.plans = plans
        self.audit_store = audit_store
        self.commit = commit

    def __call__(self, message: SaveValidated) -> None:
        if not message.validated or message.payload is None:
            return

        try:
            plan = self.plans.for_type_name(message.entity_type).get()
            self.audit_store.add(SaveAudit.record(
                entity_type=message.entity_type,
                entity_id=message.entity_id,
                metric_value=plan.metric(message.payload),
                validated=message.validated,
                application_name=message.app_name
            ))
            if self.commit is not None:
                self.commit(message.payload)
        except Exception as e:
            log_commit_fault(message.entity_type, message.entity_id, e)
            self.bus.publish(SaveCommitFault(
                app_name=message.app_name,
                entity_type=message.entity_type,
                entity_id=message.entity_id,
                payload=message.payload,
                error_message=str(e)
            ))
            return

        self.bus.publish(SaveCommitted(
            app_name=message.app_name,
            entity_type=message.entity_type,
            entity_id=message.entity_id,
            payload=message.payload
        ))


class DeleteValidationConsumer:
    """A delete is valid when it carries a payload that passes the manual rules."""

    def __init__(self, bus: MessageBus, manual_validator: Optional[ManualValidator] = None):
        self.bus = bus
        self.manual_validator = manual_validator or ManualValidator()

    def __call__(self, message: DeleteRequested) -> None:
        validated = message.payload is not None and self.manual_validator.validate(message.payload)

        logger.info("Delete request validated", extra={
            "entity_type": message.entity_type,
            "entity_id": message.entity_id,
            "validated": validated
        })

        self.bus.publish(DeleteValidated(
            app_name=message.app_name,
            entity_type=message.entity_type,
            entity_id=message.entity_id,
            payload=message.payload,
            validated=validated
        ))


class DeleteCommitConsumer:
    """Publishes DeleteCommitted for every validated delete."""

    def __init__(self, bus: MessageBus, commit: Optional[CommitCallback] = None):
        self.bus = bus
        self.commit = commit

    def __call__(self, message: DeleteValidated) -> None:
        if not message.validated:
            return

        if self.commit is not None:
            self.commit(message.payload)

        self.bus.publish(DeleteCommitted(
            app_name=message.app_name,
            entity_type=message.entity_type,
            entity_id=message.entity_id,
            payload=message.payload
        ))


def register_save_pipeline(
    bus: MessageBus,
    plans: PlanCatalog,
    audit_store,
    commit: Optional[CommitCallback] = None
) -> None:
    """Subscribe the save validation and commit consumers."""
    bus.subscribe(SaveRequested, SaveValidationConsumer(bus, plans, audit_store))
    bus.subscribe(SaveValidated, SaveCommitConsumer(bus, plans, audit_store, commit))


def register_delete_pipeline(
    bus: MessageBus,
    manual_validator: Optional[ManualValidator] = None,
    commit: Optional[CommitCallback] = None
) -> None:
    """Subscribe the delete validation and commit consumers."""
    bus.subscribe(DeleteRequested, DeleteValidationConsumer(bus, manual_validator))
    bus.subscribe(DeleteValidated, DeleteCommitConsumer(bus, commit))
