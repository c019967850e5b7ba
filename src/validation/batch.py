"""Batch size validation against the last audited batch of the same type."""

from decimal import Decimal
from typing import Union

from models.orm_audit import SaveAudit
from utils.config import APPLICATION_NAME, BATCH_SIZE_TOLERANCE
from utils.logger import logger


class BatchValidator:
    """
    Accepts a batch whose size is within `tolerance` (a fraction) of the
    previously audited batch size. With no previous batch, or a previous size
    of zero, any batch is accepted. Only accepted batches are audited.
    """

    def __init__(self, audit_store, tolerance: Decimal = BATCH_SIZE_TOLERANCE,
                 application_name: str = APPLICATION_NAME):
        self.audit_store = audit_store
        self.tolerance = Decimal(tolerance)
        self.application_name = application_name

    def validate_and_audit(self, entity_type: Union[type, str], batch_size: int) -> bool:
        type_name = entity_type if isinstance(entity_type, str) else entity_type.__name__
        previous = self.audit_store.last_batch_for(type_name)

        is_valid = (
            previous is None
            or previous.batch_size == 0
            or abs(batch_size - previous.batch_size) <= previous.batch_size * self.tolerance
        )

        if is_valid:
            self.audit_store.add(SaveAudit.record_batch(type_name, batch_size, self.application_name))
        else:
            logger.warning("Batch size outside tolerance", extra={
                "entity_type": type_name,
                "batch_size": batch_size,
                "previous_batch_size": previous.batch_size,
                "tolerance": str(self.tolerance)
            })
        return is_valid
