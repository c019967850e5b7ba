"""
Save/delete event pipeline over an in-process message bus.

    bus = MessageBus(immediate_retries=1)
    register_save_pipeline(bus, catalog, InMemoryAuditStore())
    EventPublishingRepository(bus).save("orders-api", order)
"""

from .messages import (
    SaveRequested,
    SaveValidated,
    SaveCommitted,
    SaveCommitFault,
    DeleteRequested,
    DeleteValidated,
    DeleteCommitted,
)
from .bus import MessageBus, DeliveryFault
from .consumers import (
    SaveValidationConsumer,
    SaveCommitConsumer,
    DeleteValidationConsumer,
    DeleteCommitConsumer,
    register_save_pipeline,
    register_delete_pipeline,
)
from .publishing_repository import EventPublishingRepository

__all__ = [
    "SaveRequested",
    "SaveValidated",
    "SaveCommitted",
    "SaveCommitFault",
    "DeleteRequested",
    "DeleteValidated",
    "DeleteCommitted",
    "MessageBus",
    "DeliveryFault",
    "SaveValidationConsumer",
    "SaveCommitConsumer",
    "DeleteValidationConsumer",
    "DeleteCommitConsumer",
    "register_save_pipeline",
    "register_delete_pipeline",
    "EventPublishingRepository",
]
