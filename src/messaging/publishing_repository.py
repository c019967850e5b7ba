"""Entity repository whose writes become save/delete requests on the bus."""

import uuid
from typing import Any, Optional

from messaging.bus import MessageBus
from messaging.messages import SaveRequested, DeleteRequested
from validation.entity_ids import EntityIdProvider


class EventPublishingRepository:
    """
    Publishes a request instead of writing directly; the consumers decide
    whether the write is committed.
    """

    def __init__(self, bus: MessageBus, id_provider: Optional[EntityIdProvider] = None):
        self.bus = bus
        self.id_provider = id_provider or EntityIdProvider()

    def save(self, app_name: str, entity: Any) -> str:
        """
        Publish SaveRequested for an entity.

        Returns:
            The entity id used on the message (a new uuid4 when the entity has none)
        """
        entity_id = self._entity_id(entity)
        self.bus.publish(SaveRequested(
            app_name=app_name,
            entity_type=type(entity).__name__,
            entity_id=entity_id,
            payload=entity
        ))
        return entity_id

    def delete(self, app_name: str, entity: Any) -> str:
        """Publish DeleteRequested for an entity."""
        entity_id = self._entity_id(entity)
        self.bus.publish(DeleteRequested(
            app_name=app_name,
            entity_type=type(entity).__name__,
            entity_id=entity_id,
            payload=entity
        ))
        return entity_id

    def _entity_id(self, entity: Any) -> str:
        if entity is None:
            raise TypeError("entity must not be None")
        return self.id_provider.get_entity_id(entity) or str(uuid.uuid4())
