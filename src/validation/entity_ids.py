"""Entity id resolution for audit keys."""

from typing import Any, Callable, Dict, Type


class MissingEntityIdError(ValueError):
    """Raised when an entity has no id to key its audit history by."""
    pass

class EntityIdProvider:
    """
    Maps an entity to the string id its audits are keyed by.

    Selectors are registered per entity type; types without a selector fall
    back to their `id` attribute, and entities without one map to ''.
    """

    def __init__(self):
        self._selectors: Dict[type, Callable[[Any], Any]] = {}

    def register(self, entity_type: Type, selector: Callable[[Any], Any]) -> "EntityIdProvider":
        self._selectors[entity_type] = selector
        return self

    def get_entity_id(self, entity: Any) -> str:
        if entity is None:
            return ''
        selector = self._selectors.get(type(entity))
        if selector is not None:
            value = selector(entity)
        else:
            value = getattr(entity, 'id', None)
        return '' if value is None else str(value)
