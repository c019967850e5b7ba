"""
Sequence Validation
===================

Compares consecutive values that share a discriminator key.

In-memory variants walk the items in order, keep the last value seen for each
key and compare every repeat against it. The first failed comparison stops
the walk: later items are never evaluated.

Store-backed variants compare every item against persisted history instead
(the latest audit row, or the latest stored entity row, for the item's key).
Lookups are independent per item; an item with no history is valid.

Usage:
    from validation.sequence import validate_sequence

    ok = validate_sequence(
        readings,
        key_selector=lambda r: r.sensor_id,
        value_selector=lambda r: r.value,
        comparison=lambda cur, prev: abs(cur - prev) <= 5,
    )
"""

from typing import Any, Callable, Dict, Generic, Hashable, Iterable, List, Optional, TypeVar, Union

from validation.plans import Plan
from validation.threshold import is_within_threshold, to_decimal
from utils.logger import logger

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

Comparison = Callable[[Any, Any], bool]


def _equals(current: Any, previous: Any) -> bool:
    return current == previous


def _require(**arguments: Any) -> None:
    for name, value in arguments.items():
        if value is None:
            raise TypeError(f"{name} must not be None")


def validate_sequence(
    items: Iterable[T],
    key_selector: Callable[[T], K],
    value_selector: Callable[[T], V],
    comparison: Optional[Callable[[V, V], bool]] = None
) -> bool:
    """
    Validate items against the previous item with the same key.

    Args:
        items: Items in the order they should be compared
        key_selector: Returns the discriminator key of an item
        value_selector: Returns the compared value of an item
        comparison: comparison(current, previous) -> bool; equality when omitted

    Returns:
        False on the first failed comparison, True otherwise
    """
    _require(items=items, key_selector=key_selector, value_selector=value_selector)
    compare = comparison if comparison is not None else _equals

    last_values: Dict[K, V] = {}
    for item in items:
        key = key_selector(item)
        value = value_selector(item)

        if key in last_values and not compare(value, last_values[key]):
            return False

        last_values[key] = value

    return True


def plan_comparison(plan: Plan) -> Comparison:
    """Strict threshold comparison for a plan (unknown types raise)."""
    return lambda current, previous: is_within_threshold(
        current,
        previous,
        plan.threshold_type,
        plan.threshold_value,
        throw_on_unsupported=True
    )


def validate_with_plan(
    items: Iterable[T],
    key_selector: Callable[[T], K],
    plan: Plan[T]
) -> bool:
    """Validate a sequence using the plan's metric selector and threshold rule."""
    _require(plan=plan)
    return validate_sequence(items, key_selector, plan.metric, plan_comparison(plan))


def validate_against_audits(
    entities: Iterable[T],
    audit_store,
    entity_type: Optional[str],
    key_selector: Callable[[T], Any],
    value_selector: Callable[[T], Any],
    comparison: Comparison,
    application_name: Optional[str] = None
) -> bool:
    """
    Validate each entity against the latest audit recorded for its key.

    Args:
        entities: Entities to validate
        audit_store: Store exposing last_for(entity_type, entity_id, application_name)
        entity_type: Audit entity type to match (None matches any type)
        key_selector: Returns the audit entity id for an entity
        value_selector: Returns the entity's current value
        comparison: comparison(current, audit_metric_value) -> bool
        application_name: Only consider audits written by this application

    Returns:
        False on the first entity that fails, True otherwise
    """
    _require(entities=entities, audit_store=audit_store, key_selector=key_selector,
             value_selector=value_selector, comparison=comparison)

    for entity in entities:
        key = str(key_selector(entity))
        audit = audit_store.last_for(entity_type, key, application_name=application_name)
        if audit is None:
            continue

        current = to_decimal(value_selector(entity))
        if not comparison(current, audit.metric_value):
            logger.info("Entity failed comparison against audit history", extra={
                "entity_type": entity_type,
                "entity_id": key,
                "current_value": str(current),
                "audit_value": str(audit.metric_value)
            })
            return False

    return True


def validate_with_plan_against_audits(
    entities: Iterable[T],
    audit_store,
    entity_type: Optional[str],
    key_selector: Callable[[T], Any],
    plan: Plan[T],
    application_name: Optional[str] = None
) -> bool:
    """Audit-backed validation using a plan's metric and threshold rule."""
    _require(plan=plan)
    return validate_against_audits(
        entities,
        audit_store,
        entity_type,
        key_selector,
        plan.metric,
        plan_comparison(plan),
        application_name=application_name
    )


def validate_against_entities(
    entities: Iterable[T],
    repository,
    key_selector: Union[Callable[[T], Any], str],
    value_selector: Callable[[T], Any],
    comparison: Comparison
) -> bool:
    """
    Validate each entity against the latest persisted row sharing its key.

    The baseline is the stored row with the highest id whose key equals the
    entity's; the entity itself is never its own baseline.

    Args:
        entities: Entities to validate
        repository: EntityRepository exposing latest_matching() and latest_by()
        key_selector: Returns the discriminator key; a column name instead
            lets the repository match the key in SQL
        value_selector: Returns the compared value for entity and baseline alike
        comparison: comparison(current, previous) -> bool
    """
    _require(entities=entities, repository=repository, key_selector=key_selector,
             value_selector=value_selector, comparison=comparison)

    for entity in entities:
        exclude_id = getattr(entity, "id", None)
        if isinstance(key_selector, str):
            baseline = repository.latest_by(key_selector, getattr(entity, key_selector), exclude_id=exclude_id)
        else:
            baseline = repository.latest_matching(key_selector, key_selector(entity), exclude_id=exclude_id)
        if baseline is None:
            continue
        if not comparison(value_selector(entity), value_selector(baseline)):
            return False

    return True


class RollingSequenceValidator(Generic[T, K]):
    """
    Validates instances one at a time against the most recent earlier
    instance whose key differs from the current one.

    Useful when a value should stay stable across a change of discriminator,
    e.g. a meter reading when the meter is swapped.
    """

    def __init__(
        self,
        key_selector: Callable[[T], K],
        value_selector: Callable[[T], Any],
        rule: Comparison
    ):
        _require(key_selector=key_selector, value_selector=value_selector, rule=rule)
        self._key_selector = key_selector
        self._value_selector = value_selector
        self._rule = rule
        self._history: List[T] = []

    def validate(self, instance: T) -> bool:
        _require(instance=instance)
        key = self._key_selector(instance)
        value = self._value_selector(instance)

        for previous in reversed(self._history):
            if self._key_selector(previous) != key:
                self._history.append(instance)
                return self._rule(value, self._value_selector(previous))

        self._history.append(instance)
        return True

    def reset(self) -> None:
        """Forget all validated instances."""
        self._history.clear()
