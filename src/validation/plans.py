"""
Validation Plans
================

A Plan binds a metric selector, a threshold type and a threshold value for one
entity type. Plans are built at configuration time and never mutated.

Registries are instantiated explicitly per entity type:

    orders = PlanRegistry(Order)
    orders.register(Plan(lambda o: o.total, ThresholdType.PERCENT_CHANGE, Decimal('0.1')))

    catalog = PlanCatalog()
    catalog.add(orders)
    catalog.for_type_name("Order").get()
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Dict, Generic, Optional, Type, TypeVar

from validation.threshold import ThresholdType, ensure_non_negative, to_decimal

T = TypeVar("T")


class PlanNotFoundError(LookupError):
    """Raised when no plan has been registered for an entity type."""
    pass


@dataclass(frozen=True)
class Plan(Generic[T]):
    """Metric selector + threshold rule for one entity type."""

    metric_selector: Callable[[T], Any]
    threshold_type: ThresholdType
    threshold_value: Decimal

    def __post_init__(self):
        if self.metric_selector is None or not callable(self.metric_selector):
            raise TypeError("metric_selector must be callable")
        # frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, "threshold_value", ensure_non_negative(self.threshold_value))

    def metric(self, entity: T) -> Decimal:
        """Compute the metric for an entity as a Decimal."""
        return to_decimal(self.metric_selector(entity))


class PlanRegistry(Generic[T]):
    """Holds the single plan for one entity type."""

    def __init__(self, entity_type: Type[T], plan: Optional[Plan[T]] = None):
        self.entity_type = entity_type
        self._plan = plan

    @property
    def type_name(self) -> str:
        return self.entity_type.__name__

    def register(self, plan: Plan[T]) -> "PlanRegistry[T]":
        if self._plan is not None:
            raise ValueError(f"A plan is already registered for {self.type_name}")
        self._plan = plan
        return self

    def get(self) -> Plan[T]:
        if self._plan is None:
            raise PlanNotFoundError(f"No plan registered for {self.type_name}")
        return self._plan

    def __contains__(self, entity: Any) -> bool:
        return isinstance(entity, self.entity_type)


class PlanCatalog:
    """Lookup of per-type registries, built once at configuration time."""

    def __init__(self):
        self._registries: Dict[str, PlanRegistry] = {}

    def add(self, registry: PlanRegistry) -> "PlanCatalog":
        self._registries[registry.type_name] = registry
        return self

    def for_type_name(self, type_name: str) -> PlanRegistry:
        try:
            return self._registries[type_name]
        except KeyError:
            raise PlanNotFoundError(f"No plan registered for {type_name}")

    def plan_for(self, entity: Any) -> Plan:
        """Plan for an entity instance, resolved by its class name."""
        return self.for_type_name(type(entity).__name__).get()

    def __len__(self) -> int:
        return len(self._registries)
