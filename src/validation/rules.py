"""
Manual Validation Rules
=======================

Plain predicates registered per entity type. Every rule registered for an
instance's type must pass; a type with no rules passes.

Rule sets are created explicitly per entity type at configuration time:

    order_rules = RuleSet(Order).add(lambda o: o.total >= 0)
    validator = ManualValidator([order_rules])
    validator.validate(order)
"""

from typing import Callable, Dict, Generic, Iterable, List, Optional, Type, TypeVar

T = TypeVar("T")

Predicate = Callable[[T], bool]


class RuleSet(Generic[T]):
    """Ordered predicates for one entity type."""

    def __init__(self, entity_type: Type[T], rules: Optional[Iterable[Predicate]] = None):
        self.entity_type = entity_type
        self._rules: List[Predicate] = list(rules or [])

    def add(self, rule: Predicate) -> "RuleSet[T]":
        if not callable(rule):
            raise TypeError("rule must be callable")
        self._rules.append(rule)
        return self

    def passes(self, instance: T) -> bool:
        # all() stops at the first failing rule
        return all(rule(instance) for rule in self._rules)

    @property
    def rules(self) -> tuple:
        return tuple(self._rules)

    def __len__(self) -> int:
        return len(self._rules)


class ManualValidator:
    """Runs the rule set registered for an instance's exact type."""

    def __init__(self, rule_sets: Optional[Iterable[RuleSet]] = None):
        self._rule_sets: Dict[type, RuleSet] = {}
        for rule_set in rule_sets or []:
            self.add_rule_set(rule_set)

    def add_rule_set(self, rule_set: RuleSet) -> "ManualValidator":
        existing = self._rule_sets.get(rule_set.entity_type)
        if existing is None:
            self._rule_sets[rule_set.entity_type] = rule_set
        else:
            for rule in rule_set.rules:
                existing.add(rule)
        return self

    def register(self, entity_type: Type[T], rule: Predicate) -> "ManualValidator":
        """Add one rule for entity_type, creating its rule set on first use."""
        self._rule_sets.setdefault(entity_type, RuleSet(entity_type)).add(rule)
        return self

    def rules_for(self, entity_type: type) -> Optional[RuleSet]:
        return self._rule_sets.get(entity_type)

    def validate(self, instance) -> bool:
        """
        Check an instance against its type's rules.

        Raises:
            TypeError: instance is None
        """
        if instance is None:
            raise TypeError("instance must not be None")
        rule_set = self._rule_sets.get(type(instance))
        if rule_set is None:
            return True
        return rule_set.passes(instance)
