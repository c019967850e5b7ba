"""
Metrics Gate - Sequence Validator Unit Tests

Tests:
- In-memory walk (default equality, custom comparison, fail-fast)
- Plan-driven comparison
- Audit-backed and entity-backed variants
- RollingSequenceValidator
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import Mock

import pytest

from database.repositories.audit_repository import InMemoryAuditStore
from database.repositories.entity_repository import EntityRepository
from models.orm_audit import SaveAudit
from validation.plans import Plan
from validation.sequence import (
    validate_sequence,
    validate_with_plan,
    validate_against_audits,
    validate_with_plan_against_audits,
    validate_against_entities,
    RollingSequenceValidator,
)
from validation.threshold import ThresholdType, UnsupportedThresholdTypeError


@dataclass
class Meter:
    id: str
    reading: Decimal


def within(limit):
    return lambda current, previous: abs(current - previous) <= limit


class TestValidateSequence:

    def test_distinct_keys_are_never_compared(self):
        items = [Meter("a", Decimal('1')), Meter("b", Decimal('100'))]

        assert validate_sequence(items, lambda m: m.id, lambda m: m.reading, within(0))

    def test_repeat_within_limit_is_valid(self):
        items = [Meter("a", Decimal('10')), Meter("a", Decimal('12')), Meter("a", Decimal('14'))]

        assert validate_sequence(items, lambda m: m.id, lambda m: m.reading, within(2))

    def test_baseline_moves_to_latest_value(self):
        """Each repeat compares with the previous item of its key, not the first."""
        items = [Meter("a", Decimal('10')), Meter("a", Decimal('12')), Meter("a", Decimal('14'))]

        assert validate_sequence(items, lambda m: m.id, lambda m: m.reading, within(Decimal('2')))
        assert not validate_sequence(items[:1] + items[2:], lambda m: m.id, lambda m: m.reading, within(2))

    def test_default_comparison_is_equality(self):
        same = [Meter("a", Decimal('1')), Meter("a", Decimal('1'))]
        changed = [Meter("a", Decimal('1')), Meter("a", Decimal('2'))]

        assert validate_sequence(same, lambda m: m.id, lambda m: m.reading)
        assert not validate_sequence(changed, lambda m: m.id, lambda m: m.reading)

    def test_stops_at_first_failure(self):
        """Items after the first failed comparison are never evaluated."""
        seen = []

        def value(m):
            seen.append(m.reading)
            return m.reading

        items = [Meter("a", Decimal('1')), Meter("a", Decimal('50')), Meter("a", Decimal('51'))]

        assert not validate_sequence(items, lambda m: m.id, value, within(1))
        assert seen == [Decimal('1'), Decimal('50')]

    def test_empty_sequence_is_valid(self):
        assert validate_sequence([], lambda m: m.id, lambda m: m.reading)

    def test_none_arguments_raise_type_error(self):
        with pytest.raises(TypeError):
            validate_sequence(None, lambda m: m.id, lambda m: m.reading)
        with pytest.raises(TypeError):
            validate_sequence([], None, lambda m: m.reading)
        with pytest.raises(TypeError):
            validate_sequence([], lambda m: m.id, None)


class TestValidateWithPlan:

    def test_percent_change_plan(self):
        plan = Plan(lambda m: m.reading, ThresholdType.PERCENT_CHANGE, Decimal('0.1'))
        items = [Meter("a", Decimal('100')), Meter("a", Decimal('109'))]

        assert validate_with_plan(items, lambda m: m.id, plan)

    def test_raw_difference_plan_failure(self):
        plan = Plan(lambda m: m.reading, ThresholdType.RAW_DIFFERENCE, Decimal('5'))
        items = [Meter("a", Decimal('100')), Meter("a", Decimal('106'))]

        assert not validate_with_plan(items, lambda m: m.id, plan)

    def test_unsupported_type_raises(self):
        plan = Plan(lambda m: m.reading, "Logarithmic", Decimal('5'))
        items = [Meter("a", Decimal('100')), Meter("a", Decimal('106'))]

        with pytest.raises(UnsupportedThresholdTypeError):
            validate_with_plan(items, lambda m: m.id, plan)

    def test_none_plan_raises(self):
        with pytest.raises(TypeError):
            validate_with_plan([], lambda m: m.id, None)


class TestValidateAgainstAudits:

    @pytest.fixture
    def store(self):
        store = InMemoryAuditStore()
        base = datetime(2026, 1, 1, tzinfo=timezone.utc)
        store.add(SaveAudit.record("Meter", "a", Decimal('100'), True, "billing", timestamp=base))
        store.add(SaveAudit.record("Meter", "a", Decimal('120'), True, "billing",
                                   timestamp=base + timedelta(minutes=1)))
        store.add(SaveAudit.record("Meter", "a", Decimal('500'), True, "reporting",
                                   timestamp=base + timedelta(minutes=2)))
        return store

    def test_entity_without_audit_is_valid(self, store):
        assert validate_against_audits(
            [Meter("zzz", Decimal('1'))], store, "Meter", lambda m: m.id, lambda m: m.reading, within(0)
        )

    def test_compares_with_latest_audit(self, store):
        assert validate_against_audits(
            [Meter("a", Decimal('502'))], store, "Meter", lambda m: m.id, lambda m: m.reading, within(5)
        )

    def test_application_name_restricts_history(self, store):
        assert validate_against_audits(
            [Meter("a", Decimal('122'))], store, "Meter", lambda m: m.id, lambda m: m.reading, within(5),
            application_name="billing"
        )
        assert not validate_against_audits(
            [Meter("a", Decimal('122'))], store, "Meter", lambda m: m.id, lambda m: m.reading, within(5)
        )

    def test_items_are_checked_against_history_not_each_other(self, store):
        """Two items with the same key are both compared with the stored audit."""
        items = [Meter("a", Decimal('501')), Meter("a", Decimal('499'))]

        assert validate_against_audits(items, store, "Meter", lambda m: m.id, lambda m: m.reading, within(1))

    def test_fails_fast(self):
        store = Mock()
        store.last_for.return_value = SaveAudit.record("Meter", "a", Decimal('1'), True)
        items = [Meter("a", Decimal('9')), Meter("b", Decimal('1'))]

        assert not validate_against_audits(items, store, "Meter", lambda m: m.id, lambda m: m.reading, within(0))
        assert store.last_for.call_count == 1

    def test_with_plan(self, store):
        plan = Plan(lambda m: m.reading, ThresholdType.PERCENT_CHANGE, Decimal('0.01'))

        assert validate_with_plan_against_audits([Meter("a", Decimal('504'))], store, "Meter", lambda m: m.id, plan)
        assert not validate_with_plan_against_audits([Meter("a", Decimal('506'))], store, "Meter", lambda m: m.id, plan)


class TestValidateAgainstEntities:

    def test_compares_with_latest_stored_row(self, db_session, reading_model):
        repo = EntityRepository(db_session, reading_model)
        repo.add_many([
            reading_model(sensor_id="s1", value=Decimal('10'), validated=True),
            reading_model(sensor_id="s1", value=Decimal('20'), validated=True),
        ])
        db_session.flush()

        candidate = reading_model(sensor_id="s1", value=Decimal('21'))

        assert validate_against_entities([candidate], repo, "sensor_id", lambda r: r.value, within(1))
        assert not validate_against_entities([candidate], repo, "sensor_id", lambda r: r.value, within(Decimal('0.5')))

    def test_key_selector(self, db_session, reading_model):
        repo = EntityRepository(db_session, reading_model)
        repo.add_many([
            reading_model(sensor_id="S1", value=Decimal('10'), validated=True),
            reading_model(sensor_id="s2", value=Decimal('50'), validated=True),
        ])
        db_session.flush()

        candidate = reading_model(sensor_id="s1", value=Decimal('11'))
        by_sensor = lambda r: r.sensor_id.lower()

        assert validate_against_entities([candidate], repo, by_sensor, lambda r: r.value, within(1))
        assert not validate_against_entities([candidate], repo, by_sensor, lambda r: r.value, within(Decimal('0.5')))

    def test_key_selector_excludes_the_entity_itself(self, db_session, reading_model):
        repo = EntityRepository(db_session, reading_model)
        stored = repo.add(reading_model(sensor_id="s3", value=Decimal('10'), validated=True))
        db_session.flush()

        assert validate_against_entities([stored], repo, lambda r: r.sensor_id, lambda r: r.value, within(0))

    def test_none_key_selector_raises(self, db_session, reading_model):
        with pytest.raises(TypeError):
            validate_against_entities([], EntityRepository(db_session, reading_model), None, lambda r: r.value, within(0))

    def test_entity_is_not_its_own_baseline(self, db_session, reading_model):
        repo = EntityRepository(db_session, reading_model)
        stored = repo.add(reading_model(sensor_id="s2", value=Decimal('10'), validated=True))
        db_session.flush()

        assert validate_against_entities([stored], repo, "sensor_id", lambda r: r.value, within(0))

    def test_no_history_is_valid(self, db_session, reading_model):
        repo = EntityRepository(db_session, reading_model)

        assert validate_against_entities(
            [reading_model(sensor_id="new", value=Decimal('1'))], repo, "sensor_id", lambda r: r.value, within(0)
        )


class TestRollingSequenceValidator:

    def test_first_instance_is_valid(self):
        validator = RollingSequenceValidator(lambda m: m.id, lambda m: m.reading, within(1))

        assert validator.validate(Meter("a", Decimal('1')))

    def test_compares_with_latest_instance_of_different_key(self):
        validator = RollingSequenceValidator(lambda m: m.id, lambda m: m.reading, within(1))
        validator.validate(Meter("a", Decimal('10')))
        validator.validate(Meter("a", Decimal('50')))

        # Same key as every earlier instance: nothing to compare against
        assert validator.validate(Meter("a", Decimal('900')))
        assert validator.validate(Meter("b", Decimal('901')))
        assert not validator.validate(Meter("a", Decimal('990')))

    def test_reset_forgets_history(self):
        validator = RollingSequenceValidator(lambda m: m.id, lambda m: m.reading, within(0))
        validator.validate(Meter("a", Decimal('1')))
        validator.reset()

        assert validator.validate(Meter("b", Decimal('100')))
