"""
Metrics Gate - Threshold Validator Unit Tests

Tests is_within_threshold():
- RawDifference and PercentChange comparisons
- Zero-baseline behaviour for PercentChange
- validated short-circuit and negative threshold ordering
- Unsupported threshold types
"""

from decimal import Decimal

import pytest

from validation.threshold import (
    ThresholdType,
    InvalidThresholdError,
    UnsupportedThresholdTypeError,
    is_within_threshold,
    to_decimal,
)


class TestRawDifference:
    """RawDifference: abs(current - previous) <= threshold."""

    def test_change_inside_threshold_is_valid(self):
        assert is_within_threshold(Decimal('105'), Decimal('100'), ThresholdType.RAW_DIFFERENCE, Decimal('10'))

    def test_change_equal_to_threshold_is_valid(self):
        """The boundary is inclusive."""
        assert is_within_threshold(Decimal('110'), Decimal('100'), ThresholdType.RAW_DIFFERENCE, Decimal('10'))

    def test_change_outside_threshold_is_invalid(self):
        assert not is_within_threshold(Decimal('111'), Decimal('100'), ThresholdType.RAW_DIFFERENCE, Decimal('10'))

    def test_decrease_uses_absolute_difference(self):
        assert not is_within_threshold(Decimal('89'), Decimal('100'), ThresholdType.RAW_DIFFERENCE, Decimal('10'))

    def test_zero_threshold_requires_equal_values(self):
        assert is_within_threshold(Decimal('5'), Decimal('5'), ThresholdType.RAW_DIFFERENCE, Decimal('0'))
        assert not is_within_threshold(Decimal('5.0001'), Decimal('5'), ThresholdType.RAW_DIFFERENCE, 0)

    def test_floats_are_compared_exactly(self):
        """0.1 + 0.2 style drift must not leak into the comparison."""
        assert is_within_threshold(45.5, 45.0, ThresholdType.RAW_DIFFERENCE, 0.5)

    def test_string_threshold_type_is_accepted(self):
        assert is_within_threshold(1, 2, "RawDifference", 1)


class TestPercentChange:
    """PercentChange: abs(current - previous) / abs(previous) <= threshold."""

    def test_ten_percent_change_within_ten_percent(self):
        assert is_within_threshold(Decimal('110'), Decimal('100'), ThresholdType.PERCENT_CHANGE, Decimal('0.1'))

    def test_eleven_percent_change_outside_ten_percent(self):
        assert not is_within_threshold(Decimal('111'), Decimal('100'), ThresholdType.PERCENT_CHANGE, Decimal('0.1'))

    def test_negative_baseline_uses_absolute_value(self):
        assert is_within_threshold(Decimal('-95'), Decimal('-100'), ThresholdType.PERCENT_CHANGE, Decimal('0.05'))

    def test_zero_baseline_accepts_zero(self):
        assert is_within_threshold(0, 0, ThresholdType.PERCENT_CHANGE, Decimal('0.1'))

    def test_zero_baseline_rejects_any_change(self):
        assert not is_within_threshold(Decimal('0.0001'), 0, ThresholdType.PERCENT_CHANGE, Decimal('100'))


class TestValidatedAndNegativeThreshold:
    """Ordering of the negative-threshold check and the validated short-circuit."""

    def test_validated_short_circuits_to_true(self):
        assert is_within_threshold(1000, 1, ThresholdType.RAW_DIFFERENCE, 0, validated=True)

    def test_negative_threshold_raises(self):
        with pytest.raises(InvalidThresholdError):
            is_within_threshold(1, 1, ThresholdType.RAW_DIFFERENCE, Decimal('-1'))

    def test_negative_threshold_raises_even_when_validated(self):
        with pytest.raises(InvalidThresholdError):
            is_within_threshold(1, 1, ThresholdType.RAW_DIFFERENCE, -1, validated=True)

    def test_invalid_threshold_error_is_value_error(self):
        assert issubclass(InvalidThresholdError, ValueError)


class TestUnsupportedThresholdType:
    """Unknown threshold types pass unless strict mode is requested."""

    def test_unknown_type_passes_by_default(self):
        assert is_within_threshold(1000, 1, "Logarithmic", 0)

    def test_unknown_type_raises_when_strict(self):
        with pytest.raises(UnsupportedThresholdTypeError):
            is_within_threshold(1000, 1, "Logarithmic", 0, throw_on_unsupported=True)


class TestToDecimal:

    def test_float_goes_through_str(self):
        assert to_decimal(45.5) == Decimal('45.5')
        assert str(to_decimal(0.1)) == '0.1'

    def test_decimal_is_returned_unchanged(self):
        value = Decimal('1.25')
        assert to_decimal(value) is value

    def test_int_converts(self):
        assert to_decimal(3) == Decimal(3)
