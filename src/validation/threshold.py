"""
Threshold Comparison
====================

Decides whether the change between a current and a previous metric value is
acceptable.

Threshold Types:
- RAW_DIFFERENCE: |current - previous| <= threshold
- PERCENT_CHANGE: |current - previous| / |previous| <= threshold
  (threshold is a fraction, 0.1 == 10%; a zero baseline only accepts zero)

Usage:
    from validation.threshold import ThresholdType, is_within_threshold

    ok = is_within_threshold(Decimal('46'), Decimal('40'),
                             ThresholdType.RAW_DIFFERENCE, Decimal('5'))
"""

import enum
from decimal import Decimal
from typing import Union

Number = Union[Decimal, int, float, str]


class ThresholdType(str, enum.Enum):
    """How a metric change is measured."""
    RAW_DIFFERENCE = "RawDifference"
    PERCENT_CHANGE = "PercentChange"


class InvalidThresholdError(ValueError):
    """Raised when a threshold is negative (a configuration error)."""
    pass


class UnsupportedThresholdTypeError(ValueError):
    """Raised in strict mode when the threshold type is not recognised."""
    pass


def to_decimal(value: Number) -> Decimal:
    """
    Coerce a number to Decimal.

    Floats go through str() so 45.5 becomes Decimal('45.5') rather than its
    binary expansion.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def ensure_non_negative(threshold: Number) -> Decimal:
    """Return the threshold as Decimal, raising if it is negative."""
    value = to_decimal(threshold)
    if value < 0:
        raise InvalidThresholdError(f"Threshold must be non-negative, got {value}")
    return value


def is_within_threshold(
    current: Number,
    previous: Number,
    threshold_type,
    threshold: Number,
    validated: bool = False,
    throw_on_unsupported: bool = False
) -> bool:
    """
    Check whether current is within threshold of previous.

    Args:
        current: Current metric value
        previous: Previous (baseline) metric value
        threshold_type: ThresholdType (or its string value)
        threshold: Allowed change, must be >= 0
        validated: True when the change was already accepted
        throw_on_unsupported: Raise instead of passing on an unknown type

    Returns:
        True when the change is acceptable

    Raises:
        InvalidThresholdError: threshold < 0, even when validated is True
        UnsupportedThresholdTypeError: unknown type with throw_on_unsupported
    """
    # Negative thresholds are checked before the validated short-circuit
    limit = ensure_non_negative(threshold)

    if validated:
        return True

    try:
        kind = ThresholdType(threshold_type)
    except ValueError:
        if throw_on_unsupported:
            raise UnsupportedThresholdTypeError(f"Unsupported threshold type: {threshold_type!r}")
        return True

    cur = to_decimal(current)
    prev = to_decimal(previous)

    if kind is ThresholdType.RAW_DIFFERENCE:
        return abs(cur - prev) <= limit

    if prev == 0:
        return cur == 0
    return abs(cur - prev) / abs(prev) <= limit
