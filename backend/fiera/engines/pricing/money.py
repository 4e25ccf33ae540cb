"""
Money helpers

Amounts are computed with Decimal and rounded half-up to whole euros once
per aggregate.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

ZERO = Decimal(0)
HUNDRED = Decimal(100)


def to_decimal(value: Any) -> Decimal:
    """Convert a price-like value to Decimal; anything unusable becomes 0."""
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError):
            return ZERO
    if not result.is_finite():
        return ZERO
    return result


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def clamp(value: Decimal, low: Decimal = ZERO, high: Optional[Decimal] = None) -> Decimal:
    if value < low:
        return low
    if high is not None and value > high:
        return high
    return value
