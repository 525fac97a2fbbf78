"""Money helpers. Amounts are integer minor units (cents)."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

Number = Union[int, float, str, Decimal]

_ONE = Decimal("1")


def percent_of_cents(amount_cents: int, rate_percent: Number) -> int:
    """
    ``amount * rate / 100`` rounded to the nearest cent.

    Equivalent to rounding the major-unit result to two decimals.
    """
    value = Decimal(amount_cents) * Decimal(str(rate_percent)) / Decimal(100)
    return int(value.quantize(_ONE, rounding=ROUND_HALF_UP))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(Decimal(str(value)).quantize(_ONE, rounding=ROUND_HALF_UP))
