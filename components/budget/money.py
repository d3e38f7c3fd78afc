"""Fixed-point helpers: amounts travel as Decimal, engines compute in cents."""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Amount = Union[Decimal, int, float, str]

CENT = Decimal("0.01")


def to_decimal(amount: Amount) -> Decimal:
    """Convert to Decimal without going through a binary float repr."""
    if isinstance(amount, Decimal):
        return amount
    if isinstance(amount, float):
        return Decimal(repr(amount))
    return Decimal(amount)


def quantize(amount: Amount) -> Decimal:
    return to_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(amount: Amount) -> int:
    return int(quantize(amount) * 100)


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(CENT)


def round_half_up(value: Decimal) -> Decimal:
    """Round to an integer, halves away from zero."""
    return value.quantize(Decimal(1), rounding=ROUND_HALF_UP)
