"""Decimal money helpers - rounding happens only when a value is persisted"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

Number = Union[Decimal, int, float, str]

CENT = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(value: Number) -> Decimal:
    """
    Convert a numeric input to Decimal.

    Floats go through str() so 0.1 stays 0.1 instead of its binary expansion.

    Raises:
        ValueError: value is not numeric or not finite
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a money value: {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as e:
            raise ValueError(f"Not a money value: {value!r}") from e
    else:
        raise ValueError(f"Not a money value: {value!r}")

    if not result.is_finite():
        raise ValueError(f"Money value must be finite: {value!r}")
    return result


def round_money(value: Decimal) -> Decimal:
    """Round half-up to the smallest currency unit (2 decimals)"""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(value: Decimal) -> int:
    """Money -> integer minor units, e.g. Decimal('4166.665') -> 416667"""
    return int(round_money(value) * 100)


def from_cents(cents: int) -> Decimal:
    """Integer minor units -> money with 2 decimals"""
    return (Decimal(cents) / 100).quantize(CENT)


def is_whole_cents(value: Decimal) -> bool:
    """True when value needs no rounding to be stored, e.g. 12.50 but not 12.505"""
    try:
        return value == value.quantize(CENT)
    except InvalidOperation:
        # Too many digits to quantize under the default context
        return False
