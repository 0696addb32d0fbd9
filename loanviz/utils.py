"""Utility functions for the loan engine.

This module provides helpers for coercing user input into ``Decimal`` values,
clamping inputs into their valid ranges and rounding money the way the
calculators display it (half-up, to cents or to whole units).
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, getcontext
from typing import Optional, Union

getcontext().prec = 28  # increase decimal precision to avoid rounding errors

Number = Union[int, float, str, Decimal]

CENT = Decimal("0.01")
UNIT = Decimal("1")


def to_decimal(value: Optional[Number], default: Optional[Decimal] = None) -> Decimal:
    """Convert a number or numeric string into a ``Decimal``.

    Floats go through ``str`` so that ``3.5`` becomes ``Decimal("3.5")``
    rather than its binary expansion. Strings may contain thousands
    separators. When ``default`` is given, missing, unparseable or non-finite
    values return it instead of raising.

    Raises
    ------
    ValueError
        If the value cannot be converted and no default was supplied.
    """
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            if value is None:
                raise ValueError
            if isinstance(value, str):
                value = value.strip().replace(",", "")
            result = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError) as exc:
            if default is not None:
                return default
            raise ValueError(f"Invalid numeric value: {value}") from exc
    if not result.is_finite():
        if default is not None:
            return default
        raise ValueError(f"Invalid numeric value: {value}")
    return result


def clamp(value: Decimal, lower: Optional[Decimal] = None, upper: Optional[Decimal] = None) -> Decimal:
    """Return ``value`` limited to the closed range ``[lower, upper]``."""
    if lower is not None and value < lower:
        return lower
    if upper is not None and value > upper:
        return upper
    return value


def round_money(value: Decimal) -> Decimal:
    """Round to cents, half-up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def round_whole(value: Decimal) -> Decimal:
    """Round to whole currency units, half-up."""
    return value.quantize(UNIT, rounding=ROUND_HALF_UP)


def round_to(value: Decimal, places: int) -> Decimal:
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def monthly_rate(annual_rate_percent: Decimal) -> Decimal:
    """Convert an annual nominal rate in percent to a monthly decimal rate."""
    return (annual_rate_percent / Decimal(100)) / Decimal(12)
