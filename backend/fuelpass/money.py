"""
Fixed-point helpers for currency and volume.

Amounts are currency units at 2 decimal places, liters are volume units at
3 decimal places, quotes carry 6 decimal places. Everything is Decimal with
half-up rounding; floats are only accepted at the edges and are converted
through their string form so 25.5 becomes Decimal("25.5"), not the binary
approximation.
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, NamedTuple, Optional

AMOUNT_PLACES = 2
LITERS_PLACES = 3
QUOTE_PLACES = 6

# Entered liters may drift this far from the derived value before we warn.
LITERS_TOLERANCE = Decimal("0.01")


def _exponent(places: int) -> Decimal:
    return Decimal(1).scaleb(-places)


def to_decimal(value: Any) -> Decimal:
    """Coerce an int/str/float/Decimal into a finite Decimal."""
    if isinstance(value, bool):
        raise ValueError("boolean is not a number")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(repr(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise ValueError(f"not a number: {value!r}")
    else:
        raise ValueError(f"not a number: {value!r}")

    if not result.is_finite():
        raise ValueError("number must be finite")
    return result


def quantize(value: Decimal, places: int) -> Decimal:
    return to_decimal(value).quantize(_exponent(places), rounding=ROUND_HALF_UP)


def quantize_amount(value: Decimal) -> Decimal:
    return quantize(value, AMOUNT_PLACES)


def quantize_liters(value: Decimal) -> Decimal:
    return quantize(value, LITERS_PLACES)


def quantize_quote(value: Decimal) -> Decimal:
    return quantize(value, QUOTE_PLACES)


def liters_from_amount(amount: Decimal, price: Decimal, places: int = LITERS_PLACES) -> Decimal:
    """amount / price, rounded to `places`."""
    price = to_decimal(price)
    if price <= 0:
        raise ValueError("price must be positive")
    return quantize(to_decimal(amount) / price, places)


def amount_from_liters(liters: Decimal, price: Decimal) -> Decimal:
    """liters * price, rounded to currency precision."""
    return quantize_amount(to_decimal(liters) * to_decimal(price))


class Reconciliation(NamedTuple):
    liters: Decimal
    amount: Decimal
    expected_liters: Optional[Decimal]
    mismatch: bool


def reconcile(
    liters: Optional[Decimal],
    amount: Optional[Decimal],
    price: Decimal,
) -> Reconciliation:
    """
    Fill in the missing side of liters = amount / price.

    When both sides are known the entered values are kept as-is and
    `mismatch` reports whether liters drifted beyond LITERS_TOLERANCE from
    the value implied by amount.

    Raises ValueError when neither side is known.
    """
    if liters is None and amount is None:
        raise ValueError("liters or amount is required")

    if liters is None:
        amount = to_decimal(amount)
        return Reconciliation(liters_from_amount(amount, price), amount, None, False)

    if amount is None:
        liters = to_decimal(liters)
        return Reconciliation(liters, amount_from_liters(liters, price), None, False)

    liters = to_decimal(liters)
    amount = to_decimal(amount)
    expected = liters_from_amount(amount, price)
    mismatch = abs(liters - expected) > LITERS_TOLERANCE
    return Reconciliation(liters, amount, expected, mismatch)


def format_decimal(value: Optional[Decimal]) -> Optional[str]:
    """Serialize a Decimal for JSON without exponent notation."""
    if value is None:
        return None
    return format(to_decimal(value), "f")
