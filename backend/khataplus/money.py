# Overview: Fixed-point helpers; all money is decimal.Decimal, never float.

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
UNIT_PRICE_PLACES = Decimal("0.00000001")


def quantize_money(value) -> Decimal:
    """Round half-up to the paisa."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def quantize_unit_price(value) -> Decimal:
    """
    Unit prices derived from a line total (taxable / quantity) keep eight
    places, so quantity * unit_price lands within a paisa of the line total
    for any accepted quantity.
    """
    return Decimal(value).quantize(UNIT_PRICE_PLACES, rounding=ROUND_HALF_UP)


def money_str(value: Optional[Decimal]) -> Optional[str]:
    """Serialize for JSON as a fixed two-place string ("236.00")."""
    if value is None:
        return None
    return str(quantize_money(value))


def unit_price_str(value: Optional[Decimal]) -> Optional[str]:
    """At least two places, trailing zeros beyond that dropped ("8.47458", "100.00")."""
    if value is None:
        return None
    price = quantize_unit_price(value).normalize()
    if price.as_tuple().exponent > -2:
        price = price.quantize(CENT)
    return str(price)
