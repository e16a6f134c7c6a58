"""Decimal helpers for amounts written to the feed."""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional


def to_decimal(value) -> Optional[Decimal]:
    """Convert value to Decimal; None for missing or non-finite values."""
    if value is None:
        return None
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    if not value.is_finite():
        return None
    return value


def round_half_up(value: Decimal, places: int) -> Decimal:
    """Round half away from zero, the way the shop rounds amounts."""
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def format_decimal(value: Decimal) -> str:
    """Plain notation without trailing zeros: 27, 5.5, -1200."""
    if value == 0:
        return "0"
    return format(value.normalize(), "f")
