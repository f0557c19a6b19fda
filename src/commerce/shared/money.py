"""Monetary rounding shared by pricing, discounts and payments."""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")

# Two totals closer than this are treated as equal
TOLERANCE = 0.005


def to_money(amount) -> float:
    """Round an amount half-up to whole cents."""
    return float(Decimal(str(amount or 0)).quantize(CENT, rounding=ROUND_HALF_UP))


def money_equal(left, right) -> bool:
    return abs(to_money(left) - to_money(right)) < TOLERANCE
