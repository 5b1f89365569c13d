"""
Monetary repair for transaction records.

Totals, discounts and final amounts are always recomputed from quantity and
unit price. The ingested values are only consulted to raise quality flags,
and the flags are evaluated before anything is overwritten.
"""

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, NamedTuple

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")
POINTS_DIVISOR = Decimal(10)
# Largest value a decimal(10,2) money column holds
MAX_MONEY = Decimal("99999999.99")


class RepairResult(NamedTuple):
    total_amount: Decimal
    discount_amount: Decimal
    final_amount: Decimal
    pricing_issue: bool
    discount_issue: bool


def to_money(value: Any) -> Decimal | None:
    """Convert a numeric value to a cent-quantized Decimal, passing None through."""
    if value is None:
        return None
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def repair(
    quantity: int | None,
    unit_price: Any,
    discount_amount: Any,
    total_amount: Any,
) -> RepairResult:
    """
    Recompute derived monetary fields for one record.

    Steps, in order:
        1. pricing_issue when unit_price is missing or zero
        2. discount_issue when the ingested discount exceeds the ingested total
        3. total = quantity * unit_price (missing values count as 0)
        4. discount clamped to [0, recomputed total]
        5. final = max(total - discount, 0)

    Args:
        quantity: Units sold
        unit_price: Price per unit (source of truth)
        discount_amount: Ingested discount
        total_amount: Ingested total, used only for the discount flag

    Returns:
        RepairResult with the recomputed amounts and both flags
    """
    price = to_money(unit_price)
    original_discount = to_money(discount_amount)
    original_total = to_money(total_amount)

    pricing_issue = price is None or price == ZERO
    discount_issue = (
        original_discount is not None
        and original_total is not None
        and original_discount > original_total
    )

    total = to_money((quantity or 0) * (price or ZERO))
    # Lower bound only matters for negative inputs
    discount = max(min(original_discount or ZERO, total), ZERO)
    final = max(total - discount, ZERO)

    return RepairResult(
        total_amount=total,
        discount_amount=discount,
        final_amount=final,
        pricing_issue=pricing_issue,
        discount_issue=discount_issue,
    )


def correct_loyalty_points(loyalty_points: int | None, final_amount: Any) -> int | None:
    """
    Replace negative loyalty points with floor(final_amount / 10).

    Non-negative and missing values are returned unchanged, even when they
    disagree with the formula.
    """
    if loyalty_points is None or loyalty_points >= 0:
        return loyalty_points
    final = to_money(final_amount) or ZERO
    return math.floor(final / POINTS_DIVISOR)
