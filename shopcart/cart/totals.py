"""Checkout totals derived from cart lines."""
from decimal import Decimal
from typing import Iterable, Optional

from shopcart import config
from shopcart.money import add, compare, round_money, to_decimal
from .models import CartLine, CartTotals


def shipping_for(
    subtotal: Decimal,
    threshold: Optional[Decimal] = None,
    fee: Optional[Decimal] = None,
) -> Decimal:
    """
    Flat shipping fee, waived once subtotal reaches the free-shipping threshold.

    `subtotal` is the raw sum; a 49.995 cart has not reached 50.
    """
    threshold = config.FREE_SHIPPING_THRESHOLD if threshold is None else to_decimal(threshold)
    fee = config.SHIPPING_FEE if fee is None else to_decimal(fee)
    return Decimal("0") if compare(subtotal, threshold) >= 0 else round_money(fee)


def calculate_totals(
    lines: Iterable[CartLine],
    threshold: Optional[Decimal] = None,
    fee: Optional[Decimal] = None,
) -> CartTotals:
    """
    Compute subtotal, shipping, total and item count.

    Pure function of `lines`; recomputed on every read.

    Calculation:
    1. subtotal = sum(price * quantity)
    2. shipping = 0 if subtotal >= threshold else fee
    3. total = subtotal + shipping
    4. item_count = sum(quantity) (units, not distinct lines)

    Only the reported values are rounded to cents.
    """
    subtotal = Decimal("0")
    item_count = 0
    for line in lines:
        subtotal += line.line_total
        item_count += line.quantity

    shipping = shipping_for(subtotal, threshold, fee)
    return CartTotals(
        subtotal=round_money(subtotal),
        shipping=shipping,
        total=round_money(add(subtotal, shipping)),
        item_count=item_count,
    )
