"""Order financial computation.

All money is ``Decimal`` and every stored amount is rounded half-up to
two places.  Totals are always derived from line items; a client never
supplies them.

Identities:
- ``total_amount == sum(line_total)``
- ``tax_amount == round(total_amount * tax_rate, 2)``
- ``shipping_cost == 0`` if ``total_amount > threshold`` else the flat fee
- ``final_amount == round(total_amount + tax_amount + shipping_cost, 2)``
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from django.conf import settings

CENT = Decimal("0.01")


def to_money(value: Decimal | int | str) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def line_total(unit_price: Decimal, quantity: int) -> Decimal:
    return to_money(unit_price * quantity)


def tax_for(total_amount: Decimal) -> Decimal:
    return to_money(total_amount * settings.ORDER_TAX_RATE)


def shipping_for(total_amount: Decimal) -> Decimal:
    if total_amount > settings.ORDER_FREE_SHIPPING_THRESHOLD:
        return to_money(0)
    return to_money(settings.ORDER_FLAT_SHIPPING_FEE)


@dataclass(frozen=True)
class OrderTotals:
    total_amount: Decimal
    tax_amount: Decimal
    shipping_cost: Decimal
    final_amount: Decimal

    def as_fields(self) -> dict[str, Decimal]:
        return {
            "total_amount": self.total_amount,
            "tax_amount": self.tax_amount,
            "shipping_cost": self.shipping_cost,
            "final_amount": self.final_amount,
        }


def compute_totals(line_totals: Iterable[Decimal]) -> OrderTotals:
    total_amount = to_money(sum(line_totals, Decimal("0")))
    tax_amount = tax_for(total_amount)
    shipping_cost = shipping_for(total_amount)
    return OrderTotals(
        total_amount=total_amount,
        tax_amount=tax_amount,
        shipping_cost=shipping_cost,
        final_amount=to_money(total_amount + tax_amount + shipping_cost),
    )


def estimated_delivery_from(placed_at: datetime) -> datetime:
    return placed_at + timedelta(days=settings.ORDER_DELIVERY_WINDOW_DAYS)
