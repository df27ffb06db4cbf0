# orders/services/tax.py

"""
TAX / TOTALS CALCULATOR

Rounding rules:
- item tax = round(total_price x tax_rate) for taxable lines, else 0
- subtotal, tax and discount are each rounded to the cent on their own
- total = max(0, subtotal + tax - discount), rounded

Over-discounting clamps to zero; it is flagged, not raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from shared.money import ZERO, to_decimal, to_money


def item_tax(price, is_taxable: bool, tax_rate) -> Decimal:
    if not is_taxable:
        return ZERO
    return to_money(to_money(price) * to_decimal(tax_rate))


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total: Decimal
    is_over_discounted: bool = False


def calculate_totals(items: Iterable, discount_amount, tax_rate: Optional[Decimal] = None) -> Totals:
    """
    Fold line items into totals.

    Items need total_price + is_taxable (+ tax_amount). When tax_rate is given the
    per-line tax is recomputed from it, otherwise the stored line tax is summed.
    """
    subtotal = Decimal("0")
    tax = Decimal("0")

    for item in items:
        subtotal += to_money(item.total_price)
        if tax_rate is None:
            tax += to_money(item.tax_amount)
        else:
            tax += item_tax(item.total_price, item.is_taxable, tax_rate)

    subtotal = to_money(subtotal)
    tax = to_money(tax)
    discount = to_money(discount_amount)

    raw_total = subtotal + tax - discount
    over = raw_total < ZERO

    return Totals(
        subtotal=subtotal,
        tax_amount=tax,
        discount_amount=discount,
        total=ZERO if over else to_money(raw_total),
        is_over_discounted=over,
    )
