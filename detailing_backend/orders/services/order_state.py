# orders/services/order_state.py

"""
ORDER / QUOTE STATE (immutable)

Tickets and draft quotes share one shape; QuoteState only adds identity,
validity and status. Derived totals are never set by hand: the reducer
recomputes them from items + discounts.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from typing import Optional

from shared.money import ZERO, to_money

from .quote_lifecycle import STATUS_DRAFT
from .tax import item_tax

ITEM_TYPE_PRODUCT = "product"
ITEM_TYPE_SERVICE = "service"
ITEM_TYPE_CUSTOM = "custom"

ITEM_TYPE_CHOICES = [
    (ITEM_TYPE_PRODUCT, "Product"),
    (ITEM_TYPE_SERVICE, "Service"),
    (ITEM_TYPE_CUSTOM, "Custom"),
]

DISCOUNT_DOLLAR = "dollar"
DISCOUNT_PERCENT = "percent"

DISCOUNT_KINDS = {DISCOUNT_DOLLAR, DISCOUNT_PERCENT}

DEFAULT_TAX_RATE = Decimal("0.1025")


@dataclass(frozen=True)
class CustomerRef:
    id: str
    name: str = ""
    phone: str = ""
    email: str = ""
    loyalty_points_balance: int = 0

    @classmethod
    def from_model(cls, customer) -> "CustomerRef":
        return cls(
            id=str(customer.id),
            name=customer.full_name,
            phone=customer.phone or "",
            email=customer.email or "",
            loyalty_points_balance=int(customer.loyalty_points_balance or 0),
        )


@dataclass(frozen=True)
class VehicleRef:
    id: str
    size_class: Optional[str] = None
    description: str = ""

    @classmethod
    def from_model(cls, vehicle) -> "VehicleRef":
        return cls(
            id=str(vehicle.id),
            size_class=vehicle.size_class or None,
            description=vehicle.description,
        )


@dataclass(frozen=True)
class AppliedCoupon:
    id: str
    code: str
    discount_amount: Decimal


@dataclass(frozen=True)
class ManualDiscount:
    kind: str
    value: Decimal
    amount: Decimal
    label: str = ""


@dataclass(frozen=True)
class LineItem:
    id: str
    item_type: str
    item_name: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    is_taxable: bool
    tax_amount: Decimal
    product_id: Optional[str] = None
    service_id: Optional[str] = None
    tier_name: Optional[str] = None
    tier_label: Optional[str] = None
    vehicle_size_class: Optional[str] = None
    per_unit_qty: Optional[int] = None
    per_unit_price: Optional[Decimal] = None
    per_unit_label: Optional[str] = None
    per_unit_max: Optional[int] = None
    notes: str = ""
    # price fixed upstream (job snapshot, approved add-on); never merged or repriced
    is_locked: bool = False

    @property
    def is_per_unit(self) -> bool:
        return self.per_unit_price is not None and self.per_unit_qty is not None


def price_line(item: LineItem, tax_rate, **changes) -> LineItem:
    """
    Apply changes, then derive total_price and tax_amount from unit_price x quantity.
    """
    item = replace(item, **changes) if changes else item
    total = to_money(to_money(item.unit_price) * item.quantity)
    return replace(
        item,
        unit_price=to_money(item.unit_price),
        total_price=total,
        tax_amount=item_tax(total, item.is_taxable, tax_rate),
    )


@dataclass(frozen=True)
class OrderState:
    items: tuple[LineItem, ...] = field(default_factory=tuple)
    customer: Optional[CustomerRef] = None
    vehicle: Optional[VehicleRef] = None
    coupon: Optional[AppliedCoupon] = None
    loyalty_points_to_redeem: int = 0
    loyalty_discount: Decimal = ZERO
    manual_discount: Optional[ManualDiscount] = None
    notes: str = ""
    tax_rate: Decimal = DEFAULT_TAX_RATE

    subtotal: Decimal = ZERO
    tax_amount: Decimal = ZERO
    discount_amount: Decimal = ZERO
    total: Decimal = ZERO
    is_over_discounted: bool = False

    @property
    def vehicle_size_class(self) -> Optional[str]:
        return self.vehicle.size_class if self.vehicle else None

    def find_item(self, item_id: str) -> Optional[LineItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def find_mergeable_product(self, product_id: str) -> Optional[LineItem]:
        """The catalog line a new unit of this product folds into (locked lines excluded)."""
        for item in self.items:
            if item.item_type == ITEM_TYPE_PRODUCT and item.product_id == product_id and not item.is_locked:
                return item
        return None

    def empty(self) -> "OrderState":
        return type(self)(tax_rate=self.tax_rate)


@dataclass(frozen=True)
class QuoteState(OrderState):
    quote_id: Optional[str] = None
    quote_number: Optional[str] = None
    valid_until: Optional[date] = None
    status: str = STATUS_DRAFT

    def empty(self) -> "QuoteState":
        return type(self)(
            tax_rate=self.tax_rate,
            quote_id=self.quote_id,
            quote_number=self.quote_number,
            valid_until=self.valid_until,
            status=self.status,
        )
