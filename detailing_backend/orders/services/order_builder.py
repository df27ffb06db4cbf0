# orders/services/order_builder.py

"""
ORDER BUILDER (ADAPTER LAYER)

Rebuilds an order server-side from a submitted payload:
- catalog prices come from the DB, never from the client
- every line goes through the same OrderStore / reducer as the POS ticket
- coupon + loyalty are re-evaluated against the current clock and balance

Used by the preview endpoint, quote creation and checkout.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Optional

from django.conf import settings

from catalog.services.catalog_reader import load_products, load_services
from catalog.services.definitions import ProductDefinition, ServiceDefinition
from catalog.services.pricing import PricingTier
from customers.models import Customer, Vehicle
from orders.models import Coupon
from shared.clock import Clock, system_clock
from shared.money import to_decimal, to_money

from . import actions as a
from .coupons import CouponRule
from .exceptions import CouponInvalidError, OrderValidationError
from .loyalty import LoyaltyPolicy
from .order_state import (
    ITEM_TYPE_CUSTOM,
    ITEM_TYPE_PRODUCT,
    ITEM_TYPE_SERVICE,
    CustomerRef,
    OrderState,
    VehicleRef,
)
from .order_store import OrderStore

logger = logging.getLogger(__name__)


def default_tax_rate() -> Decimal:
    return to_decimal(getattr(settings, "TAX_RATE", "0.1025"))


@dataclass(frozen=True)
class LineInput:
    item_type: str
    product_id: Optional[str] = None
    service_id: Optional[str] = None
    tier_name: Optional[str] = None
    quantity: int = 1
    per_unit_qty: Optional[int] = None
    name: str = ""
    unit_price: Optional[Decimal] = None
    is_taxable: bool = False
    notes: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "LineInput":
        unit_price = data.get("unit_price")
        return cls(
            item_type=data.get("item_type") or "",
            product_id=str(data["product_id"]) if data.get("product_id") else None,
            service_id=str(data["service_id"]) if data.get("service_id") else None,
            tier_name=data.get("tier_name") or None,
            quantity=int(data.get("quantity") or 1),
            per_unit_qty=int(data["per_unit_qty"]) if data.get("per_unit_qty") else None,
            name=data.get("name") or "",
            unit_price=to_money(unit_price) if unit_price not in (None, "") else None,
            is_taxable=bool(data.get("is_taxable", False)),
            notes=data.get("notes") or "",
        )


@dataclass(frozen=True)
class OrderInput:
    items: tuple[LineInput, ...] = field(default_factory=tuple)
    customer_id: Optional[str] = None
    vehicle_id: Optional[str] = None
    coupon_code: Optional[str] = None
    loyalty_points: int = 0
    manual_discount_kind: Optional[str] = None
    manual_discount_value: Optional[Decimal] = None
    manual_discount_label: str = ""
    notes: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "OrderInput":
        manual = data.get("manual_discount") or {}
        return cls(
            items=tuple(LineInput.from_dict(i) for i in data.get("items") or []),
            customer_id=str(data["customer_id"]) if data.get("customer_id") else None,
            vehicle_id=str(data["vehicle_id"]) if data.get("vehicle_id") else None,
            coupon_code=(data.get("coupon_code") or "").strip() or None,
            loyalty_points=int(data.get("loyalty_points") or 0),
            manual_discount_kind=manual.get("kind") or None,
            manual_discount_value=manual.get("value"),
            manual_discount_label=manual.get("label") or "",
            notes=data.get("notes") or "",
        )


@dataclass
class BuiltOrder:
    state: OrderState
    actions: tuple
    customer: Optional[Customer] = None
    vehicle: Optional[Vehicle] = None
    coupon: Optional[Coupon] = None


def _load_customer(customer_id) -> Optional[Customer]:
    if not customer_id:
        return None
    customer = Customer.objects.filter(id=customer_id).first()
    if customer is None:
        raise OrderValidationError("Customer not found")
    return customer


def _load_vehicle(vehicle_id, customer: Optional[Customer]) -> Optional[Vehicle]:
    if not vehicle_id:
        return None
    vehicle = Vehicle.objects.filter(id=vehicle_id).first()
    if vehicle is None:
        raise OrderValidationError("Vehicle not found")
    if customer is not None and vehicle.customer_id != customer.id:
        raise OrderValidationError("Vehicle does not belong to this customer")
    return vehicle


def _load_coupon(code: Optional[str]):
    if not code:
        return None
    coupon = Coupon.objects.filter(code__iexact=code).first()
    if coupon is None:
        raise CouponInvalidError(f"Coupon {code} not found")
    return coupon


def _dispatch_locked_line(store: OrderStore, line: LineInput) -> None:
    """
    A line whose price was fixed upstream (job snapshot, approved add-on).
    It still flows through the reducer, wrapped in a one-price definition.
    """
    if line.unit_price is None:
        raise OrderValidationError("locked lines need a unit_price")

    name = line.name or "Item"
    if line.item_type == ITEM_TYPE_SERVICE and line.service_id:
        service = ServiceDefinition(
            id=line.service_id,
            name=name,
            is_taxable=line.is_taxable,
            tiers=(PricingTier(tier_name="locked", price=line.unit_price),),
        )
        store.dispatch(a.AddService(service=service, locked=True))
    elif line.item_type == ITEM_TYPE_PRODUCT and line.product_id:
        product = ProductDefinition(
            id=line.product_id,
            name=name,
            retail_price=line.unit_price,
            is_taxable=line.is_taxable,
        )
        store.dispatch(a.AddProduct(product=product, quantity=line.quantity, locked=True))
    else:
        store.dispatch(
            a.AddCustomItem(
                name=name,
                unit_price=line.unit_price,
                is_taxable=line.is_taxable,
                quantity=line.quantity,
            )
        )


def build_order_state(
    order_input: OrderInput,
    *,
    clock: Clock = system_clock,
    tax_rate: Optional[Decimal] = None,
    loyalty: Optional[LoyaltyPolicy] = None,
    initial_state: Optional[OrderState] = None,
    locked_lines: Iterable[LineInput] = (),
) -> BuiltOrder:
    """
    Replay the submitted order through an OrderStore.

    locked_lines are added first, at their given price.

    Raises OrderValidationError / PricingUnavailableError on bad input.
    """
    rate = tax_rate if tax_rate is not None else default_tax_rate()
    state = initial_state if initial_state is not None else OrderState(tax_rate=rate)
    store = OrderStore(state, clock=clock, loyalty=loyalty or LoyaltyPolicy.from_settings())

    customer = _load_customer(order_input.customer_id)
    vehicle = _load_vehicle(order_input.vehicle_id, customer)

    if customer is not None:
        store.dispatch(a.SetCustomer(customer=CustomerRef.from_model(customer)))
    if vehicle is not None:
        store.dispatch(a.SetVehicle(vehicle=VehicleRef.from_model(vehicle)))

    for line in locked_lines:
        _dispatch_locked_line(store, line)

    product_ids = {i.product_id for i in order_input.items if i.item_type == ITEM_TYPE_PRODUCT}
    service_ids = {i.service_id for i in order_input.items if i.item_type == ITEM_TYPE_SERVICE}
    products = load_products(product_ids) if product_ids else {}
    services = load_services(service_ids) if service_ids else {}

    for line in order_input.items:
        if line.quantity < 1:
            raise OrderValidationError("quantity must be at least 1")

        if line.item_type == ITEM_TYPE_PRODUCT:
            product = products.get(line.product_id)
            if product is None:
                raise OrderValidationError(f"Product {line.product_id} not found")
            store.dispatch(a.AddProduct(product=product, quantity=line.quantity, item_id=a.new_item_id()))
            # a repeat product folds into the existing catalog line and keeps its id
            item_id = store.state.find_mergeable_product(product.id).id

        elif line.item_type == ITEM_TYPE_SERVICE:
            service = services.get(line.service_id)
            if service is None:
                raise OrderValidationError(f"Service {line.service_id} not found")
            item_id = a.new_item_id()
            store.dispatch(
                a.AddService(
                    service=service,
                    tier_name=line.tier_name,
                    per_unit_qty=line.per_unit_qty,
                    item_id=item_id,
                )
            )
            if line.quantity > 1:
                store.dispatch(a.UpdateItemQuantity(item_id=item_id, quantity=line.quantity))

        elif line.item_type == ITEM_TYPE_CUSTOM:
            if line.unit_price is None:
                raise OrderValidationError("custom items need a unit_price")
            item_id = a.new_item_id()
            store.dispatch(
                a.AddCustomItem(
                    name=line.name,
                    unit_price=line.unit_price,
                    is_taxable=line.is_taxable,
                    quantity=line.quantity,
                    item_id=item_id,
                )
            )

        else:
            raise OrderValidationError(f"Unknown item_type '{line.item_type}'")

        if line.notes:
            store.dispatch(a.UpdateItemNote(item_id=item_id, note=line.notes))

    if order_input.manual_discount_kind:
        store.dispatch(
            a.ApplyManualDiscount(
                kind=order_input.manual_discount_kind,
                value=to_decimal(order_input.manual_discount_value),
                label=order_input.manual_discount_label,
            )
        )

    coupon = _load_coupon(order_input.coupon_code)
    if coupon is not None:
        store.apply_coupon(CouponRule.from_model(coupon))

    if order_input.loyalty_points:
        store.redeem_loyalty(order_input.loyalty_points)

    if order_input.notes:
        store.dispatch(a.SetNotes(notes=order_input.notes))

    logger.debug(
        "Order rebuilt server-side",
        extra={"actions": len(store.actions), "total": str(store.state.total)},
    )

    return BuiltOrder(
        state=store.state,
        actions=store.actions,
        customer=customer,
        vehicle=vehicle,
        coupon=coupon,
    )
