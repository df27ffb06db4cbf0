# orders/services/order_reducer.py

"""
ORDER REDUCER

reduce_order(state, action) -> new state

Hard rules:
- Pure: no DB, no settings, no clock. Same (state, action) -> same result.
- Every action except SetNotes / SetCustomer / UpdateItemNote ends with a full
  totals recompute (never an incremental patch).
- Quantity < 1 removes the line.
- Product lines merge by product id; service lines never merge.
- Caller-side checks (per-unit caps, coupon validity, discount bounds) run in
  order_validation before dispatch, not here.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable

from catalog.services.pricing import resolve_price
from shared.money import ZERO, to_decimal, to_money

from . import actions as a
from .exceptions import UnknownOrderActionError
from .order_state import (
    DISCOUNT_PERCENT,
    ITEM_TYPE_CUSTOM,
    ITEM_TYPE_PRODUCT,
    ITEM_TYPE_SERVICE,
    LineItem,
    ManualDiscount,
    OrderState,
    price_line,
)
from .tax import calculate_totals

Handler = Callable[[OrderState, a.OrderAction], OrderState]

_HANDLERS: dict[type, Handler] = {}


def _handles(action_cls):
    def decorator(fn: Handler) -> Handler:
        if action_cls in _HANDLERS:
            raise RuntimeError(f"Duplicate order handler for {action_cls.__name__}")
        _HANDLERS[action_cls] = fn
        return fn

    return decorator


def registered_actions() -> frozenset:
    return frozenset(_HANDLERS)


def reduce_order(state: OrderState, action: a.OrderAction) -> OrderState:
    handler = _HANDLERS.get(type(action))
    if handler is None:
        raise UnknownOrderActionError(f"Unknown order action: {type(action).__name__}")
    return handler(state, action)


# ============================================================
# TOTALS
# ============================================================


def recalculate_totals(state: OrderState) -> OrderState:
    coupon_discount = state.coupon.discount_amount if state.coupon else ZERO
    manual_discount = state.manual_discount.amount if state.manual_discount else ZERO

    discount = to_money(coupon_discount) + to_money(state.loyalty_discount) + to_money(manual_discount)
    totals = calculate_totals(state.items, discount)

    return replace(
        state,
        subtotal=totals.subtotal,
        tax_amount=totals.tax_amount,
        discount_amount=totals.discount_amount,
        total=totals.total,
        is_over_discounted=totals.is_over_discounted,
    )


def _without(state: OrderState, item_id: str) -> tuple[LineItem, ...]:
    return tuple(i for i in state.items if i.id != item_id)


def _replace_item(state: OrderState, item_id: str, fn) -> tuple[LineItem, ...]:
    return tuple(fn(i) if i.id == item_id else i for i in state.items)


# ============================================================
# ITEMS
# ============================================================


@_handles(a.AddProduct)
def _add_product(state: OrderState, action: a.AddProduct) -> OrderState:
    product = action.product
    existing = None if action.locked else state.find_mergeable_product(product.id)

    if existing is not None:
        items = _replace_item(
            state,
            existing.id,
            lambda i: price_line(i, state.tax_rate, quantity=i.quantity + action.quantity),
        )
    else:
        line = LineItem(
            id=action.item_id,
            item_type=ITEM_TYPE_PRODUCT,
            item_name=product.name,
            quantity=action.quantity,
            unit_price=product.retail_price,
            total_price=ZERO,
            is_taxable=product.is_taxable,
            tax_amount=ZERO,
            product_id=product.id,
            is_locked=action.locked,
        )
        items = state.items + (price_line(line, state.tax_rate),)

    return recalculate_totals(replace(state, items=items))


@_handles(a.AddService)
def _add_service(state: OrderState, action: a.AddService) -> OrderState:
    service = action.service
    size_class = action.vehicle_size_class or state.vehicle_size_class

    per_unit = {}
    tier_name = tier_label = None

    if service.is_per_unit and action.per_unit_qty:
        unit_price = to_money(service.per_unit_price) * action.per_unit_qty
        per_unit = dict(
            per_unit_qty=action.per_unit_qty,
            per_unit_price=to_money(service.per_unit_price),
            per_unit_label=service.per_unit_label,
            per_unit_max=service.per_unit_max,
        )
    else:
        tier = service.require_tier(action.tier_name)
        unit_price = resolve_price(tier, size_class)
        tier_name = tier.tier_name
        tier_label = tier.display_label

    line = LineItem(
        id=action.item_id,
        item_type=ITEM_TYPE_SERVICE,
        item_name=service.name,
        quantity=1,
        unit_price=unit_price,
        total_price=ZERO,
        is_taxable=service.is_taxable,
        tax_amount=ZERO,
        service_id=service.id,
        tier_name=tier_name,
        tier_label=tier_label,
        vehicle_size_class=size_class,
        is_locked=action.locked,
        **per_unit,
    )

    return recalculate_totals(replace(state, items=state.items + (price_line(line, state.tax_rate),)))


@_handles(a.AddCustomItem)
def _add_custom_item(state: OrderState, action: a.AddCustomItem) -> OrderState:
    line = LineItem(
        id=action.item_id,
        item_type=ITEM_TYPE_CUSTOM,
        item_name=action.name,
        quantity=action.quantity,
        unit_price=action.unit_price,
        total_price=ZERO,
        is_taxable=action.is_taxable,
        tax_amount=ZERO,
    )
    return recalculate_totals(replace(state, items=state.items + (price_line(line, state.tax_rate),)))


@_handles(a.UpdateItemQuantity)
def _update_quantity(state: OrderState, action: a.UpdateItemQuantity) -> OrderState:
    if action.quantity < 1:
        return recalculate_totals(replace(state, items=_without(state, action.item_id)))

    items = _replace_item(
        state,
        action.item_id,
        lambda i: price_line(i, state.tax_rate, quantity=action.quantity),
    )
    return recalculate_totals(replace(state, items=items))


@_handles(a.UpdatePerUnitQuantity)
def _update_per_unit_quantity(state: OrderState, action: a.UpdatePerUnitQuantity) -> OrderState:
    if action.per_unit_qty < 1:
        return recalculate_totals(replace(state, items=_without(state, action.item_id)))

    def _apply(item: LineItem) -> LineItem:
        if item.per_unit_price is None:
            return item
        return price_line(
            item,
            state.tax_rate,
            per_unit_qty=action.per_unit_qty,
            unit_price=to_money(item.per_unit_price) * action.per_unit_qty,
        )

    return recalculate_totals(replace(state, items=_replace_item(state, action.item_id, _apply)))


@_handles(a.RemoveItem)
def _remove_item(state: OrderState, action: a.RemoveItem) -> OrderState:
    return recalculate_totals(replace(state, items=_without(state, action.item_id)))


@_handles(a.UpdateItemNote)
def _update_item_note(state: OrderState, action: a.UpdateItemNote) -> OrderState:
    items = _replace_item(state, action.item_id, lambda i: replace(i, notes=action.note or ""))
    return replace(state, items=items)


# ============================================================
# CUSTOMER / VEHICLE
# ============================================================


@_handles(a.SetCustomer)
def _set_customer(state: OrderState, action: a.SetCustomer) -> OrderState:
    return replace(state, customer=action.customer)


@_handles(a.SetVehicle)
def _set_vehicle(state: OrderState, action: a.SetVehicle) -> OrderState:
    return recalculate_totals(replace(state, vehicle=action.vehicle))


@_handles(a.RecalculateVehiclePrices)
def _recalculate_vehicle_prices(state: OrderState, action: a.RecalculateVehiclePrices) -> OrderState:
    size_class = action.vehicle.size_class if action.vehicle else None
    services = {s.id: s for s in action.services}

    def _reprice(item: LineItem) -> LineItem:
        if item.is_locked or item.item_type != ITEM_TYPE_SERVICE or not item.service_id or not item.tier_name:
            return item
        service = services.get(item.service_id)
        tier = service.find_tier(item.tier_name) if service else None
        if tier is None:
            # stale pricing beats dropping a sold line
            return item
        return price_line(
            item,
            state.tax_rate,
            unit_price=resolve_price(tier, size_class),
            vehicle_size_class=size_class,
        )

    items = tuple(_reprice(i) for i in state.items)
    return recalculate_totals(replace(state, vehicle=action.vehicle, items=items))


# ============================================================
# DISCOUNTS
# ============================================================


@_handles(a.SetCoupon)
def _set_coupon(state: OrderState, action: a.SetCoupon) -> OrderState:
    return recalculate_totals(replace(state, coupon=action.coupon))


@_handles(a.SetLoyaltyRedeem)
def _set_loyalty_redeem(state: OrderState, action: a.SetLoyaltyRedeem) -> OrderState:
    return recalculate_totals(
        replace(
            state,
            loyalty_points_to_redeem=int(action.points or 0),
            loyalty_discount=to_money(action.discount),
        )
    )


@_handles(a.ApplyManualDiscount)
def _apply_manual_discount(state: OrderState, action: a.ApplyManualDiscount) -> OrderState:
    value = to_decimal(action.value)

    # percent is fixed against the subtotal at apply time
    if action.kind == DISCOUNT_PERCENT:
        amount = to_money(state.subtotal * value / 100)
    else:
        amount = to_money(value)

    discount = ManualDiscount(kind=action.kind, value=value, amount=amount, label=action.label or "")
    return recalculate_totals(replace(state, manual_discount=discount))


@_handles(a.RemoveManualDiscount)
def _remove_manual_discount(state: OrderState, action: a.RemoveManualDiscount) -> OrderState:
    return recalculate_totals(replace(state, manual_discount=None))


# ============================================================
# METADATA / LIFECYCLE
# ============================================================


@_handles(a.SetNotes)
def _set_notes(state: OrderState, action: a.SetNotes) -> OrderState:
    return replace(state, notes=action.notes or "")


@_handles(a.Clear)
def _clear(state: OrderState, action: a.Clear) -> OrderState:
    return state.empty()


@_handles(a.RestoreOrder)
def _restore(state: OrderState, action: a.RestoreOrder) -> OrderState:
    return recalculate_totals(action.state)
