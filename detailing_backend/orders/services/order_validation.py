# orders/services/order_validation.py

"""
PRE-DISPATCH VALIDATION

Caller-side checks that keep the reducer pure:
- per-unit quantity caps
- pricing tier presence ("no pricing available")
- manual discount bounds
- coupon amount sanity
- loyalty minimum + customer balance

Each check raises before the action reaches reduce_order, so a rejected action
never produces a partially updated state.
"""

from __future__ import annotations

from shared.money import ZERO, to_decimal, to_money

from . import actions as a
from .exceptions import LoyaltyRedemptionError, OrderValidationError
from .loyalty import DEFAULT_LOYALTY_POLICY, LoyaltyPolicy
from .order_state import DISCOUNT_DOLLAR, DISCOUNT_KINDS, DISCOUNT_PERCENT, OrderState


def _check_per_unit_qty(qty: int, per_unit_max, label: str):
    if per_unit_max is not None and qty > per_unit_max:
        raise OrderValidationError(
            f"Maximum {per_unit_max} {label or 'units'} for this service"
        )


def _validate_add_product(state, action: a.AddProduct, **_):
    if action.quantity < 1:
        raise OrderValidationError("quantity must be at least 1")


def _validate_add_service(state, action: a.AddService, **_):
    service = action.service
    if service.is_per_unit and action.per_unit_qty is not None:
        if action.per_unit_qty < 1:
            raise OrderValidationError("per-unit quantity must be at least 1")
        _check_per_unit_qty(action.per_unit_qty, service.per_unit_max, service.per_unit_label)
        return
    # raises PricingUnavailableError
    service.require_tier(action.tier_name)


def _validate_add_custom_item(state, action: a.AddCustomItem, **_):
    if not (action.name or "").strip():
        raise OrderValidationError("custom item name is required")
    if to_money(action.unit_price) < ZERO:
        raise OrderValidationError("custom item price cannot be negative")
    if action.quantity < 1:
        raise OrderValidationError("quantity must be at least 1")


def _validate_update_per_unit(state: OrderState, action: a.UpdatePerUnitQuantity, **_):
    item = state.find_item(action.item_id)
    if item is None or action.per_unit_qty < 1:
        return
    _check_per_unit_qty(action.per_unit_qty, item.per_unit_max, item.per_unit_label)


def _validate_manual_discount(state: OrderState, action: a.ApplyManualDiscount, **_):
    if action.kind not in DISCOUNT_KINDS:
        raise OrderValidationError(f"Unknown discount type '{action.kind}'")

    value = to_decimal(action.value)
    if value <= 0:
        raise OrderValidationError("discount value must be greater than zero")

    if action.kind == DISCOUNT_PERCENT and value > 100:
        raise OrderValidationError("percent discount cannot exceed 100")

    if action.kind == DISCOUNT_DOLLAR and to_money(value) > state.subtotal:
        raise OrderValidationError("discount cannot exceed the subtotal")


def _validate_coupon(state: OrderState, action: a.SetCoupon, **_):
    if action.coupon is None:
        return
    if to_money(action.coupon.discount_amount) < ZERO:
        raise OrderValidationError("coupon discount cannot be negative")


def _validate_loyalty(state: OrderState, action: a.SetLoyaltyRedeem, *, loyalty: LoyaltyPolicy, **_):
    points = int(action.points or 0)
    if points == 0:
        return

    if state.customer is None:
        raise LoyaltyRedemptionError("a customer is required to redeem loyalty points")

    if points < loyalty.redeem_minimum:
        raise LoyaltyRedemptionError(
            f"Minimum redemption is {loyalty.redeem_minimum} points"
        )

    if points > state.customer.loyalty_points_balance:
        raise LoyaltyRedemptionError(
            f"Customer only has {state.customer.loyalty_points_balance} points"
        )

    if to_money(action.discount) > loyalty.discount_for(points):
        raise LoyaltyRedemptionError("loyalty discount exceeds the value of the redeemed points")


_VALIDATORS = {
    a.AddProduct: _validate_add_product,
    a.AddService: _validate_add_service,
    a.AddCustomItem: _validate_add_custom_item,
    a.UpdatePerUnitQuantity: _validate_update_per_unit,
    a.ApplyManualDiscount: _validate_manual_discount,
    a.SetCoupon: _validate_coupon,
    a.SetLoyaltyRedeem: _validate_loyalty,
}


def validate_action(
    state: OrderState,
    action: a.OrderAction,
    *,
    loyalty: LoyaltyPolicy = DEFAULT_LOYALTY_POLICY,
) -> None:
    validator = _VALIDATORS.get(type(action))
    if validator is not None:
        validator(state, action, loyalty=loyalty)
