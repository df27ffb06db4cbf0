# orders/services/coupons.py

"""
COUPON EVALUATION

Pure: the caller passes `now` and the current subtotal.
The resulting dollar amount is what SetCoupon carries into the reducer.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from shared.money import ZERO, to_decimal, to_money

from .exceptions import CouponInvalidError
from .order_state import AppliedCoupon

COUPON_FLAT = "flat"
COUPON_PERCENTAGE = "percentage"

COUPON_KIND_CHOICES = [
    (COUPON_FLAT, "Flat amount"),
    (COUPON_PERCENTAGE, "Percentage"),
]


@dataclass(frozen=True)
class CouponRule:
    id: str
    code: str
    kind: str
    value: Decimal
    max_discount: Optional[Decimal] = None
    min_purchase: Optional[Decimal] = None
    expires_at: Optional[datetime] = None
    is_active: bool = True
    max_uses: Optional[int] = None
    use_count: int = 0

    @classmethod
    def from_model(cls, coupon) -> "CouponRule":
        return cls(
            id=str(coupon.id),
            code=coupon.code,
            kind=coupon.kind,
            value=to_decimal(coupon.value),
            max_discount=to_money(coupon.max_discount) if coupon.max_discount is not None else None,
            min_purchase=to_money(coupon.min_purchase) if coupon.min_purchase is not None else None,
            expires_at=coupon.expires_at,
            is_active=bool(coupon.is_active),
            max_uses=coupon.max_uses,
            use_count=int(coupon.use_count or 0),
        )


def evaluate_coupon(rule: CouponRule, subtotal, now: datetime) -> Decimal:
    """
    Dollar discount for this coupon against `subtotal`.

    Raises CouponInvalidError when the coupon cannot be used right now.
    """
    subtotal = to_money(subtotal)

    if not rule.is_active:
        raise CouponInvalidError(f"Coupon {rule.code} is not active")

    if rule.expires_at is not None and now >= rule.expires_at:
        raise CouponInvalidError(f"Coupon {rule.code} has expired")

    if rule.max_uses is not None and rule.use_count >= rule.max_uses:
        raise CouponInvalidError(f"Coupon {rule.code} has reached its usage limit")

    if rule.min_purchase is not None and subtotal < rule.min_purchase:
        raise CouponInvalidError(
            f"Coupon {rule.code} requires a minimum purchase of {rule.min_purchase}"
        )

    if rule.kind == COUPON_PERCENTAGE:
        discount = to_money(subtotal * to_decimal(rule.value) / 100)
    elif rule.kind == COUPON_FLAT:
        discount = to_money(rule.value)
    else:
        raise CouponInvalidError(f"Coupon {rule.code} has unknown kind '{rule.kind}'")

    if rule.max_discount is not None:
        discount = min(discount, rule.max_discount)

    return max(ZERO, min(discount, subtotal))


def apply_coupon(rule: CouponRule, subtotal, now: datetime) -> AppliedCoupon:
    return AppliedCoupon(
        id=rule.id,
        code=rule.code,
        discount_amount=evaluate_coupon(rule, subtotal, now),
    )
