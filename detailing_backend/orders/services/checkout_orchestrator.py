# orders/services/checkout_orchestrator.py

"""
CHECKOUT ORCHESTRATOR (APPLICATION SERVICE)

Purpose:
- Finalize a POS ticket into a completed Transaction (atomic, auditable).
- Redeem loyalty points from the customer balance.
- Count the coupon use.
- Close the linked job, if any.

Hard rules:
- Money is recomputed server-side from catalog truth; client totals are ignored.
- Job lines are charged at the job's locked snapshot price.
- idempotency_key: a retried submission returns the first Transaction
  untouched (no second deduction, no second receipt).
- Everything runs in one DB transaction: rows, balance, coupon count and job
  close succeed together or roll back together.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from django.db import IntegrityError, transaction
from django.db.models import F

from customers.models import Customer
from jobs.services.exceptions import JobError
from jobs.services.job_lifecycle import JobLifecycleController
from orders.models import Coupon, Quote, Transaction, TransactionItem
from shared.clock import Clock, system_clock

from . import quote_lifecycle
from .exceptions import (
    CheckoutError,
    CheckoutValidationError,
    CouponInvalidError,
    LoyaltyRedemptionError,
)
from .order_builder import LineInput, OrderInput, build_order_state
from .order_state import OrderState
from .quote_service import snapshot_fields

logger = logging.getLogger(__name__)

PAYMENT_METHODS = {"cash", "card", "check", "other"}


@dataclass(frozen=True)
class CheckoutResult:
    transaction: Transaction
    state: Optional[OrderState] = None
    replayed: bool = False


def _normalize_payment_method(method: Optional[str]) -> str:
    m = (method or "cash").strip().lower()
    if m not in PAYMENT_METHODS:
        raise CheckoutValidationError(f"Unsupported payment method '{method}'")
    return m


def generate_receipt_number(*, clock: Clock = system_clock) -> str:
    """
    R-YYYYMMDD-XXXXX, sequence per day.
    """
    prefix = f"R-{clock.now():%Y%m%d}-"
    count = Transaction.objects.filter(receipt_number__startswith=prefix).count()
    return f"{prefix}{count + 1:05d}"


def _existing(idempotency_key: Optional[str]) -> Optional[Transaction]:
    if not idempotency_key:
        return None
    return Transaction.objects.filter(idempotency_key=idempotency_key).first()


def _redeem_loyalty(customer_id, points: int) -> None:
    customer = Customer.objects.select_for_update().get(id=customer_id)
    if customer.loyalty_points_balance < points:
        raise LoyaltyRedemptionError(
            f"Customer has {customer.loyalty_points_balance} points; {points} requested"
        )
    Customer.objects.filter(id=customer.id).update(
        loyalty_points_balance=F("loyalty_points_balance") - points
    )


def _count_coupon_use(coupon_id) -> None:
    coupon = Coupon.objects.select_for_update().get(id=coupon_id)
    if coupon.max_uses is not None and coupon.use_count >= coupon.max_uses:
        raise CouponInvalidError(f"Coupon {coupon.code} has reached its usage limit")
    Coupon.objects.filter(id=coupon.id).update(use_count=F("use_count") + 1)


@transaction.atomic
def checkout_order(
    *,
    user,
    order_input: OrderInput,
    idempotency_key: Optional[str] = None,
    payment_method: Optional[str] = "cash",
    job_id=None,
    quote_id=None,
    clock: Clock = system_clock,
    job_controller: Optional[JobLifecycleController] = None,
) -> CheckoutResult:
    key = (idempotency_key or "").strip() or None

    existing = _existing(key)
    if existing is not None:
        logger.info("Checkout replayed", extra={"receipt_number": existing.receipt_number})
        return CheckoutResult(transaction=existing, replayed=True)

    pm = _normalize_payment_method(payment_method)

    controller = None
    locked_lines = ()
    if job_id:
        controller = job_controller or JobLifecycleController.from_settings(clock=clock)
        try:
            locked_lines = tuple(LineInput.from_dict(line) for line in controller.checkout_items(job_id))
        except JobError as exc:
            raise CheckoutError(str(exc)) from exc

    quote = None
    if quote_id:
        quote = Quote.objects.select_for_update().filter(id=quote_id).first()
        if quote is None:
            raise CheckoutValidationError("Quote not found")
        if quote.status != quote_lifecycle.STATUS_CONVERTED:
            raise CheckoutValidationError(
                f"Quote {quote.quote_number} must be converted before checkout"
            )

    built = build_order_state(order_input, clock=clock, locked_lines=locked_lines)
    state = built.state

    if not state.items:
        raise CheckoutValidationError("Nothing to check out")

    try:
        with transaction.atomic():
            txn = Transaction.objects.create(
                receipt_number=generate_receipt_number(clock=clock),
                idempotency_key=key,
                user=user if getattr(user, "is_authenticated", False) else None,
                customer=built.customer,
                vehicle=built.vehicle,
                coupon=built.coupon,
                quote=quote,
                tax_rate=state.tax_rate,
                subtotal_amount=state.subtotal,
                tax_amount=state.tax_amount,
                discount_amount=state.discount_amount,
                total_amount=state.total,
                coupon_discount=state.coupon.discount_amount if state.coupon else 0,
                loyalty_points_redeemed=state.loyalty_points_to_redeem,
                loyalty_discount=state.loyalty_discount,
                manual_discount_amount=state.manual_discount.amount if state.manual_discount else 0,
                manual_discount_label=state.manual_discount.label if state.manual_discount else "",
                payment_method=pm,
                notes=state.notes,
            )
    except IntegrityError:
        # concurrent submit with the same key won the race
        existing = _existing(key)
        if existing is None:
            raise
        logger.info("Checkout replayed", extra={"receipt_number": existing.receipt_number})
        return CheckoutResult(transaction=existing, replayed=True)

    TransactionItem.objects.bulk_create(
        [TransactionItem(transaction=txn, **snapshot_fields(item, idx)) for idx, item in enumerate(state.items)]
    )

    if state.loyalty_points_to_redeem:
        _redeem_loyalty(built.customer.id, state.loyalty_points_to_redeem)

    if built.coupon is not None:
        _count_coupon_use(built.coupon.id)

    if controller is not None:
        try:
            controller.close(job_id, transaction_id=txn.id)
        except JobError as exc:
            raise CheckoutError(f"Could not close job {job_id}: {exc}") from exc

    if state.is_over_discounted:
        logger.warning(
            "Checkout total clamped at zero",
            extra={"receipt_number": txn.receipt_number, "discount": str(state.discount_amount)},
        )

    logger.info(
        "Checkout completed",
        extra={
            "receipt_number": txn.receipt_number,
            "total": str(txn.total_amount),
            "job_id": str(job_id) if job_id else None,
        },
    )
    return CheckoutResult(transaction=txn, state=state)
