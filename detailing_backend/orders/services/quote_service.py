# orders/services/quote_service.py

"""
QUOTE SERVICE (APPLICATION SERVICE)

Draft orders offered to a customer.

Hard rules:
- Totals are rebuilt server-side through the order reducer (never trusted).
- Quotes carry no discounts (total = subtotal + tax). Coupons, loyalty and
  manual discounts are applied on the ticket at checkout.
- Status changes go through quote_lifecycle.validate_transition.
- Expiry is lazy: checked on every read/transition, persisted with a
  conditional update so concurrent readers cannot double-apply it.
- A failed notification leaves the quote status untouched.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional

from django.conf import settings
from django.db import transaction

from notifications.services import messages
from notifications.services.notification_service import (
    CHANNEL_EMAIL,
    CHANNEL_SMS,
    NotificationResult,
    NotificationService,
)
from shared.clock import Clock, system_clock
from shared.money import to_money

from orders.models import Quote, QuoteItem

from . import quote_lifecycle as lifecycle
from .exceptions import OrderValidationError, QuoteError, QuoteExpiredError
from .order_builder import OrderInput, build_order_state
from .order_reducer import recalculate_totals
from .order_state import CustomerRef, LineItem, OrderState, QuoteState, VehicleRef

logger = logging.getLogger(__name__)


def _validity_days() -> int:
    return int(getattr(settings, "QUOTE_VALIDITY_DAYS", 30))


def generate_quote_number(*, clock: Clock = system_clock) -> str:
    """
    Q-YYYYMMDD-XXXX, sequence per day.
    """
    day = clock.now().strftime("%Y%m%d")
    prefix = f"Q-{day}-"
    count = Quote.objects.filter(quote_number__startswith=prefix).count()
    return f"{prefix}{count + 1:04d}"


def snapshot_fields(item: LineItem, sort_order: int) -> dict:
    return dict(
        item_type=item.item_type,
        product_id=item.product_id,
        service_id=item.service_id,
        item_name=item.item_name,
        quantity=item.quantity,
        unit_price=item.unit_price,
        total_price=item.total_price,
        is_taxable=item.is_taxable,
        tax_amount=item.tax_amount,
        tier_name=item.tier_name or "",
        vehicle_size_class=item.vehicle_size_class or "",
        per_unit_qty=item.per_unit_qty,
        per_unit_price=item.per_unit_price,
        notes=item.notes or "",
        sort_order=sort_order,
    )


def line_from_snapshot(row) -> LineItem:
    return LineItem(
        id=str(row.id),
        item_type=row.item_type,
        item_name=row.item_name,
        quantity=row.quantity,
        unit_price=to_money(row.unit_price),
        total_price=to_money(row.total_price),
        is_taxable=row.is_taxable,
        tax_amount=to_money(row.tax_amount),
        product_id=str(row.product_id) if row.product_id else None,
        service_id=str(row.service_id) if row.service_id else None,
        tier_name=row.tier_name or None,
        vehicle_size_class=row.vehicle_size_class or None,
        per_unit_qty=row.per_unit_qty,
        per_unit_price=to_money(row.per_unit_price) if row.per_unit_price is not None else None,
        notes=row.notes or "",
    )


def quote_state(quote: Quote) -> QuoteState:
    state = QuoteState(
        items=tuple(line_from_snapshot(r) for r in quote.items.all()),
        customer=CustomerRef.from_model(quote.customer) if quote.customer_id else None,
        vehicle=VehicleRef.from_model(quote.vehicle) if quote.vehicle_id else None,
        notes=quote.notes or "",
        tax_rate=quote.tax_rate,
        quote_id=str(quote.id),
        quote_number=quote.quote_number,
        valid_until=quote.valid_until,
        status=quote.status,
    )
    return recalculate_totals(state)


# ============================================================
# CREATE
# ============================================================


@transaction.atomic
def create_quote(
    *,
    order_input: OrderInput,
    user=None,
    clock: Clock = system_clock,
    validity_days: Optional[int] = None,
) -> Quote:
    if order_input.coupon_code or order_input.loyalty_points or order_input.manual_discount_kind:
        raise OrderValidationError(
            "Quotes are priced without discounts; apply coupons, loyalty and manual discounts at checkout"
        )

    built = build_order_state(order_input, clock=clock)
    state = built.state

    if not state.items:
        raise OrderValidationError("A quote needs at least one item")

    days = validity_days if validity_days is not None else _validity_days()

    quote = Quote.objects.create(
        quote_number=generate_quote_number(clock=clock),
        customer=built.customer,
        vehicle=built.vehicle,
        created_by=user if getattr(user, "is_authenticated", False) else None,
        status=lifecycle.STATUS_DRAFT,
        valid_until=clock.now().date() + timedelta(days=days),
        tax_rate=state.tax_rate,
        subtotal_amount=state.subtotal,
        tax_amount=state.tax_amount,
        discount_amount=state.discount_amount,
        total_amount=state.total,
        notes=state.notes,
    )

    QuoteItem.objects.bulk_create(
        [QuoteItem(quote=quote, **snapshot_fields(item, idx)) for idx, item in enumerate(state.items)]
    )

    logger.info(
        "Quote created",
        extra={"quote_number": quote.quote_number, "total": str(quote.total_amount)},
    )
    return quote


# ============================================================
# EXPIRY (lazy)
# ============================================================


def is_past_validity(quote: Quote, *, clock: Clock = system_clock) -> bool:
    return clock.now().date() > quote.valid_until


def expire_if_past_validity(quote: Quote, *, clock: Clock = system_clock) -> bool:
    """
    Returns True only when this call flipped the quote to expired.
    Safe to call repeatedly and from concurrent readers.
    """
    if quote.status not in lifecycle.EXPIRABLE_STATES or not is_past_validity(quote, clock=clock):
        return False

    updated = Quote.objects.filter(
        id=quote.id,
        status__in=lifecycle.EXPIRABLE_STATES,
    ).update(status=lifecycle.STATUS_EXPIRED)

    quote.status = lifecycle.STATUS_EXPIRED
    if updated:
        logger.info("Quote expired", extra={"quote_number": quote.quote_number})
    return bool(updated)


def _transition(quote: Quote, to_status: str, *, clock: Clock, **timestamps) -> Quote:
    expire_if_past_validity(quote, clock=clock)
    if quote.status == lifecycle.STATUS_EXPIRED:
        raise QuoteExpiredError(f"Quote {quote.quote_number} has expired")

    lifecycle.validate_transition(
        quote_number=quote.quote_number,
        from_status=quote.status,
        to_status=to_status,
    )

    quote.status = to_status
    for name, value in timestamps.items():
        setattr(quote, name, value)
    quote.save(update_fields=["status", "updated_at", *timestamps.keys()])
    return quote


# ============================================================
# SEND / VIEW / ACCEPT
# ============================================================


def send_quote(
    quote: Quote,
    *,
    channel: str,
    notifier: NotificationService,
    clock: Clock = system_clock,
) -> NotificationResult:
    expire_if_past_validity(quote, clock=clock)
    if quote.status == lifecycle.STATUS_EXPIRED:
        raise QuoteExpiredError(f"Quote {quote.quote_number} has expired")

    lifecycle.validate_transition(
        quote_number=quote.quote_number,
        from_status=quote.status,
        to_status=lifecycle.STATUS_SENT,
    )

    customer = quote.customer
    if customer is None:
        raise QuoteError("A quote needs a customer before it can be sent")

    recipient = customer.email if channel == CHANNEL_EMAIL else customer.phone if channel == CHANNEL_SMS else ""

    result = notifier.send_message(
        channel,
        recipient,
        messages.quote_message(
            first_name=customer.first_name,
            quote_number=quote.quote_number,
            total=quote.total_amount,
            valid_until=quote.valid_until,
        ),
        subject=messages.quote_subject(quote.quote_number),
        context=f"quote:{quote.quote_number}",
    )

    if result.ok:
        _transition(quote, lifecycle.STATUS_SENT, clock=clock, sent_at=clock.now())

    return result


def mark_viewed(quote: Quote, *, clock: Clock = system_clock) -> Quote:
    if quote.status == lifecycle.STATUS_VIEWED:
        return quote
    return _transition(quote, lifecycle.STATUS_VIEWED, clock=clock, viewed_at=clock.now())


def accept_quote(quote: Quote, *, clock: Clock = system_clock) -> Quote:
    return _transition(quote, lifecycle.STATUS_ACCEPTED, clock=clock, accepted_at=clock.now())


@transaction.atomic
def convert_quote(quote: Quote, *, clock: Clock = system_clock) -> OrderState:
    """
    Turn a quote into a live ticket state and mark it converted.
    """
    quote = Quote.objects.select_for_update().get(id=quote.id)
    state = quote_state(quote)

    _transition(quote, lifecycle.STATUS_CONVERTED, clock=clock, converted_at=clock.now())

    ticket = OrderState(
        items=state.items,
        customer=state.customer,
        vehicle=state.vehicle,
        notes=state.notes,
        tax_rate=state.tax_rate,
    )
    logger.info("Quote converted", extra={"quote_number": quote.quote_number})
    return recalculate_totals(ticket)
