# jobs/services/addon_workflow.py

"""
ADD-ON AUTHORIZATION WORKFLOW

pending -> approved | declined | expired

Rules:
- Expiry is lazy: expire_if_stale() is the single place a pending add-on
  becomes expired, and it is idempotent.
- Only expired / declined add-ons can be resent (a fresh pending window).
- A service already on the job (original service or approved add-on) cannot be
  recommended again. Per-unit services ask for a quantity increment instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from shared.money import ZERO, to_money

from .exceptions import (
    AddonExpiredError,
    AddonStateError,
    AddonValidationError,
    DuplicateAddonError,
    PerUnitIncrementRequired,
)

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_DECLINED = "declined"
STATUS_EXPIRED = "expired"

STATUS_CHOICES = [
    (STATUS_PENDING, "Pending"),
    (STATUS_APPROVED, "Approved"),
    (STATUS_DECLINED, "Declined"),
    (STATUS_EXPIRED, "Expired"),
]

RESENDABLE_STATES = {STATUS_EXPIRED, STATUS_DECLINED}

DEFAULT_EXPIRATION = timedelta(minutes=30)

DEFAULT_MESSAGE_TEMPLATE = (
    "Hi {customer_name}, while working on your {vehicle} we noticed something worth "
    "addressing. We recommend {item_name} for ${final_price}."
)


@dataclass(frozen=True)
class AddonAuthorization:
    id: str
    status: str
    price: Decimal
    discount_amount: Decimal = ZERO
    service_id: Optional[str] = None
    product_id: Optional[str] = None
    custom_description: Optional[str] = None
    item_name: str = ""
    sent_at: Optional[datetime] = None
    responded_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    pickup_delay_minutes: int = 0
    message_to_customer: str = ""
    photo_ids: tuple[str, ...] = field(default_factory=tuple)
    authorization_token: str = ""

    @property
    def final_price(self) -> Decimal:
        return final_price(self)

    @property
    def display_name(self) -> str:
        return self.item_name or self.custom_description or "Additional service"


def final_price(addon: AddonAuthorization) -> Decimal:
    return to_money(to_money(addon.price) - to_money(addon.discount_amount))


class _KeepMissing(dict):
    def __missing__(self, key):
        return "{" + key + "}"


def render_addon_message(template: Optional[str], **values) -> str:
    """
    Substitute {placeholders}; unknown placeholders are left as written.
    """
    text = template or DEFAULT_MESSAGE_TEMPLATE
    return text.format_map(_KeepMissing({k: "" if v is None else v for k, v in values.items()}))


# ============================================================
# CREATE
# ============================================================


def create_addon(
    *,
    addon_id: str,
    now: datetime,
    price,
    message: str,
    photo_ids: Iterable[str],
    discount_amount=ZERO,
    service_id: Optional[str] = None,
    product_id: Optional[str] = None,
    custom_description: Optional[str] = None,
    item_name: str = "",
    pickup_delay_minutes: int = 0,
    expiration: timedelta = DEFAULT_EXPIRATION,
    authorization_token: str = "",
) -> AddonAuthorization:
    photo_ids = tuple(str(p) for p in photo_ids or ())
    if not photo_ids:
        raise AddonValidationError("An add-on must reference at least one flagged photo")

    targets = [t for t in (service_id, product_id, (custom_description or "").strip()) if t]
    if len(targets) != 1:
        raise AddonValidationError("An add-on needs exactly one of service, product or custom description")

    price = to_money(price)
    discount = to_money(discount_amount)
    if price <= ZERO:
        raise AddonValidationError("Add-on price must be greater than zero")
    if discount < ZERO or discount > price:
        raise AddonValidationError("Discount cannot exceed the add-on price")

    delay = int(pickup_delay_minutes or 0)
    if delay < 0:
        raise AddonValidationError("Pickup delay cannot be negative")

    message = (message or "").strip()
    if not message:
        raise AddonValidationError("A customer message is required")

    return AddonAuthorization(
        id=str(addon_id),
        status=STATUS_PENDING,
        price=price,
        discount_amount=discount,
        service_id=service_id,
        product_id=product_id,
        custom_description=(custom_description or "").strip() or None,
        item_name=item_name or (custom_description or "").strip(),
        sent_at=now,
        expires_at=now + expiration,
        pickup_delay_minutes=delay,
        message_to_customer=message,
        photo_ids=photo_ids,
        authorization_token=authorization_token,
    )


# ============================================================
# EXPIRY
# ============================================================


def is_stale(addon: AddonAuthorization, now: datetime) -> bool:
    return addon.status == STATUS_PENDING and addon.expires_at is not None and now > addon.expires_at


def expire_if_stale(addon: AddonAuthorization, now: datetime) -> AddonAuthorization:
    if not is_stale(addon, now):
        return addon
    return replace(addon, status=STATUS_EXPIRED)


def expire_stale_addons(addons: Iterable[AddonAuthorization], now: datetime):
    """
    Returns (addons, changed_ids). changed_ids lists only add-ons this call expired.
    """
    updated = []
    changed = []
    for addon in addons:
        new = expire_if_stale(addon, now)
        if new is not addon:
            changed.append(addon.id)
        updated.append(new)
    return tuple(updated), tuple(changed)


# ============================================================
# RESPOND / RESEND
# ============================================================


def respond(addon: AddonAuthorization, *, approve: bool, now: datetime) -> AddonAuthorization:
    if is_stale(addon, now) or addon.status == STATUS_EXPIRED:
        raise AddonExpiredError(
            "Authorization has expired",
            addon=expire_if_stale(addon, now),
        )

    if addon.status != STATUS_PENDING:
        raise AddonStateError(f"Add-on already {addon.status}")

    return replace(
        addon,
        status=STATUS_APPROVED if approve else STATUS_DECLINED,
        responded_at=now,
    )


def resend(
    addon: AddonAuthorization,
    *,
    now: datetime,
    expiration: timedelta = DEFAULT_EXPIRATION,
    authorization_token: Optional[str] = None,
) -> AddonAuthorization:
    addon = expire_if_stale(addon, now)
    if addon.status not in RESENDABLE_STATES:
        raise AddonStateError(f"Cannot resend an add-on that is {addon.status}")

    return replace(
        addon,
        status=STATUS_PENDING,
        sent_at=now,
        responded_at=None,
        expires_at=now + expiration,
        authorization_token=authorization_token or addon.authorization_token,
    )


# ============================================================
# DUPLICATE GUARD
# ============================================================


def check_duplicate_recommendation(
    *,
    job_service_ids: Iterable[str],
    addons: Iterable[AddonAuthorization],
    service_id: Optional[str],
    is_per_unit: bool = False,
) -> None:
    if not service_id:
        return

    addons = tuple(addons)
    on_job = service_id in set(job_service_ids) or any(
        a.service_id == service_id and a.status == STATUS_APPROVED for a in addons
    )

    if on_job:
        if is_per_unit:
            raise PerUnitIncrementRequired(
                "Service is already on this job; increase its quantity instead",
                service_id=service_id,
            )
        raise DuplicateAddonError("Service is already on this job")

    if any(a.service_id == service_id and a.status == STATUS_PENDING for a in addons):
        raise DuplicateAddonError("This service is already awaiting customer approval")
