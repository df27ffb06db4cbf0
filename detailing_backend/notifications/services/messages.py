# notifications/services/messages.py

"""
CUSTOMER MESSAGE TEXT

Plain-text bodies only (no HTML rendering here).
"""

from __future__ import annotations

from django.conf import settings


def business_name() -> str:
    return getattr(settings, "BUSINESS_NAME", "") or "Our detailing team"


def cancellation_message(*, first_name: str, service_names: str) -> str:
    greeting = f"Hi {first_name}, " if first_name else ""
    return (
        f"{greeting}your {service_names or 'detailing'} appointment has been cancelled. "
        f"Please contact us to reschedule. - {business_name()}"
    )


def cancellation_subject() -> str:
    return f"Appointment Cancelled - {business_name()}"


def addon_request_message(*, message: str, final_price, pickup_delay_minutes: int, authorize_url: str = "") -> str:
    lines = [message, "", f"Price: ${final_price}"]
    if pickup_delay_minutes:
        lines.append(f"Additional time: +{pickup_delay_minutes} minutes")
    if authorize_url:
        lines.extend(["", f"Approve or decline here: {authorize_url}"])
    lines.extend(["", f"- {business_name()}"])
    return "\n".join(lines)


def addon_request_subject() -> str:
    return f"Additional service recommended - {business_name()}"


def addon_approved_message(*, item_name: str) -> str:
    return f"Great! Your add-on ({item_name}) has been approved. We'll get started right away!"


def quote_message(*, first_name: str, quote_number: str, total, valid_until) -> str:
    greeting = f"Hi {first_name}, " if first_name else ""
    return (
        f"{greeting}here is your quote {quote_number} from {business_name()}. "
        f"Total: ${total}. Valid until {valid_until:%B %d, %Y}."
    )


def quote_subject(quote_number: str) -> str:
    return f"Your quote {quote_number} - {business_name()}"
