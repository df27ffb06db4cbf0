"""
QUOTE LIFECYCLE DOMAIN RULES

This module defines the ONLY allowed lifecycle transitions
for quotes.

DESIGN PRINCIPLES:
- No database writes
- No side effects
- Single source of truth
"""

from orders.services.exceptions import InvalidQuoteTransitionError

# ============================================================
# STATE DEFINITIONS
# ============================================================

STATUS_DRAFT = "draft"
STATUS_SENT = "sent"
STATUS_VIEWED = "viewed"
STATUS_ACCEPTED = "accepted"
STATUS_EXPIRED = "expired"
STATUS_CONVERTED = "converted"

STATUS_CHOICES = [
    (STATUS_DRAFT, "Draft"),
    (STATUS_SENT, "Sent"),
    (STATUS_VIEWED, "Viewed"),
    (STATUS_ACCEPTED, "Accepted"),
    (STATUS_EXPIRED, "Expired"),
    (STATUS_CONVERTED, "Converted"),
]

TERMINAL_STATES = {
    STATUS_EXPIRED,
    STATUS_CONVERTED,
}

# states a quote can still lapse from once valid_until passes
EXPIRABLE_STATES = {
    STATUS_DRAFT,
    STATUS_SENT,
    STATUS_VIEWED,
}

ALLOWED_TRANSITIONS = {
    STATUS_DRAFT: {STATUS_SENT, STATUS_EXPIRED},
    STATUS_SENT: {STATUS_SENT, STATUS_VIEWED, STATUS_ACCEPTED, STATUS_EXPIRED, STATUS_CONVERTED},
    STATUS_VIEWED: {STATUS_SENT, STATUS_ACCEPTED, STATUS_EXPIRED, STATUS_CONVERTED},
    STATUS_ACCEPTED: {STATUS_CONVERTED},
}


# ============================================================
# DOMAIN RULES
# ============================================================


def can_transition(*, from_status: str, to_status: str) -> bool:
    if from_status in TERMINAL_STATES:
        return False

    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def validate_transition(*, quote_number: str, from_status: str, to_status: str):
    if not can_transition(from_status=from_status, to_status=to_status):
        raise InvalidQuoteTransitionError(
            f"Quote {quote_number} cannot transition from "
            f"'{from_status}' to '{to_status}'"
        )
