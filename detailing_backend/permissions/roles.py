# permissions/roles.py

from __future__ import annotations

from typing import Optional

from rest_framework.permissions import BasePermission


# =========================================================
# ROLE CONSTANTS (STAFF JOB ROLES)
# =========================================================
ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_CASHIER = "cashier"
ROLE_DETAILER = "detailer"


# =========================================================
# CAPABILITIES
# =========================================================
# Views and the job controller protect capabilities, not raw roles.
CAP_POS_SELL = "pos.sell"
CAP_POS_MANUAL_DISCOUNT = "pos.manual_discount"

CAP_QUOTES_MANAGE = "quotes.manage"
CAP_QUOTES_SEND = "quotes.send"

CAP_JOBS_WORK = "jobs.work"                      # intake, photos, timer, complete
CAP_JOBS_FLAG_ADDON = "jobs.flag_addon"
CAP_JOBS_RECORD_CONSENT = "jobs.record_consent"  # enter a customer add-on answer on their behalf
CAP_JOBS_CANCEL = "jobs.cancel"                  # scheduled / intake only
CAP_JOBS_CANCEL_STARTED = "jobs.cancel_started"  # in_progress / pending_approval

CAP_CATALOG_VIEW = "catalog.view"

ALL_CAPABILITIES = {
    CAP_POS_SELL,
    CAP_POS_MANUAL_DISCOUNT,
    CAP_QUOTES_MANAGE,
    CAP_QUOTES_SEND,
    CAP_JOBS_WORK,
    CAP_JOBS_FLAG_ADDON,
    CAP_JOBS_RECORD_CONSENT,
    CAP_JOBS_CANCEL,
    CAP_JOBS_CANCEL_STARTED,
    CAP_CATALOG_VIEW,
}


# =========================================================
# ROLE → CAPABILITY MAP (DEFAULT)
# =========================================================
ROLE_CAPABILITIES: dict[str, set[str]] = {
    ROLE_ADMIN: {
        *ALL_CAPABILITIES,
    },
    ROLE_MANAGER: {
        CAP_POS_SELL,
        CAP_POS_MANUAL_DISCOUNT,
        CAP_QUOTES_MANAGE,
        CAP_QUOTES_SEND,
        CAP_JOBS_WORK,
        CAP_JOBS_FLAG_ADDON,
        CAP_JOBS_RECORD_CONSENT,
        CAP_JOBS_CANCEL,
        CAP_CATALOG_VIEW,
        # cancelling started work stays admin-only
    },
    ROLE_CASHIER: {
        CAP_POS_SELL,
        CAP_QUOTES_MANAGE,
        CAP_QUOTES_SEND,
        CAP_JOBS_CANCEL,
        CAP_CATALOG_VIEW,
    },
    ROLE_DETAILER: {
        CAP_JOBS_WORK,
        CAP_JOBS_FLAG_ADDON,
        CAP_CATALOG_VIEW,
    },
}


# =========================================================
# Helpers
# =========================================================
def get_user_role(user) -> Optional[str]:
    return getattr(user, "role", None)


def capabilities_for_role(role: Optional[str]) -> set[str]:
    return set(ROLE_CAPABILITIES.get(role or "", set()))


def effective_capabilities_for(request, user) -> set[str]:
    caps = capabilities_for_role(get_user_role(user))
    if getattr(user, "is_superuser", False):
        caps |= ALL_CAPABILITIES
    return caps


def user_has_capability(user, capability: str) -> bool:
    if user is None:
        return False
    return capability in effective_capabilities_for(None, user)


# =========================================================
# Capability Permissions
# =========================================================
class HasCapability(BasePermission):
    """
    Require a specific capability.

    Usage:
        permission_classes = [IsAuthenticated, HasCapability]
        required_capability = CAP_JOBS_WORK
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_capability", None)
        if not required:
            # deny-by-default to avoid accidental open endpoints
            return False

        return required in effective_capabilities_for(request, user)


class HasAnyCapability(BasePermission):
    """
    Require at least one capability from view.required_any_capabilities.
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = set(getattr(view, "required_any_capabilities", None) or ())
        if not required:
            return False

        return bool(required & effective_capabilities_for(request, user))

