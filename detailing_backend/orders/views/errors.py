# orders/views/errors.py

from rest_framework import status
from rest_framework.response import Response

from catalog.services.pricing import PricingUnavailableError
from orders.services.exceptions import (
    CheckoutError,
    CheckoutValidationError,
    CouponInvalidError,
    InvalidQuoteTransitionError,
    LoyaltyRedemptionError,
    OrderValidationError,
    QuoteError,
    QuoteExpiredError,
)


# ======================================================
# API ERROR NORMALIZATION
# ======================================================

def error_response(*, code: str, message: str, http_status: int, details=None):
    body = {"code": code, "message": message}
    if details is not None:
        body["details"] = details
    return Response({"error": body}, status=http_status)


ORDER_ERRORS = (
    OrderValidationError,
    PricingUnavailableError,
    CheckoutError,
    QuoteError,
)

# Subclasses first.
_ERROR_MAP = (
    (CouponInvalidError, "COUPON_INVALID", status.HTTP_400_BAD_REQUEST),
    (LoyaltyRedemptionError, "LOYALTY_INVALID", status.HTTP_400_BAD_REQUEST),
    (OrderValidationError, "ORDER_INVALID", status.HTTP_400_BAD_REQUEST),
    (PricingUnavailableError, "PRICING_UNAVAILABLE", status.HTTP_400_BAD_REQUEST),
    (CheckoutValidationError, "CHECKOUT_INVALID", status.HTTP_400_BAD_REQUEST),
    (CheckoutError, "CHECKOUT_FAILED", status.HTTP_409_CONFLICT),
    (QuoteExpiredError, "QUOTE_EXPIRED", status.HTTP_410_GONE),
    (InvalidQuoteTransitionError, "QUOTE_TRANSITION_NOT_ALLOWED", status.HTTP_409_CONFLICT),
    (QuoteError, "QUOTE_INVALID", status.HTTP_400_BAD_REQUEST),
)


def order_error_response(exc: Exception):
    for exc_type, code, http_status in _ERROR_MAP:
        if isinstance(exc, exc_type):
            return error_response(code=code, message=str(exc), http_status=http_status)
    raise exc
