# orders/services/exceptions.py

"""
ORDER DOMAIN ERRORS

Validation errors are caller-correctable and raised BEFORE an action reaches
the reducer. UnknownOrderActionError is a programming error.
"""


class OrderError(Exception):
    pass


class OrderValidationError(OrderError):
    pass


class CouponInvalidError(OrderValidationError):
    pass


class LoyaltyRedemptionError(OrderValidationError):
    pass


class UnknownOrderActionError(OrderError):
    pass


# ============================================================
# QUOTES
# ============================================================


class QuoteError(Exception):
    pass


class InvalidQuoteTransitionError(QuoteError):
    pass


class QuoteExpiredError(QuoteError):
    pass


# ============================================================
# CHECKOUT
# ============================================================


class CheckoutError(Exception):
    pass


class CheckoutValidationError(CheckoutError):
    pass
