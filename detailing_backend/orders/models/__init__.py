# orders/models/__init__.py

from .coupon import Coupon
from .quote import Quote, QuoteItem
from .transaction import Transaction, TransactionItem

__all__ = [
    "Coupon",
    "Quote",
    "QuoteItem",
    "Transaction",
    "TransactionItem",
]
