# orders/serializers/__init__.py

from .order import (
    CheckoutInputSerializer,
    LineItemStateSerializer,
    ManualDiscountInputSerializer,
    OrderInputSerializer,
    OrderLineInputSerializer,
    OrderStateSerializer,
)
from .records import (
    QuoteItemSerializer,
    QuoteSendSerializer,
    QuoteSerializer,
    TransactionItemSerializer,
    TransactionSerializer,
)

__all__ = [
    "CheckoutInputSerializer",
    "LineItemStateSerializer",
    "ManualDiscountInputSerializer",
    "OrderInputSerializer",
    "OrderLineInputSerializer",
    "OrderStateSerializer",
    "QuoteItemSerializer",
    "QuoteSendSerializer",
    "QuoteSerializer",
    "TransactionItemSerializer",
    "TransactionSerializer",
]
