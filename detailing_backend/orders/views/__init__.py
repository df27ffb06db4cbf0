# orders/views/__init__.py

from .quote import QuoteViewSet
from .ticket import CheckoutView, OrderPreviewView, TransactionViewSet

__all__ = [
    "CheckoutView",
    "OrderPreviewView",
    "QuoteViewSet",
    "TransactionViewSet",
]
