# catalog/serializers/__init__.py

from .catalog import PricingTierSerializer, ProductSerializer, ServiceSerializer

__all__ = [
    "PricingTierSerializer",
    "ProductSerializer",
    "ServiceSerializer",
]
