from .product import Product
from .service import Service, ServicePricingTier

__all__ = ["Product", "Service", "ServicePricingTier"]
