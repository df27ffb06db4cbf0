# catalog/views/__init__.py

from .catalog import ProductViewSet, ServiceViewSet

__all__ = ["ProductViewSet", "ServiceViewSet"]
