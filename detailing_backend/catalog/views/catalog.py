# catalog/views/catalog.py

"""
CATALOG VIEWSETS

Read-only catalog browsing for the POS and job screens.
Catalog edits happen in the Django admin.
"""

from django.db.models import Q
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticated

from catalog.models import Product, Service
from catalog.serializers import ProductSerializer, ServiceSerializer
from permissions.roles import CAP_CATALOG_VIEW, HasCapability


class ServiceViewSet(viewsets.ReadOnlyModelViewSet):
    """
    GET /catalog/services/?q=<search>
    """

    serializer_class = ServiceSerializer
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_CATALOG_VIEW

    def get_queryset(self):
        qs = Service.objects.filter(is_active=True).prefetch_related("pricing_tiers")
        q = (self.request.query_params.get("q") or "").strip()
        if q:
            qs = qs.filter(Q(name__icontains=q) | Q(description__icontains=q))
        return qs.order_by("name")

    @extend_schema(
        parameters=[OpenApiParameter(name="q", required=False, type=str)],
        tags=["Catalog"],
    )
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)


class ProductViewSet(viewsets.ReadOnlyModelViewSet):
    """
    GET /catalog/products/?q=<search>
    """

    serializer_class = ProductSerializer
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_CATALOG_VIEW

    def get_queryset(self):
        qs = Product.objects.filter(is_active=True)
        q = (self.request.query_params.get("q") or "").strip()
        if q:
            qs = qs.filter(Q(name__icontains=q) | Q(sku__icontains=q))
        return qs.order_by("name")

    @extend_schema(
        parameters=[OpenApiParameter(name="q", required=False, type=str)],
        tags=["Catalog"],
    )
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)
