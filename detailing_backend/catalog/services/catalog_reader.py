# catalog/services/catalog_reader.py

"""
CATALOG READER

ORM -> immutable definitions. This is the only place in catalog that touches
the DB on behalf of the order/job cores.
"""

from __future__ import annotations

from django.conf import settings

from catalog.models import Product, Service
from shared.clock import system_clock

from .catalog_cache import CatalogCache
from .definitions import ProductDefinition, ServiceDefinition


def load_active_services() -> dict[str, ServiceDefinition]:
    qs = Service.objects.filter(is_active=True).prefetch_related("pricing_tiers")
    return {str(s.id): ServiceDefinition.from_model(s) for s in qs}


def load_products(product_ids) -> dict[str, ProductDefinition]:
    qs = Product.objects.filter(id__in=list(product_ids), is_active=True)
    return {str(p.id): ProductDefinition.from_model(p) for p in qs}


def load_services(service_ids) -> dict[str, ServiceDefinition]:
    qs = Service.objects.filter(id__in=list(service_ids), is_active=True).prefetch_related(
        "pricing_tiers"
    )
    return {str(s.id): ServiceDefinition.from_model(s) for s in qs}


service_catalog_cache: CatalogCache[dict[str, ServiceDefinition]] = CatalogCache(
    loader=load_active_services,
    ttl_seconds=getattr(settings, "CATALOG_CACHE_TTL_SECONDS", 300),
    clock=system_clock,
    name="services",
)
