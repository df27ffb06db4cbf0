# catalog/admin.py
"""
=====================================================
PATH: catalog/admin.py
=====================================================

Catalog maintenance lives here (no write API).
Pricing tiers are edited inline on their service.
"""

from django.contrib import admin

from catalog.models import Product, Service, ServicePricingTier


class ServicePricingTierInline(admin.TabularInline):
    model = ServicePricingTier
    extra = 0
    fields = (
        "tier_name",
        "tier_label",
        "price",
        "is_vehicle_size_aware",
        "sedan_price",
        "truck_suv_price",
        "suv_van_price",
        "sort_order",
    )


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ("name", "pricing_model", "is_taxable", "is_active")
    list_filter = ("pricing_model", "is_taxable", "is_active")
    search_fields = ("name",)
    inlines = [ServicePricingTierInline]


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("name", "sku", "retail_price", "is_taxable", "is_active")
    list_filter = ("is_taxable", "is_active")
    search_fields = ("name", "sku")
