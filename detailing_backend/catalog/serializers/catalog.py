# catalog/serializers/catalog.py

"""
CATALOG SERIALIZERS

Read-only shapes the POS uses to build orders:
- services carry their tiers plus a display price range
- products carry retail price + taxability
"""

from rest_framework import serializers

from catalog.models import Product, Service, ServicePricingTier
from catalog.services.definitions import ServiceDefinition


class PricingTierSerializer(serializers.ModelSerializer):
    class Meta:
        model = ServicePricingTier
        fields = [
            "tier_name",
            "tier_label",
            "price",
            "is_vehicle_size_aware",
            "sedan_price",
            "truck_suv_price",
            "suv_van_price",
            "sort_order",
        ]
        read_only_fields = fields


class ServiceSerializer(serializers.ModelSerializer):
    pricing_tiers = PricingTierSerializer(many=True, read_only=True)
    price_min = serializers.SerializerMethodField()
    price_max = serializers.SerializerMethodField()

    class Meta:
        model = Service
        fields = [
            "id",
            "name",
            "description",
            "pricing_model",
            "is_taxable",
            "per_unit_price",
            "per_unit_label",
            "per_unit_max",
            "pricing_tiers",
            "price_min",
            "price_max",
        ]
        read_only_fields = fields

    def _range(self, obj):
        cache = self.context.setdefault("_price_ranges", {})
        if obj.id not in cache:
            cache[obj.id] = ServiceDefinition.from_model(obj).price_range()
        return cache[obj.id]

    def get_price_min(self, obj):
        r = self._range(obj)
        return str(r[0]) if r else None

    def get_price_max(self, obj):
        r = self._range(obj)
        return str(r[1]) if r else None


class ProductSerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = ["id", "sku", "name", "retail_price", "is_taxable", "is_active"]
        read_only_fields = fields
