# catalog/models/service.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from catalog.services.definitions import PRICING_MODEL_CHOICES, PRICING_MODEL_FLAT, PRICING_MODEL_PER_UNIT


class Service(models.Model):
    """
    Detailing service.

    PRICING MODELS:
    - flat / scope / vehicle_size: priced through ServicePricingTier rows
    - per_unit: per_unit_price x quantity (e.g. per headlight), capped by per_unit_max
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=255, db_index=True)
    description = models.TextField(blank=True)

    pricing_model = models.CharField(
        max_length=32,
        choices=PRICING_MODEL_CHOICES,
        default=PRICING_MODEL_FLAT,
    )

    is_taxable = models.BooleanField(default=False)

    per_unit_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    per_unit_label = models.CharField(max_length=64, blank=True)
    per_unit_max = models.PositiveIntegerField(null=True, blank=True)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def clean(self):
        if self.pricing_model == PRICING_MODEL_PER_UNIT:
            if self.per_unit_price is None or Decimal(self.per_unit_price) <= Decimal("0.00"):
                raise ValidationError({"per_unit_price": "per_unit services need a positive per_unit_price"})

    def __str__(self):
        return self.name


class ServicePricingTier(models.Model):
    """
    Named pricing option for a service.

    Vehicle-size-aware tiers may carry per-size overrides; a missing override
    falls back to `price`.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    service = models.ForeignKey(
        Service,
        on_delete=models.CASCADE,
        related_name="pricing_tiers",
    )

    tier_name = models.CharField(max_length=64)
    tier_label = models.CharField(max_length=128, blank=True)

    price = models.DecimalField(max_digits=10, decimal_places=2)

    is_vehicle_size_aware = models.BooleanField(default=False)
    sedan_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    truck_suv_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    suv_van_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    sort_order = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["sort_order", "tier_name"]
        constraints = [
            models.UniqueConstraint(
                fields=["service", "tier_name"],
                name="unique_tier_name_per_service",
            )
        ]

    def __str__(self):
        return f"{self.service.name} / {self.tier_label or self.tier_name}"
