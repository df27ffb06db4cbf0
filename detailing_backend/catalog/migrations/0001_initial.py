"""
MIGRATION: catalog (Product, Service, ServicePricingTier)
"""

from __future__ import annotations

import uuid

import django.db.models.deletion
from django.db import migrations, models

PRICE = dict(max_digits=10, decimal_places=2)


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("sku", models.CharField(db_index=True, max_length=64, unique=True)),
                ("name", models.CharField(db_index=True, max_length=255)),
                ("retail_price", models.DecimalField(**PRICE)),
                ("is_taxable", models.BooleanField(default=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={"ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="Service",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(db_index=True, max_length=255)),
                ("description", models.TextField(blank=True)),
                (
                    "pricing_model",
                    models.CharField(
                        choices=[
                            ("vehicle_size", "Vehicle Size"),
                            ("scope", "Scope"),
                            ("per_unit", "Per Unit"),
                            ("flat", "Flat Rate"),
                        ],
                        default="flat",
                        max_length=32,
                    ),
                ),
                ("is_taxable", models.BooleanField(default=False)),
                ("per_unit_price", models.DecimalField(blank=True, null=True, **PRICE)),
                ("per_unit_label", models.CharField(blank=True, max_length=64)),
                ("per_unit_max", models.PositiveIntegerField(blank=True, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={"ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="ServicePricingTier",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("tier_name", models.CharField(max_length=64)),
                ("tier_label", models.CharField(blank=True, max_length=128)),
                ("price", models.DecimalField(**PRICE)),
                ("is_vehicle_size_aware", models.BooleanField(default=False)),
                ("sedan_price", models.DecimalField(blank=True, null=True, **PRICE)),
                ("truck_suv_price", models.DecimalField(blank=True, null=True, **PRICE)),
                ("suv_van_price", models.DecimalField(blank=True, null=True, **PRICE)),
                ("sort_order", models.PositiveIntegerField(default=0)),
                (
                    "service",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="pricing_tiers",
                        to="catalog.service",
                    ),
                ),
            ],
            options={"ordering": ["sort_order", "tier_name"]},
        ),
        migrations.AddConstraint(
            model_name="servicepricingtier",
            constraint=models.UniqueConstraint(
                fields=("service", "tier_name"),
                name="unique_tier_name_per_service",
            ),
        ),
    ]
