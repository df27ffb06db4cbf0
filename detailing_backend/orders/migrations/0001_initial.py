"""
MIGRATION: orders (Coupon, Quote, QuoteItem, Transaction, TransactionItem)
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

ITEM_TYPES = [("product", "Product"), ("service", "Service"), ("custom", "Custom")]
QUOTE_STATUSES = [
    ("draft", "Draft"),
    ("sent", "Sent"),
    ("viewed", "Viewed"),
    ("accepted", "Accepted"),
    ("expired", "Expired"),
    ("converted", "Converted"),
]


def _money(**kwargs):
    return models.DecimalField(max_digits=12, decimal_places=2, **kwargs)


def _line_item_fields():
    return [
        ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
        ("item_type", models.CharField(choices=ITEM_TYPES, max_length=16)),
        ("item_name", models.CharField(max_length=255)),
        ("quantity", models.PositiveIntegerField(default=1)),
        ("unit_price", models.DecimalField(decimal_places=2, max_digits=10)),
        ("total_price", _money()),
        ("is_taxable", models.BooleanField(default=False)),
        ("tax_amount", _money(default=Decimal("0.00"))),
        ("tier_name", models.CharField(blank=True, max_length=64)),
        ("vehicle_size_class", models.CharField(blank=True, max_length=32)),
        ("per_unit_qty", models.PositiveIntegerField(blank=True, null=True)),
        ("per_unit_price", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
        ("notes", models.TextField(blank=True)),
        ("sort_order", models.PositiveIntegerField(default=0)),
        (
            "product",
            models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="+",
                to="catalog.product",
            ),
        ),
        (
            "service",
            models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="+",
                to="catalog.service",
            ),
        ),
    ]


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("catalog", "0001_initial"),
        ("customers", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Coupon",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("code", models.CharField(max_length=32, unique=True)),
                (
                    "kind",
                    models.CharField(
                        choices=[("flat", "Flat amount"), ("percentage", "Percentage")],
                        default="flat",
                        max_length=16,
                    ),
                ),
                ("value", models.DecimalField(decimal_places=2, max_digits=10)),
                ("max_discount", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ("min_purchase", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ("expires_at", models.DateTimeField(blank=True, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("max_uses", models.PositiveIntegerField(blank=True, null=True)),
                ("use_count", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={"ordering": ["code"]},
        ),
        migrations.CreateModel(
            name="Quote",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("quote_number", models.CharField(max_length=32, unique=True)),
                ("status", models.CharField(choices=QUOTE_STATUSES, default="draft", max_length=16)),
                ("valid_until", models.DateField()),
                ("tax_rate", models.DecimalField(decimal_places=4, max_digits=6)),
                ("subtotal_amount", _money(default=Decimal("0.00"))),
                ("tax_amount", _money(default=Decimal("0.00"))),
                ("discount_amount", _money(default=Decimal("0.00"))),
                ("total_amount", _money(default=Decimal("0.00"))),
                ("notes", models.TextField(blank=True)),
                ("sent_at", models.DateTimeField(blank=True, null=True)),
                ("viewed_at", models.DateTimeField(blank=True, null=True)),
                ("accepted_at", models.DateTimeField(blank=True, null=True)),
                ("converted_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="quotes",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="quotes",
                        to="customers.customer",
                    ),
                ),
                (
                    "vehicle",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="quotes",
                        to="customers.vehicle",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["status"], name="orders_quot_status_4e8a1c_idx")],
            },
        ),
        migrations.CreateModel(
            name="QuoteItem",
            fields=_line_item_fields()
            + [
                (
                    "quote",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="orders.quote",
                    ),
                ),
            ],
            options={"ordering": ["sort_order"], "abstract": False},
        ),
        migrations.CreateModel(
            name="Transaction",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("receipt_number", models.CharField(max_length=32, unique=True)),
                ("idempotency_key", models.CharField(blank=True, max_length=64, null=True, unique=True)),
                ("tax_rate", models.DecimalField(decimal_places=4, max_digits=6)),
                ("subtotal_amount", _money(default=Decimal("0.00"))),
                ("tax_amount", _money(default=Decimal("0.00"))),
                ("discount_amount", _money(default=Decimal("0.00"))),
                ("total_amount", _money(default=Decimal("0.00"))),
                ("coupon_discount", _money(default=Decimal("0.00"))),
                ("loyalty_points_redeemed", models.PositiveIntegerField(default=0)),
                ("loyalty_discount", _money(default=Decimal("0.00"))),
                ("manual_discount_amount", _money(default=Decimal("0.00"))),
                ("manual_discount_label", models.CharField(blank=True, max_length=128)),
                ("payment_method", models.CharField(default="cash", max_length=32)),
                (
                    "status",
                    models.CharField(
                        choices=[("completed", "Completed"), ("voided", "Voided")],
                        default="completed",
                        max_length=16,
                    ),
                ),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "coupon",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="transactions",
                        to="orders.coupon",
                    ),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="transactions",
                        to="customers.customer",
                    ),
                ),
                (
                    "quote",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="transactions",
                        to="orders.quote",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        help_text="Cashier who rang up the order",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="transactions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "vehicle",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="transactions",
                        to="customers.vehicle",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["created_at"], name="orders_tran_created_3b9e1f_idx"),
                    models.Index(fields=["status"], name="orders_tran_status_7c2d4a_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="TransactionItem",
            fields=_line_item_fields()
            + [
                (
                    "transaction",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="orders.transaction",
                    ),
                ),
            ],
            options={"ordering": ["sort_order"], "abstract": False},
        ),
    ]
