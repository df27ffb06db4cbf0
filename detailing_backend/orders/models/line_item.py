# orders/models/line_item.py

"""
LINE ITEM SNAPSHOT (abstract)

Shared columns for TransactionItem and QuoteItem.
Rows are snapshots of the order state at save time, never live catalog links
for pricing: product/service FKs are kept for reporting only.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.db import models

from orders.services.order_state import ITEM_TYPE_CHOICES


class LineItemSnapshot(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    item_type = models.CharField(max_length=16, choices=ITEM_TYPE_CHOICES)

    product = models.ForeignKey(
        "catalog.Product",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    service = models.ForeignKey(
        "catalog.Service",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    item_name = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField(default=1)

    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    total_price = models.DecimalField(max_digits=12, decimal_places=2)

    is_taxable = models.BooleanField(default=False)
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    tier_name = models.CharField(max_length=64, blank=True)
    vehicle_size_class = models.CharField(max_length=32, blank=True)

    per_unit_qty = models.PositiveIntegerField(null=True, blank=True)
    per_unit_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    notes = models.TextField(blank=True)

    sort_order = models.PositiveIntegerField(default=0)

    class Meta:
        abstract = True
        ordering = ["sort_order"]

    def __str__(self):
        return f"{self.item_name} x {self.quantity}"
