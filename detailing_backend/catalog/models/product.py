# catalog/models/product.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models


class Product(models.Model):
    """
    Retail product sold over the counter (waxes, towels, coatings).

    Pricing:
    - retail_price is the current sell price; order lines snapshot it at add time
      and the checkout orchestrator re-reads it server-side.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sku = models.CharField(max_length=64, unique=True, db_index=True)
    name = models.CharField(max_length=255, db_index=True)

    retail_price = models.DecimalField(max_digits=10, decimal_places=2)
    is_taxable = models.BooleanField(default=True)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def clean(self):
        if self.retail_price is None or Decimal(self.retail_price) < Decimal("0.00"):
            raise ValidationError({"retail_price": "retail_price cannot be negative"})

    def __str__(self):
        return f"{self.name} ({self.sku})"
