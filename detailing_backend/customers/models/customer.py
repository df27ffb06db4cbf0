# customers/models/customer.py

import uuid

from django.core.validators import MinValueValidator
from django.db import models


class Customer(models.Model):
    """
    Customer record.

    Loyalty:
    - loyalty_points_balance is only decremented by the checkout orchestrator
      (server-side redemption), never by the POS client.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100, blank=True)

    phone = models.CharField(max_length=32, blank=True)
    email = models.EmailField(blank=True)

    loyalty_points_balance = models.IntegerField(default=0, validators=[MinValueValidator(0)])

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["last_name", "first_name"]
        indexes = [
            models.Index(fields=["phone"], name="customers_c_phone_5f1a2b_idx"),
            models.Index(fields=["email"], name="customers_c_email_8d3c4e_idx"),
        ]

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __str__(self):
        return self.full_name or str(self.id)
