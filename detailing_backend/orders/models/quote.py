# orders/models/quote.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models

from orders.services.quote_lifecycle import STATUS_CHOICES, STATUS_DRAFT

from .line_item import LineItemSnapshot

User = settings.AUTH_USER_MODEL


class Quote(models.Model):
    """
    Draft order offered to a customer.

    Status moves only through orders.services.quote_lifecycle.
    Expiry is evaluated lazily on read (no scheduler).
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    quote_number = models.CharField(max_length=32, unique=True)

    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="quotes",
    )
    vehicle = models.ForeignKey(
        "customers.Vehicle",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="quotes",
    )
    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        related_name="quotes",
    )

    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_DRAFT)
    valid_until = models.DateField()

    tax_rate = models.DecimalField(max_digits=6, decimal_places=4)
    subtotal_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    notes = models.TextField(blank=True)

    sent_at = models.DateTimeField(null=True, blank=True)
    viewed_at = models.DateTimeField(null=True, blank=True)
    accepted_at = models.DateTimeField(null=True, blank=True)
    converted_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_quot_status_4e8a1c_idx"),
        ]

    def __str__(self):
        return self.quote_number


class QuoteItem(LineItemSnapshot):
    quote = models.ForeignKey(
        Quote,
        on_delete=models.CASCADE,
        related_name="items",
    )

    class Meta(LineItemSnapshot.Meta):
        pass
