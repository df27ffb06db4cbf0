# orders/models/transaction.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models

from .line_item import LineItemSnapshot

User = settings.AUTH_USER_MODEL


class Transaction(models.Model):
    """
    Completed POS checkout.

    GUARANTEES:
    - Totals are recomputed server-side at creation (client totals are ignored)
    - idempotency_key makes a retried submission return the same row
    - Line items are immutable snapshots
    """

    STATUS_COMPLETED = "completed"
    STATUS_VOIDED = "voided"

    STATUS_CHOICES = [
        (STATUS_COMPLETED, "Completed"),
        (STATUS_VOIDED, "Voided"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    receipt_number = models.CharField(max_length=32, unique=True)
    idempotency_key = models.CharField(max_length=64, unique=True, null=True, blank=True)

    user = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        related_name="transactions",
        help_text="Cashier who rang up the order",
    )
    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="transactions",
    )
    vehicle = models.ForeignKey(
        "customers.Vehicle",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="transactions",
    )
    coupon = models.ForeignKey(
        "orders.Coupon",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="transactions",
    )
    quote = models.ForeignKey(
        "orders.Quote",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="transactions",
    )

    tax_rate = models.DecimalField(max_digits=6, decimal_places=4)

    subtotal_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    coupon_discount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    loyalty_points_redeemed = models.PositiveIntegerField(default=0)
    loyalty_discount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    manual_discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    manual_discount_label = models.CharField(max_length=128, blank=True)

    payment_method = models.CharField(max_length=32, default="cash")
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_COMPLETED)
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["created_at"], name="orders_tran_created_3b9e1f_idx"),
            models.Index(fields=["status"], name="orders_tran_status_7c2d4a_idx"),
        ]

    def __str__(self):
        return f"{self.receipt_number} ({self.total_amount})"


class TransactionItem(LineItemSnapshot):
    transaction = models.ForeignKey(
        Transaction,
        on_delete=models.CASCADE,
        related_name="items",
    )

    class Meta(LineItemSnapshot.Meta):
        pass
