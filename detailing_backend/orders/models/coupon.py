# orders/models/coupon.py

import uuid

from django.db import models

from orders.services.coupons import COUPON_FLAT, COUPON_KIND_CHOICES


class Coupon(models.Model):
    """
    Promotional coupon.

    Evaluation lives in orders.services.coupons (pure); this row only stores
    the rule and its usage counter.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    code = models.CharField(max_length=32, unique=True)
    kind = models.CharField(max_length=16, choices=COUPON_KIND_CHOICES, default=COUPON_FLAT)
    value = models.DecimalField(max_digits=10, decimal_places=2)

    max_discount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    min_purchase = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    expires_at = models.DateTimeField(null=True, blank=True)
    is_active = models.BooleanField(default=True)

    max_uses = models.PositiveIntegerField(null=True, blank=True)
    use_count = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["code"]

    def save(self, *args, **kwargs):
        self.code = (self.code or "").strip().upper()
        super().save(*args, **kwargs)

    def __str__(self):
        return self.code
