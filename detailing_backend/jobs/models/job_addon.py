# jobs/models/job_addon.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models

from jobs.services.addon_workflow import STATUS_CHOICES, STATUS_PENDING

from .job import Job


class JobAddon(models.Model):
    """
    Customer authorization request for extra work found during a job.

    Expiry is lazy: a pending row past expires_at is flipped to expired the next
    time its job is read (conditional UPDATE, safe for concurrent readers).
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    job = models.ForeignKey(Job, on_delete=models.CASCADE, related_name="addons")

    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING)

    service = models.ForeignKey(
        "catalog.Service",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    product = models.ForeignKey(
        "catalog.Product",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    custom_description = models.TextField(blank=True)
    item_name = models.CharField(max_length=255, blank=True)

    price = models.DecimalField(max_digits=10, decimal_places=2)
    discount_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))

    sent_at = models.DateTimeField(null=True, blank=True)
    responded_at = models.DateTimeField(null=True, blank=True)
    expires_at = models.DateTimeField(null=True, blank=True)

    pickup_delay_minutes = models.PositiveIntegerField(default=0)
    message_to_customer = models.TextField(blank=True)
    photo_ids = models.JSONField(default=list, blank=True)

    authorization_token = models.CharField(max_length=64, unique=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["status", "expires_at"], name="jobs_jobadd_status_8e3a5b_idx"),
        ]

    def __str__(self):
        return f"{self.item_name or self.custom_description} ({self.status})"
