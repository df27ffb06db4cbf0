# jobs/models/job_photo.py

import uuid

from django.conf import settings
from django.db import models

from jobs.services.zone_coverage import PHASE_CHOICES, ZONE_CHOICES

from .job import Job


class JobPhoto(models.Model):
    """
    Documentation photo for one body zone.

    image_ref is a storage key/URL; uploads happen outside this service.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    job = models.ForeignKey(Job, on_delete=models.CASCADE, related_name="photos")

    zone = models.CharField(max_length=48, choices=ZONE_CHOICES)
    phase = models.CharField(max_length=16, choices=PHASE_CHOICES)
    image_ref = models.CharField(max_length=500)
    annotations = models.JSONField(default=list, blank=True)
    is_internal = models.BooleanField(default=False)

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

    def __str__(self):
        return f"{self.zone} ({self.phase})"
