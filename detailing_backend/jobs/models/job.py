# jobs/models/job.py

import uuid

from django.conf import settings
from django.db import models

from jobs.services.job_state import STATUS_CHOICES, STATUS_SCHEDULED

User = settings.AUTH_USER_MODEL


class Job(models.Model):
    """
    One detailing job (scheduled appointment or walk-in).

    GUARANTEES:
    - status changes only through JobLifecycleController
    - `services` is a frozen snapshot [{id, name, price, is_taxable}] taken when
      the job is created; catalog price edits never reach an in-flight job
    - elapsed work time is derived from timer_seconds + work_started_at
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="jobs",
    )
    vehicle = models.ForeignKey(
        "customers.Vehicle",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="jobs",
    )

    # set when the job was created from a booked appointment
    appointment_id = models.UUIDField(null=True, blank=True, db_index=True)

    assigned_detailer = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assigned_jobs",
    )

    status = models.CharField(max_length=32, choices=STATUS_CHOICES, default=STATUS_SCHEDULED)

    services = models.JSONField(default=list, blank=True)

    timer_seconds = models.PositiveIntegerField(default=0)
    work_started_at = models.DateTimeField(null=True, blank=True)
    timer_paused_at = models.DateTimeField(null=True, blank=True)

    intake_started_at = models.DateTimeField(null=True, blank=True)
    intake_completed_at = models.DateTimeField(null=True, blank=True)
    work_completed_at = models.DateTimeField(null=True, blank=True)
    estimated_pickup_at = models.DateTimeField(null=True, blank=True)
    actual_pickup_at = models.DateTimeField(null=True, blank=True)

    cancellation_reason = models.TextField(blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="cancelled_jobs",
    )

    closed_transaction_id = models.UUIDField(null=True, blank=True)
    closed_at = models.DateTimeField(null=True, blank=True)

    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="jobs_job_status_6b1f0e_idx"),
            models.Index(fields=["created_at"], name="jobs_job_created_2c7d9a_idx"),
        ]

    def __str__(self):
        return f"Job {self.id} ({self.status})"
