"""
MIGRATION: jobs (Job, JobPhoto, JobAddon)
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

from jobs.services.zone_coverage import ZONE_CHOICES

JOB_STATUSES = [
    ("scheduled", "Scheduled"),
    ("intake", "Intake"),
    ("in_progress", "In Progress"),
    ("pending_approval", "Pending Approval"),
    ("completed", "Completed"),
    ("closed", "Closed"),
    ("cancelled", "Cancelled"),
]
PHASES = [("intake", "Intake"), ("progress", "Progress"), ("completion", "Completion")]
ADDON_STATUSES = [
    ("pending", "Pending"),
    ("approved", "Approved"),
    ("declined", "Declined"),
    ("expired", "Expired"),
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
            name="Job",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("appointment_id", models.UUIDField(blank=True, db_index=True, null=True)),
                ("status", models.CharField(choices=JOB_STATUSES, default="scheduled", max_length=32)),
                ("services", models.JSONField(blank=True, default=list)),
                ("timer_seconds", models.PositiveIntegerField(default=0)),
                ("work_started_at", models.DateTimeField(blank=True, null=True)),
                ("timer_paused_at", models.DateTimeField(blank=True, null=True)),
                ("intake_started_at", models.DateTimeField(blank=True, null=True)),
                ("intake_completed_at", models.DateTimeField(blank=True, null=True)),
                ("work_completed_at", models.DateTimeField(blank=True, null=True)),
                ("estimated_pickup_at", models.DateTimeField(blank=True, null=True)),
                ("actual_pickup_at", models.DateTimeField(blank=True, null=True)),
                ("cancellation_reason", models.TextField(blank=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("closed_transaction_id", models.UUIDField(blank=True, null=True)),
                ("closed_at", models.DateTimeField(blank=True, null=True)),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "assigned_detailer",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="assigned_jobs",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "cancelled_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="cancelled_jobs",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="jobs",
                        to="customers.customer",
                    ),
                ),
                (
                    "vehicle",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="jobs",
                        to="customers.vehicle",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status"], name="jobs_job_status_6b1f0e_idx"),
                    models.Index(fields=["created_at"], name="jobs_job_created_2c7d9a_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="JobPhoto",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("zone", models.CharField(choices=ZONE_CHOICES, max_length=48)),
                ("phase", models.CharField(choices=PHASES, max_length=16)),
                ("image_ref", models.CharField(max_length=500)),
                ("annotations", models.JSONField(blank=True, default=list)),
                ("is_internal", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "job",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="photos",
                        to="jobs.job",
                    ),
                ),
            ],
            options={"ordering": ["created_at"]},
        ),
        migrations.CreateModel(
            name="JobAddon",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("status", models.CharField(choices=ADDON_STATUSES, default="pending", max_length=16)),
                ("custom_description", models.TextField(blank=True)),
                ("item_name", models.CharField(blank=True, max_length=255)),
                ("price", models.DecimalField(decimal_places=2, max_digits=10)),
                ("discount_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("sent_at", models.DateTimeField(blank=True, null=True)),
                ("responded_at", models.DateTimeField(blank=True, null=True)),
                ("expires_at", models.DateTimeField(blank=True, null=True)),
                ("pickup_delay_minutes", models.PositiveIntegerField(default=0)),
                ("message_to_customer", models.TextField(blank=True)),
                ("photo_ids", models.JSONField(blank=True, default=list)),
                ("authorization_token", models.CharField(max_length=64, unique=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "job",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="addons",
                        to="jobs.job",
                    ),
                ),
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
            ],
            options={
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(fields=["status", "expires_at"], name="jobs_jobadd_status_8e3a5b_idx"),
                ],
            },
        ),
    ]
