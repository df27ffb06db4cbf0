"""
MIGRATION: NotificationLog
"""

from __future__ import annotations

import uuid

from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="NotificationLog",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("channel", models.CharField(choices=[("email", "Email"), ("sms", "SMS")], max_length=8)),
                ("recipient", models.CharField(max_length=255)),
                ("subject", models.CharField(blank=True, max_length=255)),
                ("content", models.TextField()),
                ("status", models.CharField(choices=[("sent", "Sent"), ("failed", "Failed")], max_length=8)),
                ("error_detail", models.TextField(blank=True)),
                ("context", models.CharField(blank=True, max_length=128)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["created_at"], name="notificatio_created_9a1b2c_idx"),
                    models.Index(fields=["status"], name="notificatio_status_3d4e5f_idx"),
                ],
            },
        ),
    ]
