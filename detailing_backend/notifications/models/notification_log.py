# notifications/models/notification_log.py

import uuid

from django.db import models


class NotificationLog(models.Model):
    """
    One row per send attempt (sent or failed).

    Append-only audit trail; retries create new rows.
    """

    CHANNEL_EMAIL = "email"
    CHANNEL_SMS = "sms"

    CHANNEL_CHOICES = [
        (CHANNEL_EMAIL, "Email"),
        (CHANNEL_SMS, "SMS"),
    ]

    STATUS_SENT = "sent"
    STATUS_FAILED = "failed"

    STATUS_CHOICES = [
        (STATUS_SENT, "Sent"),
        (STATUS_FAILED, "Failed"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    channel = models.CharField(max_length=8, choices=CHANNEL_CHOICES)
    recipient = models.CharField(max_length=255)
    subject = models.CharField(max_length=255, blank=True)
    content = models.TextField()

    status = models.CharField(max_length=8, choices=STATUS_CHOICES)
    error_detail = models.TextField(blank=True)

    # what triggered the message, e.g. "addon:<uuid>", "quote:<number>"
    context = models.CharField(max_length=128, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["created_at"], name="notificatio_created_9a1b2c_idx"),
            models.Index(fields=["status"], name="notificatio_status_3d4e5f_idx"),
        ]

    def __str__(self):
        return f"{self.channel} -> {self.recipient} ({self.status})"
