# notifications/services/notification_service.py

"""
NOTIFICATION SERVICE

Narrow outbound interface used by the job and quote workflows:

    send_message(channel, recipient, content) -> NotificationResult

Rules:
- Never raises for delivery problems; failures come back as
  NotificationResult(status="failed", error_detail=...).
- Callers decide what a failure means. Committed job/quote state is never
  rolled back because a message did not go out.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from django.conf import settings
from django.core.mail import send_mail

from notifications.models import NotificationLog

from .sms_gateway import SmsGatewayError, send_sms

logger = logging.getLogger(__name__)

CHANNEL_EMAIL = NotificationLog.CHANNEL_EMAIL
CHANNEL_SMS = NotificationLog.CHANNEL_SMS
CHANNELS = {CHANNEL_EMAIL, CHANNEL_SMS}

STATUS_SENT = NotificationLog.STATUS_SENT
STATUS_FAILED = NotificationLog.STATUS_FAILED


@dataclass(frozen=True)
class NotificationResult:
    channel: str
    recipient: str
    status: str
    error_detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == STATUS_SENT

    def as_dict(self) -> dict:
        return {
            "channel": self.channel,
            "recipient": self.recipient,
            "status": self.status,
            "error_detail": self.error_detail,
        }


class NotificationService:
    def send_message(
        self,
        channel: str,
        recipient: str,
        content: str,
        *,
        subject: str = "",
        context: str = "",
    ) -> NotificationResult:
        raise NotImplementedError


class DjangoNotificationService(NotificationService):
    """
    Email through django.core.mail, SMS through the HTTP gateway.
    Every attempt is written to NotificationLog.
    """

    def send_message(self, channel, recipient, content, *, subject="", context=""):
        recipient = (recipient or "").strip()
        error = None

        if channel not in CHANNELS:
            error = f"Unsupported channel '{channel}'"
        elif not recipient:
            error = f"No {channel} recipient on file"
        else:
            try:
                if channel == CHANNEL_EMAIL:
                    send_mail(
                        subject or getattr(settings, "BUSINESS_NAME", "Notification"),
                        content,
                        getattr(settings, "DEFAULT_FROM_EMAIL", None),
                        [recipient],
                        fail_silently=False,
                    )
                else:
                    send_sms(to=recipient, body=content)
            except SmsGatewayError as exc:
                error = str(exc)
            except OSError as exc:
                # smtplib errors are OSError subclasses
                error = f"Email delivery failed: {exc}"

        result = NotificationResult(
            channel=channel,
            recipient=recipient,
            status=STATUS_FAILED if error else STATUS_SENT,
            error_detail=error,
        )

        NotificationLog.objects.create(
            channel=channel if channel in CHANNELS else CHANNEL_SMS,
            recipient=recipient[:255],
            subject=(subject or "")[:255],
            content=content,
            status=result.status,
            error_detail=error or "",
            context=(context or "")[:128],
        )

        if error:
            logger.warning(
                "Notification failed",
                extra={"channel": channel, "context": context, "error": error},
            )
        else:
            logger.info("Notification sent", extra={"channel": channel, "context": context})

        return result


class InMemoryNotificationService(NotificationService):
    """
    Records messages instead of sending them.

    failing_channels: channels that report a failure (for retry paths).
    """

    def __init__(self, failing_channels=()):
        self.failing_channels = set(failing_channels)
        self.sent: list[dict] = []

    def send_message(self, channel, recipient, content, *, subject="", context=""):
        failed = channel in self.failing_channels or not recipient
        result = NotificationResult(
            channel=channel,
            recipient=recipient or "",
            status=STATUS_FAILED if failed else STATUS_SENT,
            error_detail="delivery failed" if failed else None,
        )
        self.sent.append(
            {
                "channel": channel,
                "recipient": recipient,
                "subject": subject,
                "content": content,
                "context": context,
                "status": result.status,
            }
        )
        return result


def get_notification_service() -> NotificationService:
    return DjangoNotificationService()
