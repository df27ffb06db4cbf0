# notifications/tests/test_notification_service.py

from unittest import mock

from django.core import mail
from django.test import SimpleTestCase, TestCase, override_settings

from notifications.models import NotificationLog
from notifications.services import messages
from notifications.services.notification_service import (
    CHANNEL_EMAIL,
    CHANNEL_SMS,
    DjangoNotificationService,
    InMemoryNotificationService,
)
from notifications.services.sms_gateway import SmsGatewayError, send_sms


@override_settings(BUSINESS_NAME="Shine Co", NOTIFICATIONS={"SMS": {}})
class DjangoNotificationServiceTests(TestCase):
    """
    GUARANTEES:
    - delivery problems come back as failed results, never exceptions
    - every attempt is written to NotificationLog
    """

    def setUp(self):
        self.service = DjangoNotificationService()

    def test_email_goes_through_django_mail(self):
        result = self.service.send_message(
            CHANNEL_EMAIL, "dana@example.com", "Your car is ready", subject="Ready", context="job:1"
        )

        self.assertTrue(result.ok)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["dana@example.com"])
        self.assertEqual(mail.outbox[0].subject, "Ready")

        log = NotificationLog.objects.get()
        self.assertEqual(log.status, NotificationLog.STATUS_SENT)
        self.assertEqual(log.context, "job:1")

    def test_unconfigured_sms_gateway_is_a_failed_result(self):
        result = self.service.send_message(CHANNEL_SMS, "+15550100", "Hello")

        self.assertFalse(result.ok)
        self.assertIn("not configured", result.error_detail)
        self.assertEqual(NotificationLog.objects.get().status, NotificationLog.STATUS_FAILED)

    def test_missing_recipient_is_a_failed_result(self):
        result = self.service.send_message(CHANNEL_EMAIL, "  ", "Hello")

        self.assertFalse(result.ok)
        self.assertEqual(len(mail.outbox), 0)
        self.assertEqual(NotificationLog.objects.count(), 1)

    def test_sms_uses_the_gateway(self):
        with mock.patch("notifications.services.notification_service.send_sms") as send:
            result = self.service.send_message(CHANNEL_SMS, "+15550100", "Hello")

        self.assertTrue(result.ok)
        send.assert_called_once_with(to="+15550100", body="Hello")

    def test_gateway_error_is_captured(self):
        with mock.patch(
            "notifications.services.notification_service.send_sms",
            side_effect=SmsGatewayError("SMS gateway HTTPError: 500"),
        ):
            result = self.service.send_message(CHANNEL_SMS, "+15550100", "Hello")

        self.assertEqual(result.error_detail, "SMS gateway HTTPError: 500")


class SmsGatewayTests(SimpleTestCase):
    @override_settings(NOTIFICATIONS={"SMS": {"GATEWAY_URL": "", "TOKEN": ""}})
    def test_requires_url_and_token(self):
        with self.assertRaises(SmsGatewayError):
            send_sms(to="+15550100", body="Hi")


class InMemoryNotificationServiceTests(SimpleTestCase):
    def test_records_and_fails_on_request(self):
        service = InMemoryNotificationService(failing_channels={CHANNEL_SMS})

        self.assertTrue(service.send_message(CHANNEL_EMAIL, "a@example.com", "x").ok)
        self.assertFalse(service.send_message(CHANNEL_SMS, "+1555", "x").ok)
        self.assertFalse(service.send_message(CHANNEL_EMAIL, "", "x").ok)
        self.assertEqual(len(service.sent), 3)


@override_settings(BUSINESS_NAME="Shine Co")
class MessageTextTests(SimpleTestCase):
    def test_addon_request_includes_price_delay_and_link(self):
        text = messages.addon_request_message(
            message="We found a chip in the windshield.",
            final_price="70.00",
            pickup_delay_minutes=30,
            authorize_url="https://shop.test/a/tok",
        )
        self.assertIn("Price: $70.00", text)
        self.assertIn("+30 minutes", text)
        self.assertIn("https://shop.test/a/tok", text)
        self.assertTrue(text.endswith("- Shine Co"))

    def test_cancellation_without_name(self):
        text = messages.cancellation_message(first_name="", service_names="Exterior Wash")
        self.assertTrue(text.startswith("your Exterior Wash appointment"))
