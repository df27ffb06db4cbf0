# notifications/apps.py

"""
NOTIFICATIONS APP CONFIG

Outbound customer messages (email + SMS):
- add-on authorization requests
- job cancellation notices
- quote delivery
"""

from django.apps import AppConfig


class NotificationsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "notifications"
    verbose_name = "Customer Notifications"
