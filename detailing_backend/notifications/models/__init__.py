from .notification_log import NotificationLog

__all__ = ["NotificationLog"]
