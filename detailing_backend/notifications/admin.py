# notifications/admin.py

from django.contrib import admin

from notifications.models import NotificationLog


@admin.register(NotificationLog)
class NotificationLogAdmin(admin.ModelAdmin):
    list_display = ("created_at", "channel", "recipient", "status", "context")
    list_filter = ("channel", "status")
    search_fields = ("recipient", "context")
    readonly_fields = (
        "channel",
        "recipient",
        "subject",
        "content",
        "status",
        "error_detail",
        "context",
        "created_at",
    )

    def has_add_permission(self, request):
        return False
