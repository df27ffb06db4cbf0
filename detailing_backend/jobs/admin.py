# jobs/admin.py

"""
Jobs are read-mostly here: status changes go through the lifecycle API so
coverage / timer / cancellation rules are never bypassed.
"""

from django.contrib import admin

from jobs.models import Job, JobAddon, JobPhoto


class JobPhotoInline(admin.TabularInline):
    model = JobPhoto
    extra = 0
    fields = ("zone", "phase", "image_ref", "is_internal", "created_at")
    readonly_fields = fields


class JobAddonInline(admin.TabularInline):
    model = JobAddon
    extra = 0
    fields = ("item_name", "status", "price", "discount_amount", "sent_at", "expires_at", "responded_at")
    readonly_fields = fields


@admin.register(Job)
class JobAdmin(admin.ModelAdmin):
    list_display = ("id", "status", "customer", "vehicle", "estimated_pickup_at", "created_at")
    list_filter = ("status",)
    search_fields = ("customer__first_name", "customer__last_name", "customer__phone")
    readonly_fields = (
        "status",
        "services",
        "timer_seconds",
        "work_started_at",
        "timer_paused_at",
        "intake_started_at",
        "intake_completed_at",
        "work_completed_at",
        "actual_pickup_at",
        "cancellation_reason",
        "cancelled_at",
        "cancelled_by",
        "closed_transaction_id",
        "closed_at",
    )
    inlines = [JobPhotoInline, JobAddonInline]
