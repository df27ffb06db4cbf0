# jobs/serializers/job.py

"""
JOB SERIALIZERS

Read side renders JobSnapshot objects (not ORM rows).
Command serializers validate request bodies for controller calls.
"""

from rest_framework import serializers

from catalog.services.pricing import VEHICLE_SIZE_CHOICES
from jobs.services.job_lifecycle import NOTIFY_CHOICES, display_status
from jobs.services.zone_coverage import PHASE_CHOICES, PHASE_COMPLETION, PHASE_INTAKE, ZONE_CHOICES


# ============================================================
# READ
# ============================================================


class ServiceLineSerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.CharField()
    price = serializers.DecimalField(max_digits=12, decimal_places=2)
    is_taxable = serializers.BooleanField()


class PhotoSerializer(serializers.Serializer):
    id = serializers.CharField()
    zone = serializers.CharField()
    phase = serializers.CharField()
    image_ref = serializers.CharField()
    annotations = serializers.ListField(child=serializers.JSONField(), required=False)
    is_internal = serializers.BooleanField()
    created_at = serializers.DateTimeField(allow_null=True)


class AddonSerializer(serializers.Serializer):
    id = serializers.CharField()
    status = serializers.CharField()
    service_id = serializers.CharField(allow_null=True)
    product_id = serializers.CharField(allow_null=True)
    custom_description = serializers.CharField(allow_null=True)
    display_name = serializers.CharField()
    price = serializers.DecimalField(max_digits=12, decimal_places=2)
    discount_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    final_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    sent_at = serializers.DateTimeField(allow_null=True)
    responded_at = serializers.DateTimeField(allow_null=True)
    expires_at = serializers.DateTimeField(allow_null=True)
    pickup_delay_minutes = serializers.IntegerField()
    message_to_customer = serializers.CharField()
    photo_ids = serializers.ListField(child=serializers.CharField())


class PublicAddonSerializer(serializers.Serializer):
    """What the customer sees on the authorization link."""

    status = serializers.CharField()
    display_name = serializers.CharField()
    final_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    pickup_delay_minutes = serializers.IntegerField()
    message_to_customer = serializers.CharField()
    expires_at = serializers.DateTimeField(allow_null=True)


class JobSerializer(serializers.Serializer):
    """
    context:
      controller  JobLifecycleController (elapsed time + coverage)
    """

    id = serializers.CharField()
    status = serializers.CharField()
    display_status = serializers.SerializerMethodField()
    services = ServiceLineSerializer(many=True)
    addons = AddonSerializer(many=True)
    photos = serializers.SerializerMethodField()
    customer_id = serializers.SerializerMethodField()
    vehicle_id = serializers.CharField(allow_null=True)
    vehicle_description = serializers.CharField()
    appointment_id = serializers.CharField(allow_null=True)

    timer_seconds = serializers.SerializerMethodField()
    elapsed_seconds = serializers.SerializerMethodField()
    timer_running = serializers.SerializerMethodField()
    work_started_at = serializers.SerializerMethodField()
    timer_paused_at = serializers.SerializerMethodField()

    intake_started_at = serializers.DateTimeField(allow_null=True)
    intake_completed_at = serializers.DateTimeField(allow_null=True)
    work_completed_at = serializers.DateTimeField(allow_null=True)
    estimated_pickup_at = serializers.DateTimeField(allow_null=True)
    actual_pickup_at = serializers.DateTimeField(allow_null=True)
    cancellation_reason = serializers.CharField()
    cancelled_at = serializers.DateTimeField(allow_null=True)
    closed_transaction_id = serializers.CharField(allow_null=True)
    closed_at = serializers.DateTimeField(allow_null=True)

    coverage = serializers.SerializerMethodField()

    def get_display_status(self, job):
        return display_status(job)

    def get_photos(self, job):
        return PhotoSerializer(job.photos, many=True).data

    def get_customer_id(self, job):
        return job.customer.id if job.customer else None

    def get_timer_seconds(self, job):
        return job.timer.timer_seconds

    def get_elapsed_seconds(self, job):
        controller = self.context.get("controller")
        if controller is None:
            return job.timer.timer_seconds
        return controller.elapsed_seconds(job)

    def get_timer_running(self, job):
        return job.timer.is_running

    def get_work_started_at(self, job):
        value = job.timer.work_started_at
        return value.isoformat() if value else None

    def get_timer_paused_at(self, job):
        value = job.timer.timer_paused_at
        return value.isoformat() if value else None

    def get_coverage(self, job):
        controller = self.context.get("controller")
        if controller is None:
            return None
        return {
            PHASE_INTAKE: controller.coverage(job, PHASE_INTAKE).as_dict(),
            PHASE_COMPLETION: controller.coverage(job, PHASE_COMPLETION).as_dict(),
        }


class JobListSerializer(serializers.Serializer):
    """Lightweight board row built from Job model rows."""

    id = serializers.UUIDField()
    status = serializers.CharField()
    customer_name = serializers.SerializerMethodField()
    vehicle = serializers.SerializerMethodField()
    appointment_id = serializers.UUIDField(allow_null=True)
    estimated_pickup_at = serializers.DateTimeField(allow_null=True)
    created_at = serializers.DateTimeField()

    def get_customer_name(self, job):
        return job.customer.full_name if job.customer_id else ""

    def get_vehicle(self, job):
        return job.vehicle.description if job.vehicle_id else ""


# ============================================================
# COMMANDS
# ============================================================


class JobServiceInputSerializer(serializers.Serializer):
    service_id = serializers.UUIDField()
    tier_name = serializers.CharField(required=False, allow_blank=True, default="")
    per_unit_qty = serializers.IntegerField(required=False, min_value=1)


class JobCreateSerializer(serializers.Serializer):
    customer_id = serializers.UUIDField(required=False, allow_null=True)
    vehicle_id = serializers.UUIDField(required=False, allow_null=True)
    appointment_id = serializers.UUIDField(required=False, allow_null=True)
    estimated_pickup_at = serializers.DateTimeField(required=False, allow_null=True)
    vehicle_size_class = serializers.ChoiceField(choices=VEHICLE_SIZE_CHOICES, required=False, allow_null=True)
    services = JobServiceInputSerializer(many=True, allow_empty=False)


class PhotoCommandSerializer(serializers.Serializer):
    zone = serializers.ChoiceField(choices=ZONE_CHOICES)
    phase = serializers.ChoiceField(choices=PHASE_CHOICES)
    image_ref = serializers.CharField(max_length=500)
    annotations = serializers.ListField(child=serializers.JSONField(), required=False, default=list)
    is_internal = serializers.BooleanField(required=False, default=False)


class CancelCommandSerializer(serializers.Serializer):
    reason = serializers.CharField()
    notify = serializers.ChoiceField(choices=sorted(NOTIFY_CHOICES), required=False, allow_null=True)


class TimerCommandSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=["pause", "resume"])


class FlagAddonCommandSerializer(serializers.Serializer):
    photo_ids = serializers.ListField(child=serializers.CharField(), allow_empty=False)
    service_id = serializers.UUIDField(required=False, allow_null=True)
    product_id = serializers.UUIDField(required=False, allow_null=True)
    custom_description = serializers.CharField(required=False, allow_blank=True, default="")
    item_name = serializers.CharField(required=False, allow_blank=True, default="")
    price = serializers.DecimalField(max_digits=12, decimal_places=2)
    discount_amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, default=0)
    pickup_delay_minutes = serializers.IntegerField(required=False, min_value=0, default=0)
    message = serializers.CharField(required=False, allow_blank=True, default="")
    message_template = serializers.CharField(required=False, allow_blank=True, default="")


class AddonResponseSerializer(serializers.Serializer):
    approve = serializers.BooleanField()
