# jobs/views/job.py

"""
JOB API

Thin adapter over JobLifecycleController.

- list/retrieve/create
- intake, photos, start, timer, complete, pickup, cancel
- add-ons: flag, respond (staff-recorded), resend
- checkout-items: line inputs for the POS checkout
"""

from __future__ import annotations

from django.urls import reverse
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from catalog.services.catalog_reader import service_catalog_cache
from customers.models import Customer, Vehicle
from jobs.models import Job
from jobs.serializers import (
    AddonResponseSerializer,
    AddonSerializer,
    CancelCommandSerializer,
    FlagAddonCommandSerializer,
    JobCreateSerializer,
    JobListSerializer,
    JobSerializer,
    PhotoCommandSerializer,
    TimerCommandSerializer,
)
from jobs.services.exceptions import JobError
from jobs.services.job_lifecycle import JobLifecycleController
from jobs.services.job_state import JobCustomer
from jobs.services.service_snapshot import snapshot_services
from jobs.views.errors import error_response, job_error_response
from permissions.roles import (
    CAP_JOBS_FLAG_ADDON,
    CAP_JOBS_RECORD_CONSENT,
    CAP_JOBS_WORK,
    CAP_POS_SELL,
    HasAnyCapability,
    HasCapability,
)


def build_controller(request) -> JobLifecycleController:
    def authorize_url(token: str) -> str:
        return request.build_absolute_uri(reverse("job-addon-authorize", args=[token]))

    return JobLifecycleController.from_settings(authorize_url=authorize_url)


class JobViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """
    Job board + lifecycle commands.

    Cancel is open to any authenticated user; the controller applies the
    state-dependent capability rule.
    """

    queryset = Job.objects.select_related("customer", "vehicle").order_by("-created_at")
    serializer_class = JobListSerializer
    permission_classes = [IsAuthenticated]
    filterset_fields = ["status"]

    required_capability = None
    required_any_capabilities = None

    _WORK_ACTIONS = {"create", "intake", "photos", "start", "timer", "complete", "pickup"}
    _ADDON_ACTIONS = {"addons", "resend_addon"}

    def get_permissions(self):
        if self.action in self._WORK_ACTIONS:
            self.required_capability = CAP_JOBS_WORK
            return [IsAuthenticated(), HasCapability()]

        if self.action in self._ADDON_ACTIONS:
            self.required_capability = CAP_JOBS_FLAG_ADDON
            return [IsAuthenticated(), HasCapability()]

        if self.action == "respond_addon":
            # staff entering the customer's answer (phone call, counter)
            self.required_capability = CAP_JOBS_RECORD_CONSENT
            return [IsAuthenticated(), HasCapability()]

        if self.action == "cancel":
            return [IsAuthenticated()]

        self.required_any_capabilities = {CAP_JOBS_WORK, CAP_POS_SELL}
        return [IsAuthenticated(), HasAnyCapability()]

    # --------------------------------------------------
    # helpers
    # --------------------------------------------------

    def _controller(self) -> JobLifecycleController:
        if not hasattr(self, "_lifecycle"):
            self._lifecycle = build_controller(self.request)
        return self._lifecycle

    def _render(self, job, http_status=status.HTTP_200_OK, **extra):
        data = JobSerializer(job, context={"controller": self._controller()}).data
        if extra:
            data = {"job": data, **extra}
        return Response(data, status=http_status)

    def _command(self, fn, *args, **kwargs):
        try:
            return self._render(fn(*args, **kwargs))
        except JobError as exc:
            return job_error_response(exc)

    # --------------------------------------------------
    # READ / CREATE
    # --------------------------------------------------

    @extend_schema(
        parameters=[OpenApiParameter(name="status", required=False, type=str)],
        tags=["Jobs"],
    )
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)

    @extend_schema(responses=JobSerializer, tags=["Jobs"])
    def retrieve(self, request, pk=None):
        return self._command(self._controller().get_job, pk)

    @extend_schema(request=JobCreateSerializer, responses=JobSerializer, tags=["Jobs"])
    def create(self, request):
        serializer = JobCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        customer = None
        if data.get("customer_id"):
            customer = Customer.objects.filter(id=data["customer_id"]).first()
            if customer is None:
                return error_response(
                    code="CUSTOMER_NOT_FOUND",
                    message="Customer not found.",
                    http_status=status.HTTP_400_BAD_REQUEST,
                )

        vehicle = None
        if data.get("vehicle_id"):
            vehicle = Vehicle.objects.filter(id=data["vehicle_id"]).first()
            if vehicle is None or (customer is not None and vehicle.customer_id != customer.id):
                return error_response(
                    code="VEHICLE_NOT_FOUND",
                    message="Vehicle not found for this customer.",
                    http_status=status.HTTP_400_BAD_REQUEST,
                )

        size_class = data.get("vehicle_size_class") or (vehicle.size_class if vehicle else None)

        try:
            services = snapshot_services(
                data["services"],
                service_catalog_cache.get(),
                vehicle_size_class=size_class or None,
            )
            job = self._controller().create_job(
                services=services,
                customer=JobCustomer(
                    id=str(customer.id),
                    first_name=customer.first_name,
                    phone=customer.phone,
                    email=customer.email,
                )
                if customer
                else None,
                vehicle_id=vehicle.id if vehicle else None,
                appointment_id=data.get("appointment_id"),
                estimated_pickup_at=data.get("estimated_pickup_at"),
            )
        except JobError as exc:
            return job_error_response(exc)

        return self._render(self._controller().get_job(job.id), status.HTTP_201_CREATED)

    # --------------------------------------------------
    # LIFECYCLE
    # --------------------------------------------------

    @extend_schema(request=None, responses=JobSerializer, tags=["Jobs"])
    @action(detail=True, methods=["post"], url_path="intake")
    def intake(self, request, pk=None):
        return self._command(self._controller().start_intake, pk)

    @extend_schema(request=PhotoCommandSerializer, responses=JobSerializer, tags=["Jobs"])
    @action(detail=True, methods=["post"], url_path="photos")
    def photos(self, request, pk=None):
        serializer = PhotoCommandSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._command(
            self._controller().record_photo,
            pk,
            actor_id=request.user.pk,
            **serializer.validated_data,
        )

    @extend_schema(request=None, responses=JobSerializer, tags=["Jobs"])
    @action(detail=True, methods=["post"], url_path="start")
    def start(self, request, pk=None):
        return self._command(self._controller().start_work, pk)

    @extend_schema(request=TimerCommandSerializer, responses=JobSerializer, tags=["Jobs"])
    @action(detail=True, methods=["post"], url_path="timer")
    def timer(self, request, pk=None):
        serializer = TimerCommandSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        controller = self._controller()
        if serializer.validated_data["action"] == "pause":
            return self._command(controller.pause_timer, pk)
        return self._command(controller.resume_timer, pk)

    @extend_schema(request=None, responses=JobSerializer, tags=["Jobs"])
    @action(detail=True, methods=["post"], url_path="complete")
    def complete(self, request, pk=None):
        return self._command(self._controller().complete, pk)

    @extend_schema(request=None, responses=JobSerializer, tags=["Jobs"])
    @action(detail=True, methods=["post"], url_path="pickup")
    def pickup(self, request, pk=None):
        return self._command(self._controller().record_pickup, pk)

    @extend_schema(request=CancelCommandSerializer, tags=["Jobs"])
    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        serializer = CancelCommandSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            result = self._controller().cancel(
                pk,
                actor=request.user,
                reason=serializer.validated_data["reason"],
                notify_channel=serializer.validated_data.get("notify"),
            )
        except JobError as exc:
            return job_error_response(exc)

        return self._render(
            result.job,
            notifications=[n.as_dict() for n in result.notifications],
        )

    # --------------------------------------------------
    # ADD-ONS
    # --------------------------------------------------

    def _addon_response(self, result, http_status=status.HTTP_200_OK):
        return self._render(
            result.job,
            http_status,
            addon=AddonSerializer(result.addon).data,
            notifications=[n.as_dict() for n in result.notifications],
        )

    @extend_schema(request=FlagAddonCommandSerializer, tags=["Jobs"])
    @action(detail=True, methods=["post"], url_path="addons")
    def addons(self, request, pk=None):
        serializer = FlagAddonCommandSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        is_per_unit = False
        if data.get("service_id"):
            definition = service_catalog_cache.get().get(str(data["service_id"]))
            if definition is None:
                return error_response(
                    code="SERVICE_NOT_FOUND",
                    message="Service is not available.",
                    http_status=status.HTTP_400_BAD_REQUEST,
                )
            is_per_unit = definition.is_per_unit
            data["item_name"] = data.get("item_name") or definition.name

        try:
            result = self._controller().flag_addon(
                pk,
                photo_ids=data["photo_ids"],
                price=data["price"],
                discount_amount=data.get("discount_amount") or 0,
                service_id=data.get("service_id"),
                product_id=data.get("product_id"),
                custom_description=data.get("custom_description") or None,
                item_name=data.get("item_name") or "",
                is_per_unit=is_per_unit,
                pickup_delay_minutes=data.get("pickup_delay_minutes") or 0,
                message=data.get("message") or None,
                message_template=data.get("message_template") or None,
                actor_id=request.user.pk,
            )
        except JobError as exc:
            return job_error_response(exc)

        return self._addon_response(result, status.HTTP_201_CREATED)

    @extend_schema(request=AddonResponseSerializer, tags=["Jobs"])
    @action(detail=True, methods=["post"], url_path=r"addons/(?P<addon_id>[^/.]+)/respond")
    def respond_addon(self, request, pk=None, addon_id=None):
        serializer = AddonResponseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            result = self._controller().respond_to_addon(
                pk, addon_id, approve=serializer.validated_data["approve"], actor_id=request.user.pk
            )
        except JobError as exc:
            return job_error_response(exc)
        return self._addon_response(result)

    @extend_schema(request=None, tags=["Jobs"])
    @action(detail=True, methods=["post"], url_path=r"addons/(?P<addon_id>[^/.]+)/resend")
    def resend_addon(self, request, pk=None, addon_id=None):
        try:
            result = self._controller().resend_addon(pk, addon_id)
        except JobError as exc:
            return job_error_response(exc)
        return self._addon_response(result)

    # --------------------------------------------------
    # CHECKOUT HANDOFF
    # --------------------------------------------------

    @extend_schema(tags=["Jobs"])
    @action(detail=True, methods=["get"], url_path="checkout-items")
    def checkout_items(self, request, pk=None):
        try:
            lines = self._controller().checkout_items(pk)
        except JobError as exc:
            return job_error_response(exc)

        return Response(
            {
                "job_id": str(pk),
                "items": [
                    {**line, "unit_price": str(line["unit_price"])} for line in lines
                ],
            }
        )
