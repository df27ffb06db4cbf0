# jobs/services/job_lifecycle.py

"""
JOB LIFECYCLE CONTROLLER

scheduled -> intake -> in_progress -> completed -> closed
                 \            \
                  +-> cancelled <-+

pending_approval is derived (in_progress + a pending add-on), never stored.

RULES:
- Every transition is written through the repository first; the new snapshot
  is returned only after the write succeeds
- Notification failures are reported, never rolled back
- Add-on expiry is lazy: get_job() evaluates it and persists what flipped
"""

from __future__ import annotations

import logging
import secrets
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional

from django.conf import settings

from notifications.services import messages
from notifications.services.notification_service import (
    CHANNEL_EMAIL,
    CHANNEL_SMS,
    NotificationResult,
    NotificationService,
    get_notification_service,
)
from permissions.roles import CAP_JOBS_CANCEL, CAP_JOBS_CANCEL_STARTED, user_has_capability
from shared.clock import Clock, system_clock
from shared.money import to_money

from . import addon_workflow, job_timer
from .exceptions import (
    AddonExpiredError,
    AddonNotFoundError,
    AddonValidationError,
    CancellationNotAllowedError,
    JobPermissionError,
    JobValidationError,
    TransitionGuardError,
)
from .job_repository import DjangoJobRepository, JobRepository
from .job_state import (
    STATUS_CANCELLED,
    STATUS_CLOSED,
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    STATUS_INTAKE,
    STATUS_PENDING_APPROVAL,
    STATUS_SCHEDULED,
    TERMINAL_STATES,
    JobCustomer,
    JobSnapshot,
    PhotoRecord,
    ServiceLine,
)
from .zone_coverage import (
    DEFAULT_ZONE_REQUIREMENTS,
    PHASE_COMPLETION,
    PHASE_INTAKE,
    PHASES,
    ZONES,
    ZoneRequirements,
    coverage_report,
)

logger = logging.getLogger(__name__)

__all__ = ["JobLifecycleController", "JobSnapshot", "display_status"]

ALLOWED_TRANSITIONS = {
    STATUS_SCHEDULED: {STATUS_INTAKE, STATUS_CANCELLED},
    STATUS_INTAKE: {STATUS_IN_PROGRESS, STATUS_CANCELLED},
    STATUS_IN_PROGRESS: {STATUS_COMPLETED, STATUS_CANCELLED},
    STATUS_COMPLETED: {STATUS_CLOSED},
}

# Cancellation policy
CANCELLABLE_BY_STAFF = {STATUS_SCHEDULED, STATUS_INTAKE}
CANCELLABLE_BY_ADMIN = {STATUS_IN_PROGRESS, STATUS_PENDING_APPROVAL}

PHOTO_STATES = {STATUS_INTAKE, STATUS_IN_PROGRESS, STATUS_COMPLETED}

NOTIFY_EMAIL = "email"
NOTIFY_SMS = "sms"
NOTIFY_BOTH = "both"
NOTIFY_CHOICES = {NOTIFY_EMAIL, NOTIFY_SMS, NOTIFY_BOTH}


def can_transition(*, from_status: str, to_status: str) -> bool:
    if from_status in TERMINAL_STATES:
        return False
    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def validate_transition(job: JobSnapshot, to_status: str) -> None:
    if not can_transition(from_status=job.status, to_status=to_status):
        raise TransitionGuardError(f"Job {job.id} cannot move from '{job.status}' to '{to_status}'")


def display_status(job: JobSnapshot) -> str:
    if job.status == STATUS_IN_PROGRESS and job.has_pending_addon:
        return STATUS_PENDING_APPROVAL
    return job.status


def _require_status(job: JobSnapshot, allowed: set, action: str) -> None:
    if job.status not in allowed:
        raise TransitionGuardError(f"Cannot {action} while the job is {job.status}")


@dataclass(frozen=True)
class CancellationResult:
    job: JobSnapshot
    notifications: tuple[NotificationResult, ...] = ()


@dataclass(frozen=True)
class AddonResult:
    job: JobSnapshot
    addon: addon_workflow.AddonAuthorization
    notifications: tuple[NotificationResult, ...] = ()


class JobLifecycleController:
    def __init__(
        self,
        repository: JobRepository,
        notifier: NotificationService,
        *,
        clock: Clock = system_clock,
        requirements: ZoneRequirements = DEFAULT_ZONE_REQUIREMENTS,
        addon_expiration: timedelta = addon_workflow.DEFAULT_EXPIRATION,
        authorize_url: Optional[Callable[[str], str]] = None,
    ):
        self.repository = repository
        self.notifier = notifier
        self.clock = clock
        self.requirements = requirements
        self.addon_expiration = addon_expiration
        self.authorize_url = authorize_url

    @classmethod
    def from_settings(cls, *, repository=None, notifier=None, clock: Clock = system_clock, authorize_url=None):
        return cls(
            repository or DjangoJobRepository(),
            notifier or get_notification_service(),
            clock=clock,
            requirements=ZoneRequirements.from_config(getattr(settings, "JOB_ZONE_REQUIREMENTS", None)),
            addon_expiration=timedelta(minutes=getattr(settings, "ADDON_AUTH_EXPIRATION_MINUTES", 30)),
            authorize_url=authorize_url,
        )

    # ---------- internals ----------

    def _now(self) -> datetime:
        return self.clock.now()

    def _commit(self, job: JobSnapshot, fields: Iterable[str], event: str) -> JobSnapshot:
        self.repository.save_job(job, fields=fields)
        logger.info(
            "Job %s",
            event,
            extra={"job_id": job.id, "status": job.status, "event": event},
        )
        return job

    def _notify(self, customer: Optional[JobCustomer], channels, content, *, subject, context):
        results = []
        if customer is None:
            return tuple(results)
        for channel in channels:
            recipient = customer.email if channel == CHANNEL_EMAIL else customer.phone
            results.append(
                self.notifier.send_message(
                    channel,
                    recipient,
                    content,
                    subject=subject if channel == CHANNEL_EMAIL else "",
                    context=context,
                )
            )
        return tuple(results)

    # ============================================================
    # READ
    # ============================================================

    def get_job(self, job_id) -> JobSnapshot:
        job = self.repository.get(job_id)
        addons, changed = addon_workflow.expire_stale_addons(job.addons, self._now())
        if changed:
            self.repository.expire_addons(job.id, changed)
            job = replace(job, addons=addons)
        return job

    def display_status(self, job_id) -> str:
        return display_status(self.get_job(job_id))

    def elapsed_seconds(self, job: JobSnapshot) -> int:
        return job_timer.elapsed_seconds(job.timer, self._now())

    # ============================================================
    # CREATE / INTAKE
    # ============================================================

    def create_job(
        self,
        *,
        services: Iterable[ServiceLine],
        customer: Optional[JobCustomer] = None,
        vehicle_id=None,
        appointment_id=None,
        estimated_pickup_at: Optional[datetime] = None,
    ) -> JobSnapshot:
        services = tuple(services)
        if not services:
            raise JobValidationError("A job needs at least one service")

        job = JobSnapshot(
            id=str(uuid.uuid4()),
            status=STATUS_SCHEDULED,
            services=tuple(replace(s, price=to_money(s.price)) for s in services),
            customer=customer,
            vehicle_id=str(vehicle_id) if vehicle_id else None,
            appointment_id=str(appointment_id) if appointment_id else None,
            estimated_pickup_at=estimated_pickup_at,
        )
        job = self.repository.create_job(job)
        logger.info("Job created", extra={"job_id": job.id, "appointment_id": job.appointment_id})
        return job

    def start_intake(self, job_id) -> JobSnapshot:
        job = self.get_job(job_id)
        validate_transition(job, STATUS_INTAKE)
        return self._commit(
            replace(job, status=STATUS_INTAKE, intake_started_at=self._now()),
            ["status", "intake_started_at"],
            "intake_started",
        )

    def record_photo(
        self,
        job_id,
        *,
        zone: str,
        phase: str,
        image_ref: str,
        annotations=(),
        is_internal: bool = False,
        actor_id=None,
    ) -> JobSnapshot:
        if zone not in ZONES:
            raise JobValidationError(f"Unknown zone '{zone}'")
        if phase not in PHASES:
            raise JobValidationError(f"Unknown photo phase '{phase}'")
        if not (image_ref or "").strip():
            raise JobValidationError("image_ref is required")

        job = self.get_job(job_id)
        _require_status(job, PHOTO_STATES, "record photos")

        saved = self.repository.add_photo(
            job.id,
            PhotoRecord(
                zone=zone,
                phase=phase,
                image_ref=image_ref.strip(),
                annotations=tuple(annotations or ()),
                is_internal=bool(is_internal),
            ),
            created_by_id=actor_id,
        )
        job = replace(job, photos=job.photos + (saved,))

        if job.status == STATUS_INTAKE and job.intake_completed_at is None:
            if coverage_report(job.photos, PHASE_INTAKE, self.requirements).is_met:
                job = self._commit(
                    replace(job, intake_completed_at=self._now()),
                    ["intake_completed_at"],
                    "intake_coverage_met",
                )
        return job

    def coverage(self, job: JobSnapshot, phase: str):
        return coverage_report(job.photos, phase, self.requirements)

    # ============================================================
    # WORK / TIMER
    # ============================================================

    def start_work(self, job_id) -> JobSnapshot:
        job = self.get_job(job_id)
        validate_transition(job, STATUS_IN_PROGRESS)

        if job.intake_completed_at is None:
            report = self.coverage(job, PHASE_INTAKE)
            raise TransitionGuardError(
                f"Intake photos incomplete: {report.shortfall_message() or 'intake not finished'}",
                shortfall=report,
            )

        return self._commit(
            replace(job, status=STATUS_IN_PROGRESS, timer=job_timer.start(job.timer, self._now())),
            ["status", "timer"],
            "work_started",
        )

    def pause_timer(self, job_id) -> JobSnapshot:
        job = self.get_job(job_id)
        _require_status(job, {STATUS_IN_PROGRESS}, "pause the timer")
        return self._commit(
            replace(job, timer=job_timer.pause(job.timer, self._now())),
            ["timer"],
            "timer_paused",
        )

    def resume_timer(self, job_id) -> JobSnapshot:
        job = self.get_job(job_id)
        _require_status(job, {STATUS_IN_PROGRESS}, "resume the timer")
        return self._commit(
            replace(job, timer=job_timer.resume(job.timer, self._now())),
            ["timer"],
            "timer_resumed",
        )

    def complete(self, job_id) -> JobSnapshot:
        job = self.get_job(job_id)
        validate_transition(job, STATUS_COMPLETED)

        report = self.coverage(job, PHASE_COMPLETION)
        if not report.is_met:
            raise TransitionGuardError(
                f"Completion photos incomplete: {report.shortfall_message()}",
                shortfall=report,
            )

        now = self._now()
        return self._commit(
            replace(
                job,
                status=STATUS_COMPLETED,
                timer=job_timer.stop(job.timer, now),
                work_completed_at=now,
            ),
            ["status", "timer", "work_completed_at"],
            "work_completed",
        )

    def record_pickup(self, job_id) -> JobSnapshot:
        job = self.get_job(job_id)
        _require_status(job, {STATUS_COMPLETED}, "record pickup")
        return self._commit(
            replace(job, actual_pickup_at=self._now()),
            ["actual_pickup_at"],
            "picked_up",
        )

    def close(self, job_id, *, transaction_id) -> JobSnapshot:
        job = self.get_job(job_id)
        validate_transition(job, STATUS_CLOSED)
        return self._commit(
            replace(
                job,
                status=STATUS_CLOSED,
                closed_transaction_id=str(transaction_id),
                closed_at=self._now(),
            ),
            ["status", "closed_transaction_id", "closed_at"],
            "closed",
        )

    # ============================================================
    # CANCELLATION
    # ============================================================

    def cancel(self, job_id, *, actor, reason: str, notify_channel: Optional[str] = None) -> CancellationResult:
        reason = (reason or "").strip()
        if not reason:
            raise JobValidationError("A cancellation reason is required")

        job = self.get_job(job_id)
        status = display_status(job)

        if status in CANCELLABLE_BY_STAFF:
            capability = CAP_JOBS_CANCEL
        elif status in CANCELLABLE_BY_ADMIN:
            capability = CAP_JOBS_CANCEL_STARTED
        else:
            raise CancellationNotAllowedError(f"A {status} job cannot be cancelled")

        if not user_has_capability(actor, capability):
            raise JobPermissionError(f"You are not allowed to cancel a {status} job")

        if job.is_from_appointment:
            if notify_channel not in NOTIFY_CHOICES:
                raise JobValidationError(
                    "Choose how to notify the customer (email, sms or both) before cancelling"
                )
        else:
            notify_channel = None

        now = self._now()
        timer = job.timer
        if not timer.is_idle:
            timer = job_timer.stop(timer, now)

        job = self._commit(
            replace(
                job,
                status=STATUS_CANCELLED,
                timer=timer,
                cancellation_reason=reason,
                cancelled_at=now,
                cancelled_by_id=str(actor.pk) if getattr(actor, "pk", None) else None,
            ),
            ["status", "timer", "cancellation_reason", "cancelled_at", "cancelled_by_id"],
            "cancelled",
        )

        if notify_channel is None:
            return CancellationResult(job=job)

        channels = [CHANNEL_EMAIL, CHANNEL_SMS] if notify_channel == NOTIFY_BOTH else [notify_channel]
        content = messages.cancellation_message(
            first_name=job.customer.first_name if job.customer else "",
            service_names=", ".join(s.name for s in job.services),
        )
        results = self._notify(
            job.customer,
            channels,
            content,
            subject=messages.cancellation_subject(),
            context=f"job_cancelled:{job.id}",
        )
        return CancellationResult(job=job, notifications=results)

    # ============================================================
    # ADD-ONS
    # ============================================================

    def _send_addon_request(self, job: JobSnapshot, addon) -> tuple[NotificationResult, ...]:
        if job.customer is None:
            return ()

        content = messages.addon_request_message(
            message=addon.message_to_customer,
            final_price=addon.final_price,
            pickup_delay_minutes=addon.pickup_delay_minutes,
            authorize_url=self.authorize_url(addon.authorization_token) if self.authorize_url else "",
        )
        channels = []
        if job.customer.phone:
            channels.append(CHANNEL_SMS)
        if job.customer.email:
            channels.append(CHANNEL_EMAIL)

        return self._notify(
            job.customer,
            channels,
            content,
            subject=messages.addon_request_subject(),
            context=f"addon_request:{addon.id}",
        )

    def _require_addon(self, job: JobSnapshot, addon_id):
        addon = job.find_addon(addon_id)
        if addon is None:
            raise AddonNotFoundError(f"Add-on {addon_id} not found on job {job.id}")
        return addon

    def flag_addon(
        self,
        job_id,
        *,
        photo_ids,
        price,
        discount_amount=0,
        service_id=None,
        product_id=None,
        custom_description: Optional[str] = None,
        item_name: str = "",
        is_per_unit: bool = False,
        pickup_delay_minutes: int = 0,
        message: Optional[str] = None,
        message_template: Optional[str] = None,
        actor_id=None,
    ) -> AddonResult:
        job = self.get_job(job_id)
        _require_status(job, {STATUS_IN_PROGRESS}, "recommend an add-on")

        photo_ids = tuple(str(p) for p in photo_ids or ())
        unknown = set(photo_ids) - job.photo_ids()
        if unknown:
            raise AddonValidationError(f"Unknown photo(s) on this job: {', '.join(sorted(unknown))}")

        service_id = str(service_id) if service_id else None
        product_id = str(product_id) if product_id else None

        addon_workflow.check_duplicate_recommendation(
            job_service_ids=job.service_ids(),
            addons=job.addons,
            service_id=service_id,
            is_per_unit=is_per_unit,
        )

        if not (message or "").strip():
            message = addon_workflow.render_addon_message(
                message_template,
                customer_name=job.customer.first_name if job.customer else "there",
                vehicle=job.vehicle_description or "vehicle",
                item_name=item_name or custom_description or "an additional service",
                price=to_money(price),
                discount=to_money(discount_amount),
                final_price=to_money(to_money(price) - to_money(discount_amount)),
                pickup_delay_minutes=pickup_delay_minutes or 0,
            )

        now = self._now()
        addon = addon_workflow.create_addon(
            addon_id=uuid.uuid4(),
            now=now,
            price=price,
            message=message,
            photo_ids=photo_ids,
            discount_amount=discount_amount,
            service_id=service_id,
            product_id=product_id,
            custom_description=custom_description,
            item_name=item_name,
            pickup_delay_minutes=pickup_delay_minutes,
            expiration=self.addon_expiration,
            authorization_token=secrets.token_urlsafe(24),
        )

        job = replace(job, addons=job.addons + (addon,))
        fields = []
        if addon.pickup_delay_minutes and job.estimated_pickup_at:
            job = replace(
                job,
                estimated_pickup_at=job.estimated_pickup_at + timedelta(minutes=addon.pickup_delay_minutes),
            )
            fields.append("estimated_pickup_at")

        # add-on row and pickup shift land together or not at all
        self.repository.save_addon_and_job(job, addon, fields=fields, created_by_id=actor_id)
        logger.info(
            "Add-on flagged",
            extra={"job_id": job.id, "addon_id": addon.id, "final_price": str(addon.final_price)},
        )

        return AddonResult(job=job, addon=addon, notifications=self._send_addon_request(job, addon))

    def respond_to_addon(self, job_id, addon_id, *, approve: bool, actor_id=None) -> AddonResult:
        """actor_id is the staff member entering the answer; None means the customer used the link."""
        job = self.get_job(job_id)
        addon = self._require_addon(job, addon_id)

        try:
            updated = addon_workflow.respond(addon, approve=approve, now=self._now())
        except AddonExpiredError:
            # the window closed after get_job read it; store the expiry before refusing
            self.repository.expire_addons(job.id, [addon.id])
            raise
        self.repository.save_addon(job.id, updated)
        job = replace(job, addons=tuple(updated if a.id == updated.id else a for a in job.addons))
        logger.info(
            "Add-on answered",
            extra={
                "job_id": job.id,
                "addon_id": updated.id,
                "status": updated.status,
                "recorded_by_id": actor_id,
                "via": "staff" if actor_id is not None else "customer_link",
            },
        )

        results = ()
        if approve and job.customer and job.customer.phone:
            results = self._notify(
                job.customer,
                [CHANNEL_SMS],
                messages.addon_approved_message(item_name=updated.display_name),
                subject="",
                context=f"addon_approved:{updated.id}",
            )
        return AddonResult(job=job, addon=updated, notifications=results)

    def respond_by_token(self, token: str, *, approve: bool) -> AddonResult:
        job_id = self.repository.job_id_for_addon_token(token)
        job = self.get_job(job_id)
        addon = next((a for a in job.addons if a.authorization_token == token), None)
        if addon is None:
            raise AddonNotFoundError("Authorization link is invalid")
        return self.respond_to_addon(job.id, addon.id, approve=approve)

    def resend_addon(self, job_id, addon_id) -> AddonResult:
        job = self.get_job(job_id)
        _require_status(job, {STATUS_IN_PROGRESS}, "resend an add-on")
        addon = self._require_addon(job, addon_id)

        if addon.service_id:
            others = tuple(a for a in job.addons if a.id != addon.id)
            addon_workflow.check_duplicate_recommendation(
                job_service_ids=job.service_ids(),
                addons=others,
                service_id=addon.service_id,
            )

        updated = addon_workflow.resend(
            addon,
            now=self._now(),
            expiration=self.addon_expiration,
            authorization_token=secrets.token_urlsafe(24),
        )
        self.repository.save_addon(job.id, updated)
        job = replace(job, addons=tuple(updated if a.id == updated.id else a for a in job.addons))
        logger.info("Add-on resent", extra={"job_id": job.id, "addon_id": updated.id})

        return AddonResult(job=job, addon=updated, notifications=self._send_addon_request(job, updated))

    # ============================================================
    # CHECKOUT HANDOFF
    # ============================================================

    def checkout_items(self, job_id) -> list[dict]:
        """
        Order line inputs for a finished job: the locked service snapshot plus
        approved add-ons at their final price.
        """
        job = self.get_job(job_id)
        if job.status in TERMINAL_STATES:
            raise TransitionGuardError(f"Job {job.id} is {job.status}; nothing to check out")

        lines = [
            {
                "source": "job_service",
                "item_type": "service",
                "service_id": s.id,
                "name": s.name,
                "unit_price": to_money(s.price),
                "is_taxable": s.is_taxable,
                "quantity": 1,
            }
            for s in job.services
        ]

        for addon in job.addons:
            if addon.status != addon_workflow.STATUS_APPROVED:
                continue
            if addon.service_id:
                item_type, taxable = "service", False
            elif addon.product_id:
                item_type, taxable = "product", True
            else:
                item_type, taxable = "custom", False
            lines.append(
                {
                    "source": "addon",
                    "addon_id": addon.id,
                    "item_type": item_type,
                    "service_id": addon.service_id,
                    "product_id": addon.product_id,
                    "name": addon.display_name,
                    "unit_price": addon.final_price,
                    "is_taxable": taxable,
                    "quantity": 1,
                }
            )
        return lines
