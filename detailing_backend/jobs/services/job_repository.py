# jobs/services/job_repository.py

"""
JOB REPOSITORY

Persistence boundary for the lifecycle controller.

- JobRepository          interface
- DjangoJobRepository    ORM-backed (Job / JobPhoto / JobAddon)
- InMemoryJobRepository  dict-backed, used by tests and tooling

Every write either succeeds or raises JobPersistenceError; callers commit
nothing locally until the write returns.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from typing import Iterable, Optional

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone

from jobs.models import Job, JobAddon, JobPhoto
from shared.money import to_money

from .addon_workflow import STATUS_EXPIRED, STATUS_PENDING, AddonAuthorization
from .exceptions import AddonNotFoundError, JobNotFoundError, JobPersistenceError
from .job_state import JobCustomer, JobSnapshot, PhotoRecord, ServiceLine
from .job_timer import TimerState

logger = logging.getLogger(__name__)

# JobSnapshot attribute -> Job column
JOB_FIELDS = (
    "status",
    "intake_started_at",
    "intake_completed_at",
    "work_completed_at",
    "estimated_pickup_at",
    "actual_pickup_at",
    "cancellation_reason",
    "cancelled_at",
    "cancelled_by_id",
    "closed_transaction_id",
    "closed_at",
)
TIMER_FIELDS = ("timer_seconds", "work_started_at", "timer_paused_at")


def job_field_values(job: JobSnapshot, fields: Iterable[str]) -> dict:
    values = {}
    for name in fields:
        if name == "timer":
            for timer_field in TIMER_FIELDS:
                values[timer_field] = getattr(job.timer, timer_field)
        elif name in JOB_FIELDS:
            values[name] = getattr(job, name)
        else:
            raise ValueError(f"Unknown job field '{name}'")
    return values


def services_to_json(services: Iterable[ServiceLine]) -> list[dict]:
    return [
        {"id": s.id, "name": s.name, "price": str(to_money(s.price)), "is_taxable": s.is_taxable}
        for s in services
    ]


def services_from_json(raw) -> tuple[ServiceLine, ...]:
    return tuple(
        ServiceLine(
            id=str(s.get("id")),
            name=s.get("name") or "",
            price=to_money(s.get("price")),
            is_taxable=bool(s.get("is_taxable", False)),
        )
        for s in raw or []
    )


class JobRepository:
    def get(self, job_id) -> JobSnapshot:
        raise NotImplementedError

    def create_job(self, job: JobSnapshot) -> JobSnapshot:
        raise NotImplementedError

    def save_job(self, job: JobSnapshot, *, fields: Iterable[str]) -> None:
        raise NotImplementedError

    def add_photo(self, job_id, photo: PhotoRecord, *, created_by_id=None) -> PhotoRecord:
        raise NotImplementedError

    def save_addon(self, job_id, addon: AddonAuthorization, *, created_by_id=None) -> None:
        raise NotImplementedError

    def save_addon_and_job(
        self, job: JobSnapshot, addon: AddonAuthorization, *, fields: Iterable[str], created_by_id=None
    ) -> None:
        """Write the add-on and the listed job fields as one unit."""
        raise NotImplementedError

    def expire_addons(self, job_id, addon_ids: Iterable[str]) -> int:
        """Conditionally flip pending -> expired. Returns rows actually changed."""
        raise NotImplementedError

    def job_id_for_addon_token(self, token: str) -> str:
        raise NotImplementedError


# ============================================================
# DJANGO
# ============================================================


class DjangoJobRepository(JobRepository):
    # ---------- mapping ----------

    @staticmethod
    def _addon_from_row(row) -> AddonAuthorization:
        return AddonAuthorization(
            id=str(row.id),
            status=row.status,
            price=to_money(row.price),
            discount_amount=to_money(row.discount_amount),
            service_id=str(row.service_id) if row.service_id else None,
            product_id=str(row.product_id) if row.product_id else None,
            custom_description=row.custom_description or None,
            item_name=row.item_name or "",
            sent_at=row.sent_at,
            responded_at=row.responded_at,
            expires_at=row.expires_at,
            pickup_delay_minutes=row.pickup_delay_minutes,
            message_to_customer=row.message_to_customer or "",
            photo_ids=tuple(str(p) for p in row.photo_ids or ()),
            authorization_token=row.authorization_token,
        )

    @staticmethod
    def _photo_from_row(row) -> PhotoRecord:
        return PhotoRecord(
            id=str(row.id),
            zone=row.zone,
            phase=row.phase,
            image_ref=row.image_ref,
            annotations=tuple(row.annotations or ()),
            is_internal=row.is_internal,
            created_at=row.created_at,
        )

    def _snapshot(self, job) -> JobSnapshot:
        customer = None
        if job.customer_id:
            c = job.customer
            customer = JobCustomer(id=str(c.id), first_name=c.first_name, phone=c.phone, email=c.email)

        return JobSnapshot(
            id=str(job.id),
            status=job.status,
            services=services_from_json(job.services),
            timer=TimerState(
                timer_seconds=job.timer_seconds,
                work_started_at=job.work_started_at,
                timer_paused_at=job.timer_paused_at,
            ),
            addons=tuple(self._addon_from_row(a) for a in job.addons.all()),
            photos=tuple(self._photo_from_row(p) for p in job.photos.all()),
            customer=customer,
            vehicle_id=str(job.vehicle_id) if job.vehicle_id else None,
            vehicle_description=job.vehicle.description if job.vehicle_id else "",
            appointment_id=str(job.appointment_id) if job.appointment_id else None,
            intake_started_at=job.intake_started_at,
            intake_completed_at=job.intake_completed_at,
            work_completed_at=job.work_completed_at,
            estimated_pickup_at=job.estimated_pickup_at,
            actual_pickup_at=job.actual_pickup_at,
            cancellation_reason=job.cancellation_reason or "",
            cancelled_at=job.cancelled_at,
            cancelled_by_id=str(job.cancelled_by_id) if job.cancelled_by_id else None,
            closed_transaction_id=str(job.closed_transaction_id) if job.closed_transaction_id else None,
            closed_at=job.closed_at,
        )

    # ---------- reads ----------

    def get(self, job_id) -> JobSnapshot:
        try:
            job = (
                Job.objects.select_related("customer", "vehicle")
                .prefetch_related("addons", "photos")
                .get(id=job_id)
            )
        except (Job.DoesNotExist, ValueError, ValidationError) as exc:
            raise JobNotFoundError(f"Job {job_id} not found") from exc
        except DatabaseError as exc:
            raise JobPersistenceError(f"Could not load job {job_id}: {exc}") from exc
        return self._snapshot(job)

    def job_id_for_addon_token(self, token: str) -> str:
        row = JobAddon.objects.filter(authorization_token=token).only("job_id").first()
        if row is None:
            raise AddonNotFoundError("Authorization link is invalid")
        return str(row.job_id)

    # ---------- writes ----------

    def create_job(self, job: JobSnapshot) -> JobSnapshot:
        try:
            row = Job.objects.create(
                id=job.id,
                customer_id=job.customer.id if job.customer else None,
                vehicle_id=job.vehicle_id,
                appointment_id=job.appointment_id,
                status=job.status,
                services=services_to_json(job.services),
                estimated_pickup_at=job.estimated_pickup_at,
            )
        except DatabaseError as exc:
            raise JobPersistenceError(f"Could not create job: {exc}") from exc
        return self.get(row.id)

    def save_job(self, job: JobSnapshot, *, fields: Iterable[str]) -> None:
        values = job_field_values(job, fields)
        try:
            updated = Job.objects.filter(id=job.id).update(**values)
        except DatabaseError as exc:
            raise JobPersistenceError(f"Could not save job {job.id}: {exc}") from exc
        if not updated:
            raise JobPersistenceError(f"Job {job.id} no longer exists")

    def add_photo(self, job_id, photo: PhotoRecord, *, created_by_id=None) -> PhotoRecord:
        try:
            row = JobPhoto.objects.create(
                job_id=job_id,
                zone=photo.zone,
                phase=photo.phase,
                image_ref=photo.image_ref,
                annotations=list(photo.annotations),
                is_internal=photo.is_internal,
                created_by_id=created_by_id,
            )
        except DatabaseError as exc:
            raise JobPersistenceError(f"Could not save photo for job {job_id}: {exc}") from exc
        return self._photo_from_row(row)

    def save_addon(self, job_id, addon: AddonAuthorization, *, created_by_id=None) -> None:
        values = dict(
            status=addon.status,
            service_id=addon.service_id,
            product_id=addon.product_id,
            custom_description=addon.custom_description or "",
            item_name=addon.item_name,
            price=addon.price,
            discount_amount=addon.discount_amount,
            sent_at=addon.sent_at,
            responded_at=addon.responded_at,
            expires_at=addon.expires_at,
            pickup_delay_minutes=addon.pickup_delay_minutes,
            message_to_customer=addon.message_to_customer,
            photo_ids=list(addon.photo_ids),
            authorization_token=addon.authorization_token,
        )
        try:
            JobAddon.objects.update_or_create(
                id=addon.id,
                defaults=values,
                create_defaults={**values, "job_id": job_id, "created_by_id": created_by_id},
            )
        except DatabaseError as exc:
            raise JobPersistenceError(f"Could not save add-on {addon.id}: {exc}") from exc

    def save_addon_and_job(
        self, job: JobSnapshot, addon: AddonAuthorization, *, fields: Iterable[str], created_by_id=None
    ) -> None:
        fields = tuple(fields)
        try:
            with transaction.atomic():
                self.save_addon(job.id, addon, created_by_id=created_by_id)
                if fields:
                    self.save_job(job, fields=fields)
        except DatabaseError as exc:
            raise JobPersistenceError(f"Could not save add-on {addon.id}: {exc}") from exc

    def expire_addons(self, job_id, addon_ids: Iterable[str]) -> int:
        ids = list(addon_ids)
        if not ids:
            return 0
        try:
            changed = JobAddon.objects.filter(
                job_id=job_id,
                id__in=ids,
                status=STATUS_PENDING,
            ).update(status=STATUS_EXPIRED)
        except DatabaseError as exc:
            raise JobPersistenceError(f"Could not expire add-ons on job {job_id}: {exc}") from exc

        if changed:
            logger.info("Add-ons expired on read", extra={"job_id": str(job_id), "count": changed})
        return changed


# ============================================================
# IN-MEMORY
# ============================================================


class InMemoryJobRepository(JobRepository):
    """
    fail_writes: when True every write raises JobPersistenceError.
    fail_job_writes: when True only save_job raises (photo / add-on rows still land).
    """

    def __init__(self, jobs: Optional[Iterable[JobSnapshot]] = None):
        self._jobs: dict[str, JobSnapshot] = {j.id: j for j in jobs or ()}
        self.fail_writes = False
        self.fail_job_writes = False
        self.writes: list[tuple[str, str]] = []

    def _check_writable(self):
        if self.fail_writes:
            raise JobPersistenceError("Simulated persistence failure")

    def _require(self, job_id) -> JobSnapshot:
        job = self._jobs.get(str(job_id))
        if job is None:
            raise JobNotFoundError(f"Job {job_id} not found")
        return job

    def get(self, job_id) -> JobSnapshot:
        return self._require(job_id)

    def create_job(self, job: JobSnapshot) -> JobSnapshot:
        self._check_writable()
        self._jobs[job.id] = job
        self.writes.append(("create_job", job.id))
        return job

    def save_job(self, job: JobSnapshot, *, fields: Iterable[str]) -> None:
        self._check_writable()
        if self.fail_job_writes:
            raise JobPersistenceError("Simulated job write failure")
        stored = self._require(job.id)
        fields = tuple(fields)
        job_field_values(job, fields)  # rejects unknown names
        changes = {name: getattr(job, name) for name in fields}
        self._jobs[job.id] = replace(stored, **changes)
        self.writes.append(("save_job", job.id))

    def add_photo(self, job_id, photo: PhotoRecord, *, created_by_id=None) -> PhotoRecord:
        self._check_writable()
        stored = self._require(job_id)
        saved = replace(photo, id=photo.id or str(uuid.uuid4()), created_at=photo.created_at or timezone.now())
        self._jobs[stored.id] = replace(stored, photos=stored.photos + (saved,))
        self.writes.append(("add_photo", stored.id))
        return saved

    def save_addon(self, job_id, addon: AddonAuthorization, *, created_by_id=None) -> None:
        self._check_writable()
        stored = self._require(job_id)
        others = tuple(a for a in stored.addons if a.id != addon.id)
        if len(others) == len(stored.addons):
            addons = stored.addons + (addon,)
        else:
            addons = tuple(addon if a.id == addon.id else a for a in stored.addons)
        self._jobs[stored.id] = replace(stored, addons=addons)
        self.writes.append(("save_addon", addon.id))

    def save_addon_and_job(
        self, job: JobSnapshot, addon: AddonAuthorization, *, fields: Iterable[str], created_by_id=None
    ) -> None:
        before = self._require(job.id)
        fields = tuple(fields)
        try:
            self.save_addon(job.id, addon, created_by_id=created_by_id)
            if fields:
                self.save_job(job, fields=fields)
        except JobPersistenceError:
            self._jobs[before.id] = before
            raise

    def expire_addons(self, job_id, addon_ids: Iterable[str]) -> int:
        self._check_writable()
        stored = self._require(job_id)
        ids = set(addon_ids)
        changed = 0
        addons = []
        for addon in stored.addons:
            if addon.id in ids and addon.status == STATUS_PENDING:
                addon = replace(addon, status=STATUS_EXPIRED)
                changed += 1
            addons.append(addon)
        self._jobs[stored.id] = replace(stored, addons=tuple(addons))
        if changed:
            self.writes.append(("expire_addons", stored.id))
        return changed

    def job_id_for_addon_token(self, token: str) -> str:
        for job in self._jobs.values():
            if any(a.authorization_token == token for a in job.addons):
                return job.id
        raise AddonNotFoundError("Authorization link is invalid")
