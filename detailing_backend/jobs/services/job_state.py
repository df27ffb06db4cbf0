# jobs/services/job_state.py

"""
JOB SNAPSHOT TYPES

Immutable view of one job as the lifecycle controller sees it.
Repositories build these; the controller never touches ORM rows.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from .addon_workflow import STATUS_PENDING, AddonAuthorization
from .job_timer import TimerState

STATUS_SCHEDULED = "scheduled"
STATUS_INTAKE = "intake"
STATUS_IN_PROGRESS = "in_progress"
STATUS_PENDING_APPROVAL = "pending_approval"
STATUS_COMPLETED = "completed"
STATUS_CLOSED = "closed"
STATUS_CANCELLED = "cancelled"

STATUS_CHOICES = [
    (STATUS_SCHEDULED, "Scheduled"),
    (STATUS_INTAKE, "Intake"),
    (STATUS_IN_PROGRESS, "In Progress"),
    (STATUS_PENDING_APPROVAL, "Pending Approval"),
    (STATUS_COMPLETED, "Completed"),
    (STATUS_CLOSED, "Closed"),
    (STATUS_CANCELLED, "Cancelled"),
]

TERMINAL_STATES = {STATUS_CLOSED, STATUS_CANCELLED}


@dataclass(frozen=True)
class ServiceLine:
    id: str
    name: str
    price: Decimal
    is_taxable: bool = False


@dataclass(frozen=True)
class PhotoRecord:
    zone: str
    phase: str
    image_ref: str
    annotations: tuple = field(default_factory=tuple)
    is_internal: bool = False
    id: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class JobCustomer:
    id: str
    first_name: str = ""
    phone: str = ""
    email: str = ""


@dataclass(frozen=True)
class JobSnapshot:
    id: str
    status: str
    services: tuple[ServiceLine, ...] = field(default_factory=tuple)
    timer: TimerState = field(default_factory=TimerState)
    addons: tuple[AddonAuthorization, ...] = field(default_factory=tuple)
    photos: tuple[PhotoRecord, ...] = field(default_factory=tuple)
    customer: Optional[JobCustomer] = None
    vehicle_id: Optional[str] = None
    vehicle_description: str = ""
    appointment_id: Optional[str] = None
    intake_started_at: Optional[datetime] = None
    intake_completed_at: Optional[datetime] = None
    work_completed_at: Optional[datetime] = None
    estimated_pickup_at: Optional[datetime] = None
    actual_pickup_at: Optional[datetime] = None
    cancellation_reason: str = ""
    cancelled_at: Optional[datetime] = None
    cancelled_by_id: Optional[str] = None
    closed_transaction_id: Optional[str] = None
    closed_at: Optional[datetime] = None

    @property
    def is_from_appointment(self) -> bool:
        return bool(self.appointment_id)

    @property
    def has_pending_addon(self) -> bool:
        return any(a.status == STATUS_PENDING for a in self.addons)

    def find_addon(self, addon_id: str) -> Optional[AddonAuthorization]:
        return next((a for a in self.addons if a.id == str(addon_id)), None)

    def service_ids(self) -> tuple[str, ...]:
        return tuple(s.id for s in self.services)

    def photo_ids(self) -> set[str]:
        return {p.id for p in self.photos if p.id}
