# jobs/tests/test_job_lifecycle.py

"""
Controller behaviour against the in-memory repository + notifier.
"""

from datetime import timedelta
from decimal import Decimal
from types import SimpleNamespace

from django.test import SimpleTestCase

from jobs.services.addon_workflow import STATUS_APPROVED, STATUS_EXPIRED, STATUS_PENDING
from jobs.services.exceptions import (
    AddonExpiredError,
    AddonValidationError,
    CancellationNotAllowedError,
    DuplicateAddonError,
    JobPermissionError,
    JobPersistenceError,
    JobValidationError,
    TimerStateError,
    TransitionGuardError,
)
from jobs.services.job_lifecycle import JobLifecycleController, display_status
from jobs.services.job_repository import InMemoryJobRepository
from jobs.services.job_state import (
    STATUS_CANCELLED,
    STATUS_CLOSED,
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    STATUS_INTAKE,
    STATUS_PENDING_APPROVAL,
    STATUS_SCHEDULED,
    JobCustomer,
    JobSnapshot,
    PhotoRecord,
    ServiceLine,
)
from jobs.services.job_timer import TimerState
from jobs.services.zone_coverage import EXTERIOR_ZONES, INTERIOR_ZONES, PHASE_COMPLETION, PHASE_INTAKE
from notifications.services.notification_service import InMemoryNotificationService
from shared.clock import FixedClock

MANAGER = SimpleNamespace(pk="user-manager", role="manager", is_superuser=False)
ADMIN = SimpleNamespace(pk="user-admin", role="admin", is_superuser=False)
DETAILER = SimpleNamespace(pk="user-detailer", role="detailer", is_superuser=False)

CUSTOMER = JobCustomer(id="cust-1", first_name="Dana", phone="+15550100", email="dana@example.com")
SERVICES = (
    ServiceLine(id="svc-wash", name="Exterior Wash", price=Decimal("40.00")),
    ServiceLine(id="svc-interior", name="Interior Detail", price=Decimal("120.00")),
)


class SteppingClock(FixedClock):
    """Hands out the given times one read at a time, then stays on the last."""

    def __init__(self, *times):
        super().__init__(times[0])
        self._pending = list(times[1:])

    def now(self):
        current = self._now
        if self._pending:
            self._now = self._pending.pop(0)
        return current


class ControllerTestMixin:
    def setUp(self):
        self.clock = FixedClock()
        self.repo = InMemoryJobRepository()
        self.notifier = InMemoryNotificationService()
        self.controller = JobLifecycleController(
            self.repo,
            self.notifier,
            clock=self.clock,
            addon_expiration=timedelta(hours=24),
            authorize_url=lambda token: f"https://shop.test/authorize/{token}",
        )

    def seed(self, **overrides) -> JobSnapshot:
        values = dict(
            id="job-1",
            status=STATUS_IN_PROGRESS,
            services=SERVICES,
            customer=CUSTOMER,
            vehicle_description="2021 Honda Civic",
            timer=TimerState(work_started_at=self.clock.now()),
            photos=(PhotoRecord(id="p1", zone="exterior_front", phase="progress", image_ref="p1.jpg"),),
            estimated_pickup_at=self.clock.now() + timedelta(hours=3),
        )
        values.update(overrides)
        job = JobSnapshot(**values)
        self.repo = InMemoryJobRepository([job])
        self.controller.repository = self.repo
        return job

    def shoot(self, job_id, phase, exterior=4, interior=2):
        job = None
        for zone in EXTERIOR_ZONES[:exterior] + INTERIOR_ZONES[:interior]:
            job = self.controller.record_photo(job_id, zone=zone, phase=phase, image_ref=f"{zone}.jpg")
        return job


class JobFlowTests(ControllerTestMixin, SimpleTestCase):
    def test_full_walk_in_flow(self):
        job = self.controller.create_job(services=SERVICES, customer=CUSTOMER)
        self.assertEqual(job.status, STATUS_SCHEDULED)

        job = self.controller.start_intake(job.id)
        self.assertEqual(job.status, STATUS_INTAKE)
        self.assertIsNotNone(job.intake_started_at)

        job = self.shoot(job.id, PHASE_INTAKE)
        self.assertIsNotNone(job.intake_completed_at)

        job = self.controller.start_work(job.id)
        self.assertEqual(job.status, STATUS_IN_PROGRESS)
        self.assertTrue(job.timer.is_running)

        self.clock.advance(seconds=60)
        self.controller.pause_timer(job.id)
        self.clock.advance(seconds=30)
        self.controller.resume_timer(job.id)
        self.clock.advance(seconds=65)

        self.shoot(job.id, PHASE_COMPLETION)
        job = self.controller.complete(job.id)

        self.assertEqual(job.status, STATUS_COMPLETED)
        self.assertEqual(job.timer.timer_seconds, 125)
        self.assertTrue(job.timer.is_idle)
        self.assertEqual(job.work_completed_at, self.clock.now())

        job = self.controller.record_pickup(job.id)
        self.assertEqual(job.status, STATUS_COMPLETED)
        self.assertEqual(job.actual_pickup_at, self.clock.now())

        job = self.controller.close(job.id, transaction_id="txn-1")
        self.assertEqual(job.status, STATUS_CLOSED)
        self.assertEqual(self.repo.get(job.id).closed_transaction_id, "txn-1")

    def test_create_requires_services(self):
        with self.assertRaises(JobValidationError):
            self.controller.create_job(services=())

    def test_intake_coverage_partial_leaves_intake_open(self):
        job = self.controller.create_job(services=SERVICES)
        self.controller.start_intake(job.id)
        job = self.shoot(job.id, PHASE_INTAKE, exterior=3, interior=2)

        self.assertIsNone(job.intake_completed_at)
        with self.assertRaises(TransitionGuardError) as ctx:
            self.controller.start_work(job.id)
        self.assertIn("1 more exterior zone", str(ctx.exception))
        self.assertEqual(ctx.exception.shortfall.phase, PHASE_INTAKE)

    def test_photos_rejected_before_intake(self):
        job = self.controller.create_job(services=SERVICES)
        with self.assertRaises(TransitionGuardError):
            self.controller.record_photo(job.id, zone="exterior_front", phase=PHASE_INTAKE, image_ref="x.jpg")

    def test_unknown_zone_is_validation_error(self):
        self.seed()
        with self.assertRaises(JobValidationError):
            self.controller.record_photo("job-1", zone="engine_bay", phase=PHASE_INTAKE, image_ref="x.jpg")

    def test_completion_gate_reports_exact_shortfall(self):
        self.seed()
        self.shoot("job-1", PHASE_COMPLETION, exterior=3, interior=2)

        with self.assertRaises(TransitionGuardError) as ctx:
            self.controller.complete("job-1")

        self.assertIn("1 more exterior zone", str(ctx.exception))
        self.assertEqual(self.repo.get("job-1").status, STATUS_IN_PROGRESS)

    def test_timer_commands_only_while_in_progress(self):
        self.seed(status=STATUS_COMPLETED, timer=TimerState(timer_seconds=10))
        with self.assertRaises(TransitionGuardError):
            self.controller.pause_timer("job-1")

    def test_double_pause_is_timer_error(self):
        self.seed()
        self.controller.pause_timer("job-1")
        with self.assertRaises(TimerStateError):
            self.controller.pause_timer("job-1")

    def test_pickup_requires_completed(self):
        self.seed()
        with self.assertRaises(TransitionGuardError):
            self.controller.record_pickup("job-1")

    def test_persistence_failure_commits_nothing(self):
        job = self.controller.create_job(services=SERVICES)
        self.repo.fail_writes = True

        with self.assertRaises(JobPersistenceError):
            self.controller.start_intake(job.id)

        self.assertEqual(self.repo.get(job.id).status, STATUS_SCHEDULED)


class CancellationTests(ControllerTestMixin, SimpleTestCase):
    def test_staff_cancels_scheduled_walk_in_silently(self):
        self.seed(status=STATUS_SCHEDULED, timer=TimerState())
        result = self.controller.cancel("job-1", actor=MANAGER, reason="Customer no-show")

        self.assertEqual(result.job.status, STATUS_CANCELLED)
        self.assertEqual(result.job.cancelled_by_id, MANAGER.pk)
        self.assertEqual(result.notifications, ())
        self.assertEqual(self.notifier.sent, [])

    def test_reason_is_required(self):
        self.seed(status=STATUS_SCHEDULED, timer=TimerState())
        with self.assertRaises(JobValidationError):
            self.controller.cancel("job-1", actor=MANAGER, reason="  ")

    def test_started_job_needs_admin(self):
        self.seed()
        with self.assertRaises(JobPermissionError):
            self.controller.cancel("job-1", actor=MANAGER, reason="Weather")

        self.clock.advance(seconds=30)
        result = self.controller.cancel("job-1", actor=ADMIN, reason="Weather")
        self.assertEqual(result.job.status, STATUS_CANCELLED)
        self.assertEqual(result.job.timer.timer_seconds, 30)
        self.assertTrue(result.job.timer.is_idle)

    def test_detailer_cannot_cancel(self):
        self.seed(status=STATUS_SCHEDULED, timer=TimerState())
        with self.assertRaises(JobPermissionError):
            self.controller.cancel("job-1", actor=DETAILER, reason="Nope")

    def test_finished_jobs_never_cancel(self):
        for status in (STATUS_COMPLETED, STATUS_CLOSED, STATUS_CANCELLED):
            with self.subTest(status=status):
                self.seed(status=status, timer=TimerState())
                with self.assertRaises(CancellationNotAllowedError):
                    self.controller.cancel("job-1", actor=ADMIN, reason="Late")

    def test_appointment_job_requires_notify_choice_before_persisting(self):
        self.seed(status=STATUS_SCHEDULED, timer=TimerState(), appointment_id="appt-1")

        with self.assertRaises(JobValidationError):
            self.controller.cancel("job-1", actor=MANAGER, reason="Rain")

        self.assertEqual(self.repo.get("job-1").status, STATUS_SCHEDULED)

    def test_appointment_job_notifies_both_channels(self):
        self.seed(status=STATUS_INTAKE, timer=TimerState(), appointment_id="appt-1")

        result = self.controller.cancel("job-1", actor=MANAGER, reason="Rain", notify_channel="both")

        self.assertEqual([n.channel for n in result.notifications], ["email", "sms"])
        self.assertTrue(all(n.ok for n in result.notifications))
        self.assertIn("Exterior Wash, Interior Detail", self.notifier.sent[0]["content"])

    def test_notification_failure_keeps_cancellation(self):
        self.notifier.failing_channels = {"sms"}
        self.seed(status=STATUS_SCHEDULED, timer=TimerState(), appointment_id="appt-1")

        result = self.controller.cancel("job-1", actor=MANAGER, reason="Rain", notify_channel="sms")

        self.assertFalse(result.notifications[0].ok)
        self.assertEqual(self.repo.get("job-1").status, STATUS_CANCELLED)


class AddonFlowTests(ControllerTestMixin, SimpleTestCase):
    def flag(self, **overrides):
        values = dict(
            photo_ids=["p1"],
            price="80.00",
            discount_amount="10.00",
            service_id="svc-headlight",
            item_name="Headlight Restoration",
        )
        values.update(overrides)
        return self.controller.flag_addon("job-1", **values)

    def test_flag_sends_request_and_shows_pending_approval(self):
        job = self.seed()
        result = self.flag(pickup_delay_minutes=20)

        self.assertEqual(result.addon.status, STATUS_PENDING)
        self.assertEqual(result.addon.final_price, Decimal("70.00"))
        self.assertEqual(result.job.estimated_pickup_at, job.estimated_pickup_at + timedelta(minutes=20))
        self.assertEqual(display_status(result.job), STATUS_PENDING_APPROVAL)
        self.assertEqual(self.controller.display_status("job-1"), STATUS_PENDING_APPROVAL)

        self.assertEqual([n.channel for n in result.notifications], ["sms", "email"])
        content = self.notifier.sent[0]["content"]
        self.assertIn("Headlight Restoration", content)
        self.assertIn("$70.00", content)
        self.assertIn(f"https://shop.test/authorize/{result.addon.authorization_token}", content)

    def test_flag_requires_known_photo(self):
        self.seed()
        with self.assertRaises(AddonValidationError):
            self.flag(photo_ids=["missing"])

    def test_flag_only_in_progress(self):
        self.seed(status=STATUS_INTAKE, timer=TimerState())
        with self.assertRaises(TransitionGuardError):
            self.flag()

    def test_flag_rejects_service_already_on_job(self):
        self.seed()
        with self.assertRaises(DuplicateAddonError):
            self.flag(service_id="svc-wash")

    def test_expired_on_read_is_persisted_then_resend_works(self):
        self.seed()
        addon = self.flag().addon

        self.clock.advance(hours=25)
        job = self.controller.get_job("job-1")

        self.assertEqual(job.find_addon(addon.id).status, STATUS_EXPIRED)
        self.assertEqual(self.repo.get("job-1").find_addon(addon.id).status, STATUS_EXPIRED)
        self.assertIn(("expire_addons", "job-1"), self.repo.writes)

        result = self.controller.resend_addon("job-1", addon.id)
        self.assertEqual(result.addon.status, STATUS_PENDING)
        self.assertEqual(result.addon.expires_at, self.clock.now() + timedelta(hours=24))
        self.assertNotEqual(result.addon.authorization_token, addon.authorization_token)

    def test_second_read_does_not_rewrite(self):
        self.seed()
        self.flag()
        self.clock.advance(hours=25)

        self.controller.get_job("job-1")
        writes = list(self.repo.writes)
        self.controller.get_job("job-1")

        self.assertEqual(self.repo.writes, writes)

    def test_respond_after_expiry_raises(self):
        self.seed()
        addon = self.flag().addon
        self.clock.advance(hours=25)

        with self.assertRaises(AddonExpiredError):
            self.controller.respond_to_addon("job-1", addon.id, approve=True)

    def test_approve_by_token_confirms_and_feeds_checkout(self):
        self.seed()
        addon = self.flag().addon
        self.notifier.sent.clear()

        result = self.controller.respond_by_token(addon.authorization_token, approve=True)

        self.assertEqual(result.addon.status, STATUS_APPROVED)
        self.assertEqual([n.channel for n in result.notifications], ["sms"])
        self.assertEqual(display_status(result.job), STATUS_IN_PROGRESS)

        lines = self.controller.checkout_items("job-1")
        self.assertEqual([line["name"] for line in lines], ["Exterior Wash", "Interior Detail", "Headlight Restoration"])
        self.assertEqual(lines[-1]["unit_price"], Decimal("70.00"))
        self.assertEqual(lines[-1]["source"], "addon")

    def test_declined_addon_not_in_checkout(self):
        self.seed()
        addon = self.flag().addon
        self.controller.respond_to_addon("job-1", addon.id, approve=False)

        lines = self.controller.checkout_items("job-1")
        self.assertEqual(len(lines), 2)

    def test_addon_save_failure_surfaces(self):
        self.seed()
        self.repo.fail_writes = True
        with self.assertRaises(JobPersistenceError):
            self.flag()
        self.repo.fail_writes = False
        self.assertEqual(self.repo.get("job-1").addons, ())

    def test_expiry_between_read_and_answer_is_stored(self):
        self.seed()
        addon = self.flag().addon
        # the read sees a live window; the answer lands one minute after it closes
        self.clock = SteppingClock(addon.expires_at - timedelta(minutes=1), addon.expires_at + timedelta(minutes=1))
        self.controller.clock = self.clock

        with self.assertRaises(AddonExpiredError):
            self.controller.respond_to_addon("job-1", addon.id, approve=True)

        self.assertEqual(self.repo.get("job-1").find_addon(addon.id).status, STATUS_EXPIRED)
        self.assertIn(("expire_addons", "job-1"), self.repo.writes)

    def test_pickup_shift_failure_leaves_no_addon_behind(self):
        job = self.seed()
        self.repo.fail_job_writes = True

        with self.assertRaises(JobPersistenceError):
            self.flag(pickup_delay_minutes=20)

        stored = self.repo.get("job-1")
        self.assertEqual(stored.addons, ())
        self.assertEqual(stored.estimated_pickup_at, job.estimated_pickup_at)
        self.assertEqual(self.notifier.sent, [])

        # nothing half-written blocks the retry as a duplicate
        self.repo.fail_job_writes = False
        result = self.flag(pickup_delay_minutes=20)
        self.assertEqual(len(self.repo.get("job-1").addons), 1)
        self.assertEqual(result.job.estimated_pickup_at, job.estimated_pickup_at + timedelta(minutes=20))
