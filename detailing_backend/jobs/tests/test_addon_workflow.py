# jobs/tests/test_addon_workflow.py

from datetime import timedelta
from decimal import Decimal

from django.test import SimpleTestCase

from jobs.services import addon_workflow
from jobs.services.addon_workflow import (
    STATUS_APPROVED,
    STATUS_DECLINED,
    STATUS_EXPIRED,
    STATUS_PENDING,
    check_duplicate_recommendation,
    create_addon,
    expire_if_stale,
    expire_stale_addons,
    render_addon_message,
)
from jobs.services.exceptions import (
    AddonExpiredError,
    AddonStateError,
    AddonValidationError,
    DuplicateAddonError,
    PerUnitIncrementRequired,
)
from shared.clock import FixedClock


class AddonWorkflowTests(SimpleTestCase):
    def setUp(self):
        self.clock = FixedClock()
        self.now = self.clock.now()

    def make(self, **overrides):
        values = dict(
            addon_id="a1",
            now=self.now,
            price="80.00",
            message="Your headlights are hazy.",
            photo_ids=["p1"],
            service_id="svc-headlight",
        )
        values.update(overrides)
        return create_addon(**values)

    # ---------- create ----------

    def test_create_sets_pending_window(self):
        addon = self.make(discount_amount="10.00", expiration=timedelta(hours=24))

        self.assertEqual(addon.status, STATUS_PENDING)
        self.assertEqual(addon.expires_at, self.now + timedelta(hours=24))
        self.assertEqual(addon.final_price, Decimal("70.00"))

    def test_create_requires_photo(self):
        with self.assertRaises(AddonValidationError):
            self.make(photo_ids=[])

    def test_create_requires_single_target(self):
        with self.assertRaises(AddonValidationError):
            self.make(product_id="prod-1")
        with self.assertRaises(AddonValidationError):
            self.make(service_id=None)

    def test_discount_cannot_exceed_price(self):
        with self.assertRaises(AddonValidationError):
            self.make(discount_amount="80.01")

    def test_message_is_required(self):
        with self.assertRaises(AddonValidationError):
            self.make(message="   ")

    def test_template_keeps_unknown_placeholders(self):
        text = render_addon_message(
            "Hi {customer_name}, {item_name} is ${final_price} ({warranty})",
            customer_name="Dana",
            item_name="Headlight restore",
            final_price=Decimal("70.00"),
        )
        self.assertEqual(text, "Hi Dana, Headlight restore is $70.00 ({warranty})")

    # ---------- expiry ----------

    def test_expiry_flips_after_window(self):
        addon = self.make(expiration=timedelta(hours=24))

        self.assertEqual(expire_if_stale(addon, self.now + timedelta(hours=24)).status, STATUS_PENDING)
        self.assertEqual(expire_if_stale(addon, self.now + timedelta(hours=25)).status, STATUS_EXPIRED)

    def test_expiry_is_idempotent(self):
        later = self.now + timedelta(hours=1)
        once = expire_if_stale(self.make(), later)
        twice = expire_if_stale(once, later)

        self.assertEqual(once, twice)
        self.assertIs(expire_if_stale(twice, later + timedelta(days=1)), twice)

    def test_expire_stale_addons_reports_only_changed(self):
        stale = self.make(addon_id="a1")
        fresh = self.make(addon_id="a2", expiration=timedelta(days=2))
        later = self.now + timedelta(hours=1)

        addons, changed = expire_stale_addons([stale, fresh], later)
        self.assertEqual(changed, ("a1",))
        self.assertEqual([a.status for a in addons], [STATUS_EXPIRED, STATUS_PENDING])

        _, changed_again = expire_stale_addons(addons, later)
        self.assertEqual(changed_again, ())

    # ---------- respond / resend ----------

    def test_respond_approve_and_decline(self):
        addon = self.make()
        self.assertEqual(addon_workflow.respond(addon, approve=True, now=self.now).status, STATUS_APPROVED)
        self.assertEqual(addon_workflow.respond(addon, approve=False, now=self.now).status, STATUS_DECLINED)

    def test_respond_after_expiry_raises_with_expired_record(self):
        addon = self.make()
        with self.assertRaises(AddonExpiredError) as ctx:
            addon_workflow.respond(addon, approve=True, now=self.now + timedelta(hours=1))
        self.assertEqual(ctx.exception.addon.status, STATUS_EXPIRED)

    def test_respond_twice_raises(self):
        approved = addon_workflow.respond(self.make(), approve=True, now=self.now)
        with self.assertRaises(AddonStateError):
            addon_workflow.respond(approved, approve=False, now=self.now)

    def test_resend_opens_fresh_window(self):
        addon = self.make(expiration=timedelta(hours=24))
        read_at = self.now + timedelta(hours=25)

        resent = addon_workflow.resend(addon, now=read_at, expiration=timedelta(hours=24), authorization_token="t2")

        self.assertEqual(resent.status, STATUS_PENDING)
        self.assertEqual(resent.sent_at, read_at)
        self.assertEqual(resent.expires_at, read_at + timedelta(hours=24))
        self.assertEqual(resent.authorization_token, "t2")

    def test_resend_pending_is_rejected(self):
        with self.assertRaises(AddonStateError):
            addon_workflow.resend(self.make(), now=self.now)

    # ---------- duplicates ----------

    def test_service_already_on_job_is_duplicate(self):
        with self.assertRaises(DuplicateAddonError):
            check_duplicate_recommendation(
                job_service_ids=["svc-headlight"],
                addons=[],
                service_id="svc-headlight",
            )

    def test_per_unit_service_asks_for_increment(self):
        approved = addon_workflow.respond(self.make(), approve=True, now=self.now)
        with self.assertRaises(PerUnitIncrementRequired) as ctx:
            check_duplicate_recommendation(
                job_service_ids=[],
                addons=[approved],
                service_id="svc-headlight",
                is_per_unit=True,
            )
        self.assertEqual(ctx.exception.service_id, "svc-headlight")

    def test_declined_addon_does_not_block_new_recommendation(self):
        declined = addon_workflow.respond(self.make(), approve=False, now=self.now)
        check_duplicate_recommendation(
            job_service_ids=[],
            addons=[declined],
            service_id="svc-headlight",
        )
