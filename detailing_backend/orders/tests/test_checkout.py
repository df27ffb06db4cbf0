# orders/tests/test_checkout.py

from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal

from django.test import TestCase, override_settings

from catalog.models import Product, Service, ServicePricingTier
from customers.models import Customer
from jobs.services.addon_workflow import STATUS_APPROVED, AddonAuthorization
from jobs.services.job_lifecycle import JobLifecycleController
from jobs.services.job_repository import InMemoryJobRepository
from jobs.services.job_state import STATUS_CLOSED, STATUS_COMPLETED, STATUS_IN_PROGRESS, JobSnapshot, ServiceLine
from notifications.services.notification_service import InMemoryNotificationService
from orders.models import Coupon, Quote, Transaction
from orders.services import quote_service
from orders.services.checkout_orchestrator import checkout_order
from orders.services.exceptions import CheckoutError, CheckoutValidationError, CouponInvalidError
from orders.services.order_builder import OrderInput
from shared.clock import FixedClock
from users.models import User


@override_settings(TAX_RATE="0.1025", LOYALTY_REDEEM_RATE="0.05", LOYALTY_REDEEM_MINIMUM=100)
class CheckoutTests(TestCase):
    """
    GUARANTEES:
    - a retried submission with the same key returns the first receipt
    - loyalty points and coupon uses are consumed exactly once
    - a linked job is closed in the same transaction
    """

    def setUp(self):
        self.clock = FixedClock(datetime(2025, 5, 2, 16, 30, tzinfo=dt_timezone.utc))
        self.cashier = User.objects.create_user(email="cashier@example.com", password="pass1234", role="cashier")
        self.customer = Customer.objects.create(first_name="Dana", loyalty_points_balance=500)
        self.wax = Product.objects.create(sku="WAX-1", name="Spray Wax", retail_price=Decimal("10.00"))
        self.interior = Service.objects.create(name="Interior Detail", pricing_model="flat")
        ServicePricingTier.objects.create(service=self.interior, tier_name="flat", price=Decimal("50.00"))

    def order(self, **extra):
        return OrderInput.from_dict(
            {
                "customer_id": self.customer.id,
                "items": [
                    {"item_type": "product", "product_id": self.wax.id, "quantity": 2},
                    {"item_type": "service", "service_id": self.interior.id},
                ],
                **extra,
            }
        )

    def checkout(self, order=None, **kwargs):
        kwargs.setdefault("clock", self.clock)
        return checkout_order(user=self.cashier, order_input=order or self.order(), **kwargs)

    def test_checkout_persists_receipt_and_lines(self):
        result = self.checkout(payment_method="card")
        txn = result.transaction

        self.assertFalse(result.replayed)
        self.assertEqual(txn.receipt_number, "R-20250502-00001")
        self.assertEqual(txn.subtotal_amount, Decimal("70.00"))
        self.assertEqual(txn.tax_amount, Decimal("2.05"))
        self.assertEqual(txn.total_amount, Decimal("72.05"))
        self.assertEqual(txn.payment_method, "card")
        self.assertEqual(txn.user, self.cashier)
        self.assertEqual(
            [(i.item_name, i.quantity, i.unit_price) for i in txn.items.all()],
            [("Spray Wax", 2, Decimal("10.00")), ("Interior Detail", 1, Decimal("50.00"))],
        )

    def test_same_key_replays_without_second_deduction(self):
        order = self.order(loyalty_points=200)
        first = self.checkout(order, idempotency_key="pos-1")
        second = self.checkout(order, idempotency_key="pos-1")

        self.assertTrue(second.replayed)
        self.assertEqual(first.transaction.id, second.transaction.id)
        self.assertEqual(Transaction.objects.count(), 1)

        self.customer.refresh_from_db()
        self.assertEqual(self.customer.loyalty_points_balance, 300)
        self.assertEqual(first.transaction.loyalty_discount, Decimal("10.00"))

    def test_coupon_use_is_counted_and_limited(self):
        Coupon.objects.create(code="save5", kind="flat", value=Decimal("5.00"), max_uses=1)

        txn = self.checkout(self.order(coupon_code="SAVE5")).transaction
        self.assertEqual(txn.coupon_discount, Decimal("5.00"))
        self.assertEqual(txn.total_amount, Decimal("67.05"))
        self.assertEqual(Coupon.objects.get(code="SAVE5").use_count, 1)

        with self.assertRaises(CouponInvalidError):
            self.checkout(self.order(coupon_code="SAVE5"))

    def test_empty_ticket_and_bad_payment_method(self):
        with self.assertRaises(CheckoutValidationError):
            self.checkout(OrderInput())
        with self.assertRaises(CheckoutValidationError):
            self.checkout(payment_method="barter")

    def test_quote_must_be_converted_first(self):
        quote = quote_service.create_quote(order_input=self.order(), clock=self.clock)
        with self.assertRaises(CheckoutValidationError):
            self.checkout(quote_id=quote.id)

        Quote.objects.filter(id=quote.id).update(status="converted")
        txn = self.checkout(quote_id=quote.id).transaction
        self.assertEqual(txn.quote_id, quote.id)


@override_settings(TAX_RATE="0.1025")
class JobCheckoutTests(TestCase):
    def setUp(self):
        self.clock = FixedClock(datetime(2025, 5, 2, 16, 30, tzinfo=dt_timezone.utc))
        self.cashier = User.objects.create_user(email="cashier@example.com", password="pass1234", role="cashier")
        self.wash = Service.objects.create(name="Exterior Wash", pricing_model="flat")
        ServicePricingTier.objects.create(service=self.wash, tier_name="flat", price=Decimal("40.00"))
        self.wax = Product.objects.create(sku="WAX-1", name="Spray Wax", retail_price=Decimal("10.00"))

        self.repo = InMemoryJobRepository(
            [
                JobSnapshot(
                    id="job-1",
                    status=STATUS_COMPLETED,
                    # price locked at intake; the catalog has since moved to 40.00
                    services=(ServiceLine(id=str(self.wash.id), name="Exterior Wash", price=Decimal("35.00")),),
                    work_completed_at=self.clock.now() - timedelta(minutes=5),
                )
            ]
        )
        self.controller = JobLifecycleController(self.repo, InMemoryNotificationService(), clock=self.clock)

    def test_job_lines_use_locked_price_and_close_the_job(self):
        order = OrderInput.from_dict({"items": [{"item_type": "product", "product_id": self.wax.id}]})

        result = checkout_order(
            user=self.cashier,
            order_input=order,
            job_id="job-1",
            clock=self.clock,
            job_controller=self.controller,
        )

        txn = result.transaction
        self.assertEqual(txn.subtotal_amount, Decimal("45.00"))
        self.assertEqual(txn.items.get(service=self.wash).unit_price, Decimal("35.00"))

        job = self.repo.get("job-1")
        self.assertEqual(job.status, STATUS_CLOSED)
        self.assertEqual(job.closed_transaction_id, str(txn.id))

    def test_discounted_addon_product_stays_apart_from_catalog_units(self):
        self.repo.create_job(
            JobSnapshot(
                id="job-3",
                status=STATUS_COMPLETED,
                services=(ServiceLine(id=str(self.wash.id), name="Exterior Wash", price=Decimal("35.00")),),
                addons=(
                    AddonAuthorization(
                        id="addon-1",
                        status=STATUS_APPROVED,
                        price=Decimal("10.00"),
                        discount_amount=Decimal("8.00"),
                        product_id=str(self.wax.id),
                        item_name="Spray Wax",
                    ),
                ),
                work_completed_at=self.clock.now() - timedelta(minutes=5),
            )
        )
        order = OrderInput.from_dict({"items": [{"item_type": "product", "product_id": self.wax.id, "quantity": 3}]})

        txn = checkout_order(
            user=self.cashier,
            order_input=order,
            job_id="job-3",
            clock=self.clock,
            job_controller=self.controller,
        ).transaction

        self.assertEqual(txn.subtotal_amount, Decimal("67.00"))
        wax_lines = sorted(
            (line.unit_price, line.quantity) for line in txn.items.filter(product=self.wax)
        )
        self.assertEqual(wax_lines, [(Decimal("2.00"), 1), (Decimal("10.00"), 3)])

    def test_unfinished_job_rolls_back_the_checkout(self):
        self.repo.create_job(
            JobSnapshot(
                id="job-2",
                status=STATUS_IN_PROGRESS,
                services=(ServiceLine(id=str(self.wash.id), name="Exterior Wash", price=Decimal("40.00")),),
            )
        )

        with self.assertRaises(CheckoutError):
            checkout_order(
                user=self.cashier,
                order_input=OrderInput(),
                job_id="job-2",
                clock=self.clock,
                job_controller=self.controller,
            )

        self.assertEqual(Transaction.objects.count(), 0)
        self.assertEqual(self.repo.get("job-2").status, STATUS_IN_PROGRESS)
