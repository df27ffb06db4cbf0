# orders/tests/test_order_store.py

from datetime import timedelta
from decimal import Decimal

from django.test import SimpleTestCase

from catalog.services.definitions import PRICING_MODEL_PER_UNIT, ServiceDefinition
from catalog.services.pricing import PricingTier, PricingUnavailableError
from orders.services import actions as a
from orders.services.coupons import COUPON_FLAT, COUPON_PERCENTAGE, CouponRule, evaluate_coupon
from orders.services.exceptions import CouponInvalidError, LoyaltyRedemptionError, OrderValidationError
from orders.services.loyalty import LoyaltyPolicy
from orders.services.order_state import (
    DISCOUNT_DOLLAR,
    DISCOUNT_PERCENT,
    AppliedCoupon,
    CustomerRef,
    OrderState,
)
from orders.services.order_store import OrderStore
from shared.clock import FixedClock

RATE = Decimal("0.1025")
LOYAL = CustomerRef(id="cust-1", name="Dana", loyalty_points_balance=500)

SEATS = ServiceDefinition(
    id="svc-seats",
    name="Seat Shampoo",
    pricing_model=PRICING_MODEL_PER_UNIT,
    per_unit_price=Decimal("15.00"),
    per_unit_label="seats",
    per_unit_max=4,
)

CERAMIC = ServiceDefinition(
    id="svc-ceramic",
    name="Ceramic Coating",
    tiers=(
        PricingTier(tier_name="one_year", price=Decimal("400.00")),
        PricingTier(tier_name="five_year", price=Decimal("900.00")),
    ),
)


class StoreTestMixin:
    def setUp(self):
        self.clock = FixedClock()
        self.store = OrderStore(OrderState(tax_rate=RATE), clock=self.clock, loyalty=LoyaltyPolicy())

    def add_custom(self, price="100.00"):
        return self.store.dispatch(a.AddCustomItem(name="Detail", unit_price=Decimal(price)))


class OrderStoreTests(StoreTestMixin, SimpleTestCase):
    """
    GUARANTEES:
    - rejected actions leave state and log untouched
    - subscribers see every committed action
    - replaying the log rebuilds the same state
    """

    def test_subscribers_are_notified_until_unsubscribed(self):
        seen = []
        unsubscribe = self.store.subscribe(lambda state, action: seen.append(type(action).__name__))

        self.add_custom()
        unsubscribe()
        self.add_custom()

        self.assertEqual(seen, ["AddCustomItem"])

    def test_rejected_action_does_not_touch_state(self):
        self.add_custom("20.00")
        before = self.store.state

        with self.assertRaises(OrderValidationError):
            self.store.dispatch(a.ApplyManualDiscount(kind=DISCOUNT_DOLLAR, value=Decimal("25.00")))

        self.assertIs(self.store.state, before)
        self.assertEqual(len(self.store.actions), 1)

    def test_replay_rebuilds_the_same_state(self):
        self.store.dispatch(a.SetCustomer(customer=LOYAL))
        self.add_custom()
        self.store.dispatch(a.ApplyManualDiscount(kind=DISCOUNT_PERCENT, value=Decimal("15")))
        self.store.redeem_loyalty(200)

        replayed = OrderStore.replay(self.store.actions, initial_state=OrderState(tax_rate=RATE))
        self.assertEqual(replayed.state, self.store.state)

    def test_over_discount_is_logged_once(self):
        self.add_custom("10.00")
        self.store.dispatch(a.ApplyManualDiscount(kind=DISCOUNT_DOLLAR, value=Decimal("10.00")))

        with self.assertLogs("orders.services.order_store", level="WARNING") as logs:
            self.store.dispatch(a.SetCoupon(coupon=AppliedCoupon(id="c1", code="FIVE", discount_amount=Decimal("5.00"))))
            self.store.dispatch(a.AddCustomItem(name="Wipe-down", unit_price=Decimal("0.00")))

        self.assertEqual(len(logs.records), 1)
        self.assertTrue(self.store.state.is_over_discounted)

    def test_manual_discount_bounds(self):
        self.add_custom()
        with self.assertRaises(OrderValidationError):
            self.store.dispatch(a.ApplyManualDiscount(kind=DISCOUNT_PERCENT, value=Decimal("101")))
        with self.assertRaises(OrderValidationError):
            self.store.dispatch(a.ApplyManualDiscount(kind=DISCOUNT_PERCENT, value=Decimal("0")))
        with self.assertRaises(OrderValidationError):
            self.store.dispatch(a.ApplyManualDiscount(kind="bogus", value=Decimal("5")))

    def test_per_unit_cap_is_enforced(self):
        with self.assertRaises(OrderValidationError):
            self.store.dispatch(a.AddService(service=SEATS, per_unit_qty=5))

        self.store.dispatch(a.AddService(service=SEATS, per_unit_qty=4, item_id="seats"))
        with self.assertRaises(OrderValidationError):
            self.store.dispatch(a.UpdatePerUnitQuantity(item_id="seats", per_unit_qty=6))

    def test_multi_tier_service_needs_a_tier(self):
        with self.assertRaises(PricingUnavailableError):
            self.store.dispatch(a.AddService(service=CERAMIC))

        self.store.dispatch(a.AddService(service=CERAMIC, tier_name="five_year"))
        self.assertEqual(self.store.state.subtotal, Decimal("900.00"))


class CouponTests(StoreTestMixin, SimpleTestCase):
    def rule(self, **overrides):
        data = dict(id="c1", code="SPRING", kind=COUPON_PERCENTAGE, value=Decimal("20"))
        data.update(overrides)
        return CouponRule(**data)

    def test_percentage_coupon_is_capped(self):
        self.add_custom("200.00")
        self.store.apply_coupon(self.rule(max_discount=Decimal("25.00")))
        self.assertEqual(self.store.state.coupon.discount_amount, Decimal("25.00"))

    def test_flat_coupon_never_exceeds_subtotal(self):
        self.assertEqual(
            evaluate_coupon(self.rule(kind=COUPON_FLAT, value=Decimal("50")), Decimal("30.00"), self.clock.now()),
            Decimal("30.00"),
        )

    def test_expired_coupon_is_rejected(self):
        self.add_custom()
        with self.assertRaises(CouponInvalidError):
            self.store.apply_coupon(self.rule(expires_at=self.clock.now() - timedelta(minutes=1)))
        self.assertIsNone(self.store.state.coupon)

    def test_minimum_purchase_and_usage_limit(self):
        self.add_custom("40.00")
        with self.assertRaises(CouponInvalidError):
            self.store.apply_coupon(self.rule(min_purchase=Decimal("50.00")))
        with self.assertRaises(CouponInvalidError):
            self.store.apply_coupon(self.rule(max_uses=3, use_count=3))
        with self.assertRaises(CouponInvalidError):
            self.store.apply_coupon(self.rule(is_active=False))


class LoyaltyTests(StoreTestMixin, SimpleTestCase):
    def test_redeem_converts_points_to_dollars(self):
        self.store.dispatch(a.SetCustomer(customer=LOYAL))
        self.add_custom()
        self.store.redeem_loyalty(200)

        self.assertEqual(self.store.state.loyalty_points_to_redeem, 200)
        self.assertEqual(self.store.state.loyalty_discount, Decimal("10.00"))
        self.assertEqual(self.store.state.discount_amount, Decimal("10.00"))

    def test_requires_customer_minimum_and_balance(self):
        self.add_custom()
        with self.assertRaises(LoyaltyRedemptionError):
            self.store.redeem_loyalty(200)

        self.store.dispatch(a.SetCustomer(customer=LOYAL))
        with self.assertRaises(LoyaltyRedemptionError):
            self.store.redeem_loyalty(50)
        with self.assertRaises(LoyaltyRedemptionError):
            self.store.redeem_loyalty(600)

    def test_inflated_discount_is_rejected(self):
        self.store.dispatch(a.SetCustomer(customer=LOYAL))
        self.add_custom()
        with self.assertRaises(LoyaltyRedemptionError):
            self.store.dispatch(a.SetLoyaltyRedeem(points=100, discount=Decimal("50.00")))
