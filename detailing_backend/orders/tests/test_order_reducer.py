# orders/tests/test_order_reducer.py

from dataclasses import dataclass
from decimal import Decimal

from django.test import SimpleTestCase

from catalog.services.definitions import (
    PRICING_MODEL_PER_UNIT,
    PRICING_MODEL_VEHICLE_SIZE,
    ProductDefinition,
    ServiceDefinition,
)
from catalog.services.pricing import SIZE_SEDAN, SIZE_TRUCK_SUV_2ROW, PricingTier
from orders.services import actions as a
from orders.services.exceptions import UnknownOrderActionError
from orders.services.order_reducer import reduce_order, registered_actions
from orders.services.order_state import (
    DISCOUNT_DOLLAR,
    DISCOUNT_PERCENT,
    AppliedCoupon,
    CustomerRef,
    OrderState,
    VehicleRef,
)
from orders.services.tax import calculate_totals

RATE = Decimal("0.095")

WAX = ProductDefinition(id="prod-wax", name="Spray Wax", retail_price=Decimal("10.00"), is_taxable=True)

WASH = ServiceDefinition(
    id="svc-wash",
    name="Exterior Wash",
    pricing_model=PRICING_MODEL_VEHICLE_SIZE,
    tiers=(
        PricingTier(
            tier_name="standard",
            price=Decimal("20.00"),
            is_vehicle_size_aware=True,
            sedan_price=Decimal("20.00"),
            truck_suv_price=Decimal("30.00"),
            suv_van_price=Decimal("35.00"),
        ),
    ),
)

INTERIOR = ServiceDefinition(
    id="svc-interior",
    name="Interior Detail",
    tiers=(PricingTier(tier_name="flat", price=Decimal("50.00")),),
)

SEATS = ServiceDefinition(
    id="svc-seats",
    name="Seat Shampoo",
    pricing_model=PRICING_MODEL_PER_UNIT,
    per_unit_price=Decimal("15.00"),
    per_unit_label="seats",
    per_unit_max=4,
)

TRUCK = VehicleRef(id="veh-1", size_class=SIZE_TRUCK_SUV_2ROW)
SEDAN = VehicleRef(id="veh-2", size_class=SIZE_SEDAN)


def run(*actions, state=None):
    state = state if state is not None else OrderState(tax_rate=RATE)
    for action in actions:
        state = reduce_order(state, action)
    return state


class PricingScenarioTests(SimpleTestCase):
    """
    GUARANTEES:
    - service price follows the ticket's vehicle size
    - tax only on taxable lines, rounded per line
    - discounts add up; the total never goes below zero
    """

    def test_truck_gets_truck_price(self):
        state = run(a.SetVehicle(vehicle=TRUCK), a.AddService(service=WASH))
        self.assertEqual(state.items[0].unit_price, Decimal("30.00"))
        self.assertEqual(state.items[0].vehicle_size_class, SIZE_TRUCK_SUV_2ROW)

    def test_mixed_taxable_order_totals(self):
        state = run(
            a.AddProduct(product=WAX, quantity=2),
            a.AddService(service=INTERIOR),
        )
        self.assertEqual(state.subtotal, Decimal("70.00"))
        self.assertEqual(state.tax_amount, Decimal("1.90"))
        self.assertEqual(state.total, Decimal("71.90"))
        self.assertFalse(state.is_over_discounted)

    def test_manual_percent_and_coupon_stack(self):
        state = run(
            a.AddCustomItem(name="Full detail", unit_price=Decimal("100.00")),
            a.ApplyManualDiscount(kind=DISCOUNT_PERCENT, value=Decimal("10")),
            a.SetCoupon(coupon=AppliedCoupon(id="c1", code="SAVE5", discount_amount=Decimal("5.00"))),
        )
        self.assertEqual(state.manual_discount.amount, Decimal("10.00"))
        self.assertEqual(state.discount_amount, Decimal("15.00"))
        self.assertEqual(state.total, Decimal("85.00"))

    def test_over_discount_clamps_to_zero_and_flags(self):
        state = run(
            a.AddCustomItem(name="Touch-up", unit_price=Decimal("10.00")),
            a.ApplyManualDiscount(kind=DISCOUNT_DOLLAR, value=Decimal("10.00")),
            a.SetCoupon(coupon=AppliedCoupon(id="c1", code="SAVE5", discount_amount=Decimal("5.00"))),
        )
        self.assertEqual(state.discount_amount, Decimal("15.00"))
        self.assertEqual(state.total, Decimal("0.00"))
        self.assertTrue(state.is_over_discounted)

    def test_percent_discount_is_fixed_at_apply_time(self):
        state = run(
            a.AddCustomItem(name="Detail", unit_price=Decimal("100.00")),
            a.ApplyManualDiscount(kind=DISCOUNT_PERCENT, value=Decimal("10")),
            a.AddCustomItem(name="Extra", unit_price=Decimal("100.00")),
        )
        self.assertEqual(state.manual_discount.amount, Decimal("10.00"))
        self.assertEqual(state.total, Decimal("190.00"))

    def test_totals_match_the_closed_form(self):
        items = run(
            a.AddProduct(product=WAX, quantity=3),
            a.AddCustomItem(name="Odor", unit_price=Decimal("19.99"), is_taxable=True),
        ).items
        for discount in (Decimal("0"), Decimal("7.33"), Decimal("500")):
            totals = calculate_totals(items, discount)
            expected = max(Decimal("0.00"), totals.subtotal + totals.tax_amount - totals.discount_amount)
            self.assertEqual(totals.total, expected)


class LineItemTests(SimpleTestCase):
    def test_same_product_merges(self):
        state = run(a.AddProduct(product=WAX), a.AddProduct(product=WAX, quantity=2))
        self.assertEqual(len(state.items), 1)
        self.assertEqual(state.items[0].quantity, 3)
        self.assertEqual(state.items[0].total_price, Decimal("30.00"))

    def test_same_service_never_merges(self):
        state = run(a.AddService(service=INTERIOR), a.AddService(service=INTERIOR))
        self.assertEqual(len(state.items), 2)
        self.assertNotEqual(state.items[0].id, state.items[1].id)

    def test_quantity_below_one_removes_the_line(self):
        state = run(a.AddProduct(product=WAX, item_id="line-1"))
        state = run(a.UpdateItemQuantity(item_id="line-1", quantity=0), state=state)
        self.assertEqual(state.items, ())
        self.assertEqual(state.total, Decimal("0.00"))

    def test_per_unit_service_prices_by_count(self):
        state = run(a.AddService(service=SEATS, per_unit_qty=2, item_id="seats"))
        self.assertEqual(state.items[0].unit_price, Decimal("30.00"))
        self.assertEqual(state.items[0].quantity, 1)

        state = run(a.UpdatePerUnitQuantity(item_id="seats", per_unit_qty=3), state=state)
        self.assertEqual(state.items[0].unit_price, Decimal("45.00"))
        self.assertEqual(state.items[0].per_unit_qty, 3)

    def test_note_does_not_touch_totals(self):
        state = run(a.AddProduct(product=WAX, item_id="line-1"))
        noted = run(a.UpdateItemNote(item_id="line-1", note="left door"), state=state)
        self.assertEqual(noted.items[0].notes, "left door")
        self.assertEqual(noted.total, state.total)

    def test_vehicle_change_reprices_services_only(self):
        state = run(
            a.SetVehicle(vehicle=SEDAN),
            a.AddService(service=WASH),
            a.AddProduct(product=WAX),
        )
        self.assertEqual(state.subtotal, Decimal("30.00"))

        state = run(a.RecalculateVehiclePrices(vehicle=TRUCK, services=(WASH,)), state=state)
        self.assertEqual(state.vehicle, TRUCK)
        self.assertEqual(state.items[0].unit_price, Decimal("30.00"))
        self.assertEqual(state.items[1].unit_price, Decimal("10.00"))
        self.assertEqual(state.subtotal, Decimal("40.00"))

    def test_reprice_keeps_line_when_service_is_gone(self):
        state = run(a.SetVehicle(vehicle=SEDAN), a.AddService(service=WASH))
        state = run(a.RecalculateVehiclePrices(vehicle=TRUCK, services=()), state=state)
        self.assertEqual(state.items[0].unit_price, Decimal("20.00"))


    def test_locked_product_line_takes_no_catalog_units(self):
        addon_wax = ProductDefinition(id=WAX.id, name=WAX.name, retail_price=Decimal("2.00"), is_taxable=True)
        state = run(
            a.AddProduct(product=addon_wax, locked=True),
            a.AddProduct(product=WAX, quantity=2),
            a.AddProduct(product=WAX),
        )
        self.assertEqual(
            [(i.unit_price, i.quantity, i.is_locked) for i in state.items],
            [(Decimal("2.00"), 1, True), (Decimal("10.00"), 3, False)],
        )
        self.assertEqual(state.subtotal, Decimal("32.00"))

    def test_locked_service_ignores_vehicle_change(self):
        state = run(a.SetVehicle(vehicle=SEDAN), a.AddService(service=WASH, locked=True))
        state = run(a.RecalculateVehiclePrices(vehicle=TRUCK, services=(WASH,)), state=state)
        self.assertEqual(state.items[0].unit_price, Decimal("20.00"))


class ReducerLifecycleTests(SimpleTestCase):
    def test_every_action_has_a_handler(self):
        self.assertEqual(registered_actions(), frozenset(a.ALL_ACTIONS))

    def test_unknown_action_is_rejected(self):
        @dataclass(frozen=True)
        class Teleport(a.OrderAction):
            pass

        with self.assertRaises(UnknownOrderActionError):
            reduce_order(OrderState(), Teleport())

    def test_clear_keeps_tax_rate_only(self):
        state = run(
            a.SetCustomer(customer=CustomerRef(id="cust-1", name="Dana")),
            a.AddProduct(product=WAX),
            a.SetNotes(notes="VIP"),
            a.Clear(),
        )
        self.assertEqual(state, OrderState(tax_rate=RATE))

    def test_restore_recomputes_totals(self):
        saved = run(a.AddProduct(product=WAX, quantity=2))
        stale = OrderState(items=saved.items, tax_rate=RATE)
        state = run(a.RestoreOrder(state=stale))
        self.assertEqual(state.total, saved.total)

    def test_reducer_does_not_mutate_its_input(self):
        before = run(a.AddProduct(product=WAX))
        run(a.AddProduct(product=WAX), state=before)
        self.assertEqual(before.items[0].quantity, 1)
