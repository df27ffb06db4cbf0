# orders/tests/test_order_api.py

from decimal import Decimal

from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from catalog.models import Product, Service, ServicePricingTier
from customers.models import Customer, Vehicle
from orders.models import Quote, Transaction
from users.models import User


@override_settings(TAX_RATE="0.095")
class OrderApiTests(TestCase):
    """
    GUARANTEES:
    - prices come from the catalog, not the request
    - manual discounts are manager-only
    - checkout is idempotent over HTTP (201 then 200)
    """

    def setUp(self):
        self.client = APIClient()
        self.cashier = User.objects.create_user(email="cashier@example.com", password="pass1234", role="cashier")
        self.manager = User.objects.create_user(email="manager@example.com", password="pass1234", role="manager")
        self.detailer = User.objects.create_user(email="detailer@example.com", password="pass1234", role="detailer")
        self.client.force_authenticate(self.cashier)

        self.wax = Product.objects.create(sku="WAX-1", name="Spray Wax", retail_price=Decimal("10.00"))
        self.wash = Service.objects.create(name="Exterior Wash", pricing_model="vehicle_size")
        ServicePricingTier.objects.create(
            service=self.wash,
            tier_name="standard",
            price=Decimal("50.00"),
            is_vehicle_size_aware=True,
            truck_suv_price=Decimal("60.00"),
        )
        self.customer = Customer.objects.create(first_name="Dana", email="dana@example.com")
        self.vehicle = Vehicle.objects.create(customer=self.customer, make="Ford", size_class="truck_suv_2row")

    def payload(self, **extra):
        return {
            "items": [
                {"item_type": "product", "product_id": str(self.wax.id), "quantity": 2, "unit_price": "0.01"},
                {"item_type": "service", "service_id": str(self.wash.id)},
            ],
            **extra,
        }

    def test_anonymous_is_rejected(self):
        self.client.force_authenticate(None)
        self.assertEqual(self.client.post("/api/orders/preview/", self.payload(), format="json").status_code, 401)

    def test_detailer_cannot_ring_up_orders(self):
        self.client.force_authenticate(self.detailer)
        self.assertEqual(self.client.post("/api/orders/preview/", self.payload(), format="json").status_code, 403)

    def test_preview_uses_catalog_prices(self):
        response = self.client.post("/api/orders/preview/", self.payload(), format="json")

        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(response.data["subtotal"], "70.00")
        self.assertEqual(response.data["tax_amount"], "1.90")
        self.assertEqual(response.data["total"], "71.90")
        self.assertEqual(response.data["items"][0]["unit_price"], "10.00")
        self.assertEqual(response.data["actions"], ["AddProduct", "AddService"])

    def test_preview_prices_service_for_the_vehicle(self):
        response = self.client.post(
            "/api/orders/preview/",
            self.payload(customer_id=str(self.customer.id), vehicle_id=str(self.vehicle.id)),
            format="json",
        )
        self.assertEqual(response.data["items"][1]["unit_price"], "60.00")
        self.assertEqual(response.data["vehicle_id"], str(self.vehicle.id))

    def test_unknown_product_is_400(self):
        payload = {"items": [{"item_type": "product", "product_id": "00000000-0000-0000-0000-000000000000"}]}
        response = self.client.post("/api/orders/preview/", payload, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["error"]["code"], "ORDER_INVALID")

    def test_manual_discount_needs_manager(self):
        payload = self.payload(manual_discount={"kind": "percent", "value": "10"})

        response = self.client.post("/api/orders/preview/", payload, format="json")
        self.assertEqual(response.status_code, 403)

        self.client.force_authenticate(self.manager)
        response = self.client.post("/api/orders/preview/", payload, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["manual_discount"]["amount"], "7.00")
        self.assertEqual(response.data["total"], "64.90")

    def test_note_on_a_repeated_product_lands_on_the_merged_line(self):
        payload = {
            "items": [
                {"item_type": "product", "product_id": str(self.wax.id), "quantity": 2},
                {"item_type": "product", "product_id": str(self.wax.id), "notes": "gift wrap"},
            ]
        }
        response = self.client.post("/api/orders/preview/", payload, format="json")

        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(len(response.data["items"]), 1)
        self.assertEqual(response.data["items"][0]["quantity"], 3)
        self.assertEqual(response.data["items"][0]["notes"], "gift wrap")

    def test_checkout_is_idempotent(self):
        payload = self.payload(idempotency_key="till-7-0001", payment_method="card")

        first = self.client.post("/api/orders/checkout/", payload, format="json")
        self.assertEqual(first.status_code, 201, first.data)
        self.assertEqual(first.data["total_amount"], "71.90")
        self.assertEqual(len(first.data["items"]), 2)

        second = self.client.post("/api/orders/checkout/", payload, format="json")
        self.assertEqual(second.status_code, 200)
        self.assertEqual(second.data["id"], first.data["id"])
        self.assertEqual(Transaction.objects.count(), 1)

        listing = self.client.get("/api/orders/transactions/")
        self.assertEqual(listing.data["count"], 1)

    def test_unknown_coupon_is_400(self):
        response = self.client.post("/api/orders/checkout/", self.payload(coupon_code="NOPE"), format="json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["error"]["code"], "COUPON_INVALID")


@override_settings(TAX_RATE="0.095", QUOTE_VALIDITY_DAYS=14)
class QuoteApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.cashier = User.objects.create_user(email="cashier@example.com", password="pass1234", role="cashier")
        self.client.force_authenticate(self.cashier)
        self.customer = Customer.objects.create(first_name="Dana", email="dana@example.com")

    def create_quote(self, customer=True):
        payload = {"items": [{"item_type": "custom", "name": "Paint correction", "unit_price": "300.00"}]}
        if customer:
            payload["customer_id"] = str(self.customer.id)
        response = self.client.post("/api/quotes/", payload, format="json")
        self.assertEqual(response.status_code, 201, response.data)
        return response.data

    def test_quote_with_a_discount_is_400(self):
        payload = {
            "customer_id": str(self.customer.id),
            "items": [{"item_type": "custom", "name": "Paint correction", "unit_price": "300.00"}],
            "coupon_code": "SPRING10",
        }
        response = self.client.post("/api/quotes/", payload, format="json")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["error"]["code"], "ORDER_INVALID")
        self.assertEqual(Quote.objects.count(), 0)

    def test_quote_round_trip_to_ticket(self):
        quote = self.create_quote()
        self.assertEqual(quote["status"], "draft")
        self.assertEqual(quote["customer_name"], "Dana")
        self.assertEqual(quote["total_amount"], "300.00")

        response = self.client.post(f"/api/quotes/{quote['id']}/send/", {"channel": "email"}, format="json")
        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(response.data["quote"]["status"], "sent")

        self.assertEqual(self.client.post(f"/api/quotes/{quote['id']}/view/").data["status"], "viewed")
        self.assertEqual(self.client.post(f"/api/quotes/{quote['id']}/accept/").data["status"], "accepted")

        response = self.client.post(f"/api/quotes/{quote['id']}/convert/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["ticket"]["total"], "300.00")
        self.assertEqual(Quote.objects.get(id=quote["id"]).status, "converted")

        response = self.client.post(f"/api/quotes/{quote['id']}/accept/")
        self.assertEqual(response.status_code, 409)

    @override_settings(NOTIFICATIONS={"SMS": {}})
    def test_failed_send_is_reported_and_keeps_draft(self):
        quote = self.create_quote()
        response = self.client.post(f"/api/quotes/{quote['id']}/send/", {"channel": "sms"}, format="json")

        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.data["error"]["details"]["status"], "draft")
        self.assertEqual(Quote.objects.get(id=quote["id"]).status, "draft")

    def test_convert_from_draft_is_conflict(self):
        quote = self.create_quote(customer=False)
        response = self.client.post(f"/api/quotes/{quote['id']}/convert/")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["error"]["code"], "QUOTE_TRANSITION_NOT_ALLOWED")

    def test_past_validity_reads_as_expired(self):
        quote = self.create_quote()
        Quote.objects.filter(id=quote["id"]).update(valid_until="2000-01-01")

        response = self.client.get(f"/api/quotes/{quote['id']}/")
        self.assertEqual(response.data["status"], "expired")

        response = self.client.post(f"/api/quotes/{quote['id']}/accept/")
        self.assertEqual(response.status_code, 410)
