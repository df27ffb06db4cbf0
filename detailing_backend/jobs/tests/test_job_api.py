# jobs/tests/test_job_api.py

from decimal import Decimal

from django.core import mail
from django.test import TestCase
from rest_framework.test import APIClient

from catalog.models import Service, ServicePricingTier
from catalog.services.catalog_reader import service_catalog_cache
from customers.models import Customer, Vehicle
from jobs.models import Job, JobAddon
from jobs.services.zone_coverage import EXTERIOR_ZONES, INTERIOR_ZONES
from notifications.models import NotificationLog
from users.models import User


class JobApiTests(TestCase):
    """
    GUARANTEES:
    - service prices are frozen at job creation (vehicle size aware)
    - guard refusals come back as 409 with the coverage shortfall
    - cancellation capability depends on how far the job has progressed
    """

    def setUp(self):
        service_catalog_cache.invalidate()
        self.addCleanup(service_catalog_cache.invalidate)

        self.client = APIClient()
        self.detailer = User.objects.create_user(email="detailer@example.com", password="pass1234", role="detailer")
        self.manager = User.objects.create_user(email="manager@example.com", password="pass1234", role="manager")
        self.client.force_authenticate(self.detailer)

        self.service = Service.objects.create(name="Exterior Wash", pricing_model="vehicle_size")
        ServicePricingTier.objects.create(
            service=self.service,
            tier_name="standard",
            price=Decimal("20.00"),
            is_vehicle_size_aware=True,
            truck_suv_price=Decimal("30.00"),
            suv_van_price=Decimal("35.00"),
        )
        self.customer = Customer.objects.create(first_name="Dana", phone="+15550100", email="dana@example.com")
        self.vehicle = Vehicle.objects.create(
            customer=self.customer, year=2022, make="Ford", model="F-150", size_class="truck_suv_2row"
        )

    def create_job(self, **extra):
        payload = {
            "customer_id": str(self.customer.id),
            "vehicle_id": str(self.vehicle.id),
            "services": [{"service_id": str(self.service.id)}],
            **extra,
        }
        response = self.client.post("/api/jobs/", payload, format="json")
        self.assertEqual(response.status_code, 201, response.data)
        return response.data["id"]

    def shoot(self, job_id, phase, exterior=4, interior=2):
        for zone in EXTERIOR_ZONES[:exterior] + INTERIOR_ZONES[:interior]:
            response = self.client.post(
                f"/api/jobs/{job_id}/photos/",
                {"zone": zone, "phase": phase, "image_ref": f"s3://jobs/{zone}.jpg"},
                format="json",
            )
            self.assertEqual(response.status_code, 200, response.data)
        return response

    def test_anonymous_is_rejected(self):
        self.client.force_authenticate(None)
        self.assertEqual(self.client.get("/api/jobs/").status_code, 401)

    def test_create_freezes_vehicle_size_price(self):
        job_id = self.create_job()

        job = Job.objects.get(id=job_id)
        self.assertEqual(job.services[0]["price"], "30.00")
        self.assertEqual(job.status, "scheduled")

        ServicePricingTier.objects.filter(service=self.service).update(truck_suv_price=Decimal("99.00"))
        response = self.client.get(f"/api/jobs/{job_id}/")
        self.assertEqual(response.data["services"][0]["price"], "30.00")

    def test_lifecycle_through_completion(self):
        job_id = self.create_job()

        self.assertEqual(self.client.post(f"/api/jobs/{job_id}/intake/").status_code, 200)
        response = self.shoot(job_id, "intake")
        self.assertIsNotNone(response.data["intake_completed_at"])

        response = self.client.post(f"/api/jobs/{job_id}/start/")
        self.assertEqual(response.data["status"], "in_progress")
        self.assertTrue(response.data["timer_running"])

        response = self.client.post(f"/api/jobs/{job_id}/timer/", {"action": "pause"}, format="json")
        self.assertFalse(response.data["timer_running"])
        self.client.post(f"/api/jobs/{job_id}/timer/", {"action": "resume"}, format="json")

        self.shoot(job_id, "completion", exterior=3, interior=2)
        response = self.client.post(f"/api/jobs/{job_id}/complete/")
        self.assertEqual(response.status_code, 409)
        self.assertIn("1 more exterior zone", response.data["error"]["message"])
        self.assertFalse(response.data["error"]["details"]["coverage"]["is_met"])

        self.shoot(job_id, "completion", exterior=4, interior=0)
        response = self.client.post(f"/api/jobs/{job_id}/complete/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["status"], "completed")

        response = self.client.get(f"/api/jobs/{job_id}/checkout-items/")
        self.assertEqual(response.data["items"][0]["unit_price"], "30.00")

    def test_start_before_intake_is_conflict(self):
        job_id = self.create_job()
        response = self.client.post(f"/api/jobs/{job_id}/start/")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["error"]["code"], "TRANSITION_NOT_ALLOWED")

    def test_unknown_job_is_404(self):
        response = self.client.get("/api/jobs/00000000-0000-0000-0000-000000000000/")
        self.assertEqual(response.status_code, 404)

    def test_detailer_cannot_cancel_but_manager_can(self):
        job_id = self.create_job(appointment_id="11111111-1111-1111-1111-111111111111")

        response = self.client.post(f"/api/jobs/{job_id}/cancel/", {"reason": "Rain"}, format="json")
        self.assertEqual(response.status_code, 403)

        self.client.force_authenticate(self.manager)
        response = self.client.post(f"/api/jobs/{job_id}/cancel/", {"reason": "Rain"}, format="json")
        self.assertEqual(response.status_code, 400)

        response = self.client.post(
            f"/api/jobs/{job_id}/cancel/", {"reason": "Rain", "notify": "email"}, format="json"
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["job"]["status"], "cancelled")
        self.assertEqual(response.data["notifications"][0]["status"], "sent")
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(NotificationLog.objects.filter(channel="email").count(), 1)

    def test_addon_flag_and_public_approval(self):
        job_id = self.create_job()
        self.client.post(f"/api/jobs/{job_id}/intake/")
        self.shoot(job_id, "intake")
        self.client.post(f"/api/jobs/{job_id}/start/")
        photo_id = self.client.get(f"/api/jobs/{job_id}/").data["photos"][0]["id"]

        response = self.client.post(
            f"/api/jobs/{job_id}/addons/",
            {
                "photo_ids": [photo_id],
                "custom_description": "Headlight restoration",
                "price": "80.00",
                "discount_amount": "10.00",
            },
            format="json",
        )
        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data["job"]["display_status"], "pending_approval")
        self.assertEqual(response.data["addon"]["final_price"], "70.00")

        token = JobAddon.objects.get(job_id=job_id).authorization_token
        public = APIClient()

        response = public.get(f"/api/jobs/addons/authorize/{token}/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["status"], "pending")

        response = public.post(f"/api/jobs/addons/authorize/{token}/", {"approve": True}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["status"], "approved")

        items = self.client.get(f"/api/jobs/{job_id}/checkout-items/").data["items"]
        self.assertEqual([i["unit_price"] for i in items], ["30.00", "70.00"])

    def test_invalid_authorization_token_is_404(self):
        response = APIClient().get("/api/jobs/addons/authorize/not-a-token/")
        self.assertEqual(response.status_code, 404)

    def test_staff_entered_answer_needs_consent_capability(self):
        job_id = self.create_job()
        self.client.post(f"/api/jobs/{job_id}/intake/")
        self.shoot(job_id, "intake")
        self.client.post(f"/api/jobs/{job_id}/start/")
        photo_id = self.client.get(f"/api/jobs/{job_id}/").data["photos"][0]["id"]
        response = self.client.post(
            f"/api/jobs/{job_id}/addons/",
            {"photo_ids": [photo_id], "custom_description": "Pet hair removal", "price": "40.00"},
            format="json",
        )
        self.assertEqual(response.status_code, 201, response.data)
        addon_id = response.data["addon"]["id"]

        # the detailer who flagged the work cannot also approve it for the customer
        response = self.client.post(
            f"/api/jobs/{job_id}/addons/{addon_id}/respond/", {"approve": True}, format="json"
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(JobAddon.objects.get(pk=addon_id).status, "pending")

        self.client.force_authenticate(self.manager)
        response = self.client.post(
            f"/api/jobs/{job_id}/addons/{addon_id}/respond/", {"approve": True}, format="json"
        )
        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(response.data["addon"]["status"], "approved")
