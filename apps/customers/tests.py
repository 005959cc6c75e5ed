from datetime import datetime, timezone as dt_timezone

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APITestCase

from apps.audit.models import AuditLog
from apps.customers.models import Customer, normalize_phone, normalize_plate
from apps.customers.services import find_or_create_customer, record_visit

User = get_user_model()


class CustomerNormalizationTests(TestCase):
    def test_phone_keeps_digits_and_plate_drops_spaces_and_hyphens(self):
        self.assertEqual(normalize_phone("+254 712-345-678"), "254712345678")
        self.assertEqual(normalize_plate(" kda 123-a "), "KDA123A")
        self.assertEqual(normalize_plate(None), "")


class FindOrCreateCustomerTests(TestCase):
    def test_returns_none_without_phone_or_plate(self):
        self.assertIsNone(find_or_create_customer(name="Walk-in"))
        self.assertEqual(Customer.objects.count(), 0)

    def test_phone_match_takes_priority_over_plate(self):
        by_phone = Customer.objects.create(name="Jane", phone="0712345678")
        Customer.objects.create(name="Other", vehicle_reg="KDA123A")

        resolved = find_or_create_customer(phone="0712 345 678", vehicle_reg="KDA 123A")

        self.assertEqual(resolved.id, by_phone.id)
        by_phone.refresh_from_db()
        self.assertEqual(by_phone.vehicle_reg, "KDA123A")

    def test_plate_match_when_phone_unknown_fills_missing_name(self):
        existing = Customer.objects.create(vehicle_reg="KBZ 900X")

        resolved = find_or_create_customer(phone="", vehicle_reg="kbz-900x", name="Peter")

        self.assertEqual(resolved.id, existing.id)
        existing.refresh_from_db()
        self.assertEqual(existing.name, "Peter")

    def test_existing_name_is_not_overwritten(self):
        existing = Customer.objects.create(name="Jane", phone="0700000001")
        find_or_create_customer(phone="0700000001", name="Someone Else")
        existing.refresh_from_db()
        self.assertEqual(existing.name, "Jane")

    def test_creates_new_customer_with_normalized_identity(self):
        customer = find_or_create_customer(phone="0700-111-222", vehicle_reg="kcc 1b", name=" Ann ")
        self.assertEqual(customer.phone_normalized, "0700111222")
        self.assertEqual(customer.vehicle_reg, "KCC1B")
        self.assertEqual(customer.name, "Ann")

    def test_record_visit_increments_and_keeps_latest_visit(self):
        customer = Customer.objects.create(phone="0700000002")
        later = datetime(2025, 11, 10, 9, 0, tzinfo=dt_timezone.utc)
        earlier = datetime(2025, 11, 1, 9, 0, tzinfo=dt_timezone.utc)

        record_visit(customer, later)
        record_visit(customer, earlier)

        self.assertEqual(customer.visits_count, 2)
        self.assertEqual(customer.last_visit, later)


class CustomerApiTests(APITestCase):
    def setUp(self):
        self.manager = User.objects.create_user(username="manager", password="manager123", role="MANAGER")
        response = self.client.post(
            "/api/v1/auth/token/",
            {"username": "manager", "password": "manager123"},
            format="json",
        )
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")

    def test_create_is_idempotent_per_phone(self):
        first = self.client.post("/api/v1/customers/", {"name": "Jane", "phone": "0712345678"}, format="json")
        self.assertEqual(first.status_code, 201)

        second = self.client.post("/api/v1/customers/", {"phone": "0712 345 678"}, format="json")
        self.assertEqual(second.status_code, 200)
        self.assertEqual(second.data["id"], first.data["id"])
        self.assertEqual(AuditLog.objects.filter(action="customer.create").count(), 1)

    def test_create_requires_phone_or_plate(self):
        response = self.client.post("/api/v1/customers/", {"name": "Nobody"}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("phone", response.data["fields"])

    def test_search_matches_plate_regardless_of_formatting(self):
        Customer.objects.create(name="Jane", vehicle_reg="KDA123A")
        Customer.objects.create(name="John", phone="0799999999")

        response = self.client.get("/api/v1/customers/", {"q": "kda 123"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["count"], 1)
        self.assertEqual(response.data["results"][0]["name"], "Jane")
