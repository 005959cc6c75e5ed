from decimal import Decimal
from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import call_command
from rest_framework.test import APITestCase

from apps.audit.models import AuditLog
from apps.catalog.models import CarType, Service, ServicePrice, price_for

User = get_user_model()


class CatalogAuditTests(APITestCase):
    def setUp(self):
        self.admin = User.objects.create_user(username="admin", password="admin123", role="ADMIN")

    def auth_as_admin(self):
        response = self.client.post(
            "/api/v1/auth/token/",
            {"username": "admin", "password": "admin123"},
            format="json",
        )
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")

    def test_service_create_update_delete_are_audited(self):
        self.auth_as_admin()
        created = self.client.post(
            "/api/v1/services/",
            {"name": "  Engine   Wash ", "base_price": "700.00", "is_active": True},
            format="json",
        )
        self.assertEqual(created.status_code, 201)
        service_id = created.data["id"]
        self.assertEqual(Service.objects.get(pk=service_id).name, "Engine Wash")

        updated = self.client.patch(f"/api/v1/services/{service_id}/", {"base_price": "750.00"}, format="json")
        self.assertEqual(updated.status_code, 200)
        self.assertEqual(updated.data["base_price"], "750.00")

        deleted = self.client.delete(f"/api/v1/services/{service_id}/")
        self.assertEqual(deleted.status_code, 204)

        self.assertTrue(AuditLog.objects.filter(action="service.create", entity_id=service_id).exists())
        self.assertTrue(AuditLog.objects.filter(action="service.update", entity_id=service_id).exists())
        self.assertTrue(AuditLog.objects.filter(action="service.delete", entity_id=service_id).exists())

    def test_negative_base_price_is_rejected(self):
        self.auth_as_admin()
        response = self.client.post("/api/v1/services/", {"name": "Wax", "base_price": "-1.00"}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("base_price", response.data["fields"])

    def test_price_upsert_creates_then_updates(self):
        self.auth_as_admin()
        service = Service.objects.create(name="Full Wash", base_price=Decimal("600.00"))
        suv = CarType.objects.create(label="SUV")

        created = self.client.put(
            f"/api/v1/services/{service.id}/prices/{suv.id}/",
            {"price": "800.00"},
            format="json",
        )
        self.assertEqual(created.status_code, 201)

        updated = self.client.put(
            f"/api/v1/services/{service.id}/prices/{suv.id}/",
            {"price": "850.00"},
            format="json",
        )
        self.assertEqual(updated.status_code, 200)
        self.assertEqual(ServicePrice.objects.filter(service=service, car_type=suv).count(), 1)
        self.assertEqual(price_for(service, suv), Decimal("850.00"))
        self.assertTrue(AuditLog.objects.filter(action="service.price", entity_id=str(service.id)).exists())

    def test_price_for_missing_combination_is_none(self):
        service = Service.objects.create(name="Flash", base_price=Decimal("500.00"))
        truck = CarType.objects.create(label="Truck")
        self.assertIsNone(price_for(service, truck))

    def test_anonymous_request_is_rejected(self):
        response = self.client.get("/api/v1/services/")
        self.assertEqual(response.status_code, 401)


class SeedCatalogCommandTests(APITestCase):
    def test_seed_is_idempotent_and_prices_full_wash_per_car_type(self):
        call_command("seed_catalog", stdout=StringIO())
        call_command("seed_catalog", stdout=StringIO())

        self.assertEqual(CarType.objects.count(), 4)
        self.assertEqual(Service.objects.count(), 5)
        self.assertEqual(ServicePrice.objects.count(), 20)

        full_wash = Service.objects.get(name="Full Wash")
        self.assertEqual(price_for(full_wash, CarType.objects.get(label="Truck")), Decimal("1500.00"))
        greasing = Service.objects.get(name="Greasing")
        self.assertEqual(price_for(greasing, CarType.objects.get(label="SUV")), Decimal("400.00"))
