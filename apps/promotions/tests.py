from datetime import date

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APITestCase

from apps.audit.models import AuditLog
from apps.promotions.models import FeaturedVehicle, Promotion, PromotionCode
from apps.promotions.services import feature_vehicle

User = get_user_model()


class FeatureVehicleTests(TestCase):
    def test_feature_is_idempotent_per_plate_and_month(self):
        first, created = feature_vehicle(vehicle_reg="kda 123a", month=date(2025, 11, 17))
        again, created_again = feature_vehicle(vehicle_reg="KDA-123A", month=date(2025, 11, 1))

        self.assertTrue(created)
        self.assertFalse(created_again)
        self.assertEqual(first.id, again.id)
        self.assertEqual(first.vehicle_reg, "KDA123A")
        self.assertEqual(first.month, date(2025, 11, 1))

    def test_default_promotions_are_seeded(self):
        self.assertEqual(
            set(Promotion.objects.values_list("code", flat=True)),
            {PromotionCode.FEATURED_VEHICLE, PromotionCode.LOYALTY_13TH, PromotionCode.RANDOM_FREE},
        )


class PromotionApiTests(APITestCase):
    def setUp(self):
        User.objects.create_user(username="admin", password="admin123", role="ADMIN")
        User.objects.create_user(username="manager", password="manager123", role="MANAGER")

    def auth(self, username, password):
        response = self.client.post(
            "/api/v1/auth/token/",
            {"username": username, "password": password},
            format="json",
        )
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")

    def test_featured_vehicle_create_is_idempotent(self):
        self.auth("manager", "manager123")

        created = self.client.post("/api/v1/featured-vehicles/", {"vehicle_reg": "kbz 900x", "month": "2025-11"}, format="json")
        repeated = self.client.post("/api/v1/featured-vehicles/", {"vehicle_reg": "KBZ900X", "month": "2025-11"}, format="json")

        self.assertEqual(created.status_code, 201)
        self.assertEqual(created.data["vehicle_reg"], "KBZ900X")
        self.assertEqual(created.data["month"], "2025-11")
        self.assertEqual(repeated.status_code, 200)
        self.assertEqual(repeated.data["id"], created.data["id"])
        self.assertEqual(FeaturedVehicle.objects.count(), 1)
        self.assertEqual(AuditLog.objects.filter(action="featured_vehicle.create").count(), 1)

    def test_featured_vehicle_list_by_month(self):
        self.auth("manager", "manager123")
        FeaturedVehicle.objects.create(vehicle_reg="KAA001A", month=date(2025, 11, 1))
        FeaturedVehicle.objects.create(vehicle_reg="KBB002B", month=date(2025, 10, 1))

        response = self.client.get("/api/v1/featured-vehicles/", {"month": "2025-11"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual([row["vehicle_reg"] for row in response.data], ["KAA001A"])

        invalid = self.client.get("/api/v1/featured-vehicles/", {"month": "November"})
        self.assertEqual(invalid.status_code, 400)

    def test_featured_vehicle_requires_plate(self):
        self.auth("manager", "manager123")
        response = self.client.post("/api/v1/featured-vehicles/", {"vehicle_reg": " - "}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("vehicle_reg", response.data["fields"])

    def test_only_admin_toggles_promotions(self):
        promotion = Promotion.objects.get(code=PromotionCode.RANDOM_FREE)

        self.auth("manager", "manager123")
        listed = self.client.get("/api/v1/promotions/")
        self.assertEqual(listed.status_code, 200)
        self.assertEqual(len(listed.data), 3)
        denied = self.client.patch(f"/api/v1/promotions/{promotion.id}/", {"is_active": False}, format="json")
        self.assertEqual(denied.status_code, 403)

        self.auth("admin", "admin123")
        toggled = self.client.patch(f"/api/v1/promotions/{promotion.id}/", {"is_active": False}, format="json")
        self.assertEqual(toggled.status_code, 200)
        promotion.refresh_from_db()
        self.assertFalse(promotion.is_active)
        self.assertTrue(AuditLog.objects.filter(action="promotion.update", entity_id=str(promotion.id)).exists())
