from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APITestCase

from apps.audit.models import AuditLog
from apps.configuration.models import AppSettings
from apps.configuration.services import get_promotion_settings

User = get_user_model()


class PromotionSettingsTests(TestCase):
    def test_defaults_come_from_the_single_settings_row(self):
        settings = get_promotion_settings()

        self.assertFalse(settings.promo_free_enabled)
        self.assertEqual(settings.promo_free_prob, Decimal("0"))
        self.assertTrue(settings.featured_free_once_per_month)
        self.assertEqual(settings.default_commission_pct, Decimal("30.00"))

    def test_settings_row_is_recreated_when_missing(self):
        AppSettings.objects.all().delete()
        self.assertEqual(get_promotion_settings().default_commission_pct, Decimal("30.00"))
        self.assertEqual(AppSettings.objects.count(), 1)


class AppSettingsApiTests(APITestCase):
    def setUp(self):
        User.objects.create_user(username="manager", password="manager123", role="MANAGER")
        response = self.client.post(
            "/api/v1/auth/token/",
            {"username": "manager", "password": "manager123"},
            format="json",
        )
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")

    def test_read_and_update_promotion_switches(self):
        current = self.client.get("/api/v1/settings/")
        self.assertEqual(current.status_code, 200)
        self.assertEqual(current.data["business_name"], "Shynny Autowash")

        updated = self.client.patch(
            "/api/v1/settings/",
            {"promo_free_enabled": True, "promo_free_prob": "0.0500", "promo_free_daily_cap": 3},
            format="json",
        )
        self.assertEqual(updated.status_code, 200)

        settings = get_promotion_settings()
        self.assertTrue(settings.promo_free_enabled)
        self.assertEqual(settings.promo_free_prob, Decimal("0.0500"))
        self.assertEqual(settings.promo_free_daily_cap, 3)

        entry = AuditLog.objects.get(action="settings.update")
        self.assertIn("promo_free_enabled", entry.payload)
        self.assertNotIn("business_name", entry.payload)

    def test_out_of_range_values_are_rejected(self):
        response = self.client.patch(
            "/api/v1/settings/",
            {"promo_free_prob": "1.5000", "default_commission_pct": "101.00"},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("promo_free_prob", response.data["fields"])
        self.assertIn("default_commission_pct", response.data["fields"])
