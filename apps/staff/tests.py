from django.contrib.auth import get_user_model
from rest_framework.test import APITestCase

from apps.audit.models import AuditLog
from apps.staff.models import Staff

User = get_user_model()


class StaffApiTests(APITestCase):
    def setUp(self):
        self.manager = User.objects.create_user(username="manager", password="manager123", role="MANAGER")

    def auth(self, username, password):
        response = self.client.post(
            "/api/v1/auth/token/",
            {"username": username, "password": password},
            format="json",
        )
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")

    def test_manager_can_register_and_search_staff(self):
        self.auth("manager", "manager123")
        created = self.client.post(
            "/api/v1/staff/",
            {"name": "Brian Otieno", "phone": "0712 345 678", "role_label": "Washer"},
            format="json",
        )
        self.assertEqual(created.status_code, 201)
        Staff.objects.create(name="Alice Wanjiru")

        found = self.client.get("/api/v1/staff/?q=brian")
        self.assertEqual(found.status_code, 200)
        self.assertEqual(found.data["count"], 1)
        self.assertEqual(found.data["results"][0]["name"], "Brian Otieno")
        self.assertTrue(AuditLog.objects.filter(action="staff.create", entity_id=created.data["id"]).exists())

    def test_delete_deactivates_staff_member(self):
        self.auth("manager", "manager123")
        member = Staff.objects.create(name="Kevin")

        response = self.client.delete(f"/api/v1/staff/{member.id}/")
        self.assertEqual(response.status_code, 204)

        member.refresh_from_db()
        self.assertFalse(member.is_active)
        active = self.client.get("/api/v1/staff/?active=true")
        self.assertEqual(active.data["count"], 0)

    def test_blank_name_is_rejected(self):
        self.auth("manager", "manager123")
        response = self.client.post("/api/v1/staff/", {"name": "   "}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("name", response.data["fields"])
