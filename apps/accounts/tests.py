from io import StringIO

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.core.management import call_command
from django.test import TestCase

from apps.accounts.models import UserRole
from apps.common.permissions import resolve_role

User = get_user_model()


class RoleTests(TestCase):
    def test_group_membership_overrides_role_field(self):
        user = User.objects.create_user(username="jane", password="secret123", role=UserRole.MANAGER)
        self.assertEqual(resolve_role(user), UserRole.MANAGER)

        user.groups.add(Group.objects.create(name=UserRole.ADMIN))
        self.assertEqual(resolve_role(user), UserRole.ADMIN)

    def test_seed_roles_creates_groups_and_admin(self):
        call_command(
            "seed_roles",
            "--admin-username",
            "owner",
            "--admin-password",
            "owner-pass-123",
            stdout=StringIO(),
        )
        call_command("seed_roles", stdout=StringIO())

        self.assertEqual(set(Group.objects.values_list("name", flat=True)), {"ADMIN", "MANAGER"})
        owner = User.objects.get(username="owner")
        self.assertEqual(owner.role, UserRole.ADMIN)
        self.assertTrue(owner.check_password("owner-pass-123"))
        self.assertTrue(owner.groups.filter(name="ADMIN").exists())
