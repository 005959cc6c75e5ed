from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.core.management.base import BaseCommand

from apps.accounts.models import UserRole


class Command(BaseCommand):
    help = "Create the ADMIN/MANAGER role groups and, optionally, a first admin account."

    def add_arguments(self, parser):
        parser.add_argument("--admin-username", default="")
        parser.add_argument("--admin-password", default="")
        parser.add_argument("--admin-email", default="")

    def handle(self, *args, **options):
        groups = {}
        for role in UserRole.values:
            group, created = Group.objects.get_or_create(name=role)
            groups[role] = group
            self.stdout.write(self.style.SUCCESS(f"group {group.name}: {'created' if created else 'exists'}"))

        username = options["admin_username"].strip()
        if not username:
            return
        if not options["admin_password"]:
            self.stderr.write(self.style.ERROR("--admin-password is required together with --admin-username"))
            return

        User = get_user_model()
        user, created = User.objects.get_or_create(
            username=username,
            defaults={"email": options["admin_email"], "role": UserRole.ADMIN, "is_staff": True},
        )
        if created:
            user.set_password(options["admin_password"])
            user.save(update_fields=["password"])
        user.groups.add(groups[UserRole.ADMIN])
        self.stdout.write(self.style.SUCCESS(f"admin {user.username}: {'created' if created else 'exists'}"))
