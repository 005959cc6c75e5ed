import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("customers", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="DailyFreeCandidate",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("draw_date", models.DateField(db_index=True)),
                ("vehicle_reg", models.CharField(blank=True, max_length=20)),
                ("customer_phone", models.CharField(blank=True, max_length=50)),
                ("customer_name", models.CharField(blank=True, max_length=255)),
                ("washes_in_month", models.PositiveIntegerField(default=0)),
                ("last_wash", models.DateTimeField(blank=True, null=True)),
                ("eligible_reason", models.CharField(blank=True, max_length=120)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="draw_candidacies",
                        to="customers.customer",
                    ),
                ),
            ],
            options={
                "ordering": ["draw_date", "-washes_in_month", "-last_wash"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=["draw_date", "customer", "vehicle_reg"],
                        name="unique_candidate_per_day",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="DailyFreeWinner",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("draw_date", models.DateField(db_index=True)),
                ("vehicle_reg", models.CharField(blank=True, max_length=20)),
                ("customer_phone", models.CharField(blank=True, max_length=50)),
                ("customer_name", models.CharField(blank=True, max_length=255)),
                (
                    "status",
                    models.CharField(
                        choices=[("PENDING", "Pending"), ("APPROVED", "Approved"), ("REVOKED", "Revoked")],
                        default="APPROVED",
                        max_length=10,
                    ),
                ),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                ("revoked_at", models.DateTimeField(blank=True, null=True)),
                ("used_at", models.DateTimeField(blank=True, null=True)),
                ("note", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "approved_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="daily_wins",
                        to="customers.customer",
                    ),
                ),
            ],
            options={
                "ordering": ["-draw_date", "-created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(status="APPROVED"),
                        fields=["draw_date"],
                        name="unique_approved_winner_per_day",
                    ),
                ],
            },
        ),
    ]
