import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

DEFAULT_PROMOTIONS = [
    ("featured-vehicle", "Featured Vehicle", "One free wash per month for a featured plate."),
    ("loyalty-13th", "Loyalty 13th Wash", "Every 13th wash in a calendar month is free."),
    ("random-free", "Random Free Wash", "Random free wash for returning customers."),
]


def seed_promotions(apps, schema_editor):
    Promotion = apps.get_model("promotions", "Promotion")
    for code, name, description in DEFAULT_PROMOTIONS:
        Promotion.objects.get_or_create(code=code, defaults={"name": name, "description": description})


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Promotion",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "code",
                    models.CharField(
                        choices=[
                            ("featured-vehicle", "Featured vehicle"),
                            ("loyalty-13th", "Loyalty 13th wash"),
                            ("random-free", "Random free wash"),
                        ],
                        max_length=40,
                        unique=True,
                    ),
                ),
                ("name", models.CharField(max_length=120)),
                ("description", models.CharField(blank=True, max_length=255)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={"ordering": ["code"]},
        ),
        migrations.CreateModel(
            name="FeaturedVehicle",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("vehicle_reg", models.CharField(max_length=20)),
                ("month", models.DateField(help_text="First day of the featured calendar month.")),
                ("used_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "featured_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="featured_vehicles",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(fields=["vehicle_reg", "month"], name="unique_featured_vehicle_per_month"),
                ],
            },
        ),
        migrations.RunPython(seed_promotions, migrations.RunPython.noop),
    ]
