import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Customer",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(blank=True, max_length=255)),
                ("phone", models.CharField(blank=True, max_length=50, null=True)),
                ("phone_normalized", models.CharField(blank=True, max_length=50, null=True)),
                ("vehicle_reg", models.CharField(blank=True, max_length=20, null=True)),
                ("visits_count", models.PositiveIntegerField(default=0)),
                ("last_visit", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["-last_visit", "-created_at"],
                "indexes": [
                    models.Index(fields=["vehicle_reg"], name="customer_vehicle_reg_idx"),
                    models.Index(fields=["name"], name="customer_name_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(phone_normalized__isnull=False),
                        fields=["phone_normalized"],
                        name="unique_customer_phone_normalized",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(phone_normalized__isnull=False) | models.Q(vehicle_reg__isnull=False),
                        name="customer_phone_or_plate_required",
                    ),
                ],
            },
        ),
    ]
