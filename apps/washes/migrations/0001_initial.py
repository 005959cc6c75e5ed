import uuid

import django.db.models.deletion
import django.db.models.functions.math
import django.db.models.lookups
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("catalog", "0001_initial"),
        ("customers", "0001_initial"),
        ("promotions", "0001_initial"),
        ("staff", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Wash",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("receipt_no", models.CharField(blank=True, max_length=40, null=True, unique=True)),
                ("promo_code", models.CharField(blank=True, db_index=True, max_length=40)),
                ("vehicle_reg", models.CharField(blank=True, db_index=True, max_length=20)),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("commission_pct", models.DecimalField(decimal_places=2, max_digits=5)),
                ("commission_amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("profit_amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("is_free", models.BooleanField(default=False)),
                ("washed_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "car_type",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="washes",
                        to="catalog.cartype",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="washes_recorded",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="washes",
                        to="customers.customer",
                    ),
                ),
                (
                    "promotion",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="washes",
                        to="promotions.promotion",
                    ),
                ),
                (
                    "service",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="washes",
                        to="catalog.service",
                    ),
                ),
                (
                    "staff",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="washes",
                        to="staff.staff",
                    ),
                ),
            ],
            options={
                "ordering": ["-washed_at"],
                "indexes": [
                    models.Index(fields=["customer", "washed_at"], name="wash_customer_washed_idx"),
                    models.Index(fields=["is_free", "promo_code", "washed_at"], name="wash_free_promo_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(unit_price__gte=0), name="wash_unit_price_gte_zero"),
                    models.CheckConstraint(
                        condition=models.Q(commission_pct__gte=0, commission_pct__lte=100),
                        name="wash_commission_pct_range",
                    ),
                    models.CheckConstraint(
                        condition=django.db.models.lookups.Exact(
                            django.db.models.functions.math.Round(models.F("unit_price") * 100),
                            django.db.models.functions.math.Round(models.F("commission_amount") * 100)
                            + django.db.models.functions.math.Round(models.F("profit_amount") * 100),
                        ),
                        name="wash_money_balances",
                    ),
                ],
            },
        ),
    ]
