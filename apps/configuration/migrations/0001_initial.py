from decimal import Decimal

from django.db import migrations, models


def seed_settings(apps, schema_editor):
    AppSettings = apps.get_model("configuration", "AppSettings")
    AppSettings.objects.get_or_create(pk=1)


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="AppSettings",
            fields=[
                ("id", models.PositiveSmallIntegerField(default=1, editable=False, primary_key=True, serialize=False)),
                ("business_name", models.CharField(default="Shynny Autowash", max_length=120)),
                ("business_address", models.CharField(blank=True, default="", max_length=255)),
                ("business_phone", models.CharField(blank=True, default="", max_length=50)),
                ("currency_code", models.CharField(default="KES", max_length=3)),
                ("default_commission_pct", models.DecimalField(decimal_places=2, default=Decimal("30.00"), max_digits=5)),
                ("receipt_header", models.CharField(blank=True, default="", max_length=255)),
                ("receipt_footer", models.CharField(blank=True, default="Thank you for your business!", max_length=255)),
                ("show_staff_on_receipt", models.BooleanField(default=True)),
                ("promo_free_enabled", models.BooleanField(default=False)),
                ("promo_free_prob", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=5)),
                ("promo_free_min_visits", models.PositiveIntegerField(default=0)),
                ("promo_free_daily_cap", models.PositiveIntegerField(default=0)),
                ("featured_free_once_per_month", models.BooleanField(default=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "app settings",
                "verbose_name_plural": "app settings",
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(default_commission_pct__gte=0, default_commission_pct__lte=100),
                        name="appsettings_commission_pct_range",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(promo_free_prob__gte=0, promo_free_prob__lte=1),
                        name="appsettings_promo_prob_range",
                    ),
                ],
            },
        ),
        migrations.RunPython(seed_settings, migrations.RunPython.noop),
    ]
