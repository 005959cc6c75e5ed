from decimal import Decimal

from django.db import models

DEFAULT_COMMISSION_PCT = Decimal("30.00")


class AppSettings(models.Model):
    id = models.PositiveSmallIntegerField(primary_key=True, default=1, editable=False)
    business_name = models.CharField(max_length=120, default="Shynny Autowash")
    business_address = models.CharField(max_length=255, blank=True, default="")
    business_phone = models.CharField(max_length=50, blank=True, default="")
    currency_code = models.CharField(max_length=3, default="KES")
    default_commission_pct = models.DecimalField(max_digits=5, decimal_places=2, default=DEFAULT_COMMISSION_PCT)
    receipt_header = models.CharField(max_length=255, blank=True, default="")
    receipt_footer = models.CharField(max_length=255, blank=True, default="Thank you for your business!")
    show_staff_on_receipt = models.BooleanField(default=True)
    promo_free_enabled = models.BooleanField(default=False)
    promo_free_prob = models.DecimalField(max_digits=5, decimal_places=4, default=Decimal("0"))
    promo_free_min_visits = models.PositiveIntegerField(default=0)
    promo_free_daily_cap = models.PositiveIntegerField(default=0)
    featured_free_once_per_month = models.BooleanField(default=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "app settings"
        verbose_name_plural = "app settings"
        constraints = [
            models.CheckConstraint(
                condition=models.Q(default_commission_pct__gte=0, default_commission_pct__lte=100),
                name="appsettings_commission_pct_range",
            ),
            models.CheckConstraint(
                condition=models.Q(promo_free_prob__gte=0, promo_free_prob__lte=1),
                name="appsettings_promo_prob_range",
            ),
        ]

    @classmethod
    def get_solo(cls):
        obj, _ = cls.objects.get_or_create(pk=1)
        return obj

    def save(self, *args, **kwargs):
        self.pk = 1
        super().save(*args, **kwargs)

    def __str__(self):
        return self.business_name
