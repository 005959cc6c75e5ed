import uuid

from django.conf import settings
from django.db import models
from django.db.models.functions import Round
from django.db.models.lookups import Exact
from django.utils import timezone


class Wash(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    receipt_no = models.CharField(max_length=40, unique=True, null=True, blank=True)
    service = models.ForeignKey("catalog.Service", on_delete=models.PROTECT, related_name="washes")
    car_type = models.ForeignKey("catalog.CarType", on_delete=models.PROTECT, related_name="washes")
    staff = models.ForeignKey("staff.Staff", on_delete=models.SET_NULL, null=True, blank=True, related_name="washes")
    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="washes",
    )
    promotion = models.ForeignKey(
        "promotions.Promotion",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="washes",
    )
    promo_code = models.CharField(max_length=40, blank=True, db_index=True)
    vehicle_reg = models.CharField(max_length=20, blank=True, db_index=True)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    commission_pct = models.DecimalField(max_digits=5, decimal_places=2)
    commission_amount = models.DecimalField(max_digits=12, decimal_places=2)
    profit_amount = models.DecimalField(max_digits=12, decimal_places=2)
    is_free = models.BooleanField(default=False)
    washed_at = models.DateTimeField(default=timezone.now, db_index=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="washes_recorded",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-washed_at"]
        constraints = [
            models.CheckConstraint(condition=models.Q(unit_price__gte=0), name="wash_unit_price_gte_zero"),
            models.CheckConstraint(
                condition=models.Q(commission_pct__gte=0, commission_pct__lte=100),
                name="wash_commission_pct_range",
            ),
            models.CheckConstraint(
                condition=Exact(
                    Round(models.F("unit_price") * 100),
                    Round(models.F("commission_amount") * 100) + Round(models.F("profit_amount") * 100),
                ),
                name="wash_money_balances",
            ),
        ]
        indexes = [
            models.Index(fields=["customer", "washed_at"], name="wash_customer_washed_idx"),
            models.Index(fields=["is_free", "promo_code", "washed_at"], name="wash_free_promo_idx"),
        ]

    def __str__(self):
        return self.receipt_no or str(self.id)
