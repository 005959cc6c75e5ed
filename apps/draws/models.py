import uuid

from django.conf import settings
from django.db import models


class WinnerStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    APPROVED = "APPROVED", "Approved"
    REVOKED = "REVOKED", "Revoked"


class DailyFreeCandidate(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    draw_date = models.DateField(db_index=True)
    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="draw_candidacies",
    )
    vehicle_reg = models.CharField(max_length=20, blank=True)
    customer_phone = models.CharField(max_length=50, blank=True)
    customer_name = models.CharField(max_length=255, blank=True)
    washes_in_month = models.PositiveIntegerField(default=0)
    last_wash = models.DateTimeField(null=True, blank=True)
    eligible_reason = models.CharField(max_length=120, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["draw_date", "-washes_in_month", "-last_wash"]
        constraints = [
            models.UniqueConstraint(
                fields=["draw_date", "customer", "vehicle_reg"],
                name="unique_candidate_per_day",
            ),
        ]

    def __str__(self):
        return f"{self.draw_date} {self.customer_name or self.vehicle_reg or self.customer_phone}"


class DailyFreeWinner(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    draw_date = models.DateField(db_index=True)
    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="daily_wins",
    )
    vehicle_reg = models.CharField(max_length=20, blank=True)
    customer_phone = models.CharField(max_length=50, blank=True)
    customer_name = models.CharField(max_length=255, blank=True)
    status = models.CharField(max_length=10, choices=WinnerStatus.choices, default=WinnerStatus.APPROVED)
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    revoked_at = models.DateTimeField(null=True, blank=True)
    used_at = models.DateTimeField(null=True, blank=True)
    note = models.TextField(blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-draw_date", "-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["draw_date"],
                condition=models.Q(status="APPROVED"),
                name="unique_approved_winner_per_day",
            ),
        ]

    def __str__(self):
        return f"{self.draw_date} {self.status} {self.customer_name or self.vehicle_reg}"
