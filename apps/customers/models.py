import re
import uuid

from django.db import models


def normalize_phone(value):
    raw = str(value or "").strip()
    normalized = re.sub(r"\D+", "", raw)
    return normalized or raw


def normalize_plate(value):
    return re.sub(r"[\s-]+", "", str(value or "")).upper()


class Customer(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255, blank=True)
    phone = models.CharField(max_length=50, null=True, blank=True)
    phone_normalized = models.CharField(max_length=50, null=True, blank=True)
    vehicle_reg = models.CharField(max_length=20, null=True, blank=True)
    visits_count = models.PositiveIntegerField(default=0)
    last_visit = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-last_visit", "-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["phone_normalized"],
                condition=models.Q(phone_normalized__isnull=False),
                name="unique_customer_phone_normalized",
            ),
            models.CheckConstraint(
                condition=models.Q(phone_normalized__isnull=False) | models.Q(vehicle_reg__isnull=False),
                name="customer_phone_or_plate_required",
            ),
        ]
        indexes = [
            models.Index(fields=["vehicle_reg"], name="customer_vehicle_reg_idx"),
            models.Index(fields=["name"], name="customer_name_idx"),
        ]

    def save(self, *args, **kwargs):
        self.name = str(self.name or "").strip()
        self.phone = str(self.phone or "").strip() or None
        self.phone_normalized = normalize_phone(self.phone) if self.phone else None
        self.vehicle_reg = normalize_plate(self.vehicle_reg) or None
        super().save(*args, **kwargs)

    def __str__(self):
        return self.name or self.phone or self.vehicle_reg or str(self.id)
