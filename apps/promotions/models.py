import uuid

from django.conf import settings
from django.db import models


class PromotionCode(models.TextChoices):
    FEATURED_VEHICLE = "featured-vehicle", "Featured vehicle"
    LOYALTY_13TH = "loyalty-13th", "Loyalty 13th wash"
    RANDOM_FREE = "random-free", "Random free wash"


class Promotion(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    code = models.CharField(max_length=40, choices=PromotionCode.choices, unique=True)
    name = models.CharField(max_length=120)
    description = models.CharField(max_length=255, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["code"]

    def __str__(self):
        return f"{self.name} ({self.code})"


class FeaturedVehicle(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    vehicle_reg = models.CharField(max_length=20)
    month = models.DateField(help_text="First day of the featured calendar month.")
    featured_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="featured_vehicles",
    )
    used_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["vehicle_reg", "month"], name="unique_featured_vehicle_per_month"),
        ]

    def save(self, *args, **kwargs):
        self.month = self.month.replace(day=1)
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.vehicle_reg} {self.month:%Y-%m}"
