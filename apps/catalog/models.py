import uuid

from django.db import models


def normalize_label(value: str) -> str:
    return " ".join(str(value or "").split())


class CarType(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    label = models.CharField(max_length=80, unique=True)
    description = models.CharField(max_length=255, blank=True)
    sort_order = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["sort_order", "label"]

    def save(self, *args, **kwargs):
        self.label = normalize_label(self.label)
        super().save(*args, **kwargs)

    def __str__(self):
        return self.label


class Service(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=120, unique=True)
    description = models.CharField(max_length=255, blank=True)
    base_price = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(condition=models.Q(base_price__gte=0), name="service_base_price_gte_zero"),
        ]

    def save(self, *args, **kwargs):
        self.name = normalize_label(self.name)
        super().save(*args, **kwargs)

    def __str__(self):
        return self.name


class ServicePrice(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    service = models.ForeignKey(Service, on_delete=models.CASCADE, related_name="prices")
    car_type = models.ForeignKey(CarType, on_delete=models.CASCADE, related_name="prices")
    price = models.DecimalField(max_digits=12, decimal_places=2)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["service", "car_type"], name="unique_price_per_service_car_type"),
            models.CheckConstraint(condition=models.Q(price__gte=0), name="serviceprice_price_gte_zero"),
        ]

    def __str__(self):
        return f"{self.service} / {self.car_type}: {self.price}"


def price_for(service, car_type):
    row = ServicePrice.objects.filter(service=service, car_type=car_type).only("price").first()
    return row.price if row else None
