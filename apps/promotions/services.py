from django.db import IntegrityError, transaction

from apps.common.periods import month_start
from apps.customers.models import normalize_plate
from apps.promotions.models import FeaturedVehicle


def feature_vehicle(*, vehicle_reg, month, operator=None):
    """Mark a plate as featured for ``month``; returns ``(entry, created)``."""
    plate = normalize_plate(vehicle_reg)
    first_day = month_start(month)
    existing = FeaturedVehicle.objects.filter(vehicle_reg=plate, month=first_day).first()
    if existing:
        return existing, False
    try:
        with transaction.atomic():
            entry = FeaturedVehicle.objects.create(vehicle_reg=plate, month=first_day, featured_by=operator)
    except IntegrityError:
        return FeaturedVehicle.objects.get(vehicle_reg=plate, month=first_day), False
    return entry, True


def mark_featured_used(plate, moment):
    FeaturedVehicle.objects.filter(vehicle_reg=plate, month=month_start(moment), used_at__isnull=True).update(used_at=moment)
