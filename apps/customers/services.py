import logging

from django.db import IntegrityError, transaction
from django.db.models import F, Q
from django.utils import timezone

from apps.common.periods import month_bounds
from apps.customers.models import Customer, normalize_phone, normalize_plate

logger = logging.getLogger(__name__)


def find_customer(*, phone="", vehicle_reg=""):
    """Phone wins over plate when both are given."""
    phone_normalized = normalize_phone(phone) if str(phone or "").strip() else ""
    plate = normalize_plate(vehicle_reg)
    if phone_normalized:
        customer = Customer.objects.filter(phone_normalized=phone_normalized).first()
        if customer:
            return customer
    if plate:
        return Customer.objects.filter(vehicle_reg=plate).order_by("created_at").first()
    return None


def register_customer(*, phone="", vehicle_reg="", name=""):
    """Return ``(customer, created)`` for the given identity, or ``(None, False)`` without one."""
    phone = str(phone or "").strip()
    plate = normalize_plate(vehicle_reg)
    name = str(name or "").strip()
    if not phone and not plate:
        return None, False

    customer = find_customer(phone=phone, vehicle_reg=plate)
    if customer is None:
        try:
            with transaction.atomic():
                customer = Customer.objects.create(phone=phone or None, vehicle_reg=plate or None, name=name)
        except IntegrityError:
            # Another request registered the same phone first.
            customer = find_customer(phone=phone, vehicle_reg=plate)
            if customer is None:
                raise
        else:
            logger.info("customer %s registered (phone=%s plate=%s)", customer.id, phone or "-", plate or "-")
            return customer, True

    updated_fields = []
    if name and not customer.name:
        customer.name = name
        updated_fields.append("name")
    if plate and not customer.vehicle_reg:
        customer.vehicle_reg = plate
        updated_fields.append("vehicle_reg")
    if updated_fields:
        updated_fields.append("updated_at")
        customer.save(update_fields=updated_fields)
    return customer, False


def find_or_create_customer(*, phone="", vehicle_reg="", name=""):
    return register_customer(phone=phone, vehicle_reg=vehicle_reg, name=name)[0]


def count_washes_in_month(customer, moment):
    """Washes recorded for ``customer`` in the calendar month containing ``moment``."""
    start, end = month_bounds(moment)
    return customer.washes.filter(washed_at__gte=start, washed_at__lt=end).count()


def record_visit(customer, moment):
    Customer.objects.filter(pk=customer.pk).update(visits_count=F("visits_count") + 1, updated_at=timezone.now())
    # Backdated washes do not move last_visit backwards.
    Customer.objects.filter(pk=customer.pk).filter(Q(last_visit__isnull=True) | Q(last_visit__lt=moment)).update(
        last_visit=moment
    )
    customer.refresh_from_db(fields=["visits_count", "last_visit", "updated_at"])
    return customer
