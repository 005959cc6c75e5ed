import logging

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from apps.audit.services import record_audit
from apps.catalog.models import price_for
from apps.configuration.services import get_promotion_settings
from apps.customers.models import normalize_plate
from apps.customers.services import record_visit
from apps.promotions.models import PromotionCode
from apps.promotions.rewards import RewardRequest, evaluate_reward
from apps.promotions.services import mark_featured_used
from apps.washes.models import Wash
from apps.washes.money import compute_money, generate_receipt_no, quantize_money

logger = logging.getLogger(__name__)


def receipt_exists(receipt_no):
    return Wash.objects.filter(receipt_no=receipt_no).exists()


def resolve_price(service, car_type, unit_price=None):
    if unit_price is not None:
        return quantize_money(unit_price)
    price = price_for(service, car_type)
    if price is None:
        raise ValidationError({"unit_price": "Price not configured for service & car type."})
    return quantize_money(price)


def create_wash(
    *,
    service,
    car_type,
    actor=None,
    staff=None,
    unit_price=None,
    commission_pct=None,
    washed_at=None,
    customer_name="",
    customer_phone="",
    vehicle_reg="",
    settings_provider=get_promotion_settings,
    rng=None,
):
    """Price, reward and record a wash; the row and the customer's visit counter are written together."""
    washed_at = washed_at or timezone.now()
    plate = normalize_plate(vehicle_reg)
    price = resolve_price(service, car_type, unit_price)

    with transaction.atomic():
        decision = evaluate_reward(
            RewardRequest(
                proposed_price=price,
                commission_pct=commission_pct,
                washed_at=washed_at,
                phone=customer_phone,
                vehicle_reg=plate,
                customer_name=customer_name,
            ),
            settings_provider=settings_provider,
            rng=rng,
        )
        commission_amount, profit_amount = compute_money(decision.effective_price, decision.effective_commission_pct)

        wash = Wash.objects.create(
            receipt_no=generate_receipt_no(exists=receipt_exists),
            service=service,
            car_type=car_type,
            staff=staff,
            customer=decision.customer,
            promotion=decision.promotion,
            promo_code=decision.promo_code or "",
            vehicle_reg=plate,
            unit_price=quantize_money(decision.effective_price),
            commission_pct=decision.effective_commission_pct,
            commission_amount=commission_amount,
            profit_amount=profit_amount,
            is_free=decision.is_free,
            washed_at=washed_at,
            created_by=actor if getattr(actor, "is_authenticated", False) else None,
        )
        if decision.customer is not None:
            record_visit(decision.customer, washed_at)
        if decision.promo_code == PromotionCode.FEATURED_VEHICLE:
            mark_featured_used(plate, washed_at)

        record_audit(
            actor=actor,
            action="wash.create",
            entity_type="wash",
            entity_id=wash.id,
            payload={
                "receipt_no": wash.receipt_no,
                "unit_price": str(wash.unit_price),
                "is_free": wash.is_free,
                "promo_code": wash.promo_code,
            },
        )

    logger.info(
        "wash %s recorded: price=%s free=%s promo=%s",
        wash.receipt_no,
        wash.unit_price,
        wash.is_free,
        wash.promo_code or "-",
    )
    return wash


UPDATABLE_FIELDS = ("service", "car_type", "staff", "unit_price", "commission_pct", "washed_at", "vehicle_reg")


def update_wash(wash, *, actor=None, **changes):
    """Apply explicit edits and recompute commission and profit from the resulting price and percentage."""
    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError({field: "This field cannot be updated." for field in sorted(unknown)})

    before = {"unit_price": str(wash.unit_price), "commission_pct": str(wash.commission_pct)}
    for field, value in changes.items():
        if field == "vehicle_reg":
            value = normalize_plate(value)
        elif field == "unit_price":
            value = quantize_money(value)
        setattr(wash, field, value)

    wash.commission_amount, wash.profit_amount = compute_money(wash.unit_price, wash.commission_pct)

    with transaction.atomic():
        wash.save()
        record_audit(
            actor=actor,
            action="wash.update",
            entity_type="wash",
            entity_id=wash.id,
            payload={
                "changed": sorted(changes),
                "before": before,
                "after": {"unit_price": str(wash.unit_price), "commission_pct": str(wash.commission_pct)},
            },
        )
    return wash


def delete_wash(wash, *, actor=None):
    with transaction.atomic():
        record_audit(
            actor=actor,
            action="wash.delete",
            entity_type="wash",
            entity_id=wash.id,
            payload={"receipt_no": wash.receipt_no, "unit_price": str(wash.unit_price)},
        )
        wash.delete()
