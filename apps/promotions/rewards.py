"""Free-wash reward evaluation.

Every wash runs through an ordered list of reward policies. The first policy
that grants wins, so a wash is never free under two tracks at once:

1. featured vehicle (plate featured for the wash's month)
2. loyalty (every 13th wash of a customer in a calendar month)
3. random free wash (configured probability, visit threshold and daily cap)

Any failure while evaluating degrades to a paid wash. Creating the wash must
never fail because a promotion lookup did.
"""

import logging
import random
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from django.db import DatabaseError, transaction
from django.utils import timezone

from apps.common.periods import day_bounds, month_bounds, month_start
from apps.configuration.models import DEFAULT_COMMISSION_PCT
from apps.configuration.services import PromotionSettings, get_promotion_settings
from apps.customers.models import normalize_plate
from apps.customers.services import count_washes_in_month, find_or_create_customer
from apps.promotions.models import FeaturedVehicle, Promotion, PromotionCode
from apps.washes.models import Wash

logger = logging.getLogger(__name__)

LOYALTY_CYCLE = 13


class DependencyError(Exception):
    """A settings or history lookup needed by a reward policy failed."""


@dataclass(frozen=True)
class RewardRequest:
    proposed_price: Decimal
    commission_pct: Decimal | None = None
    washed_at: datetime | None = None
    phone: str = ""
    vehicle_reg: str = ""
    customer_name: str = ""


@dataclass(frozen=True)
class RewardGrant:
    promo_code: str
    promotion: Promotion | None = None


@dataclass(frozen=True)
class RewardDecision:
    is_free: bool
    effective_price: Decimal
    effective_commission_pct: Decimal
    promo_code: str | None = None
    promotion: Promotion | None = None
    customer: object = None

    @classmethod
    def free(cls, grant, customer):
        return cls(
            is_free=True,
            effective_price=Decimal("0.00"),
            effective_commission_pct=Decimal("0.00"),
            promo_code=grant.promo_code,
            promotion=grant.promotion,
            customer=customer,
        )

    @classmethod
    def paid(cls, price, commission_pct, customer):
        return cls(
            is_free=False,
            effective_price=Decimal(price),
            effective_commission_pct=Decimal(commission_pct),
            customer=customer,
        )


@dataclass(frozen=True)
class RewardContext:
    settings: PromotionSettings
    customer: object
    plate: str
    moment: datetime
    rng: object


def get_active_promotion(code):
    return Promotion.objects.filter(code=code, is_active=True).first()


def is_vehicle_featured_for_month(plate, moment):
    if not plate:
        return False
    return FeaturedVehicle.objects.filter(vehicle_reg=plate, month=month_start(moment)).exists()


def has_consumed_featured_reward(plate, moment):
    if not plate:
        return False
    start, end = month_bounds(moment)
    return Wash.objects.filter(
        vehicle_reg=plate,
        is_free=True,
        promo_code=PromotionCode.FEATURED_VEHICLE,
        washed_at__gte=start,
        washed_at__lt=end,
    ).exists()


def count_free_random_washes_on(moment):
    start, end = day_bounds(moment)
    return Wash.objects.filter(
        is_free=True,
        promo_code=PromotionCode.RANDOM_FREE,
        washed_at__gte=start,
        washed_at__lt=end,
    ).count()


class FeaturedVehiclePolicy:
    code = PromotionCode.FEATURED_VEHICLE

    def evaluate(self, context):
        if not is_vehicle_featured_for_month(context.plate, context.moment):
            return None
        if context.settings.featured_free_once_per_month and has_consumed_featured_reward(context.plate, context.moment):
            return None
        promotion = get_active_promotion(self.code)
        if promotion is None:
            return None
        return RewardGrant(self.code, promotion)


class LoyaltyPolicy:
    code = PromotionCode.LOYALTY_13TH

    def evaluate(self, context):
        if context.customer is None:
            return None
        previous = count_washes_in_month(context.customer, context.moment)
        if (previous + 1) % LOYALTY_CYCLE != 0:
            return None
        # The loyalty wash is free even while the promotion row is switched off.
        return RewardGrant(self.code, get_active_promotion(self.code))


class RandomFreePolicy:
    code = PromotionCode.RANDOM_FREE

    def evaluate(self, context):
        settings = context.settings
        if not settings.promo_free_enabled or context.customer is None:
            return None
        if context.customer.visits_count < settings.promo_free_min_visits:
            return None
        if settings.promo_free_daily_cap and count_free_random_washes_on(context.moment) >= settings.promo_free_daily_cap:
            return None
        if context.rng.random() >= float(settings.promo_free_prob):
            return None
        promotion = get_active_promotion(self.code)
        if promotion is None:
            return None
        return RewardGrant(self.code, promotion)


REWARD_POLICIES = (FeaturedVehiclePolicy(), LoyaltyPolicy(), RandomFreePolicy())


def _load_settings(settings_provider):
    try:
        return settings_provider()
    except Exception as exc:
        raise DependencyError("promotion settings are unavailable") from exc


def _resolve_customer(request):
    try:
        with transaction.atomic():
            return find_or_create_customer(
                phone=request.phone,
                vehicle_reg=request.vehicle_reg,
                name=request.customer_name,
            )
    except DatabaseError:
        logger.warning("customer lookup failed; wash recorded without a customer", exc_info=True)
        return None


def evaluate_reward(request, *, settings_provider=get_promotion_settings, rng=None, policies=REWARD_POLICIES):
    """Decide whether the wash described by ``request`` is free and under which promotion."""
    rng = rng or random
    moment = request.washed_at or timezone.now()
    plate = normalize_plate(request.vehicle_reg)
    customer = _resolve_customer(request)

    try:
        with transaction.atomic():
            settings = _load_settings(settings_provider)
            context = RewardContext(settings=settings, customer=customer, plate=plate, moment=moment, rng=rng)
            for policy in policies:
                try:
                    grant = policy.evaluate(context)
                except DatabaseError as exc:
                    raise DependencyError(f"{policy.code} history lookup failed") from exc
                if grant is not None:
                    logger.info("free wash granted: %s (plate=%s customer=%s)", grant.promo_code, plate or "-", getattr(customer, "id", "-"))
                    return RewardDecision.free(grant, customer)
    except Exception:
        logger.warning("reward evaluation skipped; charging the wash normally", exc_info=True)
        fallback_pct = request.commission_pct if request.commission_pct is not None else DEFAULT_COMMISSION_PCT
        return RewardDecision.paid(request.proposed_price, fallback_pct, customer)

    commission_pct = request.commission_pct if request.commission_pct is not None else settings.default_commission_pct
    return RewardDecision.paid(request.proposed_price, commission_pct, customer)
