from dataclasses import dataclass
from decimal import Decimal

from apps.configuration.models import AppSettings


@dataclass(frozen=True)
class PromotionSettings:
    promo_free_enabled: bool = False
    promo_free_prob: Decimal = Decimal("0")
    promo_free_min_visits: int = 0
    promo_free_daily_cap: int = 0
    featured_free_once_per_month: bool = True
    default_commission_pct: Decimal = Decimal("30.00")


def get_promotion_settings() -> PromotionSettings:
    row = AppSettings.get_solo()
    return PromotionSettings(
        promo_free_enabled=row.promo_free_enabled,
        promo_free_prob=Decimal(row.promo_free_prob),
        promo_free_min_visits=row.promo_free_min_visits,
        promo_free_daily_cap=row.promo_free_daily_cap,
        featured_free_once_per_month=row.featured_free_once_per_month,
        default_commission_pct=Decimal(row.default_commission_pct),
    )
