import random
import time
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings

CENT = Decimal("0.01")
RECEIPT_ATTEMPTS = 5


def quantize_money(value) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def compute_money(price, commission_pct):
    """Return ``(commission_amount, profit_amount)``; the two always add up to ``price``."""
    price = quantize_money(price)
    commission = quantize_money(price * Decimal(commission_pct) / Decimal("100"))
    profit = quantize_money(price - commission)
    return commission, profit


def _millis():
    return int(time.time() * 1000)


def generate_receipt_no(*, exists, rng=None, clock=None, prefix=None):
    """Short receipt number: prefix, last 5 digits of the millisecond clock and 2 random digits.

    ``exists`` is called with each candidate; after the bounded retries the full
    millisecond timestamp is used instead.
    """
    rng = rng or random
    clock = clock or _millis
    prefix = prefix if prefix is not None else settings.RECEIPT_PREFIX

    for _ in range(RECEIPT_ATTEMPTS):
        candidate = f"{prefix}{str(clock())[-5:]}{rng.randint(10, 99)}"
        if not exists(candidate):
            return candidate
    return f"{prefix}{clock()}"
