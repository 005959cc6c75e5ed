"""Daily free-wash draw.

Regular customers who reach ``min_washes`` matching washes in a month become
candidates. An operator (or the nightly command) draws one of them and
approves them as the winner for a date. A date holds at most one APPROVED
winner; the partial unique index on ``DailyFreeWinner`` enforces it and the
lookups done here only produce a friendlier error first.
"""

import logging
import random
from dataclasses import dataclass
from datetime import date, datetime

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.db.models import Count, Exists, Max, OuterRef, Q
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from apps.audit.services import record_audit
from apps.common.exceptions import Conflict
from apps.common.periods import month_bounds
from apps.customers.models import Customer, normalize_plate
from apps.draws.models import DailyFreeCandidate, DailyFreeWinner, WinnerStatus
from apps.washes.models import Wash

logger = logging.getLogger(__name__)

DEFAULT_MIN_WASHES = 12
DEFAULT_LIMIT = 50
MAX_LIMIT = 200
DEFAULT_SERVICE_KEYWORDS = ("full", "complete")


@dataclass(frozen=True)
class WinnerIdentity:
    customer_id: object = None
    vehicle_reg: str = ""
    customer_phone: str = ""
    customer_name: str = ""

    @classmethod
    def from_data(cls, data):
        return cls(
            customer_id=data.get("customer_id") or None,
            vehicle_reg=normalize_plate(data.get("vehicle_reg")),
            customer_phone=str(data.get("customer_phone") or "").strip(),
            customer_name=str(data.get("customer_name") or "").strip(),
        )

    def is_empty(self):
        return not (self.customer_id or self.vehicle_reg or self.customer_phone)


@dataclass(frozen=True)
class Candidate:
    customer_id: object
    vehicle_reg: str
    customer_phone: str
    customer_name: str
    washes_in_month: int
    last_wash: datetime
    eligible_reason: str = ""

    def identity(self):
        return WinnerIdentity(
            customer_id=self.customer_id,
            vehicle_reg=self.vehicle_reg,
            customer_phone=self.customer_phone,
            customer_name=self.customer_name,
        )


@dataclass(frozen=True)
class DrawOutcome:
    winner: DailyFreeWinner | None
    candidate: Candidate | None
    created: bool = False


def clamp_limit(limit):
    try:
        limit = int(limit)
    except (TypeError, ValueError):
        limit = DEFAULT_LIMIT
    return max(1, min(limit, MAX_LIMIT))


def service_filter(service_id=None, service_name=None):
    if service_id:
        return Q(service_id=service_id)
    if service_name:
        return Q(service__name__icontains=service_name)
    keywords = Q()
    for keyword in DEFAULT_SERVICE_KEYWORDS:
        keywords |= Q(service__name__icontains=keyword)
    return keywords


def list_candidates(draw_date, *, min_washes=DEFAULT_MIN_WASHES, service_id=None, service_name=None, limit=DEFAULT_LIMIT):
    """Customers with at least ``min_washes`` matching washes in the month of ``draw_date``.

    Ranked by wash count, then by most recent wash. Washes without a customer
    are not attributed to anyone and never make a candidate.
    """
    if min_washes is None:
        min_washes = DEFAULT_MIN_WASHES
    start, end = month_bounds(draw_date)
    rows = (
        Wash.objects.filter(washed_at__gte=start, washed_at__lt=end, customer__isnull=False)
        .filter(service_filter(service_id, service_name))
        .values("customer_id")
        .annotate(
            wash_count=Count("id"),
            last_wash=Max("washed_at"),
            plate=Max("vehicle_reg"),
            customer_plate=Max("customer__vehicle_reg"),
            phone=Max("customer__phone"),
            name=Max("customer__name"),
        )
        .filter(wash_count__gte=min_washes)
        .order_by("-wash_count", "-last_wash")[: clamp_limit(limit)]
    )
    reason = f">={min_washes} {service_name or 'full'} washes"
    return [
        Candidate(
            customer_id=row["customer_id"],
            vehicle_reg=row["plate"] or row["customer_plate"] or "",
            customer_phone=row["phone"] or "",
            customer_name=row["name"] or "",
            washes_in_month=row["wash_count"],
            last_wash=row["last_wash"],
            eligible_reason=reason,
        )
        for row in rows
    ]


def get_approved_winner(draw_date):
    return DailyFreeWinner.objects.filter(draw_date=draw_date, status=WinnerStatus.APPROVED).first()


def _date_conflict(draw_date, detail=None):
    return Conflict(
        detail or f"An approved winner already exists for {draw_date.isoformat()}.",
        fields={"date": draw_date.isoformat()},
    )


def _operator(user):
    return user if getattr(user, "is_authenticated", False) else None


def _get_winner(winner_id):
    try:
        winner = DailyFreeWinner.objects.filter(pk=winner_id).first()
    except (ValueError, DjangoValidationError):
        winner = None
    if winner is None:
        raise NotFound("Winner not found.")
    return winner


def _get_customer(customer_id):
    if not customer_id:
        return None
    try:
        customer = Customer.objects.filter(pk=customer_id).first()
    except (ValueError, DjangoValidationError):
        customer = None
    if customer is None:
        raise NotFound("Customer not found.")
    return customer


def approve_winner(draw_date, identity, *, operator=None, note=""):
    """Record ``identity`` as the APPROVED winner for ``draw_date``."""
    if not isinstance(draw_date, date):
        raise ValidationError({"date": "date is required."})
    if identity.is_empty():
        raise ValidationError({"customer_id": "customer_id, vehicle_reg or customer_phone is required."})

    customer = _get_customer(identity.customer_id)
    if get_approved_winner(draw_date) is not None:
        raise _date_conflict(draw_date)

    operator = _operator(operator)
    now = timezone.now()
    try:
        with transaction.atomic():
            winner = DailyFreeWinner.objects.create(
                draw_date=draw_date,
                customer=customer,
                vehicle_reg=identity.vehicle_reg or (customer.vehicle_reg if customer else "") or "",
                customer_phone=identity.customer_phone or (customer.phone if customer else "") or "",
                customer_name=identity.customer_name or (customer.name if customer else ""),
                status=WinnerStatus.APPROVED,
                approved_by=operator,
                approved_at=now,
                created_by=operator,
                note=note or "",
            )
    except IntegrityError:
        # A concurrent approval for the same date won the race.
        raise _date_conflict(draw_date)

    record_audit(
        actor=operator,
        action="draw.approve",
        entity_type="daily_free_winner",
        entity_id=winner.id,
        payload={"date": draw_date.isoformat(), "customer_id": str(winner.customer_id or ""), "vehicle_reg": winner.vehicle_reg},
    )
    logger.info("daily winner approved for %s: %s", draw_date, winner.customer_name or winner.vehicle_reg or winner.customer_phone)
    return winner


def draw_winner(
    draw_date,
    *,
    min_washes=DEFAULT_MIN_WASHES,
    service_id=None,
    service_name=None,
    auto_approve=False,
    operator=None,
    rng=None,
):
    """Pick a random candidate for ``draw_date``.

    An existing APPROVED winner is returned unchanged. Without ``auto_approve``
    the pick is only a suggestion and nothing is stored.
    """
    existing = get_approved_winner(draw_date)
    if existing is not None:
        return DrawOutcome(winner=existing, candidate=None, created=False)

    candidates = list_candidates(
        draw_date,
        min_washes=min_washes,
        service_id=service_id,
        service_name=service_name,
        limit=MAX_LIMIT,
    )
    if not candidates:
        raise NotFound("No eligible customers for that date/month.")

    candidate = (rng or random).choice(candidates)
    if not auto_approve:
        return DrawOutcome(winner=None, candidate=candidate, created=False)

    winner = approve_winner(draw_date, candidate.identity(), operator=operator, note="Approved from draw.")
    return DrawOutcome(winner=winner, candidate=candidate, created=True)


def reschedule_winner(identity, to_date, *, operator=None, note=""):
    """Approve ``identity`` on ``to_date`` without touching its original date."""
    if not isinstance(to_date, date):
        raise ValidationError({"to_date": "to_date is required."})
    if identity.is_empty():
        raise ValidationError({"customer_id": "customer_id, vehicle_reg or customer_phone is required."})

    _get_customer(identity.customer_id)
    if get_approved_winner(to_date) is not None:
        raise _date_conflict(to_date)

    duplicates = DailyFreeCandidate.objects.filter(draw_date=to_date)
    if identity.customer_id:
        duplicates = duplicates.filter(customer_id=identity.customer_id)
    else:
        duplicates = duplicates.filter(customer__isnull=True, vehicle_reg=identity.vehicle_reg)
    if duplicates.exists():
        raise _date_conflict(to_date, f"This candidate already exists for {to_date.isoformat()}.")

    winner = approve_winner(to_date, identity, operator=operator, note=note or f"Rescheduled to {to_date.isoformat()}.")
    logger.info("daily winner rescheduled to %s", to_date)
    return winner


def revoke_winner(winner_id, reason="", *, operator=None):
    winner = _get_winner(winner_id)
    with transaction.atomic():
        winner = DailyFreeWinner.objects.select_for_update().get(pk=winner.pk)
        if winner.status != WinnerStatus.APPROVED:
            raise Conflict(
                f"Winner for {winner.draw_date.isoformat()} is {winner.status} and cannot be revoked.",
                fields={"date": winner.draw_date.isoformat()},
            )
        winner.status = WinnerStatus.REVOKED
        winner.revoked_at = timezone.now()
        if reason:
            winner.note = f"{winner.note}\n[REVOCATION] {reason}"
        winner.save(update_fields=["status", "revoked_at", "note"])
        record_audit(
            actor=_operator(operator),
            action="draw.revoke",
            entity_type="daily_free_winner",
            entity_id=winner.id,
            payload={"date": winner.draw_date.isoformat(), "reason": reason or ""},
        )
    logger.info("daily winner for %s revoked: %s", winner.draw_date, reason or "no reason given")
    return winner


def redeem_winner(winner_id, *, operator=None):
    """Mark an APPROVED winner's free wash as used."""
    winner = _get_winner(winner_id)
    with transaction.atomic():
        winner = DailyFreeWinner.objects.select_for_update().get(pk=winner.pk)
        if winner.status != WinnerStatus.APPROVED or winner.used_at is not None:
            raise Conflict(
                f"Winner for {winner.draw_date.isoformat()} has no free wash left to redeem.",
                fields={"date": winner.draw_date.isoformat()},
            )
        winner.used_at = timezone.now()
        winner.save(update_fields=["used_at"])
        record_audit(
            actor=_operator(operator),
            action="draw.redeem",
            entity_type="daily_free_winner",
            entity_id=winner.id,
            payload={"date": winner.draw_date.isoformat()},
        )
    logger.info("daily winner for %s redeemed", winner.draw_date)
    return winner


def shortlist_candidates(
    draw_date,
    *,
    min_washes=DEFAULT_MIN_WASHES,
    service_id=None,
    service_name=None,
    limit=DEFAULT_LIMIT,
    operator=None,
):
    """Store the current candidates for ``draw_date``; returns ``(entries, created_count)``."""
    operator = _operator(operator)
    entries = []
    created_count = 0
    with transaction.atomic():
        for candidate in list_candidates(
            draw_date,
            min_washes=min_washes,
            service_id=service_id,
            service_name=service_name,
            limit=limit,
        ):
            entry, created = DailyFreeCandidate.objects.get_or_create(
                draw_date=draw_date,
                customer_id=candidate.customer_id,
                vehicle_reg=candidate.vehicle_reg,
                defaults={
                    "customer_phone": candidate.customer_phone,
                    "customer_name": candidate.customer_name,
                    "washes_in_month": candidate.washes_in_month,
                    "last_wash": candidate.last_wash,
                    "eligible_reason": candidate.eligible_reason,
                    "created_by": operator,
                },
            )
            entries.append(entry)
            created_count += int(created)
    if created_count:
        record_audit(
            actor=operator,
            action="draw.shortlist",
            entity_type="draw_date",
            entity_id=draw_date.isoformat(),
            payload={"created": created_count, "total": len(entries)},
        )
    return entries, created_count


def with_winner_flag(queryset):
    approved = DailyFreeWinner.objects.filter(
        draw_date=OuterRef("draw_date"),
        customer_id=OuterRef("customer_id"),
        vehicle_reg=OuterRef("vehicle_reg"),
        status=WinnerStatus.APPROVED,
    )
    return queryset.annotate(is_approved_winner=Exists(approved))
