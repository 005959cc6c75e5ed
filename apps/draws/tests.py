from datetime import date, datetime
from decimal import Decimal
from io import StringIO
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.test import APITestCase

from apps.audit.models import AuditLog
from apps.catalog.models import CarType, Service
from apps.common.exceptions import Conflict
from apps.customers.models import Customer
from apps.draws.models import DailyFreeCandidate, DailyFreeWinner, WinnerStatus
from apps.draws.registry import (
    WinnerIdentity,
    approve_winner,
    draw_winner,
    get_approved_winner,
    list_candidates,
    redeem_winner,
    reschedule_winner,
    revoke_winner,
    shortlist_candidates,
)
from apps.washes.models import Wash

User = get_user_model()

DRAW_DATE = date(2025, 11, 10)


def local(year, month, day, hour=10):
    return timezone.make_aware(datetime(year, month, day, hour, 0))


class PickLast:
    def choice(self, seq):
        return seq[-1]


class DrawFixtureMixin:
    def build_history(self):
        self.full = Service.objects.create(name="Full Wash", base_price=Decimal("600.00"))
        self.flash = Service.objects.create(name="Flash", base_price=Decimal("500.00"))
        self.salon = CarType.objects.create(label="Salon/Small")

        self.alice = Customer.objects.create(name="Alice", phone="0700000001", vehicle_reg="KAA001A")
        self.brian = Customer.objects.create(name="Brian", phone="0700000002", vehicle_reg="KBB002B")
        self.carol = Customer.objects.create(name="Carol", phone="0700000003", vehicle_reg="KCC003C")
        self.dan = Customer.objects.create(name="Dan", phone="0700000004", vehicle_reg="KDD004D")

        self.washes(self.alice, self.full, 13)
        self.washes(self.brian, self.full, 12)
        self.washes(self.carol, self.full, 11)
        self.washes(self.dan, self.flash, 15)
        # October washes and anonymous washes never count.
        self.washes(self.carol, self.full, 5, month=10)
        self.washes(None, self.full, 20)

    def washes(self, customer, service, count, month=11):
        for index in range(count):
            Wash.objects.create(
                service=service,
                car_type=self.salon,
                customer=customer,
                vehicle_reg=customer.vehicle_reg if customer else "",
                unit_price=Decimal("600.00"),
                commission_pct=Decimal("30.00"),
                commission_amount=Decimal("180.00"),
                profit_amount=Decimal("420.00"),
                washed_at=local(2025, month, 1 + index),
            )

    def identity(self, customer):
        return WinnerIdentity(
            customer_id=customer.id,
            vehicle_reg=customer.vehicle_reg,
            customer_phone=customer.phone,
            customer_name=customer.name,
        )


class ListCandidatesTests(DrawFixtureMixin, TestCase):
    def setUp(self):
        self.build_history()

    def test_full_wash_regulars_ranked_by_count(self):
        candidates = list_candidates(DRAW_DATE)

        self.assertEqual([c.customer_id for c in candidates], [self.alice.id, self.brian.id])
        self.assertEqual(candidates[0].washes_in_month, 13)
        self.assertEqual(candidates[0].vehicle_reg, "KAA001A")
        self.assertEqual(candidates[0].customer_phone, "0700000001")

    def test_equal_counts_rank_most_recent_first(self):
        self.washes(self.carol, self.full, 1)
        Wash.objects.filter(customer=self.carol, washed_at=local(2025, 11, 1)).update(washed_at=local(2025, 11, 28))

        candidates = list_candidates(DRAW_DATE)

        self.assertEqual([c.customer_id for c in candidates], [self.alice.id, self.carol.id, self.brian.id])

    def test_service_filters(self):
        by_name = list_candidates(DRAW_DATE, service_name="FLASH")
        by_id = list_candidates(DRAW_DATE, service_id=self.flash.id)

        self.assertEqual([c.customer_id for c in by_name], [self.dan.id])
        self.assertEqual([c.customer_id for c in by_id], [self.dan.id])

    def test_min_washes_and_limit(self):
        self.assertEqual(list_candidates(DRAW_DATE, min_washes=20), [])
        self.assertEqual(len(list_candidates(DRAW_DATE, min_washes=1, limit=0)), 1)
        self.assertEqual(len(list_candidates(DRAW_DATE, min_washes=1, limit=5000)), 3)

    def test_listing_writes_nothing(self):
        list_candidates(DRAW_DATE)
        self.assertFalse(DailyFreeCandidate.objects.exists())
        self.assertFalse(DailyFreeWinner.objects.exists())


class DrawWinnerTests(DrawFixtureMixin, TestCase):
    def setUp(self):
        self.build_history()

    def test_suggestion_is_an_eligible_candidate_and_persists_nothing(self):
        outcome = draw_winner(DRAW_DATE)

        self.assertIsNone(outcome.winner)
        self.assertIn(outcome.candidate.customer_id, {self.alice.id, self.brian.id})
        self.assertFalse(DailyFreeWinner.objects.exists())

    def test_injected_random_source_decides_the_pick(self):
        outcome = draw_winner(DRAW_DATE, rng=PickLast())
        self.assertEqual(outcome.candidate.customer_id, self.brian.id)

    def test_auto_approve_then_existing_winner_is_returned(self):
        first = draw_winner(DRAW_DATE, auto_approve=True, rng=PickLast())
        again = draw_winner(DRAW_DATE, auto_approve=True)

        self.assertTrue(first.created)
        self.assertEqual(first.winner.status, WinnerStatus.APPROVED)
        self.assertEqual(first.winner.customer_id, self.brian.id)
        self.assertFalse(again.created)
        self.assertEqual(again.winner.id, first.winner.id)
        self.assertEqual(DailyFreeWinner.objects.count(), 1)

    def test_no_candidates_is_not_found(self):
        with self.assertRaises(NotFound):
            draw_winner(date(2025, 9, 10))


class WinnerLifecycleTests(DrawFixtureMixin, TestCase):
    def setUp(self):
        self.build_history()
        self.operator = User.objects.create_user(username="manager", password="manager123", role="MANAGER")

    def test_second_approval_for_same_date_conflicts(self):
        first = approve_winner(DRAW_DATE, self.identity(self.alice), operator=self.operator)

        with self.assertRaises(Conflict) as ctx:
            approve_winner(DRAW_DATE, self.identity(self.brian), operator=self.operator)

        self.assertEqual(ctx.exception.fields, {"date": "2025-11-10"})
        first.refresh_from_db()
        self.assertEqual(first.status, WinnerStatus.APPROVED)
        self.assertEqual(first.customer_id, self.alice.id)
        self.assertEqual(first.approved_by, self.operator)
        self.assertEqual(get_approved_winner(DRAW_DATE).id, first.id)

    def test_storage_constraint_rejects_race_past_the_precheck(self):
        approve_winner(DRAW_DATE, self.identity(self.alice))

        with mock.patch("apps.draws.registry.get_approved_winner", return_value=None):
            with self.assertRaises(Conflict):
                approve_winner(DRAW_DATE, self.identity(self.brian))

        self.assertEqual(DailyFreeWinner.objects.filter(draw_date=DRAW_DATE, status=WinnerStatus.APPROVED).count(), 1)

    def test_revoke_frees_the_date_for_a_new_approval(self):
        first = approve_winner(DRAW_DATE, self.identity(self.alice), note="picked at counter")

        revoked = revoke_winner(first.id, "duplicate entry", operator=self.operator)
        second = approve_winner(DRAW_DATE, self.identity(self.brian))

        self.assertEqual(revoked.status, WinnerStatus.REVOKED)
        self.assertIsNotNone(revoked.revoked_at)
        self.assertEqual(revoked.note, "picked at counter\n[REVOCATION] duplicate entry")
        self.assertEqual(second.status, WinnerStatus.APPROVED)
        self.assertEqual(get_approved_winner(DRAW_DATE).id, second.id)

    def test_revoking_twice_conflicts_and_unknown_winner_is_not_found(self):
        winner = approve_winner(DRAW_DATE, self.identity(self.alice))
        revoke_winner(winner.id, "mistake")

        with self.assertRaises(Conflict):
            revoke_winner(winner.id, "again")
        with self.assertRaises(NotFound):
            revoke_winner("4f7c3f5e-0000-4000-8000-000000000000", "missing")
        with self.assertRaises(NotFound):
            revoke_winner("not-a-uuid", "missing")

    def test_reschedule_to_free_date_keeps_original(self):
        original = approve_winner(DRAW_DATE, self.identity(self.alice))

        moved = reschedule_winner(self.identity(self.brian), date(2025, 11, 11), operator=self.operator)

        self.assertEqual(moved.draw_date, date(2025, 11, 11))
        self.assertEqual(moved.status, WinnerStatus.APPROVED)
        self.assertEqual(moved.customer_id, self.brian.id)
        original.refresh_from_db()
        self.assertEqual(original.status, WinnerStatus.APPROVED)

    def test_reschedule_to_taken_date_conflicts(self):
        approve_winner(DRAW_DATE, self.identity(self.alice))

        with self.assertRaises(Conflict) as ctx:
            reschedule_winner(self.identity(self.brian), DRAW_DATE)

        self.assertEqual(ctx.exception.fields["date"], "2025-11-10")

    def test_reschedule_onto_existing_candidate_conflicts(self):
        shortlist_candidates(date(2025, 11, 12))

        with self.assertRaises(Conflict):
            reschedule_winner(self.identity(self.brian), date(2025, 11, 12))

        self.assertFalse(DailyFreeWinner.objects.filter(draw_date=date(2025, 11, 12)).exists())

    def test_reschedule_by_customer_alone_matches_stored_candidate(self):
        shortlist_candidates(date(2025, 11, 12))

        with self.assertRaises(Conflict) as ctx:
            reschedule_winner(WinnerIdentity(customer_id=self.brian.id), date(2025, 11, 12))

        self.assertEqual(ctx.exception.fields, {"date": "2025-11-12"})
        self.assertFalse(DailyFreeWinner.objects.filter(draw_date=date(2025, 11, 12)).exists())

    def test_redeem_once(self):
        winner = approve_winner(DRAW_DATE, self.identity(self.alice))

        redeemed = redeem_winner(winner.id)
        self.assertIsNotNone(redeemed.used_at)
        with self.assertRaises(Conflict):
            redeem_winner(winner.id)

    def test_identity_is_required(self):
        with self.assertRaises(ValidationError):
            approve_winner(DRAW_DATE, WinnerIdentity())

    def test_shortlist_is_idempotent(self):
        entries, created = shortlist_candidates(DRAW_DATE)
        again, created_again = shortlist_candidates(DRAW_DATE)

        self.assertEqual(created, 2)
        self.assertEqual(created_again, 0)
        self.assertEqual({e.pk for e in entries}, {e.pk for e in again})


class DrawCommandTests(DrawFixtureMixin, TestCase):
    def setUp(self):
        self.build_history()

    def test_command_approves_an_eligible_winner(self):
        out = StringIO()
        call_command("draw_daily_winner", "--date", "2025-11-10", stdout=out)

        winner = get_approved_winner(DRAW_DATE)
        self.assertIn(winner.customer_id, {self.alice.id, self.brian.id})
        self.assertIn("Approved winner for 2025-11-10", out.getvalue())

    def test_command_reports_no_candidates(self):
        out = StringIO()
        call_command("draw_daily_winner", "--date", "2025-09-10", stdout=out)
        self.assertIn("No eligible customers", out.getvalue())
        self.assertFalse(DailyFreeWinner.objects.exists())


class DrawApiTests(DrawFixtureMixin, APITestCase):
    def setUp(self):
        self.build_history()
        self.manager = User.objects.create_user(username="manager", password="manager123", role="MANAGER")
        response = self.client.post(
            "/api/v1/auth/token/",
            {"username": "manager", "password": "manager123"},
            format="json",
        )
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")

    def test_eligibles_lists_candidates(self):
        response = self.client.get("/api/v1/draws/winners/eligibles/", {"date": "2025-11-10"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual([row["customer_name"] for row in response.data], ["Alice", "Brian"])

    def test_draw_suggestion_then_approve_conflict(self):
        suggestion = self.client.post("/api/v1/draws/winners/draw/", {"date": "2025-11-10"}, format="json")
        self.assertEqual(suggestion.status_code, 200)
        self.assertIsNone(suggestion.data["winner"])
        candidate = suggestion.data["candidate"]
        self.assertIn(candidate["customer_name"], {"Alice", "Brian"})

        approved = self.client.post(
            "/api/v1/draws/winners/approve/",
            {
                "date": "2025-11-10",
                "customer_id": candidate["customer_id"],
                "vehicle_reg": candidate["vehicle_reg"],
                "customer_phone": candidate["customer_phone"],
                "customer_name": candidate["customer_name"],
            },
            format="json",
        )
        self.assertEqual(approved.status_code, 201)
        self.assertEqual(approved.data["approved_by"], "manager")

        duplicate = self.client.post(
            "/api/v1/draws/winners/approve/",
            {"date": "2025-11-10", "customer_id": str(self.dan.id)},
            format="json",
        )
        self.assertEqual(duplicate.status_code, 409)
        self.assertEqual(duplicate.data["code"], "conflict")
        self.assertEqual(duplicate.data["fields"]["date"], "2025-11-10")
        self.assertTrue(AuditLog.objects.filter(action="draw.approve", entity_id=approved.data["id"]).exists())

    def test_approve_requires_date(self):
        response = self.client.post("/api/v1/draws/winners/approve/", {"customer_id": str(self.alice.id)}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("date", response.data["fields"])

    def test_revoke_and_history(self):
        winner = approve_winner(DRAW_DATE, self.identity(self.alice), operator=self.manager)

        revoked = self.client.post(f"/api/v1/draws/winners/{winner.id}/revoke/", {"reason": "wrong plate"}, format="json")
        self.assertEqual(revoked.status_code, 200)
        self.assertEqual(revoked.data["status"], "REVOKED")

        missing = self.client.post("/api/v1/draws/winners/not-a-uuid/revoke/", {}, format="json")
        self.assertEqual(missing.status_code, 404)

        history = self.client.get(f"/api/v1/draws/winners/{winner.id}/history/")
        self.assertEqual(history.status_code, 200)
        self.assertEqual({row["action"] for row in history.data}, {"draw.approve", "draw.revoke"})

    def test_current_winner_for_date(self):
        empty = self.client.get("/api/v1/draws/winners/current/", {"date": "2025-11-10"})
        self.assertEqual(empty.status_code, 200)
        self.assertIsNone(empty.data)

        approve_winner(DRAW_DATE, self.identity(self.brian))
        current = self.client.get("/api/v1/draws/winners/current/", {"date": "2025-11-10"})
        self.assertEqual(current.data["customer_name"], "Brian")

    def test_shortlist_then_reschedule_stored_candidate(self):
        created = self.client.post("/api/v1/draws/candidates/", {"date": "2025-11-10"}, format="json")
        self.assertEqual(created.status_code, 201)
        self.assertEqual(created.data["created"], 2)

        stored = DailyFreeCandidate.objects.get(draw_date=DRAW_DATE, customer=self.brian)
        moved = self.client.post(
            "/api/v1/draws/winners/reschedule/",
            {"candidate_id": str(stored.id), "to_date": "2025-11-11"},
            format="json",
        )
        self.assertEqual(moved.status_code, 201)
        self.assertEqual(moved.data["draw_date"], "2025-11-11")

        approve_winner(DRAW_DATE, self.identity(self.alice))
        listed = self.client.get("/api/v1/draws/candidates/", {"date": "2025-11-10"})
        flags = {row["customer_name"]: row["is_approved_winner"] for row in listed.data["results"]}
        self.assertEqual(flags, {"Alice": True, "Brian": False})

    def test_anonymous_request_is_rejected(self):
        self.client.credentials()
        response = self.client.get("/api/v1/draws/winners/")
        self.assertEqual(response.status_code, 401)
