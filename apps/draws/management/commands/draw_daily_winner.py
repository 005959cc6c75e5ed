from datetime import date

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone
from rest_framework.exceptions import NotFound

from apps.draws.registry import DEFAULT_MIN_WASHES, draw_winner


class Command(BaseCommand):
    help = "Draw and approve the daily free-wash winner (defaults to today)."

    def add_arguments(self, parser):
        parser.add_argument("--date", help="Draw date as YYYY-MM-DD.")
        parser.add_argument("--min-washes", type=int, default=DEFAULT_MIN_WASHES)
        parser.add_argument("--service-id")
        parser.add_argument("--service-name")
        parser.add_argument(
            "--suggest-only",
            action="store_true",
            help="Print a suggested candidate without approving it.",
        )

    def handle(self, *args, **options):
        if options["date"]:
            try:
                draw_date = date.fromisoformat(options["date"])
            except ValueError:
                raise CommandError("--date must be formatted as YYYY-MM-DD")
        else:
            draw_date = timezone.localdate()

        try:
            outcome = draw_winner(
                draw_date,
                min_washes=options["min_washes"],
                service_id=options["service_id"],
                service_name=options["service_name"],
                auto_approve=not options["suggest_only"],
            )
        except NotFound:
            self.stdout.write(self.style.WARNING(f"No eligible customers for {draw_date.isoformat()}."))
            return

        if outcome.winner is None:
            candidate = outcome.candidate
            self.stdout.write(
                f"Suggested for {draw_date.isoformat()}: {candidate.customer_name or candidate.vehicle_reg} "
                f"({candidate.washes_in_month} washes)"
            )
            return

        winner = outcome.winner
        label = "Approved" if outcome.created else "Already approved"
        self.stdout.write(
            self.style.SUCCESS(
                f"{label} winner for {draw_date.isoformat()}: {winner.customer_name or winner.vehicle_reg or winner.customer_phone}"
            )
        )
