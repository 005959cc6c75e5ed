from datetime import date, datetime, time

from django.utils import timezone


def local_day(moment):
    """Calendar date of ``moment`` in the active time zone."""
    if moment is None:
        return timezone.localdate()
    if isinstance(moment, datetime):
        if timezone.is_naive(moment):
            return moment.date()
        return timezone.localtime(moment).date()
    return moment


def month_start(moment) -> date:
    return local_day(moment).replace(day=1)


def next_month_start(moment) -> date:
    first = month_start(moment)
    if first.month == 12:
        return first.replace(year=first.year + 1, month=1)
    return first.replace(month=first.month + 1)


def start_of_day(day):
    return timezone.make_aware(datetime.combine(day, time.min))


def day_bounds(moment):
    day = local_day(moment)
    start = start_of_day(day)
    return start, start_of_day(date.fromordinal(day.toordinal() + 1))


def month_bounds(moment):
    """Aware ``[start, end)`` datetimes covering the calendar month of ``moment``."""
    return start_of_day(month_start(moment)), start_of_day(next_month_start(moment))


def parse_month(value):
    """Parse ``YYYY-MM`` (or a full ISO date) into the first day of that month."""
    text = str(value or "").strip()[:7]
    try:
        return datetime.strptime(text, "%Y-%m").date()
    except ValueError:
        return None
