"""Time helpers. Timestamps are integer milliseconds since the epoch."""

from datetime import date, datetime, time, timedelta, tzinfo

from django.utils import timezone
from django.utils.dateparse import parse_date


def now_ms() -> int:
    return to_ms(timezone.now())


def to_ms(value: datetime) -> int:
    return int(value.timestamp() * 1000)


def coerce_date(value: date | str) -> date:
    """Accept a date or an ISO YYYY-MM-DD string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    parsed = parse_date(value) if isinstance(value, str) else None
    if parsed is None:
        raise ValueError(f"Invalid date: {value!r}")
    return parsed


def day_bounds_ms(day: date, tz: tzinfo | None = None) -> tuple[int, int]:
    """
    Return [start, end) of a calendar day as epoch milliseconds.

    Boundaries are local midnights in ``tz`` (default: the current Django
    time zone), so DST days are 23 or 25 hours long.
    """
    tz = tz or timezone.get_current_timezone()
    start = datetime.combine(day, time.min).replace(tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min).replace(tzinfo=tz)
    return to_ms(start), to_ms(end)
