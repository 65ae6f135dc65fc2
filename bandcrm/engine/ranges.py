"""
Date Ranges
Maps a named time window (or a custom pair of calendar dates) to concrete
start/end instants. Shared by the directory and dashboard views.
"""

import logging
from datetime import date, datetime, time
from typing import Optional
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta

from bandcrm.config import config
from bandcrm.models import DateRange

logger = logging.getLogger(__name__)

RANGE_LABELS = {
    'lifetime': 'Lifetime',
    'this_year': 'This Year',
    'last_year': 'Last Year',
    'this_month': 'This Month',
    'last_month': 'Last Month',
    'last_3_months': 'Last 3 Months',
    'last_6_months': 'Last 6 Months',
    'custom': 'Custom Range',
}
RANGE_NAMES = tuple(RANGE_LABELS)


def local_now(now: Optional[datetime] = None) -> datetime:
    """
    Current time as an aware datetime in the configured timezone.
    A naive `now` is taken to be local time; an aware one is converted.
    """
    tz = ZoneInfo(config.TIMEZONE)
    if now is None:
        return datetime.now(tz)
    if now.tzinfo is None:
        return now.replace(tzinfo=tz)
    return now.astimezone(tz)


def to_local(value: datetime) -> datetime:
    """`value` expressed in the configured timezone; naive values are already local."""
    return local_now(value)


def start_of_day(d: date, tzinfo) -> datetime:
    return datetime.combine(d, time.min, tzinfo=tzinfo)


def end_of_day(d: date, tzinfo) -> datetime:
    return datetime.combine(d, time.max, tzinfo=tzinfo)


def _year_bounds(year: int, tzinfo) -> DateRange:
    return DateRange(start_of_day(date(year, 1, 1), tzinfo), end_of_day(date(year, 12, 31), tzinfo))


def _month_bounds(year: int, month: int, tzinfo) -> DateRange:
    first = date(year, month, 1)
    last = first + relativedelta(months=1, days=-1)
    return DateRange(start_of_day(first, tzinfo), end_of_day(last, tzinfo))


def resolve_range(
    range_name: str,
    custom_from: Optional[date] = None,
    custom_to: Optional[date] = None,
    now: Optional[datetime] = None,
) -> DateRange:
    """
    Resolve a named range to concrete bounds.

    Calendar ranges (years, months) run from the first instant of the period to
    its last instant. Rolling ranges (last N months) run from now minus N months
    up to now. A custom range starts at the beginning of `custom_from` and ends
    at the very end of `custom_to`, so the end date is inclusive; either side may
    be left open.

    Raises ValueError for unknown range names.
    """
    if range_name not in RANGE_LABELS:
        raise ValueError(f"Unknown range '{range_name}'. Choose from: {', '.join(RANGE_NAMES)}")

    current = local_now(now)
    tz = current.tzinfo

    if range_name == 'lifetime':
        return DateRange()
    if range_name == 'this_year':
        return _year_bounds(current.year, tz)
    if range_name == 'last_year':
        return _year_bounds(current.year - 1, tz)
    if range_name == 'this_month':
        return _month_bounds(current.year, current.month, tz)
    if range_name == 'last_month':
        previous = current - relativedelta(months=1)
        return _month_bounds(previous.year, previous.month, tz)
    if range_name == 'last_3_months':
        return DateRange(current - relativedelta(months=3), current)
    if range_name == 'last_6_months':
        return DateRange(current - relativedelta(months=6), current)

    # custom
    return DateRange(
        start_of_day(custom_from, tz) if custom_from else None,
        end_of_day(custom_to, tz) if custom_to else None,
    )


def range_to_query(date_range: DateRange) -> dict:
    """ISO-8601 `from`/`to` query parameters for the server's summary endpoints."""
    return {
        'from': date_range.start.isoformat() if date_range.start else None,
        'to': date_range.end.isoformat() if date_range.end else None,
    }


def describe_range(range_name: str, date_range: DateRange) -> str:
    """Human label, e.g. 'This Month (2026-03-01 → 2026-03-31)'."""
    label = RANGE_LABELS.get(range_name, range_name)
    if date_range.is_unbounded:
        return label
    start = date_range.start.date().isoformat() if date_range.start else '…'
    end = date_range.end.date().isoformat() if date_range.end else '…'
    return f"{label} ({start} → {end})"
