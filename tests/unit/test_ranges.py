"""
Unit tests for bandcrm/engine/ranges.py.

Every call pins `now` so results never depend on the wall clock. Bounds are
checked in the configured timezone.
"""

from datetime import date, datetime, time
from zoneinfo import ZoneInfo

import pytest

from bandcrm.config import config
from bandcrm.engine.ranges import (
    RANGE_NAMES, describe_range, local_now, range_to_query, resolve_range, to_local,
)
from bandcrm.models import DateRange

TZ = ZoneInfo(config.TIMEZONE)
NOW = datetime(2026, 3, 15, 12, 30, tzinfo=TZ)


def _start(y, m, d):
    return datetime(y, m, d, tzinfo=TZ)


def _end(y, m, d):
    return datetime.combine(date(y, m, d), time.max, tzinfo=TZ)


# ---------------------------------------------------------------------------
# local_now
# ---------------------------------------------------------------------------

class TestLocalNow:

    def test_default_is_aware_in_configured_zone(self):
        assert local_now().tzinfo == TZ

    def test_naive_is_taken_as_local(self):
        result = local_now(datetime(2026, 3, 15, 9, 0))
        assert result == datetime(2026, 3, 15, 9, 0, tzinfo=TZ)

    def test_aware_is_converted_to_configured_zone(self):
        utc = datetime(2026, 3, 15, 9, 0, tzinfo=ZoneInfo('UTC'))
        result = local_now(utc)
        assert result.tzinfo == TZ
        assert result == utc
        assert result.hour == 14

    def test_to_local_converts_aware_values(self):
        utc = datetime(2026, 3, 15, 21, 0, tzinfo=ZoneInfo('UTC'))
        assert to_local(utc).tzinfo == TZ
        assert to_local(utc) == utc

    def test_to_local_keeps_naive_wall_time(self):
        assert to_local(datetime(2026, 3, 15, 9, 0)) == datetime(2026, 3, 15, 9, 0, tzinfo=TZ)


# ---------------------------------------------------------------------------
# resolve_range
# ---------------------------------------------------------------------------

class TestResolveRange:

    def test_all_names_resolve(self):
        for name in RANGE_NAMES:
            assert isinstance(resolve_range(name, now=NOW), DateRange)

    def test_lifetime_is_unbounded(self):
        assert resolve_range('lifetime', now=NOW).is_unbounded

    def test_this_year(self):
        r = resolve_range('this_year', now=NOW)
        assert r.start == _start(2026, 1, 1)
        assert r.end == _end(2026, 12, 31)

    def test_utc_now_uses_local_calendar(self):
        # 20:00 UTC on New Year's Eve is already 2026 in Karachi
        utc_now = datetime(2025, 12, 31, 20, 0, tzinfo=ZoneInfo('UTC'))
        r = resolve_range('this_year', now=utc_now)
        assert r.start == _start(2026, 1, 1)
        assert r.start.tzinfo == TZ

    def test_last_year(self):
        r = resolve_range('last_year', now=NOW)
        assert r.start == _start(2025, 1, 1)
        assert r.end == _end(2025, 12, 31)

    def test_this_month(self):
        r = resolve_range('this_month', now=NOW)
        assert r.start == _start(2026, 3, 1)
        assert r.end == _end(2026, 3, 31)

    def test_this_month_february_in_leap_year(self):
        r = resolve_range('this_month', now=datetime(2028, 2, 10, tzinfo=TZ))
        assert r.end == _end(2028, 2, 29)

    def test_last_month(self):
        r = resolve_range('last_month', now=NOW)
        assert r.start == _start(2026, 2, 1)
        assert r.end == _end(2026, 2, 28)

    def test_last_month_from_end_of_march_is_february(self):
        r = resolve_range('last_month', now=datetime(2026, 3, 31, 23, 0, tzinfo=TZ))
        assert r.start == _start(2026, 2, 1)
        assert r.end == _end(2026, 2, 28)

    def test_last_month_in_january_crosses_year(self):
        r = resolve_range('last_month', now=datetime(2026, 1, 5, tzinfo=TZ))
        assert r.start == _start(2025, 12, 1)
        assert r.end == _end(2025, 12, 31)

    def test_last_3_months_is_rolling(self):
        r = resolve_range('last_3_months', now=NOW)
        assert r.start == datetime(2025, 12, 15, 12, 30, tzinfo=TZ)
        assert r.end == NOW

    def test_last_6_months_is_rolling(self):
        r = resolve_range('last_6_months', now=NOW)
        assert r.start == datetime(2025, 9, 15, 12, 30, tzinfo=TZ)
        assert r.end == NOW

    def test_rolling_range_clamps_short_months(self):
        r = resolve_range('last_3_months', now=datetime(2026, 5, 31, 8, 0, tzinfo=TZ))
        assert r.start == datetime(2026, 2, 28, 8, 0, tzinfo=TZ)

    def test_custom_end_date_is_inclusive(self):
        r = resolve_range('custom', date(2026, 3, 1), date(2026, 3, 10), now=NOW)
        assert r.start == _start(2026, 3, 1)
        assert r.end == _end(2026, 3, 10)
        assert datetime(2026, 3, 10, 21, 0, tzinfo=TZ) <= r.end

    def test_custom_open_start(self):
        r = resolve_range('custom', None, date(2026, 3, 10), now=NOW)
        assert r.start is None
        assert r.end == _end(2026, 3, 10)

    def test_custom_open_end(self):
        r = resolve_range('custom', date(2026, 3, 1), None, now=NOW)
        assert r.start == _start(2026, 3, 1)
        assert r.end is None

    def test_custom_without_dates_is_unbounded(self):
        assert resolve_range('custom', now=NOW).is_unbounded

    def test_unknown_name_raises(self):
        with pytest.raises(ValueError, match='Unknown range'):
            resolve_range('last_decade', now=NOW)

    def test_naive_now_treated_as_local(self):
        r = resolve_range('this_month', now=datetime(2026, 3, 15, 12, 30))
        assert r.start == _start(2026, 3, 1)


# ---------------------------------------------------------------------------
# range_to_query / describe_range
# ---------------------------------------------------------------------------

class TestRangeHelpers:

    def test_query_for_unbounded_range(self):
        assert range_to_query(DateRange()) == {'from': None, 'to': None}

    def test_query_is_iso_8601(self):
        r = resolve_range('this_month', now=NOW)
        query = range_to_query(r)
        assert query['from'] == r.start.isoformat()
        assert query['to'].startswith('2026-03-31T23:59:59')

    def test_describe_lifetime(self):
        assert describe_range('lifetime', DateRange()) == 'Lifetime'

    def test_describe_bounded_range(self):
        r = resolve_range('this_month', now=NOW)
        assert describe_range('this_month', r) == 'This Month (2026-03-01 → 2026-03-31)'

    def test_describe_half_open_custom_range(self):
        r = resolve_range('custom', date(2026, 3, 1), None, now=NOW)
        assert describe_range('custom', r) == 'Custom Range (2026-03-01 → …)'
