"""
Directory Engine
In-memory filtering and aggregation over a fetched set of shows.

    raw shows -> date-range filter -> free-text filter -> summarize -> sort

Every function here is pure: inputs are never mutated and nothing is cached,
so the whole pipeline can be re-run (or memoized) on any change of inputs.
"""

import logging
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Tuple

from bandcrm.engine.ranges import local_now, resolve_range
from bandcrm.models import DateRange, DirectorySummary, DirectoryView, OrgGroup, Show

logger = logging.getLogger(__name__)

# Searched in this order, followed by a synthetic "paid"/"unpaid" token
SEARCH_FIELDS = (
    'title', 'city', 'show_type', 'organization_name', 'public_show_for',
    'notes', 'poc_name', 'poc_phone', 'poc_email', 'status',
)


def _aware(value: datetime, tzinfo) -> datetime:
    """Naive timestamps are read as local time so they compare with aware bounds."""
    return value.replace(tzinfo=tzinfo) if value.tzinfo is None else value


def organization_key(show: Show) -> str:
    """Trimmed organization label (organization name, else public-show-for); '' if none."""
    return (show.organization_name or show.public_show_for or '').strip()


# =============================================================================
# PIPELINE STAGES
# =============================================================================

def filter_by_range(shows: Iterable[Show], date_range: DateRange) -> List[Show]:
    """
    Keep shows dated within [start, end]; either bound may be open.
    Undated shows are kept only when the range is unbounded.
    """
    shows = list(shows)
    if date_range.is_unbounded:
        return shows

    tz = (date_range.start or date_range.end).tzinfo
    kept = []
    for show in shows:
        if show.show_date is None:
            continue
        when = _aware(show.show_date, tz)
        if date_range.start and when < date_range.start:
            continue
        if date_range.end and when > date_range.end:
            continue
        kept.append(show)
    return kept


def searchable_values(show: Show) -> List[Optional[str]]:
    values = [getattr(show, name) for name in SEARCH_FIELDS]
    values.append('paid' if show.is_paid else 'unpaid')
    return values


def matches_search(show: Show, query: str) -> bool:
    """True if any searchable field contains `query` (already case-folded)."""
    for value in searchable_values(show):
        if value and query in str(value).casefold():
            return True
    return False


def search_shows(shows: Iterable[Show], search: Optional[str]) -> List[Show]:
    """Case-insensitive substring search across SEARCH_FIELDS. Blank search passes everything."""
    shows = list(shows)
    query = (search or '').strip().casefold()
    if not query:
        return shows
    return [s for s in shows if matches_search(s, query)]


def _ranked(counts: Dict[str, int]) -> List[Tuple[str, int]]:
    # sorted() is stable with reverse=True, so ties keep first-seen order
    return sorted(counts.items(), key=lambda item: item[1], reverse=True)


def group_by_organization(shows: Iterable[Show]) -> List[OrgGroup]:
    """
    Group shows by case-insensitive organization key, largest group first.
    Each group is labelled with the casing of its first show.
    """
    groups: Dict[str, OrgGroup] = {}
    for show in shows:
        label = organization_key(show)
        if not label:
            continue
        folded = label.casefold()
        if folded not in groups:
            groups[folded] = OrgGroup(label=label)
        groups[folded].shows.append(show)
    return sorted(groups.values(), key=lambda g: g.count, reverse=True)


def is_past(show: Show, now: datetime) -> bool:
    """Date-derived completion: dated on or before now. Undated shows are not past."""
    if show.show_date is None:
        return False
    return _aware(show.show_date, now.tzinfo) <= now


def summarize(shows: Iterable[Show], now: Optional[datetime] = None) -> DirectorySummary:
    """
    Counts and groupings for a filtered show set.

    Completed/upcoming are derived from show_date against `now` for shows that
    are not cancelled; the stored status is only consulted for cancellation.
    Revenue excludes cancelled shows.
    """
    shows = list(shows)
    now = local_now(now)

    summary = DirectorySummary(total_shows=len(shows))
    type_counts: Dict[str, int] = {}
    city_counts: Dict[str, int] = {}

    for show in shows:
        if show.is_paid:
            summary.paid += 1
        else:
            summary.unpaid += 1

        if show.status == 'cancelled':
            summary.cancelled += 1
        else:
            summary.total_revenue += show.total_amount
            if is_past(show, now):
                summary.completed += 1
            else:
                summary.upcoming += 1

        type_counts[show.show_type] = type_counts.get(show.show_type, 0) + 1
        city_counts[show.city] = city_counts.get(show.city, 0) + 1

    summary.type_breakdown = _ranked(type_counts)
    summary.city_breakdown = _ranked(city_counts)
    summary.org_breakdown = group_by_organization(shows)
    return summary


def _date_sort_key(show: Show) -> Tuple[bool, float]:
    when = show.show_date
    if when is None:
        return (False, 0.0)
    if when.tzinfo is None:
        when = local_now(when)
    return (True, when.timestamp())


def sort_by_date_desc(shows: Iterable[Show]) -> List[Show]:
    """Most recent (or furthest future) first; equal dates keep input order; undated last."""
    return sorted(shows, key=_date_sort_key, reverse=True)


# =============================================================================
# FULL PIPELINE
# =============================================================================

def build_directory(
    shows: Iterable[Show],
    range_name: str = 'lifetime',
    search: str = '',
    custom_from: Optional[date] = None,
    custom_to: Optional[date] = None,
    now: Optional[datetime] = None,
) -> DirectoryView:
    """Run the whole directory pipeline for one set of filter inputs."""
    now = local_now(now)
    date_range = resolve_range(range_name, custom_from, custom_to, now=now)

    in_range = filter_by_range(shows, date_range)
    found = search_shows(in_range, search)
    summary = summarize(found, now=now)
    results = sort_by_date_desc(found)

    logger.debug(
        f"build_directory: range={range_name} search={search!r} "
        f"in_range={len(in_range)} matched={len(found)}"
    )
    return DirectoryView(date_range=date_range, search=search or '', results=results, summary=summary)
