"""
Dashboard Engine
Fetches the server's pre-aggregated summary for a time range and decides
what the current session may see of it. Nothing here recomputes the totals.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

from bandcrm.api.client import ApiClient, show_from_json
from bandcrm.engine.auth import can_view_amounts
from bandcrm.engine.ranges import range_to_query, resolve_range
from bandcrm.engine.shows import UPCOMING_LIMIT, next_upcoming
from bandcrm.models import DateRange, Session, Show

logger = logging.getLogger(__name__)

# (json key, label, is_amount) in display order
ADMIN_STATS = (
    ('showsPerformed', 'Shows Performed', False),
    ('totalRevenue', 'Total Revenue', True),
    ('totalExpenses', 'Total Expenses', True),
    ('revenueAfterExpenses', 'Revenue After Expenses', True),
    ('founderTotalEarnings', 'My Earnings (Founder)', True),
    ('upcomingCount', 'Upcoming Shows', False),
    ('pendingAmount', 'Pending Payments', True),
    ('noAdvanceCount', 'Advance Not Paid', False),
)

MEMBER_STATS = (
    ('showsPerformed', 'Shows Performed', False),
    ('totalEarnings', 'My Earnings', True),
    ('retainedFundsEarnings', 'Retained Funds Earnings', True),
    ('upcomingCount', 'Upcoming Shows', False),
    ('pendingPayments', 'Pending Payments', True),
    ('referredCount', 'Shows Referred', False),
)


@dataclass
class DashboardReport:
    """What the dashboard screen shows for one range."""
    range_name: str
    date_range: DateRange
    stats: List[Tuple[str, Any, bool]] = field(default_factory=list)
    top_cities: List[Tuple[str, int]] = field(default_factory=list)
    top_types: List[Tuple[str, int]] = field(default_factory=list)
    upcoming: List[Show] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict)


def visible_stats(session: Session, payload: Dict[str, Any]) -> List[Tuple[str, Any, bool]]:
    """
    (label, value, is_amount) rows present in the payload, in display order.
    Money rows are dropped for members who may not view amounts.
    """
    layout = ADMIN_STATS if session.is_admin else MEMBER_STATS
    show_amounts = can_view_amounts(session)
    rows = []
    for key, label, is_amount in layout:
        if key not in payload:
            continue
        if is_amount and not show_amounts:
            continue
        rows.append((label, payload[key], is_amount))
    return rows


def _pairs(items: Any, label_key: str) -> List[Tuple[str, int]]:
    return [(item.get(label_key, ''), item.get('count', 0)) for item in items or [] if isinstance(item, dict)]


def build_dashboard(
    client: ApiClient,
    session: Session,
    range_name: str = 'lifetime',
    custom_from: Optional[date] = None,
    custom_to: Optional[date] = None,
    now: Optional[datetime] = None,
) -> DashboardReport:
    """
    Resolve the range and fetch the role's summary. Admins get the next
    upcoming shows from the full show list; members get the ones the server
    already listed for them.
    """
    date_range = resolve_range(range_name, custom_from, custom_to, now=now)
    query = range_to_query(date_range)

    if session.is_admin:
        payload = client.dashboard_stats(query['from'], query['to'])
        upcoming = next_upcoming(client.list_shows())
    else:
        payload = client.member_dashboard(query['from'], query['to'])
        upcoming = [show_from_json(s) for s in payload.get('upcomingShows') or []][:UPCOMING_LIMIT]

    logger.debug(f"build_dashboard: role={session.role} range={range_name} keys={sorted(payload)}")
    return DashboardReport(
        range_name=range_name,
        date_range=date_range,
        stats=visible_stats(session, payload),
        top_cities=_pairs(payload.get('topCities'), 'city'),
        top_types=_pairs(payload.get('topTypes'), 'type'),
        upcoming=upcoming,
        raw=payload,
    )
