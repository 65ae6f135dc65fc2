"""
Financials Engine
Per-member earnings for a time range. The server does the arithmetic; this
module picks the endpoint for the session's role and shapes the payload for
display.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

from bandcrm.api.client import ApiClient, _int_or_zero, parse_timestamp
from bandcrm.engine.auth import PermissionDenied, can_view_amounts
from bandcrm.engine.dashboard import _pairs
from bandcrm.engine.ranges import range_to_query, resolve_range
from bandcrm.models import DateRange, EarningLine, Session

logger = logging.getLogger(__name__)

# (json key, label, is_amount) in display order
FINANCIAL_STATS = (
    ('totalEarnings', 'Total Earnings', True),
    ('totalShows', 'Shows Performed', False),
    ('avgPerShow', 'Average Per Show', True),
    ('paidShows', 'Paid Shows', False),
    ('unpaidShows', 'Unpaid Shows', False),
    ('unpaidAmount', 'Unpaid Amount', True),
    ('pendingAmount', 'Pending (Upcoming)', True),
    ('upcomingShowsCount', 'Upcoming Shows', False),
    ('referredCount', 'Shows Referred', False),
    ('retainedFundsEarnings', 'Retained Funds Earnings', True),
)


@dataclass
class FinancialsReport:
    """What the financials screen shows for one member and range."""
    range_name: str
    date_range: DateRange
    member: Optional[str] = None
    stats: List[Tuple[str, Any, bool]] = field(default_factory=list)
    cities: List[Tuple[str, int]] = field(default_factory=list)
    shows: List[EarningLine] = field(default_factory=list)
    upcoming: List[EarningLine] = field(default_factory=list)
    retained: List[Tuple[str, int]] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict)


def earning_from_json(data: Dict[str, Any], show_fee: bool = True) -> EarningLine:
    """
    A show detail row of the financials payload. The gig fee is dropped when
    `show_fee` is False, even if the server sent it.
    """
    total = data.get('totalAmount')
    return EarningLine(
        id=data.get('id'),
        title=data.get('title') or '',
        city=data.get('city') or '',
        show_date=parse_timestamp(data.get('showDate')),
        show_type=data.get('showType') or '',
        total_amount=_int_or_zero(total) if show_fee and total is not None else None,
        member_earning=_int_or_zero(data.get('memberEarning')),
        is_paid=bool(data.get('isPaid')),
        is_referrer=bool(data.get('isReferrer')),
    )


def financial_stats(payload: Dict[str, Any]) -> List[Tuple[str, Any, bool]]:
    """(label, value, is_amount) rows present in the payload, in display order."""
    return [(label, payload[key], is_amount) for key, label, is_amount in FINANCIAL_STATS if key in payload]


def build_financials(
    client: ApiClient,
    session: Session,
    range_name: str = 'lifetime',
    custom_from: Optional[date] = None,
    custom_to: Optional[date] = None,
    member: Optional[str] = None,
    now: Optional[datetime] = None,
) -> FinancialsReport:
    """
    Resolve the range and fetch earnings. Admins may look at any member by
    name; members only ever see their own figures. Every figure on the
    screen is the member's own money, so only the gig fee of each show is
    hidden from members who may not view amounts.
    """
    if member is not None and not session.is_admin:
        raise PermissionDenied("Admin access required to view another member's financials")

    date_range = resolve_range(range_name, custom_from, custom_to, now=now)
    query = range_to_query(date_range)

    if session.is_admin:
        payload = client.financials(query['from'], query['to'], member)
        shown_member = member or payload.get('member')
    else:
        payload = client.member_financials(query['from'], query['to'])
        shown_member = payload.get('member') or session.band_member_name or session.display_name

    show_fee = can_view_amounts(session)
    logger.debug(f"build_financials: role={session.role} range={range_name} member={shown_member!r}")
    return FinancialsReport(
        range_name=range_name,
        date_range=date_range,
        member=shown_member,
        stats=financial_stats(payload),
        cities=_pairs(payload.get('cities'), 'city'),
        shows=[earning_from_json(s, show_fee) for s in payload.get('shows') or []],
        upcoming=[earning_from_json(s, show_fee) for s in payload.get('upcomingShows') or []],
        retained=[
            (a.get('showTitle') or '', _int_or_zero(a.get('amount')))
            for a in payload.get('retainedAllocDetails') or []
            if isinstance(a, dict)
        ],
        raw=payload,
    )
