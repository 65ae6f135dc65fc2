"""
Shows Engine - Scheduling and Money Operations
Validates show forms, calls the server through ApiClient, and derives the
per-show financial picture and the shows list sections.
Mutations are announced on the event bus. The dashboard engine reuses the
upcoming-shows helpers from here.
"""

import logging
import math
from dataclasses import replace
from datetime import date, datetime, time
from typing import Any, Dict, Iterable, List, Optional, Tuple

from bandcrm.api.client import ApiClient, ApiError
from bandcrm.bus.events import (
    bus, EVENT_SHOW_CREATED, EVENT_SHOW_UPDATED, EVENT_SHOW_PAID_TOGGLED, EVENT_EXPENSE_ADDED,
    EVENT_EXPENSE_DELETED, EVENT_SHOW_MEMBER_ADDED, EVENT_SHOW_MEMBER_UPDATED, EVENT_SHOW_MEMBER_REMOVED,
)
from bandcrm.engine.auth import PermissionDenied, can_add_shows, require_admin
from bandcrm.engine.ranges import local_now
from bandcrm.models import (
    DateConflict, Session, Show, ShowBoard, ShowExpense, ShowFinancials, ShowMember,
    MEMBER_ROLES, PAYMENT_TYPES, SHOW_STATUSES,
)

logger = logging.getLogger(__name__)

# Allowlist for show forms: field names never come from user input directly
_SHOW_FIELDS = {
    'title', 'city', 'show_type', 'organization_name', 'public_show_for',
    'total_amount', 'advance_payment', 'show_date', 'status', 'is_paid',
    'notes', 'poc_name', 'poc_phone', 'poc_email',
}
_TEXT_FIELDS = {'title', 'city', 'show_type'}
_OPTIONAL_TEXT_FIELDS = {
    'organization_name', 'public_show_for', 'notes', 'poc_name', 'poc_phone', 'poc_email',
}
_AMOUNT_FIELDS = {'total_amount', 'advance_payment'}

SHOW_DEFAULTS = {
    'show_type': 'Corporate',
    'status': 'upcoming',
    'total_amount': 0,
    'advance_payment': 0,
}

_MEMBER_FIELDS = {'name', 'role', 'payment_type', 'payment_value', 'is_referrer'}

MEMBER_DEFAULTS = {
    'role': 'session_player',
    'payment_type': 'manual',
    'payment_value': 0,
    'is_referrer': False,
}

UPCOMING_LIMIT = 5


def _validate_columns(updates: Dict[str, Any], allowed: set, entity: str) -> None:
    """Raise ValueError if any key in updates is not an allowed field name."""
    invalid = set(updates.keys()) - allowed
    if invalid:
        raise ValueError(f"Invalid {entity} fields: {invalid}")


def _coerce_amount(name: str, value: Any) -> int:
    try:
        amount = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a whole number, got {value!r}")
    if amount < 0:
        raise ValueError(f"{name} must be positive")
    return amount


def normalize_show_fields(fields: Dict[str, Any], creating: bool) -> Tuple[Dict[str, Any], List[str]]:
    """
    Clean a show form.

    Returns (clean_fields, warnings). Raises ValueError for unknown fields,
    missing title/city/date on create, blank required text, negative amounts
    or an unknown status. An advance larger than the total is only a warning.
    """
    _validate_columns(fields, _SHOW_FIELDS, 'show')

    clean = dict(SHOW_DEFAULTS) if creating else {}
    clean.update(fields)

    for name in _TEXT_FIELDS & clean.keys():
        value = (clean[name] or '').strip()
        if not value:
            raise ValueError(f"{name.replace('_', ' ').capitalize()} is required")
        clean[name] = value

    for name in _OPTIONAL_TEXT_FIELDS & clean.keys():
        value = clean[name]
        if isinstance(value, str):
            clean[name] = value.strip() or None

    for name in _AMOUNT_FIELDS & clean.keys():
        clean[name] = _coerce_amount(name.replace('_', ' ').capitalize(), clean[name])

    if 'status' in clean and clean['status'] not in SHOW_STATUSES:
        raise ValueError(f"Status must be one of: {', '.join(SHOW_STATUSES)}")

    if 'show_date' in clean:
        when = clean['show_date']
        if isinstance(when, date) and not isinstance(when, datetime):
            when = datetime.combine(when, time.min)
        if not isinstance(when, datetime):
            raise ValueError("Show date must be a date or datetime")
        clean['show_date'] = local_now(when)

    if 'is_paid' in clean:
        clean['is_paid'] = bool(clean['is_paid'])

    if creating:
        for required in ('title', 'city', 'show_date'):
            if required not in clean:
                raise ValueError(f"{required.replace('_', ' ').capitalize()} is required")

    warnings = []
    total = clean.get('total_amount')
    advance = clean.get('advance_payment')
    if total is not None and advance is not None and advance > total:
        warnings.append(f"Advance payment ({advance}) is larger than the total amount ({total})")

    return clean, warnings


# =============================================================================
# SHOW OPERATIONS
# =============================================================================

def get_shows(client: ApiClient, session: Session) -> List[Show]:
    """All shows (admin only)."""
    require_admin(session, 'list shows')
    shows = client.list_shows()
    logger.debug(f"get_shows: {len(shows)} shows")
    return shows


def get_show(client: ApiClient, session: Session, show_id) -> Show:
    require_admin(session, 'view show details')
    return client.get_show(show_id)


def find_date_conflicts(client: ApiClient, when: datetime, exclude_id=None) -> List[DateConflict]:
    """
    Other shows booked on the same calendar day.
    A failed check is reported as no conflicts so it never blocks a booking.
    """
    try:
        conflicts = client.check_date(when, exclude_id=exclude_id)
    except ApiError as e:
        logger.warning(f"find_date_conflicts: check failed, assuming none: {e}")
        return []
    logger.debug(f"find_date_conflicts: {len(conflicts)} conflicts on {when.date()}")
    return conflicts


def create_show(client: ApiClient, session: Session, fields: Dict[str, Any]) -> Show:
    """
    Create a new show.
    Admins post to the main endpoint; members need the add-shows capability
    and post through the member endpoint.
    """
    if not can_add_shows(session):
        raise PermissionDenied("You don't have permission to add shows")

    clean, warnings = normalize_show_fields(fields, creating=True)
    for warning in warnings:
        logger.warning(f"create_show: {warning}")

    show = client.create_show(clean, as_member=not session.is_admin)
    logger.info(f"Created show ID {show.id}: {show.title}")
    bus.emit(EVENT_SHOW_CREATED, {'show_id': show.id, 'show': show})
    return show


def update_show(client: ApiClient, session: Session, show_id, updates: Dict[str, Any]) -> Optional[Show]:
    """Update show fields (admin only). Returns None when there is nothing to update."""
    require_admin(session, 'edit shows')
    if not updates:
        return None

    clean, warnings = normalize_show_fields(updates, creating=False)
    for warning in warnings:
        logger.warning(f"update_show: {warning}")

    show = client.update_show(show_id, clean)
    logger.info(f"Updated show ID {show_id}: {sorted(clean)}")
    bus.emit(EVENT_SHOW_UPDATED, {'show_id': show_id, 'updates': clean})
    return show


def toggle_paid(client: ApiClient, session: Session, show_id) -> Show:
    """Flip the paid flag. The server fills in the advance when marking paid with none recorded."""
    require_admin(session, 'change payment status')
    show = client.toggle_paid(show_id)
    logger.info(f"Show ID {show_id} marked {'paid' if show.is_paid else 'unpaid'}")
    bus.emit(EVENT_SHOW_PAID_TOGGLED, {'show_id': show_id, 'is_paid': show.is_paid})
    return show


# =============================================================================
# EXPENSES & FINANCIALS
# =============================================================================

def get_expenses(client: ApiClient, session: Session, show_id) -> List[ShowExpense]:
    require_admin(session, 'view expenses')
    return client.list_expenses(show_id)


def add_expense(client: ApiClient, session: Session, show_id, description: str, amount: Any) -> ShowExpense:
    require_admin(session, 'add expenses')
    description = (description or '').strip()
    if not description:
        raise ValueError("Description is required")
    amount = _coerce_amount('Amount', amount)

    expense = client.add_expense(show_id, description, amount)
    logger.info(f"Added expense to show ID {show_id}: {description} ({amount})")
    bus.emit(EVENT_EXPENSE_ADDED, {'show_id': show_id, 'expense': expense})
    return expense


def delete_expense(client: ApiClient, session: Session, show_id, expense_id) -> None:
    require_admin(session, 'delete expenses')
    client.delete_expense(show_id, expense_id)
    logger.info(f"Deleted expense ID {expense_id} from show ID {show_id}")
    bus.emit(EVENT_EXPENSE_DELETED, {'show_id': show_id, 'expense_id': expense_id})


def member_payout(payment_type: str, payment_value: int, net: int) -> int:
    """
    What one band member earns from a show.
    Percentage payouts are a share of the show's net, rounded half up;
    fixed and manual payouts are the amount itself.
    """
    if payment_type == 'percentage':
        return math.floor(payment_value * net / 100 + 0.5)
    return payment_value


def recalculate_payouts(members: Iterable[ShowMember], net: int) -> List[ShowMember]:
    """Copies of `members` with calculated_amount worked out against the current net."""
    return [
        replace(m, calculated_amount=member_payout(m.payment_type, m.payment_value, net))
        for m in members
    ]


def show_financials(show: Show, expenses: Iterable[ShowExpense] = (),
                    members: Iterable[ShowMember] = ()) -> ShowFinancials:
    """
    Balance due, expense total, net, band payouts and what is left for the
    founder for one show. A paid show owes nothing.
    """
    expenses_total = sum(e.amount for e in expenses)
    net = show.total_amount - expenses_total
    payouts = sum(m.calculated_amount for m in recalculate_payouts(members, net))
    balance_due = 0 if show.is_paid else max(show.total_amount - show.advance_payment, 0)
    return ShowFinancials(
        total_amount=show.total_amount,
        advance_payment=show.advance_payment,
        balance_due=balance_due,
        expenses_total=expenses_total,
        net_after_expenses=net,
        member_payouts=payouts,
        founder_share=net - payouts,
    )


# =============================================================================
# BAND ON A SHOW
# =============================================================================

def normalize_member_fields(fields: Dict[str, Any], creating: bool) -> Dict[str, Any]:
    """
    Clean a show member form. Raises ValueError for unknown fields, a blank
    name, an unknown role or payment type, a negative value, or a percentage
    above 100.
    """
    _validate_columns(fields, _MEMBER_FIELDS, 'show member')

    clean = dict(MEMBER_DEFAULTS) if creating else {}
    clean.update(fields)

    if 'name' in clean:
        clean['name'] = (clean['name'] or '').strip()
        if not clean['name']:
            raise ValueError("Name is required")
    elif creating:
        raise ValueError("Name is required")

    if 'role' in clean and clean['role'] not in MEMBER_ROLES:
        raise ValueError(f"Role must be one of: {', '.join(MEMBER_ROLES)}")
    if 'payment_type' in clean and clean['payment_type'] not in PAYMENT_TYPES:
        raise ValueError(f"Payment type must be one of: {', '.join(PAYMENT_TYPES)}")
    if 'payment_value' in clean:
        clean['payment_value'] = _coerce_amount('Payment value', clean['payment_value'])
        if clean.get('payment_type') == 'percentage' and clean['payment_value'] > 100:
            raise ValueError("A percentage payout cannot be more than 100")
    if 'is_referrer' in clean:
        clean['is_referrer'] = bool(clean['is_referrer'])
    return clean


def _show_net(client: ApiClient, show_id) -> int:
    show = client.get_show(show_id)
    return show.total_amount - sum(e.amount for e in client.list_expenses(show_id))


def get_show_members(client: ApiClient, session: Session, show_id) -> List[ShowMember]:
    require_admin(session, 'view the band on a show')
    return client.list_show_members(show_id)


def add_show_member(client: ApiClient, session: Session, show_id, fields: Dict[str, Any]) -> ShowMember:
    """Book a band member on a show; their payout is worked out from the show's current net."""
    require_admin(session, 'change the band on a show')
    clean = normalize_member_fields(fields, creating=True)
    clean['calculated_amount'] = member_payout(clean['payment_type'], clean['payment_value'],
                                               _show_net(client, show_id))

    member = client.add_show_member(show_id, clean)
    logger.info(f"Added {member.name} to show ID {show_id} ({clean['calculated_amount']})")
    bus.emit(EVENT_SHOW_MEMBER_ADDED, {'show_id': show_id, 'member': member})
    return member


def update_show_member(client: ApiClient, session: Session, show_id, member_id,
                       updates: Dict[str, Any]) -> Optional[ShowMember]:
    """
    Change a band member's booking on a show. Returns None when there is
    nothing to update. A payment change recalculates the payout.
    """
    require_admin(session, 'change the band on a show')
    if not updates:
        return None

    existing = next((m for m in client.list_show_members(show_id) if str(m.id) == str(member_id)), None)
    if existing is None:
        raise ValueError(f"Show #{show_id} has no band member with ID {member_id}")

    repay = bool({'payment_type', 'payment_value'} & updates.keys())
    if repay:
        updates = {'payment_type': existing.payment_type, 'payment_value': existing.payment_value, **updates}
    clean = normalize_member_fields(updates, creating=False)
    if repay:
        clean['calculated_amount'] = member_payout(clean['payment_type'], clean['payment_value'],
                                                   _show_net(client, show_id))

    member = client.update_show_member(show_id, member_id, clean)
    logger.info(f"Updated band member ID {member_id} on show ID {show_id}: {sorted(clean)}")
    bus.emit(EVENT_SHOW_MEMBER_UPDATED, {'show_id': show_id, 'member_id': member_id, 'updates': clean})
    return member


def remove_show_member(client: ApiClient, session: Session, show_id, member_id) -> None:
    require_admin(session, 'change the band on a show')
    client.delete_show_member(show_id, member_id)
    logger.info(f"Removed band member ID {member_id} from show ID {show_id}")
    bus.emit(EVENT_SHOW_MEMBER_REMOVED, {'show_id': show_id, 'member_id': member_id})


# =============================================================================
# SHOWS LIST
# =============================================================================

def quick_filter(
    shows: Iterable[Show],
    search: Optional[str] = None,
    status: Optional[str] = None,
    show_type: Optional[str] = None,
    paid: Optional[bool] = None,
) -> List[Show]:
    """
    Filters of the shows list. Search looks at title, city and organization
    only; the directory has the full-field search.
    """
    query = (search or '').strip().lower()
    result = []
    for s in shows:
        if query and not any(
            value and query in value.lower()
            for value in (s.title, s.city, s.organization_name, s.public_show_for)
        ):
            continue
        if status and s.status != status:
            continue
        if show_type and s.show_type != show_type:
            continue
        if paid is not None and s.is_paid != paid:
            continue
        result.append(s)
    return result


def _timestamp(show: Show) -> float:
    if show.show_date is None:
        return float('inf')
    return local_now(show.show_date).timestamp()


def _is_dated_before(show: Show, now: datetime) -> bool:
    return show.show_date is not None and local_now(show.show_date) < now


def _is_dated_after(show: Show, now: datetime) -> bool:
    return show.show_date is not None and local_now(show.show_date) > now


def build_show_board(shows: Iterable[Show], now: Optional[datetime] = None) -> ShowBoard:
    """
    Split shows into:
      - unpaid_completed: unpaid and either marked completed or dated in the past (oldest first)
      - advance_pending:  marked upcoming, dated in the future, no advance received (soonest first)
      - others:           upcoming shows soonest first, then everything else most recent first
    """
    now = local_now(now)
    board = ShowBoard()

    for s in shows:
        if not s.is_paid and (s.status == 'completed' or _is_dated_before(s, now)):
            board.unpaid_completed.append(s)
        elif s.status == 'upcoming' and _is_dated_after(s, now) and s.advance_payment == 0:
            board.advance_pending.append(s)
        else:
            board.others.append(s)

    board.unpaid_completed.sort(key=_timestamp)
    board.advance_pending.sort(key=_timestamp)

    upcoming = sorted((s for s in board.others if s.status == 'upcoming'), key=_timestamp)
    rest = sorted(
        (s for s in board.others if s.status != 'upcoming'),
        key=lambda s: _timestamp(s) if s.show_date else float('-inf'),
        reverse=True,
    )
    board.others = upcoming + rest
    return board


def next_upcoming(shows: Iterable[Show], limit: int = UPCOMING_LIMIT) -> List[Show]:
    """The next few shows marked upcoming, soonest first."""
    upcoming = sorted((s for s in shows if s.status == 'upcoming'), key=_timestamp)
    return upcoming[:limit]
