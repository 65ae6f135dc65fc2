"""
Data Models
Dataclasses for all entities. These are pure Python objects, no HTTP logic.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple, Union

ROLE_ADMIN = 'founder'
ROLE_MEMBER = 'member'

SHOW_TYPES = ('Corporate', 'Private', 'Public', 'University')
SHOW_STATUSES = ('upcoming', 'completed', 'cancelled')

MEMBER_ROLES = ('session_player', 'manager', 'other')
PAYMENT_TYPES = ('percentage', 'fixed', 'manual')


@dataclass
class Show:
    """A single scheduled or performed show."""
    id: Optional[Union[str, int]] = None
    title: str = ''
    city: str = ''
    show_type: str = 'Corporate'
    organization_name: Optional[str] = None
    public_show_for: Optional[str] = None
    total_amount: int = 0
    advance_payment: int = 0
    show_date: Optional[datetime] = None
    status: str = 'upcoming'
    is_paid: bool = False
    notes: Optional[str] = None
    poc_name: Optional[str] = None
    poc_phone: Optional[str] = None
    poc_email: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def organization(self) -> Optional[str]:
        """Organization label as displayed: organization name, else who the public show is for."""
        return self.organization_name or self.public_show_for


@dataclass
class ShowExpense:
    """Expense line recorded against a show"""
    id: Optional[Union[str, int]] = None
    show_id: Optional[Union[str, int]] = None
    description: str = ''
    amount: int = 0


@dataclass
class ShowMember:
    """
    A player or manager booked on a show and what they are paid for it.
    payment_value is a percentage of the show's net for percentage payouts,
    otherwise an amount.
    """
    id: Optional[Union[str, int]] = None
    show_id: Optional[Union[str, int]] = None
    name: str = ''
    role: str = 'session_player'
    payment_type: str = 'manual'
    payment_value: int = 0
    is_referrer: bool = False
    calculated_amount: int = 0


@dataclass
class EarningLine:
    """One show on the financials screen and what the selected member made from it"""
    id: Optional[Union[str, int]] = None
    title: str = ''
    city: str = ''
    show_date: Optional[datetime] = None
    show_type: str = ''
    total_amount: Optional[int] = None
    member_earning: int = 0
    is_paid: bool = False
    is_referrer: bool = False


@dataclass
class ActivityLogEntry:
    """One line of the admin activity log"""
    id: Optional[Union[str, int]] = None
    user_name: str = ''
    action: str = ''
    details: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Capabilities:
    """Per-user permission flags supplied by the server."""
    can_add_shows: bool = False
    can_view_amounts: bool = False
    can_edit_name: bool = False
    can_show_contacts: bool = False


@dataclass(frozen=True)
class Session:
    """
    The authenticated user as seen by the client.
    Read-only; passed explicitly to every operation that gates on role.
    """
    user_id: Optional[str] = None
    username: str = ''
    display_name: str = ''
    role: str = ROLE_MEMBER
    capabilities: Capabilities = field(default_factory=Capabilities)
    band_member_id: Optional[str] = None
    band_member_name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def is_member(self) -> bool:
        return self.role == ROLE_MEMBER


@dataclass(frozen=True)
class DateRange:
    """Concrete bounds of a time window. None means unbounded on that side."""
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @property
    def is_unbounded(self) -> bool:
        return self.start is None and self.end is None


@dataclass
class OrgGroup:
    """Shows sharing an organization key, labelled with the first-seen casing."""
    label: str
    shows: List[Show] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.shows)


@dataclass
class DirectorySummary:
    """Counts, totals and groupings derived from a filtered show set."""
    total_shows: int = 0
    paid: int = 0
    unpaid: int = 0
    completed: int = 0
    upcoming: int = 0
    cancelled: int = 0
    total_revenue: int = 0
    type_breakdown: List[Tuple[str, int]] = field(default_factory=list)
    city_breakdown: List[Tuple[str, int]] = field(default_factory=list)
    org_breakdown: List[OrgGroup] = field(default_factory=list)


@dataclass
class DirectoryView:
    """Everything the directory screen renders for one set of filter inputs."""
    date_range: DateRange
    search: str
    results: List[Show]
    summary: DirectorySummary


@dataclass
class DateConflict:
    """Another show already booked on the same calendar day"""
    id: Optional[Union[str, int]] = None
    title: str = ''
    city: str = ''
    show_type: str = ''
    show_date: Optional[datetime] = None


@dataclass
class ShowFinancials:
    """Money picture for one show."""
    total_amount: int = 0
    advance_payment: int = 0
    balance_due: int = 0
    expenses_total: int = 0
    net_after_expenses: int = 0
    member_payouts: int = 0
    founder_share: int = 0


@dataclass
class ShowBoard:
    """The shows list split into the sections that need attention first."""
    unpaid_completed: List[Show] = field(default_factory=list)
    advance_pending: List[Show] = field(default_factory=list)
    others: List[Show] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.unpaid_completed) + len(self.advance_pending) + len(self.others)
