"""
Band Server API Client
Thin wrapper over requests.Session for the band server's JSON API.
Translates between the server's camelCase payloads and the dataclasses in
bandcrm.models. Never computes anything; the engine modules do that.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import requests
from dateutil import parser as date_parser

from bandcrm.models import (
    ActivityLogEntry, Capabilities, DateConflict, Session, Show, ShowExpense, ShowMember,
)

logger = logging.getLogger(__name__)

# Show field name -> JSON key used by the server
SHOW_FIELD_MAP = {
    'id': 'id',
    'title': 'title',
    'city': 'city',
    'show_type': 'showType',
    'organization_name': 'organizationName',
    'public_show_for': 'publicShowFor',
    'total_amount': 'totalAmount',
    'advance_payment': 'advancePayment',
    'show_date': 'showDate',
    'status': 'status',
    'is_paid': 'isPaid',
    'notes': 'notes',
    'poc_name': 'pocName',
    'poc_phone': 'pocPhone',
    'poc_email': 'pocEmail',
    'created_at': 'createdAt',
}

# ShowMember field name -> JSON key used by the server
MEMBER_FIELD_MAP = {
    'name': 'name',
    'role': 'role',
    'payment_type': 'paymentType',
    'payment_value': 'paymentValue',
    'is_referrer': 'isReferrer',
    'calculated_amount': 'calculatedAmount',
}

_CAPABILITY_MAP = {
    'can_add_shows': 'canAddShows',
    'can_view_amounts': 'canViewAmounts',
    'can_edit_name': 'canEditName',
    'can_show_contacts': 'canShowContacts',
}


class ApiError(RuntimeError):
    """Any failed request: transport error or non-2xx response."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        self.message = message
        if status_code is not None:
            super().__init__(f"HTTP {status_code}: {message}")
        else:
            super().__init__(message)


# =============================================================================
# DECODING / ENCODING
# =============================================================================

def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp from the server.
    Returns None for missing or malformed values instead of raising.
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value
    try:
        return date_parser.isoparse(str(value))
    except (ValueError, OverflowError) as e:
        logger.warning(f"parse_timestamp: unparseable date {value!r}: {e}")
        return None


def _int_or_zero(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        logger.warning(f"_int_or_zero: non-numeric amount {value!r}")
        return 0


def show_from_json(data: Dict[str, Any]) -> Show:
    """Build a Show from a server record. Unknown keys are ignored."""
    return Show(
        id=data.get('id'),
        title=data.get('title') or '',
        city=data.get('city') or '',
        show_type=data.get('showType') or '',
        organization_name=data.get('organizationName'),
        public_show_for=data.get('publicShowFor'),
        total_amount=_int_or_zero(data.get('totalAmount')),
        advance_payment=_int_or_zero(data.get('advancePayment')),
        show_date=parse_timestamp(data.get('showDate')),
        status=data.get('status') or 'upcoming',
        is_paid=bool(data.get('isPaid', False)),
        notes=data.get('notes'),
        poc_name=data.get('pocName'),
        poc_phone=data.get('pocPhone'),
        poc_email=data.get('pocEmail'),
        created_at=parse_timestamp(data.get('createdAt')),
    )


def show_to_payload(fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert a dict of Show field names to the server's JSON keys.
    Datetimes are sent as ISO-8601 strings.
    """
    payload = {}
    for name, value in fields.items():
        key = SHOW_FIELD_MAP.get(name)
        if key is None:
            raise ValueError(f"Unknown show field: {name}")
        if isinstance(value, datetime):
            value = value.isoformat()
        payload[key] = value
    return payload


def expense_from_json(data: Dict[str, Any]) -> ShowExpense:
    return ShowExpense(
        id=data.get('id'),
        show_id=data.get('showId'),
        description=data.get('description') or '',
        amount=_int_or_zero(data.get('amount')),
    )


def member_from_json(data: Dict[str, Any]) -> ShowMember:
    return ShowMember(
        id=data.get('id'),
        show_id=data.get('showId'),
        name=data.get('name') or '',
        role=data.get('role') or 'other',
        payment_type=data.get('paymentType') or 'manual',
        payment_value=_int_or_zero(data.get('paymentValue')),
        is_referrer=bool(data.get('isReferrer', False)),
        calculated_amount=_int_or_zero(data.get('calculatedAmount')),
    )


def member_to_payload(fields: Dict[str, Any]) -> Dict[str, Any]:
    payload = {}
    for name, value in fields.items():
        key = MEMBER_FIELD_MAP.get(name)
        if key is None:
            raise ValueError(f"Unknown show member field: {name}")
        payload[key] = value
    return payload


def activity_from_json(data: Dict[str, Any]) -> ActivityLogEntry:
    return ActivityLogEntry(
        id=data.get('id'),
        user_name=data.get('userName') or '',
        action=data.get('action') or '',
        details=data.get('details'),
        created_at=parse_timestamp(data.get('createdAt')),
    )


def conflict_from_json(data: Dict[str, Any]) -> DateConflict:
    return DateConflict(
        id=data.get('id'),
        title=data.get('title') or '',
        city=data.get('city') or '',
        show_type=data.get('showType') or '',
        show_date=parse_timestamp(data.get('showDate')),
    )


def session_from_json(data: Dict[str, Any]) -> Session:
    """Build a Session from the user object returned by login or /api/auth/me."""
    capabilities = Capabilities(**{
        name: bool(data.get(key, False)) for name, key in _CAPABILITY_MAP.items()
    })
    return Session(
        user_id=data.get('id'),
        username=data.get('username') or '',
        display_name=data.get('displayName') or '',
        role=data.get('role') or '',
        capabilities=capabilities,
        band_member_id=data.get('bandMemberId'),
        band_member_name=data.get('bandMemberName'),
    )


# =============================================================================
# CLIENT
# =============================================================================

class ApiClient:
    """
    Session-carrying client for the band server.
    The underlying requests.Session keeps the login cookie; see
    bandcrm.api.connection for persisting it between runs.
    """

    def __init__(self, base_url: str, timeout: float = 15.0, http: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.http = http if http is not None else requests.Session()

    def _request(self, method: str, path: str, params: Optional[Dict[str, Any]] = None,
                 json: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        logger.debug(f"{method} {path} params={params}")

        try:
            resp = self.http.request(method, url, params=params or None, json=json, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"{method} {path} failed: {e}")
            raise ApiError(f"Could not reach server: {e}") from e

        if not resp.ok:
            message = resp.reason or 'Request failed'
            try:
                body = resp.json()
                if isinstance(body, dict) and body.get('message'):
                    message = body['message']
            except ValueError:
                pass
            logger.warning(f"{method} {path} -> {resp.status_code}: {message}")
            raise ApiError(message, status_code=resp.status_code)

        logger.debug(f"{method} {path} -> {resp.status_code}")
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise ApiError(f"Invalid JSON from {path}", status_code=resp.status_code) from e

    # --- auth ----------------------------------------------------------------

    def login(self, username: str, password: str) -> Session:
        data = self._request('POST', '/api/auth/login', json={'username': username, 'password': password})
        return session_from_json(data or {})

    def logout(self) -> None:
        self._request('POST', '/api/auth/logout')

    def me(self) -> Session:
        return session_from_json(self._request('GET', '/api/auth/me') or {})

    def emergency_reset(self, recovery_key: str, new_password: str) -> str:
        data = self._request('POST', '/api/auth/emergency-reset',
                             json={'recoveryKey': recovery_key, 'newPassword': new_password})
        return (data or {}).get('message', '')

    def change_password(self, current_password: str, new_password: str) -> str:
        data = self._request('PATCH', '/api/auth/change-password',
                             json={'currentPassword': current_password, 'newPassword': new_password})
        return (data or {}).get('message', '')

    def update_member_name(self, name: str) -> str:
        data = self._request('PATCH', '/api/member/name', json={'name': name})
        return (data or {}).get('name', name)

    # --- shows ---------------------------------------------------------------

    def list_shows(self) -> List[Show]:
        return [show_from_json(row) for row in self._request('GET', '/api/shows') or []]

    def get_show(self, show_id) -> Show:
        return show_from_json(self._request('GET', f'/api/shows/{show_id}') or {})

    def create_show(self, fields: Dict[str, Any], as_member: bool = False) -> Show:
        path = '/api/member/shows' if as_member else '/api/shows'
        return show_from_json(self._request('POST', path, json=show_to_payload(fields)) or {})

    def update_show(self, show_id, fields: Dict[str, Any]) -> Show:
        data = self._request('PATCH', f'/api/shows/{show_id}', json=show_to_payload(fields))
        return show_from_json(data or {})

    def toggle_paid(self, show_id) -> Show:
        return show_from_json(self._request('PATCH', f'/api/shows/{show_id}/toggle-paid') or {})

    def check_date(self, when: datetime, exclude_id=None) -> List[DateConflict]:
        params = {'date': when.isoformat(), 'excludeId': exclude_id}
        data = self._request('GET', '/api/shows/check-date', params=params) or {}
        return [conflict_from_json(c) for c in data.get('conflicts', [])]

    # --- expenses ------------------------------------------------------------

    def list_expenses(self, show_id) -> List[ShowExpense]:
        return [expense_from_json(row) for row in self._request('GET', f'/api/shows/{show_id}/expenses') or []]

    def add_expense(self, show_id, description: str, amount: int) -> ShowExpense:
        data = self._request('POST', f'/api/shows/{show_id}/expenses',
                             json={'description': description, 'amount': amount})
        return expense_from_json(data or {})

    def delete_expense(self, show_id, expense_id) -> None:
        self._request('DELETE', f'/api/shows/{show_id}/expenses/{expense_id}')

    # --- band on a show ------------------------------------------------------

    def list_show_members(self, show_id) -> List[ShowMember]:
        return [member_from_json(row) for row in self._request('GET', f'/api/shows/{show_id}/members') or []]

    def add_show_member(self, show_id, fields: Dict[str, Any]) -> ShowMember:
        data = self._request('POST', f'/api/shows/{show_id}/members', json=member_to_payload(fields))
        return member_from_json(data or {})

    def update_show_member(self, show_id, member_id, fields: Dict[str, Any]) -> ShowMember:
        data = self._request('PATCH', f'/api/shows/{show_id}/members/{member_id}',
                             json=member_to_payload(fields))
        return member_from_json(data or {})

    def delete_show_member(self, show_id, member_id) -> None:
        self._request('DELETE', f'/api/shows/{show_id}/members/{member_id}')

    # --- dashboards (opaque summaries) ---------------------------------------

    def dashboard_stats(self, date_from: Optional[str] = None, date_to: Optional[str] = None) -> Dict[str, Any]:
        return self._request('GET', '/api/dashboard/stats', params={'from': date_from, 'to': date_to}) or {}

    def member_dashboard(self, date_from: Optional[str] = None, date_to: Optional[str] = None) -> Dict[str, Any]:
        return self._request('GET', '/api/member/dashboard', params={'from': date_from, 'to': date_to}) or {}

    def financials(self, date_from: Optional[str] = None, date_to: Optional[str] = None,
                   member: Optional[str] = None) -> Dict[str, Any]:
        params = {'from': date_from, 'to': date_to, 'member': member}
        return self._request('GET', '/api/financials', params=params) or {}

    def member_financials(self, date_from: Optional[str] = None, date_to: Optional[str] = None) -> Dict[str, Any]:
        return self._request('GET', '/api/member/financials', params={'from': date_from, 'to': date_to}) or {}

    # --- activity ------------------------------------------------------------

    def activity_logs(self, limit: int = 50) -> List[ActivityLogEntry]:
        return [activity_from_json(row) for row in self._request('GET', '/api/activity-logs', params={'limit': limit}) or []]
