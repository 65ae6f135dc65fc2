"""
Activity Log
Who did what: logins, password resets, show changes and payments, newest first.
"""

import logging
from typing import List

from bandcrm.api.client import ApiClient
from bandcrm.engine.auth import require_admin
from bandcrm.models import ActivityLogEntry, Session

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50

ACTION_LABELS = {
    'login': 'Logged in',
    'emergency_password_reset': 'Emergency password reset',
    'password_changed': 'Changed password',
    'show_created': 'Created show',
    'show_updated': 'Updated show',
    'show_deleted': 'Deleted show',
    'members_updated': 'Changed band on show',
    'show_marked_paid': 'Marked show paid',
    'show_marked_unpaid': 'Marked show unpaid',
}


def action_label(action: str) -> str:
    """Readable name for an action code; unknown codes are shown as-is."""
    return ACTION_LABELS.get(action, action.replace('_', ' ').capitalize())


def get_activity(client: ApiClient, session: Session, limit: int = DEFAULT_LIMIT) -> List[ActivityLogEntry]:
    require_admin(session, 'view the activity log')
    if limit < 1:
        raise ValueError("Limit must be at least 1")
    entries = client.activity_logs(limit)
    logger.debug(f"get_activity: {len(entries)} entries (limit {limit})")
    return entries
