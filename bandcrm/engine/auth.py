"""
Auth Engine
Login state and role/capability gates. Password hashing, recovery-key
checks and cookie handling all live on the server; this module only calls
the endpoints and refuses operations the session is not allowed to make.
"""

import logging

from bandcrm.api.client import ApiClient
from bandcrm.bus.events import (
    bus, EVENT_LOGGED_IN, EVENT_LOGGED_OUT, EVENT_PASSWORD_RESET, EVENT_MEMBER_NAME_CHANGED,
)
from bandcrm.models import Session

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class PermissionDenied(PermissionError):
    """The current session lacks the role or capability an operation needs."""


# =============================================================================
# GATES
# =============================================================================

def require_admin(session: Session, action: str = 'do that') -> None:
    if not session.is_admin:
        raise PermissionDenied(f"Admin access required to {action}")


def can_add_shows(session: Session) -> bool:
    return session.is_admin or session.capabilities.can_add_shows


def can_view_amounts(session: Session) -> bool:
    return session.is_admin or session.capabilities.can_view_amounts


def can_edit_name(session: Session) -> bool:
    return session.is_member and session.capabilities.can_edit_name


def _check_new_password(new_password: str) -> None:
    if not new_password or len(new_password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


# =============================================================================
# OPERATIONS
# =============================================================================

def login(client: ApiClient, username: str, password: str) -> Session:
    """Log in and return the resulting session."""
    if not username or not password:
        raise ValueError("Username and password required")
    session = client.login(username, password)
    logger.info(f"Logged in as {session.username} ({session.role})")
    bus.emit(EVENT_LOGGED_IN, {'session': session})
    return session


def logout(client: ApiClient) -> None:
    client.logout()
    logger.info("Logged out")
    bus.emit(EVENT_LOGGED_OUT, {})


def current_session(client: ApiClient) -> Session:
    """The logged-in user; raises ApiError (401) when nobody is logged in."""
    return client.me()


def emergency_reset(client: ApiClient, recovery_key: str, new_password: str) -> str:
    """Reset the admin password with the server's recovery key."""
    if not recovery_key:
        raise ValueError("Recovery key and new password required")
    _check_new_password(new_password)
    message = client.emergency_reset(recovery_key, new_password)
    logger.warning("Admin password reset via recovery key")
    bus.emit(EVENT_PASSWORD_RESET, {'via': 'recovery_key'})
    return message


def change_password(client: ApiClient, current_password: str, new_password: str) -> str:
    if not current_password:
        raise ValueError("Current password and new password required")
    _check_new_password(new_password)
    message = client.change_password(current_password, new_password)
    logger.info("Password changed")
    bus.emit(EVENT_PASSWORD_RESET, {'via': 'change_password'})
    return message


def change_display_name(client: ApiClient, session: Session, name: str) -> str:
    """
    Rename the logged-in band member.
    Only members whose account has the edit-name capability may do this.
    Returns the name as stored by the server.
    """
    if not can_edit_name(session):
        raise PermissionDenied("You don't have permission to change your name")
    new_name = (name or '').strip()
    if not new_name:
        raise ValueError("Name is required")

    stored = client.update_member_name(new_name)
    logger.info(f"Display name changed: {session.display_name!r} -> {stored!r}")
    bus.emit(EVENT_MEMBER_NAME_CHANGED, {'old_name': session.display_name, 'new_name': stored})
    return stored
