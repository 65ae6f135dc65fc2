"""
Unit tests for bandcrm/engine/auth.py.

The ApiClient is a MagicMock; gates are checked before any request is made.
"""

from unittest.mock import MagicMock

import pytest

from bandcrm.api.client import ApiError
from bandcrm.bus.events import bus, EVENT_LOGGED_IN, EVENT_LOGGED_OUT, EVENT_MEMBER_NAME_CHANGED, EVENT_PASSWORD_RESET
from bandcrm.engine import auth
from bandcrm.engine.auth import PermissionDenied
from bandcrm.models import Capabilities, Session, ROLE_ADMIN, ROLE_MEMBER

ADMIN = Session(username='founder', display_name='Ali', role=ROLE_ADMIN)
MEMBER = Session(username='drums', display_name='Bilal', role=ROLE_MEMBER)
MEMBER_ALL = Session(
    username='keys', display_name='Sara', role=ROLE_MEMBER,
    capabilities=Capabilities(can_add_shows=True, can_view_amounts=True, can_edit_name=True),
)


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def events():
    received = []
    for name in (EVENT_LOGGED_IN, EVENT_LOGGED_OUT, EVENT_MEMBER_NAME_CHANGED, EVENT_PASSWORD_RESET):
        bus.on(name, lambda data, name=name: received.append((name, data)))
    yield received
    bus.clear()


# ---------------------------------------------------------------------------
# Gates
# ---------------------------------------------------------------------------

class TestGates:

    def test_require_admin_passes_for_admin(self):
        auth.require_admin(ADMIN, 'open the directory')

    def test_require_admin_rejects_member(self):
        with pytest.raises(PermissionDenied, match='open the directory'):
            auth.require_admin(MEMBER_ALL, 'open the directory')

    def test_admin_has_every_capability_implicitly(self):
        assert auth.can_add_shows(ADMIN)
        assert auth.can_view_amounts(ADMIN)

    def test_member_needs_capability(self):
        assert not auth.can_add_shows(MEMBER)
        assert not auth.can_view_amounts(MEMBER)
        assert auth.can_add_shows(MEMBER_ALL)
        assert auth.can_view_amounts(MEMBER_ALL)

    def test_edit_name_is_member_only(self):
        assert auth.can_edit_name(MEMBER_ALL)
        assert not auth.can_edit_name(MEMBER)
        assert not auth.can_edit_name(ADMIN)

    def test_permission_denied_is_permission_error(self):
        assert issubclass(PermissionDenied, PermissionError)


# ---------------------------------------------------------------------------
# Login / logout
# ---------------------------------------------------------------------------

class TestLogin:

    def test_login_returns_session_and_emits(self, client, events):
        client.login.return_value = ADMIN
        assert auth.login(client, 'founder', 'secret1') is ADMIN
        client.login.assert_called_once_with('founder', 'secret1')
        assert events == [(EVENT_LOGGED_IN, {'session': ADMIN})]

    @pytest.mark.parametrize('username,password', [('', 'x'), ('founder', ''), (None, None)])
    def test_login_requires_both_fields(self, client, username, password):
        with pytest.raises(ValueError, match='Username and password required'):
            auth.login(client, username, password)
        client.login.assert_not_called()

    def test_bad_credentials_propagate(self, client, events):
        client.login.side_effect = ApiError('Invalid credentials', status_code=401)
        with pytest.raises(ApiError):
            auth.login(client, 'founder', 'wrong')
        assert events == []

    def test_logout_emits(self, client, events):
        auth.logout(client)
        client.logout.assert_called_once()
        assert events[0][0] == EVENT_LOGGED_OUT

    def test_current_session(self, client):
        client.me.return_value = MEMBER
        assert auth.current_session(client) is MEMBER


# ---------------------------------------------------------------------------
# Passwords
# ---------------------------------------------------------------------------

class TestPasswords:

    def test_emergency_reset(self, client, events):
        client.emergency_reset.return_value = 'Password reset'
        assert auth.emergency_reset(client, 'RECOVERY', 'newpass') == 'Password reset'
        client.emergency_reset.assert_called_once_with('RECOVERY', 'newpass')
        assert events[0] == (EVENT_PASSWORD_RESET, {'via': 'recovery_key'})

    def test_emergency_reset_requires_key(self, client):
        with pytest.raises(ValueError, match='Recovery key'):
            auth.emergency_reset(client, '', 'newpass')

    def test_new_password_minimum_length(self, client):
        with pytest.raises(ValueError, match='at least 6'):
            auth.emergency_reset(client, 'RECOVERY', '12345')
        client.emergency_reset.assert_not_called()

    def test_change_password(self, client):
        client.change_password.return_value = 'Password changed'
        assert auth.change_password(client, 'oldpass', 'newpass') == 'Password changed'

    def test_change_password_requires_current(self, client):
        with pytest.raises(ValueError):
            auth.change_password(client, '', 'newpass')


# ---------------------------------------------------------------------------
# Display name
# ---------------------------------------------------------------------------

class TestChangeDisplayName:

    def test_trims_and_returns_stored_name(self, client, events):
        client.update_member_name.return_value = 'Sara K'
        assert auth.change_display_name(client, MEMBER_ALL, '  Sara K  ') == 'Sara K'
        client.update_member_name.assert_called_once_with('Sara K')
        assert events[0] == (EVENT_MEMBER_NAME_CHANGED, {'old_name': 'Sara', 'new_name': 'Sara K'})

    def test_member_without_capability_denied(self, client):
        with pytest.raises(PermissionDenied):
            auth.change_display_name(client, MEMBER, 'New Name')
        client.update_member_name.assert_not_called()

    def test_admin_denied(self, client):
        with pytest.raises(PermissionDenied):
            auth.change_display_name(client, ADMIN, 'New Name')

    def test_blank_name_rejected(self, client):
        with pytest.raises(ValueError, match='Name is required'):
            auth.change_display_name(client, MEMBER_ALL, '   ')
