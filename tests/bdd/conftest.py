"""
Shared fixtures and step definitions for BDD tests.

- runner, api_client, context: available to all scenario files in this directory
- no_logging: autouse, prevents log file creation during tests
- login steps and 'the output contains' / 'the command fails' steps are
  shared across all feature files
"""

from contextlib import contextmanager

import pytest
from unittest.mock import MagicMock, patch
from click.testing import CliRunner
from pytest_bdd import given, then, parsers

from bandcrm.api.client import ApiError
from bandcrm.bus.events import bus
from bandcrm.models import Capabilities, Session, ROLE_ADMIN, ROLE_MEMBER


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def api_client():
    """MagicMock ApiClient handed out by get_api_client for every command."""
    client = MagicMock()
    client.list_shows.return_value = []

    @contextmanager
    def fake_get_api_client():
        yield client

    with patch("bandcrm.cli.main.get_api_client", fake_get_api_client):
        yield client


@pytest.fixture
def context():
    """Mutable dict shared between Given/When/Then steps within a scenario."""
    return {}


@pytest.fixture(autouse=True)
def no_logging():
    with patch("bandcrm.cli.main.configure_logging"):
        yield


@pytest.fixture(autouse=True)
def clean_bus():
    yield
    bus.clear()


@given("I am logged in as the admin")
def logged_in_admin(api_client):
    api_client.me.return_value = Session(username="founder", display_name="Ali", role=ROLE_ADMIN)


@given("I am logged in as a band member")
def logged_in_member(api_client):
    api_client.me.return_value = Session(username="drums", display_name="Bilal", role=ROLE_MEMBER)


@given(parsers.parse('I am logged in as a band member who can {capability}'))
def logged_in_member_with(api_client, capability):
    flags = {
        "add shows": Capabilities(can_add_shows=True),
        "view amounts": Capabilities(can_view_amounts=True),
        "edit their name": Capabilities(can_edit_name=True),
    }
    api_client.me.return_value = Session(
        username="keys", display_name="Sara", role=ROLE_MEMBER, capabilities=flags[capability],
    )


@given("I am not logged in")
def not_logged_in(api_client):
    api_client.me.side_effect = ApiError("Not authenticated", status_code=401)


@then(parsers.parse('the output contains "{text}"'))
def output_contains(context, text):
    assert text in context["result"].output, (
        f"Expected {text!r} in output:\n{context['result'].output}"
    )


@then(parsers.parse('the output does not contain "{text}"'))
def output_does_not_contain(context, text):
    assert text not in context["result"].output, (
        f"Did not expect {text!r} in output:\n{context['result'].output}"
    )


@then("the command fails")
def command_fails(context):
    assert context["result"].exit_code != 0, context["result"].output
