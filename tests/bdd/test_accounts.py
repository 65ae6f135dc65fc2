from pytest_bdd import scenarios, given, when, parsers

from bandcrm.api.client import ApiError
from bandcrm.cli.main import cli
from bandcrm.models import Session, ROLE_ADMIN

scenarios("features/auth.feature")


@given("the server accepts the founder's password")
def accepts_password(api_client):
    api_client.login.return_value = Session(username="founder", display_name="Ali", role=ROLE_ADMIN)


@given("the server rejects the password")
def rejects_password(api_client):
    api_client.login.side_effect = ApiError("Invalid credentials", status_code=401)


@when(parsers.parse('I log in as "{username}"'))
def log_in(runner, context, username):
    context["result"] = runner.invoke(cli, ["login", "--username", username, "--password", "s3cret-pass"])


@when("I ask who I am")
def who_am_i(runner, context):
    context["result"] = runner.invoke(cli, ["whoami"])


@when(parsers.parse('I change my name to "{name}"'))
def change_name(runner, context, api_client, name):
    api_client.update_member_name.return_value = name
    context["result"] = runner.invoke(cli, ["name", name])
