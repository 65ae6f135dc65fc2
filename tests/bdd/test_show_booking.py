from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from pytest_bdd import scenarios, given, when, then, parsers
from bandcrm.cli.main import cli
from bandcrm.config import config
from bandcrm.models import DateConflict, Show

scenarios("features/shows.feature")

TZ = ZoneInfo(config.TIMEZONE)


def _add_input(title, city, when):
    # title, city, type, organization, total, advance, date, notes, contact name/phone/email
    return "\n".join([title, city, "Corporate", "", "0", "0", when, "", "", "", ""]) + "\n"


@given("there are no shows booked")
def no_shows(api_client):
    api_client.list_shows.return_value = []


@given("an unpaid show last week and a paid show last month")
def unpaid_and_paid(api_client):
    now = datetime.now(TZ)
    api_client.list_shows.return_value = [
        Show(id=1, title="Old Wedding", city="Multan", show_type="Private",
             status="completed", show_date=now - timedelta(days=7)),
        Show(id=2, title="Corporate Dinner", city="Karachi", show_type="Corporate",
             status="completed", is_paid=True, show_date=now - timedelta(days=30)),
    ]


@given("the date is free")
def date_free(api_client):
    api_client.check_date.return_value = []
    api_client.create_show.return_value = Show(id=9, title="Jazz Dinner")


@given("another show is booked that day")
def date_taken(api_client):
    api_client.check_date.return_value = [
        DateConflict(id=5, title="Mehndi Night", city="Karachi", show_type="Private",
                     show_date=datetime(2026, 4, 2, 18, 0, tzinfo=TZ)),
    ]


@when(parsers.parse('I add a show "{title}" in "{city}" on "{when}"'))
def add_show(runner, context, title, city, when):
    context["result"] = runner.invoke(cli, ["shows", "add"], input=_add_input(title, city, when))


@when(parsers.parse('I add a show "{title}" in "{city}" on "{when}" and decline the clash'))
def add_show_decline(runner, context, title, city, when):
    context["result"] = runner.invoke(cli, ["shows", "add"], input=_add_input(title, city, when) + "n\n")


@when("I try to add a show")
def try_add_show(runner, context):
    context["result"] = runner.invoke(cli, ["shows", "add"])


@when("I list shows")
def list_shows(runner, context):
    context["result"] = runner.invoke(cli, ["shows", "list"])


@when(parsers.parse("I toggle payment on show {show_id}"))
def toggle_paid(runner, context, api_client, show_id):
    api_client.toggle_paid.return_value = Show(id=int(show_id), title="Product Launch", is_paid=True)
    context["result"] = runner.invoke(cli, ["shows", "paid", show_id])


@then("no show is created")
def no_show_created(api_client):
    api_client.create_show.assert_not_called()


@then("the show is sent through the member endpoint")
def member_endpoint(api_client):
    assert api_client.create_show.call_args[1] == {"as_member": True}
