from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from pytest_bdd import scenarios, given, when, parsers
from bandcrm.cli.main import cli
from bandcrm.config import config
from bandcrm.models import Show

scenarios("features/directory.feature")

TZ = ZoneInfo(config.TIMEZONE)


def _days(n):
    return datetime.now(TZ) + timedelta(days=n)


@given("the band has played for Jazz twice and LUMS once")
def jazz_and_lums(api_client):
    api_client.list_shows.return_value = [
        Show(id=1, title="Jazz Annual Dinner", city="Karachi", show_type="Corporate",
             organization_name="Jazz", is_paid=True, total_amount=250000, show_date=_days(-90)),
        Show(id=2, title="LUMS Spring Fest", city="Lahore", show_type="University",
             organization_name="LUMS", total_amount=150000, show_date=_days(30)),
        Show(id=3, title="Product Launch", city="Karachi", show_type="Corporate",
             organization_name="jazz", is_paid=True, total_amount=300000, show_date=_days(-10)),
    ]


@given("a show on the evening of 28 February 2026")
def late_february_show(api_client):
    api_client.list_shows.return_value = [
        Show(id=7, title="Mehndi Night", city="Lahore", show_type="Private",
             show_date=datetime(2026, 2, 28, 22, 30, tzinfo=TZ)),
        Show(id=8, title="March Gig", city="Lahore", show_type="Private",
             show_date=datetime(2026, 3, 1, 0, 30, tzinfo=TZ)),
    ]


@when("I open the directory")
def open_directory(runner, context):
    context["result"] = runner.invoke(cli, ["directory"])


@when(parsers.parse('I search the directory for "{search}"'))
def search_directory(runner, context, search):
    context["result"] = runner.invoke(cli, ["directory", "--search", search])


@when(parsers.parse('I open the directory from "{date_from}" to "{date_to}"'))
def open_custom_range(runner, context, date_from, date_to):
    context["result"] = runner.invoke(cli, ["directory", "--from", date_from, "--to", date_to])
