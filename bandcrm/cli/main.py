#!/usr/bin/env python3
"""
Band CRM Terminal CLI
Command-line interface for shows, money, the band, the directory, the dashboard
and the activity log.
"""

import logging
import re
import click
from datetime import date, datetime
from typing import Optional

from bandcrm.api.client import ApiError
from bandcrm.api.connection import clear_session, get_api_client
from bandcrm.config import config
from bandcrm.engine import activity, auth, dashboard, directory, financials, shows
from bandcrm.engine.auth import PermissionDenied
from bandcrm.engine.ranges import RANGE_NAMES, describe_range, local_now, to_local
from bandcrm.logging_config import configure_logging, log_call
from bandcrm.models import MEMBER_ROLES, PAYMENT_TYPES, SHOW_STATUSES, SHOW_TYPES, Show, ShowMember

_EMAIL_RE = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')

_DATE = click.DateTime(formats=['%Y-%m-%d'])
_DATETIME = click.DateTime(formats=['%Y-%m-%d %H:%M', '%Y-%m-%d'])


# =============================================================================
# HELPERS
# =============================================================================

def _money(amount) -> str:
    try:
        return f"{config.CURRENCY_LABEL} {int(amount):,}"
    except (TypeError, ValueError):
        return f"{config.CURRENCY_LABEL} {amount}"


def _fmt_date(value: Optional[datetime], with_time: bool = False) -> str:
    """Local display date; blank when the record carried no usable date."""
    if value is None:
        return ''
    return to_local(value).strftime('%b %d, %Y %H:%M' if with_time else '%b %d, %Y')


def _fail(context: str, exc: Exception) -> None:
    """Report a failed command and exit non-zero."""
    logger = logging.getLogger("bandcrm")
    if isinstance(exc, ApiError) and exc.status_code == 401:
        logger.warning(f"{context} | not authenticated")
        click.echo("Not logged in. Run: bandcrm login", err=True)
    elif isinstance(exc, (ApiError, PermissionDenied, ValueError)):
        logger.warning(f"{context} failed: {exc}")
        click.echo(f"Error: {exc}", err=True)
    else:
        logger.error(f"{context} unexpected error: {exc}", exc_info=True)
        click.echo(f"Unexpected error: {exc}", err=True)
    raise SystemExit(1)


@log_call
def _prompt_datetime(label: str, default: Optional[datetime] = None) -> datetime:
    """Prompt for a show date, re-prompting on bad format."""
    logger = logging.getLogger("bandcrm")
    default_str = default.strftime('%Y-%m-%d %H:%M') if default else ""
    while True:
        raw = click.prompt(label, default=default_str, show_default=bool(default_str)) or ""
        for fmt in ('%Y-%m-%d %H:%M', '%Y-%m-%d'):
            try:
                return datetime.strptime(raw.strip(), fmt)
            except ValueError:
                continue
        logger.debug(f"_prompt_datetime | rejected input={raw!r}")
        click.echo("  Invalid format — please use YYYY-MM-DD or YYYY-MM-DD HH:MM.", err=True)


@log_call
def _prompt_email() -> Optional[str]:
    """Prompt for a contact email, re-prompting on bad format. Returns None if left blank."""
    logger = logging.getLogger("bandcrm")
    while True:
        raw = click.prompt("Contact email", default="", show_default=False) or None
        if raw is None:
            return None
        if _EMAIL_RE.match(raw):
            return raw
        logger.debug(f"_prompt_email | rejected input={raw!r}")
        click.echo("  Invalid email address — please try again or press Enter to skip.", err=True)


def _custom_bounds(range_name: str, date_from: Optional[datetime], date_to: Optional[datetime]):
    """--from/--to only make sense with --range custom; passing them implies it."""
    if (date_from or date_to) and range_name != 'custom':
        range_name = 'custom'
    return (
        range_name,
        date_from.date() if date_from else None,
        date_to.date() if date_to else None,
    )


def _show_row(s: Show) -> str:
    return (
        f"{str(s.id)[:8]:<10} {_fmt_date(s.show_date):<13} {s.title[:28]:<30} "
        f"{s.show_type[:11]:<12} {s.city[:13]:<15} {'Paid' if s.is_paid else 'Unpaid':<7}"
    )


def _member_row(m: ShowMember) -> str:
    terms = f"{m.payment_value}%" if m.payment_type == 'percentage' else m.payment_type
    referrer = ' (referrer)' if m.is_referrer else ''
    return (
        f"{str(m.id)[:8]:<10} {(m.name + referrer)[:30]:<32} {m.role:<15} "
        f"{terms:<10} {_money(m.calculated_amount):>14}"
    )


_SHOW_HEADER = f"{'ID':<10} {'Date':<13} {'Title':<30} {'Type':<12} {'City':<15} {'Paid':<7}"


def _confirm_conflicts(client, when: datetime, exclude_id=None) -> bool:
    """Warn about shows on the same day. Returns False if the user backs out."""
    conflicts = shows.find_date_conflicts(client, when, exclude_id=exclude_id)
    if not conflicts:
        return True
    click.echo(f"\n⚠️  {len(conflicts)} show(s) already booked on {_fmt_date(when)}:")
    for c in conflicts:
        click.echo(f"  • {c.title} ({c.show_type}, {c.city}) {_fmt_date(c.show_date, with_time=True)}")
    return click.confirm("Book anyway?", default=False)


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Echo debug logs to stderr')
def cli(verbose):
    """Band CRM - Shows, Money & Contacts for the band"""
    configure_logging(verbose=verbose)


# =============================================================================
# ACCOUNT COMMANDS
# =============================================================================

@cli.command('login')
@click.option('--username', prompt=True)
@click.option('--password', prompt=True, hide_input=True)
@log_call
def login_cmd(username, password):
    """Log in to the band server"""
    try:
        with get_api_client() as client:
            session = auth.login(client, username, password)
    except ApiError as e:
        logging.getLogger("bandcrm").warning(f"login failed: {e}")
        click.echo(f"Error: {e.message}", err=True)
        raise SystemExit(1)
    except Exception as e:
        _fail("login", e)

    role = 'admin' if session.is_admin else 'member'
    click.echo(f"✓ Welcome back, {session.display_name or session.username} ({role})")


@cli.command('logout')
@log_call
def logout_cmd():
    """Log out and forget the stored session"""
    try:
        with get_api_client() as client:
            auth.logout(client)
    except ApiError as e:
        # The local session is dropped even if the server could not be told
        logging.getLogger("bandcrm").warning(f"logout: server logout failed: {e}")
    clear_session()
    click.echo("✓ Logged out")


@cli.command('whoami')
@log_call
def whoami():
    """Show the logged-in user and their permissions"""
    try:
        with get_api_client() as client:
            session = auth.current_session(client)
    except Exception as e:
        _fail("whoami", e)

    caps = session.capabilities
    click.echo(f"\nUser:         {session.username}")
    click.echo(f"Display name: {session.display_name}")
    click.echo(f"Role:         {'admin' if session.is_admin else session.role}")
    if session.is_member:
        click.echo(f"Band member:  {session.band_member_name or '(not linked)'}")
        click.echo(f"Add shows:    {'yes' if caps.can_add_shows else 'no'}")
        click.echo(f"View amounts: {'yes' if caps.can_view_amounts else 'no'}")
        click.echo(f"Edit name:    {'yes' if caps.can_edit_name else 'no'}")
    click.echo()


@cli.command('reset-admin')
@click.option('--recovery-key', prompt=True, hide_input=True)
@click.option('--new-password', prompt=True, hide_input=True, confirmation_prompt=True)
@log_call
def reset_admin(recovery_key, new_password):
    """Reset the admin password with the server's recovery key"""
    try:
        with get_api_client() as client:
            message = auth.emergency_reset(client, recovery_key, new_password)
    except Exception as e:
        _fail("reset-admin", e)
    click.echo(f"✓ {message or 'Password reset'}")


@cli.command('password')
@click.option('--current-password', prompt=True, hide_input=True)
@click.option('--new-password', prompt=True, hide_input=True, confirmation_prompt=True)
@log_call
def password_cmd(current_password, new_password):
    """Change your password"""
    try:
        with get_api_client() as client:
            message = auth.change_password(client, current_password, new_password)
    except Exception as e:
        _fail("password", e)
    click.echo(f"✓ {message or 'Password changed'}")


@cli.command('name')
@click.argument('new_name')
@log_call
def name_cmd(new_name):
    """Change your display name (band members with permission)"""
    try:
        with get_api_client() as client:
            session = auth.current_session(client)
            stored = auth.change_display_name(client, session, new_name)
    except Exception as e:
        _fail("name", e)
    click.echo(f"✓ Name updated to {stored}")


# =============================================================================
# SHOWS COMMANDS
# =============================================================================

@cli.group('shows')
def shows_cmd():
    """Manage shows"""
    pass


@shows_cmd.command('list')
@click.option('--search', help='Match title, city or organization')
@click.option('--status', type=click.Choice(SHOW_STATUSES), help='Filter by status')
@click.option('--type', 'show_type', help='Filter by show type')
@click.option('--paid/--unpaid', default=None, help='Filter by payment status')
@log_call
def shows_list(search, status, show_type, paid):
    """List shows, the ones needing attention first"""
    try:
        with get_api_client() as client:
            session = auth.current_session(client)
            results = shows.get_shows(client, session)
    except Exception as e:
        _fail("shows list", e)

    filtered = shows.quick_filter(results, search=search, status=status, show_type=show_type, paid=paid)
    if not filtered:
        click.echo("No shows found.")
        return

    board = shows.build_show_board(filtered)
    click.echo(f"\nFound {board.total} shows:")

    sections = (
        ("UNPAID (COMPLETED)", board.unpaid_completed),
        ("ADVANCE NOT PAID", board.advance_pending),
        ("ALL OTHER SHOWS", board.others),
    )
    for heading, section in sections:
        if not section:
            continue
        click.echo(f"\n{heading} ({len(section)})")
        click.echo(f"{_SHOW_HEADER} {'Amount':>14}")
        click.echo("-" * 106)
        for s in section:
            click.echo(f"{_show_row(s)} {_money(s.total_amount):>14}")


@shows_cmd.command('show')
@click.argument('show_id')
@log_call
def shows_show(show_id):
    """Show full show details, money, expenses and band payouts"""
    try:
        with get_api_client() as client:
            session = auth.current_session(client)
            show = shows.get_show(client, session, show_id)
            expenses = shows.get_expenses(client, session, show_id)
            members = shows.get_show_members(client, session, show_id)
    except Exception as e:
        _fail("shows show", e)

    money = shows.show_financials(show, expenses, members)

    click.echo(f"\n{'='*80}")
    click.echo(f"SHOW #{show.id}: {show.title}")
    click.echo(f"{'='*80}")
    click.echo(f"Date:         {_fmt_date(show.show_date, with_time=True) or '(no date)'}")
    click.echo(f"City:         {show.city}")
    click.echo(f"Type:         {show.show_type}")
    click.echo(f"Organization: {show.organization or '(not set)'}")
    click.echo(f"Status:       {show.status}")
    click.echo(f"Paid:         {'yes' if show.is_paid else 'no'}")
    click.echo(f"Contact:      {show.poc_name or '(not set)'}")
    click.echo(f"Phone:        {show.poc_phone or '(not set)'}")
    click.echo(f"Email:        {show.poc_email or '(not set)'}")

    if show.notes:
        click.echo(f"\nNotes:\n{show.notes}")

    click.echo(f"\n{'='*80}")
    click.echo("MONEY")
    click.echo(f"{'='*80}")
    click.echo(f"Total:              {_money(money.total_amount)}")
    click.echo(f"Advance received:   {_money(money.advance_payment)}")
    click.echo(f"Balance due:        {_money(money.balance_due)}")
    click.echo(f"Expenses:           {_money(money.expenses_total)}")
    click.echo(f"Net after expenses: {_money(money.net_after_expenses)}")
    click.echo(f"Band payouts:       {_money(money.member_payouts)}")
    click.echo(f"Founder share:      {_money(money.founder_share)}")

    if expenses:
        click.echo()
        for e in expenses:
            click.echo(f"  • {e.description[:50]:<52} {_money(e.amount):>14}")
    if members:
        click.echo()
        for m in shows.recalculate_payouts(members, money.net_after_expenses):
            click.echo(f"  ♪ {_member_row(m)}")
    click.echo()


@shows_cmd.command('add')
@log_call
def shows_add():
    """Add a new show (interactive)"""
    try:
        with get_api_client() as client:
            session = auth.current_session(client)
            if not auth.can_add_shows(session):
                raise PermissionDenied("You don't have permission to add shows")

            click.echo("\n=== ADD NEW SHOW ===\n")

            title = click.prompt("Title", type=str)
            city = click.prompt("City", type=str)
            show_type = click.prompt(f"Show type ({'/'.join(SHOW_TYPES)})", default="Corporate")
            if show_type == 'Public':
                organization_name = None
                public_show_for = click.prompt("Public show for", default="", show_default=False) or None
            else:
                organization_name = click.prompt("Organization", default="", show_default=False) or None
                public_show_for = None
            total_amount = click.prompt("Total amount", type=click.IntRange(min=0), default=0)
            advance_payment = click.prompt("Advance received", type=click.IntRange(min=0), default=0)
            show_date = _prompt_datetime("Show date (YYYY-MM-DD HH:MM)")
            notes = click.prompt("Notes", default="", show_default=False) or None
            poc_name = click.prompt("Contact name", default="", show_default=False) or None
            poc_phone = click.prompt("Contact phone", default="", show_default=False) or None
            poc_email = _prompt_email()

            if not _confirm_conflicts(client, local_now(show_date)):
                click.echo("Cancelled — show not added.")
                return

            fields = {
                'title': title,
                'city': city,
                'show_type': show_type,
                'organization_name': organization_name,
                'public_show_for': public_show_for,
                'total_amount': total_amount,
                'advance_payment': advance_payment,
                'show_date': show_date,
                'status': 'upcoming',
                'notes': notes,
                'poc_name': poc_name,
                'poc_phone': poc_phone,
                'poc_email': poc_email,
            }
            _, warnings = shows.normalize_show_fields(fields, creating=True)
            for warning in warnings:
                click.echo(f"  Warning: {warning}", err=True)

            show = shows.create_show(client, session, fields)
    except Exception as e:
        _fail("shows add", e)

    click.echo(f"\n✓ Created show #{show.id}: {show.title}")


@shows_cmd.command('edit')
@click.argument('show_id')
@click.option('--title', help='Update title')
@click.option('--city', help='Update city')
@click.option('--type', 'show_type', help='Update show type')
@click.option('--org', 'organization_name', help='Update organization')
@click.option('--public-for', 'public_show_for', help='Update who the public show is for')
@click.option('--total', 'total_amount', type=int, help='Update total amount')
@click.option('--advance', 'advance_payment', type=int, help='Update advance received')
@click.option('--date', 'show_date', type=_DATETIME, help='Update show date (YYYY-MM-DD [HH:MM])')
@click.option('--status', type=click.Choice(SHOW_STATUSES), help='Update status')
@click.option('--notes', help='Update notes')
@click.option('--poc-name', help='Update contact name')
@click.option('--poc-phone', help='Update contact phone')
@click.option('--poc-email', help='Update contact email')
@log_call
def shows_edit(show_id, **options):
    """Edit a show (use options to set fields)"""
    updates = {k: v for k, v in options.items() if v is not None}
    if not updates:
        click.echo("No updates specified. Use --title, --city, --total, --date, --status, ...", err=True)
        return

    try:
        with get_api_client() as client:
            session = auth.current_session(client)
            if 'show_date' in updates and not _confirm_conflicts(
                    client, local_now(updates['show_date']), exclude_id=show_id):
                click.echo("Cancelled — show not changed.")
                return
            show = shows.update_show(client, session, show_id, updates)
    except Exception as e:
        _fail("shows edit", e)

    click.echo(f"✓ Updated show #{show.id}: {show.title}")


@shows_cmd.command('paid')
@click.argument('show_id')
@log_call
def shows_paid(show_id):
    """Toggle a show between paid and unpaid"""
    try:
        with get_api_client() as client:
            session = auth.current_session(client)
            show = shows.toggle_paid(client, session, show_id)
    except Exception as e:
        _fail("shows paid", e)

    click.echo(f"✓ {show.title} marked {'paid' if show.is_paid else 'unpaid'}")


# =============================================================================
# EXPENSES COMMANDS
# =============================================================================

@cli.group('expenses')
def expenses_cmd():
    """Track show expenses"""
    pass


@expenses_cmd.command('list')
@click.argument('show_id')
@log_call
def expenses_list(show_id):
    """List expenses for a show"""
    try:
        with get_api_client() as client:
            session = auth.current_session(client)
            results = shows.get_expenses(client, session, show_id)
    except Exception as e:
        _fail("expenses list", e)

    if not results:
        click.echo("No expenses recorded.")
        return

    for e in results:
        click.echo(f"  {str(e.id)[:8]:<10} {e.description[:50]:<52} {_money(e.amount):>14}")
    click.echo("-" * 80)
    click.echo(f"  {'':<10} {'Total':<52} {_money(sum(e.amount for e in results)):>14}")


@expenses_cmd.command('add')
@click.argument('show_id')
@click.argument('description')
@click.argument('amount', type=int)
@log_call
def expenses_add(show_id, description, amount):
    """Record an expense against a show"""
    try:
        with get_api_client() as client:
            session = auth.current_session(client)
            expense = shows.add_expense(client, session, show_id, description, amount)
    except Exception as e:
        _fail("expenses add", e)

    click.echo(f"✓ Added expense: {expense.description} ({_money(expense.amount)})")


@expenses_cmd.command('remove')
@click.argument('show_id')
@click.argument('expense_id')
@log_call
def expenses_remove(show_id, expense_id):
    """Delete an expense from a show"""
    try:
        with get_api_client() as client:
            session = auth.current_session(client)
            shows.delete_expense(client, session, show_id, expense_id)
    except Exception as e:
        _fail("expenses remove", e)

    click.echo(f"✓ Removed expense {expense_id} from show #{show_id}")


# =============================================================================
# BAND ON A SHOW
# =============================================================================

@cli.group('members')
def members_cmd():
    """Who plays a show and what they are paid"""
    pass


@members_cmd.command('list')
@click.argument('show_id')
@log_call
def members_list(show_id):
    """List the band booked on a show"""
    try:
        with get_api_client() as client:
            session = auth.current_session(client)
            results = shows.get_show_members(client, session, show_id)
    except Exception as e:
        _fail("members list", e)

    if not results:
        click.echo("No band members on this show.")
        return

    click.echo(f"  {'ID':<10} {'Name':<32} {'Role':<15} {'Terms':<10} {'Payout':>14}")
    for m in results:
        click.echo(f"  {_member_row(m)}")
    click.echo("-" * 86)
    click.echo(f"  {'Total':<69} {_money(sum(m.calculated_amount for m in results)):>14}")


@members_cmd.command('add')
@click.argument('show_id')
@click.argument('name')
@click.option('--role', type=click.Choice(MEMBER_ROLES), default='session_player', show_default=True)
@click.option('--payment-type', type=click.Choice(PAYMENT_TYPES), default='manual', show_default=True)
@click.option('--value', 'payment_value', type=int, default=0, show_default=True,
              help='Percentage of net, or the amount for fixed and manual payouts')
@click.option('--referrer', 'is_referrer', is_flag=True, help='This member brought the show in')
@log_call
def members_add(show_id, name, role, payment_type, payment_value, is_referrer):
    """Book a band member on a show"""
    fields = {
        'name': name, 'role': role, 'payment_type': payment_type,
        'payment_value': payment_value, 'is_referrer': is_referrer,
    }
    try:
        with get_api_client() as client:
            session = auth.current_session(client)
            member = shows.add_show_member(client, session, show_id, fields)
    except Exception as e:
        _fail("members add", e)

    click.echo(f"✓ Added {member.name} to show #{show_id} ({_money(member.calculated_amount)})")


@members_cmd.command('edit')
@click.argument('show_id')
@click.argument('member_id')
@click.option('--name', help='Update name')
@click.option('--role', type=click.Choice(MEMBER_ROLES), help='Update role')
@click.option('--payment-type', type=click.Choice(PAYMENT_TYPES), help='Update payment type')
@click.option('--value', 'payment_value', type=int, help='Update payment value')
@click.option('--referrer/--not-referrer', 'is_referrer', default=None, help='Update referrer flag')
@log_call
def members_edit(show_id, member_id, **options):
    """Change a band member's role or pay on a show"""
    updates = {k: v for k, v in options.items() if v is not None}
    if not updates:
        click.echo("No updates specified")
        return
    try:
        with get_api_client() as client:
            session = auth.current_session(client)
            member = shows.update_show_member(client, session, show_id, member_id, updates)
    except Exception as e:
        _fail("members edit", e)

    click.echo(f"✓ Updated {member.name} on show #{show_id} ({_money(member.calculated_amount)})")


@members_cmd.command('remove')
@click.argument('show_id')
@click.argument('member_id')
@log_call
def members_remove(show_id, member_id):
    """Take a band member off a show"""
    try:
        with get_api_client() as client:
            session = auth.current_session(client)
            shows.remove_show_member(client, session, show_id, member_id)
    except Exception as e:
        _fail("members remove", e)

    click.echo(f"✓ Removed band member {member_id} from show #{show_id}")


# Also reachable as `shows members ...`
shows_cmd.add_command(members_cmd)


# =============================================================================
# DIRECTORY & DASHBOARD
# =============================================================================

@cli.command('directory')
@click.option('--range', 'range_name', type=click.Choice(RANGE_NAMES), default=lambda: config.DEFAULT_RANGE,
              show_default=True, help='Time range')
@click.option('--from', 'date_from', type=_DATE, help='Custom range start (YYYY-MM-DD)')
@click.option('--to', 'date_to', type=_DATE, help='Custom range end, inclusive (YYYY-MM-DD)')
@click.option('--search', default='', help='Search title, organization, city, contact, notes...')
@log_call
def directory_cmd(range_name, date_from, date_to, search):
    """Search every show and see totals by type, city and organization"""
    range_name, custom_from, custom_to = _custom_bounds(range_name, date_from, date_to)
    try:
        with get_api_client() as client:
            session = auth.current_session(client)
            auth.require_admin(session, 'open the directory')
            records = client.list_shows()
        view = directory.build_directory(records, range_name, search, custom_from, custom_to)
    except Exception as e:
        _fail("directory", e)

    summary = view.summary
    click.echo(f"\nDIRECTORY — {describe_range(range_name, view.date_range)}\n")
    click.echo(
        f"Total Shows: {summary.total_shows}   Completed: {summary.completed}   "
        f"Upcoming: {summary.upcoming}   Paid: {summary.paid}   Unpaid: {summary.unpaid}   "
        f"Total Revenue: {_money(summary.total_revenue)}"
    )
    if summary.type_breakdown:
        click.echo("Types:  " + ", ".join(f"{t}: {n}" for t, n in summary.type_breakdown))
    if summary.city_breakdown:
        click.echo("Cities: " + ", ".join(f"{c}: {n}" for c, n in summary.city_breakdown))

    if summary.org_breakdown and search.strip():
        click.echo(f"\nOrganizations ({len(summary.org_breakdown)})")
        for group in summary.org_breakdown:
            click.echo(f"  {group.label} — {group.count} {'show' if group.count == 1 else 'shows'}")
            for s in group.shows:
                click.echo(
                    f"      {_fmt_date(s.show_date):<13} {s.title[:30]:<32} {s.show_type:<12} "
                    f"{s.city:<15} {'Paid' if s.is_paid else 'Unpaid'}"
                )

    count = len(view.results)
    suffix = f' for "{search}"' if search.strip() else ''
    click.echo(f"\n{count} {'result' if count == 1 else 'results'}{suffix}")

    if not view.results:
        click.echo(f"No shows found{f' matching {search!r}' if search.strip() else ''}")
        return

    now = local_now()
    click.echo(f"{_SHOW_HEADER} {'When':<10}")
    click.echo("-" * 100)
    for s in view.results:
        when = 'Completed' if directory.is_past(s, now) else 'Upcoming'
        click.echo(f"{_show_row(s)} {when:<10}")
        contact = " · ".join(v for v in (s.organization, s.poc_name, s.poc_phone, s.poc_email) if v)
        if contact:
            click.echo(f"{'':<10} {contact}")


@cli.command('dashboard')
@click.option('--range', 'range_name', type=click.Choice(RANGE_NAMES), default=lambda: config.DEFAULT_RANGE,
              show_default=True, help='Time range')
@click.option('--from', 'date_from', type=_DATE, help='Custom range start (YYYY-MM-DD)')
@click.option('--to', 'date_to', type=_DATE, help='Custom range end, inclusive (YYYY-MM-DD)')
@log_call
def dashboard_cmd(range_name, date_from, date_to):
    """Headline numbers for a time range"""
    range_name, custom_from, custom_to = _custom_bounds(range_name, date_from, date_to)
    try:
        with get_api_client() as client:
            session = auth.current_session(client)
            report = dashboard.build_dashboard(client, session, range_name, custom_from, custom_to)
    except Exception as e:
        _fail("dashboard", e)

    click.echo(f"\nWelcome back, {session.display_name or session.username}")
    click.echo(f"{describe_range(range_name, report.date_range)}\n")

    if not report.stats:
        click.echo("No data for this range.")
    for label, value, is_amount in report.stats:
        click.echo(f"  {label:<26} {_money(value) if is_amount else value}")

    if report.top_cities:
        click.echo("\nTop Cities")
        for i, (city, count) in enumerate(report.top_cities, start=1):
            click.echo(f"  {i}. {city:<20} {count}")
    if report.top_types:
        click.echo("\nShow Types")
        for show_type, count in report.top_types:
            click.echo(f"  {show_type:<23} {count}")

    click.echo("\nUpcoming Shows")
    if not report.upcoming:
        click.echo("  No upcoming shows.")
    for s in report.upcoming:
        click.echo(f"  {_fmt_date(s.show_date, with_time=True):<20} {s.title[:30]:<32} {s.city}")
    click.echo()


# =============================================================================
# FINANCIALS & ACTIVITY
# =============================================================================

@cli.command('financials')
@click.option('--range', 'range_name', type=click.Choice(RANGE_NAMES), default=lambda: config.DEFAULT_RANGE,
              show_default=True, help='Time range')
@click.option('--from', 'date_from', type=_DATE, help='Custom range start (YYYY-MM-DD)')
@click.option('--to', 'date_to', type=_DATE, help='Custom range end, inclusive (YYYY-MM-DD)')
@click.option('--member', help='Band member to report on (admin only)')
@log_call
def financials_cmd(range_name, date_from, date_to, member):
    """Earnings per show for one band member"""
    range_name, custom_from, custom_to = _custom_bounds(range_name, date_from, date_to)
    try:
        with get_api_client() as client:
            session = auth.current_session(client)
            report = financials.build_financials(client, session, range_name, custom_from, custom_to, member)
    except Exception as e:
        _fail("financials", e)

    heading = 'FINANCIALS' if session.is_admin else 'MY FINANCIALS'
    click.echo(f"\n{heading}{f' — {report.member}' if report.member else ''}")
    click.echo(f"{describe_range(range_name, report.date_range)}\n")

    if not report.stats:
        click.echo("No data for this range.")
    for label, value, is_amount in report.stats:
        click.echo(f"  {label:<26} {_money(value) if is_amount else value}")

    if report.cities:
        click.echo("\nCities")
        for city, count in report.cities:
            click.echo(f"  {city:<23} {count}")

    for title, lines in (("Shows", report.shows), ("Upcoming", report.upcoming)):
        if not lines:
            continue
        click.echo(f"\n{title}")
        for line in lines:
            fee = f"{_money(line.total_amount):>14}" if line.total_amount is not None else f"{'':>14}"
            marks = ('Paid' if line.is_paid else 'Unpaid') + (' · referred' if line.is_referrer else '')
            click.echo(
                f"  {_fmt_date(line.show_date):<13} {line.title[:28]:<30} {line.city[:13]:<15} "
                f"{fee} {_money(line.member_earning):>14}  {marks}"
            )

    if report.retained:
        click.echo("\nRetained Funds (cancelled shows)")
        for title, amount in report.retained:
            click.echo(f"  {title[:40]:<42} {_money(amount):>14}")
    click.echo()


@cli.command('activity')
@click.option('--limit', type=int, default=activity.DEFAULT_LIMIT, show_default=True, help='How many entries')
@log_call
def activity_cmd(limit):
    """Recent logins and changes, newest first"""
    try:
        with get_api_client() as client:
            session = auth.current_session(client)
            entries = activity.get_activity(client, session, limit)
    except Exception as e:
        _fail("activity", e)

    if not entries:
        click.echo("No activity yet.")
        return

    for entry in entries:
        line = f"{_fmt_date(entry.created_at, with_time=True):<20} {entry.user_name[:18]:<20} "
        line += activity.action_label(entry.action)
        if entry.details:
            line += f": {entry.details}"
        click.echo(line)


# =============================================================================
# MAIN
# =============================================================================

if __name__ == '__main__':
    cli()
