#!/usr/bin/env python3
"""
Band CRM - Interactive Menu Launcher
Every CLI command behind a numbered menu.

Usage:
    python main.py
"""

import subprocess
import sys
import os

PYTHON = sys.executable
BANDCRM = [PYTHON, "bandcrm/cli/main.py"]

# Project root on PYTHONPATH so the 'bandcrm' package is importable
ENV = os.environ.copy()
ENV["PYTHONPATH"] = os.path.dirname(os.path.abspath(__file__))

RANGES = "lifetime/this_year/last_year/this_month/last_month/last_3_months/last_6_months/custom"


def run(args: list[str]):
    """Run a CLI command and return to menu when done."""
    print()
    subprocess.run(BANDCRM + args, env=ENV)
    print()
    input("  Press Enter to return to menu...")


def prompt(label: str, required: bool = True) -> str:
    """Prompt user for input. Returns empty string if optional and skipped."""
    while True:
        value = input(f"  {label}: ").strip()
        if value:
            return value
        if not required:
            return ""
        print("  (required - please enter a value)")


def prompt_optional(label: str) -> str:
    return prompt(f"{label} (optional, Enter to skip)", required=False)


def clear():
    os.system("cls" if os.name == "nt" else "clear")


def range_args() -> list[str]:
    """Ask for a time range; custom ranges also ask for the bounds."""
    args = []
    r = prompt_optional(f"Range ({RANGES})")
    if r:
        args += ["--range", r]
    if r == "custom":
        f = prompt_optional("From (YYYY-MM-DD)")
        t = prompt_optional("To (YYYY-MM-DD)")
        if f: args += ["--from", f]
        if t: args += ["--to", t]
    return args


# =============================================================================
# COMMAND HANDLERS
# =============================================================================

def login():
    run(["login"])

def logout():
    run(["logout"])

def whoami():
    run(["whoami"])

def change_password():
    run(["password"])

def change_name():
    name = prompt("New display name")
    run(["name", name])

def reset_admin():
    run(["reset-admin"])

def shows_list():
    args = ["shows", "list"]
    q = prompt_optional("Search title/city/organization")
    s = prompt_optional("Filter by status (upcoming/completed/cancelled)")
    p = input("  Paid? (y = paid, n = unpaid, Enter = all): ").strip().lower()
    if q: args += ["--search", q]
    if s: args += ["--status", s]
    if p == "y": args += ["--paid"]
    if p == "n": args += ["--unpaid"]
    run(args)

def shows_show():
    sid = prompt("Show ID")
    run(["shows", "show", sid])

def shows_add():
    run(["shows", "add"])

def shows_edit():
    sid = prompt("Show ID")
    args = ["shows", "edit", sid]
    d = prompt_optional("New date (YYYY-MM-DD HH:MM)")
    s = prompt_optional("New status (upcoming/completed/cancelled)")
    t = prompt_optional("New total amount")
    a = prompt_optional("New advance received")
    n = prompt_optional("New notes")
    if d: args += ["--date", d]
    if s: args += ["--status", s]
    if t: args += ["--total", t]
    if a: args += ["--advance", a]
    if n: args += ["--notes", n]
    run(args)

def shows_paid():
    sid = prompt("Show ID")
    run(["shows", "paid", sid])

def expenses_list():
    sid = prompt("Show ID")
    run(["expenses", "list", sid])

def expenses_add():
    sid = prompt("Show ID")
    desc = prompt("Description")
    amount = prompt("Amount")
    run(["expenses", "add", sid, desc, amount])

def expenses_remove():
    sid = prompt("Show ID")
    eid = prompt("Expense ID")
    run(["expenses", "remove", sid, eid])

def members_list():
    sid = prompt("Show ID")
    run(["members", "list", sid])

def members_add():
    sid = prompt("Show ID")
    name = prompt("Name")
    args = ["members", "add", sid, name]
    r = prompt_optional("Role (session_player/manager/other)")
    p = prompt_optional("Payment type (percentage/fixed/manual)")
    v = prompt_optional("Percentage or amount")
    ref = input("  Brought the show in? (y/N): ").strip().lower()
    if r: args += ["--role", r]
    if p: args += ["--payment-type", p]
    if v: args += ["--value", v]
    if ref == "y": args += ["--referrer"]
    run(args)

def members_edit():
    sid = prompt("Show ID")
    mid = prompt("Band member ID")
    args = ["members", "edit", sid, mid]
    p = prompt_optional("New payment type (percentage/fixed/manual)")
    v = prompt_optional("New percentage or amount")
    if p: args += ["--payment-type", p]
    if v: args += ["--value", v]
    run(args)

def members_remove():
    sid = prompt("Show ID")
    mid = prompt("Band member ID")
    run(["members", "remove", sid, mid])

def directory():
    args = ["directory"] + range_args()
    q = prompt_optional("Search")
    if q: args += ["--search", q]
    run(args)

def dashboard():
    run(["dashboard"] + range_args())

def financials():
    args = ["financials"] + range_args()
    m = prompt_optional("Band member (admins only)")
    if m: args += ["--member", m]
    run(args)

def activity():
    args = ["activity"]
    n = prompt_optional("How many entries")
    if n: args += ["--limit", n]
    run(args)


# =============================================================================
# MENU LAYOUT
# =============================================================================

MENU = [
    ("ACCOUNT", [
        ("Log in",                       login),
        ("Log out",                      logout),
        ("Who am I",                     whoami),
        ("Change password",              change_password),
        ("Change display name",          change_name),
        ("Emergency admin reset",        reset_admin),
    ]),
    ("SHOWS", [
        ("List shows",                   shows_list),
        ("Show details & money",         shows_show),
        ("Add show",                     shows_add),
        ("Edit show",                    shows_edit),
        ("Toggle paid",                  shows_paid),
    ]),
    ("EXPENSES", [
        ("List expenses",                expenses_list),
        ("Add expense",                  expenses_add),
        ("Remove expense",               expenses_remove),
    ]),
    ("BAND", [
        ("Band on a show",               members_list),
        ("Add band member to show",      members_add),
        ("Change band member pay",       members_edit),
        ("Remove band member from show", members_remove),
    ]),
    ("REPORTS", [
        ("Dashboard",                    dashboard),
        ("Directory",                    directory),
        ("Financials",                   financials),
        ("Activity log",                 activity),
    ]),
]


def print_menu():
    clear()
    print("=" * 50)
    print("   BAND CRM - COMMAND CENTRE")
    print("=" * 50)

    n = 1
    numbering = {}  # maps display number -> handler function

    for section, commands in MENU:
        print(f"\n  {section}")
        print(f"  {'-' * len(section)}")
        for label, handler in commands:
            print(f"  {n:>2}.  {label}")
            numbering[n] = handler
            n += 1

    print("\n" + "=" * 50)
    print("   0.  Exit")
    print("=" * 50)
    return numbering


def main():
    while True:
        numbering = print_menu()

        try:
            choice = input("\n  Select a command: ").strip()
        except (KeyboardInterrupt, EOFError):
            print("\n\n  Goodbye!\n")
            break

        if choice == "0" or choice.lower() in ("q", "quit", "exit"):
            print("\n  Goodbye!\n")
            break

        try:
            n = int(choice)
        except ValueError:
            print("\n  Please enter a number.")
            input("  Press Enter to continue...")
            continue

        if n in numbering:
            clear()
            numbering[n]()
        else:
            print(f"\n  Invalid selection: {choice}")
            input("  Press Enter to continue...")


if __name__ == "__main__":
    main()
