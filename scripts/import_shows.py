#!/usr/bin/env python3
"""
Band CRM Show History Importer
Imports a spreadsheet of past and booked shows (xlsx or csv) through the
band server's API.

Features:
- Column headers matched by common aliases, case-insensitive
- Duplicate detection: same calendar day + fuzzy title match
- Never overwrites existing shows
- Re-runnable / safe to run multiple times
- Dry-run mode
- Progress bar and a log file per run
"""

import argparse
import logging
import re
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd
from rapidfuzz import fuzz
from tqdm import tqdm

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from bandcrm.api.client import ApiError
from bandcrm.api.connection import get_api_client
from bandcrm.engine import auth, shows
from bandcrm.engine.auth import PermissionDenied
from bandcrm.engine.ranges import local_now, to_local
from bandcrm.models import Show

DUPLICATE_THRESHOLD = 85

# Spreadsheet header (lower-cased, trimmed) -> show field
COLUMN_ALIASES = {
    'title': ('title', 'show', 'event', 'name'),
    'city': ('city', 'location'),
    'show_date': ('date', 'show date', 'show_date'),
    'show_type': ('type', 'show type', 'show_type'),
    'organization_name': ('organization', 'organisation', 'org', 'client', 'company'),
    'public_show_for': ('public show for', 'public_show_for'),
    'total_amount': ('amount', 'total', 'total amount', 'fee'),
    'advance_payment': ('advance', 'advance payment', 'advance_payment'),
    'is_paid': ('paid', 'is paid', 'is_paid'),
    'status': ('status',),
    'notes': ('notes', 'remarks', 'comments'),
    'poc_name': ('contact', 'poc', 'contact name', 'poc name'),
    'poc_phone': ('phone', 'contact phone', 'poc phone'),
    'poc_email': ('email', 'contact email', 'poc email'),
}

_PAID_WORDS = {'yes', 'y', 'true', '1', 'paid', 'x', '✓'}

# First number in a cell, so currency prefixes like 'Rs.' or 'PKR' are skipped
_AMOUNT_RE = re.compile(r'-?\d[\d,]*(?:\.\d+)?')


# =============================================================================
# CELL PARSING
# =============================================================================

def map_columns(columns: Iterable[Any]) -> Dict[Any, str]:
    """
    Map spreadsheet columns to show fields by alias.
    The first column matching a field wins; unknown columns are ignored.
    """
    mapping = {}
    taken = set()
    for column in columns:
        key = str(column).strip().lower()
        for field_name, aliases in COLUMN_ALIASES.items():
            if key in aliases and field_name not in taken:
                mapping[column] = field_name
                taken.add(field_name)
                break
    return mapping


def clean_cell(value: Any) -> Any:
    """NaN/NaT/blank -> None; strings trimmed."""
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    if isinstance(value, str):
        return value.strip() or None
    return value


def parse_amount(value: Any) -> int:
    """'Rs. 150,000' / 'PKR 1,500' / 150000.0 / None -> int (0 when blank)."""
    value = clean_cell(value)
    if value is None:
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    match = _AMOUNT_RE.search(str(value))
    if match is None:
        raise ValueError(f"Not an amount: {value!r}")
    return int(float(match.group().replace(',', '')))


def parse_paid(value: Any) -> bool:
    value = clean_cell(value)
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _PAID_WORDS


def parse_show_date(value: Any) -> Optional[datetime]:
    """Excel timestamps, datetimes or date strings -> naive datetime; None when unreadable."""
    value = clean_cell(value)
    if value is None:
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, datetime):
        return value
    parsed = pd.to_datetime(str(value), errors='coerce', dayfirst=True)
    if pd.isna(parsed):
        return None
    return parsed.to_pydatetime()


def row_to_fields(row: pd.Series, mapping: Dict[Any, str], now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Build a show form from one spreadsheet row.
    Rows without a status are marked completed when dated in the past.
    """
    fields: Dict[str, Any] = {}
    for column, field_name in mapping.items():
        raw = row[column]
        if field_name in ('total_amount', 'advance_payment'):
            fields[field_name] = parse_amount(raw)
        elif field_name == 'is_paid':
            fields[field_name] = parse_paid(raw)
        elif field_name == 'show_date':
            fields[field_name] = parse_show_date(raw)
        elif field_name == 'status':
            status = clean_cell(raw)
            if status is not None:
                fields[field_name] = str(status).lower()
        else:
            value = clean_cell(raw)
            if value is not None:
                fields[field_name] = str(value)

    if fields.get('show_date') is None:
        fields.pop('show_date', None)
    elif 'status' not in fields:
        past = local_now(fields['show_date']) < local_now(now)
        fields['status'] = 'completed' if past else 'upcoming'
    return fields


# =============================================================================
# DUPLICATE DETECTION
# =============================================================================

def find_duplicate(fields: Dict[str, Any], existing: List[Show], threshold: int = DUPLICATE_THRESHOLD) -> Optional[Show]:
    """
    An existing show on the same calendar day whose title fuzzy-matches.
    Returns the best match at or above threshold, else None.
    """
    when = fields.get('show_date')
    title = (fields.get('title') or '').lower()
    if when is None or not title:
        return None

    day = to_local(when).date()
    best_score = 0
    best_match = None
    for show in existing:
        if show.show_date is None or to_local(show.show_date).date() != day:
            continue
        score = fuzz.ratio(title, show.title.lower())
        if score > best_score:
            best_score = score
            best_match = show

    if best_match is not None and best_score >= threshold:
        logging.info(f"Duplicate: '{fields['title']}' matches show ID {best_match.id} (score: {best_score})")
        return best_match
    return None


# =============================================================================
# SHEET READING
# =============================================================================

def read_sheet(path: Path, sheet: Optional[str] = None) -> pd.DataFrame:
    if path.suffix.lower() == '.csv':
        return pd.read_csv(path)
    return pd.read_excel(path, sheet_name=sheet or 0)


# =============================================================================
# MAIN IMPORT ORCHESTRATOR
# =============================================================================

def import_rows(client, session, df: pd.DataFrame, dry_run: bool = False,
                threshold: int = DUPLICATE_THRESHOLD) -> Dict[str, int]:
    """
    Import every row of a sheet. Returns counts of created, duplicates,
    skipped (unusable rows) and errors (rejected by validation or server).
    """
    stats = {'created': 0, 'duplicates': 0, 'skipped': 0, 'errors': 0}

    mapping = map_columns(df.columns)
    logging.info(f"Column mapping: {mapping}")
    missing = {'title', 'show_date'} - set(mapping.values())
    if missing:
        raise ValueError(f"Sheet has no column for: {', '.join(sorted(missing))}")

    existing = shows.get_shows(client, session)
    logging.info(f"{len(existing)} shows already on the server")

    for idx, row in tqdm(df.iterrows(), total=len(df), desc="Importing shows", unit="show"):
        try:
            fields = row_to_fields(row, mapping)
        except ValueError as e:
            logging.error(f"Row {idx}: {e}")
            stats['errors'] += 1
            continue

        if not fields.get('title') or 'show_date' not in fields:
            logging.debug(f"Row {idx}: skipped, no title or date")
            stats['skipped'] += 1
            continue

        if find_duplicate(fields, existing, threshold):
            stats['duplicates'] += 1
            continue

        try:
            if dry_run:
                clean, warnings = shows.normalize_show_fields(fields, creating=True)
                for warning in warnings:
                    logging.warning(f"Row {idx}: {warning}")
                logging.info(f"[DRY-RUN] Would create: {clean['title']} on {clean['show_date'].date()}")
                existing.append(Show(title=clean['title'], show_date=clean['show_date']))
            else:
                created = shows.create_show(client, session, fields)
                existing.append(created)
            stats['created'] += 1
        except (ValueError, ApiError) as e:
            logging.error(f"Row {idx}: {e}")
            stats['errors'] += 1

    return stats


def run_import(path: Path, sheet: Optional[str] = None, dry_run: bool = False,
               threshold: int = DUPLICATE_THRESHOLD, log_level: str = "INFO") -> int:
    """Main import function."""

    # Setup logging
    log_file = project_root / "logs" / f"import_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
    log_file.parent.mkdir(exist_ok=True)

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )

    logging.info("=" * 80)
    logging.info("BAND CRM SHOW IMPORT")
    logging.info("=" * 80)
    logging.info(f"Mode: {'DRY-RUN' if dry_run else 'LIVE'}")
    logging.info(f"Source: {path}")
    logging.info(f"Log file: {log_file}")
    logging.info("=" * 80)

    if not path.exists():
        logging.error(f"File not found: {path}")
        return 1

    try:
        df = read_sheet(path, sheet)
    except Exception as e:
        logging.error(f"Failed to read {path}: {e}")
        return 1

    try:
        with get_api_client() as client:
            session = auth.current_session(client)
            stats = import_rows(client, session, df, dry_run=dry_run, threshold=threshold)
    except (ApiError, PermissionDenied, ValueError) as e:
        logging.error(f"Import failed: {e}")
        return 1

    logging.info("=" * 80)
    logging.info("IMPORT COMPLETE")
    logging.info("=" * 80)
    logging.info(f"Shows created: {stats['created']}")
    logging.info(f"Duplicates skipped: {stats['duplicates']}")
    logging.info(f"Rows skipped: {stats['skipped']}")
    logging.info(f"Errors: {stats['errors']}")
    logging.info(f"Log file: {log_file}")
    logging.info("=" * 80)

    return 0 if stats['errors'] == 0 else 1


# =============================================================================
# CLI
# =============================================================================

def main():
    parser = argparse.ArgumentParser(
        description="Import a show history spreadsheet into Band CRM"
    )
    parser.add_argument('path', type=Path, help="xlsx or csv file")
    parser.add_argument('--sheet', help="Sheet name (xlsx only, default: first sheet)")
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help="Show what would be imported without creating shows"
    )
    parser.add_argument(
        '--threshold',
        type=int,
        default=DUPLICATE_THRESHOLD,
        help=f"Fuzzy title score counted as a duplicate (default: {DUPLICATE_THRESHOLD})"
    )
    parser.add_argument(
        '--log-level',
        default='INFO',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help="Logging level (default: INFO)"
    )

    args = parser.parse_args()

    sys.exit(run_import(args.path, sheet=args.sheet, dry_run=args.dry_run,
                        threshold=args.threshold, log_level=args.log_level))


if __name__ == "__main__":
    main()
