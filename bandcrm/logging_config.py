"""
Logging configuration for Band CRM.

Every module logs through logging.getLogger(__name__), so records from
bandcrm.api, bandcrm.engine and bandcrm.cli all end up on the single
'bandcrm' logger configured here.

  Log file : logs/bandcrm.log
  Rotation : 5 MB × 3 backups
  Level    : LOG_LEVEL env var (DEBUG / INFO / WARNING / ERROR / CRITICAL)
             defaults to INFO when unset
  Console  : only with `bandcrm --verbose`, DEBUG and up to stderr

Usage
-----
    from bandcrm.logging_config import configure_logging, log_call

    # Once per CLI invocation:
    configure_logging(verbose=False)

    @log_call
    def directory(range_name, search):
        ...

Log format per line
-------------------
    2026-03-02 19:05:44 | DEBUG    | CALL directory | args=(range_name='this_year', search='jazz')
    2026-03-02 19:05:44 | INFO     | OK   directory | 118ms
    2026-03-02 19:05:44 | ERROR    | FAIL directory | ApiError: HTTP 401: Not authenticated | 40ms
"""

import functools
import logging
import logging.handlers
import os
import sys
import time
from pathlib import Path

_LOG_DIR = Path(__file__).parent.parent / "logs"
_LOG_FILE = _LOG_DIR / "bandcrm.log"
_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"
_CONSOLE_FORMAT = "%(levelname)-8s %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
_BACKUP_COUNT = 3

# Keyword arguments whose values never reach the log file
_REDACTED_ARGS = {"password", "new_password", "current_password", "recovery_key"}

# requests' connection pool logs every connection at DEBUG
_NOISY_LOGGERS = ("urllib3",)


def _has_handler(logger: logging.Logger, kind: type) -> bool:
    return any(type(h) is kind for h in logger.handlers)


def configure_logging(verbose: bool = False) -> logging.Logger:
    """
    Set up the bandcrm logger: a rotating file handler, plus a stderr handler
    when `verbose`. Idempotent: each handler is attached at most once.
    Returns the configured logger.
    """
    _LOG_DIR.mkdir(exist_ok=True)

    level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    logger = logging.getLogger("bandcrm")

    if not _has_handler(logger, logging.handlers.RotatingFileHandler):
        logger.setLevel(level)
        handler = logging.handlers.RotatingFileHandler(
            _LOG_FILE,
            maxBytes=_MAX_BYTES,
            backupCount=_BACKUP_COUNT,
            encoding="utf-8",
        )
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
        logger.addHandler(handler)
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    if verbose and not _has_handler(logger, logging.StreamHandler):
        logger.setLevel(logging.DEBUG)
        console = logging.StreamHandler(sys.stderr)
        console.setLevel(logging.DEBUG)
        console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
        logger.addHandler(console)

    return logger


def format_args(args: tuple, kwargs: dict) -> str:
    """Readable argument list for a CALL line, credentials masked."""
    parts = [repr(a) for a in args] + [
        f"{k}='***'" if k in _REDACTED_ARGS else f"{k}={v!r}"
        for k, v in kwargs.items()
    ]
    return ", ".join(parts) if parts else "—"


def log_call(func):
    """
    Decorator: logs entry, clean exit, and exceptions for any function.

    - DEBUG on entry   : CALL <name> | args=(...)
    - INFO  on success : OK   <name> | <N>ms
    - ERROR on failure : FAIL <name> | ExcType: message | <N>ms   (then re-raises)

    Keyword arguments named like passwords or recovery keys are logged as '***'.
    SystemExit from a CLI command passes through unlogged; the command has
    already reported the failure.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = logging.getLogger("bandcrm")
        name = func.__name__
        start = time.perf_counter()
        logger.debug(f"CALL {name} | args=({format_args(args, kwargs)})")

        try:
            result = func(*args, **kwargs)
        except Exception as exc:
            ms = int((time.perf_counter() - start) * 1000)
            logger.error(f"FAIL {name} | {type(exc).__name__}: {exc} | {ms}ms")
            raise

        ms = int((time.perf_counter() - start) * 1000)
        logger.info(f"OK   {name} | {ms}ms")
        return result

    return wrapper
