"""
Server Connection Management
Hands out an ApiClient whose login cookie survives between CLI invocations.
"""

import json
import logging
from contextlib import contextmanager

import requests

from bandcrm.api.client import ApiClient
from bandcrm.config import config

logger = logging.getLogger(__name__)


def load_cookies(session: requests.Session) -> None:
    """Populate session cookies from SESSION_FILE, if one was saved."""
    path = config.SESSION_FILE
    if not path.exists():
        logger.debug("No stored session cookies")
        return
    try:
        stored = json.loads(path.read_text(encoding='utf-8'))
    except (OSError, ValueError) as e:
        logger.warning(f"Ignoring unreadable session file {path}: {e}")
        return
    session.cookies.update(requests.utils.cookiejar_from_dict(stored))
    logger.debug(f"Loaded {len(stored)} session cookies")


def save_cookies(session: requests.Session) -> None:
    """Write session cookies to SESSION_FILE (owner-readable only)."""
    path = config.SESSION_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(requests.utils.dict_from_cookiejar(session.cookies)), encoding='utf-8')
    path.chmod(0o600)
    logger.debug("Session cookies saved")


def clear_session() -> None:
    """Forget the stored login."""
    path = config.SESSION_FILE
    if path.exists():
        path.unlink()
        logger.info("Stored session cleared")


@contextmanager
def get_api_client():
    """
    Context manager for server access.
    Restores the stored login, yields a client, and saves cookies on success.
    On error the stored cookies are left as they were.

    Usage:
        with get_api_client() as client:
            shows = client.list_shows()
    """
    client = ApiClient(config.API_BASE_URL, timeout=config.REQUEST_TIMEOUT_SECONDS)
    load_cookies(client.http)
    try:
        yield client
        save_cookies(client.http)
    except Exception as e:
        logger.error(f"Server session aborted: {e}")
        raise
    finally:
        client.http.close()
