"""
Shared test setup.

bandcrm.config raises at import time when API_BASE_URL is missing, so a
placeholder server URL is put in the environment before any test module
imports the package. A real .env, if present, still wins for other keys.
The session cookie jar points at a temp file so no test touches a real login.
"""

import os
import tempfile

os.environ.setdefault("API_BASE_URL", "http://testserver")
os.environ.setdefault("TIMEZONE", "Asia/Karachi")
os.environ.setdefault("SESSION_FILE", os.path.join(tempfile.gettempdir(), "bandcrm-test-session.json"))
