"""
Band CRM Configuration
Loads settings from environment variables with sensible defaults.
"""

import logging
import os
from pathlib import Path
from dotenv import load_dotenv

_logger = logging.getLogger(__name__)

# Load .env file
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)


class Config:
    """Application configuration."""

    # Band server, must be set in .env
    API_BASE_URL = os.getenv('API_BASE_URL')
    if not API_BASE_URL:
        _logger.critical("API_BASE_URL is not set — cannot start. Copy .env.example to .env and configure it.")
        raise ValueError("API_BASE_URL environment variable is not set. Copy .env.example to .env and configure it.")
    API_BASE_URL = API_BASE_URL.rstrip('/')

    # Timezone used for calendar-aligned date ranges
    TIMEZONE = os.getenv('TIMEZONE', 'Asia/Karachi')

    # HTTP
    REQUEST_TIMEOUT_SECONDS = float(os.getenv('REQUEST_TIMEOUT_SECONDS', '15'))

    # Session cookie jar, kept between CLI invocations
    SESSION_FILE = Path(os.getenv('SESSION_FILE', str(Path.home() / '.bandcrm' / 'session.json'))).expanduser()

    # Display
    CURRENCY_LABEL = os.getenv('CURRENCY_LABEL', 'Rs')
    DEFAULT_RANGE = os.getenv('DEFAULT_RANGE', 'lifetime')


# Singleton instance
config = Config()
