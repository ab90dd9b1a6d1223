"""Configuration settings for Holdfast."""

import os
import sys
import logging
from pathlib import Path
from dotenv import load_dotenv

APP_NAME = "Holdfast"


def is_bundled() -> bool:
    """
    Check if the application is running from a PyInstaller bundle.

    Returns:
        True if running from a bundled executable, False otherwise.
    """
    return getattr(sys, 'frozen', False) and hasattr(sys, '_MEIPASS')


def get_user_data_dir() -> Path:
    """
    Get the directory for user-writable data (rules, settings, events).

    HOLDFAST_DATA_DIR always wins. Otherwise development runs use
    ./data next to this file, and bundled apps use the per-OS
    application data folder so data persists across updates.

    Returns:
        Path to the user data directory (not created here).
    """
    override = os.getenv("HOLDFAST_DATA_DIR", "")
    if override:
        return Path(override).expanduser()

    if not is_bundled():
        return Path(__file__).parent / "data"

    if sys.platform == 'darwin':
        # macOS: ~/Library/Application Support/Holdfast
        return Path.home() / "Library" / "Application Support" / APP_NAME
    if sys.platform == 'win32':
        appdata = os.environ.get('APPDATA')
        if appdata:
            return Path(appdata) / APP_NAME
        return Path.home() / "AppData" / "Roaming" / APP_NAME
    # Linux: ~/.local/share/Holdfast
    return Path.home() / ".local" / "share" / APP_NAME


def _get_number(env_var: str, default: float) -> float:
    """
    Read a numeric override from the environment.

    Unparseable or non-positive values fall back to the default.
    """
    raw = os.getenv(env_var, "")
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logging.getLogger(__name__).warning(
            f"{env_var}={raw!r} is not a number, using default {default}"
        )
        return default
    if value <= 0:
        logging.getLogger(__name__).warning(
            f"{env_var} must be positive, using default {default}"
        )
        return default
    return value


# Load environment variables from .env file (only in development)
if not is_bundled():
    _env_path = Path(__file__).parent / ".env"
    load_dotenv(_env_path)

# User data directory (rules, settings, event log, instance lock)
USER_DATA_DIR = get_user_data_dir()

# Storage keys (one JSON file per key inside USER_DATA_DIR)
STORAGE_SETTINGS = "settings"
STORAGE_BLOCK_RULES = "block_rules"
STORAGE_WEBSITE_RULES = "website_rules"
STORAGE_EVENTS = "events"

# Rule kinds
RULE_PERMANENT = "permanent"
RULE_TIMER = "timer"
RULE_SCHEDULE = "schedule"

# Event types
EVENT_BLOCK = "block"
EVENT_UNBLOCK = "unblock"
EVENT_KILLSWITCH = "killswitch"
EVENT_VIOLATION = "violation"

# Event log is capped to the most recent N records
MAX_EVENTS = int(_get_number("MAX_EVENTS", 100))

# Enforcement cadence (seconds)
APP_CHECK_INTERVAL = _get_number("APP_CHECK_INTERVAL", 2.0)
WEBSITE_CHECK_INTERVAL = _get_number("WEBSITE_CHECK_INTERVAL", 30.0)

# A browser (by executable path) is not killed again within this window
BROWSER_KILL_COOLDOWN = _get_number("BROWSER_KILL_COOLDOWN", 30.0)

# Time allowed to close browsers voluntarily once website rules turn active
WEBSITE_GRACE_PERIOD = _get_number("WEBSITE_GRACE_PERIOD", 30.0)

# Seconds to wait for graceful termination before force-killing
KILL_WAIT_TIMEOUT = _get_number("KILL_WAIT_TIMEOUT", 3.0)

# Browser executables treated as website enforcement targets (substring match)
BROWSER_PROCESS_NAMES = (
    "chrome",
    "firefox",
    "msedge",
    "opera",
    "brave",
    "vivaldi",
    "safari",
)

# Suffixes ignored when comparing executable / app names
EXECUTABLE_EXTENSIONS = (".exe", ".app")

# Authorization
AUTH_SESSION_MINUTES = _get_number("AUTH_SESSION_MINUTES", 10)
MIN_PIN_LENGTH = 4
PIN_HASH_ITERATIONS = 200_000
MAX_PIN_ATTEMPTS = 3  # CLI re-prompts before giving up

# Webhook notifications (Discord-compatible {"content": ...} payload)
WEBHOOK_TIMEOUT = _get_number("WEBHOOK_TIMEOUT", 10.0)

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")  # Can override in .env: DEBUG, INFO, WARNING, ERROR
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
