"""
Configuration and logging management for the Catalog Hierarchy Console.
"""

import os
import sys
import json
import logging

from .errors import ConfigurationError

# Version
SCRIPT_VERSION = "1.2.0 - Catalog Hierarchy Console (two-level SubCategory resolver)"

# File paths
APP_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
CONFIG_FILE = os.path.join(APP_DIR, "config.json")

DEFAULT_TIMEOUT = 30
DEFAULT_PAGE_LIMIT = 100
MAX_PAGES = 500


def default_config():
    """Return a fresh copy of the default configuration."""
    return {
        "_SYSTEM SETTINGS": "Backend connection settings for the admin API.",
        "API_BASE_URL": "",
        "ADMIN_TOKEN": "",
        "REQUEST_TIMEOUT": DEFAULT_TIMEOUT,
        "PAGE_LIMIT": DEFAULT_PAGE_LIMIT,
        "_USER SETTINGS": "These are user settings for the command line.",
        "LOG_FILE": ""
    }


def load_config():
    """Load configuration from config.json or create with defaults."""
    default = default_config()

    try:
        if not os.path.exists(CONFIG_FILE):
            with open(CONFIG_FILE, "w", encoding="utf-8") as f:
                json.dump(default, f, indent=4)
            return default
        else:
            with open(CONFIG_FILE, "r", encoding="utf-8") as f:
                loaded_config = json.load(f)

            # Migrate old API_URL to API_BASE_URL
            if "API_URL" in loaded_config and "API_BASE_URL" not in loaded_config:
                loaded_config["API_BASE_URL"] = loaded_config.pop("API_URL")
                logging.info("Migrated API_URL to API_BASE_URL")
                save_config(loaded_config)

            # Ensure all new fields exist
            for key, value in default.items():
                if key not in loaded_config:
                    loaded_config[key] = value

            return loaded_config
    except json.JSONDecodeError as e:
        logging.error(f"Failed to parse config.json: {e}. Using defaults.")
        return default
    except IOError as e:
        logging.error(f"Failed to read/write config.json: {e}. Using defaults.")
        return default


def save_config(config):
    """Save configuration to config.json."""
    try:
        with open(CONFIG_FILE, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=4)
    except IOError as e:
        logging.error(f"Failed to write config.json: {e}")


def get_api_settings(cfg):
    """
    Build connection settings for the admin API.

    Args:
        cfg: Configuration dictionary

    Returns:
        Tuple of (base_url, headers, timeout)

    Raises:
        ConfigurationError: If API_BASE_URL is not configured
    """
    base_url = str(cfg.get("API_BASE_URL", "") or "").strip().rstrip("/")
    if not base_url:
        raise ConfigurationError("API base URL not configured")

    headers = {
        "Content-Type": "application/json",
        "Accept": "application/json"
    }
    token = str(cfg.get("ADMIN_TOKEN", "") or "").strip()
    if token:
        headers["Authorization"] = f"Bearer {token}"

    try:
        timeout = float(cfg.get("REQUEST_TIMEOUT") or DEFAULT_TIMEOUT)
    except (TypeError, ValueError):
        logging.warning(f"Invalid REQUEST_TIMEOUT {cfg.get('REQUEST_TIMEOUT')!r}, using {DEFAULT_TIMEOUT}s")
        timeout = DEFAULT_TIMEOUT

    return base_url, headers, timeout


def setup_logging(log_path: str, level: int = logging.INFO):
    """
    Configure logging to file and console.

    Args:
        log_path: Path to log file (console only when empty)
        level: Console logging level (typically INFO)
    """
    for h in logging.root.handlers[:]:
        logging.root.removeHandler(h)

    if log_path:
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        )
        logging.root.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        logging.Formatter("%(asctime)s | %(levelname)s | %(message)s")
    )

    logging.root.setLevel(logging.DEBUG)
    logging.root.addHandler(console_handler)

    install_global_exception_logging()


def install_global_exception_logging():
    """Log all unhandled exceptions to the log file."""
    def _log_excepthook(exctype, value, tb):
        logging.critical(
            "Unhandled exception",
            exc_info=(exctype, value, tb)
        )
        sys.__excepthook__(exctype, value, tb)

    sys.excepthook = _log_excepthook


def log_and_status(status_fn, msg: str, level: str = "info", ui_msg: str = None):
    """
    Log a message to log file, console, AND the operator status callback.

    Args:
        status_fn: Function to update the operator status line (may be None)
        msg: Detailed message for log file and console
        level: Log level - "info", "warning", or "error"
        ui_msg: Optional short message for the operator
    """
    if ui_msg is None:
        ui_msg = msg

    # Always log to file/console first
    if level == "error":
        logging.error(msg)
    elif level == "warning":
        logging.warning(msg)
    else:
        logging.info(msg)

    if status_fn is not None:
        try:
            status_fn(ui_msg)
        except Exception as e:
            logging.warning(f"status_fn raised while logging message: {e}", exc_info=True)
