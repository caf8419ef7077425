"""
Centralized configuration for AppList.

Loads environment variables from .env and provides resolved paths and settings.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def get_path_var(var_name: str, default: str | None = None) -> Path | None:
    """Retrieve a path from environment variables, resolving to absolute."""
    value = os.getenv(var_name, default)
    if not value:
        return None
    return Path(value).expanduser().resolve()


# -- Paths -------------------------------------------------------------------

STATE_DIR = get_path_var("APPLIST_STATE_DIR", str(Path.home() / ".applist"))
LOG_DIR = STATE_DIR / "logs"

# Artifacts land in a fixed subdirectory of the user's downloads folder
EXPORT_DIR = get_path_var("APPLIST_EXPORT_DIR", str(Path.home() / "Downloads" / "AppList"))

DPKG_STATUS_PATH = get_path_var("APPLIST_DPKG_STATUS", "/var/lib/dpkg/status")

# -- Settings -----------------------------------------------------------------

REGISTRY = os.getenv("APPLIST_REGISTRY", "python")
INCLUDE_SYSTEM_APPS = os.getenv("APPLIST_INCLUDE_SYSTEM", "false").lower() in ("true", "1", "yes")

# Optional share command template, e.g. "thunderbird -compose attachment={path}"
SHARE_COMMAND = os.getenv("APPLIST_SHARE_COMMAND") or None

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
DEBUG = os.getenv("DEBUG", "false").lower() in ("true", "1", "yes")


def validate_config() -> None:
    """Create the state and log directories if they are missing."""
    for path_var in [STATE_DIR, LOG_DIR]:
        if not path_var.exists():
            try:
                path_var.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                print(f"Warning: Could not create {path_var}: {e}")
