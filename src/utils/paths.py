"""File path resolution using platformdirs.

Paths use platform-appropriate directories unless BOXCYCLE_DATA_DIR is set:
  macOS: ~/Library/Application Support/boxcycle/
  Linux: ~/.local/share/boxcycle/
"""

import os
from pathlib import Path

import platformdirs

APP_NAME = "boxcycle"


def get_data_dir() -> Path:
    """Return the directory for persistent data (DB)."""
    override = os.environ.get("BOXCYCLE_DATA_DIR", "").strip()
    if override:
        return Path(override).expanduser()
    return Path(platformdirs.user_data_dir(APP_NAME, appauthor=False))


def get_default_db_path() -> Path:
    """Return the default SQLite database file path."""
    return get_data_dir() / "boxcycle.db"


def ensure_dirs_exist() -> None:
    """Create all required directories if they don't exist."""
    get_data_dir().mkdir(parents=True, exist_ok=True)
