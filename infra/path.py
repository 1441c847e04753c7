# infra/path.py
from __future__ import annotations
import os
import sys
from pathlib import Path

APP_NAME = "CapacityLedger"


def user_data_dir() -> Path:
    """
    Per-user data directory, overridable with CAPACITY_DATA_DIR:

    Windows:
        C:\\Users\\<User>\\AppData\\Roaming\\CapacityLedger

    macOS:
        ~/Library/Application Support/CapacityLedger

    Linux:
        ~/.local/share/CapacityLedger
    """
    override = (os.getenv("CAPACITY_DATA_DIR") or "").strip()
    try:
        if override:
            path = Path(override)
        elif sys.platform.startswith("win"):
            path = Path(os.getenv("APPDATA", Path.home() / "AppData" / "Roaming")) / APP_NAME
        elif sys.platform == "darwin":
            path = Path.home() / "Library" / "Application Support" / APP_NAME
        else:
            path = Path(os.getenv("XDG_DATA_HOME", Path.home() / ".local" / "share")) / APP_NAME
        path.mkdir(parents=True, exist_ok=True)
        return path
    except OSError:
        # Last-resort fallback: use home directory
        fallback = Path.home() / f".{APP_NAME.lower()}"
        fallback.mkdir(parents=True, exist_ok=True)
        return fallback


def default_db_path() -> Path:
    return user_data_dir() / "capacity.db"


def log_dir() -> Path:
    path = user_data_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path
