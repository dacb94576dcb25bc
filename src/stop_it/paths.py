"""Helpers for locating application directories."""

from __future__ import annotations

from pathlib import Path

from platformdirs import PlatformDirs


APP_NAME = "stop_it"
APP_AUTHOR = "stop_it"


def get_data_dir() -> Path:
    """Return the base directory for the activity log (not created here)."""
    dirs = PlatformDirs(appname=APP_NAME, appauthor=APP_AUTHOR)
    return Path(dirs.user_data_path)


def get_log_path() -> Path:
    return get_data_dir() / "activity.log"
