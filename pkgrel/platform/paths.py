"""User-level directories."""

from __future__ import annotations

import os
import sys
from functools import lru_cache
from pathlib import Path

__all__ = [
    "home",
    "user_config_dir",
]

APP_NAME = "pkgrel"


@lru_cache(maxsize=1)
def home() -> Path:
    """User's home directory, honouring HOME / USERPROFILE first."""
    if sys.platform == "win32":
        userprofile = os.environ.get("USERPROFILE")
        if userprofile:
            return Path(userprofile)
    else:
        home_env = os.environ.get("HOME")
        if home_env:
            return Path(home_env)

    return Path.home()


@lru_cache(maxsize=1)
def user_config_dir() -> Path:
    """Per-user configuration directory.

    Location: ~/.config/pkgrel/ (Linux/macOS) or %APPDATA%/pkgrel/ (Windows).
    The GitHub token file lives here.
    """
    if sys.platform == "win32":
        app_data = os.environ.get("APPDATA")
        if app_data:
            return Path(app_data) / APP_NAME
        return home() / "AppData" / "Roaming" / APP_NAME

    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / APP_NAME
    return home() / ".config" / APP_NAME


def clear_caches() -> None:
    """Forget cached paths (tests change HOME between cases)."""
    home.cache_clear()
    user_config_dir.cache_clear()
