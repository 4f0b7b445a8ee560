"""User-level path utilities.

Target-specific paths (releases, links, state files) live in
``relman.core.layout``.
"""

from __future__ import annotations

import os
from pathlib import Path

__all__ = [
    "home",
    "user_config_dir",
]

APP_NAME = "relman"


def home() -> Path:
    """Get the user's home directory, preferring $HOME when set."""
    home_env = os.environ.get("HOME")
    if home_env:
        return Path(home_env)
    return Path.home()


def user_config_dir() -> Path:
    """Get the user-level configuration directory.

    Location: $XDG_CONFIG_HOME/relman/ or ~/.config/relman/
    """
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / APP_NAME
    return home() / ".config" / APP_NAME
