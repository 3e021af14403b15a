"""XDG Base Directory paths for prtrigger.

- Configuration: $XDG_CONFIG_HOME/prtrigger (default: ~/.config/prtrigger)
- Data (build queue database): $XDG_DATA_HOME/prtrigger
  (default: ~/.local/share/prtrigger)

Reference: https://specifications.freedesktop.org/basedir-spec/latest/
"""

from __future__ import annotations

import os
from pathlib import Path

XDG_CONFIG_HOME = "XDG_CONFIG_HOME"
XDG_DATA_HOME = "XDG_DATA_HOME"

APP_NAME = "prtrigger"


def get_config_home() -> Path:
    """Get the XDG config home directory.

    Returns:
        Path from $XDG_CONFIG_HOME or ~/.config if not set
    """
    xdg_config = os.environ.get(XDG_CONFIG_HOME)
    if xdg_config:
        return Path(xdg_config).expanduser()
    return Path.home() / ".config"


def get_data_home() -> Path:
    """Get the XDG data home directory.

    Returns:
        Path from $XDG_DATA_HOME or ~/.local/share if not set
    """
    xdg_data = os.environ.get(XDG_DATA_HOME)
    if xdg_data:
        return Path(xdg_data).expanduser()
    return Path.home() / ".local" / "share"


def get_default_config_path() -> Path:
    """Get the default config file path."""
    return get_config_home() / APP_NAME / "config.yaml"


def get_default_state_dir() -> Path:
    """Get the directory holding the build queue database."""
    return get_data_home() / APP_NAME
