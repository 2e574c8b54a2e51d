"""Locations of sweep's user files.

sweep keeps only configuration on disk: the settings file and an
optional theme override, both under ``$XDG_CONFIG_HOME/sweep`` (falling
back to ``~/.config/sweep`` when the variable is unset or empty).
"""

import os
from pathlib import Path

APP_NAME = "sweep"
SETTINGS_FILE = "config.toml"
THEME_FILE = "theme.toml"


def get_config_dir() -> Path:
    """Directory holding sweep's settings and theme files."""
    base = os.environ.get("XDG_CONFIG_HOME")
    root = Path(base) if base else Path.home() / ".config"
    return root / APP_NAME


def get_settings_path() -> Path:
    """Default settings file, read by every command unless overridden."""
    return get_config_dir() / SETTINGS_FILE


def get_theme_path() -> Path:
    """Optional theme override merged over the built-in colors."""
    return get_config_dir() / THEME_FILE
