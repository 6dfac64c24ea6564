"""XDG-compliant path helpers for boardsync configuration."""

from __future__ import annotations

import os
from pathlib import Path

from platformdirs import user_config_dir, user_data_dir


def get_config_dir() -> Path:
    """Get the config directory (config.toml, preferences.toml)."""
    override = os.environ.get("BOARDSYNC_CONFIG_DIR")
    if override:
        return Path(override)
    return Path(user_config_dir("boardsync"))


def get_data_dir() -> Path:
    """Get the data directory (simulator fixtures, exported boards)."""
    override = os.environ.get("BOARDSYNC_DATA_DIR")
    if override:
        return Path(override)
    return Path(user_data_dir("boardsync"))


def get_config_path() -> Path:
    """Get the path to the main config file."""
    return get_config_dir() / "config.toml"


def get_preferences_path() -> Path:
    """Get the path to the per-column preference file."""
    return get_config_dir() / "preferences.toml"


def ensure_directories() -> None:
    """Create the config and data directories if missing."""
    get_config_dir().mkdir(parents=True, exist_ok=True)
    get_data_dir().mkdir(parents=True, exist_ok=True)
