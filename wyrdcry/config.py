"""
Runtime configuration.

Paths come from environment variables, read at call time so tests and shells
can redirect them. The theme preference is stored alongside the profiles.
"""

import logging
import os
from pathlib import Path

from .models import Theme
from .storage import THEME_KEY, KeyValueStore

logger = logging.getLogger(__name__)

STORAGE_FILENAME = "storage.json"


def get_data_dir() -> Path:
    """Get the data directory path."""
    # Check environment variable first
    if env_path := os.environ.get("WYRDCRY_DATA_DIR"):
        return Path(env_path)

    return Path.home() / ".wyrdcry"


def get_storage_path() -> Path:
    """Get the key-value storage file path."""
    return get_data_dir() / STORAGE_FILENAME


def get_factions_file() -> Path | None:
    """Get an alternative faction catalog file, if one is configured."""
    if env_path := os.environ.get("WYRDCRY_FACTIONS_FILE"):
        return Path(env_path)
    return None


def get_theme(store: KeyValueStore) -> Theme:
    """Stored theme preference; anything but "dark" reads as light."""
    return Theme.DARK if store.get(THEME_KEY) == Theme.DARK.value else Theme.LIGHT


def set_theme(store: KeyValueStore, theme: Theme | str) -> Theme:
    """Store a theme preference, normalizing unknown values to light."""
    value = theme.value if isinstance(theme, Theme) else str(theme).strip().lower()
    normalized = Theme.DARK if value == Theme.DARK.value else Theme.LIGHT
    store.set(THEME_KEY, normalized.value)
    logger.debug(f"Theme set to {normalized.value}")
    return normalized
