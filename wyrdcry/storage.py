"""
Key-value storage for saved profiles.

All collections live under string keys as JSON text, so existing saved data
keeps its key names and record shape. The stores only depend on the small
`KeyValueStore` protocol, so tests run against `MemoryStore` and the CLI
against `JsonFileStore`.
"""

import json
import logging
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

# Storage keys
COST_PROFILES_KEY = "costProfiles"
ACTIVE_COST_PROFILE_KEY = "activeCostProfileId"
FIGHTER_PROFILES_KEY = "fighterProfiles"
LEGACY_POINT_COSTS_KEY = "pointCosts"
THEME_KEY = "wyrdcry-theme"


class KeyValueStore(Protocol):
    """Protocol for string key-value backends."""

    def get(self, key: str) -> str | None:
        """Return the value for key, or None if absent."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store value under key."""
        ...

    def remove(self, key: str) -> None:
        """Delete key if present."""
        ...


class MemoryStore:
    """In-process store backed by a dict."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore:
    """
    Store persisted as a single JSON object file.

    The whole file is rewritten on every change. A missing file reads as an
    empty store; an unreadable one is logged and treated as empty.
    """

    def __init__(self, path: str | Path):
        """
        Initialize the file store.

        Args:
            path: JSON file to read and write. Parent directories are
                  created on first write.
        """
        self.path = Path(path)
        self._data = self._read()

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Could not read storage file {self.path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.error(f"Storage file {self.path} does not hold a JSON object")
            return {}

        return {str(k): v if isinstance(v, str) else json.dumps(v) for k, v in data.items()}

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(self._data, f, indent=2, ensure_ascii=False)
        tmp_path.replace(self.path)

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
        self._write()
        logger.debug(f"Stored {key} ({len(value)} chars)")

    def remove(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._write()
            logger.debug(f"Removed {key}")


# =============================================================================
# JSON HELPERS
# =============================================================================


def read_json(store: KeyValueStore, key: str, default=None):
    """
    Decode the JSON value stored under key.

    Returns default when the key is absent or the value is not valid JSON.
    """
    raw = store.get(key)
    if raw is None:
        return default

    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        logger.error(f"Stored value for {key} is not valid JSON: {e}")
        return default


def read_json_list(store: KeyValueStore, key: str) -> list:
    """Decode a stored JSON array, treating anything else as empty."""
    value = read_json(store, key, default=[])
    if not isinstance(value, list):
        logger.error(f"Stored value for {key} is not a list")
        return []
    return value


def write_json(store: KeyValueStore, key: str, value) -> None:
    """Encode value as JSON and store it under key."""
    store.set(key, json.dumps(value, ensure_ascii=False))
