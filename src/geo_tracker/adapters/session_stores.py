"""Session store implementations."""

import json
from dataclasses import dataclass, field
from pathlib import Path

from geo_tracker.services.session_identity import (
    SessionStorageUnavailableError,
    SessionStore,
)


@dataclass
class InMemorySessionStore(SessionStore):
    """Store that lives as long as the running process."""

    items: dict[str, str] = field(default_factory=dict)

    def get_item(self, key: str) -> str | None:
        """Return the stored value for a key, if present."""
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        """Store a value under a key."""
        self.items[key] = value


@dataclass
class JsonFileSessionStore(SessionStore):
    """Store backed by a JSON file, typically in a per-session runtime dir."""

    path: Path

    def get_item(self, key: str) -> str | None:
        """Return the stored value for a key, if present."""
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        """Store a value under a key."""
        items = self._load()
        items[key] = value
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(items), encoding="utf-8")
        except OSError as exc:
            raise SessionStorageUnavailableError(str(exc)) from exc

    def _load(self) -> dict[str, object]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except (FileNotFoundError, UnicodeDecodeError):
            return {}
        except OSError as exc:
            raise SessionStorageUnavailableError(str(exc)) from exc
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            return {}
        return data if isinstance(data, dict) else {}
