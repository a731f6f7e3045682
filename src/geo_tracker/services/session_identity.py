"""Per-session tracker identity."""

import logging
import time
from dataclasses import dataclass, field
from typing import Protocol
from uuid import uuid4

logger = logging.getLogger(__name__)

SESSION_KEY = "standalone_tracker_id"


class SessionStorageUnavailableError(RuntimeError):
    """Raised when the session-scoped store cannot be read or written."""


class SessionStore(Protocol):
    """Session-scoped key-value storage."""

    def get_item(self, key: str) -> str | None:
        """Return the stored value for a key, if present."""

    def set_item(self, key: str, value: str) -> None:
        """Store a value under a key."""


def generate_tracking_id() -> str:
    """Return a new id built from nanosecond time and random bits."""
    return f"{time.time_ns():x}{uuid4().hex[:16]}"


@dataclass
class SessionIdentityService:
    """Resolve the stable tracker id for the current session."""

    store: SessionStore
    key: str = SESSION_KEY
    _resolved: str | None = field(default=None, init=False, repr=False)

    def resolve(self) -> str:
        """Return the session id, creating and persisting it on first use."""
        if self._resolved is not None:
            return self._resolved

        tracking_id = self._read()
        if not tracking_id:
            tracking_id = generate_tracking_id()
            self._write(tracking_id)
        self._resolved = tracking_id
        return tracking_id

    def _read(self) -> str | None:
        try:
            return self.store.get_item(self.key)
        except SessionStorageUnavailableError:
            logger.warning("Session storage unavailable; using in-memory id")
            return None

    def _write(self, tracking_id: str) -> None:
        try:
            self.store.set_item(self.key, tracking_id)
        except SessionStorageUnavailableError:
            logger.warning("Session storage unavailable; id kept in memory only")
