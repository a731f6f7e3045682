"""Remote synchronization of telemetry samples."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Protocol

from geo_tracker.domain.telemetry import TelemetrySample
from geo_tracker.domain.trackers import TrackerRecord

logger = logging.getLogger(__name__)


class TrackerRepository(Protocol):
    """Persistence interface for tracker sessions and their locations."""

    def get_or_create_tracker(
        self, tracker_id: str, user_agent: str | None = None
    ) -> TrackerRecord:
        """Return the tracker record, creating it if absent."""

    def add_location(self, tracker_id: str, sample: TelemetrySample) -> None:
        """Append one location entry to a tracker."""


@dataclass
class SyncGateway:
    """Create-once, append-many gateway to the remote store.

    Errors never propagate: a failed sync is logged and reported as False
    so the capture loop keeps running.
    """

    repository: TrackerRepository
    _ready: set[str] = field(default_factory=set, init=False, repr=False)

    def is_ready(self, tracker_id: str) -> bool:
        """Return True once the remote record is known to exist."""
        return tracker_id in self._ready

    async def ensure_session_record(
        self, tracker_id: str, user_agent: str | None = None
    ) -> bool:
        """Create the remote record for a session if it is not ready yet."""
        if tracker_id in self._ready:
            return True
        try:
            await asyncio.to_thread(
                self.repository.get_or_create_tracker, tracker_id, user_agent
            )
        except Exception:
            logger.exception("Failed to initialize tracker %s", tracker_id)
            return False
        self._ready.add(tracker_id)
        return True

    async def append_sample(self, tracker_id: str, sample: TelemetrySample) -> bool:
        """Append a sample to the tracker, returning False on failure."""
        try:
            await asyncio.to_thread(self.repository.add_location, tracker_id, sample)
        except Exception:
            logger.exception("Failed to sync location for tracker %s", tracker_id)
            return False
        return True

    async def sync_sample(self, tracker_id: str, sample: TelemetrySample) -> bool:
        """Ensure the session record exists, then append the sample."""
        ready = await self.ensure_session_record(
            tracker_id, sample.device_info.user_agent
        )
        if not ready:
            return False
        return await self.append_sample(tracker_id, sample)
