"""Domain models for tracker sessions and scheduler status."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from geo_tracker.domain.telemetry import UNKNOWN_IP, DeviceInfo, TelemetrySample


@dataclass(frozen=True)
class TrackerRecord:
    """Represents the remote record for one tracking session."""

    id: str
    created_at: datetime | None


class SchedulerState(Enum):
    """States of the capture cycle state machine."""

    IDLE = "idle"
    ACQUIRING = "acquiring"
    SETTLED_SUCCESS = "settled_success"
    SETTLED_ERROR = "settled_error"
    SUSPENDED = "suspended"


@dataclass(frozen=True)
class TrackerStatus:
    """Snapshot handed to the presentation layer after every change."""

    status: str
    message: str
    state: SchedulerState
    tracker_id: str | None = None
    sample: TelemetrySample | None = None
    device_info: DeviceInfo | None = None
    ip: str = UNKNOWN_IP
    sync_count: int = 0
    last_sync_at: datetime | None = None
    map_url: str | None = None
