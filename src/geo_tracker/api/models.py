"""Pydantic models for the tracker API."""

from datetime import datetime

from pydantic import BaseModel, Field

from geo_tracker.domain.telemetry import DeviceInfo, TelemetrySample
from geo_tracker.domain.trackers import TrackerStatus


class DeviceInfoResponse(BaseModel):
    """Device fingerprint payload."""

    browser: str
    os: str
    platform: str
    screen: str
    user_agent: str = Field(alias="userAgent")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_domain(cls, device_info: DeviceInfo) -> "DeviceInfoResponse":
        return cls(
            browser=device_info.browser,
            os=device_info.os,
            platform=device_info.platform,
            screen=device_info.screen,
            user_agent=device_info.user_agent,
        )


class SampleResponse(BaseModel):
    """Telemetry sample payload."""

    latitude: float
    longitude: float
    accuracy: float
    timestamp: datetime
    ip: str

    @classmethod
    def from_domain(cls, sample: TelemetrySample) -> "SampleResponse":
        return cls(
            latitude=sample.latitude,
            longitude=sample.longitude,
            accuracy=sample.accuracy,
            timestamp=sample.timestamp,
            ip=sample.ip,
        )


class StatusResponse(BaseModel):
    """Tracker status payload for the presentation layer."""

    status: str
    message: str
    state: str
    tracker_id: str | None = None
    sample: SampleResponse | None = None
    device_info: DeviceInfoResponse | None = None
    ip: str
    sync_count: int
    last_sync_at: datetime | None = None
    map_url: str | None = None

    @classmethod
    def from_domain(cls, status: TrackerStatus) -> "StatusResponse":
        """Build the payload from a status snapshot."""
        return cls(
            status=status.status,
            message=status.message,
            state=status.state.value,
            tracker_id=status.tracker_id,
            sample=SampleResponse.from_domain(status.sample) if status.sample else None,
            device_info=(
                DeviceInfoResponse.from_domain(status.device_info)
                if status.device_info
                else None
            ),
            ip=status.ip,
            sync_count=status.sync_count,
            last_sync_at=status.last_sync_at,
            map_url=status.map_url,
        )


class VisibilityRequest(BaseModel):
    """Visibility change reported by the hosting client."""

    visible: bool
