"""Domain models for captured telemetry."""

from dataclasses import dataclass
from datetime import datetime

UNKNOWN_IP = "Unknown"


@dataclass(frozen=True)
class RawPosition:
    """A single fix reported by a position provider."""

    latitude: float
    longitude: float
    accuracy: float
    timestamp: datetime


@dataclass(frozen=True)
class DeviceInfo:
    """Fingerprint of the device running the tracker."""

    browser: str
    os: str
    platform: str
    screen: str
    user_agent: str

    def to_record(self) -> dict[str, str]:
        """Return the device info as a JSON-ready mapping."""
        return {
            "browser": self.browser,
            "os": self.os,
            "platform": self.platform,
            "screen": self.screen,
            "userAgent": self.user_agent,
        }


@dataclass(frozen=True)
class TelemetrySample:
    """One capture of position plus device and network metadata."""

    latitude: float
    longitude: float
    accuracy: float
    timestamp: datetime
    device_info: DeviceInfo
    ip: str = UNKNOWN_IP

    def to_record(self) -> dict[str, object]:
        """Return the sample as a JSON-ready mapping."""
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "accuracy": self.accuracy,
            "timestamp": self.timestamp.isoformat(),
            "deviceInfo": self.device_info.to_record(),
            "ip": self.ip,
        }


def build_sample(
    position: RawPosition, device_info: DeviceInfo, ip: str | None
) -> TelemetrySample:
    """Combine a position fix with environment data into one sample."""
    if position.accuracy < 0:
        raise ValueError("Position accuracy must be non-negative")
    return TelemetrySample(
        latitude=position.latitude,
        longitude=position.longitude,
        accuracy=position.accuracy,
        timestamp=position.timestamp,
        device_info=device_info,
        ip=ip or UNKNOWN_IP,
    )


def map_url(latitude: float, longitude: float, provider: str = "osm") -> str:
    """Build an embeddable map URL centred on the given coordinates."""
    if provider == "google":
        return (
            f"https://maps.google.com/maps?q={latitude},{longitude}"
            "&z=15&output=embed"
        )
    return (
        f"https://www.openstreetmap.org/?mlat={latitude}&mlon={longitude}"
        f"#map=15/{latitude}/{longitude}"
    )
