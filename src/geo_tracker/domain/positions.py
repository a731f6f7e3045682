"""Domain models for position acquisition failures."""

from dataclasses import dataclass
from enum import Enum

from geo_tracker.domain.telemetry import RawPosition


class PositionErrorKind(Enum):
    """Closed set of reasons a position request can fail."""

    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3
    UNKNOWN = 0


_MESSAGES = {
    PositionErrorKind.PERMISSION_DENIED: (
        "Location permission denied. Please enable location access."
    ),
    PositionErrorKind.POSITION_UNAVAILABLE: "Location information is unavailable.",
    PositionErrorKind.TIMEOUT: "Location request timed out. Please try again.",
}


@dataclass(frozen=True)
class PositionError:
    """A normalized position failure."""

    kind: PositionErrorKind
    detail: str | None = None

    @property
    def message(self) -> str:
        """Human-readable status text for this failure."""
        text = _MESSAGES.get(self.kind)
        if text is not None:
            return text
        if self.detail:
            return f"An unknown error occurred: {self.detail}"
        return "An unknown error occurred."

    @classmethod
    def from_code(cls, code: int | None, detail: str | None = None) -> "PositionError":
        """Map a platform error code to a position error."""
        for kind in PositionErrorKind:
            if kind is not PositionErrorKind.UNKNOWN and kind.value == code:
                return cls(kind=kind, detail=detail)
        return cls(kind=PositionErrorKind.UNKNOWN, detail=detail)


@dataclass(frozen=True)
class PositionResult:
    """Outcome of a single acquisition: exactly one field is set."""

    position: RawPosition | None = None
    error: PositionError | None = None

    @property
    def ok(self) -> bool:
        return self.position is not None
