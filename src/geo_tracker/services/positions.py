"""Single-shot position acquisition with error normalization."""

import asyncio
import logging
import math
from dataclasses import dataclass, field
from typing import Protocol

from geo_tracker.domain.positions import (
    PositionError,
    PositionErrorKind,
    PositionResult,
)
from geo_tracker.domain.telemetry import RawPosition

logger = logging.getLogger(__name__)


class PositionProviderError(Exception):
    """Failure reported by a position provider with a platform error code."""

    def __init__(self, code: int | None, message: str = "") -> None:
        super().__init__(message or f"Position provider error (code {code})")
        self.code = code
        self.message = message


@dataclass(frozen=True)
class PositionOptions:
    """Options for one position request."""

    enable_high_accuracy: bool = True
    timeout_seconds: float = 10.0
    maximum_age_seconds: float = 0.0


ACCURACY_PROFILES: dict[str, PositionOptions] = {
    "high": PositionOptions(True, 10.0, 0.0),
    "balanced": PositionOptions(False, 15.0, 30.0),
    "low": PositionOptions(False, 30.0, 300.0),
}


class PositionProvider(Protocol):
    """Interface for the platform's one-shot location request."""

    async def get_current_position(self, options: PositionOptions) -> RawPosition:
        """Return the current fix or raise PositionProviderError."""


@dataclass
class PositionSource:
    """Acquire positions and normalize every failure into a PositionError."""

    provider: PositionProvider
    options: PositionOptions = field(default_factory=PositionOptions)

    @classmethod
    def for_mode(
        cls, provider: PositionProvider, accuracy_mode: str
    ) -> "PositionSource":
        """Create a source using the named accuracy profile."""
        options = ACCURACY_PROFILES.get(accuracy_mode, ACCURACY_PROFILES["high"])
        return cls(provider=provider, options=options)

    async def acquire(self) -> PositionResult:
        """Request one fix and return it, or the normalized error."""
        try:
            position = await asyncio.wait_for(
                self.provider.get_current_position(self.options),
                timeout=self.options.timeout_seconds,
            )
        except PositionProviderError as exc:
            error = PositionError.from_code(exc.code, exc.message or None)
        except TimeoutError:
            error = PositionError(PositionErrorKind.TIMEOUT)
        except Exception as exc:  # noqa: BLE001
            error = PositionError(PositionErrorKind.UNKNOWN, str(exc) or None)
        else:
            if _is_valid(position):
                return PositionResult(position=position)
            error = PositionError(
                PositionErrorKind.POSITION_UNAVAILABLE, "Invalid position fix"
            )
        logger.warning("Position acquisition failed: %s", error.kind.name)
        return PositionResult(error=error)


def _is_valid(position: RawPosition) -> bool:
    values = (position.latitude, position.longitude, position.accuracy)
    if not all(math.isfinite(value) for value in values):
        return False
    return (
        -90.0 <= position.latitude <= 90.0
        and -180.0 <= position.longitude <= 180.0
        and position.accuracy >= 0
    )
