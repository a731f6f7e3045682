"""Geolocation API client."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

import httpx

from geo_tracker.domain.telemetry import RawPosition
from geo_tracker.services.positions import (
    PositionOptions,
    PositionProvider,
    PositionProviderError,
)

PERMISSION_DENIED = 1
POSITION_UNAVAILABLE = 2
TIMEOUT = 3


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class HttpxGeolocationClient(PositionProvider):
    """Position provider backed by a Google-style geolocation endpoint.

    The endpoint resolves a position from network signals, so
    ``enable_high_accuracy`` has no effect here. ``maximum_age_seconds`` is
    honoured by reusing the last fix while it is young enough.
    """

    url: str
    api_key: str | None
    http_client: httpx.AsyncClient
    clock: Callable[[], datetime] = _utcnow
    _last_fix: RawPosition | None = field(default=None, init=False, repr=False)

    @classmethod
    def create(cls, url: str, api_key: str | None = None) -> "HttpxGeolocationClient":
        """Create a geolocation client with a managed httpx session."""
        return cls(url=url, api_key=api_key, http_client=httpx.AsyncClient())

    async def get_current_position(self, options: PositionOptions) -> RawPosition:
        """Resolve the current position or raise PositionProviderError."""
        cached = self._cached_fix(options.maximum_age_seconds)
        if cached is not None:
            return cached

        params = {"key": self.api_key} if self.api_key else None
        try:
            response = await self.http_client.post(
                self.url,
                params=params,
                json={"considerIp": True},
                timeout=options.timeout_seconds,
            )
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise PositionProviderError(TIMEOUT, "Geolocation timed out") from exc
        except httpx.HTTPStatusError as exc:
            raise PositionProviderError(
                _status_to_code(exc.response.status_code),
                f"Geolocation returned {exc.response.status_code}",
            ) from exc
        except httpx.TransportError as exc:
            raise PositionProviderError(POSITION_UNAVAILABLE, str(exc)) from exc

        fix = self._parse(response)
        self._last_fix = fix
        return fix

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    def _cached_fix(self, maximum_age_seconds: float) -> RawPosition | None:
        if self._last_fix is None or maximum_age_seconds <= 0:
            return None
        age = (self.clock() - self._last_fix.timestamp).total_seconds()
        return self._last_fix if age <= maximum_age_seconds else None

    def _parse(self, response: httpx.Response) -> RawPosition:
        try:
            payload = response.json()
            location = payload["location"]
            return RawPosition(
                latitude=float(location["lat"]),
                longitude=float(location["lng"]),
                accuracy=float(payload["accuracy"]),
                timestamp=self.clock(),
            )
        except (ValueError, KeyError, TypeError) as exc:
            raise PositionProviderError(
                POSITION_UNAVAILABLE, "Malformed geolocation response"
            ) from exc


def _status_to_code(status_code: int) -> int:
    if status_code in {401, 403}:
        return PERMISSION_DENIED
    if status_code == 404:
        return POSITION_UNAVAILABLE
    return 0
