"""Tests for HTTP-based adapters."""

import asyncio
import json
from collections.abc import Callable
from datetime import UTC, datetime

import httpx
import pytest

from geo_tracker.adapters.geolocation_client import HttpxGeolocationClient
from geo_tracker.adapters.ip_lookup_client import HttpxIpLookupClient
from geo_tracker.services.positions import PositionOptions, PositionProviderError

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)


def _geolocation_client(
    handler: Callable[[httpx.Request], httpx.Response],
) -> HttpxGeolocationClient:
    return HttpxGeolocationClient(
        url="https://geo.test/geolocate",
        api_key="key",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        clock=lambda: NOW,
    )


def test_geolocation_client_parses_fix() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["key"] == "key"
        assert json.loads(request.content.decode()) == {"considerIp": True}
        return httpx.Response(
            200, json={"location": {"lat": 37.0, "lng": -122.0}, "accuracy": 12.5}
        )

    client = _geolocation_client(handler)

    fix = asyncio.run(client.get_current_position(PositionOptions()))

    assert (fix.latitude, fix.longitude, fix.accuracy) == (37.0, -122.0, 12.5)
    assert fix.timestamp == NOW


@pytest.mark.parametrize(
    ("status_code", "expected_code"),
    [(403, 1), (401, 1), (404, 2), (500, 0)],
)
def test_geolocation_client_maps_status_codes(
    status_code: int, expected_code: int
) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json={"error": {"code": status_code}})

    client = _geolocation_client(handler)

    with pytest.raises(PositionProviderError) as excinfo:
        asyncio.run(client.get_current_position(PositionOptions()))

    assert excinfo.value.code == expected_code


def test_geolocation_client_maps_timeout() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    client = _geolocation_client(handler)

    with pytest.raises(PositionProviderError) as excinfo:
        asyncio.run(client.get_current_position(PositionOptions()))

    assert excinfo.value.code == 3


def test_geolocation_client_rejects_malformed_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"accuracy": 10})

    client = _geolocation_client(handler)

    with pytest.raises(PositionProviderError) as excinfo:
        asyncio.run(client.get_current_position(PositionOptions()))

    assert excinfo.value.code == 2


def test_geolocation_client_reuses_recent_fix() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(
            200, json={"location": {"lat": 1.0, "lng": 2.0}, "accuracy": 30}
        )

    client = _geolocation_client(handler)
    options = PositionOptions(enable_high_accuracy=False, maximum_age_seconds=60)

    async def scenario() -> None:
        await client.get_current_position(options)
        await client.get_current_position(options)
        await client.get_current_position(PositionOptions())

    asyncio.run(scenario())

    assert len(requests) == 2


def test_ip_lookup_client_returns_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["format"] == "json"
        return httpx.Response(200, json={"ip": "8.8.8.8"})

    client = HttpxIpLookupClient(
        url="https://ip.test/?format=json",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )

    assert asyncio.run(client.lookup()) == {"ip": "8.8.8.8"}
