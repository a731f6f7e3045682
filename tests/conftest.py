"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import UTC, datetime

import pytest

from geo_tracker.adapters.session_stores import InMemorySessionStore
from geo_tracker.config import Settings
from geo_tracker.containers import AppContainer
from geo_tracker.domain.telemetry import RawPosition, TelemetrySample
from geo_tracker.domain.trackers import TrackerRecord
from geo_tracker.services.environment import EnvironmentProbe, IpLookupClient
from geo_tracker.services.positions import (
    PositionOptions,
    PositionProvider,
    PositionProviderError,
    PositionSource,
)
from geo_tracker.services.scheduler import UpdateScheduler
from geo_tracker.services.session_identity import (
    SessionIdentityService,
    SessionStorageUnavailableError,
    SessionStore,
)
from geo_tracker.services.sync import SyncGateway, TrackerRepository

CHROME_ON_MAC = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@dataclass
class FakeClock:
    """Manually advanced wall clock."""

    now: float = 1_700_000_000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@dataclass
class FakePositionProvider(PositionProvider):
    """Provider that returns queued fixes or raises queued errors."""

    outcomes: list[RawPosition | Exception] = field(default_factory=list)
    calls: list[PositionOptions] = field(default_factory=list)

    async def get_current_position(self, options: PositionOptions) -> RawPosition:
        self.calls.append(options)
        outcome = self.outcomes.pop(0) if self.outcomes else make_position()
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@dataclass
class FakeIpLookupClient(IpLookupClient):
    """IP echo client returning a fixed body or raising."""

    body: dict[str, object] = field(default_factory=lambda: {"ip": "8.8.8.8"})
    error: Exception | None = None
    calls: int = 0

    async def lookup(self) -> dict[str, object]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.body


@dataclass
class InMemoryTrackerRepository(TrackerRepository):
    """In-memory tracker repository for tests."""

    trackers: dict[str, TrackerRecord] = field(default_factory=dict)
    locations: dict[str, list[TelemetrySample]] = field(default_factory=dict)
    create_calls: int = 0
    fail_create: bool = False
    fail_append: bool = False

    def get_or_create_tracker(
        self, tracker_id: str, user_agent: str | None = None
    ) -> TrackerRecord:
        self.create_calls += 1
        if self.fail_create:
            raise RuntimeError("backend unavailable")
        if tracker_id not in self.trackers:
            self.trackers[tracker_id] = TrackerRecord(
                id=tracker_id, created_at=datetime.now(tz=UTC)
            )
        return self.trackers[tracker_id]

    def add_location(self, tracker_id: str, sample: TelemetrySample) -> None:
        if self.fail_append:
            raise RuntimeError("network error")
        if tracker_id not in self.trackers:
            raise RuntimeError("tracker missing")
        self.locations.setdefault(tracker_id, []).append(sample)


@dataclass
class UnavailableSessionStore(SessionStore):
    """Session store that behaves like disabled browser storage."""

    def get_item(self, key: str) -> str | None:
        raise SessionStorageUnavailableError("storage disabled")

    def set_item(self, key: str, value: str) -> None:
        raise SessionStorageUnavailableError("storage disabled")


def make_position(
    latitude: float = 37.0, longitude: float = -122.0, accuracy: float = 12.5
) -> RawPosition:
    return RawPosition(
        latitude=latitude,
        longitude=longitude,
        accuracy=accuracy,
        timestamp=datetime(2026, 10, 18, 12, 0, tzinfo=UTC),
    )


def permission_denied() -> PositionProviderError:
    return PositionProviderError(1, "User denied Geolocation")


@dataclass
class SchedulerHarness:
    """A scheduler wired to fakes, plus handles on the fakes."""

    scheduler: UpdateScheduler
    provider: FakePositionProvider
    ip_client: FakeIpLookupClient
    repository: InMemoryTrackerRepository
    gateway: SyncGateway
    clock: FakeClock


def build_harness(interval_seconds: float = 15.0) -> SchedulerHarness:
    provider = FakePositionProvider()
    ip_client = FakeIpLookupClient()
    repository = InMemoryTrackerRepository()
    gateway = SyncGateway(repository)
    clock = FakeClock()
    scheduler = UpdateScheduler(
        session_identity=SessionIdentityService(InMemorySessionStore()),
        position_source=PositionSource(provider),
        environment_probe=EnvironmentProbe(
            ip_client=ip_client,
            user_agent=CHROME_ON_MAC,
            platform="MacIntel",
            screen="1920x1080",
        ),
        sync_gateway=gateway,
        interval_seconds=interval_seconds,
        clock=clock,
    )
    return SchedulerHarness(
        scheduler=scheduler,
        provider=provider,
        ip_client=ip_client,
        repository=repository,
        gateway=gateway,
        clock=clock,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
    )


@pytest.fixture
def harness() -> SchedulerHarness:
    return build_harness()


@pytest.fixture
def container(settings: Settings, harness: SchedulerHarness) -> AppContainer:
    scheduler = harness.scheduler

    async def close_resources() -> None:
        await scheduler.stop()

    return AppContainer(
        settings=settings,
        session_identity=scheduler.session_identity,
        position_source=scheduler.position_source,
        environment_probe=scheduler.environment_probe,
        sync_gateway=harness.gateway,
        scheduler=scheduler,
        close_resources=close_resources,
    )
