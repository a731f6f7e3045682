"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from supabase import create_client

from geo_tracker.adapters.geolocation_client import HttpxGeolocationClient
from geo_tracker.adapters.ip_lookup_client import HttpxIpLookupClient
from geo_tracker.adapters.session_stores import (
    InMemorySessionStore,
    JsonFileSessionStore,
)
from geo_tracker.adapters.supabase_tracker_repository import (
    SupabaseTrackerRepository,
)
from geo_tracker.config import Settings, resolve_accuracy_mode, resolve_map_provider
from geo_tracker.services.environment import (
    EnvironmentProbe,
    default_platform,
    default_user_agent,
)
from geo_tracker.services.positions import PositionSource
from geo_tracker.services.scheduler import UpdateScheduler
from geo_tracker.services.session_identity import (
    SessionIdentityService,
    SessionStore,
)
from geo_tracker.services.sync import SyncGateway


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    session_identity: SessionIdentityService
    position_source: PositionSource
    environment_probe: EnvironmentProbe
    sync_gateway: SyncGateway
    scheduler: UpdateScheduler
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    session_store: SessionStore
    if resolved_settings.session_store_path:
        session_store = JsonFileSessionStore(
            Path(resolved_settings.session_store_path)
        )
    else:
        session_store = InMemorySessionStore()
    session_identity = SessionIdentityService(session_store)

    geolocation_client = HttpxGeolocationClient.create(
        url=resolved_settings.geolocation_url,
        api_key=resolved_settings.geolocation_api_key,
    )
    position_source = PositionSource.for_mode(
        geolocation_client, resolve_accuracy_mode(resolved_settings.accuracy_mode)
    )
    ip_client = HttpxIpLookupClient.create(resolved_settings.ip_lookup_url)
    environment_probe = EnvironmentProbe(
        ip_client=ip_client,
        user_agent=resolved_settings.user_agent or default_user_agent(),
        platform=default_platform(),
        screen=resolved_settings.screen_resolution,
    )
    sync_gateway = SyncGateway(SupabaseTrackerRepository(supabase_client))
    scheduler = UpdateScheduler(
        session_identity=session_identity,
        position_source=position_source,
        environment_probe=environment_probe,
        sync_gateway=sync_gateway,
        interval_seconds=resolved_settings.update_interval_seconds,
        map_provider=resolve_map_provider(resolved_settings.map_provider),
    )

    async def close_resources() -> None:
        await scheduler.stop()
        await geolocation_client.close()
        await ip_client.close()

    return AppContainer(
        settings=resolved_settings,
        session_identity=session_identity,
        position_source=position_source,
        environment_probe=environment_probe,
        sync_gateway=sync_gateway,
        scheduler=scheduler,
        close_resources=close_resources,
    )
