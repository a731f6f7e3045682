"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

ACCURACY_MODES = ("high", "balanced", "low")
MAP_PROVIDERS = ("google", "osm")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    update_interval_seconds: float = 15.0
    accuracy_mode: str = "high"
    map_provider: str = "osm"
    geolocation_url: str = "https://www.googleapis.com/geolocation/v1/geolocate"
    geolocation_api_key: str | None = None
    ip_lookup_url: str = "https://api.ipify.org?format=json"
    session_store_path: str | None = None
    user_agent: str | None = None
    screen_resolution: str = "Unknown"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def resolve_accuracy_mode(raw: str | None) -> str:
    """Return a known accuracy mode, defaulting to high accuracy."""
    if raw is None:
        return "high"
    cleaned = raw.strip().lower()
    return cleaned if cleaned in ACCURACY_MODES else "high"


def resolve_map_provider(raw: str | None) -> str:
    """Return a known map provider, defaulting to OpenStreetMap."""
    if raw is None:
        return "osm"
    cleaned = raw.strip().lower()
    return cleaned if cleaned in MAP_PROVIDERS else "osm"
