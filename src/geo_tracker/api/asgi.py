"""ASGI entrypoint for the geo tracker API."""

from geo_tracker.api.app import create_app
from geo_tracker.containers import build_container

app = create_app(build_container())
