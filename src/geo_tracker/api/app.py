"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from geo_tracker.api.models import StatusResponse, VisibilityRequest
from geo_tracker.app_logging import configure_logging
from geo_tracker.containers import AppContainer


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.container.scheduler.start()
        logger.info("Tracker scheduler started")
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/tracker/status")
    async def tracker_status(request: Request) -> StatusResponse:
        """Return the latest capture status."""
        state_container: AppContainer = request.app.state.container
        return StatusResponse.from_domain(state_container.scheduler.status)

    @app.post("/tracker/refresh")
    async def tracker_refresh(request: Request) -> StatusResponse:
        """Run a manual capture cycle and return the resulting status."""
        state_container: AppContainer = request.app.state.container
        status = await state_container.scheduler.refresh()
        return StatusResponse.from_domain(status)

    @app.post("/tracker/visibility")
    async def tracker_visibility(
        payload: VisibilityRequest, request: Request
    ) -> StatusResponse:
        """Report that the hosting client was hidden or shown."""
        state_container: AppContainer = request.app.state.container
        catch_up = state_container.scheduler.handle_visibility_change(payload.visible)
        if catch_up is not None:
            logger.info("Visibility restored; catch-up cycle started")
        return StatusResponse.from_domain(state_container.scheduler.status)

    return app
