"""Capture cycle scheduler.

Drives acquire -> enrich -> sync on a fixed cadence. Hosting clients may
throttle or pause the timer while they are hidden, so the scheduler keeps
the wall-clock time of the last successful capture and catches up with one
out-of-band cycle when the client becomes visible again. At most one cycle
is in flight at a time; ticks that arrive during a cycle are skipped.

A cycle ends once the sample is captured. Syncing happens on a single
worker task fed by a queue, so a slow backend never holds up the cadence
and rows are appended in capture order.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime

from geo_tracker.domain.telemetry import TelemetrySample, build_sample, map_url
from geo_tracker.domain.trackers import SchedulerState, TrackerStatus
from geo_tracker.services.environment import EnvironmentProbe
from geo_tracker.services.positions import PositionSource
from geo_tracker.services.session_identity import SessionIdentityService
from geo_tracker.services.sync import SyncGateway

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 15.0

INITIALIZING_MESSAGE = "Initializing tracking system..."
ACQUIRING_MESSAGE = "Acquiring target coordinates..."
ACQUIRED_MESSAGE = "Target location acquired"
FAILURE_MESSAGE = "Signal acquisition failed."

StatusListener = Callable[[TrackerStatus], None]


@dataclass
class UpdateScheduler:
    """Run capture cycles on a timer and publish status snapshots.

    ``clock`` must return wall-clock seconds since the epoch: it drives the
    visibility catch-up check and is also the source of ``last_sync_at``.
    """

    session_identity: SessionIdentityService
    position_source: PositionSource
    environment_probe: EnvironmentProbe
    sync_gateway: SyncGateway
    interval_seconds: float = DEFAULT_INTERVAL_SECONDS
    map_provider: str = "osm"
    clock: Callable[[], float] = time.time
    _status: TrackerStatus = field(init=False, repr=False)
    _state: SchedulerState = field(default=SchedulerState.IDLE, init=False)
    _listeners: list[StatusListener] = field(default_factory=list, init=False)
    _timer: "asyncio.Task[None] | None" = field(default=None, init=False, repr=False)
    _cycle: "asyncio.Task[None] | None" = field(default=None, init=False, repr=False)
    _ip_lookup: "asyncio.Task[None] | None" = field(
        default=None, init=False, repr=False
    )
    _sync_queue: "asyncio.Queue[TelemetrySample] | None" = field(
        default=None, init=False, repr=False
    )
    _sync_worker: "asyncio.Task[None] | None" = field(
        default=None, init=False, repr=False
    )
    _last_success_at: float | None = field(default=None, init=False)
    _suspended: bool = field(default=False, init=False)
    _running: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        self._status = TrackerStatus(
            status="loading",
            message=INITIALIZING_MESSAGE,
            state=SchedulerState.IDLE,
        )

    @property
    def status(self) -> TrackerStatus:
        """Return the latest status snapshot."""
        return self._status

    @property
    def state(self) -> SchedulerState:
        """Return the current state, reporting SUSPENDED while hidden and idle."""
        if self._suspended and self._state is SchedulerState.IDLE:
            return SchedulerState.SUSPENDED
        return self._state

    @property
    def last_success_at(self) -> float | None:
        """Clock value of the last successful capture, if any."""
        return self._last_success_at

    @property
    def in_flight(self) -> bool:
        """Return True while a capture cycle is running."""
        return self._cycle is not None and not self._cycle.done()

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """Register a status listener and return a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def start(self) -> "asyncio.Task[None] | None":
        """Resolve the session, run the first cycle now and start the timer.

        Must be called from a running event loop. Returns the task of the
        eager first cycle.
        """
        if self._running:
            return None
        self._running = True
        tracker_id = self.session_identity.resolve()
        logger.info("Starting tracker %s", tracker_id)
        self._publish(
            tracker_id=tracker_id,
            device_info=self.environment_probe.device_info(),
        )
        self._sync_queue = asyncio.Queue()
        self._sync_worker = asyncio.create_task(self._drain_syncs())
        self._ip_lookup = asyncio.create_task(self._publish_initial_ip())
        first_cycle = self.trigger(manual=True)
        self._restart_timer()
        return first_cycle

    async def stop(self) -> None:
        """Cancel the timer, in-flight work and queued syncs; drop listeners."""
        if not self._running:
            return
        self._running = False
        self._listeners.clear()
        pending = [
            task
            for task in (self._timer, self._cycle, self._ip_lookup, self._sync_worker)
            if task is not None and not task.done()
        ]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._timer = None
        self._cycle = None
        self._ip_lookup = None
        self._sync_worker = None
        self._sync_queue = None
        logger.info("Tracker stopped")

    async def wait_for_syncs(self) -> None:
        """Wait until every captured sample handed to the sync worker is done."""
        if self._sync_queue is not None:
            await self._sync_queue.join()

    def trigger(self, manual: bool = False) -> "asyncio.Task[None] | None":
        """Start a capture cycle unless one is already in flight."""
        if not self._running:
            return None
        if self.in_flight:
            logger.debug("Capture cycle still in flight; skipping")
            return None
        self._cycle = asyncio.create_task(self._run_cycle(manual))
        return self._cycle

    async def refresh(self) -> TrackerStatus:
        """Run a manual cycle (or join the one in flight) and return the status."""
        task = self.trigger(manual=True) or self._cycle
        if task is not None and not task.done():
            await asyncio.wait({task})
        return self._status

    def handle_visibility_change(self, visible: bool) -> "asyncio.Task[None] | None":
        """React to the hosting client being hidden or shown again.

        On becoming visible, fires one catch-up cycle if a full interval has
        passed since the last success, then replaces the timer.
        """
        if not self._running:
            return None
        if not visible:
            self._suspended = True
            self._publish()
            return None

        self._suspended = False
        catch_up = None
        if self._elapsed_since_success() >= self.interval_seconds:
            catch_up = self.trigger()
        self._restart_timer()
        self._publish()
        return catch_up

    def _elapsed_since_success(self) -> float:
        if self._last_success_at is None:
            return float("inf")
        return self.clock() - self._last_success_at

    def _restart_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer = asyncio.create_task(self._tick_forever())

    async def _tick_forever(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            self.trigger()

    async def _run_cycle(self, manual: bool) -> None:
        self._state = SchedulerState.ACQUIRING
        if manual:
            self._publish(status="loading", message=ACQUIRING_MESSAGE)
        else:
            self._publish()
        try:
            sample = await self._capture()
            if sample is not None and self._sync_queue is not None:
                self._sync_queue.put_nowait(sample)
        finally:
            self._state = SchedulerState.IDLE
            self._publish()

    async def _publish_initial_ip(self) -> None:
        ip = await self.environment_probe.public_ip()
        if self._status.sample is None:
            self._publish(ip=ip)

    async def _drain_syncs(self) -> None:
        queue = self._sync_queue
        if queue is None:
            return
        while True:
            sample = await queue.get()
            try:
                await self._sync(sample)
            except Exception:
                logger.exception("Sync of captured sample failed")
            finally:
                queue.task_done()

    async def _capture(self) -> TelemetrySample | None:
        try:
            result, ip = await asyncio.gather(
                self.position_source.acquire(),
                self.environment_probe.public_ip(),
            )
            if result.position is None:
                message = result.error.message if result.error else FAILURE_MESSAGE
                self._settle_error(message)
                return None
            device_info = self.environment_probe.device_info()
            sample = build_sample(result.position, device_info, ip)
        except Exception as exc:
            logger.exception("Capture cycle failed")
            self._settle_error(str(exc) or FAILURE_MESSAGE)
            return None

        self._last_success_at = self.clock()
        self._state = SchedulerState.SETTLED_SUCCESS
        self._publish(
            status="success",
            message=ACQUIRED_MESSAGE,
            sample=sample,
            device_info=sample.device_info,
            ip=sample.ip,
            map_url=map_url(sample.latitude, sample.longitude, self.map_provider),
        )
        return sample

    async def _sync(self, sample: TelemetrySample) -> None:
        tracker_id = self._status.tracker_id or self.session_identity.resolve()
        if await self.sync_gateway.sync_sample(tracker_id, sample):
            self._publish(
                sync_count=self._status.sync_count + 1,
                last_sync_at=datetime.fromtimestamp(self.clock(), tz=UTC),
            )

    def _settle_error(self, message: str) -> None:
        self._state = SchedulerState.SETTLED_ERROR
        self._publish(status="error", message=message)

    def _publish(self, **changes: object) -> None:
        if not self._running:
            return
        self._status = replace(self._status, state=self.state, **changes)
        for listener in list(self._listeners):
            try:
                listener(self._status)
            except Exception:
                logger.exception("Status listener failed")
