"""
Visit tracker - client-side session context.

One VisitTracker lives for one page/app session. It is an async context
manager: entering it announces the session (initial visit), leaving it
releases every subscription it acquired (position watch, periodic poll,
in-flight event sends) on all exit paths.

Events other than the initial visit and the permission decision are
fire-and-forget: they are scheduled as tasks and their outcome never
reaches the caller.
"""
import asyncio
import random
import string
import time
from enum import Enum
from types import TracebackType
from typing import Any, Optional

from app.client.geolocation import (
    DEFAULT_POSITION_OPTIONS,
    ClientEnvironment,
    GeolocationProvider,
    LocalEnvironment,
    Position,
    PositionError,
    PositionOptions,
    format_location,
)
from app.client.sink import HttpEventSink, VisitEventSink
from app.core.config import settings
from app.core.logging import get_logger
from app.schemas.visit import EventType, LocationSample

logger = get_logger(__name__)

_BASE36 = string.digits + string.ascii_lowercase


def generate_session_id() -> str:
    """`<epoch millis>-<9 random base36 chars>`, unique per page load."""
    suffix = "".join(random.choices(_BASE36, k=9))
    return f"{int(time.time() * 1000)}-{suffix}"


class ActivityKind(str, Enum):
    """User activity that counts as an interaction."""

    CLICK = "click"
    SCROLL = "scroll"
    KEYDOWN = "keydown"
    FOCUS = "focus"
    BLUR = "blur"
    VISIBILITY_CHANGE = "visibilitychange"


def _sample_payload(sample: LocationSample) -> dict[str, Any]:
    return sample.model_dump(mode="json", by_alias=True, exclude_none=True)


class VisitTracker:
    """Owns a session id and emits its lifecycle events to a sink."""

    def __init__(
        self,
        sink: Optional[VisitEventSink] = None,
        geolocation: Optional[GeolocationProvider] = None,
        environment: Optional[ClientEnvironment] = None,
        *,
        session_id: Optional[str] = None,
        poll_interval: Optional[float] = None,
        interaction_throttle: Optional[float] = None,
        position_options: PositionOptions = DEFAULT_POSITION_OPTIONS,
        drain_timeout: float = 5.0,
    ) -> None:
        self.session_id = session_id or generate_session_id()
        self._owns_sink = sink is None
        self.sink: VisitEventSink = sink or HttpEventSink()
        self.geolocation = geolocation
        self.environment = environment or LocalEnvironment()
        self.poll_interval = (
            poll_interval if poll_interval is not None
            else settings.location_poll_interval_seconds
        )
        self.interaction_throttle = (
            interaction_throttle if interaction_throttle is not None
            else settings.interaction_throttle_seconds
        )
        self.position_options = position_options
        self.drain_timeout = drain_timeout

        self._watch_id: Optional[int] = None
        self._poll_task: Optional[asyncio.Task] = None
        self._pending: set[asyncio.Task] = set()
        self._retired: set[asyncio.Task] = set()
        self._last_activity_at: Optional[float] = None
        self._closed = False

    # -- lifecycle -----------------------------------------------------

    async def __aenter__(self) -> "VisitTracker":
        try:
            await self.start()
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        await self.close()

    async def start(self) -> bool:
        """Announce the session. Awaited so later events find the record."""
        network_info = self.environment.network_info()
        data: dict[str, Any] = {
            "deviceInfo": self.environment.device_info().model_dump(mode="json", by_alias=True),
            "networkInfo": (
                network_info.model_dump(mode="json", by_alias=True, exclude_none=True)
                if network_info else None
            ),
        }
        delivered = await self.sink.send(self.session_id, EventType.INITIAL_VISIT, data)
        logger.info("Tracking session started", session_id=self.session_id, delivered=delivered)
        return delivered

    async def close(self) -> None:
        """Release the watch and the poll, then drain outstanding sends."""
        if self._closed:
            return
        self._closed = True

        self.stop_location_tracking()
        if self._retired:
            await asyncio.gather(*self._retired, return_exceptions=True)
            self._retired.clear()

        if self._pending:
            _, still_pending = await asyncio.wait(self._pending, timeout=self.drain_timeout)
            for task in still_pending:
                task.cancel()
            if still_pending:
                await asyncio.gather(*still_pending, return_exceptions=True)
                logger.warning("Dropped undelivered tracking events", count=len(still_pending))

        if self._owns_sink:
            await self.sink.aclose()
        logger.info("Tracking session closed", session_id=self.session_id)

    @property
    def is_tracking_location(self) -> bool:
        return self._watch_id is not None or self._poll_task is not None

    # -- emission ------------------------------------------------------

    def emit(self, event_type: EventType, data: Optional[dict[str, Any]] = None) -> Optional[asyncio.Task]:
        """Schedule a fire-and-forget event. Returns the task, or None once closed."""
        if self._closed:
            return None
        task = asyncio.create_task(self.sink.send(self.session_id, event_type, data or {}))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    def track_activity(self, kind: ActivityKind) -> Optional[asyncio.Task]:
        """Touch the session for a click, scroll, key press, focus, blur or visibility change."""
        if self.interaction_throttle > 0:
            now = time.monotonic()
            if (
                self._last_activity_at is not None
                and now - self._last_activity_at < self.interaction_throttle
            ):
                return None
            self._last_activity_at = now
        logger.debug("Activity", kind=kind.value)
        return self.emit(EventType.INTERACTION)

    def track_search_query(self, query: str) -> Optional[asyncio.Task]:
        return self.emit(EventType.INTERACTION, {"searchQuery": query})

    def track_location_save(self) -> Optional[asyncio.Task]:
        return self.emit(EventType.INTERACTION, {"savedLocation": True})

    # -- location ------------------------------------------------------

    async def request_location_permission(self) -> tuple[bool, Optional[LocationSample]]:
        """
        Ask for a position and record the decision.

        A granted decision starts continuous tracking. Returns the decision
        and the first sample when one was obtained.
        """
        if self._closed:
            return False, None
        if self.geolocation is None:
            logger.warning("Geolocation is not supported by this client")
            return False, None

        try:
            position = await self.geolocation.get_current_position(self.position_options)
        except PositionError as e:
            logger.warning("Location access denied", error=e.message, code=int(e.code))
            await self.sink.send(
                self.session_id,
                EventType.LOCATION_PERMISSION,
                {"granted": False, "error": e.message},
            )
            return False, None

        sample = format_location(position)
        await self.sink.send(
            self.session_id,
            EventType.LOCATION_PERMISSION,
            {"granted": True, "location": _sample_payload(sample)},
        )
        self.start_location_tracking()
        return True, sample

    def start_location_tracking(self) -> None:
        """Subscribe to movement and start the fixed-interval poll. Idempotent."""
        if self.geolocation is None or self._closed:
            return
        if self._watch_id is None:
            self._watch_id = self.geolocation.watch_position(
                self._on_position,
                self._on_position_error,
                self.position_options,
            )
        if self._poll_task is None:
            self._poll_task = asyncio.create_task(self._poll_positions())

    def stop_location_tracking(self) -> None:
        if self._watch_id is not None and self.geolocation is not None:
            self.geolocation.clear_watch(self._watch_id)
            self._watch_id = None
        if self._poll_task is not None:
            self._poll_task.cancel()
            self._retired.add(self._poll_task)
            self._poll_task = None

    def _on_position(self, position: Position) -> None:
        self.emit(
            EventType.LOCATION_UPDATE,
            {"location": _sample_payload(format_location(position))},
        )

    def _on_position_error(self, error: PositionError) -> None:
        logger.warning("Location tracking error", error=error.message, code=int(error.code))

    async def _poll_positions(self) -> None:
        # Samples even when the device is stationary
        while True:
            await asyncio.sleep(self.poll_interval)
            try:
                position = await self.geolocation.get_current_position(self.position_options)
            except PositionError as e:
                logger.warning("Periodic location update failed", error=e.message)
                continue
            self._on_position(position)
