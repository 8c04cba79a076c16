"""
Visit aggregation service - applies tracker lifecycle events to session records.

Event semantics:
- initial_visit creates the record at most once per session id
- every other event is a silent no-op until that record exists
- location updates and interactions recompute total_duration from first_visit

Events for one session are applied under a per-session lock and committed
before the lock is released, so concurrent events never lose updates within
this process.
"""
import math
from datetime import datetime, timezone
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.concurrency import KeyedLock
from app.core.logging import get_logger
from app.models.visit import UserVisit
from app.repositories.visit import VisitRepository
from app.schemas.visit import (
    DeviceInfo,
    EventType,
    InitialVisitData,
    InteractionData,
    LocationSample,
    LocationUpdateData,
    NetworkInfo,
    PermissionData,
    TrackingEventRequest,
    TrackingEventResult,
)
from app.services.geoip_client import GeoIPClient
from app.services.user_agent import parse_user_agent

logger = get_logger(__name__)

_session_locks = KeyedLock()


class InvalidEventError(ValueError):
    """Raised for tracking events that cannot be interpreted."""


def _as_aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def elapsed_seconds(since: datetime, now: datetime) -> int:
    """Whole seconds between two instants, never negative."""
    return max(0, math.floor((_as_aware(now) - _as_aware(since)).total_seconds()))


def _stamp(location: LocationSample, now: datetime) -> dict:
    return location.model_copy(update={"timestamp": now}).model_dump(
        mode="json",
        by_alias=True,
    )


class VisitService:
    """Creates and updates UserVisit records from tracker events."""

    def __init__(
        self,
        session: AsyncSession,
        geoip_client: Optional[GeoIPClient] = None,
    ) -> None:
        self.session = session
        self.repo = VisitRepository(session)
        self.geoip_client = geoip_client or GeoIPClient()

    async def handle_event(
        self,
        event: TrackingEventRequest,
        *,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> TrackingEventResult:
        """Validate an event envelope and dispatch it by type."""
        if not event.session_id:
            raise InvalidEventError("Session ID is required")

        try:
            event_type = EventType(event.type)
        except ValueError:
            raise InvalidEventError(f"Unknown event type: {event.type}")

        try:
            if event_type is EventType.INITIAL_VISIT:
                data = InitialVisitData.model_validate(event.data)
                visit = await self.record_initial_visit(
                    event.session_id,
                    device_info=data.device_info,
                    network_info=data.network_info,
                    ip_address=ip_address,
                    user_agent=user_agent,
                )
            elif event_type is EventType.LOCATION_PERMISSION:
                data = PermissionData.model_validate(event.data)
                visit = await self.record_permission_decision(
                    event.session_id,
                    granted=data.granted,
                    location=data.location,
                )
            elif event_type is EventType.LOCATION_UPDATE:
                data = LocationUpdateData.model_validate(event.data)
                visit = await self.record_location_update(
                    event.session_id,
                    location=data.location,
                )
            else:
                data = InteractionData.model_validate(event.data)
                visit = await self.record_interaction(
                    event.session_id,
                    search_query=data.search_query,
                    saved_location=data.saved_location,
                )
        except ValidationError as e:
            raise InvalidEventError(f"Invalid {event_type.value} payload: {e.error_count()} error(s)")

        if visit is None:
            return TrackingEventResult()
        return TrackingEventResult(session_id=visit.session_id, id=visit.id)

    async def record_initial_visit(
        self,
        session_id: str,
        *,
        device_info: DeviceInfo,
        network_info: Optional[NetworkInfo] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> UserVisit:
        """Create the session record; returns the existing one unchanged on repeats."""
        async with _session_locks.acquire(session_id):
            existing = await self.repo.get_by_session_id(session_id)
            if existing:
                logger.debug("Initial visit already recorded", session_id=session_id)
                return existing

            geo = await self.geoip_client.lookup(ip_address)
            user_agent = user_agent or device_info.user_agent or "Unknown"
            now = datetime.now(timezone.utc)

            try:
                visit = await self.repo.create({
                    "session_id": session_id,
                    "ip_address": ip_address,
                    "user_agent": user_agent,
                    "first_visit": now,
                    "last_activity": now,
                    "device_info": device_info.model_dump(mode="json", by_alias=True),
                    "network_info": (
                        network_info.model_dump(mode="json", by_alias=True)
                        if network_info else None
                    ),
                    "locations": [],
                    "search_queries": [],
                    **parse_user_agent(user_agent),
                    **geo.model_dump(),
                })
                await self.session.commit()
            except IntegrityError:
                # Another worker created the row first
                await self.session.rollback()
                existing = await self.repo.get_by_session_id(session_id)
                if existing is None:
                    raise
                logger.info("Initial visit lost creation race", session_id=session_id)
                return existing

        logger.info(
            "Visit created",
            session_id=session_id,
            city=visit.city,
            country=visit.country,
            device_type=visit.device_type,
        )
        return visit

    async def record_permission_decision(
        self,
        session_id: str,
        *,
        granted: bool,
        location: Optional[LocationSample] = None,
    ) -> Optional[UserVisit]:
        """Store the permission outcome; a granted decision may carry the first sample."""
        async with _session_locks.acquire(session_id):
            visit = await self.repo.get_by_session_id(session_id)
            if visit is None:
                return None

            now = datetime.now(timezone.utc)
            visit.location_permission_granted = granted
            if visit.location_permission_time is None:
                visit.location_permission_time = now
            visit.last_activity = now

            if granted and location is not None:
                sample = _stamp(location, now)
                visit.current_location = sample
                visit.locations = [*(visit.locations or []), sample]

            await self.repo.save(visit)
            await self.session.commit()

        logger.info("Location permission recorded", session_id=session_id, granted=granted)
        return visit

    async def record_location_update(
        self,
        session_id: str,
        *,
        location: Optional[LocationSample],
    ) -> Optional[UserVisit]:
        """Append a location sample and refresh the duration."""
        if location is None:
            return None

        async with _session_locks.acquire(session_id):
            visit = await self.repo.get_by_session_id(session_id)
            if visit is None:
                return None

            now = datetime.now(timezone.utc)
            sample = _stamp(location, now)
            visit.current_location = sample
            visit.locations = [*(visit.locations or []), sample]
            visit.last_activity = now
            visit.total_duration = elapsed_seconds(visit.first_visit, now)

            await self.repo.save(visit)
            await self.session.commit()

        logger.debug(
            "Location update recorded",
            session_id=session_id,
            samples=len(visit.locations),
        )
        return visit

    async def record_interaction(
        self,
        session_id: str,
        *,
        search_query: Optional[str] = None,
        saved_location: bool = False,
    ) -> Optional[UserVisit]:
        """Count an interaction, optionally carrying a search or a save."""
        async with _session_locks.acquire(session_id):
            visit = await self.repo.get_by_session_id(session_id)
            if visit is None:
                return None

            now = datetime.now(timezone.utc)
            visit.interaction_count = (visit.interaction_count or 0) + 1
            visit.last_activity = now

            if search_query:
                visit.search_queries = [*(visit.search_queries or []), search_query]
            if saved_location:
                visit.saved_locations_count = (visit.saved_locations_count or 0) + 1

            visit.total_duration = elapsed_seconds(visit.first_visit, now)

            await self.repo.save(visit)
            await self.session.commit()

        return visit
