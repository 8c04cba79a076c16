"""
UserVisit model - one tracked browser session.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from sqlalchemy import Boolean, DateTime, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, JSONType


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VisitState(str, Enum):
    """Lifecycle of a session as observed by the server."""

    NEW = "new"
    IDENTIFIED = "identified"
    LOCATION_DECIDED = "location_decided"
    TRACKING = "tracking"


class UserVisit(Base):
    """Session record with device, location and interaction history."""

    __tablename__ = "user_visits"

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    session_id: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    ip_address: Mapped[Optional[str]] = mapped_column(String(64))
    user_agent: Mapped[str] = mapped_column(Text, nullable=False, default="Unknown")

    # Visit timing
    first_visit: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    last_activity: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    total_duration: Mapped[int] = mapped_column(Integer, default=0)  # seconds

    # Location data
    locations: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, default=list)
    current_location: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType)
    # None until the user has answered the permission prompt
    location_permission_granted: Mapped[Optional[bool]] = mapped_column(
        Boolean,
        nullable=True,
        index=True,
    )
    location_permission_time: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
    )

    # Device/Browser info
    device_info: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict)
    network_info: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType)
    device_type: Mapped[Optional[str]] = mapped_column(String(50))
    browser: Mapped[Optional[str]] = mapped_column(String(100))
    os: Mapped[Optional[str]] = mapped_column(String(100))

    # Interaction data
    page_views: Mapped[int] = mapped_column(Integer, default=1)
    interaction_count: Mapped[int] = mapped_column(Integer, default=0)
    search_queries: Mapped[list[str]] = mapped_column(JSONType, default=list)
    saved_locations_count: Mapped[int] = mapped_column(Integer, default=0)

    # Geographic details, resolved once from the first request's address
    city: Mapped[Optional[str]] = mapped_column(String(100))
    country: Mapped[Optional[str]] = mapped_column(String(100))
    region: Mapped[Optional[str]] = mapped_column(String(100))

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    @property
    def state(self) -> VisitState:
        """Furthest lifecycle state this session has reached."""
        if self.locations:
            return VisitState.TRACKING
        if self.location_permission_granted is not None:
            return VisitState.LOCATION_DECIDED
        return VisitState.IDENTIFIED

    def __repr__(self) -> str:
        return f"<UserVisit {self.session_id}>"
