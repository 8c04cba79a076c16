"""
Visit tracking Pydantic schemas for request/response validation.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.visit import VisitState


class EventType(str, Enum):
    """Lifecycle events a tracker can emit."""

    INITIAL_VISIT = "initial_visit"
    LOCATION_PERMISSION = "location_permission"
    LOCATION_UPDATE = "location_update"
    INTERACTION = "interaction"


class LocationSample(BaseModel):
    """One geolocation reading. Immutable once recorded."""

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    accuracy: Optional[float] = None
    altitude: Optional[float] = None
    altitude_accuracy: Optional[float] = Field(None, alias="altitudeAccuracy")
    heading: Optional[float] = None
    speed: Optional[float] = None
    timestamp: Optional[datetime] = None

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class DeviceInfo(BaseModel):
    """Browser/device capabilities reported on the first visit."""

    user_agent: str = Field("Unknown", alias="userAgent")
    language: str = "Unknown"
    platform: str = "Unknown"
    screen_resolution: str = Field("Unknown", alias="screenResolution")
    window_size: str = Field("Unknown", alias="windowSize")
    timezone: str = "Unknown"
    cookie_enabled: bool = Field(True, alias="cookieEnabled")
    online_status: bool = Field(True, alias="onlineStatus")

    model_config = ConfigDict(populate_by_name=True)


class NetworkInfo(BaseModel):
    """Connection quality hints, when the client exposes them."""

    effective_type: Optional[str] = Field(None, alias="effectiveType")
    downlink: Optional[float] = None
    rtt: Optional[float] = None
    save_data: Optional[bool] = Field(None, alias="saveData")

    model_config = ConfigDict(populate_by_name=True)


class TrackingEventRequest(BaseModel):
    """Envelope posted by the tracker for every lifecycle event."""

    session_id: Optional[str] = Field(None, alias="sessionId")
    type: Optional[str] = None
    data: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(populate_by_name=True)


class InitialVisitData(BaseModel):
    device_info: DeviceInfo = Field(default_factory=DeviceInfo, alias="deviceInfo")
    network_info: Optional[NetworkInfo] = Field(None, alias="networkInfo")

    model_config = ConfigDict(populate_by_name=True)


class PermissionData(BaseModel):
    granted: bool
    location: Optional[LocationSample] = None
    error: Optional[str] = None


class LocationUpdateData(BaseModel):
    location: Optional[LocationSample] = None


class InteractionData(BaseModel):
    search_query: Optional[str] = Field(None, alias="searchQuery")
    saved_location: bool = Field(False, alias="savedLocation")

    model_config = ConfigDict(populate_by_name=True)


class TrackingEventResult(BaseModel):
    """Identifiers of the affected record; both null when nothing was touched."""

    session_id: Optional[str] = Field(None, alias="sessionId")
    id: Optional[UUID] = None

    model_config = ConfigDict(populate_by_name=True)


class VisitResponse(BaseModel):
    """Full session record for the admin view."""

    id: UUID
    session_id: str = Field(alias="sessionId")
    state: VisitState
    ip_address: Optional[str] = Field(None, alias="ipAddress")
    user_agent: str = Field(alias="userAgent")
    first_visit: datetime = Field(alias="firstVisit")
    last_activity: datetime = Field(alias="lastActivity")
    total_duration: int = Field(alias="totalDuration")
    locations: list[LocationSample]
    current_location: Optional[LocationSample] = Field(None, alias="currentLocation")
    location_permission_granted: Optional[bool] = Field(None, alias="locationPermissionGranted")
    location_permission_time: Optional[datetime] = Field(None, alias="locationPermissionTime")
    device_info: DeviceInfo = Field(alias="deviceInfo")
    network_info: Optional[NetworkInfo] = Field(None, alias="networkInfo")
    device_type: Optional[str] = Field(None, alias="deviceType")
    browser: Optional[str] = None
    os: Optional[str] = None
    page_views: int = Field(alias="pageViews")
    interaction_count: int = Field(alias="interactionCount")
    search_queries: list[str] = Field(alias="searchQueries")
    saved_locations_count: int = Field(alias="savedLocationsCount")
    city: Optional[str] = None
    country: Optional[str] = None
    region: Optional[str] = None
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
    )


class VisitSummary(BaseModel):
    """Compact row for the overview's recent-visits list."""

    session_id: str = Field(alias="sessionId")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    location_permission_granted: Optional[bool] = Field(None, alias="locationPermissionGranted")
    city: Optional[str] = None
    country: Optional[str] = None
    total_duration: int = Field(alias="totalDuration")
    interaction_count: int = Field(alias="interactionCount")

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
    )


class VisitOverview(BaseModel):
    """Aggregated statistics for the admin dashboard."""

    total_visits: int = Field(alias="totalVisits")
    visits_with_location: int = Field(alias="visitsWithLocation")
    location_permission_rate: float = Field(alias="locationPermissionRate")
    recent_visits: list[VisitSummary] = Field(alias="recentVisits")
    device_breakdown: dict[str, int] = Field(default_factory=dict, alias="deviceBreakdown")

    model_config = ConfigDict(populate_by_name=True)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class PaginatedVisits(BaseModel):
    visits: list[VisitResponse]
    pagination: Pagination
