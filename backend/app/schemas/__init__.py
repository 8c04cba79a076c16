"""
Pydantic schemas package.
"""
from app.schemas.common import ApiResponse
from app.schemas.location import (
    Coordinates,
    SavedLocationCreate,
    SavedLocationResponse,
)
from app.schemas.route import Point, RouteMode, RouteResult
from app.schemas.search import Suggestion
from app.schemas.visit import (
    DeviceInfo,
    EventType,
    LocationSample,
    NetworkInfo,
    PaginatedVisits,
    Pagination,
    TrackingEventRequest,
    TrackingEventResult,
    VisitOverview,
    VisitResponse,
    VisitSummary,
)

__all__ = [
    "ApiResponse",
    # Saved locations
    "Coordinates",
    "SavedLocationCreate",
    "SavedLocationResponse",
    # Routing
    "Point",
    "RouteMode",
    "RouteResult",
    # Search
    "Suggestion",
    # Visits
    "DeviceInfo",
    "EventType",
    "LocationSample",
    "NetworkInfo",
    "PaginatedVisits",
    "Pagination",
    "TrackingEventRequest",
    "TrackingEventResult",
    "VisitOverview",
    "VisitResponse",
    "VisitSummary",
]
