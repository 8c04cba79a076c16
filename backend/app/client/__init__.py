"""
Client-side toolkit: visit tracker, route planner, search suggestions and
recent-search storage, driven by an asyncio event loop.
"""
from app.client.geolocation import (
    ClientEnvironment,
    GeolocationProvider,
    LocalEnvironment,
    Position,
    PositionError,
    PositionErrorCode,
    PositionOptions,
    StaticEnvironment,
    format_location,
)
from app.client.locations import SavedLocationsClient
from app.client.route_planner import RoutePlanner
from app.client.session import (
    Destination,
    NavigationSession,
    format_distance,
    format_duration,
)
from app.client.sink import HttpEventSink, VisitEventSink
from app.client.storage import JsonFileStore, KeyValueStore, MemoryStore, RecentSearches
from app.client.suggestions import SuggestionPipeline
from app.client.tracker import ActivityKind, VisitTracker, generate_session_id

__all__ = [
    "ActivityKind",
    "ClientEnvironment",
    "Destination",
    "GeolocationProvider",
    "HttpEventSink",
    "JsonFileStore",
    "KeyValueStore",
    "LocalEnvironment",
    "MemoryStore",
    "NavigationSession",
    "Position",
    "PositionError",
    "PositionErrorCode",
    "PositionOptions",
    "RecentSearches",
    "RoutePlanner",
    "SavedLocationsClient",
    "StaticEnvironment",
    "SuggestionPipeline",
    "VisitEventSink",
    "VisitTracker",
    "format_distance",
    "format_duration",
    "format_location",
    "generate_session_id",
]
