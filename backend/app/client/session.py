"""
Navigation session - ties tracking, routing, search and saved places together
the way the map page uses them.
"""
from dataclasses import dataclass
from typing import Optional

from app.client.locations import SavedLocationsClient
from app.client.route_planner import RoutePlanner
from app.client.suggestions import SuggestionPipeline
from app.client.tracker import VisitTracker
from app.core.config import settings
from app.core.logging import get_logger
from app.schemas.location import SavedLocationResponse
from app.schemas.route import Point, RouteMode, RouteResult
from app.schemas.search import Suggestion

logger = get_logger(__name__)

DEFAULT_POINT = Point(
    latitude=settings.default_latitude,
    longitude=settings.default_longitude,
)


def format_duration(seconds: float) -> str:
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    return f"{hours} hr {minutes} min" if hours > 0 else f"{minutes} min"


def format_distance(meters: float) -> str:
    return f"{meters / 1000:.1f} km"


@dataclass(frozen=True)
class Destination:
    name: str
    address: str
    point: Point


class NavigationSession:
    def __init__(
        self,
        tracker: VisitTracker,
        planner: RoutePlanner,
        suggestions: SuggestionPipeline,
        saved_locations: SavedLocationsClient,
        default_point: Point = DEFAULT_POINT,
    ) -> None:
        self.tracker = tracker
        self.planner = planner
        self.suggestions = suggestions
        self.saved_locations = saved_locations
        self.default_point = default_point
        self.destination: Optional[Destination] = None
        self.favorites: list[SavedLocationResponse] = []

    @property
    def route(self) -> Optional[RouteResult]:
        return self.planner.result

    async def locate_user(self) -> Point:
        """
        Run the permission flow and set the route start.

        Anything but a granted permission with a usable sample falls back to
        the default coordinate.
        """
        granted, sample = await self.tracker.request_location_permission()
        if granted and sample is not None:
            start = Point(latitude=sample.latitude, longitude=sample.longitude)
        else:
            start = self.default_point
        await self.planner.set_start(start)
        return start

    async def _go_to(self, suggestion: Suggestion) -> Optional[RouteResult]:
        self.destination = Destination(
            name=suggestion.name,
            address=suggestion.display_name,
            point=suggestion.point,
        )
        return await self.planner.set_end(suggestion.point)

    async def choose_suggestion(self, suggestion: Suggestion) -> Optional[RouteResult]:
        self.suggestions.select(suggestion)
        return await self._go_to(suggestion)

    async def search(self, query: str) -> Optional[RouteResult]:
        """Route to the best match for `query`; a failed search changes nothing."""
        match = await self.suggestions.submit(query)
        if match is None:
            return None
        return await self._go_to(match)

    async def change_mode(self, mode: RouteMode) -> Optional[RouteResult]:
        return await self.planner.set_mode(mode)

    async def refresh_favorites(self) -> list[SavedLocationResponse]:
        self.favorites = await self.saved_locations.list()
        return self.favorites

    async def save_destination(self, name: str) -> bool:
        """Store the current destination under `name`. Returns pass/fail."""
        if self.destination is None or not name.strip():
            return False

        saved = await self.saved_locations.save(
            name.strip(),
            self.destination.address,
            self.destination.point,
        )
        if saved:
            self.tracker.track_location_save()
            await self.refresh_favorites()
        else:
            logger.warning("Failed to save location", name=name)
        return saved
