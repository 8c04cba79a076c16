"""
Route acquisition with graceful degradation.

A routing-service failure of any kind produces a straight-line route between
the endpoints with a haversine distance and a speed-based duration, flagged
as a fallback and carrying a user-visible notice.
"""
from typing import Optional

from app.core.geo import DRIVING_SPEED_MPS, WALKING_SPEED_MPS, haversine_distance
from app.core.logging import get_logger
from app.schemas.route import Point, RouteMode, RouteResult
from app.services.routing_client import RoutingClient, RoutingServiceError

logger = get_logger(__name__)

FALLBACK_NOTICE = "Network error: Unable to calculate route. Showing direct path instead."

FALLBACK_SPEEDS = {
    RouteMode.WALKING: WALKING_SPEED_MPS,
    RouteMode.ROAD: DRIVING_SPEED_MPS,
}


def direct_route(start: Point, end: Point, mode: RouteMode) -> RouteResult:
    """Two-point path with an estimated duration at the mode's assumed speed."""
    distance = haversine_distance(
        start.latitude, start.longitude,
        end.latitude, end.longitude,
    )
    return RouteResult(
        coordinates=[
            (start.latitude, start.longitude),
            (end.latitude, end.longitude),
        ],
        distance=distance,
        duration=distance / FALLBACK_SPEEDS[mode],
        mode=mode,
        fallback=True,
        error=FALLBACK_NOTICE,
    )


class RouteService:
    """Produces a RouteResult for (start, end, mode)."""

    def __init__(self, client: Optional[RoutingClient] = None) -> None:
        self.client = client or RoutingClient()

    async def get_route(
        self,
        start: Optional[Point],
        end: Optional[Point],
        mode: RouteMode = RouteMode.ROAD,
    ) -> Optional[RouteResult]:
        """
        Compute a route, falling back to a direct path on any service failure.

        Returns None without touching the network when an endpoint is missing.
        """
        if start is None or end is None:
            return None

        if start == end:
            return RouteResult(
                coordinates=[
                    (start.latitude, start.longitude),
                    (end.latitude, end.longitude),
                ],
                distance=0.0,
                duration=0.0,
                mode=mode,
            )

        try:
            path = await self.client.fetch_route(start, end, mode)
        except RoutingServiceError as e:
            logger.warning(
                "Routing failed, using direct path",
                mode=mode.value,
                error=str(e),
            )
            return direct_route(start, end, mode)

        return RouteResult(
            coordinates=path.coordinates,
            distance=path.distance,
            duration=path.duration,
            mode=mode,
        )
