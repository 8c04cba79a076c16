"""
OSRM routing client.

Requests full GeoJSON geometry for a start/end pair and converts the
service's longitude-first coordinates to latitude-first pairs.
"""
from dataclasses import dataclass
from typing import Optional

import httpx

from app.core.config import settings
from app.core.logging import get_logger
from app.schemas.route import Point, RouteMode

logger = get_logger(__name__)


@dataclass(frozen=True)
class RoutedPath:
    """First candidate route returned by the routing service."""

    coordinates: list[tuple[float, float]]
    distance: float
    duration: float


class RoutingServiceError(Exception):
    """Timeout, transport failure, bad status or unusable payload from OSRM."""


class RoutingClient:
    """Async OSRM HTTP client."""

    ROUTE_PATH = "/route/v1/{profile}/{start_lon},{start_lat};{end_lon},{end_lat}"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.routing_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.route_timeout_seconds
        self._transport = transport

    def build_url(self, start: Point, end: Point, mode: RouteMode) -> str:
        return self.base_url + self.ROUTE_PATH.format(
            profile=mode.profile,
            start_lon=start.longitude,
            start_lat=start.latitude,
            end_lon=end.longitude,
            end_lat=end.latitude,
        )

    async def fetch_route(self, start: Point, end: Point, mode: RouteMode) -> RoutedPath:
        """
        Query the routing service for a path.

        Raises:
            RoutingServiceError: On timeout, transport errors, non-2xx
                responses, malformed bodies or when no route is found
        """
        url = self.build_url(start, end, mode)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.get(
                    url,
                    params={"overview": "full", "geometries": "geojson"},
                    headers={"Accept": "application/json"},
                )
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as e:
            raise RoutingServiceError(f"Routing request timed out after {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            raise RoutingServiceError(f"OSRM API returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise RoutingServiceError(f"Request failed: {e}") from e
        except ValueError as e:
            raise RoutingServiceError("Malformed routing response") from e

        routes = data.get("routes") if isinstance(data, dict) else None
        if not routes:
            raise RoutingServiceError(f"No {mode.value} route found")

        route = routes[0]
        try:
            coordinates = [
                (float(lat), float(lon))
                for lon, lat, *_ in route["geometry"]["coordinates"]
            ]
            distance = float(route["distance"])
            duration = float(route["duration"])
        except (KeyError, TypeError, ValueError) as e:
            raise RoutingServiceError("Malformed route geometry") from e

        if len(coordinates) < 2:
            raise RoutingServiceError("Route geometry has fewer than two points")

        logger.debug(
            "Route fetched",
            mode=mode.value,
            points=len(coordinates),
            distance=distance,
        )
        return RoutedPath(coordinates=coordinates, distance=distance, duration=duration)
