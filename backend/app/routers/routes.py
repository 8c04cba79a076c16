"""
Route computation API.

Proxies the routing service; an unreachable service still yields a
successful response carrying a direct-path fallback and its notice.
"""
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from app.core.logging import get_logger
from app.schemas.common import ApiResponse
from app.schemas.route import Point, RouteMode, RouteResult
from app.services.route_service import RouteService

logger = get_logger(__name__)

router = APIRouter(prefix="/route", tags=["routing"])


def get_route_service() -> RouteService:
    """Dependency to get the route service."""
    return RouteService()


def _point(lat: Optional[float], lng: Optional[float]) -> Optional[Point]:
    if lat is None or lng is None:
        return None
    return Point(latitude=lat, longitude=lng)


@router.get("", response_model=ApiResponse[RouteResult])
async def get_route(
    service: Annotated[RouteService, Depends(get_route_service)],
    start_lat: Annotated[Optional[float], Query(alias="startLat", ge=-90, le=90)] = None,
    start_lng: Annotated[Optional[float], Query(alias="startLng", ge=-180, le=180)] = None,
    end_lat: Annotated[Optional[float], Query(alias="endLat", ge=-90, le=90)] = None,
    end_lng: Annotated[Optional[float], Query(alias="endLng", ge=-180, le=180)] = None,
    mode: RouteMode = RouteMode.ROAD,
):
    """Compute a route; `data` is null when either endpoint is missing."""
    result = await service.get_route(
        _point(start_lat, start_lng),
        _point(end_lat, end_lng),
        mode,
    )
    return ApiResponse[RouteResult](data=result)
