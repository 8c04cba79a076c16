"""
Routing Pydantic schemas.
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RouteMode(str, Enum):
    """Travel mode requested by the user."""

    ROAD = "road"
    WALKING = "walking"

    @property
    def profile(self) -> str:
        """OSRM profile name for this mode."""
        return "driving" if self is RouteMode.ROAD else "foot"


class Point(BaseModel):
    """A latitude/longitude pair."""

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    model_config = ConfigDict(frozen=True)


class RouteResult(BaseModel):
    """
    A computed path between two points.

    Coordinates are latitude-first pairs; there are always at least two.
    `fallback` marks a straight-line estimate produced when the routing
    service could not be used, and `error` then carries the notice shown
    to the user.
    """

    coordinates: list[tuple[float, float]] = Field(..., min_length=2)
    distance: float  # meters
    duration: float  # seconds
    mode: RouteMode
    fallback: bool = False
    error: Optional[str] = None
