"""
Geocoding Pydantic schemas.
"""
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict

from app.schemas.route import Point


class Suggestion(BaseModel):
    """One place candidate returned by the geocoder, ranked by relevance."""

    place_id: Union[int, str]
    display_name: str
    lat: str
    lon: str
    importance: Optional[float] = None
    type: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @property
    def name(self) -> str:
        """Short label: the first component of the display name."""
        return self.display_name.split(",")[0].strip()

    @property
    def point(self) -> Point:
        return Point(latitude=float(self.lat), longitude=float(self.lon))
