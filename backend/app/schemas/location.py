"""
Saved-location Pydantic schemas for request/response validation.
"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Coordinates(BaseModel):
    """Coordinates in the `{lat, lng}` shape used by the map front-end."""

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class SavedLocationCreate(BaseModel):
    """Schema for saving a new favorite location."""

    name: str = Field(..., min_length=1, max_length=255)
    address: str = Field(..., min_length=1)
    coordinates: Coordinates

    @model_validator(mode="after")
    def strip_text(self) -> "SavedLocationCreate":
        if not self.name.strip() or not self.address.strip():
            raise ValueError("name and address must not be blank")
        return self


class SavedLocationResponse(BaseModel):
    """Schema for saved-location API responses."""

    id: UUID
    name: str
    address: str
    coordinates: Coordinates
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_model(cls, location) -> "SavedLocationResponse":
        return cls(
            id=location.id,
            name=location.name,
            address=location.address,
            coordinates=Coordinates(lat=location.latitude, lng=location.longitude),
            created_at=location.created_at,
        )
