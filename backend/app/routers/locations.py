"""
Saved-location API routes.
"""
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.core.logging import get_logger
from app.repositories.location import SavedLocationRepository
from app.schemas.common import ApiResponse
from app.schemas.location import SavedLocationCreate, SavedLocationResponse

logger = get_logger(__name__)

router = APIRouter(prefix="/locations", tags=["locations"])


async def get_location_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> SavedLocationRepository:
    """Dependency to get saved-location repository."""
    return SavedLocationRepository(session)


@router.get("", response_model=ApiResponse[list[SavedLocationResponse]])
async def list_locations(
    repo: Annotated[SavedLocationRepository, Depends(get_location_repository)],
):
    """Fetch all saved locations."""
    locations = await repo.list_all()
    return ApiResponse[list[SavedLocationResponse]](
        data=[SavedLocationResponse.from_model(loc) for loc in locations],
    )


@router.post(
    "",
    response_model=ApiResponse[SavedLocationResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_location(
    payload: Annotated[dict[str, Any], Body()],
    repo: Annotated[SavedLocationRepository, Depends(get_location_repository)],
):
    """Save a new favorite location. Name, address and coordinates are required."""
    try:
        location_in = SavedLocationCreate.model_validate(payload)
    except ValidationError:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "error": "Missing required fields"},
        )

    location = await repo.create({
        "name": location_in.name.strip(),
        "address": location_in.address.strip(),
        "latitude": location_in.coordinates.lat,
        "longitude": location_in.coordinates.lng,
    })

    logger.info("Saved location", name=location.name)
    return ApiResponse[SavedLocationResponse](
        data=SavedLocationResponse.from_model(location),
    )
