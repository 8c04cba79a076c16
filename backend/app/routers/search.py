"""
Place search API.

Geocoder failures degrade to empty results; they are never reported as
server errors.
"""
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.core.logging import get_logger
from app.schemas.common import ApiResponse
from app.schemas.search import Suggestion
from app.services.geocoding_client import (
    MIN_QUERY_LENGTH,
    GeocodingClient,
    GeocodingError,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/search", tags=["search"])


def get_geocoding_client() -> GeocodingClient:
    """Dependency to get the geocoding client."""
    return GeocodingClient()


@router.get("/suggestions", response_model=ApiResponse[list[Suggestion]])
async def get_suggestions(
    client: Annotated[GeocodingClient, Depends(get_geocoding_client)],
    q: Annotated[str, Query(max_length=500)] = "",
):
    """Ranked candidates for partial input; short input returns nothing."""
    query = q.strip()
    if len(query) < MIN_QUERY_LENGTH:
        return ApiResponse[list[Suggestion]](data=[])

    try:
        suggestions = await client.suggest(query)
    except GeocodingError as e:
        logger.warning("Suggestion lookup failed", query=query, error=str(e))
        suggestions = []

    return ApiResponse[list[Suggestion]](data=suggestions)


@router.get("", response_model=ApiResponse[Suggestion])
async def search_place(
    client: Annotated[GeocodingClient, Depends(get_geocoding_client)],
    q: Annotated[str, Query(max_length=500)] = "",
):
    """Best single match for a submitted query, or null."""
    query = q.strip()
    if not query:
        return ApiResponse[Suggestion](data=None)

    try:
        match = await client.search(query)
    except GeocodingError as e:
        logger.warning("Search failed", query=query, error=str(e))
        match = None

    return ApiResponse[Suggestion](data=match)
