"""
Nominatim geocoding client for place suggestions and direct search.
"""
from typing import Optional

import httpx
from pydantic import ValidationError

from app.core.config import settings
from app.core.logging import get_logger
from app.schemas.search import Suggestion

logger = get_logger(__name__)

# Shorter input never reaches the geocoder
MIN_QUERY_LENGTH = 2


class GeocodingError(Exception):
    """Timeout, transport failure, bad status or unusable payload from Nominatim."""


class GeocodingClient:
    """Async Nominatim HTTP client."""

    SEARCH_PATH = "/search"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.geocoding_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.suggestion_timeout_seconds
        self._transport = transport

    async def _search(self, params: dict[str, str | int]) -> list[Suggestion]:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.get(
                    self.base_url + self.SEARCH_PATH,
                    params={"format": "json", **params},
                    headers={
                        "Accept": "application/json",
                        "User-Agent": settings.http_user_agent,
                    },
                )
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as e:
            raise GeocodingError(f"Geocoding request timed out after {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            raise GeocodingError(f"Nominatim API returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise GeocodingError(f"Request failed: {e}") from e
        except ValueError as e:
            raise GeocodingError("Malformed geocoding response") from e

        if not isinstance(data, list):
            raise GeocodingError("Unexpected geocoding payload")

        try:
            return [Suggestion.model_validate(item) for item in data]
        except ValidationError as e:
            raise GeocodingError("Malformed geocoding candidate") from e

    async def suggest(self, query: str, limit: Optional[int] = None) -> list[Suggestion]:
        """Ranked candidates for partial input."""
        return await self._search({
            "q": query,
            "limit": limit or settings.suggestion_limit,
            "addressdetails": 1,
            "extratags": 1,
        })

    async def search(self, query: str) -> Optional[Suggestion]:
        """Single best match for a submitted query, or None."""
        results = await self._search({"q": query, "limit": 1})
        if not results:
            logger.info("No search results", query=query)
            return None
        return results[0]
