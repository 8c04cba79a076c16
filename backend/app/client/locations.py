"""
Saved-location API client. Failures surface only as an empty list or False.
"""
from typing import Optional

import httpx
from pydantic import ValidationError

from app.core.config import settings
from app.core.logging import get_logger
from app.schemas.location import SavedLocationResponse
from app.schemas.route import Point

logger = get_logger(__name__)


class SavedLocationsClient:
    def __init__(
        self,
        url: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.url = url or settings.locations_api_url
        self.timeout = timeout
        self._transport = transport

    async def list(self) -> list[SavedLocationResponse]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(self.url)
                body = response.json()
            if not body.get("success"):
                return []
            return [SavedLocationResponse.model_validate(item) for item in body.get("data") or []]
        except (httpx.HTTPError, ValueError, AttributeError, ValidationError) as e:
            logger.error("Error fetching saved locations", error=str(e))
            return []

    async def save(self, name: str, address: str, point: Point) -> bool:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.url,
                    json={
                        "name": name,
                        "address": address,
                        "coordinates": {"lat": point.latitude, "lng": point.longitude},
                    },
                )
                return bool(response.json().get("success"))
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            logger.error("Error saving location", name=name, error=str(e))
            return False
