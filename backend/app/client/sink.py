"""
Delivery of tracker events to the visit aggregation endpoint.

Delivery is at-most-once, unordered and best-effort: a failed send is logged
and reported as False, never retried and never raised.
"""
from typing import Any, Optional, Protocol

import httpx

from app.core.config import settings
from app.core.logging import get_logger
from app.schemas.visit import EventType

logger = get_logger(__name__)


class VisitEventSink(Protocol):
    async def send(
        self,
        session_id: str,
        event_type: EventType,
        data: dict[str, Any],
    ) -> bool:
        """Deliver one event; True when the store acknowledged it."""
        ...

    async def aclose(self) -> None:
        ...


class HttpEventSink:
    """Posts events as `{"sessionId", "type", "data"}` JSON."""

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.url = url or settings.tracking_api_url
        self._client = httpx.AsyncClient(
            timeout=timeout if timeout is not None else settings.tracking_timeout_seconds,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def send(
        self,
        session_id: str,
        event_type: EventType,
        data: dict[str, Any],
    ) -> bool:
        if self._client.is_closed:
            logger.warning("Tracking sink closed, event dropped", session_id=session_id, type=event_type.value)
            return False
        try:
            response = await self._client.post(
                self.url,
                json={
                    "sessionId": session_id,
                    "type": event_type.value,
                    "data": data,
                },
            )
            return bool(response.json().get("success"))
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            logger.warning(
                "Error sending tracking data",
                session_id=session_id,
                type=event_type.value,
                error=str(e),
            )
            return False

    async def aclose(self) -> None:
        await self._client.aclose()
