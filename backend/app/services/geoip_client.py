"""
Geo-IP client: resolves a client address to city, region and country.

Lookups are best-effort. Addresses that cannot be located publicly and any
upstream failure resolve to "Unknown" fields instead of raising.
"""
import ipaddress
from typing import Optional

import httpx
from pydantic import BaseModel

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

UNKNOWN = "Unknown"


class GeoData(BaseModel):
    city: str = UNKNOWN
    country: str = UNKNOWN
    region: str = UNKNOWN


def is_public_address(ip: Optional[str]) -> bool:
    """True for a syntactically valid, globally routable IP address."""
    if not ip or ip == "unknown":
        return False
    try:
        address = ipaddress.ip_address(ip)
    except ValueError:
        return False
    return not (
        address.is_private
        or address.is_loopback
        or address.is_link_local
        or address.is_reserved
        or address.is_unspecified
        or address.is_multicast
    )


class GeoIPClient:
    """Async client for the ipapi.co JSON endpoint."""

    LOOKUP_PATH = "/{ip}/json/"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.geoip_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.geoip_timeout_seconds
        self._transport = transport

    async def lookup(self, ip: Optional[str]) -> GeoData:
        """Resolve `ip` to a GeoData record. Never raises."""
        if not is_public_address(ip):
            return GeoData()

        url = self.base_url + self.LOOKUP_PATH.format(ip=ip)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.get(
                    url,
                    headers={"User-Agent": settings.http_user_agent},
                )
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Geo-IP lookup failed", ip=ip, error=str(e))
            return GeoData()

        if not isinstance(data, dict) or data.get("error"):
            logger.warning("Geo-IP lookup returned no data", ip=ip)
            return GeoData()

        return GeoData(
            city=data.get("city") or UNKNOWN,
            country=data.get("country_name") or UNKNOWN,
            region=data.get("region") or UNKNOWN,
        )
