"""
Geolocation and client-capability adapters used by the visit tracker.

The tracker never talks to a positioning source directly; it is handed a
GeolocationProvider and a ClientEnvironment, which keeps it usable from a
browser bridge, a device daemon or a test double alike.
"""
import locale
import platform
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from typing import Callable, Optional, Protocol

from app import __version__
from app.core.config import settings
from app.schemas.visit import DeviceInfo, LocationSample, NetworkInfo


@dataclass(frozen=True)
class PositionOptions:
    """Acquisition options: high accuracy, 10 s timeout, 60 s cache tolerance."""

    enable_high_accuracy: bool = True
    timeout: float = settings.geolocation_timeout_seconds
    maximum_age: float = settings.geolocation_maximum_age_seconds


DEFAULT_POSITION_OPTIONS = PositionOptions()


@dataclass(frozen=True)
class Position:
    latitude: float
    longitude: float
    accuracy: Optional[float] = None
    altitude: Optional[float] = None
    altitude_accuracy: Optional[float] = None
    heading: Optional[float] = None
    speed: Optional[float] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class PositionErrorCode(IntEnum):
    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3


class PositionError(Exception):
    """A failed or refused position request."""

    def __init__(self, code: PositionErrorCode, message: str = "") -> None:
        self.code = code
        self.message = message or code.name.replace("_", " ").lower()
        super().__init__(self.message)


PositionCallback = Callable[[Position], None]
PositionErrorCallback = Callable[[PositionError], None]


class GeolocationProvider(Protocol):
    """Positioning capability: one-shot reads plus a movement-driven stream."""

    async def get_current_position(
        self,
        options: PositionOptions = DEFAULT_POSITION_OPTIONS,
    ) -> Position:
        """Return a fresh position or raise PositionError."""
        ...

    def watch_position(
        self,
        callback: PositionCallback,
        error_callback: PositionErrorCallback,
        options: PositionOptions = DEFAULT_POSITION_OPTIONS,
    ) -> int:
        """Subscribe to position changes; returns a handle for clear_watch."""
        ...

    def clear_watch(self, handle: int) -> None:
        ...


def format_location(position: Position) -> LocationSample:
    """Convert a provider Position to the tracked sample shape."""
    return LocationSample(
        latitude=position.latitude,
        longitude=position.longitude,
        accuracy=position.accuracy,
        altitude=position.altitude,
        altitude_accuracy=position.altitude_accuracy,
        heading=position.heading,
        speed=position.speed,
        timestamp=position.timestamp,
    )


class ClientEnvironment(Protocol):
    """Describes the device the tracker runs on."""

    def device_info(self) -> DeviceInfo:
        ...

    def network_info(self) -> Optional[NetworkInfo]:
        """Connection details, or None when the platform does not expose them."""
        ...


@dataclass
class StaticEnvironment:
    """Environment with fixed, caller-supplied values."""

    device: DeviceInfo
    network: Optional[NetworkInfo] = None

    def device_info(self) -> DeviceInfo:
        return self.device

    def network_info(self) -> Optional[NetworkInfo]:
        return self.network


class LocalEnvironment:
    """Environment describing the current Python process and host."""

    def device_info(self) -> DeviceInfo:
        language, _ = locale.getlocale()
        return DeviceInfo(
            user_agent=f"MapNav-Python/{__version__} ({platform.system()} {platform.release()})",
            language=(language or "en_US").replace("_", "-"),
            platform=platform.platform(),
            timezone=time.tzname[0],
        )

    def network_info(self) -> Optional[NetworkInfo]:
        return None
