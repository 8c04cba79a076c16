"""
Liveness, readiness and service info endpoints.
"""
from datetime import datetime, timezone

from fastapi import APIRouter
from sqlalchemy import text

from app.core.config import settings
from app.core.database import get_db_context, is_db_available
from app.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


async def check_database() -> str:
    """`connected`, `unavailable` (never initialized) or `error: ...`."""
    if not is_db_available():
        return "unavailable"
    try:
        async with get_db_context() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning("Readiness database check failed", error=str(e))
        return f"error: {e}"
    return "connected"


@router.get("/")
async def root() -> dict:
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
    }


@router.get("/health")
async def health_check() -> dict:
    return {"status": "healthy", "timestamp": _now(), "version": settings.app_version}


@router.get("/health/ready")
async def readiness_check() -> dict:
    """
    Readiness probe.

    Only the database gates readiness; the routing, geocoding and geo-IP
    services all have degraded modes and are listed for reference.
    """
    database = await check_database()
    return {
        "status": "ready" if database == "connected" else "not_ready",
        "checks": {"database": database},
        "upstreams": {
            "routing": settings.routing_base_url,
            "geocoding": settings.geocoding_base_url,
            "geoip": settings.geoip_base_url,
        },
        "timestamp": _now(),
    }


@router.get("/health/live")
async def liveness_check() -> dict:
    """Liveness probe; touches no dependencies."""
    return {"status": "alive", "timestamp": _now()}
