"""
Visit tracking API routes.

POST receives fire-and-forget lifecycle events from the tracker; GET serves
the admin view (single session, paginated listing, aggregated overview).
"""
import math
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db_session
from app.core.logging import get_logger
from app.repositories.visit import VisitRepository
from app.schemas.common import ApiResponse
from app.schemas.visit import (
    PaginatedVisits,
    Pagination,
    TrackingEventRequest,
    TrackingEventResult,
    VisitOverview,
    VisitResponse,
    VisitSummary,
)
from app.services.geoip_client import GeoIPClient
from app.services.visit_service import InvalidEventError, VisitService

logger = get_logger(__name__)

router = APIRouter(prefix="/user-visits", tags=["visits"])

CLIENT_IP_HEADERS = ("x-forwarded-for", "x-real-ip", "cf-connecting-ip")


def get_client_ip(request: Request) -> str:
    """
    Resolve the caller's address.

    Proxy headers win over the socket peer; X-Forwarded-For contributes its
    first (client-most) entry.
    """
    for header in CLIENT_IP_HEADERS:
        value = request.headers.get(header)
        if value:
            return value.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def get_geoip_client() -> GeoIPClient:
    """Dependency to get the geo-IP client."""
    return GeoIPClient()


async def get_visit_service(
    session: Annotated[AsyncSession, Depends(get_db_session)],
    geoip_client: Annotated[GeoIPClient, Depends(get_geoip_client)],
) -> VisitService:
    """Dependency to get the visit service."""
    return VisitService(session, geoip_client)


async def get_visit_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> VisitRepository:
    """Dependency to get visit repository."""
    return VisitRepository(session)


@router.post("", response_model=ApiResponse[TrackingEventResult])
async def record_visit_event(
    event: TrackingEventRequest,
    request: Request,
    service: Annotated[VisitService, Depends(get_visit_service)],
):
    """
    Apply one tracker event.

    Events referencing a session that does not exist yet succeed without
    touching the store; the response then carries null identifiers.
    """
    try:
        result = await service.handle_event(
            event,
            ip_address=get_client_ip(request),
            user_agent=request.headers.get("user-agent"),
        )
    except InvalidEventError as e:
        logger.info("Rejected tracking event", error=str(e), type=event.type)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "error": str(e)},
        )

    return ApiResponse[TrackingEventResult](data=result)


@router.get("")
async def get_visits(
    repo: Annotated[VisitRepository, Depends(get_visit_repository)],
    session_id: Annotated[Optional[str], Query(alias="sessionId")] = None,
    stats: Optional[str] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = settings.visits_page_size,
):
    """Single visit by session id, aggregated overview, or a paginated list."""
    if session_id:
        visit = await repo.get_by_session_id(session_id)
        return ApiResponse[VisitResponse](
            data=VisitResponse.model_validate(visit) if visit else None,
        )

    if stats == "overview":
        return ApiResponse[VisitOverview](data=await _build_overview(repo))

    total = await repo.count()
    visits = await repo.list_recent(skip=(page - 1) * limit, limit=limit)
    return ApiResponse[PaginatedVisits](
        data=PaginatedVisits(
            visits=[VisitResponse.model_validate(v) for v in visits],
            pagination=Pagination(
                page=page,
                limit=limit,
                total=total,
                pages=math.ceil(total / limit),
            ),
        ),
    )


async def _build_overview(repo: VisitRepository) -> VisitOverview:
    total_visits = await repo.count()
    with_location = await repo.count_with_location()
    recent = await repo.list_recent(limit=settings.overview_recent_limit)

    rate = round(with_location / total_visits * 100, 1) if total_visits else 0.0

    return VisitOverview(
        total_visits=total_visits,
        visits_with_location=with_location,
        location_permission_rate=rate,
        recent_visits=[VisitSummary.model_validate(v) for v in recent],
        device_breakdown=await repo.count_by_device_type(),
    )
