"""
UserVisit repository for data access operations.
"""
from typing import Optional

from sqlalchemy import func, select

from app.models.visit import UserVisit
from app.repositories.base import BaseRepository


class VisitRepository(BaseRepository[UserVisit]):
    """Repository for UserVisit model operations."""

    model = UserVisit

    async def get_by_session_id(self, session_id: str) -> Optional[UserVisit]:
        """Get a visit by its client-generated session identifier."""
        stmt = select(UserVisit).where(UserVisit.session_id == session_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_recent(self, *, skip: int = 0, limit: int = 20) -> list[UserVisit]:
        """Newest visits first."""
        return await self.list_ordered(
            UserVisit.first_visit,
            descending=True,
            skip=skip,
            limit=limit,
        )

    async def count_with_location(self) -> int:
        """Count visits whose user granted location access."""
        return await self.count(UserVisit.location_permission_granted.is_(True))

    async def count_by_device_type(self) -> dict[str, int]:
        """Visit counts grouped by parsed device type."""
        stmt = (
            select(UserVisit.device_type, func.count())
            .group_by(UserVisit.device_type)
        )
        result = await self.session.execute(stmt)
        return {
            (device_type or "unknown"): count
            for device_type, count in result.all()
        }
