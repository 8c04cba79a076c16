"""
SavedLocation repository for data access operations.
"""
from app.models.location import SavedLocation
from app.repositories.base import BaseRepository


class SavedLocationRepository(BaseRepository[SavedLocation]):
    """Repository for SavedLocation model operations."""

    model = SavedLocation

    async def list_all(self) -> list[SavedLocation]:
        """All saved locations, oldest first."""
        return await self.list_ordered(SavedLocation.created_at)
