"""
Shared persistence helpers for the visit and saved-location repositories.
"""
from typing import Any, Generic, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from app.core.database import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Data access for one model class, set as `model` on the subclass.

    Writes only flush; committing is left to the caller that owns the
    session so several writes can share one transaction.
    """

    model: type[ModelType]

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _scalars(self, stmt: Select) -> list[ModelType]:
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_ordered(
        self,
        column: InstrumentedAttribute,
        *,
        descending: bool = False,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[ModelType]:
        """Rows sorted by `column`, optionally windowed."""
        stmt = select(self.model).order_by(column.desc() if descending else column.asc())
        if skip:
            stmt = stmt.offset(skip)
        if limit is not None:
            stmt = stmt.limit(limit)
        return await self._scalars(stmt)

    async def create(self, values: dict[str, Any]) -> ModelType:
        """Insert a row and load its server-generated columns."""
        db_obj = self.model(**values)
        self.session.add(db_obj)
        return await self.save(db_obj)

    async def save(self, db_obj: ModelType) -> ModelType:
        """Flush pending changes and reload the row."""
        await self.session.flush()
        await self.session.refresh(db_obj)
        return db_obj

    async def count(self, *criteria: Any) -> int:
        stmt = select(func.count()).select_from(self.model)
        if criteria:
            stmt = stmt.where(*criteria)
        result = await self.session.execute(stmt)
        return result.scalar() or 0
