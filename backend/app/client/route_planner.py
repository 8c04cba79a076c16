"""
Route planner - recomputes the displayed route when its inputs change.

Every refresh takes a new generation number. Only the newest refresh may
publish its result; a run that finishes after a newer one started is
discarded, whichever order the upstream responses arrive in.
"""
from typing import Optional

from app.core.logging import get_logger
from app.schemas.route import Point, RouteMode, RouteResult
from app.services.route_service import RouteService

logger = get_logger(__name__)


class RoutePlanner:
    def __init__(
        self,
        service: Optional[RouteService] = None,
        mode: RouteMode = RouteMode.ROAD,
    ) -> None:
        self.service = service or RouteService()
        self.start: Optional[Point] = None
        self.end: Optional[Point] = None
        self.mode = mode
        self.result: Optional[RouteResult] = None
        self.error: Optional[str] = None
        self.is_calculating = False
        self._generation = 0

    async def set_start(self, point: Optional[Point]) -> Optional[RouteResult]:
        self.start = point
        return await self.refresh()

    async def set_end(self, point: Optional[Point]) -> Optional[RouteResult]:
        self.end = point
        return await self.refresh()

    async def set_mode(self, mode: RouteMode) -> Optional[RouteResult]:
        self.mode = mode
        return await self.refresh()

    async def refresh(self) -> Optional[RouteResult]:
        """
        Recompute the route from the current inputs.

        Returns the published result, or None when the inputs are incomplete
        or this run was superseded before it finished.
        """
        self._generation += 1
        generation = self._generation

        if self.start is None or self.end is None:
            self.result = None
            self.error = None
            self.is_calculating = False
            return None

        self.is_calculating = True
        self.error = None
        start, end, mode = self.start, self.end, self.mode

        result = await self.service.get_route(start, end, mode)

        if generation != self._generation:
            logger.debug(
                "Discarding superseded route",
                generation=generation,
                current=self._generation,
            )
            return None

        self.result = result
        self.error = result.error if result else None
        self.is_calculating = False
        return result
