"""
Search suggestion pipeline: debounced, cancellable, stale-safe.

Each keystroke replaces the pending debounce timer (and aborts its request
if it already started). Every fetch is tagged with a generation; a response
whose generation is no longer current is dropped, so a slow answer for an
older prefix can never overwrite the suggestions of a newer one.
"""
import asyncio
from typing import Optional

from app.client.storage import RecentSearches
from app.client.tracker import VisitTracker
from app.core.config import settings
from app.core.logging import get_logger
from app.schemas.search import Suggestion
from app.services.geocoding_client import (
    MIN_QUERY_LENGTH,
    GeocodingClient,
    GeocodingError,
)

logger = get_logger(__name__)


class SuggestionPipeline:
    def __init__(
        self,
        client: GeocodingClient,
        recent: RecentSearches,
        tracker: Optional[VisitTracker] = None,
        debounce: Optional[float] = None,
    ) -> None:
        self.client = client
        self.recent = recent
        self.tracker = tracker
        self.debounce = debounce if debounce is not None else settings.suggestion_debounce_seconds

        self.query = ""
        self.suggestions: list[Suggestion] = []
        self.visible = False
        self._generation = 0
        self._pending: Optional[asyncio.Task] = None

    def _clear(self) -> None:
        self.suggestions = []
        self.visible = False

    def _cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    def on_input(self, text: str) -> Optional[asyncio.Task]:
        """
        Handle one keystroke.

        Short input clears the panel immediately without any request;
        otherwise a fetch is scheduled after the debounce delay.
        """
        self.query = text
        self._generation += 1
        self._cancel_pending()

        query = text.strip()
        if len(query) < MIN_QUERY_LENGTH:
            self._clear()
            return None

        self._pending = asyncio.create_task(self._debounced_fetch(query))
        return self._pending

    async def _debounced_fetch(self, query: str) -> None:
        await asyncio.sleep(self.debounce)
        await self.fetch_suggestions(query)

    async def fetch_suggestions(self, query: str) -> list[Suggestion]:
        """Fetch and publish suggestions for `query` unless a newer query overtook it."""
        self._generation += 1
        generation = self._generation

        try:
            results = await self.client.suggest(query)
        except GeocodingError as e:
            logger.warning("Error fetching suggestions", query=query, error=str(e))
            if generation == self._generation:
                self._clear()
            return []

        if generation != self._generation:
            logger.debug("Discarding stale suggestions", query=query)
            return results

        self.suggestions = results
        self.visible = bool(results)
        return results

    async def close(self) -> None:
        """Abort any scheduled or in-flight suggestion request."""
        task = self._pending
        self._cancel_pending()
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    def select(self, suggestion: Suggestion) -> Suggestion:
        """Accept a suggestion: remember it and report the search."""
        self._generation += 1
        self._cancel_pending()
        self.query = suggestion.name
        self.visible = False
        self.recent.add(suggestion.name)
        if self.tracker is not None:
            self.tracker.track_search_query(suggestion.display_name)
        return suggestion

    async def submit(self, query: str) -> Optional[Suggestion]:
        """
        Resolve a submitted query to its single best match.

        Failures and empty results are logged and return None, leaving any
        previously chosen destination as it was.
        """
        if not query.strip():
            return None

        self._generation += 1
        self._cancel_pending()
        self.visible = False
        self.recent.add(query)
        if self.tracker is not None:
            self.tracker.track_search_query(query)

        try:
            match = await self.client.search(query)
        except GeocodingError as e:
            logger.error("Search error", query=query, error=str(e))
            return None

        if match is None:
            logger.info("No search results found", query=query)
        return match
