"""
Caller-side helpers for interactive search.

SearchSession keeps the result list of one search box. Each search takes a
monotonically increasing sequence number; a response is applied only if no
newer search was issued while it was in flight, so a slow stale answer can
never overwrite a fresh one. Paging is refused while a search is still in
flight, since the page would belong to the query being replaced.

Debouncer coalesces bursts of triggers (typing, filter toggles) so only the
last one actually runs.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from .aggregator import Aggregator
from .models import CanonicalResult, SearchQuery

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.5


class SearchSession:
    """Latest-wins result list for one search surface."""

    def __init__(self, aggregator: Aggregator):
        self.aggregator = aggregator
        self.query: Optional[SearchQuery] = None
        self.results: List[CanonicalResult] = []
        self._sequence = 0
        self._pending_query: Optional[SearchQuery] = None

    @property
    def latest_sequence(self) -> int:
        return self._sequence

    def _issue(self) -> int:
        self._sequence += 1
        return self._sequence

    async def search(self, query: SearchQuery) -> Optional[List[CanonicalResult]]:
        """
        Run a fresh search (page 1 of the query's page).

        Returns:
            The new result list, or None when the response was stale
        """
        query = query.normalized()
        sequence = self._issue()
        self._pending_query = query
        try:
            results = await self.aggregator.search(query)
        finally:
            if sequence == self._sequence:
                self._pending_query = None

        if sequence != self._sequence:
            logger.debug(f"Discarding stale search #{sequence} (latest #{self._sequence})")
            return None

        self.query = query
        self.results = list(results)
        return self.results

    async def load_more(self) -> Optional[List[CanonicalResult]]:
        """
        Fetch the next page of the current query and append it.

        Pages are merged independently; an item repeated across pages is
        appended again.

        Returns:
            The grown result list, or None when stale, when nothing was
            searched yet, or when a newer search is still in flight
        """
        if self.query is None:
            return None
        if self._pending_query is not None:
            logger.debug(f"Skipping load_more while '{self._pending_query.text}' is in flight")
            return None

        next_query = self.query.next_page()
        sequence = self._issue()
        results = await self.aggregator.search(next_query)

        if sequence != self._sequence:
            logger.debug(f"Discarding stale page #{sequence} (latest #{self._sequence})")
            return None

        self.query = next_query
        self.results = self.results + list(results)
        return self.results


class Debouncer:
    """Run only the last of a burst of triggers, after a quiet window."""

    def __init__(self, window: float = DEFAULT_DEBOUNCE_SECONDS):
        self.window = window
        self._pending: Optional[asyncio.Task] = None

    def trigger(self, action: Callable[[], Awaitable]) -> asyncio.Task:
        """
        Schedule action after the window, cancelling any pending one.

        Must be called from a running event loop.
        """
        self.cancel()
        self._pending = asyncio.ensure_future(self._run_later(action))
        return self._pending

    async def _run_later(self, action: Callable[[], Awaitable]):
        await asyncio.sleep(self.window)
        return await action()

    def cancel(self):
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    @property
    def pending(self) -> bool:
        return self._pending is not None and not self._pending.done()
