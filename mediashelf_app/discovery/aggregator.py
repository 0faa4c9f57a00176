"""
================================================================================
MediaShelf v1.0 - Discovery Aggregator
================================================================================
Fans one query out to every provider call implied by a kind filter, then
merges the answers into a single canonical list.

Call plan (at most 3 concurrent calls):
  - ALL / ANIME           -> Jikan /anime (results stamped ANIME)
  - ALL / MANGA / MANHWA  -> Jikan /manga (kind inferred per item)
  - ALL / BOOK            -> Google Books

Merge:
  1. Concatenate in plan order, provider order preserved inside each call
  2. Deduplicate by id, first seen wins
  3. MANHWA filter keeps only MANHWA items (Jikan /manga returns both)

Pagination is source-local: page N is page N of every provider. Results are
deduplicated within one call only, never across pages.

Usage:
    aggregator = Aggregator(build_provider_table(JikanProvider(), GoogleBooksProvider()))
    results = await aggregator.search_all("Naruto", MediaKind.ANIME)
================================================================================
"""

import asyncio
from typing import List, Optional, NamedTuple, Dict
import logging

from .models import CanonicalResult, MediaKind, SearchQuery
from .providers import ProviderTable

logger = logging.getLogger(__name__)

SERIAL_PREFIX = "mal"
BOOK_PREFIX = "gb"


class PlannedCall(NamedTuple):
    """One adapter invocation of an aggregate search."""
    prefix: str
    sub_kind: str
    forced_kind: Optional[MediaKind]


def plan_calls(media_kind_filter: Optional[MediaKind]) -> List[PlannedCall]:
    """
    Decide which adapter calls a kind filter needs, in merge order.

    Args:
        media_kind_filter: MediaKind, or None for ALL

    Returns:
        List of PlannedCall
    """
    calls = []
    if media_kind_filter in (None, MediaKind.ANIME):
        calls.append(PlannedCall(SERIAL_PREFIX, 'anime', MediaKind.ANIME))
    if media_kind_filter in (None, MediaKind.MANGA, MediaKind.MANHWA):
        # One endpoint serves manga and manhwa; kind comes from each item's type
        calls.append(PlannedCall(SERIAL_PREFIX, 'manga', None))
    if media_kind_filter in (None, MediaKind.BOOK):
        calls.append(PlannedCall(BOOK_PREFIX, 'books', MediaKind.BOOK))
    return calls


def merge_results(batches: List[List[CanonicalResult]]) -> List[CanonicalResult]:
    """Concatenate batches and drop repeated ids, keeping the first one seen."""
    unique: Dict[str, CanonicalResult] = {}
    for batch in batches:
        for result in batch:
            if result.id not in unique:
                unique[result.id] = result
    return list(unique.values())


class Aggregator:
    """
    Multi-provider search with merge and deduplication.

    Holds no mutable state beyond its provider table; every call is an
    independent request/response pipeline.
    """

    def __init__(self, providers: ProviderTable):
        """
        Args:
            providers: Provider table keyed by id prefix
        """
        self.providers = providers

    async def search(self, query: SearchQuery) -> List[CanonicalResult]:
        """Run a SearchQuery."""
        return await self.search_all(
            query.text,
            query.media_kind_filter,
            include_mature=query.include_mature,
            page=query.page,
        )

    async def search_all(
        self,
        query_text: str,
        media_kind_filter: Optional[MediaKind] = None,
        include_mature: bool = False,
        page: int = 1
    ) -> List[CanonicalResult]:
        """
        Search every provider implied by the filter, concurrently.

        Args:
            query_text: Free-text query (blank = no search)
            media_kind_filter: MediaKind, or None for ALL
            include_mature: Allow adult entries where the provider supports it
            page: 1-based source-local page

        Returns:
            Merged, deduplicated list of CanonicalResult (never raises)
        """
        query = SearchQuery(query_text or '', media_kind_filter, page, include_mature).normalized()
        if not query.is_executable:
            return []
        if query.page != page:
            logger.warning(f"Page {page} is out of range, using page {query.page}")

        calls = []
        for call in plan_calls(media_kind_filter):
            provider = self.providers.get(call.prefix)
            if provider is None:
                logger.warning(f"No provider registered for prefix '{call.prefix}'")
                continue
            calls.append((call, provider))

        if not calls:
            return []

        logger.info(
            f"Searching for '{query.text}' (filter={media_kind_filter.value if media_kind_filter else 'ALL'}, "
            f"page={query.page}) across {len(calls)} provider calls..."
        )
        tasks = [
            provider.search(
                query.text,
                call.sub_kind,
                page=query.page,
                include_mature=include_mature,
                forced_kind=call.forced_kind,
            )
            for call, provider in calls
        ]

        results = await asyncio.gather(*tasks, return_exceptions=True)

        batches = []
        for (call, _provider), result in zip(calls, results):
            if isinstance(result, BaseException):
                logger.error(f"Search failed for {call.prefix}/{call.sub_kind}: {result}")
                continue
            batches.append(list(result or []))

        merged = merge_results(batches)

        if media_kind_filter == MediaKind.MANHWA:
            merged = [r for r in merged if r.media_kind == MediaKind.MANHWA]

        logger.info(f"Found {len(merged)} results for '{query.text}'")
        return merged
