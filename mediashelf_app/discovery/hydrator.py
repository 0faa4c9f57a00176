"""
================================================================================
MediaShelf v1.0 - Recommendation Hydrator
================================================================================
Turns the bare titles proposed by the generator into displayable items.

Flow:
  1. Send the first 20 library titles to the generator
  2. For each proposed title, one after another, run an aggregate search
     (no kind filter, no mature content, first page)
  3. Keep the case-insensitive exact title match, else the first result;
     titles with no results are dropped

Searches run sequentially to bound the load on rate-limited providers.
The output follows the generator's order and may hold fewer than 5 items.
================================================================================
"""

from typing import List, Optional, Sequence
import logging

from .aggregator import Aggregator
from .generator import GeminiTitleGenerator, MAX_CONTEXT_TITLES
from .models import CanonicalResult

logger = logging.getLogger(__name__)


def select_match(candidate: str, results: Sequence[CanonicalResult]) -> Optional[CanonicalResult]:
    """
    Pick the result that best represents a candidate title.

    Args:
        candidate: Title proposed by the generator
        results: Aggregate search results for that title

    Returns:
        Exact case-insensitive title match, else the first result, else None
    """
    wanted = candidate.strip().lower()
    for result in results:
        if result.title.strip().lower() == wanted:
            return result
    return results[0] if results else None


class RecommendationHydrator:
    """Generator titles in, canonical results out."""

    def __init__(self, aggregator: Aggregator, generator: GeminiTitleGenerator):
        self.aggregator = aggregator
        self.generator = generator

    async def hydrate(self, library_titles: Sequence[str]) -> List[CanonicalResult]:
        """
        Build a discovery list from the user's library.

        Args:
            library_titles: Titles in the user's library

        Returns:
            Hydrated recommendations in generator order (never raises)
        """
        titles = [t for t in library_titles or [] if t and t.strip()]
        if not titles or not self.generator.is_configured:
            return []

        try:
            candidates = await self.generator.generate(titles[:MAX_CONTEXT_TITLES])
        except Exception as e:
            logger.error(f"Recommendation generator failed: {e}")
            return []

        hydrated = []
        for candidate in candidates:
            results = await self.aggregator.search_all(candidate)
            match = select_match(candidate, results)
            if match is None:
                logger.info(f"No results for recommendation '{candidate}', dropping it")
                continue
            hydrated.append(match)

        logger.info(f"Hydrated {len(hydrated)}/{len(candidates)} recommendations")
        return hydrated
