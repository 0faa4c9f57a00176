"""
================================================================================
MediaShelf v1.0 - Discovery Engine
================================================================================
Wires providers, aggregator, enricher and hydrator together and owns their
HTTP clients.

Usage:
    engine = DiscoveryEngine(Settings.from_env())

    results = await engine.search_all("Solo Leveling", MediaKind.MANHWA)
    details = await engine.enrich(results[0])
    picks = await engine.hydrate(["Berserk", "Dune"])

    await engine.close()
================================================================================
"""

from typing import List, Optional, Sequence
import logging

import httpx

from ..config import Settings
from .aggregator import Aggregator
from .enricher import DetailEnricher
from .generator import GeminiTitleGenerator
from .hydrator import RecommendationHydrator
from .models import CanonicalResult, DetailRecord, MediaKind
from .pacing import FixedDelayPacer, Pacer
from .providers import GoogleBooksProvider, JikanProvider, build_provider_table
from .session import SearchSession

logger = logging.getLogger(__name__)


class DiscoveryEngine:
    """Entry point the presentation layer talks to."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        pacer: Optional[Pacer] = None,
    ):
        """
        Args:
            settings: Endpoints and credentials (defaults to the environment)
            transport: httpx transport shared by every outbound client
            pacer: Jikan detail pacing (defaults to a fixed delay from settings)
        """
        self.settings = settings or Settings.from_env()
        s = self.settings

        self.jikan = JikanProvider(
            base_url=s.jikan_base_url,
            timeout=s.provider_timeout,
            pacer=pacer or FixedDelayPacer(s.jikan_pacing_seconds),
            transport=transport,
        )
        self.books = GoogleBooksProvider(
            api_key=s.google_books_api_key,
            base_url=s.google_books_base_url,
            timeout=s.provider_timeout,
            transport=transport,
        )
        self.providers = build_provider_table(self.jikan, self.books)

        self.aggregator = Aggregator(self.providers)
        self.enricher = DetailEnricher(self.providers)
        self.generator = GeminiTitleGenerator(
            api_key=s.gemini_api_key,
            model=s.gemini_model,
            base_url=s.gemini_base_url,
            transport=transport,
        )
        self.hydrator = RecommendationHydrator(self.aggregator, self.generator)

        logger.info(
            f"Discovery engine ready: providers={', '.join(self.providers)}, "
            f"recommendations={'on' if self.generator.is_configured else 'off'}"
        )

    async def search_all(
        self,
        query_text: str,
        media_kind_filter: Optional[MediaKind] = None,
        include_mature: bool = False,
        page: int = 1
    ) -> List[CanonicalResult]:
        return await self.aggregator.search_all(query_text, media_kind_filter, include_mature, page)

    async def enrich(self, result: CanonicalResult) -> DetailRecord:
        return await self.enricher.enrich(result)

    async def hydrate(self, library_titles: Sequence[str]) -> List[CanonicalResult]:
        return await self.hydrator.hydrate(library_titles)

    def new_session(self) -> SearchSession:
        return SearchSession(self.aggregator)

    def describe_providers(self) -> List[dict]:
        return [
            {'id': p.id, 'name': p.name, 'base_url': p.base_url}
            for p in self.providers.values()
        ]

    async def close(self):
        """Close provider HTTP clients."""
        logger.info("Closing discovery providers...")
        for provider in self.providers.values():
            await provider.close()


# =============================================================================
# GLOBAL SINGLETON
# =============================================================================

_engine: Optional[DiscoveryEngine] = None


def get_discovery_engine() -> DiscoveryEngine:
    """Get or create the process-wide DiscoveryEngine."""
    global _engine
    if _engine is None:
        _engine = DiscoveryEngine()
    return _engine
