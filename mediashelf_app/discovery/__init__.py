"""
Multi-source discovery and hydration engine.

Search anime, manga/manhwa and books across providers, enrich a picked
result, and hydrate generator recommendations into real items.
"""

from .models import (
    CanonicalResult,
    Character,
    DetailPatch,
    DetailRecord,
    MediaKind,
    Relation,
    SearchQuery,
    parse_kind_filter,
)
from .pacing import FixedDelayPacer, no_pacing
from .providers import GoogleBooksProvider, JikanProvider, build_provider_table
from .aggregator import Aggregator
from .enricher import DetailEnricher
from .generator import GeminiTitleGenerator
from .hydrator import RecommendationHydrator
from .session import Debouncer, SearchSession
from .engine import DiscoveryEngine, get_discovery_engine

__all__ = [
    'Aggregator',
    'CanonicalResult',
    'Character',
    'Debouncer',
    'DetailEnricher',
    'DetailPatch',
    'DetailRecord',
    'DiscoveryEngine',
    'FixedDelayPacer',
    'GeminiTitleGenerator',
    'GoogleBooksProvider',
    'JikanProvider',
    'MediaKind',
    'RecommendationHydrator',
    'Relation',
    'SearchQuery',
    'SearchSession',
    'build_provider_table',
    'get_discovery_engine',
    'no_pacing',
    'parse_kind_filter',
]
