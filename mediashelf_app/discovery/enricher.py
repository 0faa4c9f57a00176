"""
================================================================================
MediaShelf v1.0 - Detail Enricher
================================================================================
Turns a CanonicalResult picked from a result list into a DetailRecord with the
fields list endpoints do not return: relations, trailer and cast.

Routing uses the id prefix, not the media kind: a MANGA item can only tell
its origin through its namespace.

Enrichment is total. Whatever the providers do, the returned record carries at
least the input's fields; failed sub-requests only leave optional fields empty.
================================================================================
"""

import logging

from .models import CanonicalResult, DetailRecord
from .providers import ProviderTable

logger = logging.getLogger(__name__)


class DetailEnricher:
    """Route results back to their origin provider for extended fields."""

    def __init__(self, providers: ProviderTable):
        self.providers = providers

    async def enrich(self, result: CanonicalResult) -> DetailRecord:
        """
        Fetch extended fields for one result.

        Args:
            result: Result produced by any provider

        Returns:
            DetailRecord (never raises)
        """
        record = DetailRecord.from_result(result)

        provider = self.providers.get(result.provider_prefix)
        if provider is None or not result.native_id:
            logger.warning(f"No provider can enrich '{result.id}'")
            return record

        try:
            patch = await provider.fetch_details(result.native_id, result.media_kind)
        except Exception as e:
            logger.error(f"Enrichment failed for '{result.id}': {e}")
            return record

        enriched = record.apply(patch)
        logger.info(
            f"Enriched '{result.title}' ({result.id}): {len(enriched.relations)} relations, "
            f"{len(enriched.characters)} characters, trailer={'yes' if enriched.trailer_url else 'no'}"
        )
        return enriched
