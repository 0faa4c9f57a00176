"""
================================================================================
MediaShelf v1.0 - Jikan Provider (MyAnimeList)
================================================================================
REST API client for Jikan v4 (unofficial MyAnimeList API).

One provider serves three media kinds:
  - /anime  -> ANIME
  - /manga  -> MANGA or MANHWA, decided per item from its MAL type

Jikan Features:
  - Separate /full and /characters endpoints for detail data
  - sfw=true|false toggle for adult entries
  - 60 requests/min, 3 requests/sec rate limit
  - No authentication required!

API Docs: https://docs.api.jikan.moe/

IMPORTANT: Jikan's per-second ceiling is shared by every endpoint. Detail
enrichment makes two requests back to back, so both are paced.
================================================================================
"""

from typing import List, Optional, Dict
import logging

from .base import BaseDiscoveryProvider, PAGE_SIZE
from ..models import (
    CanonicalResult, Character, DetailPatch, MediaKind, Relation, MAX_CHARACTERS
)

logger = logging.getLogger(__name__)

NO_SYNOPSIS = "No synopsis available."

# MAL print-serial types, lowercased; everything else is treated as anime
KIND_TABLE = {
    'manhwa': MediaKind.MANHWA,
    'manga': MediaKind.MANGA,
    'novel': MediaKind.MANGA,
    'light novel': MediaKind.MANGA,
    'oneshot': MediaKind.MANGA,
}


def classify_type(native_type: Optional[str]) -> MediaKind:
    """
    Map a MAL "type" string to a MediaKind.

    Args:
        native_type: "TV", "Manga", "Manhwa", "Light Novel", "One-shot"...

    Returns:
        MediaKind (ANIME when the type is unknown or missing)
    """
    if not native_type:
        return MediaKind.ANIME
    key = native_type.strip().lower()
    # MAL spells it "One-shot"
    if key == 'one-shot':
        key = 'oneshot'
    return KIND_TABLE.get(key, MediaKind.ANIME)


def pick_cover(images: Optional[Dict]) -> Optional[str]:
    """WebP large > JPG large > WebP default > JPG default."""
    images = images or {}
    webp = images.get('webp') or {}
    jpg = images.get('jpg') or {}
    return (
        webp.get('large_image_url')
        or jpg.get('large_image_url')
        or webp.get('image_url')
        or jpg.get('image_url')
        or None
    )


class JikanProvider(BaseDiscoveryProvider):
    """
    Jikan v4 API provider for MyAnimeList data.

    Search hits /anime or /manga depending on sub_kind; detail enrichment
    walks /{kind}/{id}/full then /{kind}/{id}/characters.
    """

    id = "mal"  # MyAnimeList
    name = "MyAnimeList (Jikan)"
    base_url = "https://api.jikan.moe/v4"

    SUB_KINDS = ('anime', 'manga')

    async def search(
        self,
        query_text: str,
        sub_kind: str,
        page: int = 1,
        include_mature: bool = False,
        forced_kind: Optional[MediaKind] = None
    ) -> List[CanonicalResult]:
        """
        Search MyAnimeList via Jikan.

        Args:
            query_text: Title to search for
            sub_kind: "anime" or "manga"
            page: 1-based page number
            include_mature: sfw=false when True, sfw=true otherwise
            forced_kind: Kind to stamp on every result instead of the MAL type

        Returns:
            List of CanonicalResult objects
        """
        if sub_kind not in self.SUB_KINDS:
            logger.error(f"{self.id}: Unsupported sub kind '{sub_kind}'")
            return []

        try:
            params = {
                "q": query_text,
                "limit": PAGE_SIZE,
                "page": page,
                "sfw": "false" if include_mature else "true",
            }

            response = await self._get_json(f"/{sub_kind}", params=params)

            items = response.get('data')
            if not isinstance(items, list):
                logger.warning(f"{self.id}: No data in {sub_kind} response")
                return []

            results = []
            for item in items:
                if not isinstance(item, dict) or item.get('mal_id') is None:
                    logger.warning(f"{self.id}: Skipping {sub_kind} item without mal_id")
                    continue
                results.append(self._parse_item(item, forced_kind))
            return results

        except Exception as e:
            logger.error(f"{self.id}: {sub_kind} search failed for '{query_text}': {e}")
            return []

    async def fetch_details(
        self,
        native_id: str,
        media_kind: MediaKind
    ) -> DetailPatch:
        """
        Fetch relations, trailer and cast for one MAL entry.

        The two requests run one after the other, each preceded by the pacer.
        A failure in one leaves the other's fields intact.

        Args:
            native_id: MAL id (numeric string)
            media_kind: ANIME selects /anime, anything else /manga

        Returns:
            DetailPatch (possibly empty)
        """
        kind = 'anime' if media_kind == MediaKind.ANIME else 'manga'

        relations: tuple = ()
        trailer_url = None
        try:
            full = await self._get_json_paced(f"/{kind}/{native_id}/full")
            data = full.get('data') or {}
            relations = self._parse_relations(data.get('relations'))
            if kind == 'anime':
                trailer_url = (data.get('trailer') or {}).get('embed_url') or None
        except Exception as e:
            logger.error(f"{self.id}: Full record fetch failed for {kind} {native_id}: {e}")

        characters: tuple = ()
        try:
            roster = await self._get_json_paced(f"/{kind}/{native_id}/characters")
            characters = self._parse_characters(roster.get('data'))
        except Exception as e:
            logger.error(f"{self.id}: Character fetch failed for {kind} {native_id}: {e}")

        return DetailPatch(
            relations=relations,
            trailer_url=trailer_url,
            characters=characters,
        )

    # =========================================================================
    # PARSING
    # =========================================================================

    def _parse_item(self, item: dict, forced_kind: Optional[MediaKind] = None) -> CanonicalResult:
        """
        Parse a Jikan anime/manga object to CanonicalResult.

        Args:
            item: Jikan object from a list response
            forced_kind: Overrides the kind inferred from item['type']

        Returns:
            CanonicalResult object
        """
        native_type = item.get('type')

        genres = tuple(
            genre['name']
            for genre in item.get('genres') or []
            if genre.get('name')
        )

        return CanonicalResult(
            id=self.make_id(item['mal_id']),
            title=(
                item.get('title_english')
                or item.get('title')
                or item.get('title_japanese')
                or "Unknown"
            ),
            media_kind=forced_kind or classify_type(native_type),
            format=native_type or "Unknown",
            synopsis=item.get('synopsis') or NO_SYNOPSIS,
            total_units=item.get('episodes') or item.get('chapters') or None,
            cover_url=pick_cover(item.get('images')),
            genres=genres,
        )

    def _parse_relations(self, raw: Optional[list]) -> tuple:
        relations = []
        for relation in raw or []:
            entries = relation.get('entry') or []
            if not entries or not entries[0].get('name'):
                continue
            first = entries[0]
            relations.append(Relation(
                title=first['name'],
                relation_kind=relation.get('relation') or "Related",
                id=self.make_id(first['mal_id']) if first.get('mal_id') else None,
            ))
        return tuple(relations)

    def _parse_characters(self, raw: Optional[list]) -> tuple:
        characters = []
        for entry in raw or []:
            if len(characters) == MAX_CHARACTERS:
                break
            character = entry.get('character') or {}
            if not character.get('name'):
                continue
            images = character.get('images') or {}
            characters.append(Character(
                name=character['name'],
                role=entry.get('role') or "Unknown",
                image_url=(
                    (images.get('webp') or {}).get('image_url')
                    or (images.get('jpg') or {}).get('image_url')
                ),
            ))
        return tuple(characters)
