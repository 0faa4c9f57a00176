"""
================================================================================
MediaShelf v1.0 - Google Books Provider
================================================================================
REST API client for the Google Books volumes API.

Every result is a BOOK. Google Books has no adult-content toggle and no
sub-kinds, so those search arguments are ignored.

Image links come back as http:// URLs carrying an edge=curl parameter that
draws a curled-page effect; both are normalized away.

API Docs: https://developers.google.com/books/docs/v1/using
================================================================================
"""

from typing import List, Optional, Dict
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit
import logging

from .base import BaseDiscoveryProvider, PAGE_SIZE
from ..models import CanonicalResult, DetailPatch, MediaKind

logger = logging.getLogger(__name__)

NO_DESCRIPTION = "No description available."

# Cover fallbacks, best first
SEARCH_COVER_KEYS = ('thumbnail', 'smallThumbnail')
DETAIL_COVER_KEYS = ('large', 'medium', 'thumbnail')


def secure_image_url(url: Optional[str]) -> Optional[str]:
    """Force https and drop the edge=curl page effect."""
    if not url:
        return None
    parts = urlsplit(url)
    scheme = 'https' if parts.scheme in ('http', '') else parts.scheme
    query = urlencode([
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if not (key == 'edge' and value == 'curl')
    ])
    return urlunsplit((scheme, parts.netloc, parts.path, query, parts.fragment))


def pick_cover(image_links: Optional[Dict], keys=SEARCH_COVER_KEYS) -> Optional[str]:
    image_links = image_links or {}
    for key in keys:
        if image_links.get(key):
            return secure_image_url(image_links[key])
    return None


class GoogleBooksProvider(BaseDiscoveryProvider):
    """Google Books API provider for volume data."""

    id = "gb"
    name = "Google Books"
    base_url = "https://www.googleapis.com/books/v1"

    def __init__(self, api_key: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key

    def _params(self, **params) -> dict:
        if self.api_key:
            params['key'] = self.api_key
        return params

    async def search(
        self,
        query_text: str,
        sub_kind: str = "books",
        page: int = 1,
        include_mature: bool = False,
        forced_kind: Optional[MediaKind] = None
    ) -> List[CanonicalResult]:
        """
        Search Google Books for volumes.

        Args:
            query_text: Free-text query
            sub_kind: Unused
            page: 1-based page number, mapped to startIndex
            include_mature: Unused
            forced_kind: Unused, books are always BOOK

        Returns:
            List of CanonicalResult objects
        """
        try:
            params = self._params(
                q=query_text,
                startIndex=(page - 1) * PAGE_SIZE,
                maxResults=PAGE_SIZE,
                printType="books",
            )
            response = await self._get_json("/volumes", params=params)

            # Google Books omits "items" entirely when nothing matched
            items = response.get('items') or []
            if not isinstance(items, list):
                logger.warning(f"{self.id}: Unexpected items payload")
                return []

            results = []
            for item in items:
                if not isinstance(item, dict) or not item.get('id'):
                    logger.warning(f"{self.id}: Skipping volume without id")
                    continue
                results.append(self._parse_volume(item))
            return results

        except Exception as e:
            logger.error(f"{self.id}: Search failed for '{query_text}': {e}")
            return []

    async def fetch_details(
        self,
        native_id: str,
        media_kind: MediaKind = MediaKind.BOOK
    ) -> DetailPatch:
        """
        Fetch one volume for a higher-resolution cover.

        Books carry no relations, trailer or cast.
        """
        try:
            response = await self._get_json(f"/volumes/{native_id}", params=self._params())
            info = response.get('volumeInfo') or {}
            return DetailPatch(cover_url=pick_cover(info.get('imageLinks'), DETAIL_COVER_KEYS))
        except Exception as e:
            logger.error(f"{self.id}: Volume fetch failed for '{native_id}': {e}")
            return DetailPatch()

    def _parse_volume(self, item: dict) -> CanonicalResult:
        info = item.get('volumeInfo') or {}
        return CanonicalResult(
            id=self.make_id(item['id']),
            title=info.get('title') or "Unknown",
            media_kind=MediaKind.BOOK,
            format="Book",
            synopsis=info.get('description') or NO_DESCRIPTION,
            total_units=info.get('pageCount') or None,
            cover_url=pick_cover(info.get('imageLinks')),
            genres=tuple(info.get('categories') or ()),
        )
