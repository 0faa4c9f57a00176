"""
================================================================================
MediaShelf v1.0 - Base Discovery Provider
================================================================================
Abstract base class for the external metadata sources behind discovery.

Providers implement list search and detail lookup for:
  - MyAnimeList via Jikan (REST) - anime, manga, manhwa
  - Google Books (REST)           - books

Every provider maps its raw JSON to CanonicalResult, using its id prefix as
the namespace of the ids it emits.

Failure policy: providers never raise out of search() or fetch_details().
A bad status, a transport error or an unexpected body is logged and turned
into an empty result, so one broken source never blanks an aggregate search.
================================================================================
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Dict, Any
import asyncio
import logging

import httpx

from ..models import CanonicalResult, DetailPatch, MediaKind
from ..pacing import Pacer, no_pacing


logger = logging.getLogger(__name__)

# Results per provider page, identical for every source so pages line up
PAGE_SIZE = 15


class BaseDiscoveryProvider(ABC):
    """
    Abstract base class for discovery providers.

    All providers must implement:
      - search(): One page of list results for a query
      - fetch_details(): Extended fields for one native id

    The base class handles:
      - HTTP client lifecycle (one AsyncClient per event loop)
      - JSON decoding with status checking
      - Pacing hook for rate-limited providers
    """

    # Provider identification
    id: str = "base"  # Namespace prefix of emitted ids
    name: str = "Base Provider"

    # API configuration
    base_url: str = ""

    # Request timeout (seconds)
    timeout: float = 10

    user_agent: str = "MediaShelf/1.0"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        pacer: Optional[Pacer] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize provider.

        Args:
            base_url: Override the provider's API root
            timeout: Request timeout in seconds
            pacer: Awaited before paced requests (defaults to no pacing)
            transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        if base_url:
            self.base_url = base_url.rstrip('/')
        if timeout is not None:
            self.timeout = timeout
        self.pacer: Pacer = pacer or no_pacing
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._client_loop: Optional[asyncio.AbstractEventLoop] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client for the running event loop."""
        loop = asyncio.get_running_loop()
        if self._client is not None and not self._client.is_closed and self._client_loop is loop:
            return self._client

        # Connection pools are bound to the loop that opened them
        if self._client is not None and not self._client.is_closed:
            await self._close_stale_client(self._client, self._client_loop)

        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
            headers={
                'User-Agent': self.user_agent,
                'Accept': 'application/json'
            }
        )
        self._client_loop = loop
        return self._client

    async def _close_stale_client(
        self,
        client: httpx.AsyncClient,
        loop: Optional[asyncio.AbstractEventLoop],
    ):
        """Close a client left behind by another event loop."""
        try:
            if loop is not None and loop.is_running():
                asyncio.run_coroutine_threadsafe(client.aclose(), loop)
            else:
                await client.aclose()
        except Exception as e:
            logger.debug(f"{self.id}: Failed to close previous client: {e}")

    async def close(self):
        """Close HTTP client."""
        if self._client:
            if not self._client.is_closed and self._client_loop is asyncio.get_running_loop():
                await self._client.aclose()
            self._client = None
            self._client_loop = None

    async def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict:
        """
        Issue one GET request and decode the JSON body.

        Args:
            path: Path below base_url ("/anime", "/volumes/abc")
            params: Query parameters

        Returns:
            Decoded JSON object

        Raises:
            httpx.HTTPError: Transport failure or non-success status
            ValueError: Body is not a JSON object
        """
        client = await self._get_client()
        response = await client.get(f"{self.base_url}{path}", params=params)
        response.raise_for_status()

        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError(f"Expected a JSON object, got {type(payload).__name__}")
        return payload

    async def _get_json_paced(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict:
        """Wait for the pacer, then GET."""
        await self.pacer()
        return await self._get_json(path, params)

    # =========================================================================
    # ABSTRACT METHODS (must be implemented by providers)
    # =========================================================================

    @abstractmethod
    async def search(
        self,
        query_text: str,
        sub_kind: str,
        page: int = 1,
        include_mature: bool = False,
        forced_kind: Optional[MediaKind] = None
    ) -> List[CanonicalResult]:
        """
        Search one page of this provider.

        Args:
            query_text: Free-text query
            sub_kind: Provider-specific endpoint selector ("anime", "manga")
            page: 1-based page number
            include_mature: Whether adult entries may be returned
            forced_kind: Override the media kind inferred per item

        Returns:
            List of CanonicalResult in provider order (empty on any failure)
        """
        pass

    @abstractmethod
    async def fetch_details(
        self,
        native_id: str,
        media_kind: MediaKind
    ) -> DetailPatch:
        """
        Fetch extended fields for one item.

        Args:
            native_id: Id in this provider's system (without prefix)
            media_kind: Kind of the item being enriched

        Returns:
            DetailPatch with whatever could be fetched (possibly empty)
        """
        pass

    # =========================================================================
    # UTILITY METHODS
    # =========================================================================

    def make_id(self, native_id: Any) -> str:
        """Namespace a native id with this provider's prefix."""
        return f"{self.id}-{native_id}"

    def __repr__(self):
        return f"<{self.__class__.__name__}(id='{self.id}', base_url='{self.base_url}')>"
