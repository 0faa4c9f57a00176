"""
================================================================================
MediaShelf v1.0 - Recommendation Title Generator
================================================================================
Client for the external text-generation service that proposes titles.

The generator only ever answers with bare titles. Turning them into real
items is the hydrator's job (see hydrator.py).

Gemini is asked for structured output: responseMimeType application/json with
an array-of-strings schema. Anything that is not a JSON array of strings is
treated as "no recommendations", never as an error.
================================================================================
"""

from typing import List, Optional, Sequence
import json
import logging

import httpx

logger = logging.getLogger(__name__)

# Library titles sent as context
MAX_CONTEXT_TITLES = 20

# Titles requested from the generator
RECOMMENDATION_COUNT = 5

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

PROMPT_TEMPLATE = """
You are an expert Otaku and Librarian with deep knowledge of Reddit (r/anime, r/manga, r/books), MyAnimeList stacks, and social media trends.

The user has the following items in their library: {titles}.

Task: Recommend {count} distinct, high-quality Anime, Manga, Manhwa, or Books.

Criteria:
1. SOCIAL PROOF: Prioritize titles that are often recommended in "If you like X, you'll love Y" threads on Reddit.
2. CROSS-MEDIA SYNERGY: If they like a lot of Manga, maybe suggest a related Light Novel or a similar Anime adaptation that expands the story.
3. HIDDEN GEMS vs POPULAR HITS: Mix 1-2 widely acclaimed "must-reads" compatible with their taste, and 3-4 "hidden gems" or niche masterpieces that share the same specific vibe/tropes as their current list.
4. Avoid items they already have.

Return ONLY a JSON array of exactly {count} strings (titles).
"""


def build_prompt(library_titles: Sequence[str]) -> str:
    """Embed at most MAX_CONTEXT_TITLES library titles in the prompt."""
    context = [t for t in library_titles if t][:MAX_CONTEXT_TITLES]
    return PROMPT_TEMPLATE.format(titles=", ".join(context), count=RECOMMENDATION_COUNT)


def parse_titles(text: Optional[str]) -> List[str]:
    """
    Validate the generator's answer.

    Args:
        text: Raw model output, expected to be a JSON array of strings

    Returns:
        Up to RECOMMENDATION_COUNT distinct titles, or [] when the answer has
        any other shape
    """
    if not text:
        return []
    try:
        payload = json.loads(text)
    except ValueError:
        logger.warning("Generator returned invalid JSON")
        return []

    if not isinstance(payload, list) or not all(isinstance(t, str) for t in payload):
        logger.warning(f"Generator returned {type(payload).__name__}, expected an array of strings")
        return []

    titles = []
    seen = set()
    for title in payload:
        cleaned = title.strip()
        if not cleaned or cleaned.lower() in seen:
            continue
        seen.add(cleaned.lower())
        titles.append(cleaned)
    return titles[:RECOMMENDATION_COUNT]


class GeminiTitleGenerator:
    """Ask Gemini for titles similar to a library."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def generate(self, library_titles: Sequence[str]) -> List[str]:
        """
        Request recommendation titles.

        Args:
            library_titles: Titles already in the user's library

        Returns:
            List of candidate titles (empty on any failure)
        """
        if not self.is_configured or not library_titles:
            return []

        body = {
            "contents": [{"parts": [{"text": build_prompt(library_titles)}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": {
                    "type": "ARRAY",
                    "items": {"type": "STRING"},
                },
            },
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self.base_url}/models/{self.model}:generateContent",
                    headers={'x-goog-api-key': self.api_key},
                    json=body,
                )
                response.raise_for_status()
                payload = response.json()

            candidates = payload.get('candidates') or []
            parts = ((candidates[0].get('content') or {}).get('parts') or []) if candidates else []
            text = "".join(part.get('text', '') for part in parts)

        except Exception as e:
            logger.error(f"Recommendation request failed: {e}")
            return []

        titles = parse_titles(text)
        logger.info(f"Generator proposed {len(titles)} titles")
        return titles

    def __repr__(self):
        return f"<GeminiTitleGenerator(model='{self.model}', configured={self.is_configured})>"
