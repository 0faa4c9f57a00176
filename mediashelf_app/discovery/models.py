"""
================================================================================
MediaShelf v1.0 - Discovery Models
================================================================================
Canonical, provider-agnostic records produced by the discovery engine.

Every provider adapter maps its own JSON into these shapes:
  - Jikan (MyAnimeList)  -> ids prefixed "mal-"
  - Google Books         -> ids prefixed "gb-"

The id prefix is load-bearing: detail enrichment uses it to route a result
back to the provider that produced it.
================================================================================
"""

from dataclasses import dataclass, field, replace
from typing import Optional, Tuple
from enum import Enum


# =============================================================================
# ENUMS
# =============================================================================

class MediaKind(str, Enum):
    """Top-level classification used for filtering and routing."""
    ANIME = "ANIME"
    MANGA = "MANGA"
    MANHWA = "MANHWA"
    BOOK = "BOOK"


# Filter value meaning "every kind"; represented as None in the engine
ALL_KINDS = "ALL"


def parse_kind_filter(value: Optional[str]) -> Optional[MediaKind]:
    """
    Parse a user-facing kind filter.

    Args:
        value: "ALL", a MediaKind name (any case) or None

    Returns:
        MediaKind, or None for "every kind"

    Raises:
        ValueError: Unknown filter value
    """
    if value is None:
        return None
    cleaned = value.strip().upper()
    if not cleaned or cleaned == ALL_KINDS:
        return None
    try:
        return MediaKind(cleaned)
    except ValueError:
        raise ValueError(f"Unknown media kind filter: {value!r}")


# =============================================================================
# SEARCH RESULTS
# =============================================================================

@dataclass(frozen=True)
class CanonicalResult:
    """
    Normalized search result shared by all providers.

    Instances are immutable value objects built fresh on every search call.
    Two results with the same id are the same item, whatever else differs.
    """

    id: str  # "<provider-prefix>-<native-id>", e.g. "mal-20", "gb-zyTCAlFPjgYC"
    title: str
    media_kind: MediaKind
    format: str  # Free-text subtype: "TV", "Manhwa", "Book"
    synopsis: str
    total_units: Optional[int] = None  # Episodes, chapters or pages; None = unknown/ongoing
    cover_url: Optional[str] = None
    genres: Tuple[str, ...] = ()

    @property
    def provider_prefix(self) -> str:
        return self.id.split('-', 1)[0]

    @property
    def native_id(self) -> str:
        parts = self.id.split('-', 1)
        return parts[1] if len(parts) == 2 else ""

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'id': self.id,
            'title': self.title,
            'media_kind': self.media_kind.value,
            'format': self.format,
            'synopsis': self.synopsis,
            'total_units': self.total_units,
            'cover_url': self.cover_url,
            'genres': list(self.genres),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CanonicalResult":
        """
        Rebuild a result from its to_dict() form.

        Raises:
            ValueError: Missing id/title, unknown media kind or malformed genres
        """
        result_id = str(data.get('id') or '').strip()
        title = str(data.get('title') or '').strip()
        if '-' not in result_id or not title:
            raise ValueError("A result needs a namespaced id and a title")

        genres = data.get('genres') or []
        if not isinstance(genres, list) or not all(isinstance(g, str) for g in genres):
            raise ValueError("genres must be a list of strings")

        total_units = data.get('total_units')
        return cls(
            id=result_id,
            title=title,
            media_kind=MediaKind(str(data.get('media_kind', '')).upper()),
            format=data.get('format') or 'Unknown',
            synopsis=data.get('synopsis') or '',
            total_units=int(total_units) if total_units else None,
            cover_url=data.get('cover_url') or None,
            genres=tuple(genres),
        )


# =============================================================================
# DETAIL RECORDS
# =============================================================================

@dataclass(frozen=True)
class Relation:
    """Related entry (sequel, adaptation, side story...)."""
    title: str
    relation_kind: str  # "Sequel", "Adaptation", "Side story"
    id: Optional[str] = None  # Canonical id when the provider exposes one


@dataclass(frozen=True)
class Character:
    """Cast member, in provider billing order."""
    name: str
    role: str  # "Main", "Supporting"
    image_url: Optional[str] = None


# Cast rosters are truncated to this many entries
MAX_CHARACTERS = 10


@dataclass(frozen=True)
class DetailPatch:
    """
    Partial detail record returned by an adapter's fetch_details().

    Empty fields mean "nothing learned", never "clear this field".
    """
    cover_url: Optional[str] = None
    relations: Tuple[Relation, ...] = ()
    trailer_url: Optional[str] = None
    characters: Tuple[Character, ...] = ()


@dataclass(frozen=True)
class DetailRecord(CanonicalResult):
    """A CanonicalResult plus the extended fields only detail endpoints return."""

    relations: Tuple[Relation, ...] = ()
    trailer_url: Optional[str] = None
    characters: Tuple[Character, ...] = field(default=())

    @classmethod
    def from_result(cls, result: CanonicalResult) -> "DetailRecord":
        return cls(
            id=result.id,
            title=result.title,
            media_kind=result.media_kind,
            format=result.format,
            synopsis=result.synopsis,
            total_units=result.total_units,
            cover_url=result.cover_url,
            genres=result.genres,
        )

    def apply(self, patch: DetailPatch) -> "DetailRecord":
        """Return a copy refreshed with the non-empty fields of a patch."""
        changes = {}
        if patch.cover_url:
            changes['cover_url'] = patch.cover_url
        if patch.relations:
            changes['relations'] = tuple(patch.relations)
        if patch.trailer_url:
            changes['trailer_url'] = patch.trailer_url
        if patch.characters:
            changes['characters'] = tuple(patch.characters[:MAX_CHARACTERS])
        return replace(self, **changes) if changes else self

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            'relations': [
                {'title': r.title, 'relation_kind': r.relation_kind, 'id': r.id}
                for r in self.relations
            ],
            'trailer_url': self.trailer_url,
            'characters': [
                {'name': c.name, 'role': c.role, 'image_url': c.image_url}
                for c in self.characters
            ],
        })
        return data


# =============================================================================
# QUERIES
# =============================================================================

@dataclass(frozen=True)
class SearchQuery:
    """Transient description of one aggregate search."""
    text: str
    media_kind_filter: Optional[MediaKind] = None  # None = ALL
    page: int = 1
    include_mature: bool = False

    def normalized(self) -> "SearchQuery":
        """Trimmed text, page clamped to >= 1."""
        return replace(self, text=(self.text or '').strip(), page=max(1, int(self.page)))

    @property
    def is_executable(self) -> bool:
        return bool((self.text or '').strip())

    def next_page(self) -> "SearchQuery":
        return replace(self, page=self.page + 1)
