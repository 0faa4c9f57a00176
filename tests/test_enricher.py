import dataclasses

import pytest

from conftest import BOOKS_HOST, JIKAN_HOST
from mediashelf_app.discovery import CanonicalResult, DetailEnricher, MediaKind, build_provider_table


@pytest.fixture
def enricher(jikan, books):
    return DetailEnricher(build_provider_table(jikan, books))


def _base_fields(record):
    return {f.name: getattr(record, f.name) for f in dataclasses.fields(CanonicalResult)}


NARUTO = CanonicalResult(
    id="mal-20",
    title="Naruto",
    media_kind=MediaKind.ANIME,
    format="TV",
    synopsis="Ninja.",
    total_units=220,
    cover_url="https://cdn/20.jpg",
    genres=("Action",),
)

SOLO = CanonicalResult("mal-121", "Solo Leveling", MediaKind.MANHWA, "Manhwa", "Hunters.")

DUNE = CanonicalResult(
    "gb-abc", "Dune", MediaKind.BOOK, "Book", "Spice.", 412,
    cover_url="https://books.google.com/thumb?id=abc",
)


@pytest.mark.asyncio
async def test_anime_enrichment_routes_to_anime_endpoints(upstream, enricher, pacer):
    upstream.add(JIKAN_HOST, "/v4/anime/20/full", {"data": {
        "relations": [{"relation": "Sequel", "entry": [{"mal_id": 1735, "name": "Naruto: Shippuuden"}]}],
        "trailer": {"embed_url": "https://www.youtube.com/embed/x"},
    }})
    upstream.add(JIKAN_HOST, "/v4/anime/20/characters", {"data": [
        {"role": "Main", "character": {"name": "Uzumaki, Naruto", "images": {}}},
    ]})

    record = await enricher.enrich(NARUTO)

    assert upstream.paths() == ["/v4/anime/20/full", "/v4/anime/20/characters"]
    assert pacer.calls == 2
    assert _base_fields(record) == _base_fields(NARUTO)
    assert record.relations[0].id == "mal-1735"
    assert record.trailer_url == "https://www.youtube.com/embed/x"
    assert record.characters[0].name == "Uzumaki, Naruto"
    assert record.characters[0].image_url is None


@pytest.mark.asyncio
async def test_manhwa_routes_by_prefix_to_manga_endpoints(upstream, enricher):
    upstream.add(JIKAN_HOST, "/v4/manga/121/full", {"data": {"relations": []}})
    upstream.add(JIKAN_HOST, "/v4/manga/121/characters", {"data": []})

    record = await enricher.enrich(SOLO)

    assert upstream.paths() == ["/v4/manga/121/full", "/v4/manga/121/characters"]
    assert record.trailer_url is None


@pytest.mark.asyncio
async def test_enrichment_is_total_when_everything_fails(upstream, enricher):
    upstream.add(JIKAN_HOST, "/v4/anime/20/full", {}, status=500)
    upstream.add(JIKAN_HOST, "/v4/anime/20/characters", {}, status=500)

    record = await enricher.enrich(NARUTO)

    assert _base_fields(record) == _base_fields(NARUTO)
    assert record.relations == ()
    assert record.characters == ()
    assert record.trailer_url is None


@pytest.mark.asyncio
async def test_book_enrichment_refreshes_cover_only(upstream, enricher, pacer):
    upstream.add(BOOKS_HOST, "/books/v1/volumes/abc", {"volumeInfo": {"imageLinks": {
        "large": "http://books.google.com/large?id=abc&edge=curl",
    }}})

    record = await enricher.enrich(DUNE)

    assert upstream.paths() == ["/books/v1/volumes/abc"]
    assert pacer.calls == 0
    assert record.id == DUNE.id
    assert record.title == DUNE.title
    assert record.cover_url == "https://books.google.com/large?id=abc"
    assert record.relations == ()
    assert record.characters == ()


@pytest.mark.asyncio
async def test_book_enrichment_failure_keeps_original_cover(upstream, enricher):
    upstream.add(BOOKS_HOST, "/books/v1/volumes/abc", {}, status=503)

    record = await enricher.enrich(DUNE)

    assert _base_fields(record) == _base_fields(DUNE)


@pytest.mark.asyncio
async def test_unknown_prefix_returns_base_record(upstream, enricher):
    stray = CanonicalResult("anilist-1", "Stray", MediaKind.ANIME, "TV", "")

    record = await enricher.enrich(stray)

    assert upstream.requests == []
    assert _base_fields(record) == _base_fields(stray)
