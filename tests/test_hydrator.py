import asyncio

import httpx
import pytest

from conftest import BOOKS_HOST, GEMINI_HOST, JIKAN_HOST, jikan_item
from mediashelf_app.discovery import (
    CanonicalResult,
    GeminiTitleGenerator,
    MediaKind,
    RecommendationHydrator,
)
from mediashelf_app.discovery.hydrator import select_match

GENERATE_PATH = "/v1beta/models/gemini-2.5-flash:generateContent"


def _result(result_id, title):
    return CanonicalResult(result_id, title, MediaKind.MANGA, "Manga", "")


def test_select_match_prefers_exact_case_insensitive_title():
    results = [_result("mal-1", "Title Y: Side Story"), _result("mal-2", "TITLE y"), _result("mal-3", "Title Y")]
    assert select_match("Title Y", results).id == "mal-2"


def test_select_match_falls_back_to_first_result():
    results = [_result("mal-1", "Title Y: Side Story"), _result("mal-2", "Another")]
    assert select_match("Title Y", results).id == "mal-1"
    assert select_match("Title Y", []) is None


class _StubGenerator:
    def __init__(self, titles, configured=True):
        self.titles = titles
        self.is_configured = configured
        self.received = None

    async def generate(self, library_titles):
        self.received = list(library_titles)
        return list(self.titles)


class _RecordingAggregator:
    def __init__(self, answers):
        self.answers = answers
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def search_all(self, query_text, media_kind_filter=None, include_mature=False, page=1):
        self.calls.append((query_text, media_kind_filter, include_mature, page))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(0)
        self.in_flight -= 1
        return self.answers.get(query_text, [])


@pytest.mark.asyncio
async def test_title_without_results_is_dropped():
    aggregator = _RecordingAggregator({
        "Title Y": [_result("mal-1", "Title Y Gaiden"), _result("mal-2", "title y"), _result("gb-3", "Title Y")],
    })
    hydrator = RecommendationHydrator(aggregator, _StubGenerator(["Title X", "Title Y"]))

    results = await hydrator.hydrate(["Berserk"])

    assert [r.id for r in results] == ["mal-2"]


@pytest.mark.asyncio
async def test_hydration_is_sequential_unfiltered_and_ordered():
    aggregator = _RecordingAggregator({
        "B": [_result("mal-2", "B")],
        "A": [_result("mal-1", "A")],
        "C": [_result("mal-3", "Something else")],
    })
    hydrator = RecommendationHydrator(aggregator, _StubGenerator(["B", "A", "C"]))

    results = await hydrator.hydrate(["Berserk"])

    assert [r.id for r in results] == ["mal-2", "mal-1", "mal-3"]
    assert aggregator.calls == [("B", None, False, 1), ("A", None, False, 1), ("C", None, False, 1)]
    assert aggregator.max_in_flight == 1


@pytest.mark.asyncio
async def test_only_first_twenty_titles_are_sent():
    generator = _StubGenerator([])
    hydrator = RecommendationHydrator(_RecordingAggregator({}), generator)

    await hydrator.hydrate([f"T{i}" for i in range(25)])

    assert generator.received == [f"T{i}" for i in range(20)]


@pytest.mark.asyncio
async def test_noop_without_library_or_credential():
    aggregator = _RecordingAggregator({})
    generator = _StubGenerator(["A"])

    assert await RecommendationHydrator(aggregator, generator).hydrate([]) == []
    assert await RecommendationHydrator(aggregator, generator).hydrate(["  "]) == []
    assert generator.received is None

    unconfigured = _StubGenerator(["A"], configured=False)
    assert await RecommendationHydrator(aggregator, unconfigured).hydrate(["Berserk"]) == []
    assert unconfigured.received is None
    assert aggregator.calls == []


@pytest.mark.asyncio
async def test_generator_exception_yields_no_recommendations():
    class _Exploding(_StubGenerator):
        async def generate(self, library_titles):
            raise RuntimeError("quota")

    hydrator = RecommendationHydrator(_RecordingAggregator({}), _Exploding([]))
    assert await hydrator.hydrate(["Berserk"]) == []


@pytest.mark.asyncio
async def test_end_to_end_through_providers(upstream, aggregator):
    upstream.add(GEMINI_HOST, GENERATE_PATH, {"candidates": [{"content": {"parts": [
        {"text": '["Title X", "Title Y"]'},
    ]}}]})

    def jikan_search(request):
        if request.url.params["q"] == "Title Y" and request.url.path == "/v4/manga":
            return httpx.Response(200, json={"data": [
                jikan_item(1, "Title Y Gaiden", "Manga"),
                jikan_item(2, "Title Y", "Manga"),
                jikan_item(3, "Title Y Zero", "Manga"),
            ]})
        return httpx.Response(200, json={"data": []})

    upstream.add(JIKAN_HOST, "/v4/anime", handler=jikan_search)
    upstream.add(JIKAN_HOST, "/v4/manga", handler=jikan_search)
    upstream.add(BOOKS_HOST, "/books/v1/volumes", {"totalItems": 0})

    generator = GeminiTitleGenerator(api_key="secret", transport=upstream.transport)
    hydrator = RecommendationHydrator(aggregator, generator)

    results = await hydrator.hydrate(["Berserk"])

    assert [r.id for r in results] == ["mal-2"]
    assert results[0].title == "Title Y"
    assert len(results) <= 5
    searched = [r.url.params["q"] for r in upstream.requests if r.url.host != GEMINI_HOST]
    assert searched == ["Title X"] * 3 + ["Title Y"] * 3
