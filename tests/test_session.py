import asyncio

import pytest

from mediashelf_app.discovery import CanonicalResult, Debouncer, MediaKind, SearchQuery, SearchSession


def _result(result_id):
    return CanonicalResult(result_id, result_id, MediaKind.ANIME, "TV", "")


class _GatedAggregator:
    """Aggregator whose answers are released by the test."""

    def __init__(self):
        self.gates = {}
        self.queries = []

    async def search(self, query):
        self.queries.append(query)
        gate = self.gates.setdefault((query.text, query.page), asyncio.Event())
        await gate.wait()
        return [_result(f"mal-{query.text}-{query.page}")]

    def release(self, text, page=1):
        self.gates.setdefault((text, page), asyncio.Event()).set()


@pytest.mark.asyncio
async def test_stale_response_never_overwrites_newer_results():
    aggregator = _GatedAggregator()
    session = SearchSession(aggregator)

    old = asyncio.ensure_future(session.search(SearchQuery("nar")))
    new = asyncio.ensure_future(session.search(SearchQuery("naruto")))
    await asyncio.sleep(0)

    aggregator.release("naruto")
    assert [r.id for r in await new] == ["mal-naruto-1"]

    aggregator.release("nar")
    assert await old is None
    assert [r.id for r in session.results] == ["mal-naruto-1"]
    assert session.query.text == "naruto"
    assert session.latest_sequence == 2


@pytest.mark.asyncio
async def test_load_more_appends_next_page_without_cross_page_dedup():
    class _Repeating:
        async def search(self, query):
            return [_result("mal-1"), _result(f"mal-page{query.page}")]

    session = SearchSession(_Repeating())

    assert await session.load_more() is None
    await session.search(SearchQuery("  naruto ", media_kind_filter=MediaKind.ANIME))
    results = await session.load_more()

    assert [r.id for r in results] == ["mal-1", "mal-page1", "mal-1", "mal-page2"]
    assert session.query.page == 2
    assert session.query.text == "naruto"


@pytest.mark.asyncio
async def test_new_search_discards_pending_load_more():
    aggregator = _GatedAggregator()
    session = SearchSession(aggregator)

    aggregator.release("naruto", 1)
    await session.search(SearchQuery("naruto"))

    more = asyncio.ensure_future(session.load_more())
    fresh = asyncio.ensure_future(session.search(SearchQuery("bleach")))
    await asyncio.sleep(0)

    aggregator.release("bleach", 1)
    await fresh
    aggregator.release("naruto", 2)

    assert await more is None
    assert [r.id for r in session.results] == ["mal-bleach-1"]


@pytest.mark.asyncio
async def test_debouncer_runs_only_last_trigger():
    debouncer = Debouncer(window=0.01)
    ran = []

    def action(name):
        async def _run():
            ran.append(name)
            return name
        return _run

    first = debouncer.trigger(action("n"))
    debouncer.trigger(action("na"))
    last = debouncer.trigger(action("nar"))

    assert debouncer.pending
    assert await last == "nar"
    assert ran == ["nar"]
    assert first.cancelled()
    assert not debouncer.pending


@pytest.mark.asyncio
async def test_load_more_waits_for_newer_search_in_flight():
    aggregator = _GatedAggregator()
    session = SearchSession(aggregator)

    aggregator.release("naruto", 1)
    await session.search(SearchQuery("naruto"))

    fresh = asyncio.ensure_future(session.search(SearchQuery("bleach")))
    await asyncio.sleep(0)
    assert await session.load_more() is None

    aggregator.release("bleach", 1)
    assert [r.id for r in await fresh] == ["mal-bleach-1"]
    assert session.query.text == "bleach"
    assert session.query.page == 1
    assert [(q.text, q.page) for q in aggregator.queries] == [("naruto", 1), ("bleach", 1)]

    aggregator.release("bleach", 2)
    more = await session.load_more()
    assert [r.id for r in more] == ["mal-bleach-1", "mal-bleach-2"]
