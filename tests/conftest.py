import json
import os
import tempfile

import httpx
import pytest

# Keep test runs from writing logs into the repository
os.environ.setdefault("MEDIASHELF_LOG_DIR", tempfile.mkdtemp(prefix="mediashelf-logs-"))
os.environ.setdefault("DEBUG_LOGGING", "false")

from mediashelf_app.config import Settings  # noqa: E402
from mediashelf_app.discovery import (  # noqa: E402
    Aggregator,
    DiscoveryEngine,
    GoogleBooksProvider,
    JikanProvider,
    build_provider_table,
)

JIKAN_HOST = "api.jikan.moe"
BOOKS_HOST = "www.googleapis.com"
GEMINI_HOST = "generativelanguage.googleapis.com"


def jikan_item(mal_id, title, type_="TV", **extra):
    item = {
        "mal_id": mal_id,
        "title": title,
        "type": type_,
        "synopsis": f"About {title}",
        "genres": [{"name": "Action"}, {"name": "Adventure"}],
        "images": {
            "jpg": {"image_url": f"https://cdn.myanimelist.net/{mal_id}.jpg"},
        },
    }
    item.update(extra)
    return item


def volume(volume_id, title, **info):
    volume_info = {
        "title": title,
        "description": f"About {title}",
        "pageCount": 320,
        "categories": ["Fiction"],
        "imageLinks": {
            "thumbnail": f"http://books.google.com/books/content?id={volume_id}&printsec=frontcover&img=1&zoom=1&edge=curl&source=gbs_api",
        },
    }
    volume_info.update(info)
    return {"id": volume_id, "volumeInfo": volume_info}


class FakeUpstream:
    """httpx.MockTransport handler routing by host and path."""

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, host, path, json_body=None, status=200, handler=None):
        if handler is None:
            def handler(request, _body=json_body, _status=status):
                return httpx.Response(_status, json=_body)
        self.routes[(host, path)] = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.url.host, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"error": "not found"})
        return handler(request)

    @property
    def transport(self):
        return httpx.MockTransport(self)

    def paths(self, host=None):
        return [r.url.path for r in self.requests if host is None or r.url.host == host]

    def params(self, path):
        return [dict(r.url.params) for r in self.requests if r.url.path == path]

    def bodies(self, host):
        return [json.loads(r.content) for r in self.requests if r.url.host == host]


class PaceRecorder:
    """Pacer that records calls instead of sleeping."""

    def __init__(self, upstream=None):
        self.upstream = upstream
        self.calls = 0
        self.requests_seen = []

    async def __call__(self):
        self.calls += 1
        if self.upstream is not None:
            self.requests_seen.append(len(self.upstream.requests))


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def pacer(upstream):
    return PaceRecorder(upstream)


@pytest.fixture
def jikan(upstream, pacer):
    return JikanProvider(pacer=pacer, transport=upstream.transport)


@pytest.fixture
def books(upstream):
    return GoogleBooksProvider(transport=upstream.transport)


@pytest.fixture
def aggregator(jikan, books):
    return Aggregator(build_provider_table(jikan, books))


@pytest.fixture
def settings():
    return Settings(gemini_api_key="test-key")


@pytest.fixture
def engine(settings, upstream, pacer):
    return DiscoveryEngine(settings, transport=upstream.transport, pacer=pacer)
