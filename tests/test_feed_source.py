"""Tests for the NewsAPI client."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from news_feed.aggregator import AggregationEngine
from news_feed.config import UpstreamConfig
from news_feed.core.catalog import ArticleCatalog
from news_feed.core.engagement import EngagementStore
from news_feed.errors import UpstreamError
from news_feed.fetch import feed_source
from news_feed.fetch.feed_source import NewsApiFeedSource, fetch_deadline


ARTICLE = {
    "source": {"id": None, "name": "Example Times"},
    "title": "Headline",
    "description": "Short text",
    "url": "https://example.com/headline",
    "urlToImage": "https://img.example.com/h.png",
    "publishedAt": "2026-02-05T10:00:00Z",
}


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    async def instant(_seconds):
        return None

    monkeypatch.setattr(feed_source.asyncio, "sleep", instant)


def _fetch(handler, cfg=None, api_key="key"):
    async def run():
        source = NewsApiFeedSource(cfg or UpstreamConfig(retries=1), api_key=api_key, transport=httpx.MockTransport(handler))
        try:
            return await source.fetch_headlines("technology", "ai", 25)
        finally:
            await source.aclose()

    return asyncio.run(run())


def test_parses_articles_and_sends_params():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={"status": "ok", "articles": [ARTICLE]})

    records = _fetch(handler)

    assert seen["path"] == "/v2/top-headlines"
    assert seen["params"] == {
        "category": "technology",
        "q": "ai",
        "country": "us",
        "pageSize": "25",
        "apiKey": "key",
    }
    assert records[0].title == "Headline"
    assert records[0].description == "Short text"
    assert records[0].image_url == "https://img.example.com/h.png"
    assert records[0].source_name == "Example Times"


def test_client_error_raises_without_retry():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(401, json={"status": "error", "message": "Your API key is invalid."})

    with pytest.raises(UpstreamError) as excinfo:
        _fetch(handler)

    assert "401" in excinfo.value.message
    assert "invalid" in excinfo.value.message
    assert len(calls) == 1


def test_server_error_is_retried():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(503, text="busy")
        return httpx.Response(200, json={"articles": [ARTICLE]})

    records = _fetch(handler)

    assert len(calls) == 2
    assert len(records) == 1


def test_network_error_becomes_upstream_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UpstreamError) as excinfo:
        _fetch(handler, cfg=UpstreamConfig(retries=2))

    assert "ConnectError" in excinfo.value.message


def test_missing_api_key_raises(monkeypatch):
    monkeypatch.delenv("NEWS_API_KEY", raising=False)

    def handler(request):
        raise AssertionError("no request expected")

    with pytest.raises(UpstreamError):
        _fetch(handler, api_key=None)


def test_non_list_articles_raises():
    def handler(request):
        return httpx.Response(200, json={"status": "ok", "articles": 5})

    with pytest.raises(UpstreamError) as excinfo:
        _fetch(handler)

    assert "articles" in excinfo.value.message


def test_fields_are_coerced_to_text():
    odd = dict(ARTICLE, title=42, publishedAt=1700000000, urlToImage={"href": "x"}, source={"name": 7})

    def handler(request):
        return httpx.Response(200, json={"articles": [odd, "not-an-article"]})

    records = _fetch(handler)

    assert len(records) == 1
    assert records[0].title == "42"
    assert records[0].published_at == "1700000000"
    assert records[0].image_url is None
    assert records[0].source_name == "7"


def test_malformed_payload_degrades_listing():
    def handler(request):
        return httpx.Response(200, json={"articles": 5})

    async def run():
        source = NewsApiFeedSource(UpstreamConfig(retries=0), api_key="key", transport=httpx.MockTransport(handler))
        engine = AggregationEngine(source, ArticleCatalog(), EngagementStore())
        try:
            return await engine.list_articles("news")
        finally:
            await source.aclose()

    page = asyncio.run(run())

    assert page.degraded is True
    assert len(page.items) > 0


def test_fetch_deadline_covers_retries_and_backoff():
    assert fetch_deadline(UpstreamConfig(timeout_seconds=10, retries=0)) == 10
    assert fetch_deadline(UpstreamConfig(timeout_seconds=10, retries=2)) == 30 + 0.5 + 1.0
