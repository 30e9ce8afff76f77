"""
Tests for the search providers, Wikipedia client and page fetcher
"""
import json

import httpx
import pytest

from core import DropReason
from scrapers import BraveProvider, PageFetcher, SerperProvider, WikipediaClient
from utils.exceptions import ProviderUnavailable, SearchProviderError


class TestSerperProvider:
    @pytest.mark.asyncio
    async def test_posts_query_with_locale_and_parses_organic(self, router):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["X-API-KEY"] == "key"
            assert json.loads(request.content) == {"q": "cashback", "num": 4, "gl": "nz", "hl": "en"}
            return httpx.Response(
                200,
                json={
                    "organic": [
                        {"title": " Deal ", "link": "https://deal.example.com", "snippet": "Up to $100"},
                        {"title": "No link"},
                        "junk",
                    ]
                },
            )

        router.add("google.serper.dev", handler)
        async with router.client() as client:
            results = await SerperProvider(client, api_key="key").search("cashback", num=4, gl="nz", hl="en")

        assert len(results) == 1
        assert results[0].title == "Deal"
        assert results[0].snippet == "Up to $100"

    @pytest.mark.asyncio
    async def test_missing_key_is_unavailable(self, router):
        async with router.client() as client:
            with pytest.raises(ProviderUnavailable):
                await SerperProvider(client, api_key="  ").search("x")
        assert router.calls == []

    @pytest.mark.asyncio
    async def test_invalid_json_is_provider_error(self, router):
        router.add("google.serper.dev", lambda request: httpx.Response(200, text="<html>"))
        async with router.client() as client:
            with pytest.raises(SearchProviderError):
                await SerperProvider(client, api_key="key").search("x")


@pytest.mark.asyncio
async def test_brave_parses_web_results(router):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["q"] == "gift with purchase"
        assert request.headers["X-Subscription-Token"] == "token"
        return httpx.Response(
            200,
            json={"web": {"results": [{"title": "GWP", "url": "https://gwp.example.com", "description": "Free tote"}]}},
        )

    router.add("api.search.brave.com", handler)
    async with router.client() as client:
        results = await BraveProvider(client, api_key="token").search("gift with purchase")

    assert [(r.title, r.url, r.snippet) for r in results] == [("GWP", "https://gwp.example.com", "Free tote")]


class TestWikipediaClient:
    @pytest.mark.asyncio
    async def test_summary_resolves_title(self, wiki_router):
        async with wiki_router.client() as client:
            summary = await WikipediaClient(client).summary("westinghouse")

        assert summary["title"] == "Westinghouse"
        assert summary["extract"].startswith("Westinghouse is")
        assert summary["url"] == "https://en.wikipedia.org/wiki/Westinghouse"

    @pytest.mark.asyncio
    async def test_failure_is_none(self, router):
        router.add("en.wikipedia.org", lambda request: httpx.Response(503))
        async with router.client() as client:
            wiki = WikipediaClient(client)
            assert await wiki.opensearch("anything") is None
            assert await wiki.summary("anything") is None
            assert await wiki.summary("   ") is None


class TestPageFetcher:
    @pytest.mark.asyncio
    async def test_timeout_ladder_then_success(self, router):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.extensions["timeout"]["read"])
            if len(seen) == 1:
                raise httpx.ConnectTimeout("slow", request=request)
            return httpx.Response(200, text="<title>Promo</title>")

        router.add("promo.example.com", handler)
        async with router.client() as client:
            outcome = await PageFetcher(client, timeouts=(1.0, 2.0), retry_delay=0).fetch("https://promo.example.com")

        assert outcome.ok
        assert seen == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_not_found_and_empty_body(self, router):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/gone":
                return httpx.Response(404)
            return httpx.Response(200, text="   ")

        router.add("promo.example.com", handler)
        async with router.client() as client:
            fetcher = PageFetcher(client, timeouts=(1.0, 1.0), retry_delay=0)
            gone = await fetcher.fetch("https://promo.example.com/gone")
            empty = await fetcher.fetch("https://promo.example.com/empty")

        assert gone.reason is DropReason.FETCH_FAILED
        assert "HTTP 404" in gone.detail
        assert empty.reason is DropReason.FETCH_FAILED
        assert len(router.calls) == 4

    @pytest.mark.asyncio
    async def test_sends_accept_language(self, router):
        router.add("promo.example.com", lambda request: httpx.Response(200, text=request.headers["accept-language"]))
        async with router.client() as client:
            outcome = await PageFetcher(client, timeouts=(1.0,)).fetch("https://promo.example.com", accept_language="en")
        assert outcome.value == "en"
