"""
Tests for result filtering, dedup, the provider chain and the fetch pool
"""
import httpx
import pytest

from core import DropReason, SearchResult
from pipeline.collector import (
    SearchChain,
    accept_language_for,
    dedup_results,
    fetch_pages,
    filter_results,
    has_ordering_intent,
    market_to_locale,
)
from scrapers import BraveProvider, PageFetcher, SerperProvider


def _result(url: str, title: str = "", snippet: str = "") -> SearchResult:
    return SearchResult(title=title, url=url, snippet=snippet)


@pytest.mark.parametrize(
    "market, locale",
    [
        ("AU", ("au", "en")),
        ("Australia", ("au", "en")),
        ("nz", ("nz", "en")),
        ("United Kingdom", ("gb", "en")),
        ("uk", ("gb", "en")),
        ("", ("au", "en")),
        ("Mars", ("au", "en")),
    ],
)
def test_market_to_locale(market, locale):
    assert market_to_locale(market) == locale


def test_accept_language():
    assert accept_language_for("au", "en") == "en-AU"
    assert accept_language_for("nz", "en") == "en"


def test_ordering_intent():
    assert has_ordering_intent("Order online for delivery")
    assert has_ordering_intent("Spend over $50 and save")
    assert not has_ordering_intent("Win a trip at your local pub")


class TestFilterResults:
    def test_blocklist_and_invalid_urls(self):
        results = [
            _result("https://www.reddit.com/r/deals"),
            _result("not a url"),
            _result("https://promo.example.com.au/win"),
        ]
        filtered = filter_results(results)
        assert [r.url for r in filtered.results] == ["https://promo.example.com.au/win"]
        assert filtered.dropped[DropReason.BLOCKED_DOMAIN] == 1
        assert filtered.dropped[DropReason.INVALID_URL] == 1

    def test_liquor_retailers_kept_off_premise(self):
        filtered = filter_results([_result("https://www.danmurphys.com.au/offer")])
        assert [r.url for r in filtered.results] == ["https://www.danmurphys.com.au/offer"]
        assert not filtered.dropped

    def test_on_premise_drops_shopper_results(self):
        results = [
            _result("https://www.danmurphys.com.au/offer"),
            _result("https://promo.example.com.au/a", title="Order online now"),
            _result("https://pub.example.com.au/b", title="Win at the bar"),
        ]
        filtered = filter_results(results, on_premise=True)
        assert [r.url for r in filtered.results] == ["https://pub.example.com.au/b"]
        assert filtered.dropped[DropReason.FILTERED_ON_PREMISE] == 2
        assert not filtered.fallback_used

    def test_on_premise_falls_back_when_nothing_survives(self):
        results = [_result("https://www.bws.com.au/deal"), _result("https://www.tiktok.com/x")]
        filtered = filter_results(results, on_premise=True)
        assert [r.url for r in filtered.results] == ["https://www.bws.com.au/deal"]
        assert filtered.fallback_used
        # The blocklist still applies after the fallback.
        assert filtered.dropped[DropReason.BLOCKED_DOMAIN] == 1


def test_dedup_by_host_and_path_with_cap():
    results = [
        _result("https://Promo.example.com/Win?utm=1"),
        _result("https://promo.example.com/win?utm=2"),
        _result("ftp://promo.example.com/file"),
        _result("https://a.example.com/1"),
        _result("https://b.example.com/2"),
        _result("https://facebook.com/page"),
    ]
    kept, dropped = dedup_results(results, cap=2)
    assert [r.url for r in kept] == ["https://Promo.example.com/Win?utm=1", "https://a.example.com/1"]
    assert dropped[DropReason.DUPLICATE] == 1
    assert dropped[DropReason.INVALID_URL] == 1
    assert dropped[DropReason.BLOCKED_DOMAIN] == 1
    assert dropped[DropReason.OVER_CAP] == 1


class TestSearchChain:
    @pytest.mark.asyncio
    async def test_falls_back_to_next_provider(self, router):
        router.add("google.serper.dev", lambda request: httpx.Response(500, json={}))
        router.add(
            "api.search.brave.com",
            lambda request: httpx.Response(
                200, json={"web": {"results": [{"title": "Deal", "url": "https://deal.example.com"}]}}
            ),
        )
        async with router.client() as client:
            chain = SearchChain([SerperProvider(client, api_key="s"), BraveProvider(client, api_key="b")])
            outcome = await chain.search("appliance cashback")

        assert outcome.provider == "brave"
        assert outcome.reason is None
        assert [r.url for r in outcome.results] == ["https://deal.example.com"]

    @pytest.mark.asyncio
    async def test_unconfigured_chain_never_raises(self, router):
        async with router.client() as client:
            chain = SearchChain([SerperProvider(client), BraveProvider(client)])
            outcome = await chain.search("anything")

        assert chain.primary_name == "none"
        assert outcome.provider == "none"
        assert outcome.results == []
        assert outcome.reason is DropReason.PROVIDER_UNAVAILABLE
        assert router.calls == []


@pytest.mark.asyncio
async def test_fetch_pages_isolates_failures(router):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/slow":
            raise httpx.ReadTimeout("slow", request=request)
        if request.url.path == "/missing":
            return httpx.Response(404, text="gone")
        return httpx.Response(200, text="<h1>Win a car</h1>")

    router.add("site.example.com", handler)
    results = [_result(f"https://site.example.com/{path}") for path in ("ok", "slow", "missing")]

    async with router.client() as client:
        fetcher = PageFetcher(client, timeouts=(1.0,), retry_delay=0)
        pages = await fetch_pages(fetcher, results, concurrency=2)

    assert [result.url for result, _ in pages] == [r.url for r in results]
    outcomes = [outcome for _, outcome in pages]
    assert outcomes[0].ok and "Win a car" in outcomes[0].value
    assert outcomes[1].reason is DropReason.FETCH_TIMEOUT
    assert outcomes[2].reason is DropReason.FETCH_FAILED


@pytest.mark.asyncio
async def test_fetch_pages_empty_input():
    assert await fetch_pages(None, []) == []
