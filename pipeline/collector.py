"""
Research Collector
Provider chain, geo/domain filtering, dedup and the bounded page-fetch pool.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from dataclasses import dataclass, field
import logging
import re
import time
from typing import List, Optional, Sequence, Tuple
from urllib.parse import urlsplit

from core import DropReason, Outcome, SearchResult
from scrapers.base import BaseSearchProvider
from scrapers.page_fetcher import PageFetcher
from utils.exceptions import ProviderUnavailable, SearchProviderError
from utils.text import host_of


logger = logging.getLogger(__name__)

DOMAIN_BLOCKLIST = (
    "reddit.com", "www.reddit.com",
    "x.com", "twitter.com", "mobile.twitter.com",
    "tiktok.com", "www.tiktok.com",
    "pinterest.com", "www.pinterest.com",
    "facebook.com", "www.facebook.com",
    "instagram.com", "www.instagram.com",
)

LIQUOR_RETAILER_HOSTS = frozenset(
    {
        "danmurphys.com.au", "bws.com.au", "liquorland.com.au", "firstchoiceliquor.com.au",
        "vintagecellars.com.au", "cellarbrations.com.au", "bottlemart.com.au", "iga.com.au",
    }
)

ECOM_HOST_HINTS = (
    "coles", "woolworths", "liquorland", "danmurphys", "firstchoiceliquor", "vintagecellars",
    "bottlemart", "ubereats", "deliveroo", "menulog", "amazon", "catch.com.au",
)

_ORDERING_INTENT = re.compile(r"(order|online|delivery|click\s*&?\s*collect)")
_SPEND_THRESHOLD = re.compile(r"\bover\s*\$?\s*\d{2,4}")
_SPEND_WORDS = re.compile(r"spend|order")

# (substring or exact code, gl, hl); first hit wins.
_LOCALES: Tuple[Tuple[Tuple[str, ...], Tuple[str, ...], str, str], ...] = (
    (("australia",), ("au",), "au", "en"),
    (("new zealand",), ("nz",), "nz", "en"),
    (("united kingdom",), ("uk", "gb"), "gb", "en"),
    (("united states",), ("us", "usa"), "us", "en"),
    (("canada",), ("ca",), "ca", "en"),
)


def market_to_locale(market: Optional[str], default_gl: str = "au", default_hl: str = "en") -> Tuple[str, str]:
    """Map a market label or code to a search ``(gl, hl)`` pair."""
    text = str(market or "").strip().lower()
    for names, codes, gl, hl in _LOCALES:
        if text in codes or any(name in text for name in names):
            return gl, hl
    return default_gl, default_hl


def accept_language_for(gl: str, hl: str) -> str:
    return "en-AU" if gl == "au" and hl == "en" else "en"


def is_blocked_host(hostname: str) -> bool:
    return any(hostname.endswith(domain) for domain in DOMAIN_BLOCKLIST)


def has_ordering_intent(text: str) -> bool:
    """Shopper/e-commerce language that does not fit an on-premise activation."""
    lowered = (text or "").lower()
    if _ORDERING_INTENT.search(lowered):
        return True
    return bool(_SPEND_THRESHOLD.search(lowered) and _SPEND_WORDS.search(lowered))


@dataclass
class FilterResult:
    results: List[SearchResult]
    dropped: Counter = field(default_factory=Counter)
    fallback_used: bool = False


def filter_results(
    results: Sequence[SearchResult],
    *,
    on_premise: bool = False,
) -> FilterResult:
    """
    Drop blocked and unparsable hosts; for on-premise campaigns also drop
    liquor retailers and ordering-intent results.

    The on-premise filter falls back to the blocklist-only set when it would
    leave nothing. The blocklist itself never falls back.
    """
    dropped: Counter = Counter()
    base: List[SearchResult] = []
    for result in results:
        hostname = host_of(result.url)
        if not hostname:
            dropped[DropReason.INVALID_URL] += 1
        elif is_blocked_host(hostname):
            dropped[DropReason.BLOCKED_DOMAIN] += 1
        else:
            base.append(result)

    if not on_premise:
        return FilterResult(results=base, dropped=dropped)

    shopper_filtered: List[SearchResult] = []
    for result in base:
        hostname = host_of(result.url)
        text = f"{result.title} {result.snippet}"
        if (
            hostname in LIQUOR_RETAILER_HOSTS
            or any(hint in hostname for hint in ECOM_HOST_HINTS)
            or has_ordering_intent(text)
        ):
            continue
        shopper_filtered.append(result)

    if shopper_filtered:
        dropped[DropReason.FILTERED_ON_PREMISE] += len(base) - len(shopper_filtered)
        return FilterResult(results=shopper_filtered, dropped=dropped)
    if base:
        logger.debug(f"On-premise filter removed all {len(base)} results; keeping the unfiltered set")
    return FilterResult(results=base, dropped=dropped, fallback_used=bool(base))


def dedup_results(results: Sequence[SearchResult], cap: Optional[int] = None) -> Tuple[List[SearchResult], Counter]:
    """
    Dedup by lower-cased ``hostname + path``; first occurrence wins.

    The blocklist is re-applied and unparsable URLs are dropped.
    """
    dropped: Counter = Counter()
    seen = set()
    out: List[SearchResult] = []
    for result in results:
        try:
            parts = urlsplit(result.url.strip())
        except ValueError:
            dropped[DropReason.INVALID_URL] += 1
            continue
        hostname = (parts.hostname or "").lower()
        if not hostname or parts.scheme not in ("http", "https"):
            dropped[DropReason.INVALID_URL] += 1
            continue
        if is_blocked_host(hostname):
            dropped[DropReason.BLOCKED_DOMAIN] += 1
            continue
        key = f"{hostname}{parts.path}".lower()
        if key in seen:
            dropped[DropReason.DUPLICATE] += 1
            continue
        seen.add(key)
        out.append(result)

    if cap is not None and len(out) > cap:
        dropped[DropReason.OVER_CAP] += len(out) - cap
        out = out[:cap]
    return out, dropped


@dataclass
class SearchOutcome:
    """Results of one query plus the provider that answered (``none`` if nobody did)."""

    provider: str
    results: List[SearchResult]
    reason: Optional[DropReason] = None


class SearchChain:
    """
    Try providers in order; the first non-empty answer wins.

    Never raises: misconfiguration and provider errors degrade to an empty
    result tagged ``provider_unavailable``.
    """

    def __init__(self, providers: Sequence[BaseSearchProvider]):
        self.providers = list(providers)

    @property
    def primary_name(self) -> str:
        for provider in self.providers:
            if provider.is_configured():
                return provider.name
        return "none"

    async def search(self, query: str, *, num: int = 6, gl: str = "au", hl: str = "en") -> SearchOutcome:
        start = time.monotonic()
        provider_name = "none"
        results: List[SearchResult] = []

        for provider in self.providers:
            try:
                hits = await provider.search(query, num=num, gl=gl, hl=hl)
            except ProviderUnavailable:
                continue
            except SearchProviderError as e:
                logger.warning(f"research.search.error query={query!r} provider={provider.name}: {e}")
                continue
            if hits:
                provider_name = provider.name
                results = hits
                break

        duration_ms = (time.monotonic() - start) * 1000
        logger.info(
            f"research.search query={query!r} provider={provider_name} "
            f"count={len(results)} duration_ms={duration_ms:.0f}"
        )
        reason = DropReason.PROVIDER_UNAVAILABLE if provider_name == "none" else None
        return SearchOutcome(provider=provider_name, results=results, reason=reason)


async def fetch_pages(
    fetcher: PageFetcher,
    results: Sequence[SearchResult],
    *,
    concurrency: int = 6,
    accept_language: str = "en-AU",
) -> List[Tuple[SearchResult, Outcome[str]]]:
    """
    Fetch every result's page with at most ``concurrency`` requests in flight.

    One failure never cancels its siblings; every input gets an ``Outcome``
    in input order.
    """
    if not results:
        return []

    semaphore = asyncio.Semaphore(max(1, int(concurrency)))

    async def _fetch_one(result: SearchResult) -> Outcome[str]:
        async with semaphore:
            return await fetcher.fetch(result.url, accept_language=accept_language)

    outcomes = await asyncio.gather(*[_fetch_one(r) for r in results], return_exceptions=True)

    pages: List[Tuple[SearchResult, Outcome[str]]] = []
    for result, outcome in zip(results, outcomes):
        if isinstance(outcome, BaseException) and not isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, Exception):
            logger.debug(f"Fetch task for {result.url} raised: {outcome}")
            outcome = Outcome.dropped(DropReason.FETCH_FAILED, str(outcome))
        pages.append((result, outcome))
    return pages
