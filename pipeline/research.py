"""
Research Runner
Builds a ResearchPack per (campaign, level): brief and encyclopedic facts
for every level, live facts and competitor promos for DEEP and MAX.
"""

from __future__ import annotations

import asyncio
from collections import Counter
import logging
from typing import Dict, List, Optional, Sequence, Union

import httpx

from config.settings import Settings, get_settings
from core import (
    AudienceSection,
    CampaignContext,
    CategoryTag,
    CompetitorPromo,
    CompetitorSection,
    Fact,
    FactSection,
    ResearchLevel,
    ResearchMeta,
    ResearchPack,
    RetailerSection,
    SearchResult,
    SeasonSection,
)
from pipeline.benchmarks import aggregate_benchmarks, signal_facts
from pipeline.categories import CategoryProfile, build_profile
from pipeline.collector import (
    SearchChain,
    accept_language_for,
    dedup_results,
    fetch_pages,
    filter_results,
    market_to_locale,
)
from pipeline.facts import (
    BriefSignals,
    behavioural_fact,
    build_brief_facts,
    collect_brief_signals,
    detect_on_premise,
    filter_out_usd,
    indicative_facts,
    infer_alcohol_context,
    market_label,
    merge_facts,
    scrub_on_premise,
    season_label,
    to_facts,
    wikipedia_fact,
)
from pipeline.queries import QueryInputs, live_fact_queries, promo_seeds
from pipeline.signals import build_promo
from pipeline.valuation import assured_rep_value, derive_cashback_value, research_assured, resolve_asp
from scrapers import BaseSearchProvider, BraveProvider, PageFetcher, SerperProvider, WikipediaClient
from storage import ResearchCache, get_cache
from utils.exceptions import CacheUnavailable


logger = logging.getLogger(__name__)

SEASON_SOURCE = "Source: calendar (campaign start date)"
NO_PROVIDER_WARNING = "No search provider configured; research is limited to brief and encyclopedic facts."

# Live facts kept per section before merging, then the merged section cap.
LIVE_FACT_CAPS: Dict[str, int] = {
    "brand": 12, "category": 12, "audience": 10, "market": 10, "retailers": 12, "competitors": 12,
}
SECTION_CAPS: Dict[str, int] = {
    "brand": 12, "category": 12, "audience": 12, "market": 12, "retailers": 14, "competitors": 12,
}
LIVE_RESULTS_PER_SECTION = 40


def _append_unique(items: List[str], value: str) -> None:
    if value not in items:
        items.append(value)


class _RunState:
    """Mutable bookkeeping for one research run."""

    def __init__(self) -> None:
        self.dropped: Counter = Counter()
        self.warnings: List[str] = []
        self.used_fallbacks: List[str] = []
        self.pages_attempted = 0
        self.pages_fetched = 0

    def dropped_counts(self) -> Dict[str, int]:
        return {reason.value: count for reason, count in sorted(self.dropped.items(), key=lambda kv: kv[0].value)}


class ResearchRunner:
    """
    Research collector entry point.

    Owns one ``httpx.AsyncClient`` shared by the search providers, the
    encyclopedic lookup and the page fetcher. Use as an async context manager:

        async with ResearchRunner() as runner:
            pack = await runner.run(ctx, ResearchLevel.DEEP)
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        cache: Optional[ResearchCache] = None,
        providers: Optional[Sequence[BaseSearchProvider]] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or get_settings()
        self.cache = cache
        self._client = client
        self._owns_client = client is None
        self._providers = list(providers) if providers is not None else None
        self._chain: Optional[SearchChain] = None
        self._wikipedia: Optional[WikipediaClient] = None
        self._fetcher: Optional[PageFetcher] = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            concurrency = self.settings.research.concurrency
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.search.json_timeout),
                limits=httpx.Limits(
                    max_connections=max(4, concurrency * 2),
                    max_keepalive_connections=max(4, concurrency),
                ),
                follow_redirects=True,
            )
        return self._client

    @property
    def chain(self) -> SearchChain:
        if self._chain is None:
            providers = self._providers
            if providers is None:
                search = self.settings.search
                providers = [
                    SerperProvider(self.client, api_key=search.serper_api_key, timeout=search.json_timeout),
                    BraveProvider(self.client, api_key=search.brave_api_key, timeout=search.json_timeout),
                ]
            self._chain = SearchChain(providers)
        return self._chain

    @property
    def wikipedia(self) -> WikipediaClient:
        if self._wikipedia is None:
            self._wikipedia = WikipediaClient(self.client, timeout=self.settings.search.json_timeout)
        return self._wikipedia

    @property
    def fetcher(self) -> PageFetcher:
        if self._fetcher is None:
            research = self.settings.research
            self._fetcher = PageFetcher(
                self.client,
                timeouts=research.fetch_timeouts,
                retry_delay=research.retry_delay,
                user_agent=research.user_agent,
            )
        return self._fetcher

    async def close(self):
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def run(
        self,
        ctx: CampaignContext,
        level: Union[ResearchLevel, str] = ResearchLevel.LITE,
        force_refresh: bool = False,
    ) -> Optional[ResearchPack]:
        """
        Research a campaign at the given depth.

        Cached packs are returned while fresh (MAX never reads the cache).
        Returns None only when collection itself fails unexpectedly;
        cancellation always propagates.
        """
        level = ResearchLevel(level)
        if self.cache is not None and not force_refresh:
            cached = self.cache.load(ctx.id, level)
            if cached.ok:
                return cached.value

        try:
            pack = await self._collect(ctx, level)
        except Exception as e:
            logger.error(f"research.failed campaign={ctx.id} level={level.value}: {e}", exc_info=True)
            return None

        if self.cache is not None:
            self.cache.save(ctx.id, level, pack)
        return pack

    # ------------------------------------------------------------------
    # Collection
    # ------------------------------------------------------------------

    async def _collect(self, ctx: CampaignContext, level: ResearchLevel) -> ResearchPack:
        brief = ctx.brief
        state = _RunState()

        brand_raw = (brief.brand or ctx.client_name or "").strip()
        category_raw = (ctx.category or brief.category or "").strip()
        brand_summary, category_summary = await asyncio.gather(
            self.wikipedia.summary(brand_raw),
            self.wikipedia.summary(category_raw),
        )
        brand_title = brand_summary["title"] if brand_summary else brand_raw
        category_title = category_summary["title"] if category_summary else category_raw

        profile = build_profile(ctx, brand_title, category_title, ctx.client_name)
        cues = collect_brief_signals(brief)
        base = build_brief_facts(ctx, brand_raw, cues)
        indicative = indicative_facts(profile.tag)
        season = season_label(ctx)

        pack = ResearchPack(
            campaign_id=ctx.id,
            brand=FactSection(
                query=brand_title or None,
                summary=brand_summary["extract"] if brand_summary else None,
                facts=merge_facts(base.brand, wikipedia_fact(brand_summary)),
            ),
            category=FactSection(
                query=category_title or None,
                summary=category_summary["extract"] if category_summary else None,
                facts=merge_facts(base.category, wikipedia_fact(category_summary)),
            ),
            audience=AudienceSection(
                notes=base.audience_notes,
                facts=merge_facts(base.audience, indicative.get("audience", [])),
            ),
            competitors=CompetitorSection(names=list(profile.competitors), facts=base.competitors),
            retailers=RetailerSection(
                names=list(profile.retailers),
                facts=merge_facts(base.retailers, indicative.get("retailers", [])),
            ),
            season=SeasonSection(
                label=season,
                facts=[Fact(claim=f"Season: {season}", source=SEASON_SOURCE)] if season else [],
            ),
            market=FactSection(query=market_label(ctx), facts=base.market),
            signals=FactSection(facts=base.signals),
            meta=ResearchMeta(
                level=level,
                category_tag=profile.tag,
                liquor_sub=profile.liquor_sub if profile.tag is CategoryTag.ALCOHOL else None,
                alcohol_context=profile.tag is CategoryTag.ALCOHOL or infer_alcohol_context(ctx, profile.retailers),
            ),
        )

        if level is not ResearchLevel.LITE:
            pack = await self._collect_live(ctx, level, pack, profile, cues, brand_title, category_title, state)

        pack = pack.model_copy(
            update={
                "meta": pack.meta.model_copy(
                    update={
                        "warnings": state.warnings,
                        "used_fallbacks": state.used_fallbacks,
                        "pages_attempted": state.pages_attempted,
                        "pages_fetched": state.pages_fetched,
                        "dropped": state.dropped_counts(),
                    }
                )
            }
        )
        logger.info(
            f"research.collected campaign={ctx.id} level={level.value} category={profile.tag.value} "
            f"promos={len(pack.competitors.promos)} pages_attempted={state.pages_attempted} "
            f"pages_fetched={state.pages_fetched} dropped={pack.meta.dropped}"
        )
        return pack

    async def _collect_live(
        self,
        ctx: CampaignContext,
        level: ResearchLevel,
        pack: ResearchPack,
        profile: CategoryProfile,
        cues: BriefSignals,
        brand_title: str,
        category_title: str,
        state: _RunState,
    ) -> ResearchPack:
        brief = ctx.brief
        settings = self.settings
        chain = self.chain

        if chain.primary_name == "none":
            state.warnings.append(NO_PROVIDER_WARNING)
            _append_unique(state.used_fallbacks, "no-provider")
            return pack

        gl, hl = market_to_locale(ctx.market, settings.search.gl, settings.search.hl)
        on_premise = detect_on_premise(profile.retailers, cues.key_channels, brief)
        assured = research_assured(brief)
        inputs = QueryInputs(
            tag=profile.tag,
            brand=brand_title,
            category=category_title,
            market=market_label(ctx),
            competitors=profile.competitors,
            retailers=profile.retailers,
            cues=cues,
            assured=assured,
            on_premise=on_premise,
            dessert=profile.dessert,
            liquor_sub=profile.liquor_sub,
            anchor=brand_title or ctx.client_name or ctx.title or "brand",
        )
        search_kwargs = dict(gl=gl, hl=hl, on_premise=on_premise, state=state)

        sections = {
            "brand": list(pack.brand.facts),
            "category": list(pack.category.facts),
            "audience": list(pack.audience.facts),
            "market": list(pack.market.facts),
            "retailers": list(pack.retailers.facts),
            "competitors": list(pack.competitors.facts),
        }
        if settings.research.live_facts:
            planned = live_fact_queries(inputs)
            names = list(planned)
            live = await asyncio.gather(
                *[self._section_facts(planned[name], cap=LIVE_FACT_CAPS[name], **search_kwargs) for name in names]
            )
            for name, facts in zip(names, live):
                if name == "competitors" and not facts:
                    continue
                sections[name] = merge_facts(sections[name], facts, cap=SECTION_CAPS[name])
            for name in ("brand", "category", "competitors"):
                sections[name] = filter_out_usd(sections[name])
            if on_premise:
                for name in ("retailers", "audience", "market"):
                    sections[name] = scrub_on_premise(sections[name])

        cap = settings.research.max_urls if level is ResearchLevel.MAX else settings.research.deep_max_urls
        promos = await self._collect_promos(
            promo_seeds(inputs, cap),
            cap=cap,
            profile=profile,
            brand_fallback=brand_title,
            assured=assured,
            **search_kwargs,
        )

        campaign_value = None
        if assured:
            campaign_value = assured_rep_value(brief, derive_cashback_value(brief.cashback, resolve_asp(ctx)))
        benchmarks = aggregate_benchmarks(promos, assured=assured, campaign_value=campaign_value)

        return pack.model_copy(
            update={
                "brand": pack.brand.model_copy(update={"facts": sections["brand"]}),
                "category": pack.category.model_copy(update={"facts": sections["category"]}),
                "audience": pack.audience.model_copy(update={"facts": sections["audience"]}),
                "retailers": pack.retailers.model_copy(update={"facts": sections["retailers"]}),
                "competitors": pack.competitors.model_copy(
                    update={"facts": sections["competitors"], "promos": promos}
                ),
                "market": pack.market.model_copy(update={"facts": sections["market"] + [behavioural_fact()]}),
                "signals": pack.signals.model_copy(update={"facts": pack.signals.facts + signal_facts(benchmarks)}),
                "benchmarks": benchmarks,
                "meta": pack.meta.model_copy(update={"search_provider": chain.primary_name}),
            }
        )

    async def _search_filtered(
        self,
        queries: Sequence[str],
        *,
        gl: str,
        hl: str,
        on_premise: bool,
        state: _RunState,
    ) -> List[SearchResult]:
        """Run queries one after another; filter each answer on arrival."""
        collected: List[SearchResult] = []
        for query in queries:
            outcome = await self.chain.search(query, num=self.settings.search.results_per_query, gl=gl, hl=hl)
            if outcome.reason is not None:
                state.dropped[outcome.reason] += 1
                _append_unique(state.used_fallbacks, f"no-provider:{query}")
                continue
            filtered = filter_results(outcome.results, on_premise=on_premise)
            state.dropped.update(filtered.dropped)
            if filtered.fallback_used:
                _append_unique(state.used_fallbacks, f"on-premise-unfiltered:{query}")
            collected.extend(filtered.results)
        return collected

    async def _section_facts(self, queries: Sequence[str], *, cap: int, **search_kwargs) -> List[Fact]:
        if not queries:
            return []
        results = await self._search_filtered(queries, **search_kwargs)
        seen = set()
        unique: List[SearchResult] = []
        for result in results:
            if result.url in seen:
                continue
            seen.add(result.url)
            unique.append(result)
        return to_facts(unique[:LIVE_RESULTS_PER_SECTION], cap)

    async def _collect_promos(
        self,
        queries: Sequence[str],
        *,
        cap: int,
        profile: CategoryProfile,
        brand_fallback: str,
        assured: bool,
        state: _RunState,
        gl: str,
        hl: str,
        on_premise: bool,
    ) -> List[CompetitorPromo]:
        results = await self._search_filtered(
            queries, gl=gl, hl=hl, on_premise=on_premise, state=state
        )
        candidates, dropped = dedup_results(results, cap)
        state.dropped.update(dropped)
        state.pages_attempted += len(candidates)

        pages = await fetch_pages(
            self.fetcher,
            candidates,
            concurrency=self.settings.research.concurrency,
            accept_language=accept_language_for(gl, hl),
        )

        promos: List[CompetitorPromo] = []
        for result, page in pages:
            if not page.ok:
                state.dropped[page.reason] += 1
                continue
            state.pages_fetched += 1
            built = build_promo(
                result,
                page.value,
                competitors=profile.competitors,
                retailers=profile.retailers,
                brand_fallback=brand_fallback,
                assured=assured,
            )
            if built.ok:
                promos.append(built.value)
            else:
                state.dropped[built.reason] += 1
        return promos


def build_default_runner(settings: Optional[Settings] = None) -> ResearchRunner:
    """Runner with the configured cache backend."""
    settings = settings or get_settings()
    try:
        backend = get_cache(settings.cache.provider, cache_dir=settings.cache.path)
    except CacheUnavailable as e:
        logger.error(f"research.cache.error op=open provider={settings.cache.provider}: {e}")
        return ResearchRunner(settings=settings, cache=None)
    cache = ResearchCache(backend, ttl_seconds=settings.cache.ttl_seconds)
    return ResearchRunner(settings=settings, cache=cache)


async def run_research(
    ctx: CampaignContext,
    level: Union[ResearchLevel, str] = ResearchLevel.LITE,
    force_refresh: bool = False,
    settings: Optional[Settings] = None,
) -> Optional[ResearchPack]:
    """One-shot research with a runner that is opened and closed around the call."""
    async with build_default_runner(settings) as runner:
        return await runner.run(ctx, level, force_refresh=force_refresh)
