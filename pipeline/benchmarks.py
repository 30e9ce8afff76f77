"""
Benchmark Aggregator
Robust statistics over the competitor promo sample.

Every aggregate returns None (or an empty structure) on empty input and is
recomputed wholesale from the promo list.
"""

from __future__ import annotations

from collections import Counter
import logging
import re
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from core import (
    Cadence,
    CadenceShare,
    CashbackQuartiles,
    CashbackSummary,
    CommonCount,
    CompetitorPromo,
    Fact,
    HeroPrizeStats,
    MarketPosition,
    PrizeCountsObserved,
    PromoType,
    ResearchBenchmarks,
)


logger = logging.getLogger(__name__)

LIVE_SCAN_SOURCE = "Source: indicative (live promo scan)"
MANY_WINNERS_THRESHOLD = 100
POSITION_DEAD_BAND = (0.85, 1.15)

_AMOUNT = re.compile(r"(?:\b(?:aud)?\s*\$?\s*)(\d{2,6}(?:,\d{3})?)(?!\s*%)", re.IGNORECASE)
_PERCENT = re.compile(r"(\d{1,3})\s*%")
_NUMBER_NOISE = re.compile(r"[^\d.\-]")


def _finite_array(values: Iterable[float]) -> np.ndarray:
    arr = np.asarray([float(v) for v in values if v is not None], dtype=float)
    return arr[np.isfinite(arr)]


def median(values: Iterable[float]) -> Optional[float]:
    arr = _finite_array(values)
    if arr.size == 0:
        return None
    return float(np.median(arr))


def quantile(values: Iterable[float], q: float) -> Optional[float]:
    """Linear-interpolation quantile."""
    arr = _finite_array(values)
    if arr.size == 0:
        return None
    return float(np.quantile(arr, q))


def mode(values: Iterable[float]) -> Optional[float]:
    """Highest-frequency value; ties go to the smallest value."""
    arr = _finite_array(values)
    if arr.size == 0:
        return None
    uniques, counts = np.unique(arr, return_counts=True)
    return float(uniques[int(np.argmax(counts))])


def number_or_none(value: object) -> Optional[float]:
    """Loose numeric parse of a value hint ("$1,500" -> 1500.0)."""
    cleaned = _NUMBER_NOISE.sub("", str(value or ""))
    if not cleaned:
        return None
    try:
        number = float(cleaned)
    except ValueError:
        return None
    return number if np.isfinite(number) else None


def parse_amounts_and_percents(text: str) -> Tuple[List[float], List[float]]:
    """Dollar amounts and 1-100 percentages mentioned in free text."""
    raw = text or ""
    amounts = [float(m.replace(",", "")) for m in _AMOUNT.findall(raw)]
    percents = [float(p) for p in _PERCENT.findall(raw) if 1 <= float(p) <= 100]
    return amounts, percents


def format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:g}"


def common_counts(counts: Sequence[int], top: int = 3) -> List[CommonCount]:
    total = len(counts)
    if not total:
        return []
    freq = Counter(counts)
    ranked = sorted(freq.items(), key=lambda kv: (-kv[1], kv[0]))[:top]
    return [CommonCount(count=int(count), share=n / total) for count, n in ranked]


def recommend_hero_count(
    common: Sequence[CommonCount],
    modal: Optional[float],
    med: Optional[float],
) -> float:
    observed = {c.count for c in common}
    if 2 in observed:
        return 2
    if 3 in observed:
        return 3
    return modal or med or 3


def cadence_shares(promos: Sequence[CompetitorPromo]) -> CadenceShare:
    """Shares over promos that carry a cadence label only."""
    tagged = [p.cadence for p in promos if p.cadence is not None]
    denom = len(tagged) or 1
    return CadenceShare(
        instant=sum(1 for c in tagged if c is Cadence.INSTANT) / denom,
        weekly=sum(1 for c in tagged if c is Cadence.WEEKLY) / denom,
        daily=sum(1 for c in tagged if c is Cadence.DAILY) / denom,
    )


def market_position(campaign_value: Optional[float], typical_abs: Optional[float]) -> MarketPosition:
    if not campaign_value or campaign_value <= 0 or not typical_abs:
        return MarketPosition.UNKNOWN
    ratio = campaign_value / typical_abs
    low, high = POSITION_DEAD_BAND
    if ratio >= high:
        return MarketPosition.ABOVE_TYPICAL
    if ratio <= low:
        return MarketPosition.BELOW_TYPICAL
    return MarketPosition.AT_TYPICAL


def _cashback_benchmarks(promos: Sequence[CompetitorPromo]) -> Tuple[CashbackSummary, CashbackQuartiles]:
    cashback_promos = [p for p in promos if p.type is PromoType.CASHBACK]
    values = [v for v in (number_or_none(p.prize_value_hint) for p in cashback_promos) if v is not None]

    percents: List[float] = []
    for promo in cashback_promos:
        _, found = parse_amounts_and_percents(" ".join(filter(None, [promo.title, promo.headline])))
        percents.extend(found)

    typical_abs = median(values)
    summary = CashbackSummary(
        sample=len(cashback_promos),
        typical_abs=typical_abs,
        max_abs=max(values) if values else None,
        typical_pct=median(percents),
        max_pct=max(percents) if percents else None,
    )
    quartiles = CashbackQuartiles(
        median=typical_abs,
        p25=quantile(values, 0.25),
        p75=quantile(values, 0.75),
        sample_size=len(values),
    )
    return summary, quartiles


def signal_facts(benchmarks: ResearchBenchmarks) -> List[Fact]:
    """Plain-language facts describing the live promo sample."""
    facts: List[Fact] = []
    hero = benchmarks.hero_prize
    if hero and hero.median:
        mode_note = f" (mode ≈ {format_number(hero.mode)})" if hero.mode and hero.mode != hero.median else ""
        facts.append(
            Fact(
                claim=f"Recent promos show hero prize counts clustering around ~{format_number(hero.median)}{mode_note}.",
                source=LIVE_SCAN_SOURCE,
            )
        )
    share = benchmarks.cadence_share
    if share:
        cadences = [
            name
            for name, value in (("instant", share.instant), ("weekly", share.weekly), ("daily", share.daily))
            if value > 0
        ]
        if cadences:
            facts.append(
                Fact(claim=f"Cadence cues common in-market: {' & '.join(cadences)}.", source=LIVE_SCAN_SOURCE)
            )
    return facts


def aggregate_benchmarks(
    promos: Sequence[CompetitorPromo],
    *,
    assured: bool = False,
    campaign_value: Optional[float] = None,
) -> ResearchBenchmarks:
    """
    Reduce the promo sample into benchmarks.

    Args:
        promos: typed promos (OTHER already discarded)
        assured: compute cashback statistics and market position
        campaign_value: the campaign's representative cashback at ASP
    """
    fields = {}

    if promos:
        heroes = sorted(p.hero_count for p in promos if p.hero_count and p.hero_count > 0)
        med = median(heroes)
        modal = mode(heroes)
        common = common_counts(heroes)
        fields.update(
            hero_prize=HeroPrizeStats(median=med, mode=modal),
            cadence_share=cadence_shares(promos),
            many_winners_share=sum(
                1 for p in promos if (p.total_winners or 0) >= MANY_WINNERS_THRESHOLD
            ) / len(promos),
            prize_counts_observed=PrizeCountsObserved(total=len(heroes), common=common),
            recommended_hero_count=recommend_hero_count(common, modal, med),
        )

    if assured:
        summary, quartiles = _cashback_benchmarks(promos)
        fields.update(cashback=summary, cashback_abs=quartiles)
        if summary.sample and summary.typical_abs:
            fields["position_vs_market"] = market_position(campaign_value, summary.typical_abs)

    benchmarks = ResearchBenchmarks(**fields)
    logger.debug(
        f"Benchmarks from {len(promos)} promos: hero={benchmarks.hero_prize} "
        f"position={benchmarks.position_vs_market.value}"
    )
    return benchmarks
