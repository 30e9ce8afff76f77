"""
Signal Extractor
Ordered regex heuristics that turn a fetched page into a competitor promotion.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import re
from typing import List, NamedTuple, Optional, Pattern, Sequence, Tuple

from core import Cadence, CompetitorPromo, DropReason, Outcome, PromoType, SearchResult
from utils.exceptions import ParseEmpty
from utils.text import host_of, strip_html


class TypeRule(NamedTuple):
    pattern: Pattern[str]
    type: PromoType


class CadenceRule(NamedTuple):
    pattern: Pattern[str]
    cadence: Cadence


# First match wins, in table order.
TYPE_RULES: Tuple[TypeRule, ...] = (
    TypeRule(re.compile(r"cash\s*back|cashback"), PromoType.CASHBACK),
    TypeRule(re.compile(r"gift[-\s]?with[-\s]?purchase|bonus\s+gift|free\s+gift"), PromoType.GWP),
    TypeRule(re.compile(r"\b(win|wins|winner|winners|winning|prize|prizes)\b"), PromoType.PRIZE),
)

HERO_COUNT_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"(?:1\s+of\s+)?(?<![\d,.])(\d{1,3})\s+(?:major\s+)?prizes?"),
    re.compile(r"(?<![\d,.])(\d{1,3})\s+(?:x\s+)?major\s+prizes?"),
    re.compile(r"win\s+1\s+of\s+(\d{1,3})(?![\d,])"),
)

TOTAL_WINNERS_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"(?<![\d,.])(\d{2,6})\s+total\s+winners"),
    re.compile(r"over\s+(\d{2,6})\s+winners"),
    re.compile(r"(?<![\d,.])(\d{2,6})\s+winners\b"),
)

CADENCE_RULES: Tuple[CadenceRule, ...] = (
    CadenceRule(re.compile(r"instant\s+win"), Cadence.INSTANT),
    CadenceRule(re.compile(r"weekly\s+win|weekly\s+draw|every\s+week"), Cadence.WEEKLY),
    CadenceRule(re.compile(r"daily\s+win|daily\s+draw|every\s+day"), Cadence.DAILY),
)

_VALUE_UP_TO = re.compile(r"\bup\s+to\s*(?:\$|\baud\s?)\s?(\d{2,6}(?:,\d{3})?)")
_VALUE = re.compile(r"(?:\$|\baud\s?)\s?(\d{2,6}(?:,\d{3})?)")
_EOFY = re.compile(r"eofy|end\s+of\s+financial\s+year")
_REDEMPTION = re.compile(r"(via|by)\s+redemption|manufacturer\s+redemption")
_GIFT_CARD = re.compile(
    r"(bonus|free)\s+(?:prepaid\s+)?(?:visa\s+)?gift\s*card\s*(?:worth|valued|up to)?\s*(?:\$)?\s?(\d{2,5})"
)
_TITLE = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)
_H1 = re.compile(r"<h1[^>]*>(.*?)</h1>", re.IGNORECASE | re.DOTALL)
_PRIZE_ITEMS = re.compile(
    r"(car|fridge|washer|dryer|tv|holiday|trip|voucher|gift\s*card|cash|rebate|data|plans?)",
    re.IGNORECASE,
)
_SPACES = re.compile(r"\s+")

MAX_PRIZE_ITEMS = 12
PROMO_CONFIDENCE = 0.6


@dataclass(frozen=True)
class PromoSignals:
    """Partial promotion record extracted from one page."""

    type: PromoType = PromoType.OTHER
    hero_count: Optional[int] = None
    total_winners: Optional[int] = None
    cadence: Optional[Cadence] = None
    prize_value_hint: Optional[str] = None
    title: Optional[str] = None
    headline: Optional[str] = None
    prize_items: List[str] = field(default_factory=list)
    via_redemption: bool = False
    gift_card: Optional[str] = None


def _first_int(patterns: Sequence[Pattern[str]], text: str) -> Optional[int]:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return int(match.group(1))
    return None


def _tag_text(pattern: Pattern[str], html: str) -> Optional[str]:
    match = pattern.search(html)
    if not match:
        return None
    return strip_html(match.group(1)) or None


def extract_promo_signals(html: str) -> PromoSignals:
    """Run the heuristic battery over raw page text. Never raises."""
    raw = html or ""
    text = _SPACES.sub(" ", raw).lower()

    promo_type = next((rule.type for rule in TYPE_RULES if rule.pattern.search(text)), PromoType.OTHER)
    cadence = next((rule.cadence for rule in CADENCE_RULES if rule.pattern.search(text)), None)

    # An explicit "up to $X" beats the first amount on the page.
    value_hit = _VALUE_UP_TO.search(text) or _VALUE.search(text)
    if value_hit:
        value_hint: Optional[str] = f"${value_hit.group(1)}"
    elif _EOFY.search(text):
        value_hint = "EOFY bonus"
    else:
        value_hint = None

    gift_hit = _GIFT_CARD.search(text)
    gift_card = f"${gift_hit.group(2)} gift card" if gift_hit else None

    items: List[str] = []
    for hit in _PRIZE_ITEMS.findall(raw):
        item = hit.lower()
        if item not in items:
            items.append(item)

    return PromoSignals(
        type=promo_type,
        hero_count=_first_int(HERO_COUNT_PATTERNS, text),
        total_winners=_first_int(TOTAL_WINNERS_PATTERNS, text),
        cadence=cadence,
        prize_value_hint=value_hint,
        title=_tag_text(_TITLE, raw),
        headline=_tag_text(_H1, raw),
        prize_items=items[:MAX_PRIZE_ITEMS],
        via_redemption=bool(_REDEMPTION.search(text)),
        gift_card=gift_card,
    )


def decided_signals(html: str) -> PromoSignals:
    """Like ``extract_promo_signals`` but raise ``ParseEmpty`` when no promo type is found."""
    signals = extract_promo_signals(html)
    if signals.type is PromoType.OTHER:
        raise ParseEmpty("no promotion signal on page")
    return signals


def guess_brand(
    result: SearchResult,
    competitors: Sequence[str],
    retailers: Sequence[str],
    fallback: str = "",
) -> str:
    """Named competitor/retailer in the result title, else the host label."""
    lower_title = (result.title or "").lower()
    for name in list(competitors) + list(retailers):
        if name and name.lower() in lower_title:
            return name
    label = host_of(result.url).split(".")[0].upper()
    return label or fallback or "Unknown"


def build_promo(
    result: SearchResult,
    html: str,
    *,
    competitors: Sequence[str] = (),
    retailers: Sequence[str] = (),
    brand_fallback: str = "",
    assured: bool = True,
) -> Outcome[CompetitorPromo]:
    """
    Turn one fetched page into a ``CompetitorPromo``.

    Pages without a decided type drop with ``parse_empty``. Cashback and GWP
    pages drop with ``not_assured`` for prize-led campaigns.
    """
    try:
        signals = decided_signals(html)
    except ParseEmpty:
        return Outcome.dropped(DropReason.PARSE_EMPTY, result.url)
    if signals.type in (PromoType.CASHBACK, PromoType.GWP) and not assured:
        return Outcome.dropped(DropReason.NOT_ASSURED, result.url)

    promo = CompetitorPromo(
        brand=guess_brand(result, competitors, retailers, brand_fallback),
        title=signals.title or result.title or None,
        headline=signals.headline or result.snippet or None,
        url=result.url,
        source=f"Source: {host_of(result.url)} ({result.url})",
        type=signals.type,
        hero_count=signals.hero_count,
        total_winners=signals.total_winners,
        cadence=signals.cadence,
        prize_items=signals.prize_items,
        prize_value_hint=signals.prize_value_hint or signals.gift_card,
        confidence=PROMO_CONFIDENCE,
        via_redemption=signals.via_redemption,
        gift_card=signals.gift_card,
    )
    return Outcome.success(promo)
