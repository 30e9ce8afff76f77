"""
Offer valuation
ASP anchor, banded cashback resolution and assured/prize mode detection.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from core import BriefSpec, CampaignContext, CashbackBand, CashbackOffer, OfferMode
from pipeline.categories import category_defaults


def resolve_asp(ctx: CampaignContext) -> float:
    """Best declared average selling price, else the category fallback."""
    brief = ctx.brief
    benchmark_price = brief.category_benchmarks.avg_price if brief.category_benchmarks else None
    return (
        brief.avg_price
        or brief.average_selling_price
        or benchmark_price
        or category_defaults(ctx.category).asp_fallback
    )


def normalise_bands(bands: Sequence[CashbackBand]) -> List[CashbackBand]:
    """Keep only bands with a positive amount or percent."""
    return [
        band
        for band in bands
        if (band.amount is not None and band.amount > 0) or (band.percent is not None and band.percent > 0)
    ]


def band_contains(band: CashbackBand, asp: float) -> bool:
    """Half-open ``[min, max)``; a missing bound is unbounded."""
    if band.min_price is not None and asp < band.min_price:
        return False
    if band.max_price is not None and asp >= band.max_price:
        return False
    return True


def band_for_asp(bands: Sequence[CashbackBand], asp: float) -> Optional[CashbackBand]:
    """
    Band that applies at the ASP.

    Order: first band containing the ASP, else the highest band starting at
    or below it, else the lowest band starting above it, else the first band.
    Bands need not be sorted or disjoint.
    """
    if not bands:
        return None
    for band in bands:
        if band_contains(band, asp):
            return band
    lowers = [b for b in bands if b.min_price is not None and b.min_price <= asp]
    if lowers:
        return max(lowers, key=lambda b: b.min_price)
    highers = [b for b in bands if b.min_price is not None and b.min_price > asp]
    if highers:
        return min(highers, key=lambda b: b.min_price)
    return bands[0]


def amount_from_band(band: Optional[CashbackBand], asp: float) -> float:
    if band is None:
        return 0.0
    if band.amount is not None and band.amount > 0:
        return band.amount
    if band.percent is not None and band.percent > 0:
        return band.percent / 100 * asp
    return 0.0


@dataclass(frozen=True)
class CashbackValue:
    bands: List[CashbackBand] = field(default_factory=list)
    banded: bool = False
    representative: float = 0.0
    headline_max: float = 0.0
    percent_value: Optional[float] = None


def derive_cashback_value(cashback: Optional[CashbackOffer], asp: float) -> CashbackValue:
    """Representative value at the ASP plus the largest "up to" headline value."""
    if cashback is None:
        return CashbackValue()

    bands = normalise_bands(cashback.bands)
    banded = bool(bands)
    percent = cashback.percent if cashback.percent and cashback.percent > 0 else None
    base_single = cashback.amount or (percent / 100 * asp if percent else 0.0)

    representative = base_single
    if banded:
        band = band_for_asp(bands, asp)
        representative = amount_from_band(band, asp) if band is not None else base_single

    headline_max = max((amount_from_band(b, asp) for b in bands), default=0.0) if banded else base_single
    return CashbackValue(
        bands=bands,
        banded=banded,
        representative=float(representative or 0.0),
        headline_max=float(headline_max or 0.0),
        percent_value=percent,
    )


def promo_type(brief: BriefSpec) -> str:
    return (brief.type_of_promotion or "").upper()


def cashback_assured(brief: BriefSpec) -> bool:
    cashback = brief.cashback
    if promo_type(brief) == "CASHBACK" and (cashback is None or cashback.assured is not False):
        return True
    return cashback is not None and cashback.assured is not False


def gwp_assured(brief: BriefSpec) -> bool:
    """GWP for every qualifier: no cap, or an explicitly unlimited one."""
    if promo_type(brief) != "GWP" and brief.gwp is None:
        return False
    cap = brief.gwp.cap if brief.gwp else None
    return cap is None or cap == "UNLIMITED"


def detect_mode(brief: BriefSpec) -> OfferMode:
    if brief.assured_value or cashback_assured(brief) or gwp_assured(brief):
        return OfferMode.ASSURED
    return OfferMode.PRIZE


def research_assured(brief: BriefSpec) -> bool:
    """Whether research should gather cashback/GWP evidence (ignores GWP caps)."""
    return bool(
        brief.assured_value
        or promo_type(brief) == "GWP"
        or brief.gwp is not None
        or cashback_assured(brief)
    )


def gwp_value(brief: BriefSpec) -> float:
    gwp = brief.gwp
    if gwp is None:
        return 0.0
    return float(gwp.rrp or gwp.value or gwp.estimated_value or 0.0)


def assured_rep_value(brief: BriefSpec, cashback_value: CashbackValue) -> float:
    """Cashback representative value when cashback is declared, else the GWP RRP."""
    if promo_type(brief) == "CASHBACK" or brief.cashback is not None:
        return cashback_value.representative
    return gwp_value(brief)
