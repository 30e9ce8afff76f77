"""
Offer Scorer (OfferIQ)
Seven weighted lenses over the declared offer, mode detection (assured value
vs prize draw), confidence and verdict. Pure: the same campaign and research
pack always produce the same result.
"""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import List, Optional

from core import (
    BriefSpec,
    CadenceShare,
    CampaignContext,
    CashbackPosition,
    CashbackQuartiles,
    HardFlag,
    HeroOverlay,
    HeroPosition,
    Lens,
    Lenses,
    OfferDiagnostics,
    OfferIQ,
    OfferMode,
    ResearchBenchmarks,
    ResearchPack,
    Verdict,
)
from pipeline.categories import category_defaults
from pipeline.valuation import (
    assured_rep_value,
    derive_cashback_value,
    detect_mode,
    resolve_asp,
)
from utils.text import unique_strings


LENS_WEIGHTS = {
    "adequacy": 0.30,
    "simplicity": 0.15,
    "certainty": 0.15,
    "salience": 0.15,
    "talkability": 0.10,
    "retailer_fit": 0.10,
    "brand_fit": 0.05,
}

MAX_RECOMMENDATIONS = 8
BASE_CONFIDENCE = 0.7

PROOF_TOKENS = ("receipt", "upload", "proof", "serial")
APP_TOKENS = ("app-only", "mobile app")
CADENCE_TOKENS = (
    "instant win", "weekly", "daily", "thousands of winners", "bonus entries", "ladder", "stamp", "collect",
)
SYMBOLIC_TOKENS = ("symbolic", "status", "membership", "club", "lifetime", "money-can’t-buy", "money cant buy")
SEASONAL_TOKENS = ("spring", "summer", "holiday", "christmas", "eofy")
ZERO_LIFT_TOKENS = (
    "zero staff", "central fulfilment", "centralized fulfillment", "pre-packed pos", "prepacked pos",
)
ASSET_TOKENS = ("distinctive asset", "brand truth")

_EXPERIENTIAL = re.compile(
    r"chef|private chef|cook(ing)? (at )?home|dinner|experience|concierge|vip|ticket(s)?|trip|travel|butler|maid|home service"
)
_EXPLICIT_COUNT = re.compile(r"(\d[\d,]*)\s*[×x]", re.IGNORECASE)
_PLAIN_COUNT = re.compile(r"^\d[\d,]*$")
_DOLLAR_VALUE = re.compile(r"\$ ?([\d,]+(?:\.\d+)?)")
_DOLLAR_TOKEN = re.compile(r"\$[\d,]+")
_TOKEN_SPLIT = re.compile(r"[\s,]+")


def clamp(value: float, lo: float = 0.0, hi: float = 10.0) -> float:
    return max(lo, min(hi, value))


def includes_any(haystack: str, needles) -> bool:
    text = (haystack or "").lower()
    return any(needle.lower() in text for needle in needles)


def parse_count_from_prize(text: str) -> int:
    """Winner count in a prize line ("1,000 x $20 vouchers" -> 1000); defaults to 1."""
    if not text:
        return 1
    explicit = _EXPLICIT_COUNT.search(text)
    if explicit:
        return int(explicit.group(1).replace(",", "") or 0)
    for token in _TOKEN_SPLIT.split(text):
        if not token or token.startswith("$"):
            continue
        if _PLAIN_COUNT.match(token):
            return int(token.replace(",", ""))
    return 1


def parse_value_from_text(text: str) -> Optional[float]:
    match = _DOLLAR_VALUE.search(text or "")
    if not match:
        return None
    try:
        return float(match.group(1).replace(",", ""))
    except ValueError:
        return None


def _money(value: float) -> str:
    return f"{round(value):,}"


@dataclass(frozen=True)
class OfferSignals:
    """Facts extracted once from the brief and research pack."""

    mode: OfferMode
    banded: bool
    overlay: bool
    overlay_experiential: bool
    overlay_label: str
    rep_amount: float
    headline_max: float
    asp: float
    effort: float
    cadence_signals: bool
    symbolic_signals: bool
    expected_buyers: Optional[float]
    total_winners: Optional[float]
    coverage_rate: Optional[float]
    prize_pool_estimate: Optional[float]
    prize_budget_ratio: Optional[float]
    hero_count: int
    benchmarks: Optional[ResearchBenchmarks]
    cb_bench: Optional[CashbackQuartiles]
    hero_bench_median: Optional[float]
    hero_bench_mode: Optional[float]
    cadence_share: Optional[CadenceShare]
    many_winners_share: Optional[float]


def _claim_effort(brief: BriefSpec, text: str) -> float:
    """Weighted hassle: screens, fields, proof, app-only and waiting time."""
    fields = brief.claim_fields_count or 0
    proof = includes_any(text, PROOF_TOKENS)
    cashback_days = brief.cashback.processing_days if brief.cashback else None
    wait_days = brief.processing_days or cashback_days or 0
    screens = brief.screens or 1
    has_app = includes_any(text, APP_TOKENS)
    return (
        min(screens, 4)
        + (min(fields, 6) * 0.5 if fields else 0)
        + (1.5 if proof else 0)
        + (1.5 if has_app else 0)
        + (1.5 if wait_days >= 21 else 0.75 if wait_days >= 7 else 0)
    )


def _total_winners(brief: BriefSpec, hero_count: int) -> Optional[float]:
    runner_count = sum(parse_count_from_prize(line) for line in brief.runner_ups)
    if runner_count > 0:
        return float(hero_count + runner_count)
    if brief.total_winners:
        return brief.total_winners
    return float(hero_count) if hero_count else None


def _prize_pool(brief: BriefSpec, hero_count: int) -> Optional[float]:
    hero_value = brief.hero_prize_value or parse_value_from_text(brief.hero_prize or "") or 0.0
    fallback_runner_value = (
        brief.runner_up_value
        or brief.runner_up_amount
        or parse_value_from_text(brief.prize_value_hint or "")
        or 0.0
    )
    runner_total = 0.0
    for line in brief.runner_ups:
        count = parse_count_from_prize(line)
        runner_total += count * (parse_value_from_text(line) or fallback_runner_value)

    estimate = hero_count * hero_value + runner_total
    if estimate > 0:
        return estimate
    budget = _DOLLAR_TOKEN.search(brief.prize_budget_notes or "")
    if budget:
        value = parse_value_from_text(budget.group(0))
        return value or None
    return None


def extract_signals(ctx: CampaignContext, research: Optional[ResearchPack] = None) -> OfferSignals:
    brief = ctx.brief
    text = brief.as_text()
    asp = resolve_asp(ctx)
    cashback_value = derive_cashback_value(brief.cashback, asp)

    hero_label = (brief.hero_prize or "").lower()
    overlay_raw = brief.major_prize_overlay
    if isinstance(overlay_raw, str):
        overlay_label = overlay_raw.lower()
    else:
        overlay_label = hero_label if overlay_raw else ""
    overlay = bool(overlay_label) or overlay_raw is True
    overlay_experiential = bool(_EXPERIENTIAL.search(overlay_label or hero_label))

    expected_buyers = brief.expected_buyers or brief.expected_units or brief.kpi_entries_target or None
    hero_count = brief.hero_prize_count or 0
    total_winners = _total_winners(brief, hero_count)
    prize_pool = _prize_pool(brief, hero_count)
    approx_revenue = expected_buyers * asp if expected_buyers else None
    prize_budget_ratio = prize_pool / approx_revenue if prize_pool and approx_revenue else None

    benchmarks = research.benchmarks if research is not None else None
    cb_bench = None
    if benchmarks is not None and benchmarks.cashback_abs is not None and benchmarks.cashback_abs.median:
        cb_bench = benchmarks.cashback_abs
    hero_stats = benchmarks.hero_prize if benchmarks is not None else None

    return OfferSignals(
        mode=detect_mode(brief),
        banded=cashback_value.banded,
        overlay=overlay,
        overlay_experiential=overlay_experiential,
        overlay_label=overlay_label,
        rep_amount=assured_rep_value(brief, cashback_value),
        headline_max=cashback_value.headline_max,
        asp=asp,
        effort=_claim_effort(brief, text),
        cadence_signals=includes_any(text, CADENCE_TOKENS),
        symbolic_signals=includes_any(text, SYMBOLIC_TOKENS) or overlay_experiential,
        expected_buyers=expected_buyers,
        total_winners=total_winners,
        coverage_rate=total_winners / expected_buyers if expected_buyers and total_winners else None,
        prize_pool_estimate=prize_pool or None,
        prize_budget_ratio=prize_budget_ratio or None,
        hero_count=hero_count,
        benchmarks=benchmarks,
        cb_bench=cb_bench,
        hero_bench_median=hero_stats.median if hero_stats else None,
        hero_bench_mode=hero_stats.mode if hero_stats else None,
        cadence_share=benchmarks.cadence_share if benchmarks is not None else None,
        many_winners_share=benchmarks.many_winners_share if benchmarks is not None else None,
    )


@dataclass
class _Adequacy:
    score: float
    why: str
    fix: str
    cashback_vs_market: CashbackPosition = CashbackPosition.UNKNOWN
    hero_vs_market: HeroPosition = HeroPosition.UNKNOWN


def _assured_adequacy(
    s: OfferSignals,
    absolute_floor: float,
    percent_floor: float,
    asks: List[str],
    hard_flags: List[HardFlag],
) -> _Adequacy:
    rep, asp = s.rep_amount, s.asp
    percent_rep = rep / asp * 100 if asp > 0 else 0.0
    adequate_abs = rep >= absolute_floor
    adequate_pct = percent_rep >= percent_floor

    if rep <= 0:
        score = 0.0
    elif adequate_abs and adequate_pct:
        score = 8.5
    elif adequate_abs:
        score = 6.0
    elif adequate_pct:
        score = 5.0
    else:
        score = max(1.0, min(4.0, rep / absolute_floor * 4))

    position = CashbackPosition.UNKNOWN
    bench = s.cb_bench
    if rep > 0 and bench is not None:
        if bench.p25 is not None and rep < bench.p25:
            position = CashbackPosition.BELOW_P25
            score -= 0.8
        elif bench.p75 is not None and rep >= bench.p75:
            position = CashbackPosition.ABOVE_P75
            score += 0.6
        else:
            position = CashbackPosition.BETWEEN_P25_P75
            score += 0.1

    headline_note = (
        f" Headline “up to” ≈ ${s.headline_max:.0f}; typical at ASP ≈ ${rep:.0f}."
        if s.banded and s.headline_max > 0
        else ""
    )
    market_note = ""
    if bench is not None:
        iqr = (
            f" (IQR ~${round(bench.p25)}–${round(bench.p75 or bench.median)})"
            if bench.p25
            else ""
        )
        market_note = f" Market check: median ≈ ${round(bench.median)}{iqr}."

    if rep <= 0:
        why = "No tangible assured value specified."
    else:
        verdict_word = "meets" if adequate_abs and adequate_pct else "misses"
        why = (
            f"≈${rep:.0f} on ~${asp:.0f} ({percent_rep:.1f}%) {verdict_word} category floors."
            + headline_note
            + market_note
        )

    floor_abs = _format_floor(absolute_floor)
    floor_pct = _format_floor(percent_floor)
    if adequate_abs and adequate_pct:
        fix = "Keep the number round and prominent."
    elif bench is not None:
        target = max(absolute_floor, round(bench.p25 or bench.median))
        fix = (
            f"Change-from: ${rep:.0f} on ~${asp:.0f}. → Change-to: ≥${_format_floor(target)} or ≥{floor_pct}% of ASP, "
            "or pivot to a premium GWP with clear RRP."
        )
    else:
        current = f"${rep:.0f}" if rep else "n/a"
        fix = (
            f"Change-from: {current} on ~${asp:.0f}. → Change-to: ≥${floor_abs} or ≥{floor_pct}% of ASP, "
            "or pivot to a premium GWP with clear RRP."
        )

    if s.banded and rep <= 0:
        asks.append("Provide band thresholds (min/max price) and amount/percent per band.")
    if score < 3:
        hard_flags.append(HardFlag.INADEQUATE_VALUE)
    return _Adequacy(score=score, why=why, fix=fix, cashback_vs_market=position)


def _prize_adequacy(s: OfferSignals, asks: List[str], hard_flags: List[HardFlag]) -> _Adequacy:
    has_volume = s.expected_buyers is not None and s.expected_buyers > 0
    has_winners = s.total_winners is not None and s.total_winners > 0

    hero_position = HeroPosition.UNKNOWN
    if s.hero_count > 0 and s.hero_bench_median is not None:
        if s.hero_count < s.hero_bench_median:
            hero_position = HeroPosition.BELOW_MEDIAN
        elif s.hero_count == s.hero_bench_median:
            hero_position = HeroPosition.AT_MEDIAN
        else:
            hero_position = HeroPosition.ABOVE_MEDIAN

    if not has_volume or not has_winners:
        score = 6.0 if s.cadence_signals else 4.5
        why = (
            "Expected buyers/entries not provided; adequacy judged via cadence and visibility."
            if not has_volume
            else "Winner count not provided; adequacy judged via cadence and visibility."
        )
        fix = "Add: expected buyers/entries and total winners, or show “Total winners” and cadence in communications."
        if not has_volume:
            asks.append("Provide expected buyers/entries (range).")
        if not has_winners:
            asks.append("Provide total winners (hero + runner-ups).")
    else:
        coverage = s.coverage_rate or 0.0
        if coverage >= 0.05:
            score = 8.5
        elif coverage >= 0.01:
            score = 7.0
        elif coverage >= 0.003:
            score = 6.0 if s.cadence_signals else 4.5
        else:
            score = 4.5 if s.cadence_signals else 3.5

        if s.hero_count == 1 and not s.cadence_signals:
            score -= 0.4
        if 2 <= s.hero_count <= 3:
            score += 0.3
        if s.cadence_share is not None and s.cadence_share.instant >= 0.25 and not s.cadence_signals:
            score -= 0.2

        pool_line = ""
        if s.prize_pool_estimate:
            ratio = (
                f" (~{s.prize_budget_ratio * 100:.1f}% of ASP × entries)" if s.prize_budget_ratio is not None else ""
            )
            pool_line = f" Prize pool ≈ ${_money(s.prize_pool_estimate)}{ratio}."
        cadence_line = (
            " Visible cadence/many-winners cues present." if s.cadence_signals else " Cadence not clearly visible."
        )
        hero_line = (
            f" Hero prizes vs market: {hero_position.value.lower().replace('_', ' ', 1)}."
            if hero_position is not HeroPosition.UNKNOWN
            else ""
        )
        why = (
            f"Coverage ≈ {coverage * 100:.2f}% ({_format_floor(s.total_winners)} winners on "
            f"~{_format_floor(s.expected_buyers)} buyers/entries)." + pool_line + cadence_line + hero_line
        )
        fix = (
            "Keep cadence clear; publish “Total winners”."
            if coverage >= 0.01
            else "Change-from: thin perceived odds. → Change-to: more winners OR stronger cadence/visibility; "
            "publish “Total winners”."
        )
        if coverage < 0.003 and not s.cadence_signals:
            hard_flags.append(HardFlag.COVERAGE_TINY)

    if s.symbolic_signals:
        score = min(9.0, score + 0.5)
    return _Adequacy(score=score, why=why, fix=fix, hero_vs_market=hero_position)


def _format_floor(value: Optional[float]) -> str:
    if value is None:
        return "n/a"
    return str(int(value)) if float(value).is_integer() else f"{value:g}"


def score_offer(ctx: CampaignContext, research: Optional[ResearchPack] = None) -> OfferIQ:
    """Score the campaign's declared offer, optionally against a research pack."""
    brief = ctx.brief
    text = brief.as_text()
    s = extract_signals(ctx, research)
    assured = s.mode is OfferMode.ASSURED

    defaults = category_defaults(ctx.category)
    absolute_floor = brief.absolute_floor or defaults.absolute_floor
    percent_floor = brief.percent_floor or defaults.percent_floor
    percent_rep = s.rep_amount / s.asp * 100 if s.asp > 0 else 0.0

    asks: List[str] = []
    hard_flags: List[HardFlag] = []

    # Adequacy
    if assured:
        adequacy_result = _assured_adequacy(s, absolute_floor, percent_floor, asks, hard_flags)
    else:
        adequacy_result = _prize_adequacy(s, asks, hard_flags)
    adequacy = Lens(score=clamp(adequacy_result.score), why=adequacy_result.why, fix=adequacy_result.fix)

    # Simplicity
    effort = s.effort
    if effort <= 2:
        simplicity_why = "One-screen claim with low admin."
    elif effort <= 4:
        simplicity_why = "Some admin implied (fields/proof or wait time)."
    else:
        simplicity_why = "High perceived hassle (multi-step, proof and/or long wait)."
    simplicity = Lens(
        score=clamp(10 - effort * 1.4),
        why=simplicity_why,
        fix="Keep claim one-screen; limit fields; good OCR; publish timelines.",
    )

    # Certainty
    share = s.cadence_share
    market_shows_cadence = share is not None and (share.instant >= 0.25 or share.weekly >= 0.3)
    if assured:
        certainty_base = 5.0 if adequacy.score <= 3 else 8.0
        certainty_why = "Assured value for qualifiers."
        certainty_fix = "Fix adequacy first; certainty only works if value feels worth it."
    else:
        certainty_base = 7.0 if s.cadence_signals else 4.0
        if not s.cadence_signals and market_shows_cadence:
            certainty_base -= 0.3
        certainty_why = (
            "Cadence/many-winners signal fairness." if s.cadence_signals else "Perceived odds unclear; cadence thin."
        )
        certainty_fix = "Show cadence and “Total winners”; avoid fine print that hides odds."
    certainty = Lens(score=clamp(certainty_base), why=certainty_why, fix=certainty_fix)

    # Salience
    rep = s.rep_amount
    if assured:
        if rep >= absolute_floor:
            salience_base = 7.0
        elif rep >= absolute_floor * 0.6:
            salience_base = 5.0
        elif rep > 0:
            salience_base = 3.0
        else:
            salience_base = 1.0
        if s.overlay and s.overlay_experiential:
            salience_base += 0.5
        salience_why = (
            "Headline number can carry pack/POS." if rep >= absolute_floor else "Number reads small; lacks stopping power."
        )
        salience_fix = (
            "State it cleanly, large, and early."
            if rep >= absolute_floor
            else "Round up or pivot to premium GWP with explicit RRP."
        )
    else:
        salience_base = (6.0 if s.cadence_signals else 4.0) + (1.0 if s.symbolic_signals else 0.0)
        salience_why = (
            "Cadence gives it presence; easier to headline winners."
            if s.cadence_signals
            else "Needs a visible moment or total-winners headline."
        )
        salience_fix = "Publish “Total winners” and name the cadence; add a bold moment line."
    salience = Lens(score=clamp(salience_base), why=salience_why, fix=salience_fix)

    # Talkability
    seasonal = includes_any(text, SEASONAL_TOKENS)
    experiential_overlay = s.overlay and s.overlay_experiential
    if experiential_overlay:
        talk_score = 7.5
        talk_why = "Experiential overlay (e.g., Private Chef) is inherently talkable; use it as the story."
        talk_fix = "Let the overlay carry PR and mood; keep cashback as the headline value line."
    elif s.overlay:
        talk_score = 7.0 if s.symbolic_signals else 5.0 if seasonal else 2.0
        talk_why = "Overlay adds a headline moment."
        talk_fix = "Let the overlay add fame without overshadowing the guaranteed value."
    elif s.symbolic_signals:
        talk_score = 7.0
        talk_why = "Cultural/status angle present; dramatise the myth and bridge story."
        talk_fix = (
            "Bring the symbolic reward to life (naming, live updates, owners’ colours). "
            "Place it at the heart of comms."
        )
    else:
        talk_score = 5.0 if seasonal else 2.0
        talk_why = "Seasonal hook helps." if seasonal else "Little social currency."
        talk_fix = "Add a brand-right experiential or symbolic angle."
    talkability = Lens(score=clamp(talk_score), why=talk_why, fix=talk_fix)

    # Retailer fit
    zero_lift = includes_any(text, ZERO_LIFT_TOKENS)
    retailer_fit = Lens(
        score=8.0 if zero_lift else 6.0,
        why="Zero staff burden; central processing." if zero_lift else "Ensure any adjudication is central; ship pre-packed POS.",
        fix="Keep staff script ≤5s; no in-store adjudication.",
    )

    # Brand fit
    assets = brief.brand_assets or brief.distinctive_assets
    uses_assets = bool(assets and (assets.visual or assets.verbal)) or includes_any(text, ASSET_TOKENS)
    brand_fit = Lens(
        score=6.5 if uses_assets else 5.0,
        why="Hook/value linked to brand assets." if uses_assets else "Feels generic; weak brand lock.",
        fix="Lock line and visuals to distinctive assets and the brand’s functional truth.",
    )

    lenses = Lenses(
        adequacy=adequacy,
        simplicity=simplicity,
        certainty=certainty,
        salience=salience,
        talkability=talkability,
        retailer_fit=retailer_fit,
        brand_fit=brand_fit,
    )
    score = sum(getattr(lenses, name).score * weight for name, weight in LENS_WEIGHTS.items())

    # Confidence
    confidence = BASE_CONFIDENCE
    if not assured and (s.expected_buyers is None or s.total_winners is None):
        confidence = 0.45
    if assured and rep <= 0:
        confidence = 0.4
    if (
        assured
        and s.banded
        and rep > 0
        and s.headline_max > 0
        and abs(s.headline_max - rep) / s.headline_max > 0.35
    ):
        asks.append("Confirm typical cashback at ASP vs “up to” headline.")
        confidence = max(0.5, confidence - 0.05)
    if s.benchmarks is not None:
        confidence = min(0.85, confidence + 0.05)
    confidence = round(confidence, 2)

    # Verdict
    verdict = Verdict.GO_WITH_CONDITIONS
    if score >= 7.5 and not hard_flags:
        verdict = Verdict.GO
    elif assured and (adequacy.score < 3 or HardFlag.INADEQUATE_VALUE in hard_flags) and confidence >= 0.7:
        verdict = Verdict.NO_GO
    elif not assured:
        if HardFlag.COVERAGE_TINY in hard_flags and confidence >= 0.7:
            verdict = Verdict.NO_GO
        elif confidence < 0.6:
            verdict = Verdict.REVIEW

    recommendations = _recommendations(s, lenses, absolute_floor)

    if not assured and brief.hero_prize_count is None:
        asks.append("Confirm hero-prize count (1 vs 2 vs 3) to calibrate perceived odds.")
    if not assured and s.total_winners is None:
        asks.append("Provide total winners (hero + runner-ups) to compute perceived coverage.")
    if assured and not rep:
        asks.append("Provide single cashback amount or band near ASP.")

    hero_overlay = None
    if s.overlay or brief.hero_prize:
        overlay_raw = brief.major_prize_overlay
        hero_overlay = HeroOverlay(
            label=overlay_raw if isinstance(overlay_raw, str) else (brief.hero_prize or ""),
            value_hint=(
                _format_floor(brief.hero_prize_value)
                if brief.hero_prize_value
                else ("Experiential" if s.overlay_experiential else None)
            ),
            count=s.hero_count or None,
            narrative="Premium/experience overlay intended to add PR heat." if s.overlay_experiential else None,
        )

    story_notes = (
        [
            "If there is a symbolic or bridge reward, dramatise it with naming and storytelling "
            "so shoppers grasp why it matters."
        ]
        if s.symbolic_signals
        else []
    )

    budget_note = None
    if s.prize_pool_estimate and s.total_winners:
        ratio = (
            f" (~{s.prize_budget_ratio * 100:.1f}% of retail at ASP × entries)" if s.prize_budget_ratio else ""
        )
        budget_note = (
            f"Approx prize pool ${_money(s.prize_pool_estimate)} covering "
            f"{_format_floor(s.total_winners)} winners{ratio}."
        )

    diagnostics = OfferDiagnostics(
        value_amount=rep,
        asp_anchor=s.asp,
        percent_of_asp=percent_rep if assured else None,
        expected_buyers=s.expected_buyers,
        total_winners=s.total_winners,
        coverage_rate=s.coverage_rate,
        cadence_signals=s.cadence_signals,
        symbolic_signals=s.symbolic_signals,
        prize_pool_estimate=s.prize_pool_estimate,
        prize_budget_ratio=s.prize_budget_ratio,
        budget_note=budget_note,
        headline_max=s.headline_max,
        banded=s.banded,
        overlay=s.overlay,
        overlay_experiential=s.overlay_experiential,
        overlay_label=s.overlay_label,
        has_benchmarks=s.benchmarks is not None,
        cashback_vs_market=adequacy_result.cashback_vs_market,
        hero_vs_market=adequacy_result.hero_vs_market,
    )

    return OfferIQ(
        score=round(score, 1),
        verdict=verdict,
        confidence=confidence,
        lenses=lenses,
        hard_flags=hard_flags,
        recommendations=recommendations,
        asks=unique_strings(asks),
        hero_overlay=hero_overlay,
        story_notes=story_notes,
        mode=s.mode,
        diagnostics=diagnostics,
    )


def _recommendations(s: OfferSignals, lenses: Lenses, absolute_floor: float) -> List[str]:
    assured = s.mode is OfferMode.ASSURED
    rep = s.rep_amount
    research_recs: List[str] = []

    bench = s.cb_bench
    if assured and bench is not None and rep > 0:
        if bench.p25 is not None and rep < bench.p25:
            research_recs.append(
                f"Raise assured value toward market lower quartile (≥${round(bench.p25)}), "
                "or shift to premium GWP with explicit RRP."
            )
        elif bench.p75 is not None and rep >= bench.p75:
            research_recs.append("Exploit strength: headline the number; keep claim flow low-hassle to convert.")

    if not assured:
        share = s.cadence_share
        if s.hero_count == 1 and (s.hero_bench_median or s.hero_bench_mode):
            research_recs.append("Boost perceived odds: consider 2–3 major prizes and/or instant/weekly cadence headline.")
        if s.hero_count >= 4 and s.many_winners_share is not None and s.many_winners_share > 0.2:
            research_recs.append(
                "Rebalance: trim major-prize count; fund “many winners” or instant wins to widen perceived odds."
            )
        if not s.cadence_signals and share is not None and (share.instant >= 0.25 or share.weekly >= 0.3):
            research_recs.append("Add visible cadence (instant or weekly) to match in-market fairness signals.")
        ratio = s.prize_budget_ratio
        if ratio is not None and ratio > 0.12:
            research_recs.append(
                "Prize budget is heavy (>12% of projected retail). Sense-check ROI or add spend thresholds "
                "before funding 2,000+ prizes."
            )
        elif ratio is not None and ratio < 0.005:
            research_recs.append(
                "Prize spend is under 0.5% of projected retail; consider adding a small guaranteed element "
                "or more winners."
            )

    candidates: List[str] = []
    if lenses.adequacy.score < 7:
        candidates.append(lenses.adequacy.fix)
    if lenses.simplicity.score < 7:
        candidates.append(lenses.simplicity.fix)
    if lenses.salience.score < 7:
        candidates.append(lenses.salience.fix)
    if not assured and (not s.cadence_signals or s.coverage_rate is None):
        candidates.append("Publish “Total winners” and show cadence prominently.")
    if assured and s.banded and rep < absolute_floor:
        candidates.append("Consider rebasing band near ASP or spotlighting a premium GWP with explicit RRP.")
    candidates.extend(research_recs)

    seen = set()
    out: List[str] = []
    for rec in candidates:
        if rec in seen:
            continue
        seen.add(rec)
        out.append(rec)
    return out[:MAX_RECOMMENDATIONS]
