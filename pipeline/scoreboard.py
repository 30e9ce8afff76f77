"""
Decision Gate
Ten traffic-light cells built from the brief and the offer diagnostics, gated
into GO / GO WITH CONDITIONS / NO-GO and ratcheted against the offer verdict.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import re
from typing import Dict, List, Optional, Tuple

from core import (
    CRITICAL_KEYS,
    SCOREBOARD_KEYS,
    BoardCell,
    CampaignContext,
    CategoryTag,
    Decision,
    HardFlag,
    OfferIQ,
    OfferMode,
    ResearchPack,
    Scoreboard,
    Traffic,
    Verdict,
)
from pipeline.categories import classify_category
from pipeline.valuation import promo_type
from utils.text import unique_strings


logger = logging.getLogger(__name__)

BREADTH_STRONG = 1500
BREADTH_SOLID = 800
MAX_DEALBREAKERS = 5

SEVERITY = {
    Decision.GO: 1,
    Decision.GO_WITH_CONDITIONS: 2,
    Decision.NO_GO: 3,
}

VERDICT_DECISION = {
    Verdict.GO: Decision.GO,
    Verdict.GO_WITH_CONDITIONS: Decision.GO_WITH_CONDITIONS,
    Verdict.REVIEW: Decision.GO_WITH_CONDITIONS,
    Verdict.NO_GO: Decision.NO_GO,
}

EXPERIENTIAL_TOKENS = (
    "trip", "experience", "tickets", "tour", "stay", "holiday", "travel", "flight",
    "hotel", "the ghan", "rail", "cruise", "festival", "concert", "event",
)
FREQUENCY_TYPES = ("STAMP", "COLLECT", "TIER", "LOYALTY")
LOW_FRICTION = ("none", "low", "1-step")
HIGH_FRICTION = ("high", "receipt", "proof", "multi")
PROOF_FRICTION = ("receipt", "proof", "multi")
ALCOHOL_TOKENS = ("alcohol", "beer", "wine", "spirits", "liquor")
TRAVEL_TOKENS = ("trip", "travel", "flight", "holiday")

_SHAREABLE = re.compile(r"(double\s+(?:movie\s+)?pass|double\s+ticket|two\s+tickets)", re.IGNORECASE)

ASSURED_CONDITIONS = "Lead with guaranteed value; confirm POS; treat any major-prize overlay only if briefed."
PRIZE_CONDITIONS = "Tighten hook, show breadth of winners, confirm POS and compliance lines."
ASSURED_NO_GO_CONDITIONS = (
    "Rework the value to meet category floors (absolute or % of ASP) or pivot to a premium GWP with explicit RRP."
)
PRIZE_NO_GO_CONDITIONS = (
    "Perceived odds are too thin. Increase total winners or make cadence highly visible; publish “Total winners”."
)
PRIZE_REVIEW_FIX = "Publish “Total winners”, clarify cadence, and provide expected buyers/entries for a firmer read."


def includes_any(haystack: str, needles) -> bool:
    text = (haystack or "").lower()
    return any(needle.lower() in text for needle in needles)


@dataclass(frozen=True)
class PrizeRules:
    """Breadth and shareable-reward facts derived from the brief."""

    total_winners: Optional[float]
    ticket_pool: Optional[float]
    shareable: bool
    shareable_alternate: Optional[int]
    breadth_strong: bool
    breadth_solid: bool


def prize_rules(ctx: CampaignContext) -> PrizeRules:
    brief = ctx.brief
    total = brief.total_winners or brief.breadth_prize_count or brief.winner_count
    shareable = any(_SHAREABLE.search(value or "") for value in [brief.hero_prize or "", *brief.assured_items])
    return PrizeRules(
        total_winners=total,
        ticket_pool=total * (2 if shareable else 1) if total is not None else None,
        shareable=shareable,
        shareable_alternate=max(1, round(total / 2)) if total is not None and not shareable else None,
        breadth_strong=total is not None and total >= BREADTH_STRONG,
        breadth_solid=total is not None and total >= BREADTH_SOLID,
    )


def _fmt(value: Optional[float]) -> str:
    if value is None:
        return "n/a"
    return str(int(value)) if float(value).is_integer() else f"{value:g}"


def _join(*parts: str) -> str:
    return " ".join(part for part in parts if part)


def _market_cashback_note(research: Optional[ResearchPack], rep_amount: float) -> str:
    benchmarks = research.benchmarks if research is not None else None
    summary = benchmarks.cashback if benchmarks is not None else None
    if summary is None or not summary.sample or rep_amount <= 0 or not summary.typical_abs:
        return ""
    typical = round(summary.typical_abs)
    if rep_amount < summary.typical_abs:
        return f"Sits below typical cashback in market (~${typical})."
    if rep_amount > summary.typical_abs:
        return f"Beats typical cashback in market (~${typical})."
    return f"In line with typical cashback in market (~${typical})."


def build_scoreboard(
    ctx: CampaignContext,
    offer: OfferIQ,
    research: Optional[ResearchPack] = None,
) -> Scoreboard:
    """Initial board; the decision is set later by ``decide``."""
    brief = ctx.brief
    hook = brief.hook or ""
    mechanic = brief.mechanic_one_liner or ""
    kind = promo_type(brief)
    retailers = unique_strings(brief.retailers)
    market = (ctx.market or "AU").upper()
    category = (ctx.category or "").lower()
    friction_budget = (brief.friction_budget or "").lower()
    hero_prize = brief.hero_prize or ""
    hero_count = brief.hero_prize_count or 0
    rules = prize_rules(ctx)

    experiential_hero = includes_any(" ".join(filter(None, [hero_prize, hook, mechanic, ctx.title])), EXPERIENTIAL_TOKENS)

    assured_items = unique_strings(brief.assured_items)
    via_cashback = (kind == "CASHBACK" or brief.cashback is not None) and brief.cashback is not None
    via_gwp = (kind == "GWP" or brief.gwp is not None) and brief.gwp is not None and brief.gwp.cap in (None, "UNLIMITED")
    via_flag = bool(brief.assured_value or assured_items)
    assured = via_cashback or via_gwp or via_flag

    breadth = rules.total_winners
    shareable_text = ""
    if not assured and rules.shareable:
        shareable_text = (
            f"Shareable reward already live: {_fmt(breadth)} double passes ({_fmt(rules.ticket_pool)} tickets)."
            if breadth is not None and rules.ticket_pool is not None
            else "Shareable reward already live; keep celebrating two-seat value."
        )
    elif not assured and rules.shareable_alternate is not None and rules.ticket_pool is not None:
        shareable_text = (
            f"If we pivot to double passes, keep the {_fmt(rules.ticket_pool)} ticket pool "
            f"while winners halve to ~{rules.shareable_alternate}."
        )

    # Status
    if assured and includes_any(friction_budget, PROOF_FRICTION):
        friction = Traffic.AMBER
    elif includes_any(friction_budget, LOW_FRICTION):
        friction = Traffic.GREEN
    elif includes_any(friction_budget, HIGH_FRICTION):
        friction = Traffic.RED
    else:
        friction = Traffic.AMBER

    if assured:
        reward_shape = Traffic.GREEN
    elif not hero_prize:
        reward_shape = Traffic.GREEN if rules.breadth_strong else Traffic.AMBER if rules.breadth_solid else Traffic.RED
    else:
        reward_shape = Traffic.GREEN if hero_count >= 50 or rules.breadth_strong else Traffic.AMBER

    alcohol = includes_any(category, ALCOHOL_TOKENS) or classify_category(ctx) is CategoryTag.ALCOHOL
    compliance = Traffic.AMBER if alcohol and market == "AU" else Traffic.GREEN
    fulfilment = Traffic.AMBER if includes_any(hero_prize, TRAVEL_TOKENS) else Traffic.GREEN
    repeatable = includes_any(kind, FREQUENCY_TYPES)

    status: Dict[str, Traffic] = {
        "objective_fit": Traffic.AMBER,
        "hook_strength": Traffic.AMBER if hook else Traffic.RED,
        "mechanic_fit": Traffic.GREEN if mechanic else Traffic.AMBER,
        "frequency_potential": Traffic.GREEN if repeatable else Traffic.AMBER,
        "friction": friction,
        "reward_shape": reward_shape,
        "retailer_readiness": Traffic.AMBER if retailers else Traffic.RED,
        "compliance_risk": compliance,
        "fulfilment": fulfilment,
        "kpi_realism": Traffic.AMBER,
    }

    # Why
    retailers_line = f" ({', '.join(retailers)})" if retailers else ""
    hero_line = f"{hero_prize} x{hero_count}" if hero_count else hero_prize

    if via_cashback:
        assured_why = _join(
            "Guaranteed cashback for qualifiers; communicates certainty and fairness.",
            _market_cashback_note(research, offer.diagnostics.value_amount),
        )
    elif via_gwp:
        assured_why = "Guaranteed gift-with-purchase (no artificial scarcity stated)."
    elif via_flag and assured_items:
        assured_why = f"Guaranteed reward for every entrant: {', '.join(assured_items[:3])}."
    else:
        assured_why = "Guaranteed reward for every entrant (no artificial scarcity)."

    if assured:
        reward_why = assured_why
    elif not hero_prize:
        if rules.breadth_strong:
            reward_why = _join(f"Breadth-led reward with ~{_fmt(breadth)} winners keeps odds credible.", shareable_text)
        elif rules.breadth_solid:
            reward_why = _join(
                f"Breadth-led reward with ~{_fmt(breadth)} winners is serviceable; make cadence and win proof explicit.",
                shareable_text,
            )
        else:
            reward_why = _join(
                "Breadth-led reward feels thin; publish total winners and prove daily wins.", shareable_text
            )
    elif experiential_hero:
        breadth_tail = f" with {_fmt(breadth)} instants as proof of fairness." if rules.breadth_strong else "."
        reward_why = _join(f"Experiential hero carries emotion ({hero_line}){breadth_tail}", shareable_text)
    else:
        breadth_hint = f" (~{_fmt(breadth)} instants)" if breadth else ""
        reward_why = _join(
            f"Hero prize: {hero_line}. Pair it with visible breadth{breadth_hint} to keep odds believable.",
            shareable_text,
        )

    proof_tail = " (mail-in or multi-proof at first step)" if includes_any(friction_budget, PROOF_FRICTION) else ""
    why: Dict[str, str] = {
        "objective_fit": "Objective not crisply named or spread across too many aims.",
        "hook_strength": (
            f"Hook exists (“{hook}”) but needs tightening and brand-locking."
            if hook
            else "No short, premium line for pack/POS."
        ),
        "mechanic_fit": f"Mechanic defined: {mechanic}." if mechanic else "Mechanic not stated in one line.",
        "frequency_potential": (
            "Has a natural reason to come back." if repeatable else "Repeat rhythm not explicit for this format."
        ),
        "friction": (
            f"Entry is genuinely onerous{proof_tail}. This will suppress trial."
            if friction is Traffic.RED
            else "Admin is acceptable; no action required."
        ),
        "reward_shape": reward_why,
        "retailer_readiness": (
            f"Retailers named{retailers_line}. Keep staff workload near zero."
            if retailers
            else "Ranging and POS not confirmed yet."
        ),
        "compliance_risk": (
            "RSA/ABAC sensitivities likely in AU." if compliance is Traffic.AMBER else "Standard trade promo guardrails."
        ),
        "fulfilment": (
            "Travel fulfilment needs clear rules, blackout dates and timelines."
            if fulfilment is Traffic.AMBER
            else "Central fulfilment looks straightforward."
        ),
        "kpi_realism": "Entry band not named; prize/media not back-solved to that range.",
    }

    # Fix
    if assured:
        reward_fix = (
            "Change-from: value story buried in admin. → Change-to: lead with the guaranteed reward; "
            "dramatise proof and fulfilment while keeping ops zero-lift."
        )
    elif experiential_hero:
        reward_fix = (
            "Change-from: one big experience. → Change-to: keep the hero trip, add echo rewards aligned to the "
            "experience (runner-ups/merch/credit), and make breadth visible; publish “Total winners”."
        )
    elif hero_prize:
        reward_fix = (
            f"Change-from: hero-only ({hero_line}). → Change-to: add runner-ups/instants; "
            "show breadth and cadence clearly."
        )
    else:
        reward_fix = "Change-from: no hero prize. → Change-to: hero + breadth (instants/weeklies); publish total winners."

    fixes: Dict[str, Optional[str]] = {
        "objective_fit": (
            "Change-from: diffuse aims. → Change-to: one KPI (e.g., +8–12% ROS) and shape comms/value to it."
        ),
        "hook_strength": (
            f"Change-from: long/soft hook (“{hook}”). → Change-to: 2–6 words, brand-locked, used on pack "
            "and the first screen."
            if hook
            else "Change-from: no clear hook. → Change-to: write one 2–6 word, premium line and lock the brand into it."
        ),
        "mechanic_fit": (
            f"Change-from: {mechanic}. → Change-to: staff-explainable in five seconds; keep admin post-entry."
            if mechanic
            else "Change-from: unstated mechanic. → Change-to: one-line, staff-explainable entry."
        ),
        "frequency_potential": (
            "Change-from: one-and-done feel. → Change-to: a light cadence of confirmation/membership moments "
            "(no prize draws)."
            if assured
            else "Change-from: one-off entry. → Change-to: light weekly moment + bonus entries at 2 and 4 units."
        ),
        "friction": (
            "Remove mail-in / first-step proof / multi-upload. Make first touch minimal; shift verification post-entry."
            if friction is Traffic.RED
            else None
        ),
        "reward_shape": reward_fix,
        "retailer_readiness": (
            f"Change-from: loose POS{retailers_line}. → Change-to: pre-packed POS kits; no staff adjudication; "
            "central processing."
            if retailers
            else "Change-from: no retailer plan. → Change-to: confirm banners; ship POS kits; zero staff workload."
        ),
        "compliance_risk": (
            "Change-from: implied RSA risk. → Change-to: age gate, RSA/ABAC lines, no consumption cues, moderation plan."
            if compliance is Traffic.AMBER
            else "Maintain RSA copy; keep moderation plan logged."
        ),
        "fulfilment": (
            "Change-from: bespoke travel fulfilment. → Change-to: travel credit/concierge; blackout dates; "
            "published timelines."
            if fulfilment is Traffic.AMBER
            else "Maintain central fulfilment with clear SLAs."
        ),
        "kpi_realism": "Change-from: no entry band. → Change-to: set range, back-solve media and ops to it.",
    }

    cells = {}
    for key in SCOREBOARD_KEYS:
        cell_status = status[key]
        fix = fixes[key] if cell_status in (Traffic.AMBER, Traffic.RED) else None
        cells[key] = BoardCell(status=cell_status, why=why[key], fix=fix)

    return Scoreboard(
        **cells,
        decision=Decision.GO_WITH_CONDITIONS,
        conditions=ASSURED_CONDITIONS if assured else PRIZE_CONDITIONS,
    )


@dataclass
class GateResult:
    decision: Decision
    reds: List[Tuple[str, BoardCell]] = field(default_factory=list)
    ambers: List[Tuple[str, BoardCell]] = field(default_factory=list)
    has_critical_red: bool = False
    dealbreakers: List[str] = field(default_factory=list)


def more_severe(a: Decision, b: Decision) -> Decision:
    return b if SEVERITY[b] >= SEVERITY[a] else a


def gate_scoreboard(board: Scoreboard, offer: Optional[OfferIQ] = None) -> GateResult:
    """
    Gate the board and ratchet against the offer verdict.

    Critical RED -> NO-GO; any other RED or AMBER -> GO WITH CONDITIONS;
    otherwise GO. The offer verdict can only raise severity.
    """
    reds: List[Tuple[str, BoardCell]] = []
    ambers: List[Tuple[str, BoardCell]] = []
    for key, cell in board.cells().items():
        if cell.status is Traffic.RED:
            reds.append((key, cell))
        elif cell.status is Traffic.AMBER:
            ambers.append((key, cell))

    has_critical_red = any(key in CRITICAL_KEYS for key, _ in reds)
    if has_critical_red:
        decision = Decision.NO_GO
    elif reds or ambers:
        decision = Decision.GO_WITH_CONDITIONS
    else:
        decision = Decision.GO

    if offer is not None:
        decision = more_severe(decision, VERDICT_DECISION[offer.verdict])

    dealbreakers = [cell.why for key, cell in reds if key in CRITICAL_KEYS][:MAX_DEALBREAKERS]
    return GateResult(
        decision=decision,
        reds=reds,
        ambers=ambers,
        has_critical_red=has_critical_red,
        dealbreakers=dealbreakers,
    )


def apply_override(board: Scoreboard, offer: OfferIQ) -> Scoreboard:
    """
    Replace the reward-shape cell with the offer's adequacy reading.

    Only a confident NO-GO (assured, or prize with tiny coverage) or a
    low-confidence prize read triggers it; the board is returned unchanged
    otherwise.
    """
    adequacy = offer.lenses.adequacy
    confident_no_go = offer.verdict is Verdict.NO_GO and offer.confidence >= 0.7
    prize = offer.mode is OfferMode.PRIZE
    coverage_tiny = prize and HardFlag.COVERAGE_TINY in offer.hard_flags

    if confident_no_go and (offer.mode is OfferMode.ASSURED or coverage_tiny):
        logger.info(f"scoreboard.override reward_shape=RED mode={offer.mode.value}")
        return board.model_copy(
            update={
                "reward_shape": BoardCell(status=Traffic.RED, why=adequacy.why, fix=adequacy.fix),
                "decision": Decision.NO_GO,
                "conditions": ASSURED_NO_GO_CONDITIONS if not prize else PRIZE_NO_GO_CONDITIONS,
            }
        )

    if prize and offer.confidence < 0.6:
        logger.info("scoreboard.override reward_shape=AMBER mode=PRIZE")
        requires = f" Requires: {' • '.join(offer.asks)}" if offer.asks else ""
        provide = f" Provide: {'; '.join(offer.asks)}." if offer.asks else ""
        return board.model_copy(
            update={
                "reward_shape": BoardCell(status=Traffic.AMBER, why=adequacy.why + requires, fix=PRIZE_REVIEW_FIX),
                "conditions": board.conditions + provide,
            }
        )
    return board


def decide(
    ctx: CampaignContext,
    offer: OfferIQ,
    research: Optional[ResearchPack] = None,
) -> Scoreboard:
    """Build, gate, ratchet and (when not GO) override; dealbreakers reflect the final board."""
    board = build_scoreboard(ctx, offer, research)
    gate = gate_scoreboard(board, offer)
    board = board.model_copy(update={"decision": gate.decision})

    if gate.decision is not Decision.GO:
        board = apply_override(board, offer)

    final = gate_scoreboard(board, offer)
    decision = more_severe(board.decision, final.decision)
    logger.info(
        f"scoreboard.decided decision={decision.value} reds={len(final.reds)} "
        f"ambers={len(final.ambers)} dealbreakers={len(final.dealbreakers)}"
    )
    return board.model_copy(update={"decision": decision, "dealbreakers": final.dealbreakers})
