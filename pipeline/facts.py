"""
Research facts
Brief-derived facts, category playbook notes, season labels and the
fact-level filters applied to live search evidence.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
import re
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from core import BriefSpec, CampaignContext, CategoryTag, Fact, SearchResult
from pipeline.collector import ECOM_HOST_HINTS, has_ordering_intent
from utils.text import host_of, truncate, unique_strings


BRIEF_SOURCE = "Source: brief"
PLAYBOOK_SOURCE = "Source: indicative (category playbook)"
BEHAVIOURAL_SOURCE = "Source: indicative (behavioural marketing literature)"
BEHAVIOURAL_NOTE = (
    "People infer better odds when many winners are visible; cadence visibility "
    "(e.g., daily awards) increases perceived fairness."
)

ON_PREMISE_TOKENS = ("pub", "bar", "hotel", "tavern", "on-prem", "on premise", "on-premise", "hospitality", "venue")

_USD = re.compile(r"\b(?:usd|us\$|\$usd|u\.s\.?\s*dollars?)\b", re.IGNORECASE)
_ALCOHOL_CATEGORY = re.compile(r"(alcohol|liquor|beer|wine|spirit|cider|rtd|ready[-\s]?to[-\s]?drink)", re.IGNORECASE)
_ALCOHOL_CHANNEL = re.compile(r"(on[-\s]?premise|pub|venue|bottleshop|liquor)", re.IGNORECASE)
_LIQUOR_RETAILER_NAMES = (
    "dan murphy", "dan murphy's", "bws", "liquorland", "first choice", "vintage cellars",
    "cellarbrations", "bottlemart", "iga liquor",
)

WIKIPEDIA_EXTRACT_CHARS = 280
FACT_CLAIM_CHARS = 240

_GROCERY_AUDIENCE = (
    "Fast, on-pack mechanics at shelf perform best; many-winner cues improve perceived odds.",
    "Primary grocery buyers (often mums) purchase chilled desserts for the household; the eater and buyer "
    "differ, so cues must reassure the gatekeeper and excite the family.",
    "Cost-of-living pressure forces shoppers to justify “little luxuries”; desserts that signal affordable "
    "indulgence win space in tight baskets.",
)
_GROCERY_RETAILERS = (
    "Grocery and convenience require simple POS and clear entry triggers; avoid staff involvement.",
    "Coles and Woolworths control the bulk of chilled dessert facings; incremental traffic proof is required "
    "each range review to defend space versus private label and Sara Lee.",
    "Freezer space is rationed, so smaller brands must bring exclusive mechanic support or co-fund promotions "
    "to stay ranged across majors and key independents.",
)
_DURABLES_AUDIENCE = (
    "Considered purchases: concrete value (bonus gift, cashback) and trusted retailer cues lift conversion.",
)

# Section name -> playbook notes, per category.
INDICATIVE_FACTS: Dict[CategoryTag, Dict[str, Tuple[str, ...]]] = {
    CategoryTag.TELCO: {
        "audience": (
            "Bundled value (handset, data, streaming) drives sign-ups; fees and contract lock-ins are barriers.",
            "Clarity on allowances (GB), throttling and extras reduces perceived risk.",
        ),
        "retailers": (
            "Carrier stores and big-box partners (JB Hi-Fi, Harvey Norman) are primary channels for plan push.",
            "Plan promos often use instant-win codes or gift cards for activation at POS.",
        ),
    },
    CategoryTag.INSURANCE: {
        "audience": (
            "Trust and claims simplicity outweigh small premium differences; renewal inertia is strong.",
            "Promos work when they avoid fine-print traps and emphasise transparency.",
        ),
        "retailers": ("Direct online, aggregator sites, and owned CRM are key sales channels in AU.",),
    },
    CategoryTag.BANKING: {
        "audience": (
            "Upfront clarity on fees, interest, and eligibility is essential; perceived hassle suppresses uptake.",
        ),
    },
    CategoryTag.QSR: {
        "audience": ("Recency and convenience drive choice; limited-time offers and collectibles lift repeat.",),
        "retailers": ("Stores need zero staff adjudication; POS kits must be simple and durable.",),
    },
    CategoryTag.BEAUTY: {
        "audience": (
            "Trial and visible value (mini, GWP) outperform abstract prize chances; UGC/social proof helps.",
        ),
        "retailers": (
            "Pharmacy and specialty retailers rely on testers and gift sets; loyalty programs are activation points.",
        ),
    },
    CategoryTag.PET: {
        "audience": ("Health and ingredient reassurance drive trade-ups; vet endorsement cues reduce risk.",),
    },
    CategoryTag.COFFEE: {
        "audience": (
            "Routine and habit cues (morning ritual) matter; immediate value (bonus pods, mugs) beats remote prizes.",
        ),
    },
    CategoryTag.DAIRY: {"audience": _GROCERY_AUDIENCE, "retailers": _GROCERY_RETAILERS},
    CategoryTag.CHEESE: {"audience": _GROCERY_AUDIENCE, "retailers": _GROCERY_RETAILERS},
    CategoryTag.SNACKS: {"audience": _GROCERY_AUDIENCE, "retailers": _GROCERY_RETAILERS},
    CategoryTag.FMCG: {"audience": _GROCERY_AUDIENCE, "retailers": _GROCERY_RETAILERS},
    CategoryTag.APPLIANCES: {"audience": _DURABLES_AUDIENCE},
    CategoryTag.ELECTRONICS: {"audience": _DURABLES_AUDIENCE},
}

_SEASONS = (
    ((6, 7, 8), "Winter"),
    ((9, 10, 11), "Spring"),
    ((12, 1, 2), "Summer"),
    ((3, 4, 5), "Autumn"),
)


@dataclass(frozen=True)
class BriefSignals:
    """Brief cues shared by fact building and query seeding."""

    hook_signals: List[str] = field(default_factory=list)
    prize_signals: List[str] = field(default_factory=list)
    key_channels: List[str] = field(default_factory=list)
    key_objectives: List[str] = field(default_factory=list)
    audience_descriptors: List[str] = field(default_factory=list)
    buyer_tensions: List[str] = field(default_factory=list)
    purchase_triggers: List[str] = field(default_factory=list)
    brand_truths: List[str] = field(default_factory=list)
    distinctive_assets: List[str] = field(default_factory=list)
    tone_of_voice: List[str] = field(default_factory=list)


def collect_brief_signals(brief: BriefSpec) -> BriefSignals:
    assets = brief.distinctive_assets or brief.brand_assets
    return BriefSignals(
        hook_signals=unique_strings([brief.hook, brief.mechanic_one_liner, brief.cadence_copy], 10),
        prize_signals=unique_strings([brief.hero_prize, brief.reward_unit, brief.prize_budget_notes], 10),
        key_channels=unique_strings(brief.media, 10),
        key_objectives=unique_strings([brief.primary_objective, brief.primary_kpi, *brief.secondary_kpis], 8),
        audience_descriptors=unique_strings([*brief.audience, *brief.target_audience], 18),
        buyer_tensions=unique_strings(brief.buyer_tensions, 12),
        purchase_triggers=unique_strings(brief.purchase_triggers, 12),
        brand_truths=unique_strings(brief.brand_truths, 8),
        distinctive_assets=unique_strings(
            [*assets.visual, *assets.verbal, *assets.ritual] if assets else [], 12
        ),
        tone_of_voice=unique_strings(brief.tone_of_voice, 12),
    )


def labelled_facts(label: str, values: Union[str, Iterable[str], None], source: str = BRIEF_SOURCE) -> List[Fact]:
    """One ``Label: value`` fact per non-empty value."""
    if values is None:
        return []
    items = [values] if isinstance(values, str) else list(values)
    return [Fact(claim=f"{label}: {str(v).strip()}", source=source) for v in items if v and str(v).strip()]


@dataclass
class BriefFacts:
    signals: List[Fact] = field(default_factory=list)
    audience_notes: str = ""
    audience: List[Fact] = field(default_factory=list)
    brand: List[Fact] = field(default_factory=list)
    category: List[Fact] = field(default_factory=list)
    retailers: List[Fact] = field(default_factory=list)
    competitors: List[Fact] = field(default_factory=list)
    market: List[Fact] = field(default_factory=list)


def market_label(ctx: CampaignContext) -> str:
    return (ctx.market or "").strip() or "Australia"


def build_brief_facts(ctx: CampaignContext, brand_raw: str, cues: Optional[BriefSignals] = None) -> BriefFacts:
    """Facts that need no network access; every level gets them."""
    brief = ctx.brief
    cues = cues or collect_brief_signals(brief)
    out = BriefFacts()

    rows: Sequence[Tuple[str, object]] = (
        ("Client", ctx.client_name),
        ("Brand", brand_raw),
        ("Campaign objective", brief.primary_objective or brief.primary_kpi),
        ("Secondary KPIs", unique_strings(brief.secondary_kpis, 6)),
        ("Promotion type", brief.type_of_promotion),
        ("Mechanic", brief.mechanic_one_liner),
        ("Hook", brief.hook),
        ("Reward unit", brief.reward_unit),
        ("Budget band", brief.budget_band),
        ("Channels", cues.key_channels),
        ("Season/theme", brief.calendar_theme),
        ("Staff burden", brief.staff_burden),
        ("Proof requirement", brief.proof_type),
        ("Entry mechanic cues", cues.hook_signals),
        ("Prize cues", cues.prize_signals),
        ("Buyer tensions", cues.buyer_tensions),
        ("Purchase triggers", cues.purchase_triggers),
        ("Tone of voice", cues.tone_of_voice),
    )
    for label, value in rows:
        out.signals.extend(labelled_facts(label, value))

    audience = unique_strings(
        [*cues.audience_descriptors, brief.primary_audience, brief.audience_summary], 10
    )
    if audience:
        out.audience_notes = " • ".join(audience)
        out.audience.extend(Fact(claim=f"Audience focus: {a}", source=BRIEF_SOURCE) for a in audience)

    out.brand.extend(labelled_facts("Brand truths", cues.brand_truths))
    out.category.extend(labelled_facts("Distinctive asset", cues.distinctive_assets))
    out.retailers.extend(labelled_facts("Priority retailer", unique_strings(brief.retailers, 10)))
    out.competitors.extend(labelled_facts("Brief competitor", unique_strings(brief.competitors, 10)))
    out.market.extend(labelled_facts("Primary market", market_label(ctx)))
    if ctx.title:
        out.signals.extend(labelled_facts("Campaign title", ctx.title))
    return out


def indicative_facts(tag: CategoryTag) -> Dict[str, List[Fact]]:
    """Category playbook notes keyed by pack section."""
    return {
        section: [Fact(claim=claim, source=PLAYBOOK_SOURCE) for claim in claims]
        for section, claims in INDICATIVE_FACTS.get(tag, {}).items()
    }


def behavioural_fact() -> Fact:
    return Fact(claim=BEHAVIOURAL_NOTE, source=BEHAVIOURAL_SOURCE)


def season_label(ctx: CampaignContext, today: Optional[date] = None) -> Optional[str]:
    """Southern-hemisphere season for AU markets; None elsewhere."""
    if "AU" not in (ctx.market or "").upper():
        return None
    month = (ctx.start_date or today or date.today()).month
    for months, name in _SEASONS:
        if month in months:
            return f"{name} in Australia"
    return "Seasonal context: Australia"


def wikipedia_fact(summary: Optional[Dict[str, str]]) -> List[Fact]:
    if not summary:
        return []
    return [
        Fact(
            claim=truncate(summary["extract"], WIKIPEDIA_EXTRACT_CHARS),
            source=f"Source: Wikipedia — {summary['title']} ({summary['url']})",
        )
    ]


def merge_facts(*groups: Iterable[Fact], cap: Optional[int] = None) -> List[Fact]:
    """Concatenate fact groups, dropping repeated (source, claim) pairs."""
    seen = set()
    out: List[Fact] = []
    for group in groups:
        for fact in group or ():
            key = (fact.source, fact.claim.strip().lower())
            if not fact.claim or key in seen:
                continue
            seen.add(key)
            out.append(fact)
    return out[:cap] if cap is not None else out


def to_facts(results: Iterable[SearchResult], cap: int = 8) -> List[Fact]:
    """``title — snippet`` facts sourced to the result host, deduplicated by source."""
    seen = set()
    rows: List[Fact] = []
    for result in results:
        title = (result.title or "").strip()
        url = (result.url or "").strip()
        if not title or not url:
            continue
        source = f"Source: {host_of(url)} ({url})"
        if source in seen:
            continue
        seen.add(source)
        snippet = (result.snippet or "").strip()
        claim = f"{title} — {snippet}" if snippet else title
        rows.append(Fact(claim=claim[:FACT_CLAIM_CHARS], source=source))
    return rows[:cap]


def filter_out_usd(facts: Iterable[Fact]) -> List[Fact]:
    return [f for f in facts if not _USD.search(f.claim or "")]


def detect_on_premise(retailers: Sequence[str], channels: Sequence[str], brief: BriefSpec) -> bool:
    signals = [
        *retailers,
        *channels,
        brief.staff_burden,
        brief.entry_mechanic,
        brief.mechanic_one_liner,
        brief.raw_notes,
        brief.notes,
    ]
    haystack = " ".join(str(s).lower() for s in signals if s)
    if not haystack:
        return False
    return any(token in haystack for token in ON_PREMISE_TOKENS)


def scrub_on_premise(facts: List[Fact]) -> List[Fact]:
    """Drop shopper/e-commerce facts; keep the originals if nothing survives."""
    if not facts:
        return facts
    kept = [
        f
        for f in facts
        if not any(hint in (f.source or "").lower() for hint in ECOM_HOST_HINTS)
        and not has_ordering_intent(f.claim)
    ]
    return kept or facts


def infer_alcohol_context(ctx: CampaignContext, retailers: Sequence[str]) -> bool:
    if _ALCOHOL_CATEGORY.search(ctx.category or ""):
        return True
    if _ALCOHOL_CHANNEL.search(ctx.brief.channel or ""):
        return True
    lowered = [r.lower() for r in retailers]
    return any(name in r for r in lowered for name in _LIQUOR_RETAILER_NAMES)
