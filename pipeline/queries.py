"""
Query planning
Template tables that expand a classified campaign into search queries:
promo discovery seeds and the live fact queries for each pack section.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import re
from typing import Dict, FrozenSet, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from core import CategoryTag, LiquorSub
from pipeline.facts import BriefSignals
from utils.text import unique_strings


class Template(NamedTuple):
    text: str
    cashback_only: bool = False


def _cb(text: str) -> Template:
    """Template only used when the campaign is assured-value."""
    return Template(text, cashback_only=True)


def _t(*texts: str) -> Tuple[Template, ...]:
    return tuple(Template(text) for text in texts)


GROCERY: FrozenSet[CategoryTag] = frozenset(
    {CategoryTag.ENERGY, CategoryTag.FMCG, CategoryTag.COFFEE, CategoryTag.DAIRY, CategoryTag.CHEESE, CategoryTag.SNACKS}
)
DURABLES: FrozenSet[CategoryTag] = frozenset({CategoryTag.APPLIANCES, CategoryTag.ELECTRONICS})
SERVICES: FrozenSet[CategoryTag] = frozenset({CategoryTag.TELCO, CategoryTag.BANKING, CategoryTag.INSURANCE})
ALCOHOL: FrozenSet[CategoryTag] = frozenset({CategoryTag.ALCOHOL})
QSR: FrozenSet[CategoryTag] = frozenset({CategoryTag.QSR})

# Competitor live-fact queries add instant-win variants only for these.
PACK_GOODS: FrozenSet[CategoryTag] = frozenset(
    {CategoryTag.FMCG, CategoryTag.SNACKS, CategoryTag.DAIRY, CategoryTag.COFFEE}
)

TemplateTable = Sequence[Tuple[Optional[FrozenSet[CategoryTag]], Tuple[Template, ...]]]

# ---------------------------------------------------------------------------
# Promo discovery seeds. Placeholders: {x} subject, {m} market label.
# A ``None`` group is the default row.
# ---------------------------------------------------------------------------

ON_PREMISE_VARIANTS = _t("{x} pub promotion {m}", "{x} bar activation {m}", "{x} on premise promotion {m}")

COMPETITOR_SEEDS: TemplateTable = (
    (ALCOHOL, _t(
        "{x} win competition Australia", "{x} gift with purchase Australia",
        "{x} prize draw Australia", "{x} instant win Australia",
    )),
    (GROCERY, _t(
        "{x} instant win Australia", "{x} prize draw Australia",
        "{x} on-pack promotion Australia", "{x} competition Australia",
    )),
    (DURABLES, (
        Template("{x} win competition Australia"), _cb("{x} cashback promotion Australia"),
        Template("{x} gift with purchase Australia"), Template("{x} prize draw Australia"),
    )),
    (SERVICES, _t("{x} competition Australia", "{x} prize Australia", "{x} bonus offer Australia")),
    (QSR, _t("{x} instant win Australia", "{x} app rewards Australia", "{x} prize draw Australia")),
    (None, _t("{x} prize draw Australia", "{x} competition Australia")),
)

BRAND_SEEDS: TemplateTable = (
    (ALCOHOL, _t("{x} prize draw Australia", "{x} competition Australia", "{x} gift with purchase Australia")),
    (GROCERY, _t("{x} instant win Australia", "{x} prize draw Australia", "{x} on-pack promotion Australia")),
    (DURABLES, (
        _cb("{x} cashback Australia"), Template("{x} prize draw Australia"), Template("{x} competition Australia"),
    )),
    (SERVICES, _t("{x} competition Australia", "{x} prize Australia", "{x} bonus offer Australia")),
    (QSR, _t("{x} instant win Australia", "{x} app rewards Australia", "{x} competition Australia")),
    (None, _t("{x} prize draw Australia", "{x} competition Australia")),
)

BRAND_ON_PREMISE = _t(
    "{x} pub promotion {m}", "{x} bar activation {m}",
    "{x} St Patrick's Day pub promotion", "{x} on premise promotion {m}",
)

CATEGORY_SEEDS: TemplateTable = (
    (ALCOHOL, _t("{x} prize draw Australia", "{x} gift with purchase Australia", "{x} instant win Australia")),
    (GROCERY, _t("{x} instant win Australia", "{x} prize draw Australia", "{x} on-pack Australia")),
    (DURABLES, (_cb("{x} cashback Australia"), Template("{x} prize draw Australia"))),
    (SERVICES, _t("{x} competition Australia", "{x} prize draw Australia")),
    (QSR, _t("{x} instant win Australia", "{x} app rewards Australia")),
    (None, _t("{x} prize draw Australia")),
)

RETAILER_SEEDS: TemplateTable = (
    (ALCOHOL, _t(
        "{x} win competition Australia", "{x} prize draw Australia",
        "{x} instant win Australia", "{x} bonus gift Australia",
    )),
    (GROCERY, _t("{x} instant win Australia", "{x} prize draw Australia", "{x} on-pack Australia")),
    (DURABLES, (
        Template("{x} win competition Australia"), Template("{x} prize draw Australia"),
        Template("{x} instant win Australia"), _cb("{x} cashback Australia"),
    )),
    (SERVICES, _t("{x} competition Australia", "{x} prize Australia", "{x} bonus Australia")),
    (QSR, _t("{x} instant win Australia", "{x} app rewards Australia", "{x} competition Australia")),
)

ON_PREMISE_SEEDS = _t(
    "{x} pub activation {m}",
    "{x} bar promotion {m}",
    "St Patrick's Day pub promotion Australia",
    "on premise bar promotion Australia",
    "pub promotion instant win Australia",
)

# ---------------------------------------------------------------------------
# Live fact queries. Placeholders: {b} brand, {c} category, {m} market label.
# ---------------------------------------------------------------------------

BRAND_FACT_QUERIES: TemplateTable = (
    (ALCOHOL, _t("{b} Australia", "{b} win competition Australia", "{b} gift with purchase Australia")),
    (GROCERY, _t(
        "{b} Australia", "{b} instant win Australia", "{b} prize draw Australia", "{b} on-pack promotion Australia",
    )),
    (frozenset({CategoryTag.TELCO}), _t("{b} Australia", "{b} plan bonus Australia", "{b} competition Australia")),
    (frozenset({CategoryTag.INSURANCE}), _t("{b} Australia", "{b} promotion Australia", "{b} competition Australia")),
    (frozenset({CategoryTag.BANKING}), _t("{b} Australia", "{b} bonus offer Australia", "{b} competition Australia")),
    (QSR, _t("{b} Australia", "{b} instant win Australia", "{b} prize Australia")),
    (None, (Template("{b} Australia"), _cb("{b} cashback Australia"), Template("{b} prize draw Australia"))),
)

CATEGORY_FACT_QUERIES: TemplateTable = (
    (ALCOHOL, _t("{c} Australia promotion", "{c} prize draw Australia", "{c} gift with purchase Australia")),
    (GROCERY, _t("{c} promotions Australia", "{c} instant win Australia", "{c} on-pack promotion Australia")),
    (frozenset({CategoryTag.TELCO}), _t("{c} Australia plan promotion", "{c} bonus gift Australia")),
    (frozenset({CategoryTag.INSURANCE, CategoryTag.BANKING}), _t("{c} Australia promotion", "{c} prize draw Australia")),
    (QSR, _t("{c} instant win Australia", "{c} app rewards Australia")),
    (DURABLES, (
        Template("{c} Australia promotion"), _cb("{c} cashback Australia"), Template("{c} prize draw Australia"),
    )),
    (None, _t("{c} Australia market trend", "{c} promotion Australia")),
)

AUDIENCE_FACT_QUERIES: TemplateTable = (
    (ALCOHOL, _t(
        "Australia liquor promotion regulations RSA ABAC",
        "Australia liquor shopper trends prize draws",
        "{c} purchase drivers Australia",
    )),
    (frozenset({CategoryTag.TELCO}), _t(
        "ACMA Australia telco customer complaints summary",
        "Australia mobile plan purchase drivers",
        "telco promo response Australia",
    )),
    (frozenset({CategoryTag.INSURANCE}), _t(
        "ASIC Australia insurance consumer insights",
        "insurance purchase drivers Australia",
        "claims simplicity consumer research AU",
    )),
    (frozenset({CategoryTag.BANKING}), _t(
        "ASIC Australia banking consumer insights",
        "credit card sign-up drivers Australia",
        "bank promotions Australia",
    )),
    (QSR, _t("Australia quick service restaurant consumer trends", "QSR promotions Australia app rewards")),
    (DURABLES, _t("Australia consumer durables purchase drivers", "electronics retail promotion trends AU")),
    (None, _t(
        "Australia grocery shopper promotion trends",
        "front-of-store impulse purchase research Australia",
        "AU retail promotional response study",
    )),
)

MARKET_FACT_QUERIES: TemplateTable = (
    (ALCOHOL, _t("Australia liquor retail trends Nielsen IRI", "Australia {sub} category promotion trends")),
    (frozenset({CategoryTag.TELCO}), _t("Australia telco market share ACMA", "mobile plan market trends Australia")),
    (frozenset({CategoryTag.INSURANCE}), _t(
        "Australia insurance market trends", "insurance customer behaviour Australia",
    )),
    (frozenset({CategoryTag.BANKING}), _t(
        "Australia consumer banking trends", "credit card acquisition Australia trends",
    )),
    (QSR, _t("Australia QSR market trends", "QSR promotions Australia")),
    (DURABLES, _t("Australia electronics retail trends", "durables category growth Australia")),
    (None, _t("Australia grocery & convenience retail trends", "{c} category growth Australia")),
)

RETAILER_FACT_QUERIES: TemplateTable = (
    (ALCOHOL, _t("{r} prize draw Australia", "{r} instant win Australia", "{r} bonus gift Australia")),
    (GROCERY, _t(
        "{r} instant win Australia", "{r} prize draw Australia",
        "{r} on-pack promotion Australia", "{r} dessert promotion Australia",
    )),
    (DURABLES, (
        Template("{r} prize draw Australia"), Template("{r} instant win Australia"),
        _cb("{r} cashback Australia"), Template("{r} bonus gift Australia"),
    )),
    (SERVICES, _t("{r} competition Australia", "{r} prize Australia", "{r} bonus offer Australia")),
    (QSR, _t("{r} instant win Australia", "{r} app rewards Australia", "{r} competition Australia")),
)

LIQUOR_SUB_LABELS: Mapping[LiquorSub, str] = {
    LiquorSub.WINE: "wine",
    LiquorSub.SPIRITS: "spirits",
    LiquorSub.CIDER: "cider",
    LiquorSub.RTD: "RTD",
}

LIVE_QUERY_CAP = 12
COMPETITOR_PROFILE_CAP = 48
_ALL_PREFIX = re.compile(r"^all\s", re.IGNORECASE)

FACT_SECTIONS = ("brand", "category", "audience", "market", "retailers", "competitors")


@dataclass(frozen=True)
class QueryInputs:
    """Everything the query tables need about one campaign."""

    tag: CategoryTag
    brand: str = ""
    category: str = ""
    market: str = "Australia"
    competitors: Sequence[str] = ()
    retailers: Sequence[str] = ()
    cues: BriefSignals = field(default_factory=BriefSignals)
    assured: bool = False
    on_premise: bool = False
    dessert: bool = False
    liquor_sub: LiquorSub = LiquorSub.UNKNOWN
    anchor: str = "brand"


def templates_for(table: TemplateTable, tag: CategoryTag) -> Tuple[Template, ...]:
    """First row whose group holds ``tag``, else the default row, else nothing."""
    default: Tuple[Template, ...] = ()
    for group, templates in table:
        if group is None:
            default = templates
        elif tag in group:
            return templates
    return default


def render(templates: Sequence[Template], assured: bool, **values: str) -> List[str]:
    return [t.text.format(**values) for t in templates if assured or not t.cashback_only]


def promo_seeds(inputs: QueryInputs, cap: int) -> List[str]:
    """Ordered, unique promo discovery queries capped at ``cap``."""
    tag, m, assured = inputs.tag, inputs.market, inputs.assured
    on_premise_alcohol = inputs.on_premise and tag is CategoryTag.ALCOHOL
    seeds: List[str] = []

    for name in list(inputs.competitors)[:14]:
        seeds += render(templates_for(COMPETITOR_SEEDS, tag), assured, x=name, m=m)
        if on_premise_alcohol:
            seeds += render(ON_PREMISE_VARIANTS, assured, x=name, m=m)

    if inputs.brand:
        b = inputs.brand
        seeds += render(templates_for(BRAND_SEEDS, tag), assured, x=b, m=m)
        if on_premise_alcohol:
            seeds += render(BRAND_ON_PREMISE, assured, x=b, m=m)
        seeds += [f"{b} {hook} promotion {m}" for hook in inputs.cues.hook_signals[:3]]
        seeds += [f"{b} {r} promotion {m}" for r in list(inputs.retailers)[:5]]

    if inputs.category:
        seeds += render(templates_for(CATEGORY_SEEDS, tag), assured, x=inputs.category, m=m)
        if on_premise_alcohol:
            seeds += render(ON_PREMISE_VARIANTS, assured, x=inputs.category, m=m)

    for r in list(inputs.retailers)[:10]:
        seeds += render(templates_for(RETAILER_SEEDS, tag), assured, x=r, m=m)
        if on_premise_alcohol:
            seeds += render(ON_PREMISE_VARIANTS, assured, x=r, m=m)

    if inputs.on_premise:
        seeds += render(ON_PREMISE_SEEDS, assured, x=inputs.anchor or "brand", m=m)

    queries: List[str] = []
    seen = set()
    for query in seeds:
        if not query or _ALL_PREFIX.match(query) or query in seen:
            continue
        seen.add(query)
        queries.append(query)
    return queries[:cap]


def _brand_queries(inputs: QueryInputs) -> List[str]:
    b, m, cues = inputs.brand, inputs.market, inputs.cues
    out: List[str] = []
    if b:
        out += [f"{b} shopper promotion {m}", f"{b} consumer insights {m}", f"{b} brand campaign {m}"]
        out += [f"{b} {objective} promotion {m}" for objective in cues.key_objectives[:4]]
        out += [f"{b} {hook} promotion {m}" for hook in cues.hook_signals[:3]]
        out += render(templates_for(BRAND_FACT_QUERIES, inputs.tag), inputs.assured, b=b)
    return out


def _audience_queries(inputs: QueryInputs) -> List[str]:
    b, m, cues = inputs.brand, inputs.market, inputs.cues
    out: List[str] = []
    if b:
        out += [
            f"{b} shopper insights {m}",
            f"{b} consumer research {m}",
            f"{b} buyer insight {m}",
            f"{b} audience profile Australia",
        ]
    for descriptor in cues.audience_descriptors[:6]:
        out += [f"{descriptor} shopper insights {m}", f"{descriptor} promotion response {m}"]
    out += [f"{t} consumer tension {m}" for t in cues.buyer_tensions[:5]]
    out += [f"{t} purchase trigger insights {m}" for t in cues.purchase_triggers[:5]]
    out += [f"{ch} shopper behaviour {m}" for ch in cues.key_channels[:4]]
    out += render(templates_for(AUDIENCE_FACT_QUERIES, inputs.tag), inputs.assured, c=inputs.category)
    return out


def _competitor_queries(inputs: QueryInputs) -> List[str]:
    m, tag = inputs.market, inputs.tag
    out: List[str] = []
    profiles: List[str] = []
    for comp in list(inputs.competitors)[:8]:
        out.append(f"{comp} promotion {m}")
        if tag in PACK_GOODS:
            out += [f"{comp} instant win {m}", f"{comp} movie ticket promotion"]
        elif tag is CategoryTag.ALCOHOL:
            out.append(f"{comp} tasting experience Australia")
        else:
            out.append(f"{comp} competition {m}")
        profiles += [f"{comp} brand overview {m}", f"{comp} shopper insight {m}", f"{comp} retail distribution Australia"]
        if inputs.dessert:
            profiles.append(f"{comp} chilled dessert brand Australia")
        if inputs.brand:
            profiles += [
                f"{inputs.brand} vs {comp}",
                f"{inputs.brand} and {comp} market share",
                f"{inputs.brand} {comp} comparison Australia",
            ]
    return out + unique_strings(profiles, COMPETITOR_PROFILE_CAP)


def _market_queries(inputs: QueryInputs) -> List[str]:
    b, m = inputs.brand, inputs.market
    sub = LIQUOR_SUB_LABELS.get(inputs.liquor_sub, "beer")
    out = render(templates_for(MARKET_FACT_QUERIES, inputs.tag), inputs.assured, c=inputs.category, sub=sub)
    if b:
        out += [f"{b} market share {m}", f"{b} category performance {m}", f"{b} sales growth {m}"]
    return out


def _retailer_queries(inputs: QueryInputs) -> List[str]:
    b, m = inputs.brand, inputs.market
    out: List[str] = []
    for r in list(inputs.retailers)[:8]:
        if b:
            out += [
                f"{b} {r} promotion {m}",
                f"{b} {r} activation Australia",
                f"{b} {r} buyer pitch",
                f"{b} {r} range review",
                f"{b} {r} case study",
            ]
        out += render(templates_for(RETAILER_FACT_QUERIES, inputs.tag), inputs.assured, r=r)
    if b:
        out += [f"{b} ranging Australia", f"{b} retail buyer feedback", f"{b} supermarket partnership Australia"]
    return out


def live_fact_queries(inputs: QueryInputs, per_section: int = LIVE_QUERY_CAP) -> Dict[str, List[str]]:
    """Live fact queries keyed by pack section, each unique and capped."""
    category_queries = (
        render(templates_for(CATEGORY_FACT_QUERIES, inputs.tag), inputs.assured, c=inputs.category)
        if inputs.category
        else []
    )
    sections = {
        "brand": _brand_queries(inputs),
        "category": category_queries,
        "audience": _audience_queries(inputs),
        "market": _market_queries(inputs),
        "retailers": _retailer_queries(inputs),
        "competitors": _competitor_queries(inputs),
    }
    return {name: unique_strings(queries, per_section) for name, queries in sections.items()}
