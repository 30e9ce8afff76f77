"""Category classification, category floors and default retailer/competitor seeds.

Rules are ordered tables: the first matching rule wins. Adding a category means
adding a row, not touching the matching code.
"""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Dict, Iterable, NamedTuple, Optional, Sequence, Tuple

from core import CampaignContext, CategoryTag, LiquorSub
from utils.text import unique_strings


class CategoryRule(NamedTuple):
    pattern: "re.Pattern[str]"
    tag: CategoryTag


class LiquorRule(NamedTuple):
    pattern: "re.Pattern[str]"
    sub: LiquorSub


class CategoryDefaults(NamedTuple):
    asp_fallback: float
    absolute_floor: float
    percent_floor: float


CATEGORY_RULES: Tuple[CategoryRule, ...] = (
    CategoryRule(re.compile(r"\b(telco|telecom|mobile|nbn|broadband|phone\s+plan|data\s+plan)\b"), CategoryTag.TELCO),
    CategoryRule(
        re.compile(r"\b(insurance|car\s+insurance|home\s+insurance|life\s+insurance|health\s+insurance)\b"),
        CategoryTag.INSURANCE,
    ),
    CategoryRule(re.compile(r"\b(bank|banking|credit\s*card|debit|savings|mortgage|loan)\b"), CategoryTag.BANKING),
    CategoryRule(
        re.compile(r"\b(qsr|quick\s*service\s*restaurant|fast\s*food|burger|pizza|fried\s*chicken)\b"),
        CategoryTag.QSR,
    ),
    CategoryRule(
        re.compile(r"\b(electronics|tv|television|laptop|console|gaming|smartphone|headphones?)\b"),
        CategoryTag.ELECTRONICS,
    ),
    CategoryRule(re.compile(r"\b(beauty|skincare|makeup|cosmetic|fragrance|pharmacy)\b"), CategoryTag.BEAUTY),
    CategoryRule(re.compile(r"\b(pet\s*food|pet\s*care|cats?|dogs?)\b"), CategoryTag.PET),
    CategoryRule(re.compile(r"\b(coffee|espresso|capsules?|pods?|instant\s*coffee)\b"), CategoryTag.COFFEE),
    CategoryRule(re.compile(r"\b(dairy|milk|yog(ur)?t|butter)\b"), CategoryTag.DAIRY),
    CategoryRule(re.compile(r"\b(cheese|cheddar|brie|gouda|camembert)\b"), CategoryTag.CHEESE),
    CategoryRule(re.compile(r"\b(snack|chips?|crisps|biscuit|confectionery|chocolate|candy)\b"), CategoryTag.SNACKS),
    CategoryRule(re.compile(r"\b(energy\s*drink|functional\s*beverage|isotonic)\b"), CategoryTag.ENERGY),
    CategoryRule(re.compile(r"\b(appliances?|white ?goods?|kitchen appliance)\b"), CategoryTag.APPLIANCES),
    CategoryRule(
        re.compile(r"\b(alcohol|liquor|beer|wine|spirit|cider|rtd|ready[-\s]?to[-\s]?drink)\b"),
        CategoryTag.ALCOHOL,
    ),
    CategoryRule(
        re.compile(
            r"\b(soft\s*drink|soda|cola|water|juice|tea|cereal|pet\s*food|beauty|skincare|cosmetic|dessert|pudding|custard)\b"
        ),
        CategoryTag.FMCG,
    ),
)

LIQUOR_RULES: Tuple[LiquorRule, ...] = (
    LiquorRule(re.compile(r"\bwine|pinot|shiraz|chardonnay|cabernet|merlot|ros[ée]|riesling\b"), LiquorSub.WINE),
    LiquorRule(re.compile(r"\bbeer|lager|ale|stout|ipa|pilsner\b"), LiquorSub.BEER),
    LiquorRule(re.compile(r"\bspirit|whisky|whiskey|gin|vodka|rum|tequila|bourbon|liqueur\b"), LiquorSub.SPIRITS),
    LiquorRule(re.compile(r"\bcider\b"), LiquorSub.CIDER),
    LiquorRule(re.compile(r"\brtd\b|ready[-\s]?to[-\s]?drink|premix|vodka\s*cruiser|udl|canadian\s*club"), LiquorSub.RTD),
)

# Substring tokens matched against the campaign category only.
CATEGORY_DEFAULT_RULES: Tuple[Tuple[Tuple[str, ...], CategoryDefaults], ...] = (
    (("whitegood", "fridge", "appliance", "dishwasher", "cooking"), CategoryDefaults(1500, 50, 4)),
    (("phone", "laptop", "tech"), CategoryDefaults(1200, 30, 3)),
    (("beer", "wine", "spirit", "liquor"), CategoryDefaults(20, 5, 10)),
    (
        ("grocery", "snack", "cpg", "fmcg", "supermarket", "dessert", "pudding", "custard"),
        CategoryDefaults(6, 1, 15),
    ),
)
FALLBACK_DEFAULTS = CategoryDefaults(100, 10, 5)

DESSERT_PATTERN = re.compile(
    r"\b(dessert|pudding|custard|frozen dessert|ice cream|gelato|sweet treat|protein pudding)\b",
    re.IGNORECASE,
)

# Competitor names whose first word is one of these are category noise, not brands.
CATEGORY_WORDS = frozenset(
    {"desserts", "dessert", "puddings", "pudding", "custard", "snacks", "snack", "frozen", "ice", "cream", "fmcg", "grocery"}
)
GENERIC_WORD_TOKENS = frozenset(
    {
        "market", "markets", "size", "share", "shares", "trend", "trends", "forecast", "forecasts", "growth",
        "report", "reports", "insights", "overview", "analysis", "best", "top", "leading", "major", "cakes",
        "products", "range", "brand", "brands", "industry", "news", "similar", "companies", "insight",
        "taste", "test",
    }
)

# ---------------------------------------------------------------------------
# Default seed lists (AU)
# ---------------------------------------------------------------------------

APPLIANCE_RETAILERS = ("Harvey Norman", "JB Hi-Fi", "The Good Guys", "Bing Lee", "Appliances Online")
APPLIANCE_COMPETITORS = ("Samsung", "LG", "Bosch", "Electrolux", "Haier", "Miele", "Siemens")
LIQUOR_RETAILERS = (
    "Dan Murphy's", "BWS", "Liquorland", "First Choice Liquor", "Vintage Cellars",
    "Cellarbrations", "Bottlemart", "IGA Liquor",
)
GROCERY_RETAILERS = ("Coles", "Woolworths", "ALDI", "IGA")
TELCO_RETAILERS = ("Telstra", "Optus", "Vodafone", "JB Hi-Fi", "Harvey Norman")
INSURANCE_RETAILERS = ("AAMI", "NRMA Insurance", "Allianz", "Youi", "Budget Direct", "QBE")
BANKING_RETAILERS = ("Commonwealth Bank", "Westpac", "NAB", "ANZ")
QSR_RETAILERS = ("McDonald's", "KFC", "Hungry Jack's", "Domino's", "Subway", "Guzman y Gomez")
BEAUTY_RETAILERS = ("Priceline", "Chemist Warehouse", "MECCA", "Sephora", "Myer")
PET_RETAILERS = ("Petbarn", "PETstock", "Greencross Vets", "Coles", "Woolworths")

DESSERT_COMPETITORS = (
    "Rokeby Farms", "Priestley’s Gourmet Delights", "Jillian's Cakery", "Belle Fleur", "Beak & Johnston",
    "Carman's", "Pauls PLUS+", "Chobani", "Sara Lee",
)

DEFAULT_RETAILERS: Dict[CategoryTag, Tuple[str, ...]] = {
    CategoryTag.ALCOHOL: LIQUOR_RETAILERS,
    CategoryTag.ENERGY: GROCERY_RETAILERS,
    CategoryTag.FMCG: GROCERY_RETAILERS,
    CategoryTag.COFFEE: GROCERY_RETAILERS,
    CategoryTag.DAIRY: GROCERY_RETAILERS,
    CategoryTag.CHEESE: GROCERY_RETAILERS,
    CategoryTag.SNACKS: GROCERY_RETAILERS,
    CategoryTag.APPLIANCES: APPLIANCE_RETAILERS,
    CategoryTag.ELECTRONICS: APPLIANCE_RETAILERS,
    CategoryTag.TELCO: TELCO_RETAILERS,
    CategoryTag.INSURANCE: INSURANCE_RETAILERS,
    CategoryTag.BANKING: BANKING_RETAILERS,
    CategoryTag.QSR: QSR_RETAILERS,
    CategoryTag.BEAUTY: BEAUTY_RETAILERS,
    CategoryTag.PET: PET_RETAILERS,
}

DEFAULT_COMPETITORS: Dict[CategoryTag, Tuple[str, ...]] = {
    CategoryTag.ENERGY: (
        "Red Bull", "Monster Energy", "V Energy", "Mother Energy", "Rockstar Energy", "Prime Energy", "NOS Energy",
    ),
    CategoryTag.APPLIANCES: APPLIANCE_COMPETITORS,
    CategoryTag.ELECTRONICS: APPLIANCE_COMPETITORS,
    CategoryTag.TELCO: ("Telstra", "Optus", "Vodafone", "iiNet", "TPG", "Belong", "Boost Mobile", "Amaysim"),
    CategoryTag.INSURANCE: ("AAMI", "NRMA Insurance", "Allianz", "Youi", "Budget Direct", "QBE", "Suncorp"),
    CategoryTag.BANKING: BANKING_RETAILERS,
    CategoryTag.QSR: QSR_RETAILERS,
    CategoryTag.BEAUTY: ("L'Oréal", "Maybelline", "Revlon", "Estee Lauder", "The Ordinary", "La Roche-Posay"),
    CategoryTag.PET: ("Pedigree", "Whiskas", "Fancy Feast", "Royal Canin", "Advance", "Hill’s"),
    CategoryTag.COFFEE: ("Nescafé", "Lavazza", "Moccona", "Vittoria Coffee"),
    CategoryTag.DAIRY: ("Devondale", "Pauls", "Dairy Farmers", "Murray Goulburn"),
    CategoryTag.CHEESE: ("Bega", "Mainland", "Devondale", "Castello", "Kraft"),
    CategoryTag.SNACKS: ("Smith’s", "Doritos", "Pringles", "Kettle", "Arnotts"),
}

LIQUOR_COMPETITORS: Dict[LiquorSub, Tuple[str, ...]] = {
    LiquorSub.WINE: (
        "Penfolds", "Jacob's Creek", "Wolf Blass", "McGuigan", "Yellow Tail", "Brown Brothers", "Lindeman's",
        "Hardys", "Taylors Wines", "Grant Burge",
    ),
    LiquorSub.BEER: (
        "Asahi", "Carlton & United Breweries", "CUB", "Lion", "Heineken", "Coopers", "James Squire", "Balter",
        "4 Pines", "Stone & Wood", "Great Northern", "Tooheys", "XXXX", "Hahn",
    ),
    LiquorSub.SPIRITS: (
        "Smirnoff", "Johnnie Walker", "Absolut", "Tanqueray", "Bacardi", "Bundaberg Rum", "Jack Daniel's", "Jim Beam",
    ),
    LiquorSub.CIDER: ("Somersby", "Strongbow", "Bulmers", "5 Seeds", "Little Green"),
    LiquorSub.RTD: ("Vodka Cruiser", "Canadian Club", "UDL", "Jim Beam & Cola", "Jack Daniel's & Cola"),
}


def _category_haystack(ctx: CampaignContext) -> str:
    return " ".join([ctx.category or "", ctx.brief.category or "", ctx.brief.vertical or ""]).lower()


def classify_text(raw: str, rules: Sequence[CategoryRule] = CATEGORY_RULES) -> CategoryTag:
    text = (raw or "").lower()
    for rule in rules:
        if rule.pattern.search(text):
            return rule.tag
    return CategoryTag.GENERIC


def classify_category(ctx: CampaignContext) -> CategoryTag:
    """Tag from the campaign category, brief category and brief vertical."""
    return classify_text(_category_haystack(ctx))


def classify_liquor_sub(ctx: CampaignContext) -> LiquorSub:
    text = _category_haystack(ctx)
    for rule in LIQUOR_RULES:
        if rule.pattern.search(text):
            return rule.sub
    return LiquorSub.UNKNOWN


def category_defaults(category: str) -> CategoryDefaults:
    """ASP fallback and value floors for a free-text category."""
    text = (category or "").lower()
    for tokens, defaults in CATEGORY_DEFAULT_RULES:
        if any(token in text for token in tokens):
            return defaults
    return FALLBACK_DEFAULTS


def default_retailers(tag: CategoryTag) -> Tuple[str, ...]:
    return DEFAULT_RETAILERS.get(tag, ())


def default_competitors(tag: CategoryTag, liquor_sub: LiquorSub = LiquorSub.UNKNOWN, dessert: bool = False) -> Tuple[str, ...]:
    if tag is CategoryTag.ALCOHOL:
        return LIQUOR_COMPETITORS.get(liquor_sub, LIQUOR_COMPETITORS[LiquorSub.BEER])
    if tag is CategoryTag.SNACKS and dessert:
        return DESSERT_COMPETITORS
    return DEFAULT_COMPETITORS.get(tag, ())


@dataclass(frozen=True)
class CategoryProfile:
    """Classifier output consumed by the research collector."""

    tag: CategoryTag
    liquor_sub: LiquorSub
    retailers: Tuple[str, ...]
    competitors: Tuple[str, ...]
    dessert: bool = False


def _exclude_brand(names: Iterable[str], tokens: Sequence[str]) -> list:
    return [name for name in names if not any(token and token in name.lower() for token in tokens)]


def _is_noise_name(name: str) -> bool:
    first = (name.split() or [""])[0].lower()
    return first in CATEGORY_WORDS or first in GENERIC_WORD_TOKENS


def build_profile(
    ctx: CampaignContext,
    brand_title: str = "",
    category_title: str = "",
    client_name: Optional[str] = None,
) -> CategoryProfile:
    """
    Classify the campaign and pick retailer/competitor seeds.

    Brief-declared retailers and competitors always win over defaults.
    Competitors matching the brand, client or campaign title are dropped.
    """
    brief = ctx.brief
    tag = classify_category(ctx)
    liquor_sub = classify_liquor_sub(ctx) if tag is CategoryTag.ALCOHOL else LiquorSub.UNKNOWN

    retailers = unique_strings(brief.retailers) or list(default_retailers(tag))

    category_text = category_title or ctx.category or brief.category or ""
    dessert = bool(DESSERT_PATTERN.search(" ".join([category_text, brand_title, ctx.title or ""])))

    brief_competitors = unique_strings(brief.competitors)
    competitors = brief_competitors or list(default_competitors(tag, liquor_sub, dessert))
    if not brief_competitors and dessert and not competitors:
        competitors = list(DESSERT_COMPETITORS[:10])

    exclusion = [
        token.lower()
        for token in unique_strings([brand_title, client_name if client_name is not None else ctx.client_name, ctx.title])
    ]
    competitors = _exclude_brand(competitors, exclusion)

    if not competitors and dessert and not brief_competitors:
        competitors = list(DESSERT_COMPETITORS[:10])
    if dessert:
        merged = unique_strings([*DESSERT_COMPETITORS, *competitors])
        competitors = [n for n in merged if n in DESSERT_COMPETITORS or not _is_noise_name(n)][:12]

    return CategoryProfile(
        tag=tag,
        liquor_sub=liquor_sub,
        retailers=tuple(retailers),
        competitors=tuple(competitors),
        dessert=dessert,
    )
