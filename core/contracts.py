"""Canonical data contracts for the research -> scoring -> gating pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
import json
import logging
import math
import re
from typing import Any, Dict, Generic, List, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from utils.exceptions import MalformedBriefValue


logger = logging.getLogger(__name__)

T = TypeVar("T")

_NUMBER_NOISE = re.compile(r"[^\d.\-]")
_LIST_SPLIT = re.compile(r"[•,\n;/|]+")
_LINE_SPLIT = re.compile(r"[•\n;]+")


class ResearchLevel(str, Enum):
    """Research depth."""

    LITE = "LITE"
    DEEP = "DEEP"
    MAX = "MAX"


class CategoryTag(str, Enum):
    """Closed set of category tags produced by the classifier."""

    ALCOHOL = "ALCOHOL"
    ENERGY = "ENERGY"
    FMCG = "FMCG"
    TELCO = "TELCO"
    INSURANCE = "INSURANCE"
    BANKING = "BANKING"
    QSR = "QSR"
    ELECTRONICS = "ELECTRONICS"
    BEAUTY = "BEAUTY"
    PET = "PET"
    COFFEE = "COFFEE"
    DAIRY = "DAIRY"
    CHEESE = "CHEESE"
    SNACKS = "SNACKS"
    APPLIANCES = "APPLIANCES"
    GENERIC = "GENERIC"


class LiquorSub(str, Enum):
    """Alcohol sub-type."""

    WINE = "WINE"
    BEER = "BEER"
    SPIRITS = "SPIRITS"
    CIDER = "CIDER"
    RTD = "RTD"
    UNKNOWN = "UNKNOWN"


class PromoType(str, Enum):
    CASHBACK = "CASHBACK"
    PRIZE = "PRIZE"
    GWP = "GWP"
    OTHER = "OTHER"


class Cadence(str, Enum):
    INSTANT = "instant"
    DAILY = "daily"
    WEEKLY = "weekly"


class MarketPosition(str, Enum):
    """Campaign cashback vs the typical in-market value."""

    ABOVE_TYPICAL = "ABOVE_TYPICAL"
    AT_TYPICAL = "AT_TYPICAL"
    BELOW_TYPICAL = "BELOW_TYPICAL"
    UNKNOWN = "UNKNOWN"


class CashbackPosition(str, Enum):
    """Campaign cashback vs the in-market interquartile range."""

    BELOW_P25 = "BELOW_P25"
    BETWEEN_P25_P75 = "BETWEEN_P25_P75"
    ABOVE_P75 = "ABOVE_P75"
    UNKNOWN = "UNKNOWN"


class HeroPosition(str, Enum):
    BELOW_MEDIAN = "BELOW_MEDIAN"
    AT_MEDIAN = "AT_MEDIAN"
    ABOVE_MEDIAN = "ABOVE_MEDIAN"
    UNKNOWN = "UNKNOWN"


class OfferMode(str, Enum):
    ASSURED = "ASSURED"
    PRIZE = "PRIZE"


class Verdict(str, Enum):
    """Offer scorer verdict."""

    GO = "GO"
    GO_WITH_CONDITIONS = "GO WITH CONDITIONS"
    REVIEW = "REVIEW"
    NO_GO = "NO-GO"


class Decision(str, Enum):
    """Decision gate outcome."""

    GO = "GO"
    GO_WITH_CONDITIONS = "GO WITH CONDITIONS"
    NO_GO = "NO-GO"


class Traffic(str, Enum):
    GREEN = "GREEN"
    AMBER = "AMBER"
    RED = "RED"
    NA = "NA"


class HardFlag(str, Enum):
    """Machine-readable reason codes raised by the offer scorer."""

    INADEQUATE_VALUE = "INADEQUATE_VALUE"
    COVERAGE_TINY = "COVERAGE_TINY"


class DropReason(str, Enum):
    """Why a piece of evidence (or a cache entry) was not used."""

    PROVIDER_UNAVAILABLE = "provider_unavailable"
    FETCH_TIMEOUT = "fetch_timeout"
    FETCH_FAILED = "fetch_failed"
    PARSE_EMPTY = "parse_empty"
    NOT_ASSURED = "not_assured"
    BLOCKED_DOMAIN = "blocked_domain"
    FILTERED_ON_PREMISE = "filtered_on_premise"
    DUPLICATE = "duplicate"
    INVALID_URL = "invalid_url"
    OVER_CAP = "over_cap"
    CACHE_MISS = "cache_miss"
    CACHE_EXPIRED = "cache_expired"
    CACHE_VERSION = "cache_version"
    CACHE_UNAVAILABLE = "cache_unavailable"


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Value-or-reason result returned by every fallible pipeline stage."""

    value: Optional[T] = None
    reason: Optional[DropReason] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.reason is None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def dropped(cls, reason: DropReason, detail: str = "") -> "Outcome[T]":
        return cls(value=None, reason=reason, detail=detail)


# ---------------------------------------------------------------------------
# Brief coercion helpers
# ---------------------------------------------------------------------------


def coerce_number(value: Any, field: str = "") -> Optional[float]:
    """Parse a brief numeric value ("$1,500", "12", 7.5); raise on junk."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise MalformedBriefValue("boolean is not a number", field=field, value=value)
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        cleaned = _NUMBER_NOISE.sub("", text)
        try:
            number = float(cleaned)
        except ValueError:
            raise MalformedBriefValue("not a number", field=field, value=value) from None
    if not math.isfinite(number):
        raise MalformedBriefValue("non-finite number", field=field, value=value)
    return number


def number_or_none(value: Any, field: str = "") -> Optional[float]:
    try:
        return coerce_number(value, field)
    except MalformedBriefValue as exc:
        logger.debug(f"Brief value coerced to None: {exc} (field={exc.field}, value={exc.value!r})")
        return None


def split_brief_list(value: Any, pattern: "re.Pattern[str]" = _LIST_SPLIT) -> List[str]:
    """Flatten strings, lists and dicts from the brief into trimmed strings."""
    if value is None or value is False:
        return []
    if isinstance(value, (list, tuple, set)):
        out: List[str] = []
        for item in value:
            out.extend(split_brief_list(item, pattern))
        return out
    if isinstance(value, dict):
        out = []
        for item in value.values():
            out.extend(split_brief_list(item, pattern))
        return out
    if isinstance(value, (int, float)):
        return [str(value)]
    return [part.strip() for part in pattern.split(str(value)) if part and part.strip()]


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        text = json.dumps(value, ensure_ascii=False)
    else:
        text = str(value).strip()
    return text or None


# ---------------------------------------------------------------------------
# Inbound campaign contracts
# ---------------------------------------------------------------------------


class _BriefModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="allow",
    )


class CashbackBand(_BriefModel):
    """One price band of a banded cashback offer."""

    min_price: Optional[float] = None
    max_price: Optional[float] = None
    amount: Optional[float] = None
    percent: Optional[float] = None

    @field_validator("min_price", "max_price", "amount", "percent", mode="before")
    @classmethod
    def _numbers(cls, value: Any, info: ValidationInfo) -> Optional[float]:
        return number_or_none(value, info.field_name)


class CashbackOffer(_BriefModel):
    amount: Optional[float] = None
    percent: Optional[float] = None
    assured: Optional[bool] = None
    bands: List[CashbackBand] = Field(default_factory=list)
    processing_days: Optional[float] = None
    proof_required: Optional[bool] = None

    @field_validator("amount", "percent", "processing_days", mode="before")
    @classmethod
    def _numbers(cls, value: Any, info: ValidationInfo) -> Optional[float]:
        return number_or_none(value, info.field_name)

    @field_validator("bands", mode="before")
    @classmethod
    def _bands(cls, value: Any) -> List[Any]:
        if not isinstance(value, (list, tuple)):
            return []
        return [item for item in value if isinstance(item, (dict, CashbackBand))]


class GwpOffer(_BriefModel):
    item: Optional[str] = None
    rrp: Optional[float] = None
    value: Optional[float] = None
    estimated_value: Optional[float] = None
    cap: Optional[str] = None

    @field_validator("rrp", "value", "estimated_value", mode="before")
    @classmethod
    def _numbers(cls, value: Any, info: ValidationInfo) -> Optional[float]:
        return number_or_none(value, info.field_name)

    @field_validator("cap", mode="before")
    @classmethod
    def _cap(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        return str(value).strip().upper() or None


class BrandAssets(_BriefModel):
    visual: List[str] = Field(default_factory=list)
    verbal: List[str] = Field(default_factory=list)
    ritual: List[str] = Field(default_factory=list)

    @field_validator("visual", "verbal", "ritual", mode="before")
    @classmethod
    def _lists(cls, value: Any) -> List[str]:
        return split_brief_list(value)


class CategoryBenchmarks(_BriefModel):
    avg_price: Optional[float] = None

    @field_validator("avg_price", mode="before")
    @classmethod
    def _numbers(cls, value: Any, info: ValidationInfo) -> Optional[float]:
        return number_or_none(value, info.field_name)


_BRIEF_NUMBER_FIELDS = (
    "avg_price",
    "average_selling_price",
    "absolute_floor",
    "percent_floor",
    "claim_fields_count",
    "screens",
    "processing_days",
    "expected_buyers",
    "expected_units",
    "kpi_entries_target",
    "hero_prize_value",
    "total_winners",
    "breadth_prize_count",
    "winner_count",
    "runner_up_value",
    "runner_up_amount",
)

_BRIEF_TEXT_FIELDS = (
    "brand",
    "category",
    "vertical",
    "market",
    "channel",
    "hook",
    "mechanic_one_liner",
    "entry_mechanic",
    "cadence_copy",
    "friction_budget",
    "staff_burden",
    "proof_type",
    "reward_unit",
    "budget_band",
    "calendar_theme",
    "primary_objective",
    "primary_kpi",
    "primary_audience",
    "audience_summary",
    "raw_notes",
    "notes",
    "hero_prize",
    "prize_budget_notes",
    "prize_value_hint",
)

_BRIEF_LIST_FIELDS = (
    "retailers",
    "competitors",
    "media",
    "secondary_kpis",
    "assured_items",
    "audience",
    "target_audience",
    "brand_truths",
    "buyer_tensions",
    "purchase_triggers",
    "tone_of_voice",
)


class BriefSpec(_BriefModel):
    """Declared offer terms and campaign hints, validated once at ingestion."""

    brand: Optional[str] = None
    category: Optional[str] = None
    vertical: Optional[str] = None
    market: Optional[str] = None
    channel: Optional[str] = None
    type_of_promotion: Optional[str] = None

    hook: Optional[str] = None
    mechanic_one_liner: Optional[str] = None
    entry_mechanic: Optional[str] = None
    cadence_copy: Optional[str] = None
    friction_budget: Optional[str] = None
    staff_burden: Optional[str] = None
    proof_type: Optional[str] = None
    reward_unit: Optional[str] = None
    budget_band: Optional[str] = None
    calendar_theme: Optional[str] = None
    primary_objective: Optional[str] = None
    primary_kpi: Optional[str] = None
    primary_audience: Optional[str] = None
    audience_summary: Optional[str] = None
    raw_notes: Optional[str] = None
    notes: Optional[str] = None

    retailers: List[str] = Field(default_factory=list)
    competitors: List[str] = Field(default_factory=list)
    media: List[str] = Field(default_factory=list)
    secondary_kpis: List[str] = Field(default_factory=list)
    assured_items: List[str] = Field(default_factory=list)
    audience: List[str] = Field(default_factory=list)
    target_audience: List[str] = Field(default_factory=list)
    brand_truths: List[str] = Field(default_factory=list)
    buyer_tensions: List[str] = Field(default_factory=list)
    purchase_triggers: List[str] = Field(default_factory=list)
    tone_of_voice: List[str] = Field(default_factory=list)

    cashback: Optional[CashbackOffer] = None
    gwp: Optional[GwpOffer] = None
    assured_value: Optional[bool] = None

    avg_price: Optional[float] = None
    average_selling_price: Optional[float] = None
    category_benchmarks: Optional[CategoryBenchmarks] = None
    absolute_floor: Optional[float] = None
    percent_floor: Optional[float] = None

    claim_fields_count: Optional[float] = None
    screens: Optional[float] = None
    processing_days: Optional[float] = None

    expected_buyers: Optional[float] = None
    expected_units: Optional[float] = None
    kpi_entries_target: Optional[float] = None

    hero_prize: Optional[str] = None
    hero_prize_count: Optional[int] = None
    hero_prize_value: Optional[float] = None
    major_prize_overlay: Optional[Union[bool, str]] = None
    runner_ups: List[str] = Field(default_factory=list)
    runner_up_value: Optional[float] = None
    runner_up_amount: Optional[float] = None
    total_winners: Optional[float] = None
    breadth_prize_count: Optional[float] = None
    winner_count: Optional[float] = None
    prize_budget_notes: Optional[str] = None
    prize_value_hint: Optional[str] = None

    brand_assets: Optional[BrandAssets] = None
    distinctive_assets: Optional[BrandAssets] = None

    @field_validator(*_BRIEF_NUMBER_FIELDS, mode="before")
    @classmethod
    def _numbers(cls, value: Any, info: ValidationInfo) -> Optional[float]:
        return number_or_none(value, info.field_name)

    @field_validator("hero_prize_count", mode="before")
    @classmethod
    def _count(cls, value: Any, info: ValidationInfo) -> Optional[int]:
        number = number_or_none(value, info.field_name)
        return int(number) if number is not None else None

    @field_validator(*_BRIEF_TEXT_FIELDS, mode="before")
    @classmethod
    def _texts(cls, value: Any) -> Optional[str]:
        return _optional_text(value)

    @field_validator("type_of_promotion", mode="before")
    @classmethod
    def _promo_type(cls, value: Any) -> Optional[str]:
        text = _optional_text(value)
        return text.upper() if text else None

    @field_validator(*_BRIEF_LIST_FIELDS, mode="before")
    @classmethod
    def _lists(cls, value: Any) -> List[str]:
        return split_brief_list(value)

    @field_validator("runner_ups", mode="before")
    @classmethod
    def _runner_ups(cls, value: Any) -> List[str]:
        # Commas are thousands separators in prize lines ("1,000 x $20").
        return split_brief_list(value, _LINE_SPLIT)

    @field_validator("cashback", "gwp", "brand_assets", "distinctive_assets", "category_benchmarks", mode="before")
    @classmethod
    def _objects(cls, value: Any) -> Any:
        if value is None or isinstance(value, (dict, BaseModel)):
            return value
        logger.debug(f"Brief object field ignored (not a mapping): {value!r}")
        return None

    @field_validator("assured_value", mode="before")
    @classmethod
    def _flag(cls, value: Any) -> Optional[bool]:
        if value is None or isinstance(value, bool):
            return value
        return str(value).strip().lower() in {"1", "true", "yes", "y"}

    def as_text(self) -> str:
        """Lower-cased JSON of the declared fields, for keyword scans."""
        payload = self.model_dump(mode="json", by_alias=True, exclude_defaults=True)
        return json.dumps(payload, ensure_ascii=False).lower()


class CampaignContext(BaseModel):
    """Immutable input owned by the caller."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    title: str = ""
    client_name: Optional[str] = None
    category: str = ""
    market: str = "AU"
    start_date: Optional[date] = None
    brief: BriefSpec = Field(default_factory=BriefSpec, alias="briefSpec")

    @field_validator("id", mode="before")
    @classmethod
    def _non_empty_id(cls, value: Any) -> str:
        text = str(value or "").strip()
        if not text:
            raise ValueError("campaign id is required")
        return text

    @field_validator("title", "category", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return str(value or "").strip()

    @field_validator("market", mode="before")
    @classmethod
    def _market(cls, value: Any) -> str:
        return str(value or "").strip() or "AU"

    @field_validator("start_date", mode="before")
    @classmethod
    def _date(cls, value: Any) -> Optional[date]:
        if value is None or value == "":
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        try:
            return datetime.fromisoformat(str(value).strip().replace("Z", "+00:00")).date()
        except ValueError:
            logger.debug(f"Brief value coerced to None: unreadable start date {value!r}")
            return None


# ---------------------------------------------------------------------------
# Evidence contracts
# ---------------------------------------------------------------------------


class SearchResult(BaseModel):
    """Single provider hit."""

    title: str = ""
    url: str = ""
    snippet: str = ""


class Fact(BaseModel):
    claim: str
    source: str


class CompetitorPromo(BaseModel):
    """Structured promotion parsed from one fetched page."""

    model_config = ConfigDict(frozen=True)

    brand: str
    title: Optional[str] = None
    headline: Optional[str] = None
    url: str
    source: str
    type: PromoType
    hero_count: Optional[int] = None
    total_winners: Optional[int] = None
    cadence: Optional[Cadence] = None
    prize_items: List[str] = Field(default_factory=list)
    prize_value_hint: Optional[str] = None
    confidence: float = Field(default=0.6, ge=0.0, le=1.0)
    via_redemption: Optional[bool] = None
    gift_card: Optional[str] = None


class _FiniteModel(BaseModel):
    """Numeric fields are finite or None, never NaN/inf."""

    @field_validator("*", mode="after")
    @classmethod
    def _finite(cls, value: Any) -> Any:
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return value


class HeroPrizeStats(_FiniteModel):
    median: Optional[float] = None
    mode: Optional[float] = None


class CadenceShare(_FiniteModel):
    instant: float = 0.0
    weekly: float = 0.0
    daily: float = 0.0


class CashbackSummary(_FiniteModel):
    sample: int = 0
    typical_abs: Optional[float] = None
    typical_pct: Optional[float] = None
    max_abs: Optional[float] = None
    max_pct: Optional[float] = None


class CashbackQuartiles(_FiniteModel):
    median: Optional[float] = None
    p25: Optional[float] = None
    p75: Optional[float] = None
    sample_size: int = 0


class CommonCount(_FiniteModel):
    count: int
    share: float


class PrizeCountsObserved(BaseModel):
    total: int = 0
    common: List[CommonCount] = Field(default_factory=list)


class ResearchBenchmarks(_FiniteModel):
    """Statistics derived wholesale from the competitor promo sample."""

    hero_prize: Optional[HeroPrizeStats] = None
    cadence_share: Optional[CadenceShare] = None
    many_winners_share: Optional[float] = None
    cashback: Optional[CashbackSummary] = None
    cashback_abs: Optional[CashbackQuartiles] = None
    prize_counts_observed: Optional[PrizeCountsObserved] = None
    recommended_hero_count: Optional[float] = None
    position_vs_market: MarketPosition = MarketPosition.UNKNOWN


class FactSection(BaseModel):
    query: Optional[str] = None
    summary: Optional[str] = None
    facts: List[Fact] = Field(default_factory=list)


class AudienceSection(BaseModel):
    notes: str = ""
    facts: List[Fact] = Field(default_factory=list)


class CompetitorSection(BaseModel):
    names: List[str] = Field(default_factory=list)
    facts: List[Fact] = Field(default_factory=list)
    promos: List[CompetitorPromo] = Field(default_factory=list)


class RetailerSection(BaseModel):
    names: List[str] = Field(default_factory=list)
    facts: List[Fact] = Field(default_factory=list)


class SeasonSection(BaseModel):
    label: Optional[str] = None
    facts: List[Fact] = Field(default_factory=list)


class ResearchMeta(BaseModel):
    level: ResearchLevel
    warnings: List[str] = Field(default_factory=list)
    used_fallbacks: List[str] = Field(default_factory=list)
    search_provider: str = "none"
    cached_at: Optional[str] = None
    category_tag: Optional[CategoryTag] = None
    liquor_sub: Optional[LiquorSub] = None
    alcohol_context: bool = False
    pages_attempted: int = 0
    pages_fetched: int = 0
    dropped: Dict[str, int] = Field(default_factory=dict)


class ResearchPack(BaseModel):
    """Aggregate root for one (campaign, level) research run."""

    campaign_id: str
    brand: FactSection = Field(default_factory=FactSection)
    audience: AudienceSection = Field(default_factory=AudienceSection)
    category: FactSection = Field(default_factory=FactSection)
    competitors: CompetitorSection = Field(default_factory=CompetitorSection)
    retailers: RetailerSection = Field(default_factory=RetailerSection)
    season: SeasonSection = Field(default_factory=SeasonSection)
    market: FactSection = Field(default_factory=FactSection)
    signals: FactSection = Field(default_factory=FactSection)
    benchmarks: Optional[ResearchBenchmarks] = None
    meta: ResearchMeta


# ---------------------------------------------------------------------------
# Scoring and gating contracts
# ---------------------------------------------------------------------------


class Lens(BaseModel):
    model_config = ConfigDict(frozen=True)

    score: float = Field(ge=0.0, le=10.0)
    why: str
    fix: str


class Lenses(BaseModel):
    model_config = ConfigDict(frozen=True)

    adequacy: Lens
    simplicity: Lens
    certainty: Lens
    salience: Lens
    talkability: Lens
    retailer_fit: Lens
    brand_fit: Lens


class HeroOverlay(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str = ""
    value_hint: Optional[str] = None
    count: Optional[int] = None
    narrative: Optional[str] = None


class OfferDiagnostics(_FiniteModel):
    model_config = ConfigDict(frozen=True)

    value_amount: float = 0.0
    asp_anchor: float = 0.0
    percent_of_asp: Optional[float] = None
    expected_buyers: Optional[float] = None
    total_winners: Optional[float] = None
    coverage_rate: Optional[float] = None
    cadence_signals: bool = False
    symbolic_signals: bool = False
    prize_pool_estimate: Optional[float] = None
    prize_budget_ratio: Optional[float] = None
    budget_note: Optional[str] = None
    headline_max: float = 0.0
    banded: bool = False
    overlay: bool = False
    overlay_experiential: bool = False
    overlay_label: str = ""
    has_benchmarks: bool = False
    cashback_vs_market: CashbackPosition = CashbackPosition.UNKNOWN
    hero_vs_market: HeroPosition = HeroPosition.UNKNOWN


class OfferIQ(BaseModel):
    """Seven-lens offer assessment."""

    model_config = ConfigDict(frozen=True)

    score: float
    verdict: Verdict
    confidence: float = Field(ge=0.0, le=1.0)
    lenses: Lenses
    hard_flags: List[HardFlag] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    asks: List[str] = Field(default_factory=list)
    hero_overlay: Optional[HeroOverlay] = None
    story_notes: List[str] = Field(default_factory=list)
    mode: OfferMode
    diagnostics: OfferDiagnostics


SCOREBOARD_KEYS = (
    "objective_fit",
    "hook_strength",
    "mechanic_fit",
    "frequency_potential",
    "friction",
    "reward_shape",
    "retailer_readiness",
    "compliance_risk",
    "fulfilment",
    "kpi_realism",
)

CRITICAL_KEYS = frozenset(
    {
        "reward_shape",
        "mechanic_fit",
        "retailer_readiness",
        "compliance_risk",
        "objective_fit",
        "friction",
    }
)


class BoardCell(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Traffic
    why: str
    fix: Optional[str] = None


class Scoreboard(BaseModel):
    """Ten-cell traffic-light board plus the gated decision."""

    model_config = ConfigDict(frozen=True)

    objective_fit: BoardCell
    hook_strength: BoardCell
    mechanic_fit: BoardCell
    frequency_potential: BoardCell
    friction: BoardCell
    reward_shape: BoardCell
    retailer_readiness: BoardCell
    compliance_risk: BoardCell
    fulfilment: BoardCell
    kpi_realism: BoardCell
    decision: Decision = Decision.GO_WITH_CONDITIONS
    conditions: str = ""
    dealbreakers: List[str] = Field(default_factory=list)

    def cells(self) -> Dict[str, BoardCell]:
        return {key: getattr(self, key) for key in SCOREBOARD_KEYS}


class Evaluation(BaseModel):
    """End-to-end result consumed read-only by reporting layers."""

    model_config = ConfigDict(frozen=True)

    campaign_id: str
    level: Optional[ResearchLevel] = None
    offer_iq: OfferIQ
    scoreboard: Scoreboard
    research: Optional[ResearchPack] = None
