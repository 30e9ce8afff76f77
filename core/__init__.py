"""Core contracts and shared types for the offer evaluation pipeline."""

from .contracts import (
    CRITICAL_KEYS,
    SCOREBOARD_KEYS,
    AudienceSection,
    BoardCell,
    BrandAssets,
    BriefSpec,
    Cadence,
    CadenceShare,
    CampaignContext,
    CashbackBand,
    CashbackOffer,
    CashbackPosition,
    CashbackQuartiles,
    CashbackSummary,
    CategoryTag,
    CommonCount,
    CompetitorPromo,
    CompetitorSection,
    Decision,
    DropReason,
    Evaluation,
    Fact,
    FactSection,
    GwpOffer,
    HardFlag,
    HeroOverlay,
    HeroPosition,
    HeroPrizeStats,
    Lens,
    Lenses,
    LiquorSub,
    MarketPosition,
    OfferDiagnostics,
    OfferIQ,
    OfferMode,
    Outcome,
    PrizeCountsObserved,
    PromoType,
    ResearchBenchmarks,
    ResearchLevel,
    ResearchMeta,
    ResearchPack,
    RetailerSection,
    Scoreboard,
    SearchResult,
    SeasonSection,
    Traffic,
    Verdict,
    coerce_number,
    number_or_none,
    split_brief_list,
)

__all__ = [
    "CRITICAL_KEYS",
    "SCOREBOARD_KEYS",
    "AudienceSection",
    "BoardCell",
    "BrandAssets",
    "BriefSpec",
    "Cadence",
    "CadenceShare",
    "CampaignContext",
    "CashbackBand",
    "CashbackOffer",
    "CashbackPosition",
    "CashbackQuartiles",
    "CashbackSummary",
    "CategoryTag",
    "CommonCount",
    "CompetitorPromo",
    "CompetitorSection",
    "Decision",
    "DropReason",
    "Evaluation",
    "Fact",
    "FactSection",
    "GwpOffer",
    "HardFlag",
    "HeroOverlay",
    "HeroPosition",
    "HeroPrizeStats",
    "Lens",
    "Lenses",
    "LiquorSub",
    "MarketPosition",
    "OfferDiagnostics",
    "OfferIQ",
    "OfferMode",
    "Outcome",
    "PrizeCountsObserved",
    "PromoType",
    "ResearchBenchmarks",
    "ResearchLevel",
    "ResearchMeta",
    "ResearchPack",
    "RetailerSection",
    "Scoreboard",
    "SearchResult",
    "SeasonSection",
    "Traffic",
    "Verdict",
    "coerce_number",
    "number_or_none",
    "split_brief_list",
]
