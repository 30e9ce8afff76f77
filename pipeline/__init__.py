"""
Pipeline Module
Category classification, research collection, offer scoring and the decision gate.
"""
from .categories import CategoryProfile, build_profile, category_defaults
from .offer_iq import score_offer
from .scoreboard import apply_override, build_scoreboard, decide, gate_scoreboard
from .research import ResearchRunner, build_default_runner, run_research
from .evaluate import evaluate_campaign, evaluate_with_pack

__all__ = [
    "CategoryProfile",
    "build_profile",
    "category_defaults",
    "score_offer",
    "apply_override",
    "build_scoreboard",
    "decide",
    "gate_scoreboard",
    "ResearchRunner",
    "build_default_runner",
    "run_research",
    "evaluate_campaign",
    "evaluate_with_pack",
]
