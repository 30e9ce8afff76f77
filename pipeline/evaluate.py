"""
Evaluation entry points
Offer scoring plus the decision gate, with or without a research run.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from config.settings import Settings
from core import CampaignContext, Evaluation, ResearchLevel, ResearchPack
from pipeline.offer_iq import score_offer
from pipeline.research import ResearchRunner, build_default_runner
from pipeline.scoreboard import decide


logger = logging.getLogger(__name__)


def evaluate_with_pack(
    ctx: CampaignContext,
    pack: Optional[ResearchPack] = None,
    level: Optional[ResearchLevel] = None,
) -> Evaluation:
    """Score and gate a campaign against an existing research pack (pure)."""
    offer = score_offer(ctx, pack)
    scoreboard = decide(ctx, offer, pack)
    logger.info(
        f"evaluate.done campaign={ctx.id} verdict={offer.verdict.value} "
        f"score={offer.score} decision={scoreboard.decision.value}"
    )
    return Evaluation(
        campaign_id=ctx.id,
        level=level or (pack.meta.level if pack is not None else None),
        offer_iq=offer,
        scoreboard=scoreboard,
        research=pack,
    )


async def evaluate_campaign(
    ctx: CampaignContext,
    level: Union[ResearchLevel, str] = ResearchLevel.LITE,
    force_refresh: bool = False,
    runner: Optional[ResearchRunner] = None,
    settings: Optional[Settings] = None,
) -> Evaluation:
    """
    Research the campaign, then evaluate it.

    A failed research run degrades to scoring without a pack.
    """
    level = ResearchLevel(level)
    if runner is not None:
        pack = await runner.run(ctx, level, force_refresh=force_refresh)
    else:
        async with build_default_runner(settings) as owned:
            pack = await owned.run(ctx, level, force_refresh=force_refresh)

    if pack is None:
        logger.warning(f"evaluate.no_research campaign={ctx.id} level={level.value}")
    return evaluate_with_pack(ctx, pack, level=level)
