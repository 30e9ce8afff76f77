"""
Tests for the ten-cell scoreboard, the gate ratchet and the reward override
"""
import pytest

from core import (
    CRITICAL_KEYS,
    SCOREBOARD_KEYS,
    BoardCell,
    Decision,
    OfferMode,
    Scoreboard,
    Traffic,
    Verdict,
)
from pipeline.offer_iq import score_offer
from pipeline.scoreboard import (
    ASSURED_CONDITIONS,
    ASSURED_NO_GO_CONDITIONS,
    MAX_DEALBREAKERS,
    PRIZE_CONDITIONS,
    PRIZE_REVIEW_FIX,
    VERDICT_DECISION,
    apply_override,
    build_scoreboard,
    decide,
    gate_scoreboard,
    more_severe,
    prize_rules,
)


def _board(**statuses) -> Scoreboard:
    cells = {
        key: BoardCell(status=statuses.get(key, Traffic.GREEN), why=f"{key} why", fix=None)
        for key in SCOREBOARD_KEYS
    }
    return Scoreboard(**cells)


def _offer(ctx, verdict: Verdict, **updates):
    offer = score_offer(ctx)
    return offer.model_copy(update={"verdict": verdict, **updates})


class TestGate:
    def test_all_green_is_go(self):
        assert gate_scoreboard(_board()).decision is Decision.GO

    def test_amber_or_non_critical_red_is_conditional(self):
        assert gate_scoreboard(_board(hook_strength=Traffic.AMBER)).decision is Decision.GO_WITH_CONDITIONS
        assert "hook_strength" not in CRITICAL_KEYS
        result = gate_scoreboard(_board(hook_strength=Traffic.RED))
        assert result.decision is Decision.GO_WITH_CONDITIONS
        assert result.dealbreakers == []

    def test_critical_red_is_no_go(self):
        result = gate_scoreboard(_board(reward_shape=Traffic.RED))
        assert result.decision is Decision.NO_GO
        assert result.has_critical_red
        assert result.dealbreakers == ["reward_shape why"]

    def test_dealbreakers_capped(self):
        reds = {key: Traffic.RED for key in CRITICAL_KEYS}
        assert len(gate_scoreboard(_board(**reds)).dealbreakers) == MAX_DEALBREAKERS

    def test_offer_verdict_only_raises_severity(self, appliance_cashback):
        green = _board()
        assert gate_scoreboard(green, _offer(appliance_cashback, Verdict.NO_GO)).decision is Decision.NO_GO
        assert gate_scoreboard(green, _offer(appliance_cashback, Verdict.REVIEW)).decision is Decision.GO_WITH_CONDITIONS
        critical = _board(objective_fit=Traffic.RED)
        assert gate_scoreboard(critical, _offer(appliance_cashback, Verdict.GO)).decision is Decision.NO_GO

    def test_review_verdict_maps_to_conditional(self):
        assert VERDICT_DECISION[Verdict.REVIEW] is Decision.GO_WITH_CONDITIONS

    @pytest.mark.parametrize(
        "a, b, expected",
        [
            (Decision.GO, Decision.NO_GO, Decision.NO_GO),
            (Decision.NO_GO, Decision.GO, Decision.NO_GO),
            (Decision.GO_WITH_CONDITIONS, Decision.GO, Decision.GO_WITH_CONDITIONS),
        ],
    )
    def test_more_severe(self, a, b, expected):
        assert more_severe(a, b) is expected


class TestBuildScoreboard:
    def test_assured_board(self, appliance_cashback):
        board = build_scoreboard(appliance_cashback, score_offer(appliance_cashback))
        assert board.reward_shape.status is Traffic.GREEN
        assert board.reward_shape.fix is None
        assert board.hook_strength.status is Traffic.AMBER
        assert "Cook more, save more" in board.hook_strength.fix
        assert board.retailer_readiness.why == "Retailers named (Harvey Norman, The Good Guys). Keep staff workload near zero."
        assert board.compliance_risk.status is Traffic.GREEN
        assert board.conditions == ASSURED_CONDITIONS

    def test_fix_only_on_amber_and_red(self, appliance_cashback):
        board = build_scoreboard(appliance_cashback, score_offer(appliance_cashback))
        for key, cell in board.cells().items():
            if cell.status is Traffic.GREEN:
                assert cell.fix is None, key
            elif cell.status is Traffic.RED:
                assert cell.fix, key
        assert board.kpi_realism.status is Traffic.AMBER
        assert board.kpi_realism.fix

    def test_empty_brief_reds(self, campaign_factory):
        ctx = campaign_factory({}, category="Snacks")
        board = build_scoreboard(ctx, score_offer(ctx))
        assert board.hook_strength.status is Traffic.RED
        assert board.retailer_readiness.status is Traffic.RED
        assert board.mechanic_fit.status is Traffic.AMBER
        # No hero and no breadth.
        assert board.reward_shape.status is Traffic.RED
        assert board.conditions == PRIZE_CONDITIONS

    def test_alcohol_in_au_is_compliance_amber(self, campaign_factory):
        ctx = campaign_factory({"retailers": ["BWS"]}, category="Craft beer")
        board = build_scoreboard(ctx, score_offer(ctx))
        assert board.compliance_risk.status is Traffic.AMBER
        assert board.compliance_risk.why == "RSA/ABAC sensitivities likely in AU."

    def test_friction_budget(self, campaign_factory):
        ctx = campaign_factory({"frictionBudget": "High: receipt upload and mail-in", "hook": "x"}, category="Snacks")
        board = build_scoreboard(ctx, score_offer(ctx))
        assert board.friction.status is Traffic.RED
        assert "(mail-in or multi-proof at first step)" in board.friction.why
        # Assured offers with proof are softened to AMBER.
        assured = campaign_factory({"frictionBudget": "receipt", "cashback": {"amount": 50}}, category="Snacks")
        assert build_scoreboard(assured, score_offer(assured)).friction.status is Traffic.AMBER

    def test_travel_hero_needs_fulfilment_rules(self, campaign_factory):
        ctx = campaign_factory({"heroPrize": "Trip to Bali", "heroPrizeCount": 1, "totalWinners": 2000}, category="Snacks")
        board = build_scoreboard(ctx, score_offer(ctx))
        assert board.fulfilment.status is Traffic.AMBER
        assert board.reward_shape.status is Traffic.GREEN
        assert board.reward_shape.why.startswith("Experiential hero carries emotion (Trip to Bali x1) with 2000 instants")

    def test_shareable_rules(self, campaign_factory):
        shareable = prize_rules(campaign_factory({"heroPrize": "Double movie pass", "totalWinners": 900}))
        assert shareable.shareable
        assert shareable.ticket_pool == 1800
        assert shareable.breadth_solid and not shareable.breadth_strong
        single = prize_rules(campaign_factory({"heroPrize": "Movie ticket", "totalWinners": 901}))
        assert single.shareable_alternate == 450


class TestOverride:
    def test_confident_assured_no_go_turns_reward_red(self, appliance_cashback):
        offer = score_offer(appliance_cashback)
        board = apply_override(build_scoreboard(appliance_cashback, offer), offer)
        assert board.reward_shape.status is Traffic.RED
        assert board.reward_shape.why == offer.lenses.adequacy.why
        assert board.reward_shape.fix == offer.lenses.adequacy.fix
        assert board.decision is Decision.NO_GO
        assert board.conditions == ASSURED_NO_GO_CONDITIONS

    def test_low_confidence_prize_is_amber_with_asks(self, campaign_factory):
        ctx = campaign_factory({"typeOfPromotion": "PRIZE", "totalWinners": 100}, category="Snacks")
        offer = score_offer(ctx)
        assert offer.mode is OfferMode.PRIZE and offer.confidence < 0.6
        base = build_scoreboard(ctx, offer)
        board = apply_override(base, offer)
        assert board.reward_shape.status is Traffic.AMBER
        assert " Requires: " in board.reward_shape.why
        assert board.reward_shape.fix == PRIZE_REVIEW_FIX
        assert board.conditions.startswith(base.conditions + " Provide: ")

    def test_other_cases_leave_board_untouched(self, prize_campaign):
        offer = score_offer(prize_campaign)
        board = build_scoreboard(prize_campaign, offer)
        assert apply_override(board, offer) is board


class TestDecide:
    def test_appliance_cashback_is_no_go_with_dealbreaker(self, appliance_cashback):
        offer = score_offer(appliance_cashback)
        board = decide(appliance_cashback, offer)
        assert board.decision is Decision.NO_GO
        assert board.reward_shape.status is Traffic.RED
        assert offer.lenses.adequacy.why in board.dealbreakers

    def test_conditional_prize_campaign(self, prize_campaign):
        board = decide(prize_campaign, score_offer(prize_campaign))
        assert board.decision is Decision.GO_WITH_CONDITIONS
        assert board.dealbreakers == []
