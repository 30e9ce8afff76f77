"""
Tests for brief coercion and the shared contracts
"""
import pytest
from pydantic import ValidationError

from core import (
    BriefSpec,
    CampaignContext,
    DropReason,
    Outcome,
    ResearchLevel,
    ResearchMeta,
    ResearchPack,
    coerce_number,
    number_or_none,
    split_brief_list,
)
from utils.exceptions import MalformedBriefValue


class TestNumberCoercion:
    def test_currency_strings_parse(self):
        assert coerce_number("$1,500") == 1500.0
        assert coerce_number(" 12 ") == 12.0
        assert coerce_number(7.5) == 7.5

    def test_blank_is_none(self):
        assert coerce_number(None) is None
        assert coerce_number("   ") is None

    def test_junk_raises_malformed(self):
        with pytest.raises(MalformedBriefValue):
            coerce_number("lots", field="expectedBuyers")
        with pytest.raises(MalformedBriefValue):
            coerce_number(True)

    def test_number_or_none_swallows_junk(self):
        assert number_or_none("n/a") is None
        assert number_or_none(float("inf")) is None


def test_split_brief_list_flattens_mixed_shapes():
    assert split_brief_list("Coles, Woolworths\nALDI") == ["Coles", "Woolworths", "ALDI"]
    assert split_brief_list(["Coles", ["IGA"]]) == ["Coles", "IGA"]
    assert split_brief_list(None) == []


class TestBriefSpec:
    def test_camel_case_aliases_and_coercion(self):
        brief = BriefSpec.model_validate(
            {
                "typeOfPromotion": "cashback",
                "cashback": {"amount": "$100", "bands": [{"minPrice": "0", "maxPrice": "1000", "amount": 50}]},
                "expectedBuyers": "20,000",
                "heroPrizeCount": "3",
                "retailers": "Harvey Norman, JB Hi-Fi",
            }
        )
        assert brief.type_of_promotion == "CASHBACK"
        assert brief.cashback.amount == 100.0
        assert brief.cashback.bands[0].max_price == 1000.0
        assert brief.expected_buyers == 20000.0
        assert brief.hero_prize_count == 3
        assert brief.retailers == ["Harvey Norman", "JB Hi-Fi"]

    def test_malformed_numbers_become_none(self):
        brief = BriefSpec.model_validate({"expectedBuyers": "heaps", "avgPrice": "tbc"})
        assert brief.expected_buyers is None
        assert brief.avg_price is None

    def test_runner_ups_keep_thousands_separators(self):
        brief = BriefSpec.model_validate({"runnerUps": "1,000 x $20 vouchers\n50 x $100 cards"})
        assert brief.runner_ups == ["1,000 x $20 vouchers", "50 x $100 cards"]

    def test_as_text_is_lowercase_and_skips_defaults(self):
        brief = BriefSpec.model_validate({"hook": "Instant WIN every hour"})
        text = brief.as_text()
        assert "instant win every hour" in text
        assert "retailers" not in text

    def test_brief_is_frozen(self):
        brief = BriefSpec.model_validate({"hook": "x"})
        with pytest.raises(ValidationError):
            brief.hook = "y"


class TestCampaignContext:
    def test_requires_id(self):
        with pytest.raises(ValidationError):
            CampaignContext.model_validate({"id": "  "})

    def test_defaults_market_to_au(self):
        ctx = CampaignContext.model_validate({"id": "c1", "market": ""})
        assert ctx.market == "AU"

    def test_unreadable_start_date_is_dropped(self):
        ctx = CampaignContext.model_validate({"id": "c1", "startDate": "next winter"})
        assert ctx.start_date is None


def test_outcome_carries_drop_reason():
    ok = Outcome.success(3)
    dropped = Outcome.dropped(DropReason.FETCH_TIMEOUT, "slow")
    assert ok.ok and ok.value == 3
    assert not dropped.ok
    assert dropped.reason is DropReason.FETCH_TIMEOUT
    assert dropped.detail == "slow"


def test_research_pack_round_trips_through_json():
    pack = ResearchPack(campaign_id="c1", meta=ResearchMeta(level=ResearchLevel.DEEP))
    restored = ResearchPack.model_validate(pack.model_dump(mode="json"))
    assert restored == pack
