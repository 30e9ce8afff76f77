"""
Tests for ASP resolution, band selection and offer mode detection
"""
import pytest

from core import BriefSpec, CashbackBand, CashbackOffer, OfferMode
from pipeline.valuation import (
    band_for_asp,
    derive_cashback_value,
    detect_mode,
    research_assured,
    resolve_asp,
)


BANDS = [
    CashbackBand(min_price=0, max_price=100, amount=10),
    CashbackBand(min_price=100, amount=20),
]


@pytest.mark.parametrize("asp, expected", [(50, 10), (150, 20), (100, 20)])
def test_band_selection_is_half_open(asp, expected):
    assert band_for_asp(BANDS, asp).amount == expected


def test_band_fallbacks_when_nothing_contains_asp():
    bands = [
        CashbackBand(min_price=200, max_price=300, amount=30),
        CashbackBand(min_price=500, max_price=900, amount=50),
    ]
    # Highest band starting at or below the ASP.
    assert band_for_asp(bands, 400).amount == 30
    # Otherwise the lowest band starting above it.
    assert band_for_asp(bands, 100).amount == 30
    assert band_for_asp([], 100) is None


def test_percent_band_resolves_against_asp():
    offer = CashbackOffer(bands=[CashbackBand(min_price=0, percent=10), CashbackBand(min_price=2000, amount=400)])
    value = derive_cashback_value(offer, 1500)
    assert value.banded
    assert value.representative == pytest.approx(150)
    assert value.headline_max == pytest.approx(400)


def test_single_amount_cashback():
    value = derive_cashback_value(CashbackOffer(amount=25), 1500)
    assert not value.banded
    assert value.representative == 25
    assert value.headline_max == 25


def test_no_cashback_is_zero():
    value = derive_cashback_value(None, 1500)
    assert value.representative == 0
    assert not value.banded


class TestResolveAsp:
    def test_declared_price_wins(self, campaign_factory):
        ctx = campaign_factory({"avgPrice": 899}, category="Appliances")
        assert resolve_asp(ctx) == 899

    def test_category_benchmark_price(self, campaign_factory):
        ctx = campaign_factory({"categoryBenchmarks": {"avgPrice": "$42"}}, category="Appliances")
        assert resolve_asp(ctx) == 42

    def test_category_fallback(self, campaign_factory):
        assert resolve_asp(campaign_factory({}, category="Appliances")) == 1500


class TestDetectMode:
    def test_uncapped_cashback_is_assured(self):
        assert detect_mode(BriefSpec.model_validate({"cashback": {"amount": 10}})) is OfferMode.ASSURED

    def test_cashback_explicitly_not_assured(self):
        brief = BriefSpec.model_validate({"cashback": {"amount": 10, "assured": False}})
        assert detect_mode(brief) is OfferMode.PRIZE

    def test_capped_gwp_is_prize_but_researched_as_assured(self):
        brief = BriefSpec.model_validate({"typeOfPromotion": "GWP", "gwp": {"item": "Tote", "cap": "first 500"}})
        assert detect_mode(brief) is OfferMode.PRIZE
        assert research_assured(brief)

    def test_unlimited_gwp_is_assured(self):
        brief = BriefSpec.model_validate({"gwp": {"item": "Tote", "cap": "unlimited"}})
        assert detect_mode(brief) is OfferMode.ASSURED

    def test_assured_flag(self):
        assert detect_mode(BriefSpec.model_validate({"assuredValue": "yes"})) is OfferMode.ASSURED

    def test_prize_draw(self):
        assert detect_mode(BriefSpec.model_validate({"typeOfPromotion": "PRIZE"})) is OfferMode.PRIZE
