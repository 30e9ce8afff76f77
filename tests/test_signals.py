"""
Tests for promotion signal extraction
"""
import pytest

from core import Cadence, DropReason, PromoType, SearchResult
from pipeline.signals import build_promo, decided_signals, extract_promo_signals, guess_brand
from utils.exceptions import ParseEmpty


CASHBACK_PAGE = "<title>Samsung Cashback</title><h1>Get up to $200 cashback</h1>"
PRIZE_PAGE = (
    "<title>Winter Giveaway</title>"
    "<p>Win 1 of 3 major prizes! Over 500 winners.</p>"
    "<p>Weekly draw for a brand new car.</p>"
)


class TestExtractSignals:
    def test_cashback_page(self):
        signals = extract_promo_signals(CASHBACK_PAGE)
        assert signals.type is PromoType.CASHBACK
        assert signals.prize_value_hint == "$200"
        assert signals.title == "Samsung Cashback"
        assert signals.headline == "Get up to $200 cashback"

    def test_prize_page(self):
        signals = extract_promo_signals(PRIZE_PAGE)
        assert signals.type is PromoType.PRIZE
        assert signals.hero_count == 3
        assert signals.total_winners == 500
        assert signals.cadence is Cadence.WEEKLY
        assert "car" in signals.prize_items

    def test_gift_with_purchase(self):
        signals = extract_promo_signals("Bonus gift with purchase: free prepaid Visa gift card worth $50")
        assert signals.type is PromoType.GWP
        assert signals.gift_card == "$50 gift card"

    def test_eofy_without_amount(self):
        assert extract_promo_signals("EOFY cashback now on").prize_value_hint == "EOFY bonus"

    def test_empty_page_is_other(self):
        signals = extract_promo_signals("")
        assert signals.type is PromoType.OTHER
        assert signals.prize_items == []

    def test_up_to_amount_beats_spend_threshold(self):
        signals = extract_promo_signals("Spend $50 and get up to $300 cashback")
        assert signals.prize_value_hint == "$300"
        assert extract_promo_signals("Spend $50, get $20 back. Cashback ends soon").prize_value_hint == "$50"

    @pytest.mark.parametrize(
        "text",
        ["Win one of 1000 prizes", "Over 2,500 prizes to be won", "Win 1 of 1000 instant prizes"],
    )
    def test_hero_count_ignores_tails_of_larger_numbers(self, text):
        assert extract_promo_signals(text).hero_count is None

    def test_total_winners_ignores_tails_of_larger_numbers(self):
        assert extract_promo_signals("Over 2,500 winners this winter").total_winners is None

    @pytest.mark.parametrize(
        "page",
        [
            "<title>Shiraz wine range</title> Browse our wine list. Shop now.",
            "Winter window specials on dining sets",
        ],
    )
    def test_words_containing_win_are_not_prize_evidence(self, page):
        assert extract_promo_signals(page).type is PromoType.OTHER

    def test_decided_signals_raise_on_untyped_page(self):
        with pytest.raises(ParseEmpty):
            decided_signals("<p>Opening hours</p>")
        assert decided_signals(CASHBACK_PAGE).type is PromoType.CASHBACK


def test_guess_brand_prefers_named_competitor():
    result = SearchResult(title="LG winter cashback", url="https://promo.example.com.au/lg")
    assert guess_brand(result, ["LG"], ["Harvey Norman"]) == "LG"
    assert guess_brand(SearchResult(title="Deals", url="https://promo.example.com.au/x"), [], []) == "PROMO"


class TestBuildPromo:
    def test_typed_page_becomes_promo(self):
        result = SearchResult(title="Samsung deal", url="https://promo.example.com.au/samsung")
        outcome = build_promo(result, CASHBACK_PAGE, competitors=["Samsung"])
        assert outcome.ok
        promo = outcome.value
        assert promo.brand == "Samsung"
        assert promo.type is PromoType.CASHBACK
        assert promo.source == "Source: promo.example.com.au (https://promo.example.com.au/samsung)"
        assert promo.confidence == 0.6

    def test_untyped_page_drops_parse_empty(self):
        outcome = build_promo(SearchResult(url="https://x.example.com"), "<p>Store hours</p>")
        assert outcome.reason is DropReason.PARSE_EMPTY

    def test_cashback_page_drops_for_prize_campaign(self):
        outcome = build_promo(SearchResult(url="https://x.example.com"), CASHBACK_PAGE, assured=False)
        assert outcome.reason is DropReason.NOT_ASSURED

    def test_snippet_fills_missing_headline(self):
        result = SearchResult(title="Giveaway", url="https://x.example.com", snippet="Enter now")
        promo = build_promo(result, "<p>Win a trip</p>", assured=False).value
        assert promo.title == "Giveaway"
        assert promo.headline == "Enter now"
