"""
Tests for the category classifier
"""
import pytest

from core import CategoryTag, LiquorSub
from pipeline.categories import (
    CATEGORY_RULES,
    DESSERT_COMPETITORS,
    build_profile,
    category_defaults,
    classify_text,
)


@pytest.mark.parametrize(
    "raw, tag",
    [
        ("Mobile broadband", CategoryTag.TELCO),
        ("Craft beer", CategoryTag.ALCOHOL),
        ("Whitegoods / kitchen appliances", CategoryTag.APPLIANCES),
        ("Energy drink", CategoryTag.ENERGY),
        ("Potato chips", CategoryTag.SNACKS),
        ("Protein pudding", CategoryTag.FMCG),
        ("Garden furniture", CategoryTag.GENERIC),
    ],
)
def test_classify_text(raw, tag):
    assert classify_text(raw) is tag


def test_rule_table_is_ordered_first_match_wins():
    # "pet food" appears in both PET and FMCG rows; PET comes first.
    tags = [rule.tag for rule in CATEGORY_RULES]
    assert tags.index(CategoryTag.PET) < tags.index(CategoryTag.FMCG)
    assert classify_text("premium pet food") is CategoryTag.PET


class TestCategoryDefaults:
    def test_appliances(self):
        defaults = category_defaults("Appliances")
        assert (defaults.asp_fallback, defaults.absolute_floor, defaults.percent_floor) == (1500, 50, 4)

    def test_liquor(self):
        assert category_defaults("Wine").absolute_floor == 5

    def test_dessert_uses_grocery_floors(self):
        assert category_defaults("Chilled dessert").asp_fallback == 6

    def test_fallback(self):
        assert category_defaults("").asp_fallback == 100


class TestBuildProfile:
    def test_brief_lists_win_over_defaults(self, campaign_factory):
        ctx = campaign_factory({"retailers": ["Bing Lee"], "competitors": ["Fisher & Paykel"]}, category="Appliances")
        profile = build_profile(ctx)
        assert profile.tag is CategoryTag.APPLIANCES
        assert profile.retailers == ("Bing Lee",)
        assert profile.competitors == ("Fisher & Paykel",)

    def test_defaults_exclude_own_brand(self, campaign_factory):
        ctx = campaign_factory({}, category="Appliances", clientName="Samsung")
        profile = build_profile(ctx, brand_title="Samsung")
        assert "Harvey Norman" in profile.retailers
        assert "Samsung" not in profile.competitors
        assert "LG" in profile.competitors

    def test_liquor_sub_type(self, campaign_factory):
        ctx = campaign_factory({}, category="Shiraz wine")
        profile = build_profile(ctx)
        assert profile.tag is CategoryTag.ALCOHOL
        assert profile.liquor_sub is LiquorSub.WINE
        assert "Penfolds" in profile.competitors

    def test_dessert_campaign_seeds_dessert_competitors(self, campaign_factory):
        ctx = campaign_factory({}, category="Chilled dessert", title="Winter pudding push")
        profile = build_profile(ctx)
        assert profile.dessert
        assert set(profile.competitors) <= set(DESSERT_COMPETITORS)
        assert profile.competitors
