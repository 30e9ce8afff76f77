"""
Tests for promo discovery seeds and live fact query planning
"""
from core import CategoryTag, LiquorSub
from pipeline.facts import BriefSignals
from pipeline.queries import (
    COMPETITOR_SEEDS,
    FACT_SECTIONS,
    QueryInputs,
    live_fact_queries,
    promo_seeds,
    templates_for,
)


def _inputs(**overrides) -> QueryInputs:
    values = dict(
        tag=CategoryTag.APPLIANCES,
        brand="Westinghouse",
        category="Appliances",
        market="AU",
        competitors=("LG", "Samsung"),
        retailers=("Harvey Norman",),
    )
    values.update(overrides)
    return QueryInputs(**values)


def test_templates_fall_back_to_default_row():
    assert templates_for(COMPETITOR_SEEDS, CategoryTag.GENERIC) == COMPETITOR_SEEDS[-1][1]
    assert templates_for((), CategoryTag.GENERIC) == ()


class TestPromoSeeds:
    def test_seeds_are_unique_and_capped(self):
        seeds = promo_seeds(_inputs(), cap=5)
        assert len(seeds) == 5
        assert len(set(seeds)) == 5
        assert seeds[0] == "LG win competition Australia"

    def test_cashback_templates_only_for_assured(self):
        prize = promo_seeds(_inputs(), cap=100)
        assured = promo_seeds(_inputs(assured=True), cap=100)
        assert not any("cashback" in q for q in prize)
        assert "LG cashback promotion Australia" in assured

    def test_all_prefixed_queries_are_dropped(self):
        seeds = promo_seeds(_inputs(competitors=("all brands",), brand="", retailers=()), cap=100)
        assert seeds == ["Appliances prize draw Australia"]

    def test_hooks_and_retailers_seed_brand_queries(self):
        cues = BriefSignals(hook_signals=["Cook more"])
        seeds = promo_seeds(_inputs(cues=cues), cap=100)
        assert "Westinghouse Cook more promotion AU" in seeds
        assert "Westinghouse Harvey Norman promotion AU" in seeds

    def test_on_premise_alcohol_adds_venue_variants(self):
        seeds = promo_seeds(
            _inputs(tag=CategoryTag.ALCOHOL, brand="Coopers", competitors=("Carlton",), retailers=(),
                    category="Beer", on_premise=True, anchor="Coopers"),
            cap=100,
        )
        assert "Carlton pub promotion AU" in seeds
        assert "Coopers St Patrick's Day pub promotion" in seeds
        assert "St Patrick's Day pub promotion Australia" in seeds


class TestLiveFactQueries:
    def test_every_section_present_and_capped(self):
        queries = live_fact_queries(_inputs(assured=True), per_section=4)
        assert tuple(queries) == FACT_SECTIONS
        for section, items in queries.items():
            assert len(items) <= 4, section
            assert len({q.lower() for q in items}) == len(items)

    def test_no_category_means_no_category_queries(self):
        assert live_fact_queries(_inputs(category=""))["category"] == []

    def test_liquor_sub_label_in_market_queries(self):
        queries = live_fact_queries(_inputs(tag=CategoryTag.ALCOHOL, liquor_sub=LiquorSub.WINE), per_section=20)
        assert "Australia wine category promotion trends" in queries["market"]

    def test_dessert_adds_competitor_profile(self):
        queries = live_fact_queries(
            _inputs(tag=CategoryTag.FMCG, competitors=("Sara Lee",), dessert=True), per_section=50
        )
        assert "Sara Lee instant win AU" in queries["competitors"]
        assert "Sara Lee chilled dessert brand Australia" in queries["competitors"]
