"""
Tests for benchmark statistics over the competitor promo sample
"""
import pytest

from core import Cadence, CompetitorPromo, MarketPosition, PromoType, ResearchBenchmarks
from pipeline.benchmarks import (
    LIVE_SCAN_SOURCE,
    aggregate_benchmarks,
    market_position,
    median,
    mode,
    parse_amounts_and_percents,
    quantile,
    signal_facts,
)


def _promo(brand="Acme", type=PromoType.PRIZE, **fields) -> CompetitorPromo:
    return CompetitorPromo(brand=brand, url=f"https://{brand.lower()}.example.com", source="example.com", type=type, **fields)


class TestStatistics:
    def test_empty_input_is_none(self):
        assert median([]) is None
        assert quantile([], 0.25) is None
        assert mode([]) is None

    def test_non_finite_values_are_ignored(self):
        assert median([1, float("nan"), 3]) == 2.0

    def test_median_and_quantiles(self):
        values = [10, 20, 30, 40]
        assert median(values) == 25.0
        assert quantile(values, 0.25) == pytest.approx(17.5)
        assert quantile(values, 0.75) == pytest.approx(32.5)

    def test_mode_ties_go_to_smallest(self):
        assert mode([3, 2, 3, 2, 5]) == 2.0
        assert mode([4, 4, 1]) == 4.0


def test_parse_amounts_and_percents():
    amounts, percents = parse_amounts_and_percents("Get up to $200 back or 15% off, AUD 1500 max")
    assert 200.0 in amounts
    assert 1500.0 in amounts
    assert percents == [15.0]


@pytest.mark.parametrize(
    "value, typical, position",
    [
        (130, 100, MarketPosition.ABOVE_TYPICAL),
        (100, 100, MarketPosition.AT_TYPICAL),
        (50, 100, MarketPosition.BELOW_TYPICAL),
        (0, 100, MarketPosition.UNKNOWN),
        (100, None, MarketPosition.UNKNOWN),
    ],
)
def test_market_position(value, typical, position):
    assert market_position(value, typical) is position


class TestAggregate:
    def test_empty_sample(self):
        benchmarks = aggregate_benchmarks([])
        assert benchmarks.hero_prize is None
        assert benchmarks.position_vs_market is MarketPosition.UNKNOWN

    def test_prize_statistics(self):
        promos = [
            _promo("A", hero_count=1, total_winners=500, cadence=Cadence.WEEKLY),
            _promo("B", hero_count=3, total_winners=20, cadence=Cadence.INSTANT),
            _promo("C", hero_count=3, total_winners=150),
        ]
        benchmarks = aggregate_benchmarks(promos)

        assert benchmarks.hero_prize.median == 3.0
        assert benchmarks.hero_prize.mode == 3.0
        assert benchmarks.many_winners_share == pytest.approx(2 / 3)
        # Cadence shares are over the tagged promos only.
        assert benchmarks.cadence_share.instant == 0.5
        assert benchmarks.cadence_share.weekly == 0.5
        assert benchmarks.recommended_hero_count == 3
        assert benchmarks.prize_counts_observed.common[0].count == 3
        assert benchmarks.cashback is None

    def test_assured_cashback_statistics(self):
        promos = [
            _promo("A", type=PromoType.CASHBACK, prize_value_hint="$100", headline="Up to 10% back"),
            _promo("B", type=PromoType.CASHBACK, prize_value_hint="200"),
            _promo("C", type=PromoType.CASHBACK, prize_value_hint="$300"),
            _promo("D", hero_count=1),
        ]
        benchmarks = aggregate_benchmarks(promos, assured=True, campaign_value=50)

        assert benchmarks.cashback.sample == 3
        assert benchmarks.cashback.typical_abs == 200.0
        assert benchmarks.cashback.max_abs == 300.0
        assert benchmarks.cashback.typical_pct == 10.0
        assert benchmarks.cashback_abs.median == 200.0
        assert benchmarks.cashback_abs.p25 == 150.0
        assert benchmarks.cashback_abs.sample_size == 3
        assert benchmarks.position_vs_market is MarketPosition.BELOW_TYPICAL

    def test_assured_without_cashback_promos_keeps_unknown_position(self):
        benchmarks = aggregate_benchmarks([_promo("A", hero_count=2)], assured=True, campaign_value=50)
        assert benchmarks.cashback.sample == 0
        assert benchmarks.cashback_abs.median is None
        assert benchmarks.position_vs_market is MarketPosition.UNKNOWN


def test_signal_facts_describe_sample():
    benchmarks = ResearchBenchmarks.model_validate(
        {
            "hero_prize": {"median": 3, "mode": 1},
            "cadence_share": {"instant": 0.5, "weekly": 0, "daily": 0.5},
        }
    )
    facts = signal_facts(benchmarks)
    assert [f.source for f in facts] == [LIVE_SCAN_SOURCE, LIVE_SCAN_SOURCE]
    assert "~3 (mode ≈ 1)" in facts[0].claim
    assert facts[1].claim == "Cadence cues common in-market: instant & daily."


def test_signal_facts_empty_for_empty_benchmarks():
    assert signal_facts(ResearchBenchmarks()) == []
