"""Tests for the chart series builder."""

import pytest

from treasury_series.builder import HYPOTHETICAL_CASH_OUT_NOTE, ChartSeriesBuilder
from treasury_series.core.config import EngineConfig
from treasury_series.core.exceptions import UnknownChainError
from treasury_series.core.models import Moment, PoolPricePoint
from treasury_series.core.types import ChartKind, SeriesView

from conftest import DAY, ETH, pay


@pytest.fixture
def builder() -> ChartSeriesBuilder:
    return ChartSeriesBuilder()


class TestBalanceChart:
    """Tests for balance_chart."""

    def test_combined_from_moments(self, builder, sample_moments):
        result = builder.balance_chart(sample_moments, [], [1, 10], 0, 3 * DAY + 100)

        assert result.chart == ChartKind.BALANCE
        assert result.view == SeriesView.COMBINED
        assert result.series_keys == ["combined"]
        assert [p.values["combined"] for p in result.points] == [10.0, 16.0, 20.0, 18.0]

    def test_fallback_balance_single_point(self, builder):
        result = builder.balance_chart([], [], [1], 0, 3 * DAY + 5, fallback_balance=5 * ETH)

        assert len(result.points) == 1
        assert result.points[0].day == 3 * DAY
        assert result.latest("combined") == 5.0
        assert result.notes

    def test_no_data_flagged(self, builder):
        result = builder.balance_chart([], [], [1], 0, DAY)

        assert result.is_empty
        assert result.quality_flags[0].field == "balance"

    def test_per_chain_sums_chains(self, builder, two_chain_events):
        result = builder.balance_chart(
            [], two_chain_events, [1, 10], 0, 3 * DAY, view=SeriesView.PER_CHAIN
        )

        assert result.series_keys == ["combined", "chain-1", "chain-10"]
        assert [p.values["combined"] for p in result.points] == [10.0, 16.0, 20.0, 18.0]
        assert "chain-10" not in result.points[0].values
        assert result.points[3].values["chain-1"] == 8.0
        assert result.points[3].values["chain-10"] == 10.0

    def test_per_chain_matches_moments(self, builder, sample_moments, two_chain_events):
        """Replayed per-chain totals agree with the aggregate snapshots."""
        combined = builder.balance_chart(sample_moments, [], [1, 10], 0, 3 * DAY)
        per_chain = builder.balance_chart(
            [], two_chain_events, [1, 10], 0, 3 * DAY, view=SeriesView.PER_CHAIN
        )
        assert [p.values["combined"] for p in combined.points] == [
            p.values["combined"] for p in per_chain.points
        ]

    def test_chain_without_events_noted(self, builder):
        result = builder.balance_chart(
            [], [pay(0, ETH)], [1, 10], 0, DAY, view=SeriesView.PER_CHAIN
        )
        assert any("10" in note for note in result.notes)

    def test_unknown_chain(self, builder, two_chain_events):
        with pytest.raises(UnknownChainError):
            builder.balance_chart([], two_chain_events, [1], 0, 3 * DAY, view=SeriesView.PER_CHAIN)

    def test_usdc_decimals(self):
        builder = ChartSeriesBuilder(balance_decimals=6)
        result = builder.balance_chart([Moment(timestamp=0, balance=2_500_000, token_supply=ETH)], [], [1], 0, 0)
        assert result.latest("combined") == 2.5


class TestVolumeChart:
    """Tests for volume_chart."""

    def test_volume_in_display_units(self, builder, two_chain_events):
        result = builder.volume_chart(two_chain_events, 0, 3 * DAY)

        assert len(result.points) == 4
        assert result.points[0].values == {"count": 1, "volume": 10.0}
        assert result.points[3].values == {"count": 0, "volume": 0.0}
        assert "3 payments" in result.notes[0]

    def test_by_chain(self, builder, two_chain_events):
        result = builder.volume_chart(two_chain_events, 0, 3 * DAY, by_chain=True)

        assert result.view == SeriesView.PER_CHAIN
        assert "volume.chain-10" in result.series_keys
        assert result.points[1].values["volume.chain-10"] == 6.0
        assert result.points[1].values["count.chain-10"] == 1


class TestPriceChart:
    """Tests for price_chart."""

    def test_floor_and_issuance(self, builder, sample_moments, tax_snapshots, rulesets):
        result = builder.price_chart(sample_moments, tax_snapshots, rulesets, 0, 3 * DAY + 100)

        assert result.series_keys == ["issuance", "cash_out"]
        cash_out = [p.values["cash_out"] for p in result.points]
        # 0.1 per token untaxed, 20% tax from day 2
        assert cash_out == pytest.approx([0.1, 0.1, 0.08, 0.08])
        issuance = [p.values["issuance"] for p in result.points]
        assert issuance == pytest.approx([0.001, 0.002, 0.004, 0.008])

    def test_zero_supply_moments_skipped(self, builder, tax_snapshots):
        moments = [
            Moment(timestamp=0, balance=0, token_supply=0),
            Moment(timestamp=DAY, balance=ETH, token_supply=10 * ETH),
        ]
        result = builder.price_chart(moments, tax_snapshots, [], 0, DAY)

        assert [p.day for p in result.points] == [DAY]
        assert result.latest("cash_out") == pytest.approx(0.1)

    def test_pool_prices_forward_filled(self, builder, sample_moments):
        pool = [PoolPricePoint(timestamp=DAY + 5, price=0.003)]
        result = builder.price_chart(sample_moments, [], [], 0, 3 * DAY, pool_prices=pool)

        assert "pool" in result.series_keys
        assert "pool" not in result.points[0].values
        assert result.points[3].values["pool"] == 0.003

    def test_missing_cash_out_flagged(self, builder, rulesets):
        result = builder.price_chart([], [], rulesets, 0, DAY)

        assert result.series_keys == ["issuance"]
        assert result.quality_flags[0].field == "cash_out"


class TestCashOutComparison:
    """Tests for cash_out_comparison."""

    def test_per_chain_values(self, builder, sample_moments, tax_snapshots, two_chain_events):
        result = builder.cash_out_comparison(
            sample_moments, tax_snapshots, two_chain_events, [1, 10], 0, 3 * DAY + 100
        )

        day1 = result.points[1].values
        assert day1["combined"] == pytest.approx(0.1)
        assert day1["chain-1"] == pytest.approx(10 / 160)
        assert day1["chain-10"] == pytest.approx(6 / 160)
        assert "chain-10" not in result.points[0].values

    def test_chains_add_up_to_combined(self, builder, sample_moments, tax_snapshots, two_chain_events):
        """Chains valued against the shared supply sum to the combined value."""
        result = builder.cash_out_comparison(
            sample_moments, tax_snapshots, two_chain_events, [1, 10], 0, 3 * DAY + 100
        )
        for point in result.points[1:]:
            chains = point.values["chain-1"] + point.values["chain-10"]
            assert chains == pytest.approx(point.values["combined"])

    def test_hypothetical_note(self, builder, sample_moments, two_chain_events):
        result = builder.cash_out_comparison(sample_moments, [], two_chain_events, [1, 10], 0, 3 * DAY)
        assert HYPOTHETICAL_CASH_OUT_NOTE in result.notes

    def test_unknown_chain(self, builder, sample_moments, two_chain_events):
        with pytest.raises(UnknownChainError):
            builder.cash_out_comparison(sample_moments, [], two_chain_events, [10], 0, 3 * DAY)


class TestHoldersAndCurve:
    """Tests for holder_distribution and redemption_curve."""

    def test_holder_distribution(self, builder, raw_holders):
        result = builder.holder_distribution(raw_holders, 1000)

        assert result.chart == ChartKind.HOLDERS
        assert result.holders[-1].is_others
        assert result.holders[-1].percent == pytest.approx(10.0)

    def test_holder_distribution_by_chain(self, builder, raw_holders):
        result = builder.holder_distribution(raw_holders, 1000, chains=[10])
        assert [h.percent for h in result.holders] == pytest.approx([100.0])

    def test_no_holders_flagged(self, builder):
        result = builder.holder_distribution([], 0)

        assert result.holders == []
        assert result.quality_flags[0].field == "holders"

    def test_redemption_curve(self, builder):
        result = builder.redemption_curve(2000)

        assert result.chart == ChartKind.REDEMPTION_CURVE
        assert len(result.curve) == 51
        assert result.curve[0].value_per_token == pytest.approx(0.8)

    def test_from_config(self):
        config = EngineConfig(balance_decimals=6, others_threshold_pct=95.0)
        builder = ChartSeriesBuilder.from_config(config)

        assert builder.balance_decimals == 6
        assert builder.holders.others_threshold == 95.0
