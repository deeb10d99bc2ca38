"""Tests for the issuance price schedule."""

import pytest

from treasury_series.calculator.issuance import (
    active_ruleset,
    issuance_price_at,
    issuance_series,
)
from treasury_series.core.models import Ruleset

from conftest import DAY, ETH


class TestIssuancePrice:
    """Tests for issuance_price_at."""

    def test_price_is_inverse_weight(self):
        rulesets = [Ruleset(start=0, weight=1000 * ETH)]
        assert issuance_price_at(rulesets, 5 * DAY) == pytest.approx(0.001)

    def test_weight_cut_per_cycle(self, rulesets):
        """A 50% cut per daily cycle doubles the price every day."""
        assert issuance_price_at(rulesets, 0) == pytest.approx(0.001)
        assert issuance_price_at(rulesets, DAY - 1) == pytest.approx(0.001)
        assert issuance_price_at(rulesets, DAY) == pytest.approx(0.002)
        assert issuance_price_at(rulesets, 2 * DAY + 10) == pytest.approx(0.004)

    def test_steps_at_ruleset_boundary(self):
        rulesets = [
            Ruleset(start=2 * DAY, weight=500 * ETH),
            Ruleset(start=0, weight=1000 * ETH),
        ]
        assert active_ruleset(rulesets, DAY).weight == 1000 * ETH
        assert issuance_price_at(rulesets, 2 * DAY) == pytest.approx(0.002)

    def test_before_first_ruleset(self):
        assert issuance_price_at([Ruleset(start=DAY, weight=ETH)], 0) is None

    def test_zero_weight(self):
        assert issuance_price_at([Ruleset(start=0, weight=0)], DAY) is None


class TestIssuanceSeries:
    """Tests for issuance_series."""

    def test_one_sample_per_day(self, rulesets):
        series = issuance_series(rulesets, 0, 3 * DAY)

        assert [p.day for p in series] == [0, DAY, 2 * DAY, 3 * DAY]
        assert [p.values["issuance"] for p in series] == pytest.approx(
            [0.001, 0.002, 0.004, 0.008]
        )

    def test_first_sample_at_range_start(self):
        """A ruleset starting mid-day still prices the first day."""
        rulesets = [Ruleset(start=DAY + 5, weight=1000 * ETH)]
        series = issuance_series(rulesets, DAY + 10, 2 * DAY)

        assert series[0].day == DAY
        assert series[0].values["issuance"] == pytest.approx(0.001)

    def test_days_without_price_omitted(self):
        rulesets = [Ruleset(start=2 * DAY, weight=1000 * ETH)]
        series = issuance_series(rulesets, 0, 3 * DAY)
        assert [p.day for p in series] == [2 * DAY, 3 * DAY]

    def test_no_rulesets(self):
        assert issuance_series([], 0, DAY) == []
