"""Tests for balance replay."""

import logging

import pytest

from treasury_series.core.exceptions import UnknownChainError
from treasury_series.core.models import DayPoint
from treasury_series.series.replay import (
    balance_on_or_before,
    replay,
    replay_all,
    running_balances,
)

from conftest import DAY, cash_out, pay


class TestReplay:
    """Tests for single-chain replay."""

    def test_pay_pay_cash_out(self, scenario_events):
        """pay 100, pay 50, cash out 30 -> 100, 150, 120."""
        points = replay(scenario_events, chain_id=1)

        assert [p.day for p in points] == [0, DAY, 2 * DAY]
        assert [p.values["chain-1"] for p in points] == [100, 150, 120]

    def test_input_order_does_not_matter(self, scenario_events):
        assert replay(list(reversed(scenario_events)), 1) == replay(scenario_events, 1)

    def test_last_write_of_day_wins(self):
        events = [pay(10, 100), cash_out(20, 40), pay(30, 5)]
        points = replay(events, 1)
        assert points == [DayPoint(day=0, values={"chain-1": 65})]

    def test_overdrawn_cash_out_clamps(self, caplog):
        events = [pay(0, 10), cash_out(DAY, 50), pay(2 * DAY, 5)]

        with caplog.at_level(logging.WARNING):
            points = replay(events, 1)

        assert [p.values["chain-1"] for p in points] == [10, 0, 5]
        assert "clamping to 0" in caplog.text

    def test_other_chains_filtered_out(self, two_chain_events):
        points = replay(two_chain_events, 10)
        assert [p.values["chain-10"] for p in points] == [6 * 10**18, 10 * 10**18]

    def test_no_events(self):
        assert replay([], 1) == []

    def test_running_balances(self, scenario_events):
        assert list(running_balances(scenario_events)) == [
            (0, 100),
            (DAY, 150),
            (2 * DAY, 120),
        ]


class TestReplayAll:
    """Tests for multi-chain replay."""

    def test_every_requested_chain_present(self, two_chain_events):
        result = replay_all(two_chain_events, [1, 10, 8453])

        assert set(result) == {1, 10, 8453}
        assert result[8453] == []
        assert result[1][-1].values["chain-1"] == 8 * 10**18

    def test_unknown_chain_rejected(self, two_chain_events):
        with pytest.raises(UnknownChainError) as exc_info:
            replay_all(two_chain_events, [1])

        assert exc_info.value.chain_id == 10
        assert exc_info.value.details["requested"] == [1]


class TestBalanceOnOrBefore:
    """Tests for balance lookups on a replayed series."""

    def test_lookup(self, scenario_events):
        points = replay(scenario_events, 1)

        assert balance_on_or_before(points, "chain-1", DAY) == 150
        assert balance_on_or_before(points, "chain-1", 10 * DAY) == 120

    def test_before_first_point(self):
        points = replay([pay(DAY, 5)], 1)
        assert balance_on_or_before(points, "chain-1", 0) is None

    def test_gap_day_uses_previous(self):
        points = replay([pay(0, 5), pay(3 * DAY, 5)], 1)
        assert balance_on_or_before(points, "chain-1", 2 * DAY) == 5
