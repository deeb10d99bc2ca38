"""Tests for holder distribution normalization."""

import pytest

from treasury_series.calculator.holders import (
    OTHERS_LABEL,
    HolderDistributionNormalizer,
    display_label,
)
from treasury_series.core.exceptions import InvalidInputError
from treasury_series.core.models import HolderShare, RawHolder


class TestNormalize:
    """Tests for HolderDistributionNormalizer.normalize."""

    def test_others_fills_remainder(self, raw_holders):
        """60% + 30% -> Others 10%."""
        shares = HolderDistributionNormalizer().normalize(raw_holders, 1000)

        assert [s.percent for s in shares] == pytest.approx([60.0, 30.0, 10.0])
        others = shares[-1]
        assert others.is_others
        assert others.balance_units == 100

    def test_shares_sum_to_hundred(self, raw_holders):
        shares = HolderDistributionNormalizer().normalize(raw_holders, 1000)
        assert sum(s.percent for s in shares) == pytest.approx(100.0)

    def test_no_others_when_covered(self):
        raw = [RawHolder(address="0x1", balance_units=9995)]
        shares = HolderDistributionNormalizer().normalize(raw, 10000)

        assert len(shares) == 1
        assert not shares[0].is_others

    def test_custom_threshold(self, raw_holders):
        shares = HolderDistributionNormalizer(others_threshold=80.0).normalize(raw_holders, 1000)
        assert len(shares) == 2

    def test_input_order_kept(self):
        raw = [
            RawHolder(address="0xsmall", balance_units=1),
            RawHolder(address="0xbig", balance_units=99),
        ]
        shares = HolderDistributionNormalizer().normalize(raw, 100)
        assert [s.address for s in shares] == ["0xsmall", "0xbig"]

    def test_empty_input(self):
        assert HolderDistributionNormalizer().normalize([], 1000) == []

    def test_zero_supply_rejected(self, raw_holders):
        with pytest.raises(InvalidInputError):
            HolderDistributionNormalizer().normalize(raw_holders, 0)

    def test_balances_exceeding_supply_rejected(self, raw_holders):
        with pytest.raises(InvalidInputError):
            HolderDistributionNormalizer().normalize(raw_holders, 500)


class TestFilterByChains:
    """Tests for HolderDistributionNormalizer.filter_by_chains."""

    def test_percentages_rebased_to_subtotal(self, raw_holders):
        shares = HolderDistributionNormalizer().filter_by_chains(raw_holders, [1])

        assert len(shares) == 1
        assert shares[0].percent == pytest.approx(100.0)

    def test_chain_supply_adds_remainder(self, raw_holders):
        shares = HolderDistributionNormalizer().filter_by_chains(raw_holders, [1], chain_supply=1000)

        assert [s.percent for s in shares] == pytest.approx([60.0, 40.0])
        assert shares[-1].is_others

    def test_multi_chain_holder_counted(self):
        raw = [RawHolder(address="0x1", balance_units=5, chains=frozenset({1, 10}))]
        shares = HolderDistributionNormalizer().filter_by_chains(raw, [10])
        assert shares[0].address == "0x1"

    def test_no_holders_on_chain(self, raw_holders):
        assert HolderDistributionNormalizer().filter_by_chains(raw_holders, [8453]) == []


class TestDisplayLabel:
    """Tests for display_label."""

    def test_shortened_address(self):
        share = HolderShare(address="0x" + "a" * 36 + "beef", balance_units=1, percent=1.0)
        assert display_label(share) == "0xaaaa...beef"

    def test_short_address_unchanged(self):
        share = HolderShare(address="0x1234", balance_units=1, percent=1.0)
        assert display_label(share) == "0x1234"

    def test_others(self):
        share = HolderShare(address="", balance_units=1, percent=1.0)
        assert display_label(share) == OTHERS_LABEL
