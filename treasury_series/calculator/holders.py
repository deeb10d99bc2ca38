"""Holder distribution normalization for the holders pie chart.

Raw participant balances become percentage shares of supply. When the raw
list is a truncated top-N, a synthetic "Others" entry makes the shares
reconcile to 100%.
"""

import logging
from collections.abc import Iterable, Sequence

from ..core.exceptions import InvalidInputError
from ..core.models import HolderShare, RawHolder
from ..core.types import TokenUnits

logger = logging.getLogger(__name__)

OTHERS_LABEL = "Others"
DEFAULT_OTHERS_THRESHOLD = 99.9


class HolderDistributionNormalizer:
    """Converts raw holder balances into shares that sum to 100%."""

    def __init__(self, others_threshold: float = DEFAULT_OTHERS_THRESHOLD):
        """
        Initialize normalizer.

        Args:
            others_threshold: Add an "Others" entry when the listed holders'
                percentages sum to less than this
        """
        self.others_threshold = others_threshold

    def normalize(
        self,
        raw: Sequence[RawHolder],
        total_supply: TokenUnits,
    ) -> list[HolderShare]:
        """
        Compute each holder's share of ``total_supply``.

        Formula: percent = 100 × balance / total_supply

        Args:
            raw: Holder balances, possibly only the top N
            total_supply: Supply the percentages are relative to

        Returns:
            Shares in input order, plus an "Others" entry when the listed
            holders cover less than the threshold. Empty input yields [].

        Raises:
            InvalidInputError: If total_supply is not positive or the listed
                balances exceed it
        """
        if total_supply <= 0:
            raise InvalidInputError(
                f"Total supply must be positive, got {total_supply}",
                total_supply=total_supply,
            )
        if not raw:
            return []

        listed = sum(h.balance_units for h in raw)
        if listed > total_supply:
            raise InvalidInputError(
                f"Holder balances {listed} exceed total supply {total_supply}",
                listed=listed,
                total_supply=total_supply,
            )

        shares = [
            HolderShare(
                address=h.address,
                balance_units=h.balance_units,
                # Exact int ratio, rounded to float once
                percent=100 * h.balance_units / total_supply,
                chains=h.chains,
            )
            for h in raw
        ]

        covered = sum(s.percent for s in shares)
        if covered < self.others_threshold:
            shares.append(
                HolderShare(
                    address="",
                    balance_units=total_supply - listed,
                    percent=100 - covered,
                )
            )
            logger.debug(f"Added Others entry for {100 - covered:.3f}% of supply")

        return shares

    def filter_by_chains(
        self,
        raw: Sequence[RawHolder],
        chains: Iterable[int],
        chain_supply: TokenUnits | None = None,
    ) -> list[HolderShare]:
        """
        Distribution restricted to holders present on any of ``chains``.

        Percentages are recomputed against the filtered subtotal, not the
        original total, and the "Others" remainder is recomputed for it.

        Args:
            raw: Holder balances across all chains
            chains: Chains to keep
            chain_supply: Supply on the selected chains; defaults to the
                filtered holders' own total (no remainder then)
        """
        selected = set(chains)
        filtered = [h for h in raw if h.chains & selected]
        subtotal = chain_supply if chain_supply is not None else sum(h.balance_units for h in filtered)
        if subtotal == 0:
            logger.info(f"No holder balance on chains {sorted(selected)}")
            return []
        return self.normalize(filtered, subtotal)


def display_label(share: HolderShare, chars: int = 4) -> str:
    """Short label for a share: a shortened address, or "Others"."""
    if share.is_others:
        return OTHERS_LABEL
    address = share.address
    if len(address) <= 2 * chars + 2:
        return address
    return f"{address[:chars + 2]}...{address[-chars:]}"
