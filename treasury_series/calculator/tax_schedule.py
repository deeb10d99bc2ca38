"""Cash-out tax schedule resolution.

A schedule is a set of snapshots, each effective from its ``start`` until
the next later-starting snapshot. No explicit end is needed.
"""

from collections.abc import Iterable

from ..core.models import TaxSnapshot
from ..core.types import BasisPoints, Timestamp


def effective_rate(snapshots: Iterable[TaxSnapshot], at: Timestamp) -> BasisPoints:
    """
    Cash-out tax rate in effect at ``at``.

    Caller order is not trusted: snapshots are stable-sorted by start.
    An empty or all-future schedule means "not yet taxed" and yields 0.

    Args:
        snapshots: Tax snapshots of one treasury
        at: Query timestamp

    Returns:
        Rate in basis points (0-10000)
    """
    rate = 0
    for snapshot in sorted(snapshots, key=lambda s: s.start):
        if snapshot.start > at:
            break
        rate = snapshot.cash_out_tax_rate
    return rate
