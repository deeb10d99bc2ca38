"""Volume aggregator - daily payment counts and volumes over a date range."""

import logging
from collections import defaultdict
from collections.abc import Iterable

from ..core.models import DayPoint, Event
from ..core.types import (
    COUNT_KEY,
    VOLUME_KEY,
    EventKind,
    Timestamp,
    breakdown_key,
)
from .day_bucket import day_boundary, day_count, iter_days

logger = logging.getLogger(__name__)


def aggregate(
    events: Iterable[Event],
    range_start: Timestamp,
    range_end: Timestamp,
    by_chain: bool = False,
) -> list[DayPoint]:
    """
    Bucket pay events into one point per calendar day, empty days included.

    Volumes are summed as ints in the token's smallest unit; no float
    accumulation happens here.

    Args:
        events: Events to aggregate (cash-outs are ignored)
        range_start: First day of the range (any time within it)
        range_end: Last day of the range (any time within it)
        by_chain: Also emit ``count.chain-<id>`` / ``volume.chain-<id>`` fields

    Returns:
        Exactly ``day_count(range_start, range_end)`` DayPoints
    """
    day_count(range_start, range_end)  # Rejects inverted ranges
    lo, hi = day_boundary(range_start), day_boundary(range_end)

    counts: dict[Timestamp, int] = defaultdict(int)
    volumes: dict[Timestamp, int] = defaultdict(int)
    chain_counts: dict[tuple[Timestamp, int], int] = defaultdict(int)
    chain_volumes: dict[tuple[Timestamp, int], int] = defaultdict(int)
    chains: set[int] = set()

    skipped = 0
    for event in events:
        if event.kind != EventKind.PAY:
            continue
        day = day_boundary(event.timestamp)
        if day < lo or day > hi:
            skipped += 1
            continue
        counts[day] += 1
        volumes[day] += event.amount
        if by_chain:
            chains.add(event.chain_id)
            chain_counts[(day, event.chain_id)] += 1
            chain_volumes[(day, event.chain_id)] += event.amount

    if skipped:
        logger.debug(f"Ignored {skipped} pay events outside [{lo}, {hi}]")

    points = []
    for day in iter_days(range_start, range_end):
        values: dict[str, int | float] = {
            COUNT_KEY: counts.get(day, 0),
            VOLUME_KEY: volumes.get(day, 0),
        }
        for cid in sorted(chains):
            values[breakdown_key(COUNT_KEY, cid)] = chain_counts.get((day, cid), 0)
            values[breakdown_key(VOLUME_KEY, cid)] = chain_volumes.get((day, cid), 0)
        points.append(DayPoint(day=day, values=values))

    return points


def totals(points: Iterable[DayPoint]) -> tuple[int, int]:
    """Total ``(count, volume)`` across aggregated points."""
    count = volume = 0
    for point in points:
        count += int(point.values.get(COUNT_KEY, 0))
        volume += int(point.values.get(VOLUME_KEY, 0))
    return count, volume
