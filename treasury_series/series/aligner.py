"""Series aligner - merges day-indexed series onto one forward-filled timeline.

Each source is forward-filled independently so a gap in one series never
disturbs another:
- a key never jumps back to an older value once updated
- days before a key's first value leave the key absent (never zero-filled)
- a lone point stays a lone point; drawing it as a flat line is up to the
  presentation layer (see ``extend_single_point``)
"""

import logging
from collections.abc import Mapping, Sequence

from ..core.exceptions import ValidationError
from ..core.models import DayPoint
from ..core.types import Timestamp
from .day_bucket import day_boundary

logger = logging.getLogger(__name__)

Number = int | float


def _explicit_values(points: Sequence[DayPoint], key: str) -> dict[Timestamp, Number]:
    values: dict[Timestamp, Number] = {}
    for point in sorted(points, key=lambda p: p.day):
        if key in point.values:
            values[day_boundary(point.day)] = point.values[key]
    return values


def align(
    sources: Mapping[str, Sequence[DayPoint]],
    range_start: Timestamp,
    range_end: Timestamp,
) -> list[DayPoint]:
    """
    Merge sources onto the union of their days inside the range.

    Args:
        sources: Series key -> that series' DayPoints (read under the same key)
        range_start: Start of the window; its whole day is included
        range_end: End of the window; its whole day is included

    Returns:
        DayPoints with strictly increasing days, one entry per key that has a
        value on or before that day

    Raises:
        ValidationError: If range_end is before range_start
    """
    if range_end < range_start:
        raise ValidationError("range_end", str(range_end), f"is before range_start={range_start}")

    lo = day_boundary(range_start)
    hi = day_boundary(range_end)

    explicit = {key: _explicit_values(points, key) for key, points in sources.items()}

    timeline = sorted(
        {day for values in explicit.values() for day in values if lo <= day <= hi}
    )

    last_known: dict[str, Number] = {}
    for key, values in explicit.items():
        earlier = [day for day in values if day < lo]
        if earlier:
            # A series that started before the window carries into it
            last_known[key] = values[max(earlier)]

    merged: list[DayPoint] = []
    for day in timeline:
        point_values: dict[str, Number] = {}
        for key, values in explicit.items():
            if day in values:
                last_known[key] = values[day]
            if key in last_known:
                point_values[key] = last_known[key]
        merged.append(DayPoint(day=day, values=point_values))

    logger.debug(
        f"Aligned {len(sources)} series onto {len(merged)} days in [{lo}, {hi}]"
    )
    return merged


def extend_single_point(
    series: Sequence[DayPoint],
    range_start: Timestamp,
    range_end: Timestamp,
) -> list[DayPoint]:
    """Duplicate a lone point at both ends of the range so it renders as a line."""
    if len(series) != 1:
        return list(series)
    values = dict(series[0].values)
    start, end = day_boundary(range_start), day_boundary(range_end)
    if start == end:
        return [DayPoint(day=start, values=values)]
    return [DayPoint(day=start, values=values), DayPoint(day=end, values=dict(values))]


def sum_keys(series: Sequence[DayPoint], keys: Sequence[str], target: str) -> list[DayPoint]:
    """Add ``target`` = sum of the present ``keys`` to every point that has any of them."""
    result = []
    for point in series:
        present = [point.values[k] for k in keys if k in point.values]
        values = dict(point.values)
        if present:
            values[target] = sum(present)
        result.append(DayPoint(day=point.day, values=values))
    return result
