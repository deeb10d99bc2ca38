"""UTC day bucketing shared by every series.

Events, snapshots and schedules come from independently clocked chains;
normalizing every timestamp to the UTC midnight of its day is what lets
them be compared positionally.
"""

from collections.abc import Iterator

from ..core.exceptions import ValidationError
from ..core.types import SECONDS_PER_DAY, TimeRange, Timestamp

RANGE_SECONDS: dict[str, int] = {
    "7d": 7 * SECONDS_PER_DAY,
    "30d": 30 * SECONDS_PER_DAY,
    "90d": 90 * SECONDS_PER_DAY,
    "3m": 90 * SECONDS_PER_DAY,
    "1y": 365 * SECONDS_PER_DAY,
}


def day_boundary(timestamp: Timestamp) -> Timestamp:
    """
    Return the UTC midnight of the day containing ``timestamp``.

    Formula: floor(timestamp / 86400) × 86400

    Raises:
        ValidationError: If the timestamp is negative
    """
    if timestamp < 0:
        raise ValidationError("timestamp", str(timestamp), "must be non-negative")
    return (timestamp // SECONDS_PER_DAY) * SECONDS_PER_DAY


def iter_days(start: Timestamp, end: Timestamp) -> Iterator[Timestamp]:
    """Yield every day boundary from the day of ``start`` to the day of ``end``."""
    day = day_boundary(start)
    last = day_boundary(end)
    while day <= last:
        yield day
        day += SECONDS_PER_DAY


def day_count(start: Timestamp, end: Timestamp) -> int:
    """Number of calendar days covered by ``[start, end]``, both ends inclusive."""
    if end < start:
        raise ValidationError("range_end", str(end), f"is before range_start={start}")
    return (day_boundary(end) - day_boundary(start)) // SECONDS_PER_DAY + 1


def range_start_for(
    time_range: TimeRange,
    now: Timestamp,
    project_start: Timestamp = 0,
) -> Timestamp:
    """
    Start timestamp of a preset chart range.

    ``all`` starts at the project's first data point; other presets never
    start before it either.
    """
    if time_range == "all":
        return project_start
    try:
        span = RANGE_SECONDS[time_range]
    except KeyError:
        raise ValidationError("time_range", str(time_range), f"expected one of {sorted(RANGE_SECONDS)} or 'all'")
    return max(project_start, now - span, 0)
