"""Issuance price schedule.

The issuance price is what a payer pays per project token: 1 / weight,
where the weight decays by ``weight_cut_percent`` at every cycle of the
active ruleset and steps at ruleset boundaries. It depends only on the
ruleset schedule, never on events.
"""

import logging
import math
from collections.abc import Sequence

from ..core.models import DayPoint, Ruleset
from ..core.types import (
    ISSUANCE_KEY,
    MAX_WEIGHT_CUT_PERCENT,
    WEIGHT_DECIMALS,
    Timestamp,
)
from ..series.day_bucket import iter_days

logger = logging.getLogger(__name__)


def active_ruleset(rulesets: Sequence[Ruleset], at: Timestamp) -> Ruleset | None:
    """The ruleset whose ``[start, next start)`` window contains ``at``."""
    active = None
    for ruleset in sorted(rulesets, key=lambda r: r.start):
        if ruleset.start > at:
            break
        active = ruleset
    return active


def issuance_price_at(rulesets: Sequence[Ruleset], at: Timestamp) -> float | None:
    """
    Price of one token, in base units, at ``at``.

    Formula: 1 / (weight × (1 - cut)^cycles)

    Returns:
        None before the first ruleset or when the weight has decayed to 0
    """
    ruleset = active_ruleset(rulesets, at)
    if ruleset is None or ruleset.weight <= 0:
        return None

    elapsed = at - ruleset.start
    cycles = elapsed // ruleset.duration if ruleset.duration > 0 else 0
    cut = ruleset.weight_cut_percent / MAX_WEIGHT_CUT_PERCENT

    weight = ruleset.weight / 10**WEIGHT_DECIMALS * (1 - cut) ** cycles
    if weight <= 0:
        return None
    price = 1 / weight
    return price if math.isfinite(price) else None


def issuance_series(
    rulesets: Sequence[Ruleset],
    range_start: Timestamp,
    range_end: Timestamp,
) -> list[DayPoint]:
    """
    One issuance price sample per day in the range.

    Each day is sampled at its boundary, except the first, which is sampled
    at ``range_start`` itself. Days without a defined price are omitted.
    """
    points = []
    for day in iter_days(range_start, range_end):
        price = issuance_price_at(rulesets, max(day, range_start))
        if price is not None:
            points.append(DayPoint(day=day, values={ISSUANCE_KEY: price}))
    logger.debug(f"Issuance series: {len(points)} days from {len(rulesets)} rulesets")
    return points
