"""Day-indexed series reconstruction: bucketing, replay, alignment, volume."""

from .day_bucket import day_boundary, day_count, iter_days, range_start_for
from .replay import replay, replay_all, running_balances, balance_on_or_before
from .aligner import align, extend_single_point, sum_keys
from .volume import aggregate, totals

__all__ = [
    "day_boundary",
    "day_count",
    "iter_days",
    "range_start_for",
    "replay",
    "replay_all",
    "running_balances",
    "balance_on_or_before",
    "align",
    "extend_single_point",
    "sum_keys",
    "aggregate",
    "totals",
]
