"""Upstream source interfaces and caching.

This module contains interfaces for:
- Event history (pay / cash out)
- Snapshots (moments, tax schedule)
- Topology (connected chains, sucker group)
- Rulesets, pool prices and holders
"""

from .base import (
    BaseSource,
    EventSource,
    HolderSource,
    PoolPriceSource,
    RulesetSource,
    SnapshotSource,
    TopologySource,
)
from .cache import TTLCache

__all__ = [
    "BaseSource",
    "EventSource",
    "HolderSource",
    "PoolPriceSource",
    "RulesetSource",
    "SnapshotSource",
    "TopologySource",
    "TTLCache",
]
