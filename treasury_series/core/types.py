"""Type definitions and enums for the treasury series engine."""

from enum import Enum
from typing import Literal


class EventKind(str, Enum):
    """Kinds of treasury events replayed into balances."""

    PAY = "pay"
    CASH_OUT = "cash_out"


class SeriesView(str, Enum):
    """How multi-chain series are presented."""

    COMBINED = "combined"    # Aggregate cross-chain values only
    PER_CHAIN = "per_chain"  # One key per chain plus their sum


class ChartKind(str, Enum):
    """Chart families the builder produces series for."""

    BALANCE = "balance"
    VOLUME = "volume"
    PRICE = "price"
    CASH_OUT_COMPARISON = "cash_out_comparison"
    HOLDERS = "holders"
    REDEMPTION_CURVE = "redemption_curve"


class DataSource(str, Enum):
    """Upstream collaborator identifiers used in the audit trail."""

    EVENTS = "events"
    MOMENTS = "moments"
    TAX_SNAPSHOTS = "tax_snapshots"
    TOPOLOGY = "topology"
    RULESETS = "rulesets"
    POOL = "pool"
    HOLDERS = "holders"
    CACHE = "cache"
    UNKNOWN = "unknown"


SECONDS_PER_DAY = 86_400
MAX_TAX_RATE = 10_000          # Basis points
MAX_WEIGHT_CUT_PERCENT = 10**9  # Weight cut is expressed out of 1e9
WEIGHT_DECIMALS = 18

# Series keys shared by every chart
COMBINED_KEY = "combined"
ISSUANCE_KEY = "issuance"
CASH_OUT_KEY = "cash_out"
POOL_KEY = "pool"
COUNT_KEY = "count"
VOLUME_KEY = "volume"
CHAIN_KEY_PREFIX = "chain-"


def chain_key(chain_id: int) -> str:
    """Series key for a single chain, e.g. ``chain-42161``."""
    return f"{CHAIN_KEY_PREFIX}{chain_id}"


def breakdown_key(field: str, chain_id: int) -> str:
    """Per-chain breakdown field on a shared point, e.g. ``volume.chain-10``."""
    return f"{field}.{chain_key(chain_id)}"


def key_chain_id(key: str) -> int | None:
    """Chain id named by a series key, or None for aggregate keys like ``combined``."""
    _, _, tail = key.rpartition(".")
    if not tail.startswith(CHAIN_KEY_PREFIX):
        return None
    suffix = tail[len(CHAIN_KEY_PREFIX):]
    return int(suffix) if suffix.isdigit() else None


# Type aliases for common patterns
Timestamp = int      # Unix timestamp in seconds
TokenUnits = int     # Amount in the token's smallest unit (uint256 range)
BasisPoints = int    # 0-10000
Percentage = float   # 0-100 scale

TimeRange = Literal["7d", "30d", "90d", "3m", "1y", "all"]
