"""Pydantic data models for the treasury series engine.

All data structures are immutable (frozen) after creation so that every
computation takes immutable inputs and returns freshly built outputs.
Token amounts are plain ints, which cover the uint256 range without loss.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator

from .types import (
    MAX_TAX_RATE,
    MAX_WEIGHT_CUT_PERCENT,
    ChartKind,
    DataSource,
    EventKind,
    Percentage,
    SeriesView,
    Timestamp,
    TokenUnits,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Event(BaseModel):
    """A timestamped payment or cash-out on one chain."""

    timestamp: Timestamp = Field(ge=0)
    amount: TokenUnits = Field(ge=0)
    chain_id: int
    kind: EventKind
    sender: str | None = None

    model_config = {"frozen": True}


class PayRecord(BaseModel):
    """Pay event as delivered by the event source."""

    timestamp: Timestamp = Field(ge=0)
    amount: TokenUnits = Field(ge=0)
    sender: str | None = Field(default=None, alias="from")

    model_config = {"frozen": True, "populate_by_name": True}

    def to_event(self, chain_id: int) -> Event:
        return Event(
            timestamp=self.timestamp,
            amount=self.amount,
            chain_id=chain_id,
            kind=EventKind.PAY,
            sender=self.sender,
        )


class CashOutRecord(BaseModel):
    """Cash-out event as delivered by the event source."""

    timestamp: Timestamp = Field(ge=0)
    reclaim_amount: TokenUnits = Field(ge=0)
    sender: str | None = Field(default=None, alias="from")

    model_config = {"frozen": True, "populate_by_name": True}

    def to_event(self, chain_id: int) -> Event:
        return Event(
            timestamp=self.timestamp,
            amount=self.reclaim_amount,
            chain_id=chain_id,
            kind=EventKind.CASH_OUT,
            sender=self.sender,
        )


class Moment(BaseModel):
    """Aggregate cross-chain balance and supply snapshot of a sucker group."""

    timestamp: Timestamp = Field(ge=0)
    balance: TokenUnits = Field(ge=0)
    token_supply: TokenUnits = Field(ge=0)
    group_id: str = ""

    model_config = {"frozen": True}


class TaxSnapshot(BaseModel):
    """Cash-out tax rate effective from ``start`` until the next snapshot."""

    start: Timestamp = Field(ge=0)
    cash_out_tax_rate: int = Field(ge=0, le=MAX_TAX_RATE)

    model_config = {"frozen": True}


class Ruleset(BaseModel):
    """Issuance schedule entry: weight decays by ``weight_cut_percent`` each cycle."""

    start: Timestamp = Field(ge=0)
    duration: int = Field(default=0, ge=0)  # Seconds; 0 means no cycling
    weight: TokenUnits = Field(ge=0)  # Tokens per base unit, 18 decimals
    weight_cut_percent: int = Field(default=0, ge=0, le=MAX_WEIGHT_CUT_PERCENT)

    model_config = {"frozen": True}


class PoolPricePoint(BaseModel):
    """Market price of the project token from an external AMM pool."""

    timestamp: Timestamp = Field(ge=0)
    price: float = Field(gt=0)

    model_config = {"frozen": True}


class ConnectedChain(BaseModel):
    """One deployment of a project in its sucker group."""

    chain_id: int
    project_id: int

    model_config = {"frozen": True}


class RawHolder(BaseModel):
    """Raw participant balance aggregated across chains."""

    address: str
    balance_units: TokenUnits = Field(ge=0)
    chains: frozenset[int] = Field(default_factory=frozenset)

    model_config = {"frozen": True}


class HolderShare(BaseModel):
    """A holder's share of supply; the synthetic remainder has an empty address."""

    address: str
    balance_units: TokenUnits = Field(ge=0)
    percent: Percentage
    chains: frozenset[int] = Field(default_factory=frozenset)

    model_config = {"frozen": True}

    @property
    def is_others(self) -> bool:
        """Whether this is the synthetic "Others" remainder entry."""
        return self.address == ""


class DayPoint(BaseModel):
    """Values of one or more series at a UTC-midnight day boundary."""

    day: Timestamp = Field(ge=0)
    values: dict[str, int | float] = Field(default_factory=dict)

    model_config = {"frozen": True}

    def get(self, key: str) -> int | float | None:
        return self.values.get(key)


class CurvePoint(BaseModel):
    """One sample of the redemption curve shape."""

    fraction: float
    value_per_token: float

    model_config = {"frozen": True}


class AuditEntry(BaseModel):
    """Audit trail entry for a fetch or computation step."""

    timestamp: datetime = Field(default_factory=_utcnow)
    source: DataSource
    action: str  # "fetch", "cache_hit", "replay", "align"
    chain_id: int | None = None
    success: bool = True
    error_message: str | None = None
    duration_ms: int | None = None
    notes: str | None = None

    model_config = {"frozen": True}


class DataQualityFlag(BaseModel):
    """Flag indicating a data quality issue in a built series."""

    field: str
    issue: str
    severity: str = "warning"  # "info", "warning", "error"

    model_config = {"frozen": True}


class ChartSeries(BaseModel):
    """Complete output handed to the rendering layer for one chart."""

    chart: ChartKind
    view: SeriesView | None = None
    series_keys: list[str] = Field(default_factory=list)
    points: list[DayPoint] = Field(default_factory=list)
    holders: list[HolderShare] = Field(default_factory=list)
    curve: list[CurvePoint] = Field(default_factory=list)
    range_start: Timestamp | None = None
    range_end: Timestamp | None = None
    notes: list[str] = Field(default_factory=list)
    audit_trail: list[AuditEntry] = Field(default_factory=list)
    quality_flags: list[DataQualityFlag] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=_utcnow)

    model_config = {"frozen": True}

    @property
    def is_empty(self) -> bool:
        return not (self.points or self.holders or self.curve)

    def latest(self, key: str) -> int | float | None:
        """Most recent value of ``key``, if the series has any."""
        for point in reversed(self.points):
            if key in point.values:
                return point.values[key]
        return None

    def add_quality_flag(
        self, field: str, issue: str, severity: str = "warning"
    ) -> "ChartSeries":
        """Create a new result with an added quality flag (immutable pattern)."""
        new_flags = list(self.quality_flags)
        new_flags.append(DataQualityFlag(field=field, issue=issue, severity=severity))
        return self.model_copy(update={"quality_flags": new_flags})

    def with_audit(self, entries: list[AuditEntry]) -> "ChartSeries":
        """Create a new result with the given audit entries appended."""
        return self.model_copy(update={"audit_trail": [*self.audit_trail, *entries]})


class Dataset(BaseModel):
    """Already-fetched records for one project, as read by the CLI."""

    project_id: int | None = None
    chain_ids: list[int] = Field(default_factory=list)
    balance_decimals: int = Field(default=18, ge=0)
    events: list[Event] = Field(default_factory=list)
    moments: list[Moment] = Field(default_factory=list)
    tax_snapshots: list[TaxSnapshot] = Field(default_factory=list)
    rulesets: list[Ruleset] = Field(default_factory=list)
    pool_prices: list[PoolPricePoint] = Field(default_factory=list)
    holders: list[RawHolder] = Field(default_factory=list)
    total_supply: TokenUnits | None = None

    model_config = {"frozen": True}

    @field_validator("chain_ids")
    @classmethod
    def validate_chain_ids(cls, v: list[int]) -> list[int]:
        if len(set(v)) != len(v):
            raise ValueError(f"Duplicate chain ids: {v}")
        return v

    def resolved_chain_ids(self) -> list[int]:
        """Explicit chain list, or the chains seen in the events."""
        if self.chain_ids:
            return list(self.chain_ids)
        return sorted({e.chain_id for e in self.events})
