"""Core module - data models, types, configuration and exceptions."""

from .models import (
    AuditEntry,
    CashOutRecord,
    ChartSeries,
    ConnectedChain,
    CurvePoint,
    DataQualityFlag,
    Dataset,
    DayPoint,
    Event,
    HolderShare,
    Moment,
    PayRecord,
    PoolPricePoint,
    RawHolder,
    Ruleset,
    TaxSnapshot,
)
from .types import (
    ChartKind,
    DataSource,
    EventKind,
    SeriesView,
    breakdown_key,
    chain_key,
    key_chain_id,
)
from .exceptions import (
    ConfigurationError,
    DataSourceError,
    InvalidInputError,
    TreasurySeriesError,
    UnknownChainError,
    ValidationError,
)
from .config import EngineConfig, get_config, reload_config

__all__ = [
    # Models
    "AuditEntry",
    "CashOutRecord",
    "ChartSeries",
    "ConnectedChain",
    "CurvePoint",
    "DataQualityFlag",
    "Dataset",
    "DayPoint",
    "Event",
    "HolderShare",
    "Moment",
    "PayRecord",
    "PoolPricePoint",
    "RawHolder",
    "Ruleset",
    "TaxSnapshot",
    # Types
    "ChartKind",
    "DataSource",
    "EventKind",
    "SeriesView",
    "breakdown_key",
    "chain_key",
    "key_chain_id",
    # Exceptions
    "ConfigurationError",
    "DataSourceError",
    "InvalidInputError",
    "TreasurySeriesError",
    "UnknownChainError",
    "ValidationError",
    # Config
    "EngineConfig",
    "get_config",
    "reload_config",
]
