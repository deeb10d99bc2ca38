"""Base classes for the upstream data sources.

The engine never fetches anything itself. These interfaces describe what
the indexer, subgraph and topology clients hand to the orchestrator;
concrete adapters live with the application that owns those clients.
"""

from abc import ABC, abstractmethod

from ..core.models import (
    CashOutRecord,
    ConnectedChain,
    Moment,
    PayRecord,
    PoolPricePoint,
    RawHolder,
    Ruleset,
    TaxSnapshot,
)
from ..core.types import DataSource, Timestamp, TokenUnits


class BaseSource(ABC):
    """Abstract base class for all upstream sources."""

    # Subclasses must define their data source
    SOURCE: DataSource = DataSource.UNKNOWN


class EventSource(BaseSource):
    """Pay and cash-out event history per (project, chain). Order is not guaranteed."""

    SOURCE = DataSource.EVENTS

    @abstractmethod
    async def fetch_pay_events(self, project_id: int, chain_id: int) -> list[PayRecord]:
        pass

    @abstractmethod
    async def fetch_cash_out_events(self, project_id: int, chain_id: int) -> list[CashOutRecord]:
        pass


class SnapshotSource(BaseSource):
    """Aggregate balance/supply moments and the cash-out tax schedule of a sucker group."""

    SOURCE = DataSource.MOMENTS

    @abstractmethod
    async def fetch_group_moments(
        self, group_id: str, limit: int, chain_id: int
    ) -> list[Moment]:
        pass

    @abstractmethod
    async def fetch_tax_snapshots(self, group_id: str) -> list[TaxSnapshot]:
        pass


class TopologySource(BaseSource):
    """Discovers which per-chain project ids form one multi-chain treasury."""

    SOURCE = DataSource.TOPOLOGY

    @abstractmethod
    async def fetch_connected_chains(
        self, project_id: int, chain_id: int
    ) -> list[ConnectedChain]:
        """Deployments in the project's sucker group; empty if it has none."""

    @abstractmethod
    async def fetch_sucker_group_id(self, project_id: int, chain_id: int) -> str | None:
        pass


class RulesetSource(BaseSource):
    """Historical ruleset schedule of a project."""

    SOURCE = DataSource.RULESETS

    @abstractmethod
    async def fetch_rulesets(self, project_id: int, chain_id: int) -> list[Ruleset]:
        pass


class PoolPriceSource(BaseSource):
    """Market price history of the project token from an AMM pool."""

    SOURCE = DataSource.POOL

    @abstractmethod
    async def fetch_pool_prices(
        self, project_id: int, chain_id: int, start: Timestamp
    ) -> list[PoolPricePoint]:
        """Prices since ``start``; empty when the token has no pool."""


class HolderSource(BaseSource):
    """Top holders of a sucker group's token."""

    SOURCE = DataSource.HOLDERS

    @abstractmethod
    async def fetch_participants(
        self, group_id: str, limit: int
    ) -> tuple[list[RawHolder], TokenUnits]:
        """Top ``limit`` holders and the group's total supply."""
