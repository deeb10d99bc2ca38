"""Async orchestrator for treasury chart series.

Resolves a project's sucker group, fans out the per-chain fetches, and
hands the joined results to the pure ChartSeriesBuilder. One failing chain
degrades to an empty contribution instead of failing the whole chart.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

from .builder import ChartSeriesBuilder
from .core.config import EngineConfig, get_config
from .core.exceptions import ConfigurationError, DataSourceError
from .core.models import (
    AuditEntry,
    ChartSeries,
    ConnectedChain,
    Event,
    Moment,
    PoolPricePoint,
    Ruleset,
    TaxSnapshot,
)
from .core.types import DataSource, SeriesView, Timestamp, TokenUnits
from .providers.base import (
    EventSource,
    HolderSource,
    PoolPriceSource,
    RulesetSource,
    SnapshotSource,
    TopologySource,
)
from .providers.cache import TTLCache

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TreasurySeriesOrchestrator:
    """Fetches the records a chart needs and builds it."""

    def __init__(
        self,
        events: EventSource,
        snapshots: SnapshotSource,
        topology: TopologySource,
        rulesets: RulesetSource | None = None,
        pools: PoolPriceSource | None = None,
        holders: HolderSource | None = None,
        cache: TTLCache | None = None,
        config: EngineConfig | None = None,
    ):
        """
        Initialize the orchestrator with its sources.

        Args:
            events: Pay / cash-out event source
            snapshots: Moment and tax snapshot source
            topology: Sucker group discovery
            rulesets: Ruleset source, needed for the issuance price
            pools: Pool price source, optional
            holders: Holder source, needed for the distribution chart
            cache: Pool price cache (a fresh one using the configured TTL if omitted)
            config: Engine config (global config if omitted)
        """
        self.config = config or get_config()
        self.events = events
        self.snapshots = snapshots
        self.topology = topology
        self.rulesets = rulesets
        self.pools = pools
        self.holders = holders
        self.cache = cache if cache is not None else TTLCache(ttl_seconds=self.config.pool_cache_ttl_seconds)
        self.builder = ChartSeriesBuilder.from_config(self.config)

    async def _guarded(
        self,
        audit: list[AuditEntry],
        source: DataSource,
        action: str,
        call: Callable[[], Awaitable[T]],
        default: T,
        chain_id: int | None = None,
    ) -> T:
        """Run one fetch, recording it in ``audit``; failures return ``default``."""
        started = time.perf_counter()
        try:
            result = await call()
        except Exception as e:
            if isinstance(e, DataSourceError):
                logger.warning(f"{source.value} {action} failed on chain {chain_id}: {e}")
            else:
                logger.error(f"{source.value} {action} raised unexpectedly on chain {chain_id}: {e!r}")
            audit.append(
                AuditEntry(
                    source=source,
                    action=action,
                    chain_id=chain_id,
                    success=False,
                    error_message=str(e),
                    duration_ms=int((time.perf_counter() - started) * 1000),
                )
            )
            return default

        audit.append(
            AuditEntry(
                source=source,
                action=action,
                chain_id=chain_id,
                duration_ms=int((time.perf_counter() - started) * 1000),
            )
        )
        return result

    async def resolve_chains(
        self, project_id: int, chain_id: int, audit: list[AuditEntry]
    ) -> list[ConnectedChain]:
        """Deployments of the project's sucker group, or just the requested one."""
        connected = await self._guarded(
            audit,
            self.topology.SOURCE,
            "connected_chains",
            lambda: self.topology.fetch_connected_chains(project_id, chain_id),
            [],
            chain_id=chain_id,
        )
        if not connected:
            return [ConnectedChain(chain_id=chain_id, project_id=project_id)]

        seen: dict[int, ConnectedChain] = {}
        for chain in connected:
            seen.setdefault(chain.chain_id, chain)
        logger.info(f"Project {project_id} spans chains {sorted(seen)}")
        return [seen[cid] for cid in sorted(seen)]

    async def _group_id(self, project_id: int, chain_id: int, audit: list[AuditEntry]) -> str | None:
        return await self._guarded(
            audit,
            self.topology.SOURCE,
            "sucker_group_id",
            lambda: self.topology.fetch_sucker_group_id(project_id, chain_id),
            None,
            chain_id=chain_id,
        )

    async def _chain_events(
        self, chain: ConnectedChain, audit: list[AuditEntry], pays_only: bool = False
    ) -> list[Event]:
        pays = self._guarded(
            audit,
            self.events.SOURCE,
            "pay_events",
            lambda: self.events.fetch_pay_events(chain.project_id, chain.chain_id),
            [],
            chain_id=chain.chain_id,
        )
        if pays_only:
            records: list[Any] = await pays
        else:
            cash_outs = self._guarded(
                audit,
                self.events.SOURCE,
                "cash_out_events",
                lambda: self.events.fetch_cash_out_events(chain.project_id, chain.chain_id),
                [],
                chain_id=chain.chain_id,
            )
            pay_records, cash_out_records = await asyncio.gather(pays, cash_outs)
            records = [*pay_records, *cash_out_records]
        return [record.to_event(chain.chain_id) for record in records]

    async def fetch_events(
        self,
        chains: Sequence[ConnectedChain],
        audit: list[AuditEntry],
        pays_only: bool = False,
    ) -> list[Event]:
        """Events of every chain, fetched concurrently."""
        per_chain = await asyncio.gather(
            *(self._chain_events(chain, audit, pays_only=pays_only) for chain in chains)
        )
        return [event for events in per_chain for event in events]

    async def _moments(self, group_id: str | None, chain_id: int, audit: list[AuditEntry]) -> list[Moment]:
        if group_id is None:
            return []
        return await self._guarded(
            audit,
            self.snapshots.SOURCE,
            "group_moments",
            lambda: self.snapshots.fetch_group_moments(group_id, self.config.moments_limit, chain_id),
            [],
            chain_id=chain_id,
        )

    async def _tax_snapshots(self, group_id: str | None, audit: list[AuditEntry]) -> list[TaxSnapshot]:
        if group_id is None:
            return []
        return await self._guarded(
            audit,
            DataSource.TAX_SNAPSHOTS,
            "tax_snapshots",
            lambda: self.snapshots.fetch_tax_snapshots(group_id),
            [],
        )

    async def _pool_prices(
        self, project_id: int, chain_id: int, start: Timestamp, audit: list[AuditEntry]
    ) -> list[PoolPricePoint]:
        if self.pools is None:
            return []
        key = TTLCache.make_key("pool", chain_id, project_id, start)
        cached = self.cache.get(key)
        if cached is not None:
            audit.append(AuditEntry(source=DataSource.CACHE, action="cache_hit", chain_id=chain_id, notes=key))
            return cached

        prices = await self._guarded(
            audit,
            self.pools.SOURCE,
            "pool_prices",
            lambda: self.pools.fetch_pool_prices(project_id, chain_id, start),
            None,
            chain_id=chain_id,
        )
        if prices is None:
            return []
        self.cache.put(key, prices)
        return prices

    async def balance_chart(
        self,
        project_id: int,
        chain_id: int,
        range_start: Timestamp,
        range_end: Timestamp,
        view: SeriesView = SeriesView.COMBINED,
        fallback_balance: TokenUnits | None = None,
    ) -> ChartSeries:
        """Treasury balance chart for the project's whole sucker group."""
        logger.info(f"Building {view.value} balance chart for project {project_id} on chain {chain_id}")
        audit: list[AuditEntry] = []
        chains = await self.resolve_chains(project_id, chain_id, audit)

        moments: list[Moment] = []
        events: list[Event] = []
        if view == SeriesView.PER_CHAIN:
            events = await self.fetch_events(chains, audit)
        else:
            group_id = await self._group_id(project_id, chain_id, audit)
            moments = await self._moments(group_id, chain_id, audit)

        result = self.builder.balance_chart(
            moments,
            events,
            [c.chain_id for c in chains],
            range_start,
            range_end,
            view=view,
            fallback_balance=fallback_balance,
        )
        return result.with_audit(audit)

    async def volume_chart(
        self,
        project_id: int,
        chain_id: int,
        range_start: Timestamp,
        range_end: Timestamp,
        by_chain: bool = False,
    ) -> ChartSeries:
        """Daily payment count and volume across the sucker group."""
        logger.info(f"Building volume chart for project {project_id} on chain {chain_id}")
        audit: list[AuditEntry] = []
        chains = await self.resolve_chains(project_id, chain_id, audit)
        events = await self.fetch_events(chains, audit, pays_only=True)
        result = self.builder.volume_chart(events, range_start, range_end, by_chain=by_chain)
        return result.with_audit(audit)

    async def price_chart(
        self,
        project_id: int,
        chain_id: int,
        range_start: Timestamp,
        range_end: Timestamp,
    ) -> ChartSeries:
        """Issuance, cash-out and pool price chart."""
        logger.info(f"Building price chart for project {project_id} on chain {chain_id}")
        audit: list[AuditEntry] = []
        group_id = await self._group_id(project_id, chain_id, audit)

        async def rulesets() -> list[Ruleset]:
            if self.rulesets is None:
                return []
            return await self._guarded(
                audit,
                self.rulesets.SOURCE,
                "rulesets",
                lambda: self.rulesets.fetch_rulesets(project_id, chain_id),
                [],
                chain_id=chain_id,
            )

        moments, snapshots, schedule, pool = await asyncio.gather(
            self._moments(group_id, chain_id, audit),
            self._tax_snapshots(group_id, audit),
            rulesets(),
            self._pool_prices(project_id, chain_id, range_start, audit),
        )
        result = self.builder.price_chart(
            moments, snapshots, schedule, range_start, range_end, pool_prices=pool
        )
        return result.with_audit(audit)

    async def cash_out_comparison(
        self,
        project_id: int,
        chain_id: int,
        range_start: Timestamp,
        range_end: Timestamp,
    ) -> ChartSeries:
        """Combined and per-chain floor price comparison."""
        logger.info(f"Building cash out comparison for project {project_id} on chain {chain_id}")
        audit: list[AuditEntry] = []
        chains, group_id = await asyncio.gather(
            self.resolve_chains(project_id, chain_id, audit),
            self._group_id(project_id, chain_id, audit),
        )
        moments, snapshots, events = await asyncio.gather(
            self._moments(group_id, chain_id, audit),
            self._tax_snapshots(group_id, audit),
            self.fetch_events(chains, audit),
        )
        result = self.builder.cash_out_comparison(
            moments,
            snapshots,
            events,
            [c.chain_id for c in chains],
            range_start,
            range_end,
        )
        return result.with_audit(audit)

    async def holder_distribution(
        self,
        project_id: int,
        chain_id: int,
        chains: Sequence[int] | None = None,
        chain_supply: TokenUnits | None = None,
    ) -> ChartSeries:
        """
        Top holders of the sucker group's token.

        Raises:
            ConfigurationError: If no holder source was provided
        """
        if self.holders is None:
            raise ConfigurationError("holders", "no holder source configured")

        logger.info(f"Building holder distribution for project {project_id} on chain {chain_id}")
        audit: list[AuditEntry] = []
        group_id = await self._group_id(project_id, chain_id, audit)
        if group_id is None:
            result = self.builder.holder_distribution([], 0)
            return result.add_quality_flag("holders", "Project has no sucker group").with_audit(audit)

        raw, total_supply = await self._guarded(
            audit,
            self.holders.SOURCE,
            "participants",
            lambda: self.holders.fetch_participants(group_id, self.config.holders_limit),
            ([], 0),
            chain_id=chain_id,
        )
        result = self.builder.holder_distribution(
            raw, total_supply, chains=chains, chain_supply=chain_supply
        )
        return result.with_audit(audit)
