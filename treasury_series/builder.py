"""Chart series builder - assembles the series each dashboard chart needs.

Pure orchestration over the series and calculator modules: no I/O, no
shared state. Amounts are converted to display units here so that the
rendering layer never performs arithmetic.
"""

import logging
from collections.abc import Iterable, Sequence

from .calculator.bonding_curve import curve_shape, floor_price
from .calculator.holders import HolderDistributionNormalizer
from .calculator.issuance import issuance_series
from .calculator.tax_schedule import effective_rate
from .core.config import EngineConfig
from .core.models import (
    ChartSeries,
    DayPoint,
    Event,
    Moment,
    PoolPricePoint,
    RawHolder,
    Ruleset,
    TaxSnapshot,
)
from .core.types import (
    CASH_OUT_KEY,
    COMBINED_KEY,
    COUNT_KEY,
    ISSUANCE_KEY,
    POOL_KEY,
    VOLUME_KEY,
    BasisPoints,
    ChartKind,
    SeriesView,
    Timestamp,
    TokenUnits,
    chain_key,
)
from .series.aligner import align, sum_keys
from .series.day_bucket import day_boundary
from .series.replay import balance_on_or_before, replay_all
from .series.volume import aggregate, totals

logger = logging.getLogger(__name__)

HYPOTHETICAL_CASH_OUT_NOTE = (
    "Per-chain values price each chain's own balance against the cross-chain "
    "total supply. They compare chains; they are not the amount actually "
    "redeemable on that chain."
)


def _last_per_day(pairs: Iterable[tuple[Timestamp, int | float]], key: str) -> list[DayPoint]:
    """Bucket ``(timestamp, value)`` pairs by day, keeping the latest value of each day."""
    by_day: dict[Timestamp, int | float] = {}
    for timestamp, value in sorted(pairs, key=lambda p: p[0]):
        by_day[day_boundary(timestamp)] = value
    return [DayPoint(day=day, values={key: by_day[day]}) for day in sorted(by_day)]


class ChartSeriesBuilder:
    """Builds the final ChartSeries objects consumed by the rendering layer."""

    def __init__(
        self,
        balance_decimals: int = 18,
        supply_decimals: int = 18,
        others_threshold: float = 99.9,
    ):
        """
        Initialize builder.

        Args:
            balance_decimals: Decimals of the treasury's base token (18 ETH, 6 USDC)
            supply_decimals: Decimals of the project token
            others_threshold: Holder coverage below which "Others" is added
        """
        self.balance_decimals = balance_decimals
        self.supply_decimals = supply_decimals
        self.holders = HolderDistributionNormalizer(others_threshold=others_threshold)

    @classmethod
    def from_config(cls, config: EngineConfig) -> "ChartSeriesBuilder":
        return cls(
            balance_decimals=config.balance_decimals,
            supply_decimals=config.supply_decimals,
            others_threshold=config.others_threshold_pct,
        )

    def to_display(self, amount: TokenUnits) -> float:
        """Convert smallest-unit balance amounts to whole units."""
        return amount / 10**self.balance_decimals

    def _scaled(self, points: Sequence[DayPoint], keys: Iterable[str]) -> list[DayPoint]:
        """Copy ``points`` with the given keys converted to display units."""
        keys = set(keys)
        return [
            DayPoint(
                day=p.day,
                values={
                    k: self.to_display(v) if k in keys else v
                    for k, v in p.values.items()
                },
            )
            for p in points
        ]

    def _floor_price(self, balance: TokenUnits, supply: TokenUnits, rate: BasisPoints) -> float:
        return floor_price(
            balance,
            supply,
            rate,
            balance_decimals=self.balance_decimals,
            supply_decimals=self.supply_decimals,
        )

    def balance_chart(
        self,
        moments: Sequence[Moment],
        events: Sequence[Event],
        chain_ids: Sequence[int],
        range_start: Timestamp,
        range_end: Timestamp,
        view: SeriesView = SeriesView.COMBINED,
        fallback_balance: TokenUnits | None = None,
    ) -> ChartSeries:
        """
        Treasury balance over time.

        The combined view uses aggregate moment balances. The per-chain view
        replays each chain's events and adds ``combined`` as the sum of the
        chains.

        Args:
            moments: Aggregate balance snapshots of the sucker group
            events: Pay / cash-out events of the requested chains
            chain_ids: Chains of the treasury
            range_start: Window start
            range_end: Window end
            view: Combined or per-chain presentation
            fallback_balance: Current balance, drawn at range_end when there
                are no moments

        Raises:
            UnknownChainError: If an event belongs to a chain outside chain_ids
        """
        notes: list[str] = []

        if view == SeriesView.PER_CHAIN:
            replays = replay_all(events, chain_ids)
            keys = [chain_key(cid) for cid in chain_ids]
            merged = align(
                {chain_key(cid): replays[cid] for cid in chain_ids},
                range_start,
                range_end,
            )
            merged = sum_keys(merged, keys, COMBINED_KEY)
            series_keys = [COMBINED_KEY, *keys]
            empty_chains = [cid for cid in chain_ids if not replays[cid]]
            if empty_chains:
                notes.append(f"No events on chains {empty_chains}")
        else:
            source = _last_per_day(((m.timestamp, m.balance) for m in moments), COMBINED_KEY)
            if not source and fallback_balance is not None:
                source = [DayPoint(day=day_boundary(range_end), values={COMBINED_KEY: fallback_balance})]
                notes.append("No balance history; showing the current balance only")
            merged = align({COMBINED_KEY: source}, range_start, range_end)
            series_keys = [COMBINED_KEY]

        result = ChartSeries(
            chart=ChartKind.BALANCE,
            view=view,
            series_keys=series_keys,
            points=self._scaled(merged, series_keys),
            range_start=range_start,
            range_end=range_end,
            notes=notes,
        )
        if not merged:
            result = result.add_quality_flag("balance", "No balance data in range", severity="info")
        return result

    def volume_chart(
        self,
        events: Sequence[Event],
        range_start: Timestamp,
        range_end: Timestamp,
        by_chain: bool = False,
    ) -> ChartSeries:
        """Daily payment count and volume, one point per day including empty days."""
        points = aggregate(events, range_start, range_end, by_chain=by_chain)
        count, volume = totals(points)

        keys = list(points[0].values) if points else [COUNT_KEY, VOLUME_KEY]
        volume_keys = [k for k in keys if k.startswith(VOLUME_KEY)]

        return ChartSeries(
            chart=ChartKind.VOLUME,
            view=SeriesView.PER_CHAIN if by_chain else SeriesView.COMBINED,
            series_keys=keys,
            points=self._scaled(points, volume_keys),
            range_start=range_start,
            range_end=range_end,
            notes=[f"{count} payments totalling {self.to_display(volume):.6f}"],
        )

    def price_chart(
        self,
        moments: Sequence[Moment],
        tax_snapshots: Sequence[TaxSnapshot],
        rulesets: Sequence[Ruleset],
        range_start: Timestamp,
        range_end: Timestamp,
        pool_prices: Sequence[PoolPricePoint] = (),
    ) -> ChartSeries:
        """
        Issuance, cash-out (floor) and pool price of the token over time.

        The three series come from independent sources and are aligned
        together, so a gap in one is forward-filled without touching the
        others.
        """
        floor_points: list[tuple[Timestamp, float]] = []
        skipped = 0
        for moment in moments:
            if moment.token_supply == 0:
                skipped += 1
                continue
            rate = effective_rate(tax_snapshots, moment.timestamp)
            price = self._floor_price(moment.balance, moment.token_supply, rate)
            if price > 0:
                floor_points.append((moment.timestamp, price))
        if skipped:
            logger.debug(f"Skipped {skipped} moments with zero supply")

        sources = {
            ISSUANCE_KEY: issuance_series(rulesets, range_start, range_end),
            CASH_OUT_KEY: _last_per_day(floor_points, CASH_OUT_KEY),
            POOL_KEY: _last_per_day(((p.timestamp, p.price) for p in pool_prices), POOL_KEY),
        }
        merged = align(sources, range_start, range_end)
        series_keys = [k for k in sources if any(k in p.values for p in merged)]

        result = ChartSeries(
            chart=ChartKind.PRICE,
            series_keys=series_keys,
            points=merged,
            range_start=range_start,
            range_end=range_end,
        )
        if CASH_OUT_KEY not in series_keys:
            result = result.add_quality_flag(
                CASH_OUT_KEY, "No moments with supply in range; cash out price unavailable", severity="info"
            )
        return result

    def cash_out_comparison(
        self,
        moments: Sequence[Moment],
        tax_snapshots: Sequence[TaxSnapshot],
        events: Sequence[Event],
        chain_ids: Sequence[int],
        range_start: Timestamp,
        range_end: Timestamp,
    ) -> ChartSeries:
        """
        Floor price of the combined treasury and of each chain's balance.

        Every chain's replayed balance is valued against the shared,
        cross-chain total supply and the tax rate in effect at each moment.
        This answers "what would this chain's balance be worth if all supply
        were redeemed against it alone"; see HYPOTHETICAL_CASH_OUT_NOTE.

        Raises:
            UnknownChainError: If an event belongs to a chain outside chain_ids
        """
        replays = replay_all(events, chain_ids)
        values: dict[str, list[tuple[Timestamp, float]]] = {COMBINED_KEY: []}
        values.update({chain_key(cid): [] for cid in chain_ids})

        for moment in sorted(moments, key=lambda m: m.timestamp):
            supply = moment.token_supply
            if supply == 0:
                continue
            day = day_boundary(moment.timestamp)
            rate = effective_rate(tax_snapshots, moment.timestamp)

            if moment.balance > 0:
                values[COMBINED_KEY].append((moment.timestamp, self._floor_price(moment.balance, supply, rate)))

            for cid in chain_ids:
                key = chain_key(cid)
                balance = balance_on_or_before(replays[cid], key, day)
                if balance:
                    values[key].append((moment.timestamp, self._floor_price(balance, supply, rate)))

        sources = {key: _last_per_day(pairs, key) for key, pairs in values.items()}
        merged = align(sources, range_start, range_end)

        return ChartSeries(
            chart=ChartKind.CASH_OUT_COMPARISON,
            view=SeriesView.PER_CHAIN,
            series_keys=[k for k in sources if sources[k]],
            points=merged,
            range_start=range_start,
            range_end=range_end,
            notes=[HYPOTHETICAL_CASH_OUT_NOTE],
        )

    def holder_distribution(
        self,
        raw: Sequence[RawHolder],
        total_supply: TokenUnits,
        chains: Iterable[int] | None = None,
        chain_supply: TokenUnits | None = None,
    ) -> ChartSeries:
        """
        Holder shares for the pie chart, optionally restricted to chains.

        Filtering changes the percentage basis to the selected chains'
        subtotal; it is not a hide/show of rows.
        """
        if not raw:
            shares = []
        elif chains is None:
            shares = self.holders.normalize(raw, total_supply)
        else:
            shares = self.holders.filter_by_chains(raw, chains, chain_supply=chain_supply)

        result = ChartSeries(chart=ChartKind.HOLDERS, holders=shares)
        if not shares:
            result = result.add_quality_flag("holders", "No token holders found", severity="info")
        return result

    def redemption_curve(self, rate: BasisPoints, steps: int = 50) -> ChartSeries:
        """Illustrative value-per-token curve over the fraction of supply cashed out."""
        return ChartSeries(chart=ChartKind.REDEMPTION_CURVE, curve=curve_shape(rate, steps))
