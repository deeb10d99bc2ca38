"""Balance replay - reconstructs per-chain treasury balances from events.

Replay is a pure left fold over an immutable, timestamp-ordered event log.
Forward fill is deliberately not done here: the replayer does not know the
requested date range, so gap filling is left to the aligner.
"""

import logging
from collections.abc import Iterable, Iterator, Sequence

from ..core.exceptions import UnknownChainError
from ..core.models import DayPoint, Event
from ..core.types import EventKind, Timestamp, TokenUnits, chain_key
from .day_bucket import day_boundary

logger = logging.getLogger(__name__)


def ordered(events: Iterable[Event]) -> list[Event]:
    """Events sorted by timestamp; ties keep arrival order."""
    return sorted(events, key=lambda e: e.timestamp)


def apply_event(balance: TokenUnits, event: Event) -> TokenUnits:
    """
    Apply one event to a running balance.

    Pay adds its amount; cash-out subtracts and clamps at zero. A clamp
    means upstream data is inconsistent and is logged, never raised.
    """
    if event.kind == EventKind.PAY:
        return balance + event.amount

    remaining = balance - event.amount
    if remaining < 0:
        logger.warning(
            f"Cash out of {event.amount} at {event.timestamp} on chain {event.chain_id} "
            f"exceeds running balance {balance}; clamping to 0"
        )
        return 0
    return remaining


def running_balances(events: Iterable[Event]) -> Iterator[tuple[Timestamp, TokenUnits]]:
    """Yield ``(timestamp, balance)`` after each event, in timestamp order."""
    balance = 0
    for event in ordered(events):
        balance = apply_event(balance, event)
        yield event.timestamp, balance


def replay(events: Iterable[Event], chain_id: int) -> list[DayPoint]:
    """
    Replay one chain's events into an end-of-day balance series.

    Args:
        events: Events from any number of chains (filtered to ``chain_id``)
        chain_id: Chain to reconstruct

    Returns:
        Sorted DayPoints keyed by ``chain-<id>``, one per day with events
    """
    key = chain_key(chain_id)
    by_day: dict[Timestamp, TokenUnits] = {}

    chain_events = [e for e in events if e.chain_id == chain_id]
    for timestamp, balance in running_balances(chain_events):
        # Last write wins: the balance at end of day
        by_day[day_boundary(timestamp)] = balance

    logger.debug(f"Replayed {len(chain_events)} events on chain {chain_id} into {len(by_day)} days")
    return [DayPoint(day=day, values={key: by_day[day]}) for day in sorted(by_day)]


def replay_all(
    events: Iterable[Event],
    chain_ids: Sequence[int],
) -> dict[int, list[DayPoint]]:
    """
    Replay every requested chain.

    Raises:
        UnknownChainError: If an event belongs to a chain outside ``chain_ids``
    """
    events = list(events)
    requested = set(chain_ids)
    for event in events:
        if event.chain_id not in requested:
            raise UnknownChainError(event.chain_id, list(chain_ids))
    return {cid: replay(events, cid) for cid in chain_ids}


def balance_on_or_before(
    series: Sequence[DayPoint],
    key: str,
    day: Timestamp,
) -> TokenUnits | None:
    """Latest value of ``key`` on or before ``day``; None if the series has not started."""
    found = None
    for point in series:
        if point.day > day:
            break
        if key in point.values:
            found = point.values[key]
    return found
