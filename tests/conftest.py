"""Pytest configuration and fixtures for treasury series tests."""

from pathlib import Path

import pytest

from treasury_series.core.config import EngineConfig
from treasury_series.core.models import (
    Event,
    Moment,
    RawHolder,
    Ruleset,
    TaxSnapshot,
)
from treasury_series.core.types import EventKind

DAY = 86_400
ETH = 10**18


def pay(timestamp: int, amount: int, chain_id: int = 1) -> Event:
    return Event(timestamp=timestamp, amount=amount, chain_id=chain_id, kind=EventKind.PAY)


def cash_out(timestamp: int, amount: int, chain_id: int = 1) -> Event:
    return Event(timestamp=timestamp, amount=amount, chain_id=chain_id, kind=EventKind.CASH_OUT)


@pytest.fixture
def fixtures_dir() -> Path:
    """Return path to fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def dataset_path(fixtures_dir: Path) -> Path:
    """Two-chain dataset with events, moments and holders."""
    return fixtures_dir / "dataset.json"


@pytest.fixture
def config() -> EngineConfig:
    """Default engine config, independent of the environment."""
    return EngineConfig()


@pytest.fixture
def scenario_events() -> list[Event]:
    """Pay 100 on day 0, pay 50 on day 1, cash out 30 on day 2."""
    return [
        pay(0, 100),
        pay(DAY, 50),
        cash_out(2 * DAY, 30),
    ]


@pytest.fixture
def two_chain_events() -> list[Event]:
    """Events on mainnet (1) and Optimism (10), deliberately unordered."""
    return [
        pay(2 * DAY + 5, 4 * ETH, chain_id=10),
        pay(10, 10 * ETH, chain_id=1),
        cash_out(3 * DAY, 2 * ETH, chain_id=1),
        pay(DAY, 6 * ETH, chain_id=10),
    ]


@pytest.fixture
def sample_moments() -> list[Moment]:
    """Aggregate balance/supply snapshots over four days."""
    return [
        Moment(timestamp=100, balance=10 * ETH, token_supply=100 * ETH),
        Moment(timestamp=DAY + 100, balance=16 * ETH, token_supply=160 * ETH),
        Moment(timestamp=2 * DAY + 100, balance=20 * ETH, token_supply=200 * ETH),
        Moment(timestamp=3 * DAY + 100, balance=18 * ETH, token_supply=180 * ETH),
    ]


@pytest.fixture
def tax_snapshots() -> list[TaxSnapshot]:
    """No tax until day 2, 20% from then on."""
    return [
        TaxSnapshot(start=2 * DAY, cash_out_tax_rate=2000),
        TaxSnapshot(start=0, cash_out_tax_rate=0),
    ]


@pytest.fixture
def rulesets() -> list[Ruleset]:
    """1000 tokens per unit, cut by 50% every day."""
    return [
        Ruleset(
            start=0,
            duration=DAY,
            weight=1000 * ETH,
            weight_cut_percent=500_000_000,
        )
    ]


@pytest.fixture
def raw_holders() -> list[RawHolder]:
    """Two holders covering 90% of a 1000-token supply."""
    return [
        RawHolder(address="0x" + "a" * 40, balance_units=600, chains=frozenset({1})),
        RawHolder(address="0x" + "b" * 40, balance_units=300, chains=frozenset({10})),
    ]
