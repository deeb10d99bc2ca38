"""Configuration management for the treasury series engine.

Loads settings from environment variables and an optional YAML file.
"""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "TREASURY_SERIES_"

DEFAULT_CHAIN_NAMES: dict[int, str] = {
    1: "Ethereum",
    10: "Optimism",
    8453: "Base",
    42161: "Arbitrum",
}


@dataclass
class EngineConfig:
    """Settings shared by the builder, orchestrator and CLI."""

    # Decimals of the treasury's base token (18 for ETH, 6 for USDC)
    balance_decimals: int = 18

    # Project tokens always use 18 decimals
    supply_decimals: int = 18

    # Number of moments requested from the snapshot source
    moments_limit: int = 1000

    # Number of top holders requested for the distribution chart
    holders_limit: int = 10

    # Below this summed percentage an "Others" slice is added
    others_threshold_pct: float = 99.9

    # Pool price lookups are cached for this long
    pool_cache_ttl_seconds: int = 300

    chain_names: dict[int, str] = field(default_factory=lambda: dict(DEFAULT_CHAIN_NAMES))

    def __post_init__(self) -> None:
        if self.balance_decimals < 0 or self.supply_decimals < 0:
            raise ConfigurationError("decimals", "decimals must be non-negative")
        if not 0 < self.others_threshold_pct <= 100:
            raise ConfigurationError(
                "others_threshold_pct",
                f"must be in (0, 100], got {self.others_threshold_pct}",
            )
        if self.moments_limit <= 0 or self.holders_limit <= 0:
            raise ConfigurationError("limits", "fetch limits must be positive")
        if self.pool_cache_ttl_seconds < 0:
            raise ConfigurationError("pool_cache_ttl_seconds", "TTL must be non-negative")

    @classmethod
    def from_env(cls, base: Optional["EngineConfig"] = None) -> "EngineConfig":
        """Load configuration from ``TREASURY_SERIES_*`` environment variables."""
        values = _as_dict(base or cls())
        for f in fields(cls):
            if f.name == "chain_names":
                continue
            raw = os.getenv(f"{ENV_PREFIX}{f.name.upper()}")
            if raw is None:
                continue
            caster = float if f.name == "others_threshold_pct" else int
            try:
                values[f.name] = caster(raw)
            except ValueError:
                raise ConfigurationError(f.name, f"invalid value {raw!r}")
        return cls(**values)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "EngineConfig":
        """
        Load configuration from a YAML file, then apply environment overrides.

        Args:
            config_path: Optional path to a YAML file. If not provided,
                         ``TREASURY_SERIES_CONFIG`` is consulted.

        Returns:
            EngineConfig instance with loaded values
        """
        path = config_path or os.getenv(f"{ENV_PREFIX}CONFIG")
        base = cls()
        if path:
            base = cls(**{**_as_dict(base), **_read_yaml(Path(path))})
        return cls.from_env(base)

    def chain_name(self, chain_id: int) -> str:
        """Display name for a chain, falling back to its id."""
        return self.chain_names.get(chain_id, f"Chain {chain_id}")


def _as_dict(config: EngineConfig) -> dict[str, Any]:
    return {f.name: getattr(config, f.name) for f in fields(config)}


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except FileNotFoundError:
        raise ConfigurationError("config_path", f"file not found: {path}")
    except yaml.YAMLError as e:
        raise ConfigurationError("config_path", f"invalid YAML in {path}: {e}")

    if not isinstance(data, dict):
        raise ConfigurationError("config_path", f"{path} must contain a mapping")

    known = {f.name for f in fields(EngineConfig)}
    unknown = set(data) - known
    if unknown:
        logger.warning(f"Ignoring unknown config keys in {path}: {sorted(unknown)}")

    values = {k: v for k, v in data.items() if k in known}
    if "chain_names" in values:
        names = {int(k): str(v) for k, v in values["chain_names"].items()}
        values["chain_names"] = {**DEFAULT_CHAIN_NAMES, **names}
    logger.info(f"Loaded engine config from {path}")
    return values


# Global config instance (lazy loaded)
_config: Optional[EngineConfig] = None


def get_config() -> EngineConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = EngineConfig.load()
    return _config


def reload_config(config_path: Optional[Path] = None) -> EngineConfig:
    """Reload configuration from file and environment."""
    global _config
    _config = EngineConfig.load(config_path)
    return _config
