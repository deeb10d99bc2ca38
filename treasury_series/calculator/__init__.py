"""Valuation calculation module."""

from .bonding_curve import (
    curve_shape,
    floor_price,
    reclaim_amount,
    value_per_token,
    value_per_unit_cashed_out,
)
from .holders import HolderDistributionNormalizer
from .issuance import issuance_price_at, issuance_series
from .tax_schedule import effective_rate

__all__ = [
    "curve_shape",
    "floor_price",
    "reclaim_amount",
    "value_per_token",
    "value_per_unit_cashed_out",
    "HolderDistributionNormalizer",
    "issuance_price_at",
    "issuance_series",
    "effective_rate",
]
