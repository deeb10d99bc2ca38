"""Bonding-curve valuation of project tokens against the treasury.

All calculations use explicit formulas, with r = rate / 10000 and x the
fraction of supply cashed out at once:
- Value per token = (1 - r) + r × x
- Floor price = (balance / supply) × (1 - r), the payout per token at x → 0
- Reclaim = balance × t/s × ((1 - r) + r × t/s) for t of s tokens

At r = 0 every token is worth exactly balance / supply. At r = 100% a
marginal cash-out yields nothing; only redeeming the whole supply does.
"""

from ..core.exceptions import InvalidInputError, ValidationError
from ..core.models import CurvePoint
from ..core.types import MAX_TAX_RATE, BasisPoints, TokenUnits


def _check_rate(rate: BasisPoints) -> None:
    if not 0 <= rate <= MAX_TAX_RATE:
        raise ValidationError("cash_out_tax_rate", str(rate), f"must be 0-{MAX_TAX_RATE} basis points")


def _check_fraction(fraction: float) -> None:
    if not 0.0 <= fraction <= 1.0:
        raise ValidationError("fraction", str(fraction), "must be between 0 and 1")


def _check_supply(supply: TokenUnits) -> None:
    if supply < 0:
        raise ValidationError("supply", str(supply), "must be non-negative")
    if supply == 0:
        raise InvalidInputError("Cannot value tokens against a zero supply", supply=supply)


def value_per_token(rate: BasisPoints, fraction: float) -> float:
    """
    Value per token, relative to a proportional share, when cashing out
    ``fraction`` of the supply at once.

    Formula: (1 - r) + r × x

    Returns:
        1 - r at x = 0, rising linearly to 1 at x = 1
    """
    _check_rate(rate)
    _check_fraction(fraction)
    return (MAX_TAX_RATE - rate + rate * fraction) / MAX_TAX_RATE


def value_per_unit_cashed_out(
    balance: TokenUnits,
    supply: TokenUnits,
    rate: BasisPoints,
    fraction: float,
) -> float:
    """
    Payout per token, in balance units per supply unit, when cashing out
    ``fraction`` of the supply.

    Formula: (balance / supply) × ((1 - r) + r × x)

    Raises:
        InvalidInputError: If supply is zero; callers skip such points
    """
    _check_supply(supply)
    if balance < 0:
        raise ValidationError("balance", str(balance), "must be non-negative")
    per_token = value_per_token(rate, fraction)
    if balance == 0:
        return 0.0
    return balance / supply * per_token


def reclaim_amount(
    balance: TokenUnits,
    supply: TokenUnits,
    rate: BasisPoints,
    tokens: TokenUnits,
) -> TokenUnits:
    """
    Absolute amount reclaimed for cashing out ``tokens`` of ``supply``.

    Integer arithmetic throughout, rounded down, so the result never
    exceeds what the treasury holds.

    Formula: balance × t/s × ((1 - r) + r × t/s)
    """
    _check_supply(supply)
    _check_rate(rate)
    if balance < 0:
        raise ValidationError("balance", str(balance), "must be non-negative")
    if not 0 <= tokens <= supply:
        raise ValidationError("tokens", str(tokens), f"must be between 0 and supply={supply}")

    if tokens == supply:
        return balance
    numerator = balance * tokens * ((MAX_TAX_RATE - rate) * supply + rate * tokens)
    return numerator // (supply * supply * MAX_TAX_RATE)


def floor_price(
    balance: TokenUnits,
    supply: TokenUnits,
    rate: BasisPoints,
    balance_decimals: int = 18,
    supply_decimals: int = 18,
) -> float:
    """
    Guaranteed minimum payout per whole token, in whole balance units.

    This is the value at x → 0, a conservative lower bound rather than
    the value of redeeming everything.

    Formula: (balance / 10^bd) / (supply / 10^sd) × (1 - r)

    The ratio is formed from exact integers and rounded to float once.

    Raises:
        InvalidInputError: If supply is zero; callers skip such points
    """
    _check_supply(supply)
    _check_rate(rate)
    if balance < 0:
        raise ValidationError("balance", str(balance), "must be non-negative")
    if balance == 0:
        return 0.0

    numerator = balance * (MAX_TAX_RATE - rate) * 10**supply_decimals
    denominator = supply * MAX_TAX_RATE * 10**balance_decimals
    return numerator / denominator


def curve_shape(rate: BasisPoints, steps: int = 50) -> list[CurvePoint]:
    """Sample the value-per-token curve on ``steps + 1`` evenly spaced fractions."""
    if steps <= 0:
        raise ValidationError("steps", str(steps), "must be positive")
    _check_rate(rate)
    return [
        CurvePoint(fraction=i / steps, value_per_token=value_per_token(rate, i / steps))
        for i in range(steps + 1)
    ]
