"""
American / decimal odds conversion and profit arithmetic.

Decimal odds are the common unit when combining parlay legs:
    parlay_decimal = product(leg_decimal)

Conventions:
- 0, None or non-finite American odds convert to a neutral decimal of 1.0
- decimal_to_american returns 0 (unknown) for decimals <= 1
- profit is the amount won on top of the stake
"""
import math
from typing import Iterable, Optional


def _finite(value) -> Optional[float]:
    """Coerce to a finite float, or None."""
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def american_to_decimal(odds) -> float:
    """
    Convert American odds to decimal odds.

    Examples:
        >>> american_to_decimal(150)
        2.5
        >>> american_to_decimal(-200)
        1.5
        >>> american_to_decimal(0)
        1.0
    """
    value = _finite(odds)
    if value is None or value == 0:
        return 1.0
    if value > 0:
        return 1 + value / 100
    return 1 + 100 / abs(value)


def decimal_to_american(decimal) -> int:
    """
    Convert decimal odds to American odds.

    Returns 0 when the decimal carries no payout (<= 1) or is not a number.
    """
    value = _finite(decimal)
    if value is None or value <= 1:
        return 0
    if value >= 2:
        return int(round((value - 1) * 100))
    return -int(round(100 / (value - 1)))


def profit(stake, odds) -> float:
    """
    Profit for a winning bet of ``stake`` at American ``odds``.

    Examples:
        >>> profit(50, 150)
        75.0
        >>> round(profit(100, -110), 2)
        90.91
    """
    stake_value = _finite(stake)
    odds_value = _finite(odds)
    if stake_value is None or stake_value <= 0:
        return 0.0
    if odds_value is None or odds_value == 0:
        return 0.0
    if odds_value > 0:
        return stake_value * odds_value / 100
    return stake_value * 100 / abs(odds_value)


def combined_decimal(leg_odds: Iterable[Optional[float]]) -> float:
    """
    Product of the legs' decimal odds.

    A leg passed as None (a pushed leg) contributes exactly 1.
    """
    decimal = 1.0
    for odds in leg_odds:
        if odds is None:
            continue
        decimal *= american_to_decimal(odds)
    return decimal


def combined_odds(leg_odds: Iterable[Optional[float]]) -> int:
    """
    Parlay price in American odds from its legs' American odds.

    Pushed legs are passed as None and drop out of the product. Returns the
    0 sentinel when no leg carries a price.

    Example:
        >>> combined_odds([-110, -110])
        264
    """
    return decimal_to_american(combined_decimal(leg_odds))


def implied_probability(odds) -> float:
    """Break-even win probability implied by American odds (0.0 when unknown)."""
    decimal = american_to_decimal(odds)
    if decimal <= 1:
        return 0.0
    return 1 / decimal
