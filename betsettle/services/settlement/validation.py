"""
Precondition checks for bets and parlay legs.

Rejected input raises InputError before any lookup happens; nothing is
defaulted silently.
"""
import math
from typing import Optional, Sequence

from betsettle.services.settlement.records import (
    BetRecord,
    ParlayLegRecord,
    BET_TYPES,
    LINE_BET_TYPES,
    MONEYLINE,
    TOTAL,
    PLAYER_PROP,
    PARLAY,
)

MIN_PARLAY_LEGS = 2
TOTAL_SELECTIONS = ("over", "under")


class InputError(ValueError):
    """A bet, leg or descriptor failed validation."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


def _is_finite(value) -> bool:
    if value is None or isinstance(value, bool):
        return False
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


def validate_stake(stake) -> float:
    """Stake must be a positive number."""
    if not _is_finite(stake) or float(stake) <= 0:
        raise InputError("Stake must be a positive number.", field="stake")
    return float(stake)


def validate_odds(odds, field: str = "odds") -> float:
    """Odds must be a finite, non-zero American price (e.g. -110, +150)."""
    if not _is_finite(odds) or float(odds) == 0:
        raise InputError("Odds must be a non-zero number (e.g. -110, +150).", field=field)
    return float(odds)


def validate_line_wager(bet_type: str, selection: str, line, prefix: str = "") -> None:
    """
    Check the selection/line pairing of a moneyline, spread or total wager.

    Spread and total need a finite line; moneyline must not carry one.
    """
    if bet_type not in LINE_BET_TYPES:
        raise InputError(f"Unsupported wager type: {bet_type!r}.", field=f"{prefix}bet_type")

    if not (selection or "").strip():
        raise InputError("Selection is required.", field=f"{prefix}selection")

    if bet_type == MONEYLINE:
        if line is not None:
            raise InputError("Moneyline bets do not take a line.", field=f"{prefix}line")
        return

    if not _is_finite(line):
        raise InputError("Line must be a number for spread/total.", field=f"{prefix}line")

    if bet_type == TOTAL and selection.strip().lower() not in TOTAL_SELECTIONS:
        raise InputError("Total selection must be 'over' or 'under'.", field=f"{prefix}selection")


def validate_leg(leg: ParlayLegRecord, index: int = 0) -> None:
    """Validate one parlay leg."""
    prefix = f"legs[{index}]."
    validate_line_wager(leg.leg_type, leg.selection, leg.line, prefix=prefix)
    validate_odds(leg.odds, field=f"{prefix}odds")


def validate_parlay(legs: Sequence[ParlayLegRecord]) -> None:
    """A parlay needs at least two valid legs."""
    if len(legs) < MIN_PARLAY_LEGS:
        raise InputError("A parlay needs at least 2 legs.", field="legs")
    for index, leg in enumerate(legs):
        validate_leg(leg, index)


def validate_bet(bet: BetRecord, legs: Optional[Sequence[ParlayLegRecord]] = None) -> None:
    """
    Validate a bet (and its legs when it is a parlay).

    Raises:
        InputError: on the first violated precondition
    """
    if bet.bet_type not in BET_TYPES:
        raise InputError(f"Unknown bet type: {bet.bet_type!r}.", field="bet_type")

    validate_stake(bet.stake)
    validate_odds(bet.odds)

    if bet.bet_type == PARLAY:
        if not bet.parlay_id:
            raise InputError("Parlay header is missing its parlay_id.", field="parlay_id")
        validate_parlay(legs or [])
        return

    if bet.parlay_id:
        raise InputError("Only parlay headers carry a parlay_id.", field="parlay_id")

    if bet.bet_type == PLAYER_PROP:
        if not (bet.prop_player or "").strip():
            raise InputError("Player is required.", field="prop_player")
        if not (bet.prop_market or "").strip():
            raise InputError("Market is required.", field="prop_market")
        if not _is_finite(bet.prop_line):
            raise InputError("Prop line must be a number.", field="prop_line")
        return

    validate_line_wager(bet.bet_type, bet.selection, bet.line)
