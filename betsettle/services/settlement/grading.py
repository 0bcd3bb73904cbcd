"""
Bet grading and profit.

Grades a bet against final scores only:

- moneyline: picked side must strictly outscore the other; tie is a push
- spread: (pick score - opponent score) + line; 0 push, >0 won, <0 lost
- total: home + away against the line; equal is a push
- player_prop: never auto-graded; the manual grade (default Pending) stands
- parlay: any lost leg loses; any pending/no-data leg keeps it pending;
  otherwise won, with pushed legs priced at 1.0

A manual result_override always takes precedence over the computed grade.
"""
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Mapping, Optional, Sequence

from betsettle.services.settlement import odds as odds_math
from betsettle.services.settlement.records import (
    BetRecord,
    GameRecord,
    ParlayLegRecord,
    MONEYLINE,
    SPREAD,
    TOTAL,
    PLAYER_PROP,
)
from betsettle.services.settlement.team_names import team_key

logger = logging.getLogger(__name__)


class Result(str, Enum):
    """Grade of a bet or leg."""
    WON = "Won"
    LOST = "Lost"
    PUSH = "Push"
    PENDING = "Pending"
    NO_GAME_DATA = "No game data"

    @property
    def tone(self) -> str:
        """Presentation tone: good, bad or neutral."""
        if self is Result.WON:
            return "good"
        if self is Result.LOST:
            return "bad"
        return "neutral"


# Grades a human may set by hand
OVERRIDE_RESULTS = {
    "won": Result.WON,
    "lost": Result.LOST,
    "push": Result.PUSH,
    "pending": Result.PENDING,
}


def parse_override(value: Optional[str]) -> Optional[Result]:
    """Manual grade from stored text (case-insensitive); None if empty or unknown."""
    if not value:
        return None
    return OVERRIDE_RESULTS.get(str(value).strip().lower())


def _finite_line(line) -> Optional[float]:
    if line is None:
        return None
    try:
        value = float(line)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def grade_line_bet(
    bet_type: str,
    selection: str,
    line: Optional[float],
    game: Optional[GameRecord],
) -> Result:
    """
    Grade a moneyline, spread or total wager (a single bet or a parlay leg).

    Args:
        bet_type: moneyline, spread or total
        selection: Team text for moneyline/spread, "over"/"under" for totals
        line: Spread or total line (ignored for moneyline)
        game: Resolved game, or None when no game could be matched

    Returns:
        Result. Anything that can't be decided yet is Pending.
    """
    if game is None:
        return Result.NO_GAME_DATA
    if not game.is_final:
        return Result.PENDING

    home_score = game.home_score or 0
    away_score = game.away_score or 0

    if bet_type == TOTAL:
        total_line = _finite_line(line)
        if total_line is None:
            return Result.PENDING

        total = home_score + away_score
        if total == total_line:
            return Result.PUSH

        pick = (selection or "").strip().lower()
        if pick == "over":
            return Result.WON if total > total_line else Result.LOST
        if pick == "under":
            return Result.WON if total < total_line else Result.LOST
        return Result.PENDING

    pick_key = team_key(selection)
    picked_home = bool(pick_key) and pick_key == team_key(game.home_team)
    picked_away = bool(pick_key) and pick_key == team_key(game.away_team)
    if not picked_home and not picked_away:
        return Result.PENDING

    pick_score, opp_score = (home_score, away_score) if picked_home else (away_score, home_score)

    if bet_type == SPREAD:
        spread_line = _finite_line(line)
        if spread_line is None:
            return Result.PENDING

        margin = (pick_score - opp_score) + spread_line
        if margin == 0:
            return Result.PUSH
        return Result.WON if margin > 0 else Result.LOST

    if bet_type == MONEYLINE:
        if pick_score == opp_score:
            return Result.PUSH
        return Result.WON if pick_score > opp_score else Result.LOST

    logger.debug(f"Cannot auto-grade bet type {bet_type!r}")
    return Result.PENDING


def grade_leg(leg: ParlayLegRecord, games: Mapping[str, GameRecord]) -> Result:
    """Grade one parlay leg with the single-bet rules."""
    game = games.get(leg.game_id) if leg.game_id else None
    return grade_line_bet(leg.leg_type, leg.selection, leg.line, game)


def combine_leg_results(results: Sequence[Result]) -> Result:
    """
    Overall parlay grade from leg grades.

    Lost dominates; then any Pending or NoGameData leg keeps the parlay
    Pending; otherwise (all Won or Push) the parlay is Won.
    """
    if not results:
        return Result.PENDING
    if Result.LOST in results:
        return Result.LOST
    if Result.PENDING in results or Result.NO_GAME_DATA in results:
        return Result.PENDING
    return Result.WON


def effective_parlay_odds(
    legs: Sequence[ParlayLegRecord],
    leg_results: Sequence[Result],
    fallback_odds: float,
) -> float:
    """
    Parlay price recomputed from its legs, pushed legs priced at 1.0.

    Falls back to the header's stored odds when the recomputed price is the
    0 (unknown) sentinel. Only meaningful when the legs themselves combine to
    Won.
    """
    leg_odds = [None if result == Result.PUSH else leg.odds for leg, result in zip(legs, leg_results)]
    american = odds_math.combined_odds(leg_odds)
    return fallback_odds if american == 0 else american


@dataclass(frozen=True)
class SettledBet:
    """A bet with its grade and signed profit."""
    bet: BetRecord
    result: Result
    profit: float
    leg_results: List[Result] = field(default_factory=list)


class SettlementEngine:
    """
    Grade bets against one immutable snapshot of games and parlay legs.

    Usage:
        engine = SettlementEngine(games_by_id, legs_by_parlay)
        result = engine.grade(bet)
        pnl = engine.profit(bet)
    """

    def __init__(
        self,
        games: Mapping[str, GameRecord],
        legs_by_parlay: Optional[Mapping[str, Sequence[ParlayLegRecord]]] = None,
    ):
        self.games = games
        self.legs_by_parlay = legs_by_parlay or {}

    def legs_for(self, bet: BetRecord) -> Sequence[ParlayLegRecord]:
        if not bet.parlay_id:
            return []
        return self.legs_by_parlay.get(bet.parlay_id, [])

    def grade_legs(self, bet: BetRecord) -> List[Result]:
        return [grade_leg(leg, self.games) for leg in self.legs_for(bet)]

    def grade(self, bet: BetRecord) -> Result:
        """Grade a bet; the manual override wins when present."""
        override = parse_override(bet.result_override)
        if override is not None:
            return override

        if bet.bet_type == PLAYER_PROP:
            return Result.PENDING

        if bet.is_parlay:
            return combine_leg_results(self.grade_legs(bet))

        game = self.games.get(bet.game_id) if bet.game_id else None
        return grade_line_bet(bet.bet_type, bet.selection, bet.line, game)

    def profit(self, bet: BetRecord) -> float:
        """Signed profit: winnings when Won, -stake when Lost, else 0."""
        return self.settle(bet).profit

    def settle(self, bet: BetRecord) -> SettledBet:
        """Grade a bet and compute its profit in one pass."""
        leg_results = self.grade_legs(bet) if bet.is_parlay else []
        result = self.grade(bet)

        if result == Result.WON:
            bet_odds = bet.odds
            # A manual Won over losing legs keeps the header price.
            if bet.is_parlay and combine_leg_results(leg_results) == Result.WON:
                bet_odds = effective_parlay_odds(self.legs_for(bet), leg_results, bet.odds)
            pnl = odds_math.profit(bet.stake, bet_odds)
        elif result == Result.LOST:
            pnl = -float(bet.stake or 0)
        else:
            pnl = 0.0

        return SettledBet(bet=bet, result=result, profit=pnl, leg_results=leg_results)

    def settle_all(self, bets: Sequence[BetRecord]) -> List[SettledBet]:
        return [self.settle(bet) for bet in bets]


def grade(
    bet: BetRecord,
    games: Mapping[str, GameRecord],
    legs_by_parlay: Optional[Mapping[str, Sequence[ParlayLegRecord]]] = None,
) -> Result:
    """Grade a single bet against a snapshot."""
    return SettlementEngine(games, legs_by_parlay).grade(bet)


def profit(
    bet: BetRecord,
    games: Mapping[str, GameRecord],
    legs_by_parlay: Optional[Mapping[str, Sequence[ParlayLegRecord]]] = None,
) -> float:
    """Signed profit of a single bet against a snapshot."""
    return SettlementEngine(games, legs_by_parlay).profit(bet)
