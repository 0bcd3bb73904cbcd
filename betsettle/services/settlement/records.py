"""
Immutable snapshot records consumed by the settlement engine.

Rows are read once per evaluation pass and frozen, so resolve -> grade ->
summarize runs over a consistent snapshot with no shared mutable state.
"""
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional

MONEYLINE = "moneyline"
SPREAD = "spread"
TOTAL = "total"
PLAYER_PROP = "player_prop"
PARLAY = "parlay"

LINE_BET_TYPES = (MONEYLINE, SPREAD, TOTAL)
BET_TYPES = LINE_BET_TYPES + (PLAYER_PROP, PARLAY)


@dataclass(frozen=True)
class GameRecord:
    """Canonical game as stored by the ingestion job."""
    game_id: str
    date: date
    home_team: str
    away_team: str
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    is_final: bool = False
    period: Optional[int] = None
    clock: Optional[str] = None

    @classmethod
    def from_model(cls, row) -> "GameRecord":
        return cls(
            game_id=row.game_id,
            date=row.game_date,
            home_team=row.home_team,
            away_team=row.away_team,
            home_score=row.home_score,
            away_score=row.away_score,
            is_final=bool(row.is_final),
            period=row.period,
            clock=row.clock,
        )


@dataclass(frozen=True)
class BetRecord:
    """A tracked bet: single, player prop, or parlay header."""
    id: str
    bettor: str
    bet_type: str
    stake: float
    odds: float
    selection: str = ""
    line: Optional[float] = None
    sport: str = "NFL"
    game_id: Optional[str] = None
    parlay_id: Optional[str] = None
    prop_player: Optional[str] = None
    prop_market: Optional[str] = None
    prop_side: Optional[str] = None
    prop_line: Optional[float] = None
    prop_notes: Optional[str] = None
    result_override: Optional[str] = None

    @property
    def is_parlay(self) -> bool:
        return self.bet_type == PARLAY

    @classmethod
    def from_model(cls, row) -> "BetRecord":
        return cls(
            id=row.id,
            bettor=row.bettor,
            bet_type=row.bet_type,
            stake=row.stake,
            odds=row.odds,
            selection=row.selection or "",
            line=row.line,
            sport=row.sport,
            game_id=row.game_id,
            parlay_id=row.parlay_id,
            prop_player=row.prop_player,
            prop_market=row.prop_market,
            prop_side=row.prop_side,
            prop_line=row.prop_line,
            prop_notes=row.prop_notes,
            result_override=row.result_override,
        )


@dataclass(frozen=True)
class ParlayLegRecord:
    """One leg of a parlay (moneyline, spread or total)."""
    id: str
    parlay_id: str
    leg_type: str
    selection: str
    odds: float
    line: Optional[float] = None
    game_id: Optional[str] = None

    @classmethod
    def from_model(cls, row) -> "ParlayLegRecord":
        return cls(
            id=row.id,
            parlay_id=row.parlay_id,
            leg_type=row.leg_type,
            selection=row.selection or "",
            odds=row.odds,
            line=row.line,
            game_id=row.game_id,
        )


def index_games(games: Iterable[GameRecord]) -> Dict[str, GameRecord]:
    """Key games by game_id."""
    return {g.game_id: g for g in games}


def group_legs(legs: Iterable[ParlayLegRecord]) -> Dict[str, List[ParlayLegRecord]]:
    """Group legs by their owning parlay_id, preserving order."""
    grouped: Dict[str, List[ParlayLegRecord]] = {}
    for leg in legs:
        grouped.setdefault(leg.parlay_id, []).append(leg)
    return grouped
