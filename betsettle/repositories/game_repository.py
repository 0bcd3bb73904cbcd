"""
Game repository: read access to the canonical games table.

The games table is owned by the schedule/score ingestion job; ``upsert`` is
the interface that job writes through. Everything else is read-only.

Usage:
    repo = GameRepository(db)
    game = repo.find_by_game_id("401547417")
    rows = repo.find_candidates(date_from, date_to, ["CHIEFS"], ["BILLS"], limit=25)
"""
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence

from rapidfuzz import fuzz
from sqlalchemy import and_, desc, or_
from sqlalchemy.orm import Session, sessionmaker

from betsettle.core.circuit_breaker import game_lookup_breaker
from betsettle.models import Game
from betsettle.repositories.base import BaseRepository
from betsettle.services.settlement.records import GameRecord
from betsettle.services.settlement.team_names import normalize_team

SEARCH_LIMIT = 30
MIN_SEARCH_LENGTH = 2


def _escape_like(pattern: str) -> str:
    return pattern.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _contains_any(column, patterns: Sequence[str]):
    return or_(*[column.ilike(f"%{_escape_like(p)}%", escape="\\") for p in patterns])


class GameRepository(BaseRepository[Game]):
    """Repository for canonical game rows."""

    pk_field = "game_id"

    def __init__(self, db: Session):
        super().__init__(Game, db)

    def find_by_game_id(self, game_id: str) -> Optional[Game]:
        """Find a game by its feed game id."""
        return self.find_by_id(game_id)

    def find_candidates(
        self,
        date_from: date,
        date_to: date,
        home_patterns: Sequence[str],
        away_patterns: Sequence[str],
        limit: int,
    ) -> List[GameRecord]:
        """
        Games in a date window whose teams contain the patterns, either orientation.

        Ordered most recent first, capped at ``limit``.
        """
        home_patterns = [p for p in home_patterns if p]
        away_patterns = [p for p in away_patterns if p]
        if not home_patterns or not away_patterns:
            return []

        orientation = or_(
            and_(_contains_any(Game.home_team, home_patterns), _contains_any(Game.away_team, away_patterns)),
            and_(_contains_any(Game.home_team, away_patterns), _contains_any(Game.away_team, home_patterns)),
        )

        rows = (
            self.query()
            .filter(Game.game_date >= date_from, Game.game_date <= date_to, orientation)
            .order_by(desc(Game.game_date), Game.game_id)
            .limit(limit)
            .all()
        )
        return [GameRecord.from_model(row) for row in rows]

    def search(self, q: str, limit: int = SEARCH_LIMIT) -> List[GameRecord]:
        """
        Free-text game search for pickers ("dal", "chiefs", "KC BUF").

        Any query token matching either team qualifies a game; results are
        ranked by fuzzy similarity to the matchup text, then by date.
        """
        query_text = normalize_team(q)
        if len(query_text) < MIN_SEARCH_LENGTH:
            return []

        tokens = [t for t in query_text.split(" ") if t]
        rows = (
            self.query()
            .filter(or_(_contains_any(Game.home_team, tokens), _contains_any(Game.away_team, tokens)))
            .order_by(desc(Game.game_date))
            .limit(limit * 4)
            .all()
        )

        def _rank(row: Game) -> float:
            matchup = f"{row.away_team} {row.home_team}".upper()
            return fuzz.token_set_ratio(query_text, matchup)

        ranked = sorted(rows, key=_rank, reverse=True)
        return [GameRecord.from_model(row) for row in ranked[:limit]]

    def snapshot(self, game_ids: Iterable[str]) -> Dict[str, GameRecord]:
        """Frozen records for the given ids, keyed by game_id."""
        ids = sorted({g for g in game_ids if g})
        if not ids:
            return {}
        rows = self.where(Game.game_id.in_(ids))
        return {row.game_id: GameRecord.from_model(row) for row in rows}

    def upsert(self, record: GameRecord) -> Game:
        """
        Insert or update a game keyed by game_id (ingestion interface).

        The caller commits.
        """
        game = self.find_by_game_id(record.game_id)
        if game is None:
            game = self.create(game_id=record.game_id)

        game.game_date = record.date
        game.home_team = record.home_team
        game.away_team = record.away_team
        game.home_score = record.home_score
        game.away_score = record.away_score
        game.is_final = record.is_final
        game.period = record.period
        game.clock = record.clock
        game.updated_at = datetime.utcnow()
        return game


class SqlGameLookup:
    """
    GameLookup backed by the games table.

    Every lookup opens its own session, so lookups can run concurrently
    (one per bet or leg). Calls go through the game lookup circuit breaker.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def find_candidates(
        self,
        date_from: date,
        date_to: date,
        home_patterns: Sequence[str],
        away_patterns: Sequence[str],
        limit: int,
    ) -> List[GameRecord]:
        return game_lookup_breaker.call(
            self._find_candidates, date_from, date_to, home_patterns, away_patterns, limit
        )

    def _find_candidates(self, date_from, date_to, home_patterns, away_patterns, limit) -> List[GameRecord]:
        with self.session_factory() as db:
            return GameRepository(db).find_candidates(date_from, date_to, home_patterns, away_patterns, limit)
