"""
Repository layer for data access.

Usage:
    from betsettle.repositories import GameRepository, BetRepository
    from betsettle.core.database import get_session_factory

    db = get_session_factory()()
    bets = BetRepository(db).list_bets(bettor="sydney")
    db.close()
"""
from betsettle.repositories.base import BaseRepository
from betsettle.repositories.game_repository import GameRepository, SqlGameLookup
from betsettle.repositories.bet_repository import BetRepository

__all__ = [
    "BaseRepository",
    "GameRepository",
    "SqlGameLookup",
    "BetRepository",
]
