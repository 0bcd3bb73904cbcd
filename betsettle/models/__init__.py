"""
Database models.

Usage:
    from betsettle.models import Game, Bet, ParlayLeg
"""
from betsettle.models.models import Base, Game, Bet, ParlayLeg

__all__ = [
    "Base",
    "Game",
    "Bet",
    "ParlayLeg",
]
