"""
Display helpers for games and money.
"""
from typing import Optional

from betsettle.services.settlement.records import GameRecord


def game_status_text(game: Optional[GameRecord]) -> str:
    """
    Short status for a game row.

    Examples:
        Final, Q3 12:34, Q2, 4:10, Live, Scheduled
    """
    if game is None:
        return "No game data"
    if game.is_final:
        return "Final"
    if game.period is not None or game.clock:
        period = f"Q{game.period}" if game.period is not None else ""
        text = f"{period} {game.clock or ''}".strip()
        return text or "Live"
    return "Scheduled"


def format_signed_money(amount: float) -> str:
    """
    Signed dollar amount, e.g. +$90.91 or -$100.00.

    Zero renders as +$0.00.
    """
    sign = "+" if amount >= 0 else "-"
    return f"{sign}${abs(amount):.2f}"


def matchup_text(game: Optional[GameRecord]) -> Optional[str]:
    """'AWAY @ HOME - YYYY-MM-DD - away-home - status', or None without a game."""
    if game is None:
        return None
    return (
        f"{game.away_team} @ {game.home_team} - {game.date.isoformat()} - "
        f"{game.away_score or 0}-{game.home_score or 0} - {game_status_text(game)}"
    )
