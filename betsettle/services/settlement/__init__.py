"""
Bet settlement engine.

Resolves loose game descriptors to canonical games, grades bets against final
scores, computes profit and folds results into per-bettor summaries. Nothing
here touches the network or the database directly; storage is reached through
an injected GameLookup.
"""
from betsettle.services.settlement.records import (
    GameRecord,
    BetRecord,
    ParlayLegRecord,
    index_games,
    group_legs,
)
from betsettle.services.settlement.odds import (
    american_to_decimal,
    decimal_to_american,
    combined_odds,
    profit as odds_profit,
)
from betsettle.services.settlement.game_resolver import (
    GameDescriptor,
    GameLookup,
    GameMatch,
    GameResolver,
    InMemoryGameLookup,
)
from betsettle.services.settlement.grading import (
    Result,
    SettledBet,
    SettlementEngine,
    grade,
    profit,
)
from betsettle.services.settlement.reporting import Summary, summarize, summarize_by_bettor
from betsettle.services.settlement.validation import InputError, validate_bet
from betsettle.services.settlement.slip_import import ImportedBet, SlipImporter

__all__ = [
    "GameRecord",
    "BetRecord",
    "ParlayLegRecord",
    "index_games",
    "group_legs",
    "american_to_decimal",
    "decimal_to_american",
    "combined_odds",
    "odds_profit",
    "GameDescriptor",
    "GameLookup",
    "GameMatch",
    "GameResolver",
    "InMemoryGameLookup",
    "Result",
    "SettledBet",
    "SettlementEngine",
    "grade",
    "profit",
    "Summary",
    "summarize",
    "summarize_by_bettor",
    "InputError",
    "validate_bet",
    "ImportedBet",
    "SlipImporter",
]
