"""
Per-bettor win/loss summaries.

summarize() is a pure fold over a snapshot: the same bets, games and legs
always produce the same Summary.
"""
from dataclasses import dataclass, asdict
from typing import Dict, Iterable, Mapping, Optional, Sequence

from betsettle.services.settlement.grading import Result, SettlementEngine, SettledBet
from betsettle.services.settlement.records import BetRecord, GameRecord, ParlayLegRecord

ALL_BETTORS = "all"


@dataclass(frozen=True)
class Summary:
    """Counters and money totals for a set of bets."""
    wins: int = 0
    losses: int = 0
    pushes: int = 0
    pending: int = 0
    total_winnings: float = 0.0
    total_losses: float = 0.0

    @property
    def net(self) -> float:
        return self.total_winnings - self.total_losses

    @property
    def settled(self) -> int:
        return self.wins + self.losses + self.pushes

    @property
    def win_rate(self) -> float:
        """wins / (wins + losses); pushes and pending are excluded."""
        decided = self.wins + self.losses
        return self.wins / decided if decided else 0.0

    def add(self, settled: SettledBet) -> "Summary":
        """Return a new Summary with one graded bet folded in."""
        if settled.result == Result.WON:
            return Summary(
                wins=self.wins + 1,
                losses=self.losses,
                pushes=self.pushes,
                pending=self.pending,
                total_winnings=self.total_winnings + settled.profit,
                total_losses=self.total_losses,
            )
        if settled.result == Result.LOST:
            return Summary(
                wins=self.wins,
                losses=self.losses + 1,
                pushes=self.pushes,
                pending=self.pending,
                total_winnings=self.total_winnings,
                total_losses=self.total_losses + float(settled.bet.stake),
            )
        if settled.result == Result.PUSH:
            return Summary(
                wins=self.wins,
                losses=self.losses,
                pushes=self.pushes + 1,
                pending=self.pending,
                total_winnings=self.total_winnings,
                total_losses=self.total_losses,
            )
        # Pending and NoGameData
        return Summary(
            wins=self.wins,
            losses=self.losses,
            pushes=self.pushes,
            pending=self.pending + 1,
            total_winnings=self.total_winnings,
            total_losses=self.total_losses,
        )

    def to_dict(self) -> Dict:
        data = asdict(self)
        data["total_winnings"] = round(self.total_winnings, 2)
        data["total_losses"] = round(self.total_losses, 2)
        data["net"] = round(self.net, 2)
        data["settled"] = self.settled
        data["win_rate"] = round(self.win_rate * 100, 2)
        return data


def fold(settled_bets: Iterable[SettledBet]) -> Summary:
    """Fold already graded bets into a Summary."""
    summary = Summary()
    for settled in settled_bets:
        summary = summary.add(settled)
    return summary


def summarize(
    bets: Sequence[BetRecord],
    games: Mapping[str, GameRecord],
    legs_by_parlay: Optional[Mapping[str, Sequence[ParlayLegRecord]]] = None,
    bettor: Optional[str] = None,
) -> Summary:
    """
    Summarize bets against a snapshot, optionally for one bettor.

    Args:
        bets: Bets to fold
        games: Games keyed by game_id
        legs_by_parlay: Parlay legs keyed by parlay_id
        bettor: Only fold this bettor's bets (None or "all" folds everything)
    """
    engine = SettlementEngine(games, legs_by_parlay)
    selected = [b for b in bets if bettor in (None, ALL_BETTORS) or b.bettor == bettor]
    return fold(engine.settle(b) for b in selected)


def summarize_by_bettor(
    bets: Sequence[BetRecord],
    games: Mapping[str, GameRecord],
    legs_by_parlay: Optional[Mapping[str, Sequence[ParlayLegRecord]]] = None,
) -> Dict[str, Summary]:
    """Summary for everyone under "all", plus one per bettor (sorted by name)."""
    engine = SettlementEngine(games, legs_by_parlay)
    settled = engine.settle_all(bets)

    summaries = {ALL_BETTORS: fold(settled)}
    for bettor in sorted({s.bet.bettor for s in settled}):
        summaries[bettor] = fold(s for s in settled if s.bet.bettor == bettor)
    return summaries
