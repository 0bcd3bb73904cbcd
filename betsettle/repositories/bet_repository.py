"""
Bet repository: reads the bet store into settlement snapshots.

Besides reads, it carries the two writes a human triggers from the tracker:
setting a manual grade and deleting a bet (parlay legs go with it).
"""
import logging
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy import desc
from sqlalchemy.orm import Session

from betsettle.models import Bet, ParlayLeg
from betsettle.repositories.base import BaseRepository
from betsettle.services.settlement.grading import parse_override
from betsettle.services.settlement.records import BetRecord, ParlayLegRecord
from betsettle.services.settlement.validation import InputError

logger = logging.getLogger(__name__)


class BetRepository(BaseRepository[Bet]):
    """Repository for bets and their parlay legs."""

    def __init__(self, db: Session):
        super().__init__(Bet, db)

    def list_bets(self, bettor: Optional[str] = None) -> List[BetRecord]:
        """Bets newest first, optionally for one bettor."""
        query = self.query()
        if bettor:
            query = query.filter(Bet.bettor == bettor)
        rows = query.order_by(desc(Bet.created_at), Bet.id).all()
        return [BetRecord.from_model(row) for row in rows]

    def get(self, bet_id: str) -> Optional[BetRecord]:
        row = self.find_by_id(bet_id)
        return BetRecord.from_model(row) if row else None

    def legs_by_parlay(self, parlay_ids: Iterable[str]) -> Dict[str, List[ParlayLegRecord]]:
        """Legs for the given parlays, keyed by parlay_id in insertion order."""
        ids = sorted({p for p in parlay_ids if p})
        if not ids:
            return {}

        rows = (
            self.db.query(ParlayLeg)
            .filter(ParlayLeg.parlay_id.in_(ids))
            .order_by(ParlayLeg.created_at, ParlayLeg.id)
            .all()
        )
        grouped: Dict[str, List[ParlayLegRecord]] = {}
        for row in rows:
            grouped.setdefault(row.parlay_id, []).append(ParlayLegRecord.from_model(row))
        return grouped

    def add(self, bet: BetRecord, legs: Sequence[ParlayLegRecord] = ()) -> Bet:
        """Stage a bet and its legs for insert (the caller commits)."""
        now = datetime.utcnow()
        row = self.create(
            id=bet.id,
            bettor=bet.bettor,
            sport=bet.sport,
            game_id=bet.game_id,
            bet_type=bet.bet_type,
            selection=bet.selection,
            line=bet.line,
            stake=bet.stake,
            odds=bet.odds,
            prop_player=bet.prop_player,
            prop_market=bet.prop_market,
            prop_side=bet.prop_side,
            prop_line=bet.prop_line,
            prop_notes=bet.prop_notes,
            parlay_id=bet.parlay_id,
            result_override=bet.result_override,
            created_at=now,
        )
        for index, leg in enumerate(legs):
            row.legs.append(ParlayLeg(
                id=leg.id,
                game_id=leg.game_id,
                leg_type=leg.leg_type,
                selection=leg.selection,
                line=leg.line,
                odds=leg.odds,
                # keeps slip order when legs are read back
                created_at=now + timedelta(microseconds=index),
            ))
        return row

    def set_result_override(self, bet_id: str, value: Optional[str]) -> Optional[BetRecord]:
        """
        Set or clear the manual grade of a bet.

        Args:
            bet_id: Bet to update
            value: "Won", "Lost", "Push", "Pending" (any case), or None/"" to clear

        Returns:
            Updated record, or None if the bet doesn't exist

        Raises:
            InputError: value is not a recognised grade
        """
        row = self.find_by_id(bet_id)
        if row is None:
            return None

        if value is None or not str(value).strip():
            row.result_override = None
        else:
            result = parse_override(value)
            if result is None:
                raise InputError(f"Unknown grade: {value!r}.", field="result")
            row.result_override = result.value

        self.db.commit()
        logger.info(f"Bet {bet_id} manual grade set to {row.result_override}")
        return BetRecord.from_model(row)

    def delete_bet(self, bet_id: str) -> bool:
        """Delete a bet; a parlay header takes its legs with it."""
        deleted = self.delete(bet_id)
        if deleted:
            self.db.commit()
            logger.info(f"Deleted bet {bet_id}")
        return deleted
