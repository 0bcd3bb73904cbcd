"""
Database models for the bet tracker.

Tables:
- games: canonical game rows, upserted by the schedule/score ingestion job
- bets: single bets, player props and parlay headers
- parlay_legs: legs of a parlay, owned by the header bet via parlay_id
"""
from datetime import datetime
from sqlalchemy import Column, String, Float, Integer, DateTime, Date, ForeignKey, Boolean, Text, Index
from sqlalchemy.orm import relationship, declarative_base

Base = declarative_base()


class Game(Base):
    """
    Canonical game record, keyed by the feed's stable game id.

    Read-only from the settlement engine's perspective.
    """
    __tablename__ = "games"

    game_id = Column(String(64), primary_key=True)
    game_date = Column(Date, nullable=False, index=True)
    home_team = Column(String(100), nullable=False)
    away_team = Column(String(100), nullable=False)
    home_score = Column(Integer, nullable=True)
    away_score = Column(Integer, nullable=True)
    is_final = Column(Boolean, nullable=False, default=False)
    period = Column(Integer, nullable=True)  # Current/final quarter
    clock = Column(String(16), nullable=True)  # "12:34"
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index('ix_games_date_teams', 'game_date', 'home_team', 'away_team'),
    )


class Bet(Base):
    """
    A tracked wager.

    bet_type is one of moneyline, spread, total, player_prop, parlay. Parlay
    headers carry a parlay_id; their legs live in parlay_legs. result_override
    is the manual grade (the only grade player props ever get).
    """
    __tablename__ = "bets"

    id = Column(String(36), primary_key=True)
    bettor = Column(String(50), nullable=False, index=True)
    sport = Column(String(10), nullable=False, default="NFL")
    game_id = Column(String(64), nullable=True, index=True)
    bet_type = Column(String(20), nullable=False)
    selection = Column(String(255), nullable=False, default="")
    line = Column(Float, nullable=True)
    stake = Column(Float, nullable=False)
    odds = Column(Float, nullable=False)  # American

    # Player props
    prop_player = Column(String(255), nullable=True)
    prop_market = Column(String(100), nullable=True)
    prop_side = Column(String(10), nullable=True)  # "over" / "under"
    prop_line = Column(Float, nullable=True)
    prop_notes = Column(Text, nullable=True)

    parlay_id = Column(String(36), nullable=True, unique=True)
    result_override = Column(String(10), nullable=True)  # Won / Lost / Push / Pending
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    legs = relationship(
        "ParlayLeg",
        back_populates="parlay",
        cascade="all, delete-orphan",
        order_by="ParlayLeg.created_at",
    )


class ParlayLeg(Base):
    """One wager within a parlay; deleted together with its header bet."""
    __tablename__ = "parlay_legs"

    id = Column(String(36), primary_key=True)
    parlay_id = Column(String(36), ForeignKey("bets.parlay_id", ondelete="CASCADE"), nullable=False, index=True)
    game_id = Column(String(64), nullable=True)
    leg_type = Column(String(20), nullable=False)
    selection = Column(String(255), nullable=False, default="")
    line = Column(Float, nullable=True)
    odds = Column(Float, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    parlay = relationship("Bet", back_populates="legs")
