"""
Settlement API routes: resolve games, grade bets, summarize results.
"""
import logging
from typing import Dict, List, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session, sessionmaker

from betsettle.core.database import get_db
from betsettle.repositories import BetRepository, GameRepository, SqlGameLookup
from betsettle.services.settlement import (
    GameRecord,
    BetRecord,
    GameResolver,
    ParlayLegRecord,
    SettlementEngine,
    SlipImporter,
    summarize_by_bettor,
)
from betsettle.services.settlement import odds as odds_math
from betsettle.services.settlement.reporting import ALL_BETTORS, Summary
from betsettle.services.settlement.slip_import import ParsedSlip
from betsettle.utils.formatting import game_status_text, format_signed_money, matchup_text

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["settlement"])


# Request/Response models
class ResolveRequest(BaseModel):
    """Loose game description (screenshot parser shape)."""
    home_team: Optional[str] = None
    away_team: Optional[str] = None
    game_date: Optional[str] = Field(None, description="YYYY-MM-DD if known")


class ResolveResponse(BaseModel):
    game_id: Optional[str]
    score: Optional[int] = None
    search_pass: Optional[str] = None


class GameResponse(BaseModel):
    game_id: str
    game_date: str
    home_team: str
    away_team: str
    home_score: Optional[int]
    away_score: Optional[int]
    is_final: bool
    status: str


class LegResponse(BaseModel):
    id: str
    leg_type: str
    selection: str
    line: Optional[float]
    odds: Optional[float]
    game_id: Optional[str]
    result: str
    matchup: Optional[str]


class GradedBetResponse(BaseModel):
    id: str
    bettor: str
    bet_type: str
    selection: str
    line: Optional[float]
    stake: float
    odds: float
    implied_probability: float
    game_id: Optional[str]
    matchup: Optional[str]
    result: str
    tone: str
    profit: float
    profit_text: str
    result_override: Optional[str]
    legs: List[LegResponse] = []


class SummaryResponse(BaseModel):
    wins: int
    losses: int
    pushes: int
    pending: int
    settled: int
    total_winnings: float
    total_losses: float
    net: float
    win_rate: float


class ResultOverrideRequest(BaseModel):
    result: Optional[str] = Field(None, description="Won, Lost, Push, Pending, or null to clear")


class ImportRequest(BaseModel):
    bettor: str = Field(..., min_length=1)
    slip: ParsedSlip
    save: bool = Field(False, description="Persist the bet when every game matched")


class ImportResponse(BaseModel):
    bet: GradedBetResponse
    unmatched: List[ResolveRequest]
    saved: bool


def _game_response(game: GameRecord) -> GameResponse:
    return GameResponse(
        game_id=game.game_id,
        game_date=game.date.isoformat(),
        home_team=game.home_team,
        away_team=game.away_team,
        home_score=game.home_score,
        away_score=game.away_score,
        is_final=game.is_final,
        status=game_status_text(game),
    )


def _game_lookup(db: Session) -> SqlGameLookup:
    """Breaker-guarded lookup with its own session per query, on the request's database."""
    return SqlGameLookup(sessionmaker(bind=db.get_bind()))


def _load_snapshot(
    db: Session, bettor: Optional[str] = None
) -> Tuple[List[BetRecord], Dict[str, GameRecord], Dict[str, List[ParlayLegRecord]]]:
    """Read bets, their parlay legs and every referenced game once."""
    bet_repo = BetRepository(db)
    bets = bet_repo.list_bets(bettor=bettor)
    legs_by_parlay = bet_repo.legs_by_parlay(b.parlay_id for b in bets if b.parlay_id)

    game_ids = {b.game_id for b in bets if b.game_id}
    game_ids |= {leg.game_id for legs in legs_by_parlay.values() for leg in legs if leg.game_id}
    games = GameRepository(db).snapshot(game_ids)
    return bets, games, legs_by_parlay


def _graded_response(engine: SettlementEngine, bet: BetRecord) -> GradedBetResponse:
    settled = engine.settle(bet)
    legs = [
        LegResponse(
            id=leg.id,
            leg_type=leg.leg_type,
            selection=leg.selection,
            line=leg.line,
            odds=leg.odds,
            game_id=leg.game_id,
            result=result.value,
            matchup=matchup_text(engine.games.get(leg.game_id)) if leg.game_id else None,
        )
        for leg, result in zip(engine.legs_for(bet), settled.leg_results)
    ]
    return GradedBetResponse(
        id=bet.id,
        bettor=bet.bettor,
        bet_type=bet.bet_type,
        selection=bet.selection,
        line=bet.line,
        stake=bet.stake,
        odds=bet.odds,
        implied_probability=round(odds_math.implied_probability(bet.odds), 4),
        game_id=bet.game_id,
        matchup=matchup_text(engine.games.get(bet.game_id)) if bet.game_id else None,
        result=settled.result.value,
        tone=settled.result.tone,
        profit=round(settled.profit, 2),
        profit_text=format_signed_money(settled.profit),
        result_override=bet.result_override,
        legs=legs,
    )


@router.post("/games/resolve", response_model=ResolveResponse)
async def resolve_game(request: ResolveRequest, db: Session = Depends(get_db)):
    """Resolve loose team names (and optional date) to a stored game id."""
    resolver = GameResolver(_game_lookup(db))
    match = resolver.find_best(request.model_dump())
    if match is None:
        return ResolveResponse(game_id=None)
    return ResolveResponse(game_id=match.game_id, score=match.score, search_pass=match.search_pass)


@router.get("/games/search", response_model=List[GameResponse])
async def search_games(
    q: str = Query("", description="Team text, e.g. 'dal' or 'chiefs'"),
    db: Session = Depends(get_db)
):
    """Search stored games by team text."""
    try:
        return [_game_response(g) for g in GameRepository(db).search(q)]
    except Exception as e:
        logger.error(f"Error searching games for {q!r}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/bets", response_model=List[GradedBetResponse])
async def list_graded_bets(
    bettor: Optional[str] = Query(None, description="Filter by bettor"),
    db: Session = Depends(get_db)
):
    """Bets with their current grade and profit."""
    try:
        bets, games, legs_by_parlay = _load_snapshot(db, bettor if bettor != ALL_BETTORS else None)
        engine = SettlementEngine(games, legs_by_parlay)
        return [_graded_response(engine, bet) for bet in bets]
    except Exception as e:
        logger.error(f"Error grading bets: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/bets/summary", response_model=Dict[str, SummaryResponse])
async def get_summary(
    bettor: Optional[str] = Query(None, description="Only this bettor (plus 'all')"),
    db: Session = Depends(get_db)
):
    """
    Win/loss summary for all bettors and for each bettor.

    The "all" entry always covers every stored bet; a bettor filter only
    narrows the per-bettor entries.
    """
    try:
        bets, games, legs_by_parlay = _load_snapshot(db)
        summaries = summarize_by_bettor(bets, games, legs_by_parlay)
        if bettor and bettor != ALL_BETTORS:
            summaries = {
                ALL_BETTORS: summaries[ALL_BETTORS],
                bettor: summaries.get(bettor, Summary()),
            }
        return {name: summary.to_dict() for name, summary in summaries.items()}
    except Exception as e:
        logger.error(f"Error summarizing bets: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/bets/{bet_id}/result", response_model=GradedBetResponse)
async def set_bet_result(
    bet_id: str,
    request: ResultOverrideRequest,
    db: Session = Depends(get_db)
):
    """Set or clear the manual grade of a bet (the only way props get graded)."""
    bet = BetRepository(db).set_result_override(bet_id, request.result)
    if bet is None:
        raise HTTPException(status_code=404, detail=f"Bet {bet_id} not found")

    bet_repo = BetRepository(db)
    legs_by_parlay = bet_repo.legs_by_parlay([bet.parlay_id]) if bet.parlay_id else {}
    game_ids = {bet.game_id} | {leg.game_id for legs in legs_by_parlay.values() for leg in legs}
    engine = SettlementEngine(GameRepository(db).snapshot(game_ids), legs_by_parlay)
    return _graded_response(engine, bet)


@router.delete("/bets/{bet_id}")
async def delete_bet(bet_id: str, db: Session = Depends(get_db)):
    """Delete a bet; parlay legs are removed with their parlay."""
    if not BetRepository(db).delete_bet(bet_id):
        raise HTTPException(status_code=404, detail=f"Bet {bet_id} not found")
    return {"message": "Bet deleted", "bet_id": bet_id}


@router.post("/bets/import", response_model=ImportResponse)
async def import_slip(request: ImportRequest, db: Session = Depends(get_db)):
    """
    Build a bet from a parsed bet slip, resolving each game descriptor.

    With ``save`` set, the bet is stored only when every descriptor matched a
    game; otherwise the draft is returned for review.
    """
    imported = await SlipImporter(GameResolver(_game_lookup(db))).build(request.slip, bettor=request.bettor)

    saved = False
    if request.save and imported.fully_matched:
        BetRepository(db).add(imported.bet, imported.legs)
        db.commit()
        saved = True
        logger.info(f"Saved imported {imported.bet.bet_type} bet {imported.bet.id} for {request.bettor}")

    game_ids = {imported.bet.game_id} | {leg.game_id for leg in imported.legs}
    legs_by_parlay = {imported.bet.parlay_id: imported.legs} if imported.bet.parlay_id else {}
    engine = SettlementEngine(GameRepository(db).snapshot(game_ids), legs_by_parlay)

    return ImportResponse(
        bet=_graded_response(engine, imported.bet),
        unmatched=[
            ResolveRequest(
                home_team=d.home_team or None,
                away_team=d.away_team or None,
                game_date=d.game_date.isoformat() if d.game_date else None,
            )
            for d in imported.unmatched
        ],
        saved=saved,
    )
