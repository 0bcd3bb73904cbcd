"""
Turn a parsed bet slip into bet records ready to save.

The screenshot parser (an external AI service) returns a structured slip with
a game descriptor per bet or parlay leg. Each descriptor is resolved through
the GameResolver; an unresolved descriptor leaves the game_id empty (the bet
then grades as "No game data") instead of failing the import. Invalid stakes,
odds, lines or leg counts are rejected with InputError.
"""
import logging
import uuid
from dataclasses import dataclass, field, replace
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from betsettle.core.logging import correlation_scope, get_correlation_id
from betsettle.services.settlement.game_resolver import GameDescriptor, GameResolver
from betsettle.services.settlement.records import (
    BetRecord,
    ParlayLegRecord,
    MONEYLINE,
    PLAYER_PROP,
    PARLAY,
)
from betsettle.services.settlement.validation import InputError, validate_bet

logger = logging.getLogger(__name__)


class ParsedLeg(BaseModel):
    """One leg as returned by the slip parser."""
    model_config = ConfigDict(extra="ignore")

    bet_type: str
    selection: Optional[str] = None
    line: Optional[float] = None
    odds: Optional[float] = None
    prop_player: Optional[str] = None
    prop_market: Optional[str] = None
    prop_side: Optional[str] = None
    prop_line: Optional[float] = None
    game: Any = None


class ParsedSlip(BaseModel):
    """Bet slip as returned by the slip parser; every field may be null."""
    model_config = ConfigDict(extra="ignore")

    sport: Optional[str] = "NFL"
    bet_type: str
    stake: Optional[float] = None
    odds: Optional[float] = None
    selection: Optional[str] = None
    line: Optional[float] = None
    prop_player: Optional[str] = None
    prop_market: Optional[str] = None
    prop_side: Optional[str] = None
    prop_line: Optional[float] = None
    game: Any = None
    legs: Optional[List[ParsedLeg]] = None
    sportsbook: Optional[str] = None
    confidence: Optional[float] = None


@dataclass(frozen=True)
class ImportedBet:
    """Unsaved bet (plus parlay legs) built from a parsed slip."""
    bet: BetRecord
    legs: List[ParlayLegRecord] = field(default_factory=list)
    unmatched: List[GameDescriptor] = field(default_factory=list)

    @property
    def fully_matched(self) -> bool:
        return not self.unmatched


class SlipImporter:
    """
    Build bet records from parsed slips.

    Usage:
        importer = SlipImporter(GameResolver(lookup))
        draft = await importer.build(parsed_json, bettor="sydney")
    """

    def __init__(self, resolver: GameResolver):
        self.resolver = resolver

    async def build(self, slip: Union[ParsedSlip, dict], bettor: str) -> ImportedBet:
        """
        Resolve every game descriptor on the slip and build validated records.

        Outside an HTTP request the import runs under its own correlation ID,
        so the log lines of its lookups can be tied together.

        Raises:
            InputError: malformed slip, bad stake/odds/line, or < 2 parlay legs
        """
        if get_correlation_id():
            return await self._build(slip, bettor)
        with correlation_scope(f"import-{uuid.uuid4().hex[:12]}"):
            return await self._build(slip, bettor)

    async def _build(self, slip: Union[ParsedSlip, dict], bettor: str) -> ImportedBet:
        parsed = self._parse(slip)
        if not (bettor or "").strip():
            raise InputError("Bettor is required.", field="bettor")

        if parsed.bet_type == PARLAY:
            imported = await self._build_parlay(parsed, bettor)
        else:
            imported = await self._build_single(parsed, bettor)

        for descriptor in imported.unmatched:
            logger.info(
                f"Imported bet {imported.bet.id} has an unmatched game: "
                f"{descriptor.away_team or '?'} @ {descriptor.home_team or '?'} ({descriptor.game_date})"
            )
        return imported

    @staticmethod
    def _parse(slip: Union[ParsedSlip, dict]) -> ParsedSlip:
        if isinstance(slip, ParsedSlip):
            return slip
        try:
            return ParsedSlip.model_validate(slip)
        except ValidationError as e:
            raise InputError(f"Malformed bet slip: {e.errors()[0]['msg']}", field="slip") from e

    @staticmethod
    def _notes(parsed: ParsedSlip, default: Optional[str]) -> Optional[str]:
        return f"Imported from {parsed.sportsbook}" if parsed.sportsbook else default

    async def _build_single(self, parsed: ParsedSlip, bettor: str) -> ImportedBet:
        common = dict(
            id=str(uuid.uuid4()),
            bettor=bettor,
            sport=parsed.sport or "NFL",
            stake=parsed.stake,
            odds=parsed.odds,
        )

        if parsed.bet_type == PLAYER_PROP:
            bet = BetRecord(
                **common,
                bet_type=PLAYER_PROP,
                selection="prop",
                prop_player=(parsed.prop_player or "").strip() or None,
                prop_market=(parsed.prop_market or "").strip() or None,
                prop_side=parsed.prop_side,
                prop_line=parsed.prop_line,
                prop_notes=self._notes(parsed, "Imported from screenshot"),
                result_override="Pending",
            )
        else:
            bet = BetRecord(
                **common,
                bet_type=parsed.bet_type,
                selection=parsed.selection or "",
                line=None if parsed.bet_type == MONEYLINE else parsed.line,
                prop_notes=self._notes(parsed, None),
            )

        validate_bet(bet)

        descriptor = GameDescriptor.from_raw(parsed.game)
        [game_id] = await self.resolver.resolve_many([descriptor])
        return ImportedBet(
            bet=replace(bet, game_id=game_id),
            unmatched=[] if game_id else [descriptor],
        )

    async def _build_parlay(self, parsed: ParsedSlip, bettor: str) -> ImportedBet:
        parsed_legs = parsed.legs or []
        if len(parsed_legs) < 2:
            raise InputError("Parsed as parlay but found fewer than 2 legs.", field="legs")
        for index, leg in enumerate(parsed_legs):
            if leg.bet_type == PLAYER_PROP:
                raise InputError("Player prop legs are not supported in parlays.", field=f"legs[{index}].bet_type")

        parlay_id = str(uuid.uuid4())
        header = BetRecord(
            id=str(uuid.uuid4()),
            bettor=bettor,
            sport=parsed.sport or "NFL",
            bet_type=PARLAY,
            selection="parlay",
            stake=parsed.stake,
            odds=parsed.odds,
            parlay_id=parlay_id,
            prop_notes=self._notes(parsed, "Imported from screenshot"),
        )

        legs = [
            ParlayLegRecord(
                id=str(uuid.uuid4()),
                parlay_id=parlay_id,
                leg_type=leg.bet_type,
                selection=leg.selection or "",
                line=None if leg.bet_type == MONEYLINE else leg.line,
                odds=leg.odds,
            )
            for leg in parsed_legs
        ]
        validate_bet(header, legs)

        descriptors = [GameDescriptor.from_raw(leg.game) for leg in parsed_legs]
        game_ids = await self.resolver.resolve_many(descriptors)
        legs = [replace(leg, game_id=game_id) for leg, game_id in zip(legs, game_ids)]
        unmatched = [d for d, game_id in zip(descriptors, game_ids) if not game_id]
        return ImportedBet(bet=header, legs=legs, unmatched=unmatched)
