"""Resolve loosely described games to canonical game ids.

A descriptor is whatever an upstream producer (screenshot parser, import
file, form input) knows about a game: home team text, away team text and
maybe a date. Resolution runs in two stages:

1. Filter: ask the lookup for a bounded set of stored games whose teams
   contain one of the top variants of each team, in either orientation.
   Pass 1 searches the supplied date +/- 1 day; pass 2 (no date, or pass 1
   empty) searches a year either side of today.
2. Score: every candidate of the producing pass is scored over all team
   variants and the highest score wins. Ties keep the lookup's ordering
   (most recent date first).

There is no minimum score: when anything passes the filter, the best
candidate is returned.
"""
import asyncio
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Callable, Iterable, List, Mapping, Optional, Protocol, Sequence

from betsettle.core.config import settings
from betsettle.services.settlement.records import GameRecord
from betsettle.services.settlement.team_names import normalize_team, team_variants, filter_variants

logger = logging.getLogger(__name__)

_ISO_DATE = re.compile(r'^\d{4}-\d{2}-\d{2}$')

# Score weights
EXACT_MATCH = 10
CONTAINS_MATCH = 4
SWAPPED_EXACT_MATCH = 7
SWAPPED_CONTAINS_MATCH = 3
DATE_MATCH = 12

NARROW_PASS = "narrow"
WIDE_PASS = "wide"


def parse_iso_date(value: Any) -> Optional[date]:
    """
    Parse a ``YYYY-MM-DD`` date (only the first ten characters are read).

    Returns None for anything that is not a valid calendar date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()[:10]
    if not _ISO_DATE.match(text):
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        return None


@dataclass(frozen=True)
class GameDescriptor:
    """Loose description of a game: team text plus an optional date."""
    home_team: str
    away_team: str
    game_date: Optional[date] = None

    @property
    def is_complete(self) -> bool:
        return bool(self.home_team and self.away_team)

    @classmethod
    def from_raw(cls, raw: Any) -> "GameDescriptor":
        """
        Build a descriptor from a mapping or object.

        Accepts either ``date`` or ``game_date`` (the screenshot parser's key).
        Malformed input yields an incomplete descriptor rather than an error.
        """
        if isinstance(raw, GameDescriptor):
            return raw

        def _get(key: str) -> Any:
            if raw is None:
                return None
            if isinstance(raw, Mapping):
                return raw.get(key)
            return getattr(raw, key, None)

        home = _get("home_team")
        away = _get("away_team")
        raw_date = _get("game_date")
        if raw_date is None:
            raw_date = _get("date")

        return cls(
            home_team=normalize_team(home) if isinstance(home, str) else "",
            away_team=normalize_team(away) if isinstance(away, str) else "",
            game_date=parse_iso_date(raw_date),
        )


@dataclass(frozen=True)
class GameMatch:
    """Winning candidate of a resolution."""
    game_id: str
    score: int
    search_pass: str


class GameLookup(Protocol):
    """
    Read-only access to canonical games.

    Implementations return games dated within [date_from, date_to] whose
    (home, away) pair contains any home pattern and any away pattern in
    either orientation (case-insensitive), ordered by date descending and
    capped at ``limit``.
    """

    def find_candidates(
        self,
        date_from: date,
        date_to: date,
        home_patterns: Sequence[str],
        away_patterns: Sequence[str],
        limit: int,
    ) -> List[GameRecord]:
        ...


def pair_matches(
    home_team: str,
    away_team: str,
    home_patterns: Sequence[str],
    away_patterns: Sequence[str],
) -> bool:
    """True when a stored pair contains the patterns in either orientation."""
    home = normalize_team(home_team)
    away = normalize_team(away_team)

    def _any(text: str, patterns: Sequence[str]) -> bool:
        return any(normalize_team(p) in text for p in patterns if p)

    direct = _any(home, home_patterns) and _any(away, away_patterns)
    swapped = _any(home, away_patterns) and _any(away, home_patterns)
    return direct or swapped


class InMemoryGameLookup:
    """GameLookup over an in-memory collection of games (tests, batch jobs)."""

    def __init__(self, games: Iterable[GameRecord]):
        self.games = list(games)

    def find_candidates(
        self,
        date_from: date,
        date_to: date,
        home_patterns: Sequence[str],
        away_patterns: Sequence[str],
        limit: int,
    ) -> List[GameRecord]:
        rows = [
            g for g in self.games
            if date_from <= g.date <= date_to
            and pair_matches(g.home_team, g.away_team, home_patterns, away_patterns)
        ]
        rows.sort(key=lambda g: g.game_id)
        rows.sort(key=lambda g: g.date, reverse=True)
        return rows[:limit]


def score_candidate(
    game: GameRecord,
    home_variants: Sequence[str],
    away_variants: Sequence[str],
    target_date: Optional[date] = None,
) -> int:
    """
    Score a stored game against the descriptor's team variants.

    Per variant: +10 exact / +4 contained on the correct side, +7 / +3 on the
    swapped side. +12 when the game date equals the descriptor date.
    """
    home = normalize_team(game.home_team)
    away = normalize_team(game.away_team)
    score = 0

    for variant in home_variants:
        if home == variant:
            score += EXACT_MATCH
        if variant in home:
            score += CONTAINS_MATCH
        if away == variant:
            score += SWAPPED_EXACT_MATCH
        if variant in away:
            score += SWAPPED_CONTAINS_MATCH

    for variant in away_variants:
        if away == variant:
            score += EXACT_MATCH
        if variant in away:
            score += CONTAINS_MATCH
        if home == variant:
            score += SWAPPED_EXACT_MATCH
        if variant in home:
            score += SWAPPED_CONTAINS_MATCH

    if target_date is not None and game.date == target_date:
        score += DATE_MATCH

    return score


class GameResolver:
    """
    Map game descriptors to canonical game ids.

    Lookup failures are logged and treated as "no match"; resolve never
    raises for bad input or an unavailable store.
    """

    def __init__(
        self,
        lookup: GameLookup,
        narrow_window_days: Optional[int] = None,
        wide_window_days: Optional[int] = None,
        candidate_limit: Optional[int] = None,
        filter_variant_count: Optional[int] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        """
        Args:
            lookup: Read-only game lookup
            narrow_window_days: Pass 1 window around the supplied date
            wide_window_days: Pass 2 window around today
            candidate_limit: Max rows fetched per pass
            filter_variant_count: Team variants used in the pre-filter
            today: Clock returning today's date (injectable for tests)
        """
        self.lookup = lookup
        self.narrow_window_days = (
            settings.RESOLVER_NARROW_WINDOW_DAYS if narrow_window_days is None else narrow_window_days
        )
        self.wide_window_days = (
            settings.RESOLVER_WIDE_WINDOW_DAYS if wide_window_days is None else wide_window_days
        )
        self.candidate_limit = candidate_limit or settings.RESOLVER_CANDIDATE_LIMIT
        self.filter_variant_count = filter_variant_count or settings.RESOLVER_FILTER_VARIANTS
        self.today = today or date.today

    def resolve(self, descriptor: Any) -> Optional[str]:
        """Resolve a descriptor to a game id, or None."""
        match = self.find_best(descriptor)
        return match.game_id if match else None

    def find_best(self, descriptor: Any) -> Optional[GameMatch]:
        """Resolve a descriptor and report the winning score and pass."""
        desc = GameDescriptor.from_raw(descriptor)
        if not desc.is_complete:
            return None

        home_filter = filter_variants(desc.home_team, self.filter_variant_count)
        away_filter = filter_variants(desc.away_team, self.filter_variant_count)

        candidates: List[GameRecord] = []
        search_pass = WIDE_PASS

        if desc.game_date is not None:
            window = timedelta(days=self.narrow_window_days)
            candidates = self._fetch(
                desc.game_date - window, desc.game_date + window, home_filter, away_filter
            )
            search_pass = NARROW_PASS

        if not candidates:
            today = self.today()
            window = timedelta(days=self.wide_window_days)
            candidates = self._fetch(today - window, today + window, home_filter, away_filter)
            search_pass = WIDE_PASS

        if not candidates:
            logger.debug(f"No game found for {desc.away_team} @ {desc.home_team} ({desc.game_date})")
            return None

        home_variants = team_variants(desc.home_team)
        away_variants = team_variants(desc.away_team)

        best: Optional[GameRecord] = None
        best_score = -1
        for game in candidates:
            score = score_candidate(game, home_variants, away_variants, desc.game_date)
            if score > best_score:
                best, best_score = game, score

        logger.debug(
            f"Resolved {desc.away_team} @ {desc.home_team} ({desc.game_date}) -> "
            f"{best.game_id} (score {best_score}, {search_pass} pass, {len(candidates)} candidates)"
        )
        return GameMatch(game_id=best.game_id, score=best_score, search_pass=search_pass)

    async def resolve_many(
        self,
        descriptors: Sequence[Any],
        max_concurrency: Optional[int] = None,
    ) -> List[Optional[str]]:
        """
        Resolve independent descriptors concurrently.

        Each lookup runs in a worker thread; results keep the input order.
        """
        semaphore = asyncio.Semaphore(max_concurrency or settings.RESOLVER_MAX_CONCURRENCY)

        async def _resolve_one(descriptor: Any) -> Optional[str]:
            async with semaphore:
                return await asyncio.to_thread(self.resolve, descriptor)

        return list(await asyncio.gather(*(_resolve_one(d) for d in descriptors)))

    def _fetch(
        self,
        date_from: date,
        date_to: date,
        home_patterns: Sequence[str],
        away_patterns: Sequence[str],
    ) -> List[GameRecord]:
        try:
            return list(self.lookup.find_candidates(
                date_from, date_to, home_patterns, away_patterns, self.candidate_limit
            ))
        except Exception as e:
            logger.warning(f"Game lookup failed ({date_from} to {date_to}), treating as no match: {e}")
            return []
