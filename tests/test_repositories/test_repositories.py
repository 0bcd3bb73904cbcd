"""Integration tests for the game and bet repositories.

Each test follows the pattern:
- Given: games (and bets) stored in a throwaway sqlite database
- When: a repository read/write or a SqlGameLookup call is made
- Then: the returned records and database state are as expected
"""
from datetime import date

import pytest
from sqlalchemy.orm import Session

from betsettle.core.circuit_breaker import CircuitBreakerError, game_lookup_breaker, get_breaker_state, reset_breaker
from betsettle.models import Bet, ParlayLeg
from betsettle.repositories import BetRepository, GameRepository, SqlGameLookup
from betsettle.services.settlement import GameResolver, InputError, Result, SettlementEngine
from tests.factories import final_game, make_bet, make_leg, store_games


@pytest.fixture(autouse=True)
def closed_breaker():
    reset_breaker()
    yield
    reset_breaker()


class TestGameRepository:

    # Candidate Lookup Tests
    # ─────────────────────────────────────────────────────────────

    def test_find_candidates_either_orientation(self, db_session: Session, sample_games):
        repo = GameRepository(db_session)

        direct = repo.find_candidates(date(2024, 1, 1), date(2024, 1, 31), ["CHIEFS"], ["BILLS"], 25)
        swapped = repo.find_candidates(date(2024, 1, 1), date(2024, 1, 31), ["bills"], ["chiefs"], 25)

        assert [g.game_id for g in direct] == ["g1"]
        assert [g.game_id for g in swapped] == ["g1"]

    def test_find_candidates_date_window(self, db_session: Session, sample_games):
        repo = GameRepository(db_session)

        assert repo.find_candidates(date(2024, 1, 22), date(2024, 1, 31), ["CHIEFS"], ["BILLS"], 25) == []

    def test_find_candidates_order_and_limit(self, db_session: Session):
        store_games(db_session, [
            final_game("a", "KC CHIEFS", "BUF BILLS", 27, 24, date(2023, 10, 1)),
            final_game("b", "KC CHIEFS", "BUF BILLS", 24, 20, date(2024, 1, 21)),
            final_game("c", "BUF BILLS", "KC CHIEFS", 20, 17, date(2023, 12, 10)),
        ])
        repo = GameRepository(db_session)

        rows = repo.find_candidates(date(2023, 1, 1), date(2024, 12, 31), ["CHIEFS"], ["BILLS"], 2)

        assert [g.game_id for g in rows] == ["b", "c"]

    def test_like_wildcards_are_literal(self, db_session: Session, sample_games):
        repo = GameRepository(db_session)

        assert repo.find_candidates(date(2024, 1, 1), date(2024, 1, 31), ["%"], ["_"], 25) == []

    def test_empty_patterns(self, db_session: Session, sample_games):
        repo = GameRepository(db_session)

        assert repo.find_candidates(date(2024, 1, 1), date(2024, 1, 31), [], ["BILLS"], 25) == []

    # Search / Snapshot Tests
    # ─────────────────────────────────────────────────────────────

    def test_search(self, db_session: Session, sample_games):
        repo = GameRepository(db_session)

        assert [g.game_id for g in repo.search("dal")] == ["g2"]
        assert repo.search("kc chiefs")[0].game_id == "g1"
        assert repo.search("k") == []

    def test_snapshot(self, db_session: Session, sample_games):
        snapshot = GameRepository(db_session).snapshot(["g1", "g3", "missing", None])

        assert set(snapshot) == {"g1", "g3"}
        assert snapshot["g1"].home_score == 24
        assert snapshot["g1"].is_final
        assert snapshot["g3"].period == 3

    def test_upsert_updates_scores(self, db_session: Session, sample_games):
        store_games(db_session, [final_game("g3", "SF 49ERS", "GB PACKERS", 24, 21, date(2024, 1, 20))])

        game = GameRepository(db_session).snapshot(["g3"])["g3"]

        assert game.is_final
        assert (game.home_score, game.away_score) == (24, 21)
        assert GameRepository(db_session).count() == 3


class TestSqlGameLookup:
    """Resolver backed by the games table."""

    @pytest.mark.asyncio
    async def test_concurrent_resolution(self, session_factory, sample_games):
        resolver = GameResolver(SqlGameLookup(session_factory), today=lambda: date(2024, 2, 1))

        ids = await resolver.resolve_many([
            {"home_team": "CHIEFS", "away_team": "BILLS"},
            {"home_team": "Cowboys", "away_team": "Eagles", "game_date": "2024-01-14"},
            {"home_team": "49ers", "away_team": "packers"},
            {"home_team": "Jets", "away_team": "Dolphins"},
        ])

        assert ids == ["g1", "g2", "g3", None]

    def test_breaker_opens_after_repeated_failures(self):
        def broken_factory():
            raise RuntimeError("database unavailable")

        lookup = SqlGameLookup(broken_factory)
        args = (date(2024, 1, 1), date(2024, 1, 31), ["CHIEFS"], ["BILLS"], 25)

        for _ in range(game_lookup_breaker.fail_max):
            with pytest.raises((RuntimeError, CircuitBreakerError)):
                lookup.find_candidates(*args)

        assert get_breaker_state() == "open"
        with pytest.raises(CircuitBreakerError):
            lookup.find_candidates(*args)

    def test_open_breaker_is_no_match(self, session_factory, sample_games):
        game_lookup_breaker.open()
        resolver = GameResolver(SqlGameLookup(session_factory), today=lambda: date(2024, 2, 1))

        assert resolver.resolve({"home_team": "CHIEFS", "away_team": "BILLS"}) is None


class TestBetRepository:

    def test_list_bets_by_bettor(self, db_session: Session, stored_bets):
        repo = BetRepository(db_session)

        assert {b.id for b in repo.list_bets()} == {"b1", "b2", "b3", "b4", "b5"}
        assert {b.id for b in repo.list_bets("jordan")} == {"b4", "b5"}

    def test_parlay_legs(self, db_session: Session, stored_bets):
        legs = BetRepository(db_session).legs_by_parlay([stored_bets, None])

        assert [leg.selection for leg in legs[stored_bets]] == ["KC", "PHI"]

    def test_snapshot_grades(self, db_session: Session, stored_bets):
        repo = BetRepository(db_session)
        bets = repo.list_bets()
        legs = repo.legs_by_parlay(b.parlay_id for b in bets)
        games = GameRepository(db_session).snapshot(b.game_id for b in bets)

        engine = SettlementEngine(games, legs)
        results = {b.id: engine.grade(b) for b in bets}

        assert results == {
            "b1": Result.WON,
            "b2": Result.LOST,
            "b3": Result.WON,
            "b4": Result.PUSH,
            "b5": Result.NO_GAME_DATA,
        }

    def test_set_and_clear_override(self, db_session: Session, stored_bets):
        repo = BetRepository(db_session)

        assert repo.set_result_override("b5", "won").result_override == "Won"
        assert repo.get("b5").result_override == "Won"
        assert repo.set_result_override("b5", None).result_override is None

    def test_unknown_override(self, db_session: Session, stored_bets):
        with pytest.raises(InputError) as excinfo:
            BetRepository(db_session).set_result_override("b1", "void")
        assert excinfo.value.field == "result"

    def test_override_missing_bet(self, db_session: Session):
        assert BetRepository(db_session).set_result_override("nope", "Won") is None

    def test_delete_parlay_removes_legs(self, db_session: Session, stored_bets):
        repo = BetRepository(db_session)

        assert repo.delete_bet("b3") is True
        assert db_session.query(Bet).filter(Bet.id == "b3").count() == 0
        assert db_session.query(ParlayLeg).count() == 0
        assert repo.delete_bet("b3") is False

    def test_add_bet(self, db_session: Session):
        repo = BetRepository(db_session)
        repo.add(make_bet("parlay", "parlay", game_id=None, parlay_id="p9", id="x1"), [
            make_leg("p9", selection="KC"),
            make_leg("p9", selection="BUF"),
            make_leg("p9", selection="DAL"),
        ])
        db_session.commit()

        assert repo.get("x1").parlay_id == "p9"
        assert [leg.selection for leg in repo.legs_by_parlay(["p9"])["p9"]] == ["KC", "BUF", "DAL"]
