"""Tests for bet grading and profit."""
from datetime import date

import pytest

from betsettle.services.settlement import grade, index_games, profit
from betsettle.services.settlement.grading import (
    Result,
    SettlementEngine,
    combine_leg_results,
    effective_parlay_odds,
    grade_line_bet,
    parse_override,
)
from tests.factories import final_game, make_bet, make_game, make_leg

# KC 24, BUF 20
KC_BUF = final_game("g1", "KC CHIEFS", "BUF BILLS", 24, 20)
# DAL 17, PHI 27
DAL_PHI = final_game("g2", "DAL COWBOYS", "PHI EAGLES", 17, 27, date(2024, 1, 14))
# 21-21 tie
TIE = final_game("g4", "NY JETS", "MIA DOLPHINS", 21, 21, date(2024, 1, 7))
LIVE = make_game("g3", "SF 49ERS", "GB PACKERS", date(2024, 1, 20), 14, 10, period=3, clock="8:12")

GAMES = index_games([KC_BUF, DAL_PHI, TIE, LIVE])


class TestResult:

    def test_tones(self):
        assert Result.WON.tone == "good"
        assert Result.LOST.tone == "bad"
        assert Result.PUSH.tone == "neutral"
        assert Result.PENDING.tone == "neutral"
        assert Result.NO_GAME_DATA.tone == "neutral"

    def test_display_values(self):
        assert Result.NO_GAME_DATA.value == "No game data"
        assert Result.WON == "Won"

    def test_parse_override(self):
        assert parse_override("won") is Result.WON
        assert parse_override(" PUSH ") is Result.PUSH
        assert parse_override("") is None
        assert parse_override(None) is None
        assert parse_override("maybe") is None


class TestLineBets:
    """Moneyline, spread and total grading against final scores."""

    # Totals
    # ─────────────────────────────────────────────────────────────

    @pytest.mark.parametrize("pick", ["over", "under", "Over"])
    def test_total_on_the_number_is_push(self, pick):
        """24 + 20 = 44 against 44 pushes whatever the pick."""
        assert grade_line_bet("total", pick, 44, KC_BUF) == Result.PUSH

    def test_total_over_and_under(self):
        assert grade_line_bet("total", "over", 43.5, KC_BUF) == Result.WON
        assert grade_line_bet("total", "under", 43.5, KC_BUF) == Result.LOST
        assert grade_line_bet("total", "under", 44.5, KC_BUF) == Result.WON

    def test_total_with_unknown_selection_is_pending(self):
        assert grade_line_bet("total", "KC", 43.5, KC_BUF) == Result.PENDING

    def test_total_without_line_is_pending(self):
        assert grade_line_bet("total", "over", None, KC_BUF) == Result.PENDING

    # Spreads
    # ─────────────────────────────────────────────────────────────

    def test_home_favorite_covers(self):
        """(24 - 20) - 3.5 = 0.5 > 0."""
        assert grade_line_bet("spread", "KC", -3.5, KC_BUF) == Result.WON

    def test_away_underdog(self):
        assert grade_line_bet("spread", "BUF", 3.5, KC_BUF) == Result.LOST
        assert grade_line_bet("spread", "BUF BILLS", 4.5, KC_BUF) == Result.WON

    def test_spread_push(self):
        assert grade_line_bet("spread", "KC", -4, KC_BUF) == Result.PUSH

    def test_spread_selection_with_line_text(self):
        assert grade_line_bet("spread", "dal +9.5", 9.5, DAL_PHI) == Result.LOST
        assert grade_line_bet("spread", "phi -9.5", -9.5, DAL_PHI) == Result.WON

    # Moneylines
    # ─────────────────────────────────────────────────────────────

    def test_moneyline(self):
        assert grade_line_bet("moneyline", "KC Chiefs", None, KC_BUF) == Result.WON
        assert grade_line_bet("moneyline", "BUF", None, KC_BUF) == Result.LOST

    def test_moneyline_tie_is_push(self):
        assert grade_line_bet("moneyline", "NY", None, TIE) == Result.PUSH

    def test_unrecognised_team_is_pending(self):
        assert grade_line_bet("moneyline", "GB", None, KC_BUF) == Result.PENDING

    # Game state
    # ─────────────────────────────────────────────────────────────

    def test_no_game_data(self):
        assert grade_line_bet("moneyline", "KC", None, None) == Result.NO_GAME_DATA

    def test_live_game_is_pending(self):
        assert grade_line_bet("moneyline", "SF", None, LIVE) == Result.PENDING


class TestParlays:
    """Leg aggregation and parlay pricing."""

    def test_lost_dominates(self):
        assert combine_leg_results([Result.WON, Result.LOST, Result.PENDING]) == Result.LOST
        assert combine_leg_results([Result.LOST, Result.NO_GAME_DATA]) == Result.LOST

    def test_pending_or_missing_leg_keeps_pending(self):
        assert combine_leg_results([Result.WON, Result.PENDING]) == Result.PENDING
        assert combine_leg_results([Result.WON, Result.NO_GAME_DATA]) == Result.PENDING

    def test_won_with_pushes(self):
        assert combine_leg_results([Result.WON, Result.PUSH]) == Result.WON
        assert combine_leg_results([Result.PUSH, Result.PUSH]) == Result.WON

    def test_no_legs_is_pending(self):
        assert combine_leg_results([]) == Result.PENDING

    def test_lost_and_pending_legs(self):
        parlay = make_bet("parlay", "parlay", stake=20, odds=264, game_id=None, parlay_id="p1")
        legs = {"p1": [
            make_leg("p1", "moneyline", "BUF", -110, game_id="g1"),
            make_leg("p1", "moneyline", "SF", -110, game_id="g3"),
        ]}

        assert grade(parlay, GAMES, legs) == Result.LOST
        assert profit(parlay, GAMES, legs) == -20

    def test_won_parlay_priced_from_legs(self):
        parlay = make_bet("parlay", "parlay", stake=100, odds=250, game_id=None, parlay_id="p1")
        legs = {"p1": [
            make_leg("p1", "moneyline", "KC", -110, game_id="g1"),
            make_leg("p1", "spread", "PHI", -110, line=-3.5, game_id="g2"),
        ]}

        assert grade(parlay, GAMES, legs) == Result.WON
        # +264 recomputed from the legs, not the stored +250
        assert profit(parlay, GAMES, legs) == pytest.approx(264)

    def test_pushed_leg_drops_out_of_the_price(self):
        parlay = make_bet("parlay", "parlay", stake=100, odds=264, game_id=None, parlay_id="p1")
        legs = {"p1": [
            make_leg("p1", "moneyline", "KC", 150, game_id="g1"),
            make_leg("p1", "total", "over", -110, line=44, game_id="g1"),
        ]}

        engine = SettlementEngine(GAMES, legs)
        settled = engine.settle(parlay)

        assert settled.leg_results == [Result.WON, Result.PUSH]
        assert settled.result == Result.WON
        assert settled.profit == pytest.approx(150)

    def test_all_pushed_falls_back_to_stored_odds(self):
        legs = [make_leg("p1", "total", "over", -110, line=44), make_leg("p1", "moneyline", "NY", -110, game_id="g4")]

        assert effective_parlay_odds(legs, [Result.PUSH, Result.PUSH], 264) == 264

    def test_missing_legs_is_pending(self):
        parlay = make_bet("parlay", "parlay", stake=100, odds=264, game_id=None, parlay_id="p1")

        assert grade(parlay, GAMES, {}) == Result.PENDING


class TestSettlementEngine:
    """Single bets, props and manual grades."""

    def test_profit_by_result(self):
        engine = SettlementEngine(GAMES)

        assert engine.profit(make_bet("moneyline", "KC", stake=100, odds=-110)) == pytest.approx(90.909, rel=1e-4)
        assert engine.profit(make_bet("moneyline", "BUF", stake=100, odds=130)) == -100
        assert engine.profit(make_bet("total", "over", stake=100, odds=-110, line=44)) == 0
        assert engine.profit(make_bet("moneyline", "KC", stake=100, odds=-110, game_id="missing")) == 0

    def test_player_prop_is_pending_until_graded(self):
        prop = make_bet(
            "player_prop", "prop", stake=50, odds=120,
            prop_player="Patrick Mahomes", prop_market="passing_yards", prop_side="over", prop_line=275.5,
        )

        assert grade(prop, GAMES) == Result.PENDING

    def test_override_takes_precedence(self):
        engine = SettlementEngine(GAMES)
        # Lost on the scoreboard, graded Won by hand
        bet = make_bet("moneyline", "BUF", stake=50, odds=150, result_override="Won")

        assert engine.grade(bet) == Result.WON
        assert engine.profit(bet) == 75

    def test_override_on_missing_game(self):
        bet = make_bet("moneyline", "KC", game_id=None, result_override="lost", stake=30)

        assert grade(bet, GAMES) == Result.LOST
        assert profit(bet, GAMES) == -30

    def test_override_on_parlay(self):
        parlay = make_bet("parlay", "parlay", stake=20, odds=264, game_id=None, parlay_id="p1", result_override="Push")

        assert grade(parlay, GAMES, {}) == Result.PUSH
        assert profit(parlay, GAMES, {}) == 0

    def test_won_override_over_losing_legs_uses_stored_odds(self):
        parlay = make_bet("parlay", "parlay", stake=100, odds=264, game_id=None, parlay_id="p1", result_override="Won")
        legs = {"p1": [
            make_leg("p1", "moneyline", "KC", -110, game_id="g1"),
            make_leg("p1", "moneyline", "BUF", 500, game_id="g1"),
        ]}

        settled = SettlementEngine(GAMES, legs).settle(parlay)

        assert settled.leg_results == [Result.WON, Result.LOST]
        assert settled.result == Result.WON
        # priced at the stored +264, not the +1045 the legs would give
        assert settled.profit == pytest.approx(264)

    def test_unknown_override_is_ignored(self):
        bet = make_bet("moneyline", "KC", result_override="void")

        assert grade(bet, GAMES) == Result.WON

    def test_grading_is_idempotent(self):
        engine = SettlementEngine(GAMES)
        bets = [
            make_bet("moneyline", "KC"),
            make_bet("spread", "DAL", line=-3.5, game_id="g2"),
            make_bet("total", "under", line=44.5),
        ]

        first = engine.settle_all(bets)
        assert engine.settle_all(bets) == first
