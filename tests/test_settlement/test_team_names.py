"""Tests for team name normalization and variant generation."""
from betsettle.services.settlement.team_names import (
    filter_variants,
    normalize_team,
    team_key,
    team_variants,
)


class TestNormalizeTeam:

    def test_uppercases_and_collapses_whitespace(self):
        assert normalize_team("  kc   Chiefs ") == "KC CHIEFS"

    def test_empty_input(self):
        assert normalize_team(None) == ""
        assert normalize_team("") == ""
        assert normalize_team("   ") == ""


class TestTeamVariants:
    """Token and prefix variants used for scoring."""

    def test_variant_order(self):
        assert team_variants("KC Chiefs") == ["KC CHIEFS", "KC", "CHIEFS", "KC C", "KCCHIEFS", "KCC", "KCCH"]

    def test_single_token_is_deduplicated(self):
        assert team_variants("Bills") == ["BILLS", "BIL", "BILL"]

    def test_prefixes_are_trimmed(self):
        """A 3-char prefix ending in a space must not produce a trailing blank."""
        variants = team_variants("NY Jets")
        assert all(v == v.strip() for v in variants)
        assert "NY" in variants

    def test_short_name(self):
        assert team_variants("SF") == ["SF"]

    def test_empty_team_has_no_variants(self):
        assert team_variants(None) == []
        assert team_variants("  ") == []


class TestFilterVariants:

    def test_full_first_last(self):
        assert filter_variants("Kansas City Chiefs") == ["KANSAS CITY CHIEFS", "KANSAS", "CHIEFS"]

    def test_limit(self):
        assert filter_variants("Kansas City Chiefs", limit=2) == ["KANSAS CITY CHIEFS", "KANSAS"]

    def test_single_token(self):
        assert filter_variants("chiefs") == ["CHIEFS"]


class TestTeamKey:
    """Cover key used to match a selection to a side."""

    def test_first_token_letters_only(self):
        assert team_key("DAL Cowboys") == "DAL"
        assert team_key("dal -3.5") == "DAL"
        assert team_key("DAL") == "DAL"

    def test_empty(self):
        assert team_key(None) == ""
        assert team_key("") == ""
