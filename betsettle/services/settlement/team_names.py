"""Team name normalization for matching loosely written team text.

Screenshot and hand-typed team text varies a lot for the same club:
- Full names: "Kansas City Chiefs"
- Abbreviation + mascot: "KC CHIEFS"
- Mascot only: "Chiefs"
- Abbreviation only: "KC"

Instead of a static alias table, each team string is expanded into a small set
of token/prefix variants that are compared against stored team names.
"""
import re
from typing import List, Optional

_WHITESPACE = re.compile(r'\s+')
_NON_LETTERS = re.compile(r'[^A-Z]')


def normalize_team(team: Optional[str]) -> str:
    """
    Normalize team text: uppercase, collapse whitespace, trim.

    Examples:
        >>> normalize_team("  kc   Chiefs ")
        'KC CHIEFS'
        >>> normalize_team(None)
        ''
    """
    if not team:
        return ""
    return _WHITESPACE.sub(' ', str(team).upper()).strip()


def team_variants(team: Optional[str]) -> List[str]:
    """
    Build the deduplicated variant list for a team string.

    Order: full string, first token, last token, 3-char prefix, 4-char
    prefix, whitespace-stripped form, and the stripped form's 3/4-char
    prefixes. Prefixes are trimmed so "KC CHIEFS" yields "KC" rather than
    "KC ".

    Examples:
        >>> team_variants("KC Chiefs")
        ['KC CHIEFS', 'KC', 'CHIEFS', 'KC C', 'KCCHIEFS', 'KCC', 'KCCH']
        >>> team_variants("Bills")
        ['BILLS', 'BIL', 'BILL']
    """
    full = normalize_team(team)
    if not full:
        return []

    tokens = full.split(' ')
    stripped = full.replace(' ', '')

    candidates = [
        full,
        tokens[0],
        tokens[-1],
        full[:3].strip(),
        full[:4].strip(),
        stripped,
        stripped[:3],
        stripped[:4],
    ]

    variants: List[str] = []
    for candidate in candidates:
        if candidate and candidate not in variants:
            variants.append(candidate)
    return variants


def filter_variants(team: Optional[str], limit: int = 3) -> List[str]:
    """
    Most distinctive variants, used to pre-filter stored games.

    These are the full string, first token and last token (deduplicated),
    capped at ``limit``.

    Examples:
        >>> filter_variants("Kansas City Chiefs")
        ['KANSAS CITY CHIEFS', 'KANSAS', 'CHIEFS']
    """
    full = normalize_team(team)
    if not full:
        return []

    tokens = full.split(' ')
    variants: List[str] = []
    for candidate in (full, tokens[0], tokens[-1]):
        if candidate not in variants:
            variants.append(candidate)
    return variants[:max(limit, 1)]


def team_key(team: Optional[str]) -> str:
    """
    Cover key used to compare a bet selection against a game's teams.

    First whitespace token, letters only, so "DAL COWBOYS", "DAL" and
    "dal -3.5" all key to "DAL".

    Examples:
        >>> team_key("DAL Cowboys")
        'DAL'
        >>> team_key("dal -3.5")
        'DAL'
    """
    full = normalize_team(team)
    if not full:
        return ""
    return _NON_LETTERS.sub('', full.split(' ')[0])
