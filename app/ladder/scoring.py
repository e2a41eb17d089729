from __future__ import annotations

import re
from decimal import Decimal
from enum import Enum

from app.ladder.constants import (
    FLAT_POINTS_SET_LOST,
    FLAT_POINTS_SET_WON,
    LADDER_GAMES_TO_WIN_SET,
    LADDER_MAX_GAMES,
    LADDER_MIN_GAMES,
    LADDER_TIEBREAK_MIN_MARGIN,
    LADDER_TIEBREAK_MIN_WINNING_POINTS,
    POINT_POLICY_FLAT_WIN_LOSS,
    POINT_POLICY_GAMES_PLUS_WIN,
)
from app.ladder.errors import ValidationError
from app.ladder.types import SetOutcome

_TIEBREAK_RE = re.compile(r"^\s*(\d+)\s*-\s*(\d+)\s*$")


class PointPolicy(str, Enum):
    """How a single set turns into round points for each player on a team."""

    GAMES_PLUS_WIN = POINT_POLICY_GAMES_PLUS_WIN
    FLAT_WIN_LOSS = POINT_POLICY_FLAT_WIN_LOSS


def parse_tiebreak(marker: str | None) -> tuple[int, int] | None:
    if marker is None or not marker.strip():
        return None
    match = _TIEBREAK_RE.match(marker)
    if match is None:
        return None
    return int(match.group(1)), int(match.group(2))


def resolve_set(team1_games: int, team2_games: int, tiebreak: str | None = None) -> SetOutcome:
    """Normalize a raw set score.

    A 4-4 set decided by a tiebreak marker "a-b" promotes the tiebreak winner
    to 5 games. Any other score is decided by the higher game count; a level
    score without a usable marker has no winner.
    """
    both_at_four = (
        team1_games == LADDER_GAMES_TO_WIN_SET and team2_games == LADDER_GAMES_TO_WIN_SET
    )
    if both_at_four:
        parsed = parse_tiebreak(tiebreak)
        if parsed is not None and parsed[0] != parsed[1]:
            promoted = LADDER_GAMES_TO_WIN_SET + 1
            if parsed[0] > parsed[1]:
                return SetOutcome(team1_games=promoted, team2_games=team2_games, winner=1)
            return SetOutcome(team1_games=team1_games, team2_games=promoted, winner=2)

    if team1_games > team2_games:
        winner: int | None = 1
    elif team2_games > team1_games:
        winner = 2
    else:
        winner = None
    return SetOutcome(team1_games=team1_games, team2_games=team2_games, winner=winner)


def validate_set_input(
    team1_games: int | None,
    team2_games: int | None,
    tiebreak: str | None = None,
) -> SetOutcome:
    for field, value in (("team1_games", team1_games), ("team2_games", team2_games)):
        if value is None or isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError(field, "REQUIRED_INTEGER")
        if value < LADDER_MIN_GAMES or value > LADDER_MAX_GAMES:
            raise ValidationError(field, "OUT_OF_RANGE")

    if max(team1_games, team2_games) < LADDER_GAMES_TO_WIN_SET:
        raise ValidationError("team1_games", "SET_NOT_FINISHED")

    if tiebreak is not None and tiebreak.strip():
        parsed = parse_tiebreak(tiebreak)
        if parsed is None:
            raise ValidationError("tiebreak", "INVALID_FORMAT")
        if max(parsed) < LADDER_TIEBREAK_MIN_WINNING_POINTS:
            raise ValidationError("tiebreak", "WINNER_BELOW_MINIMUM")
        if abs(parsed[0] - parsed[1]) < LADDER_TIEBREAK_MIN_MARGIN:
            raise ValidationError("tiebreak", "MARGIN_TOO_SMALL")

    outcome = resolve_set(team1_games, team2_games, tiebreak)
    if outcome.winner is None:
        raise ValidationError("tiebreak", "UNRESOLVED_TIE")
    return outcome


def points_for_set(policy: PointPolicy | str, *, games_won: int, won: bool) -> Decimal:
    resolved = PointPolicy(policy)
    if resolved == PointPolicy.FLAT_WIN_LOSS:
        return Decimal(FLAT_POINTS_SET_WON if won else FLAT_POINTS_SET_LOST)
    return Decimal(games_won + (1 if won else 0))
