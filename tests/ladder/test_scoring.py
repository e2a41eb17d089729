from __future__ import annotations

from decimal import Decimal

import pytest

from app.ladder.errors import ValidationError
from app.ladder.scoring import PointPolicy, parse_tiebreak, points_for_set, resolve_set, validate_set_input


def test_resolve_set_promotes_tiebreak_winner_to_five_games() -> None:
    outcome = resolve_set(4, 4, "7-5")

    assert (outcome.team1_games, outcome.team2_games) == (5, 4)
    assert outcome.winner == 1


def test_resolve_set_tiebreak_for_second_team() -> None:
    outcome = resolve_set(4, 4, "3 - 7")

    assert (outcome.team1_games, outcome.team2_games) == (4, 5)
    assert outcome.winner == 2


def test_resolve_set_plain_score_ignores_marker() -> None:
    outcome = resolve_set(6, 2, "7-5")

    assert (outcome.team1_games, outcome.team2_games) == (6, 2)
    assert outcome.winner == 1


def test_resolve_set_level_score_without_marker_has_no_winner() -> None:
    assert resolve_set(4, 4).winner is None
    assert resolve_set(4, 4, "garbage").winner is None


def test_parse_tiebreak_accepts_spaces_and_rejects_garbage() -> None:
    assert parse_tiebreak(" 10 - 8 ") == (10, 8)
    assert parse_tiebreak("10:8") is None
    assert parse_tiebreak("") is None
    assert parse_tiebreak(None) is None


@pytest.mark.parametrize(
    ("team1_games", "team2_games", "tiebreak", "field", "reason"),
    [
        (None, 2, None, "team1_games", "REQUIRED_INTEGER"),
        (True, 2, None, "team1_games", "REQUIRED_INTEGER"),
        (8, 2, None, "team1_games", "OUT_OF_RANGE"),
        (6, -1, None, "team2_games", "OUT_OF_RANGE"),
        (3, 2, None, "team1_games", "SET_NOT_FINISHED"),
        (4, 4, None, "tiebreak", "UNRESOLVED_TIE"),
        (4, 4, "abc", "tiebreak", "INVALID_FORMAT"),
        (4, 4, "6-4", "tiebreak", "WINNER_BELOW_MINIMUM"),
        (4, 4, "7-6", "tiebreak", "MARGIN_TOO_SMALL"),
    ],
)
def test_validate_set_input_rejects_invalid_scores(
    team1_games,
    team2_games,
    tiebreak,
    field: str,
    reason: str,
) -> None:
    with pytest.raises(ValidationError) as exc_info:
        validate_set_input(team1_games, team2_games, tiebreak)

    assert exc_info.value.field == field
    assert exc_info.value.reason == reason


def test_validate_set_input_accepts_decided_tiebreak() -> None:
    outcome = validate_set_input(4, 4, "9-7")

    assert outcome.winner == 1
    assert outcome.team1_games == 5


def test_points_for_set_games_plus_win() -> None:
    assert points_for_set(PointPolicy.GAMES_PLUS_WIN, games_won=6, won=True) == Decimal("7")
    assert points_for_set("GAMES_PLUS_WIN", games_won=2, won=False) == Decimal("2")


def test_points_for_set_flat_win_loss() -> None:
    assert points_for_set(PointPolicy.FLAT_WIN_LOSS, games_won=6, won=True) == Decimal("3")
    assert points_for_set(PointPolicy.FLAT_WIN_LOSS, games_won=5, won=False) == Decimal("1")


def test_points_for_set_rejects_unknown_policy() -> None:
    with pytest.raises(ValueError):
        points_for_set("BONUS_PER_GAME", games_won=6, won=True)
