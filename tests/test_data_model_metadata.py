from __future__ import annotations

from sqlalchemy import CheckConstraint, UniqueConstraint

from app.db.models import (  # noqa: F401
    Group,
    GroupPlayer,
    Match,
    NotificationOutbox,
    Player,
    Ranking,
    Round,
    StreakHistory,
    Tournament,
    TournamentPlayer,
)
from app.db.models.base import Base


def _check_names(table_name: str) -> set[str]:
    table = Base.metadata.tables[table_name]
    return {
        constraint.name for constraint in table.constraints if isinstance(constraint, CheckConstraint)
    }


def _unique_names(table_name: str) -> set[str]:
    table = Base.metadata.tables[table_name]
    return {
        constraint.name for constraint in table.constraints if isinstance(constraint, UniqueConstraint)
    }


def _index_names(table_name: str) -> set[str]:
    return {index.name for index in Base.metadata.tables[table_name].indexes}


def test_all_ladder_tables_registered() -> None:
    expected_tables = {
        "players",
        "tournaments",
        "tournament_players",
        "rounds",
        "groups",
        "group_players",
        "matches",
        "streak_history",
        "rankings",
        "notification_outbox",
    }
    assert expected_tables == set(Base.metadata.tables)


def test_single_active_tournament_index() -> None:
    assert "uq_tournaments_single_active" in _index_names("tournaments")
    assert "ck_tournaments_point_policy" in _check_names("tournaments")
    assert "ck_tournaments_substitute_credit_factor_range" in _check_names("tournaments")


def test_group_membership_constraints() -> None:
    assert {"uq_group_players_group_player", "uq_group_players_group_position"} <= _unique_names(
        "group_players"
    )
    assert "ck_group_players_position_non_zero" in _check_names("group_players")
    assert "ck_group_players_no_self_substitute" in _check_names("group_players")
    assert "uq_groups_round_number" in _unique_names("groups")
    assert "uq_rounds_tournament_number" in _unique_names("rounds")


def test_match_constraints() -> None:
    assert "uq_matches_group_set_number" in _unique_names("matches")
    assert {
        "ck_matches_team1_games_range",
        "ck_matches_team2_games_range",
        "ck_matches_confirmed_has_score",
        "ck_matches_status",
    } <= _check_names("matches")
    assert "idx_matches_accepted_date" in _index_names("matches")


def test_rankings_primary_key_is_per_round_snapshot() -> None:
    rankings = Base.metadata.tables["rankings"]
    assert [column.name for column in rankings.primary_key.columns] == [
        "tournament_id",
        "round_number",
        "player_id",
    ]
    assert "idx_rankings_tournament_round_position" in _index_names("rankings")


def test_streak_history_indexes() -> None:
    assert {"idx_streak_history_tournament_player", "idx_streak_history_round"} <= _index_names(
        "streak_history"
    )
    assert "ck_streak_history_streak_type" in _check_names("streak_history")
