"""ladder_core_schema

Revision ID: 5c1e9a7d3b20
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "5c1e9a7d3b20"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None

UUID = postgresql.UUID(as_uuid=True)


def upgrade() -> None:
    op.create_table(
        "players",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "tournaments",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("title", sa.String(128), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("total_rounds", sa.Integer(), nullable=False),
        sa.Column("round_duration_days", sa.Integer(), nullable=False, server_default=sa.text("14")),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("group_size", sa.Integer(), nullable=False, server_default=sa.text("4")),
        sa.Column(
            "point_policy",
            sa.String(16),
            nullable=False,
            server_default=sa.text("'GAMES_PLUS_WIN'"),
        ),
        sa.Column(
            "max_comodines_per_player",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("1"),
        ),
        sa.Column("enable_mean_comodin", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column(
            "enable_substitute_comodin",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("true"),
        ),
        sa.Column(
            "substitute_credit_factor",
            sa.Numeric(3, 2),
            nullable=False,
            server_default=sa.text("0.50"),
        ),
        sa.Column(
            "substitute_max_appearances",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("2"),
        ),
        sa.Column("continuity_enabled", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column(
            "continuity_points_per_set",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("1"),
        ),
        sa.Column(
            "continuity_points_per_round",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("2"),
        ),
        sa.Column("continuity_min_rounds", sa.Integer(), nullable=False, server_default=sa.text("2")),
        sa.Column("continuity_max_bonus", sa.Integer(), nullable=False, server_default=sa.text("10")),
        sa.Column(
            "continuity_mode",
            sa.String(16),
            nullable=False,
            server_default=sa.text("'MATCHES'"),
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("total_rounds >= 1", name="ck_tournaments_total_rounds_positive"),
        sa.CheckConstraint("round_duration_days >= 1", name="ck_tournaments_round_duration_positive"),
        sa.CheckConstraint("group_size >= 2", name="ck_tournaments_group_size_min"),
        sa.CheckConstraint(
            "point_policy IN ('GAMES_PLUS_WIN','FLAT_WIN_LOSS')",
            name="ck_tournaments_point_policy",
        ),
        sa.CheckConstraint(
            "max_comodines_per_player >= 0",
            name="ck_tournaments_max_comodines_non_negative",
        ),
        sa.CheckConstraint(
            "substitute_credit_factor >= 0 AND substitute_credit_factor <= 1",
            name="ck_tournaments_substitute_credit_factor_range",
        ),
        sa.CheckConstraint(
            "substitute_max_appearances >= 0",
            name="ck_tournaments_substitute_max_appearances_non_negative",
        ),
        sa.CheckConstraint(
            "continuity_mode IN ('SETS','MATCHES','BOTH')",
            name="ck_tournaments_continuity_mode",
        ),
        sa.CheckConstraint(
            "continuity_min_rounds >= 1",
            name="ck_tournaments_continuity_min_rounds_positive",
        ),
        sa.CheckConstraint(
            "continuity_max_bonus >= 0",
            name="ck_tournaments_continuity_max_bonus_non_negative",
        ),
    )
    op.create_index(
        "uq_tournaments_single_active",
        "tournaments",
        ["is_active"],
        unique=True,
        postgresql_where=sa.text("is_active"),
    )

    op.create_table(
        "tournament_players",
        sa.Column("tournament_id", UUID, nullable=False),
        sa.Column("player_id", UUID, nullable=False),
        sa.Column("joined_round", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("comodines_used", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "substitute_appearances",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("0"),
        ),
        sa.CheckConstraint("joined_round >= 1", name="ck_tournament_players_joined_round_positive"),
        sa.CheckConstraint(
            "comodines_used >= 0",
            name="ck_tournament_players_comodines_used_non_negative",
        ),
        sa.CheckConstraint(
            "substitute_appearances >= 0",
            name="ck_tournament_players_substitute_appearances_non_negative",
        ),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournaments.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("tournament_id", "player_id"),
    )
    op.create_index("idx_tournament_players_player", "tournament_players", ["player_id"])

    op.create_table(
        "rounds",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("tournament_id", UUID, nullable=False),
        sa.Column("number", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_closed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("number >= 1", name="ck_rounds_number_positive"),
        sa.CheckConstraint("end_date >= start_date", name="ck_rounds_window_order"),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournaments.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("tournament_id", "number", name="uq_rounds_tournament_number"),
    )

    op.create_table(
        "groups",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("round_id", UUID, nullable=False),
        sa.Column("number", sa.Integer(), nullable=False),
        sa.Column("level", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default=sa.text("'PENDING'")),
        sa.Column("skip_reason", sa.String(256), nullable=True),
        sa.CheckConstraint("number >= 1", name="ck_groups_number_positive"),
        sa.CheckConstraint("level >= 1", name="ck_groups_level_positive"),
        sa.CheckConstraint(
            "status IN ('PENDING','PLAYED','SKIPPED','POSTPONED')",
            name="ck_groups_status",
        ),
        sa.ForeignKeyConstraint(["round_id"], ["rounds.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("round_id", "number", name="uq_groups_round_number"),
    )

    op.create_table(
        "group_players",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("group_id", UUID, nullable=False),
        sa.Column("player_id", UUID, nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("points", sa.Numeric(6, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("streak", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("used_comodin", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("comodin_mode", sa.String(16), nullable=True),
        sa.Column("comodin_reason", sa.String(256), nullable=True),
        sa.Column("comodin_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("substitute_player_id", UUID, nullable=True),
        sa.Column("locked", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.CheckConstraint("position <> 0", name="ck_group_players_position_non_zero"),
        sa.CheckConstraint("streak >= 0", name="ck_group_players_streak_non_negative"),
        sa.CheckConstraint(
            "comodin_mode IS NULL OR comodin_mode IN ('MEAN','SUBSTITUTE')",
            name="ck_group_players_comodin_mode",
        ),
        sa.CheckConstraint(
            "substitute_player_id IS NULL OR substitute_player_id <> player_id",
            name="ck_group_players_no_self_substitute",
        ),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"]),
        sa.ForeignKeyConstraint(["substitute_player_id"], ["players.id"]),
        sa.UniqueConstraint("group_id", "player_id", name="uq_group_players_group_player"),
        sa.UniqueConstraint("group_id", "position", name="uq_group_players_group_position"),
    )
    op.create_index("idx_group_players_player", "group_players", ["player_id"])
    op.create_index("idx_group_players_substitute", "group_players", ["substitute_player_id"])

    op.create_table(
        "matches",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("group_id", UUID, nullable=False),
        sa.Column("set_number", sa.Integer(), nullable=False),
        sa.Column("team1_player1_id", UUID, nullable=False),
        sa.Column("team1_player2_id", UUID, nullable=False),
        sa.Column("team2_player1_id", UUID, nullable=False),
        sa.Column("team2_player2_id", UUID, nullable=False),
        sa.Column("team1_games", sa.Integer(), nullable=True),
        sa.Column("team2_games", sa.Integer(), nullable=True),
        sa.Column("tiebreak_score", sa.String(16), nullable=True),
        sa.Column("is_confirmed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("reported_by_id", UUID, nullable=True),
        sa.Column("confirmed_by_id", UUID, nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default=sa.text("'PENDING'")),
        sa.Column("proposed_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("proposed_by_id", UUID, nullable=True),
        sa.Column("accepted_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "accepted_by",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.CheckConstraint("set_number >= 1", name="ck_matches_set_number_positive"),
        sa.CheckConstraint(
            "team1_games IS NULL OR (team1_games >= 0 AND team1_games <= 7)",
            name="ck_matches_team1_games_range",
        ),
        sa.CheckConstraint(
            "team2_games IS NULL OR (team2_games >= 0 AND team2_games <= 7)",
            name="ck_matches_team2_games_range",
        ),
        sa.CheckConstraint(
            "status IN ('PENDING','DATE_PROPOSED','SCHEDULED','COMPLETED')",
            name="ck_matches_status",
        ),
        sa.CheckConstraint(
            "NOT is_confirmed OR (team1_games IS NOT NULL AND team2_games IS NOT NULL)",
            name="ck_matches_confirmed_has_score",
        ),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["team1_player1_id"], ["players.id"]),
        sa.ForeignKeyConstraint(["team1_player2_id"], ["players.id"]),
        sa.ForeignKeyConstraint(["team2_player1_id"], ["players.id"]),
        sa.ForeignKeyConstraint(["team2_player2_id"], ["players.id"]),
        sa.ForeignKeyConstraint(["reported_by_id"], ["players.id"]),
        sa.ForeignKeyConstraint(["confirmed_by_id"], ["players.id"]),
        sa.ForeignKeyConstraint(["proposed_by_id"], ["players.id"]),
        sa.UniqueConstraint("group_id", "set_number", name="uq_matches_group_set_number"),
    )
    op.create_index("idx_matches_group_confirmed", "matches", ["group_id", "is_confirmed"])
    op.create_index("idx_matches_accepted_date", "matches", ["accepted_date"])

    op.create_table(
        "streak_history",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("tournament_id", UUID, nullable=False),
        sa.Column("round_id", UUID, nullable=False),
        sa.Column("group_id", UUID, nullable=False),
        sa.Column("player_id", UUID, nullable=False),
        sa.Column("streak_type", sa.String(32), nullable=False),
        sa.Column("streak_count", sa.Integer(), nullable=False),
        sa.Column("bonus_points", sa.Numeric(6, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "streak_type IN ('CONTINUITY_BONUS','BROKEN_NO_PLAY')",
            name="ck_streak_history_streak_type",
        ),
        sa.CheckConstraint("streak_count >= 0", name="ck_streak_history_streak_count_non_negative"),
        sa.CheckConstraint("bonus_points >= 0", name="ck_streak_history_bonus_non_negative"),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournaments.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["round_id"], ["rounds.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"]),
    )
    op.create_index(
        "idx_streak_history_tournament_player",
        "streak_history",
        ["tournament_id", "player_id"],
    )
    op.create_index("idx_streak_history_round", "streak_history", ["round_id"])

    op.create_table(
        "rankings",
        sa.Column("tournament_id", UUID, nullable=False),
        sa.Column("round_number", sa.Integer(), nullable=False),
        sa.Column("player_id", UUID, nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("ironman_position", sa.Integer(), nullable=False),
        sa.Column("average_points", sa.Numeric(8, 2), nullable=False),
        sa.Column("total_points", sa.Numeric(8, 2), nullable=False),
        sa.Column("rounds_played", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("position >= 1", name="ck_rankings_position_positive"),
        sa.CheckConstraint("ironman_position >= 1", name="ck_rankings_ironman_position_positive"),
        sa.CheckConstraint("rounds_played >= 0", name="ck_rankings_rounds_played_non_negative"),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournaments.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("tournament_id", "round_number", "player_id"),
    )
    op.create_index(
        "idx_rankings_tournament_round_position",
        "rankings",
        ["tournament_id", "round_number", "position"],
    )

    op.create_table(
        "notification_outbox",
        sa.Column("id", sa.BigInteger(), sa.Identity(), primary_key=True),
        sa.Column("player_id", UUID, nullable=False),
        sa.Column("event_type", sa.String(64), nullable=False),
        sa.Column("payload", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"], ondelete="CASCADE"),
    )
    op.create_index(
        "idx_notification_outbox_status_created",
        "notification_outbox",
        ["status", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("idx_notification_outbox_status_created", table_name="notification_outbox")
    op.drop_table("notification_outbox")
    op.drop_index("idx_rankings_tournament_round_position", table_name="rankings")
    op.drop_table("rankings")
    op.drop_index("idx_streak_history_round", table_name="streak_history")
    op.drop_index("idx_streak_history_tournament_player", table_name="streak_history")
    op.drop_table("streak_history")
    op.drop_index("idx_matches_accepted_date", table_name="matches")
    op.drop_index("idx_matches_group_confirmed", table_name="matches")
    op.drop_table("matches")
    op.drop_index("idx_group_players_substitute", table_name="group_players")
    op.drop_index("idx_group_players_player", table_name="group_players")
    op.drop_table("group_players")
    op.drop_table("groups")
    op.drop_table("rounds")
    op.drop_index("idx_tournament_players_player", table_name="tournament_players")
    op.drop_table("tournament_players")
    op.drop_index("uq_tournaments_single_active", table_name="tournaments")
    op.drop_table("tournaments")
    op.drop_table("players")
