from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    text,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class Tournament(Base):
    __tablename__ = "tournaments"
    __table_args__ = (
        CheckConstraint("total_rounds >= 1", name="ck_tournaments_total_rounds_positive"),
        CheckConstraint(
            "round_duration_days >= 1",
            name="ck_tournaments_round_duration_positive",
        ),
        CheckConstraint("group_size >= 2", name="ck_tournaments_group_size_min"),
        CheckConstraint(
            "point_policy IN ('GAMES_PLUS_WIN','FLAT_WIN_LOSS')",
            name="ck_tournaments_point_policy",
        ),
        CheckConstraint(
            "max_comodines_per_player >= 0",
            name="ck_tournaments_max_comodines_non_negative",
        ),
        CheckConstraint(
            "substitute_credit_factor >= 0 AND substitute_credit_factor <= 1",
            name="ck_tournaments_substitute_credit_factor_range",
        ),
        CheckConstraint(
            "substitute_max_appearances >= 0",
            name="ck_tournaments_substitute_max_appearances_non_negative",
        ),
        CheckConstraint(
            "continuity_mode IN ('SETS','MATCHES','BOTH')",
            name="ck_tournaments_continuity_mode",
        ),
        CheckConstraint(
            "continuity_min_rounds >= 1",
            name="ck_tournaments_continuity_min_rounds_positive",
        ),
        CheckConstraint(
            "continuity_max_bonus >= 0",
            name="ck_tournaments_continuity_max_bonus_non_negative",
        ),
        Index(
            "uq_tournaments_single_active",
            "is_active",
            unique=True,
            postgresql_where=text("is_active"),
        ),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    title: Mapped[str] = mapped_column(String(128), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    total_rounds: Mapped[int] = mapped_column(Integer, nullable=False)
    round_duration_days: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default=text("14")
    )
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    group_size: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("4"))
    point_policy: Mapped[str] = mapped_column(
        String(16), nullable=False, server_default=text("'GAMES_PLUS_WIN'")
    )

    max_comodines_per_player: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default=text("1")
    )
    enable_mean_comodin: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("true")
    )
    enable_substitute_comodin: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("true")
    )
    substitute_credit_factor: Mapped[Decimal] = mapped_column(
        Numeric(3, 2), nullable=False, server_default=text("0.50")
    )
    substitute_max_appearances: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default=text("2")
    )

    continuity_enabled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("true")
    )
    continuity_points_per_set: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default=text("1")
    )
    continuity_points_per_round: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default=text("2")
    )
    continuity_min_rounds: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default=text("2")
    )
    continuity_max_bonus: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default=text("10")
    )
    continuity_mode: Mapped[str] = mapped_column(
        String(16), nullable=False, server_default=text("'MATCHES'")
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
