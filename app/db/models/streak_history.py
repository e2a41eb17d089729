from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, Numeric, String, text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class StreakHistory(Base):
    __tablename__ = "streak_history"
    __table_args__ = (
        CheckConstraint(
            "streak_type IN ('CONTINUITY_BONUS','BROKEN_NO_PLAY')",
            name="ck_streak_history_streak_type",
        ),
        CheckConstraint("streak_count >= 0", name="ck_streak_history_streak_count_non_negative"),
        CheckConstraint("bonus_points >= 0", name="ck_streak_history_bonus_non_negative"),
        Index("idx_streak_history_tournament_player", "tournament_id", "player_id"),
        Index("idx_streak_history_round", "round_id"),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    tournament_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("tournaments.id", ondelete="CASCADE"),
        nullable=False,
    )
    round_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("rounds.id", ondelete="CASCADE"),
        nullable=False,
    )
    group_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=False,
    )
    player_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True), ForeignKey("players.id"), nullable=False
    )
    streak_type: Mapped[str] = mapped_column(String(32), nullable=False)
    streak_count: Mapped[int] = mapped_column(Integer, nullable=False)
    bonus_points: Mapped[Decimal] = mapped_column(
        Numeric(6, 2), nullable=False, server_default=text("0")
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
