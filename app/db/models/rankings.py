from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, Numeric
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class Ranking(Base):
    __tablename__ = "rankings"
    __table_args__ = (
        CheckConstraint("position >= 1", name="ck_rankings_position_positive"),
        CheckConstraint("ironman_position >= 1", name="ck_rankings_ironman_position_positive"),
        CheckConstraint("rounds_played >= 0", name="ck_rankings_rounds_played_non_negative"),
        Index("idx_rankings_tournament_round_position", "tournament_id", "round_number", "position"),
    )

    tournament_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("tournaments.id", ondelete="CASCADE"),
        primary_key=True,
    )
    round_number: Mapped[int] = mapped_column(Integer, primary_key=True)
    player_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("players.id", ondelete="CASCADE"),
        primary_key=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    ironman_position: Mapped[int] = mapped_column(Integer, nullable=False)
    average_points: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False)
    total_points: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False)
    rounds_played: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
