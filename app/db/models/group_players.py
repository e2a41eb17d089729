from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class GroupPlayer(Base):
    __tablename__ = "group_players"
    __table_args__ = (
        UniqueConstraint("group_id", "player_id", name="uq_group_players_group_player"),
        # Negative positions are transient sentinels used while reshuffling.
        UniqueConstraint("group_id", "position", name="uq_group_players_group_position"),
        CheckConstraint("position <> 0", name="ck_group_players_position_non_zero"),
        CheckConstraint("streak >= 0", name="ck_group_players_streak_non_negative"),
        CheckConstraint(
            "comodin_mode IS NULL OR comodin_mode IN ('MEAN','SUBSTITUTE')",
            name="ck_group_players_comodin_mode",
        ),
        CheckConstraint(
            "substitute_player_id IS NULL OR substitute_player_id <> player_id",
            name="ck_group_players_no_self_substitute",
        ),
        Index("idx_group_players_player", "player_id"),
        Index("idx_group_players_substitute", "substitute_player_id"),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    group_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=False,
    )
    player_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True), ForeignKey("players.id"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    points: Mapped[Decimal] = mapped_column(
        Numeric(6, 2), nullable=False, server_default=text("0")
    )
    streak: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    used_comodin: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("false")
    )
    comodin_mode: Mapped[str | None] = mapped_column(String(16), nullable=True)
    comodin_reason: Mapped[str | None] = mapped_column(String(256), nullable=True)
    comodin_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    substitute_player_id: Mapped[UUID | None] = mapped_column(
        PG_UUID(as_uuid=True), ForeignKey("players.id"), nullable=True
    )
    locked: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
