from __future__ import annotations

from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class TournamentPlayer(Base):
    __tablename__ = "tournament_players"
    __table_args__ = (
        CheckConstraint("joined_round >= 1", name="ck_tournament_players_joined_round_positive"),
        CheckConstraint(
            "comodines_used >= 0",
            name="ck_tournament_players_comodines_used_non_negative",
        ),
        CheckConstraint(
            "substitute_appearances >= 0",
            name="ck_tournament_players_substitute_appearances_non_negative",
        ),
        Index("idx_tournament_players_player", "player_id"),
    )

    tournament_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("tournaments.id", ondelete="CASCADE"),
        primary_key=True,
    )
    player_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("players.id", ondelete="CASCADE"),
        primary_key=True,
    )
    joined_round: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("1"))
    comodines_used: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    substitute_appearances: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default=text("0")
    )
