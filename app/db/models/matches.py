from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class Match(Base):
    __tablename__ = "matches"
    __table_args__ = (
        UniqueConstraint("group_id", "set_number", name="uq_matches_group_set_number"),
        CheckConstraint("set_number >= 1", name="ck_matches_set_number_positive"),
        CheckConstraint(
            "team1_games IS NULL OR (team1_games >= 0 AND team1_games <= 7)",
            name="ck_matches_team1_games_range",
        ),
        CheckConstraint(
            "team2_games IS NULL OR (team2_games >= 0 AND team2_games <= 7)",
            name="ck_matches_team2_games_range",
        ),
        CheckConstraint(
            "status IN ('PENDING','DATE_PROPOSED','SCHEDULED','COMPLETED')",
            name="ck_matches_status",
        ),
        CheckConstraint(
            "NOT is_confirmed OR (team1_games IS NOT NULL AND team2_games IS NOT NULL)",
            name="ck_matches_confirmed_has_score",
        ),
        Index("idx_matches_group_confirmed", "group_id", "is_confirmed"),
        Index("idx_matches_accepted_date", "accepted_date"),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    group_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=False,
    )
    set_number: Mapped[int] = mapped_column(Integer, nullable=False)
    team1_player1_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True), ForeignKey("players.id"), nullable=False
    )
    team1_player2_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True), ForeignKey("players.id"), nullable=False
    )
    team2_player1_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True), ForeignKey("players.id"), nullable=False
    )
    team2_player2_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True), ForeignKey("players.id"), nullable=False
    )
    team1_games: Mapped[int | None] = mapped_column(Integer, nullable=True)
    team2_games: Mapped[int | None] = mapped_column(Integer, nullable=True)
    tiebreak_score: Mapped[str | None] = mapped_column(String(16), nullable=True)
    is_confirmed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("false")
    )
    reported_by_id: Mapped[UUID | None] = mapped_column(
        PG_UUID(as_uuid=True), ForeignKey("players.id"), nullable=True
    )
    confirmed_by_id: Mapped[UUID | None] = mapped_column(
        PG_UUID(as_uuid=True), ForeignKey("players.id"), nullable=True
    )
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, server_default=text("'PENDING'")
    )
    proposed_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    proposed_by_id: Mapped[UUID | None] = mapped_column(
        PG_UUID(as_uuid=True), ForeignKey("players.id"), nullable=True
    )
    accepted_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    accepted_by: Mapped[list[str]] = mapped_column(
        JSONB, nullable=False, server_default=text("'[]'::jsonb")
    )

    @property
    def team1(self) -> tuple[UUID, UUID]:
        return (self.team1_player1_id, self.team1_player2_id)

    @property
    def team2(self) -> tuple[UUID, UUID]:
        return (self.team2_player1_id, self.team2_player2_id)

    @property
    def player_ids(self) -> tuple[UUID, UUID, UUID, UUID]:
        return (*self.team1, *self.team2)
