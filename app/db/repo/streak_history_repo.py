from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.streak_history import StreakHistory


class StreakHistoryRepo:
    @staticmethod
    async def create_many(
        session: AsyncSession,
        *,
        entries: list[StreakHistory],
    ) -> list[StreakHistory]:
        if not entries:
            return []
        session.add_all(entries)
        await session.flush()
        return entries

    @staticmethod
    async def delete_for_round(session: AsyncSession, *, round_id: UUID) -> int:
        stmt = (
            delete(StreakHistory)
            .where(StreakHistory.round_id == round_id)
            .returning(StreakHistory.id)
        )
        result = await session.execute(stmt)
        return len(list(result.scalars()))

    @staticmethod
    async def list_for_player(
        session: AsyncSession,
        *,
        tournament_id: UUID,
        player_id: UUID,
    ) -> list[StreakHistory]:
        stmt = (
            select(StreakHistory)
            .where(
                StreakHistory.tournament_id == tournament_id,
                StreakHistory.player_id == player_id,
            )
            .order_by(StreakHistory.created_at.asc(), StreakHistory.id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
