from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.rankings import Ranking


class RankingsRepo:
    @staticmethod
    async def replace_for_round(
        session: AsyncSession,
        *,
        tournament_id: UUID,
        round_number: int,
        rows: list[Ranking],
    ) -> int:
        await session.execute(
            delete(Ranking).where(
                Ranking.tournament_id == tournament_id,
                Ranking.round_number == round_number,
            )
        )
        if rows:
            session.add_all(rows)
            await session.flush()
        return len(rows)

    @staticmethod
    async def delete_from_round(
        session: AsyncSession,
        *,
        tournament_id: UUID,
        round_number: int,
    ) -> int:
        stmt = (
            delete(Ranking)
            .where(Ranking.tournament_id == tournament_id, Ranking.round_number >= round_number)
            .returning(Ranking.player_id)
        )
        result = await session.execute(stmt)
        return len(list(result.scalars()))

    @staticmethod
    async def list_for_round(
        session: AsyncSession,
        *,
        tournament_id: UUID,
        round_number: int,
    ) -> list[Ranking]:
        stmt = (
            select(Ranking)
            .where(Ranking.tournament_id == tournament_id, Ranking.round_number == round_number)
            .order_by(Ranking.position.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
