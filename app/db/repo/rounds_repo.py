from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.rounds import Round


class RoundsRepo:
    @staticmethod
    async def create(session: AsyncSession, *, round_: Round) -> Round:
        session.add(round_)
        await session.flush()
        return round_

    @staticmethod
    async def get_by_id(session: AsyncSession, round_id: UUID) -> Round | None:
        return await session.get(Round, round_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, round_id: UUID) -> Round | None:
        stmt = select(Round).where(Round.id == round_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_number(
        session: AsyncSession,
        *,
        tournament_id: UUID,
        number: int,
    ) -> Round | None:
        stmt = select(Round).where(Round.tournament_id == tournament_id, Round.number == number)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_latest_closed(session: AsyncSession, *, tournament_id: UUID) -> Round | None:
        stmt = (
            select(Round)
            .where(Round.tournament_id == tournament_id, Round.is_closed.is_(True))
            .order_by(Round.number.desc())
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_for_tournament(session: AsyncSession, *, tournament_id: UUID) -> list[Round]:
        stmt = (
            select(Round)
            .where(Round.tournament_id == tournament_id)
            .order_by(Round.number.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
