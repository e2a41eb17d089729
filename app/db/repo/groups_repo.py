from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.groups import Group


class GroupsRepo:
    @staticmethod
    async def create_many(session: AsyncSession, *, groups: list[Group]) -> list[Group]:
        if not groups:
            return []
        session.add_all(groups)
        await session.flush()
        return groups

    @staticmethod
    async def get_by_id(session: AsyncSession, group_id: UUID) -> Group | None:
        return await session.get(Group, group_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, group_id: UUID) -> Group | None:
        stmt = select(Group).where(Group.id == group_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_for_round(session: AsyncSession, *, round_id: UUID) -> list[Group]:
        stmt = select(Group).where(Group.round_id == round_id).order_by(Group.number.asc())
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def count_for_round(session: AsyncSession, *, round_id: UUID) -> int:
        stmt = select(func.count(Group.id)).where(Group.round_id == round_id)
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def delete_for_round(session: AsyncSession, *, round_id: UUID) -> int:
        stmt = delete(Group).where(Group.round_id == round_id).returning(Group.id)
        result = await session.execute(stmt)
        return len(list(result.scalars()))
