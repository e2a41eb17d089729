from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.players import Player


class PlayersRepo:
    @staticmethod
    async def create(session: AsyncSession, *, player: Player) -> Player:
        session.add(player)
        await session.flush()
        return player

    @staticmethod
    async def get_names_by_ids(
        session: AsyncSession,
        *,
        player_ids: Iterable[UUID],
    ) -> dict[UUID, str]:
        resolved_ids = list(set(player_ids))
        if not resolved_ids:
            return {}
        stmt = select(Player.id, Player.name).where(Player.id.in_(resolved_ids))
        result = await session.execute(stmt)
        return {player_id: name for player_id, name in result.all()}
