from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.groups import Group
from app.db.models.matches import Match
from app.db.models.rounds import Round


def _involves(player_id: UUID):
    return or_(
        Match.team1_player1_id == player_id,
        Match.team1_player2_id == player_id,
        Match.team2_player1_id == player_id,
        Match.team2_player2_id == player_id,
    )


class MatchesRepo:
    @staticmethod
    async def create_many(session: AsyncSession, *, matches: list[Match]) -> list[Match]:
        if not matches:
            return []
        session.add_all(matches)
        await session.flush()
        return matches

    @staticmethod
    async def get_by_id(session: AsyncSession, match_id: UUID) -> Match | None:
        return await session.get(Match, match_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, match_id: UUID) -> Match | None:
        stmt = select(Match).where(Match.id == match_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_for_group(session: AsyncSession, *, group_id: UUID) -> list[Match]:
        stmt = select(Match).where(Match.group_id == group_id).order_by(Match.set_number.asc())
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_for_group_for_update(session: AsyncSession, *, group_id: UUID) -> list[Match]:
        stmt = (
            select(Match)
            .where(Match.group_id == group_id)
            .order_by(Match.set_number.asc())
            .with_for_update()
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def count_for_group(session: AsyncSession, *, group_id: UUID) -> int:
        stmt = select(func.count(Match.id)).where(Match.group_id == group_id)
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def count_unconfirmed_for_round(
        session: AsyncSession,
        *,
        round_id: UUID,
        excluded_statuses: tuple[str, ...],
    ) -> int:
        stmt = (
            select(func.count(Match.id))
            .join(Group, Group.id == Match.group_id)
            .where(
                Group.round_id == round_id,
                Group.status.not_in(excluded_statuses),
                Match.is_confirmed.is_(False),
            )
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def list_for_player_in_round(
        session: AsyncSession,
        *,
        round_id: UUID,
        player_id: UUID,
    ) -> list[Match]:
        stmt = (
            select(Match)
            .join(Group, Group.id == Match.group_id)
            .where(Group.round_id == round_id, _involves(player_id))
            .order_by(Match.set_number.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_confirmed_for_tournament(
        session: AsyncSession,
        *,
        tournament_id: UUID,
        max_round_number: int,
    ) -> list[tuple[Match, int]]:
        stmt = (
            select(Match, Round.number)
            .join(Group, Group.id == Match.group_id)
            .join(Round, Round.id == Group.round_id)
            .where(
                Round.tournament_id == tournament_id,
                Round.number <= max_round_number,
                Match.is_confirmed.is_(True),
            )
            .order_by(Round.number.asc(), Group.number.asc(), Match.set_number.asc())
        )
        result = await session.execute(stmt)
        return [(match, int(number)) for match, number in result.all()]

    @staticmethod
    async def delete_for_group(session: AsyncSession, *, group_id: UUID) -> int:
        stmt = delete(Match).where(Match.group_id == group_id).returning(Match.id)
        result = await session.execute(stmt)
        return len(list(result.scalars()))
