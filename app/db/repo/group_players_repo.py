from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import and_, delete, exists, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.group_players import GroupPlayer
from app.db.models.groups import Group
from app.db.models.rounds import Round


class GroupPlayersRepo:
    @staticmethod
    async def create_many(
        session: AsyncSession,
        *,
        group_players: list[GroupPlayer],
    ) -> list[GroupPlayer]:
        if not group_players:
            return []
        session.add_all(group_players)
        await session.flush()
        return group_players

    @staticmethod
    async def list_for_group(session: AsyncSession, *, group_id: UUID) -> list[GroupPlayer]:
        stmt = (
            select(GroupPlayer)
            .where(GroupPlayer.group_id == group_id)
            .order_by(GroupPlayer.position.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_for_group_for_update(
        session: AsyncSession,
        *,
        group_id: UUID,
    ) -> list[GroupPlayer]:
        stmt = (
            select(GroupPlayer)
            .where(GroupPlayer.group_id == group_id)
            .order_by(GroupPlayer.position.asc())
            .with_for_update()
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_for_round(session: AsyncSession, *, round_id: UUID) -> list[GroupPlayer]:
        stmt = (
            select(GroupPlayer)
            .join(Group, Group.id == GroupPlayer.group_id)
            .where(Group.round_id == round_id)
            .order_by(Group.number.asc(), GroupPlayer.position.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def get_for_round_player_for_update(
        session: AsyncSession,
        *,
        round_id: UUID,
        player_id: UUID,
    ) -> GroupPlayer | None:
        stmt = (
            select(GroupPlayer)
            .join(Group, Group.id == GroupPlayer.group_id)
            .where(Group.round_id == round_id, GroupPlayer.player_id == player_id)
            .with_for_update(of=GroupPlayer)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_for_round_player(
        session: AsyncSession,
        *,
        round_id: UUID,
        player_id: UUID,
    ) -> GroupPlayer | None:
        stmt = (
            select(GroupPlayer)
            .join(Group, Group.id == GroupPlayer.group_id)
            .where(Group.round_id == round_id, GroupPlayer.player_id == player_id)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def is_substituting_in_round(
        session: AsyncSession,
        *,
        round_id: UUID,
        substitute_player_id: UUID,
    ) -> bool:
        stmt = select(
            exists().where(
                and_(
                    GroupPlayer.group_id == Group.id,
                    Group.round_id == round_id,
                    GroupPlayer.substitute_player_id == substitute_player_id,
                )
            )
        )
        result = await session.execute(stmt)
        return bool(result.scalar_one())

    @staticmethod
    async def set_position(
        session: AsyncSession,
        *,
        group_player_id: UUID,
        position: int,
    ) -> None:
        stmt = (
            update(GroupPlayer)
            .where(GroupPlayer.id == group_player_id)
            .values(position=position)
        )
        await session.execute(stmt)

    @staticmethod
    async def delete_for_group(session: AsyncSession, *, group_id: UUID) -> int:
        stmt = (
            delete(GroupPlayer)
            .where(GroupPlayer.group_id == group_id)
            .returning(GroupPlayer.id)
        )
        result = await session.execute(stmt)
        return len(list(result.scalars()))

    @staticmethod
    async def list_history_for_tournament(
        session: AsyncSession,
        *,
        tournament_id: UUID,
        before_round_number: int,
    ) -> list[tuple[UUID, int, bool, str, Decimal, bool]]:
        """(player_id, round_number, used_comodin, group_status, points, round_closed) rows."""
        stmt = (
            select(
                GroupPlayer.player_id,
                Round.number,
                GroupPlayer.used_comodin,
                Group.status,
                GroupPlayer.points,
                Round.is_closed,
            )
            .join(Group, Group.id == GroupPlayer.group_id)
            .join(Round, Round.id == Group.round_id)
            .where(Round.tournament_id == tournament_id, Round.number < before_round_number)
            .order_by(Round.number.asc())
        )
        result = await session.execute(stmt)
        return [
            (player_id, int(number), bool(used), str(status), Decimal(points), bool(closed))
            for player_id, number, used, status, points, closed in result.all()
        ]

    @staticmethod
    async def list_wildcard_slots(
        session: AsyncSession,
        *,
        tournament_id: UUID,
        max_round_number: int,
    ) -> list[tuple[UUID, UUID, str]]:
        """(group_id, player_id, comodin_mode) for every wildcard used up to a round."""
        stmt = (
            select(GroupPlayer.group_id, GroupPlayer.player_id, GroupPlayer.comodin_mode)
            .join(Group, Group.id == GroupPlayer.group_id)
            .join(Round, Round.id == Group.round_id)
            .where(
                Round.tournament_id == tournament_id,
                Round.number <= max_round_number,
                GroupPlayer.used_comodin.is_(True),
            )
        )
        result = await session.execute(stmt)
        return [
            (group_id, player_id, str(mode or ""))
            for group_id, player_id, mode in result.all()
        ]

    @staticmethod
    async def get_latest_for_player(
        session: AsyncSession,
        *,
        tournament_id: UUID,
        player_id: UUID,
    ) -> GroupPlayer | None:
        stmt = (
            select(GroupPlayer)
            .join(Group, Group.id == GroupPlayer.group_id)
            .join(Round, Round.id == Group.round_id)
            .where(
                Round.tournament_id == tournament_id,
                Round.is_closed.is_(True),
                GroupPlayer.player_id == player_id,
            )
            .order_by(Round.number.desc())
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()
