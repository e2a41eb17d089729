from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.players import Player
from app.db.models.tournament_players import TournamentPlayer


class TournamentPlayersRepo:
    @staticmethod
    async def create_once(
        session: AsyncSession,
        *,
        tournament_id: UUID,
        player_id: UUID,
        joined_round: int = 1,
    ) -> bool:
        stmt = (
            insert(TournamentPlayer)
            .values(
                tournament_id=tournament_id,
                player_id=player_id,
                joined_round=joined_round,
                comodines_used=0,
                substitute_appearances=0,
            )
            .on_conflict_do_nothing(
                index_elements=[TournamentPlayer.tournament_id, TournamentPlayer.player_id]
            )
            .returning(TournamentPlayer.player_id)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def get(
        session: AsyncSession,
        *,
        tournament_id: UUID,
        player_id: UUID,
    ) -> TournamentPlayer | None:
        return await session.get(TournamentPlayer, (tournament_id, player_id))

    @staticmethod
    async def get_for_update(
        session: AsyncSession,
        *,
        tournament_id: UUID,
        player_id: UUID,
    ) -> TournamentPlayer | None:
        stmt = (
            select(TournamentPlayer)
            .where(
                TournamentPlayer.tournament_id == tournament_id,
                TournamentPlayer.player_id == player_id,
            )
            .with_for_update()
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_for_tournament(
        session: AsyncSession,
        *,
        tournament_id: UUID,
    ) -> list[TournamentPlayer]:
        stmt = (
            select(TournamentPlayer)
            .where(TournamentPlayer.tournament_id == tournament_id)
            .order_by(TournamentPlayer.joined_round.asc(), TournamentPlayer.player_id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_roster(
        session: AsyncSession,
        *,
        tournament_id: UUID,
    ) -> list[tuple[UUID, str]]:
        stmt = (
            select(TournamentPlayer.player_id, Player.name)
            .join(Player, Player.id == TournamentPlayer.player_id)
            .where(TournamentPlayer.tournament_id == tournament_id)
            .order_by(Player.name.asc(), TournamentPlayer.player_id.asc())
        )
        result = await session.execute(stmt)
        return [(player_id, name) for player_id, name in result.all()]

    @staticmethod
    async def list_eligible_ids(
        session: AsyncSession,
        *,
        tournament_id: UUID,
        round_number: int,
    ) -> list[UUID]:
        stmt = (
            select(TournamentPlayer.player_id)
            .where(
                TournamentPlayer.tournament_id == tournament_id,
                TournamentPlayer.joined_round <= round_number,
            )
            .order_by(TournamentPlayer.joined_round.asc(), TournamentPlayer.player_id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_joined_in_round_ids(
        session: AsyncSession,
        *,
        tournament_id: UUID,
        round_number: int,
    ) -> list[UUID]:
        stmt = (
            select(TournamentPlayer.player_id)
            .where(
                TournamentPlayer.tournament_id == tournament_id,
                TournamentPlayer.joined_round == round_number,
            )
            .order_by(TournamentPlayer.player_id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
