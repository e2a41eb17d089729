from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.notification_outbox import NotificationOutbox


class NotificationOutboxRepo:
    @staticmethod
    async def create_for_players(
        session: AsyncSession,
        *,
        player_ids: Iterable[UUID],
        event_type: str,
        payload: dict[str, object],
        status: str,
    ) -> int:
        entries = [
            NotificationOutbox(
                player_id=player_id,
                event_type=event_type,
                payload=payload,
                status=status,
            )
            for player_id in player_ids
        ]
        if not entries:
            return 0
        session.add_all(entries)
        await session.flush()
        return len(entries)
