from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.streak_history import StreakHistory
from app.db.repo.group_players_repo import GroupPlayersRepo
from app.db.repo.streak_history_repo import StreakHistoryRepo
from app.ladder.constants import (
    GROUP_STATUS_SKIPPED,
    STREAK_TYPE_BROKEN_NO_PLAY,
    STREAK_TYPE_CONTINUITY_BONUS,
)
from app.ladder.types import ContinuityOutcome, ContinuityStats, RoundHistoryEntry


HistoryRow = tuple[UUID, int, bool, str, Decimal, bool]


class ContinuityService:
    @staticmethod
    def participation_from_rows(rows: Iterable[HistoryRow]) -> dict[UUID, list[RoundHistoryEntry]]:
        history: dict[UUID, list[RoundHistoryEntry]] = defaultdict(list)
        for player_id, round_number, used_comodin, group_status, _points, _closed in rows:
            history[player_id].append(
                RoundHistoryEntry(
                    round_number=round_number,
                    participated=not used_comodin and group_status != GROUP_STATUS_SKIPPED,
                )
            )
        return dict(history)

    @staticmethod
    def build_bonus_entries(
        *,
        tournament_id: UUID,
        round_id: UUID,
        group_id: UUID,
        outcomes: Iterable[ContinuityOutcome],
        now_utc: datetime,
    ) -> list[StreakHistory]:
        return [
            StreakHistory(
                id=uuid4(),
                tournament_id=tournament_id,
                round_id=round_id,
                group_id=group_id,
                player_id=outcome.player_id,
                streak_type=STREAK_TYPE_CONTINUITY_BONUS,
                streak_count=outcome.streak,
                bonus_points=Decimal(outcome.bonus),
                created_at=now_utc,
            )
            for outcome in outcomes
            if outcome.bonus > 0
        ]

    @staticmethod
    def build_broken_entries(
        *,
        tournament_id: UUID,
        round_id: UUID,
        group_id: UUID,
        player_ids: Iterable[UUID],
        now_utc: datetime,
    ) -> list[StreakHistory]:
        return [
            StreakHistory(
                id=uuid4(),
                tournament_id=tournament_id,
                round_id=round_id,
                group_id=group_id,
                player_id=player_id,
                streak_type=STREAK_TYPE_BROKEN_NO_PLAY,
                streak_count=0,
                bonus_points=Decimal("0"),
                created_at=now_utc,
            )
            for player_id in player_ids
        ]

    @staticmethod
    async def get_player_stats(
        session: AsyncSession,
        *,
        tournament_id: UUID,
        player_id: UUID,
    ) -> ContinuityStats:
        latest = await GroupPlayersRepo.get_latest_for_player(
            session,
            tournament_id=tournament_id,
            player_id=player_id,
        )
        entries = await StreakHistoryRepo.list_for_player(
            session,
            tournament_id=tournament_id,
            player_id=player_id,
        )
        bonus_entries = [
            entry for entry in entries if entry.streak_type == STREAK_TYPE_CONTINUITY_BONUS
        ]
        current_streak = int(latest.streak) if latest is not None else 0
        return ContinuityStats(
            player_id=player_id,
            current_streak=current_streak,
            best_streak=max([current_streak, *(entry.streak_count for entry in bonus_entries)]),
            total_bonus=sum((Decimal(entry.bonus_points) for entry in bonus_entries), Decimal("0")),
            rounds_with_bonus=sum(1 for entry in bonus_entries if entry.bonus_points > 0),
        )
