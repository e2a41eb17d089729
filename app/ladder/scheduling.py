from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.locks import acquire_round_lock
from app.db.models.matches import Match
from app.db.repo.group_players_repo import GroupPlayersRepo
from app.db.repo.matches_repo import MatchesRepo
from app.db.repo.rounds_repo import RoundsRepo
from app.ladder.constants import (
    GROUP_STATUS_SKIPPED,
    MATCH_STATUS_COMPLETED,
    MATCH_STATUS_DATE_PROPOSED,
    MATCH_STATUS_PENDING,
    MATCH_STATUS_SCHEDULED,
    REASON_GROUP_SKIPPED,
    REASON_NO_MATCHES,
    REASON_NO_PROPOSED_DATE,
    REASON_NOT_A_PARTICIPANT,
    REASON_NOT_THE_PROPOSER,
    REASON_ROUND_CLOSED,
)
from app.ladder.errors import NotFoundError, PolicyViolation, StateConflict
from app.ladder.internal import load_group
from app.ladder.types import ScheduleSnapshot

logger = structlog.get_logger("app.ladder.scheduling")


def schedule_status(matches: Sequence[Match]) -> str:
    if not matches:
        return MATCH_STATUS_PENDING
    if all(match.is_confirmed for match in matches):
        return MATCH_STATUS_COMPLETED
    reference = matches[0]
    if reference.accepted_date is not None:
        return MATCH_STATUS_SCHEDULED
    if reference.proposed_date is not None:
        return MATCH_STATUS_DATE_PROPOSED
    return MATCH_STATUS_PENDING


def build_schedule_snapshot(
    group_id: UUID,
    matches: Sequence[Match],
    *,
    players_total: int,
) -> ScheduleSnapshot:
    reference = matches[0] if matches else None
    return ScheduleSnapshot(
        group_id=group_id,
        status=schedule_status(matches),
        proposed_date=reference.proposed_date if reference is not None else None,
        proposed_by_id=reference.proposed_by_id if reference is not None else None,
        accepted_date=reference.accepted_date if reference is not None else None,
        accepted_by=tuple(UUID(value) for value in (reference.accepted_by if reference else [])),
        players_total=players_total,
    )


def _write_schedule(
    matches: Sequence[Match],
    *,
    status: str,
    proposed_date: datetime | None,
    proposed_by_id: UUID | None,
    accepted_date: datetime | None,
    accepted_by: Sequence[UUID],
) -> None:
    # Confirmed sets keep their COMPLETED status.
    accepted = [str(player_id) for player_id in dict.fromkeys(accepted_by)]
    for match in matches:
        match.proposed_date = proposed_date
        match.proposed_by_id = proposed_by_id
        match.accepted_date = accepted_date
        match.accepted_by = list(accepted)
        if not match.is_confirmed:
            match.status = status


async def _load_open_group(
    session: AsyncSession,
    *,
    group_id: UUID,
) -> tuple[list[Match], list[UUID]]:
    group = await load_group(session, group_id)
    # Accepted dates gate wildcard revokes, which run under the same lock.
    await acquire_round_lock(session, round_id=group.round_id)
    round_ = await RoundsRepo.get_by_id(session, group.round_id)
    if round_ is None:
        raise NotFoundError("round")
    if round_.is_closed:
        raise StateConflict(REASON_ROUND_CLOSED)
    if group.status == GROUP_STATUS_SKIPPED:
        raise StateConflict(REASON_GROUP_SKIPPED)

    matches = await MatchesRepo.list_for_group_for_update(session, group_id=group_id)
    if not matches:
        raise StateConflict(REASON_NO_MATCHES)
    group_players = await GroupPlayersRepo.list_for_group(session, group_id=group_id)
    return matches, [group_player.player_id for group_player in group_players]


async def propose_group_date(
    session: AsyncSession,
    *,
    group_id: UUID,
    proposer_id: UUID,
    proposed_date: datetime,
    is_admin: bool = False,
    force_scheduled: bool = False,
) -> ScheduleSnapshot:
    """Propose one date for every set of the group.

    The proposer counts as accepted. An admin with `force_scheduled` fixes the
    date for the whole group at once.
    """
    matches, player_ids = await _load_open_group(session, group_id=group_id)
    if not is_admin and proposer_id not in player_ids:
        raise PolicyViolation(REASON_NOT_A_PARTICIPANT)

    if is_admin and force_scheduled:
        _write_schedule(
            matches,
            status=MATCH_STATUS_SCHEDULED,
            proposed_date=proposed_date,
            proposed_by_id=proposer_id,
            accepted_date=proposed_date,
            accepted_by=[*player_ids, proposer_id],
        )
    else:
        _write_schedule(
            matches,
            status=MATCH_STATUS_DATE_PROPOSED,
            proposed_date=proposed_date,
            proposed_by_id=proposer_id,
            accepted_date=None,
            accepted_by=[proposer_id],
        )
    await session.flush()

    snapshot = build_schedule_snapshot(group_id, matches, players_total=len(player_ids))
    logger.info(
        "group_date_proposed",
        group_id=str(group_id),
        proposed_by=str(proposer_id),
        status=snapshot.status,
        by_admin=is_admin,
    )
    return snapshot


async def respond_group_date(
    session: AsyncSession,
    *,
    group_id: UUID,
    player_id: UUID,
    accept: bool,
) -> ScheduleSnapshot:
    matches, player_ids = await _load_open_group(session, group_id=group_id)
    if player_id not in player_ids:
        raise PolicyViolation(REASON_NOT_A_PARTICIPANT)
    reference = matches[0]
    if reference.proposed_date is None:
        raise StateConflict(REASON_NO_PROPOSED_DATE)

    if accept:
        accepted_by = [UUID(value) for value in reference.accepted_by or []]
        accepted_by.append(player_id)
        if set(player_ids) <= set(accepted_by):
            status, accepted_date = MATCH_STATUS_SCHEDULED, reference.proposed_date
        else:
            status, accepted_date = MATCH_STATUS_DATE_PROPOSED, None
        _write_schedule(
            matches,
            status=status,
            proposed_date=reference.proposed_date,
            proposed_by_id=reference.proposed_by_id,
            accepted_date=accepted_date,
            accepted_by=accepted_by,
        )
    else:
        _write_schedule(
            matches,
            status=MATCH_STATUS_PENDING,
            proposed_date=None,
            proposed_by_id=None,
            accepted_date=None,
            accepted_by=[],
        )
    await session.flush()

    snapshot = build_schedule_snapshot(group_id, matches, players_total=len(player_ids))
    logger.info(
        "group_date_responded",
        group_id=str(group_id),
        player_id=str(player_id),
        accepted=accept,
        status=snapshot.status,
        accepted_total=len(snapshot.accepted_by),
    )
    return snapshot


async def cancel_group_date(
    session: AsyncSession,
    *,
    group_id: UUID,
    player_id: UUID | None,
    is_admin: bool = False,
) -> ScheduleSnapshot:
    matches, player_ids = await _load_open_group(session, group_id=group_id)
    if matches[0].proposed_date is None:
        raise StateConflict(REASON_NO_PROPOSED_DATE)
    if not is_admin and matches[0].proposed_by_id != player_id:
        raise PolicyViolation(REASON_NOT_THE_PROPOSER)

    _write_schedule(
        matches,
        status=MATCH_STATUS_PENDING,
        proposed_date=None,
        proposed_by_id=None,
        accepted_date=None,
        accepted_by=[],
    )
    await session.flush()

    logger.info("group_date_canceled", group_id=str(group_id), by_admin=is_admin)
    return build_schedule_snapshot(group_id, matches, players_total=len(player_ids))


async def get_group_schedule(session: AsyncSession, *, group_id: UUID) -> ScheduleSnapshot:
    await load_group(session, group_id)
    matches = await MatchesRepo.list_for_group(session, group_id=group_id)
    group_players = await GroupPlayersRepo.list_for_group(session, group_id=group_id)
    return build_schedule_snapshot(group_id, matches, players_total=len(group_players))
