from __future__ import annotations

from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.locks import acquire_round_lock
from app.db.models.matches import Match
from app.db.repo.matches_repo import MatchesRepo
from app.ladder.constants import (
    GROUP_STATUS_SKIPPED,
    LADDER_GAMES_TO_WIN_SET,
    MATCH_STATUS_COMPLETED,
    REASON_GROUP_SKIPPED,
    REASON_NOT_A_PARTICIPANT,
    REASON_RESULT_ALREADY_CONFIRMED,
    REASON_RESULT_ALREADY_REPORTED,
    REASON_RESULT_NOT_REPORTED,
    REASON_ROUND_CLOSED,
    REASON_SELF_CONFIRMATION,
)
from app.ladder.errors import NotFoundError, PolicyViolation, StateConflict
from app.ladder.internal import (
    build_match_snapshot,
    load_group,
    load_match,
    load_round_for_update,
)
from app.ladder.scoring import validate_set_input
from app.ladder.types import MatchSnapshot

logger = structlog.get_logger("app.ladder.results")


async def _lock_open_match(session: AsyncSession, *, match_id: UUID) -> Match:
    match = await load_match(session, match_id)
    group = await load_group(session, match.group_id)
    await acquire_round_lock(session, round_id=group.round_id)
    round_ = await load_round_for_update(session, group.round_id)
    if round_.is_closed:
        raise StateConflict(REASON_ROUND_CLOSED)
    if group.status == GROUP_STATUS_SKIPPED:
        raise StateConflict(REASON_GROUP_SKIPPED)

    locked = await MatchesRepo.get_by_id_for_update(session, match_id)
    if locked is None:
        raise NotFoundError("match")
    return locked


def _normalize_tiebreak(team1_games: int, team2_games: int, tiebreak: str | None) -> str | None:
    if team1_games != LADDER_GAMES_TO_WIN_SET or team2_games != LADDER_GAMES_TO_WIN_SET:
        return None
    if tiebreak is None or not tiebreak.strip():
        return None
    return tiebreak.replace(" ", "")


async def report_result(
    session: AsyncSession,
    *,
    match_id: UUID,
    team1_games: int,
    team2_games: int,
    tiebreak: str | None = None,
    reporter_id: UUID | None = None,
    is_admin: bool = False,
) -> MatchSnapshot:
    """Record a set score.

    Player reports wait for a confirmation by another participant; admin
    reports are confirmed on write.
    """
    outcome = validate_set_input(team1_games, team2_games, tiebreak)
    match = await _lock_open_match(session, match_id=match_id)

    if not is_admin:
        if reporter_id is None or reporter_id not in match.player_ids:
            raise PolicyViolation(REASON_NOT_A_PARTICIPANT)
        if match.is_confirmed:
            raise StateConflict(REASON_RESULT_ALREADY_CONFIRMED)
        if match.reported_by_id is not None:
            raise StateConflict(REASON_RESULT_ALREADY_REPORTED)

    match.team1_games = team1_games
    match.team2_games = team2_games
    match.tiebreak_score = _normalize_tiebreak(team1_games, team2_games, tiebreak)
    if is_admin:
        match.is_confirmed = True
        match.reported_by_id = match.reported_by_id or reporter_id
        match.confirmed_by_id = reporter_id
        match.status = MATCH_STATUS_COMPLETED
    else:
        match.is_confirmed = False
        match.reported_by_id = reporter_id
        match.confirmed_by_id = None
    await session.flush()

    logger.info(
        "match_result_reported",
        match_id=str(match_id),
        winner=outcome.winner,
        confirmed=match.is_confirmed,
        by_admin=is_admin,
    )
    return build_match_snapshot(match)


async def confirm_result(
    session: AsyncSession,
    *,
    match_id: UUID,
    confirmer_id: UUID,
) -> MatchSnapshot:
    match = await _lock_open_match(session, match_id=match_id)
    if match.is_confirmed:
        raise StateConflict(REASON_RESULT_ALREADY_CONFIRMED)
    if match.reported_by_id is None or match.team1_games is None or match.team2_games is None:
        raise StateConflict(REASON_RESULT_NOT_REPORTED)
    if confirmer_id not in match.player_ids:
        raise PolicyViolation(REASON_NOT_A_PARTICIPANT)
    if confirmer_id == match.reported_by_id:
        raise PolicyViolation(REASON_SELF_CONFIRMATION)

    match.is_confirmed = True
    match.confirmed_by_id = confirmer_id
    match.status = MATCH_STATUS_COMPLETED
    await session.flush()

    logger.info("match_result_confirmed", match_id=str(match_id))
    return build_match_snapshot(match)


async def reject_result(
    session: AsyncSession,
    *,
    match_id: UUID,
    player_id: UUID,
) -> MatchSnapshot:
    match = await _lock_open_match(session, match_id=match_id)
    if match.is_confirmed:
        raise StateConflict(REASON_RESULT_ALREADY_CONFIRMED)
    if match.reported_by_id is None:
        raise StateConflict(REASON_RESULT_NOT_REPORTED)
    if player_id not in match.player_ids:
        raise PolicyViolation(REASON_NOT_A_PARTICIPANT)
    if player_id == match.reported_by_id:
        raise PolicyViolation(REASON_SELF_CONFIRMATION)

    match.team1_games = None
    match.team2_games = None
    match.tiebreak_score = None
    match.reported_by_id = None
    await session.flush()

    logger.info("match_result_rejected", match_id=str(match_id))
    return build_match_snapshot(match)
