from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Request

from app.core.config import get_settings
from app.db.session import SessionLocal
from app.ladder.closing import (
    close_round,
    preview_group_points,
    reopen_round,
    skip_group,
    unskip_group,
)
from app.ladder.errors import LadderError
from app.ladder.groups import (
    generate_next_round,
    generate_rotation,
    structure_groups,
    update_round_groups,
)
from app.ladder.results import confirm_result, reject_result, report_result
from app.ladder.types import StructureResult

from .internal_ladder_helpers import (
    as_group_summary,
    as_match_response,
    assert_internal_access,
    is_admin_request,
    optional_player_id,
    raise_for_ladder_error,
    require_admin,
    require_player_id,
)
from .internal_ladder_models import (
    CloseRoundResponse,
    GroupSummaryResponse,
    MatchResponse,
    MovementResponse,
    ReopenRoundResponse,
    ReportResultRequest,
    RotationRequest,
    RotationResponse,
    SkipGroupRequest,
    StructureGroupsRequest,
    StructureResultResponse,
    UpdateGroupsRequest,
)

router = APIRouter(tags=["internal", "ladder"])


def _assert_internal_access(request: Request) -> None:
    assert_internal_access(request, settings=get_settings())


def _as_structure_response(result: StructureResult) -> StructureResultResponse:
    return StructureResultResponse(
        round_id=result.round_id,
        strategy=result.strategy,
        groups_total=result.groups_total,
        players_total=result.players_total,
        matches_total=result.matches_total,
    )


@router.post(
    "/internal/ladder/rounds/{round_id}/groups",
    response_model=StructureResultResponse,
)
async def post_structure_groups(
    round_id: UUID,
    payload: StructureGroupsRequest,
    request: Request,
) -> StructureResultResponse:
    _assert_internal_access(request)
    require_admin(request)
    try:
        async with SessionLocal.begin() as session:
            result = await structure_groups(
                session,
                round_id=round_id,
                strategy=payload.strategy.strip().lower(),
                group_size=payload.group_size,
                force=payload.force,
                manual_groups=payload.groups,
                seed=payload.seed,
            )
    except LadderError as exc:
        raise_for_ladder_error(exc)
    return _as_structure_response(result)


@router.put(
    "/internal/ladder/rounds/{round_id}/groups",
    response_model=StructureResultResponse,
)
async def put_round_groups(
    round_id: UUID,
    payload: UpdateGroupsRequest,
    request: Request,
) -> StructureResultResponse:
    _assert_internal_access(request)
    require_admin(request)
    try:
        async with SessionLocal.begin() as session:
            result = await update_round_groups(
                session,
                round_id=round_id,
                groups=payload.groups,
                group_size=payload.group_size,
            )
    except LadderError as exc:
        raise_for_ladder_error(exc)
    return _as_structure_response(result)


@router.post(
    "/internal/ladder/groups/{group_id}/rotation",
    response_model=RotationResponse,
)
async def post_generate_rotation(
    group_id: UUID,
    payload: RotationRequest,
    request: Request,
) -> RotationResponse:
    _assert_internal_access(request)
    require_admin(request)
    try:
        async with SessionLocal.begin() as session:
            matches = await generate_rotation(
                session,
                group_id=group_id,
                overwrite=payload.overwrite,
            )
    except LadderError as exc:
        raise_for_ladder_error(exc)
    return RotationResponse(
        group_id=group_id,
        matches=[as_match_response(match) for match in matches],
    )


@router.post(
    "/internal/ladder/rounds/{round_id}/next",
    response_model=StructureResultResponse,
)
async def post_generate_next_round(round_id: UUID, request: Request) -> StructureResultResponse:
    _assert_internal_access(request)
    require_admin(request)
    try:
        async with SessionLocal.begin() as session:
            result = await generate_next_round(session, round_id=round_id)
    except LadderError as exc:
        raise_for_ladder_error(exc)
    return _as_structure_response(result)


@router.post(
    "/internal/ladder/matches/{match_id}/result",
    response_model=MatchResponse,
)
async def post_report_result(
    match_id: UUID,
    payload: ReportResultRequest,
    request: Request,
) -> MatchResponse:
    _assert_internal_access(request)
    is_admin = is_admin_request(request)
    reporter_id = optional_player_id(request) if is_admin else require_player_id(request)
    try:
        async with SessionLocal.begin() as session:
            snapshot = await report_result(
                session,
                match_id=match_id,
                team1_games=payload.team1_games,
                team2_games=payload.team2_games,
                tiebreak=payload.tiebreak,
                reporter_id=reporter_id,
                is_admin=is_admin,
            )
    except LadderError as exc:
        raise_for_ladder_error(exc)
    return as_match_response(snapshot)


@router.post(
    "/internal/ladder/matches/{match_id}/confirm",
    response_model=MatchResponse,
)
async def post_confirm_result(match_id: UUID, request: Request) -> MatchResponse:
    _assert_internal_access(request)
    confirmer_id = require_player_id(request)
    try:
        async with SessionLocal.begin() as session:
            snapshot = await confirm_result(session, match_id=match_id, confirmer_id=confirmer_id)
    except LadderError as exc:
        raise_for_ladder_error(exc)
    return as_match_response(snapshot)


@router.post(
    "/internal/ladder/matches/{match_id}/reject",
    response_model=MatchResponse,
)
async def post_reject_result(match_id: UUID, request: Request) -> MatchResponse:
    _assert_internal_access(request)
    player_id = require_player_id(request)
    try:
        async with SessionLocal.begin() as session:
            snapshot = await reject_result(session, match_id=match_id, player_id=player_id)
    except LadderError as exc:
        raise_for_ladder_error(exc)
    return as_match_response(snapshot)


@router.post(
    "/internal/ladder/rounds/{round_id}/close",
    response_model=CloseRoundResponse,
)
async def post_close_round(round_id: UUID, request: Request) -> CloseRoundResponse:
    _assert_internal_access(request)
    require_admin(request)
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            result = await close_round(session, round_id=round_id, now_utc=now_utc)
    except LadderError as exc:
        raise_for_ladder_error(exc)
    return CloseRoundResponse(
        round_id=result.round_id,
        round_number=result.round_number,
        groups_played=result.groups_played,
        groups_skipped=result.groups_skipped,
        players_scored=result.players_scored,
        continuity_bonuses_awarded=result.continuity_bonuses_awarded,
        groups=[as_group_summary(summary) for summary in result.groups],
        movements=[
            MovementResponse(
                player_id=movement.player_id,
                from_group_index=movement.from_group_index,
                target_group_index=movement.target_group_index,
                level_delta=movement.level_delta,
            )
            for movement in result.movements
        ],
    )


@router.post(
    "/internal/ladder/rounds/{round_id}/reopen",
    response_model=ReopenRoundResponse,
)
async def post_reopen_round(round_id: UUID, request: Request) -> ReopenRoundResponse:
    _assert_internal_access(request)
    require_admin(request)
    try:
        async with SessionLocal.begin() as session:
            result = await reopen_round(session, round_id=round_id)
    except LadderError as exc:
        raise_for_ladder_error(exc)
    return ReopenRoundResponse(
        round_id=result.round_id,
        round_number=result.round_number,
        streak_entries_removed=result.streak_entries_removed,
        groups_reset=result.groups_reset,
    )


@router.post(
    "/internal/ladder/groups/{group_id}/skip",
    response_model=GroupSummaryResponse,
)
async def post_skip_group(
    group_id: UUID,
    payload: SkipGroupRequest,
    request: Request,
) -> GroupSummaryResponse:
    _assert_internal_access(request)
    require_admin(request)
    try:
        async with SessionLocal.begin() as session:
            summary = await skip_group(session, group_id=group_id, reason=payload.reason)
    except LadderError as exc:
        raise_for_ladder_error(exc)
    return as_group_summary(summary)


@router.delete(
    "/internal/ladder/groups/{group_id}/skip",
    response_model=GroupSummaryResponse,
)
async def delete_skip_group(group_id: UUID, request: Request) -> GroupSummaryResponse:
    _assert_internal_access(request)
    require_admin(request)
    try:
        async with SessionLocal.begin() as session:
            summary = await unskip_group(session, group_id=group_id)
    except LadderError as exc:
        raise_for_ladder_error(exc)
    return as_group_summary(summary)


@router.get(
    "/internal/ladder/groups/{group_id}/points-preview",
    response_model=GroupSummaryResponse,
)
async def get_points_preview(group_id: UUID, request: Request) -> GroupSummaryResponse:
    _assert_internal_access(request)
    try:
        async with SessionLocal.begin() as session:
            summary = await preview_group_points(session, group_id=group_id)
    except LadderError as exc:
        raise_for_ladder_error(exc)
    return as_group_summary(summary)
