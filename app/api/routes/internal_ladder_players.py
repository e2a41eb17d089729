from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Query, Request

from app.core.config import get_settings
from app.db.session import SessionLocal
from app.ladder.constants import (
    MATCH_STATUS_SCHEDULED,
    NOTIFICATION_EVENT_DATE_CANCELED,
    NOTIFICATION_EVENT_DATE_PROPOSED,
    NOTIFICATION_EVENT_DATE_SCHEDULED,
)
from app.ladder.continuity.service import ContinuityService
from app.ladder.errors import LadderError
from app.ladder.rankings import get_rankings
from app.ladder.scheduling import (
    cancel_group_date,
    get_group_schedule,
    propose_group_date,
    respond_group_date,
)
from app.ladder.types import ScheduleSnapshot
from app.ladder.wildcards.service import (
    apply_wildcard,
    get_wildcard_status,
    list_eligible_substitutes,
    revoke_wildcard,
)
from app.workers.tasks.schedule_notifications import enqueue_group_schedule_notification

from .internal_ladder_helpers import (
    as_ranking_entries,
    as_schedule_response,
    assert_internal_access,
    is_admin_request,
    optional_player_id,
    raise_for_ladder_error,
    require_player_id,
)
from .internal_ladder_models import (
    ApplyWildcardRequest,
    ApplyWildcardResponse,
    ContinuityStatsResponse,
    EligibleSubstitutesResponse,
    PlayerRefResponse,
    ProposeDateRequest,
    RankingsResponse,
    RespondDateRequest,
    RevokeWildcardResponse,
    ScheduleResponse,
    WildcardStatusResponse,
)

router = APIRouter(tags=["internal", "ladder"])


def _assert_internal_access(request: Request) -> None:
    assert_internal_access(request, settings=get_settings())


def _acting_player_id(request: Request, *, target_player_id: UUID | None) -> UUID:
    # Admins may act on behalf of any player; players only on themselves.
    if target_player_id is not None and is_admin_request(request):
        return target_player_id
    return require_player_id(request)


def _notify_schedule(snapshot: ScheduleSnapshot, *, event_type: str, actor_id: UUID | None) -> None:
    enqueue_group_schedule_notification(
        group_id=snapshot.group_id,
        event_type=event_type,
        status=snapshot.status,
        proposed_date=snapshot.proposed_date,
        actor_id=actor_id,
    )


@router.post(
    "/internal/ladder/rounds/{round_id}/wildcard",
    response_model=ApplyWildcardResponse,
)
async def post_apply_wildcard(
    round_id: UUID,
    payload: ApplyWildcardRequest,
    request: Request,
) -> ApplyWildcardResponse:
    _assert_internal_access(request)
    player_id = _acting_player_id(request, target_player_id=payload.player_id)
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            result = await apply_wildcard(
                session,
                player_id=player_id,
                round_id=round_id,
                mode=payload.mode,
                substitute_player_id=payload.substitute_player_id,
                reason=payload.reason,
                now_utc=now_utc,
            )
    except LadderError as exc:
        raise_for_ladder_error(exc)
    return ApplyWildcardResponse(
        player_id=result.player_id,
        round_id=result.round_id,
        mode=result.mode,
        substitute_player_id=result.substitute_player_id,
        comodines_used=result.comodines_used,
        comodines_remaining=result.comodines_remaining,
    )


@router.delete(
    "/internal/ladder/rounds/{round_id}/wildcard",
    response_model=RevokeWildcardResponse,
)
async def delete_wildcard(
    round_id: UUID,
    request: Request,
    player_id: UUID | None = Query(default=None),
) -> RevokeWildcardResponse:
    _assert_internal_access(request)
    acting_player_id = _acting_player_id(request, target_player_id=player_id)
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            result = await revoke_wildcard(
                session,
                player_id=acting_player_id,
                round_id=round_id,
                now_utc=now_utc,
                bypass_freeze_window=is_admin_request(request),
            )
    except LadderError as exc:
        raise_for_ladder_error(exc)
    return RevokeWildcardResponse(
        player_id=result.player_id,
        round_id=result.round_id,
        freeze_window_bypassed=result.freeze_window_bypassed,
        comodines_used=result.comodines_used,
        substitute_player_id=result.substitute_player_id,
    )


@router.get(
    "/internal/ladder/rounds/{round_id}/wildcard/status",
    response_model=WildcardStatusResponse,
)
async def get_wildcard_status_route(
    round_id: UUID,
    request: Request,
    player_id: UUID | None = Query(default=None),
) -> WildcardStatusResponse:
    _assert_internal_access(request)
    acting_player_id = _acting_player_id(request, target_player_id=player_id)
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            status = await get_wildcard_status(
                session,
                player_id=acting_player_id,
                round_id=round_id,
                now_utc=now_utc,
            )
    except LadderError as exc:
        raise_for_ladder_error(exc)
    return WildcardStatusResponse(
        player_id=status.player_id,
        round_id=status.round_id,
        used=status.used,
        mode=status.mode,
        substitute_player_id=status.substitute_player_id,
        comodines_used=status.comodines_used,
        comodines_remaining=status.comodines_remaining,
        can_use=status.can_use,
        can_revoke=status.can_revoke,
        restriction_reason=status.restriction_reason,
        mean_enabled=status.mean_enabled,
        substitute_enabled=status.substitute_enabled,
    )


@router.get(
    "/internal/ladder/rounds/{round_id}/wildcard/substitutes",
    response_model=EligibleSubstitutesResponse,
)
async def get_eligible_substitutes(
    round_id: UUID,
    request: Request,
    player_id: UUID | None = Query(default=None),
) -> EligibleSubstitutesResponse:
    _assert_internal_access(request)
    acting_player_id = _acting_player_id(request, target_player_id=player_id)
    try:
        async with SessionLocal.begin() as session:
            entries = await list_eligible_substitutes(
                session,
                player_id=acting_player_id,
                round_id=round_id,
            )
    except LadderError as exc:
        raise_for_ladder_error(exc)
    return EligibleSubstitutesResponse(
        round_id=round_id,
        players=[PlayerRefResponse(player_id=entry.player_id, name=entry.name) for entry in entries],
    )


@router.get(
    "/internal/ladder/tournaments/{tournament_id}/rankings",
    response_model=RankingsResponse,
)
async def get_rankings_route(
    tournament_id: UUID,
    request: Request,
    round_number: int | None = Query(default=None, alias="round", ge=1),
) -> RankingsResponse:
    _assert_internal_access(request)
    try:
        async with SessionLocal() as session:
            rankings = await get_rankings(
                session,
                tournament_id=tournament_id,
                reference_round=round_number,
            )
    except LadderError as exc:
        raise_for_ladder_error(exc)
    return RankingsResponse(
        tournament_id=rankings.tournament_id,
        reference_round=rankings.reference_round,
        has_rankings=rankings.has_rankings,
        official=as_ranking_entries(rankings.official),
        ironman=as_ranking_entries(rankings.ironman),
    )


@router.get(
    "/internal/ladder/tournaments/{tournament_id}/players/{player_id}/continuity",
    response_model=ContinuityStatsResponse,
)
async def get_continuity_stats(
    tournament_id: UUID,
    player_id: UUID,
    request: Request,
) -> ContinuityStatsResponse:
    _assert_internal_access(request)
    async with SessionLocal() as session:
        stats = await ContinuityService.get_player_stats(
            session,
            tournament_id=tournament_id,
            player_id=player_id,
        )
    return ContinuityStatsResponse(
        player_id=stats.player_id,
        current_streak=stats.current_streak,
        best_streak=stats.best_streak,
        total_bonus=stats.total_bonus,
        rounds_with_bonus=stats.rounds_with_bonus,
    )


@router.get(
    "/internal/ladder/groups/{group_id}/schedule",
    response_model=ScheduleResponse,
)
async def get_schedule(group_id: UUID, request: Request) -> ScheduleResponse:
    _assert_internal_access(request)
    try:
        async with SessionLocal() as session:
            snapshot = await get_group_schedule(session, group_id=group_id)
    except LadderError as exc:
        raise_for_ladder_error(exc)
    return as_schedule_response(snapshot)


@router.post(
    "/internal/ladder/groups/{group_id}/schedule",
    response_model=ScheduleResponse,
)
async def post_propose_date(
    group_id: UUID,
    payload: ProposeDateRequest,
    request: Request,
) -> ScheduleResponse:
    _assert_internal_access(request)
    proposer_id = require_player_id(request)
    is_admin = is_admin_request(request)
    try:
        async with SessionLocal.begin() as session:
            snapshot = await propose_group_date(
                session,
                group_id=group_id,
                proposer_id=proposer_id,
                proposed_date=payload.proposed_date,
                is_admin=is_admin,
                force_scheduled=payload.force_scheduled,
            )
    except LadderError as exc:
        raise_for_ladder_error(exc)

    event_type = (
        NOTIFICATION_EVENT_DATE_SCHEDULED
        if snapshot.status == MATCH_STATUS_SCHEDULED
        else NOTIFICATION_EVENT_DATE_PROPOSED
    )
    _notify_schedule(snapshot, event_type=event_type, actor_id=proposer_id)
    return as_schedule_response(snapshot)


@router.post(
    "/internal/ladder/groups/{group_id}/schedule/respond",
    response_model=ScheduleResponse,
)
async def post_respond_date(
    group_id: UUID,
    payload: RespondDateRequest,
    request: Request,
) -> ScheduleResponse:
    _assert_internal_access(request)
    player_id = require_player_id(request)
    try:
        async with SessionLocal.begin() as session:
            snapshot = await respond_group_date(
                session,
                group_id=group_id,
                player_id=player_id,
                accept=payload.accept,
            )
    except LadderError as exc:
        raise_for_ladder_error(exc)

    if snapshot.status == MATCH_STATUS_SCHEDULED:
        _notify_schedule(snapshot, event_type=NOTIFICATION_EVENT_DATE_SCHEDULED, actor_id=player_id)
    elif not payload.accept:
        _notify_schedule(snapshot, event_type=NOTIFICATION_EVENT_DATE_CANCELED, actor_id=player_id)
    return as_schedule_response(snapshot)


@router.delete(
    "/internal/ladder/groups/{group_id}/schedule",
    response_model=ScheduleResponse,
)
async def delete_schedule(group_id: UUID, request: Request) -> ScheduleResponse:
    _assert_internal_access(request)
    is_admin = is_admin_request(request)
    player_id = optional_player_id(request) if is_admin else require_player_id(request)
    try:
        async with SessionLocal.begin() as session:
            snapshot = await cancel_group_date(
                session,
                group_id=group_id,
                player_id=player_id,
                is_admin=is_admin,
            )
    except LadderError as exc:
        raise_for_ladder_error(exc)

    _notify_schedule(snapshot, event_type=NOTIFICATION_EVENT_DATE_CANCELED, actor_id=player_id)
    return as_schedule_response(snapshot)
