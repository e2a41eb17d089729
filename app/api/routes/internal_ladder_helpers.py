from __future__ import annotations

from typing import NoReturn
from uuid import UUID

import structlog
from fastapi import HTTPException, Request

from app.ladder.errors import (
    IncompleteRound,
    IntegrityFailure,
    InvalidPartition,
    LadderError,
    NotFoundError,
    PolicyViolation,
    StateConflict,
    ValidationError,
)
from app.ladder.types import (
    GroupCloseSummary,
    MatchSnapshot,
    RankingEntry,
    ScheduleSnapshot,
)
from app.services.internal_auth import internal_access_denial

from .internal_ladder_models import (
    GroupStandingResponse,
    GroupSummaryResponse,
    MatchResponse,
    RankingEntryResponse,
    ScheduleResponse,
)

logger = structlog.get_logger("app.api.routes.internal_ladder")

PLAYER_ID_HEADER = "X-Player-Id"
ADMIN_HEADER = "X-Admin"
_TRUTHY = {"1", "true", "yes"}


def assert_internal_access(request: Request, *, settings) -> None:
    reason, client_ip = internal_access_denial(
        request,
        expected_token=settings.internal_api_token,
        allowlist=settings.internal_api_allowlist,
        trusted_proxies=getattr(settings, "internal_api_trusted_proxies", ""),
    )
    if reason is not None:
        logger.warning("internal_ladder_auth_failed", reason=reason, client_ip=client_ip)
        raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})


def is_admin_request(request: Request) -> bool:
    return request.headers.get(ADMIN_HEADER, "").strip().lower() in _TRUTHY


def require_admin(request: Request) -> None:
    if not is_admin_request(request):
        raise HTTPException(status_code=403, detail={"code": "E_ADMIN_REQUIRED"})


def optional_player_id(request: Request) -> UUID | None:
    raw = request.headers.get(PLAYER_ID_HEADER)
    if raw is None or not raw.strip():
        return None
    try:
        return UUID(raw.strip())
    except ValueError as exc:
        raise HTTPException(status_code=422, detail={"code": "E_PLAYER_ID_INVALID"}) from exc


def require_player_id(request: Request) -> UUID:
    player_id = optional_player_id(request)
    if player_id is None:
        raise HTTPException(status_code=401, detail={"code": "E_PLAYER_ID_REQUIRED"})
    return player_id


def raise_for_ladder_error(exc: LadderError) -> NoReturn:
    """Translate a domain error into the HTTP error envelope."""
    if isinstance(exc, IncompleteRound):
        raise HTTPException(
            status_code=409,
            detail={
                "code": "E_INCOMPLETE_ROUND",
                "reason": exc.reason,
                "unconfirmed_total": exc.unconfirmed_total,
            },
        ) from exc
    if isinstance(exc, InvalidPartition):
        raise HTTPException(
            status_code=422,
            detail={
                "code": "E_INVALID_PARTITION",
                "players_total": exc.players_total,
                "group_size": exc.group_size,
            },
        ) from exc
    if isinstance(exc, ValidationError):
        raise HTTPException(
            status_code=422,
            detail={"code": "E_VALIDATION", "field": exc.field, "reason": exc.reason},
        ) from exc
    if isinstance(exc, PolicyViolation):
        raise HTTPException(
            status_code=409,
            detail={"code": "E_POLICY_VIOLATION", "reason": exc.reason},
        ) from exc
    if isinstance(exc, StateConflict):
        raise HTTPException(
            status_code=409,
            detail={"code": "E_STATE_CONFLICT", "reason": exc.reason},
        ) from exc
    if isinstance(exc, IntegrityFailure):
        logger.warning("internal_ladder_integrity_failure", reason=exc.reason)
        raise HTTPException(
            status_code=503,
            detail={"code": "E_INTEGRITY_FAILURE", "reason": exc.reason},
        ) from exc
    if isinstance(exc, NotFoundError):
        raise HTTPException(
            status_code=404,
            detail={"code": "E_NOT_FOUND", "entity": exc.entity},
        ) from exc
    raise exc


def as_match_response(snapshot: MatchSnapshot) -> MatchResponse:
    return MatchResponse(
        match_id=snapshot.match_id,
        group_id=snapshot.group_id,
        set_number=snapshot.set_number,
        team1=list(snapshot.team1),
        team2=list(snapshot.team2),
        team1_games=snapshot.team1_games,
        team2_games=snapshot.team2_games,
        tiebreak_score=snapshot.tiebreak_score,
        is_confirmed=snapshot.is_confirmed,
        reported_by_id=snapshot.reported_by_id,
        confirmed_by_id=snapshot.confirmed_by_id,
        status=snapshot.status,
        winner=snapshot.winner,
    )


def as_group_summary(summary: GroupCloseSummary) -> GroupSummaryResponse:
    return GroupSummaryResponse(
        group_id=summary.group_id,
        group_number=summary.group_number,
        status=summary.status,
        standings=[
            GroupStandingResponse(
                player_id=entry.player_id,
                rank=entry.rank,
                points=entry.points,
                sets_won=entry.sets_won,
                game_diff=entry.game_diff,
                games_won=entry.games_won,
                head_to_head_wins=entry.head_to_head_wins,
                used_wildcard=entry.used_wildcard,
            )
            for entry in summary.standings
        ],
    )


def as_ranking_entries(entries: tuple[RankingEntry, ...]) -> list[RankingEntryResponse]:
    return [
        RankingEntryResponse(
            player_id=entry.player_id,
            name=entry.name,
            position=entry.position,
            total_points=entry.total_points,
            average_points=entry.average_points,
            rounds_played=entry.rounds_played,
        )
        for entry in entries
    ]


def as_schedule_response(snapshot: ScheduleSnapshot) -> ScheduleResponse:
    return ScheduleResponse(
        group_id=snapshot.group_id,
        status=snapshot.status,
        proposed_date=snapshot.proposed_date,
        proposed_by_id=snapshot.proposed_by_id,
        accepted_date=snapshot.accepted_date,
        accepted_by=list(snapshot.accepted_by),
        players_total=snapshot.players_total,
    )
