from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.db.locks import acquire_round_lock
from app.db.models.group_players import GroupPlayer
from app.db.models.rounds import Round
from app.db.models.tournament_players import TournamentPlayer
from app.db.repo.group_players_repo import GroupPlayersRepo
from app.db.repo.groups_repo import GroupsRepo
from app.db.repo.matches_repo import MatchesRepo
from app.db.repo.players_repo import PlayersRepo
from app.db.repo.rounds_repo import RoundsRepo
from app.db.repo.tournament_players_repo import TournamentPlayersRepo
from app.ladder.constants import (
    REASON_ROUND_CLOSED,
    REASON_WILDCARD_NOT_USED,
    WILDCARD_MODE_MEAN,
    WILDCARD_MODE_SUBSTITUTE,
    WILDCARD_MODES,
)
from app.ladder.errors import NotFoundError, PolicyViolation, StateConflict, ValidationError
from app.ladder.internal import (
    load_round_for_update,
    load_tournament,
    wildcard_policy_from_tournament,
)
from app.ladder.types import (
    RosterEntry,
    WildcardApplyResult,
    WildcardPolicy,
    WildcardRevokeResult,
    WildcardStatus,
)
from app.ladder.wildcards.rules import (
    apply_restriction,
    remaining_wildcards,
    revoke_restriction,
    substitute_levels,
    substitute_restriction,
)

logger = structlog.get_logger("app.ladder.wildcards")


def _resolve_mode(policy: WildcardPolicy, mode: str | None) -> str:
    if mode is None:
        return WILDCARD_MODE_MEAN if policy.mean_enabled else WILDCARD_MODE_SUBSTITUTE
    normalized = mode.strip().upper()
    if normalized not in WILDCARD_MODES:
        raise ValidationError("mode", "UNKNOWN_MODE")
    return normalized


def _raise_for_reason(reason: str) -> None:
    if reason == REASON_WILDCARD_NOT_USED:
        raise StateConflict(reason)
    raise PolicyViolation(reason)


async def _get_round(session: AsyncSession, round_id: UUID) -> Round:
    round_ = await RoundsRepo.get_by_id(session, round_id)
    if round_ is None:
        raise NotFoundError("round")
    return round_


async def _require_group_player(
    session: AsyncSession,
    *,
    round_id: UUID,
    player_id: UUID,
    for_update: bool = False,
) -> GroupPlayer:
    loader = (
        GroupPlayersRepo.get_for_round_player_for_update
        if for_update
        else GroupPlayersRepo.get_for_round_player
    )
    group_player = await loader(session, round_id=round_id, player_id=player_id)
    if group_player is None:
        raise ValidationError("player_id", "NOT_IN_ROUND")
    return group_player


async def _require_tournament_player_for_update(
    session: AsyncSession,
    *,
    tournament_id: UUID,
    player_id: UUID,
    field: str = "player_id",
) -> TournamentPlayer:
    tournament_player = await TournamentPlayersRepo.get_for_update(
        session,
        tournament_id=tournament_id,
        player_id=player_id,
    )
    if tournament_player is None:
        raise ValidationError(field, "NOT_A_TOURNAMENT_PLAYER")
    return tournament_player


async def _apply_reason(
    session: AsyncSession,
    *,
    policy: WildcardPolicy,
    mode: str | None,
    round_: Round,
    group_player: GroupPlayer,
    comodines_used: int,
    now_utc: datetime,
) -> str | None:
    matches = await MatchesRepo.list_for_player_in_round(
        session,
        round_id=round_.id,
        player_id=group_player.player_id,
    )
    return apply_restriction(
        policy,
        mode=mode,
        round_closed=round_.is_closed,
        group_locked=group_player.locked,
        already_used=group_player.used_comodin,
        comodines_used=comodines_used,
        has_confirmed_matches=any(match.is_confirmed for match in matches),
        accepted_dates=[match.accepted_date for match in matches],
        now_utc=now_utc,
        window_hours=get_settings().wildcard_revoke_window_hours,
    )


async def _revoke_reason(
    session: AsyncSession,
    *,
    round_: Round,
    group_player: GroupPlayer,
    now_utc: datetime,
    bypass_freeze_window: bool,
) -> str | None:
    matches = await MatchesRepo.list_for_player_in_round(
        session,
        round_id=round_.id,
        player_id=group_player.player_id,
    )
    return revoke_restriction(
        now_utc=now_utc,
        round_closed=round_.is_closed,
        used=group_player.used_comodin,
        has_confirmed_matches=any(match.is_confirmed for match in matches),
        accepted_dates=[match.accepted_date for match in matches],
        window_hours=get_settings().wildcard_revoke_window_hours,
        bypass_freeze_window=bypass_freeze_window,
    )


async def apply_wildcard(
    session: AsyncSession,
    *,
    player_id: UUID,
    round_id: UUID,
    mode: str | None,
    now_utc: datetime,
    substitute_player_id: UUID | None = None,
    reason: str | None = None,
) -> WildcardApplyResult:
    await acquire_round_lock(session, round_id=round_id)
    round_ = await load_round_for_update(session, round_id)
    tournament = await load_tournament(session, round_.tournament_id)
    policy = wildcard_policy_from_tournament(tournament)
    resolved_mode = _resolve_mode(policy, mode)

    group_player = await _require_group_player(
        session,
        round_id=round_id,
        player_id=player_id,
        for_update=True,
    )
    tournament_player = await _require_tournament_player_for_update(
        session,
        tournament_id=tournament.id,
        player_id=player_id,
    )
    restriction = await _apply_reason(
        session,
        policy=policy,
        mode=resolved_mode,
        round_=round_,
        group_player=group_player,
        comodines_used=tournament_player.comodines_used,
        now_utc=now_utc,
    )
    if restriction is not None:
        _raise_for_reason(restriction)

    substitute: TournamentPlayer | None = None
    if resolved_mode == WILDCARD_MODE_SUBSTITUTE:
        if substitute_player_id is None:
            raise ValidationError("substitute_player_id", "REQUIRED_FOR_SUBSTITUTE_MODE")
        substitute = await _require_tournament_player_for_update(
            session,
            tournament_id=tournament.id,
            player_id=substitute_player_id,
            field="substitute_player_id",
        )
        substitute_slot = await GroupPlayersRepo.get_for_round_player(
            session,
            round_id=round_id,
            player_id=substitute_player_id,
        )
        level_by_group = {
            group.id: group.level
            for group in await GroupsRepo.list_for_round(session, round_id=round_id)
        }
        allowed_levels = substitute_levels(
            level_by_group[group_player.group_id],
            level_by_group.values(),
        )
        restriction = substitute_restriction(
            policy,
            is_self=substitute_player_id == player_id,
            in_round=substitute_slot is not None,
            on_wildcard=substitute_slot is not None and substitute_slot.used_comodin,
            in_same_group=(
                substitute_slot is not None and substitute_slot.group_id == group_player.group_id
            ),
            level_allowed=(
                substitute_slot is not None
                and level_by_group[substitute_slot.group_id] in allowed_levels
            ),
            already_substituting=await GroupPlayersRepo.is_substituting_in_round(
                session,
                round_id=round_id,
                substitute_player_id=substitute_player_id,
            ),
            substitute_appearances=substitute.substitute_appearances,
        )
        if restriction is not None:
            _raise_for_reason(restriction)
        substitute.substitute_appearances += 1

    tournament_player.comodines_used += 1
    group_player.used_comodin = True
    group_player.comodin_mode = resolved_mode
    group_player.comodin_reason = reason.strip() if reason and reason.strip() else None
    group_player.comodin_at = now_utc
    group_player.substitute_player_id = substitute.player_id if substitute is not None else None
    await session.flush()

    logger.info(
        "wildcard_applied",
        player_id=str(player_id),
        round_id=str(round_id),
        mode=resolved_mode,
        substitute_player_id=str(substitute_player_id) if substitute is not None else None,
        comodines_used=tournament_player.comodines_used,
    )
    return WildcardApplyResult(
        player_id=player_id,
        round_id=round_id,
        mode=resolved_mode,
        substitute_player_id=group_player.substitute_player_id,
        comodines_used=tournament_player.comodines_used,
        comodines_remaining=remaining_wildcards(
            policy,
            comodines_used=tournament_player.comodines_used,
        ),
    )


async def revoke_wildcard(
    session: AsyncSession,
    *,
    player_id: UUID,
    round_id: UUID,
    now_utc: datetime,
    bypass_freeze_window: bool = False,
) -> WildcardRevokeResult:
    """Undo a wildcard and give back the counters it consumed.

    `bypass_freeze_window` skips the confirmed-match and accepted-date checks.
    """
    await acquire_round_lock(session, round_id=round_id)
    round_ = await load_round_for_update(session, round_id)
    group_player = await _require_group_player(
        session,
        round_id=round_id,
        player_id=player_id,
        for_update=True,
    )
    restriction = await _revoke_reason(
        session,
        round_=round_,
        group_player=group_player,
        now_utc=now_utc,
        bypass_freeze_window=bypass_freeze_window,
    )
    if restriction is not None:
        _raise_for_reason(restriction)

    tournament_player = await _require_tournament_player_for_update(
        session,
        tournament_id=round_.tournament_id,
        player_id=player_id,
    )
    tournament_player.comodines_used = max(0, tournament_player.comodines_used - 1)

    substitute_player_id = group_player.substitute_player_id
    if substitute_player_id is not None:
        substitute = await TournamentPlayersRepo.get_for_update(
            session,
            tournament_id=round_.tournament_id,
            player_id=substitute_player_id,
        )
        if substitute is not None:
            substitute.substitute_appearances = max(0, substitute.substitute_appearances - 1)

    group_player.used_comodin = False
    group_player.comodin_mode = None
    group_player.comodin_reason = None
    group_player.comodin_at = None
    group_player.substitute_player_id = None
    group_player.points = Decimal("0")
    await session.flush()

    logger.info(
        "wildcard_revoked",
        player_id=str(player_id),
        round_id=str(round_id),
        freeze_window_bypassed=bypass_freeze_window,
        substitute_player_id=str(substitute_player_id) if substitute_player_id else None,
        comodines_used=tournament_player.comodines_used,
    )
    return WildcardRevokeResult(
        player_id=player_id,
        round_id=round_id,
        freeze_window_bypassed=bypass_freeze_window,
        comodines_used=tournament_player.comodines_used,
        substitute_player_id=substitute_player_id,
    )


async def get_wildcard_status(
    session: AsyncSession,
    *,
    player_id: UUID,
    round_id: UUID,
    now_utc: datetime,
) -> WildcardStatus:
    round_ = await _get_round(session, round_id)
    tournament = await load_tournament(session, round_.tournament_id)
    policy = wildcard_policy_from_tournament(tournament)
    group_player = await _require_group_player(session, round_id=round_id, player_id=player_id)
    tournament_player = await TournamentPlayersRepo.get(
        session,
        tournament_id=tournament.id,
        player_id=player_id,
    )
    comodines_used = tournament_player.comodines_used if tournament_player is not None else 0

    can_use = False
    can_revoke = False
    if group_player.used_comodin:
        restriction = await _revoke_reason(
            session,
            round_=round_,
            group_player=group_player,
            now_utc=now_utc,
            bypass_freeze_window=False,
        )
        can_revoke = restriction is None
    else:
        restriction = await _apply_reason(
            session,
            policy=policy,
            mode=None,
            round_=round_,
            group_player=group_player,
            comodines_used=comodines_used,
            now_utc=now_utc,
        )
        can_use = restriction is None

    return WildcardStatus(
        player_id=player_id,
        round_id=round_id,
        used=group_player.used_comodin,
        mode=group_player.comodin_mode,
        substitute_player_id=group_player.substitute_player_id,
        comodines_used=comodines_used,
        comodines_remaining=remaining_wildcards(policy, comodines_used=comodines_used),
        can_use=can_use,
        can_revoke=can_revoke,
        restriction_reason=restriction,
        mean_enabled=policy.mean_enabled,
        substitute_enabled=policy.substitute_enabled,
    )


async def list_eligible_substitutes(
    session: AsyncSession,
    *,
    player_id: UUID,
    round_id: UUID,
) -> list[RosterEntry]:
    """Players who may stand in for `player_id`.

    Candidates come from lower groups; the bottom group draws from the group
    right above it.
    """
    round_ = await _get_round(session, round_id)
    if round_.is_closed:
        raise StateConflict(REASON_ROUND_CLOSED)
    tournament = await load_tournament(session, round_.tournament_id)
    policy = wildcard_policy_from_tournament(tournament)
    group_player = await _require_group_player(session, round_id=round_id, player_id=player_id)
    if group_player.used_comodin:
        return []

    groups = await GroupsRepo.list_for_round(session, round_id=round_id)
    level_by_group = {group.id: group.level for group in groups}
    candidate_levels = substitute_levels(
        level_by_group[group_player.group_id],
        level_by_group.values(),
    )

    counters = {
        tournament_player.player_id: tournament_player
        for tournament_player in await TournamentPlayersRepo.list_for_tournament(
            session,
            tournament_id=tournament.id,
        )
    }
    slots = await GroupPlayersRepo.list_for_round(session, round_id=round_id)
    busy_ids = {
        slot.substitute_player_id for slot in slots if slot.substitute_player_id is not None
    }
    candidate_ids = [
        slot.player_id
        for slot in slots
        if level_by_group[slot.group_id] in candidate_levels
        and not slot.used_comodin
        and slot.player_id not in busy_ids
        and slot.player_id in counters
        and counters[slot.player_id].comodines_used < policy.max_per_player
        and counters[slot.player_id].substitute_appearances < policy.substitute_max_appearances
    ]
    names = await PlayersRepo.get_names_by_ids(session, player_ids=candidate_ids)
    entries = [
        RosterEntry(player_id=candidate_id, name=names.get(candidate_id, ""))
        for candidate_id in candidate_ids
    ]
    return sorted(entries, key=lambda entry: (entry.name.casefold(), entry.player_id))
