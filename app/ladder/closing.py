from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.locks import acquire_round_lock
from app.db.models.group_players import GroupPlayer
from app.db.models.groups import Group
from app.db.repo.group_players_repo import GroupPlayersRepo
from app.db.repo.groups_repo import GroupsRepo
from app.db.repo.matches_repo import MatchesRepo
from app.db.repo.rankings_repo import RankingsRepo
from app.db.repo.rounds_repo import RoundsRepo
from app.db.repo.streak_history_repo import StreakHistoryRepo
from app.ladder.constants import (
    GROUP_STATUS_PENDING,
    GROUP_STATUS_PLAYED,
    GROUP_STATUS_SKIPPED,
    POINTS_QUANT,
    REASON_GROUP_NOT_SKIPPED,
    REASON_NEXT_ROUND_STRUCTURED,
    REASON_NO_GROUPS,
    REASON_NO_MATCHES,
    REASON_ROUND_CLOSED,
    REASON_ROUND_NOT_CLOSED,
    WILDCARD_MODE_SUBSTITUTE,
)
from app.ladder.continuity.rules import compute_round_continuity
from app.ladder.continuity.service import ContinuityService, HistoryRow
from app.ladder.errors import IncompleteRound, StateConflict, ValidationError
from app.ladder.internal import (
    continuity_policy_from_tournament,
    load_group,
    load_round_for_update,
    load_tournament,
    set_record_from_match,
    wildcard_policy_from_tournament,
)
from app.ladder.rankings import refresh_ranking_snapshot
from app.ladder.scoring import PointPolicy
from app.ladder.standings import (
    compute_group_stats,
    ladder_movement,
    plan_positions,
    rank_group,
    target_group_index,
)
from app.ladder.types import (
    ContinuityOutcome,
    GroupCloseSummary,
    GroupStandingEntry,
    PlayerMovement,
    PlayerRoundStats,
    RankedPlayer,
    RoundCloseResult,
    RoundReopenResult,
    SetRecord,
    WildcardPolicy,
)
from app.ladder.wildcards.rules import mean_credit, substitute_credit

logger = structlog.get_logger("app.ladder.closing")


def _own_points_history(rows: Iterable[HistoryRow]) -> dict[UUID, list[Decimal]]:
    history: dict[UUID, list[Decimal]] = defaultdict(list)
    for player_id, _round_number, used_comodin, group_status, points, round_closed in rows:
        if round_closed and not used_comodin and group_status != GROUP_STATUS_SKIPPED:
            history[player_id].append(points)
    return dict(history)


def score_group(
    *,
    group_players: Sequence[GroupPlayer],
    sets: Sequence[SetRecord],
    policy: PointPolicy | str,
    wildcard_policy: WildcardPolicy,
    round_number: int,
    own_points_history: Mapping[UUID, Sequence[Decimal]],
    continuity: Mapping[UUID, ContinuityOutcome],
) -> dict[UUID, PlayerRoundStats]:
    """Round points for one group: match points, wildcard credit, continuity bonus."""
    stats = compute_group_stats(
        [group_player.player_id for group_player in group_players],
        sets,
        policy=policy,
    )
    regular_ids = [gp.player_id for gp in group_players if not gp.used_comodin]
    match_points = {player_id: stats[player_id].points for player_id in regular_ids}

    for group_player in group_players:
        if not group_player.used_comodin:
            continue
        player_id = group_player.player_id
        if group_player.comodin_mode == WILDCARD_MODE_SUBSTITUTE:
            stats[player_id].points = substitute_credit(
                wildcard_policy.substitute_credit_factor,
                substitute_points=stats[player_id].points,
            )
        else:
            stats[player_id] = PlayerRoundStats(
                player_id=player_id,
                points=mean_credit(
                    round_number=round_number,
                    groupmate_points=match_points.values(),
                    own_history_points=own_points_history.get(player_id, ()),
                ),
            )

    for player_id, outcome in continuity.items():
        if player_id in stats:
            stats[player_id].points += Decimal(outcome.bonus)

    for item in stats.values():
        item.points = item.points.quantize(POINTS_QUANT, rounding=ROUND_HALF_UP)
    return stats


def _standings(
    ranked: Sequence[RankedPlayer],
    group_players: Sequence[GroupPlayer],
) -> tuple[GroupStandingEntry, ...]:
    wildcard_ids = {gp.player_id for gp in group_players if gp.used_comodin}
    return tuple(
        GroupStandingEntry(
            player_id=item.player_id,
            rank=item.rank,
            points=item.stats.points,
            sets_won=item.stats.sets_won,
            game_diff=item.stats.game_diff,
            games_won=item.stats.games_won,
            head_to_head_wins=item.head_to_head_wins,
            used_wildcard=item.player_id in wildcard_ids,
        )
        for item in ranked
    )


async def _reassign_positions(
    session: AsyncSession,
    *,
    group_players: Sequence[GroupPlayer],
    ranked: Sequence[RankedPlayer],
) -> None:
    sentinel, final = plan_positions(
        {group_player.player_id: group_player.position for group_player in group_players},
        ranked,
    )
    row_ids = {group_player.player_id: group_player.id for group_player in group_players}
    for write in (*sentinel, *final):
        await GroupPlayersRepo.set_position(
            session,
            group_player_id=row_ids[write.player_id],
            position=write.position,
        )


async def _close_skipped_group(
    session: AsyncSession,
    *,
    tournament_id: UUID,
    round_id: UUID,
    group: Group,
    group_players: Sequence[GroupPlayer],
    now_utc: datetime,
) -> GroupCloseSummary:
    for group_player in group_players:
        group_player.points = Decimal("0")
        group_player.streak = 0
        group_player.locked = True
    await StreakHistoryRepo.create_many(
        session,
        entries=ContinuityService.build_broken_entries(
            tournament_id=tournament_id,
            round_id=round_id,
            group_id=group.id,
            player_ids=[group_player.player_id for group_player in group_players],
            now_utc=now_utc,
        ),
    )
    return GroupCloseSummary(
        group_id=group.id,
        group_number=group.number,
        status=GROUP_STATUS_SKIPPED,
        standings=(),
    )


async def close_round(
    session: AsyncSession,
    *,
    round_id: UUID,
    now_utc: datetime,
) -> RoundCloseResult:
    await acquire_round_lock(session, round_id=round_id)
    round_ = await load_round_for_update(session, round_id)
    if round_.is_closed:
        raise StateConflict(REASON_ROUND_CLOSED)

    groups = await GroupsRepo.list_for_round(session, round_id=round_id)
    if not groups:
        raise StateConflict(REASON_NO_GROUPS)
    unconfirmed_total = await MatchesRepo.count_unconfirmed_for_round(
        session,
        round_id=round_id,
        excluded_statuses=(GROUP_STATUS_SKIPPED,),
    )
    if unconfirmed_total > 0:
        raise IncompleteRound(unconfirmed_total=unconfirmed_total)

    tournament = await load_tournament(session, round_.tournament_id)
    policy = PointPolicy(tournament.point_policy)
    wildcard_policy = wildcard_policy_from_tournament(tournament)
    continuity_policy = continuity_policy_from_tournament(tournament)

    history_rows = await GroupPlayersRepo.list_history_for_tournament(
        session,
        tournament_id=tournament.id,
        before_round_number=round_.number,
    )
    participation = ContinuityService.participation_from_rows(history_rows)
    own_points_history = _own_points_history(history_rows)

    summaries: list[GroupCloseSummary] = []
    movements: list[PlayerMovement] = []
    players_scored = 0
    bonuses_awarded = 0
    groups_skipped = 0
    for group_index, group in enumerate(groups):
        group_players = await GroupPlayersRepo.list_for_group_for_update(
            session,
            group_id=group.id,
        )
        if group.status == GROUP_STATUS_SKIPPED:
            groups_skipped += 1
            summaries.append(
                await _close_skipped_group(
                    session,
                    tournament_id=tournament.id,
                    round_id=round_id,
                    group=group,
                    group_players=group_players,
                    now_utc=now_utc,
                )
            )
            movements.extend(
                PlayerMovement(
                    player_id=group_player.player_id,
                    from_group_index=group_index,
                    target_group_index=group_index,
                    level_delta=0,
                )
                for group_player in group_players
            )
            continue

        matches = await MatchesRepo.list_for_group(session, group_id=group.id)
        if not matches:
            raise StateConflict(REASON_NO_MATCHES)
        sets = [set_record_from_match(match, round_number=round_.number) for match in matches]
        continuity = compute_round_continuity(
            continuity_policy,
            round_number=round_.number,
            participants=[gp.player_id for gp in group_players if not gp.used_comodin],
            history=participation,
        )
        stats = score_group(
            group_players=group_players,
            sets=sets,
            policy=policy,
            wildcard_policy=wildcard_policy,
            round_number=round_.number,
            own_points_history=own_points_history,
            continuity=continuity,
        )
        ranked = rank_group(stats, sets)

        for group_player in group_players:
            group_player.points = stats[group_player.player_id].points
            outcome = continuity.get(group_player.player_id)
            group_player.streak = outcome.streak if outcome is not None else 0
        group.status = GROUP_STATUS_PLAYED
        await session.flush()
        await _reassign_positions(session, group_players=group_players, ranked=ranked)

        bonus_entries = ContinuityService.build_bonus_entries(
            tournament_id=tournament.id,
            round_id=round_id,
            group_id=group.id,
            outcomes=continuity.values(),
            now_utc=now_utc,
        )
        await StreakHistoryRepo.create_many(session, entries=bonus_entries)

        players_scored += len(group_players)
        bonuses_awarded += len(bonus_entries)
        summaries.append(
            GroupCloseSummary(
                group_id=group.id,
                group_number=group.number,
                status=GROUP_STATUS_PLAYED,
                standings=_standings(ranked, group_players),
            )
        )
        movements.extend(
            PlayerMovement(
                player_id=item.player_id,
                from_group_index=group_index,
                target_group_index=target_group_index(
                    rank=item.rank,
                    group_index=group_index,
                    groups_total=len(groups),
                ),
                level_delta=ladder_movement(
                    rank=item.rank,
                    group_index=group_index,
                    groups_total=len(groups),
                ),
            )
            for item in ranked
        )

    round_.is_closed = True
    round_.closed_at = now_utc
    await session.flush()
    await refresh_ranking_snapshot(
        session,
        tournament_id=tournament.id,
        round_number=round_.number,
        now_utc=now_utc,
    )

    result = RoundCloseResult(
        round_id=round_id,
        round_number=round_.number,
        groups_played=len(groups) - groups_skipped,
        groups_skipped=groups_skipped,
        players_scored=players_scored,
        continuity_bonuses_awarded=bonuses_awarded,
        groups=tuple(summaries),
        movements=tuple(movements),
    )
    logger.info(
        "round_closed",
        round_id=str(round_id),
        round_number=round_.number,
        groups_played=result.groups_played,
        groups_skipped=result.groups_skipped,
        players_scored=result.players_scored,
        continuity_bonuses_awarded=result.continuity_bonuses_awarded,
    )
    return result


async def reopen_round(session: AsyncSession, *, round_id: UUID) -> RoundReopenResult:
    """Undo a close so results can be corrected; the next close recomputes everything."""
    await acquire_round_lock(session, round_id=round_id)
    round_ = await load_round_for_update(session, round_id)
    if not round_.is_closed:
        raise StateConflict(REASON_ROUND_NOT_CLOSED)

    next_round = await RoundsRepo.get_by_number(
        session,
        tournament_id=round_.tournament_id,
        number=round_.number + 1,
    )
    if next_round is not None and await GroupsRepo.count_for_round(session, round_id=next_round.id):
        raise StateConflict(REASON_NEXT_ROUND_STRUCTURED)

    streak_entries_removed = await StreakHistoryRepo.delete_for_round(session, round_id=round_id)
    await RankingsRepo.delete_from_round(
        session,
        tournament_id=round_.tournament_id,
        round_number=round_.number,
    )

    groups_reset = 0
    for group in await GroupsRepo.list_for_round(session, round_id=round_id):
        if group.status == GROUP_STATUS_PLAYED:
            group.status = GROUP_STATUS_PENDING
            groups_reset += 1
    for group_player in await GroupPlayersRepo.list_for_round(session, round_id=round_id):
        group_player.points = Decimal("0")
        group_player.streak = 0

    round_.is_closed = False
    round_.closed_at = None
    await session.flush()

    logger.info(
        "round_reopened",
        round_id=str(round_id),
        round_number=round_.number,
        streak_entries_removed=streak_entries_removed,
        groups_reset=groups_reset,
    )
    return RoundReopenResult(
        round_id=round_id,
        round_number=round_.number,
        streak_entries_removed=streak_entries_removed,
        groups_reset=groups_reset,
    )


async def skip_group(
    session: AsyncSession,
    *,
    group_id: UUID,
    reason: str,
) -> GroupCloseSummary:
    if not reason or not reason.strip():
        raise ValidationError("reason", "REQUIRED")
    group = await load_group(session, group_id)
    await acquire_round_lock(session, round_id=group.round_id)
    round_ = await load_round_for_update(session, group.round_id)
    if round_.is_closed:
        raise StateConflict(REASON_ROUND_CLOSED)

    group.status = GROUP_STATUS_SKIPPED
    group.skip_reason = reason.strip()
    group_players = await GroupPlayersRepo.list_for_group_for_update(session, group_id=group_id)
    for group_player in group_players:
        group_player.locked = True
        group_player.points = Decimal("0")
        group_player.streak = 0
    await session.flush()

    logger.info("group_skipped", group_id=str(group_id), round_id=str(group.round_id))
    return GroupCloseSummary(
        group_id=group.id,
        group_number=group.number,
        status=group.status,
        standings=(),
    )


async def unskip_group(session: AsyncSession, *, group_id: UUID) -> GroupCloseSummary:
    group = await load_group(session, group_id)
    await acquire_round_lock(session, round_id=group.round_id)
    round_ = await load_round_for_update(session, group.round_id)
    if round_.is_closed:
        raise StateConflict(REASON_ROUND_CLOSED)
    if group.status != GROUP_STATUS_SKIPPED:
        raise StateConflict(REASON_GROUP_NOT_SKIPPED)

    group.status = GROUP_STATUS_PENDING
    group.skip_reason = None
    group_players = await GroupPlayersRepo.list_for_group_for_update(session, group_id=group_id)
    for group_player in group_players:
        group_player.locked = False
    await session.flush()

    logger.info("group_unskipped", group_id=str(group_id), round_id=str(group.round_id))
    return GroupCloseSummary(
        group_id=group.id,
        group_number=group.number,
        status=group.status,
        standings=(),
    )


async def preview_group_points(session: AsyncSession, *, group_id: UUID) -> GroupCloseSummary:
    """Standings of an open group from its confirmed sets, without continuity bonus."""
    group = await load_group(session, group_id)
    round_ = await RoundsRepo.get_by_id(session, group.round_id)
    if round_ is None:
        raise StateConflict(REASON_NO_GROUPS)
    tournament = await load_tournament(session, round_.tournament_id)

    group_players = await GroupPlayersRepo.list_for_group(session, group_id=group_id)
    matches = await MatchesRepo.list_for_group(session, group_id=group_id)
    sets = [
        set_record_from_match(match, round_number=round_.number)
        for match in matches
        if match.is_confirmed
    ]
    history_rows = await GroupPlayersRepo.list_history_for_tournament(
        session,
        tournament_id=tournament.id,
        before_round_number=round_.number,
    )
    stats = score_group(
        group_players=group_players,
        sets=sets,
        policy=PointPolicy(tournament.point_policy),
        wildcard_policy=wildcard_policy_from_tournament(tournament),
        round_number=round_.number,
        own_points_history=_own_points_history(history_rows),
        continuity={},
    )
    return GroupCloseSummary(
        group_id=group.id,
        group_number=group.number,
        status=group.status,
        standings=_standings(rank_group(stats, sets), group_players),
    )
