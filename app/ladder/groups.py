from __future__ import annotations

from collections.abc import Sequence
from datetime import timedelta
from uuid import UUID, uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.locks import acquire_round_lock
from app.db.models.group_players import GroupPlayer
from app.db.models.groups import Group
from app.db.models.matches import Match
from app.db.models.rounds import Round
from app.db.repo.group_players_repo import GroupPlayersRepo
from app.db.repo.groups_repo import GroupsRepo
from app.db.repo.matches_repo import MatchesRepo
from app.db.repo.rounds_repo import RoundsRepo
from app.db.repo.tournament_players_repo import TournamentPlayersRepo
from app.ladder.constants import (
    GROUP_STATUS_PENDING,
    GROUP_STATUS_SKIPPED,
    LADDER_GROUP_SIZE,
    MATCH_STATUS_PENDING,
    REASON_GROUP_SIZE_MISMATCH,
    REASON_GROUPS_EXIST,
    REASON_LAST_ROUND,
    REASON_MATCHES_EXIST,
    REASON_NEXT_ROUND_STRUCTURED,
    REASON_ROUND_CLOSED,
    REASON_ROUND_NOT_CLOSED,
    STRATEGIES,
    STRATEGY_LADDER,
    STRATEGY_MANUAL,
    STRATEGY_RANDOM,
    STRATEGY_SEEDED,
)
from app.ladder.errors import StateConflict, ValidationError
from app.ladder.internal import (
    build_match_snapshot,
    load_group,
    load_round_for_update,
    load_tournament,
)
from app.ladder.rankings import get_rankings
from app.ladder.standings import redistribute
from app.ladder.structuring import (
    build_rotation,
    partition_manual,
    partition_random,
    partition_seeded,
)
from app.ladder.types import MatchSnapshot, MovementCandidate, StructureResult

logger = structlog.get_logger("app.ladder.groups")


def _build_rotation_matches(group_id: UUID, players_by_position: Sequence[UUID]) -> list[Match]:
    return [
        Match(
            id=uuid4(),
            group_id=group_id,
            set_number=rotation_set.set_number,
            team1_player1_id=rotation_set.team1[0],
            team1_player2_id=rotation_set.team1[1],
            team2_player1_id=rotation_set.team2[0],
            team2_player2_id=rotation_set.team2[1],
            team1_games=None,
            team2_games=None,
            tiebreak_score=None,
            is_confirmed=False,
            status=MATCH_STATUS_PENDING,
            accepted_by=[],
        )
        for rotation_set in build_rotation(players_by_position)
    ]


async def _create_round_layout(
    session: AsyncSession,
    *,
    round_id: UUID,
    layout: Sequence[Sequence[UUID]],
) -> int:
    groups = [
        Group(
            id=uuid4(),
            round_id=round_id,
            number=index + 1,
            level=index + 1,
            status=GROUP_STATUS_PENDING,
            skip_reason=None,
        )
        for index in range(len(layout))
    ]
    await GroupsRepo.create_many(session, groups=groups)

    group_players: list[GroupPlayer] = []
    matches: list[Match] = []
    for group, player_ids in zip(groups, layout, strict=True):
        group_players.extend(
            GroupPlayer(
                id=uuid4(),
                group_id=group.id,
                player_id=player_id,
                position=position,
                points=0,
                streak=0,
                used_comodin=False,
                locked=False,
            )
            for position, player_id in enumerate(player_ids, start=1)
        )
        if len(player_ids) == LADDER_GROUP_SIZE:
            matches.extend(_build_rotation_matches(group.id, player_ids))

    await GroupPlayersRepo.create_many(session, group_players=group_players)
    await MatchesRepo.create_many(session, matches=matches)
    return len(matches)


async def _seeded_order(
    session: AsyncSession,
    *,
    round_: Round,
    eligible_ids: Sequence[UUID],
) -> list[UUID]:
    if round_.number <= 1:
        return list(eligible_ids)

    rankings = await get_rankings(
        session,
        tournament_id=round_.tournament_id,
        reference_round=round_.number - 1,
    )
    eligible = set(eligible_ids)
    ranked = [entry.player_id for entry in rankings.official if entry.player_id in eligible]
    seen = set(ranked)
    ranked.extend(player_id for player_id in eligible_ids if player_id not in seen)
    return ranked


async def _release_wildcards(session: AsyncSession, *, tournament_id: UUID, round_id: UUID) -> int:
    """Give back the counters consumed by wildcards on a layout about to be replaced."""
    released = 0
    for slot in await GroupPlayersRepo.list_for_round(session, round_id=round_id):
        if not slot.used_comodin:
            continue
        owner = await TournamentPlayersRepo.get_for_update(
            session,
            tournament_id=tournament_id,
            player_id=slot.player_id,
        )
        if owner is not None:
            owner.comodines_used = max(0, owner.comodines_used - 1)
        if slot.substitute_player_id is not None:
            substitute = await TournamentPlayersRepo.get_for_update(
                session,
                tournament_id=tournament_id,
                player_id=slot.substitute_player_id,
            )
            if substitute is not None:
                substitute.substitute_appearances = max(0, substitute.substitute_appearances - 1)
        released += 1
    if released:
        await session.flush()
    return released


async def structure_groups(
    session: AsyncSession,
    *,
    round_id: UUID,
    strategy: str,
    group_size: int = LADDER_GROUP_SIZE,
    force: bool = False,
    manual_groups: Sequence[Sequence[UUID]] | None = None,
    seed: int | None = None,
) -> StructureResult:
    await acquire_round_lock(session, round_id=round_id)
    round_ = await load_round_for_update(session, round_id)
    if round_.is_closed:
        raise StateConflict(REASON_ROUND_CLOSED)
    if strategy not in STRATEGIES:
        raise ValidationError("strategy", "UNKNOWN_STRATEGY")

    existing_total = await GroupsRepo.count_for_round(session, round_id=round_id)
    if existing_total > 0 and not force:
        raise StateConflict(REASON_GROUPS_EXIST)

    eligible_ids = await TournamentPlayersRepo.list_eligible_ids(
        session,
        tournament_id=round_.tournament_id,
        round_number=round_.number,
    )
    if strategy == STRATEGY_RANDOM:
        layout = partition_random(eligible_ids, group_size=group_size, seed=seed)
    elif strategy == STRATEGY_SEEDED:
        ranked = await _seeded_order(session, round_=round_, eligible_ids=eligible_ids)
        layout = partition_seeded(ranked, group_size=group_size)
    else:
        if manual_groups is None:
            raise ValidationError("groups", "REQUIRED_FOR_MANUAL_STRATEGY")
        layout = partition_manual(manual_groups, eligible_ids=eligible_ids, group_size=group_size)

    wildcards_released = 0
    if existing_total > 0:
        wildcards_released = await _release_wildcards(
            session,
            tournament_id=round_.tournament_id,
            round_id=round_id,
        )
        await GroupsRepo.delete_for_round(session, round_id=round_id)
    matches_total = await _create_round_layout(session, round_id=round_id, layout=layout)

    players_total = sum(len(group) for group in layout)
    logger.info(
        "round_groups_structured",
        round_id=str(round_id),
        strategy=strategy,
        groups_total=len(layout),
        players_total=players_total,
        replaced_groups_total=existing_total,
        wildcards_released=wildcards_released,
    )
    return StructureResult(
        round_id=round_id,
        strategy=strategy,
        groups_total=len(layout),
        players_total=players_total,
        matches_total=matches_total,
    )


async def generate_rotation(
    session: AsyncSession,
    *,
    group_id: UUID,
    overwrite: bool = False,
) -> list[MatchSnapshot]:
    group = await load_group(session, group_id)
    await acquire_round_lock(session, round_id=group.round_id)
    round_ = await load_round_for_update(session, group.round_id)
    if round_.is_closed:
        raise StateConflict(REASON_ROUND_CLOSED)

    existing_total = await MatchesRepo.count_for_group(session, group_id=group_id)
    if existing_total > 0 and not overwrite:
        raise StateConflict(REASON_MATCHES_EXIST)

    group_players = await GroupPlayersRepo.list_for_group(session, group_id=group_id)
    if len(group_players) != LADDER_GROUP_SIZE:
        raise StateConflict(REASON_GROUP_SIZE_MISMATCH)

    if existing_total > 0:
        await MatchesRepo.delete_for_group(session, group_id=group_id)
    matches = await MatchesRepo.create_many(
        session,
        matches=_build_rotation_matches(
            group_id,
            [group_player.player_id for group_player in group_players],
        ),
    )
    logger.info(
        "group_rotation_generated",
        group_id=str(group_id),
        matches_total=len(matches),
        replaced_matches_total=existing_total,
    )
    return [build_match_snapshot(match) for match in matches]


async def generate_next_round(session: AsyncSession, *, round_id: UUID) -> StructureResult:
    """Lay out the following round from a closed round's final positions."""
    await acquire_round_lock(session, round_id=round_id)
    round_ = await load_round_for_update(session, round_id)
    if not round_.is_closed:
        raise StateConflict(REASON_ROUND_NOT_CLOSED)

    tournament = await load_tournament(session, round_.tournament_id)
    if round_.number >= tournament.total_rounds:
        raise StateConflict(REASON_LAST_ROUND)

    next_round = await RoundsRepo.get_by_number(
        session,
        tournament_id=tournament.id,
        number=round_.number + 1,
    )
    if next_round is None:
        next_round = await RoundsRepo.create(
            session,
            round_=Round(
                id=uuid4(),
                tournament_id=tournament.id,
                number=round_.number + 1,
                start_date=round_.end_date,
                end_date=round_.end_date + timedelta(days=int(tournament.round_duration_days)),
                is_closed=False,
                closed_at=None,
            ),
        )
    else:
        await acquire_round_lock(session, round_id=next_round.id)
        if next_round.is_closed:
            raise StateConflict(REASON_ROUND_CLOSED)
        if await GroupsRepo.count_for_round(session, round_id=next_round.id) > 0:
            raise StateConflict(REASON_NEXT_ROUND_STRUCTURED)

    groups = await GroupsRepo.list_for_round(session, round_id=round_id)
    group_index_by_id = {group.id: index for index, group in enumerate(groups)}
    skipped_ids = {group.id for group in groups if group.status == GROUP_STATUS_SKIPPED}
    group_players = await GroupPlayersRepo.list_for_round(session, round_id=round_id)
    candidates = [
        MovementCandidate(
            player_id=group_player.player_id,
            group_index=group_index_by_id[group_player.group_id],
            # Rank 0 keeps players of a skipped group on their level.
            rank=0 if group_player.group_id in skipped_ids else group_player.position,
            points=group_player.points,
        )
        for group_player in group_players
    ]
    newcomers = await TournamentPlayersRepo.list_joined_in_round_ids(
        session,
        tournament_id=tournament.id,
        round_number=next_round.number,
    )
    layout, movements = redistribute(
        candidates,
        groups_total=len(groups),
        group_size=int(tournament.group_size),
        newcomers=newcomers,
    )
    matches_total = await _create_round_layout(session, round_id=next_round.id, layout=layout)

    players_total = sum(len(group) for group in layout)
    logger.info(
        "next_round_generated",
        round_id=str(round_id),
        next_round_id=str(next_round.id),
        groups_total=len(layout),
        players_total=players_total,
        promoted_total=sum(1 for movement in movements if movement.level_delta < 0),
        relegated_total=sum(1 for movement in movements if movement.level_delta > 0),
        newcomers_total=len(newcomers),
    )
    return StructureResult(
        round_id=next_round.id,
        strategy=STRATEGY_LADDER,
        groups_total=len(layout),
        players_total=players_total,
        matches_total=matches_total,
    )


async def update_round_groups(
    session: AsyncSession,
    *,
    round_id: UUID,
    groups: Sequence[Sequence[UUID]],
    group_size: int = LADDER_GROUP_SIZE,
) -> StructureResult:
    """Replace an open round's layout with explicit groups, rotations included."""
    return await structure_groups(
        session,
        round_id=round_id,
        strategy=STRATEGY_MANUAL,
        group_size=group_size,
        force=True,
        manual_groups=groups,
    )
