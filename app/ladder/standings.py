from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal
from itertools import groupby
from uuid import UUID

from app.ladder.constants import REASON_POSITION_TARGET_MISSING
from app.ladder.errors import InvalidPartition, StateConflict, ValidationError
from app.ladder.scoring import PointPolicy, points_for_set, resolve_set
from app.ladder.types import (
    MovementCandidate,
    PlayerMovement,
    PlayerRoundStats,
    PositionWrite,
    RankedPlayer,
    SetRecord,
)


def compute_group_stats(
    player_ids: Iterable[UUID],
    sets: Sequence[SetRecord],
    *,
    policy: PointPolicy | str,
) -> dict[UUID, PlayerRoundStats]:
    stats = {player_id: PlayerRoundStats(player_id=player_id) for player_id in player_ids}
    for record in sets:
        outcome = resolve_set(record.team1_games, record.team2_games, record.tiebreak)
        if outcome.winner is None:
            raise ValidationError("tiebreak", "UNRESOLVED_TIE")
        sides = (
            (record.team1, outcome.team1_games, outcome.team2_games, outcome.winner == 1),
            (record.team2, outcome.team2_games, outcome.team1_games, outcome.winner == 2),
        )
        for team, games_for, games_against, won in sides:
            for player_id in team:
                player_stats = stats.get(player_id)
                if player_stats is None:
                    continue
                player_stats.sets_played += 1
                player_stats.sets_won += int(won)
                player_stats.games_won += games_for
                player_stats.games_lost += games_against
                player_stats.points += points_for_set(policy, games_won=games_for, won=won)
    return stats


def head_to_head_wins(
    player_id: UUID,
    *,
    opponents: Iterable[UUID],
    sets: Sequence[SetRecord],
) -> int:
    rivals = set(opponents) - {player_id}
    wins = 0
    for record in sets:
        outcome = resolve_set(record.team1_games, record.team2_games, record.tiebreak)
        if outcome.winner == 1:
            winners, losers = record.team1, record.team2
        elif outcome.winner == 2:
            winners, losers = record.team2, record.team1
        else:
            continue
        if player_id in winners:
            wins += len(rivals.intersection(losers))
    return wins


def _primary_key(stats: PlayerRoundStats) -> tuple[Decimal, int, int]:
    return (-stats.points, -stats.sets_won, -stats.game_diff)


def rank_group(
    stats: Mapping[UUID, PlayerRoundStats],
    sets: Sequence[SetRecord],
) -> list[RankedPlayer]:
    """Order a group by points, sets won, game differential, head-to-head, games won.

    Head-to-head is a mini-league among the players still level after the
    first three criteria; full equality falls back to player id.
    """
    ordered = sorted(stats.values(), key=lambda item: (_primary_key(item), item.player_id))
    ranked: list[RankedPlayer] = []
    for _, cluster_iter in groupby(ordered, key=_primary_key):
        cluster = list(cluster_iter)
        cluster_ids = [item.player_id for item in cluster]
        h2h = {
            item.player_id: (
                head_to_head_wins(item.player_id, opponents=cluster_ids, sets=sets)
                if len(cluster) > 1
                else 0
            )
            for item in cluster
        }
        cluster.sort(key=lambda item: (-h2h[item.player_id], -item.games_won, item.player_id))
        for item in cluster:
            ranked.append(
                RankedPlayer(
                    player_id=item.player_id,
                    rank=len(ranked) + 1,
                    stats=item,
                    head_to_head_wins=h2h[item.player_id],
                )
            )
    return ranked


def plan_positions(
    current_positions: Mapping[UUID, int],
    ranked: Sequence[RankedPlayer],
) -> tuple[list[PositionWrite], list[PositionWrite]]:
    """Return (sentinel, final) writes for an in-transaction position reshuffle."""
    ranked_ids = [item.player_id for item in ranked]
    if set(ranked_ids) != set(current_positions) or len(ranked_ids) != len(current_positions):
        raise StateConflict(REASON_POSITION_TARGET_MISSING)

    sentinel = [
        PositionWrite(player_id=player_id, position=-(index + 1))
        for index, player_id in enumerate(sorted(current_positions))
    ]
    final = [PositionWrite(player_id=item.player_id, position=item.rank) for item in ranked]
    return sentinel, final


def ladder_movement(*, rank: int, group_index: int, groups_total: int) -> int:
    """Level delta for the next round; negative moves towards the top group (index 0)."""
    last_index = groups_total - 1
    if rank == 1:
        if group_index == 0:
            return 0
        return -1 if group_index == 1 else -2
    if rank == 2:
        return 0 if group_index == 0 else -1
    if rank == 3:
        return 0 if group_index >= last_index else 1
    if rank == 4:
        if group_index >= last_index:
            return 0
        return 1 if group_index == last_index - 1 else 2
    return 0


def target_group_index(*, rank: int, group_index: int, groups_total: int) -> int:
    delta = ladder_movement(rank=rank, group_index=group_index, groups_total=groups_total)
    return max(0, min(groups_total - 1, group_index + delta))


def redistribute(
    candidates: Sequence[MovementCandidate],
    *,
    groups_total: int,
    group_size: int,
    newcomers: Sequence[UUID] = (),
) -> tuple[list[list[UUID]], list[PlayerMovement]]:
    movements = [
        PlayerMovement(
            player_id=candidate.player_id,
            from_group_index=candidate.group_index,
            target_group_index=target_group_index(
                rank=candidate.rank,
                group_index=candidate.group_index,
                groups_total=groups_total,
            ),
            level_delta=ladder_movement(
                rank=candidate.rank,
                group_index=candidate.group_index,
                groups_total=groups_total,
            ),
        )
        for candidate in candidates
    ]
    by_player = {candidate.player_id: candidate for candidate in candidates}
    ordered = sorted(
        movements,
        key=lambda movement: (
            movement.target_group_index,
            -by_player[movement.player_id].points,
            by_player[movement.player_id].rank,
            movement.player_id,
        ),
    )
    seen = {movement.player_id for movement in ordered}
    lineup = [movement.player_id for movement in ordered]
    lineup.extend(player_id for player_id in newcomers if player_id not in seen)

    if not lineup or len(lineup) % group_size != 0:
        raise InvalidPartition(players_total=len(lineup), group_size=group_size)
    groups = [lineup[offset : offset + group_size] for offset in range(0, len(lineup), group_size)]
    return groups, movements
