from __future__ import annotations

import random
from collections.abc import Iterable, Sequence
from uuid import UUID

from app.ladder.constants import LADDER_GROUP_SIZE, REASON_DUPLICATE_PLAYER
from app.ladder.errors import InvalidPartition, PolicyViolation, ValidationError
from app.ladder.types import RotationSet

# Position pairs (1-based) per set: (team1, team2).
ROTATION_PATTERN: tuple[tuple[tuple[int, int], tuple[int, int]], ...] = (
    ((1, 4), (2, 3)),
    ((1, 3), (2, 4)),
    ((1, 2), (3, 4)),
)


def _ensure_divisible(players_total: int, group_size: int) -> int:
    if group_size <= 0:
        raise ValidationError("group_size", "MUST_BE_POSITIVE")
    if players_total == 0 or players_total % group_size != 0:
        raise InvalidPartition(players_total=players_total, group_size=group_size)
    return players_total // group_size


def _chunk(player_ids: Sequence[UUID], group_size: int) -> list[list[UUID]]:
    return [
        list(player_ids[offset : offset + group_size])
        for offset in range(0, len(player_ids), group_size)
    ]


def partition_random(
    player_ids: Sequence[UUID],
    *,
    group_size: int = LADDER_GROUP_SIZE,
    seed: int | None = None,
) -> list[list[UUID]]:
    _ensure_divisible(len(player_ids), group_size)
    shuffled = sorted(player_ids, key=str)
    random.Random(seed).shuffle(shuffled)
    return _chunk(shuffled, group_size)


def serpentine_group_index(rank_index: int, groups_total: int) -> int:
    pass_no, offset = divmod(rank_index, groups_total)
    if pass_no % 2 == 0:
        return offset
    return groups_total - 1 - offset


def partition_seeded(
    ranked_player_ids: Sequence[UUID],
    *,
    group_size: int = LADDER_GROUP_SIZE,
) -> list[list[UUID]]:
    groups_total = _ensure_divisible(len(ranked_player_ids), group_size)
    groups: list[list[UUID]] = [[] for _ in range(groups_total)]
    for rank_index, player_id in enumerate(ranked_player_ids):
        groups[serpentine_group_index(rank_index, groups_total)].append(player_id)
    return groups


def partition_manual(
    groups: Sequence[Sequence[UUID]],
    *,
    eligible_ids: Iterable[UUID],
    group_size: int = LADDER_GROUP_SIZE,
) -> list[list[UUID]]:
    eligible = set(eligible_ids)
    seen: set[UUID] = set()
    resolved: list[list[UUID]] = []
    for group in groups:
        for player_id in group:
            if player_id in seen:
                raise PolicyViolation(REASON_DUPLICATE_PLAYER)
            if player_id not in eligible:
                raise ValidationError("groups", "PLAYER_NOT_ELIGIBLE")
            seen.add(player_id)
        resolved.append(list(group))

    _ensure_divisible(len(seen), group_size)
    if any(len(group) != group_size for group in resolved):
        raise InvalidPartition(players_total=len(seen), group_size=group_size)
    return resolved


def build_rotation(players_by_position: Sequence[UUID]) -> list[RotationSet]:
    if len(players_by_position) != LADDER_GROUP_SIZE:
        raise InvalidPartition(
            players_total=len(players_by_position),
            group_size=LADDER_GROUP_SIZE,
        )
    if len(set(players_by_position)) != len(players_by_position):
        raise PolicyViolation(REASON_DUPLICATE_PLAYER)

    def at(position: int) -> UUID:
        return players_by_position[position - 1]

    return [
        RotationSet(
            set_number=set_number,
            team1=(at(team1[0]), at(team1[1])),
            team2=(at(team2[0]), at(team2[1])),
        )
        for set_number, (team1, team2) in enumerate(ROTATION_PATTERN, start=1)
    ]
