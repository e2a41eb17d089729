from __future__ import annotations

from decimal import Decimal
from uuid import UUID

import pytest

from app.ladder.errors import InvalidPartition, StateConflict
from app.ladder.scoring import PointPolicy
from app.ladder.standings import (
    compute_group_stats,
    head_to_head_wins,
    ladder_movement,
    plan_positions,
    rank_group,
    redistribute,
    target_group_index,
)
from app.ladder.types import MovementCandidate, PlayerRoundStats, SetRecord

A, B, C, D = (UUID(int=index) for index in (1, 2, 3, 4))


def _set(set_number: int, team1, team2, team1_games: int, team2_games: int, tiebreak=None) -> SetRecord:
    return SetRecord(
        set_number=set_number,
        team1=team1,
        team2=team2,
        team1_games=team1_games,
        team2_games=team2_games,
        tiebreak=tiebreak,
    )


def _rotation_sets() -> list[SetRecord]:
    return [
        _set(1, (A, D), (B, C), 6, 2),
        _set(2, (A, C), (B, D), 6, 3),
        _set(3, (A, B), (C, D), 2, 6),
    ]


def test_compute_group_stats_games_plus_win() -> None:
    stats = compute_group_stats([A, B, C, D], _rotation_sets(), policy=PointPolicy.GAMES_PLUS_WIN)

    assert {player_id: item.points for player_id, item in stats.items()} == {
        A: Decimal("16"),
        B: Decimal("7"),
        C: Decimal("16"),
        D: Decimal("17"),
    }
    assert stats[D].sets_won == 2
    assert stats[D].game_diff == 5
    assert stats[B].sets_played == 3
    assert stats[B].games_lost == 18


def test_compute_group_stats_flat_policy() -> None:
    stats = compute_group_stats([A, B, C, D], _rotation_sets(), policy=PointPolicy.FLAT_WIN_LOSS)

    assert stats[A].points == Decimal("7")
    assert stats[B].points == Decimal("3")


def test_compute_group_stats_uses_tiebreak_promotion() -> None:
    sets = [_set(1, (A, D), (B, C), 4, 4, "7-4")]

    stats = compute_group_stats([A, B, C, D], sets, policy=PointPolicy.GAMES_PLUS_WIN)

    assert stats[A].points == Decimal("6")
    assert stats[A].games_won == 5
    assert stats[B].points == Decimal("4")


def test_rank_group_orders_by_points_then_falls_back_to_player_id() -> None:
    sets = _rotation_sets()
    stats = compute_group_stats([A, B, C, D], sets, policy=PointPolicy.GAMES_PLUS_WIN)

    ranked = rank_group(stats, sets)

    assert [(item.player_id, item.rank) for item in ranked] == [(D, 1), (A, 2), (C, 3), (B, 4)]
    assert ranked[1].head_to_head_wins == ranked[2].head_to_head_wins == 1


def test_rank_group_sets_won_break_a_points_tie() -> None:
    stats = {
        A: PlayerRoundStats(player_id=A, points=Decimal("10"), sets_won=1, games_won=12, games_lost=4),
        B: PlayerRoundStats(player_id=B, points=Decimal("10"), sets_won=2, games_won=8, games_lost=8),
    }

    ranked = rank_group(stats, [])

    assert [item.player_id for item in ranked] == [B, A]


def test_rank_group_game_diff_breaks_a_points_and_sets_tie() -> None:
    stats = {
        A: PlayerRoundStats(player_id=A, points=Decimal("10"), sets_won=1, games_won=8, games_lost=10),
        B: PlayerRoundStats(player_id=B, points=Decimal("10"), sets_won=1, games_won=7, games_lost=5),
    }

    ranked = rank_group(stats, [])

    assert [(item.player_id, item.rank) for item in ranked] == [(B, 1), (A, 2)]


def test_rank_group_head_to_head_beats_games_won() -> None:
    stats = {
        A: PlayerRoundStats(player_id=A, points=Decimal("10"), sets_won=1, games_won=8, games_lost=8),
        B: PlayerRoundStats(player_id=B, points=Decimal("10"), sets_won=1, games_won=9, games_lost=9),
    }
    sets = [_set(1, (B, C), (A, D), 3, 6)]

    ranked = rank_group(stats, sets)

    assert [item.player_id for item in ranked] == [A, B]
    assert head_to_head_wins(A, opponents=[A, B], sets=sets) == 1


def test_rank_group_games_won_breaks_remaining_tie() -> None:
    stats = {
        A: PlayerRoundStats(player_id=A, points=Decimal("10"), sets_won=1, games_won=8, games_lost=8),
        B: PlayerRoundStats(player_id=B, points=Decimal("10"), sets_won=1, games_won=9, games_lost=9),
    }

    ranked = rank_group(stats, [])

    assert [item.player_id for item in ranked] == [B, A]


def test_plan_positions_writes_sentinels_before_final_ranks() -> None:
    stats = compute_group_stats([A, B, C, D], _rotation_sets(), policy=PointPolicy.GAMES_PLUS_WIN)
    ranked = rank_group(stats, _rotation_sets())

    sentinel, final = plan_positions({A: 1, B: 2, C: 3, D: 4}, ranked)

    assert all(write.position < 0 for write in sentinel)
    assert len({write.position for write in sentinel}) == 4
    assert [(write.player_id, write.position) for write in final] == [(D, 1), (A, 2), (C, 3), (B, 4)]


def test_plan_positions_rejects_missing_players() -> None:
    ranked = rank_group({A: PlayerRoundStats(player_id=A)}, [])

    with pytest.raises(StateConflict) as exc_info:
        plan_positions({A: 1, B: 2}, ranked)
    assert exc_info.value.reason == "POSITION_TARGET_MISSING"


@pytest.mark.parametrize(
    ("rank", "group_index", "expected"),
    [
        (1, 0, 0),
        (1, 1, -1),
        (1, 2, -2),
        (2, 0, 0),
        (2, 1, -1),
        (2, 2, -1),
        (3, 0, 1),
        (3, 1, 1),
        (3, 2, 0),
        (4, 0, 2),
        (4, 1, 1),
        (4, 2, 0),
    ],
)
def test_ladder_movement_three_groups(rank: int, group_index: int, expected: int) -> None:
    assert ladder_movement(rank=rank, group_index=group_index, groups_total=3) == expected


def test_target_group_index_clamps_to_ladder_bounds() -> None:
    assert target_group_index(rank=4, group_index=0, groups_total=2) == 1
    assert target_group_index(rank=1, group_index=1, groups_total=2) == 0
    assert target_group_index(rank=4, group_index=0, groups_total=1) == 0
    assert target_group_index(rank=1, group_index=0, groups_total=1) == 0


def _candidate(player: int, group_index: int, rank: int, points: str) -> MovementCandidate:
    return MovementCandidate(
        player_id=UUID(int=player),
        group_index=group_index,
        rank=rank,
        points=Decimal(points),
    )


def _two_group_candidates() -> list[MovementCandidate]:
    return [
        _candidate(11, 0, 1, "20"),
        _candidate(12, 0, 2, "15"),
        _candidate(13, 0, 3, "10"),
        _candidate(14, 0, 4, "5"),
        _candidate(21, 1, 1, "18"),
        _candidate(22, 1, 2, "12"),
        _candidate(23, 1, 3, "11"),
        _candidate(24, 1, 4, "3"),
    ]


def test_redistribute_swaps_bottom_and_top_halves() -> None:
    groups, movements = redistribute(_two_group_candidates(), groups_total=2, group_size=4)

    assert groups == [
        [UUID(int=11), UUID(int=21), UUID(int=12), UUID(int=22)],
        [UUID(int=23), UUID(int=13), UUID(int=14), UUID(int=24)],
    ]
    by_player = {movement.player_id: movement for movement in movements}
    assert by_player[UUID(int=21)].level_delta == -1
    assert by_player[UUID(int=14)].target_group_index == 1


def test_redistribute_appends_newcomers_at_the_bottom() -> None:
    newcomers = [UUID(int=31), UUID(int=32), UUID(int=33), UUID(int=34)]

    groups, _ = redistribute(
        _two_group_candidates(),
        groups_total=2,
        group_size=4,
        newcomers=newcomers,
    )

    assert len(groups) == 3
    assert groups[2] == newcomers


def test_redistribute_rejects_uneven_lineup() -> None:
    with pytest.raises(InvalidPartition):
        redistribute(
            _two_group_candidates(),
            groups_total=2,
            group_size=4,
            newcomers=[UUID(int=31)],
        )
