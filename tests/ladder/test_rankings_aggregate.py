from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from app.ladder.rankings import aggregate_rankings
from app.ladder.types import RosterEntry, SetRecord

A, B, C, D, E = (UUID(int=index) for index in (1, 2, 3, 4, 5))
GROUP_R1 = UUID(int=101)
GROUP_R2 = UUID(int=102)

ROSTER = [
    RosterEntry(player_id=A, name="Ana"),
    RosterEntry(player_id=B, name="Bea"),
    RosterEntry(player_id=C, name="Carl"),
    RosterEntry(player_id=D, name="Dan"),
    RosterEntry(player_id=E, name="Eve"),
]


def _sets() -> list[SetRecord]:
    return [
        SetRecord(
            set_number=1,
            team1=(A, B),
            team2=(C, D),
            team1_games=6,
            team2_games=2,
            group_id=GROUP_R1,
            round_number=1,
        ),
        SetRecord(
            set_number=1,
            team1=(A, C),
            team2=(B, D),
            team1_games=4,
            team2_games=4,
            tiebreak="7-3",
            group_id=GROUP_R2,
            round_number=2,
        ),
    ]


def test_official_ranks_by_average_and_ironman_by_total() -> None:
    official, ironman = aggregate_rankings(
        ROSTER,
        _sets(),
        wildcard_slots={(GROUP_R1, C): "MEAN"},
    )

    assert [entry.name for entry in official] == ["Ana", "Carl", "Bea", "Dan", "Eve"]
    assert [entry.name for entry in ironman] == ["Ana", "Bea", "Carl", "Dan", "Eve"]

    carl = next(entry for entry in official if entry.player_id == C)
    assert carl.total_points == Decimal("6.00")
    assert carl.average_points == Decimal("6.00")
    assert carl.rounds_played == 1
    assert carl.position == 2


def test_every_roster_player_is_listed_even_without_sets() -> None:
    official, ironman = aggregate_rankings(ROSTER, [])

    assert len(official) == len(ironman) == len(ROSTER)
    assert all(entry.total_points == Decimal("0") for entry in official)
    assert [entry.name for entry in official] == ["Ana", "Bea", "Carl", "Dan", "Eve"]

    eve = official[-1]
    assert eve.rounds_played == 0
    assert eve.position == 5


def test_substitute_slot_is_credited_at_factor() -> None:
    official, _ = aggregate_rankings(
        ROSTER,
        _sets(),
        wildcard_slots={(GROUP_R2, D): "SUBSTITUTE"},
        substitute_credit_factor=Decimal("0.50"),
    )

    dan = next(entry for entry in official if entry.player_id == D)
    assert dan.total_points == Decimal("4.00")
    assert dan.average_points == Decimal("2.00")
    assert dan.rounds_played == 2


def test_flat_policy_totals() -> None:
    official, _ = aggregate_rankings(ROSTER, _sets(), policy="FLAT_WIN_LOSS")

    ana = next(entry for entry in official if entry.player_id == A)
    assert ana.total_points == Decimal("6.00")
    assert ana.average_points == Decimal("3.00")
