from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from app.db.repo.group_players_repo import GroupPlayersRepo
from app.db.repo.groups_repo import GroupsRepo
from app.db.repo.rankings_repo import RankingsRepo
from app.db.repo.rounds_repo import RoundsRepo
from app.db.session import SessionLocal
from app.ladder.closing import close_round, reopen_round
from app.ladder.errors import IncompleteRound, StateConflict
from app.ladder.groups import generate_next_round, structure_groups
from tests.integration.ladder_fixtures import (
    create_ladder,
    report_scores_as_admin,
    structure_in_order,
)

UTC = timezone.utc
NOW = datetime(2026, 3, 15, 20, 0, tzinfo=UTC)

# Rotation scores for players in positions 1..4:
# p1 17, p2 9, p3 16, p4 18 under GAMES_PLUS_WIN.
SCORES = [(6, 2), (6, 4), (3, 6)]


async def _first_group_id(round_id):
    async with SessionLocal() as session:
        groups = await GroupsRepo.list_for_round(session, round_id=round_id)
    return groups[0].id


@pytest.mark.asyncio
async def test_close_round_requires_every_set_confirmed() -> None:
    setup = await create_ladder()
    await structure_in_order(setup)

    with pytest.raises(IncompleteRound) as exc_info:
        async with SessionLocal.begin() as session:
            await close_round(session, round_id=setup.round_ids[0], now_utc=NOW)

    assert exc_info.value.unconfirmed_total == 3


@pytest.mark.asyncio
async def test_close_round_scores_ranks_and_snapshots_rankings() -> None:
    setup = await create_ladder()
    p1, p2, p3, p4 = setup.player_ids
    await structure_in_order(setup)
    group_id = await _first_group_id(setup.round_ids[0])
    await report_scores_as_admin(group_id, SCORES)

    async with SessionLocal.begin() as session:
        result = await close_round(session, round_id=setup.round_ids[0], now_utc=NOW)

    assert result.groups_played == 1
    assert result.players_scored == 4
    assert result.continuity_bonuses_awarded == 0
    assert [entry.player_id for entry in result.groups[0].standings] == [p4, p1, p3, p2]

    async with SessionLocal() as session:
        round_ = await RoundsRepo.get_by_id(session, setup.round_ids[0])
        group_players = await GroupPlayersRepo.list_for_group(session, group_id=group_id)
        rankings = await RankingsRepo.list_for_round(
            session,
            tournament_id=setup.tournament_id,
            round_number=1,
        )

    assert round_ is not None and round_.is_closed is True
    assert [(gp.player_id, gp.position, gp.points) for gp in group_players] == [
        (p4, 1, Decimal("18.00")),
        (p1, 2, Decimal("17.00")),
        (p3, 3, Decimal("16.00")),
        (p2, 4, Decimal("9.00")),
    ]
    assert all(gp.streak == 1 for gp in group_players)
    assert [ranking.player_id for ranking in rankings] == [p4, p1, p3, p2]
    assert rankings[0].rounds_played == 1


@pytest.mark.asyncio
async def test_close_round_twice_conflicts() -> None:
    setup = await create_ladder()
    await structure_in_order(setup)
    await report_scores_as_admin(await _first_group_id(setup.round_ids[0]), SCORES)

    async with SessionLocal.begin() as session:
        await close_round(session, round_id=setup.round_ids[0], now_utc=NOW)

    with pytest.raises(StateConflict) as exc_info:
        async with SessionLocal.begin() as session:
            await close_round(session, round_id=setup.round_ids[0], now_utc=NOW)
    assert exc_info.value.reason == "ROUND_CLOSED"


@pytest.mark.asyncio
async def test_closed_round_refuses_forced_relayout() -> None:
    setup = await create_ladder()
    await structure_in_order(setup)
    group_id = await _first_group_id(setup.round_ids[0])
    await report_scores_as_admin(group_id, SCORES)

    async with SessionLocal.begin() as session:
        await close_round(session, round_id=setup.round_ids[0], now_utc=NOW)

    with pytest.raises(StateConflict) as exc_info:
        async with SessionLocal.begin() as session:
            await structure_groups(
                session,
                round_id=setup.round_ids[0],
                strategy="manual",
                force=True,
                manual_groups=[list(reversed(setup.player_ids))],
            )
    assert exc_info.value.reason == "ROUND_CLOSED"

    async with SessionLocal() as session:
        groups = await GroupsRepo.list_for_round(session, round_id=setup.round_ids[0])
    assert [group.id for group in groups] == [group_id]


@pytest.mark.asyncio
async def test_reopen_round_resets_scores_and_rankings() -> None:
    setup = await create_ladder()
    await structure_in_order(setup)
    group_id = await _first_group_id(setup.round_ids[0])
    await report_scores_as_admin(group_id, SCORES)
    async with SessionLocal.begin() as session:
        await close_round(session, round_id=setup.round_ids[0], now_utc=NOW)

    async with SessionLocal.begin() as session:
        result = await reopen_round(session, round_id=setup.round_ids[0])

    assert result.groups_reset == 1
    async with SessionLocal() as session:
        round_ = await RoundsRepo.get_by_id(session, setup.round_ids[0])
        group = await GroupsRepo.get_by_id(session, group_id)
        group_players = await GroupPlayersRepo.list_for_group(session, group_id=group_id)
        rankings = await RankingsRepo.list_for_round(
            session,
            tournament_id=setup.tournament_id,
            round_number=1,
        )

    assert round_ is not None and round_.is_closed is False
    assert group is not None and group.status == "PENDING"
    assert all(gp.points == Decimal("0") and gp.streak == 0 for gp in group_players)
    assert rankings == []


@pytest.mark.asyncio
async def test_next_round_follows_final_positions_and_blocks_reopen() -> None:
    setup = await create_ladder()
    p1, p2, p3, p4 = setup.player_ids
    await structure_in_order(setup)
    await report_scores_as_admin(await _first_group_id(setup.round_ids[0]), SCORES)
    async with SessionLocal.begin() as session:
        await close_round(session, round_id=setup.round_ids[0], now_utc=NOW)

    async with SessionLocal.begin() as session:
        structured = await generate_next_round(session, round_id=setup.round_ids[0])

    assert structured.round_id == setup.round_ids[1]
    assert structured.matches_total == 3
    async with SessionLocal() as session:
        next_group_id = (await GroupsRepo.list_for_round(session, round_id=setup.round_ids[1]))[0].id
        lineup = await GroupPlayersRepo.list_for_group(session, group_id=next_group_id)
    assert [gp.player_id for gp in lineup] == [p4, p1, p3, p2]

    with pytest.raises(StateConflict) as exc_info:
        async with SessionLocal.begin() as session:
            await reopen_round(session, round_id=setup.round_ids[0])
    assert exc_info.value.reason == "NEXT_ROUND_STRUCTURED"
