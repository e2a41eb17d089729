from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app.db.repo.group_players_repo import GroupPlayersRepo
from app.db.repo.groups_repo import GroupsRepo
from app.db.repo.tournament_players_repo import TournamentPlayersRepo
from app.db.session import SessionLocal
from app.ladder.constants import (
    REASON_MATCH_WITHIN_WINDOW,
    REASON_SUBSTITUTE_LEVEL_NOT_ALLOWED,
    REASON_SUBSTITUTE_ON_WILDCARD,
    REASON_WILDCARD_ALREADY_USED,
    STRATEGY_MANUAL,
    WILDCARD_MODE_MEAN,
    WILDCARD_MODE_SUBSTITUTE,
)
from app.ladder.errors import PolicyViolation
from app.ladder.groups import structure_groups
from app.ladder.scheduling import propose_group_date
from app.ladder.wildcards.service import apply_wildcard, get_wildcard_status, revoke_wildcard
from tests.integration.ladder_fixtures import create_ladder, structure_in_order

UTC = timezone.utc
NOW = datetime(2026, 3, 4, 12, 0, tzinfo=UTC)


@pytest.mark.asyncio
async def test_mean_wildcard_applies_once_per_round() -> None:
    setup = await create_ladder()
    player_id = setup.player_ids[0]
    await structure_in_order(setup)

    async with SessionLocal.begin() as session:
        result = await apply_wildcard(
            session,
            player_id=player_id,
            round_id=setup.round_ids[0],
            mode=WILDCARD_MODE_MEAN,
            reason="  travelling  ",
            now_utc=NOW,
        )

    assert result.comodines_used == 1
    assert result.comodines_remaining == 0

    with pytest.raises(PolicyViolation) as exc_info:
        async with SessionLocal.begin() as session:
            await apply_wildcard(
                session,
                player_id=player_id,
                round_id=setup.round_ids[0],
                mode=WILDCARD_MODE_MEAN,
                now_utc=NOW,
            )
    assert exc_info.value.reason == REASON_WILDCARD_ALREADY_USED

    async with SessionLocal() as session:
        group_player = await GroupPlayersRepo.get_for_round_player(
            session,
            round_id=setup.round_ids[0],
            player_id=player_id,
        )
        tournament_player = await TournamentPlayersRepo.get(
            session,
            tournament_id=setup.tournament_id,
            player_id=player_id,
        )
    assert group_player is not None
    assert group_player.used_comodin is True
    assert group_player.comodin_reason == "travelling"
    assert tournament_player is not None and tournament_player.comodines_used == 1


@pytest.mark.asyncio
async def test_revoke_inside_window_needs_admin_bypass() -> None:
    setup = await create_ladder()
    p1, p2, _, _ = setup.player_ids
    await structure_in_order(setup)
    async with SessionLocal() as session:
        group_id = (await GroupsRepo.list_for_round(session, round_id=setup.round_ids[0]))[0].id

    async with SessionLocal.begin() as session:
        await apply_wildcard(
            session,
            player_id=p1,
            round_id=setup.round_ids[0],
            mode=WILDCARD_MODE_MEAN,
            now_utc=NOW,
        )
        await propose_group_date(
            session,
            group_id=group_id,
            proposer_id=p2,
            proposed_date=NOW + timedelta(hours=23),
            is_admin=True,
            force_scheduled=True,
        )

    with pytest.raises(PolicyViolation) as exc_info:
        async with SessionLocal.begin() as session:
            await revoke_wildcard(session, player_id=p1, round_id=setup.round_ids[0], now_utc=NOW)
    assert exc_info.value.reason == REASON_MATCH_WITHIN_WINDOW

    async with SessionLocal.begin() as session:
        result = await revoke_wildcard(
            session,
            player_id=p1,
            round_id=setup.round_ids[0],
            now_utc=NOW,
            bypass_freeze_window=True,
        )
    assert result.freeze_window_bypassed is True
    assert result.comodines_used == 0

    async with SessionLocal() as session:
        status = await get_wildcard_status(
            session,
            player_id=p1,
            round_id=setup.round_ids[0],
            now_utc=NOW,
        )
    assert status.used is False
    assert status.can_use is True


@pytest.mark.asyncio
async def test_apply_refused_when_group_plays_within_window() -> None:
    setup = await create_ladder()
    p1, p2, _, _ = setup.player_ids
    await structure_in_order(setup)
    async with SessionLocal() as session:
        group_id = (await GroupsRepo.list_for_round(session, round_id=setup.round_ids[0]))[0].id

    async with SessionLocal.begin() as session:
        await propose_group_date(
            session,
            group_id=group_id,
            proposer_id=p2,
            proposed_date=NOW + timedelta(hours=23),
            is_admin=True,
            force_scheduled=True,
        )

    with pytest.raises(PolicyViolation) as exc_info:
        async with SessionLocal.begin() as session:
            await apply_wildcard(
                session,
                player_id=p1,
                round_id=setup.round_ids[0],
                mode=WILDCARD_MODE_MEAN,
                now_utc=NOW,
            )
    assert exc_info.value.reason == REASON_MATCH_WITHIN_WINDOW

    async with SessionLocal() as session:
        status = await get_wildcard_status(
            session,
            player_id=p1,
            round_id=setup.round_ids[0],
            now_utc=NOW,
        )
    assert status.can_use is False


@pytest.mark.asyncio
async def test_relayout_gives_back_wildcard_counters() -> None:
    setup = await create_ladder(players_total=8)
    owner_id, substitute_id = setup.player_ids[0], setup.player_ids[4]
    await structure_in_order(setup)

    async with SessionLocal.begin() as session:
        await apply_wildcard(
            session,
            player_id=owner_id,
            round_id=setup.round_ids[0],
            mode=WILDCARD_MODE_SUBSTITUTE,
            substitute_player_id=substitute_id,
            now_utc=NOW,
        )

    async with SessionLocal.begin() as session:
        await structure_groups(
            session,
            round_id=setup.round_ids[0],
            strategy=STRATEGY_MANUAL,
            force=True,
            manual_groups=[list(reversed(setup.player_ids[:4])), list(setup.player_ids[4:])],
        )

    async with SessionLocal() as session:
        owner = await TournamentPlayersRepo.get(
            session,
            tournament_id=setup.tournament_id,
            player_id=owner_id,
        )
        substitute = await TournamentPlayersRepo.get(
            session,
            tournament_id=setup.tournament_id,
            player_id=substitute_id,
        )
    assert owner is not None and owner.comodines_used == 0
    assert substitute is not None and substitute.substitute_appearances == 0

    async with SessionLocal.begin() as session:
        result = await apply_wildcard(
            session,
            player_id=owner_id,
            round_id=setup.round_ids[0],
            mode=WILDCARD_MODE_MEAN,
            now_utc=NOW,
        )
    assert result.comodines_used == 1


@pytest.mark.asyncio
async def test_substitute_must_come_from_a_lower_group() -> None:
    setup = await create_ladder(players_total=12)
    top_player, middle_player = setup.player_ids[0], setup.player_ids[4]
    await structure_in_order(setup)

    with pytest.raises(PolicyViolation) as exc_info:
        async with SessionLocal.begin() as session:
            await apply_wildcard(
                session,
                player_id=middle_player,
                round_id=setup.round_ids[0],
                mode=WILDCARD_MODE_SUBSTITUTE,
                substitute_player_id=top_player,
                now_utc=NOW,
            )
    assert exc_info.value.reason == REASON_SUBSTITUTE_LEVEL_NOT_ALLOWED


@pytest.mark.asyncio
async def test_substitute_cannot_be_on_a_wildcard() -> None:
    setup = await create_ladder(players_total=12)
    middle_player, bottom_player = setup.player_ids[4], setup.player_ids[8]
    await structure_in_order(setup)

    async with SessionLocal.begin() as session:
        await apply_wildcard(
            session,
            player_id=bottom_player,
            round_id=setup.round_ids[0],
            mode=WILDCARD_MODE_MEAN,
            now_utc=NOW,
        )

    with pytest.raises(PolicyViolation) as exc_info:
        async with SessionLocal.begin() as session:
            await apply_wildcard(
                session,
                player_id=middle_player,
                round_id=setup.round_ids[0],
                mode=WILDCARD_MODE_SUBSTITUTE,
                substitute_player_id=bottom_player,
                now_utc=NOW,
            )
    assert exc_info.value.reason == REASON_SUBSTITUTE_ON_WILDCARD
