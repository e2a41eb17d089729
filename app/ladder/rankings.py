from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.rankings import Ranking
from app.db.repo.group_players_repo import GroupPlayersRepo
from app.db.repo.matches_repo import MatchesRepo
from app.db.repo.rankings_repo import RankingsRepo
from app.db.repo.rounds_repo import RoundsRepo
from app.db.repo.tournament_players_repo import TournamentPlayersRepo
from app.ladder.constants import POINTS_QUANT, WILDCARD_MODE_MEAN, WILDCARD_MODE_SUBSTITUTE
from app.ladder.internal import load_tournament, set_record_from_match
from app.ladder.scoring import PointPolicy, points_for_set, resolve_set
from app.ladder.types import RankingEntry, RankingsResult, RosterEntry, SetRecord

logger = structlog.get_logger("app.ladder.rankings")

ZERO = Decimal("0")


def _quantize(value: Decimal) -> Decimal:
    return value.quantize(POINTS_QUANT, rounding=ROUND_HALF_UP)


def aggregate_rankings(
    roster: Sequence[RosterEntry],
    sets: Sequence[SetRecord],
    *,
    policy: PointPolicy | str = PointPolicy.GAMES_PLUS_WIN,
    wildcard_slots: Mapping[tuple[UUID, UUID], str] | None = None,
    substitute_credit_factor: Decimal = Decimal("1"),
) -> tuple[list[RankingEntry], list[RankingEntry]]:
    """Build (official, ironman) standings from confirmed sets.

    `wildcard_slots` maps (group_id, player_id) to the wildcard mode used in
    that group: mean-mode slots do not count for the absent player and
    substitute-mode slots are credited at `substitute_credit_factor`.
    """
    resolved_slots = wildcard_slots or {}
    totals: dict[UUID, Decimal] = {entry.player_id: ZERO for entry in roster}
    rounds_played: dict[UUID, set[int]] = {entry.player_id: set() for entry in roster}

    for record in sets:
        outcome = resolve_set(record.team1_games, record.team2_games, record.tiebreak)
        if outcome.winner is None:
            continue
        sides = (
            (record.team1, outcome.team1_games, outcome.winner == 1),
            (record.team2, outcome.team2_games, outcome.winner == 2),
        )
        for team, games_won, won in sides:
            for player_id in team:
                if player_id not in totals:
                    continue
                mode = resolved_slots.get((record.group_id, player_id))
                if mode == WILDCARD_MODE_MEAN:
                    continue
                points = points_for_set(policy, games_won=games_won, won=won)
                if mode == WILDCARD_MODE_SUBSTITUTE:
                    points = points * Decimal(substitute_credit_factor)
                totals[player_id] += points
                if record.round_number is not None:
                    rounds_played[player_id].add(record.round_number)

    entries: list[tuple[RosterEntry, Decimal, Decimal, int]] = []
    for roster_entry in roster:
        total = _quantize(totals[roster_entry.player_id])
        played = len(rounds_played[roster_entry.player_id])
        average = _quantize(total / played) if played else _quantize(ZERO)
        entries.append((roster_entry, total, average, played))

    official_order = sorted(
        entries,
        key=lambda item: (-item[2], -item[1], item[0].name.casefold(), item[0].player_id),
    )
    ironman_order = sorted(
        entries,
        key=lambda item: (-item[1], -item[2], item[0].name.casefold(), item[0].player_id),
    )

    def _positions(ordered: list[tuple[RosterEntry, Decimal, Decimal, int]]) -> list[RankingEntry]:
        return [
            RankingEntry(
                player_id=roster_entry.player_id,
                name=roster_entry.name,
                position=index + 1,
                total_points=total,
                average_points=average,
                rounds_played=played,
            )
            for index, (roster_entry, total, average, played) in enumerate(ordered)
        ]

    return _positions(official_order), _positions(ironman_order)


async def get_rankings(
    session: AsyncSession,
    *,
    tournament_id: UUID,
    reference_round: int | None = None,
) -> RankingsResult:
    tournament = await load_tournament(session, tournament_id)
    if reference_round is None:
        latest_closed = await RoundsRepo.get_latest_closed(session, tournament_id=tournament_id)
        reference_round = latest_closed.number if latest_closed is not None else None

    roster = [
        RosterEntry(player_id=player_id, name=name)
        for player_id, name in await TournamentPlayersRepo.list_roster(
            session,
            tournament_id=tournament_id,
        )
    ]

    sets: list[SetRecord] = []
    wildcard_slots: dict[tuple[UUID, UUID], str] = {}
    if reference_round is not None:
        confirmed = await MatchesRepo.list_confirmed_for_tournament(
            session,
            tournament_id=tournament_id,
            max_round_number=reference_round,
        )
        sets = [
            set_record_from_match(match, round_number=round_number)
            for match, round_number in confirmed
        ]
        wildcard_slots = {
            (group_id, player_id): mode
            for group_id, player_id, mode in await GroupPlayersRepo.list_wildcard_slots(
                session,
                tournament_id=tournament_id,
                max_round_number=reference_round,
            )
        }

    official, ironman = aggregate_rankings(
        roster,
        sets,
        policy=tournament.point_policy,
        wildcard_slots=wildcard_slots,
        substitute_credit_factor=Decimal(tournament.substitute_credit_factor),
    )
    return RankingsResult(
        tournament_id=tournament_id,
        reference_round=reference_round,
        has_rankings=bool(sets),
        official=tuple(official),
        ironman=tuple(ironman),
    )


async def refresh_ranking_snapshot(
    session: AsyncSession,
    *,
    tournament_id: UUID,
    round_number: int,
    now_utc: datetime,
) -> int:
    rankings = await get_rankings(
        session,
        tournament_id=tournament_id,
        reference_round=round_number,
    )
    ironman_positions = {entry.player_id: entry.position for entry in rankings.ironman}
    rows = [
        Ranking(
            tournament_id=tournament_id,
            round_number=round_number,
            player_id=entry.player_id,
            position=entry.position,
            ironman_position=ironman_positions[entry.player_id],
            average_points=entry.average_points,
            total_points=entry.total_points,
            rounds_played=entry.rounds_played,
            updated_at=now_utc,
        )
        for entry in rankings.official
    ]
    written = await RankingsRepo.replace_for_round(
        session,
        tournament_id=tournament_id,
        round_number=round_number,
        rows=rows,
    )
    logger.info(
        "ranking_snapshot_refreshed",
        tournament_id=str(tournament_id),
        round_number=round_number,
        rows_total=written,
    )
    return written
