from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.groups import Group
from app.db.models.matches import Match
from app.db.models.rounds import Round
from app.db.models.tournaments import Tournament
from app.db.repo.groups_repo import GroupsRepo
from app.db.repo.matches_repo import MatchesRepo
from app.db.repo.rounds_repo import RoundsRepo
from app.db.repo.tournaments_repo import TournamentsRepo
from app.ladder.errors import NotFoundError
from app.ladder.scoring import resolve_set
from app.ladder.types import (
    ContinuityPolicy,
    MatchSnapshot,
    SetRecord,
    WildcardPolicy,
)


def wildcard_policy_from_tournament(tournament: Tournament) -> WildcardPolicy:
    return WildcardPolicy(
        max_per_player=int(tournament.max_comodines_per_player),
        mean_enabled=bool(tournament.enable_mean_comodin),
        substitute_enabled=bool(tournament.enable_substitute_comodin),
        substitute_credit_factor=Decimal(tournament.substitute_credit_factor),
        substitute_max_appearances=int(tournament.substitute_max_appearances),
    )


def continuity_policy_from_tournament(tournament: Tournament) -> ContinuityPolicy:
    return ContinuityPolicy(
        enabled=bool(tournament.continuity_enabled),
        points_per_set=int(tournament.continuity_points_per_set),
        points_per_round=int(tournament.continuity_points_per_round),
        min_rounds=int(tournament.continuity_min_rounds),
        max_bonus=int(tournament.continuity_max_bonus),
        mode=tournament.continuity_mode,
    )


def set_record_from_match(match: Match, *, round_number: int | None = None) -> SetRecord:
    return SetRecord(
        set_number=match.set_number,
        team1=match.team1,
        team2=match.team2,
        team1_games=int(match.team1_games or 0),
        team2_games=int(match.team2_games or 0),
        tiebreak=match.tiebreak_score,
        group_id=match.group_id,
        round_number=round_number,
    )


def build_match_snapshot(match: Match) -> MatchSnapshot:
    winner: int | None = None
    if match.team1_games is not None and match.team2_games is not None:
        winner = resolve_set(match.team1_games, match.team2_games, match.tiebreak_score).winner
    return MatchSnapshot(
        match_id=match.id,
        group_id=match.group_id,
        set_number=match.set_number,
        team1=match.team1,
        team2=match.team2,
        team1_games=match.team1_games,
        team2_games=match.team2_games,
        tiebreak_score=match.tiebreak_score,
        is_confirmed=match.is_confirmed,
        reported_by_id=match.reported_by_id,
        confirmed_by_id=match.confirmed_by_id,
        status=match.status,
        winner=winner,
    )


async def load_round_for_update(session: AsyncSession, round_id: UUID) -> Round:
    round_ = await RoundsRepo.get_by_id_for_update(session, round_id)
    if round_ is None:
        raise NotFoundError("round")
    return round_


async def load_tournament(session: AsyncSession, tournament_id: UUID) -> Tournament:
    tournament = await TournamentsRepo.get_by_id(session, tournament_id)
    if tournament is None:
        raise NotFoundError("tournament")
    return tournament


async def load_group(session: AsyncSession, group_id: UUID) -> Group:
    group = await GroupsRepo.get_by_id(session, group_id)
    if group is None:
        raise NotFoundError("group")
    return group


async def load_match(session: AsyncSession, match_id: UUID) -> Match:
    match = await MatchesRepo.get_by_id(session, match_id)
    if match is None:
        raise NotFoundError("match")
    return match
