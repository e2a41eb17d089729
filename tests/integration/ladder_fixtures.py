from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID, uuid4

from app.db.models.players import Player
from app.db.models.rounds import Round
from app.db.models.tournaments import Tournament
from app.db.repo.matches_repo import MatchesRepo
from app.db.repo.players_repo import PlayersRepo
from app.db.repo.rounds_repo import RoundsRepo
from app.db.repo.tournament_players_repo import TournamentPlayersRepo
from app.db.repo.tournaments_repo import TournamentsRepo
from app.db.session import SessionLocal
from app.ladder.groups import structure_groups
from app.ladder.results import report_result

UTC = timezone.utc
START = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


@dataclass(frozen=True, slots=True)
class LadderSetup:
    tournament_id: UUID
    round_ids: tuple[UUID, ...]
    player_ids: tuple[UUID, ...]


async def create_ladder(*, players_total: int = 4, total_rounds: int = 2) -> LadderSetup:
    tournament_id = uuid4()
    player_ids = tuple(uuid4() for _ in range(players_total))
    round_ids = tuple(uuid4() for _ in range(total_rounds))

    async with SessionLocal.begin() as session:
        await TournamentsRepo.create(
            session,
            tournament=Tournament(
                id=tournament_id,
                title="Integration Ladder",
                is_active=False,
                total_rounds=total_rounds,
                round_duration_days=14,
                start_date=START,
                group_size=4,
                point_policy="GAMES_PLUS_WIN",
                max_comodines_per_player=1,
                enable_mean_comodin=True,
                enable_substitute_comodin=True,
                substitute_credit_factor=Decimal("0.50"),
                substitute_max_appearances=2,
                continuity_enabled=True,
                continuity_points_per_set=1,
                continuity_points_per_round=2,
                continuity_min_rounds=2,
                continuity_max_bonus=10,
                continuity_mode="MATCHES",
                created_at=START,
            ),
        )
        for index, player_id in enumerate(player_ids, start=1):
            await PlayersRepo.create(
                session,
                player=Player(id=player_id, name=f"Player {index:02d}", created_at=START),
            )
            await TournamentPlayersRepo.create_once(
                session,
                tournament_id=tournament_id,
                player_id=player_id,
            )
        for number, round_id in enumerate(round_ids, start=1):
            start_date = START + timedelta(days=14 * (number - 1))
            await RoundsRepo.create(
                session,
                round_=Round(
                    id=round_id,
                    tournament_id=tournament_id,
                    number=number,
                    start_date=start_date,
                    end_date=start_date + timedelta(days=14),
                    is_closed=False,
                    closed_at=None,
                ),
            )

    return LadderSetup(tournament_id=tournament_id, round_ids=round_ids, player_ids=player_ids)


async def structure_in_order(setup: LadderSetup, *, round_index: int = 0) -> None:
    players = list(setup.player_ids)
    async with SessionLocal.begin() as session:
        await structure_groups(
            session,
            round_id=setup.round_ids[round_index],
            strategy="manual",
            manual_groups=[players[offset : offset + 4] for offset in range(0, len(players), 4)],
        )


async def report_scores_as_admin(group_id: UUID, scores: list[tuple[int, int]]) -> None:
    async with SessionLocal() as session:
        matches = await MatchesRepo.list_for_group(session, group_id=group_id)
    for match, (team1_games, team2_games) in zip(matches, scores, strict=True):
        async with SessionLocal.begin() as session:
            await report_result(
                session,
                match_id=match.id,
                team1_games=team1_games,
                team2_games=team2_games,
                is_admin=True,
            )
