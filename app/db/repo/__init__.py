from app.db.repo.group_players_repo import GroupPlayersRepo
from app.db.repo.groups_repo import GroupsRepo
from app.db.repo.matches_repo import MatchesRepo
from app.db.repo.notification_outbox_repo import NotificationOutboxRepo
from app.db.repo.players_repo import PlayersRepo
from app.db.repo.rankings_repo import RankingsRepo
from app.db.repo.rounds_repo import RoundsRepo
from app.db.repo.streak_history_repo import StreakHistoryRepo
from app.db.repo.tournament_players_repo import TournamentPlayersRepo
from app.db.repo.tournaments_repo import TournamentsRepo

__all__ = [
    "GroupPlayersRepo",
    "GroupsRepo",
    "MatchesRepo",
    "NotificationOutboxRepo",
    "PlayersRepo",
    "RankingsRepo",
    "RoundsRepo",
    "StreakHistoryRepo",
    "TournamentPlayersRepo",
    "TournamentsRepo",
]
