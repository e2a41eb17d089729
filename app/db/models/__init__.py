from app.db.models.group_players import GroupPlayer
from app.db.models.groups import Group
from app.db.models.matches import Match
from app.db.models.notification_outbox import NotificationOutbox
from app.db.models.players import Player
from app.db.models.rankings import Ranking
from app.db.models.rounds import Round
from app.db.models.streak_history import StreakHistory
from app.db.models.tournament_players import TournamentPlayer
from app.db.models.tournaments import Tournament

__all__ = [
    "Group",
    "GroupPlayer",
    "Match",
    "NotificationOutbox",
    "Player",
    "Ranking",
    "Round",
    "StreakHistory",
    "Tournament",
    "TournamentPlayer",
]
