from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID


@dataclass(frozen=True, slots=True)
class SetOutcome:
    team1_games: int
    team2_games: int
    winner: int | None


@dataclass(frozen=True, slots=True)
class RotationSet:
    set_number: int
    team1: tuple[UUID, UUID]
    team2: tuple[UUID, UUID]


@dataclass(frozen=True, slots=True)
class SetRecord:
    set_number: int
    team1: tuple[UUID, UUID]
    team2: tuple[UUID, UUID]
    team1_games: int
    team2_games: int
    tiebreak: str | None = None
    group_id: UUID | None = None
    round_number: int | None = None


@dataclass(slots=True)
class PlayerRoundStats:
    player_id: UUID
    points: Decimal = Decimal("0")
    sets_played: int = 0
    sets_won: int = 0
    games_won: int = 0
    games_lost: int = 0

    @property
    def game_diff(self) -> int:
        return self.games_won - self.games_lost


@dataclass(frozen=True, slots=True)
class RankedPlayer:
    player_id: UUID
    rank: int
    stats: PlayerRoundStats
    head_to_head_wins: int


@dataclass(frozen=True, slots=True)
class PositionWrite:
    player_id: UUID
    position: int


@dataclass(frozen=True, slots=True)
class MovementCandidate:
    player_id: UUID
    group_index: int
    rank: int
    points: Decimal


@dataclass(frozen=True, slots=True)
class PlayerMovement:
    player_id: UUID
    from_group_index: int
    target_group_index: int
    level_delta: int


@dataclass(frozen=True, slots=True)
class WildcardPolicy:
    max_per_player: int
    mean_enabled: bool
    substitute_enabled: bool
    substitute_credit_factor: Decimal
    substitute_max_appearances: int


@dataclass(frozen=True, slots=True)
class ContinuityPolicy:
    enabled: bool
    points_per_set: int
    points_per_round: int
    min_rounds: int
    max_bonus: int
    mode: str


@dataclass(frozen=True, slots=True)
class StructureResult:
    round_id: UUID
    strategy: str
    groups_total: int
    players_total: int
    matches_total: int


@dataclass(frozen=True, slots=True)
class MatchSnapshot:
    match_id: UUID
    group_id: UUID
    set_number: int
    team1: tuple[UUID, UUID]
    team2: tuple[UUID, UUID]
    team1_games: int | None
    team2_games: int | None
    tiebreak_score: str | None
    is_confirmed: bool
    reported_by_id: UUID | None
    confirmed_by_id: UUID | None
    status: str
    winner: int | None


@dataclass(frozen=True, slots=True)
class GroupStandingEntry:
    player_id: UUID
    rank: int
    points: Decimal
    sets_won: int
    game_diff: int
    games_won: int
    head_to_head_wins: int
    used_wildcard: bool


@dataclass(frozen=True, slots=True)
class GroupCloseSummary:
    group_id: UUID
    group_number: int
    status: str
    standings: tuple[GroupStandingEntry, ...]


@dataclass(frozen=True, slots=True)
class RoundCloseResult:
    round_id: UUID
    round_number: int
    groups_played: int
    groups_skipped: int
    players_scored: int
    continuity_bonuses_awarded: int
    groups: tuple[GroupCloseSummary, ...]
    movements: tuple[PlayerMovement, ...]


@dataclass(frozen=True, slots=True)
class RoundReopenResult:
    round_id: UUID
    round_number: int
    streak_entries_removed: int
    groups_reset: int


@dataclass(frozen=True, slots=True)
class WildcardApplyResult:
    player_id: UUID
    round_id: UUID
    mode: str
    substitute_player_id: UUID | None
    comodines_used: int
    comodines_remaining: int


@dataclass(frozen=True, slots=True)
class WildcardRevokeResult:
    player_id: UUID
    round_id: UUID
    freeze_window_bypassed: bool
    comodines_used: int
    substitute_player_id: UUID | None


@dataclass(frozen=True, slots=True)
class WildcardStatus:
    player_id: UUID
    round_id: UUID
    used: bool
    mode: str | None
    substitute_player_id: UUID | None
    comodines_used: int
    comodines_remaining: int
    can_use: bool
    can_revoke: bool
    restriction_reason: str | None
    mean_enabled: bool
    substitute_enabled: bool


@dataclass(frozen=True, slots=True)
class RoundHistoryEntry:
    round_number: int
    participated: bool


@dataclass(frozen=True, slots=True)
class ContinuityOutcome:
    player_id: UUID
    streak: int
    bonus: int


@dataclass(frozen=True, slots=True)
class ContinuityStats:
    player_id: UUID
    current_streak: int
    best_streak: int
    total_bonus: Decimal
    rounds_with_bonus: int


@dataclass(frozen=True, slots=True)
class RosterEntry:
    player_id: UUID
    name: str


@dataclass(frozen=True, slots=True)
class RankingEntry:
    player_id: UUID
    name: str
    position: int
    total_points: Decimal
    average_points: Decimal
    rounds_played: int


@dataclass(frozen=True, slots=True)
class RankingsResult:
    tournament_id: UUID
    reference_round: int | None
    has_rankings: bool
    official: tuple[RankingEntry, ...]
    ironman: tuple[RankingEntry, ...]


@dataclass(frozen=True, slots=True)
class ScheduleSnapshot:
    group_id: UUID
    status: str
    proposed_date: datetime | None
    proposed_by_id: UUID | None
    accepted_date: datetime | None
    accepted_by: tuple[UUID, ...]
    players_total: int
