from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field


class StructureGroupsRequest(BaseModel):
    strategy: str = Field(min_length=1, max_length=16)
    group_size: int = Field(default=4, ge=2, le=8)
    force: bool = False
    groups: list[list[UUID]] | None = None
    seed: int | None = None


class UpdateGroupsRequest(BaseModel):
    groups: list[list[UUID]] = Field(min_length=1)
    group_size: int = Field(default=4, ge=2, le=8)


class StructureResultResponse(BaseModel):
    round_id: UUID
    strategy: str
    groups_total: int = Field(ge=0)
    players_total: int = Field(ge=0)
    matches_total: int = Field(ge=0)


class RotationRequest(BaseModel):
    overwrite: bool = False


class MatchResponse(BaseModel):
    match_id: UUID
    group_id: UUID
    set_number: int = Field(ge=1)
    team1: list[UUID]
    team2: list[UUID]
    team1_games: int | None = None
    team2_games: int | None = None
    tiebreak_score: str | None = None
    is_confirmed: bool
    reported_by_id: UUID | None = None
    confirmed_by_id: UUID | None = None
    status: str
    winner: int | None = None


class RotationResponse(BaseModel):
    group_id: UUID
    matches: list[MatchResponse]


class ReportResultRequest(BaseModel):
    # Range and tiebreak rules are enforced by the scoring rules, with reason codes.
    team1_games: int
    team2_games: int
    tiebreak: str | None = Field(default=None, max_length=16)


class GroupStandingResponse(BaseModel):
    player_id: UUID
    rank: int = Field(ge=1)
    points: Decimal
    sets_won: int = Field(ge=0)
    game_diff: int
    games_won: int = Field(ge=0)
    head_to_head_wins: int = Field(ge=0)
    used_wildcard: bool


class GroupSummaryResponse(BaseModel):
    group_id: UUID
    group_number: int = Field(ge=1)
    status: str
    standings: list[GroupStandingResponse]


class MovementResponse(BaseModel):
    player_id: UUID
    from_group_index: int = Field(ge=0)
    target_group_index: int = Field(ge=0)
    level_delta: int


class CloseRoundResponse(BaseModel):
    round_id: UUID
    round_number: int = Field(ge=1)
    groups_played: int = Field(ge=0)
    groups_skipped: int = Field(ge=0)
    players_scored: int = Field(ge=0)
    continuity_bonuses_awarded: int = Field(ge=0)
    groups: list[GroupSummaryResponse]
    movements: list[MovementResponse]


class ReopenRoundResponse(BaseModel):
    round_id: UUID
    round_number: int = Field(ge=1)
    streak_entries_removed: int = Field(ge=0)
    groups_reset: int = Field(ge=0)


class SkipGroupRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=256)


class ApplyWildcardRequest(BaseModel):
    mode: str | None = Field(default=None, max_length=16)
    substitute_player_id: UUID | None = None
    reason: str | None = Field(default=None, max_length=256)
    player_id: UUID | None = None


class ApplyWildcardResponse(BaseModel):
    player_id: UUID
    round_id: UUID
    mode: str
    substitute_player_id: UUID | None = None
    comodines_used: int = Field(ge=0)
    comodines_remaining: int = Field(ge=0)


class RevokeWildcardResponse(BaseModel):
    player_id: UUID
    round_id: UUID
    freeze_window_bypassed: bool
    comodines_used: int = Field(ge=0)
    substitute_player_id: UUID | None = None


class WildcardStatusResponse(BaseModel):
    player_id: UUID
    round_id: UUID
    used: bool
    mode: str | None = None
    substitute_player_id: UUID | None = None
    comodines_used: int = Field(ge=0)
    comodines_remaining: int = Field(ge=0)
    can_use: bool
    can_revoke: bool
    restriction_reason: str | None = None
    mean_enabled: bool
    substitute_enabled: bool


class PlayerRefResponse(BaseModel):
    player_id: UUID
    name: str


class EligibleSubstitutesResponse(BaseModel):
    round_id: UUID
    players: list[PlayerRefResponse]


class RankingEntryResponse(BaseModel):
    player_id: UUID
    name: str
    position: int = Field(ge=1)
    total_points: Decimal
    average_points: Decimal
    rounds_played: int = Field(ge=0)


class RankingsResponse(BaseModel):
    tournament_id: UUID
    reference_round: int | None = None
    has_rankings: bool
    official: list[RankingEntryResponse]
    ironman: list[RankingEntryResponse]


class ContinuityStatsResponse(BaseModel):
    player_id: UUID
    current_streak: int = Field(ge=0)
    best_streak: int = Field(ge=0)
    total_bonus: Decimal
    rounds_with_bonus: int = Field(ge=0)


class ProposeDateRequest(BaseModel):
    proposed_date: datetime
    force_scheduled: bool = False


class RespondDateRequest(BaseModel):
    accept: bool


class ScheduleResponse(BaseModel):
    group_id: UUID
    status: str
    proposed_date: datetime | None = None
    proposed_by_id: UUID | None = None
    accepted_date: datetime | None = None
    accepted_by: list[UUID]
    players_total: int = Field(ge=0)
