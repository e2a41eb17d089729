from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from uuid import UUID

from app.ladder.constants import (
    CONTINUITY_MODE_BOTH,
    CONTINUITY_MODE_MATCHES,
    CONTINUITY_MODE_SETS,
    LADDER_SETS_PER_GROUP,
)
from app.ladder.types import ContinuityOutcome, ContinuityPolicy, RoundHistoryEntry


def count_continuity_streak(
    history: Iterable[RoundHistoryEntry],
    *,
    round_number: int,
) -> int:
    """Consecutive participated rounds ending at `round_number`.

    A round without a record or with a wildcard breaks the chain.
    """
    participated = {entry.round_number: entry.participated for entry in history}
    streak = 0
    cursor = round_number
    while cursor >= 1 and participated.get(cursor, False):
        streak += 1
        cursor -= 1
    return streak


def continuity_bonus(policy: ContinuityPolicy, *, streak: int) -> int:
    if not policy.enabled or streak <= 0 or streak < policy.min_rounds:
        return 0

    if policy.mode == CONTINUITY_MODE_SETS:
        bonus = policy.points_per_set * LADDER_SETS_PER_GROUP
    elif policy.mode == CONTINUITY_MODE_MATCHES:
        bonus = policy.points_per_round
    elif policy.mode == CONTINUITY_MODE_BOTH:
        bonus = policy.points_per_set * LADDER_SETS_PER_GROUP + policy.points_per_round
    else:
        return 0

    return max(0, min(bonus, policy.max_bonus))


def compute_round_continuity(
    policy: ContinuityPolicy,
    *,
    round_number: int,
    participants: Iterable[UUID],
    history: Mapping[UUID, Sequence[RoundHistoryEntry]],
) -> dict[UUID, ContinuityOutcome]:
    outcomes: dict[UUID, ContinuityOutcome] = {}
    for player_id in participants:
        entries = [*history.get(player_id, ()), RoundHistoryEntry(round_number, True)]
        streak = count_continuity_streak(entries, round_number=round_number)
        outcomes[player_id] = ContinuityOutcome(
            player_id=player_id,
            streak=streak,
            bonus=continuity_bonus(policy, streak=streak),
        )
    return outcomes
