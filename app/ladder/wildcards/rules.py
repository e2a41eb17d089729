from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from app.ladder.constants import (
    MEAN_CREDIT_QUANT,
    POINTS_QUANT,
    REASON_CONFIRMED_MATCHES,
    REASON_GROUP_LOCKED,
    REASON_MATCH_WITHIN_WINDOW,
    REASON_ROUND_CLOSED,
    REASON_SUBSTITUTE_BUSY,
    REASON_SUBSTITUTE_CAP_REACHED,
    REASON_SUBSTITUTE_LEVEL_NOT_ALLOWED,
    REASON_SUBSTITUTE_NOT_IN_ROUND,
    REASON_SUBSTITUTE_ON_WILDCARD,
    REASON_SUBSTITUTE_SAME_GROUP,
    REASON_SUBSTITUTE_SELF,
    REASON_WILDCARD_ALREADY_USED,
    REASON_WILDCARD_CAP_REACHED,
    REASON_WILDCARD_MODE_DISABLED,
    REASON_WILDCARD_NOT_USED,
    WILDCARD_HISTORICAL_MEAN_FROM_ROUND,
    WILDCARD_MODE_MEAN,
    WILDCARD_MODE_SUBSTITUTE,
)
from app.ladder.types import WildcardPolicy


def remaining_wildcards(policy: WildcardPolicy, *, comodines_used: int) -> int:
    return max(0, policy.max_per_player - max(0, comodines_used))


def mode_enabled(policy: WildcardPolicy, mode: str) -> bool:
    if mode == WILDCARD_MODE_MEAN:
        return policy.mean_enabled
    if mode == WILDCARD_MODE_SUBSTITUTE:
        return policy.substitute_enabled
    return False


def match_within_window(
    accepted_dates: Iterable[datetime | None],
    *,
    now_utc: datetime,
    window_hours: int,
) -> bool:
    window_end = now_utc + timedelta(hours=window_hours)
    return any(
        accepted_date is not None and now_utc <= accepted_date <= window_end
        for accepted_date in accepted_dates
    )


def apply_restriction(
    policy: WildcardPolicy,
    *,
    mode: str | None,
    round_closed: bool,
    group_locked: bool,
    already_used: bool,
    comodines_used: int,
    has_confirmed_matches: bool,
    accepted_dates: Iterable[datetime | None] = (),
    now_utc: datetime | None = None,
    window_hours: int = 24,
) -> str | None:
    if round_closed:
        return REASON_ROUND_CLOSED
    if group_locked:
        return REASON_GROUP_LOCKED
    if already_used:
        return REASON_WILDCARD_ALREADY_USED
    if remaining_wildcards(policy, comodines_used=comodines_used) <= 0:
        return REASON_WILDCARD_CAP_REACHED
    if has_confirmed_matches:
        return REASON_CONFIRMED_MATCHES
    if now_utc is not None and match_within_window(
        accepted_dates,
        now_utc=now_utc,
        window_hours=window_hours,
    ):
        return REASON_MATCH_WITHIN_WINDOW
    if mode is None:
        if not policy.mean_enabled and not policy.substitute_enabled:
            return REASON_WILDCARD_MODE_DISABLED
    elif not mode_enabled(policy, mode):
        return REASON_WILDCARD_MODE_DISABLED
    return None


def substitute_levels(own_level: int, levels: Iterable[int]) -> set[int]:
    """Group levels a stand-in may come from: any lower group, or the one above for the bottom group."""
    all_levels = set(levels)
    if own_level == max(all_levels, default=own_level):
        return {own_level - 1}
    return {level for level in all_levels if level > own_level}


def substitute_restriction(
    policy: WildcardPolicy,
    *,
    is_self: bool,
    in_round: bool,
    on_wildcard: bool,
    in_same_group: bool,
    level_allowed: bool,
    already_substituting: bool,
    substitute_appearances: int,
) -> str | None:
    if is_self:
        return REASON_SUBSTITUTE_SELF
    if not in_round:
        return REASON_SUBSTITUTE_NOT_IN_ROUND
    if on_wildcard:
        return REASON_SUBSTITUTE_ON_WILDCARD
    if in_same_group:
        return REASON_SUBSTITUTE_SAME_GROUP
    if not level_allowed:
        return REASON_SUBSTITUTE_LEVEL_NOT_ALLOWED
    if already_substituting:
        return REASON_SUBSTITUTE_BUSY
    if substitute_appearances >= policy.substitute_max_appearances:
        return REASON_SUBSTITUTE_CAP_REACHED
    return None


def revoke_restriction(
    *,
    now_utc: datetime,
    round_closed: bool,
    used: bool,
    has_confirmed_matches: bool,
    accepted_dates: Iterable[datetime | None],
    window_hours: int,
    bypass_freeze_window: bool = False,
) -> str | None:
    if round_closed:
        return REASON_ROUND_CLOSED
    if not used:
        return REASON_WILDCARD_NOT_USED
    if bypass_freeze_window:
        return None
    if has_confirmed_matches:
        return REASON_CONFIRMED_MATCHES
    if match_within_window(accepted_dates, now_utc=now_utc, window_hours=window_hours):
        return REASON_MATCH_WITHIN_WINDOW
    return None


def _mean(values: Iterable[Decimal]) -> Decimal:
    resolved = [Decimal(value) for value in values]
    if not resolved:
        return Decimal("0.0")
    return (sum(resolved, Decimal("0")) / len(resolved)).quantize(
        MEAN_CREDIT_QUANT,
        rounding=ROUND_HALF_UP,
    )


def intra_round_mean(groupmate_points: Iterable[Decimal]) -> Decimal:
    return _mean(groupmate_points)


def historical_average(own_round_points: Iterable[Decimal]) -> Decimal:
    return _mean(own_round_points)


def mean_credit(
    *,
    round_number: int,
    groupmate_points: Iterable[Decimal],
    own_history_points: Iterable[Decimal],
) -> Decimal:
    """Score for a mean-mode wildcard.

    Early rounds take the mean of the groupmates; later rounds take the
    player's own per-round average over closed rounds played without a
    wildcard, falling back to the groupmates when there is no such round.
    """
    if round_number >= WILDCARD_HISTORICAL_MEAN_FROM_ROUND:
        history = list(own_history_points)
        if history:
            return historical_average(history)
    return intra_round_mean(groupmate_points)


def substitute_credit(factor: Decimal, *, substitute_points: Decimal) -> Decimal:
    return (Decimal(factor) * Decimal(substitute_points)).quantize(
        POINTS_QUANT,
        rounding=ROUND_HALF_UP,
    )
