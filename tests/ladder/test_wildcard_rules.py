from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app.ladder.types import WildcardPolicy
from app.ladder.wildcards.rules import (
    apply_restriction,
    mean_credit,
    remaining_wildcards,
    revoke_restriction,
    substitute_credit,
    substitute_levels,
    substitute_restriction,
)

UTC = timezone.utc
NOW = datetime(2026, 3, 2, 18, 0, tzinfo=UTC)


def policy(**overrides) -> WildcardPolicy:
    values = {
        "max_per_player": 1,
        "mean_enabled": True,
        "substitute_enabled": True,
        "substitute_credit_factor": Decimal("0.50"),
        "substitute_max_appearances": 2,
    }
    values.update(overrides)
    return WildcardPolicy(**values)


def _apply(**overrides) -> str | None:
    values = {
        "mode": "MEAN",
        "round_closed": False,
        "group_locked": False,
        "already_used": False,
        "comodines_used": 0,
        "has_confirmed_matches": False,
    }
    values.update(overrides)
    return apply_restriction(policy(), **values)


def _revoke(**overrides) -> str | None:
    values = {
        "now_utc": NOW,
        "round_closed": False,
        "used": True,
        "has_confirmed_matches": False,
        "accepted_dates": [],
        "window_hours": 24,
    }
    values.update(overrides)
    return revoke_restriction(**values)


def test_remaining_wildcards_never_negative() -> None:
    assert remaining_wildcards(policy(), comodines_used=0) == 1
    assert remaining_wildcards(policy(), comodines_used=3) == 0
    assert remaining_wildcards(policy(max_per_player=2), comodines_used=-1) == 2


def test_apply_allowed_for_fresh_player() -> None:
    assert _apply() is None


@pytest.mark.parametrize(
    ("overrides", "reason"),
    [
        ({"round_closed": True, "comodines_used": 5}, "ROUND_CLOSED"),
        ({"group_locked": True}, "GROUP_LOCKED"),
        ({"already_used": True}, "WILDCARD_ALREADY_USED_THIS_ROUND"),
        ({"comodines_used": 1}, "WILDCARD_CAP_REACHED"),
        ({"has_confirmed_matches": True}, "CONFIRMED_MATCHES"),
        ({"mode": "LOTTERY"}, "WILDCARD_MODE_DISABLED"),
    ],
)
def test_apply_restrictions(overrides: dict, reason: str) -> None:
    assert _apply(**overrides) == reason


def test_apply_restriction_respects_disabled_mode() -> None:
    disabled = policy(mean_enabled=False)

    reason = apply_restriction(
        disabled,
        mode="MEAN",
        round_closed=False,
        group_locked=False,
        already_used=False,
        comodines_used=0,
        has_confirmed_matches=False,
    )

    assert reason == "WILDCARD_MODE_DISABLED"


def _substitute(**overrides) -> str | None:
    values = {
        "is_self": False,
        "in_round": True,
        "on_wildcard": False,
        "in_same_group": False,
        "level_allowed": True,
        "already_substituting": False,
        "substitute_appearances": 0,
    }
    values.update(overrides)
    return substitute_restriction(policy(), **values)


def test_substitute_allowed_below_cap() -> None:
    assert _substitute(substitute_appearances=1) is None


@pytest.mark.parametrize(
    ("overrides", "reason"),
    [
        ({"is_self": True, "in_round": False}, "SUBSTITUTE_IS_SELF"),
        ({"in_round": False}, "SUBSTITUTE_NOT_IN_ROUND"),
        ({"on_wildcard": True}, "SUBSTITUTE_ON_WILDCARD"),
        ({"in_same_group": True}, "SUBSTITUTE_SAME_GROUP"),
        ({"level_allowed": False}, "SUBSTITUTE_LEVEL_NOT_ALLOWED"),
        ({"already_substituting": True}, "SUBSTITUTE_ALREADY_USED_THIS_ROUND"),
        ({"substitute_appearances": 2}, "SUBSTITUTE_CAP_REACHED"),
    ],
)
def test_substitute_restrictions(overrides: dict, reason: str) -> None:
    assert _substitute(**overrides) == reason


def test_substitute_levels_come_from_lower_groups() -> None:
    assert substitute_levels(1, [1, 2, 3]) == {2, 3}
    assert substitute_levels(2, [1, 2, 3]) == {3}


def test_bottom_group_borrows_from_the_group_above() -> None:
    assert substitute_levels(3, [1, 2, 3]) == {2}


def test_apply_blocked_by_accepted_date_inside_window() -> None:
    assert _apply(now_utc=NOW, accepted_dates=[NOW + timedelta(hours=23)]) == "MATCH_WITHIN_24H"


def test_apply_allowed_when_accepted_date_is_outside_window() -> None:
    assert _apply(now_utc=NOW, accepted_dates=[NOW + timedelta(hours=25), None]) is None
    assert _apply(now_utc=NOW, accepted_dates=[NOW - timedelta(hours=2)]) is None


def test_apply_skips_window_check_without_clock() -> None:
    assert _apply(accepted_dates=[NOW + timedelta(hours=1)]) is None


def test_apply_checks_confirmed_matches_before_window() -> None:
    reason = _apply(
        now_utc=NOW,
        has_confirmed_matches=True,
        accepted_dates=[NOW + timedelta(hours=1)],
    )

    assert reason == "CONFIRMED_MATCHES"


def test_revoke_blocked_by_match_inside_window() -> None:
    assert _revoke(accepted_dates=[NOW + timedelta(hours=23)]) == "MATCH_WITHIN_24H"


def test_revoke_allowed_when_match_is_outside_window() -> None:
    assert _revoke(accepted_dates=[NOW + timedelta(hours=25), None]) is None
    assert _revoke(accepted_dates=[NOW - timedelta(hours=1)]) is None


def test_revoke_blocked_by_confirmed_matches() -> None:
    assert _revoke(has_confirmed_matches=True) == "CONFIRMED_MATCHES"


def test_admin_bypass_skips_freeze_window_but_not_state_checks() -> None:
    assert (
        _revoke(
            has_confirmed_matches=True,
            accepted_dates=[NOW + timedelta(hours=1)],
            bypass_freeze_window=True,
        )
        is None
    )
    assert _revoke(used=False, bypass_freeze_window=True) == "WILDCARD_NOT_USED"
    assert _revoke(round_closed=True, bypass_freeze_window=True) == "ROUND_CLOSED"


def test_mean_credit_uses_groupmates_in_early_rounds() -> None:
    credit = mean_credit(
        round_number=2,
        groupmate_points=[Decimal("16"), Decimal("16"), Decimal("17")],
        own_history_points=[Decimal("4")],
    )

    assert credit == Decimal("16.3")


def test_mean_credit_uses_own_history_from_third_round() -> None:
    credit = mean_credit(
        round_number=3,
        groupmate_points=[Decimal("16")],
        own_history_points=[Decimal("10"), Decimal("11")],
    )

    assert credit == Decimal("10.5")


def test_mean_credit_falls_back_to_groupmates_without_history() -> None:
    credit = mean_credit(
        round_number=4,
        groupmate_points=[Decimal("7"), Decimal("8")],
        own_history_points=[],
    )

    assert credit == Decimal("7.5")


def test_mean_credit_rounds_half_up() -> None:
    assert mean_credit(round_number=1, groupmate_points=[Decimal("1.25")], own_history_points=[]) == Decimal("1.3")
    assert mean_credit(round_number=1, groupmate_points=[], own_history_points=[]) == Decimal("0.0")


def test_substitute_credit_applies_factor() -> None:
    assert substitute_credit(Decimal("0.50"), substitute_points=Decimal("15")) == Decimal("7.50")
    assert substitute_credit(Decimal("0.33"), substitute_points=Decimal("10")) == Decimal("3.30")
