from __future__ import annotations

from decimal import Decimal

LADDER_GROUP_SIZE = 4
LADDER_SETS_PER_GROUP = 3
LADDER_MIN_GAMES = 0
LADDER_MAX_GAMES = 7
LADDER_GAMES_TO_WIN_SET = 4
LADDER_TIEBREAK_MIN_WINNING_POINTS = 7
LADDER_TIEBREAK_MIN_MARGIN = 2
LADDER_DEFAULT_ROUND_DURATION_DAYS = 14

GROUP_STATUS_PENDING = "PENDING"
GROUP_STATUS_PLAYED = "PLAYED"
GROUP_STATUS_SKIPPED = "SKIPPED"
GROUP_STATUS_POSTPONED = "POSTPONED"
GROUP_STATUSES = (
    GROUP_STATUS_PENDING,
    GROUP_STATUS_PLAYED,
    GROUP_STATUS_SKIPPED,
    GROUP_STATUS_POSTPONED,
)

MATCH_STATUS_PENDING = "PENDING"
MATCH_STATUS_DATE_PROPOSED = "DATE_PROPOSED"
MATCH_STATUS_SCHEDULED = "SCHEDULED"
MATCH_STATUS_COMPLETED = "COMPLETED"
MATCH_STATUSES = (
    MATCH_STATUS_PENDING,
    MATCH_STATUS_DATE_PROPOSED,
    MATCH_STATUS_SCHEDULED,
    MATCH_STATUS_COMPLETED,
)

STRATEGY_RANDOM = "random"
STRATEGY_SEEDED = "seeded"
STRATEGY_MANUAL = "manual"
STRATEGY_LADDER = "ladder"
STRATEGIES = (STRATEGY_RANDOM, STRATEGY_SEEDED, STRATEGY_MANUAL)

POINT_POLICY_GAMES_PLUS_WIN = "GAMES_PLUS_WIN"
POINT_POLICY_FLAT_WIN_LOSS = "FLAT_WIN_LOSS"
FLAT_POINTS_SET_WON = 3
FLAT_POINTS_SET_LOST = 1

WILDCARD_MODE_MEAN = "MEAN"
WILDCARD_MODE_SUBSTITUTE = "SUBSTITUTE"
WILDCARD_MODES = (WILDCARD_MODE_MEAN, WILDCARD_MODE_SUBSTITUTE)
WILDCARD_DEFAULT_MAX_PER_PLAYER = 1
WILDCARD_DEFAULT_SUBSTITUTE_CREDIT_FACTOR = Decimal("0.50")
WILDCARD_DEFAULT_SUBSTITUTE_MAX_APPEARANCES = 2
# From this round on, mean-mode credit uses the player's own history.
WILDCARD_HISTORICAL_MEAN_FROM_ROUND = 3

CONTINUITY_MODE_SETS = "SETS"
CONTINUITY_MODE_MATCHES = "MATCHES"
CONTINUITY_MODE_BOTH = "BOTH"
CONTINUITY_MODES = (CONTINUITY_MODE_SETS, CONTINUITY_MODE_MATCHES, CONTINUITY_MODE_BOTH)
CONTINUITY_DEFAULT_MIN_ROUNDS = 2
CONTINUITY_DEFAULT_MAX_BONUS = 10
CONTINUITY_DEFAULT_POINTS_PER_SET = 1
CONTINUITY_DEFAULT_POINTS_PER_ROUND = 2

STREAK_TYPE_CONTINUITY_BONUS = "CONTINUITY_BONUS"
STREAK_TYPE_BROKEN_NO_PLAY = "BROKEN_NO_PLAY"

NOTIFICATION_EVENT_DATE_PROPOSED = "group_date_proposed"
NOTIFICATION_EVENT_DATE_SCHEDULED = "group_date_scheduled"
NOTIFICATION_EVENT_DATE_CANCELED = "group_date_canceled"
NOTIFICATION_STATUS_PENDING = "PENDING"

POINTS_QUANT = Decimal("0.01")
MEAN_CREDIT_QUANT = Decimal("0.1")

REASON_ROUND_CLOSED = "ROUND_CLOSED"
REASON_ROUND_NOT_CLOSED = "ROUND_NOT_CLOSED"
REASON_GROUPS_EXIST = "GROUPS_EXIST"
REASON_MATCHES_EXIST = "MATCHES_EXIST"
REASON_NEXT_ROUND_STRUCTURED = "NEXT_ROUND_STRUCTURED"
REASON_LAST_ROUND = "LAST_ROUND"
REASON_GROUP_SKIPPED = "GROUP_SKIPPED"
REASON_GROUP_NOT_SKIPPED = "GROUP_NOT_SKIPPED"
REASON_GROUP_SIZE_MISMATCH = "GROUP_SIZE_MISMATCH"
REASON_POSITION_TARGET_MISSING = "POSITION_TARGET_MISSING"
REASON_DUPLICATE_PLAYER = "DUPLICATE_PLAYER"
REASON_NO_MATCHES = "NO_MATCHES"
REASON_NO_GROUPS = "NO_GROUPS"
REASON_RESULT_ALREADY_REPORTED = "RESULT_ALREADY_REPORTED"
REASON_RESULT_ALREADY_CONFIRMED = "RESULT_ALREADY_CONFIRMED"
REASON_RESULT_NOT_REPORTED = "RESULT_NOT_REPORTED"
REASON_SELF_CONFIRMATION = "SELF_CONFIRMATION"
REASON_NOT_A_PARTICIPANT = "NOT_A_PARTICIPANT"
REASON_WILDCARD_CAP_REACHED = "WILDCARD_CAP_REACHED"
REASON_WILDCARD_ALREADY_USED = "WILDCARD_ALREADY_USED_THIS_ROUND"
REASON_WILDCARD_NOT_USED = "WILDCARD_NOT_USED"
REASON_WILDCARD_MODE_DISABLED = "WILDCARD_MODE_DISABLED"
REASON_GROUP_LOCKED = "GROUP_LOCKED"
REASON_CONFIRMED_MATCHES = "CONFIRMED_MATCHES"
REASON_MATCH_WITHIN_WINDOW = "MATCH_WITHIN_24H"
REASON_SUBSTITUTE_SELF = "SUBSTITUTE_IS_SELF"
REASON_SUBSTITUTE_SAME_GROUP = "SUBSTITUTE_SAME_GROUP"
REASON_SUBSTITUTE_BUSY = "SUBSTITUTE_ALREADY_USED_THIS_ROUND"
REASON_SUBSTITUTE_CAP_REACHED = "SUBSTITUTE_CAP_REACHED"
REASON_SUBSTITUTE_NOT_IN_ROUND = "SUBSTITUTE_NOT_IN_ROUND"
REASON_SUBSTITUTE_ON_WILDCARD = "SUBSTITUTE_ON_WILDCARD"
REASON_SUBSTITUTE_LEVEL_NOT_ALLOWED = "SUBSTITUTE_LEVEL_NOT_ALLOWED"
REASON_NO_PROPOSED_DATE = "NO_PROPOSED_DATE"
REASON_NOT_THE_PROPOSER = "NOT_THE_PROPOSER"
REASON_ROUND_LOCK_TIMEOUT = "ROUND_LOCK_TIMEOUT"
