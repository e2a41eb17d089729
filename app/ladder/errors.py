from __future__ import annotations


class LadderError(Exception):
    pass


class NotFoundError(LadderError):
    def __init__(self, entity: str) -> None:
        super().__init__(entity)
        self.entity = entity


class ValidationError(LadderError):
    def __init__(self, field: str, reason: str) -> None:
        super().__init__(f"{field}: {reason}")
        self.field = field
        self.reason = reason


class PolicyViolation(LadderError):
    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class StateConflict(LadderError):
    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class IntegrityFailure(LadderError):
    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class InvalidPartition(LadderError):
    def __init__(self, *, players_total: int, group_size: int) -> None:
        super().__init__(f"{players_total} players do not split into groups of {group_size}")
        self.players_total = players_total
        self.group_size = group_size


class IncompleteRound(StateConflict):
    def __init__(self, *, unconfirmed_total: int) -> None:
        super().__init__("UNCONFIRMED_MATCHES")
        self.unconfirmed_total = unconfirmed_total
