from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace
from uuid import UUID

import pytest

from app.ladder import scheduling
from app.ladder.errors import StateConflict

UTC = timezone.utc
NOW = datetime(2026, 3, 4, 12, 0, tzinfo=UTC)
ROUND_ID = UUID(int=100)
GROUP_ID = UUID(int=200)
A, B, C, D = (UUID(int=index) for index in (1, 2, 3, 4))


class _Session:
    def __init__(self, calls: list[str]) -> None:
        self._calls = calls

    async def flush(self) -> None:
        self._calls.append("flush")


def _match(set_number: int, *, proposed_by_id: UUID | None = None) -> SimpleNamespace:
    return SimpleNamespace(
        set_number=set_number,
        proposed_date=NOW if proposed_by_id is not None else None,
        proposed_by_id=proposed_by_id,
        accepted_date=None,
        accepted_by=[str(proposed_by_id)] if proposed_by_id is not None else [],
        is_confirmed=False,
        status="DATE_PROPOSED" if proposed_by_id is not None else "PENDING",
    )


def _install(monkeypatch, calls: list[str], *, round_closed: bool = False, proposed_by_id=None) -> None:
    async def _load_group(session, group_id):
        calls.append("group")
        return SimpleNamespace(id=group_id, round_id=ROUND_ID, status="PENDING")

    async def _lock(session, *, round_id):
        assert round_id == ROUND_ID
        calls.append("lock")

    async def _round(session, round_id):
        calls.append("round")
        return SimpleNamespace(id=round_id, is_closed=round_closed)

    async def _matches(session, *, group_id):
        calls.append("matches")
        return [_match(number, proposed_by_id=proposed_by_id) for number in (1, 2, 3)]

    async def _players(session, *, group_id):
        return [SimpleNamespace(player_id=player_id) for player_id in (A, B, C, D)]

    monkeypatch.setattr(scheduling, "load_group", _load_group)
    monkeypatch.setattr(scheduling, "acquire_round_lock", _lock)
    monkeypatch.setattr(scheduling.RoundsRepo, "get_by_id", _round)
    monkeypatch.setattr(scheduling.MatchesRepo, "list_for_group_for_update", _matches)
    monkeypatch.setattr(scheduling.GroupPlayersRepo, "list_for_group", _players)


@pytest.mark.asyncio
async def test_propose_takes_round_lock_before_touching_matches(monkeypatch) -> None:
    calls: list[str] = []
    _install(monkeypatch, calls)

    snapshot = await scheduling.propose_group_date(
        _Session(calls),
        group_id=GROUP_ID,
        proposer_id=A,
        proposed_date=NOW,
    )

    assert calls == ["group", "lock", "round", "matches", "flush"]
    assert snapshot.status == "DATE_PROPOSED"


@pytest.mark.asyncio
async def test_respond_and_cancel_take_round_lock(monkeypatch) -> None:
    calls: list[str] = []
    _install(monkeypatch, calls, proposed_by_id=A)

    await scheduling.respond_group_date(_Session(calls), group_id=GROUP_ID, player_id=B, accept=True)
    await scheduling.cancel_group_date(_Session(calls), group_id=GROUP_ID, player_id=A)

    assert calls.count("lock") == 2
    assert calls.index("lock") < calls.index("matches")


@pytest.mark.asyncio
async def test_closed_round_is_checked_under_the_lock(monkeypatch) -> None:
    calls: list[str] = []
    _install(monkeypatch, calls, round_closed=True)

    with pytest.raises(StateConflict) as exc_info:
        await scheduling.propose_group_date(
            _Session(calls),
            group_id=GROUP_ID,
            proposer_id=A,
            proposed_date=NOW,
        )

    assert exc_info.value.reason == "ROUND_CLOSED"
    assert calls == ["group", "lock", "round"]
