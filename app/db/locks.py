from __future__ import annotations

import asyncio
import time
from uuid import UUID

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.ladder.constants import REASON_ROUND_LOCK_TIMEOUT
from app.ladder.errors import IntegrityFailure

logger = structlog.get_logger("app.db.locks")

_TRY_XACT_LOCK_SQL = text("SELECT pg_try_advisory_xact_lock(hashtext(:lock_key))")


def round_lock_key(round_id: UUID) -> str:
    return f"round:{round_id}"


async def try_advisory_xact_lock(session: AsyncSession, *, lock_key: str) -> bool:
    result = await session.execute(_TRY_XACT_LOCK_SQL, {"lock_key": lock_key})
    return bool(result.scalar_one())


async def acquire_round_lock(
    session: AsyncSession,
    *,
    round_id: UUID,
    timeout_ms: int | None = None,
    retry_ms: int | None = None,
) -> None:
    """Take the transaction-scoped lock for a round or raise IntegrityFailure.

    The lock is released by Postgres when the surrounding transaction ends.
    """
    settings = get_settings()
    resolved_timeout_ms = settings.round_lock_timeout_ms if timeout_ms is None else timeout_ms
    resolved_retry_ms = max(1, settings.round_lock_retry_ms if retry_ms is None else retry_ms)
    lock_key = round_lock_key(round_id)

    deadline = time.monotonic() + max(0, resolved_timeout_ms) / 1000
    attempts = 0
    while True:
        attempts += 1
        if await try_advisory_xact_lock(session, lock_key=lock_key):
            if attempts > 1:
                logger.info("round_lock_acquired_after_retry", lock_key=lock_key, attempts=attempts)
            return
        if time.monotonic() >= deadline:
            logger.warning(
                "round_lock_timeout",
                lock_key=lock_key,
                attempts=attempts,
                timeout_ms=resolved_timeout_ms,
            )
            raise IntegrityFailure(REASON_ROUND_LOCK_TIMEOUT)
        await asyncio.sleep(resolved_retry_ms / 1000)
