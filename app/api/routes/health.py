from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from sqlalchemy import text

from app.core.config import get_settings
from app.db.session import SessionLocal
from app.workers.celery_app import celery_app

router = APIRouter(tags=["health"])
logger = structlog.get_logger("app.api.routes.health")

Check = Callable[[], Awaitable[dict[str, Any]]]


def _ok_check(extra: dict[str, Any] | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {"status": "ok"}
    if extra:
        payload.update(extra)
    return payload


def _failed_check(error: str) -> dict[str, str]:
    return {"status": "failed", "error": error}


async def _check_database() -> dict[str, Any]:
    try:
        async with SessionLocal() as session:
            await session.execute(text("SELECT 1"))
    except Exception as exc:
        # Driver errors can carry the DSN; only the class name is logged.
        logger.warning("health_database_failed", error_type=type(exc).__name__)
        return _failed_check("database_unavailable")
    return _ok_check()


async def _check_redis() -> dict[str, Any]:
    redis_client: Redis | None = None
    try:
        redis_client = Redis.from_url(get_settings().redis_url)
        if await redis_client.ping() is not True:
            return _failed_check("redis_unexpected_ping")
        return _ok_check()
    except Exception as exc:
        logger.warning("health_redis_failed", error_type=type(exc).__name__)
        return _failed_check("redis_unavailable")
    finally:
        if redis_client is not None:
            await redis_client.aclose()


def _check_celery_worker_sync() -> dict[str, Any]:
    try:
        inspector = celery_app.control.inspect(timeout=1.0)
        replies = (inspector.ping() if inspector is not None else None) or {}
    except Exception as exc:
        logger.warning("health_celery_failed", error_type=type(exc).__name__)
        return _failed_check("celery_unavailable")
    if not replies:
        return _failed_check("no_celery_workers")
    return _ok_check({"workers": len(replies)})


async def _check_celery_worker() -> dict[str, Any]:
    return await asyncio.to_thread(_check_celery_worker_sync)


async def _collect(checks: dict[str, Check]) -> dict[str, dict[str, Any]]:
    results = await asyncio.gather(*(check() for check in checks.values()))
    return dict(zip(checks.keys(), results))


def _all_ok(checks: dict[str, dict[str, Any]]) -> bool:
    return all(check.get("status") == "ok" for check in checks.values())


def _status_code(ok: bool) -> int:
    return status.HTTP_200_OK if ok else status.HTTP_503_SERVICE_UNAVAILABLE


@router.get("/health")
async def health() -> JSONResponse:
    checks = await _collect(
        {
            "database": _check_database,
            "redis": _check_redis,
            "celery": _check_celery_worker,
        }
    )
    healthy = _all_ok(checks)
    return JSONResponse(
        status_code=_status_code(healthy),
        content={"status": "ok" if healthy else "degraded", "checks": checks},
    )


@router.get("/ready")
async def ready() -> JSONResponse:
    # Notifications degrade gracefully, so the worker does not gate readiness.
    checks = await _collect({"database": _check_database, "redis": _check_redis})
    is_ready = _all_ok(checks)
    return JSONResponse(
        status_code=_status_code(is_ready),
        content={"status": "ready" if is_ready else "not_ready", "checks": checks},
    )


@router.get("/live")
async def live() -> dict[str, str]:
    return {"status": "live"}
