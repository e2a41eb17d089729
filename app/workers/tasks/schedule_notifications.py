from __future__ import annotations

from datetime import datetime
from uuid import UUID

import structlog

from app.db.repo.group_players_repo import GroupPlayersRepo
from app.db.repo.notification_outbox_repo import NotificationOutboxRepo
from app.db.session import SessionLocal
from app.ladder.constants import NOTIFICATION_STATUS_PENDING
from app.workers.asyncio_runner import run_async_job
from app.workers.celery_app import celery_app

logger = structlog.get_logger("app.workers.tasks.schedule_notifications")


def _is_celery_task(task_obj: object) -> bool:
    return type(task_obj).__module__.startswith("celery.")


def build_schedule_payload(
    *,
    group_id: str,
    status: str,
    proposed_date: str | None,
    actor_id: str | None,
) -> dict[str, object]:
    return {
        "group_id": group_id,
        "status": status,
        "proposed_date": proposed_date,
        "actor_id": actor_id,
    }


async def notify_group_schedule_async(
    *,
    group_id: str,
    event_type: str,
    status: str,
    proposed_date: str | None = None,
    actor_id: str | None = None,
) -> dict[str, int]:
    group_uuid = UUID(group_id)
    actor_uuid = UUID(actor_id) if actor_id else None
    async with SessionLocal.begin() as session:
        group_players = await GroupPlayersRepo.list_for_group(session, group_id=group_uuid)
        recipients = [
            group_player.player_id
            for group_player in group_players
            if group_player.player_id != actor_uuid
        ]
        queued_total = await NotificationOutboxRepo.create_for_players(
            session,
            player_ids=recipients,
            event_type=event_type,
            payload=build_schedule_payload(
                group_id=group_id,
                status=status,
                proposed_date=proposed_date,
                actor_id=actor_id,
            ),
            status=NOTIFICATION_STATUS_PENDING,
        )

    logger.info(
        "group_schedule_notification_queued",
        group_id=group_id,
        event_type=event_type,
        queued_total=queued_total,
    )
    return {"queued_total": queued_total}


@celery_app.task(name="app.workers.tasks.schedule_notifications.notify_group_schedule")
def notify_group_schedule(
    *,
    group_id: str,
    event_type: str,
    status: str,
    proposed_date: str | None = None,
    actor_id: str | None = None,
) -> dict[str, int]:
    return run_async_job(
        notify_group_schedule_async(
            group_id=group_id,
            event_type=event_type,
            status=status,
            proposed_date=proposed_date,
            actor_id=actor_id,
        )
    )


def enqueue_group_schedule_notification(
    *,
    group_id: UUID,
    event_type: str,
    status: str,
    proposed_date: datetime | None = None,
    actor_id: UUID | None = None,
) -> None:
    kwargs = {
        "group_id": str(group_id),
        "event_type": event_type,
        "status": status,
        "proposed_date": proposed_date.isoformat() if proposed_date is not None else None,
        "actor_id": str(actor_id) if actor_id is not None else None,
    }
    try:
        if _is_celery_task(notify_group_schedule):
            notify_group_schedule.delay(**kwargs)
        else:
            run_async_job(notify_group_schedule_async(**kwargs))
    except Exception as exc:
        logger.warning(
            "group_schedule_notification_enqueue_failed",
            group_id=str(group_id),
            event_type=event_type,
            error_type=type(exc).__name__,
        )
