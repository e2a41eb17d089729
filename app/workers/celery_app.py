from celery import Celery

from app.core.config import get_settings

settings = get_settings()

LADDER_TASK_MODULES = ["app.workers.tasks.schedule_notifications"]

celery_app = Celery(
    "padel_ladder",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=LADDER_TASK_MODULES,
)

celery_app.conf.update(
    task_default_queue="q_ladder",
    task_routes={
        "app.workers.tasks.schedule_notifications.*": {"queue": "q_notifications"},
    },
    task_acks_late=True,
    task_ignore_result=True,
    worker_prefetch_multiplier=1,
    task_serializer="json",
    accept_content=["json"],
    # Round deadlines and match dates are stored in UTC.
    timezone="UTC",
    enable_utc=True,
)


@celery_app.task(name="app.workers.celery_app.ping", ignore_result=False)
def ping() -> str:
    return "pong"
