from app.workers.tasks.schedule_notifications import notify_group_schedule

__all__ = ["notify_group_schedule"]
