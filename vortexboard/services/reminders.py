"""
Due-date reminders.

Run externally (``python -m vortexboard.db remind``); there is no in-process
scheduler. Each assignee receives at most one due-soon and one overdue
reminder per task, however often the run is repeated.
"""

from datetime import datetime, timedelta

from vortexboard.config import settings
from vortexboard.db_handlers.notification import NotificationDBHandler
from vortexboard.db_handlers.task import TaskDBHandler
from vortexboard.models.base import utc_now
from vortexboard.services.email import EmailService
from vortexboard.services.notifications import NotificationService
from vortexboard.utils.logger import setup_logger

logger = setup_logger("reminders")


async def send_due_reminders(
    email_service: EmailService,
    now: datetime | None = None,
    due_soon_hours: int | None = None,
) -> dict[str, int]:
    now = now or utc_now()
    window = timedelta(hours=due_soon_hours or settings.due_soon_hours)
    tasks = TaskDBHandler()
    notifications = NotificationDBHandler()
    service = NotificationService(email_service, notifications)
    sent = {"task_due_soon": 0, "task_overdue": 0}

    due_soon = await tasks.get_reminder_candidates(now, now + window)
    overdue = await tasks.get_reminder_candidates(None, now)

    for batch, is_overdue in ((due_soon, False), (overdue, True)):
        notification_type = "task_overdue" if is_overdue else "task_due_soon"
        for task in batch:
            if await notifications.exists_for(
                task.assigned_to_id, notification_type, task.id
            ):
                continue
            if await service.task_reminder(task, overdue=is_overdue):
                sent[notification_type] += 1

    logger.info(
        f"Reminders sent: {sent['task_due_soon']} due soon, {sent['task_overdue']} overdue"
    )
    return sent
