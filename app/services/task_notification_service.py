# app/services/task_notification_service.py
"""
Deadline reminder sweep, run daily by the scheduler and on demand by the cron endpoint
"""

import logging
from datetime import datetime, timedelta
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from app.config.settings import settings
from app.models.notification import NotificationType
from app.models.task import Task, TaskStatus
from app.services.email_service import EmailService, email_service
from app.services.notification_service import NotificationService
from app.utils.dates import utcnow

logger = logging.getLogger(__name__)

REMINDER_TITLE = "Task Deadline Reminder"
OVERDUE_TITLE = "Task Overdue"


def hours_until_due(due_date: datetime, now: datetime) -> int:
    """Whole hours from now to the deadline, truncated toward zero"""
    return int((due_date - now).total_seconds() / 3600)


def classify_deadline(task_title: str, hours: int) -> Optional[Tuple[NotificationType, str, str]]:
    """Pick (type, title, message) for a task, or None when no reminder is due"""
    if 0 < hours <= 24:
        return (
            NotificationType.DEADLINE_REMINDER,
            REMINDER_TITLE,
            f'Your task "{task_title}" is due in less than 24 hours.',
        )
    if -24 < hours <= 0:
        return (
            NotificationType.DEADLINE_REMINDER,
            REMINDER_TITLE,
            f'Your task "{task_title}" is due today.',
        )
    if -48 < hours <= -24:
        return (
            NotificationType.TASK_OVERDUE,
            OVERDUE_TITLE,
            f'Your task "{task_title}" was due yesterday.',
        )
    return None


class TaskNotificationService:
    def __init__(
        self,
        db: Session,
        notifications: Optional[NotificationService] = None,
        mailer: Optional[EmailService] = None,
    ):
        self.db = db
        self.mailer = mailer or email_service
        self.notifications = notifications or NotificationService(db, mailer=self.mailer)

    async def send_deadline_reminders(self, now: Optional[datetime] = None) -> int:
        """Notify assignees of tasks due within a day or overdue by up to two days"""
        now = now or utcnow()
        tasks = (
            self.db.query(Task)
            .filter(
                Task.status != TaskStatus.COMPLETED,
                Task.due_date >= now - timedelta(hours=48),
                Task.due_date <= now + timedelta(hours=24),
            )
            .all()
        )
        logger.info(f"Deadline sweep found {len(tasks)} candidate tasks")

        sent = 0
        for task in tasks:
            reminder = classify_deadline(task.title, hours_until_due(task.due_date, now))
            if reminder is None:
                continue
            notification_type, title, message = reminder
            sent += await self._send_reminder(task, notification_type, title, message)

        logger.info(f"Deadline sweep sent {sent} reminders")
        return sent

    async def _send_reminder(self, task: Task, notification_type: NotificationType, title: str, message: str) -> int:
        sent = 0
        for assignment in task.assignments:
            user = assignment.user
            if not user.is_active:
                continue

            await self.notifications.create(
                user_id=user.id,
                type=notification_type,
                title=title,
                message=message,
                task_id=task.id,
                send_email=False,
            )

            if user.email:
                html = f"<p>Dear {user.name or 'User'},</p><p>{message}</p>"
                if user.is_hr_admin:
                    html += "<p><b>This is a notification for the HR department.</b></p>"
                html += (
                    f'<p>You can view the task here: '
                    f'<a href="{settings.APP_BASE_URL}/tasks/{task.id}">{task.title}</a></p>'
                    f"<p>Regards,<br>Your Application Team</p>"
                )
                await self.mailer.send_email(to=user.email, subject=title, text=message, html=html)
            sent += 1
        return sent
