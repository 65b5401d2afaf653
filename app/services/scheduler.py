# app/services/scheduler.py
"""
Scheduler for the daily deadline reminder sweep
"""

import logging
import time
from typing import Any, Dict, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from app.config.logging_config import log_duration
from app.config.settings import settings
from app.database import SessionLocal
from app.services.task_notification_service import TaskNotificationService

logger = logging.getLogger(__name__)

REMINDER_JOB_ID = "daily_deadline_reminders"


class TaskScheduler:
    """Runs the deadline reminder sweep once a day"""

    def __init__(self, reminder_hour: Optional[int] = None):
        self.scheduler = AsyncIOScheduler()
        self.reminder_hour = settings.REMINDER_CRON_HOUR if reminder_hour is None else reminder_hour
        self.is_running = False

    def start(self):
        """Start the scheduler"""
        if self.is_running:
            return

        self.scheduler.add_job(
            self.send_deadline_reminders,
            trigger=CronTrigger(hour=self.reminder_hour, minute=0),
            id=REMINDER_JOB_ID,
            name="Daily Deadline Reminders",
            replace_existing=True,
        )
        self.scheduler.start()
        self.is_running = True
        logger.info(f"Task scheduler started, reminders run daily at {self.reminder_hour:02d}:00")

    def stop(self):
        """Stop the scheduler"""
        if self.is_running:
            self.scheduler.shutdown()
            self.is_running = False
            logger.info("Task scheduler stopped")

    async def send_deadline_reminders(self) -> int:
        """Scheduled entry point. Failures are logged so the next run still fires."""
        started = time.perf_counter()
        db = SessionLocal()
        try:
            sent = await TaskNotificationService(db).send_deadline_reminders()
            log_duration(logger, "deadline reminder sweep", started)
            return sent
        except Exception:
            logger.exception("Scheduled deadline reminder sweep failed")
            return 0
        finally:
            db.close()

    def get_scheduler_status(self) -> Dict[str, Any]:
        """Get scheduler status and job information"""
        if not self.is_running:
            return {"status": "stopped", "jobs": []}

        jobs = []
        for job in self.scheduler.get_jobs():
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
                "trigger": str(job.trigger),
            })

        return {
            "status": "running",
            "jobs": jobs,
        }


# Global scheduler instance
task_scheduler = TaskScheduler()
