import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.config.logging_config import log_security_event
from app.config.settings import settings
from app.database import get_db
from app.services.task_notification_service import TaskNotificationService
from app.utils.dates import utcnow

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/send-reminders")
async def send_reminders(request: Request, db: Session = Depends(get_db)):
    """
    Deadline reminder sweep for an external cron service.

    Callers authenticate with `Authorization: Bearer <CRON_SECRET>`.
    """
    if not settings.CRON_SECRET:
        logger.error("CRON_SECRET is not configured, refusing to run reminder sweep")
        return JSONResponse(status_code=500, content={"error": "Server misconfiguration"})

    auth_header = request.headers.get("authorization")
    if auth_header != f"Bearer {settings.CRON_SECRET}":
        log_security_event(
            logger,
            "Unauthorized cron request",
            client=request.client.host if request.client else "unknown",
        )
        return JSONResponse(status_code=401, content={"error": "Unauthorized"})

    try:
        sent = await TaskNotificationService(db).send_deadline_reminders()
    except Exception as e:
        logger.error(f"Cron reminder sweep failed: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"message": "Cron job failed.", "error": str(e)})

    logger.info(f"Cron reminder sweep sent {sent} reminders")
    return {"message": "Cron job completed successfully.", "timestamp": utcnow().isoformat()}
