import json
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Query, Request, WebSocket, WebSocketDisconnect, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config.logging_config import log_security_event, setup_logging
from app.config.settings import settings
from app.database import SessionLocal
from app.domain.errors import DomainError
from app.models.user import User
from app.routers import auth, cron, departments, files, notifications, projects, tasks, teams, users
from app.services.scheduler import task_scheduler
from app.services.websocket_manager import websocket_manager
from app.utils.auth import require_hr_admin, verify_token
from app.utils.dates import utcnow

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Task Manager API...")
    if settings.SCHEDULER_ENABLED:
        task_scheduler.start()
    yield
    logger.info("Shutting down Task Manager API...")
    task_scheduler.stop()


app = FastAPI(title="Task Manager API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Route registration
app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(users.router, prefix="/users", tags=["Users"])
app.include_router(departments.router, prefix="/departments", tags=["Departments"])
app.include_router(teams.router, prefix="/teams", tags=["Teams"])
app.include_router(projects.router, prefix="/projects", tags=["Projects"])
app.include_router(tasks.router, prefix="/tasks", tags=["Tasks"])
app.include_router(files.router, prefix="/files", tags=["Files"])
app.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
app.include_router(cron.router, prefix="/api/cron", tags=["Cron"])


@app.get("/")
def read_root():
    return {"message": "Task Manager API"}


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/scheduler/status")
def get_scheduler_status():
    """Get scheduler status and job information"""
    return task_scheduler.get_scheduler_status()


@app.post("/scheduler/trigger/reminders")
async def trigger_reminders(current_user: User = Depends(require_hr_admin)):
    """Manually run the deadline reminder sweep. HR admins only."""
    logger.info(f"Reminder sweep triggered manually by user {current_user.id}")
    sent = await task_scheduler.send_deadline_reminders()
    return {"message": "Reminder sweep triggered successfully", "sent": sent}


def _authenticate_websocket(token: str):
    payload = verify_token(token) if token else None
    if not payload or "sub" not in payload:
        return None

    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == payload["sub"]).first()
        if user and user.is_active:
            return user.id
        return None
    finally:
        db.close()


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, token: str = Query(None)):
    """Realtime notification channel, authenticated with the access token"""
    await websocket.accept()

    user_id = _authenticate_websocket(token)
    if user_id is None:
        log_security_event(logger, "Rejected WebSocket connection with invalid token")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket_manager.connect(websocket, user_id)
    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                continue

            if isinstance(message, dict) and message.get("type") == "ping":
                await websocket.send_text(json.dumps({"type": "pong", "timestamp": utcnow().isoformat()}))
    except WebSocketDisconnect:
        websocket_manager.disconnect(websocket, user_id)
