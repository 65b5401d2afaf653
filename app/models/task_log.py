# app/models/task_log.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, JSON
from sqlalchemy.orm import relationship
from app.database import Base
from app.utils.dates import utcnow
import enum


class TaskLogAction(str, enum.Enum):
    CREATED = "CREATED"
    UPDATED = "UPDATED"
    ARCHIVED = "ARCHIVED"
    UNARCHIVED = "UNARCHIVED"
    DELETED = "DELETED"
    RECURRING_TASK_GENERATED = "RECURRING_TASK_GENERATED"


class TaskLog(Base):
    __tablename__ = "task_logs"

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    action = Column(Enum(TaskLogAction), nullable=False)
    field = Column(String(100), nullable=False)
    changes = Column(JSON, nullable=True)
    # "metadata" is reserved on declarative classes
    log_metadata = Column("metadata", JSON, nullable=True)
    timestamp = Column(DateTime, default=utcnow, nullable=False, index=True)

    task = relationship("Task", back_populates="logs")
    user = relationship("User")
