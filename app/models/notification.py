# app/models/notification.py
from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey, Enum
from sqlalchemy.orm import relationship
from app.database import Base
from app.utils.dates import utcnow
import enum


class NotificationType(str, enum.Enum):
    TASK_ASSIGNED = "TASK_ASSIGNED"
    TASK_UPDATED = "TASK_UPDATED"
    COMMENT_ADDED = "COMMENT_ADDED"
    DEADLINE_REMINDER = "DEADLINE_REMINDER"
    TASK_OVERDUE = "TASK_OVERDUE"
    TASK_DELETED = "TASK_DELETED"
    TASK_REASSIGNED = "TASK_REASSIGNED"
    PROJECT_COLLABORATION_ADDED = "PROJECT_COLLABORATION_ADDED"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(Enum(NotificationType), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=True, index=True)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("User", back_populates="notifications")
    task = relationship("Task", back_populates="notifications")

    def __repr__(self):
        return f"<Notification(id={self.id}, user_id={self.user_id}, title='{self.title}', type='{self.type}')>"
