# app/models/user.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean, Enum
from sqlalchemy.orm import relationship
from app.database import Base
from app.utils.dates import utcnow
import enum


class UserRole(str, enum.Enum):
    STAFF = "STAFF"
    MANAGER = "MANAGER"
    HR_ADMIN = "HR_ADMIN"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(Enum(UserRole), default=UserRole.STAFF, nullable=False)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=False, index=True)
    is_hr_admin = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    department = relationship("Department", back_populates="members", foreign_keys=[department_id])
    owned_tasks = relationship("Task", back_populates="owner", foreign_keys="Task.owner_id")
    assignments = relationship(
        "TaskAssignment", back_populates="user", foreign_keys="TaskAssignment.user_id"
    )
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")

    @property
    def is_hr(self) -> bool:
        """HR role or the HR admin flag"""
        return self.role == UserRole.HR_ADMIN or bool(self.is_hr_admin)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
