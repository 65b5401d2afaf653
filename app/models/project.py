# app/models/project.py
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Boolean, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from app.database import Base
from app.utils.dates import utcnow
import enum


class ProjectStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    ON_HOLD = "ON_HOLD"
    CANCELLED = "CANCELLED"


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)
    priority = Column(Integer, default=5, nullable=False)
    status = Column(Enum(ProjectStatus), default=ProjectStatus.ACTIVE, nullable=False)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=False, index=True)
    creator_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    is_archived = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    department = relationship("Department")
    creator = relationship("User", foreign_keys=[creator_id])
    tasks = relationship("Task", back_populates="project")
    department_access = relationship(
        "ProjectDepartmentAccess", back_populates="project", cascade="all, delete-orphan"
    )
    collaborators = relationship(
        "ProjectCollaborator", back_populates="project", cascade="all, delete-orphan"
    )


class ProjectDepartmentAccess(Base):
    __tablename__ = "project_department_access"

    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True)
    department_id = Column(Integer, ForeignKey("departments.id"), primary_key=True)
    granted_at = Column(DateTime, default=utcnow, nullable=False)

    project = relationship("Project", back_populates="department_access")
    department = relationship("Department")


class ProjectCollaborator(Base):
    __tablename__ = "project_collaborators"
    __table_args__ = (UniqueConstraint("project_id", "user_id", name="uq_project_collaborator"),)

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=False)
    added_at = Column(DateTime, default=utcnow, nullable=False)

    project = relationship("Project", back_populates="collaborators")
    user = relationship("User")
    department = relationship("Department")
