from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, Text, Boolean, Table
from sqlalchemy.orm import relationship
from app.database import Base
from app.utils.dates import utcnow
import enum


class TaskStatus(str, enum.Enum):
    TO_DO = "TO_DO"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    BLOCKED = "BLOCKED"


# Association table for many-to-many relationship between tasks and tags
task_tags = Table(
    'task_tags',
    Base.metadata,
    Column('task_id', Integer, ForeignKey('tasks.id', ondelete="CASCADE"), primary_key=True),
    Column('tag_id', Integer, ForeignKey('tags.id', ondelete="CASCADE"), primary_key=True)
)


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    priority = Column(Integer, default=5, nullable=False)
    due_date = Column(DateTime, nullable=False, index=True)
    status = Column(Enum(TaskStatus), default=TaskStatus.TO_DO, nullable=False)

    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=False, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=True, index=True)
    parent_task_id = Column(Integer, ForeignKey("tasks.id"), nullable=True, index=True)

    # Days between occurrences, None when the task does not repeat
    recurring_interval = Column(Integer, nullable=True)
    is_archived = Column(Boolean, default=False, nullable=False)

    # Set on the first move to IN_PROGRESS
    start_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    owner = relationship("User", foreign_keys=[owner_id], back_populates="owned_tasks")
    department = relationship("Department")
    project = relationship("Project", back_populates="tasks")
    parent_task = relationship("Task", remote_side=[id], back_populates="subtasks")
    subtasks = relationship("Task", back_populates="parent_task")
    assignments = relationship(
        "TaskAssignment", back_populates="task", cascade="all, delete-orphan", order_by="TaskAssignment.user_id"
    )
    tags = relationship("Tag", secondary=task_tags, back_populates="tasks")
    comments = relationship(
        "Comment", back_populates="task", cascade="all, delete-orphan", order_by="Comment.created_at"
    )
    files = relationship("TaskFile", back_populates="task", cascade="all, delete-orphan")
    logs = relationship("TaskLog", back_populates="task", cascade="all, delete-orphan")
    calendar_events = relationship("CalendarEvent", back_populates="task", cascade="all, delete-orphan")
    notifications = relationship("Notification", back_populates="task", cascade="all, delete-orphan")

    @property
    def assignee_ids(self):
        return [assignment.user_id for assignment in self.assignments]

    @property
    def tag_names(self):
        return sorted(tag.name for tag in self.tags)

    @property
    def is_subtask(self) -> bool:
        return self.parent_task_id is not None

    @property
    def is_recurring(self) -> bool:
        return self.recurring_interval is not None

    @property
    def total_file_size(self) -> int:
        return sum(f.file_size for f in self.files)

    def is_user_assigned(self, user_id: int) -> bool:
        return user_id in self.assignee_ids

    def __repr__(self):
        return f"<Task(id={self.id}, title='{self.title}', status='{self.status}')>"


class TaskAssignment(Base):
    __tablename__ = "task_assignments"

    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), primary_key=True)
    assigned_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    assigned_at = Column(DateTime, default=utcnow, nullable=False)

    task = relationship("Task", back_populates="assignments")
    user = relationship("User", foreign_keys=[user_id], back_populates="assignments")
    assigned_by = relationship("User", foreign_keys=[assigned_by_id])


class Tag(Base):
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False, index=True)

    tasks = relationship("Task", secondary=task_tags, back_populates="tags")


class Comment(Base):
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True)
    content = Column(Text, nullable=False)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    task = relationship("Task", back_populates="comments")
    author = relationship("User")


class TaskFile(Base):
    __tablename__ = "task_files"

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    file_name = Column(String(255), nullable=False)  # Original filename
    file_size = Column(Integer, nullable=False)  # Bytes
    file_type = Column(String(100), nullable=False)  # MIME type
    storage_path = Column(String(500), nullable=False, unique=True)
    uploaded_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    uploaded_at = Column(DateTime, default=utcnow, nullable=False)

    task = relationship("Task", back_populates="files")
    uploaded_by = relationship("User", foreign_keys=[uploaded_by_id])


class CalendarEvent(Base):
    __tablename__ = "calendar_events"

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    event_date = Column(DateTime, nullable=False)
    is_completed = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    task = relationship("Task", back_populates="calendar_events")
    user = relationship("User")
