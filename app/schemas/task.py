# app/schemas/task.py
from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, List, Any, Dict

from app.models.task import TaskStatus
from app.models.task_log import TaskLogAction
from app.utils.dates import to_naive_utc


class TaskCreate(BaseModel):
    title: str
    description: str = ""
    priority: int = 5
    due_date: datetime
    assignee_ids: List[int]
    project_id: Optional[int] = None
    parent_task_id: Optional[int] = None
    tags: List[str] = []
    recurring_interval: Optional[int] = None

    @field_validator('due_date')
    @classmethod
    def due_date_to_utc(cls, v):
        return to_naive_utc(v)


class SubtaskCreate(BaseModel):
    title: str
    description: str = ""
    priority: int = 5
    due_date: datetime
    assignee_ids: List[int]
    tags: List[str] = []
    recurring_interval: Optional[int] = None

    @field_validator('due_date')
    @classmethod
    def due_date_to_utc(cls, v):
        return to_naive_utc(v)


class TitleUpdate(BaseModel):
    title: str


class DescriptionUpdate(BaseModel):
    description: str


class PriorityUpdate(BaseModel):
    priority: int


class DeadlineUpdate(BaseModel):
    due_date: datetime

    @field_validator('due_date')
    @classmethod
    def due_date_to_utc(cls, v):
        return to_naive_utc(v)


class StatusUpdate(BaseModel):
    status: TaskStatus


class RecurringUpdate(BaseModel):
    enabled: bool
    days: Optional[int] = None


class TagRequest(BaseModel):
    tag: str = Field(..., min_length=1, max_length=50)


class AssigneeRequest(BaseModel):
    user_id: int


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1)


class CommentOut(BaseModel):
    id: int
    content: str
    task_id: int
    user_id: int
    created_at: datetime
    updated_at: datetime

    model_config = {
        "from_attributes": True
    }


class TaskFileOut(BaseModel):
    id: int
    task_id: int
    file_name: str
    file_size: int
    file_type: str
    storage_path: str
    uploaded_by_id: int
    uploaded_at: datetime

    model_config = {
        "from_attributes": True
    }


class FileDownload(BaseModel):
    url: str
    expires_in: int


class TaskOut(BaseModel):
    id: int
    title: str
    description: str
    priority: int
    due_date: datetime
    status: TaskStatus
    owner_id: int
    department_id: int
    project_id: Optional[int] = None
    parent_task_id: Optional[int] = None
    recurring_interval: Optional[int] = None
    is_archived: bool
    start_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    assignee_ids: List[int] = []
    tag_names: List[str] = []

    model_config = {
        "from_attributes": True
    }


class TaskDetail(TaskOut):
    comments: List[CommentOut] = []
    files: List[TaskFileOut] = []


class TaskCreated(BaseModel):
    id: int


class TaskLogOut(BaseModel):
    id: int
    task_id: int
    user_id: int
    action: TaskLogAction
    field: str
    changes: Optional[Dict[str, Any]] = None
    log_metadata: Optional[Dict[str, Any]] = None
    timestamp: datetime

    model_config = {
        "from_attributes": True
    }


class CalendarEventCreate(BaseModel):
    event_user_id: int
    title: str = Field(..., min_length=1)
    event_date: datetime

    @field_validator('event_date')
    @classmethod
    def event_date_to_utc(cls, v):
        return to_naive_utc(v)


class CalendarEventOut(BaseModel):
    id: int
    task_id: int
    user_id: int
    title: str
    event_date: datetime
    is_completed: bool
    created_at: datetime

    model_config = {
        "from_attributes": True
    }


class PriorityInfo(BaseModel):
    level: int
    label: str
    color: str
    description: str


class CanEditOut(BaseModel):
    task_id: int
    can_edit: bool


class TaskNode(BaseModel):
    id: int
    title: str
    status: TaskStatus
    priority: int
    due_date: datetime
    parent_task_id: Optional[int] = None
    owner_id: int
    subtasks: List["TaskNode"] = []


class TaskHierarchy(BaseModel):
    parent_chain: List[TaskNode]
    current_task: TaskOut
    subtask_tree: List[TaskNode]


TaskNode.model_rebuild()
