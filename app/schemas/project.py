from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime

from app.models.project import ProjectStatus


class ProjectCreate(BaseModel):
    name: str
    description: Optional[str] = None
    priority: Optional[int] = None
    status: Optional[ProjectStatus] = None


class ProjectUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[int] = None
    status: Optional[ProjectStatus] = None
    is_archived: Optional[bool] = None


class ProjectStatusUpdate(BaseModel):
    status: ProjectStatus


class ProjectCreated(BaseModel):
    id: int
    name: str


class ProjectOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    priority: int
    status: ProjectStatus
    department_id: int
    creator_id: int
    is_archived: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }


class CollaboratorOut(BaseModel):
    project_id: int
    user_id: int
    department_id: int
    added_at: datetime

    model_config = {
        "from_attributes": True
    }


# Report export

class ReportProject(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    priority: int
    status: str
    department_name: str
    creator_name: str
    creator_email: str
    created_at: datetime
    updated_at: Optional[datetime] = None


class ReportTask(BaseModel):
    id: int
    title: str
    description: str
    status: str
    priority: int
    due_date: datetime
    created_at: datetime
    owner_name: str
    owner_email: str
    assignees: List[str]


class ReportCollaborator(BaseModel):
    name: str
    email: str
    department_name: str
    added_at: datetime


class ProjectReport(BaseModel):
    project: ReportProject
    tasks: List[ReportTask]
    collaborators: List[ReportCollaborator]
