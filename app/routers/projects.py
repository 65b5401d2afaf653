from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session
from typing import List, Optional

from app.database import get_db
from app.models.project import ProjectStatus
from app.models.user import User
from app.schemas.project import (
    CollaboratorOut,
    ProjectCreate,
    ProjectCreated,
    ProjectOut,
    ProjectReport,
    ProjectStatusUpdate,
    ProjectUpdate,
)
from app.schemas.task import TaskOut
from app.services.project_service import ProjectService
from app.services.report_service import ProjectReportService, report_to_csv
from app.services.task_service import TaskService
from app.utils.auth import get_current_user

router = APIRouter()


@router.post("/", response_model=ProjectCreated, status_code=status.HTTP_201_CREATED)
def create_project(
    project: ProjectCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Create a project owned by the caller's department"""
    return ProjectService(db).create_project(project, current_user)


@router.get("/", response_model=List[ProjectOut])
def get_projects(
    department_id: Optional[int] = Query(None),
    creator_id: Optional[int] = Query(None),
    status: Optional[ProjectStatus] = Query(None),
    is_archived: Optional[bool] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return ProjectService(db).get_all_projects(
        department_id=department_id,
        creator_id=creator_id,
        status=status,
        is_archived=is_archived,
    )


@router.get("/department", response_model=List[ProjectOut])
def get_my_department_projects(
    include_archived: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return ProjectService(db).get_department_projects(current_user.department_id, include_archived)


@router.get("/creator/{creator_id}", response_model=List[ProjectOut])
def get_projects_by_creator(
    creator_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return ProjectService(db).get_projects_by_creator(creator_id)


@router.get("/status/{project_status}", response_model=List[ProjectOut])
def get_projects_by_status(
    project_status: ProjectStatus,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return ProjectService(db).get_projects_by_status(project_status)


@router.get("/{project_id}", response_model=ProjectOut)
def get_project(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return ProjectService(db).get_project_by_id(project_id)


@router.put("/{project_id}", response_model=ProjectOut)
def update_project(
    project_id: int,
    project: ProjectUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return ProjectService(db).update_project(project_id, project)


@router.patch("/{project_id}/status", response_model=ProjectOut)
def update_project_status(
    project_id: int,
    payload: ProjectStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return ProjectService(db).update_status(project_id, payload.status)


@router.post("/{project_id}/archive", response_model=ProjectOut)
def archive_project(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return ProjectService(db).archive_project(project_id)


@router.post("/{project_id}/unarchive", response_model=ProjectOut)
def unarchive_project(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return ProjectService(db).unarchive_project(project_id)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ProjectService(db).delete_project(project_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{project_id}/collaborators", response_model=List[CollaboratorOut])
def get_project_collaborators(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return ProjectService(db).get_collaborators(project_id)


@router.get("/{project_id}/tasks", response_model=List[TaskOut])
def get_project_tasks(
    project_id: int,
    include_archived: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return TaskService(db).get_project_tasks(project_id, include_archived)


@router.get("/{project_id}/report", response_model=ProjectReport)
def export_project_report(
    project_id: int,
    format: str = Query("json", pattern="^(json|csv)$"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Project report for HR/Admin users, as JSON or CSV"""
    report = ProjectReportService(db).get_project_report_data(project_id, current_user.id)
    if format == "csv":
        return Response(
            content=report_to_csv(report),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="project-{project_id}-report.csv"'},
        )
    return report
