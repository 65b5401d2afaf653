from fastapi import APIRouter, Depends, File, Query, Response, UploadFile, status
from sqlalchemy.orm import Session
from typing import List, Optional

from app.config.settings import settings
from app.database import get_db
from app.models.task import TaskStatus
from app.models.user import User
from app.schemas.task import (
    AssigneeRequest,
    CalendarEventCreate,
    CalendarEventOut,
    CanEditOut,
    CommentCreate,
    CommentOut,
    DeadlineUpdate,
    DescriptionUpdate,
    FileDownload,
    PriorityInfo,
    PriorityUpdate,
    RecurringUpdate,
    StatusUpdate,
    SubtaskCreate,
    TagRequest,
    TaskCreate,
    TaskCreated,
    TaskDetail,
    TaskFileOut,
    TaskHierarchy,
    TaskLogOut,
    TaskOut,
    TitleUpdate,
)
from app.services.file_storage import FileStorageService, get_file_storage
from app.services.subtask_service import SubtaskService
from app.services.task_service import TaskService
from app.utils.auth import get_current_user

router = APIRouter()


def get_task_service(
    db: Session = Depends(get_db),
    storage: FileStorageService = Depends(get_file_storage),
) -> TaskService:
    return TaskService(db, storage=storage)


# Listing

@router.get("/priorities", response_model=List[PriorityInfo])
def get_priorities():
    """Label, color and description for every priority level"""
    return TaskService.priority_info()


@router.get("/", response_model=List[TaskOut])
def get_tasks(
    owner_id: Optional[int] = Query(None),
    project_id: Optional[int] = Query(None),
    department_id: Optional[int] = Query(None),
    status: Optional[TaskStatus] = Query(None),
    is_archived: Optional[bool] = Query(None),
    parent_task_id: Optional[int] = Query(None),
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    return service.get_all_tasks(
        owner_id=owner_id,
        project_id=project_id,
        department_id=department_id,
        status=status,
        is_archived=is_archived,
        parent_task_id=parent_task_id,
    )


@router.get("/assigned", response_model=List[TaskOut])
def get_my_tasks(
    include_archived: bool = Query(False),
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    """Tasks the current user is assigned to"""
    return service.get_user_tasks(current_user.id, include_archived)


@router.get("/owned", response_model=List[TaskOut])
def get_owned_tasks(
    include_archived: bool = Query(False),
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    return service.get_owner_tasks(current_user.id, include_archived)


@router.get("/department/{department_id}", response_model=List[TaskOut])
def get_department_tasks(
    department_id: int,
    include_archived: bool = Query(False),
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    return service.get_department_tasks(department_id, current_user, include_archived)


# Creation

@router.post("/", response_model=TaskCreated, status_code=status.HTTP_201_CREATED)
async def create_task(
    task: TaskCreate,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    created = await service.create_task(task, current_user)
    return {"id": created.id}


@router.post("/{parent_id}/subtasks", response_model=TaskCreated, status_code=status.HTTP_201_CREATED)
def create_subtask(
    parent_id: int,
    subtask: SubtaskCreate,
    db: Session = Depends(get_db),
    storage: FileStorageService = Depends(get_file_storage),
    current_user: User = Depends(get_current_user),
):
    created = SubtaskService(db, storage=storage).create_subtask(parent_id, subtask, current_user)
    return {"id": created.id}


# Single task

@router.get("/{task_id}", response_model=TaskDetail)
def get_task(
    task_id: int,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    return service.get_task_by_id(task_id, current_user)


@router.get("/{task_id}/can-edit", response_model=CanEditOut)
def can_edit_task(
    task_id: int,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    return {"task_id": task_id, "can_edit": service.can_edit(task_id, current_user)}


@router.get("/{task_id}/hierarchy", response_model=TaskHierarchy)
def get_task_hierarchy(
    task_id: int,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    return service.get_task_hierarchy(task_id, current_user)


@router.get("/{task_id}/subtasks", response_model=List[TaskOut])
def get_subtasks(
    task_id: int,
    include_archived: bool = Query(False),
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    return service.get_subtasks(task_id, current_user, include_archived)


@router.get("/{task_id}/logs", response_model=List[TaskLogOut])
def get_task_logs(
    task_id: int,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    """Audit trail, newest first"""
    return service.get_task_logs(task_id, current_user)


# Field updates

@router.patch("/{task_id}/title", response_model=TaskOut)
def update_title(
    task_id: int,
    payload: TitleUpdate,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    return service.update_title(task_id, payload.title, current_user)


@router.patch("/{task_id}/description", response_model=TaskOut)
def update_description(
    task_id: int,
    payload: DescriptionUpdate,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    return service.update_description(task_id, payload.description, current_user)


@router.patch("/{task_id}/priority", response_model=TaskOut)
def update_priority(
    task_id: int,
    payload: PriorityUpdate,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    return service.update_priority(task_id, payload.priority, current_user)


@router.patch("/{task_id}/deadline", response_model=TaskOut)
def update_deadline(
    task_id: int,
    payload: DeadlineUpdate,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    return service.update_deadline(task_id, payload.due_date, current_user)


@router.patch("/{task_id}/status", response_model=TaskOut)
def update_status(
    task_id: int,
    payload: StatusUpdate,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    return service.update_status(task_id, payload.status, current_user)


@router.patch("/{task_id}/recurring", response_model=TaskOut)
def update_recurring(
    task_id: int,
    payload: RecurringUpdate,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    return service.update_recurring(task_id, payload.enabled, payload.days, current_user)


# Tags

@router.post("/{task_id}/tags", response_model=TaskOut)
def add_tag(
    task_id: int,
    payload: TagRequest,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    return service.add_tag(task_id, payload.tag, current_user)


@router.delete("/{task_id}/tags/{tag}", response_model=TaskOut)
def remove_tag(
    task_id: int,
    tag: str,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    return service.remove_tag(task_id, tag, current_user)


# Assignees

@router.post("/{task_id}/assignees", response_model=TaskOut)
async def add_assignee(
    task_id: int,
    payload: AssigneeRequest,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    return await service.add_assignee(task_id, payload.user_id, current_user)


@router.delete("/{task_id}/assignees/{user_id}", response_model=TaskOut)
async def remove_assignee(
    task_id: int,
    user_id: int,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    return await service.remove_assignee(task_id, user_id, current_user)


# Comments

@router.get("/{task_id}/comments", response_model=List[CommentOut])
def get_comments(
    task_id: int,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    return service.get_comments(task_id, current_user)


@router.post("/{task_id}/comments", response_model=CommentOut, status_code=status.HTTP_201_CREATED)
async def add_comment(
    task_id: int,
    payload: CommentCreate,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    return await service.add_comment(task_id, payload.content, current_user)


@router.put("/{task_id}/comments/{comment_id}", response_model=CommentOut)
async def update_comment(
    task_id: int,
    comment_id: int,
    payload: CommentCreate,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    return await service.update_comment(task_id, comment_id, payload.content, current_user)


@router.delete("/{task_id}/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_comment(
    task_id: int,
    comment_id: int,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    service.delete_comment(task_id, comment_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Files

@router.get("/{task_id}/files", response_model=List[TaskFileOut])
def get_task_files(
    task_id: int,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    return service.get_task_files(task_id, current_user)


@router.post("/{task_id}/files", response_model=TaskFileOut, status_code=status.HTTP_201_CREATED)
async def upload_file(
    task_id: int,
    file: UploadFile = File(...),
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    data = await file.read()
    return service.upload_file(
        task_id,
        data,
        file.filename or "",
        file.content_type or "application/octet-stream",
        current_user,
    )


@router.get("/files/{file_id}/download", response_model=FileDownload)
def get_file_download_url(
    file_id: int,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    """Short-lived signed link to the file"""
    return {
        "url": service.get_file_download_url(file_id, current_user),
        "expires_in": settings.FILE_URL_TTL_SECONDS,
    }


@router.delete("/files/{file_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_file(
    file_id: int,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    service.delete_file(file_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Calendar

@router.get("/{task_id}/calendar-events", response_model=List[CalendarEventOut])
def get_calendar_events(
    task_id: int,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    return service.get_calendar_events(task_id, current_user)


@router.post("/{task_id}/calendar-events", response_model=CalendarEventOut, status_code=status.HTTP_201_CREATED)
def create_calendar_event(
    task_id: int,
    payload: CalendarEventCreate,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    return service.create_calendar_event(
        task_id, payload.event_user_id, payload.title, payload.event_date, current_user
    )


# Archive and delete

@router.post("/{task_id}/archive", response_model=TaskOut)
def archive_task(
    task_id: int,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    """Managers only. Archives non-archived subtasks too."""
    return service.archive_task(task_id, current_user)


@router.post("/{task_id}/unarchive", response_model=TaskOut)
def unarchive_task(
    task_id: int,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    return service.unarchive_task(task_id, current_user)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: int,
    service: TaskService = Depends(get_task_service),
    current_user: User = Depends(get_current_user),
):
    service.delete_task(task_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
