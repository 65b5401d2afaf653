"""
Tests for subtask creation rules
"""
from datetime import timedelta

import pytest
import pytest_asyncio

from app.domain.errors import (
    InvalidSubtaskDeadlineError,
    MaxAssigneesReachedError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from app.models.task import TaskStatus
from app.models.task_log import TaskLog, TaskLogAction
from app.schemas.task import SubtaskCreate, TaskCreate
from app.services.subtask_service import SubtaskService
from app.services.task_service import TaskService
from app.utils.dates import utcnow


@pytest.fixture
def people(make_department, make_user):
    department = make_department("Operations")
    return make_user("Owner", department=department), make_user("Helper", department=department)


@pytest_asyncio.fixture
async def parent_task(db, people):
    owner, helper = people
    return await TaskService(db).create_task(
        TaskCreate(
            title="Launch",
            due_date=utcnow() + timedelta(days=10),
            assignee_ids=[owner.id],
            priority=7,
        ),
        owner,
    )


def _subtask(parent, assignee_ids, **overrides):
    data = {
        "title": "Prepare slides",
        "due_date": parent.due_date - timedelta(days=1),
        "assignee_ids": assignee_ids,
    }
    data.update(overrides)
    return SubtaskCreate(**data)


@pytest.mark.asyncio
async def test_creates_subtask_inheriting_parent_context(db, people, parent_task):
    owner, helper = people
    subtask = SubtaskService(db).create_subtask(parent_task.id, _subtask(parent_task, [helper.id]), owner)

    assert subtask.parent_task_id == parent_task.id
    assert subtask.department_id == parent_task.department_id
    assert subtask.project_id == parent_task.project_id
    assert subtask.status == TaskStatus.TO_DO
    assert subtask.recurring_interval is None

    log = db.query(TaskLog).filter(TaskLog.task_id == subtask.id, TaskLog.action == TaskLogAction.CREATED).one()
    assert log.changes == {"title": "Prepare slides", "parentTaskId": parent_task.id, "assigneeCount": 1}


@pytest.mark.asyncio
async def test_subtasks_cannot_recur(db, people, parent_task):
    owner, _ = people
    with pytest.raises(ValidationError, match="cannot be set as recurring"):
        SubtaskService(db).create_subtask(
            parent_task.id, _subtask(parent_task, [owner.id], recurring_interval=7), owner
        )


@pytest.mark.asyncio
async def test_parent_must_exist(db, people):
    owner, _ = people
    data = SubtaskCreate(title="x", due_date=utcnow(), assignee_ids=[owner.id])
    with pytest.raises(NotFoundError, match="Parent task not found"):
        SubtaskService(db).create_subtask(999, data, owner)


@pytest.mark.asyncio
async def test_depth_is_limited_to_two_levels(db, people, parent_task):
    owner, _ = people
    service = SubtaskService(db)
    child = service.create_subtask(parent_task.id, _subtask(parent_task, [owner.id]), owner)

    with pytest.raises(ValidationError, match="Maximum depth is 2 levels"):
        service.create_subtask(child.id, _subtask(child, [owner.id]), owner)


@pytest.mark.asyncio
async def test_creator_must_be_assigned_to_parent(db, people, parent_task):
    _, helper = people
    with pytest.raises(UnauthorizedError, match="assigned to the parent task"):
        SubtaskService(db).create_subtask(parent_task.id, _subtask(parent_task, [helper.id]), helper)


@pytest.mark.asyncio
async def test_deadline_cannot_pass_parent(db, people, parent_task):
    owner, _ = people
    late = _subtask(parent_task, [owner.id], due_date=parent_task.due_date + timedelta(hours=1))
    with pytest.raises(InvalidSubtaskDeadlineError):
        SubtaskService(db).create_subtask(parent_task.id, late, owner)


@pytest.mark.asyncio
async def test_assignee_limits(db, people, parent_task, make_user):
    owner, _ = people
    extra = [make_user(department=owner.department).id for _ in range(5)]
    with pytest.raises(MaxAssigneesReachedError):
        SubtaskService(db).create_subtask(parent_task.id, _subtask(parent_task, [owner.id] + extra), owner)
