import logging

from app.domain.errors import NotFoundError, UnauthorizedError, ValidationError
from app.domain.task_rules import (
    normalize_title,
    validate_assignee_count,
    validate_priority,
    validate_subtask_deadline,
)
from app.models.task import Task, TaskAssignment, TaskStatus
from app.models.task_log import TaskLogAction
from app.models.user import User
from app.schemas.task import SubtaskCreate
from app.services.task_service import TaskService

logger = logging.getLogger(__name__)


class SubtaskService(TaskService):
    """Subtask creation. Subtasks sit one level below a top-level task and never recur."""

    def create_subtask(self, parent_task_id: int, data: SubtaskCreate, creator: User) -> Task:
        if parent_task_id is None:
            raise ValidationError("Parent task ID is required for subtasks")
        if data.recurring_interval is not None:
            raise ValidationError("Subtasks cannot be set as recurring")

        parent = self.db.query(Task).filter(Task.id == parent_task_id).first()
        if not parent:
            raise NotFoundError("Parent task not found")
        if parent.parent_task_id is not None:
            raise ValidationError(
                "Cannot create subtask under another subtask. Maximum depth is 2 levels (Task → Subtask)"
            )
        if not parent.is_user_assigned(creator.id):
            raise UnauthorizedError("You must be assigned to the parent task to create subtasks")

        validate_subtask_deadline(data.due_date, parent.due_date)

        title = normalize_title(data.title)
        priority = validate_priority(data.priority)
        assignee_ids = validate_assignee_count(data.assignee_ids)
        self._validate_assignees(
            assignee_ids, "One or more assignees not found", "One or more assignees are inactive"
        )

        subtask = Task(
            title=title,
            description=data.description or "",
            priority=priority,
            due_date=data.due_date,
            status=TaskStatus.TO_DO,
            owner_id=creator.id,
            department_id=parent.department_id,
            project_id=parent.project_id,
            parent_task_id=parent.id,
            recurring_interval=None,
        )
        subtask.assignments = [TaskAssignment(user_id=uid, assigned_by_id=creator.id) for uid in assignee_ids]
        subtask.tags = self._get_or_create_tags(data.tags)
        self.db.add(subtask)
        self.db.flush()

        self._log(subtask.id, creator.id, TaskLogAction.CREATED, "Task", {
            "title": title,
            "parentTaskId": parent.id,
            "assigneeCount": len(assignee_ids),
        })
        self.db.commit()
        self.db.refresh(subtask)
        logger.info(f"Subtask {subtask.id} created under task {parent.id} by user {creator.id}")
        return subtask
