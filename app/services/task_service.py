# app/services/task_service.py
"""
Task operations: creation, updates, assignees, comments, files, archiving
and the queries behind the task views.

Every user-driven change writes a TaskLog entry. Notifications go out
after the change is committed, and a failed notification never rolls
the change back.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.domain.errors import NotFoundError, UnauthorizedError, ValidationError
from app.domain.priority import PriorityBucket
from app.domain.task_rules import (
    can_add_assignee,
    can_remove_assignee,
    next_recurrence_dates,
    normalize_title,
    resolve_recurring_update,
    validate_assignee_count,
    validate_priority,
    validate_recurrence,
    validate_subtask_deadline,
)
from app.models.notification import NotificationType
from app.models.project import Project, ProjectCollaborator
from app.models.task import CalendarEvent, Comment, Tag, Task, TaskAssignment, TaskFile, TaskStatus
from app.models.task_log import TaskLog, TaskLogAction
from app.models.user import User, UserRole
from app.schemas.task import TaskCreate
from app.services.authorization import can_edit_task
from app.services.file_storage import FileStorageService, file_storage
from app.services.notification_service import NotificationService
from app.utils.dates import utcnow
from app.utils.hierarchy import DepartmentHierarchy

logger = logging.getLogger(__name__)

WEB_UI = {"source": "web_ui"}

COMMENT_ADDED = "COMMENT_ADDED"
COMMENT_UPDATED = "COMMENT_UPDATED"
ASSIGNEE_ADDED = "ASSIGNEE_ADDED"
ASSIGNEE_REMOVED = "ASSIGNEE_REMOVED"

# update type -> (notification type, title, message template)
TASK_UPDATE_NOTIFICATIONS = {
    COMMENT_ADDED: (NotificationType.COMMENT_ADDED, "New Comment", '{actor} commented on "{title}"'),
    COMMENT_UPDATED: (NotificationType.COMMENT_ADDED, "Comment Edited", '{actor} edited a comment on "{title}"'),
    ASSIGNEE_ADDED: (NotificationType.TASK_REASSIGNED, "New Assignment", '{actor} added {subject} to "{title}"'),
    ASSIGNEE_REMOVED: (
        NotificationType.TASK_REASSIGNED, "Assignment Removed", '{actor} removed {subject} from "{title}"'
    ),
}

VIEW_DENIED = "Unauthorized: You must be assigned to this task or it must be in your department hierarchy"
FILE_ACCESS_DENIED = (
    "Unauthorized: You must be the task owner, assigned to this task, "
    "or a manager of the department to {action} files"
)


class TaskService:
    def __init__(
        self,
        db: Session,
        notifications: Optional[NotificationService] = None,
        storage: Optional[FileStorageService] = None,
    ):
        self.db = db
        self.notifications = notifications or NotificationService(db)
        self.storage = storage or file_storage
        self.hierarchy = DepartmentHierarchy(db)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _log(self, task_id: int, user_id: int, action: TaskLogAction, field: str,
             changes: Optional[dict] = None, metadata: Optional[dict] = None):
        self.db.add(TaskLog(
            task_id=task_id,
            user_id=user_id,
            action=action,
            field=field,
            changes=changes,
            log_metadata={**WEB_UI, **(metadata or {})},
        ))

    def _load(self, task_id: int) -> Task:
        task = self.db.query(Task).filter(Task.id == task_id).first()
        if not task:
            raise NotFoundError("Task not found")
        return task

    def _validate_assignees(self, user_ids: List[int], not_found: str, inactive: str) -> List[User]:
        users = self.db.query(User).filter(User.id.in_(user_ids)).all()
        if len(users) != len(set(user_ids)):
            raise NotFoundError(not_found)
        if any(not u.is_active for u in users):
            raise ValidationError(inactive)
        return users

    def _get_or_create_tags(self, names: List[str]) -> List[Tag]:
        tags = []
        for name in dict.fromkeys(n.strip() for n in names if n and n.strip()):
            tag = self.db.query(Tag).filter(Tag.name == name).first()
            if not tag:
                tag = Tag(name=name)
                self.db.add(tag)
                self.db.flush()
            tags.append(tag)
        return tags

    def _add_collaborator_if_needed(self, project: Project, user: User) -> bool:
        """Make an assignee a project collaborator. Returns True when a row was added."""
        exists = self.db.query(ProjectCollaborator).filter(
            ProjectCollaborator.project_id == project.id,
            ProjectCollaborator.user_id == user.id,
        ).first()
        if exists:
            return False
        self.db.add(ProjectCollaborator(
            project_id=project.id, user_id=user.id, department_id=user.department_id
        ))
        self.db.flush()
        logger.info(f"User {user.id} added as collaborator on project {project.id}")
        return True

    def _remove_collaborator_if_no_tasks(self, project_id: int, user_id: int):
        """Drop the collaborator once the user has no live assignment left in the project"""
        self.db.flush()
        remaining = (
            self.db.query(TaskAssignment)
            .join(Task, TaskAssignment.task_id == Task.id)
            .filter(
                TaskAssignment.user_id == user_id,
                Task.project_id == project_id,
                Task.is_archived == False,  # noqa: E712
            )
            .count()
        )
        if remaining == 0:
            removed = self.db.query(ProjectCollaborator).filter(
                ProjectCollaborator.project_id == project_id,
                ProjectCollaborator.user_id == user_id,
            ).delete(synchronize_session=False)
            if removed:
                logger.info(f"User {user_id} removed as collaborator from project {project_id}")

    def _display_name(self, user_id: Optional[int], fallback: str) -> str:
        user = self.db.query(User).filter(User.id == user_id).first() if user_id else None
        if not user:
            return fallback
        return user.name or user.email or fallback

    async def _notify_task_update(self, task: Task, update_type: str, actor: User,
                                  subject_user_id: Optional[int] = None):
        """Tell every current assignee except the actor about a change"""
        notification_type, title, template = TASK_UPDATE_NOTIFICATIONS[update_type]
        message = template.format(
            actor=actor.name or actor.email or "Someone",
            subject=self._display_name(subject_user_id, "A user"),
            title=task.title,
        )

        recipients = [user_id for user_id in task.assignee_ids if user_id != actor.id]
        if not recipients:
            logger.debug(f"No recipients for {update_type} on task {task.id}")
            return

        for user_id in recipients:
            try:
                await self.notifications.create(
                    user_id=user_id,
                    type=notification_type,
                    title=title,
                    message=message,
                    task_id=task.id,
                )
            except Exception as e:
                logger.error(f"Failed to notify user {user_id} about {update_type} on task {task.id}: {e}")

    async def _notify_project_collaboration(self, project: Project, user_id: int, task_id: int):
        try:
            await self.notifications.create(
                user_id=user_id,
                type=NotificationType.PROJECT_COLLABORATION_ADDED,
                title="Added to Project",
                message=f'You\'ve been added as a collaborator on project "{project.name}"',
                task_id=task_id,
            )
        except Exception as e:
            logger.error(f"Failed to send project collaboration notice to user {user_id}: {e}")

    def _can_view(self, task: Task, user: User) -> bool:
        if task.is_user_assigned(user.id):
            return True
        # HR-flagged staff can see every task but edit rights stay restricted
        if user.role == UserRole.STAFF and user.is_hr_admin:
            return True
        if self.hierarchy.can_access_department(user.department_id, task.department_id):
            return True
        return any(
            self.hierarchy.can_access_department(user.department_id, a.user.department_id)
            for a in task.assignments
        )

    def _can_access_files(self, task: Task, user: User, allow_hr_staff: bool = False) -> bool:
        if task.owner_id == user.id or task.is_user_assigned(user.id):
            return True
        if allow_hr_staff and user.role == UserRole.STAFF and user.is_hr_admin:
            return True
        if user.role == UserRole.MANAGER:
            return self.hierarchy.can_access_department(user.department_id, task.department_id)
        return False

    # ------------------------------------------------------------------
    # Create and read
    # ------------------------------------------------------------------

    async def create_task(self, data: TaskCreate, creator: User) -> Task:
        project = None
        if data.project_id is not None:
            project = self.db.query(Project).filter(Project.id == data.project_id).first()
            if not project:
                raise NotFoundError("Project not found")

        title = normalize_title(data.title)
        priority = validate_priority(data.priority)
        assignee_ids = validate_assignee_count(data.assignee_ids)
        recurring_interval = validate_recurrence(data.recurring_interval)

        if data.parent_task_id is not None:
            parent = self.db.query(Task).filter(Task.id == data.parent_task_id).first()
            if not parent:
                raise NotFoundError("Parent task not found")
            if parent.parent_task_id is not None:
                raise ValidationError("Maximum subtask depth is 2 levels")
            validate_subtask_deadline(data.due_date, parent.due_date)

        assignees = self._validate_assignees(
            assignee_ids, "One or more assignees not found", "One or more assignees are inactive"
        )

        task = Task(
            title=title,
            description=data.description or "",
            priority=priority,
            due_date=data.due_date,
            status=TaskStatus.TO_DO,
            owner_id=creator.id,
            department_id=creator.department_id,
            project_id=data.project_id,
            parent_task_id=data.parent_task_id,
            recurring_interval=recurring_interval,
        )
        task.assignments = [TaskAssignment(user_id=uid, assigned_by_id=creator.id) for uid in assignee_ids]
        task.tags = self._get_or_create_tags(data.tags)
        self.db.add(task)
        self.db.flush()

        new_collaborators = []
        if project:
            for user in assignees:
                if self._add_collaborator_if_needed(project, user):
                    new_collaborators.append(user.id)

        self._log(task.id, creator.id, TaskLogAction.CREATED, "Task", {"title": title})
        self.db.commit()
        self.db.refresh(task)
        logger.info(f"Task {task.id} created by user {creator.id} with {len(assignee_ids)} assignees")

        for user_id in new_collaborators:
            await self._notify_project_collaboration(project, user_id, task.id)
        for user_id in assignee_ids:
            if user_id != creator.id:
                await self._notify_task_update(task, ASSIGNEE_ADDED, creator, user_id)

        return task

    def get_task_by_id(self, task_id: int, user: User) -> Task:
        task = self._load(task_id)
        if not self._can_view(task, user):
            raise UnauthorizedError(VIEW_DENIED)
        return task

    def can_edit(self, task_id: int, user: User) -> bool:
        task = self._load(task_id)
        hierarchy_ids = self.hierarchy.get_descendant_ids(user.department_id) if user.department_id else []
        return can_edit_task(task, user, hierarchy_ids)

    @staticmethod
    def priority_info() -> List[Dict]:
        return [bucket.to_dict() for bucket in PriorityBucket.all_priorities()]

    # ------------------------------------------------------------------
    # Field updates
    # ------------------------------------------------------------------

    def _commit_update(self, task: Task, user: User, field: str, old, new) -> Task:
        self._log(task.id, user.id, TaskLogAction.UPDATED, field, {"from": old, "to": new})
        self.db.commit()
        self.db.refresh(task)
        logger.info(f"Task {task.id} {field} updated by user {user.id}")
        return task

    def update_title(self, task_id: int, title: str, user: User) -> Task:
        task = self.get_task_by_id(task_id, user)
        old_title = task.title
        task.title = normalize_title(title)
        return self._commit_update(task, user, "Title", old_title, task.title)

    def update_description(self, task_id: int, description: str, user: User) -> Task:
        task = self.get_task_by_id(task_id, user)
        old_description = task.description
        task.description = description or ""
        return self._commit_update(task, user, "Description", old_description, task.description)

    def update_priority(self, task_id: int, priority: int, user: User) -> Task:
        task = self.get_task_by_id(task_id, user)
        old_priority = task.priority
        task.priority = validate_priority(priority)
        return self._commit_update(task, user, "Priority", old_priority, task.priority)

    def update_deadline(self, task_id: int, due_date, user: User) -> Task:
        task = self.get_task_by_id(task_id, user)
        if task.parent_task is not None:
            validate_subtask_deadline(due_date, task.parent_task.due_date)
        old_due_date = task.due_date
        task.due_date = due_date
        return self._commit_update(task, user, "Due Date", old_due_date.isoformat(), due_date.isoformat())

    def update_status(self, task_id: int, status: TaskStatus, user: User) -> Task:
        task = self.get_task_by_id(task_id, user)
        old_status = task.status
        old_start_date = task.start_date

        task.status = status
        if status == TaskStatus.IN_PROGRESS and task.start_date is None:
            task.start_date = utcnow()

        self._log(task.id, user.id, TaskLogAction.UPDATED, "Status",
                  {"from": old_status.value, "to": status.value})

        if old_start_date is None and task.start_date is not None:
            self._log(
                task.id, user.id, TaskLogAction.UPDATED, "startDate",
                {"from": None, "to": task.start_date.isoformat()},
                {"source": "automatic", "reason": "First transition to IN_PROGRESS"},
            )

        if status == TaskStatus.COMPLETED and old_status != TaskStatus.COMPLETED and task.is_recurring:
            self._generate_next_recurring_instance(task, user)

        self.db.commit()
        self.db.refresh(task)
        logger.info(f"Task {task.id} status {old_status.value} -> {status.value}")
        return task

    def _generate_next_recurring_instance(self, task: Task, user: User) -> Task:
        next_created_at, next_due_date = next_recurrence_dates(
            task.created_at, task.due_date, task.recurring_interval
        )

        assignee_ids = task.assignee_ids
        users = self.db.query(User).filter(User.id.in_(assignee_ids)).all()
        if len(users) != len(assignee_ids) or any(not u.is_active for u in users):
            raise ValidationError("Cannot generate recurring task: one or more assignees are invalid")

        next_task = Task(
            title=task.title,
            description=task.description,
            priority=task.priority,
            due_date=next_due_date,
            status=TaskStatus.TO_DO,
            owner_id=task.owner_id,
            department_id=task.department_id,
            project_id=task.project_id,
            parent_task_id=task.parent_task_id,
            recurring_interval=task.recurring_interval,
            created_at=next_created_at,
        )
        next_task.assignments = [TaskAssignment(user_id=uid, assigned_by_id=user.id) for uid in assignee_ids]
        next_task.tags = list(task.tags)
        self.db.add(next_task)
        self.db.flush()

        self._log(
            task.id, user.id, TaskLogAction.RECURRING_TASK_GENERATED, "recurring",
            {"from": None, "to": next_task.id},
            {
                "nextTaskId": next_task.id,
                "nextDueDate": next_due_date.isoformat(),
                "sourceTaskId": task.id,
            },
        )
        logger.info(f"Recurring task {task.id} generated next instance {next_task.id} due {next_due_date}")
        return next_task

    def update_recurring(self, task_id: int, enabled: bool, days: Optional[int], user: User) -> Task:
        task = self.get_task_by_id(task_id, user)
        old = {"enabled": task.is_recurring, "interval": task.recurring_interval}
        task.recurring_interval = resolve_recurring_update(enabled, days)
        new = {"enabled": task.is_recurring, "interval": task.recurring_interval}
        return self._commit_update(task, user, "Recurring Settings", old, new)

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    def add_tag(self, task_id: int, tag: str, user: User) -> Task:
        task = self.get_task_by_id(task_id, user)
        name = (tag or "").strip()
        if not name:
            raise ValidationError("Tag cannot be empty")
        if name in task.tag_names:
            return task

        task.tags.extend(self._get_or_create_tags([name]))
        self._log(task.id, user.id, TaskLogAction.CREATED, "Tag", {"added": name},
                  {"action": "addTag", "tag": name})
        self.db.commit()
        self.db.refresh(task)
        return task

    def remove_tag(self, task_id: int, tag: str, user: User) -> Task:
        task = self.get_task_by_id(task_id, user)
        name = (tag or "").strip()
        existing = next((t for t in task.tags if t.name == name), None)
        if existing is None:
            return task

        task.tags.remove(existing)
        self._log(task.id, user.id, TaskLogAction.DELETED, "Tag", {"removed": name},
                  {"action": "removeTag", "tag": name})
        self.db.commit()
        self.db.refresh(task)
        return task

    # ------------------------------------------------------------------
    # Assignees
    # ------------------------------------------------------------------

    async def add_assignee(self, task_id: int, user_id: int, actor: User) -> Task:
        task = self.get_task_by_id(task_id, actor)

        new_user = self.db.query(User).filter(User.id == user_id).first()
        if not new_user:
            raise NotFoundError("Assignee not found")
        if not new_user.is_active:
            raise ValidationError("Assignee is inactive")

        if not can_add_assignee(task.assignee_ids, user_id, actor.id, actor.role == UserRole.MANAGER):
            return task

        task.assignments.append(TaskAssignment(user_id=user_id, assigned_by_id=actor.id))
        self.db.flush()

        collaborator_added = False
        if task.project is not None:
            collaborator_added = self._add_collaborator_if_needed(task.project, new_user)

        self._log(task.id, actor.id, TaskLogAction.UPDATED, "Assignees", {"added": user_id},
                  {"action": "addAssignee", "newUserId": user_id})
        self.db.commit()
        self.db.refresh(task)
        logger.info(f"User {user_id} assigned to task {task.id} by user {actor.id}")

        if collaborator_added:
            await self._notify_project_collaboration(task.project, user_id, task.id)
        await self._notify_task_update(task, ASSIGNEE_ADDED, actor, user_id)
        return task

    async def remove_assignee(self, task_id: int, user_id: int, actor: User) -> Task:
        task = self.get_task_by_id(task_id, actor)
        can_remove_assignee(task.assignee_ids, user_id, actor.role == UserRole.MANAGER)

        assignment = next(a for a in task.assignments if a.user_id == user_id)
        task.assignments.remove(assignment)
        if task.project_id is not None:
            self._remove_collaborator_if_no_tasks(task.project_id, user_id)

        self._log(task.id, actor.id, TaskLogAction.UPDATED, "Assignees", {"removed": user_id},
                  {"action": "removeAssignee", "removedUserId": user_id})
        self.db.commit()
        self.db.refresh(task)
        logger.info(f"User {user_id} unassigned from task {task.id} by user {actor.id}")

        await self._notify_task_update(task, ASSIGNEE_REMOVED, actor, user_id)
        return task

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    def _get_comment(self, task_id: int, comment_id: int) -> Comment:
        comment = self.db.query(Comment).filter(
            Comment.id == comment_id, Comment.task_id == task_id
        ).first()
        if not comment:
            raise NotFoundError("Comment not found")
        return comment

    async def add_comment(self, task_id: int, content: str, user: User) -> Comment:
        task = self.get_task_by_id(task_id, user)
        content = (content or "").strip()
        if not content:
            raise ValidationError("Comment cannot be empty")

        comment = Comment(content=content, task_id=task.id, user_id=user.id)
        self.db.add(comment)
        self.db.flush()
        self._log(task.id, user.id, TaskLogAction.CREATED, "Comment", {"said": content},
                  {"commentId": comment.id})
        self.db.commit()
        self.db.refresh(comment)

        await self._notify_task_update(task, COMMENT_ADDED, user)
        return comment

    async def update_comment(self, task_id: int, comment_id: int, content: str, user: User) -> Comment:
        task = self.get_task_by_id(task_id, user)
        comment = self._get_comment(task.id, comment_id)
        if comment.user_id != user.id:
            raise UnauthorizedError()

        content = (content or "").strip()
        if not content:
            raise ValidationError("Comment cannot be empty")

        old_content = comment.content
        comment.content = content
        self._log(task.id, user.id, TaskLogAction.UPDATED, "Comment", {"from": old_content, "to": content},
                  {"action": "updateComment", "commentId": comment.id})
        self.db.commit()
        self.db.refresh(comment)

        await self._notify_task_update(task, COMMENT_UPDATED, user)
        return comment

    def delete_comment(self, task_id: int, comment_id: int, user: User):
        task = self.get_task_by_id(task_id, user)
        comment = self._get_comment(task.id, comment_id)
        if comment.user_id != user.id:
            raise UnauthorizedError()

        self._log(task.id, user.id, TaskLogAction.DELETED, "Comment", {"removed": comment.content},
                  {"action": "deleteComment", "commentId": comment.id})
        self.db.delete(comment)
        self.db.commit()

    def get_comments(self, task_id: int, user: User) -> List[Comment]:
        return list(self.get_task_by_id(task_id, user).comments)

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def _get_file(self, file_id: int) -> TaskFile:
        record = self.db.query(TaskFile).filter(TaskFile.id == file_id).first()
        if not record:
            raise NotFoundError("File not found")
        return record

    def upload_file(self, task_id: int, data: bytes, file_name: str, file_type: str, user: User) -> TaskFile:
        task = self._load(task_id)
        if not self._can_access_files(task, user):
            raise UnauthorizedError(FILE_ACCESS_DENIED.format(action="upload"))

        self.storage.validate_file(file_name, len(data), file_type)
        self.storage.validate_task_file_limit(task.total_file_size, len(data))

        storage_path, file_size = self.storage.upload_file(task.id, data, file_name, file_type)
        try:
            record = TaskFile(
                task_id=task.id,
                file_name=file_name,
                file_size=file_size,
                file_type=file_type,
                storage_path=storage_path,
                uploaded_by_id=user.id,
            )
            self.db.add(record)
            self.db.flush()
            self._log(task.id, user.id, TaskLogAction.CREATED, "File", {"added": file_name},
                      {"fileName": file_name, "fileSize": file_size, "fileId": record.id})
            self.db.commit()
        except Exception:
            self.db.rollback()
            self.storage.delete_file(storage_path)
            raise

        self.db.refresh(record)
        return record

    def get_file_download_url(self, file_id: int, user: User) -> str:
        record = self._get_file(file_id)
        if not self._can_access_files(record.task, user):
            raise UnauthorizedError(FILE_ACCESS_DENIED.format(action="download"))
        return self.storage.get_file_download_url(record.storage_path)

    def open_file(self, storage_path: str, expires: int, signature: str) -> Tuple[Path, TaskFile]:
        """Resolve a signed download link to the stored file"""
        if not self.storage.verify_signature(storage_path, expires, signature):
            raise UnauthorizedError("Invalid or expired download link")

        record = self.db.query(TaskFile).filter(TaskFile.storage_path == storage_path).first()
        full_path = self.storage.resolve_path(storage_path)
        if not record or not full_path.is_file():
            raise NotFoundError("File not found")
        return full_path, record

    def delete_file(self, file_id: int, user: User):
        record = self._get_file(file_id)
        task = record.task
        if record.uploaded_by_id != user.id and task.owner_id != user.id:
            raise UnauthorizedError("Unauthorized: Only the uploader or task owner can delete files")

        storage_path = record.storage_path
        self._log(task.id, user.id, TaskLogAction.DELETED, "File", {"from": record.file_name, "to": None},
                  {"fileName": record.file_name, "action": "deleted", "fileId": record.id})
        self.db.delete(record)
        self.db.commit()
        self.storage.delete_file(storage_path)

    def get_task_files(self, task_id: int, user: User) -> List[TaskFile]:
        task = self._load(task_id)
        if not self._can_access_files(task, user, allow_hr_staff=True):
            raise UnauthorizedError(FILE_ACCESS_DENIED.format(action="view"))
        return sorted(task.files, key=lambda f: f.uploaded_at)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_all_tasks(
        self,
        owner_id: Optional[int] = None,
        project_id: Optional[int] = None,
        department_id: Optional[int] = None,
        status: Optional[TaskStatus] = None,
        is_archived: Optional[bool] = None,
        parent_task_id: Optional[int] = None,
    ) -> List[Task]:
        query = self.db.query(Task)
        if owner_id is not None:
            query = query.filter(Task.owner_id == owner_id)
        if project_id is not None:
            query = query.filter(Task.project_id == project_id)
        if department_id is not None:
            query = query.filter(Task.department_id == department_id)
        if status is not None:
            query = query.filter(Task.status == status)
        if is_archived is not None:
            query = query.filter(Task.is_archived == is_archived)
        if parent_task_id is not None:
            query = query.filter(Task.parent_task_id == parent_task_id)
        return query.order_by(Task.due_date).all()

    @staticmethod
    def _live(query, include_archived: bool):
        if not include_archived:
            query = query.filter(Task.is_archived == False)  # noqa: E712
        return query.order_by(Task.due_date)

    def get_project_tasks(self, project_id: int, include_archived: bool = False) -> List[Task]:
        if not self.db.query(Project.id).filter(Project.id == project_id).first():
            raise NotFoundError("Project not found")
        return self._live(self.db.query(Task).filter(Task.project_id == project_id), include_archived).all()

    def get_subtasks(self, parent_task_id: int, user: User, include_archived: bool = False) -> List[Task]:
        parent = self.get_task_by_id(parent_task_id, user)
        return self._live(self.db.query(Task).filter(Task.parent_task_id == parent.id), include_archived).all()

    def get_owner_tasks(self, owner_id: int, include_archived: bool = False) -> List[Task]:
        return self._live(self.db.query(Task).filter(Task.owner_id == owner_id), include_archived).all()

    def get_user_tasks(self, user_id: int, include_archived: bool = False) -> List[Task]:
        query = (
            self.db.query(Task)
            .join(TaskAssignment, TaskAssignment.task_id == Task.id)
            .filter(TaskAssignment.user_id == user_id)
        )
        return self._live(query, include_archived).all()

    def get_department_tasks(self, department_id: int, user: User, include_archived: bool = False) -> List[Task]:
        if user.role != UserRole.MANAGER and not user.is_hr_admin:
            raise UnauthorizedError("Unauthorized: Only managers and HR admins can view all department tasks")
        if user.department_id != department_id:
            raise UnauthorizedError("Unauthorized: You can only view tasks from your own department")
        query = self.db.query(Task).filter(Task.department_id == department_id)
        return self._live(query, include_archived).all()

    # ------------------------------------------------------------------
    # Archive and delete
    # ------------------------------------------------------------------

    def archive_task(self, task_id: int, user: User) -> Task:
        if user.role != UserRole.MANAGER:
            raise UnauthorizedError("Unauthorized: Only managers can archive tasks")
        task = self.get_task_by_id(task_id, user)

        task.is_archived = True
        self._log(task.id, user.id, TaskLogAction.ARCHIVED, "Task", {"from": False, "to": True},
                  {"taskTitle": task.title})

        subtasks = [s for s in task.subtasks if not s.is_archived]
        for subtask in subtasks:
            subtask.is_archived = True
            self._log(subtask.id, user.id, TaskLogAction.ARCHIVED, "Task", {"from": False, "to": True},
                      {"taskTitle": subtask.title, "cascadeFromParent": True, "parentTaskId": task.id})

        if task.project_id is not None:
            affected = set(task.assignee_ids)
            for subtask in subtasks:
                affected.update(subtask.assignee_ids)
            for assignee_id in affected:
                self._remove_collaborator_if_no_tasks(task.project_id, assignee_id)

        self.db.commit()
        self.db.refresh(task)
        logger.info(f"Task {task.id} archived with {len(subtasks)} subtasks by user {user.id}")
        return task

    def unarchive_task(self, task_id: int, user: User) -> Task:
        task = self.get_task_by_id(task_id, user)
        task.is_archived = False
        self._log(task.id, user.id, TaskLogAction.UNARCHIVED, "Task", {"from": True, "to": False},
                  {"action": "unarchived", "taskTitle": task.title})
        self.db.commit()
        self.db.refresh(task)
        logger.info(f"Task {task.id} unarchived by user {user.id}")
        return task

    def delete_task(self, task_id: int, user: User):
        task = self.get_task_by_id(task_id, user)
        if self.db.query(Task.id).filter(Task.parent_task_id == task.id).first():
            raise ValidationError("Cannot delete task with subtasks. Archive it instead.")

        # The task's own logs go with it, so the deletion is recorded in the app log
        logger.warning(f"Task {task.id} '{task.title}' deleted by user {user.id}")

        storage_paths = [f.storage_path for f in task.files]
        project_id, assignee_ids = task.project_id, task.assignee_ids
        self.db.delete(task)
        self.db.flush()

        if project_id is not None:
            for assignee_id in assignee_ids:
                self._remove_collaborator_if_no_tasks(project_id, assignee_id)
        self.db.commit()

        for storage_path in storage_paths:
            self.storage.delete_file(storage_path)

    # ------------------------------------------------------------------
    # Hierarchy, calendar, logs
    # ------------------------------------------------------------------

    @staticmethod
    def _node(task: Task) -> Dict:
        return {
            "id": task.id,
            "title": task.title,
            "status": task.status,
            "priority": task.priority,
            "due_date": task.due_date,
            "parent_task_id": task.parent_task_id,
            "owner_id": task.owner_id,
            "subtasks": [],
        }

    def _subtask_tree(self, task: Task, seen: set) -> List[Dict]:
        tree = []
        for subtask in sorted(task.subtasks, key=lambda s: s.id):
            if subtask.is_archived or subtask.id in seen:
                continue
            seen.add(subtask.id)
            node = self._node(subtask)
            node["subtasks"] = self._subtask_tree(subtask, seen)
            tree.append(node)
        return tree

    def get_task_hierarchy(self, task_id: int, user: User) -> Dict:
        task = self.get_task_by_id(task_id, user)

        parent_chain = []
        seen = {task.id}
        parent = task.parent_task
        while parent is not None and parent.id not in seen:
            seen.add(parent.id)
            parent_chain.insert(0, self._node(parent))
            parent = parent.parent_task

        return {
            "parent_chain": parent_chain,
            "current_task": task,
            "subtask_tree": self._subtask_tree(task, {task.id}),
        }

    def create_calendar_event(self, task_id: int, event_user_id: int, title: str, event_date,
                              user: User) -> CalendarEvent:
        task = self.get_task_by_id(task_id, user)

        event_user = self.db.query(User).filter(User.id == event_user_id).first()
        if not event_user:
            raise NotFoundError("Event user not found")
        if not event_user.is_active:
            raise ValidationError("Event user is inactive")

        event = CalendarEvent(task_id=task.id, user_id=event_user_id, title=title, event_date=event_date)
        self.db.add(event)
        self.db.flush()
        self._log(task.id, user.id, TaskLogAction.UPDATED, "Calendar Event", {"added": title}, {
            "action": "createCalendarEvent",
            "eventId": event.id,
            "eventUserId": event_user_id,
            "eventDate": event_date.isoformat(),
        })
        self.db.commit()
        self.db.refresh(event)
        return event

    def get_calendar_events(self, task_id: int, user: User) -> List[CalendarEvent]:
        task = self.get_task_by_id(task_id, user)
        return (
            self.db.query(CalendarEvent)
            .filter(CalendarEvent.task_id == task.id)
            .order_by(CalendarEvent.event_date)
            .all()
        )

    def get_task_logs(self, task_id: int, user: User) -> List[TaskLog]:
        task = self.get_task_by_id(task_id, user)
        return (
            self.db.query(TaskLog)
            .filter(TaskLog.task_id == task.id)
            .order_by(TaskLog.timestamp.desc(), TaskLog.id.desc())
            .all()
        )
