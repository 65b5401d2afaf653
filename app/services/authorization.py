from typing import Iterable

from app.models.task import Task
from app.models.user import User, UserRole


def can_edit_task(task: Task, user: User, hierarchy_ids: Iterable[int]) -> bool:
    """
    Edit permission for a task.

    hierarchy_ids is the user's department plus everything below it.
    Staff may only edit tasks they are assigned to; managers and HR
    admins may edit anything inside their hierarchy.
    """
    hierarchy = set(hierarchy_ids)
    if not hierarchy or task.department_id not in hierarchy:
        return False

    if user.role == UserRole.STAFF and not user.is_hr_admin:
        return task.is_user_assigned(user.id)

    return True
