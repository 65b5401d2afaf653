# app/domain/task_rules.py
"""
Business rules for tasks, kept free of database access so services
and tests can share them
"""

from datetime import datetime, timedelta
from typing import Iterable, Optional, Tuple

from app.domain.errors import (
    InvalidTitleError,
    InvalidRecurrenceError,
    InvalidSubtaskDeadlineError,
    MaxAssigneesReachedError,
    MinAssigneesError,
    UnauthorizedError,
    ValidationError,
)
from app.domain.priority import PriorityBucket

MAX_TITLE_LENGTH = 255
MAX_ASSIGNEES = 5
MIN_ASSIGNEES = 1


def normalize_title(title: Optional[str]) -> str:
    trimmed = (title or "").strip()
    if not trimmed or len(trimmed) > MAX_TITLE_LENGTH:
        raise InvalidTitleError()
    return trimmed


def validate_priority(priority: int) -> int:
    return PriorityBucket(priority).level


def validate_assignee_count(assignee_ids: Iterable[int]) -> list:
    """Deduplicate assignees and enforce the 1-5 range"""
    unique_ids = list(dict.fromkeys(assignee_ids))
    if len(unique_ids) < MIN_ASSIGNEES:
        raise MinAssigneesError()
    if len(unique_ids) > MAX_ASSIGNEES:
        raise MaxAssigneesReachedError()
    return unique_ids


def validate_recurrence(interval: Optional[int]) -> Optional[int]:
    if interval is not None and interval <= 0:
        raise InvalidRecurrenceError()
    return interval


def resolve_recurring_update(enabled: bool, interval: Optional[int]) -> Optional[int]:
    """Interval to store after a recurring settings change"""
    if enabled:
        if interval is None or interval <= 0:
            raise InvalidRecurrenceError()
        return interval
    return None


def validate_subtask_deadline(due_date: datetime, parent_due_date: Optional[datetime]):
    if parent_due_date is not None and due_date > parent_due_date:
        raise InvalidSubtaskDeadlineError()


def can_add_assignee(
    current_assignee_ids: Iterable[int],
    new_user_id: int,
    actor_id: int,
    actor_is_manager: bool,
) -> bool:
    """
    Check whether new_user_id may be added to a task.

    Managers may add to any task they can see, staff only to tasks they
    are assigned to. Returns False when the user is already assigned.
    """
    current = set(current_assignee_ids)
    if not actor_is_manager and actor_id not in current:
        raise UnauthorizedError()
    if new_user_id in current:
        return False
    if len(current) >= MAX_ASSIGNEES:
        raise MaxAssigneesReachedError()
    return True


def can_remove_assignee(current_assignee_ids: Iterable[int], user_id: int, actor_is_manager: bool):
    current = set(current_assignee_ids)
    if not actor_is_manager:
        raise UnauthorizedError()
    if user_id not in current:
        raise ValidationError("User is not assigned to this task")
    if len(current) == MIN_ASSIGNEES:
        raise MinAssigneesError()


def next_recurrence_dates(created_at: datetime, due_date: datetime, interval_days: int) -> Tuple[datetime, datetime]:
    """Shift both the creation date and the deadline by the interval"""
    shift = timedelta(days=interval_days)
    return created_at + shift, due_date + shift
