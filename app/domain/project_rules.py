# app/domain/project_rules.py
from typing import Optional

from app.domain.errors import InvalidProjectNameError, InvalidPriorityError

MAX_PROJECT_NAME_LENGTH = 100
DEFAULT_PROJECT_PRIORITY = 5


def normalize_project_name(name: Optional[str]) -> str:
    if name is None or name == "":
        raise InvalidProjectNameError("Project name is required")

    trimmed = name.strip()
    if not trimmed:
        raise InvalidProjectNameError("Project name cannot be empty or whitespace")
    if len(trimmed) > MAX_PROJECT_NAME_LENGTH:
        raise InvalidProjectNameError("Project name must not exceed 100 characters")
    return trimmed


def normalize_description(description: Optional[str]) -> Optional[str]:
    if description and description.strip():
        return description.strip()
    return None


def validate_project_priority(priority: Optional[int]) -> int:
    if priority is None:
        return DEFAULT_PROJECT_PRIORITY
    if priority < 1 or priority > 10:
        raise InvalidPriorityError()
    return priority
