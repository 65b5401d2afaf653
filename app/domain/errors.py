# app/domain/errors.py
"""
Domain errors raised by services and mapped to HTTP responses in main.py
"""


class DomainError(Exception):
    """Base class for business rule violations"""

    status_code = 400
    default_message = "Request could not be processed"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(DomainError):
    status_code = 400


class NotFoundError(DomainError):
    status_code = 404
    default_message = "Not found"


class UnauthorizedError(DomainError):
    status_code = 403
    default_message = "User is not authorized to perform this action"


class ConflictError(DomainError):
    status_code = 409


# Task rules

class InvalidTitleError(ValidationError):
    default_message = "Task title must be between 1 and 255 characters"


class InvalidPriorityError(ValidationError):
    default_message = "Priority must be between 1 and 10"


class MaxAssigneesReachedError(ValidationError):
    default_message = "Maximum of 5 assignees allowed per task"


class MinAssigneesError(ValidationError):
    default_message = "Task must have at least 1 assignee"


class InvalidRecurrenceError(ValidationError):
    default_message = "Recurrence days must be greater than 0 when recurring is enabled"


class InvalidSubtaskDeadlineError(ValidationError):
    default_message = "Subtask deadline cannot be after parent task deadline"


class FileSizeLimitExceededError(ValidationError):
    default_message = "Total file size cannot exceed 50MB per task"


class InvalidFileTypeError(ValidationError):
    default_message = "File type is not allowed"


# Project rules

class InvalidProjectNameError(ValidationError):
    default_message = "Invalid project name"


class InvalidProjectDataError(ValidationError):
    default_message = "Invalid project data"


class DuplicateProjectNameError(ConflictError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f'A project named "{name}" already exists. Please choose a different name.'
        )


# Infrastructure

class EmailDeliveryError(Exception):
    """Raised when the email provider rejects a message"""


class StorageError(Exception):
    """Raised when a file cannot be written to or removed from storage"""
