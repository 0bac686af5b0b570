"""
Error handling utilities
"""

from typing import Optional
from pydantic import ValidationError as PydanticValidationError
from skillsprint.models.response import ErrorResponse
from skillsprint.utils.logger import logger


class SkillSprintError(Exception):
    """Base exception for SkillSprint errors"""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        entity: Optional[str] = None,
    ):
        """
        Args:
            message: Human readable error message
            operation: Operation that failed (e.g. "update task")
            entity: Name or ID of the affected task/project/category
        """
        self.message = message
        self.operation = operation
        self.entity = entity
        super().__init__(self.message)


class ValidationError(SkillSprintError):
    """Input rejected before reaching the backing store"""
    pass


class NotFoundError(SkillSprintError):
    """Operation targets a record that is no longer present"""
    pass


class PersistenceError(SkillSprintError):
    """Backing store read or write failed"""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        entity: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.status_code = status_code
        super().__init__(message, operation=operation, entity=entity)


def from_pydantic(
    error: PydanticValidationError,
    operation: Optional[str] = None,
    entity: Optional[str] = None,
) -> ValidationError:
    """
    Convert a pydantic validation failure into a ValidationError

    Messages raised by our own validators are kept as written; other
    failures are prefixed with the field name ("due_date: Field required").
    """
    parts = []
    for item in error.errors():
        message = item.get("msg", "invalid value")
        if item.get("type") == "value_error":
            parts.append(message.removeprefix("Value error, "))
            continue
        location = ".".join(str(part) for part in item.get("loc", ()))
        parts.append(f"{location}: {message}" if location else message)
    return ValidationError("; ".join(parts), operation=operation, entity=entity)


ERROR_CODES = {
    ValidationError: "validation_error",
    NotFoundError: "not_found",
    PersistenceError: "persistence_error",
}


def _describe_target(error: SkillSprintError) -> str:
    """Build 'update task 'Write report'' style prefix"""
    if not error.operation:
        return ""
    if error.entity:
        return f"{error.operation} '{error.entity}'"
    return error.operation


def handle_error(error: Exception) -> ErrorResponse:
    """
    Handle error and return user-friendly message

    Args:
        error: Exception to handle

    Returns:
        ErrorResponse with user-friendly message
    """
    if isinstance(error, ValidationError):
        logger.warning(f"Validation error: {error}")
    else:
        logger.error(f"Error occurred: {error}", exc_info=True)

    if isinstance(error, SkillSprintError):
        target = _describe_target(error)
        error_code = next(
            (code for cls, code in ERROR_CODES.items() if isinstance(error, cls)),
            None,
        )

        if isinstance(error, ValidationError):
            message = f"Invalid input: {error.message}"
        elif isinstance(error, NotFoundError):
            message = f"{error.message}. The data may be stale, refreshing."
        elif target:
            message = f"Failed to {target}: {error.message}"
        else:
            message = f"Operation failed: {error.message}"

        details = {"operation": error.operation, "entity": error.entity}
        return ErrorResponse(
            message=message,
            error_code=error_code,
            details={k: v for k, v in details.items() if v is not None} or None,
        )

    # Generic error message
    return ErrorResponse(
        message="Something went wrong. Please try again later.",
    )


def format_error_message(error: Exception) -> str:
    """
    Format error message for user

    Args:
        error: Exception to format

    Returns:
        User-friendly error message
    """
    error_response = handle_error(error)
    return error_response.message
