"""
Task model
"""

from enum import Enum
from typing import Optional, Tuple
from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class TaskStatus(str, Enum):
    """Task workflow status"""
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class TaskPriority(str, Enum):
    """Task priority"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def _check_title(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("title must not be empty")
    return value


def _check_dates(start_date: Optional[date], due_date: Optional[date]) -> None:
    if start_date and due_date and start_date > due_date:
        raise ValueError("start_date must not be after due_date")


class Task(BaseModel):
    """Task record as stored in the backing store"""

    id: str
    project_id: str
    title: str
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.TODO
    priority: Optional[TaskPriority] = None
    category_id: Optional[str] = None
    start_date: Optional[date] = None
    due_date: date
    order_index: Optional[int] = None
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TaskCreate(BaseModel):
    """Task creation model"""

    model_config = ConfigDict(extra="forbid")

    project_id: str
    title: str
    due_date: date
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.TODO
    priority: Optional[TaskPriority] = TaskPriority.MEDIUM
    category_id: Optional[str] = None
    start_date: Optional[date] = None

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: str) -> str:
        return _check_title(value)

    @model_validator(mode="after")
    def _dates_in_order(self) -> "TaskCreate":
        _check_dates(self.start_date, self.due_date)
        return self


class TaskUpdate(BaseModel):
    """
    Partial task update; only explicitly set fields are sent

    A task stays in the project it was created in.
    """

    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    category_id: Optional[str] = None
    start_date: Optional[date] = None
    due_date: Optional[date] = None

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: Optional[str]) -> Optional[str]:
        return _check_title(value)

    @model_validator(mode="after")
    def _required_fields_not_cleared(self) -> "TaskUpdate":
        # Optional fields may be cleared with None; these may not
        for name in ("title", "due_date", "status"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be cleared")
        return self


class TaskFilter(BaseModel):
    """Filter applied before projecting a task collection"""

    model_config = ConfigDict(frozen=True)

    status: Optional[TaskStatus] = None  # None means all statuses
    project_ids: Optional[Tuple[str, ...]] = None
    category_id: Optional[str] = None

    @property
    def is_unfiltered(self) -> bool:
        return self.status is None and not self.project_ids and self.category_id is None


def validate_task_dates(task: Task) -> None:
    """Check cross-field invariants on a merged task"""
    _check_dates(task.start_date, task.due_date)
