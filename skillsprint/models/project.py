"""
Project model
"""

from enum import Enum
from typing import Optional
from datetime import date, datetime
from pydantic import BaseModel, field_validator, model_validator


class ProjectStatus(str, Enum):
    """Project lifecycle status"""
    ACTIVE = "active"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"


def _check_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("name must not be empty")
    return value


class Project(BaseModel):
    """Project record"""

    id: str
    name: str
    description: Optional[str] = None
    status: ProjectStatus = ProjectStatus.ACTIVE
    start_date: Optional[date] = None
    target_end_date: Optional[date] = None
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProjectCreate(BaseModel):
    """Project creation model"""

    name: str
    description: Optional[str] = None
    status: ProjectStatus = ProjectStatus.ACTIVE
    start_date: Optional[date] = None
    target_end_date: Optional[date] = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        return _check_name(value)


class ProjectUpdate(BaseModel):
    """Project update model"""

    name: Optional[str] = None
    description: Optional[str] = None
    status: Optional[ProjectStatus] = None
    start_date: Optional[date] = None
    target_end_date: Optional[date] = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: Optional[str]) -> Optional[str]:
        return _check_name(value)

    @model_validator(mode="after")
    def _required_fields_not_cleared(self) -> "ProjectUpdate":
        for name in ("name", "status"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be cleared")
        return self


class ProjectStats(BaseModel):
    """Project counts by status"""

    total: int = 0
    active: int = 0
    on_hold: int = 0
    completed: int = 0
