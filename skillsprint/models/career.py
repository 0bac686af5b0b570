"""
Career goal and review models
"""

from enum import Enum
from typing import Optional
from datetime import date
from pydantic import BaseModel, field_validator


class OneOnOneCadence(str, Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


class PerformanceCadence(str, Enum):
    QUARTERLY = "quarterly"
    ANNUAL = "annual"


class ReviewSessionType(str, Enum):
    ONE_ON_ONE = "one_on_one"
    PERFORMANCE = "performance"


class CareerGoal(BaseModel):
    """Career development goal"""

    id: str
    title: str
    description: Optional[str] = None
    target_date: Optional[date] = None
    user_id: Optional[str] = None


class CareerGoalCreate(BaseModel):
    """Career goal creation model"""

    title: str
    target_date: date
    description: Optional[str] = None

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title must not be empty")
        return value

    @field_validator("description")
    @classmethod
    def _blank_description_is_none(cls, value: Optional[str]) -> Optional[str]:
        return value or None


class ReviewCadence(BaseModel):
    """How often 1:1s and performance reviews happen"""

    user_id: Optional[str] = None
    one_on_one: OneOnOneCadence = OneOnOneCadence.BIWEEKLY
    performance: PerformanceCadence = PerformanceCadence.QUARTERLY


class ReviewSession(BaseModel):
    """Scheduled review session"""

    id: Optional[str] = None
    type: ReviewSessionType
    scheduled_date: date
    user_id: Optional[str] = None
