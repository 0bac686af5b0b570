"""
Projection output models (list, board, calendar, timeline)
"""

from enum import Enum
from typing import Optional, List
from datetime import date
from pydantic import BaseModel, computed_field

from skillsprint.models.task import Task, TaskStatus


class SortMode(str, Enum):
    """Sort modes offered by the list view"""
    CUSTOM = "custom"
    STATUS = "status"
    PRIORITY = "priority"
    CATEGORY = "category"
    DUE_DATE = "due_date"


class ViewKind(str, Enum):
    LIST = "list"
    BOARD = "board"
    CALENDAR = "calendar"
    TIMELINE = "timeline"


class BoardColumn(BaseModel):
    status: TaskStatus
    title: str
    tasks: List[Task] = []

    @computed_field
    @property
    def count(self) -> int:
        return len(self.tasks)


class Board(BaseModel):
    columns: List[BoardColumn]


class CalendarDay(BaseModel):
    """Tasks due on one day; only the first few are displayed"""

    day: date
    tasks: List[Task] = []
    total: int = 0
    in_month: bool = True

    @computed_field
    @property
    def hidden_count(self) -> int:
        return max(self.total - len(self.tasks), 0)

    @computed_field
    @property
    def more_label(self) -> Optional[str]:
        if self.hidden_count:
            return f"+{self.hidden_count} more"
        return None


class CalendarMonth(BaseModel):
    year: int
    month: int
    weeks: List[List[CalendarDay]]


class TimelineEntry(BaseModel):
    task: Task
    start: date
    end: date
    offset_days: int
    duration_days: int
    start_percent: float
    width_percent: float


class Timeline(BaseModel):
    min_date: date
    max_date: date
    total_days: int
    scale: List[date]
    entries: List[TimelineEntry]
